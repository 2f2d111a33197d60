"""
URL configuration for the projects app.

Route groups
------------
- Training API : train / load a project's model, trainability check.
- Model API    : current status, single-image prediction.
"""

from django.urls import path

from . import views

urlpatterns = [
    # ── Training ────────────────────────────────────────────────────────
    path("api/projects/<int:project_id>/train/", views.api_train, name="api_train"),
    path("api/projects/<int:project_id>/load/", views.api_load, name="api_load"),
    path("api/projects/<int:project_id>/trainable/", views.api_trainable, name="api_trainable"),

    # ── Model ───────────────────────────────────────────────────────────
    path("api/model/status/", views.api_status, name="api_status"),
    path("api/model/predict/", views.api_predict, name="api_predict"),
]
