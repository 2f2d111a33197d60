"""
Root URL configuration for the Maltiese project.

All project / model functionality lives under ``/api/``.
"""

from django.conf import settings
from django.conf.urls.static import static
from django.urls import include, path

urlpatterns = [
    path("", include("projects.urls")),
]

# Serve uploaded project images in development
if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
