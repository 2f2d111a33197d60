"""
View package for the projects app.

Modules
-------
helpers.py        – Shared constants, error mapping, state serialisation.
training_api.py   – Train / load / trainability / status APIs.
prediction_api.py – Single-image prediction endpoint.
"""

# Re-export all views so urls.py can do: from .views import api_train, …
from .training_api import api_load, api_status, api_train, api_trainable  # noqa: F401
from .prediction_api import api_predict                                  # noqa: F401
