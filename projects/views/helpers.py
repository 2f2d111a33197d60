"""
Shared constants, utilities, and helper functions used across views.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from django.http import JsonResponse

from training.evaluate import summarize_prediction
from training.exceptions import (
    LoadError,
    NotFoundError,
    NotReadyError,
    ValidationError,
)
from training.orchestrator import Failed, Loading, Ready, State

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

MAX_UPLOAD_SIZE = 10 * 1024 * 1024  # 10 MB

ALLOWED_CONTENT_TYPES = frozenset({
    "image/jpeg",
    "image/png",
    "image/bmp",
    "image/webp",
})

ERROR_STATUS = {
    ValidationError: 400,
    NotFoundError: 404,
    NotReadyError: 409,
    LoadError: 503,
}


# ---------------------------------------------------------------------------
# Utility functions
# ---------------------------------------------------------------------------

def error_response(exc: BaseException) -> JsonResponse:
    """Map an engine error to a JSON error response."""
    for error_type, status in ERROR_STATUS.items():
        if isinstance(exc, error_type):
            return JsonResponse(
                {"error": str(exc), "type": error_type.__name__},
                status=status,
            )
    logger.error("Unexpected engine error", exc_info=exc)
    return JsonResponse({"error": "Internal error."}, status=500)


def state_to_dict(state: State, *, include_prediction: bool = False) -> Dict[str, Any]:
    """Serialise an orchestrator state for the status API."""
    data: Dict[str, Any] = {
        "status": state.status,
        "epochs_completed": None,
        "error": None,
        "model": None,
    }

    if isinstance(state, Loading):
        data["epochs_completed"] = state.epochs_completed
    elif isinstance(state, Failed):
        data["error"] = {
            "type": type(state.error).__name__,
            "message": str(state.error),
        }

    if isinstance(state, Ready):
        info = state.model_info
        model = info.to_dict()
        if not include_prediction:
            model.pop("prediction")
        model["summary"] = summarize_prediction(info.prediction)
        data["model"] = model

    return data
