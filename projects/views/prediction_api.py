"""
Prediction endpoint: score an uploaded image with the current model.
"""

from __future__ import annotations

import logging
from concurrent.futures import TimeoutError as FutureTimeoutError

import numpy as np
from django.conf import settings
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from projects.engine import get_orchestrator
from training.exceptions import EngineError

from .helpers import ALLOWED_CONTENT_TYPES, MAX_UPLOAD_SIZE, error_response

logger = logging.getLogger(__name__)


@csrf_exempt
@require_POST
def api_predict(request):
    """Score an uploaded image against every label of the current model.

    Workflow
    -------
    1. Validate the upload (presence, size, content-type).
    2. Submit the encoded bytes to the engine and wait for the scores.
    3. Return the scores with the label names of the head that produced them.
    """
    if "image" not in request.FILES:
        return JsonResponse({"error": "No image file provided."}, status=400)

    image_file = request.FILES["image"]

    if image_file.content_type not in ALLOWED_CONTENT_TYPES:
        return JsonResponse(
            {"error": f"Unsupported file type: {image_file.content_type}"},
            status=400,
        )

    if image_file.size > MAX_UPLOAD_SIZE:
        return JsonResponse(
            {"error": f"File too large ({image_file.size:,} bytes). "
                      f"Max {MAX_UPLOAD_SIZE:,}."},
            status=400,
        )

    future = get_orchestrator().predict_with_labels(image_file.read())

    try:
        result, label_names = future.result(timeout=getattr(settings, "PREDICT_TIMEOUT", 30))
    except FutureTimeoutError:
        logger.warning("Prediction for %s timed out", image_file.name)
        return JsonResponse({"error": "Prediction timed out."}, status=504)
    except EngineError as exc:
        return error_response(exc)
    except Exception:
        logger.exception("Prediction failed for file %s", image_file.name)
        return JsonResponse({"error": "Prediction failed."}, status=500)

    best = int(np.argmax(result.scores)) if result.scores else None

    return JsonResponse({
        "scores": result.scores,
        "label_names": label_names,
        "predicted_label": label_names[best] if best is not None and best < len(label_names) else None,
    })
