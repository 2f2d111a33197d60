"""
Training API endpoints.

POST /api/projects/<id>/train/      – Train a new model for a project (background).
POST /api/projects/<id>/load/       – Load a project's saved model (background).
GET  /api/projects/<id>/trainable/  – Whether the project's dataset can be trained.
GET  /api/model/status/             – Current model status.
"""

from __future__ import annotations

import logging

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from projects.engine import get_orchestrator
from projects.stores import DjangoDatasetStore
from training.dataset import check_trainable
from training.exceptions import NotFoundError, ValidationError

from .helpers import error_response, state_to_dict

logger = logging.getLogger(__name__)


@csrf_exempt
@require_POST
def api_train(request, project_id: int):
    """Start training a new model for a project.

    Returns 202 at once; poll ``/api/model/status/`` for the outcome.
    """
    orchestrator = get_orchestrator()
    orchestrator.train(project_id)
    logger.info("Training requested for project %s", project_id)
    return JsonResponse(
        {"project_id": project_id, **state_to_dict(orchestrator.state)},
        status=202,
    )


@csrf_exempt
@require_POST
def api_load(request, project_id: int):
    """Start loading a project's saved model."""
    orchestrator = get_orchestrator()
    orchestrator.load(project_id)
    logger.info("Model load requested for project %s", project_id)
    return JsonResponse(
        {"project_id": project_id, **state_to_dict(orchestrator.state)},
        status=202,
    )


@require_GET
def api_trainable(request, project_id: int):
    """Report whether a project's dataset satisfies the trainability rule."""
    config = get_orchestrator().config
    try:
        dataset = DjangoDatasetStore().find_dataset(project_id)
        check_trainable(dataset, config.min_labels, config.min_images_per_label)
    except NotFoundError as exc:
        return error_response(exc)
    except ValidationError as exc:
        return JsonResponse({"project_id": project_id, "trainable": False, "reason": str(exc)})

    return JsonResponse({"project_id": project_id, "trainable": True, "reason": ""})


@require_GET
def api_status(request):
    """Return the current model status.

    Query params
    ------------
    prediction : 'true', optional
        Include the full training-time prediction of the current model.
    """
    include_prediction = request.GET.get("prediction") == "true"
    state = get_orchestrator().state
    return JsonResponse(state_to_dict(state, include_prediction=include_prediction))
