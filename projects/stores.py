"""
Django ORM implementations of the engine's dataset and model stores.
"""

from __future__ import annotations

import logging

from training.exceptions import NotFoundError
from training.types import Dataset, ModelInfo

from .models import Project, TrainedModel

logger = logging.getLogger(__name__)


class DjangoDatasetStore:
    """Reads project datasets as engine ``Dataset`` snapshots."""

    def find_dataset(self, project_id: int) -> Dataset:
        project = (
            Project.objects
            .filter(pk=project_id)
            .prefetch_related("labels__images")
            .first()
        )
        if project is None:
            raise NotFoundError(f"Project {project_id} not found.")
        return project.to_dataset()


class DjangoModelStore:
    """Reads and writes ``TrainedModel`` rows."""

    def find_model(self, project_id: int) -> ModelInfo:
        record = TrainedModel.objects.filter(project_id=project_id).first()
        if record is None:
            raise NotFoundError(f"No model stored for project {project_id}.")
        return record.to_model_info()

    def put_model(self, model_info: ModelInfo) -> None:
        if not Project.objects.filter(pk=model_info.project_id).exists():
            raise NotFoundError(f"Project {model_info.project_id} not found.")

        data = model_info.to_dict()
        TrainedModel.objects.update_or_create(
            project_id=model_info.project_id,
            defaults={
                "label_names": data["label_names"],
                "history": data["history"],
                "storage_key": data["storage_key"],
                "prediction": data["prediction"],
            },
        )
        logger.info(
            "Stored model metadata of project %s (%d labels, %d epochs)",
            model_info.project_id, len(model_info.label_names), len(model_info.history),
        )
