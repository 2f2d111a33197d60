"""
Per-project storage of trained classifier heads.

One ``.keras`` file per project under ``MODELS_ROOT``, named after the
project's storage key (``models-<project_id>``).  Only the head is saved;
the shared backbone is reloaded fresh in every process.
"""

from __future__ import annotations

import logging
import os
import uuid
import zipfile
from pathlib import Path
from typing import Optional

from tensorflow.keras.models import load_model

from .config import MODELS_ROOT, TrainingConfig
from .exceptions import LoadError, NotFoundError
from .head import ClassifierHead

logger = logging.getLogger(__name__)


def storage_key(project_id: int) -> str:
    """Return the deterministic storage key of a project's head."""
    return f"models-{project_id}"


class HeadRepository:
    """Saves and loads classifier heads keyed by project."""

    def __init__(self, root: Optional[Path] = None, config: Optional[TrainingConfig] = None):
        self.root = Path(root) if root is not None else MODELS_ROOT
        self.config = config or TrainingConfig()

    def path_for(self, project_id: int) -> Path:
        return self.root / f"{storage_key(project_id)}.keras"

    def exists(self, project_id: int) -> bool:
        return self.path_for(project_id).exists()

    def stage(self, project_id: int, head: ClassifierHead) -> Path:
        """Write the head next to the live entry without replacing it.

        The staged file becomes the project's head only on ``commit``; each
        call gets its own file, so concurrent runs never share one.
        """
        self.root.mkdir(parents=True, exist_ok=True)
        staged = self.root / f"{storage_key(project_id)}.{uuid.uuid4().hex}.staged.keras"
        head.model.save(str(staged))
        logger.debug("Staged classifier head of project %s at %s", project_id, staged)
        return staged

    def commit(self, project_id: int, staged: Path) -> str:
        """Atomically replace the project's head with a staged file.

        Returns the storage key.
        """
        path = self.path_for(project_id)
        os.replace(staged, path)
        logger.info("Saved classifier head of project %s to %s", project_id, path)
        return storage_key(project_id)

    def discard(self, staged: Path) -> None:
        """Remove a staged file that will not be committed."""
        Path(staged).unlink(missing_ok=True)

    def save(self, project_id: int, head: ClassifierHead) -> str:
        """Write the head's topology and weights, replacing any previous entry.

        Returns the storage key.
        """
        return self.commit(project_id, self.stage(project_id, head))

    def load(self, project_id: int) -> ClassifierHead:
        """Load the head saved for a project, ready for prediction.

        Raises
        ------
        NotFoundError
            If nothing was saved for this project.
        LoadError
            If the saved file cannot be deserialised.
        """
        path = self.path_for(project_id)
        if not path.exists():
            raise NotFoundError(f"No saved model for project {project_id}.")

        try:
            model = load_model(str(path), compile=False)
        except (OSError, ValueError, zipfile.BadZipFile) as exc:
            raise LoadError(
                f"Saved model of project {project_id} could not be loaded.",
                log_message=str(path),
            ) from exc

        logger.info("Loaded classifier head of project %s from %s", project_id, path)
        return ClassifierHead(model, self.config)

    def delete(self, project_id: int) -> bool:
        """Remove the saved head of a project; return True if one existed."""
        path = self.path_for(project_id)
        if not path.exists():
            return False
        path.unlink()
        logger.info("Deleted saved model of project %s", project_id)
        return True
