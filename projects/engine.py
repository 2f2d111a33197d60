"""
Process-wide engine instance for the web app.

One ``TrainingOrchestrator`` holds the current model for the whole
process, backed by the Django stores.  It is created on first use so that
importing the app never loads TensorFlow models.
"""

import logging
import threading
from typing import Optional

from training.config import TrainingConfig
from training.orchestrator import Loading, State, TrainingOrchestrator
from training.persistence import HeadRepository

from .stores import DjangoDatasetStore, DjangoModelStore

logger = logging.getLogger(__name__)

_orchestrator: Optional[TrainingOrchestrator] = None
_lock = threading.Lock()


def _log_progress(state: State) -> None:
    if isinstance(state, Loading) and state.epochs_completed and state.epochs_completed % 10 == 0:
        logger.info("Training progress: %d epochs completed", state.epochs_completed)


def get_orchestrator() -> TrainingOrchestrator:
    """Return the shared orchestrator, creating it on first use."""
    global _orchestrator
    with _lock:
        if _orchestrator is None:
            config = TrainingConfig.from_settings()
            _orchestrator = TrainingOrchestrator(
                dataset_store=DjangoDatasetStore(),
                model_store=DjangoModelStore(),
                repository=HeadRepository(config=config),
                config=config,
            )
            _orchestrator.subscribe(_log_progress)
            logger.info("Engine ready (config: %s)", config.to_dict())
        return _orchestrator


def get_repository() -> HeadRepository:
    return HeadRepository(config=TrainingConfig.from_settings())


def current_orchestrator() -> Optional[TrainingOrchestrator]:
    """Return the shared orchestrator if one was created, without creating it."""
    return _orchestrator
