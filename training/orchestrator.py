"""
Model state machine exposed to callers.

States::

    Idle ──train/load──▶ Loading ──success──▶ Ready(head, model_info)
    Ready ─train/load──▶ Loading ──failure──▶ Failed(error)

``train`` drives fetch → validate → extract → fit → stage → put_model →
commit; ``load`` drives find_model → load head.  Both run in the background
and return a ``Future``.  ``predict`` scores with the held head: the one in
``Ready``, or the ``previous`` one while a later run is in flight or after
one failed.

Operations are not mutually excluded: if several run at once, the last to
complete decides the held state, and a ``predict`` in flight while a new
head is swapped in may score with either head.  Each transition is derived
from the state current at that moment, so a head replaced by one run is
never resurrected by another.

The head of the last ``Ready`` state travels along in ``Loading`` and
``Failed`` (``previous``) so it is released only when a newer head
replaces it, never by a failed run.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, replace
from typing import Callable, ClassVar, List, Optional, Tuple, Union

from . import predict as prediction_service
from .config import TrainingConfig
from .dataset import check_trainable
from .exceptions import LoadError, NotReadyError
from .features import FeatureExtractor, ImageSource, shared_feature_extractor
from .head import ClassifierHead, HeadReleasedError
from .persistence import HeadRepository, storage_key
from .stores import DatasetStore, ModelStore
from .tasks import get_executor, run_in_background
from .train import train_on_dataset
from .types import ImagePrediction, ModelInfo, TrainingLog, filter_labels

logger = logging.getLogger(__name__)


# ── States ──────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Idle:
    status: ClassVar[str] = "idle"


@dataclass(frozen=True)
class Ready:
    head: ClassifierHead
    model_info: ModelInfo
    status: ClassVar[str] = "ready"


@dataclass(frozen=True)
class Loading:
    previous: Optional[Ready] = None
    epochs_completed: int = 0
    status: ClassVar[str] = "loading"


@dataclass(frozen=True)
class Failed:
    error: BaseException
    previous: Optional[Ready] = None
    status: ClassVar[str] = "failed"


State = Union[Idle, Loading, Ready, Failed]
Listener = Callable[[State], None]


def held_ready(state: State) -> Optional[Ready]:
    """Return the ``Ready`` snapshot a state holds on to, if any."""
    if isinstance(state, Ready):
        return state
    return getattr(state, "previous", None)


# ── Orchestrator ────────────────────────────────────────────────────────────

class TrainingOrchestrator:
    """Owns the current model and sequences train / load / predict."""

    def __init__(
        self,
        dataset_store: DatasetStore,
        model_store: ModelStore,
        repository: Optional[HeadRepository] = None,
        config: Optional[TrainingConfig] = None,
        extractor_loader: Optional[Callable[[], FeatureExtractor]] = None,
        executor: Optional[ThreadPoolExecutor] = None,
    ):
        self.config = config or TrainingConfig()
        self._datasets = dataset_store
        self._models = model_store
        self._repository = repository or HeadRepository(config=self.config)
        self._extractor_loader = extractor_loader or (
            lambda: shared_feature_extractor(self.config)
        )
        self._executor = executor or get_executor(self.config)
        self._state: State = Idle()
        self._listeners: List[Listener] = []
        # Guards single transitions only; operations still run concurrently.
        self._state_lock = threading.RLock()

    # -- state --

    @property
    def state(self) -> State:
        return self._state

    @property
    def status(self) -> str:
        return self._state.status

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener(state)`` on every transition; return an unsubscriber."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _transition(self, make_state: Callable[[Optional[Ready]], State]) -> State:
        """Replace the state with ``make_state(held Ready snapshot)``."""
        with self._state_lock:
            state = make_state(held_ready(self._state))
            changed = state.status != self._state.status
            self._state = state
            if changed:
                logger.info("Model status → %s", state.status)
            for listener in list(self._listeners):
                try:
                    listener(state)
                except Exception:
                    logger.exception("State listener %r failed", listener)
            return state

    def _swap(self, ready: Ready) -> None:
        """Make ``ready`` current and release the head it replaces."""
        with self._state_lock:
            replaced = held_ready(self._state)
            self._transition(lambda _held: ready)
        if replaced is not None and replaced.head is not ready.head:
            replaced.head.release()

    def _begin(self) -> None:
        self._transition(lambda held: Loading(previous=held))

    def _fail(self, exc: BaseException) -> None:
        self._transition(lambda held: Failed(error=exc, previous=held))

    # -- train --

    def train(self, project_id: int) -> "Future[ModelInfo]":
        """Train a new head for a project in the background."""
        self._begin()
        return run_in_background(
            self._executor, self._train, project_id,
            name=f"training of project {project_id}",
        )

    def _train(self, project_id: int) -> ModelInfo:
        def on_epoch(log: TrainingLog) -> None:
            self._transition(
                lambda held: Loading(previous=held, epochs_completed=log.epoch + 1)
            )

        try:
            dataset = self._datasets.find_dataset(project_id)
            check_trainable(
                dataset, self.config.min_labels, self.config.min_images_per_label,
            )

            extractor = self._extractor_loader()
            result = train_on_dataset(dataset, extractor, self.config, on_epoch=on_epoch)

            staged = None
            try:
                # The head file goes live only once its metadata is stored.
                staged = self._repository.stage(project_id, result.head)
                model_info = ModelInfo(
                    project_id=project_id,
                    label_names=[label.name for label in filter_labels(dataset.labels)],
                    history=result.history,
                    storage_key=storage_key(project_id),
                    prediction=result.prediction,
                )
                self._models.put_model(model_info)
                self._repository.commit(project_id, staged)
            except Exception:
                if staged is not None:
                    self._repository.discard(staged)
                result.head.release()
                raise
        except Exception as exc:
            logger.exception("Training of project %s failed", project_id)
            self._fail(exc)
            raise

        self._swap(Ready(head=result.head, model_info=model_info))
        return model_info

    # -- load --

    def load(self, project_id: int) -> "Future[ModelInfo]":
        """Load a project's saved head and metadata in the background."""
        self._begin()
        return run_in_background(
            self._executor, self._load, project_id,
            name=f"loading of project {project_id}",
        )

    def _load(self, project_id: int) -> ModelInfo:
        try:
            model_info = self._models.find_model(project_id)
            head = self._repository.load(project_id)
            if head.num_classes != len(model_info.label_names):
                head.release()
                raise LoadError(
                    f"Saved model of project {project_id} scores {head.num_classes} "
                    f"classes but its metadata lists {len(model_info.label_names)} labels."
                )
        except Exception as exc:
            logger.warning("Loading model of project %s failed: %s", project_id, exc)
            self._fail(exc)
            raise

        self._swap(Ready(head=head, model_info=model_info))
        return model_info

    # -- predict --

    def predict(self, image: ImageSource) -> "Future[ImagePrediction]":
        """Score an image with the held head.

        Works from ``Ready`` and also while a later train / load is running
        or after one has failed, as long as an earlier head is still held.
        """
        return self._submit_prediction(image, with_labels=False)

    def predict_with_labels(
        self, image: ImageSource,
    ) -> "Future[Tuple[ImagePrediction, List[str]]]":
        """Like ``predict``, paired with the label names of the head that scored."""
        return self._submit_prediction(image, with_labels=True)

    def _submit_prediction(self, image: ImageSource, with_labels: bool) -> Future:
        ready = held_ready(self._state)
        if ready is None:
            future: Future = Future()
            future.set_exception(NotReadyError(
                f"No model is ready for prediction (status: {self.status})."
            ))
            return future
        return run_in_background(
            self._executor, self._predict, image, ready, with_labels, name="prediction",
        )

    def _predict(self, image: ImageSource, ready: Ready, with_labels: bool):
        extractor = self._extractor_loader()
        try:
            prediction = prediction_service.predict(image, extractor, ready.head)
        except HeadReleasedError:
            # Swapped out after submission: score with whatever replaced it.
            current = held_ready(self._state)
            if current is None:
                raise NotReadyError(
                    f"No model is ready for prediction (status: {self.status})."
                ) from None
            if current.head is ready.head:
                raise
            ready = current
            prediction = prediction_service.predict(image, extractor, ready.head)

        if with_labels:
            return prediction, list(ready.model_info.label_names)
        return prediction

    # -- teardown --

    def forget(self, project_id: int) -> bool:
        """Release the held head if it belongs to ``project_id``.

        Used when a project is deleted. A run in flight is left alone; only
        the snapshot it would fall back to is dropped. Returns True if a head
        was released.
        """
        with self._state_lock:
            held = held_ready(self._state)
            if held is None or held.model_info.project_id != project_id:
                return False
            state = self._state
            if isinstance(state, Ready):
                self._transition(lambda _held: Idle())
            else:
                self._transition(lambda _held: replace(state, previous=None))
        held.head.release()
        logger.info("Released the model of deleted project %s", project_id)
        return True

    def close(self) -> None:
        """Release the held head and go back to ``Idle``."""
        with self._state_lock:
            held = held_ready(self._state)
            self._transition(lambda _held: Idle())
        if held is not None:
            held.head.release()
