"""
Trainable classifier head on top of the frozen backbone embedding.

Architecture::

    Input(embedding_shape)
      → Flatten
      → Dense(20, relu)
      → Dense(num_classes, softmax)

Compiled with CategoricalCrossentropy and Adam(1e-3), tracking accuracy.
"""

from __future__ import annotations

import logging
import math
from typing import Callable, Dict, List, Optional, Sequence

import numpy as np
import tensorflow as tf
from tensorflow.keras.callbacks import LambdaCallback, TerminateOnNaN
from tensorflow.keras.layers import Dense, Flatten, Input
from tensorflow.keras.models import Sequential
from tensorflow.keras.optimizers import Adam

from .config import TrainingConfig
from .exceptions import TrainingError
from .resources import TensorScope
from .types import TrainingLog

logger = logging.getLogger(__name__)

EpochCallback = Callable[[TrainingLog], None]


class HeadReleasedError(RuntimeError):
    """Raised when a released head is used."""


def to_history(history: Dict[str, List[float]]) -> List[TrainingLog]:
    """Turn a Keras ``History.history`` dict into per-epoch training logs.

    Only the training loss / accuracy are kept; validation figures are
    monitoring output and never part of the history.
    """
    losses = history.get("loss", [])
    accuracies = history.get("accuracy", [])
    return [
        TrainingLog(epoch=epoch, loss=float(loss), accuracy=float(acc))
        for epoch, (loss, acc) in enumerate(zip(losses, accuracies))
    ]


class ClassifierHead:
    """A compiled Keras head mapping an embedding to class probabilities."""

    def __init__(self, model: tf.keras.Model, config: Optional[TrainingConfig] = None):
        self._model: Optional[tf.keras.Model] = model
        self.config = config or TrainingConfig()

    @classmethod
    def build(
        cls,
        embedding_shape: Sequence[int],
        num_classes: int,
        config: Optional[TrainingConfig] = None,
    ) -> "ClassifierHead":
        """Build and compile a fresh head for ``num_classes`` labels."""
        config = config or TrainingConfig()

        model = Sequential(
            [
                Input(shape=tuple(embedding_shape)),
                Flatten(),
                Dense(config.hidden_units, activation="relu"),
                Dense(num_classes, activation="softmax"),
            ],
            name="classifier_head",
        )
        model.compile(
            optimizer=Adam(learning_rate=config.learning_rate),
            loss="categorical_crossentropy",
            metrics=["accuracy"],
        )

        logger.info(
            "Built classifier head: %d classes, embedding %s",
            num_classes, tuple(embedding_shape),
        )
        return cls(model, config)

    @property
    def model(self) -> tf.keras.Model:
        if self._model is None:
            raise HeadReleasedError("Classifier head has been released.")
        return self._model

    @property
    def num_classes(self) -> int:
        return int(self.model.outputs[0].shape[-1])

    @property
    def released(self) -> bool:
        return self._model is None

    def fit(
        self,
        embeddings: tf.Tensor,
        targets: tf.Tensor,
        on_epoch: Optional[EpochCallback] = None,
    ) -> List[TrainingLog]:
        """Train for the full epoch budget and return one log per epoch.

        ``on_epoch`` is called synchronously after every completed epoch.

        Raises
        ------
        TrainingError
            If the loss becomes NaN or TensorFlow fails during fitting.
            No partial history is returned.
        """
        config = self.config

        def _on_epoch_end(epoch: int, logs: Optional[dict] = None) -> None:
            logs = logs or {}
            logger.debug(
                "Epoch %d: loss = %.5f acc = %.5f val_loss = %.5f val_acc = %.5f",
                epoch,
                logs.get("loss", math.nan),
                logs.get("accuracy", math.nan),
                logs.get("val_loss", math.nan),
                logs.get("val_accuracy", math.nan),
            )
            if on_epoch is not None:
                on_epoch(TrainingLog(
                    epoch=epoch,
                    loss=float(logs.get("loss", math.nan)),
                    accuracy=float(logs.get("accuracy", math.nan)),
                ))

        try:
            info = self.model.fit(
                embeddings,
                targets,
                epochs=config.epochs,
                batch_size=config.batch_size,
                validation_split=config.validation_split,
                shuffle=config.shuffle,
                callbacks=[TerminateOnNaN(), LambdaCallback(on_epoch_end=_on_epoch_end)],
                verbose=0,
            )
        except (tf.errors.OpError, ValueError) as exc:
            raise TrainingError(f"Training failed: {exc}") from exc

        history = to_history(info.history)
        if len(history) != config.epochs:
            raise TrainingError(
                f"Training stopped after {len(history)} of {config.epochs} epochs."
            )
        if any(math.isnan(log.loss) for log in history):
            raise TrainingError("Training diverged: loss became NaN.")
        return history

    def predict_scores(self, embeddings: tf.Tensor) -> np.ndarray:
        """Run one forward pass; return a (batch, num_classes) score array."""
        with TensorScope("head.predict") as scope:
            yhat = scope.track(self.model(embeddings, training=False))
            scores = np.array(yhat.numpy(), dtype=np.float32)
        return scores

    def release(self) -> None:
        """Drop the Keras model; the head cannot be used afterwards."""
        if self._model is not None:
            logger.debug("Releasing classifier head '%s'", self._model.name)
            self._model = None
