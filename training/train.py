"""
Training run over one project's dataset.

1. Embed every image of every trainable label, in label order.
2. Stack the embeddings and build one-hot targets from the label index.
3. Build a fresh classifier head and fit it for the fixed epoch budget.
4. Score every training image with the fitted head.

The scores of step 4 are reported for the *training* images, not a held-out
set, so users can spot the images the model scores poorly and relabel them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

import numpy as np
import tensorflow as tf

from .config import TrainingConfig
from .features import FeatureExtractor
from .head import ClassifierHead, EpochCallback
from .resources import TensorScope
from .types import (
    Dataset,
    ImagePrediction,
    LabelPrediction,
    Prediction,
    TrainingLog,
    filter_labels,
)

logger = logging.getLogger(__name__)


@dataclass
class TrainingResult:
    """A fitted head together with its history and training-set scores."""

    head: ClassifierHead
    history: List[TrainingLog]
    prediction: Prediction


def to_prediction(dataset: Dataset, scores: np.ndarray) -> Prediction:
    """Regroup a flat (num_images, num_classes) score array by label.

    Rows of ``scores`` must follow the embedding order: trainable labels in
    order, images of each label in order.
    """
    labels = filter_labels(dataset.labels)
    result: List[LabelPrediction] = []
    row = 0
    for label in labels:
        images = []
        for _ in label.images:
            images.append(ImagePrediction(scores=[float(s) for s in scores[row]]))
            row += 1
        result.append(LabelPrediction(label=label.name, images=images))

    if row != len(scores):
        raise ValueError(f"Expected {row} score rows, got {len(scores)}.")
    return Prediction(project_id=dataset.project_id, labels=result)


def train_on_dataset(
    dataset: Dataset,
    extractor: FeatureExtractor,
    config: Optional[TrainingConfig] = None,
    on_epoch: Optional[EpochCallback] = None,
) -> TrainingResult:
    """Train a new classifier head on a (validated) dataset.

    Parameters
    ----------
    dataset : Dataset
        Dataset to train on; ``Unlabeled`` is ignored.
    extractor : FeatureExtractor
        Shared frozen backbone.
    config : TrainingConfig
        Hyperparameters.
    on_epoch : callable, optional
        Called with each epoch's ``TrainingLog`` as soon as it completes.

    Returns
    -------
    TrainingResult
        The fitted head, one log per epoch, and the training-set scores.
        If anything fails the head is released and nothing is returned.
    """
    config = config or TrainingConfig()
    labels = filter_labels(dataset.labels)
    num_images = sum(len(label.images) for label in labels)

    logger.info(
        "Training project %s: %d labels, %d images",
        dataset.project_id, len(labels), num_images,
    )

    head: Optional[ClassifierHead] = None
    with TensorScope("train") as scope:
        try:
            # ── 1. Embeddings + targets ─────────────────────────────────
            # Per-image embeddings are dropped as soon as they are stacked.
            targets: List[int] = []
            with TensorScope("train.embed") as per_image:
                embeddings: List[tf.Tensor] = []
                for index, label in enumerate(labels):
                    for image in label.images:
                        embeddings.append(per_image.track(extractor.embed(image.src)))
                        targets.append(index)
                xs = scope.track(tf.stack(embeddings))
                del embeddings

            ys = scope.track(tf.one_hot(targets, depth=len(labels)))

            # ── 2. Build + fit ──────────────────────────────────────────
            head = ClassifierHead.build(extractor.embedding_shape, len(labels), config)
            history = head.fit(xs, ys, on_epoch=on_epoch)

            # ── 3. Score the training images ────────────────────────────
            scores = head.predict_scores(xs)
            prediction = to_prediction(dataset, scores)
        except Exception:
            # The traceback keeps this frame alive; drop its tensors first.
            embeddings = xs = ys = None
            if head is not None:
                head.release()
            raise

    last = history[-1]
    logger.info(
        "Training project %s complete: %d epochs, loss=%.4f, accuracy=%.4f",
        dataset.project_id, len(history), last.loss, last.accuracy,
    )
    return TrainingResult(head=head, history=history, prediction=prediction)
