"""
Dataset trainability checks.

A dataset is trainable when it has at least two trainable labels (every
label but ``Unlabeled``) and each of them holds at least five images.
"""

from __future__ import annotations

from typing import Optional

from .exceptions import ValidationError
from .types import Dataset, filter_labels

MIN_LABELS = 2
MIN_IMAGES_PER_LABEL = 5


def _violation(
    dataset: Dataset,
    min_labels: int,
    min_images: int,
) -> Optional[str]:
    labels = filter_labels(dataset.labels)
    if len(labels) < min_labels:
        return (
            f"Dataset needs at least {min_labels} labels besides 'Unlabeled', "
            f"found {len(labels)}."
        )
    for label in labels:
        if len(label.images) < min_images:
            return (
                f"Label '{label.name}' needs at least {min_images} images, "
                f"found {len(label.images)}."
            )
    return None


def is_trainable(
    dataset: Dataset,
    min_labels: int = MIN_LABELS,
    min_images: int = MIN_IMAGES_PER_LABEL,
) -> bool:
    """Return True if the dataset is trainable."""
    return _violation(dataset, min_labels, min_images) is None


def check_trainable(
    dataset: Dataset,
    min_labels: int = MIN_LABELS,
    min_images: int = MIN_IMAGES_PER_LABEL,
) -> None:
    """Raise ``ValidationError`` naming the first broken rule, if any."""
    reason = _violation(dataset, min_labels, min_images)
    if reason is not None:
        raise ValidationError(
            f"Dataset of project {dataset.project_id} is not trainable. {reason}"
        )
