"""
Single-image scoring with the shared backbone and a trained head.
"""

from __future__ import annotations

import logging

import tensorflow as tf

from .features import FeatureExtractor, ImageSource
from .head import ClassifierHead
from .resources import TensorScope
from .types import ImagePrediction

logger = logging.getLogger(__name__)


def predict(
    image: ImageSource,
    extractor: FeatureExtractor,
    head: ClassifierHead,
) -> ImagePrediction:
    """Score one image against every class of ``head``.

    Only the per-call embedding and batch are released here; the extractor
    and the head are shared and stay untouched.

    Returns:
        ``ImagePrediction`` whose scores follow the head's label order.
    """
    with TensorScope("predict") as scope:
        embedding = scope.track(extractor.embed(image))
        batch = scope.track(tf.expand_dims(embedding, 0))
        scores = head.predict_scores(batch)[0]

    return ImagePrediction(scores=[float(s) for s in scores])
