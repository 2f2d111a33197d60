"""
Frozen MobileNet feature extractor.

Loads a MobileNet v1 (alpha 0.25, 224×224 RGB) pretrained on ImageNet and
truncates it at ``conv_pw_13_relu``.  The activation of that layer is the
embedding every classifier head is trained on; it is the same for every
project, so the backbone is loaded once per process and shared.

Architecture : MobileNet v1 0.25  (input 224×224 RGB, scaled to [-1, 1])
Embedding    : conv_pw_13_relu activation, shape (7, 7, 256)
"""

from __future__ import annotations

import base64
import io
import logging
import threading
from pathlib import Path
from typing import Optional, Tuple, Union

import numpy as np
import tensorflow as tf
from PIL import Image as PILImage
from tensorflow.keras.applications import MobileNet
from tensorflow.keras.applications.mobilenet import preprocess_input

from .config import BACKBONE_WEIGHTS_PATH, TrainingConfig
from .exceptions import LoadError
from .resources import TensorScope

logger = logging.getLogger(__name__)

ImageSource = Union[str, bytes, Path]


# ── Preprocessing ───────────────────────────────────────────────────────────

def load_pixels(src: ImageSource, image_size: Tuple[int, int]) -> np.ndarray:
    """Decode an image into a (h, w, 3) float32 array of raw pixel values.

    Args:
        src:        File path, ``data:`` URL, or the encoded image bytes.
        image_size: Target ``(height, width)``.

    Raises:
        LoadError: If the source cannot be read or decoded.
    """
    h, w = image_size
    try:
        if isinstance(src, bytes):
            stream = io.BytesIO(src)
        elif isinstance(src, str) and src.startswith("data:"):
            _, _, payload = src.partition(",")
            stream = io.BytesIO(base64.b64decode(payload))
        else:
            stream = str(src)

        with PILImage.open(stream) as img:
            rgb = img.convert("RGB").resize((w, h))
            return np.array(rgb, dtype=np.float32)
    except (OSError, ValueError) as exc:
        shown = src if isinstance(src, (str, Path)) else f"<{len(src)} bytes>"
        raise LoadError(f"Could not decode image {str(shown)[:80]}") from exc


# ── Backbone loading ────────────────────────────────────────────────────────

def _load_mobilenet(config: TrainingConfig) -> tf.keras.Model:
    """Build MobileNet with ImageNet weights, local file first."""
    if BACKBONE_WEIGHTS_PATH.exists():
        mobilenet = MobileNet(
            input_shape=config.input_shape,
            alpha=config.backbone_alpha,
            include_top=False,
            weights=None,
        )
        mobilenet.load_weights(str(BACKBONE_WEIGHTS_PATH))
        logger.info("Loaded MobileNet weights from %s", BACKBONE_WEIGHTS_PATH)
    else:
        mobilenet = MobileNet(
            input_shape=config.input_shape,
            alpha=config.backbone_alpha,
            include_top=False,
            weights="imagenet",
        )
        logger.info("Using Keras-downloaded MobileNet ImageNet weights")
    return mobilenet


class FeatureExtractor:
    """Turns images into fixed-shape embeddings with a frozen backbone."""

    def __init__(self, backbone: tf.keras.Model, config: Optional[TrainingConfig] = None):
        self.config = config or TrainingConfig()
        backbone.trainable = False
        self.backbone = backbone

    @classmethod
    def load(cls, config: Optional[TrainingConfig] = None) -> "FeatureExtractor":
        """Load MobileNet and truncate it at ``config.cutoff_layer``.

        Raises:
            LoadError: On any download, file or format failure.
        """
        config = config or TrainingConfig()
        try:
            mobilenet = _load_mobilenet(config)
            cutoff = mobilenet.get_layer(config.cutoff_layer)
            truncated = tf.keras.Model(
                inputs=mobilenet.inputs,
                outputs=cutoff.output,
                name="truncated_mobilenet",
            )
        except Exception as exc:
            # Keras reports fetch failures as a bare Exception.
            logger.exception("Failed to load the MobileNet backbone")
            raise LoadError("Could not load the pretrained backbone.") from exc

        extractor = cls(truncated, config)
        logger.info(
            "Backbone truncated at '%s', embedding shape %s",
            config.cutoff_layer, extractor.embedding_shape,
        )
        return extractor

    @property
    def embedding_shape(self) -> Tuple[int, ...]:
        return tuple(int(d) for d in self.backbone.outputs[0].shape[1:])

    def embed(self, src: ImageSource) -> tf.Tensor:
        """Return the embedding of one image, shape ``embedding_shape``.

        The caller owns the returned tensor.
        """
        pixels = load_pixels(src, self.config.image_size)
        with TensorScope("embed") as scope:
            batch = scope.track(tf.convert_to_tensor(preprocess_input(pixels[np.newaxis, ...])))
            activation = scope.track(self.backbone(batch, training=False))
            embedding = activation[0]
        return embedding


# ── Process-wide instance ───────────────────────────────────────────────────

_shared: Optional[FeatureExtractor] = None
_shared_lock = threading.Lock()


def shared_feature_extractor(config: Optional[TrainingConfig] = None) -> FeatureExtractor:
    """Return the process-wide extractor, loading the backbone on first use.

    A failed load leaves nothing cached, so the next call retries.
    """
    global _shared
    with _shared_lock:
        if _shared is None:
            _shared = FeatureExtractor.load(config)
        return _shared
