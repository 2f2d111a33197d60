"""
Engine configuration and paths.

All tuneable settings live here so they are easy to find, review,
and override without touching training logic.

Directory conventions
---------------------
::

    maltiese/
    ├── models/
    │   ├── mobilenet_2_5_224_tf_no_top.h5  ← Optional local backbone weights
    │   ├── models-1.keras            ← Trained head of project 1
    │   └── models-2.keras            ← Trained head of project 2
    │
    ├── media/                        ← Uploaded project images
    │
    └── training/                     ← This package
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path

from django.conf import settings

# ── Paths ───────────────────────────────────────────────────────────────────

BASE_DIR: Path = Path(settings.BASE_DIR)
MODELS_ROOT: Path = Path(getattr(settings, "MODELS_ROOT", BASE_DIR / "models"))

# MobileNet ImageNet weights, used instead of the Keras download when present
BACKBONE_WEIGHTS_PATH: Path = Path(
    getattr(settings, "BACKBONE_WEIGHTS_PATH", MODELS_ROOT / "mobilenet_2_5_224_tf_no_top.h5")
)


@dataclass
class TrainingConfig:
    """All hyperparameters and settings used by the engine.

    The backbone is MobileNet v1 (width multiplier ``backbone_alpha``)
    truncated at ``cutoff_layer``; its output is the embedding fed to a
    small head: Flatten → Dense(``hidden_units``, relu) → Dense(N, softmax).

    Attributes
    ----------
    epochs : int
        Fixed epoch budget per training run (default 50).
    batch_size : int
        Mini-batch size (default 32).
    learning_rate : float
        Adam learning rate for the head (default 1e-3).
    hidden_units : int
        Width of the hidden dense layer (default 20).
    validation_split : float
        Fraction withheld each run for monitoring only (default 0.2).
    image_size : tuple
        Spatial input size of the backbone (default 224×224).
    min_labels : int
        Minimum number of trainable labels (default 2).
    min_images_per_label : int
        Minimum number of images per trainable label (default 5).
    max_workers : int
        Worker threads for asynchronous engine operations (default 4).
    """

    # ── Hyperparameters ─────────────────────────────────────────────────
    epochs: int = 50
    batch_size: int = 32
    learning_rate: float = 1e-3
    hidden_units: int = 20
    validation_split: float = 0.2
    shuffle: bool = True

    # ── Backbone ────────────────────────────────────────────────────────
    image_size: tuple = (224, 224)
    num_channels: int = 3
    backbone_alpha: float = 0.25
    cutoff_layer: str = "conv_pw_13_relu"

    # ── Trainability rule ───────────────────────────────────────────────
    min_labels: int = 2
    min_images_per_label: int = 5

    # ── Execution ───────────────────────────────────────────────────────
    max_workers: int = 4

    # ── Helpers ──────────────────────────────────────────────────────────

    @classmethod
    def from_settings(cls) -> "TrainingConfig":
        """Build a config, applying ``settings.MALTIESE_TRAINING`` overrides.

        Raises
        ------
        TypeError
            If an override names an unknown setting.
        """
        overrides = dict(getattr(settings, "MALTIESE_TRAINING", {}) or {})
        if "image_size" in overrides:
            overrides["image_size"] = tuple(overrides["image_size"])
        return cls(**overrides)

    @property
    def input_shape(self) -> tuple:
        h, w = self.image_size
        return (h, w, self.num_channels)

    def to_dict(self) -> dict:
        """Serialise to a JSON-safe dict (for logs and the status API)."""
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["image_size"] = list(self.image_size)
        return data
