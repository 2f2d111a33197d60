"""
Data model shared by the engine and the stores.

The engine only reads ``Dataset`` and its children; ``ModelInfo`` is the
metadata record written next to every persisted classifier head.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

# Reserved sentinel label: may exist in storage, never a class.
UNLABELED = "Unlabeled"


@dataclass
class Image:
    """A single image; ``src`` is a file path or a ``data:`` URL."""

    src: str
    created_at: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {"src": self.src, "created_at": self.created_at}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Image":
        return cls(src=data["src"], created_at=data.get("created_at", 0.0))


@dataclass
class Label:
    name: str
    images: List[Image] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "images": [img.to_dict() for img in self.images]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Label":
        return cls(
            name=data["name"],
            images=[Image.from_dict(img) for img in data.get("images", [])],
        )


@dataclass
class Dataset:
    project_id: int
    labels: List[Label] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "project_id": self.project_id,
            "labels": [label.to_dict() for label in self.labels],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Dataset":
        return cls(
            project_id=data["project_id"],
            labels=[Label.from_dict(label) for label in data.get("labels", [])],
        )


def filter_labels(labels: List[Label]) -> List[Label]:
    """Return the trainable label set: every label but ``Unlabeled``, in order.

    The position of a label in this list is its class index, both for
    one-hot targets and for reading prediction score vectors.
    """
    return [label for label in labels if label.name != UNLABELED]


@dataclass
class TrainingLog:
    """Training loss / accuracy of one completed epoch."""

    epoch: int
    loss: float
    accuracy: float

    def to_dict(self) -> Dict[str, Any]:
        return {"epoch": self.epoch, "loss": self.loss, "accuracy": self.accuracy}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TrainingLog":
        return cls(
            epoch=int(data["epoch"]),
            loss=float(data["loss"]),
            accuracy=float(data["accuracy"]),
        )


@dataclass
class ImagePrediction:
    scores: List[float]

    def to_dict(self) -> Dict[str, Any]:
        return {"scores": list(self.scores)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ImagePrediction":
        return cls(scores=[float(s) for s in data["scores"]])


@dataclass
class LabelPrediction:
    label: str
    images: List[ImagePrediction] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"label": self.label, "images": [p.to_dict() for p in self.images]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LabelPrediction":
        return cls(
            label=data["label"],
            images=[ImagePrediction.from_dict(p) for p in data.get("images", [])],
        )


@dataclass
class Prediction:
    """Scores for every training image, grouped by trainable label."""

    project_id: int
    labels: List[LabelPrediction] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "project_id": self.project_id,
            "labels": [label.to_dict() for label in self.labels],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Prediction":
        return cls(
            project_id=data["project_id"],
            labels=[LabelPrediction.from_dict(label) for label in data.get("labels", [])],
        )


@dataclass
class ModelInfo:
    """Metadata of a trained model, stored next to the persisted head.

    Attributes
    ----------
    project_id : int
        Owning project.
    label_names : list[str]
        Trainable label order at training time; ``label_names[i]`` is the
        label scored at index ``i`` of every score vector.
    history : list[TrainingLog]
        One entry per training epoch, in epoch order.
    storage_key : str
        Key under which the head topology and weights were saved.
    prediction : Prediction
        Training-time scores for every training image.
    """

    project_id: int
    label_names: List[str]
    history: List[TrainingLog]
    storage_key: str
    prediction: Prediction

    def to_dict(self) -> Dict[str, Any]:
        return {
            "project_id": self.project_id,
            "label_names": list(self.label_names),
            "history": [log.to_dict() for log in self.history],
            "storage_key": self.storage_key,
            "prediction": self.prediction.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ModelInfo":
        return cls(
            project_id=data["project_id"],
            label_names=list(data["label_names"]),
            history=[TrainingLog.from_dict(log) for log in data.get("history", [])],
            storage_key=data["storage_key"],
            prediction=Prediction.from_dict(data["prediction"]),
        )
