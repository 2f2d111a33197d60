"""
Summary of a training-set prediction.

Produces, from the scores a training run reports for its own images:
- Training accuracy.
- Per-label precision / recall / F1 (``sklearn.metrics.classification_report``).
- Confusion matrix.
- The training images whose best-scoring label is not their own, i.e. the
  candidates a user may want to relabel.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

import numpy as np
from sklearn.metrics import classification_report, confusion_matrix

from .types import Prediction

logger = logging.getLogger(__name__)


def summarize_prediction(prediction: Prediction) -> Dict[str, Any]:
    """Summarise how well a head fits its own training images.

    Parameters
    ----------
    prediction : Prediction
        Training-time scores; label ``i`` of ``prediction.labels`` is class ``i``.

    Returns
    -------
    dict
        Keys: accuracy, per_label (list), confusion_matrix (nested list),
        mislabeled (list of ``{label, index, predicted, confidence}``).
    """
    class_names = [entry.label for entry in prediction.labels]
    all_labels = list(range(len(class_names)))

    y_true: List[int] = []
    y_pred: List[int] = []
    mislabeled: List[Dict[str, Any]] = []

    for true_index, entry in enumerate(prediction.labels):
        for image_index, image in enumerate(entry.images):
            scores = np.asarray(image.scores, dtype=np.float32)
            predicted = int(np.argmax(scores))
            y_true.append(true_index)
            y_pred.append(predicted)
            if predicted != true_index:
                mislabeled.append({
                    "label": entry.label,
                    "index": image_index,
                    "predicted": class_names[predicted],
                    "confidence": round(float(scores[predicted]), 4),
                })

    if not y_true:
        return {
            "accuracy": None,
            "per_label": [],
            "confusion_matrix": [],
            "mislabeled": [],
        }

    cm = confusion_matrix(y_true, y_pred, labels=all_labels)
    report = classification_report(
        y_true, y_pred,
        target_names=class_names,
        labels=all_labels,
        output_dict=True,
        zero_division=0,
    )

    per_label = []
    for name in class_names:
        stats = report.get(name, {})
        per_label.append({
            "label": name,
            "precision": round(stats.get("precision", 0), 4),
            "recall": round(stats.get("recall", 0), 4),
            "f1": round(stats.get("f1-score", 0), 4),
            "support": int(stats.get("support", 0)),
        })

    accuracy = float(np.mean(np.asarray(y_true) == np.asarray(y_pred)))
    logger.debug(
        "Project %s: training accuracy %.4f, %d image(s) scored under another label",
        prediction.project_id, accuracy, len(mislabeled),
    )

    return {
        "accuracy": round(accuracy, 4),
        "per_label": per_label,
        "confusion_matrix": cm.tolist(),
        "mislabeled": mislabeled,
    }
