import pytest

from training.evaluate import summarize_prediction
from training.types import ImagePrediction, LabelPrediction, Prediction


def _prediction(rows):
    return Prediction(project_id=1, labels=[
        LabelPrediction(label=name, images=[ImagePrediction(scores=s) for s in scores])
        for name, scores in rows
    ])


def test_summary_of_a_perfect_fit():
    summary = summarize_prediction(_prediction([
        ("cat", [[0.9, 0.1], [0.7, 0.3]]),
        ("dog", [[0.2, 0.8]]),
    ]))

    assert summary["accuracy"] == 1.0
    assert summary["confusion_matrix"] == [[2, 0], [0, 1]]
    assert summary["mislabeled"] == []
    assert [row["label"] for row in summary["per_label"]] == ["cat", "dog"]
    assert summary["per_label"][0]["support"] == 2


def test_summary_lists_images_scored_under_another_label():
    summary = summarize_prediction(_prediction([
        ("cat", [[0.9, 0.1], [0.35, 0.65]]),
        ("dog", [[0.2, 0.8], [0.4, 0.6]]),
    ]))

    assert summary["accuracy"] == pytest.approx(0.75)
    assert summary["confusion_matrix"] == [[1, 1], [0, 2]]
    assert summary["mislabeled"] == [
        {"label": "cat", "index": 1, "predicted": "dog", "confidence": 0.65},
    ]
    cat = summary["per_label"][0]
    assert cat["precision"] == 1.0
    assert cat["recall"] == 0.5


def test_summary_of_an_empty_prediction():
    summary = summarize_prediction(_prediction([("cat", []), ("dog", [])]))

    assert summary["accuracy"] is None
    assert summary["per_label"] == []
    assert summary["confusion_matrix"] == []
