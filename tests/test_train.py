import numpy as np
import pytest

from training.exceptions import LoadError, TrainingError
from training.head import ClassifierHead
from training.resources import live_allocations
from training.train import to_prediction, train_on_dataset
from training.types import UNLABELED, Dataset, Image, Label

from .conftest import make_dataset


def test_two_labels_of_five_images(two_label_dataset, extractor, config):
    epochs = []
    result = train_on_dataset(two_label_dataset, extractor, config, on_epoch=epochs.append)

    assert len(result.history) == 50
    assert [log.epoch for log in result.history] == list(range(50))
    assert len(epochs) == 50

    prediction = result.prediction
    assert prediction.project_id == 1
    assert [entry.label for entry in prediction.labels] == ["A", "B"]
    image_predictions = [p for entry in prediction.labels for p in entry.images]
    assert len(image_predictions) == 10
    for p in image_predictions:
        assert len(p.scores) == 2
        assert sum(p.scores) == pytest.approx(1.0, abs=1e-5)

    assert result.head.num_classes == 2


def test_unlabeled_is_skipped_and_label_order_kept(tmp_path, extractor, config):
    dataset = make_dataset(tmp_path, {"Zebra": 5, UNLABELED: 3, "Apple": 6, "Mango": 5}, project_id=4)

    result = train_on_dataset(dataset, extractor, config)

    assert [entry.label for entry in result.prediction.labels] == ["Zebra", "Apple", "Mango"]
    assert [len(entry.images) for entry in result.prediction.labels] == [5, 6, 5]
    assert result.head.num_classes == 3


def test_training_releases_transient_tensors(two_label_dataset, extractor, config):
    baseline = live_allocations()
    train_on_dataset(two_label_dataset, extractor, config)
    assert live_allocations() == baseline


def test_failed_extraction_returns_nothing_and_releases(tmp_path, extractor, config):
    dataset = make_dataset(tmp_path, {"A": 5, "B": 5})
    dataset.labels[1].images[2] = Image(src=str(tmp_path / "missing.png"))
    baseline = live_allocations()

    with pytest.raises(LoadError) as excinfo:
        train_on_dataset(dataset, extractor, config)

    # The kept traceback must not pin the embeddings extracted before the failure.
    assert excinfo.value.__traceback__ is not None
    assert live_allocations() == baseline


def test_failed_fit_releases_the_new_head(two_label_dataset, extractor, config, monkeypatch):
    built = []
    original_build = ClassifierHead.build.__func__

    def tracking_build(cls, *args, **kwargs):
        head = original_build(cls, *args, **kwargs)
        built.append(head)
        return head

    def diverging_fit(self, embeddings, targets, on_epoch=None):
        raise TrainingError("Training diverged: loss became NaN.")

    monkeypatch.setattr(ClassifierHead, "build", classmethod(tracking_build))
    monkeypatch.setattr(ClassifierHead, "fit", diverging_fit)
    baseline = live_allocations()

    with pytest.raises(TrainingError):
        train_on_dataset(two_label_dataset, extractor, config)

    assert len(built) == 1
    assert built[0].released
    assert live_allocations() == baseline


def test_to_prediction_follows_embedding_order():
    dataset = Dataset(project_id=9, labels=[
        Label("A", [Image("a0"), Image("a1")]),
        Label(UNLABELED, [Image("u0")]),
        Label("B", [Image("b0")]),
    ])
    scores = np.array([[0.9, 0.1], [0.8, 0.2], [0.3, 0.7]], dtype=np.float32)

    prediction = to_prediction(dataset, scores)

    assert prediction.project_id == 9
    assert [entry.label for entry in prediction.labels] == ["A", "B"]
    assert prediction.labels[0].images[1].scores == pytest.approx([0.8, 0.2])
    assert prediction.labels[1].images[0].scores == pytest.approx([0.3, 0.7])


def test_to_prediction_rejects_row_count_mismatch():
    dataset = Dataset(project_id=1, labels=[Label("A", [Image("a0")]), Label("B", [Image("b0")])])
    with pytest.raises(ValueError):
        to_prediction(dataset, np.zeros((3, 2), dtype=np.float32))
