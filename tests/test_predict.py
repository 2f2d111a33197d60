import pytest

from training.head import ClassifierHead
from training.predict import predict
from training.resources import live_allocations

from .conftest import COLOURS, write_image


@pytest.fixture
def head(extractor, config):
    head = ClassifierHead.build(extractor.embedding_shape, 3, config)
    yield head
    head.release()


def test_predict_returns_one_score_per_class(tmp_path, extractor, head):
    path = write_image(tmp_path / "x.png", COLOURS[0])

    result = predict(path, extractor, head)

    assert len(result.scores) == 3
    assert sum(result.scores) == pytest.approx(1.0, abs=1e-5)
    assert all(0.0 <= s <= 1.0 for s in result.scores)


def test_predict_accepts_raw_bytes(tmp_path, extractor, head):
    path = write_image(tmp_path / "x.png", COLOURS[1])
    with open(path, "rb") as fh:
        raw = fh.read()

    assert predict(raw, extractor, head).scores == pytest.approx(predict(path, extractor, head).scores)


def test_repeated_predictions_do_not_leak(tmp_path, extractor, head):
    path = write_image(tmp_path / "x.png", COLOURS[2])
    predict(path, extractor, head)
    baseline = live_allocations()

    for _ in range(10):
        predict(path, extractor, head)

    assert live_allocations() == baseline
    assert not head.released


def test_retained_embeddings_are_reported(tmp_path, extractor, head, monkeypatch):
    path = write_image(tmp_path / "x.png", COLOURS[3])
    retained = []
    embed = extractor.embed

    def retaining_embed(src):
        embedding = embed(src)
        retained.append(embedding)
        return embedding

    monkeypatch.setattr(extractor, "embed", retaining_embed)
    baseline = live_allocations()

    for _ in range(5):
        predict(path, extractor, head)

    assert live_allocations() == baseline + 5
    retained.clear()
    assert live_allocations() == baseline
