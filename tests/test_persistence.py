import numpy as np
import pytest
import tensorflow as tf

from training.exceptions import LoadError, NotFoundError
from training.head import ClassifierHead
from training.persistence import storage_key

EMBEDDING_SHAPE = (7, 7, 4)


def test_storage_key_is_derived_from_project_id():
    assert storage_key(12) == "models-12"
    assert storage_key(12) == storage_key(12)


def test_save_then_load_scores_identically(repository, config):
    head = ClassifierHead.build(EMBEDDING_SHAPE, 3, config)
    batch = tf.random.stateless_uniform((5,) + EMBEDDING_SHAPE, seed=(1, 2))

    key = repository.save(3, head)
    restored = repository.load(3)

    assert key == "models-3"
    assert repository.path_for(3).name == "models-3.keras"
    assert restored.num_classes == 3
    np.testing.assert_allclose(
        restored.predict_scores(batch), head.predict_scores(batch), atol=1e-6,
    )


def test_save_replaces_previous_entry(repository, config):
    first = ClassifierHead.build(EMBEDDING_SHAPE, 2, config)
    second = ClassifierHead.build(EMBEDDING_SHAPE, 4, config)

    repository.save(5, first)
    repository.save(5, second)

    assert repository.load(5).num_classes == 4


def test_load_of_unknown_project_raises_not_found(repository):
    with pytest.raises(NotFoundError):
        repository.load(404)


def test_load_of_corrupt_file_raises_load_error(repository):
    repository.root.mkdir(parents=True, exist_ok=True)
    repository.path_for(8).write_bytes(b"this is not a keras archive")

    with pytest.raises(LoadError):
        repository.load(8)


def test_delete_removes_saved_head(repository, config):
    repository.save(6, ClassifierHead.build(EMBEDDING_SHAPE, 2, config))

    assert repository.exists(6)
    assert repository.delete(6) is True
    assert not repository.exists(6)
    assert repository.delete(6) is False


def test_staged_head_goes_live_only_on_commit(repository, config):
    live = ClassifierHead.build(EMBEDDING_SHAPE, 2, config)
    repository.save(7, live)

    staged = repository.stage(7, ClassifierHead.build(EMBEDDING_SHAPE, 3, config))
    assert repository.load(7).num_classes == 2

    assert repository.commit(7, staged) == "models-7"
    assert repository.load(7).num_classes == 3
    assert not staged.exists()


def test_discarded_stage_leaves_nothing_behind(repository, config):
    repository.save(9, ClassifierHead.build(EMBEDDING_SHAPE, 2, config))
    first = repository.stage(9, ClassifierHead.build(EMBEDDING_SHAPE, 2, config))
    second = repository.stage(9, ClassifierHead.build(EMBEDDING_SHAPE, 2, config))

    assert first != second
    repository.discard(first)
    repository.discard(second)

    assert sorted(p.name for p in repository.root.iterdir()) == ["models-9.keras"]
