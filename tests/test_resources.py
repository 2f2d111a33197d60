import tensorflow as tf

from training.resources import TensorScope, live_allocations


def test_tensors_dropped_with_the_scope_are_not_counted():
    baseline = live_allocations()
    with TensorScope("test") as scope:
        scope.track(tf.ones((4, 4)))
        scope.track_all([tf.zeros((2,)), tf.zeros((3,))])
        assert len(scope) == 3
        assert live_allocations() == baseline + 3

    assert len(scope) == 0
    assert live_allocations() == baseline


def test_tensor_kept_past_its_scope_is_still_counted():
    baseline = live_allocations()
    with TensorScope("test") as scope:
        kept = scope.track(tf.ones((8,)))

    assert live_allocations() == baseline + 1

    del kept
    assert live_allocations() == baseline


def test_scope_releases_on_error():
    baseline = live_allocations()
    try:
        with TensorScope("test") as scope:
            scope.track(tf.ones((8,)))
            raise ValueError("boom")
    except ValueError:
        pass

    assert live_allocations() == baseline
