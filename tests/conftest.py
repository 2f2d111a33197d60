import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor

os.environ.setdefault("TF_CPP_MIN_LOG_LEVEL", "2")

import pytest
import tensorflow as tf
from PIL import Image as PILImage

from training.config import TrainingConfig
from training.features import FeatureExtractor
from training.orchestrator import TrainingOrchestrator
from training.persistence import HeadRepository
from training.stores import InMemoryDatasetStore, InMemoryModelStore
from training.types import Dataset, Image, Label

# Distinct base colours so labels are easy to tell apart.
COLOURS = [
    (220, 40, 40),
    (40, 40, 220),
    (40, 200, 60),
    (230, 210, 40),
]


def make_backbone(config: TrainingConfig) -> tf.keras.Model:
    """Tiny stand-in for MobileNet: 224×224×3 → 7×7×4, fixed weights."""
    inputs = tf.keras.Input(shape=config.input_shape)
    x = tf.keras.layers.AveragePooling2D(pool_size=32)(inputs)
    x = tf.keras.layers.Conv2D(
        4, 1,
        kernel_initializer=tf.keras.initializers.GlorotUniform(seed=7),
    )(x)
    return tf.keras.Model(inputs, x, name="tiny_backbone")


def write_image(path, colour, shade: int = 0) -> str:
    r, g, b = colour
    rgb = tuple(max(0, min(255, c + shade)) for c in (r, g, b))
    PILImage.new("RGB", (32, 32), rgb).save(path)
    return str(path)


def make_dataset(root, counts, project_id: int = 1) -> Dataset:
    """Build a dataset of solid-colour PNGs: ``counts`` maps label → image count."""
    labels = []
    for index, (name, count) in enumerate(counts.items()):
        folder = root / f"p{project_id}" / name
        folder.mkdir(parents=True, exist_ok=True)
        colour = COLOURS[index % len(COLOURS)]
        images = [
            Image(src=write_image(folder / f"{i}.png", colour, shade=i * 5), created_at=float(i))
            for i in range(count)
        ]
        labels.append(Label(name=name, images=images))
    return Dataset(project_id=project_id, labels=labels)


class GatedDatasetStore(InMemoryDatasetStore):
    """In-memory store whose lookups can be held back to keep a run in flight."""

    def __init__(self):
        super().__init__()
        self.entered = threading.Event()
        self._gate = threading.Event()
        self._gate.set()

    def pause(self):
        self.entered.clear()
        self._gate.clear()

    def resume(self):
        self._gate.set()

    def find_dataset(self, project_id):
        self.entered.set()
        if not self._gate.wait(timeout=60):
            raise TimeoutError("dataset lookup was never resumed")
        return super().find_dataset(project_id)


def wait_until_settled(orchestrator, timeout: float = 120.0) -> None:
    deadline = time.monotonic() + timeout
    while orchestrator.status == "loading":
        if time.monotonic() > deadline:
            raise AssertionError("orchestrator did not settle in time")
        time.sleep(0.05)


@pytest.fixture(scope="session")
def config():
    return TrainingConfig()


@pytest.fixture(scope="session")
def extractor(config):
    return FeatureExtractor(make_backbone(config), config)


@pytest.fixture
def two_label_dataset(tmp_path):
    return make_dataset(tmp_path, {"A": 5, "B": 5})


@pytest.fixture
def repository(tmp_path, config):
    return HeadRepository(tmp_path / "models", config)


@pytest.fixture
def executor():
    pool = ThreadPoolExecutor(max_workers=2, thread_name_prefix="test-engine")
    yield pool
    pool.shutdown(wait=True)


@pytest.fixture
def dataset_store():
    store = GatedDatasetStore()
    yield store
    store.resume()


@pytest.fixture
def model_store():
    return InMemoryModelStore()


@pytest.fixture
def extractor_calls():
    return []


@pytest.fixture
def orchestrator(dataset_store, model_store, repository, config, extractor, executor, extractor_calls):
    def loader():
        extractor_calls.append(1)
        return extractor

    engine = TrainingOrchestrator(
        dataset_store=dataset_store,
        model_store=model_store,
        repository=repository,
        config=config,
        extractor_loader=loader,
        executor=executor,
    )
    yield engine
    engine.close()
