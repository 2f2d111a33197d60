"""
Interfaces of the external dataset and model-metadata stores.

The engine only reads datasets and writes one ``ModelInfo`` per project.
``projects.stores`` implements both on the Django ORM; the in-memory
versions below serve scripts and tests.
"""

from __future__ import annotations

import copy
import threading
from typing import Dict, Optional, Protocol

from .exceptions import NotFoundError
from .types import Dataset, ModelInfo


class DatasetStore(Protocol):
    def find_dataset(self, project_id: int) -> Dataset:
        """Return the dataset of a project; raise ``NotFoundError`` if absent."""
        ...


class ModelStore(Protocol):
    def find_model(self, project_id: int) -> ModelInfo:
        """Return the stored metadata of a project; raise ``NotFoundError`` if absent."""
        ...

    def put_model(self, model_info: ModelInfo) -> None:
        """Create or replace the metadata of ``model_info.project_id``."""
        ...


class InMemoryDatasetStore:
    def __init__(self, datasets: Optional[Dict[int, Dataset]] = None):
        self._datasets: Dict[int, Dataset] = dict(datasets or {})

    def add(self, dataset: Dataset) -> None:
        self._datasets[dataset.project_id] = dataset

    def find_dataset(self, project_id: int) -> Dataset:
        try:
            return copy.deepcopy(self._datasets[project_id])
        except KeyError:
            raise NotFoundError(f"Project {project_id} not found.") from None


class InMemoryModelStore:
    def __init__(self):
        self._models: Dict[int, ModelInfo] = {}
        self._lock = threading.Lock()

    def find_model(self, project_id: int) -> ModelInfo:
        with self._lock:
            try:
                return self._models[project_id]
            except KeyError:
                raise NotFoundError(f"No model stored for project {project_id}.") from None

    def put_model(self, model_info: ModelInfo) -> None:
        with self._lock:
            self._models[model_info.project_id] = model_info

    def __contains__(self, project_id: int) -> bool:
        return project_id in self._models
