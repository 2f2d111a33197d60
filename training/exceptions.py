"""
Engine error taxonomy.

Every failure aborts the enclosing operation; nothing partial is returned.
"""

from __future__ import annotations

from typing import Optional


class EngineError(Exception):
    """Base class for errors raised by the training engine."""

    def __init__(self, message: str, log_message: Optional[str] = None):
        super().__init__(message)
        self.log_message = log_message


class ValidationError(EngineError):
    """Raised when a dataset does not satisfy the trainability rule."""

    pass


class LoadError(EngineError):
    """Raised when the backbone, a persisted head or an image cannot be loaded."""

    pass


class NotFoundError(EngineError):
    """Raised when a project, dataset or persisted model does not exist."""

    pass


class NotReadyError(EngineError):
    """Raised when prediction is requested before a model is trained or loaded."""

    pass


class TrainingError(EngineError):
    """Raised when fitting the classifier head fails (NaN loss, TF runtime error)."""

    pass
