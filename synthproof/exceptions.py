"""
Error Taxonomy

Every error raised by the pipeline carries the stage it came from and the
identifiers involved, so a failed run can be traced back to the step that
broke it.
"""

from typing import Any, Dict, List, Optional


class SynthProofError(Exception):
    """Base class for all pipeline errors."""

    def __init__(self, message: str, stage: Optional[str] = None, **context: Any):
        super().__init__(message)
        self.message = message
        self.stage = stage
        self.context: Dict[str, Any] = context

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": type(self).__name__,
            "message": self.message,
            "stage": self.stage,
            "context": self.context,
        }

    def __str__(self) -> str:
        parts = [self.message]
        if self.stage:
            parts.append(f"stage={self.stage}")
        for key, value in self.context.items():
            parts.append(f"{key}={value}")
        return " | ".join(parts)


class ValidationError(SynthProofError):
    """Raised when a request is malformed. Nothing has been written yet."""

    def __init__(self, message: str, errors: Optional[List[str]] = None,
                 stage: Optional[str] = None, **context: Any):
        super().__init__(message, stage=stage, **context)
        self.errors = errors or [message]


class EmptySchemaError(ValidationError):
    """Raised when there are no headers to classify."""


class NotFoundError(SynthProofError):
    """Raised when a referenced dataset, generation or proof does not exist."""


class StorageError(SynthProofError):
    """Raised when the content store fails to write or read a record."""


class ConfigurationError(SynthProofError):
    """Raised when configuration is invalid."""
