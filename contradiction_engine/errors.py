"""
Shared engine error types.

Kept in a separate module so the pipeline, the CLI and the API (and tests)
import the same exception classes.
"""

from typing import Optional


class ContradictionEngineError(Exception):
    """Base class for all engine errors."""


class InputError(ContradictionEngineError):
    """Raised when the caller supplies empty, oversized or unreadable text."""


class ConfigError(ContradictionEngineError):
    """Raised when analysis options are unknown or out of range."""


class StageFailure(ContradictionEngineError):
    """
    A single detector category or verification strategy could not complete.

    Never raised to the caller: the pipeline records it, degrades the audit
    entry of the stage and carries on.
    """

    def __init__(
        self,
        stage: str,
        message: str,
        category: Optional[str] = None,
        strategy: Optional[str] = None,
        subject: Optional[str] = None,
    ):
        super().__init__(message)
        self.stage = stage
        self.message = message
        self.category = category
        self.strategy = strategy
        self.subject = subject

    def to_dict(self) -> dict:
        return {
            "stage": self.stage,
            "category": self.category,
            "strategy": self.strategy,
            "subject": self.subject,
            "message": self.message,
        }
