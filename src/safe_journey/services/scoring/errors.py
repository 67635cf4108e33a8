"""Exceptions raised by the AI scoring path."""

from __future__ import annotations


class SafetyScoringError(Exception):
    """Base class for failures the coordinator may recover from."""


class ClientNotInitialized(SafetyScoringError):
    def __init__(self, message: str = "AI model client is not configured.") -> None:
        super().__init__(message)


class ModelCallFailed(SafetyScoringError):
    def __init__(self, detail: str) -> None:
        super().__init__(f"Model call failed: {detail}")
        self.detail = detail
