"""Error taxonomy shared by the gateway, the cache store and the engine."""

from __future__ import annotations

from typing import Optional


class FridgelistError(Exception):
    """Base class for every failure surfaced by fridgelist components."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ConfigurationError(FridgelistError):
    """The remote API URL or key is missing."""


class TransportError(FridgelistError):
    """Network failure, timeout or malformed response from the remote API."""

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(f"{operation}: {message}")
        self.operation = operation


class RemoteRejection(FridgelistError):
    """The remote API answered with a non-2xx status."""

    def __init__(self, operation: str, status_code: int, detail: Optional[str] = None) -> None:
        message = f"{operation}: server responded with HTTP {status_code}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
        self.operation = operation
        self.status_code = status_code


class CacheError(FridgelistError):
    """A local cache operation failed."""

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(f"cache {operation} failed: {message}")
        self.operation = operation


class PolicyError(FridgelistError):
    """The engine refused an intent (nothing to sync, unknown item, ...)."""


__all__ = [
    "FridgelistError",
    "ConfigurationError",
    "TransportError",
    "RemoteRejection",
    "CacheError",
    "PolicyError",
]
