"""Error types shared by the WebForge core."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class WebForgeError(Exception):
    """Base class for every error raised by the core package."""


class RemoteFetchError(WebForgeError):
    """Loading project metadata or files from the remote store failed."""


class RemotePersistError(WebForgeError):
    """Writing to the remote store failed."""


class AuthError(WebForgeError):
    """An identity provider operation failed."""


class ValidationError(WebForgeError):
    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field
        self.message = message


@dataclass
class Result(Generic[T]):
    """Uniform ``{data, error}`` outcome returned across call sites."""

    data: Optional[T] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None
