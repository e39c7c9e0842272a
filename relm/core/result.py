"""Result type for explicit error handling.

Release steps shell out to package managers and talk to registries; both fail
in ordinary ways. Instead of raising, helpers return either ``Ok(value)`` or
``Err(error)`` and the caller decides what is fatal.

Usage:
    def read_version(path: Path) -> Result[str, ReleaseError]:
        if not path.exists():
            return Err(ReleaseError(kind="manifest_error", message="no package.json"))
        return Ok(json.loads(path.read_text())["version"])

    match read_version(path):
        case Ok(version):
            print(version)
        case Err(error):
            print(error.message)
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeGuard, TypeVar

T = TypeVar("T")
U = TypeVar("U")
E = TypeVar("E")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Successful result holding ``value``."""

    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value

    def map(self, f: Callable[[T], U]) -> Ok[U]:
        """Transform the contained value."""
        return Ok(f(self.value))

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Failed result holding ``error``."""

    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> None:
        """Raise ValueError carrying the error.

        Raises:
            ValueError: Always.
        """
        raise ValueError(f"called unwrap on Err: {self.error}")

    def unwrap_or(self, default: T) -> T:
        return default

    def map(self, f: Callable[[T], U]) -> Err[E]:
        """Return self unchanged."""
        return self

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


Result = Ok[T] | Err[E]


def is_ok(result: Result[T, E]) -> TypeGuard[Ok[T]]:
    """Narrow a Result to Ok for static type checkers."""
    return isinstance(result, Ok)


def is_err(result: Result[T, E]) -> TypeGuard[Err[E]]:
    """Narrow a Result to Err for static type checkers."""
    return isinstance(result, Err)
