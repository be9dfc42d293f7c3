"""Explicit success/failure values returned by every store command.

Commands never raise for network or server failures. They return
``Ok(value)`` or ``Err(reason)`` so callers can branch without
``try``/``except`` and without re-reading store state.
"""

from __future__ import annotations

import dataclasses
from typing import Generic, NoReturn, TypeVar

from pymoose.exceptions import MooseError

T = TypeVar("T")


@dataclasses.dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Successful command outcome carrying the server-confirmed value."""

    value: T

    @property
    def ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


@dataclasses.dataclass(frozen=True, slots=True)
class Err:
    """Failed command outcome.

    Parameters
    ----------
    reason : str
        Human-readable message (the server message for API rejections).
    error : MooseError | None
        The underlying exception, when there was one.
    """

    reason: str
    error: MooseError | None = None

    @property
    def ok(self) -> bool:
        return False

    def unwrap(self) -> NoReturn:
        if self.error is not None:
            raise self.error
        raise MooseError(self.reason)


Result = Ok[T] | Err
"""``Ok[T] | Err``; narrow with ``isinstance`` or the ``ok`` property."""
