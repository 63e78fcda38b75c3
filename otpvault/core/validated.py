"""
validated.py — error-accumulating result type.

A ``Validated`` is either valid (holds one value) or invalid (holds a
non-empty list of errors).

- ``flat_map`` chains dependent steps: the first failure wins.
- ``zip`` combines independent steps: every failing side contributes its
  errors to the result.

>>> zip(Validated.valid(1), Validated.valid("a")).value
(1, 'a')
>>> len(zip(Validated.invalid(ValueError()), Validated.invalid(KeyError())).errors)
2
"""

from typing import Any, Callable, Generic, List, Optional, Sequence, TypeVar

A = TypeVar("A")
B = TypeVar("B")

_MISSING = object()


class Validated(Generic[A]):
    __slots__ = ("_value", "_errors")

    def __init__(self, value: Any = _MISSING, errors: Optional[Sequence[Exception]] = None) -> None:
        if value is _MISSING:
            if not errors:
                raise ValueError("an invalid result needs at least one error")
            self._errors: Optional[List[Exception]] = list(errors)
        else:
            self._errors = None
        self._value = value

    # --- Constructors ----------------------------------------------------------
    @classmethod
    def valid(cls, value: A) -> "Validated[A]":
        return cls(value=value)

    @classmethod
    def invalid(cls, *errors: Exception) -> "Validated[Any]":
        return cls(errors=errors)

    @classmethod
    def of_errors(cls, errors: Sequence[Exception]) -> "Validated[Any]":
        return cls(errors=errors)

    # --- Accessors -------------------------------------------------------------
    @property
    def is_valid(self) -> bool:
        return self._errors is None

    @property
    def value(self) -> Optional[A]:
        """The success value, or None when invalid."""
        return None if self._errors is not None else self._value

    @property
    def errors(self) -> Optional[List[Exception]]:
        """A copy of the accumulated errors, or None when valid."""
        return None if self._errors is None else list(self._errors)

    # --- Combinators -----------------------------------------------------------
    def map(self, f: Callable[[A], B]) -> "Validated[B]":
        if self._errors is not None:
            return Validated.of_errors(self._errors)
        return Validated.valid(f(self._value))

    def flat_map(self, f: Callable[[A], "Validated[B]"]) -> "Validated[B]":
        if self._errors is not None:
            return Validated.of_errors(self._errors)
        return f(self._value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Validated):
            return NotImplemented
        if self.is_valid != other.is_valid:
            return False
        if self.is_valid:
            return self._value == other._value
        return [(type(e), str(e)) for e in self._errors] == [(type(e), str(e)) for e in other._errors]

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        if self.is_valid:
            return f"Validated.valid({self._value!r})"
        return f"Validated.invalid({', '.join(repr(e) for e in self._errors)})"


def zip(*validations: Validated) -> Validated[tuple]:  # noqa: A001
    """Pair up independent results; errors from every invalid input are kept in order."""
    errors: List[Exception] = []
    values = []
    for v in validations:
        if v.is_valid:
            values.append(v.value)
        else:
            errors.extend(v.errors)
    if errors:
        return Validated.of_errors(errors)
    return Validated.valid(tuple(values))


def zip_with(f: Callable[..., B], *validations: Validated) -> Validated[B]:
    return zip(*validations).map(lambda values: f(*values))
