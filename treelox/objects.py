"""Runtime value model for Lox.

Every runtime value is a :class:`LoxObject`: a tagged cell holding one of a
closed set of variants. Cells are shared by reference between environment
slots and argument lists, and each one guards its contents with its own
lock. Cells are write-once: assignment rebinds a slot to another cell and
never changes a cell in place, so the lock only ever guards reads. ``nil``, ``true`` and ``false`` are process-wide singletons, so
``a is b`` is the identity test for them; numbers and strings always get a
fresh cell.
"""

from __future__ import annotations

import math
import threading
from decimal import Decimal
from enum import Enum, auto
from typing import TYPE_CHECKING, Any, Callable, List, Tuple

from .ast import Function
from .builtin_function import BuiltinFunction, LoxFunction
from .environment import Environment

if TYPE_CHECKING:
    from .interpreter import Interpreter


class ObjectKind(Enum):
    NIL = auto()
    BOOL = auto()
    NUMBER = auto()
    STRING = auto()
    BUILTIN_FUNCTION = auto()
    FUNCTION = auto()


CALLABLE_KINDS = (ObjectKind.BUILTIN_FUNCTION, ObjectKind.FUNCTION)


def format_number(value: float) -> str:
    """Render a number the way `print` shows it.

    Integral values drop the fractional part, nothing is ever shown in
    exponent form, and the special values print as `NaN`, `inf` and `-inf`.
    """
    if math.isnan(value):
        return 'NaN'
    if math.isinf(value):
        return 'inf' if value > 0 else '-inf'
    if value == 0:
        return '-0' if math.copysign(1.0, value) < 0 else '0'
    if value.is_integer():
        return str(int(value))
    return format(Decimal(repr(value)), 'f')


class LoxObject:
    """A shared, lock-guarded runtime value cell."""

    __slots__ = ('_kind', '_value', '_lock')

    def __init__(self, kind: ObjectKind, value: Any):
        self._kind = kind
        self._value = value
        self._lock = threading.RLock()

    # Factories

    @classmethod
    def nil(cls) -> 'LoxObject':
        return NIL

    @classmethod
    def new_bool(cls, value: bool) -> 'LoxObject':
        return TRUE if value else FALSE

    @classmethod
    def new_number(cls, value: float) -> 'LoxObject':
        return cls(ObjectKind.NUMBER, float(value))

    @classmethod
    def new_string(cls, value: str) -> 'LoxObject':
        return cls(ObjectKind.STRING, value)

    @classmethod
    def new_builtin_function(cls, arity: int, fn: Callable[[List['LoxObject']], 'LoxObject'],
                             name: str = 'native') -> 'LoxObject':
        return cls(ObjectKind.BUILTIN_FUNCTION, BuiltinFunction(name, arity, fn))

    @classmethod
    def new_function(cls, declaration: Function) -> 'LoxObject':
        return cls(ObjectKind.FUNCTION, LoxFunction(declaration))

    # Guarded access

    def snapshot(self) -> Tuple[ObjectKind, Any]:
        with self._lock:
            return self._kind, self._value

    @property
    def kind(self) -> ObjectKind:
        with self._lock:
            return self._kind

    # Classification

    def is_nil(self) -> bool:
        return self.kind == ObjectKind.NIL

    def is_string(self) -> bool:
        return self.kind == ObjectKind.STRING

    def is_number(self) -> bool:
        return self.kind == ObjectKind.NUMBER

    def is_bool(self) -> bool:
        return self.kind == ObjectKind.BOOL

    def is_callable(self) -> bool:
        return self.kind in CALLABLE_KINDS

    # Coercions

    def as_bool(self) -> bool:
        kind, value = self.snapshot()
        if kind == ObjectKind.BOOL:
            return value
        if kind == ObjectKind.NIL:
            return False
        return True

    def as_number(self) -> float:
        kind, value = self.snapshot()
        if kind == ObjectKind.NUMBER:
            return value
        if kind == ObjectKind.BOOL:
            return 1.0 if value else 0.0
        if kind == ObjectKind.NIL:
            return 0.0
        if kind == ObjectKind.STRING:
            # the length of the text in bytes, not a parsed value
            return float(len(value.encode('utf-8', errors='surrogateescape')))
        raise TypeError(f"{kind.name} has no numeric value")

    def as_string(self) -> str:
        kind, value = self.snapshot()
        if kind == ObjectKind.STRING:
            return value
        if kind == ObjectKind.NIL:
            return 'nil'
        if kind == ObjectKind.BOOL:
            return 'true' if value else 'false'
        if kind == ObjectKind.NUMBER:
            return format_number(value)
        if kind == ObjectKind.BUILTIN_FUNCTION:
            return '<native fn>'
        return f"<fn {value.name}>"

    def __str__(self) -> str:
        return self.as_string()

    def __repr__(self) -> str:
        return f"LoxObject({self.kind.name}, {self.as_string()!r})"

    # Equality

    def equals(self, other: 'LoxObject') -> bool:
        kind, value = self.snapshot()
        other_kind, other_value = other.snapshot()
        if kind == ObjectKind.NIL or other_kind == ObjectKind.NIL:
            return kind == other_kind
        if kind != other_kind or kind in CALLABLE_KINDS:
            return False
        return value == other_value

    # Call protocol

    def arity(self) -> int:
        kind, value = self.snapshot()
        if kind not in CALLABLE_KINDS:
            raise TypeError(f"{kind.name} is not callable")
        return value.arity

    def call(self, interpreter: 'Interpreter', arguments: List['LoxObject']) -> 'LoxObject':
        """Invoke this value; callability and arity are checked by the caller."""
        kind, value = self.snapshot()
        if kind == ObjectKind.BUILTIN_FUNCTION:
            return value.fn(arguments)
        if kind == ObjectKind.FUNCTION:
            declaration = value.declaration
            environment = Environment.new_enclosed(interpreter.globals)
            for i, param in enumerate(declaration.params):
                environment.define(param.text, arguments[i])
            interpreter.execute_block(declaration.body, environment)
            return NIL
        raise TypeError(f"{kind.name} is not callable")


NIL = LoxObject(ObjectKind.NIL, None)
TRUE = LoxObject(ObjectKind.BOOL, True)
FALSE = LoxObject(ObjectKind.BOOL, False)
