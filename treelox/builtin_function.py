from dataclasses import dataclass
from typing import Any, Callable, List

from treelox import ast


@dataclass(frozen=True)
class BuiltinFunction:
    """Payload of a host-provided function value.

    `fn` receives the already arity-checked argument list and returns a
    LoxObject.
    """
    name: str
    arity: int
    fn: Callable[[List[Any]], Any]

    def __repr__(self) -> str:
        return f"<builtin {self.name}>"


@dataclass(frozen=True)
class LoxFunction:
    """Payload of a user-declared function value."""
    declaration: ast.Function

    @property
    def name(self) -> str:
        return self.declaration.name.text

    @property
    def arity(self) -> int:
        return len(self.declaration.params)

    def __repr__(self) -> str:
        return f"<function {self.name}>"
