from typing import TYPE_CHECKING, Dict, Optional

from treelox.errors import UndefinedVariableError
from treelox.scanner import Token

if TYPE_CHECKING:
    from treelox.objects import LoxObject


class Environment:
    """A scope mapping names to values, chained to its enclosing scope."""
    def __init__(self, enclosing: Optional['Environment'] = None):
        self.enclosing = enclosing
        self.values: Dict[str, 'LoxObject'] = {}

    @classmethod
    def new_enclosed(cls, parent: 'Environment') -> 'Environment':
        return cls(enclosing=parent)

    def define(self, name: str, value: 'LoxObject') -> None:
        # redeclaring in the same scope simply replaces the binding
        self.values[name] = value

    def get(self, name: Token) -> 'LoxObject':
        env: Optional[Environment] = self
        key = name.text
        while env is not None:
            if key in env.values:
                return env.values[key]
            env = env.enclosing
        raise UndefinedVariableError(name, f"Undefined variable '{key}'.")

    def assign(self, name: Token, value: 'LoxObject') -> None:
        env: Optional[Environment] = self
        key = name.text
        while env is not None:
            if key in env.values:
                env.values[key] = value
                return
            env = env.enclosing
        raise UndefinedVariableError(name, f"Undefined variable '{key}'.")

    def snapshot(self) -> Dict[str, 'LoxObject']:
        """Copy this scope's bindings so a failed unit can be rolled back."""
        return dict(self.values)

    def restore(self, snapshot: Dict[str, 'LoxObject']) -> None:
        self.values = dict(snapshot)
