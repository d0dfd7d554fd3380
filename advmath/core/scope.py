"""Variable bindings consulted during evaluation."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable

from advmath.errors import ConfigurationError, UnboundVariableError

if TYPE_CHECKING:
    from advmath.core.nodes import Variable

VARIABLE_NAME_RE = re.compile(r"^[A-Za-z](_\d+)?$")


def _key(variable: Variable | str) -> str:
    name = variable if isinstance(variable, str) else variable.name
    if not VARIABLE_NAME_RE.match(name):
        raise ConfigurationError(f"Invalid variable name: {name!r}", name)
    return name


@dataclass
class Scope:
    """A name -> value map.

    ``collapse_constants`` makes evaluation replace named constants such as
    ``pi`` with their numeric value instead of keeping them symbolic.
    """

    values: dict[str, float] = field(default_factory=dict)
    collapse_constants: bool = False

    def __post_init__(self) -> None:
        self.values = {_key(name): float(value) for name, value in self.values.items()}

    @classmethod
    def from_assignments(cls, assignments: Iterable[str], collapse_constants: bool = False) -> Scope:
        """Build a scope from ``name=value`` strings."""
        scope = cls(collapse_constants=collapse_constants)
        for assignment in assignments:
            name, sep, value = assignment.partition("=")
            if not sep:
                raise ConfigurationError(f"Expected name=value, got {assignment!r}", assignment)
            try:
                scope.set(name.strip(), float(value))
            except ValueError as e:
                if isinstance(e, ConfigurationError):
                    raise
                raise ConfigurationError(f"Invalid value in {assignment!r}", assignment) from e
        return scope

    def set(self, variable: Variable | str, value: float) -> None:
        self.values[_key(variable)] = float(value)

    def get(self, variable: Variable | str) -> float | None:
        return self.values.get(_key(variable))

    def remove(self, variable: Variable | str) -> bool:
        return self.values.pop(_key(variable), None) is not None

    def __contains__(self, variable: object) -> bool:
        if not isinstance(variable, str) and not hasattr(variable, "name"):
            return False
        return _key(variable) in self.values  # type: ignore[arg-type]

    def __getitem__(self, variable: Variable | str) -> float:
        name = _key(variable)
        if name not in self.values:
            raise UnboundVariableError(f"Variable {name} is not bound", name)
        return self.values[name]

    def __len__(self) -> int:
        return len(self.values)
