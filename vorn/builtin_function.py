from dataclasses import dataclass
from typing import Any, Optional

from vorn.types import Value, BUILTIN_OBJ


@dataclass(eq=False)
class BuiltinFunction(Value):
    name: str = ''
    # Accepted argument count, None for variadic builtins
    arity: Optional[int] = None
    fn: Any = None

    def type(self) -> str:
        return BUILTIN_OBJ

    def inspect(self) -> str:
        return 'builtin function'

    def __repr__(self) -> str:
        return f"<builtin {self.name}>"
