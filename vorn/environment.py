from typing import Dict, Optional, Tuple

from vorn.types import Value


class Environment:
    """Represents a scope environment mapping identifiers to values."""
    def __init__(self, outer: Optional['Environment'] = None):
        self.outer = outer
        self.store: Dict[str, Value] = {}

    def enclosed(self) -> 'Environment':
        return Environment(outer=self)

    def get(self, name: str) -> Tuple[Optional[Value], Optional['Environment']]:
        # Returns the value together with the environment that defines it
        env: Optional[Environment] = self
        while env is not None:
            if name in env.store:
                return env.store[name], env
            env = env.outer
        return None, None

    def get_from_current(self, name: str) -> Optional[Value]:
        return self.store.get(name)

    def set(self, name: str, value: Value) -> Value:
        self.store[name] = value
        return value

    def __contains__(self, name: str) -> bool:
        return name in self.store
