from typing import List

from vorn.types import Error


class VornError(Exception):
    """Exception type used to surface a Vorn runtime error to the host."""
    def __init__(self, err: Error):
        super().__init__(err.message)
        self.err = err


class ParseError(Exception):
    """Raised when a program has syntax errors and cannot be evaluated."""
    def __init__(self, errors: List[str]):
        super().__init__('\n'.join(errors))
        self.errors = errors
