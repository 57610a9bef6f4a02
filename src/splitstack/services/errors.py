from __future__ import annotations

from typing import Iterable


class SplitStackError(Exception):
    pass


class ValidationError(SplitStackError):
    def __init__(self, missing: Iterable[str], message: str | None = None) -> None:
        self.missing = tuple(missing)
        super().__init__(message or f"Please fill in all required fields: {', '.join(self.missing)}.")


class InvariantViolation(SplitStackError):
    pass


class NothingToShareError(ValidationError):
    def __init__(self) -> None:
        super().__init__(("completed receipt",), "Complete at least one receipt before sharing this stack.")
