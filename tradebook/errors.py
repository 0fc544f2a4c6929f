"""Domain errors raised by validation, the relationship manager and crud."""

from typing import Iterable


class TradebookError(Exception):
    """Base class for every rule violation surfaced to callers."""


class InvalidRange(TradebookError):
    """start_date is not strictly before end_date."""


class InvalidValue(TradebookError):
    """Monetary value is not a positive amount that fits the money column."""


class NotFound(TradebookError):
    def __init__(self, entity: str, ids: Iterable[int]):
        self.entity = entity
        self.ids = list(ids)
        joined = ", ".join(str(i) for i in self.ids)
        super().__init__(f"{entity} not found: {joined}")


class Conflict(TradebookError):
    def __init__(self, message: str, ids: Iterable[int] = ()):
        self.ids = list(ids)
        super().__init__(message)
