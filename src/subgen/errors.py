from __future__ import annotations

from typing import Optional


class GenerationError(Exception):
    """
    Base error of a generation run.

    `stage` is one of "config", "features", "labels", "output";
    `field` is the column or parameter that failed.
    """

    def __init__(self, message: str, stage: Optional[str] = None, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.stage = stage
        self.field = field

    def __str__(self) -> str:
        where = "/".join(x for x in (self.stage, self.field) if x)
        return f"[{where}] {self.message}" if where else self.message


class InvalidParameter(GenerationError, ValueError):
    pass


class SamplingError(GenerationError, ArithmeticError):
    pass


class MissingColumn(GenerationError, KeyError):
    pass
