"""Structured-concurrency combinators."""

from .join import join, join_dict
from .race import RaceResult, race

__all__ = [
    "RaceResult",
    "join",
    "join_dict",
    "race",
]
