"""Domain models for nutrition advisories."""

from dataclasses import dataclass
from enum import StrEnum


class AdvisoryKind(StrEnum):
    """Severity of an advisory."""

    INFO = "info"
    WARNING = "warning"


@dataclass(frozen=True)
class Advisory:
    """Suggestion generated from a daily summary."""

    kind: AdvisoryKind
    title: str
    message: str


@dataclass(frozen=True)
class LimitStatus:
    """Consumption of a nutrient with a fixed daily limit."""

    consumed: float
    limit: float
    exceeded: bool
