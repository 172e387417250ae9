"""
Vaccination data models.
Profile is the questionnaire input, VaccineRecommendation one output entry.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]

    @property
    def label(self) -> str:
        return self.value.capitalize()


_PRIORITY_RANK = {Priority.HIGH: 0, Priority.MEDIUM: 1, Priority.LOW: 2}


def parse_age(value: Union[str, int, float, None]) -> Optional[int]:
    """Read an integer age the way a browser parseInt does.

    Leading whitespace is skipped and trailing garbage ignored, so "30 years"
    is 30 and "4.7" is 4. Returns None when no leading integer exists.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            return None
        return int(value)
    match = _LEADING_INT.match(str(value))
    if not match:
        return None
    return int(match.group(1))


@dataclass(frozen=True)
class Profile:
    age: Union[str, int, None] = ""
    known_history: bool = False
    completed_vaccines: Tuple[str, ...] = field(default_factory=tuple)
    risk_factors: Tuple[str, ...] = field(default_factory=tuple)
    occupation: Optional[str] = None

    def __post_init__(self):
        # stored as tuples; lists passed in are copied
        object.__setattr__(self, "completed_vaccines", tuple(self.completed_vaccines or ()))
        object.__setattr__(self, "risk_factors", tuple(self.risk_factors or ()))

    @property
    def age_years(self) -> Optional[int]:
        return parse_age(self.age)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "age": self.age,
            "known_history": self.known_history,
            "completed_vaccines": list(self.completed_vaccines),
            "risk_factors": list(self.risk_factors),
            "occupation": self.occupation,
        }


@dataclass(frozen=True)
class VaccineRecommendation:
    vaccine: str
    priority: Priority
    reason: str
    age_range: Optional[str] = None
    notes: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "vaccine": self.vaccine,
            "priority": self.priority.value,
            "reason": self.reason,
            "age_range": self.age_range,
            "notes": self.notes,
        }
