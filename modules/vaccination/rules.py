"""
Vaccination rule table.

Each rule is a predicate over an evaluation context plus the recommendation it
emits. Rules are evaluated in table order and independently, so several may
target the same vaccine.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, FrozenSet, Iterable, List, Optional, Tuple

from modules.vaccination.catalog import (
    COLLEGE_STUDENT,
    HEALTHCARE_WORKER,
    HIGH_RISK_CONDITIONS,
    INTERNATIONAL_TRAVEL,
)
from modules.vaccination.models import Priority, Profile, VaccineRecommendation


def is_completed(completed_vaccines: Iterable[str], keyword: str) -> bool:
    """True if any completed entry contains ``keyword``, ignoring case."""
    needle = keyword.lower()
    return any(needle in entry.lower() for entry in completed_vaccines)


@dataclass(frozen=True)
class RuleContext:
    age: Optional[int]
    known_history: bool
    completed_vaccines: Tuple[str, ...]
    risk_factors: FrozenSet[str]

    @classmethod
    def from_profile(cls, profile: Profile) -> "RuleContext":
        return cls(
            age=profile.age_years,
            known_history=bool(profile.known_history),
            completed_vaccines=tuple(profile.completed_vaccines),
            risk_factors=frozenset(profile.risk_factors),
        )

    def done(self, keyword: str) -> bool:
        return is_completed(self.completed_vaccines, keyword)

    # An unparseable age fails every comparison.
    def age_at_least(self, years: int) -> bool:
        return self.age is not None and self.age >= years

    def age_at_most(self, years: int) -> bool:
        return self.age is not None and self.age <= years

    def age_under(self, years: int) -> bool:
        return self.age is not None and self.age < years

    def has_risk(self, factor: str) -> bool:
        return factor in self.risk_factors


@dataclass(frozen=True)
class VaccineRule:
    rule_id: str
    description: str
    applies: Callable[[RuleContext], bool]
    recommendation: VaccineRecommendation

    def evaluate(self, ctx: RuleContext) -> Optional[VaccineRecommendation]:
        return self.recommendation if self.applies(ctx) else None


def _rec(vaccine, priority, reason, notes, age_range=None):
    return VaccineRecommendation(
        vaccine=vaccine,
        priority=priority,
        reason=reason,
        age_range=age_range,
        notes=notes,
    )


RULES: List[VaccineRule] = [
    VaccineRule(
        "pneumococcal_65_plus",
        "IF age >= 65 AND pneumococcal not completed THEN Pneumococcal (high)",
        lambda c: c.age_at_least(65) and not c.done("pneumococcal"),
        _rec(
            "Pneumococcal (PPSV23 and PCV13)",
            Priority.HIGH,
            "Recommended for all adults 65 and older",
            "Protects against pneumonia and other serious infections",
            age_range="65+",
        ),
    ),
    # Gate is 65 while the text says 60; both kept as published.
    VaccineRule(
        "shingles_65_plus",
        "IF age >= 65 AND shingles not completed THEN Shingles (high)",
        lambda c: c.age_at_least(65) and not c.done("shingles"),
        _rec(
            "Shingles (Zoster)",
            Priority.HIGH,
            "Recommended for all adults 60 and older",
            "Two doses, 2-6 months apart",
            age_range="60+",
        ),
    ),
    VaccineRule(
        "tdap",
        "IF neither DTaP nor Tdap completed THEN Tdap (high)",
        lambda c: not c.done("dtap") and not c.done("tdap"),
        _rec(
            "Tdap (Tetanus, Diphtheria, Pertussis)",
            Priority.HIGH,
            "Required every 10 years for all adults",
            "Protects against tetanus, diphtheria, and whooping cough",
        ),
    ),
    VaccineRule(
        "hpv_26_and_under",
        "IF age <= 26 AND HPV not completed THEN HPV (high)",
        lambda c: c.age_at_most(26) and not c.done("hpv"),
        _rec(
            "HPV (Human Papillomavirus)",
            Priority.HIGH,
            "Recommended for adults up to age 26",
            "Protects against cancer-causing HPV",
            age_range="9-26",
        ),
    ),
    VaccineRule(
        "mmr",
        "IF MMR not completed AND (age < 65 OR history unknown) THEN MMR (medium)",
        lambda c: not c.done("mmr") and (c.age_under(65) or not c.known_history),
        _rec(
            "MMR (Measles, Mumps, Rubella)",
            Priority.MEDIUM,
            "Recommended for adults without evidence of immunity",
            "Especially important for international travel",
        ),
    ),
    VaccineRule(
        "hepatitis_b",
        "IF hepatitis B not completed THEN Hepatitis B (medium)",
        lambda c: not c.done("hepatitis b"),
        _rec(
            "Hepatitis B",
            Priority.MEDIUM,
            "Recommended for all unvaccinated adults",
            "Three-dose series",
        ),
    ),
    VaccineRule(
        "influenza",
        "IF influenza not completed THEN Influenza (high)",
        lambda c: not c.done("influenza"),
        _rec(
            "Influenza (Flu)",
            Priority.HIGH,
            "Recommended annually for all adults",
            "Get updated vaccine each year",
        ),
    ),
    VaccineRule(
        "covid_19",
        "IF COVID-19 not completed THEN COVID-19 (high)",
        lambda c: not c.done("covid-19"),
        _rec(
            "COVID-19",
            Priority.HIGH,
            "Stay up to date with COVID-19 vaccination",
            "Follow current CDC recommendations for boosters",
        ),
    ),
    VaccineRule(
        "pneumococcal_high_risk",
        "IF high-risk condition AND pneumococcal not completed AND age < 65 THEN Pneumococcal (high)",
        lambda c: bool(c.risk_factors & HIGH_RISK_CONDITIONS)
        and not c.done("pneumococcal")
        and c.age_under(65),
        _rec(
            "Pneumococcal",
            Priority.HIGH,
            "Recommended due to high-risk medical conditions",
            "Important protection against serious bacterial infections",
        ),
    ),
    VaccineRule(
        "healthcare_hepatitis_b",
        "IF healthcare worker AND hepatitis B not completed THEN Hepatitis B (high)",
        lambda c: c.has_risk(HEALTHCARE_WORKER) and not c.done("hepatitis b"),
        _rec(
            "Hepatitis B",
            Priority.HIGH,
            "Required for healthcare workers",
            "Occupational exposure protection",
        ),
    ),
    VaccineRule(
        "healthcare_varicella",
        "IF healthcare worker AND varicella not completed THEN Varicella (high)",
        lambda c: c.has_risk(HEALTHCARE_WORKER) and not c.done("varicella"),
        _rec(
            "Varicella (Chickenpox)",
            Priority.HIGH,
            "Required for healthcare workers without immunity",
            "Two doses if no history of chickenpox",
        ),
    ),
    VaccineRule(
        "travel_hepatitis_a",
        "IF international travel AND hepatitis A not completed THEN Hepatitis A (medium)",
        lambda c: c.has_risk(INTERNATIONAL_TRAVEL) and not c.done("hepatitis a"),
        _rec(
            "Hepatitis A",
            Priority.MEDIUM,
            "Recommended for international travelers",
            "Two doses, 6-12 months apart",
        ),
    ),
    VaccineRule(
        "college_meningococcal",
        "IF college student AND meningococcal not completed THEN Meningococcal (high)",
        lambda c: c.has_risk(COLLEGE_STUDENT) and not c.done("meningococcal"),
        _rec(
            "Meningococcal",
            Priority.HIGH,
            "Recommended for college students",
            "Protects against meningitis",
            age_range="16-23",
        ),
    ),
]
