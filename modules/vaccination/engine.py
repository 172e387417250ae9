"""
Vaccination recommendation engine.
Implements get_inputs() and run_inference(user_data) per the module contract;
recommend(profile) is the pure core both of them wrap.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Optional, Sequence

from modules.vaccination.catalog import COMMON_VACCINES, OCCUPATIONS, RISK_FACTORS
from modules.vaccination.models import Priority, Profile, VaccineRecommendation
from modules.vaccination.rules import RULES, RuleContext, VaccineRule

logger = logging.getLogger(__name__)


class ProfileValidationError(ValueError):
    """Raised when form input cannot be submitted to the engine."""


def get_inputs() -> List[Dict]:
    return [
        {
            "type": "text",
            "name": "age",
            "label": "Age",
            "unit": "years",
            "help": "Please provide your age to determine age-appropriate recommendations.",
            "placeholder": "e.g. 34",
        },
        {
            "type": "toggle",
            "name": "known_history",
            "label": "I know my vaccination history",
            "help": "If yes, select all vaccines you have received.",
            "children": [
                {
                    "type": "checklist",
                    "name": "completed_vaccines",
                    "label": "Select vaccines you have completed",
                    "help": "",
                    "options": list(COMMON_VACCINES),
                },
            ],
        },
        {
            "type": "checklist",
            "name": "risk_factors",
            "label": "Risk factors",
            "help": "Select any conditions or circumstances that may require additional vaccinations.",
            "options": list(RISK_FACTORS),
        },
        {
            "type": "selectbox",
            "name": "occupation",
            "label": "Occupation (optional)",
            "help": "Select your occupation.",
            "options": [""] + list(OCCUPATIONS),
            "labels": {"": "Select your occupation", **OCCUPATIONS},
        },
    ]


def _as_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"yes", "y", "true", "1"}
    return bool(value)


def validate_form_inputs(user_data: Mapping) -> None:
    age = user_data.get("age")
    if age is None or not str(age).strip():
        raise ProfileValidationError("Age is required before recommendations can be generated.")


def build_profile(user_data: Mapping) -> Profile:
    known_history = _as_bool(user_data.get("known_history", False))
    completed = list(user_data.get("completed_vaccines") or [])
    # unchecking "known history" clears the checklist
    if not known_history:
        completed = []
    occupation = user_data.get("occupation") or None
    return Profile(
        age=user_data.get("age", ""),
        known_history=known_history,
        completed_vaccines=tuple(completed),
        risk_factors=tuple(user_data.get("risk_factors") or []),
        occupation=occupation,
    )


def _fire(profile: Profile, rules: Sequence[VaccineRule]):
    ctx = RuleContext.from_profile(profile)
    for rule in rules:
        rec = rule.evaluate(ctx)
        logger.debug("rule %s fired=%s", rule.rule_id, rec is not None)
        yield rule, rec


def recommend(profile: Profile, rules: Optional[Sequence[VaccineRule]] = None) -> List[VaccineRecommendation]:
    """Derive the ordered recommendation list for one profile.

    Never raises for a Profile. Output is stably sorted by priority rank, so
    rules of equal priority keep table order. Duplicate vaccines are kept.
    """
    fired = [rec for _, rec in _fire(profile, RULES if rules is None else rules) if rec is not None]
    return sorted(fired, key=lambda rec: rec.priority.rank)


def evaluate_rules(profile: Profile, rules: Optional[Sequence[VaccineRule]] = None) -> List[Dict]:
    return [
        {
            "rule": rule.description,
            "vaccine": rule.recommendation.vaccine,
            "priority": rule.recommendation.priority.value,
            "fired": rec is not None,
        }
        for rule, rec in _fire(profile, RULES if rules is None else rules)
    ]


def _count_by_priority(recommendations: Sequence[VaccineRecommendation]) -> Dict[str, int]:
    counts = {priority.value: 0 for priority in Priority}
    for rec in recommendations:
        counts[rec.priority.value] += 1
    return counts


def run_inference(user_data: Mapping) -> Dict:
    profile = build_profile(user_data)
    recommendations = recommend(profile)
    counts = _count_by_priority(recommendations)
    age_years = profile.age_years

    if age_years is None:
        age_text = "an unrecognised age"
    else:
        age_text = f"age {age_years}"
    history_text = "known" if profile.known_history else "unknown"
    reasoning = (
        f"Evaluated {len(RULES)} rules for {age_text} with {history_text} vaccination history, "
        f"{len(profile.completed_vaccines)} completed vaccine(s) and {len(profile.risk_factors)} risk factor(s)."
    )

    if recommendations:
        plain_summary = (
            f"Found {len(recommendations)} vaccination recommendation(s): "
            f"{counts['high']} high priority, {counts['medium']} to consider."
        )
    else:
        plain_summary = "You appear to be up to date with recommended vaccines."

    logger.info(
        "recommendations derived: total=%d high=%d medium=%d low=%d",
        len(recommendations),
        counts["high"],
        counts["medium"],
        counts["low"],
    )

    return {
        "profile": profile.to_dict(),
        "recommendations": [rec.to_dict() for rec in recommendations],
        "counts": counts,
        "total": len(recommendations),
        "all_set": not recommendations,
        "reasoning": reasoning,
        "plain_summary": plain_summary,
        "rule_trace": evaluate_rules(profile),
    }
