"""
Shared pytest fixtures for the vaccination recommender test suite.

Provides profile factories for the scenarios the rule table is checked
against, plus a fresh dict standing in for Streamlit's session state.
"""

from __future__ import annotations

from typing import Dict

import pytest

from modules.vaccination.catalog import COMMON_VACCINES
from modules.vaccination.models import Profile


@pytest.fixture
def make_profile():
    """Factory building a ``Profile`` with empty defaults."""

    def _make(age="30", known_history=False, completed=(), risks=(), occupation=None) -> Profile:
        return Profile(
            age=age,
            known_history=known_history,
            completed_vaccines=tuple(completed),
            risk_factors=tuple(risks),
            occupation=occupation,
        )

    return _make


@pytest.fixture
def healthcare_worker_profile(make_profile) -> Profile:
    return make_profile(
        age="30",
        known_history=False,
        risks=["Healthcare worker"],
        occupation="healthcare",
    )


@pytest.fixture
def fully_vaccinated_senior(make_profile) -> Profile:
    return make_profile(
        age="70",
        known_history=True,
        completed=[
            "Pneumococcal",
            "Shingles (Zoster)",
            "Tdap",
            "MMR",
            "Hepatitis B",
            "Influenza (Annual)",
            "COVID-19",
        ],
    )


@pytest.fixture
def all_vaccines() -> list:
    return list(COMMON_VACCINES)


@pytest.fixture
def session_state() -> Dict:
    return {}
