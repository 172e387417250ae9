"""Fixed checklists offered by the questionnaire form."""

from __future__ import annotations

from typing import Dict, List

COMMON_VACCINES: List[str] = [
    "MMR (Measles, Mumps, Rubella)",
    "DTaP/Tdap (Diphtheria, Tetanus, Pertussis)",
    "Polio (IPV)",
    "Hepatitis A",
    "Hepatitis B",
    "Varicella (Chickenpox)",
    "HPV (Human Papillomavirus)",
    "Meningococcal",
    "Pneumococcal",
    "Influenza (Annual)",
    "COVID-19",
    "Shingles (Zoster)",
]

RISK_FACTORS: List[str] = [
    "Immunocompromised",
    "Chronic heart disease",
    "Chronic lung disease",
    "Diabetes",
    "Chronic kidney disease",
    "Chronic liver disease",
    "Cancer",
    "HIV/AIDS",
    "Pregnant",
    "Healthcare worker",
    "International travel",
    "College student",
]

# value -> display label
OCCUPATIONS: Dict[str, str] = {
    "healthcare": "Healthcare Worker",
    "education": "Education",
    "childcare": "Childcare",
    "laboratory": "Laboratory Worker",
    "travel": "Frequent Traveler",
    "other": "Other",
}

HIGH_RISK_CONDITIONS = frozenset(
    {
        "Immunocompromised",
        "Chronic heart disease",
        "Chronic lung disease",
        "Diabetes",
    }
)

HEALTHCARE_WORKER = "Healthcare worker"
INTERNATIONAL_TRAVEL = "International travel"
COLLEGE_STUDENT = "College student"
