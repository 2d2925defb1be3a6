"""
Skill Matching Service

Keyword matching between an applicant's skills and a job's required skills.

HOW IT WORKS:
1. Normalize both sides (trim + lower-case, blanks dropped)
2. fit = matched / required, as a whole percentage
3. Percentages round half up: 1 of 2 -> 50, 1 of 8 -> 13 (12.5)

Semantic ranking across the whole catalog is delegated to the external ML
service (see ml_client.match_jobs); this module only does the exact,
deterministic part that has to be reproducible per application.
"""

import math
from typing import Iterable, List, Set


def normalize_skill(skill) -> str:
    return str(skill).strip().lower()


def normalize_skills(skills: Iterable) -> List[str]:
    """Trim, lower-case, drop blanks and duplicates. Order of first appearance is kept."""
    seen: Set[str] = set()
    out: List[str] = []
    for skill in skills or []:
        value = normalize_skill(skill)
        if value and value not in seen:
            seen.add(value)
            out.append(value)
    return out


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate_fit_score(user_skills: Iterable, required_skills: Iterable) -> int:
    """
    Percentage of required skills the user has, 0-100.

    0 when the job lists no required skills.
    """
    required = normalize_skills(required_skills)
    if not required:
        return 0
    have = set(normalize_skills(user_skills))
    matched = sum(1 for skill in required if skill in have)
    return round_half_up(matched * 100 / len(required))


def missing_skills(required_skills: Iterable, applicant_skill_sets: Iterable[Iterable]) -> List[str]:
    """Required skills that none of the applicants has."""
    covered: Set[str] = set()
    for skills in applicant_skill_sets:
        covered.update(normalize_skills(skills))
    return [skill for skill in normalize_skills(required_skills) if skill not in covered]
