"""Tests for skill normalization and fit scoring."""

from jobboard.services.matching_service import (
    calculate_fit_score,
    missing_skills,
    normalize_skills,
    round_half_up,
)


class TestNormalizeSkills:
    def test_trims_lowercases_and_dedupes_in_order(self):
        assert normalize_skills([" Python", "SQL ", "python", "", "  ", "Go"]) == ["python", "sql", "go"]

    def test_none_is_empty(self):
        assert normalize_skills(None) == []


class TestFitScore:
    def test_half_match_is_fifty(self):
        assert calculate_fit_score(["Python", "Java"], ["python", "sql"]) == 50

    def test_no_required_skills_scores_zero(self):
        assert calculate_fit_score(["python"], []) == 0

    def test_superset_scores_hundred(self):
        assert calculate_fit_score(["python", "sql", "go"], ["Python", "SQL"]) == 100

    def test_no_overlap_scores_zero(self):
        assert calculate_fit_score(["rust"], ["python", "sql"]) == 0

    def test_rounds_half_up(self):
        # 1 of 8 = 12.5
        required = [f"s{i}" for i in range(8)]
        assert calculate_fit_score(["s0"], required) == 13
        assert round_half_up(2.5) == 3
        assert round_half_up(2.4) == 2

    def test_one_of_three(self):
        assert calculate_fit_score(["a"], ["a", "b", "c"]) == 33

    def test_monotone_in_matched_count(self):
        required = ["a", "b", "c", "d", "e", "f", "g"]
        scores = [calculate_fit_score(required[:n], required) for n in range(len(required) + 1)]
        assert scores == sorted(scores)
        assert scores[0] == 0
        assert scores[-1] == 100

    def test_duplicate_required_skills_count_once(self):
        assert calculate_fit_score(["python"], ["python", "Python", "sql"]) == 50


class TestMissingSkills:
    def test_skills_nobody_has(self):
        gap = missing_skills(["python", "sql", "docker"], [["Python"], ["SQL", "java"]])
        assert gap == ["docker"]

    def test_no_applicants_means_everything_missing(self):
        assert missing_skills(["python", "sql"], []) == ["python", "sql"]
