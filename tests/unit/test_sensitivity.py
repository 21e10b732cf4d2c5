"""Unit tests for sensitivity scoring and the moderation verdict."""
import random

import pytest

from app.models.video import ModerationStatus
from app.services.sensitivity import (
    RandomContentClassifier,
    analysis_for_score,
    analyze_text,
    determine_moderation_status,
)


@pytest.mark.parametrize(
    "score,expected",
    [
        (0, ModerationStatus.APPROVED),
        (29, ModerationStatus.APPROVED),
        (29.9, ModerationStatus.APPROVED),
        (30, ModerationStatus.FLAGGED),
        (50, ModerationStatus.FLAGGED),
        (69, ModerationStatus.FLAGGED),
        (70, ModerationStatus.REJECTED),
        (99, ModerationStatus.REJECTED),
        (100, ModerationStatus.REJECTED),
    ],
)
def test_verdict_thresholds(score, expected):
    assert determine_moderation_status(score) == expected


class TestAnalyzeText:
    def test_clean_text_scores_zero(self):
        assert analyze_text("A cooking tutorial") == 0

    def test_empty_and_none(self):
        assert analyze_text("") == 0
        assert analyze_text(None) == 0

    def test_each_term_counts_once(self):
        assert analyze_text("violence violence VIOLENCE") == 20

    def test_case_insensitive_substring(self):
        assert analyze_text("Nonviolence and Inappropriately long") == 40

    def test_all_terms(self):
        assert analyze_text("violence explicit inappropriate offensive") == 80


class TestAnalysisForScore:
    def test_low_score_has_no_flags(self):
        result = analysis_for_score(70)
        assert result.flags == []
        assert result.detected_content["sensitive"] is False

    def test_high_sensitivity(self):
        result = analysis_for_score(75)
        assert result.flags == ["high_sensitivity"]
        assert result.detected_content["sensitive"] is True

    def test_requires_review(self):
        result = analysis_for_score(81)
        assert result.flags == ["high_sensitivity", "requires_review"]

    def test_to_dict(self):
        data = analysis_for_score(10).to_dict()
        assert data["score"] == 10
        assert set(data["detected_content"]) == {"violence", "adult", "offensive", "sensitive"}
        assert isinstance(data["analyzed_at"], str)


def test_random_classifier_scores_in_range(tmp_path):
    classifier = RandomContentClassifier(random.Random(0))
    scores = [classifier.analyze(tmp_path / "x.mp4").score for _ in range(200)]
    assert all(isinstance(s, int) and 0 <= s < 100 for s in scores)
    assert classifier.name == "random"


def test_random_classifier_is_reproducible_with_seed(tmp_path):
    a = RandomContentClassifier(random.Random(42))
    b = RandomContentClassifier(random.Random(42))
    assert [a.analyze(tmp_path).score for _ in range(5)] == [b.analyze(tmp_path).score for _ in range(5)]
