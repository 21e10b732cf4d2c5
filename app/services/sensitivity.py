"""
Content sensitivity checks and the moderation verdict.

The default classifier is a placeholder that samples a random score; a real
model plugs in by implementing ContentClassifier.
"""
import logging
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from app.models.video import ModerationStatus

logger = logging.getLogger(__name__)

BANNED_TERMS = ("violence", "explicit", "inappropriate", "offensive")
TEXT_PENALTY = 20
MAX_SCORE = 100

APPROVE_BELOW = 30
REJECT_AT = 70
HIGH_SENSITIVITY_ABOVE = 70
REQUIRES_REVIEW_ABOVE = 80


@dataclass
class SensitivityAnalysis:
    score: int
    flags: list[str] = field(default_factory=list)
    detected_content: dict[str, bool] = field(default_factory=lambda: {
        "violence": False,
        "adult": False,
        "offensive": False,
        "sensitive": False,
    })
    analyzed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "flags": list(self.flags),
            "detected_content": dict(self.detected_content),
            "analyzed_at": self.analyzed_at.isoformat(),
        }


class ContentClassifier(ABC):
    """Scores a stored video for sensitive content (0 = benign, 100 = worst)."""

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @abstractmethod
    def analyze(self, video_path: Path, metadata: dict[str, Any] | None = None) -> SensitivityAnalysis:
        ...


class RandomContentClassifier(ContentClassifier):
    """Placeholder: uniform integer score in [0, 100), flags derived from thresholds."""

    def __init__(self, rng: random.Random | None = None):
        self._rng = rng or random.Random()

    @property
    def name(self) -> str:
        return "random"

    def analyze(self, video_path: Path, metadata: dict[str, Any] | None = None) -> SensitivityAnalysis:
        return analysis_for_score(self._rng.randrange(MAX_SCORE))


def analysis_for_score(score: int) -> SensitivityAnalysis:
    """Build the flag list and category detections for a content score."""
    result = SensitivityAnalysis(score=score)
    if score > HIGH_SENSITIVITY_ABOVE:
        result.flags.append("high_sensitivity")
        result.detected_content["sensitive"] = True
    if score > REQUIRES_REVIEW_ABOVE:
        result.flags.append("requires_review")
    return result


def analyze_text(text: str | None) -> int:
    """TEXT_PENALTY per banned term found as a substring (each term counted once), capped at 100."""
    lower = (text or "").lower()
    score = sum(TEXT_PENALTY for term in BANNED_TERMS if term in lower)
    return max(0, min(score, MAX_SCORE))


def determine_moderation_status(score: float) -> ModerationStatus:
    if score < APPROVE_BELOW:
        return ModerationStatus.APPROVED
    if score >= REJECT_AT:
        return ModerationStatus.REJECTED
    return ModerationStatus.FLAGGED
