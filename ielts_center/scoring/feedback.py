"""
Band descriptors and qualitative feedback for IELTS results.
"""

from __future__ import annotations

# (minimum band, label, description)
BAND_DESCRIPTORS: list[tuple[float, str, str]] = [
    (8.5, "Excellent", "You demonstrate exceptional command of the English language."),
    (7.0, "Good", "You show good operational command with occasional inaccuracies."),
    (6.0, "Competent", "You show generally effective command despite some inaccuracies."),
    (5.0, "Modest", "You show partial command and are likely to make many mistakes."),
    (4.0, "Limited", "Your competence is limited to familiar situations."),
    (0.0, "Basic", "You need significant improvement to reach functional proficiency."),
]


def _descriptor(score: float) -> tuple[float, str, str]:
    for entry in BAND_DESCRIPTORS:
        if score >= entry[0]:
            return entry
    return BAND_DESCRIPTORS[-1]


def band_label(score: float) -> str:
    return _descriptor(score)[1]


def generate_feedback(score: float, skill: str) -> str:
    """Skill-specific feedback sentence for a band score."""
    minimum, label, description = _descriptor(score)
    ending = "!" if minimum >= 5.0 else "."
    return f"{label} performance in {skill.lower()}{ending} {description}"
