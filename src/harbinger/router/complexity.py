"""Heuristic task complexity classification."""

from __future__ import annotations

import re

from harbinger.router.models import Tier

# (threshold, points) applied to the estimated token count
TOKEN_THRESHOLDS = [(500, 2), (2000, 2), (5000, 2)]

# Vocabulary signals; each fires at most once per text.
SIGNALS: list[tuple[str, re.Pattern[str], int]] = [
    ("analytical", re.compile(r"\b(analyze|analyse|explain|compare|evaluate|synthesize)\b"), 2),
    ("causal", re.compile(r"\b(why|how|reason|because|therefore)\b"), 1),
    ("coding", re.compile(r"\b(code|function|class|implement|refactor|debug)\b"), 2),
    ("exploit", re.compile(r"\b(exploit|vulnerability|payload|injection|bypass)\b"), 7),
    ("math", re.compile(r"\b(calculate|equation|algorithm|optimize|crypto)\b"), 2),
]

TRIVIAL_OPENERS = re.compile(r"^(hi|hello|hey|thanks|ok|yes|no)\b")
MIN_NONTRIVIAL_LENGTH = 20

# Inclusive upper bounds, lowest tier first; anything above is MASSIVE.
TIER_BOUNDS = [
    (1, Tier.TRIVIAL),
    (3, Tier.SIMPLE),
    (6, Tier.MODERATE),
    (9, Tier.COMPLEX),
]


def estimate_tokens(text: str) -> float:
    """Rough token estimate: whitespace-separated words times 1.3."""
    return len(text.split()) * 1.3


def complexity_score(text: str) -> int:
    """Sum of all signals that fire on the (lower-cased) text."""
    score = 0
    tokens = estimate_tokens(text)
    for threshold, points in TOKEN_THRESHOLDS:
        if tokens > threshold:
            score += points
    for _name, pattern, points in SIGNALS:
        if pattern.search(text):
            score += points
    return score


def score_to_tier(score: int) -> Tier:
    for bound, tier in TIER_BOUNDS:
        if score <= bound:
            return tier
    return Tier.MASSIVE


def assess_complexity(task) -> Tier:
    """Classify a task description into one of the five tiers."""
    if not isinstance(task, str) or not task:
        return Tier.SIMPLE

    text = task.lower()
    if TRIVIAL_OPENERS.match(text) or len(text) < MIN_NONTRIVIAL_LENGTH:
        return Tier.TRIVIAL

    return score_to_tier(complexity_score(text))
