"""Match score and role resolution for recommendation payloads.

Backend payloads carry the match percentage in different places depending
on which endpoint produced them and how complete the path data is. These
pure functions resolve one score and one current-role label per match.

Score resolution tiers, each consulted only if the previous is unusable:
1. ``match.current_role.score``
2. ``path.current_role.weighted_score``
3. Weighted blend of ``skill_fit``, ``personality_fit``, ``learning_fit``
   (requires at least two of the three)
4. None: the score is unavailable and must not be shown as 0%
"""

import math
from dataclasses import dataclass

from skillx.schemas.recommendations import CareerPath, RoleSnapshot, TopMatch

# =============================================================================
# Blend Weights
# =============================================================================

BLEND_WEIGHT_SKILL = 0.6
BLEND_WEIGHT_PERSONALITY = 0.3
BLEND_WEIGHT_LEARNING = 0.1

_WEIGHT_SUM = BLEND_WEIGHT_SKILL + BLEND_WEIGHT_PERSONALITY + BLEND_WEIGHT_LEARNING

# Sanity check at import time (RuntimeError survives python -O, unlike assert)
if abs(_WEIGHT_SUM - 1.0) >= 0.001:
    raise RuntimeError(f"Blend weights must sum to 1.0, got {_WEIGHT_SUM}")

BLEND_MISSING_COMPONENT = 0.5
"""Stand-in for the one fit component a blend may be missing."""

BLEND_MIN_COMPONENTS = 2

SCORE_MIN = 0
SCORE_MAX = 100

UNKNOWN_ROLE_TITLE = "(Role)"
UNKNOWN_ROLE_LEVEL = "-"

# Thresholds for the "why" bullets, on the 0-100 scale
_STRONG_FIT = 60
_MODERATE_FIT = 40
_MAX_WHY_BULLETS = 3


# =============================================================================
# Helpers
# =============================================================================


def round_half_up(value: float) -> int:
    """Round to the nearest integer, with .5 going toward +infinity.

    Raises:
        ValueError: If value is NaN or infinite.
    """
    if not math.isfinite(value):
        raise ValueError(f"Cannot round non-finite value: {value}")
    return math.floor(value + 0.5)


def _is_number(value: float | None) -> bool:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


def _is_valid_score(value: float | None) -> bool:
    return _is_number(value) and SCORE_MIN <= value <= SCORE_MAX


def fit_to_percent(value: float | None) -> int:
    """Convert a fit value to a 0-100 integer for display.

    Fits arrive either as 0..1 fractions or as 0..100 percentages; values
    at or below 1 are treated as fractions. Missing values display as 0.
    """
    if not _is_number(value):
        return 0
    percent = value * 100 if value <= 1 else value
    if not math.isfinite(percent):
        return 0
    return round_half_up(percent)


# =============================================================================
# Score Resolution
# =============================================================================


def blend_fit_score(snapshot: RoleSnapshot | None) -> int | None:
    """Compute the weighted blend from a role snapshot's fit components.

    Args:
        snapshot: Path role snapshot carrying 0..1 fit values.

    Returns:
        Rounded blend on the 0-100 scale, or None when fewer than two
        components are present.
    """
    if snapshot is None:
        return None

    components = (snapshot.skill_fit, snapshot.personality_fit, snapshot.learning_fit)
    present = [c for c in components if _is_number(c)]
    if len(present) < BLEND_MIN_COMPONENTS:
        return None

    skill, personality, learning = (
        c if _is_number(c) else BLEND_MISSING_COMPONENT for c in components
    )
    blend = (
        skill * BLEND_WEIGHT_SKILL
        + personality * BLEND_WEIGHT_PERSONALITY
        + learning * BLEND_WEIGHT_LEARNING
    )
    percent = blend * 100
    if not math.isfinite(percent):
        return None
    return round_half_up(percent)


def resolve_match_score(match: TopMatch, path: CareerPath | None = None) -> int | None:
    """Resolve the best available match percentage.

    Args:
        match: Top match from the recommendations payload.
        path: Path detail for the match, if the payload included it.

    Returns:
        Integer score, or None when no tier yields a usable value.
    """
    if match.current_role is not None and _is_valid_score(match.current_role.score):
        return round_half_up(match.current_role.score)

    snapshot = path.current_role if path is not None else None
    if snapshot is not None and _is_valid_score(snapshot.weighted_score):
        return round_half_up(snapshot.weighted_score)

    return blend_fit_score(snapshot)


def resolve_current_role_title_level(
    match: TopMatch, path: CareerPath | None = None
) -> tuple[str, str]:
    """Resolve the display title and level of the user's current role.

    Args:
        match: Top match from the recommendations payload.
        path: Path detail for the match, if the payload included it.

    Returns:
        ``(title, level)``. Falls back to ``("(Role)", "-")``.
    """
    role = match.current_role
    if role is not None and role.title:
        return role.title, role.level or UNKNOWN_ROLE_LEVEL

    if path is not None and path.current_role is not None:
        snapshot = path.current_role
        title = snapshot.role_title or snapshot.title or UNKNOWN_ROLE_TITLE
        return title, snapshot.level or UNKNOWN_ROLE_LEVEL

    return UNKNOWN_ROLE_TITLE, UNKNOWN_ROLE_LEVEL


def resolve_next_role(
    match: TopMatch, path: CareerPath | None = None
) -> RoleSnapshot | None:
    """The recommended next role: the match's own, else the path's."""
    if match.next_role is not None:
        return match.next_role
    if path is not None:
        return path.next_role
    return None


# =============================================================================
# Match Explanation
# =============================================================================


@dataclass(frozen=True)
class FitBreakdown:
    """Fit components as display percentages.

    Attributes:
        skill: Skills fit (0-100).
        personality: Personality fit (0-100).
        learning: Learning fit (0-100).
    """

    skill: int
    personality: int
    learning: int


def fit_breakdown(snapshot: RoleSnapshot | None) -> FitBreakdown | None:
    """Build the fit bars, or None when the snapshot has no fit data at all."""
    if snapshot is None:
        return None
    values = (snapshot.skill_fit, snapshot.personality_fit, snapshot.learning_fit)
    if all(v is None for v in values):
        return None
    return FitBreakdown(
        skill=fit_to_percent(snapshot.skill_fit),
        personality=fit_to_percent(snapshot.personality_fit),
        learning=fit_to_percent(snapshot.learning_fit),
    )


def explain_match(snapshot: RoleSnapshot | None) -> list[str]:
    """Plain-language reasons behind a match, at most three.

    Args:
        snapshot: Path role snapshot with fit values.

    Returns:
        Reasons ordered skills, personality, learning.
    """
    if snapshot is None:
        return []

    why: list[str] = []
    if _is_number(snapshot.skill_fit):
        pct = fit_to_percent(snapshot.skill_fit)
        if pct >= _STRONG_FIT:
            why.append("Strong skills alignment")
        elif pct >= _MODERATE_FIT:
            why.append("Moderate skills alignment")
        else:
            why.append("Skills partially match")
    if _is_number(snapshot.personality_fit):
        pct = fit_to_percent(snapshot.personality_fit)
        if pct >= _STRONG_FIT:
            why.append("Personality fit is strong for this path")
        elif pct >= _MODERATE_FIT:
            why.append("Personality fit is decent")
        else:
            why.append("Personality fit is developing")
    if _is_number(snapshot.learning_fit):
        pct = fit_to_percent(snapshot.learning_fit)
        if pct >= _STRONG_FIT:
            why.append("Learning style matches training resources")
        else:
            why.append("Learning style has acceptable match")
    return why[:_MAX_WHY_BULLETS]
