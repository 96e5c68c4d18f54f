"""Skill gap analysis.

Compares the user's current skill levels with the levels a recommended
next role requires. Two entry points:

- ``build_skill_gap_view`` renders the backend's ``missingSkills`` list for
  a match card. It distinguishes "no next-role data" (list absent) from
  "no gaps detected" (list present but empty).
- ``analyze_skill_gaps`` classifies every required skill as met, needing
  improvement, or missing, and summarizes overall progress.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum

from skillx.data.assessment_options import skill_level_label
from skillx.schemas.assessment import SkillSelection
from skillx.schemas.recommendations import MissingSkill

MAX_GAP_ENTRIES = 6
"""Match cards list at most this many missing skills."""

NO_GAPS_MESSAGE = "No skill gaps detected"


# =============================================================================
# Match Card View
# =============================================================================


class SkillGapState(Enum):
    """What the skill gap block of a match card shows."""

    NO_NEXT_ROLE = "no_next_role"
    NO_GAPS = "no_gaps"
    GAPS = "gaps"


@dataclass(frozen=True)
class SkillGapEntry:
    """One missing skill, current vs required level."""

    skill: str
    have: int
    need: int
    have_label: str
    need_label: str


@dataclass(frozen=True)
class SkillGapView:
    """Skill gap block of a match card.

    Attributes:
        state: Which of the three display states applies.
        entries: Up to MAX_GAP_ENTRIES gaps (empty unless state is GAPS).
        hidden_count: Gaps beyond the display limit.
        message: Sentinel text for the NO_GAPS state, else None.
    """

    state: SkillGapState
    entries: tuple[SkillGapEntry, ...] = ()
    hidden_count: int = 0
    message: str | None = None


def build_skill_gap_view(missing_skills: Sequence[MissingSkill] | None) -> SkillGapView:
    """Build the skill gap block from a next role's missing skills.

    Args:
        missing_skills: The next role's ``missingSkills``; None when the
            payload has no next-role gap data.

    Returns:
        SkillGapView in one of its three states.
    """
    if missing_skills is None:
        return SkillGapView(state=SkillGapState.NO_NEXT_ROLE)
    if not missing_skills:
        return SkillGapView(state=SkillGapState.NO_GAPS, message=NO_GAPS_MESSAGE)

    shown = missing_skills[:MAX_GAP_ENTRIES]
    return SkillGapView(
        state=SkillGapState.GAPS,
        entries=tuple(
            SkillGapEntry(
                skill=gap.skill,
                have=gap.have,
                need=gap.need,
                have_label=skill_level_label(gap.have),
                need_label=skill_level_label(gap.need),
            )
            for gap in shown
        ),
        hidden_count=len(missing_skills) - len(shown),
    )


# =============================================================================
# Full Analysis
# =============================================================================


class SkillStatus(Enum):
    """Classification of one required skill."""

    MET = "met"
    NEEDS_IMPROVEMENT = "needs_improvement"
    MISSING = "missing"


# Lower sorts first
_STATUS_PRIORITY = {
    SkillStatus.MISSING: 0,
    SkillStatus.NEEDS_IMPROVEMENT: 1,
    SkillStatus.MET: 2,
}


@dataclass(frozen=True)
class SkillDetail:
    """Gap result for one required skill.

    Attributes:
        skill_name: Skill name.
        required_level: Level the role needs (0-4).
        current_level: User's level (0 if not selected).
        levels_needed: Levels still to gain (0 when met).
        status: Met, needs improvement, or missing.
        priority: 1-based rank, most urgent first.
        recommendation: Suggested next action.
    """

    skill_name: str
    required_level: int
    current_level: int
    levels_needed: int
    status: SkillStatus
    priority: int
    recommendation: str


@dataclass(frozen=True)
class SkillGapAnalysis:
    """Summary of a skill profile against a role's requirements.

    Attributes:
        details: Per-skill results ordered by priority.
        skills_met: Count of met skills.
        skills_needing_improvement: Count of partially met skills.
        skills_missing: Count of skills at level 0.
        overall_progress: 0-100, average of capped current/required ratios.
    """

    details: tuple[SkillDetail, ...]
    skills_met: int
    skills_needing_improvement: int
    skills_missing: int
    overall_progress: int

    @property
    def total_skills(self) -> int:
        """Number of required skills analyzed."""
        return len(self.details)


def _classify(current: int, required: int) -> SkillStatus:
    if current >= required:
        return SkillStatus.MET
    if current == 0:
        return SkillStatus.MISSING
    return SkillStatus.NEEDS_IMPROVEMENT


def _recommendation(skill: str, status: SkillStatus, current: int, required: int) -> str:
    required_label = skill_level_label(required)
    if status is SkillStatus.MET:
        return f"You meet the {required_label} level for {skill}"
    if status is SkillStatus.MISSING:
        return f"Start learning {skill} (target: {required_label})"
    return f"Improve {skill} from {skill_level_label(current)} to {required_label}"


def requirements_from_missing_skills(
    missing_skills: Sequence[MissingSkill],
) -> dict[str, int]:
    """Required levels keyed by skill name; the highest need wins on repeats."""
    required: dict[str, int] = {}
    for gap in missing_skills:
        required[gap.skill] = max(gap.need, required.get(gap.skill, 0))
    return required


def analyze_skill_gaps(
    skills: Mapping[str, SkillSelection],
    required_levels: Mapping[str, int],
) -> SkillGapAnalysis:
    """Compare current skill levels with required levels.

    Args:
        skills: The user's skill selections. Unselected skills count as 0.
        required_levels: Required level per skill for the target role.

    Returns:
        SkillGapAnalysis with per-skill details and counts.
    """
    rows: list[tuple[str, int, int, SkillStatus]] = []
    for name, required in required_levels.items():
        selection = skills.get(name)
        current = selection.level if selection is not None and selection.selected else 0
        rows.append((name, current, required, _classify(current, required)))

    rows.sort(key=lambda r: (_STATUS_PRIORITY[r[3]], -(r[2] - r[1]), r[0]))

    details = tuple(
        SkillDetail(
            skill_name=name,
            required_level=required,
            current_level=current,
            levels_needed=max(required - current, 0),
            status=status,
            priority=rank,
            recommendation=_recommendation(name, status, current, required),
        )
        for rank, (name, current, required, status) in enumerate(rows, start=1)
    )

    if details:
        ratios = [
            1.0 if d.required_level <= 0 else min(d.current_level / d.required_level, 1.0)
            for d in details
        ]
        overall = round(sum(ratios) / len(ratios) * 100)
    else:
        overall = 100

    return SkillGapAnalysis(
        details=details,
        skills_met=sum(1 for d in details if d.status is SkillStatus.MET),
        skills_needing_improvement=sum(
            1 for d in details if d.status is SkillStatus.NEEDS_IMPROVEMENT
        ),
        skills_missing=sum(1 for d in details if d.status is SkillStatus.MISSING),
        overall_progress=overall,
    )
