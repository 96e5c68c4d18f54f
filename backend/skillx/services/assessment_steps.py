"""Assessment wizard steps and their validation rules.

Steps are static and ordered. Each of steps 1-4 has a gating rule that
must pass before the wizard moves forward; step 5 (results) has none.
"""

from collections.abc import Callable
from dataclasses import dataclass

from skillx.data.quiz_questions import QUESTION_IDS
from skillx.schemas.assessment import AssessmentSession


@dataclass(frozen=True)
class StepDescriptor:
    """One wizard step.

    Attributes:
        id: 1-based step number.
        name: Display name.
        estimated_time_minutes: Expected time to complete the step.
        icon: Display glyph.
    """

    id: int
    name: str
    estimated_time_minutes: int
    icon: str


STEPS: tuple[StepDescriptor, ...] = (
    StepDescriptor(1, "Goal Setting", 1, "🎯"),
    StepDescriptor(2, "Skills Assessment", 4, "⚡"),
    StepDescriptor(3, "Personality Quiz", 3, "🧠"),
    StepDescriptor(4, "Learning Preferences", 2, "📚"),
    StepDescriptor(5, "Your Results", 0, "🎉"),
)

FIRST_STEP = STEPS[0].id
LAST_STEP = STEPS[-1].id
STEP_COUNT = len(STEPS)
SUBMIT_STEP = 4
"""Completing this step submits the assessment to the backend."""

MIN_RATED_SKILLS = 1
RECOMMENDED_RATED_SKILLS = 3

GOAL_REQUIRED_MESSAGE = "Please select a career goal to continue"
SKILL_REQUIRED_MESSAGE = "Please select at least one skill and set its level"
MORE_SKILLS_MESSAGE = "Selecting 3+ skills will give you better career matches"
PERSONALITY_INCOMPLETE_MESSAGE = (
    "Please complete all personality questions for accurate results"
)
LEARNING_STYLE_REQUIRED_MESSAGE = "Please select your preferred learning styles"
TIME_COMMITMENT_REQUIRED_MESSAGE = "Please select your time commitment preference"


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of a step's gating rule."""

    is_valid: bool
    message: str = ""


VALID = ValidationResult(is_valid=True)

ValidationRule = Callable[[AssessmentSession], ValidationResult]


# =============================================================================
# Rules
# =============================================================================


def validate_goal(session: AssessmentSession) -> ValidationResult:
    """Step 1: a non-blank goal is selected."""
    if not session.goals or not session.goals.strip():
        return ValidationResult(False, GOAL_REQUIRED_MESSAGE)
    return VALID


def validate_skills(session: AssessmentSession) -> ValidationResult:
    """Step 2: at least one rated skill; fewer than three still blocks."""
    rated = len(session.rated_skills())
    if rated < MIN_RATED_SKILLS:
        return ValidationResult(False, SKILL_REQUIRED_MESSAGE)
    if rated < RECOMMENDED_RATED_SKILLS:
        return ValidationResult(False, MORE_SKILLS_MESSAGE)
    return VALID


def make_personality_rule(min_answers: int | None = None) -> ValidationRule:
    """Build the step 3 rule.

    Args:
        min_answers: Answered catalog questions required. None requires
            every question in the catalog.

    Returns:
        Rule counting answers whose id belongs to the question catalog.
    """
    required = len(QUESTION_IDS) if min_answers is None else min_answers

    def validate_personality(session: AssessmentSession) -> ValidationResult:
        answered = sum(1 for qid in session.personality if qid in QUESTION_IDS)
        if answered < required:
            return ValidationResult(False, PERSONALITY_INCOMPLETE_MESSAGE)
        return VALID

    return validate_personality


def validate_preferences(session: AssessmentSession) -> ValidationResult:
    """Step 4: learning styles and a time commitment are chosen."""
    if not session.preferences.learning_style:
        return ValidationResult(False, LEARNING_STYLE_REQUIRED_MESSAGE)
    if not session.preferences.time_commitment:
        return ValidationResult(False, TIME_COMMITMENT_REQUIRED_MESSAGE)
    return VALID


def build_validation_rules(
    personality_min_answers: int | None = None,
) -> dict[int, ValidationRule]:
    """Rules keyed by step id. Steps without an entry always pass."""
    return {
        1: validate_goal,
        2: validate_skills,
        3: make_personality_rule(personality_min_answers),
        4: validate_preferences,
    }


def validate_step(
    step: int,
    session: AssessmentSession,
    rules: dict[int, ValidationRule],
) -> ValidationResult:
    """Run the rule registered for ``step``, if any."""
    rule = rules.get(step)
    if rule is None:
        return VALID
    return rule(session)


# =============================================================================
# Progress
# =============================================================================


def clamp_step(step: int) -> int:
    """Clamp a restored step number into the valid range."""
    return min(max(step, FIRST_STEP), LAST_STEP)


def get_step(step: int) -> StepDescriptor:
    """Descriptor for a step id.

    Raises:
        ValueError: If the id is outside the wizard.
    """
    for descriptor in STEPS:
        if descriptor.id == step:
            return descriptor
    raise ValueError(f"Unknown assessment step: {step}")


def progress_percent(step: int) -> float:
    """Share of the wizard completed when ``step`` is active (0-100)."""
    return (step - FIRST_STEP) / (STEP_COUNT - 1) * 100


def minutes_remaining(step: int) -> int:
    """Estimated minutes for the active step and every step after it."""
    return sum(s.estimated_time_minutes for s in STEPS if s.id >= step)
