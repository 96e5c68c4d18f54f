"""Choices offered by the goal, skills, and preferences steps."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Option:
    """A selectable choice.

    Attributes:
        id: Value stored in the session.
        label: Display label.
        description: Short explanation shown under the label.
    """

    id: str
    label: str
    description: str = ""


GOALS: tuple[Option, ...] = (
    Option("career-change", "Career Change", "Transition to a new field"),
    Option("skill-improvement", "Skill Improvement", "Enhance existing abilities"),
    Option("job-seeking", "Job Seeking", "Find new opportunities"),
    Option("career-exploration", "Career Exploration", "Discover new possibilities"),
)

LEARNING_STYLES: tuple[Option, ...] = (
    Option("visual", "Visual Learning", "Learn through diagrams, charts, and visual aids"),
    Option(
        "auditory",
        "Auditory Learning",
        "Learn through listening, podcasts, and discussions",
    ),
    Option("kinesthetic", "Hands-on Learning", "Learn through doing, projects, and practice"),
    Option(
        "reading",
        "Reading/Writing",
        "Learn through books, articles, and written content",
    ),
)

TIME_COMMITMENTS: tuple[Option, ...] = (
    Option("part-time", "Part-time (10-20 hrs/week)", "6-12 months"),
    Option("full-time", "Full-time (40+ hrs/week)", "3-6 months"),
    Option("weekends", "Weekends only", "8-15 months"),
    Option("flexible", "Flexible schedule", "4-10 months"),
)

BUDGET_RANGES: tuple[Option, ...] = (
    Option("free", "Free resources only", "YouTube, free courses, documentation"),
    Option("low", "Low budget ($100-500)", "Udemy courses, books, basic tools"),
    Option(
        "medium",
        "Medium budget ($500-2000)",
        "Bootcamps, certifications, premium courses",
    ),
    Option(
        "high",
        "High budget ($2000+)",
        "University programs, private coaching, advanced tools",
    ),
)

SKILL_LEVELS: tuple[Option, ...] = (
    Option("0", "No Experience", "No experience with this skill"),
    Option("1", "Beginner", "Basic understanding, can follow tutorials"),
    Option("2", "Intermediate", "Can work on projects independently"),
    Option("3", "Advanced", "Can handle complex projects and mentor beginners"),
    Option("4", "Expert", "Expert level, can architect solutions and lead teams"),
)


def skill_level_label(level: int) -> str:
    """Display label for a 0-4 proficiency level.

    Levels outside the scale are shown as "Level N".
    """
    if 0 <= level < len(SKILL_LEVELS):
        return SKILL_LEVELS[level].label
    return f"Level {level}"
