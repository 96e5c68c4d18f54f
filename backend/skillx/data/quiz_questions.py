"""Personality quiz question catalog.

Likert answers run 1..5 (Strongly Disagree .. Strongly Agree).

- Mini-IPIP-20: 4 items per Big Five trait, 2 reverse-keyed each
- RIASEC: 1 item per Holland theme
- O*NET Work Values: 1 item per value family
"""

from dataclasses import dataclass
from typing import Literal

QuestionCategory = Literal["BigFive", "RIASEC", "WorkValues"]

LIKERT_MIN = 1
LIKERT_MAX = 5

LIKERT_LABELS: dict[int, str] = {
    1: "Strongly Disagree",
    2: "Disagree",
    3: "Neutral",
    4: "Agree",
    5: "Strongly Agree",
}


@dataclass(frozen=True)
class QuizQuestion:
    """One personality quiz item.

    Attributes:
        id: Stable question id (1-based).
        question: Statement shown to the user.
        category: Instrument the item belongs to.
        facet: Trait, theme, or value family measured.
        reverse: Whether the item is reverse-keyed.
    """

    id: int
    question: str
    category: QuestionCategory
    facet: str
    reverse: bool = False


QUIZ_QUESTIONS: tuple[QuizQuestion, ...] = (
    # Mini-IPIP-20 (public domain)
    QuizQuestion(1, "I am the life of the party.", "BigFive", "Extraversion"),
    QuizQuestion(2, "I feel comfortable around people.", "BigFive", "Extraversion"),
    QuizQuestion(3, "I don't talk a lot.", "BigFive", "Extraversion", reverse=True),
    QuizQuestion(4, "I keep in the background.", "BigFive", "Extraversion", reverse=True),
    QuizQuestion(5, "I sympathize with others' feelings.", "BigFive", "Agreeableness"),
    QuizQuestion(6, "I take time out for others.", "BigFive", "Agreeableness"),
    QuizQuestion(
        7,
        "I am not interested in other people's problems.",
        "BigFive",
        "Agreeableness",
        reverse=True,
    ),
    QuizQuestion(
        8, "I feel little concern for others.", "BigFive", "Agreeableness", reverse=True
    ),
    QuizQuestion(9, "I am always prepared.", "BigFive", "Conscientiousness"),
    QuizQuestion(10, "I pay attention to details.", "BigFive", "Conscientiousness"),
    QuizQuestion(
        11,
        "I leave my belongings around.",
        "BigFive",
        "Conscientiousness",
        reverse=True,
    ),
    QuizQuestion(
        12, "I make a mess of things.", "BigFive", "Conscientiousness", reverse=True
    ),
    QuizQuestion(13, "I get stressed out easily.", "BigFive", "Neuroticism"),
    QuizQuestion(14, "I worry about things.", "BigFive", "Neuroticism"),
    QuizQuestion(
        15, "I am relaxed most of the time.", "BigFive", "Neuroticism", reverse=True
    ),
    QuizQuestion(16, "I seldom feel blue.", "BigFive", "Neuroticism", reverse=True),
    QuizQuestion(17, "I have a rich vocabulary.", "BigFive", "Openness"),
    QuizQuestion(18, "I have a vivid imagination.", "BigFive", "Openness"),
    QuizQuestion(
        19,
        "I have difficulty understanding abstract ideas.",
        "BigFive",
        "Openness",
        reverse=True,
    ),
    QuizQuestion(
        20, "I am not interested in abstract ideas.", "BigFive", "Openness", reverse=True
    ),
    # RIASEC (Holland themes)
    QuizQuestion(21, "I enjoy practical, hands-on tasks.", "RIASEC", "Realistic"),
    QuizQuestion(
        22, "I like analyzing and solving abstract problems.", "RIASEC", "Investigative"
    ),
    QuizQuestion(23, "I enjoy creating or designing things.", "RIASEC", "Artistic"),
    QuizQuestion(24, "I like helping or teaching people.", "RIASEC", "Social"),
    QuizQuestion(
        25, "I like leading initiatives or persuading others.", "RIASEC", "Enterprising"
    ),
    QuizQuestion(
        26, "I prefer organized systems and clear procedures.", "RIASEC", "Conventional"
    ),
    # Work Values (O*NET families)
    QuizQuestion(
        27,
        "Achievement: Doing important, high-quality work matters to me.",
        "WorkValues",
        "Achievement",
    ),
    QuizQuestion(
        28,
        "Independence: I value autonomy in how I work.",
        "WorkValues",
        "Independence",
    ),
    QuizQuestion(
        29,
        "Recognition: I value advancement and being recognized for results.",
        "WorkValues",
        "Recognition",
    ),
    QuizQuestion(
        30,
        "Relationships: I value cooperation and service to others.",
        "WorkValues",
        "Relationships",
    ),
    QuizQuestion(
        31,
        "Support: I value supportive management and policies.",
        "WorkValues",
        "Support",
    ),
    QuizQuestion(
        32,
        "Working Conditions: I value stability, compensation, and good conditions.",
        "WorkValues",
        "WorkingConditions",
    ),
)

QUESTION_IDS: frozenset[str] = frozenset(str(q.id) for q in QUIZ_QUESTIONS)
"""Question ids as they appear in answer maps (JSON object keys)."""


def is_known_question(question_id: int | str) -> bool:
    """Check whether an id belongs to the catalog."""
    return str(question_id) in QUESTION_IDS
