"""Assessment session schemas.

The session aggregate is what the wizard mutates and what gets persisted
locally and on the server. Storage and wire payloads are camelCase.
"""

from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from skillx.schemas.recommendations import BackendRecommendationsResponse

_WIRE_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    extra="ignore",
)

SkillLevel = Annotated[int, Field(ge=0, le=4)]
LikertValue = Annotated[int, Field(ge=1, le=5)]


class SkillSelection(BaseModel):
    """User's self-rated proficiency for one skill.

    Attributes:
        selected: Whether the skill was picked.
        level: 0 (no experience) to 4 (expert).
    """

    model_config = _WIRE_CONFIG

    selected: bool = False
    level: SkillLevel = 0

    @property
    def is_rated(self) -> bool:
        """Selected with a non-zero level."""
        return self.selected and self.level > 0


class LearningPreferences(BaseModel):
    """Learning preferences gathered on step 4."""

    model_config = _WIRE_CONFIG

    learning_style: list[str] = Field(default_factory=list)
    time_commitment: str = ""
    budget: str = ""


class AssessmentSession(BaseModel):
    """The assessment aggregate.

    ``portfolio`` holds an optional binary upload from the skills step. It
    lives only in memory: ``to_storage`` always writes it as null.

    ``backend`` holds the recommendations returned by quiz submission; it
    stays None when submission was skipped or failed.
    """

    model_config = _WIRE_CONFIG

    goals: str | None = None
    skills: dict[str, SkillSelection] = Field(default_factory=dict)
    personality: dict[str, LikertValue] = Field(default_factory=dict)
    personality_type: str = ""
    personality_data: dict[str, Any] | None = None
    preferences: LearningPreferences = Field(default_factory=LearningPreferences)
    portfolio: bytes | None = None
    backend: BackendRecommendationsResponse | None = None

    def rated_skills(self) -> dict[str, SkillSelection]:
        """Skills that are selected with a level above zero."""
        return {name: s for name, s in self.skills.items() if s.is_rated}

    def merged(self, partial: dict[str, Any]) -> "AssessmentSession":
        """Return a copy with ``partial`` shallow-merged over this session.

        Top-level keys replace existing values wholesale, matching object
        spread semantics. Keys may use either field names or camelCase
        aliases; unknown keys are ignored.

        Args:
            partial: Fields to overwrite.

        Returns:
            New validated session.

        Raises:
            pydantic.ValidationError: If a merged value is invalid.
        """
        current = self.model_dump(by_alias=True)
        current.update({_alias_for(key): value for key, value in partial.items()})
        return AssessmentSession.model_validate(current)

    def to_storage(self) -> dict[str, Any]:
        """Serialize for local or server storage, nulling the upload."""
        data = self.model_dump(mode="json", by_alias=True, exclude={"portfolio"})
        data["portfolio"] = None
        return data

    @classmethod
    def from_storage(cls, data: dict[str, Any]) -> "AssessmentSession":
        """Rebuild a session from a storage payload; the upload is dropped."""
        session = cls.model_validate(data)
        if session.portfolio is not None:
            session = session.model_copy(update={"portfolio": None})
        return session


def _alias_for(key: str) -> str:
    field = AssessmentSession.model_fields.get(key)
    if field is not None and field.alias:
        return field.alias
    return key


class ProgressRecord(BaseModel):
    """Progress payload exchanged with the server and the pending-redirect key.

    All fields are optional because the server may return partial records.
    ``data`` is kept as a raw mapping so it can be merged field-by-field
    over locally restored data.
    """

    model_config = _WIRE_CONFIG

    current_step: int | None = None
    data: dict[str, Any] | None = None
    answers: dict[str, LikertValue] | None = None


class QuizSubmission(BaseModel):
    """Body of the quiz submission request."""

    model_config = _WIRE_CONFIG

    answers: dict[str, LikertValue]
    skills: dict[str, SkillSelection] = Field(default_factory=dict)
    preferences: LearningPreferences = Field(default_factory=LearningPreferences)
