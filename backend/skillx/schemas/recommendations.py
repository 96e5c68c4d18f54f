"""Recommendations backend payload schemas.

The backend returns loosely typed, partially populated payloads. These
models validate them at the boundary so the scoring and results code can
work with typed attributes instead of probing dictionaries:

- Score-like fields keep only real numbers; anything else becomes None.
  NaN and out-of-range values survive parsing so the score resolver can
  apply its own validity checks.
- Personality profile maps are validated against fixed trait names and a
  0..1 range. An invalid profile is dropped, not fatal.
- The legacy ``{"recommendations": [...]}`` shape is normalized into the
  current response shape.

Field names are camelCase on the wire and snake_case in Python.
"""

from typing import Annotated, Any, Literal

import structlog
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

logger = structlog.get_logger()

_WIRE_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    extra="ignore",
)

BigFiveTrait = Literal[
    "Openness", "Conscientiousness", "Extraversion", "Agreeableness", "Neuroticism"
]
RiasecCategory = Literal[
    "Realistic", "Investigative", "Artistic", "Social", "Enterprising", "Conventional"
]
UnitScore = Annotated[float, Field(ge=0.0, le=1.0)]

_LEGACY_ROLE_LEVEL = "entry"
_LEGACY_ROLE_TITLE = "Role"
_UNKNOWN_PATH_ID = "unknown"


def _number_or_none(value: Any) -> Any:
    """Keep ints and floats (including NaN); drop bools, strings, etc."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return value
    return None


class MissingSkill(BaseModel):
    """One skill a next role needs that the user does not yet meet.

    Attributes:
        skill: Skill name.
        have: User's current level (0-4).
        need: Level the role requires (0-4).
    """

    model_config = _WIRE_CONFIG

    skill: str
    have: int = 0
    need: int = 0


class RoleSnapshot(BaseModel):
    """A role within a career path as reported by the backend.

    Used for ``topMatches[].currentRole``, ``topMatches[].nextRole`` and the
    role snapshots inside ``paths[]``. Older payloads name the title field
    ``roleTitle`` instead of ``title``.

    ``missing_skills`` is None when the backend sent no list at all, which
    the skill gap view treats differently from an empty list.
    """

    model_config = _WIRE_CONFIG

    title: str | None = None
    role_title: str | None = None
    level: str | None = None
    score: float | None = None
    weighted_score: float | None = None
    skill_fit: float | None = None
    personality_fit: float | None = None
    learning_fit: float | None = None
    qualifies: bool | None = None
    missing_skills: list[MissingSkill] | None = None

    @field_validator(
        "score",
        "weighted_score",
        "skill_fit",
        "personality_fit",
        "learning_fit",
        mode="before",
    )
    @classmethod
    def keep_numbers_only(cls, v: Any) -> Any:
        """Treat non-numeric score values as absent."""
        return _number_or_none(v)


class TopMatch(BaseModel):
    """A ranked career match."""

    model_config = _WIRE_CONFIG

    path_id: str
    name: str = ""
    description: str = ""
    industry: str | None = None
    average_salary: str | int | float | None = None
    job_growth: str | int | float | None = None
    current_role: RoleSnapshot | None = None
    next_role: RoleSnapshot | None = None


class CareerPath(BaseModel):
    """Full career path detail referenced by ``TopMatch.path_id``."""

    model_config = _WIRE_CONFIG

    id: str
    name: str = ""
    description: str = ""
    industry: str | None = None
    average_salary: str | int | float | None = None
    job_growth: str | int | float | None = None
    current_role: RoleSnapshot | None = None
    next_role: RoleSnapshot | None = None
    roles: list[RoleSnapshot] = Field(default_factory=list)


class BackendProfile(BaseModel):
    """Personality profile computed by the backend.

    Attributes:
        big_five: Big Five trait scores, each 0..1.
        riasec: RIASEC interest scores, each 0..1.
        work_values: Work value scores keyed by value family.
        learning_style: Learning styles echoed back from preferences.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    big_five: dict[BigFiveTrait, UnitScore] = Field(
        default_factory=dict, alias="BigFive"
    )
    riasec: dict[RiasecCategory, UnitScore] = Field(
        default_factory=dict, alias="RIASEC"
    )
    work_values: dict[str, float] = Field(default_factory=dict, alias="WorkValues")
    learning_style: list[str] = Field(default_factory=list, alias="learningStyle")


class BackendRecommendationsResponse(BaseModel):
    """Recommendations returned by quiz submission or the personalized feed."""

    model_config = _WIRE_CONFIG

    top_matches: list[TopMatch] = Field(default_factory=list)
    profile: BackendProfile | None = None
    paths: list[CareerPath] = Field(default_factory=list)
    timestamp: str | None = None

    def find_path(self, path_id: str) -> CareerPath | None:
        """Return the path with the given id, or None."""
        for path in self.paths:
            if path.id == path_id:
                return path
        return None


# =============================================================================
# Boundary parsing
# =============================================================================


def _parse_profile(raw: Any) -> BackendProfile | None:
    """Validate a profile payload, dropping it if malformed."""
    if not isinstance(raw, dict):
        return None
    try:
        return BackendProfile.model_validate(raw)
    except PydanticValidationError as exc:
        logger.warning(
            "Discarding malformed personality profile",
            error_count=exc.error_count(),
        )
        return None


def _legacy_top_match(rec: dict[str, Any]) -> dict[str, Any]:
    """Map one legacy recommendation to the top-match wire shape."""
    path_id = next(
        (rec[key] for key in ("id", "_id", "slug", "name") if rec.get(key)),
        _UNKNOWN_PATH_ID,
    )
    score = _number_or_none(rec.get("matchPercentage"))
    return {
        "pathId": str(path_id),
        "name": rec.get("name") or "",
        "description": rec.get("description") or "",
        "currentRole": {
            "title": rec.get("name") or _LEGACY_ROLE_TITLE,
            "level": _LEGACY_ROLE_LEVEL,
            "score": score if score is not None else 0,
        },
        "averageSalary": rec.get("averageSalary"),
        "jobGrowth": rec.get("jobGrowth"),
    }


def parse_recommendations(raw: Any) -> BackendRecommendationsResponse:
    """Normalize a backend recommendations payload.

    Accepts either the current ``{topMatches, profile, paths}`` shape or the
    legacy ``{recommendations: [...]}`` shape. The legacy list is used when
    ``topMatches`` is missing, null or an empty scalar; an empty
    ``topMatches`` list still counts as the current shape. Non-list
    collections become empty lists and a malformed profile is dropped.

    Args:
        raw: Decoded JSON body.

    Returns:
        Normalized BackendRecommendationsResponse.

    Raises:
        pydantic.ValidationError: If a top match or path entry is malformed.
    """
    if not isinstance(raw, dict):
        raw = {}

    timestamp = raw.get("timestamp")
    if timestamp is not None:
        timestamp = str(timestamp)

    top_matches = raw.get("topMatches")
    has_top_matches = isinstance(top_matches, list | dict) or bool(top_matches)
    if not has_top_matches and isinstance(raw.get("recommendations"), list):
        matches = [
            _legacy_top_match(rec)
            for rec in raw["recommendations"]
            if isinstance(rec, dict)
        ]
        return BackendRecommendationsResponse.model_validate(
            {"topMatches": matches, "paths": [], "timestamp": timestamp}
        )

    paths = raw.get("paths")
    return BackendRecommendationsResponse(
        top_matches=[
            TopMatch.model_validate(m)
            for m in (top_matches if isinstance(top_matches, list) else [])
        ],
        profile=_parse_profile(raw.get("profile")),
        paths=[
            CareerPath.model_validate(p)
            for p in (paths if isinstance(paths, list) else [])
        ],
        timestamp=timestamp,
    )
