"""Results step view model.

Turns a recommendations payload into display-ready match cards. A card
shows the resolved score (or "Score Unavailable"), fit bars, up to three
reasons, the current and next role, and the skill gap block.

When quiz submission was skipped or failed, the session carries no
recommendations; ``load_results`` then falls back to the personalized
recommendations feed and reports an error state if that fails too.
"""

from enum import Enum

import structlog
from pydantic import BaseModel, ConfigDict, Field

from skillx.providers.backend_client import BackendClient
from skillx.providers.errors import ProviderError
from skillx.schemas.assessment import AssessmentSession
from skillx.schemas.recommendations import BackendProfile, BackendRecommendationsResponse
from skillx.services.score_resolution import (
    UNKNOWN_ROLE_LEVEL,
    UNKNOWN_ROLE_TITLE,
    FitBreakdown,
    explain_match,
    fit_breakdown,
    resolve_current_role_title_level,
    resolve_match_score,
    resolve_next_role,
    round_half_up,
)
from skillx.services.skill_gap import SkillGapView, build_skill_gap_view

logger = structlog.get_logger()

SCORE_LABEL = "Match Score"
SCORE_UNAVAILABLE_TEXT = "Score Unavailable"
SCORE_UNAVAILABLE_CAPTION = "Data incomplete - check assessment inputs"
NO_MATCHES_MESSAGE = "No matches found. Try adjusting your inputs."
NO_ROADMAP_BRIEF = "No roadmap brief available."
LOAD_FAILED_TITLE = "Unable to load recommendations"
LOAD_FAILED_FALLBACK_MESSAGE = "Failed to load recommendations"


class ResultsStatus(str, Enum):
    READY = "ready"
    ERROR = "error"


class _ViewModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class ProfileBar(_ViewModel):
    label: str
    percent: int


class ProfileSnapshot(_ViewModel):
    """Profile bars; Big Five and RIASEC scores are 0..1 scaled to 0-100."""

    big_five: list[ProfileBar]
    riasec: list[ProfileBar]
    work_values: dict[str, float]
    learning_style: list[str]


class RoleLine(_ViewModel):
    title: str
    level: str


class MatchCard(_ViewModel):
    """One rendered top match."""

    path_id: str
    name: str
    description: str
    industry: str | None
    average_salary: str | int | float | None
    job_growth: str | int | float | None
    score: int | None
    score_text: str
    score_caption: str
    fit: FitBreakdown | None
    why: list[str]
    current_role: RoleLine
    next_role: RoleLine | None
    skill_gaps: SkillGapView
    roadmap_brief: str


class ResultsSummary(_ViewModel):
    quiz_answers: int
    skills_selected: int
    top_matches: int


class ResultsView(_ViewModel):
    """The whole results step.

    ``status`` is ERROR only when no recommendations could be obtained;
    ``error`` then holds the failure message and ``matches`` is empty.
    """

    status: ResultsStatus
    error_title: str | None = None
    error: str | None = None
    summary: ResultsSummary
    profile: ProfileSnapshot | None = None
    matches: list[MatchCard] = Field(default_factory=list)
    empty_message: str | None = None


def _profile_snapshot(profile: BackendProfile | None) -> ProfileSnapshot | None:
    if profile is None:
        return None
    return ProfileSnapshot(
        big_five=[
            ProfileBar(label=k, percent=round_half_up(v * 100))
            for k, v in profile.big_five.items()
        ],
        riasec=[
            ProfileBar(label=k, percent=round_half_up(v * 100))
            for k, v in profile.riasec.items()
        ],
        work_values=dict(profile.work_values),
        learning_style=list(profile.learning_style),
    )


def _summary(
    session: AssessmentSession, answers: dict[str, int], match_count: int
) -> ResultsSummary:
    return ResultsSummary(
        quiz_answers=len(answers or session.personality),
        skills_selected=len(session.rated_skills()),
        top_matches=match_count,
    )


def build_match_cards(backend: BackendRecommendationsResponse) -> list[MatchCard]:
    """Render every top match, in payload order."""
    cards: list[MatchCard] = []
    for match in backend.top_matches:
        path = backend.find_path(match.path_id)
        score = resolve_match_score(match, path)
        title, level = resolve_current_role_title_level(match, path)
        next_role = resolve_next_role(match, path)
        snapshot = path.current_role if path is not None else None

        next_line = None
        gaps = build_skill_gap_view(None)
        if next_role is not None:
            next_line = RoleLine(
                title=next_role.title or next_role.role_title or UNKNOWN_ROLE_TITLE,
                level=next_role.level or UNKNOWN_ROLE_LEVEL,
            )
            gaps = build_skill_gap_view(next_role.missing_skills)

        cards.append(
            MatchCard(
                path_id=match.path_id,
                name=match.name,
                description=match.description,
                industry=match.industry,
                average_salary=match.average_salary,
                job_growth=match.job_growth,
                score=score,
                score_text=f"{score}%" if score is not None else SCORE_UNAVAILABLE_TEXT,
                score_caption=SCORE_LABEL if score is not None else SCORE_UNAVAILABLE_CAPTION,
                fit=fit_breakdown(snapshot),
                why=explain_match(snapshot),
                current_role=RoleLine(title=title, level=level),
                next_role=next_line,
                skill_gaps=gaps,
                roadmap_brief=(path.description if path and path.description else NO_ROADMAP_BRIEF),
            )
        )
    return cards


def build_results_view(
    session: AssessmentSession,
    backend: BackendRecommendationsResponse,
    answers: dict[str, int] | None = None,
) -> ResultsView:
    """Build the ready-state view from a recommendations payload."""
    cards = build_match_cards(backend)
    return ResultsView(
        status=ResultsStatus.READY,
        summary=_summary(session, answers or {}, len(cards)),
        profile=_profile_snapshot(backend.profile),
        matches=cards,
        empty_message=NO_MATCHES_MESSAGE if not cards else None,
    )


async def load_results(
    session: AssessmentSession,
    client: BackendClient,
    token: str | None,
    answers: dict[str, int] | None = None,
) -> ResultsView:
    """Build the results view, fetching recommendations if the session has none.

    Never raises for backend failures: they produce an ERROR view.
    """
    backend = session.backend
    if backend is None:
        try:
            backend = await client.get_personalized_recommendations(token)
        except ProviderError as exc:
            logger.warning("Fallback recommendations fetch failed", error=str(exc))
            return ResultsView(
                status=ResultsStatus.ERROR,
                error_title=LOAD_FAILED_TITLE,
                error=str(exc) or LOAD_FAILED_FALLBACK_MESSAGE,
                summary=_summary(session, answers or {}, 0),
            )
    return build_results_view(session, backend, answers)
