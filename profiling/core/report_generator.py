"""
Report Generator for the psychometric assessment

Generates candidate reports with:
- Section and overall scores
- Big Five personality profile
- Percentile and performance bucket
- Narrative bio, SWOT and insights

Scores always come from the scoring engine. Narratives come from the LLM
when one is configured, otherwise from deterministic templates.
"""

import logging
from typing import Any, Protocol

import httpx

from profiling.config.settings import Settings, get_settings
from profiling.core import scoring_engine
from profiling.core.exceptions import ReportGenerationError
from profiling.core.llm_client import LLMClient, LLMResponseError
from profiling.models.report import (
    BigFiveScores,
    ChartData,
    PerformanceBucket,
    Report,
    ScoreBreakdown,
)
from profiling.models.session import Session
from profiling.prompts.report import ReportPrompts

logger = logging.getLogger(__name__)

NARRATIVE_TEXT_FIELDS = (
    "summary_bio",
    "swot_analysis",
    "fit_analysis",
    "behavioral_insights",
    "domain_insights",
    "narrative_summary",
)
NARRATIVE_LIST_FIELDS = ("strengths", "weaknesses", "opportunities", "threats")

STRONG_ZONE_THRESHOLD = 70.0
WEAK_ZONE_THRESHOLD = 50.0


class ReportSynthesizer(Protocol):
    """Derives a report from a completed session snapshot."""

    async def synthesize(self, session: Session) -> Report: ...


class ReportGenerator:
    """
    Generates candidate reports.

    Never called directly by request handlers; ReportCache guards it so a
    session's report is produced once and reused.
    """

    def __init__(self, llm: LLMClient | None = None, settings: Settings | None = None):
        """
        Initialize report generator.

        Args:
            llm: LLM client for narrative synthesis, or None for templates
            settings: Application settings
        """
        self.llm = llm
        self.settings = settings or get_settings()
        self.prompts = ReportPrompts()

    async def synthesize(self, session: Session) -> Report:
        """
        Generate the complete report for a scored session.

        Raises:
            ReportGenerationError: If the session has no results or narrative
                synthesis fails
        """
        results = session.test_results
        if results is None:
            raise ReportGenerationError(f"Session {session.session_id} has no test results")

        scores = scoring_engine.calculate_section_scores(session.questions, session.answers)
        big_five = scoring_engine.calculate_big_five(session.questions, session.answers)
        categories = scoring_engine.calculate_category_scores(session.questions, session.answers)
        percentile = scoring_engine.calculate_percentile(scores.overall)
        bucket = scoring_engine.determine_performance_bucket(scores.overall)

        if self.llm is not None:
            narratives = await self._llm_narratives(
                session, scores, big_five, percentile, bucket, categories
            )
        else:
            narratives = self._template_narratives(session, scores, big_five, bucket, categories)

        report = Report(
            session_id=session.session_id,
            user_info=session.user_info,
            **narratives,
            big_five=big_five,
            scores=scores,
            total_questions=results.total_questions,
            attempted=results.attempted,
            correct=results.correct,
            wrong=results.wrong,
            not_attempted=results.not_attempted,
            candidate_percentile=percentile,
            performance_bucket=bucket,
            charts=ChartData(candidate_position=bucket),
        )
        logger.info(
            f"Generated report for {session.session_id}: "
            f"overall {scores.overall:.1f}%, {bucket.value}"
        )
        return report

    # =========================================================================
    # NARRATIVES
    # =========================================================================

    async def _llm_narratives(
        self,
        session: Session,
        scores: ScoreBreakdown,
        big_five: BigFiveScores,
        percentile: float,
        bucket: PerformanceBucket,
        categories: dict[str, float],
    ) -> dict[str, Any]:
        prompt = self.prompts.generate_narrative_prompt(
            session, scores, big_five, percentile, bucket, categories
        )
        try:
            data = await self.llm.complete_json(
                prompt,
                system=self.prompts.SYSTEM_CONTEXT,
                temperature=self.settings.report_temperature,
            )
        except (httpx.HTTPError, LLMResponseError) as e:
            raise ReportGenerationError(f"Report synthesis failed: {e}") from e

        if not isinstance(data, dict):
            raise ReportGenerationError("Report synthesis returned a non-object payload")
        return self._clean_narratives(data)

    @staticmethod
    def _clean_narratives(data: dict[str, Any]) -> dict[str, Any]:
        narratives: dict[str, Any] = {}
        for field in NARRATIVE_TEXT_FIELDS:
            value = data.get(field) or ""
            narratives[field] = value if isinstance(value, str) else str(value)
        for field in NARRATIVE_LIST_FIELDS:
            value = data.get(field) or []
            if isinstance(value, str):
                value = [value]
            narratives[field] = [str(item) for item in value if str(item).strip()]

        if not narratives["summary_bio"] or not narratives["narrative_summary"]:
            raise ReportGenerationError("Report synthesis returned empty narratives")
        return narratives

    def _template_narratives(
        self,
        session: Session,
        scores: ScoreBreakdown,
        big_five: BigFiveScores,
        bucket: PerformanceBucket,
        categories: dict[str, float],
    ) -> dict[str, Any]:
        user = session.user_info
        results = session.test_results

        def label(category: str) -> str:
            return category.replace("_", " ").title()

        ranked = sorted(categories.items(), key=lambda item: item[1], reverse=True)
        strong = [f"{label(c)} ({v:.0f}%)" for c, v in ranked if v >= STRONG_ZONE_THRESHOLD][:5]
        weak = [f"{label(c)} ({v:.0f}%)" for c, v in reversed(ranked) if v < WEAK_ZONE_THRESHOLD][:5]

        section_lines = {
            "Aptitude": scores.aptitude,
            "Behavioral": scores.behavioral,
            "Domain": scores.domain,
        }
        best_section = max(section_lines, key=section_lines.get)
        worst_section = min(section_lines, key=section_lines.get)

        summary_bio = (
            f"{user.name} holds a {user.degree} with a specialization in {user.specialization} "
            f"and is pursuing a career in {user.career_interest}."
        )
        if user.technical_skills:
            summary_bio += f" Technical skills include {user.technical_skills.strip()}."
        if user.soft_skills:
            summary_bio += f" Interpersonal strengths include {user.soft_skills.strip()}."

        strengths = strong or [f"Strongest section: {best_section} ({section_lines[best_section]:.0f}%)"]
        weaknesses = weak or [f"Weakest section: {worst_section} ({section_lines[worst_section]:.0f}%)"]
        opportunities = [
            f"Build on {best_section.lower()} performance in {user.career_interest} roles",
            "Pursue certifications aligned with the target career",
        ]
        threats = [f"Gaps in {w.split(' (')[0].lower()} may slow progress" for w in weak[:3]]
        if results.not_attempted:
            threats.append(f"{results.not_attempted} questions were left unattempted")

        return {
            "summary_bio": summary_bio,
            "strengths": strengths,
            "weaknesses": weaknesses,
            "opportunities": opportunities,
            "threats": threats,
            "swot_analysis": (
                f"Strengths centre on {best_section.lower()} ability while "
                f"{worst_section.lower()} needs the most attention."
            ),
            "fit_analysis": (
                f"An overall score of {scores.overall:.1f}% places the candidate in the "
                f"{bucket.value} bucket for {user.career_interest}. {bucket.description}"
            ),
            "behavioral_insights": (
                f"Behavioral effectiveness is {scores.behavioral:.1f}%. Big Five profile: "
                f"openness {big_five.openness}, conscientiousness {big_five.conscientiousness}, "
                f"extraversion {big_five.extraversion}, agreeableness {big_five.agreeableness}, "
                f"neuroticism {big_five.neuroticism}."
            ),
            "domain_insights": f"Domain score is {scores.domain:.1f}% for {user.specialization}.",
            "narrative_summary": (
                f"{user.name} attempted {results.attempted} of {results.total_questions} questions, "
                f"answering {results.correct} correctly and {results.wrong} incorrectly. "
                f"Section scores were aptitude {scores.aptitude:.1f}%, behavioral "
                f"{scores.behavioral:.1f}% and domain {scores.domain:.1f}%."
            ),
        }
