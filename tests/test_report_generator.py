"""
Tests for report synthesis.
"""

import json

import httpx
import pytest

from profiling.config.settings import Settings
from profiling.core.exceptions import ReportGenerationError
from profiling.core.llm_client import LLMClient
from profiling.core.report_generator import ReportGenerator
from profiling.core.scoring_engine import score_submission
from profiling.models.question import Answer, Section
from profiling.models.report import PerformanceBucket
from profiling.models.session import Session, SessionStatus
from profiling.models.user import Gender

from tests.conftest import make_questions

NARRATIVES = {
    "summary_bio": "A focused engineering graduate.",
    "strengths": ["Numerical reasoning"],
    "weaknesses": ["Time management"],
    "opportunities": ["Data platform roles"],
    "threats": "Competitive market",
    "swot_analysis": "Balanced profile.",
    "fit_analysis": "Strong fit for data engineering.",
    "behavioral_insights": "Open to new experiences.",
    "domain_insights": "Solid fundamentals.",
    "narrative_summary": "Overall a promising candidate.",
}


def _completed_session(user_info) -> Session:
    questions = (
        make_questions(Section.APTITUDE, 4)
        + make_questions(Section.BEHAVIORAL, 2)
        + make_questions(Section.DOMAIN, 2)
    )
    answers = [
        Answer(question_id=questions[0].id, selected_option_index=0),
        Answer(question_id=questions[1].id, selected_option_index=0),
        Answer(question_id=questions[2].id, selected_option_index=0),
        Answer(question_id=questions[4].id, selected_option_index=0),
        Answer(question_id=questions[6].id, selected_option_index=0),
        Answer(question_id=questions[7].id, selected_option_index=0),
    ]
    return Session(
        user_info=user_info,
        status=SessionStatus.COMPLETED,
        questions=questions,
        answers=answers,
        test_results=score_submission(questions, answers),
    )


def _llm(handler) -> tuple[LLMClient, Settings]:
    settings = Settings(llm_api_key="test-key", llm_base_url="https://llm.test/v1")
    return LLMClient(settings, transport=httpx.MockTransport(handler)), settings


class TestTemplateReports:

    @pytest.mark.asyncio
    async def test_scores_and_counts(self, settings, user_info):
        session = _completed_session(user_info)

        report = await ReportGenerator(None, settings).synthesize(session)

        assert report.scores.aptitude == 75.0
        assert report.scores.domain == 100.0
        # One openness answer at impact 100, leadership unanswered
        assert report.scores.behavioral == 100.0
        assert report.big_five.openness == 100
        assert report.total_questions == 8
        assert report.attempted == 6
        assert report.correct == 5
        assert report.performance_bucket == PerformanceBucket.BEST
        assert report.charts.candidate_position == PerformanceBucket.BEST

    @pytest.mark.asyncio
    async def test_template_narratives_use_profile(self, settings, user_info):
        report = await ReportGenerator(None, settings).synthesize(_completed_session(user_info))

        assert "Asha Rao" in report.summary_bio
        assert "Data Engineering" in report.summary_bio
        assert report.strengths
        assert report.narrative_summary.startswith("Asha Rao attempted 6 of 8")
        assert "2 questions were left unattempted" in report.threats

    @pytest.mark.asyncio
    async def test_template_is_deterministic_apart_from_timestamp(self, settings, user_info):
        session = _completed_session(user_info)
        generator = ReportGenerator(None, settings)

        first = await generator.synthesize(session)
        second = await generator.synthesize(session)

        assert first.model_dump(exclude={"generated_at"}) == second.model_dump(exclude={"generated_at"})

    @pytest.mark.asyncio
    async def test_session_without_results(self, settings, user_info):
        session = Session(user_info=user_info, status=SessionStatus.COMPLETED)
        with pytest.raises(ReportGenerationError):
            await ReportGenerator(None, settings).synthesize(session)


class TestLLMReports:

    @pytest.mark.asyncio
    async def test_narratives_from_model(self, user_info):
        prompts = []

        def handler(request):
            body = json.loads(request.content)
            prompts.append(body["messages"][-1]["content"])
            content = json.dumps(NARRATIVES)
            return httpx.Response(200, json={"choices": [{"message": {"content": content}}]})

        client, settings = _llm(handler)
        report = await ReportGenerator(client, settings).synthesize(_completed_session(user_info))

        assert report.summary_bio == NARRATIVES["summary_bio"]
        assert report.threats == ["Competitive market"]
        assert report.scores.aptitude == 75.0
        # Scores in the prompt come from the scoring engine
        assert "75" in prompts[0]

    @pytest.mark.asyncio
    async def test_pronouns_follow_gender(self, user_info):
        prompts = []

        def handler(request):
            prompts.append(json.loads(request.content)["messages"][-1]["content"])
            return httpx.Response(
                200, json={"choices": [{"message": {"content": json.dumps(NARRATIVES)}}]}
            )

        client, settings = _llm(handler)
        generator = ReportGenerator(client, settings)
        await generator.synthesize(_completed_session(user_info))
        female = user_info.model_copy(update={"gender": Gender.FEMALE})
        await generator.synthesize(_completed_session(female))

        assert '"they"' in prompts[0]
        assert '"she"' in prompts[1]

    @pytest.mark.asyncio
    async def test_http_failure(self, user_info):
        client, settings = _llm(lambda request: httpx.Response(500))
        with pytest.raises(ReportGenerationError):
            await ReportGenerator(client, settings).synthesize(_completed_session(user_info))

    @pytest.mark.asyncio
    async def test_missing_required_narratives(self, user_info):
        partial = {k: v for k, v in NARRATIVES.items() if k != "narrative_summary"}

        def handler(request):
            return httpx.Response(
                200, json={"choices": [{"message": {"content": json.dumps(partial)}}]}
            )

        client, settings = _llm(handler)
        with pytest.raises(ReportGenerationError, match="empty narratives"):
            await ReportGenerator(client, settings).synthesize(_completed_session(user_info))
