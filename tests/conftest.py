"""
Pytest configuration and shared fixtures for testing.
"""

import asyncio
from collections import Counter

import pytest

from profiling.api.dependencies import build_session_service
from profiling.config.settings import Settings
from profiling.core.exceptions import ContentGenerationError, ReportGenerationError
from profiling.core.session_store import InMemorySessionStore
from profiling.models.question import Question, QuestionType, Section
from profiling.models.report import ChartData, PerformanceBucket, Report
from profiling.models.session import Session, SessionStatus
from profiling.models.user import UserInfo


def make_questions(section: Section, count: int = 3) -> list[Question]:
    """Objective items for aptitude/domain, impact-scored SJT items for behavioral."""
    questions = []
    for i in range(count):
        if section == Section.BEHAVIORAL:
            questions.append(
                Question(
                    section_number=section.value,
                    category="big_five_openness" if i % 2 == 0 else "leadership",
                    question_type=QuestionType.SJT,
                    prompt=f"Behavioral question {i + 1}",
                    options=["A", "B", "C", "D"],
                    trait_impact_scores=[100, 50, 25, 0],
                    rationales=["best", "ok", "weak", "poor"],
                )
            )
        else:
            questions.append(
                Question(
                    section_number=section.value,
                    category="numerical" if section == Section.APTITUDE else "career_alignment",
                    question_type=QuestionType.MCQ,
                    prompt=f"{section.display_name} question {i + 1}",
                    options=["A", "B", "C", "D"],
                    correct_option_index=0,
                )
            )
    return questions


def make_objective_questions(count: int) -> list[Question]:
    return [
        Question(
            section_number=Section.APTITUDE.value,
            category="logical",
            prompt=f"Question {i + 1}",
            options=["A", "B", "C", "D"],
            correct_option_index=1,
        )
        for i in range(count)
    ]


class FakeGenerator:
    """
    Scriptable content generator.

    ``gates`` hold a section back until its event is set; ``failures`` makes a
    section raise for its first N calls (or forever with a large N).
    """

    def __init__(
        self,
        per_section: int = 3,
        gates: dict[Section, asyncio.Event] | None = None,
        failures: dict[Section, int] | None = None,
        empty: set[Section] | None = None,
    ):
        self.per_section = per_section
        self.gates = gates or {}
        self.failures = failures or {}
        self.empty = empty or set()
        self.calls: Counter = Counter()

    async def generate_section(self, section: Section, user_info: UserInfo) -> list[Question]:
        self.calls[section] += 1
        gate = self.gates.get(section)
        if gate is not None:
            await gate.wait()
        if self.calls[section] <= self.failures.get(section, 0):
            raise ContentGenerationError(f"{section.key} generator unavailable")
        if section in self.empty:
            return []
        return make_questions(section, self.per_section)


class FakeSynthesizer:
    """Counts calls; can be slowed down or made to fail."""

    def __init__(self, delay: float = 0.0, fail_times: int = 0):
        self.delay = delay
        self.fail_times = fail_times
        self.calls = 0

    async def synthesize(self, session: Session) -> Report:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.calls <= self.fail_times:
            raise ReportGenerationError("narrative service unavailable")
        results = session.test_results
        return Report(
            session_id=session.session_id,
            user_info=session.user_info,
            summary_bio=f"Report #{self.calls} for {session.user_info.name}",
            narrative_summary="Summary",
            total_questions=results.total_questions,
            attempted=results.attempted,
            correct=results.correct,
            wrong=results.wrong,
            not_attempted=results.not_attempted,
            performance_bucket=PerformanceBucket.GOOD,
            charts=ChartData(candidate_position=PerformanceBucket.GOOD),
        )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        llm_api_key="",
        questions_per_section=3,
        generation_max_attempts=2,
        generation_retry_backoff_seconds=0.0,
        section_timeout_seconds=2.0,
        session_store_backend="memory",
        proctoring_write_attempts=2,
    )


@pytest.fixture
def user_info() -> UserInfo:
    return UserInfo(
        name="Asha Rao",
        email="asha.rao@example.com",
        phone="9876543210",
        age=22,
        degree="B.Tech",
        specialization="Computer Science",
        career_interest="Data Engineering",
        technical_skills="Python, SQL, React",
        soft_skills="communication, teamwork",
        interests="data analytics",
        hobbies="reading, travel",
    )


@pytest.fixture
def store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def generator() -> FakeGenerator:
    return FakeGenerator()


@pytest.fixture
def synthesizer() -> FakeSynthesizer:
    return FakeSynthesizer()


@pytest.fixture
def service(settings, store, generator, synthesizer):
    return build_session_service(
        settings, store=store, generator=generator, synthesizer=synthesizer
    )


@pytest.fixture
def ready_session_factory(store, user_info):
    """Persist a READY session holding the given questions."""

    async def _create(questions: list[Question], status: SessionStatus = SessionStatus.READY) -> Session:
        session = Session(
            user_info=user_info,
            status=status,
            aptitude_ready=True,
            behavioral_ready=True,
            domain_ready=True,
            questions=questions,
        )
        return await store.create(session)

    return _create
