"""
Tests for category selection, the curated bank and the LLM generator.
"""

import json

import httpx
import pytest

from profiling.config.settings import Settings
from profiling.core.exceptions import ContentGenerationError
from profiling.core.llm_client import LLMClient, LLMResponseError
from profiling.core.question_generator import (
    APTITUDE_CATEGORIES,
    CORE_BEHAVIORAL_CATEGORIES,
    LLMQuestionGenerator,
    QuestionBankGenerator,
    assign_categories,
    behavioral_categories,
    build_content_generator,
    domain_categories,
)
from profiling.models.question import QuestionType, Section


def _completion(content: str) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def _llm_settings(**overrides) -> Settings:
    values = {
        "llm_api_key": "test-key",
        "llm_base_url": "https://llm.test/v1",
        "questions_per_section": 3,
    }
    values.update(overrides)
    return Settings(**values)


def _llm_client(settings: Settings, handler) -> LLMClient:
    return LLMClient(settings, transport=httpx.MockTransport(handler))


class TestCategories:

    def test_behavioral_includes_core_and_profile_categories(self, user_info):
        categories = behavioral_categories(user_info)

        assert categories[: len(CORE_BEHAVIORAL_CATEGORIES)] == CORE_BEHAVIORAL_CATEGORIES
        # soft skills: communication, teamwork / hobbies: reading, travel
        assert "communication_effectiveness" in categories
        assert "teamwork_and_collaboration" in categories
        assert "intellectual_curiosity" in categories
        assert "openness_to_experience" in categories

    def test_domain_categories_follow_profile(self, user_info):
        categories = domain_categories(user_info)

        for expected in (
            "frontend_development",
            "data_analysis",
            "database_management",
            "software_engineering",
            "technical_problem_solving",
            "data_driven_decision_making",
        ):
            assert expected in categories
        assert len(categories) == len(set(categories))

    def test_sparse_profile_gets_fallbacks(self, user_info):
        sparse = user_info.model_copy(
            update={
                "technical_skills": None,
                "soft_skills": None,
                "interests": None,
                "degree": "Diploma",
                "specialization": "History",
            }
        )
        assert domain_categories(sparse) == [
            "career_alignment",
            "domain_expertise",
            "professional_application",
        ]

    def test_assign_categories_cycles_evenly(self):
        assigned = assign_categories(APTITUDE_CATEGORIES, 10)
        assert assigned == APTITUDE_CATEGORIES * 2

    def test_assign_categories_requires_input(self):
        with pytest.raises(ValueError):
            assign_categories([], 3)


class TestQuestionBank:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("section", list(Section))
    async def test_section_counts_and_types(self, settings, user_info, section):
        questions = await QuestionBankGenerator(settings).generate_section(section, user_info)

        assert len(questions) == settings.questions_per_section
        assert all(q.section_number == section.value for q in questions)
        assert all(len(q.options) == 4 for q in questions)

    @pytest.mark.asyncio
    async def test_behavioral_items_are_impact_scored(self, settings, user_info):
        questions = await QuestionBankGenerator(settings).generate_section(
            Section.BEHAVIORAL, user_info
        )
        for question in questions:
            assert question.question_type == QuestionType.SJT
            assert question.correct_option_index is None
            assert len(question.trait_impact_scores) == len(question.options)

    @pytest.mark.asyncio
    async def test_domain_items_mention_career(self, settings, user_info):
        questions = await QuestionBankGenerator(settings).generate_section(
            Section.DOMAIN, user_info
        )
        assert any("Data Engineering" in q.prompt for q in questions)
        assert all(q.is_objective for q in questions)

    @pytest.mark.asyncio
    async def test_content_is_deterministic(self, settings, user_info):
        generator = QuestionBankGenerator(settings)
        first = await generator.generate_section(Section.APTITUDE, user_info)
        second = await generator.generate_section(Section.APTITUDE, user_info)

        assert [q.prompt for q in first] == [q.prompt for q in second]
        assert {q.id for q in first}.isdisjoint({q.id for q in second})

    def test_bank_used_without_api_key(self, settings):
        assert isinstance(build_content_generator(settings), QuestionBankGenerator)


class TestLLMQuestionGenerator:

    @pytest.mark.asyncio
    async def test_parses_valid_items_and_skips_invalid(self, user_info):
        settings = _llm_settings()
        payload = {
            "questions": [
                {
                    "category": "numerical",
                    "prompt": "What is 15% of 200?",
                    "options": ["20", "25", "30", "35"],
                    "correct_option_index": 2,
                },
                {"prompt": "Missing options", "options": ["only one"], "correct_option_index": 0},
                {"prompt": "No key", "options": ["a", "b", "c"]},
            ]
        }
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(json.loads(request.content))
            return httpx.Response(200, json=_completion(f"```json\n{json.dumps(payload)}\n```"))

        generator = LLMQuestionGenerator(_llm_client(settings, handler), settings)
        questions = await generator.generate_section(Section.APTITUDE, user_info)

        assert len(questions) == 1
        assert questions[0].correct_option_index == 2
        assert questions[0].question_type == QuestionType.MCQ
        assert requests[0]["model"] == settings.llm_model
        assert requests[0]["messages"][0]["role"] == "system"

    @pytest.mark.asyncio
    async def test_behavioral_items_keep_impact_scores(self, user_info):
        settings = _llm_settings(questions_per_section=1)
        payload = [
            {
                "category": "leadership",
                "scenario": "A deadline slips.",
                "prompt": "What do you do?",
                "options": ["A", "B", "C", "D"],
                "trait_impact_scores": [0, 50, 100, 25],
                "rationales": ["w", "x", "y", "z"],
                "correct_option_index": 2,
            }
        ]

        def handler(request):
            return httpx.Response(200, json=_completion(json.dumps(payload)))

        generator = LLMQuestionGenerator(_llm_client(settings, handler), settings)
        [question] = await generator.generate_section(Section.BEHAVIORAL, user_info)

        assert question.trait_impact_scores == [0, 50, 100, 25]
        assert question.correct_option_index is None
        assert question.question_type == QuestionType.SJT

    @pytest.mark.asyncio
    async def test_large_sections_are_batched(self, user_info):
        settings = _llm_settings(questions_per_section=25)
        calls = []

        def handler(request):
            calls.append(request)
            items = [
                {"prompt": f"Q{i}", "options": ["a", "b"], "correct_option_index": 0}
                for i in range(10)
            ]
            return httpx.Response(200, json=_completion(json.dumps(items)))

        generator = LLMQuestionGenerator(_llm_client(settings, handler), settings)
        questions = await generator.generate_section(Section.DOMAIN, user_info)

        assert len(calls) == 3
        assert len(questions) == 25

    @pytest.mark.asyncio
    async def test_http_error_becomes_generation_error(self, user_info):
        settings = _llm_settings()

        def handler(request):
            return httpx.Response(503, json={"error": "overloaded"})

        generator = LLMQuestionGenerator(_llm_client(settings, handler), settings)
        with pytest.raises(ContentGenerationError):
            await generator.generate_section(Section.APTITUDE, user_info)

    @pytest.mark.asyncio
    async def test_no_usable_items_is_an_error(self, user_info):
        settings = _llm_settings()

        def handler(request):
            return httpx.Response(200, json=_completion('{"questions": []}'))

        generator = LLMQuestionGenerator(_llm_client(settings, handler), settings)
        with pytest.raises(ContentGenerationError, match="no usable"):
            await generator.generate_section(Section.APTITUDE, user_info)

    def test_llm_used_when_key_configured(self):
        settings = _llm_settings()
        client = _llm_client(settings, lambda request: httpx.Response(200))
        assert isinstance(build_content_generator(settings, client), LLMQuestionGenerator)


class TestExtractJson:

    def test_object_wrapped_in_prose(self):
        text = 'Here you go: {"questions": [1, 2]} Hope this helps.'
        assert LLMClient.extract_json(text) == {"questions": [1, 2]}

    def test_array_in_markdown_fence(self):
        text = '```json\n[{"a": 1}, {"a": 2}]\n```'
        assert LLMClient.extract_json(text) == [{"a": 1}, {"a": 2}]

    def test_no_json(self):
        with pytest.raises(LLMResponseError):
            LLMClient.extract_json("I cannot help with that.")

    def test_multipart_content(self):
        result = {"choices": [{"message": {"content": [{"text": "{\"a\""}, ": 1}"]}}]}
        assert LLMClient._extract_content(result) == '{"a": 1}'
