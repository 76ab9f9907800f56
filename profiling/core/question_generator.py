"""
Question generators for the three assessment sections.

Two implementations share one async contract:
- LLMQuestionGenerator: personalized questions from a chat completion model
- QuestionBankGenerator: curated deterministic bank, used when no model is configured

Both raise ContentGenerationError on failure. Neither ever pads a section
with placeholder text.
"""

import asyncio
import logging
from typing import Any, Protocol

import httpx
from pydantic import ValidationError

from profiling.config.settings import Settings, get_settings
from profiling.core.exceptions import ContentGenerationError
from profiling.core.llm_client import LLMClient, LLMResponseError
from profiling.models.question import Question, QuestionType, Section
from profiling.models.user import UserInfo
from profiling.prompts.generator import QuestionPrompts

logger = logging.getLogger(__name__)

BATCH_SIZE = 10

SECTION_QUESTION_TYPES = {
    Section.APTITUDE: QuestionType.MCQ,
    Section.BEHAVIORAL: QuestionType.SJT,
    Section.DOMAIN: QuestionType.SCENARIO,
}


class ContentGenerator(Protocol):
    """Produces the questions for one section of a candidate's test."""

    async def generate_section(
        self, section: Section, user_info: UserInfo
    ) -> list[Question]: ...


# =============================================================================
# CATEGORY SELECTION
# =============================================================================

APTITUDE_CATEGORIES = ["numerical", "verbal", "situational", "abstract", "logical"]

CORE_BEHAVIORAL_CATEGORIES = [
    "conflict_resolution",
    "attention_to_detail",
    "leadership",
    "adaptability",
    "big_five_openness",
    "big_five_conscientiousness",
    "big_five_extraversion",
    "big_five_agreeableness",
    "big_five_neuroticism",
]

# category -> keywords looked up in the candidate's soft skills
SOFT_SKILL_CATEGORIES = {
    "communication_effectiveness": ("communication", "verbal", "presentation"),
    "teamwork_and_collaboration": ("teamwork", "collaboration", "cooperation"),
    "problem_solving_approach": ("problem", "critical", "analytical"),
    "creativity_and_innovation": ("creativity", "innovation", "creative"),
    "time_management": ("time", "organization", "planning"),
    "emotional_intelligence": ("empathy", "emotional", "interpersonal"),
    "resilience_and_perseverance": ("resilience", "perseverance", "persistence"),
}

HOBBY_CATEGORIES = {
    "intellectual_curiosity": ("reading", "book", "literature"),
    "artistic_expression": ("music", "singing", "instrument"),
    "discipline_and_commitment": ("sport", "fitness", "exercise", "gym"),
    "aesthetic_sensitivity": ("photography", "art", "design", "drawing"),
    "openness_to_experience": ("travel", "exploration", "adventure"),
    "self_expression": ("writing", "blog", "journal"),
    "social_responsibility": ("volunteer", "community", "social"),
    "patience_and_precision": ("cooking", "culinary", "baking"),
    "strategic_thinking": ("gaming", "video game", "esports"),
    "coordination_and_expression": ("dance", "dancing", "choreography"),
}

TECH_SKILL_CATEGORIES = {
    "frontend_development": ("react", "javascript", "frontend"),
    "backend_development": ("node", "backend", "api"),
    "data_analysis": ("python", "data", "analytics"),
    "database_management": ("sql", "database"),
    "enterprise_development": ("java", "spring"),
}

DOMAIN_SOFT_SKILL_CATEGORIES = {
    "leadership_application": ("leadership", "management"),
    "communication_skills": ("communication", "collaboration"),
}

SPECIALIZATION_CATEGORIES = {
    ("software_engineering", "system_design"): ("cse", "computer", "it"),
    ("financial_analysis", "financial_planning"): ("finance", "accounting"),
    ("marketing_strategy", "business_development"): ("marketing", "business"),
}

# Checked in order; the first matching degree wins
DEGREE_CATEGORIES = [
    (("b.tech", "btech", "cs", "it"), ("technical_problem_solving", "engineering_principles")),
    (("bba",), ("business_analysis", "operational_excellence")),
    (("b.com", "bcom"), ("commercial_awareness", "financial_literacy")),
    (("mba",), ("strategic_thinking", "organizational_management")),
]

INTEREST_CATEGORIES = {
    "design_thinking": ("design", "product"),
    "data_driven_decision_making": ("data", "analytics"),
    "entrepreneurial_mindset": ("entrepreneurship", "startup"),
}

DOMAIN_FALLBACK_CATEGORIES = ["career_alignment", "domain_expertise", "professional_application"]


def _matches(text: str | None, keywords: tuple[str, ...]) -> bool:
    lowered = (text or "").lower()
    return any(keyword in lowered for keyword in keywords)


def aptitude_categories(user_info: UserInfo | None = None) -> list[str]:
    return list(APTITUDE_CATEGORIES)


def behavioral_categories(user_info: UserInfo) -> list[str]:
    """Core personality categories plus ones suggested by soft skills and hobbies."""
    categories = list(CORE_BEHAVIORAL_CATEGORIES)
    for category, keywords in SOFT_SKILL_CATEGORIES.items():
        if _matches(user_info.soft_skills, keywords):
            categories.append(category)
    for category, keywords in HOBBY_CATEGORIES.items():
        if _matches(user_info.hobbies, keywords):
            categories.append(category)
    return categories


def domain_categories(user_info: UserInfo) -> list[str]:
    """
    Categories for the domain section.

    Most weight comes from technical skills and specialization, the rest from
    degree and interests. Generic career categories are added when the
    profile yields too few.
    """
    categories: list[str] = []
    for category, keywords in TECH_SKILL_CATEGORIES.items():
        if _matches(user_info.technical_skills, keywords):
            categories.append(category)
    for category, keywords in DOMAIN_SOFT_SKILL_CATEGORIES.items():
        if _matches(user_info.soft_skills, keywords):
            categories.append(category)
    for pair, keywords in SPECIALIZATION_CATEGORIES.items():
        if _matches(user_info.specialization, keywords):
            categories.extend(pair)
    for keywords, pair in DEGREE_CATEGORIES:
        if _matches(user_info.degree, keywords):
            categories.extend(pair)
            break
    for category, keywords in INTEREST_CATEGORIES.items():
        if _matches(user_info.interests, keywords):
            categories.append(category)

    if len(categories) < 10:
        categories.extend(DOMAIN_FALLBACK_CATEGORIES)

    # Preserve first occurrence order
    return list(dict.fromkeys(categories))


def categories_for(section: Section, user_info: UserInfo) -> list[str]:
    builders = {
        Section.APTITUDE: aptitude_categories,
        Section.BEHAVIORAL: behavioral_categories,
        Section.DOMAIN: domain_categories,
    }
    return builders[section](user_info)


def assign_categories(categories: list[str], count: int) -> list[str]:
    """Cycle through categories so each gets an equal share of ``count`` questions."""
    if not categories:
        raise ValueError("At least one category is required")
    return [categories[i % len(categories)] for i in range(count)]


# =============================================================================
# LLM GENERATOR
# =============================================================================


class LLMQuestionGenerator:
    """
    Generates personalized questions with a chat completion model.

    A section is requested in batches of BATCH_SIZE that run concurrently.
    Items that fail validation are dropped; a section with no valid items
    is an error.
    """

    def __init__(self, llm: LLMClient, settings: Settings | None = None):
        self.llm = llm
        self.settings = settings or get_settings()
        self.prompts = QuestionPrompts()

    async def generate_section(self, section: Section, user_info: UserInfo) -> list[Question]:
        total = self.settings.questions_per_section
        assigned = assign_categories(categories_for(section, user_info), total)

        batches = [
            (start, assigned[start:start + BATCH_SIZE])
            for start in range(0, total, BATCH_SIZE)
        ]
        logger.info(
            f"Generating section {section.value} ({section.display_name}): "
            f"{total} questions in {len(batches)} batches"
        )

        try:
            results = await asyncio.gather(
                *(
                    self._generate_batch(section, categories, user_info, start + 1)
                    for start, categories in batches
                )
            )
        except (httpx.HTTPError, LLMResponseError) as e:
            raise ContentGenerationError(
                f"Section {section.value} generation failed: {e}"
            ) from e

        questions = [q for batch in results for q in batch]
        if not questions:
            raise ContentGenerationError(
                f"Section {section.value} generation returned no usable questions"
            )
        if len(questions) < total:
            logger.warning(
                f"Section {section.value} generated {len(questions)} of {total} questions"
            )
        return questions

    async def _generate_batch(
        self,
        section: Section,
        categories: list[str],
        user_info: UserInfo,
        start_number: int,
    ) -> list[Question]:
        prompt = self.prompts.generate_section_prompt(
            section, categories, user_info, start_number=start_number
        )
        data = await self.llm.complete_json(
            prompt,
            system=self.prompts.SYSTEM_CONTEXT,
            temperature=self.settings.question_temperature,
        )
        if isinstance(data, dict):
            data = data.get("questions", [])
        if not isinstance(data, list):
            raise LLMResponseError(f"Expected a JSON array, got {type(data).__name__}")

        questions = []
        for i, item in enumerate(data[: len(categories)]):
            question = self._parse_question(section, item, categories[i])
            if question is not None:
                questions.append(question)
        return questions

    def _parse_question(
        self, section: Section, item: Any, default_category: str
    ) -> Question | None:
        if not isinstance(item, dict):
            logger.warning(f"Skipping non-object question item: {item!r}")
            return None

        fields = {
            "section_number": section.value,
            "category": item.get("category") or default_category,
            "question_type": SECTION_QUESTION_TYPES[section],
            "prompt": item.get("prompt") or item.get("question") or "",
            "scenario": item.get("scenario"),
            "options": item.get("options") or [],
        }
        if section == Section.BEHAVIORAL:
            fields["trait_impact_scores"] = item.get("trait_impact_scores")
            fields["rationales"] = item.get("rationales")
        else:
            fields["correct_option_index"] = item.get("correct_option_index")

        try:
            question = Question(**fields)
        except ValidationError as e:
            logger.warning(f"Skipping invalid question in section {section.value}: {e}")
            return None

        if len(question.options) < 2:
            logger.warning(f"Skipping question with fewer than two options: {question.prompt[:50]}")
            return None
        if section != Section.BEHAVIORAL and question.correct_option_index is None:
            logger.warning(f"Skipping objective question without answer key: {question.prompt[:50]}")
            return None
        return question


# =============================================================================
# CURATED BANK
# =============================================================================

# (category, prompt, options, correct_option_index)
APTITUDE_BANK = [
    (
        "numerical",
        "A product's price rose by 20% and then fell by 15%. The final price is $408. What was the original price?",
        ["$380", "$400", "$420", "$450"],
        1,
    ),
    (
        "verbal",
        "Ephemeral is to Permanent as Verbose is to:",
        ["Talkative", "Concise", "Loud", "Complex"],
        1,
    ),
    (
        "situational",
        "Three tasks are due today: one takes 4 hours, two take 1 hour each, and you have 5 hours. The 4-hour task blocks a teammate. What is the best order?",
        [
            "Do both 1-hour tasks first",
            "Do the 4-hour task first, then one 1-hour task",
            "Split time equally across all three",
            "Ask to move all deadlines",
        ],
        1,
    ),
    (
        "abstract",
        "In a sequence each shape rotates 90 degrees clockwise and gains one side: triangle at 0, square at 90, pentagon at 180. What comes next?",
        ["Hexagon at 270", "Hexagon at 180", "Pentagon at 270", "Heptagon at 0"],
        0,
    ),
    (
        "logical",
        "All analysts are graduates. Some graduates are managers. No managers are interns. Which statement must be true?",
        [
            "Some analysts are managers",
            "No analysts are interns",
            "No graduates are interns",
            "None of the above must be true",
        ],
        3,
    ),
    (
        "numerical",
        "A train covers 180 km at 60 km/h and returns at 90 km/h. What is its average speed for the round trip?",
        ["72 km/h", "75 km/h", "78 km/h", "80 km/h"],
        0,
    ),
    (
        "verbal",
        "Choose the word that best completes the sentence: The committee's decision was ____, leaving no room for further appeal.",
        ["tentative", "ambiguous", "conclusive", "provisional"],
        2,
    ),
    (
        "situational",
        "A client needs a report by Friday but the data will arrive Thursday evening. What is the most effective plan?",
        [
            "Wait for the data and work overnight",
            "Build the report template and analysis on sample data now",
            "Tell the client the deadline is impossible",
            "Deliver last month's report instead",
        ],
        1,
    ),
    (
        "abstract",
        "What number comes next: 2, 6, 12, 20, 30, ?",
        ["36", "40", "42", "44"],
        2,
    ),
    (
        "logical",
        "If it rains, the match is cancelled. The match was not cancelled. What follows?",
        ["It rained", "It did not rain", "The match was postponed", "Nothing can be concluded"],
        1,
    ),
]

# (category, scenario, prompt, options, trait_impact_scores, rationales)
BEHAVIORAL_BANK = [
    (
        "conflict_resolution",
        "Two team members strongly disagree on how to complete a task.",
        "What do you usually do first?",
        [
            "Allow them to resolve it on their own",
            "Take control and decide the solution yourself",
            "Listen to both sides and help reach a compromise",
            "Escalate the issue to a senior authority",
        ],
        [50, 25, 100, 0],
        [
            "Gives them space, but the disagreement may intensify without guidance.",
            "Ends the conflict quickly, but reduces ownership and misses context.",
            "Balances viewpoints and de-escalates while keeping the team aligned.",
            "Escalating immediately undermines trust and skips direct resolution.",
        ],
    ),
    (
        "attention_to_detail",
        "You notice a small error in your work just before submission, and fixing it may delay the deadline.",
        "What do you do?",
        [
            "Submit the work as it is to meet the deadline",
            "Fix the error and inform the concerned person about the delay",
            "Ignore the error since it is minor",
            "Ask someone else to review and decide",
        ],
        [25, 100, 0, 50],
        [
            "Meets timing but risks quality and credibility.",
            "Protects quality and communicates the impact on timelines.",
            "Knowingly shipping an error shows low accountability.",
            "Reduces risk, but avoids taking ownership of the fix.",
        ],
    ),
    (
        "leadership",
        "Your team is falling behind schedule and motivation is low.",
        "What is your most likely action?",
        [
            "Focus only on completing your own assigned tasks",
            "Inform the manager about the team's performance",
            "Motivate the team, redistribute tasks, and set short goals",
            "Wait for instructions from leadership",
        ],
        [0, 50, 100, 25],
        [
            "Helps your output but ignores the team's shared risk.",
            "Escalation helps, but does not restore momentum directly.",
            "Creates structure and improves execution through clear ownership.",
            "Waiting delays action and worsens the schedule.",
        ],
    ),
    (
        "adaptability",
        "You are asked to work on a task that needs a tool you have never used.",
        "How do you respond?",
        [
            "Decline the task due to lack of experience",
            "Ask for the task to be reassigned",
            "Learn the basics quickly and attempt the task",
            "Delay the task until formal training is provided",
        ],
        [0, 25, 100, 50],
        [
            "Avoids short-term risk but blocks growth.",
            "May protect quality, but reduces flexibility.",
            "Shows learning agility while still delivering progress.",
            "Training helps, but waiting risks the timeline.",
        ],
    ),
    (
        "big_five_openness",
        "Your team is offered a chance to pilot an unfamiliar new process.",
        "What do you do?",
        [
            "Volunteer to try it and share what you learn",
            "Try it only if everyone else agrees",
            "Stick with the current process",
            "Argue against the pilot",
        ],
        [100, 50, 25, 0],
        [
            "Actively seeks new experiences and spreads learning.",
            "Open to change but dependent on the group.",
            "Prefers familiar routines.",
            "Resists new approaches.",
        ],
    ),
    (
        "big_five_conscientiousness",
        "You receive critical feedback on your work.",
        "What is your usual reaction?",
        [
            "Feel discouraged and lose motivation",
            "Ignore the feedback",
            "Defend your work without considering the feedback",
            "Analyze the feedback and improve your performance",
        ],
        [25, 0, 50, 100],
        [
            "Lets the feedback reduce effort.",
            "Misses an opportunity to improve.",
            "Engages, but without acting on the substance.",
            "Turns feedback into a concrete improvement plan.",
        ],
    ),
    (
        "big_five_extraversion",
        "You join a new team where you do not know anyone.",
        "How do you usually start?",
        [
            "Introduce yourself to everyone and suggest a team lunch",
            "Talk to people when they approach you",
            "Keep to yourself until the work requires contact",
            "Communicate only through written messages",
        ],
        [100, 50, 25, 0],
        [
            "Seeks social contact and energy from the group.",
            "Sociable when prompted.",
            "Reserved, engaging only when needed.",
            "Avoids direct social contact.",
        ],
    ),
    (
        "big_five_agreeableness",
        "A colleague asks for help while you are busy with your own deadline.",
        "What do you do?",
        [
            "Refuse without explanation",
            "Help them right away and let your own work slip",
            "Agree a time to help that fits both deadlines",
            "Point them to documentation and move on",
        ],
        [0, 50, 100, 25],
        [
            "Dismissive of a colleague's needs.",
            "Cooperative, but at the cost of your own commitments.",
            "Cooperative while keeping commitments realistic.",
            "Somewhat helpful but distant.",
        ],
    ),
    (
        "big_five_neuroticism",
        "A project you led receives unexpected public criticism.",
        "How do you react?",
        [
            "Stay calm and review what can be improved",
            "Feel uneasy but carry on as normal",
            "Worry about it for several days",
            "Lose sleep and consider quitting the project",
        ],
        [0, 25, 75, 100],
        [
            "Emotionally stable under pressure.",
            "Mild stress that does not affect work.",
            "Noticeable and lasting stress response.",
            "Strong stress reaction affecting commitment.",
        ],
    ),
    (
        "adaptability",
        "Priorities change halfway through a sprint.",
        "What do you do?",
        [
            "Continue with the original plan",
            "Re-plan with the team around the new priorities",
            "Wait for the next sprint to adjust",
            "Complain that the change is unfair",
        ],
        [25, 100, 50, 0],
        [
            "Consistent, but ignores the new reality.",
            "Adjusts quickly and keeps the team aligned.",
            "Defers adjustment and loses time.",
            "Unproductive response to change.",
        ],
    ),
]

# (prompt template, options, correct_option_index); {category} and {career} are filled in
DOMAIN_BANK = [
    (
        "In {category}, a stakeholder asks you to deliver a result faster than your usual process allows. As someone pursuing {career}, what is the best first step?",
        [
            "Skip quality checks to meet the request",
            "Clarify the actual deadline and agree a reduced scope",
            "Refuse the request",
            "Hand the work to someone else",
        ],
        1,
    ),
    (
        "You are new to a {career} role and find an inconsistency in existing {category} work done by a senior colleague. What do you do?",
        [
            "Silently fix it",
            "Ignore it because they are senior",
            "Raise it with them privately and propose a fix",
            "Report it to management immediately",
        ],
        2,
    ),
    (
        "A {career} project in {category} has two possible approaches: one proven and slow, one new and fast but untested. What is the best way to decide?",
        [
            "Always choose the new approach",
            "Always choose the proven approach",
            "Run a small time-boxed trial of the new approach against clear criteria",
            "Let the client decide without input",
        ],
        2,
    ),
    (
        "Which habit most improves long-term performance in {category} for someone targeting {career}?",
        [
            "Working longer hours",
            "Regular practice with feedback on real problems",
            "Memorizing definitions",
            "Avoiding unfamiliar tasks",
        ],
        1,
    ),
    (
        "A client reports that your {category} deliverable does not meet their needs, though it matches the written brief. What is the most professional response?",
        [
            "Point out that the brief was followed",
            "Rework it without discussion",
            "Meet to understand the gap and agree on changes and timeline",
            "Offer a discount instead of changes",
        ],
        2,
    ),
]


class QuestionBankGenerator:
    """
    Builds sections from a curated question bank.

    Content depends only on the section, the candidate profile and
    ``questions_per_section``, so repeated calls give the same questions
    (with fresh ids).
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()

    async def generate_section(self, section: Section, user_info: UserInfo) -> list[Question]:
        total = self.settings.questions_per_section
        builders = {
            Section.APTITUDE: self._aptitude,
            Section.BEHAVIORAL: self._behavioral,
            Section.DOMAIN: self._domain,
        }
        questions = builders[section](user_info, total)
        logger.info(f"Built {len(questions)} bank questions for section {section.value}")
        return questions

    def _aptitude(self, user_info: UserInfo, total: int) -> list[Question]:
        questions = []
        for i in range(total):
            category, prompt, options, correct = APTITUDE_BANK[i % len(APTITUDE_BANK)]
            questions.append(
                Question(
                    section_number=Section.APTITUDE.value,
                    category=category,
                    question_type=QuestionType.MCQ,
                    prompt=prompt,
                    options=list(options),
                    correct_option_index=correct,
                )
            )
        return questions

    def _behavioral(self, user_info: UserInfo, total: int) -> list[Question]:
        questions = []
        for i in range(total):
            category, scenario, prompt, options, impacts, rationales = BEHAVIORAL_BANK[
                i % len(BEHAVIORAL_BANK)
            ]
            questions.append(
                Question(
                    section_number=Section.BEHAVIORAL.value,
                    category=category,
                    question_type=QuestionType.SJT,
                    scenario=scenario,
                    prompt=prompt,
                    options=list(options),
                    trait_impact_scores=list(impacts),
                    rationales=list(rationales),
                )
            )
        return questions

    def _domain(self, user_info: UserInfo, total: int) -> list[Question]:
        categories = assign_categories(domain_categories(user_info), total)
        questions = []
        for i, category in enumerate(categories):
            template, options, correct = DOMAIN_BANK[i % len(DOMAIN_BANK)]
            questions.append(
                Question(
                    section_number=Section.DOMAIN.value,
                    category=category,
                    question_type=QuestionType.SCENARIO,
                    prompt=template.format(
                        category=category.replace("_", " "),
                        career=user_info.career_interest,
                    ),
                    options=list(options),
                    correct_option_index=correct,
                )
            )
        return questions


def build_content_generator(
    settings: Settings, llm: LLMClient | None = None
) -> ContentGenerator:
    """Use the model when one is configured, otherwise the curated bank."""
    if llm is not None and settings.llm_enabled:
        return LLMQuestionGenerator(llm, settings)
    logger.info("No LLM configured, using curated question bank")
    return QuestionBankGenerator(settings)
