"""
Question Generation Prompt Templates

Contains one prompt per assessment section:
- Aptitude & cognitive (objective MCQ with an answer key)
- Behavioral & personality (situational judgment, scored by effectiveness)
- Domain & career fit (role scenarios tied to the candidate's background)

Every prompt asks for a strict JSON array so the generator can validate the
result instead of guessing at prose.
"""

from profiling.models.question import Section
from profiling.models.user import UserInfo


class QuestionPrompts:
    """
    Prompt templates for the psychometric question generator.

    Key principles:
    - One JSON array per batch, nothing else
    - Exactly four options per question
    - Categories are assigned by the caller, not invented by the model
    """

    SYSTEM_CONTEXT = """You are a psychometric assessment question generator for graduate hiring.

Your role:
- Write clear, unambiguous questions suitable for a timed online test
- Never repeat a question within a batch
- Keep stems short and end every stem with an explicit question
- Output only valid JSON, with no commentary or markdown fences
"""

    APTITUDE_GUIDE = """Aptitude Question Design Requirements:
1. NUMERICAL: multi-step problems with percentages, ratios or time-speed-distance
2. VERBAL: analogies, sentence completion and inference at graduate level
3. ABSTRACT: pattern sequences with more than one transformation rule
4. LOGICAL: syllogisms and conditional reasoning with negations
5. SITUATIONAL: workplace problems with constraints and trade-offs

Distractors must be plausible. Exactly one option is correct."""

    BEHAVIORAL_GUIDE = """Behavioral Question Design Requirements:
1. Describe an observable workplace situation and ask what the candidate does
2. Do NOT use Agree/Disagree scales or statements like "I feel" or "I am"
3. Give exactly 4 concrete action options
4. Rate each option's effectiveness for the category's trait from 0 to 100
   (one clearly best option at 100, one clearly poor option at 0)
5. Give a one-sentence rationale for every option

For big_five_* categories, the effectiveness score measures how strongly the
chosen action expresses that trait."""

    DOMAIN_GUIDE = """Domain Question Design Requirements:
1. Present a realistic scenario from the candidate's target field
2. Tie the scenario to the candidate's degree, specialization and skills
3. Give exactly 4 options with exactly one best answer
4. Avoid trivia; test applied judgement and working knowledge"""

    def section_guide(self, section: Section) -> str:
        return {
            Section.APTITUDE: self.APTITUDE_GUIDE,
            Section.BEHAVIORAL: self.BEHAVIORAL_GUIDE,
            Section.DOMAIN: self.DOMAIN_GUIDE,
        }[section]

    def output_schema(self, section: Section) -> str:
        """JSON shape expected back from the model for one section."""
        if section == Section.BEHAVIORAL:
            return """[
    {
        "category": "one of the assigned categories",
        "prompt": "Situation and explicit question",
        "options": ["A", "B", "C", "D"],
        "trait_impact_scores": [100, 50, 25, 0],
        "rationales": ["why A", "why B", "why C", "why D"]
    }
]"""
        return """[
    {
        "category": "one of the assigned categories",
        "prompt": "Question stem",
        "scenario": "Optional context paragraph or null",
        "options": ["A", "B", "C", "D"],
        "correct_option_index": 0
    }
]"""

    def generate_section_prompt(
        self,
        section: Section,
        categories: list[str],
        user_info: UserInfo,
        start_number: int = 1,
    ) -> str:
        """
        Generate prompt for one batch of questions in a section.

        Args:
            section: Section being generated
            categories: Category for each question, in order
            user_info: Candidate profile used for personalization
            start_number: Number of the first question in this batch
        """
        assignments = "\n".join(
            f"Q{start_number + i}: {category}" for i, category in enumerate(categories)
        )

        prompt = f"""=== SECTION ===
Section {section.value}: {section.display_name}

=== CANDIDATE PROFILE ===
{user_info.to_prompt_context()}

=== QUESTION CATEGORIES ===
{assignments}

=== DESIGN GUIDE ===
{self.section_guide(section)}

=== YOUR TASK ===
Generate exactly {len(categories)} questions, one per category line above, in
the same order.

Output a JSON array:
{self.output_schema(section)}

Generate the questions:"""

        return prompt
