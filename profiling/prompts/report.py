"""
AI Report Narrative Prompts

Contains the prompt for synthesizing the narrative half of a candidate
report. Scores are computed deterministically before the prompt is built;
the model only writes prose around them.
"""

from profiling.models.report import BigFiveScores, PerformanceBucket, ScoreBreakdown
from profiling.models.session import Session
from profiling.models.user import Gender


PRONOUNS = {
    Gender.MALE: ("he", "him", "his"),
    Gender.FEMALE: ("she", "her", "her"),
}


class ReportPrompts:
    """
    Prompt templates for report narratives.

    Used to produce:
    - A professional bio
    - SWOT lists and analysis
    - Career fit, behavioral and domain insights
    - An overall narrative summary
    """

    SYSTEM_CONTEXT = """You are a professional psychometric assessment analyst writing a candidate talent report.

Your role:
- Ground every statement in the scores and profile provided
- Be encouraging but honest
- Give specific, practical suggestions
- Never invent test results
"""

    def pronoun_instruction(self, session: Session) -> str:
        subject, obj, possessive = PRONOUNS.get(
            session.user_info.gender, ("they", "them", "their")
        )
        return (
            f'Refer to the candidate as "{subject}" / "{obj}" / "{possessive}" '
            "consistently in every field."
        )

    def generate_narrative_prompt(
        self,
        session: Session,
        scores: ScoreBreakdown,
        big_five: BigFiveScores,
        percentile: float,
        bucket: PerformanceBucket,
        category_scores: dict[str, float],
    ) -> str:
        """Generate prompt for the full set of report narratives."""
        results = session.test_results

        if category_scores:
            ranked = sorted(category_scores.items(), key=lambda item: item[1], reverse=True)
            category_text = "\n".join(
                f"- {name.replace('_', ' ').title()}: {value:.1f}%" for name, value in ranked
            )
        else:
            category_text = "- No category-level data available"

        prompt = f"""{self.pronoun_instruction(session)}

=== CANDIDATE PROFILE ===
{session.user_info.to_prompt_context()}

=== TEST PERFORMANCE ===
Aptitude Score: {scores.aptitude:.1f}%
Behavioral Score: {scores.behavioral:.1f}%
Domain Score: {scores.domain:.1f}%
Overall Score: {scores.overall:.1f}%
Candidate Percentile: {percentile:.0f}
Performance Bucket: {bucket.value} ({bucket.description})
Total Questions: {results.total_questions}
Attempted: {results.attempted}
Correct: {results.correct}
Wrong: {results.wrong}

=== CATEGORY BREAKDOWN ===
{category_text}

=== BIG FIVE PERSONALITY TRAITS (0-100) ===
Openness: {big_five.openness}
Conscientiousness: {big_five.conscientiousness}
Extraversion: {big_five.extraversion}
Agreeableness: {big_five.agreeableness}
Neuroticism: {big_five.neuroticism}

=== YOUR TASK ===
Write the narrative sections of the report for a {session.user_info.career_interest} career path.

Output JSON:
{{
    "summary_bio": "8-12 sentence professional bio covering education, goals, skills and interests",
    "strengths": ["3-5 specific strengths"],
    "weaknesses": ["3-5 specific weaknesses"],
    "opportunities": ["3-5 career opportunities"],
    "threats": ["3-5 risks to career progress"],
    "swot_analysis": "One paragraph tying the SWOT lists together",
    "fit_analysis": "How well the candidate fits the target career",
    "behavioral_insights": "What the behavioral and Big Five results show",
    "domain_insights": "What the domain results show",
    "narrative_summary": "4-6 paragraph overall performance narrative with a concrete improvement plan"
}}

Write the report:"""

        return prompt
