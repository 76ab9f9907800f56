"""
Scoring Engine

Pure functions, no I/O. Turns a question set and a submitted answer set into
immutable TestResults, and derives the report's score breakdown from the
same inputs.

Trust boundary: correct/wrong are always re-derived from the answer key;
review-marking counts come from the client and are only range-checked.
"""

import logging
from datetime import datetime

from profiling.core.exceptions import SubmissionValidationError
from profiling.models.question import Answer, Question, Section
from profiling.models.report import BigFiveScores, PerformanceBucket, ScoreBreakdown
from profiling.models.session import SubmittedBy, TestResults, utcnow

logger = logging.getLogger(__name__)

BIG_FIVE_TRAITS = (
    "openness",
    "conscientiousness",
    "extraversion",
    "agreeableness",
    "neuroticism",
)

# Likert fallback when a behavioral item has no impact scores
LIKERT_STEP = 25

# (minimum overall score, percentile)
PERCENTILE_STEPS = [
    (90, 95.0),
    (80, 85.0),
    (70, 70.0),
    (60, 55.0),
    (50, 40.0),
]
PERCENTILE_FLOOR = 25.0

# (minimum overall score, bucket)
BUCKET_THRESHOLDS = [
    (85, PerformanceBucket.BEST),
    (70, PerformanceBucket.GOOD),
    (50, PerformanceBucket.AVERAGE),
]


# =========================================================================
# SUBMISSION
# =========================================================================


def index_answers(questions: list[Question], answers: list[Answer]) -> dict[str, Answer]:
    """
    Map question id -> answer after validating the answer set.

    Raises:
        SubmissionValidationError: On unknown ids, duplicates or out-of-range options
    """
    by_id = {q.id: q for q in questions}
    answer_map: dict[str, Answer] = {}

    for answer in answers:
        question = by_id.get(answer.question_id)
        if question is None:
            raise SubmissionValidationError(
                f"Answer references unknown question id: {answer.question_id}"
            )
        if answer.question_id in answer_map:
            raise SubmissionValidationError(
                f"Duplicate answer for question: {answer.question_id}"
            )
        index = answer.selected_option_index
        if index is not None and not 0 <= index < len(question.options):
            raise SubmissionValidationError(
                f"Option {index} out of range for question {answer.question_id} "
                f"({len(question.options)} options)"
            )
        answer_map[answer.question_id] = answer

    return answer_map


def score_submission(
    questions: list[Question],
    answers: list[Answer],
    draft: TestResults | None = None,
    *,
    warning_count: int = 0,
    submitted_by: SubmittedBy = SubmittedBy.USER,
    submitted_at: datetime | None = None,
) -> TestResults:
    """
    Classify every question and build the authoritative TestResults.

    Args:
        questions: The session's question set, with answer keys
        answers: Submitted answers, at most one per question
        draft: Client-computed results; totals are cross-checked, review
            counts are passed through
        warning_count: Proctoring warnings shown during the test
        submitted_by: Who triggered the submission
        submitted_at: Submission time, defaults to now

    Raises:
        SubmissionValidationError: If the answers or the draft do not reconcile
    """
    answer_map = index_answers(questions, answers)

    attempted = not_attempted = correct = wrong = 0
    for question in questions:
        answer = answer_map.get(question.id)
        if answer is None or not answer.is_attempted:
            not_attempted += 1
            continue

        attempted += 1
        if question.is_objective and answer.selected_option_index is not None:
            if answer.selected_option_index == question.correct_option_index:
                correct += 1
            else:
                wrong += 1
        elif question.is_objective:
            # Free text on a keyed question can never match the key
            wrong += 1

    total = len(questions)
    marked = answered_marked = 0

    if draft is not None:
        mismatches = [
            f"{name}: submitted {submitted}, expected {actual}"
            for name, submitted, actual in (
                ("total_questions", draft.total_questions, total),
                ("attempted", draft.attempted, attempted),
                ("not_attempted", draft.not_attempted, not_attempted),
            )
            if submitted != actual
        ]
        if mismatches:
            raise SubmissionValidationError(
                "Submitted totals do not match the answers: " + "; ".join(mismatches)
            )
        if draft.marked_for_review > total:
            raise SubmissionValidationError("marked_for_review exceeds total_questions")
        if draft.answered_and_marked_for_review > attempted:
            raise SubmissionValidationError(
                "answered_and_marked_for_review exceeds attempted"
            )
        marked = draft.marked_for_review
        answered_marked = draft.answered_and_marked_for_review

    return TestResults(
        total_questions=total,
        attempted=attempted,
        not_attempted=not_attempted,
        correct=correct,
        wrong=wrong,
        marked_for_review=marked,
        answered_and_marked_for_review=answered_marked,
        submitted_at=submitted_at or utcnow(),
        warning_count=warning_count,
        submitted_by=submitted_by,
    )


# =========================================================================
# REPORT SCORES
# =========================================================================


def _trait_for(category: str) -> str | None:
    lowered = category.lower()
    for trait in BIG_FIVE_TRAITS:
        if trait in lowered:
            return trait
    return None


def _impact_score(question: Question, index: int) -> int:
    if question.trait_impact_scores and 0 <= index < len(question.trait_impact_scores):
        return question.trait_impact_scores[index]
    return index * LIKERT_STEP


def _effectiveness(question: Question, index: int) -> int:
    """Impact score oriented so that higher is always better."""
    score = _impact_score(question, index)
    if _trait_for(question.category) == "neuroticism":
        return 100 - score
    return score


def calculate_big_five(questions: list[Question], answers: list[Answer]) -> BigFiveScores:
    """
    Average the chosen options' impact scores per Big Five trait.

    Only behavioral questions whose category names a trait contribute.
    Traits with no answered items stay at 50.
    """
    answer_map = {a.question_id: a for a in answers}
    samples: dict[str, list[int]] = {trait: [] for trait in BIG_FIVE_TRAITS}

    for question in questions:
        if question.section_number != Section.BEHAVIORAL.value:
            continue
        trait = _trait_for(question.category)
        answer = answer_map.get(question.id)
        if trait is None or answer is None or answer.selected_option_index is None:
            continue
        samples[trait].append(_impact_score(question, answer.selected_option_index))

    values = {}
    for trait, scores in samples.items():
        if scores:
            values[trait] = max(0, min(100, sum(scores) // len(scores)))
    return BigFiveScores(**values)


def _section_score(questions: list[Question], answer_map: dict[str, Answer]) -> float:
    if not questions:
        return 0.0

    points = 0.0
    impacts: list[int] = []
    for question in questions:
        answer = answer_map.get(question.id)
        if answer is None or not answer.is_attempted:
            continue
        index = answer.selected_option_index
        if question.is_objective:
            if index == question.correct_option_index:
                points += 1
        elif question.trait_impact_scores and index is not None:
            impacts.append(_effectiveness(question, index))
        else:
            # Unkeyed items without impact scores count as completed
            points += 1

    if impacts:
        # Behavioral sections are judged on effectiveness, not correctness
        return round(sum(impacts) / len(impacts), 2)
    return round(points * 100.0 / len(questions), 2)


def calculate_section_scores(
    questions: list[Question], answers: list[Answer]
) -> ScoreBreakdown:
    """
    Per-section percentages plus the overall mean of the non-empty sections.
    """
    answer_map = {a.question_id: a for a in answers}
    section_scores = {}
    populated = []
    for section in Section:
        section_questions = [q for q in questions if q.section_number == section.value]
        section_scores[section.key] = _section_score(section_questions, answer_map)
        if section_questions:
            populated.append(section_scores[section.key])

    overall = round(sum(populated) / len(populated), 2) if populated else 0.0
    return ScoreBreakdown(**section_scores, overall=overall)


def calculate_category_scores(
    questions: list[Question], answers: list[Answer]
) -> dict[str, float]:
    """Percentage per question category, used for strong/weak zone narratives."""
    answer_map = {a.question_id: a for a in answers}
    grouped: dict[str, list[Question]] = {}
    for question in questions:
        if question.category:
            grouped.setdefault(question.category, []).append(question)
    return {
        category: _section_score(items, answer_map) for category, items in grouped.items()
    }


def calculate_percentile(overall_score: float) -> float:
    for threshold, percentile in PERCENTILE_STEPS:
        if overall_score >= threshold:
            return percentile
    return PERCENTILE_FLOOR


def determine_performance_bucket(overall_score: float) -> PerformanceBucket:
    for threshold, bucket in BUCKET_THRESHOLDS:
        if overall_score >= threshold:
            return bucket
    return PerformanceBucket.POOR
