"""
Result Aggregator.

Combines per-question grades into a band score, feedback and a nested
review. Pure: the same test and answers always produce the same result.

Counting:
- A question group with k sub-questions contributes k positions,
  otherwise 1.
- score = correct positions / total positions * 9 (0 for an empty test).
- Grouped points are awarded proportionally: points * correct / k.
- Answers for question ids that are not part of the test are skipped.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from loguru import logger

from ielts_center.grading import EXACT, MatchPolicy, grade

from .feedback import generate_feedback
from .models import QuestionDefinition, TestDefinition
from .results import (
    QuestionReview,
    QuizAnswerResult,
    QuizResult,
    SectionReview,
    SubmissionResult,
)

MAX_BAND = 9.0

RawAnswers = Mapping[Any, Any]


def _normalize_keys(answers: RawAnswers | None) -> tuple[dict[int, Any], list[Any]]:
    """Key answers by int question id. Unparseable keys are returned separately."""
    by_id: dict[int, Any] = {}
    unparseable: list[Any] = []
    for key, value in (answers or {}).items():
        try:
            by_id[int(key)] = value
        except (TypeError, ValueError):
            unparseable.append(key)
    return by_id, unparseable


def band_score(correct_count: int, total_count: int) -> float:
    """Map a correct ratio onto the 0-9 band."""
    if total_count <= 0:
        return 0.0
    score = correct_count / total_count * MAX_BAND
    return min(max(score, 0.0), MAX_BAND)


def _review_question(
    question: QuestionDefinition,
    raw_answer: Any,
    policy: MatchPolicy,
) -> QuestionReview:
    result = grade(question, raw_answer, policy)
    count = question.question_count

    if result.points_earned is not None:
        points_earned = result.points_earned
    else:
        points_earned = question.points * result.correct_count / count

    return QuestionReview(
        question_id=question.id,
        type=question.type,
        question=question.question,
        sub_questions=list(question.sub_questions),
        options=list(question.options),
        correct_answers=list(question.correct_answers),
        explanation=question.explanation,
        raw_answer=raw_answer if raw_answer is None or isinstance(raw_answer, str) else str(raw_answer),
        user_answers=result.user_answers,
        is_correct=result.is_correct,
        malformed=result.malformed,
        correct_count=result.correct_count,
        question_count=count,
        points=question.points,
        points_earned=points_earned,
    )


def aggregate(
    test: TestDefinition,
    answers: RawAnswers | None,
    policy: MatchPolicy = EXACT,
) -> SubmissionResult:
    """
    Grade every question group of `test` against `answers`.

    Args:
        test: Test definition (sections and question groups)
        answers: Raw answers keyed by question id (int or numeric string)
        policy: Answer comparison policy

    Returns:
        SubmissionResult with counters, band score, feedback and review
    """
    by_id, unparseable = _normalize_keys(answers)
    known_ids: set[int] = set()

    correct_count = 0
    total_count = 0
    points_earned = 0.0
    total_points = 0.0
    sections: list[SectionReview] = []

    for section in test.ordered_sections():
        section_review = SectionReview(
            section_id=section.id,
            title=section.title,
            order=section.order,
            instructions=section.instructions,
            passage_text=section.passage_text,
            audio_url=section.audio_url,
            image_url=section.image_url,
        )
        for question in section.ordered_questions():
            known_ids.add(question.id)
            review = _review_question(question, by_id.get(question.id), policy)
            section_review.questions.append(review)

            correct_count += review.correct_count
            total_count += review.question_count
            points_earned += review.points_earned
            total_points += question.points
        sections.append(section_review)

    skipped: list[int | str] = [qid for qid in by_id if qid not in known_ids]
    skipped.extend(unparseable)
    if skipped:
        logger.debug(f"Test {test.id}: skipped answers for unknown questions {skipped}")

    score = band_score(correct_count, total_count)
    percentage = correct_count / total_count * 100 if total_count else 0.0

    return SubmissionResult(
        test_id=test.id,
        test_title=test.title,
        skill=test.skill,
        level=test.level,
        correct_count=correct_count,
        total_question_count=total_count,
        score=score,
        percentage=percentage,
        points_earned=points_earned,
        total_points=total_points,
        feedback=generate_feedback(score, test.skill),
        sections=sections,
        skipped_question_ids=skipped,
    )


def aggregate_quiz(
    questions: Iterable[QuestionDefinition],
    answers: RawAnswers | None,
    policy: MatchPolicy = EXACT,
) -> QuizResult:
    """
    Grade a quiz attempt.

    Every question counts towards the total; unanswered questions earn
    nothing. Essay answers are recorded for manual grading.
    """
    by_id, unparseable = _normalize_keys(answers)
    ordered = sorted(questions, key=lambda q: q.order)
    known_ids = {q.id for q in ordered}

    score = 0.0
    total_points = 0.0
    results: list[QuizAnswerResult] = []
    for question in ordered:
        total_points += question.points
        if question.id not in by_id:
            continue
        raw_answer = by_id[question.id]
        graded = grade(question, raw_answer, policy)
        earned = graded.points_earned or 0.0
        score += earned
        results.append(QuizAnswerResult(
            question_id=question.id,
            user_answer=graded.user_answers[0],
            is_correct=graded.all_correct,
            points_earned=earned,
            needs_manual_grading=graded.needs_manual_grading,
        ))

    skipped: list[int | str] = [qid for qid in by_id if qid not in known_ids]
    skipped.extend(unparseable)
    return QuizResult(
        score=score,
        total_points=total_points,
        answers=results,
        skipped_question_ids=skipped,
    )
