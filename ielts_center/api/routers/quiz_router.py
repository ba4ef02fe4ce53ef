"""
Quiz router.

Endpoints for:
- Quiz creation and status changes (DRAFT -> ACTIVE -> CLOSED)
- Single-attempt submission while active and before the deadline
- Teacher grading and submission review
"""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query, status

from ielts_center.api.deps import domain_errors, get_current_user_id, get_quiz_service
from ielts_center.schemas import (
    QuizCreate,
    QuizGradeRequest,
    QuizPublic,
    QuizResponse,
    QuizStatus,
    QuizStatusUpdate,
    QuizSubmissionResponse,
    QuizSubmitRequest,
    QuizSummary,
)
from ielts_center.services import QuizService

router = APIRouter()


@router.post("", response_model=QuizResponse, status_code=status.HTTP_201_CREATED, summary="Create quiz")
def create_quiz(
    request: QuizCreate,
    user_id: int = Depends(get_current_user_id),
    service: QuizService = Depends(get_quiz_service),
) -> Any:
    with domain_errors():
        return service.create_quiz(request, user_id)


@router.get("", response_model=list[QuizSummary], summary="List quizzes")
def list_quizzes(
    quiz_status: QuizStatus | None = Query(None, alias="status"),
    created_by: int | None = Query(None),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    service: QuizService = Depends(get_quiz_service),
) -> Any:
    return service.list_quizzes(
        status=quiz_status.value if quiz_status else None,
        created_by=created_by,
        limit=limit,
        offset=offset,
    )


@router.get("/{quiz_id}", response_model=QuizPublic, summary="Get quiz")
def get_quiz(
    quiz_id: int,
    service: QuizService = Depends(get_quiz_service),
) -> Any:
    with domain_errors():
        return service.get_quiz(quiz_id)


@router.get("/{quiz_id}/answers", response_model=QuizResponse, summary="Get quiz with answers")
def get_quiz_with_answers(
    quiz_id: int,
    user_id: int = Depends(get_current_user_id),
    service: QuizService = Depends(get_quiz_service),
) -> Any:
    with domain_errors():
        return service.get_quiz_with_answers(quiz_id, user_id)


@router.patch("/{quiz_id}/status", response_model=QuizSummary, summary="Change quiz status")
def update_quiz_status(
    quiz_id: int,
    request: QuizStatusUpdate,
    user_id: int = Depends(get_current_user_id),
    service: QuizService = Depends(get_quiz_service),
) -> Any:
    with domain_errors():
        return service.update_status(quiz_id, request.status, user_id)


@router.delete("/{quiz_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete quiz")
def delete_quiz(
    quiz_id: int,
    user_id: int = Depends(get_current_user_id),
    service: QuizService = Depends(get_quiz_service),
) -> None:
    with domain_errors():
        service.delete_quiz(quiz_id, user_id)


@router.post(
    "/{quiz_id}/submit",
    response_model=QuizSubmissionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit quiz",
)
def submit_quiz(
    quiz_id: int,
    request: QuizSubmitRequest,
    user_id: int = Depends(get_current_user_id),
    service: QuizService = Depends(get_quiz_service),
) -> Any:
    """Submit answers keyed by question id. One attempt per user."""
    with domain_errors():
        submission, _ = service.submit(quiz_id, user_id, request.answers, request.time_spent)
    return submission


@router.get("/{quiz_id}/submissions", response_model=list[QuizSubmissionResponse], summary="List quiz submissions")
def list_quiz_submissions(
    quiz_id: int,
    user_id: int = Depends(get_current_user_id),
    service: QuizService = Depends(get_quiz_service),
) -> Any:
    with domain_errors():
        return service.list_submissions(quiz_id, user_id)


@router.get("/submissions/{submission_id}", response_model=QuizSubmissionResponse, summary="Quiz submission")
def get_quiz_submission(
    submission_id: int,
    user_id: int = Depends(get_current_user_id),
    service: QuizService = Depends(get_quiz_service),
) -> Any:
    with domain_errors():
        return service.get_submission(submission_id, user_id)


@router.post(
    "/submissions/{submission_id}/grade",
    response_model=QuizSubmissionResponse,
    summary="Grade quiz submission",
)
def grade_quiz_submission(
    submission_id: int,
    request: QuizGradeRequest,
    user_id: int = Depends(get_current_user_id),
    service: QuizService = Depends(get_quiz_service),
) -> Any:
    with domain_errors():
        return service.grade_submission(submission_id, request.score, request.feedback, user_id)
