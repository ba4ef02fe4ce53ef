"""
Writing router for IELTS Task 1 / Task 2 essays.

Endpoints for:
- Writing task CRUD
- Essay submission (resubmission replaces the essay)
- Teacher rubric grading and automated assessment
- Submission review (teacher score shown over the automated one)
"""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query, status

from ielts_center.api.deps import domain_errors, get_current_user_id, get_writing_service
from ielts_center.schemas import (
    Level,
    WritingGradeRequest,
    WritingSubmissionResponse,
    WritingSubmitRequest,
    WritingTestCreate,
    WritingTestResponse,
    WritingType,
)
from ielts_center.scoring import RubricScore, WritingFeedback
from ielts_center.services import WritingService

router = APIRouter()


# ========================================
# Writing tasks
# ========================================


@router.post(
    "/tests",
    response_model=WritingTestResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create writing task",
)
def create_writing_test(
    request: WritingTestCreate,
    user_id: int = Depends(get_current_user_id),
    service: WritingService = Depends(get_writing_service),
) -> Any:
    with domain_errors():
        return service.create_test(request, user_id)


@router.get("/tests", response_model=list[WritingTestResponse], summary="List writing tasks")
def list_writing_tests(
    type: WritingType | None = Query(None),
    level: Level | None = Query(None),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    service: WritingService = Depends(get_writing_service),
) -> Any:
    return service.list_tests(
        type=type.value if type else None,
        level=level.value if level else None,
        limit=limit,
        offset=offset,
    )


@router.get("/tests/{test_id}", response_model=WritingTestResponse, summary="Get writing task")
def get_writing_test(
    test_id: int,
    service: WritingService = Depends(get_writing_service),
) -> Any:
    with domain_errors():
        return service.get_test(test_id)


@router.delete("/tests/{test_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete writing task")
def delete_writing_test(
    test_id: int,
    user_id: int = Depends(get_current_user_id),
    service: WritingService = Depends(get_writing_service),
) -> None:
    with domain_errors():
        service.delete_test(test_id, user_id)


# ========================================
# Submissions
# ========================================


@router.post("/tests/{test_id}/submit", response_model=WritingSubmissionResponse, summary="Submit essay")
def submit_essay(
    test_id: int,
    request: WritingSubmitRequest,
    user_id: int = Depends(get_current_user_id),
    service: WritingService = Depends(get_writing_service),
) -> Any:
    """Submit or replace the essay for a writing task."""
    with domain_errors():
        return service.submit(test_id, user_id, request.content)


@router.get(
    "/tests/{test_id}/submissions",
    response_model=list[WritingSubmissionResponse],
    summary="List essays for a task",
)
def list_writing_submissions(
    test_id: int,
    user_id: int = Depends(get_current_user_id),
    service: WritingService = Depends(get_writing_service),
) -> Any:
    with domain_errors():
        return service.list_submissions(test_id, user_id)


@router.get("/submissions/me", response_model=list[WritingSubmissionResponse], summary="My essays")
def my_writing_submissions(
    user_id: int = Depends(get_current_user_id),
    service: WritingService = Depends(get_writing_service),
) -> Any:
    return service.my_submissions(user_id)


@router.get("/submissions/{submission_id}", summary="Essay review")
def writing_review(
    submission_id: int,
    user_id: int = Depends(get_current_user_id),
    service: WritingService = Depends(get_writing_service),
) -> dict[str, Any]:
    with domain_errors():
        submission, review = service.get_review(submission_id, user_id)
    return {
        "submission": WritingSubmissionResponse.model_validate(submission).model_dump(mode="json"),
        "review": review.to_dict(),
    }


@router.post("/submissions/{submission_id}/grade", response_model=WritingSubmissionResponse, summary="Grade essay")
def grade_essay(
    submission_id: int,
    request: WritingGradeRequest,
    user_id: int = Depends(get_current_user_id),
    service: WritingService = Depends(get_writing_service),
) -> Any:
    """Record the teacher's rubric score. The automated score is kept."""
    score = RubricScore(**request.score.model_dump())
    feedback = WritingFeedback(**request.feedback.model_dump())
    with domain_errors():
        return service.grade(submission_id, score, feedback, user_id)


@router.post(
    "/submissions/{submission_id}/auto-grade",
    response_model=WritingSubmissionResponse,
    summary="Automated assessment",
)
def auto_grade_essay(
    submission_id: int,
    user_id: int = Depends(get_current_user_id),
    service: WritingService = Depends(get_writing_service),
) -> Any:
    with domain_errors():
        return service.auto_grade(submission_id, user_id)
