"""
IELTS router for reading/listening tests.

Endpoints for:
- Test, section and question group CRUD (creator only)
- Candidate view of a test (no correct answers)
- Submitting answers and reviewing results
- Teacher re-grading
"""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query, status

from ielts_center.api.deps import domain_errors, get_current_user_id, get_ielts_service
from ielts_center.schemas import (
    Level,
    QuestionCreate,
    QuestionResponse,
    QuestionUpdate,
    RegradeRequest,
    SectionCreate,
    SectionResponse,
    SectionUpdate,
    Skill,
    SubmissionCreate,
    SubmissionResponse,
    TestCreate,
    TestPublic,
    TestResponse,
    TestSummary,
    TestUpdate,
)
from ielts_center.services import IeltsService

router = APIRouter()


# ========================================
# Tests
# ========================================


@router.post(
    "/tests",
    response_model=TestResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create test",
)
def create_test(
    request: TestCreate,
    user_id: int = Depends(get_current_user_id),
    service: IeltsService = Depends(get_ielts_service),
) -> Any:
    """Create a test with nested sections and question groups."""
    with domain_errors():
        return service.create_test(request, user_id)


@router.get("/tests", response_model=list[TestSummary], summary="List tests")
def list_tests(
    skill: Skill | None = Query(None),
    level: Level | None = Query(None),
    search: str | None = Query(None, description="Match title or description"),
    created_by: int | None = Query(None),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    service: IeltsService = Depends(get_ielts_service),
) -> Any:
    return service.list_tests(
        skill=skill.value if skill else None,
        level=level.value if level else None,
        search=search,
        created_by=created_by,
        limit=limit,
        offset=offset,
    )


@router.get("/tests/{test_id}", response_model=TestPublic, summary="Get test")
def get_test(
    test_id: int,
    service: IeltsService = Depends(get_ielts_service),
) -> Any:
    """Candidate view: sections and questions without correct answers."""
    with domain_errors():
        return service.get_test(test_id)


@router.get("/tests/{test_id}/answers", response_model=TestResponse, summary="Get test with answers")
def get_test_with_answers(
    test_id: int,
    user_id: int = Depends(get_current_user_id),
    service: IeltsService = Depends(get_ielts_service),
) -> Any:
    with domain_errors():
        return service.get_test_with_answers(test_id, user_id)


@router.patch("/tests/{test_id}", response_model=TestResponse, summary="Update test")
def update_test(
    test_id: int,
    request: TestUpdate,
    user_id: int = Depends(get_current_user_id),
    service: IeltsService = Depends(get_ielts_service),
) -> Any:
    with domain_errors():
        return service.update_test(test_id, request, user_id)


@router.delete("/tests/{test_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete test")
def delete_test(
    test_id: int,
    user_id: int = Depends(get_current_user_id),
    service: IeltsService = Depends(get_ielts_service),
) -> None:
    """Delete a test with its sections, questions and submissions."""
    with domain_errors():
        service.delete_test(test_id, user_id)


# ========================================
# Sections
# ========================================


@router.post(
    "/tests/{test_id}/sections",
    response_model=SectionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add section",
)
def add_section(
    test_id: int,
    request: SectionCreate,
    user_id: int = Depends(get_current_user_id),
    service: IeltsService = Depends(get_ielts_service),
) -> Any:
    with domain_errors():
        return service.add_section(test_id, request, user_id)


@router.patch("/sections/{section_id}", response_model=SectionResponse, summary="Update section")
def update_section(
    section_id: int,
    request: SectionUpdate,
    user_id: int = Depends(get_current_user_id),
    service: IeltsService = Depends(get_ielts_service),
) -> Any:
    with domain_errors():
        return service.update_section(section_id, request, user_id)


@router.delete("/sections/{section_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete section")
def delete_section(
    section_id: int,
    user_id: int = Depends(get_current_user_id),
    service: IeltsService = Depends(get_ielts_service),
) -> None:
    with domain_errors():
        service.delete_section(section_id, user_id)


# ========================================
# Question groups
# ========================================


@router.post(
    "/sections/{section_id}/questions",
    response_model=QuestionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add question group",
)
def add_question(
    section_id: int,
    request: QuestionCreate,
    user_id: int = Depends(get_current_user_id),
    service: IeltsService = Depends(get_ielts_service),
) -> Any:
    with domain_errors():
        return service.add_question(section_id, request, user_id)


@router.patch("/questions/{question_id}", response_model=QuestionResponse, summary="Update question group")
def update_question(
    question_id: int,
    request: QuestionUpdate,
    user_id: int = Depends(get_current_user_id),
    service: IeltsService = Depends(get_ielts_service),
) -> Any:
    """Partial update; the merged group must still satisfy its type's rules."""
    with domain_errors():
        return service.update_question(question_id, request, user_id)


@router.delete("/questions/{question_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete question group")
def delete_question(
    question_id: int,
    user_id: int = Depends(get_current_user_id),
    service: IeltsService = Depends(get_ielts_service),
) -> None:
    with domain_errors():
        service.delete_question(question_id, user_id)


# ========================================
# Submissions
# ========================================


@router.post(
    "/tests/{test_id}/submit",
    status_code=status.HTTP_201_CREATED,
    summary="Submit answers",
)
def submit_test(
    test_id: int,
    request: SubmissionCreate,
    user_id: int = Depends(get_current_user_id),
    service: IeltsService = Depends(get_ielts_service),
) -> dict[str, Any]:
    """
    Submit answers for grading. One attempt per user and test.

    Answers are keyed by question id. Grouped questions take an object
    mapping sub-question index to answer, e.g. {"12": {"0": "iv", "1": "ii"}}.
    """
    with domain_errors():
        submission, result = service.submit(test_id, user_id, request.answers)
    return {
        "submission": SubmissionResponse.model_validate(submission).model_dump(mode="json"),
        "result": result.to_dict(),
    }


@router.get("/tests/{test_id}/submissions", response_model=list[SubmissionResponse], summary="List test submissions")
def list_submissions(
    test_id: int,
    user_id: int = Depends(get_current_user_id),
    service: IeltsService = Depends(get_ielts_service),
) -> Any:
    with domain_errors():
        return service.list_submissions(test_id, user_id)


@router.get("/submissions/me", response_model=list[SubmissionResponse], summary="My submissions")
def my_submissions(
    user_id: int = Depends(get_current_user_id),
    service: IeltsService = Depends(get_ielts_service),
) -> Any:
    return service.my_submissions(user_id)


@router.get("/submissions/{submission_id}", summary="Submission review")
def submission_detail(
    submission_id: int,
    user_id: int = Depends(get_current_user_id),
    service: IeltsService = Depends(get_ielts_service),
) -> dict[str, Any]:
    """Sections, passages and per-question correctness for one submission."""
    with domain_errors():
        return service.submission_detail(submission_id, user_id)


@router.post("/submissions/{submission_id}/grade", response_model=SubmissionResponse, summary="Re-grade submission")
def regrade_submission(
    submission_id: int,
    request: RegradeRequest,
    user_id: int = Depends(get_current_user_id),
    service: IeltsService = Depends(get_ielts_service),
) -> Any:
    with domain_errors():
        return service.regrade(submission_id, request.score, request.feedback, user_id)
