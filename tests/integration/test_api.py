"""
API tests through the FastAPI test client.

Checks status codes and the mapping of domain errors to HTTP responses.
"""

import pytest

TEACHER = {"X-User-Id": "1"}
STUDENT = {"X-User-Id": "2"}
OTHER_STUDENT = {"X-User-Id": "3"}


@pytest.fixture
def created_test(client, reading_test_payload):
    response = client.post("/ielts/tests", json=reading_test_payload, headers=TEACHER)
    assert response.status_code == 201
    return response.json()


def all_questions(test):
    return [q for section in test["sections"] for q in section["questions"]]


class TestHealth:

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["service"] == "ielts-center"

    def test_health(self, client):
        data = client.get("/health").json()

        assert data["status"] == "healthy"
        assert data["components"]["database"] == "ok"
        assert data["config"]["answer_matching"] == "exact"


class TestIeltsEndpoints:

    def test_create_returns_answers_to_creator(self, created_test):
        matching = all_questions(created_test)[2]

        assert matching["correct_answers"] == ["iv", "ii", "i"]

    def test_public_view_hides_answers(self, client, created_test):
        response = client.get(f"/ielts/tests/{created_test['id']}")

        assert response.status_code == 200
        assert all("correct_answers" not in q for q in all_questions(response.json()))

    def test_answers_view_forbidden_for_students(self, client, created_test):
        response = client.get(f"/ielts/tests/{created_test['id']}/answers", headers=STUDENT)

        assert response.status_code == 403

    def test_missing_test(self, client):
        assert client.get("/ielts/tests/999").status_code == 404

    def test_invalid_question_group(self, client, reading_test_payload):
        """Should reject misaligned groups with 422."""
        reading_test_payload["sections"][1]["questions"][0]["correct_answers"] = ["iv"]

        response = client.post("/ielts/tests", json=reading_test_payload, headers=TEACHER)

        assert response.status_code == 422

    def test_user_header_required(self, client, reading_test_payload):
        assert client.post("/ielts/tests", json=reading_test_payload).status_code == 422

    def test_list_tests(self, client, created_test):
        response = client.get("/ielts/tests", params={"skill": "READING"})

        assert [t["id"] for t in response.json()] == [created_test["id"]]

    def test_submit_and_review(self, client, created_test):
        mc, tfng, matching = (q["id"] for q in all_questions(created_test))
        answers = {str(mc): "B", str(tfng): "FALSE", str(matching): {"0": "iv", "1": "ii", "2": "i"}}

        response = client.post(f"/ielts/tests/{created_test['id']}/submit", json={"answers": answers}, headers=STUDENT)

        assert response.status_code == 201
        body = response.json()
        assert body["result"]["correct_count"] == 4
        assert body["result"]["total_questions"] == 5
        assert body["submission"]["score"] == pytest.approx(7.2)

        detail = client.get(f"/ielts/submissions/{body['submission']['id']}", headers=STUDENT)
        assert detail.status_code == 200
        assert detail.json()["sections"][0]["questions"][1]["is_correct"] is False

    def test_duplicate_submission(self, client, created_test):
        url = f"/ielts/tests/{created_test['id']}/submit"
        client.post(url, json={"answers": {}}, headers=STUDENT)

        response = client.post(url, json={"answers": {}}, headers=STUDENT)

        assert response.status_code == 409

    def test_review_forbidden_for_others(self, client, created_test):
        submitted = client.post(
            f"/ielts/tests/{created_test['id']}/submit", json={"answers": {}}, headers=STUDENT
        ).json()

        response = client.get(f"/ielts/submissions/{submitted['submission']['id']}", headers=OTHER_STUDENT)

        assert response.status_code == 403

    def test_regrade(self, client, created_test):
        submitted = client.post(
            f"/ielts/tests/{created_test['id']}/submit", json={"answers": {}}, headers=STUDENT
        ).json()
        url = f"/ielts/submissions/{submitted['submission']['id']}/grade"

        assert client.post(url, json={"score": 10}, headers=TEACHER).status_code == 422
        response = client.post(url, json={"score": 5.5, "feedback": "See comments"}, headers=TEACHER)

        assert response.status_code == 200
        assert response.json()["status"] == "GRADED"

    def test_update_question_invalid(self, client, created_test):
        matching = all_questions(created_test)[2]

        response = client.patch(
            f"/ielts/questions/{matching['id']}", json={"correct_answers": ["iv"]}, headers=TEACHER
        )

        assert response.status_code == 400

    def test_update_question_to_quiz_type(self, client, created_test):
        """Should reject switching a question group to a quiz-only type."""
        mc = all_questions(created_test)[0]

        response = client.patch(f"/ielts/questions/{mc['id']}", json={"type": "ESSAY"}, headers=TEACHER)

        assert response.status_code == 422
        stored = all_questions(client.get(f"/ielts/tests/{created_test['id']}").json())[0]
        assert stored["type"] == "MULTIPLE_CHOICE"

    def test_submit_writing_skill_rejected(self, client, reading_test_payload):
        reading_test_payload["skill"] = "WRITING"
        test_id = client.post("/ielts/tests", json=reading_test_payload, headers=TEACHER).json()["id"]

        response = client.post(f"/ielts/tests/{test_id}/submit", json={"answers": {}}, headers=STUDENT)

        assert response.status_code == 400

    def test_delete_test(self, client, created_test):
        url = f"/ielts/tests/{created_test['id']}"

        assert client.delete(url, headers=STUDENT).status_code == 403
        assert client.delete(url, headers=TEACHER).status_code == 204
        assert client.get(url).status_code == 404


class TestWritingEndpoints:

    @pytest.fixture
    def task(self, client):
        response = client.post(
            "/writing/tests",
            json={
                "title": "Line graph",
                "prompt": "Summarise the information in the graph.",
                "type": "IELTS_TASK1",
                "level": "INTERMEDIATE",
            },
            headers=TEACHER,
        )
        assert response.status_code == 201
        return response.json()

    def test_submit_auto_grade_and_review(self, client, task, sample_essay):
        submitted = client.post(f"/writing/tests/{task['id']}/submit", json={"content": sample_essay}, headers=STUDENT)
        assert submitted.status_code == 200
        submission_id = submitted.json()["id"]

        auto = client.post(f"/writing/submissions/{submission_id}/auto-grade", headers=STUDENT)
        assert auto.status_code == 200

        review = client.get(f"/writing/submissions/{submission_id}", headers=STUDENT).json()["review"]
        assert review["source"] == "ai"
        assert review["overall"] is not None

    def test_teacher_grade(self, client, task, sample_essay):
        submission_id = client.post(
            f"/writing/tests/{task['id']}/submit", json={"content": sample_essay}, headers=STUDENT
        ).json()["id"]
        score = {
            "task_response": 7,
            "coherence_and_cohesion": 7,
            "lexical_resource": 6,
            "grammatical_range": 6,
        }

        forbidden = client.post(f"/writing/submissions/{submission_id}/grade", json={"score": score}, headers=STUDENT)
        graded = client.post(f"/writing/submissions/{submission_id}/grade", json={"score": score}, headers=TEACHER)

        assert forbidden.status_code == 403
        assert graded.status_code == 200
        assert graded.json()["human_score"]["overall"] == 6.5

    def test_rubric_bounds(self, client, task, sample_essay):
        submission_id = client.post(
            f"/writing/tests/{task['id']}/submit", json={"content": sample_essay}, headers=STUDENT
        ).json()["id"]
        score = {
            "task_response": 9.5,
            "coherence_and_cohesion": 7,
            "lexical_resource": 6,
            "grammatical_range": 6,
        }

        response = client.post(f"/writing/submissions/{submission_id}/grade", json={"score": score}, headers=TEACHER)

        assert response.status_code == 422


class TestQuizEndpoints:

    @pytest.fixture
    def quiz(self, client):
        response = client.post(
            "/quizzes",
            json={
                "title": "Vocabulary",
                "status": "ACTIVE",
                "questions": [
                    {"question": "Synonym of 'rapid'", "type": "MULTIPLE_CHOICE", "options": ["fast", "slow"], "correct_answer": "fast"},
                ],
            },
            headers=TEACHER,
        )
        assert response.status_code == 201
        return response.json()

    def test_public_view_hides_answers(self, client, quiz):
        data = client.get(f"/quizzes/{quiz['id']}").json()

        assert "correct_answer" not in data["questions"][0]

    def test_submit(self, client, quiz):
        question_id = quiz["questions"][0]["id"]

        response = client.post(
            f"/quizzes/{quiz['id']}/submit",
            json={"answers": {str(question_id): "fast"}, "time_spent": 42},
            headers=STUDENT,
        )

        assert response.status_code == 201
        assert response.json()["score"] == 1.0
        assert response.json()["answers"][0]["is_correct"] is True

    def test_duplicate_submit(self, client, quiz):
        url = f"/quizzes/{quiz['id']}/submit"
        client.post(url, json={"answers": {}}, headers=STUDENT)

        assert client.post(url, json={"answers": {}}, headers=STUDENT).status_code == 409

    def test_closed_quiz(self, client, quiz):
        client.patch(f"/quizzes/{quiz['id']}/status", json={"status": "CLOSED"}, headers=TEACHER)

        response = client.post(f"/quizzes/{quiz['id']}/submit", json={"answers": {}}, headers=STUDENT)

        assert response.status_code == 400

    def test_invalid_question(self, client):
        response = client.post(
            "/quizzes",
            json={
                "title": "Broken",
                "questions": [{"question": "Pick", "type": "MULTIPLE_CHOICE", "options": ["a", "b"], "correct_answer": "c"}],
            },
            headers=TEACHER,
        )

        assert response.status_code == 422
