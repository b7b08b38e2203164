import pytest
from pydantic_ai.exceptions import ModelHTTPError

from app.apis.exams.main import split_count
from app.core.db_services import ExamService
from app.core.errors import PersistenceError
from app.modules.generation.models import QuestionType

from conftest import mcq


def tf(question, answer=True):
    return {"question": question, "options": ["True", "False"], "correct_answer": answer}


def test_split_count():
    mcq_t, tf_t = QuestionType.MCQ, QuestionType.TRUE_FALSE
    assert split_count(5, [mcq_t, tf_t]) == [(mcq_t, 3), (tf_t, 2)]
    assert split_count(4, [mcq_t]) == [(mcq_t, 4)]
    assert split_count(1, [mcq_t, tf_t]) == [(mcq_t, 1)]


async def create_exam(client, title="Biology midterm", difficulty="hard"):
    r = await client.post("/v1/exams", json={"title": title, "difficulty": difficulty})
    assert r.status_code == 201
    return r.json()


async def test_create_and_read_exam(client, make_user, login_as):
    login_as(await make_user("ana@example.com"))
    exam = await create_exam(client)

    assert exam["status"] == "draft"
    assert exam["questions"] == []

    r = await client.get(f"/v1/exams/{exam['id']}")
    assert r.status_code == 200
    assert r.json()["title"] == "Biology midterm"


async def test_generate_stores_questions_in_order(
    client, scripted_model, make_user, login_as
):
    login_as(await make_user("ana@example.com"))
    exam = await create_exam(client)
    scripted_model.queue(
        {"questions": [mcq("M1"), mcq("M2")]},
        {"questions": [tf("T1")]},
    )

    r = await client.post(
        "/v1/exams/generate",
        json={
            "exam_id": exam["id"],
            "content": "Genetics",
            "count": 3,
            "types": ["mcq", "true_false"],
        },
    )

    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "ready"
    assert [q["question"] for q in body["questions"]] == ["M1", "M2", "T1"]
    assert [q["order_index"] for q in body["questions"]] == [0, 1, 2]
    assert [q["type"] for q in body["questions"]] == ["mcq", "mcq", "true_false"]
    assert len(scripted_model.calls) == 2

    stored = (await client.get(f"/v1/exams/{exam['id']}")).json()
    assert stored["questions"] == body["questions"]


async def test_failed_generation_leaves_exam_untouched(
    client, scripted_model, make_user, login_as
):
    login_as(await make_user("ana@example.com"))
    exam = await create_exam(client)
    scripted_model.queue(
        {"questions": [mcq("M1")]},
        ModelHTTPError(503, "test-model"),
    )

    r = await client.post(
        "/v1/exams/generate",
        json={
            "exam_id": exam["id"],
            "content": "Genetics",
            "count": 2,
            "types": ["mcq", "true_false"],
        },
    )

    assert r.status_code == 500
    stored = (await client.get(f"/v1/exams/{exam['id']}")).json()
    assert stored["questions"] == []
    assert stored["status"] == "draft"


async def test_generate_for_foreign_exam(client, scripted_model, make_user, login_as):
    login_as(await make_user("ana@example.com"))
    exam = await create_exam(client)
    login_as(await make_user("bo@example.com"))
    scripted_model.queue({"questions": [mcq("M1")]})

    r = await client.post(
        "/v1/exams/generate", json={"exam_id": exam["id"], "content": "Genetics"}
    )

    assert r.status_code == 404
    assert scripted_model.calls == []


async def test_record_score(client, make_user, login_as):
    owner = await make_user("ana@example.com")
    login_as(owner)
    exam = await create_exam(client)

    r = await client.patch(f"/v1/exams/{exam['id']}", json={"score": 8.5})
    assert r.status_code == 200
    assert r.json()["score"] == 8.5
    assert r.json()["status"] == "completed"

    login_as(await make_user("bo@example.com"))
    r = await client.patch(f"/v1/exams/{exam['id']}", json={"score": 10})
    assert r.status_code == 404
    r = await client.get(f"/v1/exams/{exam['id']}")
    assert r.status_code == 404


async def test_invalid_exam_input(client, make_user, login_as):
    login_as(await make_user("ana@example.com"))
    r = await client.post("/v1/exams", json={"title": "", "difficulty": "medium"})
    assert r.status_code == 400
    r = await client.post("/v1/exams", json={"title": "X", "difficulty": "extreme"})
    assert r.status_code == 400


async def test_exam_count_must_be_an_integer(client, scripted_model, make_user, login_as):
    login_as(await make_user("ana@example.com"))
    exam = await create_exam(client)

    r = await client.post(
        "/v1/exams/generate",
        json={"exam_id": exam["id"], "content": "Genetics", "count": "3"},
    )

    assert r.status_code == 400
    assert scripted_model.calls == []


async def test_missing_reload_is_a_persistence_error(database, make_user, monkeypatch):
    user_id = await make_user("ana@example.com")

    async def vanished(*args, **kwargs):
        return None

    async with database.session_maker() as session:
        service = ExamService(session)
        monkeypatch.setattr(service, "get_exam", vanished)
        with pytest.raises(PersistenceError):
            await service.create_exam(user_id=user_id, title="Quiz", difficulty="easy")
