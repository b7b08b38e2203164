import logging

from sqlalchemy import select

from app.core.db.ownership import OwnerScope
from app.core.db.schemas.study_kits import Flashcard
from app.core.db_services import OwnedRecordService


async def test_review_marks_card(client, make_user, make_kit, login_as, database):
    owner = await make_user("ana@example.com")
    _, (card_id, other_id) = await make_kit(owner)
    login_as(owner)

    r = await client.patch(f"/v1/flashcards/{card_id}/review", json={"reviewed": True})

    assert r.status_code == 200
    body = r.json()
    assert body["id"] == card_id
    assert body["reviewed"] is True

    async with database.session_maker() as session:
        rows = (await session.execute(select(Flashcard).order_by(Flashcard.id))).scalars()
        assert {c.id: c.reviewed for c in rows} == {card_id: True, other_id: False}


async def test_review_is_idempotent(client, make_user, make_kit, login_as):
    owner = await make_user("ana@example.com")
    _, (card_id, _) = await make_kit(owner)
    login_as(owner)

    first = await client.patch(f"/v1/flashcards/{card_id}/review", json={"reviewed": True})
    second = await client.patch(f"/v1/flashcards/{card_id}/review", json={"reviewed": True})
    unset = await client.patch(f"/v1/flashcards/{card_id}/review", json={"reviewed": False})

    assert first.json() == second.json()
    assert unset.json()["reviewed"] is False


async def test_foreign_card_looks_missing(client, make_user, make_kit, login_as, database):
    owner = await make_user("ana@example.com")
    intruder = await make_user("bo@example.com")
    _, (card_id, _) = await make_kit(owner)
    login_as(intruder)

    foreign = await client.patch(
        f"/v1/flashcards/{card_id}/review", json={"reviewed": True}
    )
    missing = await client.patch("/v1/flashcards/99999/review", json={"reviewed": True})

    assert foreign.status_code == missing.status_code == 404
    assert foreign.json() == missing.json() == {"detail": "Flashcard not found"}
    async with database.session_maker() as session:
        card = await session.get(Flashcard, card_id)
        assert card.reviewed is False


async def test_reviewed_must_be_boolean(client, make_user, make_kit, login_as):
    owner = await make_user("ana@example.com")
    _, (card_id, _) = await make_kit(owner)
    login_as(owner)

    for body in ({}, {"reviewed": "yes"}, {"reviewed": 1}):
        r = await client.patch(f"/v1/flashcards/{card_id}/review", json=body)
        assert r.status_code == 400


async def test_non_numeric_id_is_not_routed(client, make_user, login_as):
    login_as(await make_user("ana@example.com"))
    r = await client.patch("/v1/flashcards/abc/review", json={"reviewed": True})
    assert r.status_code == 404


async def test_anonymous_review_is_rejected(client, make_user, make_kit):
    owner = await make_user("ana@example.com")
    _, (card_id, _) = await make_kit(owner)
    r = await client.patch(f"/v1/flashcards/{card_id}/review", json={"reviewed": True})
    assert r.status_code == 401


async def test_owned_record_service_scopes_through_kit(make_user, make_kit, database):
    owner = await make_user("ana@example.com")
    intruder = await make_user("bo@example.com")
    _, (card_id, _) = await make_kit(owner)

    async with database.session_maker() as session:
        records = OwnedRecordService(session)
        assert await records.find_owned(Flashcard, card_id, OwnerScope(intruder)) is None
        assert (
            await records.update_owned(
                Flashcard, card_id, OwnerScope(intruder), {"reviewed": True}
            )
            is None
        )
        card = await records.find_owned(Flashcard, card_id, OwnerScope(owner))
        assert card is not None and card.reviewed is False


async def test_client_errors_are_not_logged_as_failures(
    app, client, make_user, make_kit, login_as, caplog
):
    owner = await make_user("ana@example.com")
    intruder = await make_user("bo@example.com")
    _, (card_id, _) = await make_kit(owner)
    caplog.set_level(logging.DEBUG)

    login_as(intruder)
    foreign = await client.patch(
        f"/v1/flashcards/{card_id}/review", json={"reviewed": True}
    )
    app.dependency_overrides.clear()
    anonymous = await client.patch(
        f"/v1/flashcards/{card_id}/review", json={"reviewed": True}
    )

    assert foreign.status_code == 404
    assert anonymous.status_code == 401
    assert [r.getMessage() for r in caplog.records if r.levelno >= logging.ERROR] == []
