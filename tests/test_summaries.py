SOURCE = (
    "Photosynthesis converts light energy into chemical energy stored in "
    "glucose, releasing oxygen as a by-product."
)


async def save_summary(client, scripted_model, **extra):
    scripted_model.queue("Plants turn light into sugar.")
    r = await client.post("/v1/summaries", json={"source_text": SOURCE, **extra})
    assert r.status_code == 201
    return r.json()


async def test_summary_is_generated_and_stored(
    client, scripted_model, make_user, login_as
):
    login_as(await make_user("ana@example.com"))

    created = await save_summary(client, scripted_model, length="short")

    assert created["title"].startswith('Summary of "Photosynthesis converts')
    r = await client.get(f"/v1/summaries/{created['id']}")
    assert r.status_code == 200
    body = r.json()
    assert body["summary_text"] == "Plants turn light into sugar."
    assert body["source_text"] == SOURCE
    assert body["length"] == "short"


async def test_given_title_is_kept(client, scripted_model, make_user, login_as):
    login_as(await make_user("ana@example.com"))
    created = await save_summary(client, scripted_model, title="  Biology ch. 3 ")
    assert created["title"] == "Biology ch. 3"


async def test_short_source_is_rejected(client, scripted_model, make_user, login_as):
    login_as(await make_user("ana@example.com"))

    r = await client.post("/v1/summaries", json={"source_text": "Too short."})
    missing = await client.post("/v1/summaries", json={})

    assert r.status_code == 400
    assert r.json() == {"detail": "Content must be at least 50 characters long"}
    assert missing.json() == {"detail": "Source text is required"}
    assert scripted_model.calls == []


async def test_summaries_are_paged_newest_first(
    client, scripted_model, make_user, login_as
):
    login_as(await make_user("ana@example.com"))
    ids = [(await save_summary(client, scripted_model))["id"] for _ in range(3)]

    first = (await client.get("/v1/summaries", params={"take": 2})).json()
    rest = (await client.get("/v1/summaries", params={"skip": 2, "take": 2})).json()

    assert [s["id"] for s in first["summaries"]] == ids[::-1][:2]
    assert first["total"] == 3
    assert first["has_more"] is True
    assert [s["id"] for s in rest["summaries"]] == ids[:1]
    assert rest["has_more"] is False

    capped = (await client.get("/v1/summaries", params={"take": 500})).json()
    assert capped["take"] == 50
    bad = await client.get("/v1/summaries", params={"skip": -1})
    assert bad.status_code == 400


async def test_summaries_are_private(client, scripted_model, make_user, login_as):
    login_as(await make_user("ana@example.com"))
    created = await save_summary(client, scripted_model)

    login_as(await make_user("bo@example.com"))
    listing = (await client.get("/v1/summaries")).json()

    assert listing["summaries"] == []
    assert listing["total"] == 0
    r = await client.get(f"/v1/summaries/{created['id']}")
    assert r.status_code == 404


async def test_failed_summary_is_not_stored(client, scripted_model, make_user, login_as):
    login_as(await make_user("ana@example.com"))
    scripted_model.queue("   ")

    r = await client.post("/v1/summaries", json={"source_text": SOURCE})

    assert r.status_code == 500
    assert (await client.get("/v1/summaries")).json()["total"] == 0


async def test_anonymous_caller_cannot_save(client, scripted_model):
    r = await client.post("/v1/summaries", json={"source_text": SOURCE})
    assert r.status_code == 401
    assert scripted_model.calls == []
