from bson import ObjectId


def create_thought(client, **fields):
    body = {"thought": "What if I fail the interview?", "date": "2025-03-10"}
    body.update(fields)
    response = client.post("/api/overthinking", json=body)
    assert response.status_code == 201
    return response.json()


def test_create_applies_defaults(client):
    created = create_thought(client)

    assert created["intensity"] == 5
    assert created["category"] == "other"
    assert created["solution"] == ""
    assert created["dumped"] is False
    assert created["type"] == "overthinking"


def test_intensity_must_be_between_one_and_ten(client):
    for intensity in (0, 11):
        response = client.post(
            "/api/overthinking",
            json={"thought": "x", "date": "2025-03-10", "intensity": intensity},
        )
        assert response.status_code == 422


def test_dump_marks_thought_released(client):
    entry_id = create_thought(client)["_id"]

    response = client.patch(f"/api/overthinking/{entry_id}/dump")

    assert response.status_code == 200
    assert response.json()["dumped"] is True


def test_dump_missing_entry(client):
    response = client.patch(f"/api/overthinking/{ObjectId()}/dump")

    assert response.status_code == 404
    assert response.json()["detail"] == "Overthinking entry not found"


def test_update_and_filter(client):
    entry_id = create_thought(client, category="work")["_id"]
    create_thought(client, category="future", date="2025-03-11")

    updated = client.put(
        f"/api/overthinking/{entry_id}", json={"thought": "", "intensity": 8, "solution": "Prepare answers"}
    ).json()
    assert updated["thought"] == "What if I fail the interview?"
    assert updated["intensity"] == 8
    assert updated["solution"] == "Prepare answers"

    by_category = client.get("/api/overthinking", params={"category": "work"}).json()
    assert [e["_id"] for e in by_category["entries"]] == [entry_id]

    by_date = client.get("/api/overthinking", params={"date": "2025-03-11"}).json()
    assert [e["category"] for e in by_date["entries"]] == ["future"]


def test_delete_thought(client):
    entry_id = create_thought(client)["_id"]

    assert client.delete(f"/api/overthinking/{entry_id}").json() == {
        "message": "Overthinking entry deleted successfully"
    }
    assert client.delete(f"/api/overthinking/{entry_id}").status_code == 404
