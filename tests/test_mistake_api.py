from datetime import date

import pytest
from bson import ObjectId
from fastapi import HTTPException

from app.routers.mistake_router import update_with_version_check


def create_mistake(client, **fields):
    body = {
        "mistake": "Checked my phone first thing in the morning",
        "solution": "Keep the phone outside the bedroom",
        "date": "2025-03-01",
        "category": "time_management",
    }
    body.update(fields)
    response = client.post("/api/mistakes", json=body)
    assert response.status_code == 201
    return response.json()


def toggle(client, entry_id):
    response = client.patch(f"/api/mistakes/{entry_id}/toggle-avoided")
    assert response.status_code == 200
    return response.json()


def test_new_mistake_starts_without_streak(client, mongo_db):
    created = create_mistake(client)

    assert created["avoided"] is False
    assert created["streakInfo"] == {"currentStreak": 0, "bestStreak": 0, "lastAvoidedDate": ""}
    assert created["type"] == "mistake"
    assert mongo_db["mistakes"].find_one({"_id": ObjectId(created["_id"])})["version"] == 0


def test_create_rejects_unknown_category(client):
    response = client.post(
        "/api/mistakes",
        json={"mistake": "x", "solution": "y", "date": "2025-03-01", "category": "gaming"},
    )

    assert response.status_code == 422


def test_toggle_builds_streak_across_days(client, today_state):
    entry_id = create_mistake(client)["_id"]

    today_state["today"] = date(2025, 1, 1)
    first = toggle(client, entry_id)
    assert first["avoided"] is True
    assert first["streakInfo"] == {"currentStreak": 1, "bestStreak": 1, "lastAvoidedDate": "2025-01-01"}

    # Toggling back off keeps the streak data untouched
    off = toggle(client, entry_id)
    assert off["avoided"] is False
    assert off["streakInfo"]["currentStreak"] == 1

    today_state["today"] = date(2025, 1, 2)
    second = toggle(client, entry_id)
    assert second["streakInfo"] == {"currentStreak": 2, "bestStreak": 2, "lastAvoidedDate": "2025-01-02"}

    toggle(client, entry_id)
    today_state["today"] = date(2025, 1, 5)
    after_gap = toggle(client, entry_id)
    assert after_gap["streakInfo"] == {"currentStreak": 1, "bestStreak": 2, "lastAvoidedDate": "2025-01-05"}


def test_put_avoided_updates_streak(client, today_state):
    entry_id = create_mistake(client)["_id"]
    today_state["today"] = date(2025, 1, 1)
    client.put(f"/api/mistakes/{entry_id}", json={"avoided": True})
    today_state["today"] = date(2025, 1, 2)

    response = client.put(
        f"/api/mistakes/{entry_id}", json={"avoided": True, "solution": "Use an alarm clock"}
    )

    body = response.json()
    assert response.status_code == 200
    assert body["solution"] == "Use an alarm clock"
    assert body["streakInfo"]["currentStreak"] == 2


def test_put_without_avoided_leaves_streak_alone(client, today_state):
    entry_id = create_mistake(client)["_id"]
    toggle(client, entry_id)

    body = client.put(
        f"/api/mistakes/{entry_id}", json={"mistake": "", "category": "health"}
    ).json()

    assert body["avoided"] is True
    assert body["mistake"] == "Checked my phone first thing in the morning"
    assert body["category"] == "health"
    assert body["streakInfo"]["currentStreak"] == 1


def test_put_avoided_false_clears_flag(client):
    entry_id = create_mistake(client)["_id"]
    toggle(client, entry_id)

    body = client.put(f"/api/mistakes/{entry_id}", json={"avoided": False}).json()

    assert body["avoided"] is False
    assert body["streakInfo"]["currentStreak"] == 1


def test_every_write_bumps_version(client, mongo_db):
    entry_id = create_mistake(client)["_id"]
    toggle(client, entry_id)
    toggle(client, entry_id)

    assert mongo_db["mistakes"].find_one({"_id": ObjectId(entry_id)})["version"] == 2


def test_legacy_document_without_version_can_be_toggled(client, mongo_db):
    result = mongo_db["mistakes"].insert_one({
        "userId": "user-1",
        "mistake": "Skipped breakfast",
        "solution": "Prepare it the night before",
        "date": "2025-03-01",
    })

    body = toggle(client, str(result.inserted_id))

    assert body["avoided"] is True
    assert body["streakInfo"]["currentStreak"] == 1
    assert mongo_db["mistakes"].find_one({"_id": result.inserted_id})["version"] == 1


def test_toggle_missing_entry(client):
    response = client.patch(f"/api/mistakes/{ObjectId()}/toggle-avoided")

    assert response.status_code == 404
    assert response.json()["detail"] == "Mistake entry not found"


def test_concurrent_write_is_retried_with_fresh_state(mongo_db):
    collection = mongo_db["mistakes"]
    entry_id = collection.insert_one({"userId": "user-1", "counter": 0, "version": 0}).inserted_id
    entry_filter = {"_id": entry_id, "userId": "user-1"}
    seen = []

    def build_changes(entry):
        seen.append(entry["counter"])
        if len(seen) == 1:
            # Another request lands between our read and our write
            collection.update_one({"_id": entry_id}, {"$set": {"counter": 10}, "$inc": {"version": 1}})
        return {"counter": entry["counter"] + 1}

    updated = update_with_version_check(collection, entry_filter, build_changes)

    assert seen == [0, 10]
    assert updated["counter"] == 11
    assert updated["version"] == 2


def test_persistent_conflict_gives_409(mongo_db):
    collection = mongo_db["mistakes"]
    entry_id = collection.insert_one({"userId": "user-1", "version": 0}).inserted_id

    def build_changes(entry):
        collection.update_one({"_id": entry_id}, {"$inc": {"version": 1}})
        return {"avoided": True}

    with pytest.raises(HTTPException) as excinfo:
        update_with_version_check(collection, {"_id": entry_id, "userId": "user-1"}, build_changes)

    assert excinfo.value.status_code == 409
    assert collection.find_one({"_id": entry_id}).get("avoided") is None


def test_list_filters_by_category(client):
    create_mistake(client)
    create_mistake(client, category="finance")

    body = client.get("/api/mistakes", params={"category": "finance"}).json()

    assert [e["category"] for e in body["entries"]] == ["finance"]
    assert body["pagination"]["totalEntries"] == 1


def test_delete_mistake(client):
    entry_id = create_mistake(client)["_id"]

    assert client.delete(f"/api/mistakes/{entry_id}").json() == {
        "message": "Mistake entry deleted successfully"
    }
    assert client.get(f"/api/mistakes/{entry_id}").status_code == 404


def test_null_last_avoided_date_is_treated_as_never_avoided(client, mongo_db, today_state):
    result = mongo_db["mistakes"].insert_one({
        "userId": "user-1",
        "mistake": "Snoozed the alarm",
        "solution": "Put the alarm across the room",
        "date": "2025-03-01",
        "avoided": False,
        "streakInfo": {"currentStreak": 0, "bestStreak": 3, "lastAvoidedDate": None},
        "version": 0,
    })

    assert client.get(f"/api/mistakes/{result.inserted_id}").json()["streakInfo"]["lastAvoidedDate"] == ""

    body = toggle(client, str(result.inserted_id))

    assert body["streakInfo"] == {"currentStreak": 1, "bestStreak": 3, "lastAvoidedDate": "2025-03-10"}
