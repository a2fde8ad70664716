import pytest

URL = "/v1/productivity"


def entry(date="2024-01-15", **overrides):
    data = {
        "date": date,
        "productivity_rating": 4,
        "tasks_completed": 6,
        "focus_quality": 3,
        "energy_level": 5,
        "work_hours": 6,
    }
    data.update(overrides)
    return data


def test_create_with_derived_scores(client, auth_headers):
    resp = client.post(URL, headers=auth_headers, json=entry())

    assert resp.status_code == 201
    body = resp.json()
    assert body["efficiency_score"] == pytest.approx(20.0)
    assert body["performance_score"] == pytest.approx(4.0)


def test_zero_work_hours_efficiency(client, auth_headers):
    resp = client.post(URL, headers=auth_headers, json=entry(work_hours=0))
    assert resp.json()["efficiency_score"] == 0


def test_duplicate_date_conflicts(client, auth_headers):
    assert client.post(URL, headers=auth_headers, json=entry()).status_code == 201

    resp = client.post(URL, headers=auth_headers, json=entry())

    assert resp.status_code == 409
    assert resp.json() == {"error": "Productivity entry for this date already exists"}


def test_list_with_date_filter(client, auth_headers):
    for d in ("2024-01-10", "2024-01-12", "2024-01-14"):
        client.post(URL, headers=auth_headers, json=entry(date=d))

    resp = client.get(URL, headers=auth_headers, params={"start_date": "2024-01-11"})

    body = resp.json()
    assert body["pagination"]["total"] == 2
    assert [e["date"] for e in body["data"]] == ["2024-01-14", "2024-01-12"]


def test_update_and_delete(client, auth_headers):
    created = client.post(URL, headers=auth_headers, json=entry()).json()

    resp = client.put(URL, headers=auth_headers, json={"id": created["id"], "energy_level": 2})
    assert resp.status_code == 200
    assert resp.json()["energy_level"] == 2
    assert resp.json()["productivity_rating"] == 4

    resp = client.delete(URL, headers=auth_headers, params={"id": created["id"]})
    assert resp.json() == {"message": "Productivity entry deleted successfully"}

    resp = client.delete(URL, headers=auth_headers, params={"id": created["id"]})
    assert resp.status_code == 404


def test_update_and_delete_require_id(client, auth_headers):
    assert client.put(URL, headers=auth_headers, json={"energy_level": 2}).json() == {"error": "ID is required"}
    assert client.delete(URL, headers=auth_headers).status_code == 400


def test_cannot_touch_other_users_entries(client, auth_headers, db_session):
    from sleeptrack.core.security import issue_token

    from conftest import create_user

    created = client.post(URL, headers=auth_headers, json=entry()).json()
    other = create_user(db_session, email="kim@example.com")
    other_headers = {"Authorization": f"Bearer {issue_token(db_session, other).token}"}

    resp = client.put(URL, headers=other_headers, json={"id": created["id"], "energy_level": 1})

    assert resp.status_code == 404
    assert resp.json() == {"error": "Productivity entry not found"}


def test_update_can_clear_notes(client, auth_headers):
    created = client.post(URL, headers=auth_headers, json=entry(notes="slow morning")).json()

    resp = client.put(URL, headers=auth_headers, json={"id": created["id"], "notes": None})
    assert resp.status_code == 200
    assert resp.json()["notes"] is None

    # required fields sent as null are left untouched
    resp = client.put(URL, headers=auth_headers, json={"id": created["id"], "work_hours": None})
    assert resp.status_code == 200
    assert resp.json()["work_hours"] == 6


def test_list_items_carry_derived_scores(client, auth_headers):
    client.post(URL, headers=auth_headers, json=entry())

    (item,) = client.get(URL, headers=auth_headers).json()["data"]

    assert item["efficiency_score"] == pytest.approx(20.0)
    assert item["performance_score"] == pytest.approx(4.0)
