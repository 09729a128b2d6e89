from datetime import datetime, timedelta

import pytest

from appliance_jobs.domain.jobs.repository import JobRepository
from appliance_jobs.models import JobReminder
from appliance_jobs.services import drive_time_service
from appliance_jobs.services.drive_time_service import RouteResolutionError, active_lookup_count


def _when(days=2):
    return (datetime.utcnow() + timedelta(days=days)).replace(microsecond=0)


def _create(client, **overrides):
    payload = {
        "jobType": "Delivery",
        "title": "Washer swap",
        "address": "9 Job Ave",
        "scheduledDate": _when().isoformat(),
        "driveTimeMinutes": 30,
        "numberOfPeople": 1,
    }
    payload.update(overrides)
    return client.post("/jobs", json=payload)


@pytest.fixture
def fake_route(monkeypatch):
    """Replace the network lookup; set .minutes or .error to control it"""

    class Route:
        minutes = 25
        error = None
        calls = []

    async def resolve(origin, destination):
        Route.calls.append((origin, destination))
        if Route.error:
            raise Route.error
        return Route.minutes

    Route.calls = []
    monkeypatch.setattr(drive_time_service, "fetch_drive_time_minutes", resolve)
    return Route


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


def test_create_job_returns_derived_times(client, db):
    r = _create(client, includesInstallation=True)
    assert r.status_code == 201
    body = r.json()

    assert body["jobType"] == "Delivery"
    assert body["status"] == "Upcoming"
    assert body["isCompleted"] is False
    assert body["timeline"]["durationMinutes"] == 120
    assert body["timeline"]["formattedDuration"] == "2h"
    assert body["timeline"]["prepTimeMinutes"] == 60
    assert body["warranty"] is None

    reminders = db.query(JobReminder).filter(JobReminder.job_id == body["id"]).all()
    assert {r.kind for r in reminders} == {"prep", "depart"}


def test_installation_cannot_be_created(client):
    assert _create(client, jobType="Installation").status_code == 422


def test_installation_flag_dropped_for_pickup(client):
    body = _create(client, jobType="Pickup", includesInstallation=True).json()
    assert body["includesInstallation"] is False


def test_blank_title_rejected(client):
    assert _create(client, title="   ").status_code == 422


def test_people_clamped_to_one(client):
    assert _create(client, numberOfPeople=0).json()["numberOfPeople"] == 1


def test_list_filters_by_status(client):
    upcoming = _create(client, title="Later").json()
    past = _create(client, title="Earlier", scheduledDate=_when(days=-3).isoformat()).json()

    all_titles = [j["title"] for j in client.get("/jobs").json()]
    assert all_titles == ["Earlier", "Later"]

    assert [j["id"] for j in client.get("/jobs?status=upcoming").json()] == [upcoming["id"]]
    assert [j["id"] for j in client.get("/jobs?status=completed").json()] == [past["id"]]
    assert client.get("/jobs?status=in_progress").json() == []
    assert client.get("/jobs?status=soon").status_code == 400


def test_past_job_has_running_warranty(client):
    body = _create(client, scheduledDate=_when(days=-3).isoformat()).json()
    assert body["status"] == "Completed"
    assert body["warranty"]["isExpired"] is False
    assert 0 < body["warranty"]["daysRemaining"] < 30


def test_get_missing_job(client):
    assert client.get("/jobs/nope").status_code == 404


def test_update_recomputes_and_reschedules(client, db):
    job = _create(client).json()

    r = client.patch(f"/jobs/{job['id']}", json={"driveTimeMinutes": 60})
    assert r.status_code == 200
    body = r.json()
    assert body["driveTimeMinutes"] == 60
    assert body["title"] == "Washer swap"

    depart = (
        db.query(JobReminder)
        .filter(JobReminder.job_id == job["id"], JobReminder.kind == "depart")
        .one()
    )
    assert depart.trigger_at.isoformat() == body["timeline"]["departureTime"]


def test_editing_legacy_installation_becomes_delivery(client, db):
    legacy = JobRepository.create_job(
        db, job_type="Installation", title="Old install", scheduled_date=_when()
    )

    body = client.patch(f"/jobs/{legacy.id}", json={"title": "Old install (edited)"}).json()
    assert body["jobType"] == "Delivery"
    assert body["includesInstallation"] is True


def test_switching_to_pickup_clears_installation(client):
    job = _create(client, includesInstallation=True).json()
    body = client.patch(f"/jobs/{job['id']}", json={"jobType": "Pickup"}).json()
    assert body["jobType"] == "Pickup"
    assert body["includesInstallation"] is False


def test_complete_job(client, db):
    job = _create(client).json()

    body = client.post(f"/jobs/{job['id']}/complete").json()
    assert body["isCompleted"] is True
    assert body["status"] == "Completed"
    assert body["completedDate"] is not None
    assert body["warranty"]["daysRemaining"] == 30

    assert db.query(JobReminder).filter(JobReminder.job_id == job["id"]).count() == 0


def test_completing_again_moves_completion_date(client, db):
    job = _create(client).json()
    first = client.post(f"/jobs/{job['id']}/complete").json()

    stored = JobRepository.get_job_by_id(db, job["id"])
    backdated = stored.completed_date - timedelta(days=10)
    stored.completed_date = backdated
    db.commit()
    assert client.get(f"/jobs/{job['id']}").json()["warranty"]["daysRemaining"] < 21

    second = client.post(f"/jobs/{job['id']}/complete").json()
    assert second["id"] == first["id"]
    assert second["isCompleted"] is True
    assert datetime.fromisoformat(second["completedDate"]) > backdated
    assert second["warranty"]["daysRemaining"] == 30


def test_delete_job(client, db):
    job = _create(client).json()

    assert client.delete(f"/jobs/{job['id']}").json() == {"message": "Job deleted"}
    assert client.get(f"/jobs/{job['id']}").status_code == 404
    assert db.query(JobReminder).count() == 0


def test_checklist_toggle(client):
    job = _create(client, includesInstallation=True, isPostTinkering=True).json()

    checklist = client.get(f"/jobs/{job['id']}/checklist").json()
    assert [t["name"] for t in checklist["templates"]] == [
        "Delivery Checklist",
        "Installation Checklist",
        "Post-Tinkering",
    ]
    assert checklist["totalCount"] == 14
    assert checklist["progress"] == 0.0

    toggled = client.post(f"/jobs/{job['id']}/checklist/toggle", json={"item": "Ramp"}).json()
    assert toggled["checkedCount"] == 1
    assert toggled["templates"][0]["items"][0] == {"name": "Ramp", "checked": True}

    untoggled = client.post(f"/jobs/{job['id']}/checklist/toggle", json={"item": "Ramp"}).json()
    assert untoggled["checkedCount"] == 0


def test_home_address_settings(client):
    assert client.get("/settings/home-address").json() == {"address": ""}
    r = client.put("/settings/home-address", json={"address": "  1 Home Rd "})
    assert r.json() == {"address": "1 Home Rd"}
    assert client.get("/settings/home-address").json() == {"address": "1 Home Rd"}


def test_refresh_requires_home_address(client, fake_route):
    job = _create(client).json()
    r = client.post(f"/jobs/{job['id']}/drive-time/refresh")
    assert r.status_code == 400
    assert fake_route.calls == []


def test_refresh_requires_job_address(client, fake_route):
    client.put("/settings/home-address", json={"address": "1 Home Rd"})
    job = _create(client, address="").json()
    assert client.post(f"/jobs/{job['id']}/drive-time/refresh").status_code == 400


def test_refresh_applies_clamped_drive_time(client, fake_route):
    client.put("/settings/home-address", json={"address": "1 Home Rd"})
    job = _create(client).json()

    fake_route.minutes = 250
    body = client.post(f"/jobs/{job['id']}/drive-time/refresh").json()

    assert body["driveTimeMinutes"] == 180
    assert body["formattedDriveTime"] == "3h"
    assert body["job"]["driveTimeMinutes"] == 180
    assert fake_route.calls == [("1 Home Rd", "9 Job Ave")]


def test_refresh_failure_keeps_drive_time(client, fake_route):
    client.put("/settings/home-address", json={"address": "1 Home Rd"})
    job = _create(client).json()

    fake_route.error = RouteResolutionError("No route found")
    r = client.post(f"/jobs/{job['id']}/drive-time/refresh")

    assert r.status_code == 502
    assert client.get(f"/jobs/{job['id']}").json()["driveTimeMinutes"] == 30


def test_estimate_uses_home_address(client, fake_route):
    assert client.post("/drive-time/estimate", json={"destination": "9 Job Ave"}).status_code == 400

    client.put("/settings/home-address", json={"address": "1 Home Rd"})
    fake_route.minutes = 3
    body = client.post("/drive-time/estimate", json={"destination": "9 Job Ave"}).json()

    assert body == {
        "superseded": False,
        "driveTimeMinutes": 5,
        "formattedDriveTime": "5m",
        "rawMinutes": 3,
    }


def test_estimate_with_explicit_origin(client, fake_route):
    r = client.post(
        "/drive-time/estimate",
        json={"fieldKey": "form-1", "origin": "2 Depot St", "destination": "9 Job Ave"},
    )
    assert r.json()["driveTimeMinutes"] == 25
    assert fake_route.calls == [("2 Depot St", "9 Job Ave")]


def test_estimate_empty_destination(client):
    r = client.post("/drive-time/estimate", json={"origin": "2 Depot St", "destination": " "})
    assert r.status_code == 400


def test_estimates_do_not_accumulate_lookups(client, fake_route):
    for i in range(50):
        r = client.post(
            "/drive-time/estimate",
            json={"fieldKey": f"form-{i}", "origin": "2 Depot St", "destination": "9 Job Ave"},
        )
        assert r.json()["driveTimeMinutes"] == 25

    assert active_lookup_count() == 0


def test_field_key_named_after_job_does_not_block_refresh(client, fake_route):
    client.put("/settings/home-address", json={"address": "1 Home Rd"})
    job = _create(client).json()

    client.post(
        "/drive-time/estimate",
        json={"fieldKey": f"job:{job['id']}", "destination": "9 Job Ave"},
    )
    fake_route.minutes = 45
    r = client.post(f"/jobs/{job['id']}/drive-time/refresh")

    assert r.status_code == 200
    assert r.json()["driveTimeMinutes"] == 45
    assert active_lookup_count() == 0
