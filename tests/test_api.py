import pytest
from sqlalchemy.exc import OperationalError

BOOKING = {"name": "Alice", "phone": "555-1111", "date": "2024-06-12", "time": "09:00", "type": "regular"}
STAFF = {"X-Staff-Name": "Dr. House"}


async def _book(client, **overrides) -> dict:
    response = await client.post("/api/v1/appointments", json={**BOOKING, **overrides})
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_create_and_fetch_appointment(client):
    created = await _book(client, notes="first visit")
    assert created["status"] == "pending"
    assert created["notes"] == "first visit"
    assert "id" in created

    fetched = await client.get(f"/api/v1/appointments/{created['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["name"] == "Alice"


@pytest.mark.asyncio
async def test_create_with_missing_field_is_refused(client):
    response = await client.post("/api/v1/appointments", json={**BOOKING, "phone": ""})
    assert response.status_code == 422
    body = response.json()
    assert body["success"] is False
    assert "phone" in body["message"]

    listing = await client.get("/api/v1/appointments")
    assert listing.json() == []


@pytest.mark.asyncio
async def test_duplicate_slot_returns_conflict(client):
    await _book(client)
    response = await client.post("/api/v1/appointments", json={**BOOKING, "type": "urgent"})
    assert response.status_code == 409
    assert response.json() == {"success": False, "message": "An appointment already exists for this time slot"}


@pytest.mark.asyncio
async def test_doctor_flow_with_follow_up(client):
    created = await _book(client)
    appointment_id = created["id"]

    accepted = await client.post(f"/api/v1/doctor/appointments/{appointment_id}/accept", headers=STAFF)
    assert accepted.status_code == 200
    assert accepted.json()["status"] == "approved"

    completed = await client.post(
        f"/api/v1/doctor/appointments/{appointment_id}/complete",
        headers=STAFF,
        json={
            "doctorNotes": "Sutures placed",
            "requiresFollowUp": True,
            "followUpDate": "2024-06-26",
            "followUpTime": "11:30",
        },
    )
    assert completed.status_code == 200
    body = completed.json()
    assert body["status"] == "completed"
    assert body["resolved_by"] == "Dr. House"
    assert body["doctor_notes"] == "Sutures placed"
    assert body["requires_follow_up"] is True

    pending = await client.get("/api/v1/appointments", params={"status": "pending"})
    follow_ups = pending.json()
    assert len(follow_ups) == 1
    assert follow_ups[0]["type"] == "follow"
    assert follow_ups[0]["follow_up_of_id"] == appointment_id
    assert (follow_ups[0]["date"], follow_ups[0]["time"]) == ("2024-06-26", "11:30")


@pytest.mark.asyncio
async def test_actor_defaults_without_header(client):
    created = await _book(client)
    response = await client.post(f"/api/v1/doctor/appointments/{created['id']}/complete")
    assert response.status_code == 200
    assert response.json()["resolved_by"] == "Dr. Smith"
    assert response.json()["doctor_notes"] == ""


@pytest.mark.asyncio
async def test_reject_and_reschedule_routes(client):
    first = await _book(client)
    second = await _book(client, name="Bob", time="10:00")

    rejected = await client.post(f"/api/v1/doctor/appointments/{first['id']}/reject")
    assert rejected.status_code == 200
    assert rejected.json()["rejection_reason"] == "No reason provided"

    moved = await client.post(
        f"/api/v1/doctor/appointments/{second['id']}/reschedule",
        json={"newDate": "2024-06-13", "newTime": "14:00", "rescheduleReason": "Doctor away"},
    )
    assert moved.status_code == 200
    assert moved.json()["status"] == "rescheduled"
    assert (moved.json()["date"], moved.json()["time"]) == ("2024-06-13", "14:00")

    missing = await client.post(f"/api/v1/doctor/appointments/{second['id']}/reschedule", json={})
    assert missing.status_code == 422


@pytest.mark.asyncio
async def test_invalid_transition_returns_conflict(client):
    created = await _book(client)
    await client.post(f"/api/v1/doctor/appointments/{created['id']}/cancel")
    response = await client.post(f"/api/v1/doctor/appointments/{created['id']}/start")
    assert response.status_code == 409
    assert response.json()["message"] == "Cannot move appointment from cancelled to in-progress"


@pytest.mark.asyncio
async def test_status_and_notes_endpoints(client):
    created = await _book(client)
    started = await client.put(
        f"/api/v1/appointments/{created['id']}/status",
        json={"status": "approved", "doctor_notes": "Bring X-rays"},
    )
    assert started.status_code == 200
    assert started.json()["status"] == "approved"
    assert started.json()["doctor_notes"] == "Bring X-rays"

    noted = await client.put(f"/api/v1/appointments/{created['id']}/notes", json={"doctorNotes": "Confirmed"})
    assert noted.status_code == 200
    assert noted.json()["doctor_notes"] == "Confirmed"
    assert noted.json()["status"] == "approved"


@pytest.mark.asyncio
async def test_list_search_and_summary(client):
    await _book(client)
    await _book(client, name="Bob", phone="555-2222", date="2024-06-11", type="urgent")

    found = await client.get("/api/v1/appointments", params={"search": "bob"})
    assert [item["name"] for item in found.json()] == ["Bob"]

    ordered = await client.get("/api/v1/appointments", params={"sort": "date"})
    assert [item["name"] for item in ordered.json()] == ["Bob", "Alice"]

    summary = await client.get("/api/v1/appointments/summary")
    assert summary.status_code == 200
    assert summary.json()["today_appointments"] == 1
    assert summary.json()["urgent_appointments"] == 1

    today = await client.get("/api/v1/doctor/schedule/today")
    assert [item["name"] for item in today.json()] == ["Alice"]


@pytest.mark.asyncio
async def test_delete_then_not_found(client):
    created = await _book(client)
    deleted = await client.delete(f"/api/v1/appointments/{created['id']}")
    assert deleted.status_code == 204

    response = await client.get(f"/api/v1/appointments/{created['id']}")
    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Appointment not found"}


@pytest.mark.asyncio
async def test_doctor_stats_and_analytics(client):
    created = await _book(client)
    await _book(client, name="Bob", time="14:00", type="urgent")
    await client.post(f"/api/v1/doctor/appointments/{created['id']}/complete")

    stats = await client.get("/api/v1/doctor/stats")
    assert stats.status_code == 200
    body = stats.json()
    assert body["counts"]["total"] == 2
    assert body["counts"]["completed"] == 1
    assert body["completion_rate"] == 50
    assert body["today"] == 2
    assert body["this_week_appointments"] == 2
    assert body["degraded"] is False

    analytics = await client.get("/api/v1/doctor/analytics", params={"period": 7})
    assert analytics.status_code == 200
    assert analytics.json()["period"] == 7
    assert analytics.json()["time_slots"] == {"09": 1, "14": 1}

    too_long = await client.get("/api/v1/doctor/analytics", params={"period": 0})
    assert too_long.status_code == 422


@pytest.mark.asyncio
async def test_insights_and_report(client):
    await _book(client)
    await _book(client, name="Bob", date="2024-06-11")

    response = await client.get("/api/v1/insights", params={"days": 7})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] is None
    data = body["data"]
    assert data["window_days"] == 7
    assert data["stats"]["total_appointments"] == 2
    assert data["chart_data"]["labels"][-1] == "Jun 12"
    assert data["chart_data"]["data"][-2:] == [1, 1]
    assert data["peak_hours"]["peak_hour"] == "09:00"

    report = await client.post("/api/v1/insights/report", json={"reportType": "weekly", "dateRange": 3})
    assert report.status_code == 200
    report_body = report.json()
    assert report_body["message"] == "Report generated successfully"
    assert report_body["data"]["report_type"] == "weekly"
    assert report_body["data"]["data"]["window_days"] == 3


@pytest.mark.asyncio
async def test_blank_notes_are_refused(client):
    created = await _book(client)
    response = await client.put(f"/api/v1/appointments/{created['id']}/notes", json={"doctorNotes": "   "})
    assert response.status_code == 422

    fetched = await client.get(f"/api/v1/appointments/{created['id']}")
    assert fetched.json()["doctor_notes"] is None


@pytest.mark.asyncio
async def test_summary_degrades_when_store_fails(client, db_session, monkeypatch):
    await _book(client)

    async def broken(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("database is down"))

    monkeypatch.setattr(db_session, "execute", broken)
    response = await client.get("/api/v1/appointments/summary")
    assert response.status_code == 200
    body = response.json()
    assert body["degraded"] is True
    assert body["total_appointments"] == 0
    assert body["completion_rate"] == 0


@pytest.mark.asyncio
async def test_store_failure_on_booking_returns_503(client, db_session, monkeypatch):
    async def broken(*args, **kwargs):
        raise OperationalError("COMMIT", {}, Exception("database is down"))

    monkeypatch.setattr(db_session, "commit", broken)
    response = await client.post("/api/v1/appointments", json=BOOKING)
    assert response.status_code == 503
    assert response.json() == {"success": False, "message": "Appointment store unavailable"}
