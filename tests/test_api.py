import uuid
from datetime import date, time, timedelta

import pytest

from clinic_scheduler.models.shift import Shift, ShiftStatus
from clinic_scheduler.scheduling.conflicts import validate_shift
from clinic_scheduler.scheduling.validators import day_of_week
from clinic_scheduler.services import shift_generator
from clinic_scheduler.services.repository import SchedulingRepository
from conftest import auth_headers


def upcoming(dow: int, min_days: int = 14) -> date:
    """First date with the given Sunday-based weekday at least min_days out."""
    d = date.today() + timedelta(days=min_days)
    while day_of_week(d) != dow:
        d += timedelta(days=1)
    return d


def post_schedule(client, headers, staff_id, day=1, start="09:00", end="12:00", **extra):
    body = {"staff_id": str(staff_id), "day_of_week": day, "start_time": start, "end_time": end, **extra}
    return client.post("/schedules", json=body, headers=headers)


def post_shift(client, headers, staff_id, d, start="09:00", end="17:00"):
    body = {"staff_id": str(staff_id), "shift_date": d.isoformat(), "start_time": start, "end_time": end}
    return client.post("/shifts", json=body, headers=headers)


def post_time_off(client, headers, staff_id, start, end, type_="vacation"):
    body = {
        "staff_id": str(staff_id),
        "start_date": start.isoformat(),
        "end_date": end.isoformat(),
        "reason": "family trip",
        "type": type_,
    }
    return client.post("/time-off", json=body, headers=headers)


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


# ---------- staff ----------
def test_create_list_and_deactivate_staff(client, manager_headers):
    r = client.post(
        "/staff",
        json={"employee_code": "PH-100", "name": "Sam Okafor", "position": "PHARMACIST", "department": "Pharmacy"},
        headers=manager_headers,
    )
    assert r.status_code == 201
    staff_id = r.json()["staff_id"]
    assert r.json()["is_active"] is True

    dup = client.post(
        "/staff",
        json={"employee_code": "PH-100", "name": "Other", "position": "NURSE", "department": "Ward"},
        headers=manager_headers,
    )
    assert dup.status_code == 400

    r = client.post(f"/staff/{staff_id}/deactivate", headers=manager_headers)
    assert r.status_code == 200
    assert r.json()["is_active"] is False

    active = client.get("/staff", headers=manager_headers).json()
    everyone = client.get("/staff", params={"include_inactive": "true"}, headers=manager_headers).json()
    assert staff_id not in [s["staff_id"] for s in active]
    assert staff_id in [s["staff_id"] for s in everyone]


def test_update_staff(client, manager_headers, make_staff):
    staff = make_staff()
    r = client.patch(f"/staff/{staff.staff_id}", json={"department": "Outpatient"}, headers=manager_headers)
    assert r.status_code == 200
    assert r.json()["department"] == "Outpatient"
    assert r.json()["name"] == "Dana Reyes"


def test_staff_profile_links_one_user(client, manager_headers):
    user_id = str(uuid.uuid4())
    body = {"employee_code": "PH-200", "user_id": user_id, "name": "Sam Okafor", "position": "PHARMACIST", "department": "Pharmacy"}
    r = client.post("/staff", json=body, headers=manager_headers)
    assert r.status_code == 201
    assert r.json()["user_id"] == user_id

    again = client.post("/staff", json={**body, "employee_code": "PH-201"}, headers=manager_headers)
    assert again.status_code == 400
    assert again.json()["detail"] == "User already has a staff profile"


def test_unknown_staff_is_404(client, manager_headers):
    r = client.get("/staff/00000000-0000-0000-0000-000000000000", headers=manager_headers)
    assert r.status_code == 404


# ---------- recurring schedules ----------
def test_overlapping_schedule_is_409_with_conflicting_id(client, manager_headers, make_staff):
    staff = make_staff()
    first = post_schedule(client, manager_headers, staff.staff_id, start="09:00", end="12:00")
    assert first.status_code == 201

    r = post_schedule(client, manager_headers, staff.staff_id, start="11:00", end="13:00")
    assert r.status_code == 409
    body = r.json()
    assert body["conflict"] == "overlap_conflict"
    assert body["conflicting_id"] == first.json()["schedule_id"]

    # nothing persisted on rejection
    schedules = client.get("/schedules", params={"staff_id": str(staff.staff_id)}, headers=manager_headers).json()
    assert len(schedules) == 1


def test_back_to_back_schedule_is_created(client, manager_headers, make_staff):
    staff = make_staff()
    assert post_schedule(client, manager_headers, staff.staff_id, start="09:00", end="12:00").status_code == 201
    r = post_schedule(client, manager_headers, staff.staff_id, start="12:00", end="15:00")
    assert r.status_code == 201
    assert r.json()["start_time"] == "12:00:00"


@pytest.mark.parametrize(
    "day, start, end",
    [(7, "09:00", "12:00"), (1, "9am", "12:00"), (1, "12:00", "09:00")],
)
def test_malformed_schedule_is_400(client, manager_headers, make_staff, day, start, end):
    staff = make_staff()
    r = post_schedule(client, manager_headers, staff.staff_id, day=day, start=start, end=end)
    assert r.status_code == 400
    assert r.json()["detail"]


def test_schedule_for_inactive_staff_is_400(client, manager_headers, make_staff):
    staff = make_staff(is_active=False)
    assert post_schedule(client, manager_headers, staff.staff_id).status_code == 400


def test_retired_schedule_frees_the_slot(client, manager_headers, make_staff):
    staff = make_staff()
    first = post_schedule(client, manager_headers, staff.staff_id, start="09:00", end="12:00").json()

    r = client.patch(f"/schedules/{first['schedule_id']}", json={"is_active": False}, headers=manager_headers)
    assert r.status_code == 200
    assert r.json()["is_active"] is False

    assert post_schedule(client, manager_headers, staff.staff_id, start="10:00", end="14:00").status_code == 201


def test_schedule_update_is_rechecked(client, manager_headers, make_staff):
    staff = make_staff()
    post_schedule(client, manager_headers, staff.staff_id, start="13:00", end="17:00")
    morning = post_schedule(client, manager_headers, staff.staff_id, start="08:00", end="12:00").json()

    r = client.patch(f"/schedules/{morning['schedule_id']}", json={"end_time": "14:00"}, headers=manager_headers)
    assert r.status_code == 409

    r = client.patch(f"/schedules/{morning['schedule_id']}", json={"start_time": "07:00"}, headers=manager_headers)
    assert r.status_code == 200
    assert r.json()["start_time"] == "07:00:00"
    assert r.json()["end_time"] == "12:00:00"


def test_retiring_schedule_still_checks_times(client, manager_headers, make_staff):
    staff = make_staff()
    sched = post_schedule(client, manager_headers, staff.staff_id, start="09:00", end="12:00").json()
    url = f"/schedules/{sched['schedule_id']}"

    r = client.patch(url, json={"is_active": False, "start_time": "13:00", "end_time": "12:00"}, headers=manager_headers)
    assert r.status_code == 400
    assert r.json()["detail"] == "end_time must be after start_time"

    r = client.patch(url, json={"is_active": False, "break_start": "15:00", "break_end": "14:00"}, headers=manager_headers)
    assert r.status_code == 400

    # nothing from the rejected updates was stored
    r = client.patch(url, json={"is_active": False}, headers=manager_headers)
    assert r.status_code == 200
    assert (r.json()["start_time"], r.json()["end_time"]) == ("09:00:00", "12:00:00")
    assert r.json()["break_start"] is None and r.json()["break_end"] is None


def test_inactive_schedule_edit_is_checked(client, manager_headers, make_staff):
    staff = make_staff()
    sched = post_schedule(client, manager_headers, staff.staff_id, start="09:00", end="17:00").json()
    url = f"/schedules/{sched['schedule_id']}"
    client.patch(url, json={"is_active": False}, headers=manager_headers)

    r = client.patch(url, json={"break_start": "08:00", "break_end": "10:00"}, headers=manager_headers)
    assert r.status_code == 400
    assert r.json()["detail"] == "Break must fall within the scheduled hours"

    r = client.patch(url, json={"break_start": "12:00", "break_end": "13:00"}, headers=manager_headers)
    assert r.status_code == 200
    assert r.json()["is_active"] is False


# ---------- shifts ----------
def test_overlapping_shift_is_409(client, manager_headers, make_staff):
    staff = make_staff()
    d = upcoming(1)
    first = post_shift(client, manager_headers, staff.staff_id, d, "09:00", "13:00")
    assert first.status_code == 201
    assert first.json()["status"] == "scheduled"

    r = post_shift(client, manager_headers, staff.staff_id, d, "12:00", "17:00")
    assert r.status_code == 409
    assert r.json()["conflict"] == "shift_overlap"
    assert r.json()["conflicting_id"] == first.json()["shift_id"]

    listed = client.get(
        "/shifts",
        params={"start_date": d.isoformat(), "end_date": d.isoformat(), "staff_id": str(staff.staff_id)},
        headers=manager_headers,
    ).json()
    assert len(listed) == 1


def test_shift_during_approved_time_off_is_409(client, manager_headers, make_staff):
    staff = make_staff()
    start = upcoming(1)
    leave = post_time_off(client, manager_headers, staff.staff_id, start, start + timedelta(days=4))
    assert leave.status_code == 201
    r = client.post(f"/time-off/{leave.json()['time_off_id']}/review", json={"decision": "approved"}, headers=manager_headers)
    assert r.status_code == 200

    r = post_shift(client, manager_headers, staff.staff_id, start + timedelta(days=2))
    assert r.status_code == 409
    assert r.json()["conflict"] == "time_off_conflict"
    assert r.json()["conflicting_id"] == leave.json()["time_off_id"]


def test_shift_status_transitions(client, manager_headers, make_staff):
    staff = make_staff()
    shift = post_shift(client, manager_headers, staff.staff_id, upcoming(2)).json()

    r = client.patch(f"/shifts/{shift['shift_id']}/status", json={"status": "cancelled"}, headers=manager_headers)
    assert r.status_code == 200
    assert r.json()["status"] == "cancelled"

    r = client.patch(f"/shifts/{shift['shift_id']}/status", json={"status": "in_progress"}, headers=manager_headers)
    assert r.status_code == 400

    # the cancelled shift no longer blocks the slot
    assert post_shift(client, manager_headers, staff.staff_id, upcoming(2)).status_code == 201


def test_generate_shifts_from_schedules(client, manager_headers, make_staff):
    nurse = make_staff(name="Dana Reyes")
    tech = make_staff(name="Lee Park")
    monday = upcoming(1)
    week_end = monday + timedelta(days=6)

    post_schedule(client, manager_headers, nurse.staff_id, day=1, start="09:00", end="17:00")
    post_schedule(client, manager_headers, nurse.staff_id, day=3, start="09:00", end="17:00")
    post_schedule(client, manager_headers, tech.staff_id, day=3, start="07:00", end="15:00")

    # tech is on approved leave that Wednesday
    wednesday = monday + timedelta(days=2)
    leave = post_time_off(client, manager_headers, tech.staff_id, wednesday, wednesday).json()
    client.post(f"/time-off/{leave['time_off_id']}/review", json={"decision": "approved"}, headers=manager_headers)

    body = {"start_date": monday.isoformat(), "end_date": week_end.isoformat()}
    r = client.post("/shifts/generate", json=body, headers=manager_headers)
    assert r.status_code == 200
    assert r.json()["count"] == 2
    assert {s["shift_date"] for s in r.json()["shifts"]} == {monday.isoformat(), wednesday.isoformat()}
    assert all(s["staff_id"] == str(nurse.staff_id) for s in r.json()["shifts"])

    # already materialized days are left alone
    again = client.post("/shifts/generate", json=body, headers=manager_headers)
    assert again.json()["count"] == 0


def test_shift_rejected_by_database_constraint_is_409(client, manager_headers, make_staff, db_session, monkeypatch):
    staff = make_staff()
    tuesday = upcoming(2)
    db_session.add(Shift(staff_id=staff.staff_id, shift_date=tuesday, start_time=time(9), end_time=time(17), status=ShiftStatus.scheduled))
    db_session.commit()

    # a stale snapshot: the engine never sees the shift booked above
    list_by_staff = SchedulingRepository.list_by_staff

    def stale(self, model, staff_id, **filters):
        if model is Shift:
            return []
        return list_by_staff(self, model, staff_id, **filters)

    monkeypatch.setattr(SchedulingRepository, "list_by_staff", stale)

    r = post_shift(client, manager_headers, staff.staff_id, tuesday)
    assert r.status_code == 409
    assert r.json()["conflict"] == "shift_overlap"


def test_generate_rolls_back_when_a_shift_is_booked_meanwhile(client, manager_headers, make_staff, db_session, monkeypatch):
    staff = make_staff()
    monday = upcoming(1)
    post_schedule(client, manager_headers, staff.staff_id, day=1, start="09:00", end="17:00")

    def booked_meanwhile(candidate, existing, time_off):
        if not booked:
            rival = Shift(
                staff_id=candidate.staff_id,
                shift_date=candidate.shift_date,
                start_time=candidate.start_time,
                end_time=candidate.end_time,
                status=ShiftStatus.scheduled,
            )
            db_session.add(rival)
            db_session.commit()
            booked.append(rival)
        return validate_shift(candidate, existing, time_off)

    booked = []
    monkeypatch.setattr(shift_generator, "validate_shift", booked_meanwhile)

    body = {"start_date": monday.isoformat(), "end_date": monday.isoformat()}
    r = client.post("/shifts/generate", json=body, headers=manager_headers)
    assert r.status_code == 409
    assert r.json()["conflict"] == "shift_overlap"

    params = {"start_date": monday.isoformat(), "end_date": monday.isoformat(), "staff_id": str(staff.staff_id)}
    assert len(client.get("/shifts", params=params, headers=manager_headers).json()) == 1


def test_generate_splits_shifts_at_the_break(client, manager_headers, make_staff):
    staff = make_staff()
    monday = upcoming(1)
    post_schedule(
        client, manager_headers, staff.staff_id, day=1, start="09:00", end="17:00",
        break_start="12:00", break_end="13:00",
    )
    url = f"/staff/{staff.staff_id}/effective-schedule"
    before = client.get(url, params={"date": monday.isoformat()}, headers=manager_headers).json()["intervals"]

    body = {"start_date": monday.isoformat(), "end_date": monday.isoformat()}
    r = client.post("/shifts/generate", json=body, headers=manager_headers)
    assert r.json()["count"] == 2
    assert sorted((s["start_time"], s["end_time"]) for s in r.json()["shifts"]) == [
        ("09:00:00", "12:00:00"),
        ("13:00:00", "17:00:00"),
    ]

    after = client.get(url, params={"date": monday.isoformat()}, headers=manager_headers).json()["intervals"]
    assert after == before == [
        {"start_time": "09:00", "end_time": "12:00"},
        {"start_time": "13:00", "end_time": "17:00"},
    ]


def test_generate_rejects_reversed_range(client, manager_headers):
    body = {"start_date": "2030-01-10", "end_date": "2030-01-01"}
    assert client.post("/shifts/generate", json=body, headers=manager_headers).status_code == 400


# ---------- time off ----------
def test_staff_files_own_time_off_and_manager_approves(client, manager_headers, make_staff):
    staff = make_staff()
    own = auth_headers("staff", staff_id=staff.staff_id)
    start = date.today() + timedelta(days=10)

    r = post_time_off(client, own, staff.staff_id, start, start + timedelta(days=2), type_="sick")
    assert r.status_code == 201
    req = r.json()
    assert req["status"] == "pending"
    assert req["type"] == "sick"

    r = client.post(f"/time-off/{req['time_off_id']}/review", json={"decision": "approved", "notes": "ok"}, headers=manager_headers)
    assert r.status_code == 200
    assert r.json()["status"] == "approved"
    assert r.json()["reviewed_by"] is not None
    assert r.json()["reviewed_at"] is not None

    again = client.post(f"/time-off/{req['time_off_id']}/review", json={"decision": "rejected"}, headers=manager_headers)
    assert again.status_code == 400

    approved = client.get("/time-off", params={"status": "approved"}, headers=manager_headers).json()
    assert [t["time_off_id"] for t in approved] == [req["time_off_id"]]


def test_time_off_in_the_past_is_400(client, manager_headers, make_staff):
    staff = make_staff()
    yesterday = date.today() - timedelta(days=1)
    r = post_time_off(client, manager_headers, staff.staff_id, yesterday, yesterday + timedelta(days=3))
    assert r.status_code == 400
    assert "past" in r.json()["detail"]


def test_overlapping_time_off_is_409_unless_rejected(client, manager_headers, make_staff):
    staff = make_staff()
    start = date.today() + timedelta(days=20)
    first = post_time_off(client, manager_headers, staff.staff_id, start, start + timedelta(days=4)).json()

    r = post_time_off(client, manager_headers, staff.staff_id, start + timedelta(days=4), start + timedelta(days=6))
    assert r.status_code == 409
    assert r.json()["conflict"] == "time_off_overlap"

    client.post(f"/time-off/{first['time_off_id']}/review", json={"decision": "rejected"}, headers=manager_headers)
    r = post_time_off(client, manager_headers, staff.staff_id, start + timedelta(days=4), start + timedelta(days=6))
    assert r.status_code == 201


# ---------- resolution ----------
def test_effective_schedule_uses_shift_override(client, manager_headers, make_staff):
    staff = make_staff()
    monday = upcoming(1)
    post_schedule(client, manager_headers, staff.staff_id, day=1, start="09:00", end="17:00")

    url = f"/staff/{staff.staff_id}/effective-schedule"
    r = client.get(url, params={"date": monday.isoformat()}, headers=manager_headers)
    assert r.json()["intervals"] == [{"start_time": "09:00", "end_time": "17:00"}]
    assert r.json()["day_of_week"] == 1

    post_shift(client, manager_headers, staff.staff_id, monday, "10:00", "14:00")
    r = client.get(url, params={"date": monday.isoformat()}, headers=manager_headers)
    assert r.json()["intervals"] == [{"start_time": "10:00", "end_time": "14:00"}]


def test_availability_for_a_date(client, manager_headers, make_staff):
    free = make_staff(name="Ada Free")
    booked = make_staff(name="Ben Booked")
    off_roster = make_staff(name="Cy Weekend")
    monday = upcoming(1)

    post_schedule(client, manager_headers, free.staff_id, day=1, start="09:00", end="17:00")
    post_schedule(client, manager_headers, booked.staff_id, day=1, start="09:00", end="17:00")
    post_schedule(client, manager_headers, off_roster.staff_id, day=6, start="09:00", end="17:00")
    post_shift(client, manager_headers, booked.staff_id, monday, "12:00", "20:00")

    r = client.get("/availability", params={"date": monday.isoformat()}, headers=manager_headers)
    assert r.status_code == 200
    rows = {row["name"]: row for row in r.json()}

    assert rows["Ada Free"]["is_available"] is True
    assert rows["Ada Free"]["effective_intervals"] == [{"start_time": "09:00", "end_time": "17:00"}]
    assert rows["Ben Booked"]["is_available"] is False
    assert rows["Ben Booked"]["has_shift"] is True
    assert rows["Ben Booked"]["effective_intervals"] == [{"start_time": "12:00", "end_time": "20:00"}]
    assert rows["Cy Weekend"]["has_schedule"] is False
    assert rows["Cy Weekend"]["is_available"] is False
