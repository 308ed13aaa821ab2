"""API tests for bookings, availability checks and availability requests."""

from datetime import date

import pytest_asyncio
from sqlalchemy import select

from app.models.audit import AuditLog
from app.models.booking import Booking
from app.models.enums import BookingStatus, BookingType


def _guest_booking(property_id, start, end, **extra):
    payload = {
        "property_id": str(property_id),
        "type": "CONFIRMED",
        "start_date": start,
        "end_date": end,
        "guest_name": "Ada Martin",
        "guest_email": "ada@example.com",
    }
    payload.update(extra)
    return payload


async def _actions(session_maker, entity_type):
    async with session_maker() as session:
        result = await session.execute(
            select(AuditLog.action).where(AuditLog.entity_type == entity_type).order_by(AuditLog.created_at)
        )
        return list(result.scalars().all())


@pytest_asyncio.fixture
async def stay(db_session, villa) -> Booking:
    booking = Booking(
        property_id=villa.id,
        type=BookingType.CONFIRMED,
        status=BookingStatus.CONFIRMED,
        start_date=date(2025, 7, 1),
        end_date=date(2025, 7, 8),
        guest_name="Grace Hopper",
        guest_email="grace@example.com",
        total_amount=7000,
    )
    db_session.add(booking)
    await db_session.commit()
    return booking


class TestBookingCrud:
    async def test_guest_booking_is_not_audited(self, client, session_maker, villa):
        resp = await client.post("/v1/bookings", json=_guest_booking(villa.id, "2025-08-01", "2025-08-08"))

        assert resp.status_code == 201
        body = resp.json()
        assert body["property_name"] == "Villa Azur"
        assert body["source"] == "MANUAL"
        assert body["created_by"] == "uid-admin"
        assert await _actions(session_maker, "booking") == []

    async def test_owner_stay_is_audited(self, client, session_maker, villa):
        resp = await client.post(
            "/v1/bookings",
            json={
                "property_id": str(villa.id),
                "type": "OWNER_STAY",
                "start_date": "2025-09-01",
                "end_date": "2025-09-10",
                "metadata": {"note": "family"},
            },
        )

        assert resp.status_code == 201
        assert resp.json()["metadata"] == {"note": "family"}
        assert await _actions(session_maker, "booking") == ["create"]

    async def test_guest_details_are_required(self, client, villa):
        payload = _guest_booking(villa.id, "2025-08-01", "2025-08-08", guest_email=None)

        resp = await client.post("/v1/bookings", json=payload)

        assert resp.status_code == 422
        assert "Guest name and email are required" in resp.json()["error"]

    async def test_overlap_is_a_conflict(self, client, stay, villa):
        resp = await client.post("/v1/bookings", json=_guest_booking(villa.id, "2025-07-07", "2025-07-10"))

        assert resp.status_code == 409
        assert resp.json()["error"] == "Booking conflicts with existing bookings: CONFIRMED"

    async def test_back_to_back_stays_do_not_conflict(self, client, stay, villa):
        resp = await client.post("/v1/bookings", json=_guest_booking(villa.id, "2025-07-08", "2025-07-12"))

        assert resp.status_code == 201

    async def test_cancelled_bookings_skip_the_calendar_check(self, client, stay, villa):
        resp = await client.post(
            "/v1/bookings",
            json=_guest_booking(villa.id, "2025-07-02", "2025-07-05", status="CANCELLED"),
        )

        assert resp.status_code == 201

    async def test_update_rechecks_dates(self, client, stay, villa):
        other = await client.post("/v1/bookings", json=_guest_booking(villa.id, "2025-07-10", "2025-07-15"))
        other_id = other.json()["id"]

        resp = await client.patch(f"/v1/bookings/{other_id}", json={"start_date": "2025-07-05"})
        assert resp.status_code == 409

        resp = await client.patch(f"/v1/bookings/{other_id}", json={"end_date": "2025-07-09"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "End date must be after start date"

        resp = await client.patch(f"/v1/bookings/{other_id}", json={"end_date": "2025-07-20", "notes": "Late checkout"})
        assert resp.status_code == 200
        assert resp.json()["notes"] == "Late checkout"

    async def test_update_cannot_drop_guest_details(self, client, stay):
        resp = await client.patch(f"/v1/bookings/{stay.id}", json={"guest_name": ""})

        assert resp.status_code == 400
        assert resp.json()["error"] == "Guest name and email are required for this booking type"

    async def test_delete_is_audited(self, client, session_maker, stay):
        resp = await client.delete(f"/v1/bookings/{stay.id}")

        assert resp.status_code == 204
        assert await _actions(session_maker, "booking") == ["delete"]
        assert (await client.get(f"/v1/bookings/{stay.id}")).status_code == 404

    async def test_other_organizations_bookings_are_hidden(self, client, auth, stay):
        auth.login("outsider")

        resp = await client.get(f"/v1/bookings/{stay.id}")

        assert resp.status_code == 404
        assert resp.json()["error"] == "Booking not found"


class TestBookingQueries:
    async def test_list_filters(self, client, stay, villa):
        await client.post(
            "/v1/bookings",
            json={
                "property_id": str(villa.id),
                "type": "MAINTENANCE",
                "start_date": "2025-08-01",
                "end_date": "2025-08-03",
                "notes": "Pool pump",
            },
        )

        resp = await client.get("/v1/bookings", params={"type": "MAINTENANCE"})
        assert [b["type"] for b in resp.json()["bookings"]] == ["MAINTENANCE"]

        resp = await client.get("/v1/bookings", params={"search": "grace"})
        assert [b["guest_name"] for b in resp.json()["bookings"]] == ["Grace Hopper"]

        resp = await client.get("/v1/bookings", params={"sort_order": "desc", "limit": 1})
        body = resp.json()
        assert body["total"] == 2
        assert body["pages"] == 2
        assert body["bookings"][0]["type"] == "MAINTENANCE"

        resp = await client.get("/v1/bookings", params={"start_date": "2025-07-20", "end_date": "2025-07-31"})
        assert resp.json()["total"] == 0

    async def test_simple_availability(self, client, stay, villa):
        resp = await client.get(
            "/v1/bookings/availability",
            params={"property_id": str(villa.id), "start_date": "2025-07-05", "end_date": "2025-07-09"},
        )
        body = resp.json()
        assert body["available"] is False
        assert [c["id"] for c in body["conflicts"]] == [str(stay.id)]

        resp = await client.get(
            "/v1/bookings/availability",
            params={
                "property_id": str(villa.id),
                "start_date": "2025-07-05",
                "end_date": "2025-07-09",
                "exclude_booking_id": str(stay.id),
            },
        )
        assert resp.json()["available"] is True

    async def test_availability_rejects_inverted_dates(self, client, villa):
        resp = await client.get(
            "/v1/bookings/availability",
            params={"property_id": str(villa.id), "start_date": "2025-07-09", "end_date": "2025-07-09"},
        )

        assert resp.status_code == 400

    async def test_advanced_availability(self, client, stay, villa):
        resp = await client.post(
            "/v1/bookings/availability/advanced",
            json={
                "property_id": str(villa.id),
                "start_date": "2025-07-06",
                "end_date": "2025-07-09",
                "grace_period_hours": 24,
            },
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["available"] is False
        assert body["conflicts"][0]["conflict_type"] == "overlap"
        assert body["conflicts"][0]["severity"] == "blocking"
        assert [s["reason"] for s in body["suggestions"]] == ["Available after Grace Hopper"]
        assert body["suggestions"][0]["start_date"].startswith("2025-07-09")

    async def test_stats(self, client, stay, villa):
        resp = await client.get(
            "/v1/bookings/stats",
            params={"property_id": str(villa.id), "start_date": "2025-07-01", "end_date": "2025-07-31"},
        )

        body = resp.json()
        assert body["total_bookings"] == 1
        assert body["total_nights"] == 7
        assert body["occupancy_rate"] == 23.33
        assert body["total_revenue"] == 7000


class TestBookingImport:
    async def test_partial_import(self, client, session_maker, stay, villa):
        resp = await client.post(
            "/v1/bookings/import",
            json={
                "property_id": str(villa.id),
                "bookings": [
                    {"type": "BLOCKED", "start_date": "2025-08-01", "end_date": "2025-08-05"},
                    {"type": "CONFIRMED", "start_date": "2025-08-10", "end_date": "2025-08-12", "guest_name": "Ada"},
                    {"type": "OWNER", "start_date": "2025-08-04", "end_date": "2025-08-06"},
                    {"type": "OWNER", "start_date": "2025-07-03", "end_date": "2025-07-04"},
                ],
            },
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is False
        assert body["imported"] == 1
        assert body["errors"] == [
            "Booking 2: Guest name and email are required",
            "Booking 3: Conflicts with existing bookings (2025-08-04 to 2025-08-06)",
            "Booking 4: Conflicts with existing bookings (2025-07-03 to 2025-07-04)",
        ]
        assert await _actions(session_maker, "booking") == ["import"]

    async def test_viewer_cannot_import(self, client, auth, villa):
        auth.login("viewer")

        resp = await client.post(
            "/v1/bookings/import",
            json={
                "property_id": str(villa.id),
                "bookings": [{"type": "BLOCKED", "start_date": "2025-08-01", "end_date": "2025-08-05"}],
            },
        )

        assert resp.status_code == 403


class TestAvailabilityRequests:
    def _payload(self, property_id, urgency="NORMAL", start="2025-07-20"):
        return {
            "property_id": str(property_id),
            "start_date": start,
            "end_date": "2025-07-27",
            "guest_name": "Linus",
            "guest_email": "linus@example.com",
            "number_of_guests": 4,
            "urgency": urgency,
        }

    async def test_any_member_can_ask(self, client, auth, session_maker, villa):
        auth.login("viewer")

        resp = await client.post("/v1/availability-requests", json=self._payload(villa.id))

        assert resp.status_code == 201
        body = resp.json()
        assert body["status"] == "PENDING"
        assert body["requested_by"] == "uid-viewer"
        assert body["property_name"] == "Villa Azur"
        assert await _actions(session_maker, "AvailabilityRequest") == ["create"]

    async def test_non_members_cannot_ask(self, client, auth, villa):
        auth.login("loner")

        resp = await client.post("/v1/availability-requests", json=self._payload(villa.id))

        assert resp.status_code == 403

    async def test_sorted_by_urgency(self, client, villa):
        for urgency in ("LOW", "URGENT", "NORMAL", "HIGH"):
            await client.post("/v1/availability-requests", json=self._payload(villa.id, urgency))

        resp = await client.get("/v1/availability-requests", params={"sort_by": "urgency", "sort_order": "desc"})
        assert [r["urgency"] for r in resp.json()["requests"]] == ["URGENT", "HIGH", "NORMAL", "LOW"]

        resp = await client.get("/v1/availability-requests", params={"urgency": "high"})
        assert resp.json()["total"] == 1

    async def test_invalid_filter(self, client, villa):
        resp = await client.get("/v1/availability-requests", params={"status": "maybe"})

        assert resp.status_code == 400
        assert resp.json()["error"] == "Invalid filter value"

    async def test_status_change_and_delete(self, client, auth, session_maker, villa):
        created = await client.post("/v1/availability-requests", json=self._payload(villa.id))
        request_id = created.json()["id"]

        auth.login("viewer")
        resp = await client.patch(f"/v1/availability-requests/{request_id}/status", json={"status": "CONFIRMED"})
        assert resp.status_code == 403

        auth.login("staff")
        resp = await client.patch(f"/v1/availability-requests/{request_id}/status", json={"status": "CONFIRMED"})
        assert resp.status_code == 200
        assert resp.json()["status"] == "CONFIRMED"

        resp = await client.delete(f"/v1/availability-requests/{request_id}")
        assert resp.status_code == 204
        assert await _actions(session_maker, "AvailabilityRequest") == ["create", "update", "delete"]
