"""API tests for CSV imports of properties and availability."""

from sqlalchemy import select

from app.models.audit import AuditLog
from app.models.booking import Booking
from app.models.destination import Destination
from app.models.enums import BookingSource, BookingStatus
from app.models.property import Property

PROPERTIES_CSV = (
    b"name,city,bedrooms,destination_name\n"
    b"Villa Nova,Gordes,4,Luberon\n"
    b"Villa Azur,Gassin,6,Saint-Tropez\n"
)

BOOKINGS_CSV = (
    b"propertyName,bookingType,startDate,endDate,guestName,guestEmail\n"
    b"Villa Azur,confirmed,2025-07-01,2025-07-08,Ada Byron,ada@example.com\n"
    b"Villa Azur,OWNER,2025-07-05,2025-07-06,,\n"
    b"Ghost Villa,BLOCKED,2025-07-01,2025-07-02,,\n"
    b"Villa Azur,BLOCKED,2025-07-10,2025-07-09,,\n"
)


def _csv(content, name="import.csv"):
    return {"file": (name, content, "text/csv")}


class TestPropertyPreview:
    async def test_validate_maps_headers_and_previews_rows(self, client, villa):
        content = PROPERTIES_CSV + b"Villa Rosa,Eze,abc,\n"

        resp = await client.post("/v1/imports/properties/validate", files=_csv(content))

        assert resp.status_code == 200
        body = resp.json()
        assert body["total_rows"] == 3
        assert {(m["csv_field"], m["property_field"]) for m in body["mappings"]} == {
            ("name", "name"),
            ("city", "city"),
            ("bedrooms", "bedrooms"),
            ("destination_name", "destination_name"),
        }
        assert body["unmapped_csv_fields"] == []
        assert body["destinations"] == [{"id": str(villa.destination_id), "name": "Saint-Tropez", "country": "France"}]

        validation = body["validation"]
        assert validation["valid"] is False
        assert validation["valid_rows"] == 2
        assert [(w["row"], w["message"]) for w in validation["warnings"]] == [
            (3, "Property with this name already exists"),
        ]
        assert [(e["row"], e["field"]) for e in validation["errors"]] == [(4, "bedrooms")]

        first, second, third = body["preview"]
        assert first["data"] == {"name": "Villa Nova", "city": "Gordes", "bedrooms": "4", "destination_name": "Luberon"}
        assert first["valid"] is True
        assert second["valid"] is True
        assert len(second["warnings"]) == 1
        assert third["valid"] is False

    async def test_file_must_have_data(self, client):
        resp = await client.post("/v1/imports/properties/validate", files=_csv(b"name,city\n"))

        assert resp.status_code == 400
        assert resp.json()["error"] == "CSV must have at least 2 lines (header + data)"

    async def test_file_must_be_utf8(self, client):
        resp = await client.post("/v1/imports/properties/validate", files=_csv(b"name\n\xff\xfe\xfa\n"))

        assert resp.status_code == 400
        assert resp.json()["error"] == "File must be UTF-8 encoded"


class TestPropertyImport:
    async def test_create_mode(self, client, session_maker, villa):
        resp = await client.post(
            "/v1/imports/properties", files=_csv(PROPERTIES_CSV), data={"mode": "create"}
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert (body["imported"], body["updated"], body["failed"]) == (1, 0, 1)
        assert body["errors"] == [{"row": 3, "field": None, "message": 'Property "Villa Azur" already exists'}]
        assert {"row": 2, "field": "destination_name", "message": 'Auto-created destination: "Luberon" (Unknown)'} in (
            body["warnings"]
        )

        async with session_maker() as session:
            nova = (await session.execute(select(Property).where(Property.name == "Villa Nova"))).scalar_one()
            luberon = (await session.execute(
                select(Destination).where(Destination.name == "Luberon")
            )).scalar_one()
            destination_audits = (await session.execute(
                select(AuditLog).where(AuditLog.entity_type == "destination")
            )).scalars().all()
        assert nova.number_of_rooms == 4
        assert nova.destination_id == luberon.id
        assert nova.status.value == "HIDDEN"
        assert [log.entity_id for log in destination_audits] == [str(luberon.id)]

    async def test_update_mode(self, client, session_maker, villa):
        resp = await client.post(
            "/v1/imports/properties", files=_csv(PROPERTIES_CSV), data={"mode": "update"}
        )

        body = resp.json()
        assert (body["imported"], body["updated"], body["failed"]) == (0, 1, 1)
        assert body["errors"][0]["message"] == 'Property "Villa Nova" not found for update'

        async with session_maker() as session:
            stored = await session.get(Property, villa.id)
        assert stored.city == "Gassin"
        assert stored.number_of_rooms == 6
        assert stored.internal_comment == "Owner prefers email"

    async def test_both_mode(self, client, villa):
        resp = await client.post(
            "/v1/imports/properties", files=_csv(PROPERTIES_CSV), data={"mode": "both"}
        )

        body = resp.json()
        assert (body["imported"], body["updated"], body["failed"]) == (1, 1, 0)

    async def test_destination_id_must_belong_to_the_organization(self, client, villa, foreign_destination):
        content = (
            b"name,city,destination_id\n"
            + f"Villa Nova,Gordes,{foreign_destination.id}\n".encode()
            + f"Villa Rosa,Eze,{villa.destination_id}\n".encode()
        )

        resp = await client.post("/v1/imports/properties", files=_csv(content), data={"mode": "create"})

        body = resp.json()
        assert (body["imported"], body["failed"]) == (1, 1)
        assert body["errors"] == [{"row": 2, "field": None, "message": "Destination not found"}]

    async def test_invalid_mode(self, client):
        resp = await client.post(
            "/v1/imports/properties", files=_csv(PROPERTIES_CSV), data={"mode": "merge"}
        )

        assert resp.status_code == 400
        assert resp.json()["error"] == "Invalid import mode: merge"

    async def test_no_valid_rows(self, client, session_maker):
        resp = await client.post(
            "/v1/imports/properties", files=_csv(b"name,city\n,Gordes\n"), data={"mode": "create"}
        )

        assert resp.status_code == 400
        assert resp.json()["error"] == "No valid rows to import"
        async with session_maker() as session:
            assert (await session.execute(select(Property))).scalars().all() == []

    async def test_viewer_cannot_import(self, client, auth):
        auth.login("viewer")

        resp = await client.post("/v1/imports/properties", files=_csv(PROPERTIES_CSV))

        assert resp.status_code == 403


class TestAvailabilityImport:
    async def test_import_bookings(self, client, session_maker, villa):
        resp = await client.post("/v1/imports/bookings", files=_csv(BOOKINGS_CSV))

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["imported"] == 2
        assert body["warnings"] == [
            {"row": 3, "field": "dates", "message": 'Booking overlaps with existing booking for "Villa Azur"'},
        ]
        not_found, bad_dates = body["errors"]
        assert not_found == {
            "row": 4,
            "field": "propertyName",
            "message": 'Property "Ghost Villa" not found. Please import properties first.',
        }
        assert bad_dates["row"] == 5
        assert "End date must be after start date" in bad_dates["message"]

        async with session_maker() as session:
            bookings = (await session.execute(select(Booking).order_by(Booking.start_date))).scalars().all()
        assert [b.guest_name for b in bookings] == ["Ada Byron", None]
        assert {(b.status, b.source) for b in bookings} == {(BookingStatus.CONFIRMED, BookingSource.IMPORT)}

    async def test_nothing_imported_is_not_a_success(self, client, villa):
        content = b"propertyName,bookingType,startDate,endDate\nGhost Villa,BLOCKED,2025-07-01,2025-07-02\n"

        resp = await client.post("/v1/imports/bookings", files=_csv(content))

        assert resp.json()["success"] is False
        assert resp.json()["imported"] == 0

    async def test_analyze_reports_missing_header(self, client):
        content = b"propertyNam,startDate\nVilla Azur,2025-07-01\n"

        resp = await client.post("/v1/imports/analyze", files=_csv(content))

        assert resp.status_code == 200
        body = resp.json()
        missing = body["issues"][0]
        assert (missing["severity"], missing["type"], missing["field"]) == ("error", "missing", "propertyName")
        assert missing["suggestion"] == "Did you mean 'propertyNam'?"
        assert body["column_consistency"]["expected_columns"] == 2
        assert body["column_consistency"]["misaligned_rows"] == []


class TestTemplates:
    async def test_property_template(self, client):
        resp = await client.get("/v1/imports/properties/template")

        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/csv")
        assert 'filename="property-import-template.csv"' in resp.headers["content-disposition"]
        assert resp.text.lstrip("﻿").startswith("name,")

    async def test_booking_template(self, client):
        resp = await client.get("/v1/imports/bookings/template")

        assert 'filename="availability-import-template.csv"' in resp.headers["content-disposition"]
        assert resp.text.lstrip("﻿").split("\n")[0] == (
            "propertyName,bookingType,startDate,endDate,guestName,guestEmail,"
            "guestPhone,numberOfGuests,totalAmount,notes"
        )
