"""API tests for property pricing, price ranges, minimum stays and operational costs."""

import base64
from datetime import date

from sqlalchemy import select

from app.models.audit import AuditLog, SensitiveDataAccess
from app.models.pricing import PriceRange, PropertyPricing


def _range(name="High season", start="2025-07-01", end="2025-08-31", **extra):
    payload = {
        "name": name,
        "start_date": start,
        "end_date": end,
        "owner_nightly_rate": 800,
        "owner_weekly_rate": 5000,
        "commission_rate": 20,
    }
    payload.update(extra)
    return payload


class TestPropertyPricing:
    async def test_overview_is_logged_as_sensitive_access(self, client, session_maker, villa):
        resp = await client.get(f"/v1/pricing/properties/{villa.id}")

        assert resp.status_code == 200
        assert resp.json() == {
            "pricing": None,
            "price_ranges": [],
            "minimum_stay_rules": [],
            "operational_costs": [],
        }
        async with session_maker() as session:
            [access] = (await session.execute(select(SensitiveDataAccess))).scalars().all()
        assert access.data_type == "FINANCIAL_DATA"
        assert access.action == "VIEW"
        assert access.user_role == "admin"
        assert access.property_id == villa.id

    async def test_managers_cannot_see_financials(self, client, auth, villa):
        auth.login("manager")

        resp = await client.get(f"/v1/pricing/properties/{villa.id}")

        assert resp.status_code == 403
        assert resp.json() == {"success": False, "error": "Unauthorized"}

    async def test_upsert_creates_then_updates(self, client, session_maker, villa):
        resp = await client.put(f"/v1/pricing/properties/{villa.id}", json={"security_deposit": 5000})
        assert resp.status_code == 200
        body = resp.json()
        assert body["currency"] == "EUR"
        assert body["net_owner_commission"] == 25.0
        assert body["security_deposit"] == 5000
        assert body["last_pricing_update"] is not None

        resp = await client.put(
            f"/v1/pricing/properties/{villa.id}",
            json={"currency": "CHF", "payment_schedule": "30-40-30"},
        )
        assert resp.json()["currency"] == "CHF"
        assert resp.json()["security_deposit"] == 5000

        async with session_maker() as session:
            actions = (await session.execute(
                select(AuditLog.action)
                .where(AuditLog.entity_type == "PROPERTY_PRICING")
                .order_by(AuditLog.created_at)
            )).scalars().all()
        assert list(actions) == ["CREATE", "UPDATE"]

    async def test_payment_schedule_format(self, client, villa):
        resp = await client.put(f"/v1/pricing/properties/{villa.id}", json={"payment_schedule": "half now"})

        assert resp.status_code == 422

    async def test_foreign_property(self, client, foreign_villa):
        resp = await client.put(f"/v1/pricing/properties/{foreign_villa.id}", json={"currency": "EUR"})

        assert resp.status_code == 404


class TestPriceRanges:
    async def test_public_rates_are_computed(self, client, session_maker, villa):
        resp = await client.post(f"/v1/pricing/properties/{villa.id}/price-ranges", json=_range())

        assert resp.status_code == 201
        body = resp.json()
        assert body["public_nightly_rate"] == 1000
        assert body["public_weekly_rate"] == 6250

        async with session_maker() as session:
            pricing = (await session.execute(
                select(PropertyPricing).where(PropertyPricing.property_id == villa.id)
            )).scalar_one()
        assert pricing.last_pricing_update is not None

    async def test_inverted_dates_are_rejected(self, client, villa):
        resp = await client.post(
            f"/v1/pricing/properties/{villa.id}/price-ranges",
            json=_range(start="2025-08-31", end="2025-07-01"),
        )

        assert resp.status_code == 422
        assert "End date must be after start date" in resp.json()["error"]

    async def test_overlapping_ranges_are_rejected(self, client, villa):
        await client.post(f"/v1/pricing/properties/{villa.id}/price-ranges", json=_range())

        resp = await client.post(
            f"/v1/pricing/properties/{villa.id}/price-ranges",
            json=_range("Late summer", start="2025-08-31", end="2025-09-15"),
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == "Date range overlaps with existing price range"

        resp = await client.post(
            f"/v1/pricing/properties/{villa.id}/price-ranges",
            json=_range("Autumn", start="2025-09-01", end="2025-10-15"),
        )
        assert resp.status_code == 201

    async def test_update_recomputes_public_rates(self, client, villa):
        created = (await client.post(f"/v1/pricing/properties/{villa.id}/price-ranges", json=_range())).json()
        url = f"/v1/pricing/price-ranges/{created['id']}"

        resp = await client.patch(url, json={"commission_rate": 50})
        assert resp.json()["public_nightly_rate"] == 1600
        assert resp.json()["public_weekly_rate"] == 10000

        resp = await client.patch(url, json={"owner_nightly_rate": 900})
        assert resp.json()["public_nightly_rate"] == 1800
        assert resp.json()["public_weekly_rate"] == 10000

        resp = await client.patch(url, json={"end_date": "2025-06-01"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "End date must be after start date"

    async def test_update_may_keep_its_own_dates(self, client, villa):
        created = (await client.post(f"/v1/pricing/properties/{villa.id}/price-ranges", json=_range())).json()

        resp = await client.patch(
            f"/v1/pricing/price-ranges/{created['id']}",
            json={"start_date": "2025-07-05", "end_date": "2025-08-31"},
        )

        assert resp.status_code == 200

    async def test_delete(self, client, villa):
        created = (await client.post(f"/v1/pricing/properties/{villa.id}/price-ranges", json=_range())).json()

        resp = await client.delete(f"/v1/pricing/price-ranges/{created['id']}")
        assert resp.status_code == 204

        resp = await client.delete(f"/v1/pricing/price-ranges/{created['id']}")
        assert resp.status_code == 404
        assert resp.json()["error"] == "Price range not found"

    async def test_migrate_legacy_rates(self, client, db_session, villa):
        db_session.add(PriceRange(
            property_id=villa.id,
            name="Legacy",
            start_date=date(2024, 7, 1),
            end_date=date(2024, 7, 31),
            nightly_rate=500,
            weekly_rate=3000,
            monthly_rate=11000,
            commission_rate=20,
        ))
        await db_session.commit()

        resp = await client.post(f"/v1/pricing/properties/{villa.id}/migrate-legacy")
        assert resp.json() == {"migrated": 1}

        [migrated] = (await client.get(f"/v1/pricing/properties/{villa.id}")).json()["price_ranges"]
        assert migrated["owner_nightly_rate"] == 500
        assert migrated["public_nightly_rate"] == 625
        assert migrated["public_weekly_rate"] == 3750
        assert migrated["nightly_rate"] is None
        assert migrated["monthly_rate"] is None

        resp = await client.post(f"/v1/pricing/properties/{villa.id}/migrate-legacy")
        assert resp.json() == {"migrated": 0}


class TestMinimumStaysAndCosts:
    async def test_minimum_stay_rules(self, client, villa):
        resp = await client.post(
            f"/v1/pricing/properties/{villa.id}/minimum-stay-rules",
            json={"booking_condition": "WEEKLY_SATURDAY_TO_SATURDAY", "minimum_nights": 7},
        )
        assert resp.status_code == 201
        rule_id = resp.json()["id"]

        resp = await client.patch(
            f"/v1/pricing/minimum-stay-rules/{rule_id}",
            json={"start_date": "2025-08-01", "end_date": "2025-07-01"},
        )
        assert resp.status_code == 400

        resp = await client.patch(f"/v1/pricing/minimum-stay-rules/{rule_id}", json={"minimum_nights": 5})
        assert resp.json()["minimum_nights"] == 5

        assert (await client.delete(f"/v1/pricing/minimum-stay-rules/{rule_id}")).status_code == 204

    async def test_operational_costs(self, client, villa):
        resp = await client.post(
            f"/v1/pricing/properties/{villa.id}/operational-costs",
            json={"cost_type": "LINEN_CHANGE", "price_type": "PER_WEEK", "estimated_price": 120, "paid_by": "Owner"},
        )
        assert resp.status_code == 201
        cost_id = resp.json()["id"]

        resp = await client.patch(f"/v1/pricing/operational-costs/{cost_id}", json={"public_price": 150})
        assert resp.json()["public_price"] == 150
        assert resp.json()["estimated_price"] == 120

        overview = (await client.get(f"/v1/pricing/properties/{villa.id}")).json()
        assert [c["cost_type"] for c in overview["operational_costs"]] == ["LINEN_CHANGE"]

        assert (await client.delete(f"/v1/pricing/operational-costs/{cost_id}")).status_code == 204


class TestImportExport:
    async def test_price_range_import(self, client, villa, foreign_villa):
        await client.post(f"/v1/pricing/properties/{villa.id}/price-ranges", json=_range())

        resp = await client.post(
            "/v1/pricing/import/price-ranges",
            json={
                "rows": [
                    {**_range("Summer again"), "property_id": str(villa.id)},
                    {**_range("Autumn", start="2025-09-01", end="2025-10-15"), "property_id": str(villa.id)},
                    {**_range(), "property_id": str(foreign_villa.id)},
                ],
            },
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is False
        assert (body["created"], body["updated"], body["skipped"]) == (1, 0, 1)
        assert body["errors"] == [f"Row 3: Property with ID '{foreign_villa.id}' not found"]
        assert body["summary"] == "Created 1, updated 0, skipped 1, failed 1"

    async def test_price_range_import_updates_matching_dates(self, client, villa):
        await client.post(f"/v1/pricing/properties/{villa.id}/price-ranges", json=_range())

        resp = await client.post(
            "/v1/pricing/import/price-ranges",
            json={
                "rows": [{**_range("Summer", owner_nightly_rate=900), "property_id": str(villa.id)}],
                "update_existing": True,
            },
        )

        assert resp.json()["updated"] == 1
        [updated] = (await client.get(f"/v1/pricing/properties/{villa.id}")).json()["price_ranges"]
        assert updated["name"] == "Summer"
        assert updated["public_nightly_rate"] == 1125

    async def test_conflicts_can_be_reported(self, client, villa):
        await client.post(f"/v1/pricing/properties/{villa.id}/price-ranges", json=_range())

        resp = await client.post(
            "/v1/pricing/import/price-ranges",
            json={"rows": [{**_range("Clash"), "property_id": str(villa.id)}], "skip_conflicts": False},
        )

        assert resp.json()["errors"] == ["Row 1: Date range conflicts with existing price range"]

    async def test_cost_and_rule_imports(self, client, villa):
        resp = await client.post(
            "/v1/pricing/import/operational-costs",
            json={"rows": [{"property_id": str(villa.id), "cost_type": "HOUSEKEEPING", "price_type": "PER_DAY"}]},
        )
        assert resp.json()["success"] is True
        assert resp.json()["summary"] == "Created 1 operational costs, failed 0"

        resp = await client.post(
            "/v1/pricing/import/minimum-stay-rules",
            json={"rows": [{"property_id": str(villa.id), "booking_condition": "PER_NIGHT", "minimum_nights": 3}]},
        )
        assert resp.json()["created"] == 1

    async def test_export(self, client, villa):
        await client.post(f"/v1/pricing/properties/{villa.id}/price-ranges", json=_range(minimum_stay=7))

        resp = await client.get("/v1/pricing/export/price-ranges")

        assert resp.status_code == 200
        lines = base64.b64decode(resp.json()["content"]).decode().split("\n")
        assert lines[0].startswith("Property,Name,Start Date,End Date")
        assert lines[1] == "Villa Azur,High season,2025-07-01,2025-08-31,800.0,5000.0,20.0,1000.0,6250.0,No,7"

        resp = await client.get("/v1/pricing/export/price-ranges", params={"format": "xlsx"})
        assert resp.status_code == 400
