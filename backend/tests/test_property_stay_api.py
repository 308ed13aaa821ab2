"""API tests for the stay sections of a property."""

from sqlalchemy import select

from app.models.audit import AuditLog
from app.models.property import Property


async def _audits(session_maker):
    async with session_maker() as session:
        result = await session.execute(
            select(AuditLog).where(AuditLog.entity_type.like("property_%")).order_by(AuditLog.created_at)
        )
        return result.scalars().all()


class TestStaySections:
    async def test_sections_are_merged_into_stay_metadata(self, client, session_maker, villa):
        base = f"/v1/properties/{villa.id}/stay"

        resp = await client.put(
            f"{base}/access",
            json={"access": {"airports": ["Nice"], "road_type": "winding", "key_count": 3}},
        )
        assert resp.status_code == 200

        resp = await client.put(
            f"{base}/maintenance",
            json={"maintenance": {
                "linen_change": {"frequency": "weekly"},
                "pool_maintenance": {"frequency": "daily", "enabled": True, "includes_linen": False},
            }},
        )
        assert resp.status_code == 200

        resp = await client.put(f"{base}/villa-book", json={"language": "en", "content": "Welcome home"})
        resp = await client.put(f"{base}/villa-book", json={"language": "fr", "content": "Bienvenue"})

        metadata = resp.json()["stay_metadata"]
        assert metadata["access"] == {
            "airports": ["Nice"], "train_stations": [], "cars": [], "road_type": "winding", "key_count": 3,
        }
        assert metadata["maintenance"]["linen_change"] == {"frequency": "weekly"}
        assert metadata["maintenance"]["pool_maintenance"]["includes_linen"] is False
        assert metadata["villa_book_comment"] == {"en": "Welcome home", "fr": "Bienvenue"}

        entries = await _audits(session_maker)
        assert [e.entity_type for e in entries] == [
            "property_access", "property_maintenance", "property_villa_book", "property_villa_book",
        ]
        assert entries[-1].changes == {"language": "fr", "content_length": 9}

    async def test_check_in_details(self, client, villa):
        url = f"/v1/properties/{villa.id}/stay/check-in"

        resp = await client.patch(url, json={"check_in_time": "16:00", "check_in_person": "Marie"})
        assert resp.status_code == 200
        body = resp.json()
        assert (body["check_in_time"], body["check_out_time"], body["check_in_person"]) == ("16:00", None, "Marie")

        resp = await client.patch(url, json={"check_out_time": "09:30"})
        assert resp.json()["check_in_time"] == "16:00"
        assert resp.json()["check_out_time"] == "09:30"

        resp = await client.patch(url, json={"check_in_time": "25:00"})
        assert resp.status_code == 422

    async def test_network_keeps_the_password_out_of_the_audit_trail(self, client, session_maker, villa):
        resp = await client.patch(
            f"/v1/properties/{villa.id}/stay/network",
            json={
                "wifi_name": "Azur-Guest",
                "wifi_password": "sunshine",
                "wifi_in_all_rooms": True,
                "mobile_network_coverage": "good",
                "network": {"fiber_optic": True, "router_location": "Cellar"},
            },
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["wifi_in_all_rooms"] is True
        assert body["stay_metadata"] == {"network": {"fiber_optic": True, "router_location": "Cellar"}}

        [entry] = await _audits(session_maker)
        assert entry.entity_type == "property_network"
        assert entry.changes["wifi"] == {"name": "Azur-Guest", "speed": None, "coverage": "good"}
        assert "sunshine" not in str(entry.changes)

        url = f"/v1/properties/{villa.id}/stay/network"
        resp = await client.patch(url, json={"mobile_network_coverage": "great"})
        assert resp.status_code == 422

        resp = await client.patch(url, json={"wifi_in_all_rooms": None})
        assert resp.status_code == 422
        assert "wifi_in_all_rooms cannot be null" in resp.json()["error"]

    async def test_security_and_surroundings(self, client, session_maker, villa):
        base = f"/v1/properties/{villa.id}/stay"

        resp = await client.patch(
            f"{base}/security",
            json={
                "has_fire_alarm": True,
                "electric_meter_location": "Garage",
                "security": {
                    "surveillance": ["cameras"],
                    "nearest_hospital": {"name": "Saint-Tropez", "distance": "12 km"},
                },
            },
        )
        assert resp.status_code == 200
        body = resp.json()
        assert (body["has_fire_alarm"], body["has_fire_extinguisher"]) == (True, False)
        assert body["stay_metadata"]["security"]["nearest_hospital"] == {"name": "Saint-Tropez", "distance": "12 km"}

        resp = await client.put(f"{base}/surroundings", json={"surroundings": {"filters": ["beach", "village"]}})
        assert resp.json()["surroundings"] == {"filters": ["beach", "village"]}
        assert resp.json()["stay_metadata"]["security"]["surveillance"] == ["cameras"]

        resp = await client.put(f"{base}/surroundings", json={"surroundings": None})
        assert resp.json()["surroundings"] is None

        async with session_maker() as session:
            stored = await session.get(Property, villa.id)
        assert stored.electric_meter_location == "Garage"
        assert [e.entity_type for e in await _audits(session_maker)] == [
            "property_security", "property_surroundings", "property_surroundings",
        ]

    async def test_section_can_be_cleared(self, client, villa):
        url = f"/v1/properties/{villa.id}/stay/network"
        await client.patch(url, json={"network": {"supplier": "Orange"}})

        resp = await client.patch(url, json={"network": None})

        assert resp.json()["stay_metadata"] == {}

    async def test_viewers_and_other_organizations(self, client, auth, villa, foreign_villa):
        payload = {"language": "en", "content": "Hello"}

        resp = await client.put(f"/v1/properties/{foreign_villa.id}/stay/villa-book", json=payload)
        assert resp.status_code == 404

        auth.login("viewer")
        resp = await client.put(f"/v1/properties/{villa.id}/stay/villa-book", json=payload)
        assert resp.status_code == 403

    async def test_language_code_length(self, client, villa):
        resp = await client.put(
            f"/v1/properties/{villa.id}/stay/villa-book", json={"language": "e", "content": "Hello"}
        )

        assert resp.status_code == 422
