"""API tests for equipment requests and their approval workflow."""

from sqlalchemy import select

from app.models.audit import AuditLog


def _payload(property_id, priority="MEDIUM", **extra):
    payload = {
        "property_id": str(property_id),
        "priority": priority,
        "items": [
            {"name": "Beach towels", "quantity": 6, "estimated_cost": 12.5},
            {"name": "Parasol", "quantity": 1, "link": "https://shop.test/parasol"},
        ],
        "reason": "Guest complaints",
    }
    payload.update(extra)
    return payload


async def _actions(session_maker):
    async with session_maker() as session:
        result = await session.execute(
            select(AuditLog.action)
            .where(AuditLog.entity_type == "EquipmentRequest")
            .order_by(AuditLog.created_at)
        )
        return list(result.scalars().all())


class TestEquipmentRequests:
    async def test_staff_can_request(self, client, auth, session_maker, villa):
        auth.login("staff")

        resp = await client.post("/v1/equipment-requests", json=_payload(villa.id))

        assert resp.status_code == 201
        body = resp.json()
        assert body["status"] == "PENDING"
        assert body["requested_by"] == "uid-staff"
        assert body["requested_by_email"] == "staff@estates.test"
        assert body["property_name"] == "Villa Azur"
        assert body["item_count"] == 2
        assert await _actions(session_maker) == ["CREATE_EQUIPMENT_REQUEST"]

    async def test_items_are_validated(self, client, villa):
        resp = await client.post("/v1/equipment-requests", json=_payload(villa.id, items=[]))
        assert resp.status_code == 422

        resp = await client.post(
            "/v1/equipment-requests",
            json=_payload(villa.id, items=[{"name": "Kettle", "quantity": 1, "link": "shop.test/kettle"}]),
        )
        assert resp.status_code == 422
        assert "Link must be a valid URL" in resp.json()["error"]

    async def test_room_must_belong_to_the_property(self, client, villa):
        other = (await client.post("/v1/properties", json={"name": "Bastide Blanche"})).json()
        room = (await client.post(f"/v1/properties/{other['id']}/rooms", json={"name": "Pool house"})).json()

        resp = await client.post("/v1/equipment-requests", json=_payload(villa.id, room_id=room["id"]))

        assert resp.status_code == 404
        assert resp.json()["error"] == "Room not found"

    async def test_list_puts_urgent_first(self, client, villa):
        for priority in ("LOW", "URGENT", "MEDIUM"):
            await client.post("/v1/equipment-requests", json=_payload(villa.id, priority))

        resp = await client.get("/v1/equipment-requests")
        body = resp.json()
        assert [r["priority"] for r in body["requests"]] == ["URGENT", "MEDIUM", "LOW"]
        assert body["total_pages"] == 1

        resp = await client.get("/v1/equipment-requests", params={"priority": "low"})
        assert resp.json()["total"] == 1

        resp = await client.get("/v1/equipment-requests", params={"search": "complaints"})
        assert resp.json()["total"] == 3

    async def test_invalid_filter_value(self, client):
        resp = await client.get("/v1/equipment-requests", params={"priority": "whenever"})

        assert resp.status_code == 400
        assert resp.json()["error"] == "Invalid filter value"

    async def test_requests_of_other_organizations_are_hidden(self, client, auth, villa):
        created = (await client.post("/v1/equipment-requests", json=_payload(villa.id))).json()
        auth.login("outsider")

        resp = await client.get(f"/v1/equipment-requests/{created['id']}")

        assert resp.status_code == 404
        assert resp.json()["error"] == "Equipment request not found"


class TestWorkflow:
    async def test_approval_needs_approve_permission(self, client, auth, session_maker, villa):
        created = (await client.post("/v1/equipment-requests", json=_payload(villa.id))).json()
        url = f"/v1/equipment-requests/{created['id']}/status"

        auth.login("staff")
        resp = await client.patch(url, json={"status": "APPROVED"})
        assert resp.status_code == 403

        auth.login("manager")
        resp = await client.patch(url, json={"status": "APPROVED", "internal_notes": "Order from usual shop"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["approved_by"] == "uid-manager"
        assert body["approved_by_email"] == "manager@estates.test"
        assert body["approved_at"] is not None
        assert body["internal_notes"] == "Order from usual shop"

        resp = await client.patch(url, json={"status": "DELIVERED"})
        assert resp.json()["completed_at"] is not None

        assert await _actions(session_maker) == [
            "CREATE_EQUIPMENT_REQUEST",
            "UPDATE_EQUIPMENT_REQUEST_STATUS_APPROVED",
            "UPDATE_EQUIPMENT_REQUEST_STATUS_DELIVERED",
        ]

    async def test_rejection_keeps_the_reason(self, client, villa):
        created = (await client.post("/v1/equipment-requests", json=_payload(villa.id))).json()

        resp = await client.patch(
            f"/v1/equipment-requests/{created['id']}/status",
            json={"status": "REJECTED", "rejected_reason": "Over budget"},
        )

        assert resp.json()["status"] == "REJECTED"
        assert resp.json()["rejected_reason"] == "Over budget"

    async def test_only_pending_requests_can_be_edited(self, client, villa):
        created = (await client.post("/v1/equipment-requests", json=_payload(villa.id))).json()
        url = f"/v1/equipment-requests/{created['id']}"

        resp = await client.patch(url, json={"priority": "HIGH", "notes": "Before the weekend"})
        assert resp.status_code == 200
        assert resp.json()["priority"] == "HIGH"

        await client.patch(f"{url}/status", json={"status": "ORDERED"})
        resp = await client.patch(url, json={"priority": "LOW"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "Can only edit pending requests"

    async def test_delete_rules(self, client, auth, session_maker, villa):
        created = (await client.post("/v1/equipment-requests", json=_payload(villa.id))).json()
        url = f"/v1/equipment-requests/{created['id']}"

        auth.login("manager")
        assert (await client.delete(url)).status_code == 403

        auth.login("admin")
        await client.patch(f"{url}/status", json={"status": "APPROVED"})
        resp = await client.delete(url)
        assert resp.status_code == 400
        assert resp.json()["error"] == "Can only delete pending or cancelled requests"

        await client.patch(f"{url}/status", json={"status": "CANCELLED"})
        assert (await client.delete(url)).status_code == 204
        assert (await _actions(session_maker))[-1] == "DELETE_EQUIPMENT_REQUEST"


class TestExport:
    async def test_csv_export(self, client, villa):
        await client.post("/v1/equipment-requests", json=_payload(villa.id, "HIGH"))

        resp = await client.get("/v1/equipment-requests/export")

        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/csv")
        assert 'filename="equipment_requests_' in resp.headers["content-disposition"]
        lines = resp.content.decode("utf-8-sig").split("\n")
        assert lines[0] == (
            "ID,Property,Room,Requested By,Status,Priority,Items,Item Count,Estimated Total,Reason,Created At"
        )
        assert ",Villa Azur,,admin@estates.test,PENDING,HIGH,Beach towels x6; Parasol x1,2,75.00,Guest complaints," in lines[1]
