"""API tests for authentication, properties and their rooms, photos and resources."""

from sqlalchemy import select

from app.core.security import AuthenticatedUser, get_current_user, verify_firebase_token
from app.main import app
from app.models.audit import AuditLog
from app.models.enums import PropertyStatus
from app.models.property import Property
from app.models.user import User


async def _audit_entries(session_maker, entity_type: str):
    async with session_maker() as session:
        result = await session.execute(
            select(AuditLog).where(AuditLog.entity_type == entity_type).order_by(AuditLog.created_at)
        )
        return result.scalars().all()


class TestAuth:
    async def test_me_reports_role_permissions_and_sections(self, client, auth):
        auth.login("manager")

        resp = await client.get("/v1/auth/me")

        assert resp.status_code == 200
        body = resp.json()
        assert body["role"] == "manager"
        assert "internal:edit" in body["permissions"]
        assert "financial:view" not in body["permissions"]
        assert set(body["sections"]) == {"internal", "contacts", "vendor"}

    async def test_missing_token_is_unauthorized(self, client):
        app.dependency_overrides.pop(get_current_user)

        resp = await client.get("/v1/properties")

        assert resp.status_code == 401
        assert resp.json() == {"success": False, "error": "Unauthorized"}
        assert resp.headers["www-authenticate"] == "Bearer"

    async def test_user_without_membership_is_forbidden(self, client, auth):
        auth.login("loner")

        resp = await client.get("/v1/properties")

        assert resp.status_code == 403
        assert resp.json() == {"success": False, "error": "Unauthorized"}

    async def test_deactivated_account_loses_organization_access(self, client, session_maker):
        app.dependency_overrides.pop(get_current_user)
        app.dependency_overrides[verify_firebase_token] = lambda: AuthenticatedUser(uid="uid-staff")

        resp = await client.get("/v1/properties")
        assert resp.status_code == 200

        async with session_maker() as session:
            staff = (await session.execute(select(User).where(User.firebase_uid == "uid-staff"))).scalar_one()
            staff.is_active = False
            await session.commit()

        resp = await client.get("/v1/properties")
        assert resp.status_code == 403

    async def test_members_fall_back_to_email_for_their_name(self, client, session_maker):
        async with session_maker() as session:
            viewer = (await session.execute(select(User).where(User.firebase_uid == "uid-viewer"))).scalar_one()
            viewer.full_name = None
            await session.commit()

        resp = await client.get("/v1/orgs/members")

        assert resp.status_code == 200
        names = {m["email"]: m["name"] for m in resp.json()["members"]}
        assert names["viewer@estates.test"] == "viewer"
        assert names["admin@estates.test"] == "Admin"
        assert "outsider@estates.test" not in names

    async def test_role_without_permission_is_forbidden(self, client, auth):
        auth.login("viewer")

        resp = await client.post("/v1/properties", json={"name": "Villa Nova"})

        assert resp.status_code == 403


class TestProperties:
    async def test_create_records_audit_entry(self, client, session_maker, destination):
        resp = await client.post(
            "/v1/properties",
            json={
                "name": "Villa Nova",
                "destination_id": str(destination.id),
                "number_of_rooms": 4,
                "categories": ["sea view", "pool"],
                "internal_comment": "Keys at the bakery",
            },
        )

        assert resp.status_code == 201
        body = resp.json()
        assert body["status"] == "ONBOARDING"
        assert body["destination_name"] == "Saint-Tropez"
        assert body["categories"] == ["sea view", "pool"]
        assert body["internal_comment"] == "Keys at the bakery"

        [entry] = await _audit_entries(session_maker, "property")
        assert entry.action == "create"
        assert entry.entity_id == body["id"]
        assert entry.changes["created"]["name"] == "Villa Nova"

    async def test_validation_errors_use_the_envelope(self, client):
        resp = await client.post("/v1/properties", json={"name": ""})

        assert resp.status_code == 422
        assert resp.json() == {
            "success": False,
            "error": "Validation error: name - String should have at least 1 character",
        }

    async def test_null_for_required_field_is_rejected(self, client, session_maker, villa):
        resp = await client.patch(f"/v1/properties/{villa.id}", json={"name": None})

        assert resp.status_code == 422
        assert resp.json()["success"] is False
        assert "name cannot be null" in resp.json()["error"]
        async with session_maker() as session:
            assert (await session.get(Property, villa.id)).name == "Villa Azur"

    async def test_destination_of_another_organization_is_not_found(
        self, client, session_maker, villa, foreign_destination
    ):
        resp = await client.post(
            "/v1/properties", json={"name": "Villa Nova", "destination_id": str(foreign_destination.id)}
        )
        assert resp.status_code == 404
        assert resp.json() == {"success": False, "error": "Destination not found"}

        resp = await client.patch(
            f"/v1/properties/{villa.id}", json={"destination_id": str(foreign_destination.id)}
        )
        assert resp.status_code == 404
        async with session_maker() as session:
            assert (await session.get(Property, villa.id)).destination_id == villa.destination_id

    async def test_unknown_route_uses_the_envelope(self, client):
        resp = await client.get("/v1/nowhere")

        assert resp.status_code == 404
        assert resp.json() == {"success": False, "error": "Not Found"}

    async def test_internal_fields_need_internal_permissions(self, client, auth, session_maker, villa):
        auth.login("staff")

        resp = await client.get(f"/v1/properties/{villa.id}")
        assert resp.status_code == 200
        assert resp.json()["internal_comment"] is None

        resp = await client.patch(
            f"/v1/properties/{villa.id}",
            json={"internal_comment": "overwritten", "city": "Gassin"},
        )
        assert resp.status_code == 200

        async with session_maker() as session:
            stored = await session.get(Property, villa.id)
        assert stored.city == "Gassin"
        assert stored.internal_comment == "Owner prefers email"

    async def test_list_filters_and_paginates(self, client, db_session, seed, villa):
        db_session.add_all([
            Property(org_id=seed.org_id, name="Bastide Blanche", city="Gordes", status=PropertyStatus.PUBLISHED),
            Property(org_id=seed.org_id, name="Mas des Oliviers", city="Gordes", status=PropertyStatus.PUBLISHED),
        ])
        await db_session.commit()

        resp = await client.get("/v1/properties", params={"page_size": 2})
        body = resp.json()
        assert body["total"] == 3
        assert body["total_pages"] == 2
        assert [p["name"] for p in body["properties"]] == ["Bastide Blanche", "Mas des Oliviers"]

        resp = await client.get("/v1/properties", params={"search": "gordes", "status": "published"})
        assert resp.json()["total"] == 2

        resp = await client.get("/v1/properties", params={"status": "ALL"})
        assert resp.json()["total"] == 3

    async def test_invalid_status_filter(self, client, villa):
        resp = await client.get("/v1/properties", params={"status": "sold"})

        assert resp.status_code == 400
        assert resp.json()["error"] == "Invalid status"

    async def test_search_matches_text_and_room_bounds(self, client, villa):
        resp = await client.get("/v1/properties/search", params={"q": "azur", "min_rooms": 4})
        assert [r["name"] for r in resp.json()] == ["Villa Azur"]

        resp = await client.get("/v1/properties/search", params={"q": "azur", "max_rooms": 3})
        assert resp.json() == []

    async def test_other_organizations_are_invisible(self, client, foreign_villa):
        resp = await client.get(f"/v1/properties/{foreign_villa.id}")

        assert resp.status_code == 404
        assert resp.json()["error"] == "Property not found"

    async def test_map_lists_properties_with_coordinates(self, client, db_session, seed, villa, foreign_villa):
        villa.latitude, villa.longitude = 43.2, 6.66
        db_session.add(villa)
        db_session.add_all([
            Property(
                org_id=seed.org_id, name="Bastide Blanche", status=PropertyStatus.PUBLISHED,
                latitude=43.9, longitude=5.2,
            ),
            Property(org_id=seed.org_id, name="Mas sans carte", latitude=43.9),
        ])
        foreign_villa.latitude, foreign_villa.longitude = 45.86, 6.61
        db_session.add(foreign_villa)
        await db_session.commit()

        resp = await client.get("/v1/properties/map")

        assert resp.status_code == 200
        body = resp.json()
        assert body["total"] == 2
        assert [p["name"] for p in body["properties"]] == ["Bastide Blanche", "Villa Azur"]
        azur = body["properties"][1]
        assert (azur["latitude"], azur["longitude"]) == (43.2, 6.66)
        assert azur["destination"] == {"id": str(villa.destination_id), "name": "Saint-Tropez", "country": "France"}
        assert body["properties"][0]["destination"] is None

        resp = await client.get("/v1/properties/map", params={"status": "published"})
        assert [p["name"] for p in resp.json()["properties"]] == ["Bastide Blanche"]

        resp = await client.get("/v1/properties/map", params={"destination_id": str(villa.destination_id)})
        assert [p["name"] for p in resp.json()["properties"]] == ["Villa Azur"]

        resp = await client.get("/v1/properties/map", params={"destinationIds": "not-a-uuid"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "Invalid destination id"

    async def test_export_csv(self, client, villa):
        resp = await client.get("/v1/properties/export")

        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/csv")
        assert "properties_export_" in resp.headers["content-disposition"]
        assert resp.content.startswith(b"\xef\xbb\xbfName,Original Name,Status")
        assert "Villa Azur" in resp.text

    async def test_update_logs_before_and_after(self, client, session_maker, villa):
        resp = await client.patch(f"/v1/properties/{villa.id}", json={"status": "PUBLISHED"})

        assert resp.status_code == 200
        assert resp.json()["status"] == "PUBLISHED"
        [entry] = await _audit_entries(session_maker, "property")
        assert entry.action == "update"
        assert entry.changes["before"]["status"] == "ONBOARDING"
        assert entry.changes["after"]["status"] == "PUBLISHED"

    async def test_delete_requires_delete_permission(self, client, auth, villa):
        auth.login("manager")
        resp = await client.delete(f"/v1/properties/{villa.id}")
        assert resp.status_code == 403

        auth.login("admin")
        resp = await client.delete(f"/v1/properties/{villa.id}")
        assert resp.status_code == 204

        resp = await client.get(f"/v1/properties/{villa.id}")
        assert resp.status_code == 404


class TestRooms:
    async def test_create_reorder_and_delete(self, client, villa):
        base = f"/v1/properties/{villa.id}/rooms"
        first = (await client.post(base, json={"name": "Master suite", "type": "BEDROOM"})).json()
        second = (await client.post(base, json={"name": "Kitchen", "type": "KITCHEN"})).json()
        assert (first["position"], second["position"]) == (0, 1)

        resp = await client.put(f"{base}/reorder", json={"ids": [second["id"], first["id"]]})
        assert resp.status_code == 200
        assert [r["name"] for r in resp.json()] == ["Kitchen", "Master suite"]

        resp = await client.delete(f"{base}/{first['id']}")
        assert resp.status_code == 204
        assert [r["name"] for r in (await client.get(base)).json()] == ["Kitchen"]

    async def test_reorder_rejects_unknown_ids(self, client, villa):
        resp = await client.put(
            f"/v1/properties/{villa.id}/rooms/reorder",
            json={"ids": ["00000000-0000-0000-0000-000000000001"]},
        )

        assert resp.status_code == 400
        assert resp.json()["error"].startswith("Unknown ids:")


class TestPhotos:
    async def test_upload_main_photo_and_delete(self, client, storage_provider, villa):
        base = f"/v1/properties/{villa.id}/photos"

        first = await client.post(
            base,
            files={"file": ("pool.png", b"\x89PNG-pool", "image/png")},
            data={"caption": "Pool", "is_main": "true"},
        )
        assert first.status_code == 201
        first = first.json()
        assert first["is_main"] is True
        assert first["url"].startswith(f"properties/{villa.id}/photos/")
        assert first["url"].endswith(".png")
        assert first["download_url"].startswith("https://storage.test/")
        assert storage_provider.objects[first["url"]] == b"\x89PNG-pool"

        second = await client.post(
            base,
            files={"file": ("terrace.jpg", b"jpeg-bytes", "image/jpeg")},
            data={"is_main": "true"},
        )
        assert second.json()["position"] == 1

        photos = (await client.get(base)).json()
        assert [p["is_main"] for p in photos] == [False, True]

        resp = await client.delete(f"{base}/{first['id']}")
        assert resp.status_code == 204
        assert first["url"] not in storage_provider.objects

    async def test_rejects_non_image_upload(self, client, villa):
        resp = await client.post(
            f"/v1/properties/{villa.id}/photos",
            files={"file": ("notes.txt", b"hello", "text/plain")},
        )

        assert resp.status_code == 400
        assert resp.json()["error"] == "Unsupported mime type: text/plain"


class TestResources:
    async def test_link_and_uploaded_resources(self, client, auth, storage_provider, villa):
        auth.login("staff")
        base = f"/v1/properties/{villa.id}/resources"

        link = await client.post(
            base, json={"type": "VIDEO", "name": "Drone tour", "url": "https://video.test/tour"}
        )
        assert link.status_code == 201
        assert link.json()["is_stored"] is False
        assert link.json()["uploaded_by"] == "staff@estates.test"

        upload = await client.post(
            f"{base}/upload",
            files={"file": ("floor plan.pdf", b"%PDF-1.7", "application/pdf")},
            data={"type": "FLOOR_PLAN"},
        )
        assert upload.status_code == 201
        stored = upload.json()
        assert stored["is_stored"] is True
        assert stored["name"] == "floor plan.pdf"
        assert stored["url"].endswith("-floor_plan.pdf")
        assert stored["url"] in storage_provider.objects

        resp = await client.delete(f"{base}/{stored['id']}")
        assert resp.status_code == 204
        assert stored["url"] not in storage_provider.objects

        resp = await client.delete(f"{base}/{link.json()['id']}")
        assert resp.status_code == 204

    async def test_viewers_cannot_attach(self, client, auth, villa):
        auth.login("viewer")

        resp = await client.post(
            f"/v1/properties/{villa.id}/resources",
            json={"type": "LINK", "name": "Brochure", "url": "https://x.test"},
        )

        assert resp.status_code == 403
