"""API tests for legal documents and their stored versions."""

import base64
import json
from datetime import datetime
from uuid import UUID

import pytest
import pytest_asyncio
from sqlalchemy import select

from app.models.audit import AuditLog
from app.models.enums import LegalDocumentCategory, LegalDocumentStatus
from app.models.legal_document import LegalDocument
from app.services.audit import AuditService

PDF = ("lease.pdf", b"%PDF-1.7 lease", "application/pdf")


async def _actions(session_maker):
    async with session_maker() as session:
        result = await session.execute(
            select(AuditLog.action)
            .where(AuditLog.entity_type == "legal_document")
            .order_by(AuditLog.created_at)
        )
        return list(result.scalars().all())


async def _upload(client, property_id=None, **form):
    data = {"name": "Lease 2025", "category": "LEASE_AGREEMENT"}
    if property_id:
        data["property_id"] = str(property_id)
    data.update(form)
    return await client.post("/v1/legal-documents", files={"file": PDF}, data=data)


@pytest_asyncio.fixture
async def expired_deed(db_session, seed) -> LegalDocument:
    doc = LegalDocument(
        org_id=seed.org_id,
        name="Old deed",
        category=LegalDocumentCategory.PROPERTY_DEED,
        status=LegalDocumentStatus.ACTIVE,
        expiry_date=datetime(2020, 1, 1),
        url="legal-documents/global/1-old_deed.pdf",
        file_size=2048,
        mime_type="application/pdf",
        uploaded_by="admin@estates.test",
        tags=["archive"],
    )
    db_session.add(doc)
    await db_session.commit()
    return doc


class TestUpload:
    async def test_upload_creates_first_version(self, client, session_maker, storage_provider, villa):
        resp = await _upload(client, villa.id, tags='["lease", "2025"]', reminder_days="30")

        assert resp.status_code == 201
        body = resp.json()
        assert body["status"] == "ACTIVE"
        assert body["property_name"] == "Villa Azur"
        assert body["tags"] == ["lease", "2025"]
        assert body["uploaded_by"] == "admin@estates.test"
        assert body["url"].startswith(f"legal-documents/{villa.id}/")
        assert body["url"].endswith("-lease.pdf")
        assert [(v["version_number"], v["comment"]) for v in body["versions"]] == [(1, "Initial version")]
        assert storage_provider.objects[body["url"]] == b"%PDF-1.7 lease"
        assert await _actions(session_maker) == ["CREATE_LEGAL_DOCUMENT"]

    async def test_comma_separated_tags(self, client):
        resp = await _upload(client, tags="insurance, , renewal")

        assert resp.json()["tags"] == ["insurance", "renewal"]
        assert resp.json()["url"].startswith("legal-documents/global/")

    async def test_invalid_metadata(self, client):
        resp = await _upload(client, category="NAPKIN_SKETCH")

        assert resp.status_code == 400
        assert resp.json()["error"].startswith("category:")

    async def test_unsupported_file_type(self, client):
        resp = await client.post(
            "/v1/legal-documents",
            files={"file": ("bundle.zip", b"PK", "application/zip")},
            data={"name": "Bundle", "category": "OTHER"},
        )

        assert resp.status_code == 400
        assert resp.json()["error"] == "Unsupported mime type: application/zip"

    async def test_property_must_belong_to_the_organization(self, client, foreign_villa):
        resp = await _upload(client, foreign_villa.id)

        assert resp.status_code == 404

    async def test_staff_cannot_upload(self, client, auth):
        auth.login("staff")

        resp = await _upload(client)

        assert resp.status_code == 403


class TestVersions:
    async def test_new_version_becomes_current_and_delete_removes_all_files(
        self, client, session_maker, storage_provider, villa
    ):
        created = (await _upload(client, villa.id)).json()

        resp = await client.post(
            f"/v1/legal-documents/{created['id']}/versions",
            files={"file": ("lease-signed.pdf", b"%PDF-1.7 signed", "application/pdf")},
            data={"comment": "Countersigned"},
        )

        assert resp.status_code == 201
        body = resp.json()
        assert [v["version_number"] for v in body["versions"]] == [2, 1]
        assert body["url"] == body["versions"][0]["url"]
        assert "-v2-lease-signed.pdf" in body["url"]
        assert body["file_size"] == len(b"%PDF-1.7 signed")
        assert len(storage_provider.objects) == 2

        resp = await client.delete(f"/v1/legal-documents/{created['id']}")
        assert resp.status_code == 204
        assert storage_provider.objects == {}
        assert await _actions(session_maker) == [
            "CREATE_LEGAL_DOCUMENT",
            "UPLOAD_LEGAL_DOCUMENT_VERSION",
            "DELETE_LEGAL_DOCUMENT",
        ]

    async def test_managers_cannot_delete(self, client, auth):
        created = (await _upload(client)).json()
        auth.login("manager")

        resp = await client.delete(f"/v1/legal-documents/{created['id']}")

        assert resp.status_code == 403


async def _failing_audit(*args, **kwargs):
    raise RuntimeError("audit table unavailable")


class TestStoredFilesFollowTheDatabase:
    async def test_failed_create_removes_the_uploaded_file(
        self, client, session_maker, storage_provider, monkeypatch
    ):
        monkeypatch.setattr(AuditService, "log_create", _failing_audit)

        with pytest.raises(RuntimeError):
            await _upload(client)

        assert storage_provider.objects == {}
        async with session_maker() as session:
            assert (await session.execute(select(LegalDocument))).scalars().all() == []

    async def test_failed_version_removes_only_the_new_file(self, client, storage_provider, monkeypatch):
        created = (await _upload(client)).json()
        monkeypatch.setattr(AuditService, "record", _failing_audit)

        with pytest.raises(RuntimeError):
            await client.post(
                f"/v1/legal-documents/{created['id']}/versions",
                files={"file": ("lease-signed.pdf", b"%PDF-1.7 signed", "application/pdf")},
            )

        assert list(storage_provider.objects) == [created["url"]]

    async def test_failed_delete_keeps_the_files(self, client, session_maker, storage_provider, monkeypatch):
        created = (await _upload(client)).json()
        monkeypatch.setattr(AuditService, "log_delete", _failing_audit)

        with pytest.raises(RuntimeError):
            await client.delete(f"/v1/legal-documents/{created['id']}")

        assert list(storage_provider.objects) == [created["url"]]
        async with session_maker() as session:
            assert await session.get(LegalDocument, UUID(created["id"])) is not None


class TestListing:
    async def test_list_refreshes_expired_statuses(self, client, session_maker, expired_deed):
        resp = await client.get("/v1/legal-documents")

        assert resp.status_code == 200
        body = resp.json()
        assert body["total_count"] == 1
        assert body["has_more"] is False
        assert body["documents"][0]["status"] == "EXPIRED"

        async with session_maker() as session:
            stored = await session.get(LegalDocument, expired_deed.id)
        assert stored.status == LegalDocumentStatus.EXPIRED

    async def test_filters(self, client, expired_deed, villa):
        await _upload(client, villa.id, tags="lease")

        resp = await client.get("/v1/legal-documents", params={"tags": ["archive"]})
        assert [d["name"] for d in resp.json()["documents"]] == ["Old deed"]

        resp = await client.get("/v1/legal-documents", params={"category": "lease_agreement"})
        assert [d["name"] for d in resp.json()["documents"]] == ["Lease 2025"]

        resp = await client.get("/v1/legal-documents", params={"property_id": str(villa.id)})
        assert resp.json()["total_count"] == 1

        resp = await client.get("/v1/legal-documents", params={"search": "deed"})
        assert resp.json()["total_count"] == 1

        resp = await client.get("/v1/legal-documents", params={"sort_by": "name", "sort_order": "asc", "page_size": 1})
        body = resp.json()
        assert [d["name"] for d in body["documents"]] == ["Lease 2025"]
        assert body["has_more"] is True

    async def test_invalid_filter_value(self, client):
        resp = await client.get("/v1/legal-documents", params={"status": "shredded"})

        assert resp.status_code == 400
        assert resp.json()["error"] == "Invalid filter value"

    async def test_reading_sensitive_documents_is_audited(self, client, session_maker):
        tax = (await _upload(client, name="Tax return", category="TAX_DOCUMENT")).json()
        deed = (await _upload(client, name="Deed", category="PROPERTY_DEED")).json()

        await client.get(f"/v1/legal-documents/{deed['id']}")
        resp = await client.get(f"/v1/legal-documents/{tax['id']}")

        assert resp.json()["last_accessed_at"] is not None
        assert (await _actions(session_maker)).count("VIEW_LEGAL_DOCUMENT") == 1

    async def test_download_url(self, client):
        created = (await _upload(client)).json()

        resp = await client.get(f"/v1/legal-documents/{created['id']}/download-url")

        assert resp.json() == {
            "url": f"https://storage.test/{created['url']}?ttl=300",
            "expires_in": 300,
        }


class TestBulkOperations:
    async def test_bulk_download_manifest(self, client, expired_deed, villa):
        lease = (await _upload(client, villa.id)).json()

        resp = await client.post(
            "/v1/legal-documents/bulk-download",
            json={"document_ids": [lease["id"], str(expired_deed.id)], "include_versions": True},
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["filename"].startswith("legal-documents-")
        assert body["filename"].endswith(".zip")
        assert sorted(f["path"] for f in body["files"]) == [
            "General/Old deed",
            "Villa Azur/Lease 2025",
            "Villa Azur/versions/Lease 2025-v1.pdf",
        ]
        assert body["total_size"] == 2048 + 2 * len(PDF[1])

    async def test_bulk_download_of_nothing(self, client):
        resp = await client.post(
            "/v1/legal-documents/bulk-download",
            json={"document_ids": ["00000000-0000-0000-0000-000000000001"]},
        )

        assert resp.status_code == 404
        assert resp.json()["error"] == "No documents found"

    async def test_bulk_delete(self, client, session_maker, storage_provider, expired_deed):
        lease = (await _upload(client)).json()

        resp = await client.post(
            "/v1/legal-documents/bulk-delete", json={"ids": [lease["id"], str(expired_deed.id)]}
        )

        assert resp.json() == {"deleted": 2}
        assert storage_provider.objects == {}
        assert (await _actions(session_maker))[-1] == "BULK_DELETE_LEGAL_DOCUMENTS"

    async def test_export_json(self, client, expired_deed):
        resp = await client.get("/v1/legal-documents/export", params={"format": "json"})

        body = resp.json()
        assert body["mime_type"] == "application/json"
        assert body["filename"].endswith(".json")
        [row] = json.loads(base64.b64decode(body["content"]))
        assert row["name"] == "Old deed"
        assert row["file_size"] == "2 KB"
        assert row["tags"] == "archive"

    async def test_export_csv_and_unsupported_formats(self, client, expired_deed):
        resp = await client.get("/v1/legal-documents/export")
        header = base64.b64decode(resp.json()["content"]).decode().split("\n")[0]
        assert header.startswith("ID,Name,Description,Category")

        resp = await client.get("/v1/legal-documents/export", params={"format": "xlsx"})
        assert resp.json()["error"] == "Excel export not yet implemented. Please use CSV format."

        resp = await client.get("/v1/legal-documents/export", params={"format": "pdf"})
        assert resp.json()["error"] == "Unsupported export format"
