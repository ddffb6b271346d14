"""Tests for the saved-document endpoints under /api/documents."""
import asyncio

import pytest
from httpx import AsyncClient

from tests.conftest import AUTH_HEADERS


def _body(title: str = "NDA - Acme", template_id: str = "nda", content: str = "Body") -> dict:
    return {
        "title": title,
        "content": content,
        "templateId": template_id,
        "answers": {"companyName": "Acme"},
    }


async def _create_draft(client: AsyncClient, **kwargs) -> dict:
    resp = await client.post("/api/documents/drafts", json=_body(**kwargs), headers=AUTH_HEADERS)
    assert resp.status_code == 200
    return resp.json()


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_list_documents_empty(client: AsyncClient):
    resp = await client.get("/api/documents", headers=AUTH_HEADERS)
    assert resp.status_code == 200
    assert resp.json() == []


@pytest.mark.asyncio
async def test_create_finalized_document(client: AsyncClient):
    resp = await client.post("/api/documents", json=_body(), headers=AUTH_HEADERS)
    assert resp.status_code == 201
    data = resp.json()
    assert data["is_draft"] is False
    assert data["user_id"] == AUTH_HEADERS["X-User-Id"]
    assert data["template_answers"] == {"companyName": "Acme"}


@pytest.mark.asyncio
async def test_draft_is_reused_per_template(client: AsyncClient):
    first = await _create_draft(client, content="v1")
    second = await _create_draft(client, title="Renamed", content="v2")

    assert second["id"] == first["id"]
    assert second["content"] == "v2"

    resp = await client.get("/api/documents/drafts/nda", headers=AUTH_HEADERS)
    assert [d["id"] for d in resp.json()] == [first["id"]]


@pytest.mark.asyncio
async def test_drafts_hidden_from_default_listing(client: AsyncClient):
    await _create_draft(client)

    resp = await client.get("/api/documents", headers=AUTH_HEADERS)
    assert resp.json() == []

    resp = await client.get("/api/documents?include_drafts=true", headers=AUTH_HEADERS)
    assert len(resp.json()) == 1

    resp = await client.get("/api/documents/drafts", headers=AUTH_HEADERS)
    assert len(resp.json()) == 1


@pytest.mark.asyncio
async def test_save_progress_keeps_title(client: AsyncClient):
    draft = await _create_draft(client, title="Original title")
    await asyncio.sleep(0.01)

    resp = await client.put(
        f"/api/documents/{draft['id']}/progress",
        json={"content": "Autosaved body"},
        headers=AUTH_HEADERS,
    )
    assert resp.status_code == 200
    assert resp.json() == {"success": True}

    resp = await client.get(f"/api/documents/{draft['id']}", headers=AUTH_HEADERS)
    data = resp.json()
    assert data["content"] == "Autosaved body"
    assert data["title"] == "Original title"
    assert data["updated_at"] > draft["updated_at"]


@pytest.mark.asyncio
async def test_finalize_twice(client: AsyncClient):
    draft = await _create_draft(client)

    resp = await client.post(
        f"/api/documents/{draft['id']}/finalize",
        json={"title": "Final NDA"},
        headers=AUTH_HEADERS,
    )
    assert resp.status_code == 200
    assert resp.json()["is_draft"] is False

    resp = await client.post(f"/api/documents/{draft['id']}/finalize", headers=AUTH_HEADERS)
    assert resp.status_code == 200
    assert resp.json()["is_draft"] is False
    assert resp.json()["title"] == "Final NDA"

    resp = await client.get("/api/documents/drafts", headers=AUTH_HEADERS)
    assert resp.json() == []


@pytest.mark.asyncio
async def test_patch_updates_title_and_content(client: AsyncClient):
    resp = await client.post("/api/documents", json=_body(), headers=AUTH_HEADERS)
    document_id = resp.json()["id"]

    resp = await client.patch(
        f"/api/documents/{document_id}",
        json={"title": "Updated"},
        headers=AUTH_HEADERS,
    )
    assert resp.status_code == 200
    assert resp.json()["title"] == "Updated"
    assert resp.json()["content"] == "Body"


@pytest.mark.asyncio
async def test_delete_final_document_cascades_to_drafts(client: AsyncClient):
    resp = await client.post("/api/documents", json=_body(), headers=AUTH_HEADERS)
    final_id = resp.json()["id"]
    await _create_draft(client)
    other = await _create_draft(client, template_id="privacy-policy")

    resp = await client.delete(f"/api/documents/{final_id}", headers=AUTH_HEADERS)
    assert resp.status_code == 204

    resp = await client.get("/api/documents?include_drafts=true", headers=AUTH_HEADERS)
    assert [d["id"] for d in resp.json()] == [other["id"]]


@pytest.mark.asyncio
async def test_delete_nonexistent_document(client: AsyncClient):
    """Deleting a document that doesn't exist should return 404."""
    resp = await client.delete("/api/documents/nope", headers=AUTH_HEADERS)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_create_requires_title(client: AsyncClient):
    resp = await client.post("/api/documents", json=_body(title=""), headers=AUTH_HEADERS)
    assert resp.status_code == 422
