"""Tests for the edit service and POST /api/edit."""
import json

import httpx
import pytest
from httpx import AsyncClient

from app.main import app
from app.routers.generation import get_edit_service
from app.services.editing import DocumentEditService, build_edit_prompt
from app.services.exceptions import GenerationError, ValidationError
from tests.conftest import SSE_HEADERS, fake_gemini, gemini_handler, gemini_payload, request_prompt

DOC = "MUTUAL NDA\n\n1. Term: 2 years."


def _use_editor(handler) -> None:
    service = DocumentEditService(client=fake_gemini(handler))
    app.dependency_overrides[get_edit_service] = lambda: service


def test_edit_prompt_wraps_document():
    prompt = build_edit_prompt(DOC, "Change the term to 3 years")
    assert "---BEGIN DOCUMENT---\n" + DOC + "\n---END DOCUMENT---" in prompt
    assert 'User instruction: "Change the term to 3 years"' in prompt


@pytest.mark.asyncio
@pytest.mark.parametrize("content, instruction", [("", "Shorten it"), (DOC, "   ")])
async def test_blank_input_rejected_before_llm_call(content, instruction):
    seen = []
    service = DocumentEditService(client=fake_gemini(gemini_handler(seen=seen)))
    with pytest.raises(ValidationError):
        await service.edit(content, instruction)
    assert seen == []


@pytest.mark.asyncio
async def test_blank_provider_answer_is_an_error():
    service = DocumentEditService(
        client=fake_gemini(lambda request: httpx.Response(200, json=gemini_payload("  \n ")))
    )
    with pytest.raises(GenerationError, match="Empty response"):
        await service.edit(DOC, "Make it formal")


@pytest.mark.asyncio
async def test_edit_sends_system_instruction():
    seen = []
    service = DocumentEditService(client=fake_gemini(gemini_handler(text_value="EDITED", seen=seen)))

    assert await service.edit(DOC, "  Make it formal ") == "EDITED"
    body = json.loads(seen[0].content)
    assert "legal document editor" in body["systemInstruction"]["parts"][0]["text"]
    assert 'User instruction: "Make it formal"' in request_prompt(seen[0])


@pytest.mark.asyncio
async def test_edit_endpoint_plain(client: AsyncClient):
    _use_editor(gemini_handler(text_value="MUTUAL NDA\n\n1. Term: 3 years."))

    resp = await client.post(
        "/api/edit",
        json={"content": DOC, "instruction": "Change the term to 3 years"},
    )

    assert resp.status_code == 200
    assert resp.text.endswith("3 years.")


@pytest.mark.asyncio
async def test_edit_endpoint_stream(client: AsyncClient):
    _use_editor(gemini_handler(chunks=["MUTUAL ", "NDA"]))

    resp = await client.post(
        "/api/edit",
        json={"content": DOC, "instruction": "Shorten"},
        headers=SSE_HEADERS,
    )

    assert resp.status_code == 200
    assert resp.text.endswith("data: [DONE]\n\n")


@pytest.mark.asyncio
async def test_edit_endpoint_blank_instruction(client: AsyncClient):
    seen = []
    _use_editor(gemini_handler(seen=seen))

    resp = await client.post("/api/edit", json={"content": DOC, "instruction": ""})

    assert resp.status_code == 400
    assert resp.json()["details"]["field"] == "instruction"
    assert seen == []


@pytest.mark.asyncio
async def test_update_document_json(client: AsyncClient):
    _use_editor(gemini_handler(text_value="MUTUAL NDA\n\n1. Term: 3 years."))

    resp = await client.post(
        "/api/update-document",
        json={"document": DOC, "editRequest": "Change the term to 3 years"},
    )

    assert resp.status_code == 200
    assert resp.json() == {"updatedDocument": "MUTUAL NDA\n\n1. Term: 3 years."}


@pytest.mark.asyncio
async def test_update_document_json_blank_request(client: AsyncClient):
    seen = []
    _use_editor(gemini_handler(seen=seen))

    resp = await client.post("/api/update-document", json={"document": DOC, "editRequest": ""})

    assert resp.status_code == 400
    assert seen == []
