"""Tests for the document workflow state machine and auto-save debouncing."""
import asyncio
from typing import List, Optional, Tuple

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.dependencies.auth import SessionContext
from app.services.document_repository import DocumentRepository
from app.services.editing import DocumentEditService
from app.services.exceptions import GenerationError, ValidationError, WorkflowStateError
from app.services.generation import DocumentGenerationService
from app.services.workflow import (
    AutoSaveDebouncer,
    ChangeContent,
    DocumentWorkflow,
    RequestEdit,
    SaveDocument,
    SubmitAnswers,
    WorkflowPhase,
)
from tests.conftest import fake_gemini, gemini_handler, gemini_payload

DELAY = 0.05
CTX = SessionContext(user_id="workflow-user", email="wf@example.com")


def _services(text_value: str = "GENERATED NDA", status_code: int = 200):
    client = fake_gemini(gemini_handler(text_value=text_value, status_code=status_code))
    return DocumentGenerationService(client=client), DocumentEditService(client=client)


def _workflow(repo: Optional[DocumentRepository] = None, **kwargs) -> DocumentWorkflow:
    generator, editor = _services(**kwargs)
    return DocumentWorkflow(
        "nda",
        generator,
        editor,
        repository=repo,
        context=CTX if repo is not None else None,
        autosave_delay=DELAY,
    )


class RecordingSave:
    def __init__(self, pause: float = 0.0, result: bool = True) -> None:
        self.calls: List[Tuple[str, Optional[str]]] = []
        self.completed: List[str] = []
        self.pause = pause
        self.result = result

    async def __call__(self, content: str, title: Optional[str]) -> bool:
        self.calls.append((content, title))
        if self.pause:
            await asyncio.sleep(self.pause)
        self.completed.append(content)
        return self.result


# ---------------------------------------------------------------------------
# AutoSaveDebouncer
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_debouncer_saves_only_latest_content():
    save = RecordingSave()
    debouncer = AutoSaveDebouncer(save, DELAY)

    for content in ("a", "ab", "abc"):
        debouncer.schedule(content)
        await asyncio.sleep(DELAY / 5)
    assert save.calls == []

    await asyncio.sleep(DELAY * 2)
    await debouncer.drain()
    assert save.calls == [("abc", None)]
    assert debouncer.last_result is True


@pytest.mark.asyncio
async def test_in_flight_save_survives_new_edits():
    save = RecordingSave(pause=DELAY * 2)
    debouncer = AutoSaveDebouncer(save, DELAY)

    debouncer.schedule("first")
    await asyncio.sleep(DELAY * 1.5)  # first save has started
    debouncer.schedule("second")
    await asyncio.sleep(DELAY * 5)
    await debouncer.aclose()

    assert save.completed == ["first", "second"]
    assert debouncer.saves_issued == 2


@pytest.mark.asyncio
async def test_flush_saves_immediately():
    save = RecordingSave()
    debouncer = AutoSaveDebouncer(save, 10)

    debouncer.schedule("pending", "Title")
    assert debouncer.pending
    assert await debouncer.flush() is True
    assert save.calls == [("pending", "Title")]
    assert not debouncer.pending


@pytest.mark.asyncio
async def test_flush_waits_for_running_save_before_writing_latest():
    stored = []
    active = []

    async def save(content, title):
        active.append(content)
        assert len(active) == 1, "saves overlapped"
        await asyncio.sleep(0.3 if content == "old" else 0)
        stored.append(content)
        active.remove(content)
        return True

    debouncer = AutoSaveDebouncer(save, DELAY)
    debouncer.schedule("old")
    await asyncio.sleep(DELAY * 2)  # "old" save is running
    debouncer.schedule("new")

    assert await debouncer.flush() is True

    assert stored == ["old", "new"]
    assert stored[-1] == "new"
    assert debouncer.saves_issued == 2


@pytest.mark.asyncio
async def test_failed_save_is_reported_not_raised():
    async def broken(content, title):
        raise RuntimeError("storage offline")

    debouncer = AutoSaveDebouncer(broken, 10)
    debouncer.schedule("x")
    assert await debouncer.flush() is False


# ---------------------------------------------------------------------------
# DocumentWorkflow
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_anonymous_generate_then_save_fails():
    workflow = _workflow()

    content = await workflow.dispatch(SubmitAnswers({"companyName": "Acme"}))

    assert content == "GENERATED NDA"
    assert workflow.phase == WorkflowPhase.PREVIEW
    assert workflow.document_id is None
    with pytest.raises(ValidationError):
        await workflow.dispatch(SaveDocument())
    await workflow.close()


@pytest.mark.asyncio
async def test_generation_failure_returns_to_form():
    workflow = _workflow(status_code=500)

    with pytest.raises(GenerationError):
        await workflow.dispatch(SubmitAnswers({}))

    assert workflow.phase == WorkflowPhase.FORM
    assert workflow.last_error
    await workflow.close()


@pytest.mark.asyncio
async def test_edit_not_allowed_before_generation():
    workflow = _workflow()
    with pytest.raises(WorkflowStateError):
        await workflow.dispatch(RequestEdit("Shorten it"))
    with pytest.raises(TypeError):
        await workflow.dispatch("not a message")
    await workflow.close()


@pytest.mark.asyncio
async def test_signed_in_generation_creates_single_draft(db_session: AsyncSession):
    repo = DocumentRepository(db_session)
    workflow = _workflow(repo)

    await workflow.dispatch(SubmitAnswers({"companyName": "Acme"}))
    first_id = workflow.document_id
    await workflow.dispatch(SubmitAnswers({"companyName": "Acme Ltd"}))

    assert first_id is not None
    assert workflow.document_id == first_id
    assert workflow.is_draft is True
    assert workflow.title.startswith("nda - ")
    drafts = await repo.get_drafts_by_template_id(CTX.user_id, "nda")
    assert len(drafts) == 1
    assert drafts[0].template_answers == {"companyName": "Acme Ltd"}
    await workflow.close()


@pytest.mark.asyncio
async def test_edit_is_auto_saved(db_session: AsyncSession):
    def handler(request: httpx.Request) -> httpx.Response:
        is_edit = b"systemInstruction" in request.content
        return httpx.Response(200, json=gemini_payload("EDITED NDA" if is_edit else "GENERATED NDA"))

    client = fake_gemini(handler)
    repo = DocumentRepository(db_session)
    workflow = DocumentWorkflow(
        "nda",
        DocumentGenerationService(client=client),
        DocumentEditService(client=client),
        repository=repo,
        context=CTX,
        autosave_delay=DELAY,
    )

    await workflow.dispatch(SubmitAnswers({"companyName": "Acme"}))
    stored = await repo.get_document(workflow.document_id)
    assert stored.content == "GENERATED NDA"

    edited = await workflow.dispatch(RequestEdit("Make it mutual"))

    assert edited == "EDITED NDA"
    assert workflow.phase == WorkflowPhase.PREVIEW
    await asyncio.sleep(DELAY * 3)
    await workflow.autosaver.drain()

    stored = await repo.get_document(workflow.document_id)
    assert stored.content == "EDITED NDA"
    await workflow.close()


@pytest.mark.asyncio
async def test_save_flushes_pending_edits_and_finalizes(db_session: AsyncSession):
    repo = DocumentRepository(db_session)
    workflow = _workflow(repo)

    await workflow.dispatch(SubmitAnswers({"companyName": "Acme"}))
    await workflow.dispatch(ChangeContent("Hand-edited NDA"))
    document = await workflow.dispatch(SaveDocument(title="Acme NDA"))

    assert document is not None
    assert document.is_draft is False
    assert document.content == "Hand-edited NDA"
    assert document.title == "Acme NDA"
    assert workflow.is_draft is False
    assert await repo.get_draft_documents(CTX.user_id) == []
    await workflow.close()
