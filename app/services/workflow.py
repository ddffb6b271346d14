"""
Client-side orchestration of one document: questionnaire -> generation ->
preview/edit loop -> persistence.

The workflow is an explicit state machine driven by messages:

    form --SubmitAnswers--> generating --ok--> preview
                                       --error--> form
    preview --RequestEdit--> editing --ok/error--> preview
    preview --ChangeContent / SaveDocument / SubmitAnswers (regenerate)--> ...

Signed-in workflows (a SessionContext and a repository were supplied) keep
their draft in storage: the draft is created (or reused) after generation,
edits are auto-saved through AutoSaveDebouncer, and SaveDocument finalizes it.

Usage
-----
    workflow = DocumentWorkflow("nda", generator, editor, repository, ctx)
    await workflow.dispatch(SubmitAnswers({"companyName": "Acme"}))
    await workflow.dispatch(RequestEdit("Make it more formal"))
    await workflow.dispatch(SaveDocument())
    await workflow.close()
"""
from __future__ import annotations

import asyncio
import dataclasses
import enum
import logging
from typing import Awaitable, Callable, Dict, Mapping, Optional, Set, Tuple, Union

from app.config import settings
from app.dependencies.auth import SessionContext
from app.models.database_models import Document
from app.services.document_repository import DocumentRepository
from app.services.editing import DocumentEditService
from app.services.exceptions import (
    GenerationError,
    ValidationError,
    WorkflowStateError,
)
from app.services.generation import DocumentGenerationService
from app.utils.helpers import default_document_title

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Auto-save debouncing
# ---------------------------------------------------------------------------

class AutoSaveDebouncer:
    """
    Persist only the latest content once edits have been quiet for *delay* seconds.

    ``schedule()`` cancels any pending quiet-period timer and starts a new one.
    A save that has already started runs to completion even if new edits
    arrive. Saves never overlap: they run one at a time in the order they
    were issued, so the newest content is always written last.
    """

    def __init__(
        self,
        save: Callable[[str, Optional[str]], Awaitable[bool]],
        delay: float,
    ) -> None:
        self._save = save
        self.delay = delay
        self._timer: Optional[asyncio.Task] = None
        self._in_flight: Set[asyncio.Task] = set()
        self._save_lock = asyncio.Lock()
        self._latest: Optional[Tuple[str, Optional[str]]] = None
        self.saves_issued = 0
        self.last_result: Optional[bool] = None

    @property
    def pending(self) -> bool:
        """True while a quiet-period timer is waiting to fire."""
        return self._timer is not None and not self._timer.done()

    def schedule(self, content: str, title: Optional[str] = None) -> None:
        self._latest = (content, title)
        self._cancel_timer()
        self._timer = asyncio.create_task(self._wait_then_save())

    async def flush(self) -> Optional[bool]:
        """Save the latest unsaved content now and wait for every save to finish."""
        self._cancel_timer()
        await self.drain()
        if self._latest is not None:
            content, title = self._latest
            self._latest = None
            await self._run_save(content, title)
        return self.last_result

    async def drain(self) -> None:
        """Wait for in-flight saves (does not touch the pending timer)."""
        if self._in_flight:
            await asyncio.gather(*list(self._in_flight))

    async def aclose(self) -> None:
        """Drop any pending timer and wait for in-flight saves."""
        self._cancel_timer()
        self._latest = None
        await self.drain()

    # ------------------------------------------------------------------

    async def _wait_then_save(self) -> None:
        await asyncio.sleep(self.delay)
        if self._latest is None:
            return
        content, title = self._latest
        self._latest = None
        # The save gets its own task so cancelling a later timer cannot reach it
        task = asyncio.create_task(self._run_save(content, title))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def _run_save(self, content: str, title: Optional[str]) -> None:
        async with self._save_lock:
            self.saves_issued += 1
            try:
                ok = await self._save(content, title)
            except Exception as exc:
                logger.error("Auto-save raised: %s", exc, exc_info=True)
                ok = False
            self.last_result = ok
        if not ok:
            logger.warning("Auto-save failed; latest edits are not persisted yet")

    def _cancel_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None


# ---------------------------------------------------------------------------
# Workflow phases and messages
# ---------------------------------------------------------------------------

class WorkflowPhase(str, enum.Enum):
    FORM = "form"
    GENERATING = "generating"
    PREVIEW = "preview"
    EDITING = "editing"


@dataclasses.dataclass(frozen=True)
class SubmitAnswers:
    answers: Mapping[str, str]


@dataclasses.dataclass(frozen=True)
class RequestEdit:
    instruction: str


@dataclasses.dataclass(frozen=True)
class ChangeContent:
    content: str
    title: Optional[str] = None


@dataclasses.dataclass(frozen=True)
class SaveDocument:
    title: Optional[str] = None


WorkflowMessage = Union[SubmitAnswers, RequestEdit, ChangeContent, SaveDocument]


# ---------------------------------------------------------------------------
# Workflow
# ---------------------------------------------------------------------------

class DocumentWorkflow:
    """State machine for a single document being generated and edited."""

    def __init__(
        self,
        template_id: str,
        generator: DocumentGenerationService,
        editor: DocumentEditService,
        repository: Optional[DocumentRepository] = None,
        context: Optional[SessionContext] = None,
        autosave_delay: Optional[float] = None,
    ) -> None:
        self.template_id = template_id
        self._generator = generator
        self._editor = editor
        self._repository = repository
        self._context = context

        self.phase = WorkflowPhase.FORM
        self.answers: Dict[str, str] = {}
        self.content = ""
        self.title = default_document_title(template_id)
        self.document_id: Optional[str] = None
        self.is_draft = False
        self.last_error: Optional[str] = None

        delay = settings.AUTOSAVE_DELAY_SECONDS if autosave_delay is None else autosave_delay
        self.autosaver = AutoSaveDebouncer(self._persist_progress, delay)

    @property
    def signed_in(self) -> bool:
        return self._context is not None and self._repository is not None

    async def dispatch(self, message: WorkflowMessage):
        """Route *message* to its handler; returns the handler's result."""
        if isinstance(message, SubmitAnswers):
            return await self._on_submit(message)
        if isinstance(message, RequestEdit):
            return await self._on_edit(message)
        if isinstance(message, ChangeContent):
            return self._on_change(message)
        if isinstance(message, SaveDocument):
            return await self._on_save(message)
        raise TypeError(f"Unsupported workflow message: {message!r}")

    async def close(self) -> None:
        """Flush unsaved edits (signed-in only) and stop the auto-saver."""
        if self.signed_in and self.document_id:
            await self.autosaver.flush()
        await self.autosaver.aclose()

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    async def _on_submit(self, message: SubmitAnswers) -> str:
        self._expect("generate", WorkflowPhase.FORM, WorkflowPhase.PREVIEW)
        resting = self.phase
        self.answers = dict(message.answers)
        self.phase = WorkflowPhase.GENERATING
        self.last_error = None

        try:
            content = await self._generator.generate(self.template_id, self.answers)
        except (GenerationError, ValidationError) as exc:
            self.phase = resting if resting == WorkflowPhase.PREVIEW else WorkflowPhase.FORM
            self.last_error = exc.message
            raise

        self.content = content
        self.phase = WorkflowPhase.PREVIEW

        if self.signed_in:
            draft = await self._repository.create_draft_document(
                self._context.user_id,
                self.title,
                content,
                self.template_id,
                self.answers,
            )
            if draft is None:
                self.last_error = "Draft could not be saved. Please try again."
            else:
                self.document_id = draft.id
                self.is_draft = draft.is_draft
        return content

    async def _on_edit(self, message: RequestEdit) -> str:
        self._expect("edit", WorkflowPhase.PREVIEW)
        self.phase = WorkflowPhase.EDITING
        self.last_error = None
        try:
            edited = await self._editor.edit(self.content, message.instruction)
        except (GenerationError, ValidationError) as exc:
            self.last_error = exc.message
            raise
        finally:
            self.phase = WorkflowPhase.PREVIEW

        self.content = edited
        self._schedule_autosave()
        return edited

    def _on_change(self, message: ChangeContent) -> None:
        self._expect("change content", WorkflowPhase.PREVIEW)
        self.content = message.content
        if message.title:
            self.title = message.title
        self._schedule_autosave()

    async def _on_save(self, message: SaveDocument) -> Optional[Document]:
        self._expect("save", WorkflowPhase.PREVIEW)
        if not self.signed_in:
            raise ValidationError("Sign in to save documents")
        if message.title:
            self.title = message.title

        document: Optional[Document]
        if self.document_id:
            # Pending edits must land before the record is finalized
            await self.autosaver.flush()
            document = await self._repository.finalize_draft_document(self.document_id, self.title)
        else:
            document = await self._repository.create_document(
                self._context.user_id,
                self.title,
                self.content,
                self.template_id,
                self.answers,
            )

        if document is None:
            self.last_error = "Error saving document. Please try again."
            return None

        self.document_id = document.id
        self.is_draft = False
        self.last_error = None
        return document

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _expect(self, action: str, *phases: WorkflowPhase) -> None:
        if self.phase not in phases:
            raise WorkflowStateError(action, self.phase.value)

    def _schedule_autosave(self) -> None:
        if self.signed_in and self.document_id:
            self.autosaver.schedule(self.content, self.title)

    async def _persist_progress(self, content: str, title: Optional[str]) -> bool:
        return await self._repository.save_document_progress(self.document_id, content, title)
