"""
Gemini LLM client and the provider-neutral text-delta stream.

Public API
----------
GeminiClient.generate_text(prompt, system_instruction=None) -> str
GeminiClient.open_stream(prompt, system_instruction=None)   -> TextDeltaStream
TextDeltaStream                                              — async iterator of text deltas
parse_stream_line(line)                                      -> Optional[str]

Callers only ever see plain strings (blocking) or a TextDeltaStream
(streaming); the provider's wire format stays inside this module so the
provider can be swapped without touching the generation/edit services.
No retries: a provider failure surfaces immediately as GenerationError.
"""
from __future__ import annotations

import json
import logging
from typing import Any, AsyncIterator, Dict, Optional

import httpx

from app.config import settings
from app.services.exceptions import GenerationError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Response parsing helpers
# ---------------------------------------------------------------------------

def extract_candidate_text(payload: Any) -> str:
    """Return the concatenated text parts of the first candidate, or ``""``."""
    if not isinstance(payload, dict):
        return ""
    candidates = payload.get("candidates") or []
    if not candidates or not isinstance(candidates[0], dict):
        return ""
    content = candidates[0].get("content") or {}
    parts = content.get("parts") or []
    return "".join(
        part.get("text", "") for part in parts if isinstance(part, dict)
    )


def parse_stream_line(line: str) -> Optional[str]:
    """
    Parse one line of a streaming response into a text delta.

    Lines are newline-delimited JSON documents, optionally carrying an SSE
    ``data:`` prefix or the separators of a JSON array.  Returns ``None`` for
    blank lines, lines without text, and lines that fail to parse (the
    latter are logged and skipped, never fatal to the stream).
    """
    line = line.strip()
    if not line:
        return None
    if line.startswith("data:"):
        line = line[len("data:"):].strip()
    line = line.strip("[],").strip()
    if not line:
        return None

    try:
        payload = json.loads(line)
    except json.JSONDecodeError as exc:
        logger.warning("Skipping unparseable stream chunk (%s): %s", exc, line[:200])
        return None

    return extract_candidate_text(payload) or None


# ---------------------------------------------------------------------------
# Streaming
# ---------------------------------------------------------------------------

class TextDeltaStream:
    """
    Ordered sequence of text deltas from one in-flight LLM response.

    Iterating consumes the underlying HTTP connection; a connection that
    drops mid-stream raises GenerationError after whatever deltas already
    arrived.  The connection is released when iteration ends or
    ``aclose()`` is called, whichever comes first.
    """

    def __init__(self, client: httpx.AsyncClient, response: httpx.Response) -> None:
        self._client = client
        self._response = response
        self._closed = False

    def __aiter__(self) -> AsyncIterator[str]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[str]:
        try:
            async for line in self._response.aiter_lines():
                delta = parse_stream_line(line)
                if delta:
                    yield delta
        except httpx.HTTPError as exc:
            logger.error("LLM stream interrupted: %s", exc)
            raise GenerationError(f"Stream interrupted: {exc}") from exc
        finally:
            await self.aclose()

    async def collect(self) -> str:
        """Drain the stream and return the joined text."""
        return "".join([delta async for delta in self])

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._response.aclose()
        await self._client.aclose()


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class GeminiClient:
    """Thin async wrapper over the Gemini ``generateContent`` REST endpoints."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.GEMINI_API_KEY
        self.model = model or settings.GEMINI_MODEL
        self.base_url = settings.GEMINI_BASE_URL.rstrip("/")
        self.timeout = httpx.Timeout(float(settings.GEMINI_TIMEOUT), connect=10.0)
        # Injected in tests (httpx.MockTransport); None means real network.
        self._transport = transport

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def generate_text(
        self, prompt: str, system_instruction: Optional[str] = None
    ) -> str:
        """
        Issue one blocking request and return the first candidate's text.

        Raises GenerationError on transport failure, non-200 status,
        malformed JSON, no candidates, or an empty/missing text field.
        """
        self._require_api_key()
        url = f"{self.base_url}/models/{self.model}:generateContent"

        try:
            async with self._new_client() as client:
                resp = await client.post(
                    url,
                    headers=self._headers(),
                    json=self._payload(prompt, system_instruction),
                )
        except httpx.HTTPError as exc:
            logger.error("Gemini request failed: %s", exc)
            raise GenerationError(f"AI service request failed: {exc}") from exc

        if resp.status_code != 200:
            logger.error(
                "Gemini API error: HTTP %d: %s", resp.status_code, resp.text[:200]
            )
            raise GenerationError(
                f"AI service error ({resp.status_code})", status_code=resp.status_code
            )

        try:
            data = resp.json()
        except ValueError as exc:
            logger.error("Gemini returned malformed JSON: %s", resp.text[:200])
            raise GenerationError("Malformed response from AI service") from exc

        if not isinstance(data, dict) or not data.get("candidates"):
            logger.error("No candidates returned from Gemini: %s", str(data)[:200])
            raise GenerationError("No valid response from the AI model")

        text = extract_candidate_text(data)
        if not text:
            raise GenerationError("AI service returned no text")
        return text

    async def open_stream(
        self, prompt: str, system_instruction: Optional[str] = None
    ) -> TextDeltaStream:
        """
        Start a streaming request and return its TextDeltaStream.

        The status line is checked before returning, so a provider-level
        failure raises GenerationError before any delta is emitted.
        """
        self._require_api_key()
        url = f"{self.base_url}/models/{self.model}:streamGenerateContent"

        client = self._new_client()
        request = client.build_request(
            "POST",
            url,
            params={"alt": "sse"},
            headers=self._headers(),
            json=self._payload(prompt, system_instruction),
        )
        try:
            response = await client.send(request, stream=True)
        except httpx.HTTPError as exc:
            await client.aclose()
            logger.error("Gemini stream request failed: %s", exc)
            raise GenerationError(f"AI service request failed: {exc}") from exc

        if response.status_code != 200:
            body = await response.aread()
            await response.aclose()
            await client.aclose()
            logger.error(
                "Gemini stream error: HTTP %d: %s",
                response.status_code,
                body[:200].decode("utf-8", errors="replace"),
            )
            raise GenerationError(
                f"AI service error ({response.status_code})",
                status_code=response.status_code,
            )

        return TextDeltaStream(client, response)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_api_key(self) -> None:
        if not self.api_key:
            raise GenerationError("Gemini API key is not configured")

    def _new_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-goog-api-key": self.api_key,
        }

    @staticmethod
    def _payload(prompt: str, system_instruction: Optional[str]) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": settings.GEMINI_TEMPERATURE,
                "topP": settings.GEMINI_TOP_P,
                "topK": settings.GEMINI_TOP_K,
                "maxOutputTokens": settings.GEMINI_MAX_OUTPUT_TOKENS,
            },
        }
        if system_instruction:
            payload["systemInstruction"] = {"parts": [{"text": system_instruction}]}
        return payload
