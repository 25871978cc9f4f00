# =============================================================================
# core/completion.py  —  Completion Gateway (hosted language model)
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Wraps ONE hosted text-completion endpoint (the Anthropic Messages API).
#   complete() builds a single-message request, POSTs it, and returns the
#   text of the first content block.  That's all.
#
# THE WIRE CONTRACT:
#   Request headers:  x-api-key, anthropic-version: 2023-06-01
#   Request body:     {model, max_tokens, temperature,
#                      messages: [{role: "user", content: prompt}]}
#   Response body:    {content: [{type: "text", text: "..."}, ...], ...}
#
# FAILURE MAPPING (see core/errors.py):
#   non-2xx status            → UpstreamError(status, body)
#   connect/read/timeout      → UpstreamError(no status)
#   2xx but wrong shape       → MalformedResponse
#   task cancelled mid-flight → Cancelled
#
# NO RETRIES:
#   A failed call is reported once.  Whoever invoked the tool decides
#   whether to try again.
# =============================================================================

import asyncio
import json
import logging
from typing import Any

import httpx

from core.config import DEFAULT_COMPLETION_URL, DEFAULT_MODEL
from core.errors import Cancelled, MalformedResponse, UpstreamError
from core.models import CompletionRequest, CompletionResult

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"


class CompletionGateway:
    """Thin async client for the completion endpoint.

    The httpx.AsyncClient is owned by the caller (the process host) so one
    connection pool is shared by every tool call for the process lifetime.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        api_key: str,
        model: str | None = None,
        url: str = DEFAULT_COMPLETION_URL,
    ) -> None:
        self._http = http
        self._url = url
        self._model = model.strip() if model and model.strip() else DEFAULT_MODEL
        self._headers = {
            "x-api-key": api_key,
            "anthropic-version": ANTHROPIC_VERSION,
            "content-type": "application/json",
        }

    @property
    def model(self) -> str:
        return self._model

    async def complete(
        self, prompt: str, temperature: float = 0.2, max_tokens: int = 2000
    ) -> str:
        """Send one prompt, return the first text block ("" is allowed)."""
        request = CompletionRequest(
            model=self._model,
            prompt=prompt,
            temperature=temperature,
            max_tokens=max_tokens,
        )
        result = await self.send(request)
        return result.text

    async def send(self, request: CompletionRequest) -> CompletionResult:
        try:
            response = await self._http.post(
                self._url, json=request.to_payload(), headers=self._headers
            )
        except asyncio.CancelledError as exc:
            raise Cancelled("completion request was cancelled") from exc
        except httpx.HTTPError as exc:
            raise UpstreamError(f"completion request failed: {exc!r}") from exc

        if not response.is_success:
            raise UpstreamError(
                "completion endpoint returned an error",
                status=response.status_code,
                body=response.text,
            )

        text = extract_first_text(response.content)
        logger.debug("completion returned %d chars (model=%s)", len(text), self._model)
        return CompletionResult(text=text)


def extract_first_text(raw: bytes | str) -> str:
    """Pull content[0].text out of a Messages API response body."""
    try:
        payload: Any = json.loads(raw)
    except ValueError as exc:
        raise MalformedResponse(f"completion response is not JSON: {exc}") from exc

    content = payload.get("content") if isinstance(payload, dict) else None
    if not isinstance(content, list) or not content:
        raise MalformedResponse("completion response has no content array")

    first = content[0]
    if not isinstance(first, dict) or "text" not in first:
        raise MalformedResponse("first content block has no text field")

    text = first["text"]
    if text is None:
        return ""
    if not isinstance(text, str):
        raise MalformedResponse(
            f"first content block text is {type(text).__name__}, expected string"
        )
    return text
