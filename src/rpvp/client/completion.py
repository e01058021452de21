from __future__ import annotations

import json
import logging
from typing import Literal

import httpx
from pydantic import BaseModel, SecretStr

from ..errors import CompletionError
from ..models import TransactionRecord
from ..settings import settings

MODELS = {
    "fast": "Qwen/Qwen3-30B-A3B-Instruct-2507",
    "smart": "deepseek-ai/DeepSeek-V3.1",
}


class ChatMessage(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: str


class ResponseFormat(BaseModel):
    type: Literal["json_object", "text"]


class CompletionRequest(BaseModel):
    model: str
    messages: list[ChatMessage]
    temperature: float | None = None
    max_tokens: int | None = None
    response_format: ResponseFormat | None = None


class CompletionResult(BaseModel):
    content: str
    transaction: TransactionRecord


def serialize_request(request: CompletionRequest) -> str:
    # Serialised once; these exact bytes are sent and later hashed.
    return json.dumps(request.model_dump(exclude_none=True), separators=(",", ":"), ensure_ascii=False)


class CompletionClient:
    """Chat completion call that keeps the raw bodies for verification."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.near_api_base).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.completion_timeout_seconds
        self._transport = transport

    async def generate_completion(self, api_key: str, request: CompletionRequest) -> CompletionResult:
        if not api_key:
            raise ValueError("API key is missing.")
        raw_request = serialize_request(request)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                r = await client.post(
                    f"{self.base_url}/chat/completions",
                    content=raw_request.encode("utf-8"),
                    headers={
                        "Content-Type": "application/json",
                        "Authorization": f"Bearer {api_key}",
                    },
                )
        except httpx.HTTPError as e:
            logging.error("Completion request failed: %s", e)
            raise CompletionError(f"Completion request failed: {e}") from e
        raw_response = r.text
        if not r.is_success:
            logging.error("Completion failed: HTTP %s", r.status_code)
            raise CompletionError(
                f"Completion API error: {r.status_code}", status_code=r.status_code, body=raw_response
            )
        try:
            data = json.loads(raw_response)
            content = data["choices"][0]["message"]["content"]
            transaction_id = data["id"]
            model_id = data["model"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise CompletionError(
                f"Completion response is not a chat completion: {e!r}",
                status_code=r.status_code,
                body=raw_response,
            ) from e
        return CompletionResult(
            content=content,
            transaction=TransactionRecord(
                request_body=raw_request.encode("utf-8"),
                response_body=r.content,
                transaction_id=transaction_id,
                model_id=model_id,
                credential=SecretStr(api_key),
            ),
        )


__all__ = [
    "MODELS",
    "ChatMessage",
    "ResponseFormat",
    "CompletionRequest",
    "CompletionResult",
    "CompletionClient",
    "serialize_request",
]
