"""
OpenAI-compatible chat-completions client.

Used endpoint:
- POST {OPENAI_BASE_URL}/chat/completions
    -> {"choices": [{"message": {"role": "assistant", "content": "..."}}]}

Any server speaking this wire format works (OpenAI, a local proxy, Ollama's
/v1 endpoint), which keeps tests and local dev off the paid API.
"""

from __future__ import annotations

import json
from typing import Any

import httpx

from . import config

DEFAULT_BASE_URL = "https://api.openai.com/v1"


# LLM failures are explicit and separable from other runtime errors.
class LLMError(RuntimeError):
    pass


# The call succeeded but the model output is unusable.
class LLMOutputError(LLMError):
    pass


def api_key() -> str:
    return config.env_str("OPENAI_API_KEY")


def base_url() -> str:
    return config.env_str("OPENAI_BASE_URL", DEFAULT_BASE_URL).rstrip("/")


def is_configured() -> bool:
    return bool(api_key())


def default_timeout_s() -> float:
    return config.env_float("LLM_TIMEOUT_S", 60.0)


def _payload(
    *,
    model: str,
    messages: list[dict[str, str]],
    temperature: float | None,
    max_tokens: int | None,
    json_mode: bool,
) -> dict[str, Any]:
    model = (model or "").strip()
    if not model:
        raise LLMError("Model name is empty.")
    if not messages:
        raise LLMError("Messages list is empty.")

    payload: dict[str, Any] = {"model": model, "messages": messages}
    if temperature is not None:
        payload["temperature"] = float(temperature)
    if max_tokens is not None:
        payload["max_tokens"] = int(max_tokens)
    if json_mode:
        payload["response_format"] = {"type": "json_object"}
    return payload


async def _complete(payload: dict[str, Any], *, timeout_s: float | None) -> str:
    key = api_key()
    if not key:
        raise LLMError("OpenAI API key is not set.")

    try:
        async with httpx.AsyncClient(base_url=base_url(), timeout=timeout_s or default_timeout_s()) as client:
            resp = await client.post(
                "/chat/completions",
                json=payload,
                headers={"Authorization": f"Bearer {key}"},
            )
    except httpx.HTTPError as exc:
        raise LLMError(f"Chat completion request failed: {exc}") from exc

    if resp.status_code != 200:
        # Avoid dumping huge bodies; include a small snippet.
        body = resp.text[:500]
        raise LLMError(f"Chat completion request failed: {resp.status_code} {body}")

    try:
        data = resp.json()
    except ValueError as exc:
        raise LLMError(f"Chat completion returned a non-JSON body: {resp.text[:200]}") from exc
    if not isinstance(data, dict):
        raise LLMError("Chat completion returned an unexpected payload.")

    choices = data.get("choices")
    if isinstance(choices, list) and choices:
        first = choices[0]
        message = first.get("message") if isinstance(first, dict) else None
        if isinstance(message, dict):
            content = message.get("content")
            if isinstance(content, str):
                return content.strip()
    return ""


async def chat_json(
    *,
    model: str,
    messages: list[dict[str, str]],
    temperature: float | None = None,
    max_tokens: int | None = None,
    timeout_s: float | None = None,
) -> dict[str, Any]:
    """
    Generate one assistant message in JSON mode and return the decoded object.
    """
    payload = _payload(
        model=model,
        messages=messages,
        temperature=temperature,
        max_tokens=max_tokens,
        json_mode=True,
    )
    text = await _complete(payload, timeout_s=timeout_s)
    if not text:
        raise LLMOutputError("Model returned an empty response.")

    try:
        data = json.loads(text)
    except ValueError as exc:
        raise LLMOutputError("Model returned invalid JSON.") from exc
    if not isinstance(data, dict):
        raise LLMOutputError("Model returned a non-object JSON value.")
    return data
