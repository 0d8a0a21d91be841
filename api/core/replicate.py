"""
Replicate HTTP client helpers.

Used endpoints:
- POST /v1/predictions           -> prediction object (blocks up to 60 s with `Prefer: wait`)
- GET  /v1/predictions/{id}      -> prediction object (polled while still running)
"""

from __future__ import annotations

import asyncio
from typing import Any

import httpx

from . import config

DEFAULT_BASE_URL = "https://api.replicate.com"
TERMINAL_STATUSES = {"succeeded", "failed", "canceled"}


class ReplicateError(RuntimeError):
    pass


def api_key() -> str:
    return config.env_str("REPLICATE_API_KEY")


def base_url() -> str:
    return config.env_str("REPLICATE_BASE_URL", DEFAULT_BASE_URL).rstrip("/")


def _headers(key: str) -> dict[str, str]:
    return {
        "Authorization": f"Bearer {key}",
        "Prefer": "wait",
    }


def _check(resp: httpx.Response, action: str) -> dict[str, Any]:
    if resp.status_code not in (200, 201):
        raise ReplicateError(f"Replicate {action} failed: {resp.status_code} {resp.text[:500]}")
    try:
        data = resp.json()
    except ValueError as exc:
        raise ReplicateError(f"Replicate {action} returned a non-JSON body.") from exc
    if not isinstance(data, dict):
        raise ReplicateError(f"Replicate {action} returned an unexpected payload.")
    return data


async def run_prediction(
    version: str,
    model_input: dict[str, Any],
    *,
    timeout_s: float = 180.0,
    poll_interval_s: float = 1.0,
) -> Any:
    """
    Create a prediction and wait until it reaches a terminal status.

    Returns the prediction `output` on success.
    """
    key = api_key()
    if not key:
        raise ReplicateError("REPLICATE_API_KEY is not set.")
    version = (version or "").strip()
    if not version:
        raise ReplicateError("Model version is empty.")

    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout_s

    async with httpx.AsyncClient(base_url=base_url(), timeout=timeout_s, headers=_headers(key)) as client:
        resp = await client.post("/v1/predictions", json={"version": version, "input": model_input})
        prediction = _check(resp, "create prediction")

        while str(prediction.get("status") or "") not in TERMINAL_STATUSES:
            if loop.time() >= deadline:
                raise ReplicateError(f"Prediction {prediction.get('id')} timed out.")
            await asyncio.sleep(poll_interval_s)

            get_url = str((prediction.get("urls") or {}).get("get") or "")
            if not get_url:
                get_url = f"/v1/predictions/{prediction.get('id')}"
            resp = await client.get(get_url)
            prediction = _check(resp, "get prediction")

    status = prediction.get("status")
    if status != "succeeded":
        detail = prediction.get("error") or status
        raise ReplicateError(f"Prediction {prediction.get('id')} {status}: {detail}")
    return prediction.get("output")
