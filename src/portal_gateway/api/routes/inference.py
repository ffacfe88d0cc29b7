"""Inference proxy endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body

from ..deps import InferenceProxyDep

router = APIRouter()


@router.get("")
async def list_models(proxy: InferenceProxyDep) -> dict[str, list[str]]:
    """List the configured inference models."""

    return {"models": proxy.models()}


@router.post("/{model}")
async def predict(
    model: str,
    proxy: InferenceProxyDep,
    payload: dict[str, Any] = Body(...),
) -> Any:
    """Forward ``payload`` to the endpoint configured for ``model``."""

    return await proxy.predict(model, payload)


__all__ = ["router"]
