"""Forwards prediction payloads to named inference endpoints."""

from __future__ import annotations

import logging
from typing import Any

from ..upstream import ResilientUpstreamClient, UpstreamCallSpec
from .config import InferenceConfig


class UnknownModelError(LookupError):
    """Raised when no endpoint is configured for the requested model."""


class InferenceProxy:
    """Thin multi-endpoint proxy for image-classification models."""

    def __init__(
        self,
        client: ResilientUpstreamClient,
        config: InferenceConfig | None = None,
    ) -> None:
        self.config: InferenceConfig = config or InferenceConfig()
        self._client = client
        self._logger: logging.Logger = logging.getLogger(__name__)
        unknown = set(self.config.insecure_tls_targets) - set(self.config.endpoints)
        if unknown:
            self._logger.warning(
                "insecure_tls_targets lists models without endpoints: %s",
                ", ".join(sorted(unknown)),
            )

    def models(self) -> list[str]:
        return sorted(self.config.endpoints)

    def build_spec(self, model: str, payload: Any) -> UpstreamCallSpec:
        url = self.config.endpoints.get(model)
        if url is None:
            raise UnknownModelError(f"No inference endpoint configured for model '{model}'")
        return UpstreamCallSpec(
            target=f"inference:{model}",
            url=url,
            method="POST",
            json_body=payload,
            headers={"Content-Type": "application/json", "User-Agent": self.config.user_agent},
            timeout=self.config.timeout,
            max_attempts=self.config.max_attempts,
            retry_delay=self.config.retry_delay,
            verify_tls=model not in self.config.insecure_tls_targets,
        )

    async def predict(self, model: str, payload: Any) -> Any:
        """Return the endpoint's JSON response; failures raise ``UpstreamCallError``."""

        spec = self.build_spec(model, payload)
        self._logger.info("Proxying inference request", extra={"inference_context": {"model": model}})
        result = await self._client.call(spec)
        return result.unwrap()


__all__ = ["InferenceProxy", "UnknownModelError"]
