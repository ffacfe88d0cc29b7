"""Ultrasound image atlas served from an Airtable base."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

from ..secrets import SecretCache
from ..upstream import (
    ErrorKind,
    ResilientUpstreamClient,
    UpstreamCallError,
    UpstreamCallSpec,
    UpstreamFailure,
)
from .config import AtlasConfig
from .exceptions import AtlasUnavailableError
from .schemas import AtlasImage, resolve_vein_type

ATLAS_TARGET = "image_atlas"


@dataclass(frozen=True, slots=True)
class _AirtableCredentials:
    api_key: str
    base_id: str
    table_name: str


def vein_type_formula(vein_type: str) -> str:
    """Airtable ``filterByFormula`` selecting records of one vein type."""

    escaped = vein_type.replace("\\", "\\\\").replace("'", "\\'")
    return f"{{Vein type}} = '{escaped}'"


class ImageAtlasService:
    """Reads atlas records page by page and reshapes them into image cards."""

    def __init__(
        self,
        secrets: SecretCache,
        client: ResilientUpstreamClient,
        config: AtlasConfig | None = None,
    ) -> None:
        self.config: AtlasConfig = config or AtlasConfig()
        self._secrets = secrets
        self._client = client
        self._logger: logging.Logger = logging.getLogger(__name__)

    async def images(self, vein_type: str | None = None) -> list[AtlasImage]:
        """Return every image card, optionally restricted to one vein type."""

        credentials = await self._credentials()
        formula = None
        if vein_type is not None:
            vein_type = resolve_vein_type(vein_type)
            formula = vein_type_formula(vein_type)

        records = await self._fetch_records(credentials, formula)
        images: list[AtlasImage] = []
        for record in records:
            try:
                images.append(AtlasImage.from_record(record))
            except ValueError as exc:
                record_id = record.get("id") if isinstance(record, dict) else None
                self._logger.warning(
                    "Skipping malformed atlas record",
                    extra={"atlas_context": {"record_id": record_id, "error": str(exc)}},
                )

        self._logger.info(
            "Atlas images fetched",
            extra={"atlas_context": {"vein_type": vein_type, "count": len(images)}},
        )
        return images

    async def public_config(self) -> dict[str, str]:
        """Base and table identifiers the frontend may see. Never the access token."""

        credentials = await self._credentials()
        return {"base_id": credentials.base_id, "table_name": credentials.table_name}

    async def _credentials(self) -> _AirtableCredentials:
        names = self.config.secret_names
        values = await self._secrets.get(names)
        missing = [name for name in names if not values.get(name)]
        if missing:
            raise AtlasUnavailableError(
                f"Image atlas unavailable: missing configuration {', '.join(missing)}",
                retry_after=self.config.missing_config_retry_after,
            )
        api_key, base_id, table_name = (values[name] for name in names)
        return _AirtableCredentials(api_key=api_key, base_id=base_id, table_name=table_name)

    async def _fetch_records(
        self, credentials: _AirtableCredentials, formula: str | None
    ) -> list[Any]:
        url = "/".join(
            (
                self.config.api_url.rstrip("/"),
                quote(credentials.base_id, safe=""),
                quote(credentials.table_name, safe=""),
            )
        )
        records: list[Any] = []
        offset: str | None = None

        for _ in range(self.config.max_pages):
            params: dict[str, str | list[str]] = {
                "fields[]": list(self.config.fields),
                "pageSize": str(self.config.page_size),
            }
            if formula is not None:
                params["filterByFormula"] = formula
            if offset:
                params["offset"] = offset

            result = await self._client.call(
                UpstreamCallSpec(
                    target=ATLAS_TARGET,
                    url=url,
                    params=params,
                    headers={"Authorization": f"Bearer {credentials.api_key}"},
                    timeout=self.config.timeout,
                    max_attempts=self.config.max_attempts,
                    retry_delay=self.config.retry_delay,
                    secret_values=(credentials.api_key,),
                )
            )
            payload = result.unwrap()
            if not isinstance(payload, dict):
                raise UpstreamCallError(
                    ATLAS_TARGET,
                    UpstreamFailure(
                        kind=ErrorKind.UNKNOWN,
                        message="Atlas API returned an unexpected payload",
                        status_code=result.status_code,
                    ),
                    attempts=result.attempts,
                )

            page = payload.get("records")
            if isinstance(page, list):
                records.extend(page)
            offset = payload.get("offset")
            if not isinstance(offset, str) or not offset:
                break
        else:
            self._logger.warning(
                "Atlas page limit reached, results truncated",
                extra={"atlas_context": {"max_pages": self.config.max_pages}},
            )

        return records


__all__ = ["ATLAS_TARGET", "ImageAtlasService", "vein_type_formula"]
