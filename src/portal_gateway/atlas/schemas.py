"""View models for atlas records."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Final

from pydantic import BaseModel, Field

VEIN_TYPE_ALIASES: Final[dict[str, str]] = {
    "hepatic": "Hepatic Vein",
    "portal": "Portal Vein",
    "renal": "Renal Vein",
}


def resolve_vein_type(value: str) -> str:
    """Map a URL slug such as ``hepatic`` to the stored ``Vein type`` value."""

    value = value.strip()
    return VEIN_TYPE_ALIASES.get(value.lower(), value)


class AtlasImage(BaseModel):
    """One ultrasound image card."""

    id: str
    title: str
    description: str = ""
    image_url: str = ""
    thumbnail_url: str = ""
    vein_type: str = "Unknown"
    waveform: str = "Unknown"
    severity: str = "Unknown"
    subtype: str = ""
    quality: str = "Medium"
    qa: str = ""
    analysis: str = ""
    submission_date: datetime | None = None
    approved: bool = True
    tags: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_record(cls, record: Any) -> "AtlasImage":
        """Reshape an Airtable record; raises ``ValueError`` for malformed records."""

        if not isinstance(record, dict):
            raise ValueError("record is not an object")
        record_id = record.get("id")
        fields = record.get("fields")
        if not isinstance(record_id, str) or not isinstance(fields, dict):
            raise ValueError("record has no id or fields")

        vein_type = fields.get("Vein type")
        waveform = fields.get("Waveform")
        image_url, thumbnail_url = _attachment_urls(fields.get("Image"))
        title = f"{vein_type} - {waveform}" if vein_type and waveform else "Untitled"

        return cls(
            id=record_id,
            title=title,
            description=fields.get("Subtype") or "",
            image_url=image_url,
            thumbnail_url=thumbnail_url,
            vein_type=vein_type or "Unknown",
            waveform=waveform or "Unknown",
            severity=waveform or "Unknown",
            subtype=fields.get("Subtype") or "",
            quality=fields.get("Image Quality") or "Medium",
            qa=fields.get("QA") or "",
            analysis=fields.get("Analysis") or "",
            submission_date=record.get("createdTime"),
            metadata={"created_time": record.get("createdTime"), "raw_fields": fields},
        )


def _attachment_urls(attachments: Any) -> tuple[str, str]:
    if not isinstance(attachments, list) or not attachments:
        return "", ""
    first = attachments[0]
    if not isinstance(first, dict):
        return "", ""
    url = first.get("url") or ""
    thumbnails = first.get("thumbnails")
    large = thumbnails.get("large") if isinstance(thumbnails, dict) else None
    large_url = large.get("url") if isinstance(large, dict) else None
    return url, large_url or url


__all__ = ["AtlasImage", "VEIN_TYPE_ALIASES", "resolve_vein_type"]
