"""Ultrasound image atlas backed by a vault-configured Airtable base."""

from .config import AtlasConfig
from .exceptions import AtlasError, AtlasUnavailableError
from .schemas import VEIN_TYPE_ALIASES, AtlasImage, resolve_vein_type
from .service import ATLAS_TARGET, ImageAtlasService, vein_type_formula

__all__ = [
    "ATLAS_TARGET",
    "AtlasConfig",
    "AtlasError",
    "AtlasImage",
    "AtlasUnavailableError",
    "ImageAtlasService",
    "VEIN_TYPE_ALIASES",
    "resolve_vein_type",
    "vein_type_formula",
]
