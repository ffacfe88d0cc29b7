"""Inference endpoint proxy."""

from .config import InferenceConfig
from .proxy import InferenceProxy, UnknownModelError

__all__ = ["InferenceConfig", "InferenceProxy", "UnknownModelError"]
