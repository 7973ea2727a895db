"""Canonicalize the media assets of a static website tree."""

from .config import AppConfig, load_config
from .core import CanonicalizationError, CanonicalizationService
from .models import RunResult, RunState

__all__ = [
    "AppConfig",
    "load_config",
    "CanonicalizationError",
    "CanonicalizationService",
    "RunResult",
    "RunState",
]
