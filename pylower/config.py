"""Translator configuration (pure data, no business logic)."""

from __future__ import annotations

from dataclasses import dataclass

from . import constants


@dataclass(frozen=True)
class TranslatorConfig:
    """Groups translation and caching configuration."""

    library_namespace: str = constants.LIBRARY_NAMESPACE
    library_module_pattern: str = constants.LIBRARY_MODULE_PATTERN
    use_cache: bool = False
    cache_dir: str = ""
