"""Identifier handling: synthetic names, name cleaning and module-name rewriting."""

from __future__ import annotations

import itertools
import keyword
import logging
import re

from . import constants

logger = logging.getLogger(__name__)

_ILLEGAL_IDENTIFIER_CHARS = re.compile(r"[^0-9A-Za-z_]")


class SyntheticNames:
    """Monotonic, collision-free identifiers for lifted helpers.

    One instance is owned by each file translation; the counter never resets
    while that file is being translated.
    """

    def __init__(self):
        self._counter = itertools.count()
        self._issued: set[str] = set()

    def fresh(self, prefix: str = constants.LIFTED_FUNCTION_PREFIX) -> str:
        name = f"{prefix}_{next(self._counter)}"
        self._issued.add(name)
        return name

    def is_synthetic(self, name: str) -> bool:
        return name in self._issued


def clean_name(name: str) -> str:
    """Rewrite a source identifier into a legal target identifier."""
    rewritten = constants.NAME_REWRITES.get(name)
    if rewritten is not None:
        return rewritten
    cleaned = _ILLEGAL_IDENTIFIER_CHARS.sub("_", name)
    if keyword.iskeyword(cleaned):
        return f"{cleaned}_"
    return cleaned


def rewrite_module_name(
    module_path: str,
    library_pattern: str = constants.LIBRARY_MODULE_PATTERN,
    library_namespace: str = constants.LIBRARY_NAMESPACE,
) -> str:
    """Map an import path to a dotted target module name.

    Paths following the runtime-library convention become
    ``<namespace>.<module>``; every other path is slash-stripped and
    lower-cased.
    """
    match = re.match(library_pattern, module_path)
    if match:
        module = clean_name(match.group("module").lower())
        return f"{library_namespace}.{module}"
    module = module_path.replace("/", "").lower()
    logger.debug("Module path %s rewritten to %s", module_path, module)
    return module


def ident_for_import(module: str, name: str) -> str | None:
    """Default local identifier for importing *name* from *module*."""
    if not name:
        return None
    if name in (constants.NAMESPACE_IMPORT, constants.DEFAULT_IMPORT):
        return clean_name(module.rsplit(".", 1)[-1] or module)
    return name
