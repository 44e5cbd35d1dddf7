"""Import table with one aliased entry per (module, imported name) per file."""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import BaseModel

from . import constants
from . import target_ir as tir

logger = logging.getLogger(__name__)


class ImportEntry(BaseModel):
    module: str
    name: str
    alias: Optional[str] = None

    @property
    def is_module_import(self) -> bool:
        return self.name in (
            constants.MODULE_IMPORT,
            constants.NAMESPACE_IMPORT,
            constants.DEFAULT_IMPORT,
        )


class ImportTable:
    def __init__(self):
        self._entries: dict[tuple[str, str], ImportEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: tuple[str, str]) -> bool:
        return key in self._entries

    def get(self, module: str, name: str) -> Optional[ImportEntry]:
        return self._entries.get((module, name))

    def add(self, module: str, name: str, alias: Optional[str]) -> ImportEntry:
        """Register an import; an existing entry for the key always wins."""
        key = (module, name)
        existing = self._entries.get(key)
        if existing is not None:
            return existing
        entry = ImportEntry(module=module, name=name, alias=alias)
        self._entries[key] = entry
        logger.debug("Registered import %s::%s as %s", module, name, alias)
        return entry

    def materialize(self) -> list[tir.Stmt]:
        """Import statements for every entry, in first-registration order.

        Member imports of one module share a single ``from ... import``.
        """
        stmts: list[tir.Stmt] = []
        from_imports: dict[str, tir.ImportFrom] = {}
        for entry in self._entries.values():
            if entry.is_module_import:
                asname = entry.alias if entry.alias != entry.module else None
                stmts.append(
                    tir.Import(names=[tir.Alias(name=entry.module, asname=asname)])
                )
                continue
            asname = entry.alias if entry.alias != entry.name else None
            alias = tir.Alias(name=entry.name, asname=asname)
            grouped = from_imports.get(entry.module)
            if grouped is None:
                grouped = tir.ImportFrom(module=entry.module, names=[alias])
                from_imports[entry.module] = grouped
                stmts.append(grouped)
            else:
                grouped.names.append(alias)
        return stmts

    def unique_alias(self, alias: Optional[str]) -> Optional[str]:
        """*alias*, suffixed when another entry already uses it."""
        if alias is None:
            return None
        taken = {entry.alias for entry in self._entries.values()}
        candidate = alias
        suffix = 1
        while candidate in taken:
            candidate = f"{alias}_{suffix}"
            suffix += 1
        return candidate

    def drain(self) -> list[tir.Stmt]:
        stmts = self.materialize()
        self._entries.clear()
        return stmts
