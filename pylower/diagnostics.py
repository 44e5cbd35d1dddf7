"""Diagnostics sink for deduplicated warnings and fatal translation errors."""

from __future__ import annotations

import logging
from enum import Enum
from typing import NoReturn, Optional

from pydantic import BaseModel

from .source_ir import SourceLocation

logger = logging.getLogger(__name__)


class Severity(str, Enum):
    WARNING = "warning"
    ERROR = "error"


class Diagnostic(BaseModel):
    severity: Severity
    message: str
    location: Optional[SourceLocation] = None

    def __str__(self) -> str:
        where = f" ({self.location})" if self.location else ""
        return f"{self.severity.value}: {self.message}{where}"


class TranslationError(Exception):
    """Raised when the source IR contains a shape with no lowering rule."""

    def __init__(self, message: str, location: Optional[SourceLocation] = None):
        where = f" at {location}" if location else ""
        super().__init__(f"{message}{where}")
        self.message = message
        self.location = location


class Diagnostics:
    """Collects diagnostics for one file.

    Warnings are deduplicated by message text; errors abort the file.
    """

    def __init__(self, file_name: str = ""):
        self.file_name = file_name
        self.diagnostics: list[Diagnostic] = []
        self._warned: set[str] = set()

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == Severity.WARNING]

    def warn_once(self, message: str, location: Optional[SourceLocation] = None):
        if message in self._warned:
            return
        self._warned.add(message)
        self.diagnostics.append(
            Diagnostic(severity=Severity.WARNING, message=message, location=location)
        )
        logger.warning("%s: %s", self.file_name or "<input>", message)

    def error(
        self, message: str, location: Optional[SourceLocation] = None
    ) -> NoReturn:
        self.diagnostics.append(
            Diagnostic(severity=Severity.ERROR, message=message, location=location)
        )
        logger.error("%s: %s", self.file_name or "<input>", message)
        raise TranslationError(message, location)
