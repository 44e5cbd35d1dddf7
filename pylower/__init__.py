"""Lowers a desugared JavaScript-family IR into Python."""

from .api import (  # noqa: F401
    parse_source,
    load_program,
    translate_source,
    dump_python,
    dump_target_ir,
    translate_file,
)
from .diagnostics import TranslationError  # noqa: F401
from .translator import Translator, translate_module  # noqa: F401
