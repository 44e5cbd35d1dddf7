"""Composable API functions for the pylower pipelines.

Each function corresponds to a CLI workflow (--ir-only, --json, --cache)
but is callable programmatically without argparse.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from . import source_ir as src
from . import target_ir as tir
from .cache import FileCache
from .config import TranslatorConfig
from .diagnostics import Diagnostics
from .frontend import JavaScriptFrontend
from .parser import Parser, TreeSitterParserFactory
from .printer import print_module
from .translator import translate_module

logger = logging.getLogger(__name__)

JSON_SUFFIX = ".json"


def parse_source(source: str, diagnostics: Optional[Diagnostics] = None) -> src.Program:
    """Parse JavaScript source text into a source IR program.

    Args:
        source: The JavaScript source text.
        diagnostics: Sink for reader errors; a fresh one is used if omitted.

    Returns:
        The source IR ``Program``.
    """
    tree = Parser(TreeSitterParserFactory()).parse(source)
    return JavaScriptFrontend(diagnostics).lower(tree, source.encode("utf-8"))


def load_program(json_text: str) -> src.Program:
    """Deserialize a source IR program produced by an upstream front-end."""
    return src.Program.model_validate_json(json_text)


def _program(source: str, from_json: bool, diagnostics: Diagnostics) -> src.Program:
    if from_json:
        return load_program(source)
    return parse_source(source, diagnostics)


def translate_source(
    source: str,
    config: Optional[TranslatorConfig] = None,
    from_json: bool = False,
    diagnostics: Optional[Diagnostics] = None,
) -> tir.Module:
    """Parse (or load) and translate source into a target IR module.

    Args:
        source: JavaScript text, or serialized source IR when *from_json*.
        config: Translator configuration.
        from_json: Treat *source* as a JSON-serialized source IR program.
        diagnostics: Shared diagnostics sink for reader and translator.

    Returns:
        The target IR ``Module`` with imports hoisted first.
    """
    diagnostics = diagnostics or Diagnostics()
    program = _program(source, from_json, diagnostics)
    return translate_module(program, config, diagnostics)


def dump_python(
    source: str,
    config: Optional[TranslatorConfig] = None,
    from_json: bool = False,
) -> str:
    """Translate source and return the generated Python text."""
    return print_module(translate_source(source, config, from_json))


def dump_target_ir(
    source: str,
    config: Optional[TranslatorConfig] = None,
    from_json: bool = False,
) -> str:
    """Translate source and return the target IR as indented JSON."""
    return translate_source(source, config, from_json).model_dump_json(indent=2)


def translate_file(path: str, config: Optional[TranslatorConfig] = None) -> str:
    """Translate one file to Python text, consulting the file cache if enabled.

    Files ending in ``.json`` are read as serialized source IR; anything else
    is parsed as JavaScript.

    Args:
        path: Path of the source file.
        config: Translator configuration; ``use_cache`` enables the cache.

    Returns:
        The generated Python source text.
    """
    config = config or TranslatorConfig()
    cache = FileCache(config.cache_dir) if config.use_cache else None
    if cache is not None:
        _, hit = cache.is_cached(path)
        cached = cache.try_read(path) if hit else None
        if cached is not None:
            return cached

    logger.info("Translating %s", path)
    source = Path(path).read_text(encoding="utf-8")
    diagnostics = Diagnostics(file_name=path)
    module = translate_source(
        source, config, from_json=path.endswith(JSON_SUFFIX), diagnostics=diagnostics
    )
    output = print_module(module)
    if cache is not None:
        cache.try_cache(path, output)
    return output
