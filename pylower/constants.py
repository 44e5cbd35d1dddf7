"""Named constants used in place of magic strings across the codebase."""

from __future__ import annotations

LIFTED_FUNCTION_PREFIX = "lifted"
MATCH_VALUE_PREFIX = "match_value"
ASSIGN_VALUE_PREFIX = "assign_value"
ANONYMOUS_CLASS_PREFIX = "anonymous_class"

SELF_NAME = "self"
INIT_METHOD_NAME = "__init__"
UNIT_PARAM_NAME = "_"
GENERIC_EXCEPTION_NAME = "Exception"
NONE_NAME = "None"
SUPER_NAME = "super"
STATIC_METHOD_DECORATOR = "staticmethod"

METHOD_KIND = "method"
CONSTRUCTOR_KIND = "constructor"

# Source identifiers that collide with target conventions.
NAME_REWRITES: dict[str, str] = {
    "this": SELF_NAME,
    "async": "asyncio",
}

LIBRARY_NAMESPACE = "fable"
LIBRARY_MODULE_PATTERN = r".*/fable-library[.0-9]*/(?P<module>[^/]*)\.js"

IMPORT_PLACEHOLDER = "importMember"
NAMESPACE_IMPORT = "*"
DEFAULT_IMPORT = "default"
MODULE_IMPORT = ""

VOID_EMIT_TEMPLATE = "void $0"

MATH_OBJECT = "Math"
MATH_MODULE = "math"

CACHE_DIR_NAME = "pylower"

DEMO_SOURCE = """\
import { map } from "./fable-library.3.2.1/List.js";

export function factorial(n, acc) {
    if (n <= 1) {
        return acc;
    }
    return factorial(n - 1, acc * n);
}

export class Greeter {
    constructor(name) {
        this.name = name;
    }
    greet(greeting) {
        switch (greeting) {
            case "hi":
            case "hello":
                return "Hello " + this.name;
            default:
                return greeting;
        }
    }
}
"""

JAVASCRIPT = "javascript"
SUPPORTED_LANGUAGES = frozenset({JAVASCRIPT})
