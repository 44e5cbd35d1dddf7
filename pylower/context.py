"""Translation context: immutable per-scope configuration threaded through every call."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from . import source_ir as src


class ReturnStrategy(Enum):
    """Syntactic slot a translated statement list is installed into."""

    RETURN = "return"
    NO_RETURN = "no_return"
    NO_BREAK = "no_break"


@dataclass
class TailCallOpportunity:
    """Capability to rewrite self-recursive tail calls of *label* into a loop."""

    label: str
    args: list[str]
    is_recursive_ref: Callable[[src.Node], bool]
    used: bool = False

    def mark_used(self) -> None:
        self.used = True


def _never_hoist(names: list[str]) -> bool:
    return False


@dataclass(frozen=True)
class Context:
    tail_call_opportunity: Optional[TailCallOpportunity] = None
    hoist_vars: Callable[[list[str]], bool] = _never_hoist
    scoped_type_params: frozenset[str] = field(default_factory=frozenset)
    function_scope: bool = False

    def with_tail_call(self, opportunity: Optional[TailCallOpportunity]) -> Context:
        return dataclasses.replace(self, tail_call_opportunity=opportunity)

    def without_tail_call(self) -> Context:
        if self.tail_call_opportunity is None:
            return self
        return dataclasses.replace(self, tail_call_opportunity=None)

    def in_function(self) -> Context:
        """Context for code emitted inside a target function body."""
        if self.function_scope:
            return self
        return dataclasses.replace(self, function_scope=True)

    def with_type_params(self, names: list[str]) -> Context:
        if not names:
            return self
        return dataclasses.replace(
            self, scoped_type_params=self.scoped_type_params | frozenset(names)
        )
