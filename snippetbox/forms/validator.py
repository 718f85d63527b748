"""
Snippetbox — Validation Result & Check Predicates
===================================================

What:  The error collection every form owns, plus the pure predicate
       functions handlers combine with it.
How:   Handlers evaluate predicates in a fixed order and report failures via
       check_field(); only the first failure per field is kept. Failures that
       belong to no single field (bad credentials) go to add_non_field_error().

Predicates measure length in Unicode code points: len() on a Python str,
so "héllo" has 5 characters regardless of its UTF-8 byte length.
"""

import re
from dataclasses import dataclass, field
from re import Pattern
from typing import Dict, Hashable, Iterable, List, TypeVar

T = TypeVar("T", bound=Hashable)

# Compiled once at import; the pattern object is immutable and shared.
EMAIL_RX: Pattern[str] = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@[a-zA-Z0-9]"
    r"(?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*\Z"
)


@dataclass
class ValidationResult:
    """
    Field errors (field name → first message) and an ordered list of
    non-field errors.

    Invariant:
        A field's message never changes once recorded; later failures for
        the same field are dropped.
    """

    field_errors: Dict[str, str] = field(default_factory=dict)
    non_field_errors: List[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.field_errors and not self.non_field_errors

    def add_field_error(self, key: str, message: str) -> None:
        self.field_errors.setdefault(key, message)

    def add_non_field_error(self, message: str) -> None:
        self.non_field_errors.append(message)

    def check_field(self, ok: bool, key: str, message: str) -> None:
        if not ok:
            self.add_field_error(key, message)


# ── Predicates ────────────────────────────────────────────────────────────


def not_blank(value: str) -> bool:
    """True when `value` has something other than whitespace."""
    return value.strip() != ""


def max_chars(value: str, n: int) -> bool:
    return len(value) <= n


def min_chars(value: str, n: int) -> bool:
    return len(value) >= n


def permitted_values(value: T, permitted: Iterable[T]) -> bool:
    """
    True when `value` is one of `permitted`.

    Works for any value type that supports equality, e.g.
    permitted_values(7, (1, 7, 365)) or permitted_values("draft", {"draft", "live"}).
    """
    return value in permitted


def matches(value: str, rx: Pattern[str]) -> bool:
    return rx.search(value) is not None
