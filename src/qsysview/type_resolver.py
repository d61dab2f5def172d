"""
Protocol type resolution for connections and interfaces.

A connection in a system description carries a raw ``kind`` string, and each
of its two endpoints may or may not have a declared interface type. The two
ends frequently disagree or are missing. This module reconciles them into
one canonical protocol label, then derives the presentation color, the
vector (bus) flag and the legend category from that label.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

UNKNOWN = "unknown"

# Substring rules, checked in order; first hit wins.
# Order matters: "avalon_streaming" contains "avalon", and "st" must be
# tested before "mm"/"avalon".
_COLOR_RULES = (
    (("avalon_streaming", "st"), "#22c55e"),  # green
    (("avalon", "mm"), "#f59e0b"),  # amber
    (("clock",), "#ef4444"),  # red
    (("reset",), "#a855f7"),  # purple
    (("conduit",), "#64748b"),  # slate
    (("interrupt",), "#ec4899"),  # pink
)
DEFAULT_COLOR = "#475569"


class ConnectionCategory(Enum):
    """Legend categories used for coloring and visibility filtering."""

    ST = "Avalon-ST"
    MM = "Avalon-MM"
    CLOCK = "Clock"
    RESET = "Reset"
    CONDUIT = "Conduit"
    INTERRUPT = "Interrupt"
    OTHER = "Other"


_CATEGORY_RULES = (
    (("avalon_streaming", "st"), ConnectionCategory.ST),
    (("avalon", "mm"), ConnectionCategory.MM),
    (("clock",), ConnectionCategory.CLOCK),
    (("reset",), ConnectionCategory.RESET),
    (("conduit",), ConnectionCategory.CONDUIT),
    (("interrupt",), ConnectionCategory.INTERRUPT),
)


@dataclass(frozen=True)
class ResolvedType:
    """
    Outcome of resolving one connection's type hints.

    Attributes:
        protocol_type: Canonical protocol label.
        color: Hex stroke/fill color.
        is_vector: True when the net should be drawn as a bus.
        category: Legend category for filtering.
    """

    protocol_type: str
    color: str
    is_vector: bool
    category: ConnectionCategory


def normalize(value: Optional[str]) -> str:
    """Trim a type hint; empty or missing values become ``unknown``."""
    if value is None:
        return UNKNOWN
    value = value.strip()
    return value if value else UNKNOWN


def _is_known(value: str) -> bool:
    return value.lower() != UNKNOWN


def resolve_type(
    kind: Optional[str],
    start_type: Optional[str] = None,
    end_type: Optional[str] = None,
) -> str:
    """
    Resolve the canonical protocol label of a connection.

    Args:
        kind: Raw connection kind from the source document.
        start_type: Declared type of the start interface, if any.
        end_type: Declared type of the end interface, if any.

    Returns:
        The start type when both ends agree (case-insensitive), the string
        ``"<start> -> <end>"`` when they disagree, whichever end is known
        when only one is, and otherwise the normalized raw kind.
    """
    start = normalize(start_type)
    end = normalize(end_type)

    if _is_known(start) and _is_known(end):
        if start.lower() == end.lower():
            return start
        return f"{start} -> {end}"
    if _is_known(start):
        return start
    if _is_known(end):
        return end
    return normalize(kind)


def kind_color(kind: str) -> str:
    """Return the presentation color for a resolved type or raw kind."""
    k = kind.lower()
    for needles, color in _COLOR_RULES:
        if any(needle in k for needle in needles):
            return color
    return DEFAULT_COLOR


def categorize(kind: str) -> ConnectionCategory:
    """Map a resolved type or raw kind to its legend category."""
    k = kind.lower()
    for needles, category in _CATEGORY_RULES:
        if any(needle in k for needle in needles):
            return category
    return ConnectionCategory.OTHER


def is_vector(kind: Optional[str], protocol_type: str) -> bool:
    """Bus nets: Avalon connection kinds, or any AXI resolved type."""
    return "avalon" in normalize(kind).lower() or "axi" in protocol_type.lower()


def resolve_connection(
    kind: Optional[str],
    start_type: Optional[str] = None,
    end_type: Optional[str] = None,
) -> ResolvedType:
    """Resolve the type of a connection and everything derived from it."""
    protocol_type = resolve_type(kind, start_type, end_type)
    return ResolvedType(
        protocol_type=protocol_type,
        color=kind_color(protocol_type),
        is_vector=is_vector(kind, protocol_type),
        category=categorize(protocol_type),
    )
