"""Spacing and sizing defaults for grouped layouts."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

# Pixel-unit geometry defaults (TB layout).
DEFAULT_RANKSEP: int = 50  # gap between adjacent ranks
DEFAULT_NODESEP: int = 50  # gap between neighbours in the same rank
DEFAULT_NODE_WIDTH: int = 180
DEFAULT_NODE_HEIGHT: int = 40


@dataclass(frozen=True)
class LayoutOptions:
    """Spacing hints forwarded to every layout adapter call."""

    ranksep: Any = DEFAULT_RANKSEP
    nodesep: Any = DEFAULT_NODESEP

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> LayoutOptions:
        """Read ``ranksep``/``nodesep`` from a params mapping, defaulting when absent or ``None``."""
        ranksep = params.get("ranksep")
        nodesep = params.get("nodesep")
        return cls(
            ranksep=DEFAULT_RANKSEP if ranksep is None else ranksep,
            nodesep=DEFAULT_NODESEP if nodesep is None else nodesep,
        )
