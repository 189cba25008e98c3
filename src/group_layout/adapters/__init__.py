"""Flat layout adapters."""

from __future__ import annotations

from group_layout.adapters.base import LayoutAdapter
from group_layout.adapters.sugiyama import SugiyamaAdapter

__all__ = ["LayoutAdapter", "SugiyamaAdapter", "default_adapter"]


def default_adapter() -> LayoutAdapter:
    """The adapter used when a caller does not supply one."""
    return SugiyamaAdapter()
