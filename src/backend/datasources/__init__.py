"""Adapters for the host's variable store."""

from .variables import VariableStore, VariableWrite

__all__ = ["VariableStore", "VariableWrite"]
