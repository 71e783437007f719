"""Adapters for executing and displaying extracted tool invocations."""

from .base import BaseAdapter, ToolStatus, ToolState
from .print import PrintAdapter

__all__ = ["BaseAdapter", "ToolStatus", "ToolState", "PrintAdapter"]
