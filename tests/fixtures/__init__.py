"""
Test fixtures for deterministic testing.

This module provides:
- MemoryStore: in-memory persistence collaborator with failure switches
- personal_task / booking: row builders in the backend's shapes
"""

from .memory_store import MemoryStore, booking, personal_task

__all__ = ["MemoryStore", "booking", "personal_task"]
