"""Dialogue persistence."""

from __future__ import annotations

import threading
from typing import Optional

from ...config import get_settings
from .store import DialogueStore


_dialogue_store: Optional[DialogueStore] = None
_factory_lock = threading.Lock()


def get_dialogue_store() -> DialogueStore:
    global _dialogue_store
    if _dialogue_store is None:
        with _factory_lock:
            if _dialogue_store is None:
                _dialogue_store = DialogueStore(get_settings().database_path)
    return _dialogue_store


__all__ = ["DialogueStore", "get_dialogue_store"]
