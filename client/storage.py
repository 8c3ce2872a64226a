"""Saved conversations, kept as one JSON list in a single file."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List

logger = logging.getLogger(__name__)


def atomic_write_json(filepath: Path, data: Any) -> None:
    """Write JSON atomically using temp file + rename to prevent corruption."""
    filepath.parent.mkdir(parents=True, exist_ok=True)
    temp_fd, temp_path = tempfile.mkstemp(dir=filepath.parent, suffix=".tmp")
    try:
        with os.fdopen(temp_fd, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False)
        os.replace(temp_path, filepath)
    except Exception as e:
        logger.error("atomic_write_json failed for %s: %s", filepath, e)
        try:
            os.unlink(temp_path)
        except OSError:
            pass
        raise


class SavedChatStore:
    """Whole-list read-modify-write store; the last writer wins."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            return []
        try:
            with open(self.path, encoding="utf-8") as f:
                parsed = json.load(f)
        except (json.JSONDecodeError, OSError, UnicodeDecodeError) as e:
            logger.warning("Failed to load saved chats from %s: %s", self.path, e)
            return []
        return parsed if isinstance(parsed, list) else []

    def save(self, chats: List[Dict[str, Any]]) -> None:
        atomic_write_json(self.path, chats)

    def add(self, snapshot: Dict[str, Any]) -> List[Dict[str, Any]]:
        chats = [snapshot] + self.load()
        self.save(chats)
        return chats

    def delete(self, chat_id: str) -> List[Dict[str, Any]]:
        chats = [c for c in self.load() if not (isinstance(c, dict) and c.get("id") == chat_id)]
        self.save(chats)
        return chats

    def clear(self) -> None:
        self.save([])
