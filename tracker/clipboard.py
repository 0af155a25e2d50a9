"""
Clipboard Collaborator

The engine only hands a text token over and learns whether it landed.
"""

from __future__ import annotations
from typing import List, Optional
import logging


logger = logging.getLogger(__name__)


class ClipboardBackend:
    """Abstract clipboard: write text, report success."""

    def write(self, text: str) -> bool:
        raise NotImplementedError


class InMemoryClipboard(ClipboardBackend):
    """Keeps every written token; the last one is the clipboard content."""

    def __init__(self):
        self._writes: List[str] = []

    def write(self, text: str) -> bool:
        self._writes.append(text)
        return True

    @property
    def content(self) -> Optional[str]:
        return self._writes[-1] if self._writes else None


class NullClipboard(ClipboardBackend):
    """No clipboard available (headless runs)."""

    def write(self, text: str) -> bool:
        logger.info("Clipboard unavailable; dropped %d-character token", len(text))
        return False
