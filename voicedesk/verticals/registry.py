"""Vertical registry: built-in verticals plus optional custom JSON file.

Loaded once at startup and read-only afterwards. The custom file may be an
object keyed by vertical id, or a list of objects carrying an ``id`` field:

    {"dental": {"name": "Dental", "systemPrompt": "...", "greeting": "...",
                "tools": ["book_appointment"]}}
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from voicedesk.config import Settings, get_settings
from voicedesk.logging_config import get_logger
from voicedesk.verticals.builtin import BUILTIN_VERTICALS
from voicedesk.verticals.models import UnknownVerticalError, VerticalConfig

logger: Any = get_logger(__name__)


class VerticalConfigError(ValueError):
    """Raised when the custom verticals file is invalid."""


class VerticalRegistry:
    """Immutable lookup table of vertical id -> VerticalConfig."""

    def __init__(
        self,
        verticals: Mapping[str, VerticalConfig],
        default_id: str,
    ) -> None:
        self._verticals = {key.lower(): value for key, value in verticals.items()}
        default_id = default_id.lower()
        if default_id not in self._verticals:
            raise UnknownVerticalError(default_id)
        self._default_id = default_id

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> VerticalRegistry:
        """Build the registry from built-ins and the configured custom file."""
        s = settings or get_settings()
        verticals: dict[str, VerticalConfig] = dict(BUILTIN_VERTICALS)

        if s.custom_verticals_path:
            path = Path(s.custom_verticals_path)
            if path.exists():
                custom = load_custom_verticals(path)
                verticals.update(custom)
                logger.info(f"Loaded {len(custom)} custom verticals from {path}")

        return cls(verticals, default_id=s.bot_vertical)

    @property
    def default_id(self) -> str:
        return self._default_id

    @property
    def default(self) -> VerticalConfig:
        return self._verticals[self._default_id]

    def ids(self) -> list[str]:
        """All vertical ids: built-in first, then custom."""
        builtin = [key for key in BUILTIN_VERTICALS if key in self._verticals]
        custom = [key for key in self._verticals if key not in BUILTIN_VERTICALS]
        return builtin + custom

    def get(self, vertical_id: str) -> VerticalConfig:
        """Resolve a vertical id (case-insensitive).

        Raises:
            UnknownVerticalError: If the id is not configured.
        """
        key = (vertical_id or "").strip().lower()
        try:
            return self._verticals[key]
        except KeyError:
            raise UnknownVerticalError(vertical_id) from None

    def __contains__(self, vertical_id: object) -> bool:
        return isinstance(vertical_id, str) and vertical_id.strip().lower() in self._verticals

    def __len__(self) -> int:
        return len(self._verticals)


def load_custom_verticals(path: Path) -> dict[str, VerticalConfig]:
    """Parse and validate a custom verticals file.

    Raises:
        VerticalConfigError: On unreadable JSON, wrong shape, or invalid
            entries (including unknown tool names).
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise VerticalConfigError(f"Could not read custom verticals from {path}: {e}") from e

    if isinstance(data, dict):
        entries = [(str(key), value) for key, value in data.items()]
    elif isinstance(data, list):
        entries = []
        for item in data:
            if not isinstance(item, dict) or not item.get("id"):
                raise VerticalConfigError(f"Custom vertical entries in {path} need an 'id'")
            item = dict(item)
            vertical_id = str(item.pop("id"))
            item.setdefault("name", vertical_id)
            entries.append((vertical_id, item))
    else:
        raise VerticalConfigError(f"Custom verticals in {path} must be an object or a list")

    verticals: dict[str, VerticalConfig] = {}
    for vertical_id, raw in entries:
        try:
            verticals[vertical_id.lower()] = VerticalConfig.model_validate(raw)
        except ValidationError as e:
            raise VerticalConfigError(f"Invalid custom vertical {vertical_id!r}: {e}") from e
    return verticals
