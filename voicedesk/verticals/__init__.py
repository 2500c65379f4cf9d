"""Business verticals: persona, greeting, tools and compliance per vertical."""

from voicedesk.verticals.builtin import BUILTIN_VERTICALS
from voicedesk.verticals.models import ToolName, UnknownVerticalError, VerticalConfig
from voicedesk.verticals.registry import (
    VerticalConfigError,
    VerticalRegistry,
    load_custom_verticals,
)

__all__ = [
    "BUILTIN_VERTICALS",
    "ToolName",
    "VerticalConfig",
    "VerticalRegistry",
    "UnknownVerticalError",
    "VerticalConfigError",
    "load_custom_verticals",
]
