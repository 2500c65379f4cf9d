"""Persona/policy configuration types for business verticals."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ToolName(str, Enum):
    """Tools the reasoning engine may call. Closed set, validated at load time."""

    BOOK_MEETING = "book_meeting"
    UPDATE_CRM = "update_crm"
    ESCALATE_TO_AGENT = "escalate_to_agent"
    CREATE_TICKET = "create_ticket"
    SEARCH_KB = "search_kb"
    ACCOUNT_BALANCE = "account_balance"
    RECENT_TRANSACTIONS = "recent_transactions"
    BOOK_APPOINTMENT = "book_appointment"
    CANCEL_APPOINTMENT = "cancel_appointment"


class VerticalConfig(BaseModel):
    """Persona, tools and compliance text for one business vertical.

    Instances are immutable and shared by every session of the vertical.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    name: str = Field(min_length=1)
    system_prompt: str = Field(alias="systemPrompt", min_length=1)
    greeting: str = Field(min_length=1)
    tools: tuple[ToolName, ...] = ()
    compliance: str | None = None
    business_context: str | None = Field(default=None, alias="businessContext")
    script: tuple[str, ...] = ()
    knowledge: tuple[str, ...] = ()
    company_name: str | None = Field(default=None, alias="companyName")
    value_proposition: str | None = Field(default=None, alias="valueProposition")

    @field_validator("tools")
    @classmethod
    def _unique_tools(cls, tools: tuple[ToolName, ...]) -> tuple[ToolName, ...]:
        return tuple(dict.fromkeys(tools))


class UnknownVerticalError(LookupError):
    """Raised when a vertical identifier is not configured."""

    def __init__(self, vertical_id: str) -> None:
        super().__init__(f"Unknown vertical: {vertical_id!r}")
        self.vertical_id = vertical_id
