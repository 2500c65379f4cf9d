"""Tool definitions offered to the reasoning engine, and their stub executor.

Tool side effects (CRM, calendar, ticketing, core banking) are not wired up;
run_tool() returns a fixed acknowledgement the model can phrase to the caller.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from voicedesk.logging_config import get_logger
from voicedesk.verticals.models import ToolName

logger: Any = get_logger(__name__)


def _function(name: ToolName, description: str, **properties: str) -> dict[str, Any]:
    return {
        "type": "function",
        "function": {
            "name": name.value,
            "description": description,
            "parameters": {
                "type": "object",
                "properties": {key: {"type": kind} for key, kind in properties.items()},
            },
        },
    }


TOOL_DEFINITIONS: dict[ToolName, dict[str, Any]] = {
    ToolName.BOOK_MEETING: _function(
        ToolName.BOOK_MEETING,
        "Book a demo or meeting. Ask for preferred date/time if not given.",
        date="string",
        time="string",
        topic="string",
    ),
    ToolName.UPDATE_CRM: _function(
        ToolName.UPDATE_CRM,
        "Update CRM with lead status or notes.",
        note="string",
        status="string",
    ),
    ToolName.ESCALATE_TO_AGENT: _function(
        ToolName.ESCALATE_TO_AGENT,
        "Transfer to a human agent. Use when user asks for human or seems frustrated.",
        reason="string",
    ),
    ToolName.CREATE_TICKET: _function(
        ToolName.CREATE_TICKET,
        "Create a support ticket with summary.",
        summary="string",
        priority="string",
    ),
    ToolName.SEARCH_KB: _function(
        ToolName.SEARCH_KB,
        "Search knowledge base for an answer.",
        query="string",
    ),
    ToolName.ACCOUNT_BALANCE: _function(
        ToolName.ACCOUNT_BALANCE,
        "Get account balance (after verification).",
    ),
    ToolName.RECENT_TRANSACTIONS: _function(
        ToolName.RECENT_TRANSACTIONS,
        "List recent transactions.",
        count="number",
    ),
    ToolName.BOOK_APPOINTMENT: _function(
        ToolName.BOOK_APPOINTMENT,
        "Book or reschedule a healthcare appointment.",
        date="string",
        time="string",
        type="string",
    ),
    ToolName.CANCEL_APPOINTMENT: _function(
        ToolName.CANCEL_APPOINTMENT,
        "Cancel an existing appointment.",
        appointment_id="string",
    ),
}

TOOL_RESULTS: dict[ToolName, str] = {
    ToolName.ESCALATE_TO_AGENT: (
        "Escalation requested. In production, this would transfer the call to a human agent."
    ),
    ToolName.BOOK_MEETING: "Booking noted. In production, this would integrate with your calendar.",
    ToolName.BOOK_APPOINTMENT: (
        "Booking noted. In production, this would integrate with your calendar."
    ),
    ToolName.UPDATE_CRM: "CRM update noted.",
    ToolName.CREATE_TICKET: "Ticket created. A support agent will follow up.",
    ToolName.SEARCH_KB: (
        "Knowledge base search completed. Use the answer from the knowledge base in your reply."
    ),
    ToolName.ACCOUNT_BALANCE: (
        "In production, verify caller identity then return balance or transactions."
    ),
    ToolName.RECENT_TRANSACTIONS: (
        "In production, verify caller identity then return balance or transactions."
    ),
    ToolName.CANCEL_APPOINTMENT: (
        "Cancellation noted. In production, this would cancel the appointment."
    ),
}


def tool_definitions(tools: Iterable[ToolName]) -> list[dict[str, Any]]:
    """Chat-completions tool schemas for exactly the given tools."""
    return [TOOL_DEFINITIONS[tool] for tool in tools]


async def run_tool(
    name: str,
    arguments: dict[str, Any],
    permitted: Iterable[ToolName] | None = None,
) -> str:
    """Execute a tool call and return its result text for the model.

    When ``permitted`` is given, tools outside it are refused.
    """
    try:
        tool = ToolName(name)
    except ValueError:
        logger.warning(f"Model requested unknown tool: {name}")
        return f"Tool {name} is not implemented yet."

    if permitted is not None and tool not in set(permitted):
        logger.warning(f"Model requested tool not offered on this call: {name}")
        return f"Tool {name} is not available on this call."

    logger.info(f"Tool call: {tool.value} ({', '.join(sorted(arguments)) or 'no args'})")
    return TOOL_RESULTS[tool]
