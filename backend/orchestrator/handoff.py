"""
Agent handoff detection.

Handoffs are signalled by a tool-call naming convention:
"transfer_to_<agent name>". The parser is kept at this boundary so the
matching rule can later be swapped for a structured field without touching
transcript merge logic.
"""

from __future__ import annotations

import re

from agent_configs.registry import AgentProfile
from constants import HANDOFF_TOOL_PATTERN

_HANDOFF_RE = re.compile(HANDOFF_TOOL_PATTERN)


def parse_transfer_target(tool_name: str | None) -> str | None:
    """Return the requested agent name, or None if this is not a handoff."""
    if not tool_name:
        return None
    match = _HANDOFF_RE.match(tool_name)
    if match is None:
        return None
    return match.group(1)


def resolve_agent(
    candidate: str,
    agents: tuple[AgentProfile, ...],
) -> AgentProfile | None:
    """Case-insensitive lookup of a candidate name in the configured set."""
    wanted = candidate.lower()
    for agent in agents:
        if agent.name.lower() == wanted:
            return agent
    return None
