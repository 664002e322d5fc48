"""
Configured agent sets.

An agent set is the group of agents a session may hand off between. The
first agent of a set is its root unless a different root is requested.

Prompt and tool definitions are owned by the realtime agent runtime; this
module only carries what the backend needs to resolve and announce agents.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class AgentProfile:
    """Display-level description of one realtime agent."""
    name: str
    voice: str = "sage"
    instructions: str = ""
    handoffs: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "voice": self.voice,
            "handoffs": list(self.handoffs),
        }


STUDY_COACH_AGENT = AgentProfile(
    name="studyCoachAgent",
    voice="sage",
    instructions=(
        "You are Coach Sparky, a friendly and patient voice coach for primary "
        "school students. Help them set one or two simple goals for their day."
    ),
)

ALL_AGENT_SETS: dict[str, tuple[AgentProfile, ...]] = {
    "studyCoach": (STUDY_COACH_AGENT,),
}

DEFAULT_AGENT_SET_KEY = "studyCoach"


def resolve_agent_set(key: str | None) -> tuple[str, tuple[AgentProfile, ...]]:
    """
    Return (key, agents) for a requested set, falling back to the default
    set when the key is missing or unknown.
    """
    if key and key in ALL_AGENT_SETS:
        return key, ALL_AGENT_SETS[key]
    return DEFAULT_AGENT_SET_KEY, ALL_AGENT_SETS[DEFAULT_AGENT_SET_KEY]


def order_with_root(
    agents: tuple[AgentProfile, ...],
    root_name: str | None,
) -> tuple[AgentProfile, ...]:
    """Move the requested root agent to the front so it becomes the root."""
    if not root_name:
        return agents
    for idx, agent in enumerate(agents):
        if agent.name == root_name:
            if idx == 0:
                return agents
            return (agent,) + agents[:idx] + agents[idx + 1:]
    return agents
