# pylint: disable=missing-module-docstring,missing-function-docstring

from agent_configs.registry import AgentProfile, order_with_root, resolve_agent_set
from orchestrator.content import extract_text
from orchestrator.handoff import parse_transfer_target, resolve_agent
from orchestrator.tool_args import parse_tool_arguments, string_arg


def test_extract_text_joins_known_parts_in_order():
    content = [
        {"type": "input_text", "text": "one"},
        {"type": "input_audio", "transcript": "two"},
        {"type": "output_text", "text": "three"},
    ]
    assert extract_text(content) == "one two three"


def test_extract_text_tolerates_missing_fields():
    assert extract_text(None) == ""
    assert extract_text([]) == ""
    assert extract_text([{"type": "input_audio", "transcript": None}]) == ""
    assert extract_text(["raw", {"type": "image"}, {"type": "text", "text": "ok"}]) == "ok"


def test_parse_tool_arguments_accepts_string_or_mapping():
    assert parse_tool_arguments('{"purpose": "Goal"}') == {"purpose": "Goal"}
    assert parse_tool_arguments({"purpose": "Goal"}) == {"purpose": "Goal"}


def test_parse_tool_arguments_degrades_to_empty():
    assert parse_tool_arguments("{broken") == {}
    assert parse_tool_arguments("[1, 2]") == {}
    assert parse_tool_arguments(None) == {}
    assert parse_tool_arguments(42) == {}


def test_string_arg_falls_back_on_blank():
    assert string_arg({"purpose": "  "}, "purpose", "Daily Reflection") == "Daily Reflection"
    assert string_arg({"purpose": 3}, "purpose", "Daily Reflection") == "Daily Reflection"
    assert string_arg({"purpose": " Goal "}, "purpose", "x") == "Goal"


def test_parse_transfer_target():
    assert parse_transfer_target("transfer_to_ScienceTutor") == "ScienceTutor"
    assert parse_transfer_target("startRecording") is None
    assert parse_transfer_target(None) is None


def test_resolve_agent_is_case_insensitive():
    agents = (AgentProfile(name="MathTutor"), AgentProfile(name="Coach"))

    found = resolve_agent("mathtutor", agents)
    assert found is not None and found.name == "MathTutor"
    assert resolve_agent("nobody", agents) is None


def test_agent_set_falls_back_to_default():
    key, agents = resolve_agent_set("doesNotExist")

    assert key == "studyCoach"
    assert agents[0].name == "studyCoachAgent"


def test_order_with_root_moves_requested_agent_first():
    agents = (AgentProfile(name="A"), AgentProfile(name="B"))

    assert [a.name for a in order_with_root(agents, "B")] == ["B", "A"]
    assert order_with_root(agents, None) == agents
    assert order_with_root(agents, "missing") == agents
