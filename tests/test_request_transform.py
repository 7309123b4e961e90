import copy

from max_proxy.services.request_transform import (
    IDENTITY_PROMPT,
    inject_identity,
    namespace_tools,
    sanitize_system,
    transform_request_body,
)


def test_string_system_and_tools_scenario() -> None:
    body = {"system": "hi", "tools": [{"name": "search"}]}

    result = transform_request_body(body, tool_prefix="mcp_")

    assert result["system"] == [
        {"type": "text", "text": IDENTITY_PROMPT},
        {"type": "text", "text": "hi"},
    ]
    assert result["tools"] == [{"name": "mcp_search"}]


def test_input_body_is_not_mutated() -> None:
    body = {
        "system": [{"type": "text", "text": "OpenCode agent"}],
        "tools": [{"name": "read", "input_schema": {}}],
        "messages": [
            {"role": "assistant", "content": [{"type": "tool_use", "name": "read", "id": "1"}]}
        ],
    }
    snapshot = copy.deepcopy(body)

    transform_request_body(body, tool_prefix="mcp_")

    assert body == snapshot


def test_identity_injection_is_idempotent() -> None:
    once = inject_identity({"system": "be terse"})
    twice = inject_identity(once)

    identities = [block for block in twice["system"] if block["text"] == IDENTITY_PROMPT]
    assert len(identities) == 1
    assert twice == once


def test_existing_identity_block_is_kept_in_place() -> None:
    system = [
        {"type": "text", "text": "Extra context"},
        {"type": "text", "text": "You are Claude Code, with a twist."},
    ]

    result = inject_identity({"system": system})

    assert result["system"] == system


def test_missing_system_gets_identity_only() -> None:
    result = inject_identity({"messages": []})

    assert result["system"] == [{"type": "text", "text": IDENTITY_PROMPT}]


def test_sanitize_rewrites_blocked_names() -> None:
    body = {
        "system": [
            {"type": "text", "text": "You are OpenCode, built by the opencode team (OPENCODE)."},
            {"type": "image", "text": "OpenCode"},
            {"type": "text", "text": ""},
        ]
    }

    result = sanitize_system(body)

    assert result["system"][0]["text"] == (
        "You are Claude Code, built by the Claude team (Claude)."
    )
    assert result["system"][1] == {"type": "image", "text": "OpenCode"}
    assert result["system"][2] == {"type": "text", "text": ""}


def test_namespace_tools_prefixes_definitions_and_tool_use_blocks() -> None:
    body = {
        "tools": [{"name": "bash"}, {"description": "unnamed"}],
        "messages": [
            {"role": "user", "content": "plain string content"},
            {
                "role": "assistant",
                "content": [
                    {"type": "text", "text": "calling"},
                    {"type": "tool_use", "id": "t1", "name": "bash", "input": {}},
                ],
            },
            {
                "role": "user",
                "content": [{"type": "tool_result", "tool_use_id": "t1", "content": "ok"}],
            },
        ],
    }

    result = namespace_tools(body, "mcp_")

    assert result["tools"] == [{"name": "mcp_bash"}, {"description": "unnamed"}]
    assert result["messages"][0] == body["messages"][0]
    assert result["messages"][1]["content"][1]["name"] == "mcp_bash"
    assert result["messages"][1]["content"][0] == {"type": "text", "text": "calling"}
    assert result["messages"][2] == body["messages"][2]


def test_other_fields_pass_through() -> None:
    body = {"model": "claude-sonnet-4-6", "max_tokens": 64, "stream": True}

    result = transform_request_body(body, tool_prefix="ns_")

    assert result["model"] == "claude-sonnet-4-6"
    assert result["max_tokens"] == 64
    assert result["stream"] is True
