import json

import mcp.types as types
import pytest
from mcp.server.lowlevel import Server

from mcp_oneinch import server
from mcp_oneinch.errors import UnknownResourceError

# Mark all tests in this module as asyncio
pytestmark = pytest.mark.asyncio


async def test_call_tool_returns_json_text(orchestrator, two_services):
    a, _ = two_services
    a.handle_tool_call.return_value = {"allowance": "0", "nested": [1, 2]}

    content = await server.call_tool(orchestrator, "x", {"chain": 1})

    assert len(content) == 1
    assert content[0].type == "text"
    assert json.loads(content[0].text) == {"allowance": "0", "nested": [1, 2]}
    assert content[0].text == json.dumps({"allowance": "0", "nested": [1, 2]}, indent=2)


async def test_call_tool_errors_become_text(orchestrator, two_services):
    a, _ = two_services
    a.handle_tool_call.side_effect = ValueError("Missing required parameters: chain")

    unknown = await server.call_tool(orchestrator, "nope", {})
    failing = await server.call_tool(orchestrator, "x", None)

    assert unknown[0].text == "Error: Unknown tool: nope"
    assert failing[0].text == "Error: Missing required parameters: chain"
    a.handle_tool_call.assert_awaited_once_with("x", {})


async def test_list_handlers_convert_to_mcp_types(real_orchestrator):
    tools = server.list_tools(real_orchestrator)
    resources = server.list_resources(real_orchestrator)
    prompts = server.list_prompts(real_orchestrator)

    assert all(isinstance(t, types.Tool) for t in tools)
    assert len(tools) == len(real_orchestrator.get_all_tools())
    quote = next(t for t in tools if t.name == "get_quote")
    assert quote.inputSchema["type"] == "object"
    assert set(quote.inputSchema["required"]) >= {"chain", "src", "dst", "amount"}

    assert [str(r.uri) for r in resources] == [r.uri for r in real_orchestrator.get_all_resources()]
    assert {p.name for p in prompts} >= {"analyze_swap_quote", "ai_assistant"}


async def test_read_resource_keeps_mime_type(real_orchestrator):
    contents = await server.read_resource(real_orchestrator, "oneinch://swap/documentation")

    assert len(contents) == 1
    assert contents[0].mime_type == "text/markdown"
    assert "/swap/v6.1/" in contents[0].content


async def test_read_resource_unknown_uri_raises(real_orchestrator):
    with pytest.raises(UnknownResourceError):
        await server.read_resource(real_orchestrator, "oneinch://nope")


async def test_get_prompt_validates_into_result(real_orchestrator):
    result = await server.get_prompt(
        real_orchestrator, "token_analysis", {"chain_id": "1", "token_address": "0xabc"}
    )

    assert isinstance(result, types.GetPromptResult)
    assert result.messages[0].role == "user"
    assert result.messages[0].content.text.startswith("Analyze the token 0xabc on chain 1.")


async def test_create_server(real_orchestrator):
    mcp_server = server.create_server(real_orchestrator)
    assert isinstance(mcp_server, Server)
    assert mcp_server.name == "1inch-mcp-server"
