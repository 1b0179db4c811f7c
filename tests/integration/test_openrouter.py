import json
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from mcp_oneinch.models import tool
from mcp_oneinch.services.openrouter import (
    NO_RESPONSE,
    TOOL_RESULTS_NOTE,
    OpenRouterService,
    extract_arguments,
    extract_keywords,
    extract_mermaid,
    score_tool,
    summarize_result,
)

# Mark all tests in this module as asyncio
pytestmark = pytest.mark.asyncio

WALLET = "0x742d35Cc6634C0532925a3b8D4C9db96C4b4d8b6"
USDC_KEY = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"


def completion(content, model="small/model"):
    return {
        "model": model,
        "choices": [{"message": {"role": "assistant", "content": content}}],
        "usage": {"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15},
    }


@pytest.fixture
def chat_orchestrator():
    """Orchestrator stand-in exposing a balance tool and a broken price tool."""
    tools = [
        tool("get_wallet_balances", "Get wallet token balances", {}),
        tool("get_token_price", "Get token price", {}),
        tool("intelligent_chat", "Intelligent chat with balances and prices", {}),
    ]
    orchestrator = MagicMock()
    orchestrator.get_all_tools.return_value = tools
    orchestrator.get_tool_info.side_effect = lambda name: next((t for t in tools if t.name == name), None)

    async def handle_tool_call(name, args):
        if name == "get_token_price":
            raise RuntimeError("price backend down")
        return {USDC_KEY: "100"}

    orchestrator.handle_tool_call = AsyncMock(side_effect=handle_tool_call)
    return orchestrator


# --- Heuristics ---

async def test_extract_keywords_drops_stop_words_and_short_words():
    assert extract_keywords("Get the wallet balances, on chain!") == ["wallet", "balances", "chain"]


async def test_extract_arguments_for_get_balance():
    args = extract_arguments("get_balance", f"balance of {WALLET}")
    assert args == {"address": WALLET, "chainId": 1}


async def test_extract_arguments_for_wallet_tools_with_chain():
    args = extract_arguments("get_wallet_balances", f"balances for {WALLET} on chain 137 limit 5")
    assert args == {"walletAddress": WALLET, "chain": 137, "limit": 5}


async def test_extract_arguments_amount():
    assert extract_arguments("get_quote", "quote for 1.5 eth")["amount"] == "1.5"


async def test_score_tool_threshold():
    balances = tool("get_wallet_balances", "Get wallet token balances", {})

    assert score_tool(balances, "what's the weather") is None
    call = score_tool(balances, "use get_wallet_balances to show token balances")
    assert call["name"] == "get_wallet_balances"
    assert call["confidence"] == 1.0


async def test_select_tools_excludes_own_tool_and_caps_at_three(service_config, openrouter_config):
    tools = [tool(f"tool_{i}", "wallet balances", {}) for i in range(5)]
    tools.append(tool("intelligent_chat", "wallet balances", {}))
    orchestrator = MagicMock()
    orchestrator.get_all_tools.return_value = tools
    service = OpenRouterService(service_config, openrouter_config, orchestrator)

    selected = service.select_tools("wallet balances please, tool_4")

    assert len(selected) == 3
    assert selected[0]["name"] == "tool_4"
    assert "intelligent_chat" not in [call["name"] for call in selected]


async def test_extract_mermaid():
    content = "Here:\n```mermaid\ngraph TD\n  A-->B\n```\nDone"
    assert extract_mermaid(content) == "graph TD\n  A-->B"
    assert extract_mermaid("no diagram") is None


async def test_summarize_result():
    assert summarize_result("get_token_price", {"price": "1.01"}) == "Current price: $1.01"
    assert summarize_result("get_current_portfolio_value", {"total_value": 10}) == "Portfolio value: $10"
    assert summarize_result("get_tokens", [1, 2]) == "Found 2 tokens"
    assert summarize_result("x", "text") == "Data retrieved"

# --- OpenRouter calls ---

async def test_complete_sends_configured_body(service_config, openrouter_config, make_transport):
    transport = make_transport(responses={"/api/v1/chat/completions": completion("hi")})
    service = OpenRouterService(service_config, openrouter_config, transport=transport)

    result = await service.complete([{"role": "user", "content": "hello"}])

    assert result == {"content": "hi", "model": "small/model", "usage": completion("hi")["usage"]}
    assert transport.last.headers["Authorization"] == "Bearer or-key"
    body = transport.body()
    assert body["model"] == "small/model"
    assert body["max_tokens"] == 256
    assert body["temperature"] == 0.2


async def test_complete_requires_key_and_model(service_config, openrouter_config, make_transport):
    transport = make_transport()
    without_key = OpenRouterService(
        service_config, openrouter_config.model_copy(update={"api_key": ""}), transport=transport
    )
    without_model = OpenRouterService(
        service_config, openrouter_config.model_copy(update={"small_model": "", "large_model": ""}), transport=transport
    )

    with pytest.raises(ValueError, match="API key"):
        await without_key.complete([])
    with pytest.raises(ValueError, match="No model configured"):
        await without_model.complete([])
    assert transport.requests == []


async def test_complete_falls_back_to_large_model(service_config, openrouter_config):
    service = OpenRouterService(service_config, openrouter_config.model_copy(update={"small_model": ""}))
    assert service.resolve_model() == "large/model"
    assert service.resolve_model("explicit/model") == "explicit/model"

# --- Chat ---

async def test_chat_runs_tools_and_extracts_mermaid(
    service_config, openrouter_config, make_transport, chat_orchestrator
):
    answer = "Balances below.\n```mermaid\npie\n```"
    transport = make_transport(responses={"/api/v1/chat/completions": completion(answer)})
    service = OpenRouterService(service_config, openrouter_config, chat_orchestrator, transport)

    result = await service.chat(f"Show wallet balances and token price for {WALLET}", "conv_1")

    assert result["content"] == answer
    assert result["mermaidCode"] == "pie"
    by_name = {call["toolName"]: call for call in result["functionCalls"]}
    assert by_name["get_wallet_balances"]["success"] is True
    assert by_name["get_token_price"] == {
        "success": False, "toolName": "get_token_price", "error": "price backend down", "executionTime": 0,
    }
    chat_orchestrator.handle_tool_call.assert_any_await("get_wallet_balances", {"walletAddress": WALLET, "chain": 1})

    messages = transport.body()["messages"]
    assert messages[0]["role"] == "system"
    assert TOOL_RESULTS_NOTE in messages[0]["content"]
    assert messages[-1]["role"] == "assistant"
    assert "Failed Tool Calls:" in messages[-1]["content"]
    assert "- get_token_price: price backend down" in messages[-1]["content"]
    assert service.conversations["conv_1"][-1] == {"role": "assistant", "content": answer}


async def test_intelligent_chat_keeps_history(service_config, openrouter_config, make_transport):
    transport = make_transport(responses={"/api/v1/chat/completions": completion(None)})
    service = OpenRouterService(service_config, openrouter_config, transport=transport)

    await service.handle_tool_call("intelligent_chat", {"conversationId": "c", "message": "hello"})
    result = await service.handle_tool_call("intelligent_chat", {"conversationId": "c", "message": "again"})

    assert result["response"] == NO_RESPONSE
    assert result["conversationId"] == "c"
    assert result["toolCalls"] is None
    assert [m["content"] for m in transport.body()["messages"][1:]] == ["hello", NO_RESPONSE, "again"]


async def test_failed_completion_leaves_no_partial_turn(service_config, openrouter_config, make_transport):
    replies = [httpx.Response(502, json={"error": "bad gateway"}), httpx.Response(200, json=completion("hi"))]
    transport = make_transport(handler=lambda r: replies.pop(0))
    service = OpenRouterService(service_config, openrouter_config, transport=transport)

    with pytest.raises(httpx.HTTPStatusError):
        await service.chat("first try", "c")
    assert service.conversations["c"] == []

    await service.chat("second try", "c")

    assert service.conversations["c"] == [
        {"role": "user", "content": "second try"},
        {"role": "assistant", "content": "hi"},
    ]
    assert [m["content"] for m in transport.body()["messages"][1:]] == ["second try"]


async def test_unknown_selected_tool_is_reported(service_config, openrouter_config):
    orchestrator = MagicMock()
    orchestrator.get_tool_info.return_value = None
    service = OpenRouterService(service_config, openrouter_config, orchestrator)

    results = await service.execute_tool_calls([{"name": "ghost", "arguments": {}}])

    assert results == [{"success": False, "toolName": "ghost", "error": "Tool 'ghost' not found", "executionTime": 0}]


async def test_ai_assistant_prompt(service_config, openrouter_config, make_transport):
    transport = make_transport(responses={"/api/v1/chat/completions": completion("Do X then Y.")})
    service = OpenRouterService(service_config, openrouter_config, transport=transport)

    result = await service.handle_prompt_request("ai_assistant", {"task": "Plan", "context": "DeFi"})

    assert result["messages"][0]["content"]["text"] == "Do X then Y."
    assert json.loads(transport.last.content)["messages"][1] == {"role": "user", "content": "Task: Plan\nContext: DeFi"}


async def test_health_probe_lists_models(service_config, openrouter_config, make_transport):
    transport = make_transport(handler=lambda r: httpx.Response(200, json={"data": []}))
    service = OpenRouterService(service_config, openrouter_config, transport=transport)

    assert await service.health_probe() == {"data": []}
    assert transport.last.url.path == "/api/v1/models"
