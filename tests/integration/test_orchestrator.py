import logging
from collections import Counter

import pytest

from mcp_oneinch.errors import (
    RoutingError,
    UnknownPromptError,
    UnknownResourceError,
    UnknownToolError,
)
from mcp_oneinch.orchestrator import ServiceOrchestrator
from mcp_oneinch.services import OpenRouterService, SwapService


# Mark all tests in this module as asyncio
pytestmark = pytest.mark.asyncio

EXPECTED_KEYS = [
    "swap", "token", "token-details", "balance", "orderbook",
    "portfolio", "domain", "charts", "web3-rpc", "gas", "traces",
    "history", "spot-price", "nft", "transaction-gateway", "openrouter",
]

# --- Registration ---

async def test_default_services_registered_in_order(real_orchestrator: ServiceOrchestrator):
    assert real_orchestrator.get_service_names() == EXPECTED_KEYS


async def test_get_service_returns_same_instance(real_orchestrator: ServiceOrchestrator):
    swap = real_orchestrator.get_service("swap")
    assert isinstance(swap, SwapService)
    assert real_orchestrator.get_service("swap") is swap
    assert real_orchestrator.get_service("missing") is None


async def test_llm_service_is_wired_to_orchestrator(real_orchestrator: ServiceOrchestrator):
    chat = real_orchestrator.get_service("openrouter")
    assert isinstance(chat, OpenRouterService)
    assert chat.orchestrator is real_orchestrator


async def test_default_manifests_have_unique_names(real_orchestrator: ServiceOrchestrator):
    tools = Counter(t.name for t in real_orchestrator.get_all_tools())
    resources = Counter(r.uri for r in real_orchestrator.get_all_resources())
    prompts = Counter(p.name for p in real_orchestrator.get_all_prompts())
    assert [name for name, count in tools.items() if count > 1] == []
    assert [uri for uri, count in resources.items() if count > 1] == []
    assert [name for name, count in prompts.items() if count > 1] == []


async def test_manifest_totals_match_service_sums(real_orchestrator: ServiceOrchestrator):
    services = [real_orchestrator.get_service(k) for k in real_orchestrator.get_service_names()]
    assert len(real_orchestrator.get_all_tools()) == sum(len(s.get_tools()) for s in services)
    assert len(real_orchestrator.get_all_resources()) == sum(len(s.get_resources()) for s in services)
    assert len(real_orchestrator.get_all_prompts()) == sum(len(s.get_prompts()) for s in services)


async def test_default_manifest_totals(real_orchestrator: ServiceOrchestrator):
    assert len(real_orchestrator.get_all_tools()) == 84
    assert len(real_orchestrator.get_all_resources()) == 37
    assert len(real_orchestrator.get_all_prompts()) == 23


async def test_resources_are_flat_concatenation(real_orchestrator: ServiceOrchestrator):
    expected = []
    for key in real_orchestrator.get_service_names():
        expected += real_orchestrator.get_service(key).get_resources()
    assert real_orchestrator.get_all_resources() == expected

# --- Routing ---

async def test_tool_call_routed_to_owner_with_args_unchanged(orchestrator, two_services):
    a, b = two_services
    args = {"chain": 1, "nested": {"k": [1, 2]}}

    result = await orchestrator.handle_tool_call("y", args)

    assert result == {"ok": True}
    b.handle_tool_call.assert_awaited_once_with("y", args)
    assert b.handle_tool_call.await_args.args[1] is args
    a.handle_tool_call.assert_not_awaited()


async def test_resource_and_prompt_routing(orchestrator, two_services):
    a, b = two_services
    await orchestrator.handle_resource_read("test://b/doc")
    await orchestrator.handle_prompt_request("pa", {"k": "v"})

    b.handle_resource_read.assert_awaited_once_with("test://b/doc")
    a.handle_prompt_request.assert_awaited_once_with("pa", {"k": "v"})


async def test_collision_first_registered_wins(orchestrator, two_services):
    a, b = two_services
    await orchestrator.handle_tool_call("shared", {})
    a.handle_tool_call.assert_awaited_once_with("shared", {})
    b.handle_tool_call.assert_not_awaited()


async def test_collision_logs_warning(two_services, caplog):
    a, b = two_services
    with caplog.at_level(logging.WARNING):
        ServiceOrchestrator({"A": a, "B": b})
    assert "Duplicate tool 'shared'" in caplog.text


async def test_unknown_names_raise_routing_errors(orchestrator):
    with pytest.raises(UnknownToolError, match="Unknown tool: nope") as tool_exc:
        await orchestrator.handle_tool_call("nope", {})
    with pytest.raises(UnknownResourceError, match="Unknown resource: test://nope"):
        await orchestrator.handle_resource_read("test://nope")
    with pytest.raises(UnknownPromptError, match="Unknown prompt: nope"):
        await orchestrator.handle_prompt_request("nope", {})

    assert tool_exc.value.name == "nope"
    assert isinstance(tool_exc.value, RoutingError)
    assert isinstance(tool_exc.value, LookupError)


async def test_service_errors_propagate_unchanged(orchestrator, two_services):
    a, _ = two_services
    boom = RuntimeError("backend down")
    a.handle_tool_call.side_effect = boom
    with pytest.raises(RuntimeError) as exc_info:
        await orchestrator.handle_tool_call("x", {})
    assert exc_info.value is boom


async def test_get_tool_info(orchestrator):
    info = orchestrator.get_tool_info("x")
    assert info is not None and info.name == "x"
    assert orchestrator.get_tool_info("nope") is None

# --- Health ---

async def test_health_check_all_healthy(orchestrator):
    report = await orchestrator.health_check()
    assert report["status"] == "healthy"
    assert report["services"] == {"A": {"status": "healthy"}, "B": {"status": "healthy"}}
    assert "T" in report["timestamp"]


async def test_health_check_degraded_keeps_probing(make_fake_service):
    a = make_fake_service(tools=["x"])
    b = make_fake_service(tools=["y"], health_error=RuntimeError("boom"))
    c = make_fake_service(tools=["z"])
    orchestrator = ServiceOrchestrator({"A": a, "B": b, "C": c})

    report = await orchestrator.health_check()

    assert report["status"] == "degraded"
    assert report["services"]["A"] == {"status": "healthy"}
    assert report["services"]["B"] == {"status": "unhealthy", "error": "boom"}
    assert report["services"]["C"] == {"status": "healthy"}
    c.health_probe.assert_awaited_once()
