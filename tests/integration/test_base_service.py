import json
from typing import Any, Dict

import httpx
import pytest

from mcp_oneinch.errors import MissingParametersError, UnknownPromptError, UnknownResourceError, UnknownToolError
from mcp_oneinch.models import prop, prompt, resource, tool
from mcp_oneinch.services.base import BaseService, pick

# Mark all tests in this module as asyncio
pytestmark = pytest.mark.asyncio


class EchoService(BaseService):
    """Minimal service used to exercise the shared plumbing."""

    TOOLS = (
        tool("echo", "Echo the params back", {"value": prop("string", "Anything")}, ("value",)),
        tool("fetch", "GET an endpoint", {"ids": prop("array", "Ids")}),
    )
    RESOURCES = (
        resource("test://echo/doc", "Doc", "Markdown doc", "text/markdown"),
        resource("test://echo/data", "Data", "JSON data"),
    )
    PROMPTS = (
        prompt("greet", "Greets someone", ("who", "Name", True), ("tone", "Tone", False)),
    )

    TOOL_HANDLERS = {"echo": "echo", "fetch": "fetch"}
    RESOURCE_HANDLERS = {"test://echo/doc": "doc", "test://echo/data": "data"}
    PROMPT_HANDLERS = {"greet": "greet"}

    async def echo(self, params: Dict[str, Any]) -> Any:
        return params

    async def fetch(self, params: Dict[str, Any]) -> Any:
        return await self.make_request("/things", {"ids": params.get("ids"), "skip": None})

    async def doc(self) -> str:
        return "# Doc"

    async def data(self) -> Dict[str, Any]:
        return {"a": 1}

    async def greet(self, params: Dict[str, Any]) -> str:
        return f"Hello {params['who']}"


# --- Dispatch ---

async def test_tool_call_returns_handler_result(service_config):
    service = EchoService(service_config)
    assert await service.handle_tool_call("echo", {"value": "v"}) == {"value": "v"}


async def test_missing_required_parameters(service_config):
    service = EchoService(service_config)
    with pytest.raises(MissingParametersError, match="Missing required parameters: value") as exc_info:
        await service.handle_tool_call("echo", {"value": ""})
    assert exc_info.value.missing == ["value"]
    assert isinstance(exc_info.value, ValueError)


async def test_validate_required_params_lists_all_missing():
    with pytest.raises(MissingParametersError, match="Missing required parameters: a, c"):
        BaseService.validate_required_params({"a": None, "b": 0}, ["a", "b", "c"])


async def test_unknown_names(service_config):
    service = EchoService(service_config)
    with pytest.raises(UnknownToolError):
        await service.handle_tool_call("nope", {})
    with pytest.raises(UnknownResourceError):
        await service.handle_resource_read("test://nope")
    with pytest.raises(UnknownPromptError):
        await service.handle_prompt_request("nope", {})


async def test_resource_read_shapes(service_config):
    service = EchoService(service_config)

    doc = await service.handle_resource_read("test://echo/doc")
    data = await service.handle_resource_read("test://echo/data")

    assert doc == {"contents": [{"uri": "test://echo/doc", "mimeType": "text/markdown", "text": "# Doc"}]}
    assert data["contents"][0]["mimeType"] == "application/json"
    assert json.loads(data["contents"][0]["text"]) == {"a": 1}


async def test_prompt_request_shape(service_config):
    service = EchoService(service_config)
    result = await service.handle_prompt_request("greet", {"who": "Ada"})
    assert result == {
        "description": "Greets someone",
        "messages": [{"role": "user", "content": {"type": "text", "text": "Hello Ada"}}],
    }
    with pytest.raises(MissingParametersError):
        await service.handle_prompt_request("greet", {})


async def test_manifest_entry_without_handler_fails_construction(service_config):
    class Broken(BaseService):
        TOOLS = (tool("orphan", "No handler", {}),)

    with pytest.raises(TypeError, match="orphan"):
        Broken(service_config)


async def test_manifests_are_class_constants(service_config):
    first, second = EchoService(service_config), EchoService(service_config)
    assert first.get_tools() == second.get_tools()
    assert first.get_tools()[0] is EchoService.TOOLS[0]
    assert first.get_tools()[0].to_dict()["inputSchema"]["required"] == ["value"]

# --- HTTP ---

async def test_request_headers_and_query(service_config, make_transport):
    transport = make_transport(responses={"/things": [1, 2]})
    service = EchoService(service_config, transport=transport)

    result = await service.handle_tool_call("fetch", {"ids": ["a", "b"]})

    assert result == [1, 2]
    request = transport.last
    assert request.method == "GET"
    assert request.headers["Authorization"] == "Bearer test-key"
    assert request.headers["Accept"] == "application/json"
    assert request.url.params.get_list("ids") == ["a", "b"]
    assert "skip" not in request.url.params


async def test_post_request_sends_json_body(service_config, make_transport):
    transport = make_transport(responses={"/things": {"ok": True}})
    service = EchoService(service_config, transport=transport)

    result = await service.make_post_request("/things", {"tokens": ["t"]}, {"interval": "1d", "x": None})

    assert result == {"ok": True}
    assert transport.last.method == "POST"
    assert transport.body() == {"tokens": ["t"]}
    assert dict(transport.last.url.params) == {"interval": "1d"}


async def test_http_errors_propagate(service_config, make_transport):
    service = EchoService(service_config, transport=make_transport())
    with pytest.raises(httpx.HTTPStatusError) as exc_info:
        await service.make_request("/missing")
    assert exc_info.value.response.status_code == 404


async def test_handler_backed_transport_answers_and_records(service_config, make_transport):
    transport = make_transport(handler=lambda r: httpx.Response(201, json={"path": r.url.path}))
    service = EchoService(service_config, transport=transport)

    first = await service.make_request("/a")
    second = await service.make_post_request("/b", {"k": "v"})

    assert first == {"path": "/a"}
    assert second == {"path": "/b"}
    assert [r.url.path for r in transport.requests] == ["/a", "/b"]


async def test_health_probe_hits_health_path(service_config, make_transport):
    transport = make_transport(responses={"/health": {"status": "ok"}})
    service = EchoService(service_config, transport=transport)
    assert await service.health_probe() == {"status": "ok"}
    assert transport.last.url.path == "/health"


async def test_pick_skips_unset_keys():
    assert pick({"a": 1, "b": None, "c": False}, "a", "b", "c", "d") == {"a": 1, "c": False}
