import json

import pytest
from fastapi.testclient import TestClient

from mcp_oneinch.http_server import (
    INTERNAL_ERROR,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PROTOCOL_VERSION,
    create_app,
    process_jsonrpc,
)
from mcp_oneinch.orchestrator import ServiceOrchestrator


@pytest.fixture
def client(orchestrator):
    return TestClient(create_app(orchestrator))

# --- JSON-RPC ---

@pytest.mark.asyncio
async def test_invalid_request(orchestrator):
    response = await process_jsonrpc(orchestrator, {"jsonrpc": "1.0", "id": 7, "method": "tools/list"})
    assert response == {"jsonrpc": "2.0", "id": 7, "error": {"code": INVALID_REQUEST, "message": "Invalid Request"}}

    response = await process_jsonrpc(orchestrator, [1, 2])
    assert response["id"] is None
    assert response["error"]["code"] == INVALID_REQUEST


@pytest.mark.asyncio
async def test_method_not_found(orchestrator):
    response = await process_jsonrpc(orchestrator, {"jsonrpc": "2.0", "id": 1, "method": "tools/explode"})
    assert response["error"] == {"code": METHOD_NOT_FOUND, "message": "Method not found: tools/explode"}


@pytest.mark.asyncio
async def test_handler_failure_is_internal_error(orchestrator):
    response = await process_jsonrpc(
        orchestrator, {"jsonrpc": "2.0", "id": 2, "method": "tools/call", "params": {"name": "nope"}}
    )
    assert response["error"] == {"code": INTERNAL_ERROR, "message": "Unknown tool: nope"}


@pytest.mark.asyncio
async def test_initialize_echoes_protocol_version(orchestrator):
    default = await process_jsonrpc(orchestrator, {"jsonrpc": "2.0", "id": 1, "method": "initialize"})
    custom = await process_jsonrpc(
        orchestrator, {"jsonrpc": "2.0", "id": 1, "method": "initialize", "params": {"protocolVersion": "2025-03-26"}}
    )
    assert default["result"]["protocolVersion"] == PROTOCOL_VERSION
    assert default["result"]["serverInfo"]["name"] == "1inch-mcp-server"
    assert custom["result"]["protocolVersion"] == "2025-03-26"


def test_mcp_tools_list_and_call(client, two_services):
    a, _ = two_services

    listed = client.post("/mcp", json={"jsonrpc": "2.0", "id": 1, "method": "tools/list"}).json()
    called = client.post("/mcp", json={
        "jsonrpc": "2.0", "id": 2, "method": "tools/call", "params": {"name": "x", "arguments": {"chain": 1}},
    }).json()

    assert [t["name"] for t in listed["result"]["tools"]] == ["x", "shared", "y", "shared"]
    assert listed["result"]["tools"][0]["inputSchema"]["type"] == "object"
    assert json.loads(called["result"]["content"][0]["text"]) == {"ok": True}
    a.handle_tool_call.assert_awaited_once_with("x", {"chain": 1})


def test_mcp_notification_gets_202(client):
    response = client.post("/mcp", json={"jsonrpc": "2.0", "method": "notifications/initialized"})
    assert response.status_code == 202
    assert response.content == b""


def test_mcp_malformed_json(client):
    response = client.post("/mcp", content=b"{not json", headers={"Content-Type": "application/json"})
    assert response.status_code == 400
    assert response.json()["error"]["code"] == INVALID_REQUEST

# --- REST ---

def test_rest_tool_call(client, two_services):
    _, b = two_services

    response = client.post("/tools/y", json={"walletAddress": "0xabc"})
    empty = client.post("/tools/y")

    assert response.status_code == 200
    assert response.json() == {"ok": True}
    assert b.handle_tool_call.await_args_list[0].args == ("y", {"walletAddress": "0xabc"})
    assert empty.status_code == 200
    assert b.handle_tool_call.await_args_list[1].args == ("y", {})


@pytest.mark.parametrize("path", ["/tools/y", "/prompts/pb"])
@pytest.mark.parametrize("raw", [b"{not json", b"[1, 2]", b'"text"'])
def test_rest_body_must_be_json_object(client, two_services, path, raw):
    _, b = two_services

    response = client.post(path, content=raw, headers={"Content-Type": "application/json"})

    assert response.status_code == 400
    assert "error" in response.json()
    b.handle_tool_call.assert_not_awaited()
    b.handle_prompt_request.assert_not_awaited()


def test_rest_unknown_tool_is_404(client):
    response = client.post("/tools/nope", json={})
    assert response.status_code == 404
    assert response.json() == {"error": "Unknown tool: nope"}


def test_rest_backend_failure_is_500(client, two_services):
    a, _ = two_services
    a.handle_tool_call.side_effect = RuntimeError("upstream timeout")

    response = client.post("/tools/x", json={})

    assert response.status_code == 500
    assert response.json() == {"error": "upstream timeout"}


def test_rest_resource_read(client, two_services):
    _, b = two_services

    missing = client.get("/resources/read")
    found = client.get("/resources/read", params={"uri": "test://b/doc"})
    unknown = client.get("/resources/read", params={"uri": "test://nope"})

    assert missing.status_code == 400
    assert missing.json() == {"error": "Missing required parameter: uri"}
    assert found.json() == {"contents": []}
    b.handle_resource_read.assert_awaited_once_with("test://b/doc")
    assert unknown.status_code == 404


def test_rest_listings_and_prompt(client, two_services):
    a, _ = two_services

    assert [r["uri"] for r in client.get("/resources").json()["resources"]] == ["test://a/doc", "test://b/doc"]
    assert [p["name"] for p in client.get("/prompts").json()["prompts"]] == ["pa", "pb"]
    assert client.post("/prompts/pa", json={"k": "v"}).status_code == 200
    a.handle_prompt_request.assert_awaited_once_with("pa", {"k": "v"})


def test_health_reports_degraded(make_fake_service):
    orchestrator = ServiceOrchestrator({
        "ok": make_fake_service(tools=["a"]),
        "down": make_fake_service(tools=["b"], health_error=ConnectionError("refused")),
    })
    client = TestClient(create_app(orchestrator))

    report = client.get("/health").json()

    assert report["status"] == "degraded"
    assert report["services"]["down"] == {"status": "unhealthy", "error": "refused"}
