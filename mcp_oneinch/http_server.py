"""
MCP over HTTP: a JSON-RPC 2.0 endpoint at ``POST /mcp`` plus plain REST
routes for the same operations.
"""

import json
from typing import Any, Awaitable, Callable, Dict, Optional

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mcp.server.fastmcp.utilities.logging import configure_logging, get_logger

from mcp_oneinch.config import HOST, LOG_LEVEL, MCP_PORT, SERVER_NAME, SERVER_VERSION
from mcp_oneinch.errors import InvalidBodyError, RoutingError
from mcp_oneinch.orchestrator import ServiceOrchestrator

logger = get_logger(__name__)

PROTOCOL_VERSION = "2024-11-05"

INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INTERNAL_ERROR = -32603

RpcMethod = Callable[[ServiceOrchestrator, Dict[str, Any]], Awaitable[Any]]


# --- JSON-RPC methods ---

async def _initialize(orchestrator: ServiceOrchestrator, params: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "protocolVersion": params.get("protocolVersion") or PROTOCOL_VERSION,
        "serverInfo": {"name": SERVER_NAME, "version": SERVER_VERSION},
        "capabilities": {"tools": {}, "resources": {}, "prompts": {}},
    }


async def _list_tools(orchestrator: ServiceOrchestrator, params: Dict[str, Any]) -> Dict[str, Any]:
    return {"tools": [t.to_dict() for t in orchestrator.get_all_tools()]}


async def _call_tool(orchestrator: ServiceOrchestrator, params: Dict[str, Any]) -> Dict[str, Any]:
    result = await orchestrator.handle_tool_call(params.get("name"), params.get("arguments") or {})
    return {"content": [{"type": "text", "text": json.dumps(result, indent=2)}]}


async def _list_resources(orchestrator: ServiceOrchestrator, params: Dict[str, Any]) -> Dict[str, Any]:
    return {"resources": [r.to_dict() for r in orchestrator.get_all_resources()]}


async def _read_resource(orchestrator: ServiceOrchestrator, params: Dict[str, Any]) -> Any:
    return await orchestrator.handle_resource_read(params.get("uri"))


async def _list_prompts(orchestrator: ServiceOrchestrator, params: Dict[str, Any]) -> Dict[str, Any]:
    return {"prompts": [p.to_dict() for p in orchestrator.get_all_prompts()]}


async def _get_prompt(orchestrator: ServiceOrchestrator, params: Dict[str, Any]) -> Any:
    return await orchestrator.handle_prompt_request(params.get("name"), params.get("arguments") or {})


RPC_METHODS: Dict[str, RpcMethod] = {
    "initialize": _initialize,
    "tools/list": _list_tools,
    "tools/call": _call_tool,
    "resources/list": _list_resources,
    "resources/read": _read_resource,
    "prompts/list": _list_prompts,
    "prompts/get": _get_prompt,
}


def _rpc_error(request_id: Any, code: int, message: str) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": request_id, "error": {"code": code, "message": message}}


async def process_jsonrpc(orchestrator: ServiceOrchestrator, body: Any) -> Optional[Dict[str, Any]]:
    """
    Handles one JSON-RPC message. Returns the response object, or None for
    notifications (messages without an id), which get no response.
    """
    if not isinstance(body, dict) or body.get("jsonrpc") != "2.0":
        return _rpc_error(body.get("id") if isinstance(body, dict) else None, INVALID_REQUEST, "Invalid Request")

    method = body.get("method")
    request_id = body.get("id")
    if isinstance(method, str) and method.startswith("notifications/"):
        logger.debug(f"Notification {method}")
        return None

    handler = RPC_METHODS.get(method)
    if handler is None:
        return _rpc_error(request_id, METHOD_NOT_FOUND, f"Method not found: {method}")

    try:
        result = await handler(orchestrator, body.get("params") or {})
    except Exception as e:
        logger.exception(f"JSON-RPC method {method} failed")
        return _rpc_error(request_id, INTERNAL_ERROR, str(e))
    return {"jsonrpc": "2.0", "id": request_id, "result": result}


# --- REST helpers ---

def _error_response(exc: Exception) -> JSONResponse:
    if isinstance(exc, InvalidBodyError):
        status = 400
    elif isinstance(exc, RoutingError):
        status = 404
    else:
        status = 500
    return JSONResponse(status_code=status, content={"error": str(exc)})


def create_app(orchestrator: Optional[ServiceOrchestrator] = None) -> FastAPI:
    orchestrator = orchestrator or ServiceOrchestrator()

    app = FastAPI(title=SERVER_NAME, version=SERVER_VERSION)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.orchestrator = orchestrator

    @app.post("/mcp")
    async def mcp_endpoint(request: Request):
        try:
            body = await request.json()
        except json.JSONDecodeError:
            return JSONResponse(status_code=400, content=_rpc_error(None, INVALID_REQUEST, "Invalid Request"))
        response = await process_jsonrpc(orchestrator, body)
        if response is None:
            return Response(status_code=202)
        return JSONResponse(content=response)

    @app.get("/health")
    async def health():
        return await orchestrator.health_check()

    @app.get("/tools")
    async def tools():
        return {"tools": [t.to_dict() for t in orchestrator.get_all_tools()]}

    @app.post("/tools/{name}")
    async def call_tool(name: str, request: Request):
        try:
            args = await _json_body(request)
            return await orchestrator.handle_tool_call(name, args)
        except Exception as e:
            logger.exception(f"Tool call '{name}' failed")
            return _error_response(e)

    @app.get("/resources")
    async def resources():
        return {"resources": [r.to_dict() for r in orchestrator.get_all_resources()]}

    @app.get("/resources/read")
    async def read_resource(uri: Optional[str] = None):
        if not uri:
            return JSONResponse(status_code=400, content={"error": "Missing required parameter: uri"})
        try:
            return await orchestrator.handle_resource_read(uri)
        except Exception as e:
            logger.exception(f"Resource read '{uri}' failed")
            return _error_response(e)

    @app.get("/prompts")
    async def prompts():
        return {"prompts": [p.to_dict() for p in orchestrator.get_all_prompts()]}

    @app.post("/prompts/{name}")
    async def get_prompt(name: str, request: Request):
        try:
            args = await _json_body(request)
            return await orchestrator.handle_prompt_request(name, args)
        except Exception as e:
            logger.exception(f"Prompt request '{name}' failed")
            return _error_response(e)

    return app


async def _json_body(request: Request) -> Dict[str, Any]:
    # An empty body means no arguments
    raw = await request.body()
    if not raw:
        return {}
    try:
        body = json.loads(raw)
    except json.JSONDecodeError as e:
        raise InvalidBodyError(f"Malformed JSON body: {e.msg}") from e
    if not isinstance(body, dict):
        raise InvalidBodyError("Request body must be a JSON object")
    return body


def main() -> None:
    configure_logging(LOG_LEVEL)
    logger.info(f"Starting {SERVER_NAME} HTTP transport on {HOST}:{MCP_PORT}")
    uvicorn.run(create_app(), host=HOST, port=MCP_PORT, log_level=LOG_LEVEL.lower())


if __name__ == "__main__":
    main()
