"""MCP server over stdio, backed by the service orchestrator."""

import asyncio
import json
from typing import Any, Dict, List, Optional

import mcp.types as types
from mcp.server.fastmcp.utilities.logging import configure_logging, get_logger
from mcp.server.lowlevel import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.stdio import stdio_server

from mcp_oneinch.config import LOG_LEVEL, SERVER_NAME, SERVER_VERSION
from mcp_oneinch.orchestrator import ServiceOrchestrator

logger = get_logger(__name__)


# --- Handlers ---

def list_tools(orchestrator: ServiceOrchestrator) -> List[types.Tool]:
    return [types.Tool(**t.to_dict()) for t in orchestrator.get_all_tools()]


async def call_tool(
    orchestrator: ServiceOrchestrator, name: str, arguments: Optional[Dict[str, Any]]
) -> List[types.TextContent]:
    """Runs a tool; failures come back as an ``Error:`` text block instead of a protocol error."""
    try:
        result = await orchestrator.handle_tool_call(name, arguments or {})
        text = json.dumps(result, indent=2)
    except Exception as e:
        logger.exception(f"Tool call '{name}' failed")
        text = f"Error: {e}"
    return [types.TextContent(type="text", text=text)]


def list_resources(orchestrator: ServiceOrchestrator) -> List[types.Resource]:
    return [types.Resource(**r.to_dict()) for r in orchestrator.get_all_resources()]


async def read_resource(orchestrator: ServiceOrchestrator, uri: str) -> List[ReadResourceContents]:
    result = await orchestrator.handle_resource_read(uri)
    return [
        ReadResourceContents(content=item["text"], mime_type=item.get("mimeType"))
        for item in result["contents"]
    ]


def list_prompts(orchestrator: ServiceOrchestrator) -> List[types.Prompt]:
    return [types.Prompt(**p.to_dict()) for p in orchestrator.get_all_prompts()]


async def get_prompt(
    orchestrator: ServiceOrchestrator, name: str, arguments: Optional[Dict[str, str]]
) -> types.GetPromptResult:
    result = await orchestrator.handle_prompt_request(name, arguments or {})
    return types.GetPromptResult.model_validate(result)


# --- Server ---

def create_server(orchestrator: ServiceOrchestrator) -> Server:
    server = Server(SERVER_NAME, version=SERVER_VERSION)

    @server.list_tools()
    async def _list_tools() -> List[types.Tool]:
        return list_tools(orchestrator)

    @server.call_tool()
    async def _call_tool(name: str, arguments: Dict[str, Any]) -> List[types.TextContent]:
        return await call_tool(orchestrator, name, arguments)

    @server.list_resources()
    async def _list_resources() -> List[types.Resource]:
        return list_resources(orchestrator)

    @server.read_resource()
    async def _read_resource(uri) -> List[ReadResourceContents]:
        # Arrives as a pydantic AnyUrl
        return await read_resource(orchestrator, str(uri))

    @server.list_prompts()
    async def _list_prompts() -> List[types.Prompt]:
        return list_prompts(orchestrator)

    @server.get_prompt()
    async def _get_prompt(name: str, arguments: Optional[Dict[str, str]]) -> types.GetPromptResult:
        return await get_prompt(orchestrator, name, arguments)

    return server


async def serve(orchestrator: Optional[ServiceOrchestrator] = None) -> None:
    server = create_server(orchestrator or ServiceOrchestrator())
    async with stdio_server() as (read_stream, write_stream):
        logger.info(f"{SERVER_NAME} v{SERVER_VERSION} running on stdio")
        await server.run(read_stream, write_stream, server.create_initialization_options())


def main() -> None:
    configure_logging(LOG_LEVEL)
    asyncio.run(serve())


if __name__ == "__main__":
    main()
