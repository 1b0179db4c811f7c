import json
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

import httpx

from mcp.server.fastmcp.utilities.logging import get_logger

from mcp_oneinch.config import ServiceConfig
from mcp_oneinch.errors import (
    MissingParametersError,
    UnknownPromptError,
    UnknownResourceError,
    UnknownToolError,
)
from mcp_oneinch.models import PromptDefinition, ResourceDefinition, ToolDefinition

logger = get_logger(__name__)

Handler = Callable[..., Awaitable[Any]]


def pick(params: Mapping[str, Any], *keys: str) -> Dict[str, Any]:
    """Copies the given keys out of params, skipping those not set."""
    return {key: params[key] for key in keys if params.get(key) is not None}


def as_list(value: Any) -> Optional[List[Any]]:
    """Prompt arguments arrive as comma separated strings; tools pass real lists."""
    if value is None or isinstance(value, list):
        return value
    return [item.strip() for item in str(value).split(",") if item.strip()]


class BaseService:
    """
    Common plumbing for a service wrapping one 1inch API family.

    Subclasses declare their manifests as class-level tuples and map every
    manifest entry to a coroutine method name. The name -> bound method
    tables are built once here, so dispatch is a dict lookup.
    """

    TOOLS: Tuple[ToolDefinition, ...] = ()
    RESOURCES: Tuple[ResourceDefinition, ...] = ()
    PROMPTS: Tuple[PromptDefinition, ...] = ()

    TOOL_HANDLERS: Mapping[str, str] = {}
    RESOURCE_HANDLERS: Mapping[str, str] = {}
    PROMPT_HANDLERS: Mapping[str, str] = {}

    HEALTH_PATH = "/health"

    def __init__(self, config: ServiceConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self._transport = transport  # Injected by tests (httpx.MockTransport)

        self._tools = {t.name: t for t in self.TOOLS}
        self._resources = {r.uri: r for r in self.RESOURCES}
        self._prompts = {p.name: p for p in self.PROMPTS}

        self._tool_handlers = self._bind("tool", self._tools, self.TOOL_HANDLERS)
        self._resource_handlers = self._bind("resource", self._resources, self.RESOURCE_HANDLERS)
        self._prompt_handlers = self._bind("prompt", self._prompts, self.PROMPT_HANDLERS)

    def _bind(self, kind: str, manifest: Iterable[str], handlers: Mapping[str, str]) -> Dict[str, Handler]:
        bound: Dict[str, Handler] = {}
        for key in manifest:
            method_name = handlers.get(key)
            if method_name is None:
                raise TypeError(f"{type(self).__name__} declares {kind} '{key}' without a handler")
            bound[key] = getattr(self, method_name)
        return bound

    # --- Manifests ---

    def get_tools(self) -> List[ToolDefinition]:
        return list(self.TOOLS)

    def get_resources(self) -> List[ResourceDefinition]:
        return list(self.RESOURCES)

    def get_prompts(self) -> List[PromptDefinition]:
        return list(self.PROMPTS)

    # --- Dispatch ---

    async def handle_tool_call(self, name: str, args: Optional[Dict[str, Any]] = None) -> Any:
        handler = self._tool_handlers.get(name)
        if handler is None:
            raise UnknownToolError(name)
        params = args or {}
        self.validate_required_params(params, self._tools[name].required_params)
        return await handler(params)

    async def handle_resource_read(self, uri: str) -> Dict[str, Any]:
        handler = self._resource_handlers.get(uri)
        if handler is None:
            raise UnknownResourceError(uri)
        content = await handler()
        text = content if isinstance(content, str) else json.dumps(content, indent=2)
        return {
            "contents": [
                {"uri": uri, "mimeType": self._resources[uri].mime_type, "text": text}
            ]
        }

    async def handle_prompt_request(self, name: str, args: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        handler = self._prompt_handlers.get(name)
        if handler is None:
            raise UnknownPromptError(name)
        params = args or {}
        self.validate_required_params(params, self._prompts[name].required_args)
        text = await handler(params)
        return {
            "description": self._prompts[name].description,
            "messages": [
                {"role": "user", "content": {"type": "text", "text": text}}
            ],
        }

    # --- HTTP ---

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.config.base_url,
            headers=self.headers,
            timeout=self.config.timeout,
            transport=self._transport,
        )

    @staticmethod
    def _query(params: Optional[Mapping[str, Any]]) -> Optional[Dict[str, Any]]:
        if not params:
            return None
        # httpx would send None as an empty value
        return {k: v for k, v in params.items() if v is not None}

    async def make_request(self, endpoint: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        """GET an endpoint relative to the base URL and return the decoded JSON body."""
        async with self._client() as client:
            logger.debug(f"GET {endpoint} params={params}")
            response = await client.get(endpoint, params=self._query(params))
            response.raise_for_status()
            return response.json()

    async def make_post_request(
        self,
        endpoint: str,
        data: Any = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """POST a JSON body to an endpoint and return the decoded JSON body."""
        async with self._client() as client:
            logger.debug(f"POST {endpoint} params={params}")
            response = await client.post(endpoint, json=data, params=self._query(params))
            response.raise_for_status()
            return response.json()

    async def health_probe(self) -> Any:
        return await self.make_request(self.HEALTH_PATH)

    # --- Validation ---

    @staticmethod
    def validate_required_params(params: Mapping[str, Any], required: Iterable[str]) -> None:
        missing = [name for name in required if params.get(name) is None or params.get(name) == ""]
        if missing:
            raise MissingParametersError(missing)
