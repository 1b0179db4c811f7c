import json
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

# Ensure the package can be imported without installing it
ROOT_DIR = Path(__file__).parent.parent.parent
sys.path.insert(0, str(ROOT_DIR))

from mcp_oneinch.config import OpenRouterConfig, ServiceConfig
from mcp_oneinch.models import prompt, resource, tool
from mcp_oneinch.orchestrator import ServiceOrchestrator

BASE_URL = "https://api.test.1inch.dev"
OPENROUTER_URL = "https://openrouter.test/api/v1"

# --- Config Fixtures ---

@pytest.fixture(scope="function")
def service_config() -> ServiceConfig:
    """Settings pointing at a fake 1inch host."""
    return ServiceConfig(base_url=BASE_URL, api_key="test-key", timeout=5)


@pytest.fixture(scope="function")
def openrouter_config() -> OpenRouterConfig:
    return OpenRouterConfig(
        base_url=OPENROUTER_URL,
        api_key="or-key",
        timeout=5,
        small_model="small/model",
        large_model="large/model",
        max_tokens=256,
        temperature=0.2,
    )

# --- HTTP Mock Fixture ---

class RecordingTransport(httpx.MockTransport):
    """
    MockTransport that remembers every request. Responses come from a
    handler, or from a path -> JSON body table (anything unmatched is 404).
    """

    def __init__(self, responses: Optional[Dict[str, Any]] = None, handler: Optional[Callable] = None):
        self.requests: List[httpx.Request] = []
        self.responses = responses or {}
        self.respond_with = handler
        super().__init__(self._respond)

    def _respond(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.respond_with is not None:
            return self.respond_with(request)
        if request.url.path in self.responses:
            return httpx.Response(200, json=self.responses[request.url.path])
        return httpx.Response(404, json={"error": "not found"})

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def body(self, index: int = -1) -> Any:
        return json.loads(self.requests[index].content)


@pytest.fixture(scope="function")
def make_transport() -> Callable[..., RecordingTransport]:
    """Factory for recording transports, injected into services under test."""
    return RecordingTransport

# --- Fake Service Fixture ---

def fake_service(
    tools: Sequence[str] = (),
    resources: Sequence[str] = (),
    prompts: Sequence[str] = (),
    health_error: Optional[Exception] = None,
) -> MagicMock:
    """A stand-in service exposing the given names, with AsyncMock handlers."""
    service = MagicMock()
    service.get_tools.return_value = [tool(name, f"{name} tool", {}) for name in tools]
    service.get_resources.return_value = [resource(uri, uri, f"{uri} resource") for uri in resources]
    service.get_prompts.return_value = [prompt(name, f"{name} prompt") for name in prompts]
    service.handle_tool_call = AsyncMock(return_value={"ok": True})
    service.handle_resource_read = AsyncMock(return_value={"contents": []})
    service.handle_prompt_request = AsyncMock(return_value={"description": "", "messages": []})
    service.health_probe = AsyncMock(side_effect=health_error)
    return service


@pytest.fixture(scope="function")
def two_services() -> Tuple[MagicMock, MagicMock]:
    a = fake_service(tools=["x", "shared"], resources=["test://a/doc"], prompts=["pa"])
    b = fake_service(tools=["y", "shared"], resources=["test://b/doc"], prompts=["pb"])
    return a, b


@pytest.fixture(scope="function")
def orchestrator(two_services) -> ServiceOrchestrator:
    """Orchestrator over two fake services registered as A then B."""
    a, b = two_services
    return ServiceOrchestrator({"A": a, "B": b})


@pytest.fixture(scope="function")
def real_orchestrator(service_config: ServiceConfig, monkeypatch: pytest.MonkeyPatch) -> ServiceOrchestrator:
    """The full default service set, without touching the network."""
    monkeypatch.setenv("OPENROUTER_API_KEY", "")
    return ServiceOrchestrator(config=service_config)


@pytest.fixture(scope="function")
def make_fake_service() -> Callable[..., MagicMock]:
    return fake_service
