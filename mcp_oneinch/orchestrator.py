from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from mcp.server.fastmcp.utilities.logging import get_logger

from mcp_oneinch.config import ServiceConfig, get_service_config
from mcp_oneinch.errors import UnknownPromptError, UnknownResourceError, UnknownToolError
from mcp_oneinch.models import PromptDefinition, ResourceDefinition, ToolDefinition
from mcp_oneinch.services import (
    BalanceService,
    BaseService,
    ChartsService,
    DomainService,
    GasService,
    HistoryService,
    NftService,
    OpenRouterService,
    OrderbookService,
    PortfolioService,
    SpotPriceService,
    SwapService,
    TokenDetailsService,
    TokenService,
    TracesService,
    TransactionGatewayService,
    Web3RpcService,
)

logger = get_logger(__name__)


class ServiceOrchestrator:
    """
    Registry of the domain services and the single routing point for
    tool calls, resource reads and prompt requests.

    The service mapping is fixed at construction. Name lookups go through
    indexes built once from the services' manifests; when two services
    declare the same name the first registered one keeps it.
    """

    def __init__(self, services: Optional[Mapping[str, BaseService]] = None, config: Optional[ServiceConfig] = None):
        if services is None:
            services = self._default_services(config or get_service_config())
        self._services: Dict[str, BaseService] = dict(services)

        self._tool_index = self._index("tool", lambda s: [t.name for t in s.get_tools()])
        self._resource_index = self._index("resource", lambda s: [r.uri for r in s.get_resources()])
        self._prompt_index = self._index("prompt", lambda s: [p.name for p in s.get_prompts()])

        logger.info(f"Initialized {len(self._services)} services")

    def _default_services(self, config: ServiceConfig) -> Dict[str, BaseService]:
        return {
            "swap": SwapService(config),
            "token": TokenService(config),
            "token-details": TokenDetailsService(config),
            "balance": BalanceService(config),
            "orderbook": OrderbookService(config),
            "portfolio": PortfolioService(config),
            "domain": DomainService(config),
            "charts": ChartsService(config),
            "web3-rpc": Web3RpcService(config),
            "gas": GasService(config),
            "traces": TracesService(config),
            "history": HistoryService(config),
            "spot-price": SpotPriceService(config),
            "nft": NftService(config),
            "transaction-gateway": TransactionGatewayService(config),
            "openrouter": OpenRouterService(config, orchestrator=self),
        }

    def _index(self, kind: str, names_of) -> Dict[str, str]:
        index: Dict[str, str] = {}
        for key, service in self._services.items():
            for name in names_of(service):
                owner = index.setdefault(name, key)
                if owner != key:
                    logger.warning(f"Duplicate {kind} '{name}' in {key} service; keeping the one from {owner}")
        return index

    # --- Manifests ---

    def get_all_tools(self) -> List[ToolDefinition]:
        return [t for service in self._services.values() for t in service.get_tools()]

    def get_all_resources(self) -> List[ResourceDefinition]:
        return [r for service in self._services.values() for r in service.get_resources()]

    def get_all_prompts(self) -> List[PromptDefinition]:
        return [p for service in self._services.values() for p in service.get_prompts()]

    # --- Routing ---

    async def handle_tool_call(self, name: str, args: Optional[Dict[str, Any]] = None) -> Any:
        key = self._tool_index.get(name)
        if key is None:
            raise UnknownToolError(name)
        logger.debug(f"Routing tool call '{name}' to {key} service")
        return await self._services[key].handle_tool_call(name, args)

    async def handle_resource_read(self, uri: str) -> Any:
        key = self._resource_index.get(uri)
        if key is None:
            raise UnknownResourceError(uri)
        logger.debug(f"Routing resource read '{uri}' to {key} service")
        return await self._services[key].handle_resource_read(uri)

    async def handle_prompt_request(self, name: str, args: Optional[Dict[str, Any]] = None) -> Any:
        key = self._prompt_index.get(name)
        if key is None:
            raise UnknownPromptError(name)
        logger.debug(f"Routing prompt request '{name}' to {key} service")
        return await self._services[key].handle_prompt_request(name, args)

    # --- Lookup ---

    def get_service(self, key: str) -> Optional[BaseService]:
        return self._services.get(key)

    def get_service_names(self) -> List[str]:
        return list(self._services)

    def get_tool_info(self, name: str) -> Optional[ToolDefinition]:
        key = self._tool_index.get(name)
        if key is None:
            return None
        return next(t for t in self._services[key].get_tools() if t.name == name)

    async def health_check(self) -> Dict[str, Any]:
        """Checks every service in turn; one failing check only marks that service."""
        services: Dict[str, Dict[str, str]] = {}
        for key, service in self._services.items():
            try:
                await service.health_probe()
                services[key] = {"status": "healthy"}
            except Exception as e:
                logger.warning(f"Health check for {key} service failed: {e}")
                services[key] = {"status": "unhealthy", "error": str(e)}

        healthy = all(s["status"] == "healthy" for s in services.values())
        return {
            "status": "healthy" if healthy else "degraded",
            "services": services,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
