"""Domain services, one per 1inch API family plus the LLM chat service."""

from mcp_oneinch.services.balance import BalanceService
from mcp_oneinch.services.base import BaseService
from mcp_oneinch.services.charts import ChartsService
from mcp_oneinch.services.domain import DomainService
from mcp_oneinch.services.gas import GasService
from mcp_oneinch.services.history import HistoryService
from mcp_oneinch.services.nft import NftService
from mcp_oneinch.services.openrouter import OpenRouterService
from mcp_oneinch.services.orderbook import OrderbookService
from mcp_oneinch.services.portfolio import PortfolioService
from mcp_oneinch.services.spot_price import SpotPriceService
from mcp_oneinch.services.swap import SwapService
from mcp_oneinch.services.token import TokenService
from mcp_oneinch.services.token_details import TokenDetailsService
from mcp_oneinch.services.traces import TracesService
from mcp_oneinch.services.transaction_gateway import TransactionGatewayService
from mcp_oneinch.services.web3_rpc import Web3RpcService

__all__ = [
    "BaseService",
    "SwapService",
    "TokenService",
    "TokenDetailsService",
    "BalanceService",
    "OrderbookService",
    "PortfolioService",
    "DomainService",
    "ChartsService",
    "Web3RpcService",
    "GasService",
    "TracesService",
    "HistoryService",
    "SpotPriceService",
    "NftService",
    "TransactionGatewayService",
    "OpenRouterService",
]
