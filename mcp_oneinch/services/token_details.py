import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from mcp_oneinch.models import chain_prop, prop, prompt, resource, tool
from mcp_oneinch.services.base import BaseService, pick

BASE_PATH = "/token-details/v1.0"

SUPPORTED_INTERVALS = ("1h", "1d", "1w", "1m", "3m", "6m", "1y")

# Seconds of history fetched per analysis window; anything else means one month
ANALYSIS_WINDOWS = {"1d": 86400, "1w": 604800}
DEFAULT_ANALYSIS_WINDOW = 2592000

_PROVIDER = prop("string", "Name of chart provider", default="1inch")
_ADDRESS = prop("string", "Token contract address")
_FROM = prop("number", "Start timestamp (UNIX)")
_TO = prop("number", "End timestamp (UNIX)")
_INTERVAL = prop("string", "Interval (e.g., 1d, 1h, 1w)")

TOKEN_DETAILS_DOCUMENTATION = """# 1inch Token Details API Documentation

## Overview
Token metadata, market data, historical prices and price changes.

## Endpoints
- GET /token-details/v1.0/details/{chain}: native token details
- GET /token-details/v1.0/details/{chain}/{address}: token details
- GET /token-details/v1.0/historical-prices/range/{chain}[/{address}]: prices between from and to
- GET /token-details/v1.0/historical-prices/interval/{chain}[/{address}]: USD prices aggregated by interval
- GET /token-details/v1.0/price-change/{chain}[/{address}]: price change over an interval
- POST /token-details/v1.0/price-change/{chain}/tokens: price change for a list of addresses

## Common Parameters
- chain: chain ID
- address: token contract address
- provider: chart provider name (optional)
- from/to: UNIX timestamps
- interval: 1h, 1d, 1w, 1m, 3m, 6m or 1y

## Response Format
Token info (address, symbol, name, decimals), metadata (website, description, social
links), market data (market cap, supply), price arrays and price change metrics.
"""


class TokenDetailsService(BaseService):
    """Token details, historical prices and price change metrics."""

    TOOLS = (
        tool("get_native_token_details", "Get details for the native token of a given chain", {
            "chain": chain_prop("Chain ID of the network (e.g., 1 for Ethereum)"),
            "provider": _PROVIDER,
        }, ("chain",)),
        tool("get_token_details", "Get details for a specific token by address on a given chain", {
            "chain": chain_prop(), "address": _ADDRESS, "provider": _PROVIDER,
        }, ("chain", "address")),
        tool("get_native_historical_prices_range",
             "Get historical price data for the native token over a custom time range", {
                 "chain": chain_prop(), "from": _FROM, "to": _TO, "provider": _PROVIDER,
             }, ("chain", "from", "to")),
        tool("get_token_historical_prices_range",
             "Get historical price data for a specific token over a custom time range", {
                 "chain": chain_prop(), "address": _ADDRESS, "from": _FROM, "to": _TO, "provider": _PROVIDER,
             }, ("chain", "address", "from", "to")),
        tool("get_native_historical_prices_interval",
             "Get historical USD price data for the native token aggregated by interval", {
                 "chain": chain_prop(), "interval": _INTERVAL, "from": _FROM, "to": _TO, "provider": _PROVIDER,
             }, ("chain", "interval", "from", "to")),
        tool("get_token_historical_prices_interval",
             "Get historical USD price data for a token aggregated by interval", {
                 "chain": chain_prop(), "address": _ADDRESS, "interval": _INTERVAL,
                 "from": _FROM, "to": _TO, "provider": _PROVIDER,
             }, ("chain", "address", "interval", "from", "to")),
        tool("get_native_price_change",
             "Get price change metric for the native token over a specific interval", {
                 "chain": chain_prop(), "interval": _INTERVAL, "provider": _PROVIDER,
             }, ("chain", "interval")),
        tool("get_token_price_change", "Get price change metric for a particular token", {
            "chain": chain_prop(), "address": _ADDRESS, "interval": _INTERVAL, "provider": _PROVIDER,
        }, ("chain", "address", "interval")),
        tool("get_multiple_tokens_price_change",
             "Get price change for a list of token addresses over specific intervals", {
                 "chain": chain_prop(),
                 "addresses": prop("array", "List of token addresses", items={"type": "string"}),
                 "interval": _INTERVAL,
                 "provider": _PROVIDER,
             }, ("chain", "addresses", "interval")),
    )

    RESOURCES = (
        resource("oneinch://token-details/documentation", "Token Details API Documentation",
                 "Complete documentation for 1inch Token Details API", "text/markdown"),
        resource("oneinch://token-details/supported-intervals", "Supported Intervals",
                 "List of supported time intervals for historical data"),
    )

    PROMPTS = (
        prompt("analyze_token_performance", "Analyze token performance over time with historical data",
               ("chain", "Chain ID", True),
               ("address", "Token address", True),
               ("timeRange", "Time range for analysis", True)),
    )

    TOOL_HANDLERS = {
        "get_native_token_details": "get_native_token_details",
        "get_token_details": "get_token_details",
        "get_native_historical_prices_range": "get_native_historical_prices_range",
        "get_token_historical_prices_range": "get_token_historical_prices_range",
        "get_native_historical_prices_interval": "get_native_historical_prices_interval",
        "get_token_historical_prices_interval": "get_token_historical_prices_interval",
        "get_native_price_change": "get_native_price_change",
        "get_token_price_change": "get_token_price_change",
        "get_multiple_tokens_price_change": "get_multiple_tokens_price_change",
    }
    RESOURCE_HANDLERS = {
        "oneinch://token-details/documentation": "documentation",
        "oneinch://token-details/supported-intervals": "supported_intervals",
    }
    PROMPT_HANDLERS = {"analyze_token_performance": "analyze_token_performance"}

    @staticmethod
    def _path(section: str, chain: Any, address: Optional[str] = None) -> str:
        path = f"{BASE_PATH}/{section}/{chain}"
        return f"{path}/{address}" if address else path

    async def get_native_token_details(self, params: Dict[str, Any]) -> Any:
        return await self.make_request(self._path("details", params["chain"]), pick(params, "provider"))

    async def get_token_details(self, params: Dict[str, Any]) -> Any:
        return await self.make_request(
            self._path("details", params["chain"], params["address"]), pick(params, "provider")
        )

    async def get_native_historical_prices_range(self, params: Dict[str, Any]) -> Any:
        return await self.make_request(
            self._path("historical-prices/range", params["chain"]), pick(params, "from", "to", "provider")
        )

    async def get_token_historical_prices_range(self, params: Dict[str, Any]) -> Any:
        return await self.make_request(
            self._path("historical-prices/range", params["chain"], params["address"]),
            pick(params, "from", "to", "provider"),
        )

    async def get_native_historical_prices_interval(self, params: Dict[str, Any]) -> Any:
        return await self.make_request(
            self._path("historical-prices/interval", params["chain"]),
            pick(params, "interval", "from", "to", "provider"),
        )

    async def get_token_historical_prices_interval(self, params: Dict[str, Any]) -> Any:
        return await self.make_request(
            self._path("historical-prices/interval", params["chain"], params["address"]),
            pick(params, "interval", "from", "to", "provider"),
        )

    async def get_native_price_change(self, params: Dict[str, Any]) -> Any:
        return await self.make_request(
            self._path("price-change", params["chain"]), pick(params, "interval", "provider")
        )

    async def get_token_price_change(self, params: Dict[str, Any]) -> Any:
        return await self.make_request(
            self._path("price-change", params["chain"], params["address"]), pick(params, "interval", "provider")
        )

    async def get_multiple_tokens_price_change(self, params: Dict[str, Any]) -> Any:
        return await self.make_post_request(
            self._path("price-change", params["chain"], "tokens"),
            {"addresses": params["addresses"]},
            pick(params, "interval", "provider"),
        )

    async def documentation(self) -> str:
        return TOKEN_DETAILS_DOCUMENTATION

    async def supported_intervals(self) -> Dict[str, Any]:
        return {
            "intervals": list(SUPPORTED_INTERVALS),
            "description": "Supported time intervals for historical price data",
        }

    async def analyze_token_performance(self, params: Dict[str, Any]) -> str:
        chain, address = params["chain"], params["address"]
        details = await self.get_token_details({"chain": chain, "address": address})

        now = int(time.time())
        start = now - ANALYSIS_WINDOWS.get(params["timeRange"], DEFAULT_ANALYSIS_WINDOW)
        history = await self.get_token_historical_prices_range(
            {"chain": chain, "address": address, "from": start, "to": now}
        )

        market_cap = details.get("marketCap")
        supply = details.get("supply")
        return "\n".join([
            f"Token Performance Analysis for {details.get('name')} ({details.get('symbol')}):",
            "",
            "Token Details:",
            f"- Name: {details.get('name')}",
            f"- Symbol: {details.get('symbol')}",
            f"- Market Cap: {f'${market_cap:,}' if market_cap else 'N/A'}",
            f"- Supply: {f'{supply:,}' if supply else 'N/A'}",
            "",
            f"Historical Data Points: {len(history.get('prices', []))}",
            f"Time Range: {_date(start)} to {_date(now)}",
            "",
            "Analysis complete. Use the historical_prices_range endpoint for detailed price data.",
        ])


def _date(timestamp: int) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%d")
