from typing import Any, Dict

from mcp_oneinch.models import chain_prop, prop, prompt, resource, tool
from mcp_oneinch.services.base import BaseService, as_list, pick
from mcp_oneinch.services.chains import supported_chains

_CHAIN = chain_prop("Chain ID of the network")
_CURRENCY = prop("string", "Currency for price conversion (e.g., USD, EUR). If omitted, returns price in native Wei")
_ADDRESSES = prop("array", "List of token addresses", items={"type": "string"})

DEFAULT_CURRENCY = "USD"

SPOT_PRICE_DOCUMENTATION = """# 1inch Spot Price API Documentation

## Overview
Token prices on the supported networks, in native Wei or a chosen currency.

## Endpoints
- GET /price/v1.1/{chain}?currency=
  Prices of all whitelisted tokens.
- POST /price/v1.1/{chain}  body: {"tokens": [...], "currency": "USD"}
  Prices of the listed tokens.
- GET /price/v1.1/{chain}/currencies
  Supported conversion currencies: {"codes": ["USD", "EUR", ...]}
- GET /price/v1.1/{chain}/{addresses}?currency=
  Prices of comma separated token addresses given in the path.

Responses map token addresses to prices. Prices are strings to keep precision.
"""


def _describe(token_address: str, entry: Any, currency: str) -> str:
    # Entries are either bare price strings or objects with price and token metadata
    if not isinstance(entry, dict):
        return f"- {token_address}: {entry} {currency}"
    line = f"- {entry.get('symbol') or token_address}: {entry.get('price')} {currency}"
    if entry.get("name"):
        line += f" ({entry['name']})"
    return line


class SpotPriceService(BaseService):
    """Spot prices of whitelisted and custom tokens."""

    TOOLS = (
        tool("get_all_prices", "Get prices for all whitelisted tokens on the specified blockchain network", {
            "chain": _CHAIN, "currency": _CURRENCY,
        }, ("chain",)),
        tool("get_custom_tokens_prices", "Get prices for specific tokens as requested", {
            "chain": _CHAIN, "tokens": _ADDRESSES, "currency": _CURRENCY,
        }, ("chain", "tokens")),
        tool("get_supported_currencies", "Get list of all supported custom currencies for price conversion", {
            "chain": _CHAIN,
        }, ("chain",)),
        tool("get_specific_tokens_prices", "Get prices for specific token addresses via path parameter", {
            "chain": _CHAIN, "addresses": _ADDRESSES, "currency": _CURRENCY,
        }, ("chain", "addresses")),
    )

    RESOURCES = (
        resource("oneinch://spot-price/documentation", "Spot Price API Documentation",
                 "Complete documentation for 1inch Spot Price API", "text/markdown"),
        resource("oneinch://spot-price/supported-chains", "Supported Chains",
                 "List of supported blockchain chains for spot price queries"),
    )

    PROMPTS = (
        prompt("analyze_token_prices", "Analyze token prices and market data",
               ("chain", "Chain ID", True),
               ("tokens", "List of token addresses to analyze", True),
               ("currency", "Currency for price conversion", False)),
    )

    TOOL_HANDLERS = {
        "get_all_prices": "get_all_prices",
        "get_custom_tokens_prices": "get_custom_tokens_prices",
        "get_supported_currencies": "get_supported_currencies",
        "get_specific_tokens_prices": "get_specific_tokens_prices",
    }
    RESOURCE_HANDLERS = {
        "oneinch://spot-price/documentation": "documentation",
        "oneinch://spot-price/supported-chains": "supported_chains",
    }
    PROMPT_HANDLERS = {"analyze_token_prices": "analyze_token_prices"}

    async def get_all_prices(self, params: Dict[str, Any]) -> Any:
        return await self.make_request(f"/price/v1.1/{params['chain']}", pick(params, "currency"))

    async def get_custom_tokens_prices(self, params: Dict[str, Any]) -> Any:
        body = {"tokens": params["tokens"], **pick(params, "currency")}
        return await self.make_post_request(f"/price/v1.1/{params['chain']}", body)

    async def get_supported_currencies(self, params: Dict[str, Any]) -> Any:
        return await self.make_request(f"/price/v1.1/{params['chain']}/currencies")

    async def get_specific_tokens_prices(self, params: Dict[str, Any]) -> Any:
        addresses = ",".join(as_list(params["addresses"]))
        return await self.make_request(f"/price/v1.1/{params['chain']}/{addresses}", pick(params, "currency"))

    async def documentation(self) -> str:
        return SPOT_PRICE_DOCUMENTATION

    async def supported_chains(self) -> Dict[str, Any]:
        return supported_chains("Supported blockchain chains for spot price queries")

    async def analyze_token_prices(self, params: Dict[str, Any]) -> str:
        chain = params["chain"]
        currency = params.get("currency") or DEFAULT_CURRENCY
        prices = await self.get_custom_tokens_prices(
            {"chain": chain, "tokens": as_list(params["tokens"]), "currency": currency}
        )
        currencies = await self.get_supported_currencies({"chain": chain})

        lines = [
            f"Token Price Analysis for Chain {chain} in {currency}:",
            "",
            f"Total Tokens Analyzed: {len(prices)}",
            "",
            "Token Prices:",
        ]
        lines += [_describe(address, entry, currency) for address, entry in prices.items()]
        lines += ["", f"Supported Currencies: {', '.join(currencies.get('codes', []))}"]
        return "\n".join(lines)
