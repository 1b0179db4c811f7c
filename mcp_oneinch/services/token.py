from typing import Any, Dict

from mcp_oneinch.models import chain_prop, prop, prompt, resource, tool
from mcp_oneinch.services.base import BaseService

NATIVE_TOKEN_ADDRESS = "0xeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeee"

POPULAR_TOKENS = {
    "tokens": [
        {"chainId": 1, "address": NATIVE_TOKEN_ADDRESS, "symbol": "ETH", "name": "Ethereum", "decimals": 18},
        {"chainId": 1, "address": "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48", "symbol": "USDC", "name": "USD Coin", "decimals": 6},
        {"chainId": 1, "address": "0xdAC17F958D2ee523a2206206994597C13D831ec7", "symbol": "USDT", "name": "Tether USD", "decimals": 6},
    ]
}

TOKEN_DOCUMENTATION = """# 1inch Token API Documentation

## Overview
Token metadata, search, spot prices and wallet balances across the chains 1inch supports.

## Endpoints

### GET /token/v1.3/{chainId}/info
Details of one token: address, symbol, name, decimals, logoURI, tags.

### GET /token/v1.3/search
Search tokens by name or symbol.
- query: search text
- limit: maximum number of results (default 10)
- only_positive_rating: always true

### GET /price/v1.3/{chainId}/price
Current token price.
- tokenAddress: token address
- currency: quote currency (default USD)

### GET /balance/v1.3/{chainId}/balances
Token balances of a wallet.
- address: wallet address
- tokens: restrict the result to these token addresses (optional)

## Popular Tokens
- ETH (Ethereum)
- USDC (USD Coin)
- USDT (Tether USD)
"""


class TokenService(BaseService):
    """Token metadata, search, price and balance lookups."""

    TOOLS = (
        tool("get_token_info", "Get detailed information about a token", {
            "chainId": chain_prop(),
            "tokenAddress": prop("string", "Token address"),
        }, ("chainId", "tokenAddress")),
        tool("search_tokens", "Search tokens by name or symbol", {
            "chainId": chain_prop(),
            "query": prop("string", "Search query"),
            "limit": prop("number", "Maximum number of results", default=10),
        }, ("chainId", "query")),
        tool("get_token_price", "Get current token price", {
            "chainId": chain_prop(),
            "tokenAddress": prop("string", "Token address"),
            "currency": prop("string", "Currency (default: USD)", default="USD"),
        }, ("chainId", "tokenAddress")),
        tool("get_token_balances", "Get token balances for a wallet address", {
            "chainId": chain_prop(),
            "address": prop("string", "Wallet address"),
            "tokens": prop("array", "Specific token addresses to check (optional)", items={"type": "string"}),
        }, ("chainId", "address")),
    )

    RESOURCES = (
        resource("oneinch://token/documentation", "Token API Documentation",
                 "Complete documentation for 1inch Token API", "text/markdown"),
        resource("oneinch://token/popular-tokens", "Popular Tokens",
                 "List of popular tokens across all chains"),
    )

    PROMPTS = (
        prompt("token_analysis", "Analyze token information and provide insights",
               ("token_address", "Token address to analyze", True),
               ("chain_id", "Chain ID", True)),
    )

    TOOL_HANDLERS = {
        "get_token_info": "get_token_info",
        "search_tokens": "search_tokens",
        "get_token_price": "get_token_price",
        "get_token_balances": "get_token_balances",
    }
    RESOURCE_HANDLERS = {
        "oneinch://token/documentation": "documentation",
        "oneinch://token/popular-tokens": "popular_tokens",
    }
    PROMPT_HANDLERS = {"token_analysis": "token_analysis"}

    async def get_token_info(self, params: Dict[str, Any]) -> Any:
        self.validate_required_params(params, ["chainId", "tokenAddress"])
        return await self.make_request(
            f"/token/v1.3/{params['chainId']}/info", {"tokenAddress": params["tokenAddress"]}
        )

    async def search_tokens(self, params: Dict[str, Any]) -> Any:
        self.validate_required_params(params, ["chainId", "query"])
        return await self.make_request("/token/v1.3/search", {
            "query": params["query"],
            "limit": params.get("limit", 10),
            "only_positive_rating": True,
        })

    async def get_token_price(self, params: Dict[str, Any]) -> Any:
        self.validate_required_params(params, ["chainId", "tokenAddress"])
        return await self.make_request(f"/price/v1.3/{params['chainId']}/price", {
            "tokenAddress": params["tokenAddress"],
            "currency": params.get("currency", "USD"),
        })

    async def get_token_balances(self, params: Dict[str, Any]) -> Any:
        self.validate_required_params(params, ["chainId", "address"])
        return await self.make_request(f"/balance/v1.3/{params['chainId']}/balances", {
            "address": params["address"],
            "tokens": params.get("tokens"),
        })

    async def documentation(self) -> str:
        return TOKEN_DOCUMENTATION

    async def popular_tokens(self) -> Dict[str, Any]:
        return POPULAR_TOKENS

    async def token_analysis(self, params: Dict[str, Any]) -> str:
        return (
            f"Analyze the token {params['token_address']} on chain {params['chain_id']}. "
            "Provide information about its price, market cap, trading volume, and any notable characteristics."
        )
