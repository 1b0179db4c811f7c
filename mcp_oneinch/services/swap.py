from typing import Any, Dict

from mcp_oneinch.models import chain_prop, prop, prompt, resource, tool
from mcp_oneinch.services.base import BaseService, pick
from mcp_oneinch.services.chains import supported_chains

# --- Tool Schemas ---

_CHAIN = chain_prop("Chain ID of the network")

_QUOTE_PROPERTIES: Dict[str, Any] = {
    "chain": _CHAIN,
    "src": prop("string", "Source token address"),
    "dst": prop("string", "Destination token address"),
    "amount": prop("string", "Amount to swap (in token smallest units)"),
    "protocols": prop("string", "Filter by supported liquidity sources"),
    "fee": prop("number", "Partner fee (0-3)"),
    "gasPrice": prop("string", "Gas price in wei"),
    "complexityLevel": prop("number", "Complexity level for routing"),
    "parts": prop("number", "Number of parts for split"),
    "mainRouteParts": prop("number", "Number of main route parts"),
    "gasLimit": prop("number", "Gas limit"),
    "connectorTokens": prop("string", "Connector tokens"),
    "excludedProtocols": prop("string", "Excluded protocols"),
    "includeTokensInfo": prop("boolean", "Include tokens info in response"),
    "includeProtocols": prop("boolean", "Include protocols info in response"),
    "includeGas": prop("boolean", "Include gas info in response"),
}

_SWAP_PROPERTIES: Dict[str, Any] = {
    **_QUOTE_PROPERTIES,
    "from": prop("string", "Wallet address initiating the swap"),
    "origin": prop("string", "Origin address for the swap"),
    "slippage": prop("number", "Allowed slippage in percentage (e.g. 1 means 1%)"),
    "disableEstimate": prop("boolean", "Disable estimate"),
    "allowPartialFill": prop("boolean", "Allow partial fill"),
    "permit": prop("string", "Permit data"),
    "receiver": prop("string", "Receiver address"),
    "referrer": prop("string", "Referrer address"),
    "compatibility": prop("boolean", "Compatibility mode"),
    "usePermit2": prop("boolean", "Use Permit2"),
}

QUOTE_QUERY_KEYS = (
    "src", "dst", "amount", "protocols", "fee", "gasPrice", "complexityLevel", "parts",
    "mainRouteParts", "gasLimit", "connectorTokens", "excludedProtocols",
    "includeTokensInfo", "includeProtocols", "includeGas",
)
SWAP_QUERY_KEYS = QUOTE_QUERY_KEYS + (
    "from", "origin", "slippage", "disableEstimate", "allowPartialFill", "permit",
    "receiver", "referrer", "compatibility", "usePermit2",
)

COMMON_TOKENS = {
    "tokens": {
        "0x111111111117dC0aa78b770fA6A738034120C302": {
            "address": "0x111111111117dC0aa78b770fA6A738034120C302",
            "symbol": "1INCH",
            "name": "1inch Network",
            "decimals": 18,
        },
        "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2": {
            "address": "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2",
            "symbol": "WETH",
            "name": "Wrapped Ether",
            "decimals": 18,
        },
        "0xdAC17F958D2ee523a2206206994597C13D831ec7": {
            "address": "0xdAC17F958D2ee523a2206206994597C13D831ec7",
            "symbol": "USDT",
            "name": "Tether USD",
            "decimals": 6,
        },
        "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48": {
            "address": "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",
            "symbol": "USDC",
            "name": "USD Coin",
            "decimals": 6,
        },
        "0x2260FAC5E5542a773Aa44fBCfeDf7C193bc2C599": {
            "address": "0x2260FAC5E5542a773Aa44fBCfeDf7C193bc2C599",
            "symbol": "WBTC",
            "name": "Wrapped Bitcoin",
            "decimals": 8,
        },
    },
    "description": "Common tokens used for swapping on Ethereum mainnet",
}

SWAP_DOCUMENTATION = """# 1inch Classic Swap API Documentation

## Overview
The Classic Swap API finds the best swap route across liquidity sources and builds
the calldata to execute it through the 1inch Router.

## Endpoints

### GET /swap/v6.1/{chain}/quote
Find the best quote to swap with 1inch Router.
- src, dst: token addresses
- amount: amount in token smallest units
- protocols, fee, gasPrice, complexityLevel, parts, mainRouteParts, gasLimit,
  connectorTokens, excludedProtocols (optional)
- includeTokensInfo, includeProtocols, includeGas (optional booleans)

### GET /swap/v6.1/{chain}/swap
Generate calldata to swap on 1inch Router. Takes every quote parameter plus:
- from: wallet address initiating the swap
- origin: origin address
- slippage: allowed slippage in percent
- disableEstimate, allowPartialFill, permit, receiver, referrer, compatibility,
  usePermit2 (optional)

### GET /swap/v6.1/{chain}/router
Address of the 1inch Router.

### GET /swap/v6.1/{chain}/approve/spender
Address of the contract to approve before swapping.

### GET /swap/v6.1/{chain}/approve/transaction
Approve calldata for tokenAddress, with an optional amount (unlimited when omitted).

### GET /swap/v6.1/{chain}/approve/allowance
Current allowance of tokenAddress granted by walletAddress to the router.

### GET /swap/v6.1/{chain}/liquidity-sources
Liquidity sources available for routing.

### GET /swap/v6.1/{chain}/tokens
Tokens available for swapping.

## Flow
1. Request a quote.
2. Check the allowance and send an approve transaction if it is too low.
3. Request swap calldata and sign it with the wallet.
"""


class SwapService(BaseService):
    """1inch Classic Swap API."""

    TOOLS = (
        tool("get_quote", "Find the best quote to swap with 1inch Router",
             _QUOTE_PROPERTIES, ("chain", "src", "dst", "amount")),
        tool("get_swap", "Generate calldata to swap on 1inch Router",
             _SWAP_PROPERTIES, ("chain", "src", "dst", "amount", "from", "origin", "slippage")),
        tool("get_router", "Get address of the 1inch Router", {"chain": _CHAIN}, ("chain",)),
        tool("get_approve_transaction", "Generate approve calldata", {
            "chain": _CHAIN,
            "tokenAddress": prop("string", "Token address to approve"),
            "amount": prop("string", "Max approval amount"),
        }, ("chain", "tokenAddress")),
        tool("get_allowance", "Get approved token allowance", {
            "chain": _CHAIN,
            "tokenAddress": prop("string", "Token address"),
            "walletAddress": prop("string", "Wallet address"),
        }, ("chain", "tokenAddress", "walletAddress")),
        tool("get_liquidity_sources", "Get list of available liquidity sources", {"chain": _CHAIN}, ("chain",)),
        tool("get_tokens", "Get list of available tokens", {"chain": _CHAIN}, ("chain",)),
        tool("get_spender", "Get address of the spender contract", {"chain": _CHAIN}, ("chain",)),
    )

    RESOURCES = (
        resource("oneinch://swap/documentation", "Swap API Documentation",
                 "Complete documentation for 1inch Classic Swap API", "text/markdown"),
        resource("oneinch://swap/supported-chains", "Supported Chains",
                 "List of supported blockchain chains"),
        resource("oneinch://swap/common-tokens", "Common Tokens",
                 "List of commonly used tokens for swapping"),
    )

    PROMPTS = (
        prompt("analyze_swap_quote", "Analyze a swap quote and provide insights",
               ("chain", "Chain ID", True),
               ("src", "Source token address", True),
               ("dst", "Destination token address", True),
               ("amount", "Amount to swap", True)),
        prompt("prepare_swap_transaction", "Prepare a swap transaction with all necessary steps",
               ("chain", "Chain ID", True),
               ("src", "Source token address", True),
               ("dst", "Destination token address", True),
               ("amount", "Amount to swap", True),
               ("from", "Wallet address", True),
               ("origin", "Origin address", True),
               ("slippage", "Slippage tolerance", True)),
    )

    TOOL_HANDLERS = {
        "get_quote": "get_quote",
        "get_swap": "get_swap",
        "get_router": "get_router",
        "get_approve_transaction": "get_approve_transaction",
        "get_allowance": "get_allowance",
        "get_liquidity_sources": "get_liquidity_sources",
        "get_tokens": "get_tokens",
        "get_spender": "get_spender",
    }
    RESOURCE_HANDLERS = {
        "oneinch://swap/documentation": "documentation",
        "oneinch://swap/supported-chains": "supported_chains",
        "oneinch://swap/common-tokens": "common_tokens",
    }
    PROMPT_HANDLERS = {
        "analyze_swap_quote": "analyze_swap_quote",
        "prepare_swap_transaction": "prepare_swap_transaction",
    }

    @staticmethod
    def _path(chain: Any, endpoint: str) -> str:
        return f"/swap/v6.1/{chain}/{endpoint}"

    # --- Tools ---

    async def get_quote(self, params: Dict[str, Any]) -> Any:
        return await self.make_request(self._path(params["chain"], "quote"), pick(params, *QUOTE_QUERY_KEYS))

    async def get_swap(self, params: Dict[str, Any]) -> Any:
        return await self.make_request(self._path(params["chain"], "swap"), pick(params, *SWAP_QUERY_KEYS))

    async def get_router(self, params: Dict[str, Any]) -> Any:
        return await self.make_request(self._path(params["chain"], "router"))

    async def get_approve_transaction(self, params: Dict[str, Any]) -> Any:
        return await self.make_request(
            self._path(params["chain"], "approve/transaction"), pick(params, "tokenAddress", "amount")
        )

    async def get_allowance(self, params: Dict[str, Any]) -> Any:
        return await self.make_request(
            self._path(params["chain"], "approve/allowance"), pick(params, "tokenAddress", "walletAddress")
        )

    async def get_liquidity_sources(self, params: Dict[str, Any]) -> Any:
        return await self.make_request(self._path(params["chain"], "liquidity-sources"))

    async def get_tokens(self, params: Dict[str, Any]) -> Any:
        return await self.make_request(self._path(params["chain"], "tokens"))

    async def get_spender(self, params: Dict[str, Any]) -> Any:
        return await self.make_request(self._path(params["chain"], "approve/spender"))

    # --- Resources ---

    async def documentation(self) -> str:
        return SWAP_DOCUMENTATION

    async def supported_chains(self) -> Dict[str, Any]:
        return supported_chains("Supported blockchain chains for swap operations")

    async def common_tokens(self) -> Dict[str, Any]:
        return COMMON_TOKENS

    # --- Prompts ---

    async def analyze_swap_quote(self, params: Dict[str, Any]) -> str:
        quote = await self.get_quote(pick(params, "chain", "src", "dst", "amount"))
        src_token, dst_token = quote["srcToken"], quote["dstToken"]
        routes = quote.get("protocols") or []

        lines = [
            "Swap Quote Analysis:",
            "",
            f"Source Token: {src_token.get('symbol')} ({src_token.get('name')})",
            f"Destination Token: {dst_token.get('symbol')} ({dst_token.get('name')})",
            "",
            "Amounts:",
            f"- Input: {quote.get('srcAmount')} {src_token.get('symbol')}",
            f"- Output: {quote.get('dstAmount')} {dst_token.get('symbol')}",
            "",
            "Gas Information:",
            f"- Gas Cost: {quote.get('gasCost')} wei",
            f"- Gas Cost USD: ${quote.get('gasCostUsd')}",
            "",
            "Route Information:",
            f"- Number of Protocols: {len(routes)}",
            f"- Router Address: {quote.get('routerAddress')}",
            f"- Allowance Target: {quote.get('allowanceTarget')}",
            "",
            "Protocol Route:",
        ]
        for index, step in enumerate(routes, start=1):
            lines.append(f"Step {index}:")
            for protocol in step:
                lines.append(f"  - {protocol.get('name')} ({protocol.get('part')}%)")
        return "\n".join(lines)

    async def prepare_swap_transaction(self, params: Dict[str, Any]) -> str:
        chain, src, wallet = params["chain"], params["src"], params["from"]
        swap = await self.get_swap(pick(params, "chain", "src", "dst", "amount", "from", "origin", "slippage"))
        allowance = await self.get_allowance({"chain": chain, "tokenAddress": src, "walletAddress": wallet})
        approve = await self.get_approve_transaction({"chain": chain, "tokenAddress": src})

        tx = swap.get("tx", {})
        lines = [
            "Swap Transaction Preparation:",
            "",
            "Transaction Data:",
            f"- To: {tx.get('to')}",
            f"- Value: {tx.get('value')} wei",
            f"- Gas Limit: {tx.get('gas', tx.get('gasLimit'))}",
            f"- Gas Price: {tx.get('gasPrice')}",
            "",
            "Token Information:",
            f"- Source: {swap['srcToken'].get('symbol')} ({swap.get('srcAmount')})",
            f"- Destination: {swap['dstToken'].get('symbol')} ({swap.get('dstAmount')})",
            "",
            f"Route: {len(swap.get('protocols') or [])} protocol steps",
            "",
            "Allowance Check:",
            f"- Current Allowance: {allowance.get('allowance')}",
            f"- Required Amount: {swap.get('srcAmount')}",
            "",
        ]
        # Token amounts exceed float precision
        if int(allowance.get("allowance", 0)) < int(swap.get("srcAmount", 0)):
            lines += [
                "APPROVAL REQUIRED:",
                f"- Approval To: {approve.get('to')}",
                f"- Approval Data: {approve.get('data')}",
                f"- Approval Value: {approve.get('value')} wei",
            ]
        else:
            lines.append("No approval needed - sufficient allowance exists.")
        return "\n".join(lines)
