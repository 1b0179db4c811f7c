from typing import Any, Dict

from mcp_oneinch.models import chain_prop, prop, prompt, resource, tool
from mcp_oneinch.services.base import BaseService, pick
from mcp_oneinch.services.chains import supported_chains

_CHAIN = chain_prop("Chain ID of the network")
_SPENDER = prop("string", "Spender address")
_WALLET = prop("string", "Wallet address")
_WALLETS = prop("array", "List of wallet addresses", items={"type": "string"})
_CUSTOM_TOKENS = prop("array", "List of custom token addresses", items={"type": "string"})

BALANCE_DOCUMENTATION = """# 1inch Balance API Documentation

## Overview
Wallet balances and token allowances across the supported networks.

## Endpoints
- GET /balance/v1.2/{chain}/aggregatedBalancesAndAllowances/{spender}?wallets=...&filterEmpty=
  Aggregated balances and allowances for several wallets and one spender.
- GET /balance/v1.2/{chain}/balances/{walletAddress}
  Balances of every token held by a wallet.
- POST /balance/v1.2/{chain}/balances/{walletAddress}  body: {"tokens": [...]}
  Balances of the listed tokens for a wallet.
- POST /balance/v1.2/{chain}/balances/multiple/walletsAndTokens  body: {"tokens": [...], "wallets": [...]}
  Balances of the listed tokens for several wallets.
- GET /balance/v1.2/{chain}/allowancesAndBalances/{spender}/{walletAddress}
  Balances and allowances granted to spender.
- POST /balance/v1.2/{chain}/allowancesAndBalances/{spender}/{walletAddress}  body: {"tokens": [...]}
  Same, restricted to the listed tokens.
- GET /balance/v1.2/{chain}/allowances/{spender}/{walletAddress}
  Allowances granted to spender.
- POST /balance/v1.2/{chain}/allowances/{spender}/{walletAddress}  body: {"tokens": [...]}
  Same, restricted to the listed tokens.

Amounts are returned as decimal strings in token smallest units.
"""


def _describe(token_address: str, entry: Any, field: str) -> str:
    # Entries are either bare amount strings or objects carrying symbol and amounts
    if isinstance(entry, dict):
        return f"- {entry.get('symbol') or token_address}: {entry.get(field)}"
    return f"- {token_address}: {entry}"


class BalanceService(BaseService):
    """Wallet balances and allowances."""

    TOOLS = (
        tool("get_aggregated_balances_and_allowances",
             "Get balances and allowances by spender for list of wallet addresses", {
                 "chain": _CHAIN, "spender": _SPENDER, "wallets": _WALLETS,
                 "filterEmpty": prop("boolean", "Filter out empty balances and allowances", default=False),
             }, ("chain", "spender", "wallets")),
        tool("get_wallet_balances", "Get balances of tokens for a single wallet address", {
            "chain": _CHAIN, "walletAddress": _WALLET,
        }, ("chain", "walletAddress")),
        tool("get_custom_tokens_balances", "Get balances of custom tokens for a wallet", {
            "chain": _CHAIN, "walletAddress": _WALLET, "customTokens": _CUSTOM_TOKENS,
        }, ("chain", "walletAddress", "customTokens")),
        tool("get_aggregated_custom_tokens_balances", "Get balances of custom tokens for list of wallets", {
            "chain": _CHAIN, "wallets": _WALLETS, "customTokens": _CUSTOM_TOKENS,
        }, ("chain", "wallets", "customTokens")),
        tool("get_balances_and_allowances", "Get balances and allowances of tokens by spender for wallet", {
            "chain": _CHAIN, "spender": _SPENDER, "walletAddress": _WALLET,
        }, ("chain", "spender", "walletAddress")),
        tool("get_custom_tokens_balances_and_allowances",
             "Get balances and allowances of custom tokens by spender for wallet", {
                 "chain": _CHAIN, "spender": _SPENDER, "walletAddress": _WALLET, "customTokens": _CUSTOM_TOKENS,
             }, ("chain", "spender", "walletAddress", "customTokens")),
        tool("get_allowances", "Get allowances of tokens by spender for wallet", {
            "chain": _CHAIN, "spender": _SPENDER, "walletAddress": _WALLET,
        }, ("chain", "spender", "walletAddress")),
        tool("get_custom_tokens_allowances", "Get allowances of custom tokens by spender for wallet", {
            "chain": _CHAIN, "spender": _SPENDER, "walletAddress": _WALLET, "customTokens": _CUSTOM_TOKENS,
        }, ("chain", "spender", "walletAddress", "customTokens")),
    )

    RESOURCES = (
        resource("oneinch://balance/documentation", "Balance API Documentation",
                 "Complete documentation for 1inch Balance API", "text/markdown"),
        resource("oneinch://balance/supported-chains", "Supported Chains",
                 "List of supported blockchain chains for balance queries"),
    )

    PROMPTS = (
        prompt("analyze_wallet_portfolio", "Analyze wallet portfolio with balances and allowances",
               ("chain", "Chain ID", True),
               ("walletAddress", "Wallet address", True),
               ("spender", "Spender address for allowance analysis", False)),
    )

    TOOL_HANDLERS = {
        "get_aggregated_balances_and_allowances": "get_aggregated_balances_and_allowances",
        "get_wallet_balances": "get_wallet_balances",
        "get_custom_tokens_balances": "get_custom_tokens_balances",
        "get_aggregated_custom_tokens_balances": "get_aggregated_custom_tokens_balances",
        "get_balances_and_allowances": "get_balances_and_allowances",
        "get_custom_tokens_balances_and_allowances": "get_custom_tokens_balances_and_allowances",
        "get_allowances": "get_allowances",
        "get_custom_tokens_allowances": "get_custom_tokens_allowances",
    }
    RESOURCE_HANDLERS = {
        "oneinch://balance/documentation": "documentation",
        "oneinch://balance/supported-chains": "supported_chains",
    }
    PROMPT_HANDLERS = {"analyze_wallet_portfolio": "analyze_wallet_portfolio"}

    @staticmethod
    def _path(chain: Any, *segments: str) -> str:
        return "/".join((f"/balance/v1.2/{chain}",) + segments)

    async def get_aggregated_balances_and_allowances(self, params: Dict[str, Any]) -> Any:
        # httpx repeats list values: ?wallets=a&wallets=b
        return await self.make_request(
            self._path(params["chain"], "aggregatedBalancesAndAllowances", params["spender"]),
            pick(params, "wallets", "filterEmpty"),
        )

    async def get_wallet_balances(self, params: Dict[str, Any]) -> Any:
        return await self.make_request(self._path(params["chain"], "balances", params["walletAddress"]))

    async def get_custom_tokens_balances(self, params: Dict[str, Any]) -> Any:
        return await self.make_post_request(
            self._path(params["chain"], "balances", params["walletAddress"]),
            {"tokens": params["customTokens"]},
        )

    async def get_aggregated_custom_tokens_balances(self, params: Dict[str, Any]) -> Any:
        return await self.make_post_request(
            self._path(params["chain"], "balances", "multiple", "walletsAndTokens"),
            {"tokens": params["customTokens"], "wallets": params["wallets"]},
        )

    async def get_balances_and_allowances(self, params: Dict[str, Any]) -> Any:
        return await self.make_request(
            self._path(params["chain"], "allowancesAndBalances", params["spender"], params["walletAddress"])
        )

    async def get_custom_tokens_balances_and_allowances(self, params: Dict[str, Any]) -> Any:
        return await self.make_post_request(
            self._path(params["chain"], "allowancesAndBalances", params["spender"], params["walletAddress"]),
            {"tokens": params["customTokens"]},
        )

    async def get_allowances(self, params: Dict[str, Any]) -> Any:
        return await self.make_request(
            self._path(params["chain"], "allowances", params["spender"], params["walletAddress"])
        )

    async def get_custom_tokens_allowances(self, params: Dict[str, Any]) -> Any:
        return await self.make_post_request(
            self._path(params["chain"], "allowances", params["spender"], params["walletAddress"]),
            {"tokens": params["customTokens"]},
        )

    async def documentation(self) -> str:
        return BALANCE_DOCUMENTATION

    async def supported_chains(self) -> Dict[str, Any]:
        return supported_chains("Supported blockchain chains for balance queries")

    async def analyze_wallet_portfolio(self, params: Dict[str, Any]) -> str:
        chain, wallet, spender = params["chain"], params["walletAddress"], params.get("spender")
        balances = await self.get_wallet_balances({"chain": chain, "walletAddress": wallet})

        lines = [
            f"Wallet Portfolio Analysis for {wallet} on Chain {chain}:",
            "",
            f"Total Tokens: {len(balances)}",
            "",
            "Token Balances:",
        ]
        lines += [_describe(address, entry, "balance") for address, entry in balances.items()]

        if spender:
            allowances = await self.get_balances_and_allowances(
                {"chain": chain, "spender": spender, "walletAddress": wallet}
            )
            lines += ["", f"Allowances for Spender {spender}:"]
            lines += [_describe(address, entry, "allowance") for address, entry in allowances.items()]

        return "\n".join(lines)
