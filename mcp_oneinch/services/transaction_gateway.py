from typing import Any, Dict

import httpx

from mcp_oneinch.models import prop, prompt, resource, tool
from mcp_oneinch.services.base import BaseService
from mcp_oneinch.services.chains import NETWORKS
from mcp_oneinch.services.web3_rpc import inspect_raw_transaction

# Flashbots only relays Ethereum mainnet transactions
FLASHBOTS_CHAIN_ID = 1

_RAW_TX = prop("string", "Raw hex string of the signed transaction")

INVALID_TRANSACTION = (
    "Invalid transaction data. Please check the transaction encoding and ensure it is properly signed."
)
PRIVATE_ONLY_ON_MAINNET = (
    "Private transaction broadcasting (Flashbots) is only available on Ethereum mainnet (chain ID 1)"
)

TRANSACTION_GATEWAY_DOCUMENTATION = """# 1inch Transaction Gateway API Documentation

## Overview
Broadcasting of signed transactions, publicly or privately through Flashbots.

## Endpoints

### POST /tx-gateway/v1.1/{chain}/broadcast
Body: {"rawTransaction": "0x..."}
Response: {"transactionHash": "0x..."}

### POST /tx-gateway/v1.1/{chain}/flashbots
Same body and response. Ethereum mainnet (chain 1) only; the transaction stays
out of the public mempool.

## Errors
- 400: invalid transaction data (bad encoding or signature)

## Requirements
Transactions must be signed, 0x-prefixed hex, with a valid nonce, gas price and
gas limit, and the sender must hold enough balance for the fees. This server
never signs transactions.
"""


def _truthy(value: Any) -> bool:
    # Prompt arguments arrive as strings
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)


class TransactionGatewayService(BaseService):
    """Broadcasting of already signed transactions."""

    TOOLS = (
        tool("broadcast_public_transaction", "Broadcast a public on-chain transaction to the specified chain", {
            "chain": prop("number", "Chain ID of the target network"), "rawTransaction": _RAW_TX,
        }, ("chain", "rawTransaction")),
        tool("broadcast_private_transaction", "Broadcast a private transaction to Flashbots (Ethereum mainnet only)", {
            "chain": prop("number", "Chain ID (typically 1 for Ethereum mainnet)"), "rawTransaction": _RAW_TX,
        }, ("chain", "rawTransaction")),
    )

    RESOURCES = (
        resource("oneinch://transaction-gateway/documentation", "Transaction Gateway API Documentation",
                 "Complete documentation for 1inch Transaction Gateway API", "text/markdown"),
        resource("oneinch://transaction-gateway/supported-chains", "Supported Chains",
                 "List of supported blockchain chains for transaction broadcasting"),
    )

    PROMPTS = (
        prompt("analyze_transaction", "Analyze a transaction before broadcasting",
               ("chain", "Chain ID", True),
               ("rawTransaction", "Raw transaction hex", True),
               ("isPrivate", "Whether to broadcast privately", False)),
    )

    TOOL_HANDLERS = {
        "broadcast_public_transaction": "broadcast_public_transaction",
        "broadcast_private_transaction": "broadcast_private_transaction",
    }
    RESOURCE_HANDLERS = {
        "oneinch://transaction-gateway/documentation": "documentation",
        "oneinch://transaction-gateway/supported-chains": "supported_chains",
    }
    PROMPT_HANDLERS = {"analyze_transaction": "analyze_transaction"}

    async def _broadcast(self, chain: Any, route: str, raw_transaction: str) -> Any:
        try:
            return await self.make_post_request(
                f"/tx-gateway/v1.1/{chain}/{route}", {"rawTransaction": raw_transaction}
            )
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 400:
                raise ValueError(INVALID_TRANSACTION) from e
            raise

    async def broadcast_public_transaction(self, params: Dict[str, Any]) -> Any:
        return await self._broadcast(params["chain"], "broadcast", params["rawTransaction"])

    async def broadcast_private_transaction(self, params: Dict[str, Any]) -> Any:
        if int(params["chain"]) != FLASHBOTS_CHAIN_ID:
            raise ValueError(PRIVATE_ONLY_ON_MAINNET)
        return await self._broadcast(params["chain"], "flashbots", params["rawTransaction"])

    async def documentation(self) -> str:
        return TRANSACTION_GATEWAY_DOCUMENTATION

    async def supported_chains(self) -> Dict[str, Any]:
        return {
            "chains": [
                {"id": chain_id, "name": name, "supportsPrivate": chain_id == FLASHBOTS_CHAIN_ID}
                for chain_id, name, _ in NETWORKS
            ],
            "description": (
                "Supported blockchain chains for transaction broadcasting. "
                "Only Ethereum mainnet supports private transactions via Flashbots."
            ),
            "note": "Private transactions (Flashbots) are only available on Ethereum mainnet (chain ID 1)",
        }

    async def analyze_transaction(self, params: Dict[str, Any]) -> str:
        """Offline checks only; nothing is broadcast."""
        chain, raw = params["chain"], params["rawTransaction"]
        is_private = _truthy(params.get("isPrivate", False))
        hex_length, tx_type = inspect_raw_transaction(raw)
        mode = "Private" if is_private else "Public"

        lines = [
            "Transaction Analysis:",
            "",
            f"Chain ID: {chain}",
            f"Transaction Type: {'Private (Flashbots)' if is_private else 'Public'}",
            f"Raw Transaction Length: {len(raw)} characters",
            "",
            "Transaction Format: Valid hex format",
        ]
        if is_private and int(chain) != FLASHBOTS_CHAIN_ID:
            lines += ["", "Warning: Private transactions are only supported on Ethereum mainnet (chain ID 1)"]
        lines += [
            f"Transaction Size: {hex_length} hex characters ({(hex_length + 1) // 2} bytes)",
            f"Estimated Type: {tx_type}",
            "",
            f"Ready to broadcast: {mode} transaction to chain {chain}",
        ]
        return "\n".join(lines)
