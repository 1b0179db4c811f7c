from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import httpx

from mcp_oneinch.models import prop, prompt, resource, tool
from mcp_oneinch.services.base import BaseService
from mcp_oneinch.services.chains import supported_chains

_CHAIN = prop("number", "Chain ID of the target blockchain")
_BLOCK = prop("string", "Block parameter (latest, earliest, pending, or hex)", default="latest")

# Hex length of a legacy EIP-155 transaction without the 0x prefix
LEGACY_TX_HEX_LENGTH = 130


def inspect_raw_transaction(raw: str) -> Tuple[int, str]:
    """Hex length (without 0x) and a type guess for a signed transaction."""
    if not raw.startswith("0x"):
        raise ValueError("Transaction must be a hex string starting with 0x")
    if len(raw) < 10:
        raise ValueError("Transaction appears to be too short for a valid transaction")

    hex_length = len(raw) - 2
    if hex_length == LEGACY_TX_HEX_LENGTH:
        return hex_length, "Legacy transaction (EIP-155)"
    if hex_length > LEGACY_TX_HEX_LENGTH:
        return hex_length, "EIP-1559 transaction (with access list or other extensions)"
    return hex_length, "Unknown format"


WEB3_RPC_DOCUMENTATION = """# 1inch Web3 RPC API Documentation

## Overview
Direct JSON-RPC 2.0 access to blockchain nodes on every supported network.

## Endpoint
POST https://api.1inch.dev/web3/{chainId}

## Request
```json
{"jsonrpc": "2.0", "method": "eth_blockNumber", "params": [], "id": 1}
```
- jsonrpc: protocol version, always "2.0"
- method: JSON-RPC method name
- params: method parameters
- id: integer, string or null used to match responses

## Response
```json
{"jsonrpc": "2.0", "result": "0x10d4f", "id": 1}
```
Errors carry `{"error": {"code": -32600, "message": "Invalid Request"}}`.

## Tools
- get_block_number: eth_blockNumber
- get_balance: eth_getBalance [address, block]
- call_contract: eth_call [{to, data, from?, gas?, gasPrice?, value?}, block]
- get_transaction_count: eth_getTransactionCount [address, block]
- send_raw_transaction: eth_sendRawTransaction [signedTransactionData]
- get_transaction_receipt: eth_getTransactionReceipt [transactionHash]
- get_block_by_number: eth_getBlockByNumber [blockNumber, fullTransactionObjects]

## Block Parameters
"latest", "earliest", "pending" or a hex block number such as "0x10d4f".

## Error Codes
- -32600: Invalid Request
- -32601: Method not found
- -32602: Invalid params
- -32603: Internal error
- -32000: Server error
- -32001: Unsupported method
"""

JSON_RPC_METHODS = """# JSON-RPC Methods Reference

## Blockchain Information
- eth_blockNumber: latest block number
- eth_getBlockByNumber / eth_getBlockByHash: block information
- eth_getBlockTransactionCountByNumber / eth_getBlockTransactionCountByHash: transactions in a block

## Account Information
- eth_getBalance: account balance
- eth_getTransactionCount: account nonce
- eth_getCode: contract bytecode

## Transactions
- eth_getTransactionByHash: transaction by hash
- eth_getTransactionByBlockNumberAndIndex / eth_getTransactionByBlockHashAndIndex
- eth_getTransactionReceipt: transaction receipt

## Execution
- eth_call: contract call without a transaction
- eth_estimateGas: gas estimate
- eth_sendRawTransaction: broadcast a signed transaction

## State and Storage
- eth_getStorageAt, eth_getLogs, eth_getProof

## Network
- net_version, net_listening, net_peerCount

## Gas
- eth_gasPrice, eth_maxPriorityFeePerGas, eth_feeHistory

## Filters
- eth_newFilter, eth_newBlockFilter, eth_newPendingTransactionFilter
- eth_uninstallFilter, eth_getFilterChanges, eth_getFilterLogs

## Parameter Types
- Addresses: 20-byte hex, 0x-prefixed
- Data: 0x-prefixed hex, 4-byte selector followed by encoded arguments
- Quantities: 0x-prefixed hex without leading zeros

## Additional Error Codes
- -32002: Invalid input
- -32003: Resource not found
- -32004: Method not available
- -32005: Limit exceeded
"""


def _hex_int(value: Optional[str]) -> int:
    return int(value, 16) if value else 0


class Web3RpcService(BaseService):
    """JSON-RPC passthrough to the 1inch node gateway."""

    TOOLS = (
        tool("json_rpc_call", "Make a generic JSON-RPC call to any supported blockchain", {
            "chainId": _CHAIN,
            "method": prop("string", "JSON-RPC method name (e.g., eth_blockNumber, eth_call)"),
            "params": prop("array", "Parameters for the JSON-RPC method", items={"type": "string"}),
            "id": prop(["number", "string", "null"], "Request ID for matching responses", default=1),
        }, ("chainId", "method", "params")),
        tool("get_block_number", "Get the latest block number from the blockchain", {
            "chainId": _CHAIN,
        }, ("chainId",)),
        tool("get_balance", "Get the balance of an address in wei", {
            "chainId": _CHAIN,
            "address": prop("string", "Address to get balance for"),
            "block": _BLOCK,
        }, ("chainId", "address")),
        tool("call_contract", "Execute a contract call without creating a transaction", {
            "chainId": _CHAIN,
            "to": prop("string", "Contract address to call"),
            "data": prop("string", "Encoded function call data"),
            "from": prop("string", "Address making the call (optional)"),
            "gas": prop("string", "Gas limit for the call (optional)"),
            "gasPrice": prop("string", "Gas price for the call (optional)"),
            "value": prop("string", "Value to send with the call (optional)"),
            "block": _BLOCK,
        }, ("chainId", "to", "data")),
        tool("get_transaction_count", "Get the nonce (transaction count) of an address", {
            "chainId": _CHAIN,
            "address": prop("string", "Address to get nonce for"),
            "block": _BLOCK,
        }, ("chainId", "address")),
        tool("send_raw_transaction", "Send a signed raw transaction to the network", {
            "chainId": _CHAIN,
            "signedTransactionData": prop("string", "Signed transaction hex string"),
        }, ("chainId", "signedTransactionData")),
        tool("get_transaction_receipt", "Get the receipt of a transaction by its hash", {
            "chainId": _CHAIN,
            "transactionHash": prop("string", "Transaction hash to get receipt for"),
        }, ("chainId", "transactionHash")),
        tool("get_block_by_number", "Get block information by block number", {
            "chainId": _CHAIN,
            "blockNumber": prop("string", "Block number (latest, earliest, pending, or hex)", default="latest"),
            "fullTransactionObjects": prop("boolean", "Whether to include full transaction objects", default=False),
        }, ("chainId", "blockNumber")),
    )

    RESOURCES = (
        resource("oneinch://web3-rpc/documentation", "Web3 RPC API Documentation",
                 "Complete documentation for 1inch Web3 RPC API", "text/markdown"),
        resource("oneinch://web3-rpc/supported-chains", "Supported Chains",
                 "List of supported blockchain chains for Web3 RPC calls"),
        resource("oneinch://web3-rpc/json-rpc-methods", "JSON-RPC Methods Reference",
                 "Common JSON-RPC methods and their usage", "text/markdown"),
    )

    PROMPTS = (
        prompt("analyze_blockchain_state", "Analyze current blockchain state including latest block and gas info",
               ("chainId", "Chain ID", True),
               ("address", "Address to analyze", False)),
        prompt("validate_transaction", "Validate a transaction before sending",
               ("chainId", "Chain ID", True),
               ("signedTransactionData", "Signed transaction hex", True)),
    )

    TOOL_HANDLERS = {
        "json_rpc_call": "json_rpc_call",
        "get_block_number": "get_block_number",
        "get_balance": "get_balance",
        "call_contract": "call_contract",
        "get_transaction_count": "get_transaction_count",
        "send_raw_transaction": "send_raw_transaction",
        "get_transaction_receipt": "get_transaction_receipt",
        "get_block_by_number": "get_block_by_number",
    }
    RESOURCE_HANDLERS = {
        "oneinch://web3-rpc/documentation": "documentation",
        "oneinch://web3-rpc/supported-chains": "supported_chains",
        "oneinch://web3-rpc/json-rpc-methods": "json_rpc_methods",
    }
    PROMPT_HANDLERS = {
        "analyze_blockchain_state": "analyze_blockchain_state",
        "validate_transaction": "validate_transaction",
    }

    async def json_rpc_call(self, params: Dict[str, Any]) -> Any:
        body = {
            "jsonrpc": "2.0",
            "method": params["method"],
            "params": params.get("params") or [],
            "id": params.get("id") or 1,
        }
        return await self.make_post_request(f"/web3/{params['chainId']}", body)

    async def _call(self, chain_id: Any, method: str, rpc_params: List[Any]) -> Any:
        return await self.json_rpc_call({"chainId": chain_id, "method": method, "params": rpc_params})

    @staticmethod
    def _with_block(rpc_params: List[Any], params: Dict[str, Any]) -> List[Any]:
        if params.get("block"):
            rpc_params.append(params["block"])
        return rpc_params

    async def get_block_number(self, params: Dict[str, Any]) -> Any:
        return await self._call(params["chainId"], "eth_blockNumber", [])

    async def get_balance(self, params: Dict[str, Any]) -> Any:
        return await self._call(params["chainId"], "eth_getBalance", self._with_block([params["address"]], params))

    async def call_contract(self, params: Dict[str, Any]) -> Any:
        call = {"to": params["to"], "data": params["data"]}
        for key in ("from", "gas", "gasPrice", "value"):
            if params.get(key):
                call[key] = params[key]
        return await self._call(params["chainId"], "eth_call", self._with_block([call], params))

    async def get_transaction_count(self, params: Dict[str, Any]) -> Any:
        return await self._call(
            params["chainId"], "eth_getTransactionCount", self._with_block([params["address"]], params)
        )

    async def send_raw_transaction(self, params: Dict[str, Any]) -> Any:
        return await self._call(params["chainId"], "eth_sendRawTransaction", [params["signedTransactionData"]])

    async def get_transaction_receipt(self, params: Dict[str, Any]) -> Any:
        return await self._call(params["chainId"], "eth_getTransactionReceipt", [params["transactionHash"]])

    async def get_block_by_number(self, params: Dict[str, Any]) -> Any:
        full = bool(params.get("fullTransactionObjects", False))
        return await self._call(params["chainId"], "eth_getBlockByNumber", [params["blockNumber"], full])

    async def documentation(self) -> str:
        return WEB3_RPC_DOCUMENTATION

    async def supported_chains(self) -> Dict[str, Any]:
        return supported_chains("Supported blockchain chains for Web3 RPC calls")

    async def json_rpc_methods(self) -> str:
        return JSON_RPC_METHODS

    async def analyze_blockchain_state(self, params: Dict[str, Any]) -> str:
        chain_id, address = params["chainId"], params.get("address")

        block_number = _hex_int((await self.get_block_number({"chainId": chain_id})).get("result"))
        lines = [
            f"Blockchain State Analysis for Chain {chain_id}:",
            "",
            f"Latest Block Number: {block_number} ({hex(block_number)})",
            f"Current Block Height: {block_number:,}",
        ]

        if address:
            balance = await self.get_balance({"chainId": chain_id, "address": address})
            nonce = await self.get_transaction_count({"chainId": chain_id, "address": address})
            wei = _hex_int(balance.get("result"))
            lines += [
                "",
                f"Address Analysis for {address}:",
                f"Balance: {wei:,} wei ({wei / 10 ** 18:.6f} ETH)",
                f"Transaction Count (Nonce): {_hex_int(nonce.get('result'))}",
            ]

        latest = await self.get_block_by_number(
            {"chainId": chain_id, "blockNumber": "latest", "fullTransactionObjects": False}
        )
        block = latest.get("result")
        if block:
            gas_used, gas_limit = _hex_int(block.get("gasUsed")), _hex_int(block.get("gasLimit"))
            utilization = gas_used / gas_limit * 100 if gas_limit else 0.0
            timestamp = datetime.fromtimestamp(_hex_int(block.get("timestamp")), tz=timezone.utc)
            lines += [
                "",
                "Latest Block Information:",
                f"Block Hash: {block.get('hash')}",
                f"Timestamp: {timestamp.isoformat()}",
                f"Gas Used: {gas_used:,} / {gas_limit:,} ({utilization:.2f}%)",
                f"Transactions: {len(block.get('transactions') or [])}",
            ]
        return "\n".join(lines)

    async def validate_transaction(self, params: Dict[str, Any]) -> str:
        chain_id, raw = params["chainId"], params["signedTransactionData"]
        hex_length, tx_type = inspect_raw_transaction(raw)

        lines = [
            f"Transaction Validation for Chain {chain_id}:",
            "",
            "Transaction Format: Valid hex format",
            f"Transaction Length: {len(raw)} characters",
            f"Transaction Size: {hex_length} hex characters ({(hex_length + 1) // 2} bytes)",
            f"Estimated Type: {tx_type}",
            "",
        ]

        try:
            receipt = (await self.get_transaction_receipt({"chainId": chain_id, "transactionHash": raw})).get("result")
        except httpx.HTTPError:
            receipt = None
        if receipt:
            lines += [
                "Transaction already exists on chain:",
                f"Block Number: {_hex_int(receipt.get('blockNumber'))}",
                f"Status: {'Success' if receipt.get('status') == '0x1' else 'Failed'}",
                f"Gas Used: {_hex_int(receipt.get('gasUsed')):,}",
            ]
        else:
            lines.append("Transaction Status: Not yet broadcasted")

        lines += ["", f"Ready to send: Transaction appears valid for chain {chain_id}"]
        return "\n".join(lines)
