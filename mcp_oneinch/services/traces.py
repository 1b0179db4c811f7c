from collections import Counter
from typing import Any, Dict, List, Optional

from mcp_oneinch.models import prop, prompt, resource, tool
from mcp_oneinch.services.base import BaseService

_CHAIN = prop("number", "Chain ID (e.g., 1 for Ethereum, 137 for Polygon, etc.)")

TRACES_NETWORKS = (
    (1, "ethereum", "Ethereum Mainnet"),
    (137, "polygon", "Polygon"),
    (56, "bsc", "BNB Smart Chain"),
    (42161, "arbitrum", "Arbitrum One"),
    (10, "optimism", "Optimism"),
    (8453, "base", "Base"),
    (43114, "avalanche", "Avalanche C-Chain"),
    (250, "fantom", "Fantom Opera"),
    (324, "zksync", "zkSync Era"),
    (59144, "linea", "Linea"),
    (534352, "scroll", "Scroll"),
    (81457, "blast", "Blast"),
)

TRACES_DOCUMENTATION = """# 1inch Traces API Documentation

## Overview
Step-by-step execution traces of blocks and transactions.

## Endpoints
- GET /traces/v1.0/chain/{chain}/synced-interval
  Range of indexed blocks: {"from": n, "to": n}
- GET /traces/v1.0/chain/{chain}/block-trace/{block_number}
  Trace of every transaction in a block: type, version, number, blockHash, blockTimestamp, traces.
- GET /traces/v1.0/chain/{chain}/block-trace/{block_number}/tx-hash/{tx_hash}
  Trace of one transaction: {"transactionTrace": [...], "type": "..."}
- GET /traces/v1.0/chain/{chain}/block-trace/{block_number}/offset/{tx_offset}
  Trace of the transaction at an index in the block (the first one is 0).

## Trace Steps
type (call, create, ...), action, result, subtraces, traceAddress and error when the step failed.
"""


def _operation_counts(steps: Optional[List[Dict[str, Any]]]) -> Counter:
    return Counter(step.get("type") for step in steps or [])


class TracesService(BaseService):
    """Block and transaction traces."""

    TOOLS = (
        tool("get_synced_interval",
             "Get the range of blocks for which transaction traces are currently indexed and available", {
                 "chain": _CHAIN,
             }, ("chain",)),
        tool("get_block_trace", "Get the full trace of all transactions and contract operations for an entire block", {
            "chain": _CHAIN, "blockNumber": prop("string", "The block number to trace"),
        }, ("chain", "blockNumber")),
        tool("get_transaction_trace_by_hash",
             "Get step-by-step trace for a specific transaction identified by its hash within the specified block", {
                 "chain": _CHAIN,
                 "blockNumber": prop("string", "The block number"),
                 "txHash": prop("string", "The transaction hash"),
             }, ("chain", "blockNumber", "txHash")),
        tool("get_transaction_trace_by_offset", "Get trace for the transaction at the specified index within the block", {
            "chain": _CHAIN,
            "blockNumber": prop("string", "The block number"),
            "offset": prop("number", "Index (offset) of the transaction in the block (e.g. first transaction is 0)"),
        }, ("chain", "blockNumber", "offset")),
    )

    RESOURCES = (
        resource("oneinch://traces/documentation", "Traces API Documentation",
                 "Complete documentation for 1inch Traces API", "text/markdown"),
        resource("oneinch://traces/supported-chains", "Supported Chains",
                 "List of supported blockchain chains for traces queries"),
    )

    PROMPTS = (
        prompt("analyze_block_traces", "Analyze traces for a specific block",
               ("chain", "Chain ID", True),
               ("blockNumber", "Block number", True)),
        prompt("analyze_transaction_trace", "Analyze trace for a specific transaction",
               ("chain", "Chain ID", True),
               ("blockNumber", "Block number", True),
               ("txHash", "Transaction hash", True)),
    )

    TOOL_HANDLERS = {
        "get_synced_interval": "get_synced_interval",
        "get_block_trace": "get_block_trace",
        "get_transaction_trace_by_hash": "get_transaction_trace_by_hash",
        "get_transaction_trace_by_offset": "get_transaction_trace_by_offset",
    }
    RESOURCE_HANDLERS = {
        "oneinch://traces/documentation": "documentation",
        "oneinch://traces/supported-chains": "supported_chains",
    }
    PROMPT_HANDLERS = {
        "analyze_block_traces": "analyze_block_traces",
        "analyze_transaction_trace": "analyze_transaction_trace",
    }

    @staticmethod
    def _block_path(chain: Any, block_number: Any) -> str:
        return f"/traces/v1.0/chain/{chain}/block-trace/{block_number}"

    async def get_synced_interval(self, params: Dict[str, Any]) -> Any:
        return await self.make_request(f"/traces/v1.0/chain/{params['chain']}/synced-interval")

    async def get_block_trace(self, params: Dict[str, Any]) -> Any:
        return await self.make_request(self._block_path(params["chain"], params["blockNumber"]))

    async def get_transaction_trace_by_hash(self, params: Dict[str, Any]) -> Any:
        path = self._block_path(params["chain"], params["blockNumber"])
        return await self.make_request(f"{path}/tx-hash/{params['txHash']}")

    async def get_transaction_trace_by_offset(self, params: Dict[str, Any]) -> Any:
        path = self._block_path(params["chain"], params["blockNumber"])
        return await self.make_request(f"{path}/offset/{params['offset']}")

    async def documentation(self) -> str:
        return TRACES_DOCUMENTATION

    async def supported_chains(self) -> Dict[str, Any]:
        return {
            "chains": [
                {"id": chain_id, "name": name, "description": description}
                for chain_id, name, description in TRACES_NETWORKS
            ],
            "description": "Supported blockchain chains for traces queries",
        }

    async def _out_of_range(self, chain: Any, block_number: Any) -> Optional[str]:
        """Explanation when the block is outside the indexed interval, else None."""
        interval = await self.get_synced_interval({"chain": chain})
        if interval["from"] <= int(block_number) <= interval["to"]:
            return None
        return (
            f"Block {block_number} is not available for tracing on chain {chain}. "
            f"Available range: {interval['from']} to {interval['to']}"
        )

    async def analyze_block_traces(self, params: Dict[str, Any]) -> str:
        chain, block_number = params["chain"], params["blockNumber"]
        unavailable = await self._out_of_range(chain, block_number)
        if unavailable:
            return unavailable

        traces = (await self.get_block_trace({"chain": chain, "blockNumber": block_number})).get("traces") or []
        lines = [
            f"Block Trace Analysis for Block {block_number} on chain {chain}:",
            "",
            f"Total Transactions: {len(traces)}",
            "",
            "Transaction Details:",
        ]
        for index, tx in enumerate(traces, start=1):
            steps = tx.get("trace")
            lines.append(f"{index}. Transaction {tx.get('txHash')} (Offset: {tx.get('txOffset')})")
            lines.append(f"   - Trace Steps: {len(steps or [])}")
            lines += [f"   - {kind}: {count}" for kind, count in _operation_counts(steps).items()]
        return "\n".join(lines)

    async def analyze_transaction_trace(self, params: Dict[str, Any]) -> str:
        chain, block_number, tx_hash = params["chain"], params["blockNumber"], params["txHash"]
        unavailable = await self._out_of_range(chain, block_number)
        if unavailable:
            return unavailable

        trace = await self.get_transaction_trace_by_hash(
            {"chain": chain, "blockNumber": block_number, "txHash": tx_hash}
        )
        steps = trace.get("transactionTrace") or []
        lines = [
            f"Transaction Trace Analysis for {tx_hash} on chain {chain}:",
            "",
            f"Total Trace Steps: {len(steps)}",
            "",
            "Trace Step Analysis:",
        ]
        lines += [f"- {kind}: {count}" for kind, count in _operation_counts(steps).items()]

        errors = [step["error"] for step in steps if step.get("error")]
        if errors:
            lines += ["", f"Errors Found: {len(errors)}"]
            lines += [f"{index}. {error}" for index, error in enumerate(errors, start=1)]
        return "\n".join(lines)
