from collections import Counter
from datetime import datetime, timezone
from typing import Any, Dict, List

from mcp_oneinch.models import prop, prompt, resource, tool
from mcp_oneinch.services.base import BaseService, pick
from mcp_oneinch.services.chains import supported_chains

_ADDRESS = prop("string", "Wallet address")
_ADDRESSES = prop("array", "List of wallet addresses", items={"type": "string"})
_CHAIN_ID = prop("number", "Blockchain network ID")
_CHAIN_IDS = prop("array", "Array of chain IDs", items={"type": "number"})
_LIMIT = prop("number", "Number of events (default 100, max 2048)", default=100)
_FROM = prop("string", "Starting timestamp in milliseconds")
_TO = prop("string", "Latest timestamp in milliseconds")
_TOKEN = prop("string", "Filter by token address")

DEFAULT_LIMIT = 100
SWAP_TRANSACTION_TYPES = ["Swap", "SwapExactInput", "SwapExactOutput"]
RECENT_EVENTS = 5
LISTED_SWAPS = 10

EVENT_TYPES = {
    "eventTypes": [
        "Swap", "Transfer", "Approve", "AddLiquidity", "RemoveLiquidity", "Stake", "Unstake", "Claim",
        "Mint", "Burn", "Bridge", "CrossChainSwap", "FusionSwap", "OrderFill", "OrderCancel", "OrderExpire",
    ],
    "description": "Supported event types for filtering history events",
}

HISTORY_DOCUMENTATION = """# 1inch History API Documentation

## Overview
Transaction history and events of wallets across the supported networks.

## Endpoints

### GET /history/v2.0/history/{address}/events
Query: limit (default 100, max 2048), tokenAddress, chainId, fromTimestampMs, toTimestampMs.

### POST /history/v2.0/history/{address}/events
Body: {"filter": {"chain_ids": [...], "limit": n, "from_time_ms": n, "to_time_ms": n, "token_addresses": [...]}}
Chain IDs are sent as strings.

### POST /history/v2.0/history/{address}/search/events
Body: {"filter": {"and": {"and": {"chain_ids": [...], "transaction_types": [...]},
"or": {"from_or_to_address": "..."}}, "limit": n}}
Swap events use this endpoint with transaction_types Swap, SwapExactInput and SwapExactOutput.

## Event Shape
id, address, type, rating, timeMs and details (txHash, chainId, blockNumber, status,
tokenActions with address, standard, fromAddress, toAddress, amount, direction).
"""


def _events(response: Any) -> List[Dict[str, Any]]:
    # The API answers with a bare list or wraps it under items or data
    if isinstance(response, list):
        return response
    if isinstance(response, dict):
        return response.get("items") or response.get("data") or []
    return []


def _iso(time_ms: Any) -> str:
    return datetime.fromtimestamp((time_ms or 0) / 1000, tz=timezone.utc).isoformat()


def _token_actions(event: Dict[str, Any]) -> List[Dict[str, Any]]:
    return event.get("tokenActions") or (event.get("details") or {}).get("tokenActions") or []


def _time_window(params: Dict[str, Any]) -> Dict[str, int]:
    window = {}
    if params.get("fromTimestampMs"):
        window["from_time_ms"] = int(params["fromTimestampMs"])
    if params.get("toTimestampMs"):
        window["to_time_ms"] = int(params["toTimestampMs"])
    return window


class HistoryService(BaseService):
    """
    Wallet history events.

    The POST endpoints take the first address of ``addresses`` as the path
    subject; the remaining addresses are not sent.
    """

    TOOLS = (
        tool("get_history_events", "Get all history events for a specific wallet address on supported networks", {
            "address": _ADDRESS, "limit": _LIMIT, "tokenAddress": _TOKEN, "chainId": _CHAIN_ID,
            "toTimestampMs": _TO, "fromTimestampMs": _FROM,
        }, ("address",)),
        tool("get_history_events_by_address", "Retrieve events for multiple addresses or with advanced filters", {
            "addresses": _ADDRESSES, "chainIds": _CHAIN_IDS, "limit": _LIMIT,
            "fromTimestampMs": _FROM, "toTimestampMs": _TO, "tokenAddress": _TOKEN,
        }, ("addresses",)),
        tool("get_history_events_with_search", "Get history events with enhanced search and filter options", {
            "filter": prop("object", "Search filter", properties={
                "type": prop("string", "Event type filter (swap, transfer, addLiquidity, etc.)"),
                "from": prop("string", "From address filter"),
                "to": prop("string", "To address filter"),
            }),
            "addresses": _ADDRESSES, "chainIds": _CHAIN_IDS, "limit": _LIMIT,
        }, ("addresses",)),
        tool("get_swap_events", "Retrieve only swap-related events for a user", {
            "address": _ADDRESS, "chainId": _CHAIN_ID, "fromTimestampMs": _FROM, "toTimestampMs": _TO,
            "limit": _LIMIT,
        }, ("address", "chainId")),
    )

    RESOURCES = (
        resource("oneinch://history/documentation", "History API Documentation",
                 "Complete documentation for 1inch History API", "text/markdown"),
        resource("oneinch://history/supported-chains", "Supported Chains",
                 "List of supported blockchain chains for history queries"),
        resource("oneinch://history/event-types", "Event Types", "List of supported event types for filtering"),
    )

    PROMPTS = (
        prompt("analyze_wallet_history", "Analyze wallet transaction history and patterns",
               ("address", "Wallet address", True),
               ("chainId", "Chain ID for filtering", False),
               ("limit", "Number of events to analyze", False)),
        prompt("get_swap_analysis", "Analyze swap activities for a wallet",
               ("address", "Wallet address", True),
               ("chainId", "Chain ID", True),
               ("fromTimestampMs", "Start timestamp", False),
               ("toTimestampMs", "End timestamp", False)),
    )

    TOOL_HANDLERS = {
        "get_history_events": "get_history_events",
        "get_history_events_by_address": "get_history_events_by_address",
        "get_history_events_with_search": "get_history_events_with_search",
        "get_swap_events": "get_swap_events",
    }
    RESOURCE_HANDLERS = {
        "oneinch://history/documentation": "documentation",
        "oneinch://history/supported-chains": "supported_chains",
        "oneinch://history/event-types": "event_types",
    }
    PROMPT_HANDLERS = {
        "analyze_wallet_history": "analyze_wallet_history",
        "get_swap_analysis": "get_swap_analysis",
    }

    @staticmethod
    def _path(address: str, *segments: str) -> str:
        return "/".join((f"/history/v2.0/history/{address}",) + segments)

    async def get_history_events(self, params: Dict[str, Any]) -> Any:
        return await self.make_request(
            self._path(params["address"], "events"),
            pick(params, "limit", "tokenAddress", "chainId", "toTimestampMs", "fromTimestampMs"),
        )

    async def get_history_events_by_address(self, params: Dict[str, Any]) -> Any:
        history_filter: Dict[str, Any] = {}
        if params.get("chainIds"):
            history_filter["chain_ids"] = [str(chain_id) for chain_id in params["chainIds"]]
        if params.get("limit"):
            history_filter["limit"] = params["limit"]
        history_filter.update(_time_window(params))
        if params.get("tokenAddress"):
            history_filter["token_addresses"] = [params["tokenAddress"]]

        return await self.make_post_request(
            self._path(params["addresses"][0], "events"), {"filter": history_filter}
        )

    async def get_history_events_with_search(self, params: Dict[str, Any]) -> Any:
        search = params.get("filter") or {}
        all_of: Dict[str, Any] = {}
        if params.get("chainIds"):
            all_of["chain_ids"] = [str(chain_id) for chain_id in params["chainIds"]]
        if search.get("type"):
            all_of["transaction_types"] = [search["type"]]

        any_of: Dict[str, Any] = {}
        # One counterparty slot; "to" wins when both are given
        counterparty = search.get("to") or search.get("from")
        if counterparty:
            any_of["from_or_to_address"] = counterparty

        search_filter: Dict[str, Any] = {"and": {"and": all_of, "or": any_of}}
        if params.get("limit"):
            search_filter["limit"] = params["limit"]
        return await self.make_post_request(
            self._path(params["addresses"][0], "search", "events"), {"filter": search_filter}
        )

    async def get_swap_events(self, params: Dict[str, Any]) -> Any:
        swap_filter: Dict[str, Any] = {
            "and": {
                "and": {"chain_ids": [str(params["chainId"])], "transaction_types": SWAP_TRANSACTION_TYPES},
                "or": {},
            },
        }
        if params.get("limit"):
            swap_filter["limit"] = params["limit"]
        swap_filter.update(_time_window(params))
        return await self.make_post_request(
            self._path(params["address"], "search", "events"), {"filter": swap_filter}
        )

    async def documentation(self) -> str:
        return HISTORY_DOCUMENTATION

    async def supported_chains(self) -> Dict[str, Any]:
        return supported_chains("Supported blockchain chains for history queries")

    async def event_types(self) -> Dict[str, Any]:
        return EVENT_TYPES

    async def analyze_wallet_history(self, params: Dict[str, Any]) -> str:
        address, chain_id = params["address"], params.get("chainId")
        query = {"address": address, "chainId": chain_id, "limit": params.get("limit") or DEFAULT_LIMIT}
        events = _events(await self.get_history_events(query))

        title = f"Wallet History Analysis for {address}"
        if chain_id:
            title += f" on Chain {chain_id}"
        lines = [f"{title}:", "", f"Total Events: {len(events)}", "", "Event Type Breakdown:"]
        lines += [f"- {kind}: {count} events" for kind, count in Counter(e.get("type") for e in events).items()]

        if events:
            lines += [
                "",
                "Time Range:",
                f"- Latest: {_iso(events[0].get('timeMs'))}",
                f"- Oldest: {_iso(events[-1].get('timeMs'))}",
                "",
                "Recent Activity:",
            ]
            for index, event in enumerate(events[:RECENT_EVENTS], start=1):
                line = f"{index}. {event.get('type')} - {_iso(event.get('timeMs'))}"
                tx_hash = (event.get("details") or {}).get("txHash")
                if tx_hash:
                    line += f" (Tx: {tx_hash[:10]}...)"
                lines.append(line)
        return "\n".join(lines)

    async def get_swap_analysis(self, params: Dict[str, Any]) -> str:
        address, chain_id = params["address"], params["chainId"]
        events = _events(await self.get_swap_events(
            {"address": address, "chainId": chain_id, **pick(params, "fromTimestampMs", "toTimestampMs")}
        ))

        lines = [f"Swap Analysis for {address} on Chain {chain_id}:", "", f"Total Swap Events: {len(events)}"]
        if events:
            volume = sum(float(action.get("amount") or 0) for e in events for action in _token_actions(e))
            lines += [f"Total Volume: {volume:.6f}", "", "Swap Details:"]
            for index, event in enumerate(events[:LISTED_SWAPS], start=1):
                lines.append(f"{index}. {event.get('type')} - {_iso(event.get('timeMs'))}")
                tx_hash = (event.get("details") or {}).get("txHash")
                if tx_hash:
                    lines.append(f"   Tx: {tx_hash}")
                actions = _token_actions(event)
                if actions:
                    lines.append(f"   Actions: {len(actions)} token actions")
        return "\n".join(lines)
