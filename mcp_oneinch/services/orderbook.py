from typing import Any, Dict, List

from mcp_oneinch.models import chain_prop, prop, prompt, resource, tool
from mcp_oneinch.services.base import BaseService, pick
from mcp_oneinch.services.chains import supported_chains

_CHAIN = chain_prop("Chain ID of the network")
_ORDER_HASH = prop("string", "Order hash")

_ORDER_DATA_FIELDS = (
    ("makerAsset", "Maker asset address"),
    ("takerAsset", "Taker asset address"),
    ("maker", "Maker address"),
    ("receiver", "Receiver address"),
    ("makingAmount", "Making amount"),
    ("takingAmount", "Taking amount"),
    ("salt", "Order salt"),
    ("extension", "Order extension"),
    ("makerTraits", "Maker traits"),
)

_ORDER_DATA = {
    "type": "object",
    "description": "Limit order data",
    "properties": {name: prop("string", description) for name, description in _ORDER_DATA_FIELDS},
    "required": [name for name, _ in _ORDER_DATA_FIELDS],
}

_ORDER_FILTERS = {
    "page": prop("number", "Page number"),
    "limit": prop("number", "Number of orders to return", default=100),
    "statuses": prop("string", "Comma separated order statuses"),
    "sortBy": prop("string", "Sort field"),
    "makerAsset": prop("string", "Filter by maker asset address"),
    "takerAsset": prop("string", "Filter by taker asset address"),
}

ORDERBOOK_DOCUMENTATION = """# 1inch Orderbook API Documentation

## Overview
Submit and query limit orders of the 1inch Limit Order Protocol v4.

## Endpoints
- POST /orderbook/v4.0/{chain}: submit a signed limit order {orderHash, signature, data}
- GET /orderbook/v4.0/{chain}/address/{address}: orders of a maker
- GET /orderbook/v4.0/{chain}/order/{orderHash}: one order
- GET /orderbook/v4.0/{chain}/all: all orders (limit, offset, page, statuses, sortBy, makerAsset, takerAsset, maker)
- GET /orderbook/v4.0/{chain}/count: order count (makerAsset, takerAsset, maker, statuses)
- GET /orderbook/v4.0/{chain}/events/{orderHash}: fill/cancel events of an order
- GET /orderbook/v4.0/{chain}/events: all events (limit, offset, orderHash, eventType, fromTimestamp, toTimestamp)
- GET /orderbook/v4.0/{chain}/has-active-orders-with-permit/{walletAddress}/{token}
- GET /orderbook/v4.0/{chain}/unique-active-pairs
- GET /orderbook/v4.0/{chain}/fee-info: making amount for a taking amount

See oneinch://orderbook/order-format for the order structure.
"""

ORDER_FORMAT = """# 1inch Limit Order Format Specification

## Order Data Object
```json
{
  "makerAsset": "string",
  "takerAsset": "string",
  "maker": "string",
  "receiver": "string",
  "makingAmount": "string",
  "takingAmount": "string",
  "salt": "string",
  "extension": "string",
  "makerTraits": "string"
}
```

- makerAsset / takerAsset: token offered / requested
- makingAmount / takingAmount: amounts in token smallest units, as strings
- salt: unique random value
- extension: extra order data, usually "0x"
- makerTraits: maker flags, usually "0"

## Order Hash and Signature
The order hash is derived deterministically from the order data. The signature is the
maker's signature over that hash.

## Order States
- Active: available for matching
- Filled: completely filled
- Cancelled: cancelled by the maker
- Expired: past its expiration time

## Event Types
- fill: order was partially or completely filled
- cancel: order was cancelled by the maker

## Errors
- 400: invalid input parameters
- 403: too many orders
- 404: order not found
"""


class OrderbookService(BaseService):
    """1inch Limit Order Protocol orderbook."""

    TOOLS = (
        tool("add_limit_order", "Include a limit order to the 1inch limit orders database", {
            "chain": _CHAIN,
            "orderHash": _ORDER_HASH,
            "signature": prop("string", "Order signature"),
            "data": _ORDER_DATA,
        }, ("chain", "orderHash", "signature", "data")),
        tool("get_orders_by_address", "Get limit orders belonging to the specified address", {
            "chain": _CHAIN,
            "address": prop("string", "Wallet address"),
            **_ORDER_FILTERS,
        }, ("chain", "address")),
        tool("get_order_by_hash", "Get the order details by the specified order hash", {
            "chain": _CHAIN, "orderHash": _ORDER_HASH,
        }, ("chain", "orderHash")),
        tool("get_all_orders", "Get all limit orders on the 1inch orderbook for a chain", {
            "chain": _CHAIN,
            **_ORDER_FILTERS,
            "offset": prop("number", "Number of orders to skip", default=0),
            "maker": prop("string", "Filter by maker address"),
        }, ("chain",)),
        tool("get_orders_count", "Get the total count of orders by specified filters", {
            "chain": _CHAIN,
            "makerAsset": prop("string", "Filter by maker asset address"),
            "takerAsset": prop("string", "Filter by taker asset address"),
            "maker": prop("string", "Filter by maker address"),
            "status": prop("string", "Filter by order status"),
        }, ("chain",)),
        tool("get_order_events", "Get fill/cancel events related to a specific order", {
            "chain": _CHAIN, "orderHash": _ORDER_HASH,
        }, ("chain", "orderHash")),
        tool("get_all_events", "Get all order fill/cancel events", {
            "chain": _CHAIN,
            "limit": prop("number", "Number of events to return", default=100),
            "offset": prop("number", "Number of events to skip", default=0),
            "orderHash": prop("string", "Filter by order hash"),
            "eventType": prop("string", "Filter by event type", enum=["fill", "cancel"]),
            "fromTimestamp": prop("string", "Filter events from timestamp"),
            "toTimestamp": prop("string", "Filter events to timestamp"),
        }, ("chain",)),
        tool("get_active_orders_for_permit",
             "Get all active orders that have permit for the specified wallet address and token", {
                 "chain": _CHAIN,
                 "walletAddress": prop("string", "Wallet address"),
                 "token": prop("string", "Token address"),
             }, ("chain", "walletAddress", "token")),
        tool("get_active_pairs", "Get all unique active token pairs on the orderbook", {
            "chain": _CHAIN,
            "page": prop("number", "Page number"),
            "limit": prop("number", "Number of pairs to return"),
        }, ("chain",)),
        tool("get_making_amount",
             "Get the calculated making amount on a trading pair by the provided taking amount", {
                 "chain": _CHAIN,
                 "makerAsset": prop("string", "Maker asset address"),
                 "takerAsset": prop("string", "Taker asset address"),
                 "takingAmount": prop("string", "Taking amount"),
                 "maker": prop("string", "Maker address (optional)"),
             }, ("chain", "makerAsset", "takerAsset", "takingAmount")),
    )

    RESOURCES = (
        resource("oneinch://orderbook/documentation", "Orderbook API Documentation",
                 "Complete documentation for 1inch Orderbook API", "text/markdown"),
        resource("oneinch://orderbook/supported-chains", "Supported Chains",
                 "List of supported blockchain chains for orderbook operations"),
        resource("oneinch://orderbook/order-format", "Order Format Specification",
                 "Detailed specification for limit order format and structure", "text/markdown"),
    )

    PROMPTS = (
        prompt("analyze_orderbook_activity", "Analyze orderbook activity and market trends",
               ("chain", "Chain ID", True),
               ("makerAsset", "Maker asset address for analysis", False),
               ("takerAsset", "Taker asset address for analysis", False),
               ("timeframe", "Timeframe for analysis (24h, 7d, 30d)", False)),
        prompt("monitor_user_orders", "Monitor and analyze user orders and their status",
               ("chain", "Chain ID", True),
               ("address", "User wallet address", True)),
    )

    TOOL_HANDLERS = {
        "add_limit_order": "add_limit_order",
        "get_orders_by_address": "get_orders_by_address",
        "get_order_by_hash": "get_order_by_hash",
        "get_all_orders": "get_all_orders",
        "get_orders_count": "get_orders_count",
        "get_order_events": "get_order_events",
        "get_all_events": "get_all_events",
        "get_active_orders_for_permit": "get_active_orders_for_permit",
        "get_active_pairs": "get_active_pairs",
        "get_making_amount": "get_making_amount",
    }
    RESOURCE_HANDLERS = {
        "oneinch://orderbook/documentation": "documentation",
        "oneinch://orderbook/supported-chains": "supported_chains",
        "oneinch://orderbook/order-format": "order_format",
    }
    PROMPT_HANDLERS = {
        "analyze_orderbook_activity": "analyze_orderbook_activity",
        "monitor_user_orders": "monitor_user_orders",
    }

    @staticmethod
    def _path(chain: Any, *segments: str) -> str:
        return "/".join((f"/orderbook/v4.0/{chain}",) + segments)

    async def add_limit_order(self, params: Dict[str, Any]) -> Any:
        return await self.make_post_request(
            self._path(params["chain"]), pick(params, "orderHash", "signature", "data")
        )

    async def get_orders_by_address(self, params: Dict[str, Any]) -> Any:
        return await self.make_request(
            self._path(params["chain"], "address", params["address"]),
            pick(params, "page", "limit", "statuses", "sortBy", "takerAsset", "makerAsset"),
        )

    async def get_order_by_hash(self, params: Dict[str, Any]) -> Any:
        return await self.make_request(self._path(params["chain"], "order", params["orderHash"]))

    async def get_all_orders(self, params: Dict[str, Any]) -> Any:
        return await self.make_request(
            self._path(params["chain"], "all"),
            pick(params, "page", "limit", "offset", "statuses", "sortBy", "takerAsset", "makerAsset", "maker"),
        )

    async def get_orders_count(self, params: Dict[str, Any]) -> Any:
        query = pick(params, "makerAsset", "takerAsset", "maker")
        if params.get("status"):
            query["statuses"] = params["status"]
        return await self.make_request(self._path(params["chain"], "count"), query)

    async def get_order_events(self, params: Dict[str, Any]) -> Any:
        return await self.make_request(self._path(params["chain"], "events", params["orderHash"]))

    async def get_all_events(self, params: Dict[str, Any]) -> Any:
        return await self.make_request(
            self._path(params["chain"], "events"),
            pick(params, "limit", "offset", "orderHash", "eventType", "fromTimestamp", "toTimestamp"),
        )

    async def get_active_orders_for_permit(self, params: Dict[str, Any]) -> Any:
        return await self.make_request(
            self._path(params["chain"], "has-active-orders-with-permit", params["walletAddress"], params["token"])
        )

    async def get_active_pairs(self, params: Dict[str, Any]) -> Any:
        return await self.make_request(
            self._path(params["chain"], "unique-active-pairs"), pick(params, "page", "limit")
        )

    async def get_making_amount(self, params: Dict[str, Any]) -> Any:
        query = pick(params, "makerAsset", "takerAsset", "maker")
        query["takerAmount"] = params["takingAmount"]
        return await self.make_request(self._path(params["chain"], "fee-info"), query)

    async def documentation(self) -> str:
        return ORDERBOOK_DOCUMENTATION

    async def supported_chains(self) -> Dict[str, Any]:
        return supported_chains("Supported blockchain chains for orderbook operations")

    async def order_format(self) -> str:
        return ORDER_FORMAT

    async def analyze_orderbook_activity(self, params: Dict[str, Any]) -> str:
        chain = params["chain"]
        maker_asset, taker_asset = params.get("makerAsset"), params.get("takerAsset")
        timeframe = params.get("timeframe") or "24h"

        orders: List[Dict[str, Any]] = await self.get_all_orders({"chain": chain, "limit": 1000})
        pairs = (await self.get_active_pairs({"chain": chain})).get("items", [])

        lines = [
            f"Orderbook Activity Analysis for Chain {chain} ({timeframe}):",
            "",
            f"Total Orders: {len(orders)}",
            f"Active Pairs: {len(pairs)}",
            "",
        ]

        if maker_asset or taker_asset:
            matching = [
                order for order in orders
                if (not maker_asset or order["data"]["makerAsset"] == maker_asset)
                and (not taker_asset or order["data"]["takerAsset"] == taker_asset)
            ]
            lines += [f"Filtered Orders ({maker_asset or 'any'} → {taker_asset or 'any'}): {len(matching)}", ""]
            if matching:
                lines.append(f"Total Making Amount: {sum(int(o['data']['makingAmount']) for o in matching)}")
                lines.append(f"Total Taking Amount: {sum(int(o['data']['takingAmount']) for o in matching)}")

        lines += ["", "Top Active Trading Pairs:"]
        for index, pair in enumerate(pairs[:5], start=1):
            lines.append(f"{index}. {pair.get('makerAsset')} → {pair.get('takerAsset')}")
        return "\n".join(lines)

    async def monitor_user_orders(self, params: Dict[str, Any]) -> str:
        chain, address = params["chain"], params["address"]
        orders: List[Dict[str, Any]] = await self.get_orders_by_address({"chain": chain, "address": address})

        lines = [f"User Order Monitor for {address} on Chain {chain}:", "", f"Total Orders: {len(orders)}", ""]
        if not orders:
            lines.append("No orders found for this address.")
            return "\n".join(lines)

        # An order without an invalid reason is still fillable
        active = [order for order in orders if not order.get("orderInvalidReason")]
        lines += [
            f"Active Orders: {len(active)}",
            f"Invalid Orders: {len(orders) - len(active)}",
        ]
        if active:
            lines += ["", "Recent Active Orders:"]
            for index, order in enumerate(active[:5], start=1):
                data = order["data"]
                lines += [
                    f"{index}. {data['makerAsset']} → {data['takerAsset']}",
                    f"   Making: {data['makingAmount']}",
                    f"   Taking: {data['takingAmount']}",
                    f"   Created: {order.get('createDateTime')}",
                ]
        return "\n".join(lines)
