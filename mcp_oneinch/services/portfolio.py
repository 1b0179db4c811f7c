from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from mcp_oneinch.models import prop, prompt, resource, tool
from mcp_oneinch.services.base import BaseService, as_list
from mcp_oneinch.services.chains import supported_chains

BASE_PATH = "/portfolio/portfolio/v5.0"

# Chart intervals accepted by the tool -> timerange understood by the API
TIMERANGES = {"hour": "1day", "day": "1day", "week": "1week", "month": "1month"}

SUPPORTED_PROTOCOLS = (
    ("uniswap_v3", "Uniswap V3", "DEX", "Automated market maker with concentrated liquidity"),
    ("uniswap_v2", "Uniswap V2", "DEX", "Automated market maker with constant product formula"),
    ("sushiswap", "SushiSwap", "DEX", "Community-driven DEX with yield farming"),
    ("aave_v3", "Aave V3", "Lending", "Decentralized lending and borrowing protocol"),
    ("compound_v3", "Compound V3", "Lending", "Algorithmic interest rate protocol"),
    ("curve", "Curve Finance", "DEX", "Stablecoin-focused automated market maker"),
    ("balancer", "Balancer", "DEX", "Flexible automated market maker"),
    ("yearn_finance", "Yearn Finance", "Yield", "Automated yield farming and vault strategies"),
    ("convex_finance", "Convex Finance", "Yield", "CRV staking and yield optimization"),
    ("lido", "Lido", "Staking", "Liquid staking for Ethereum"),
    ("rocket_pool", "Rocket Pool", "Staking", "Decentralized Ethereum staking protocol"),
    ("frax_finance", "Frax Finance", "Stablecoin", "Fractional-algorithmic stablecoin protocol"),
    ("makerdao", "MakerDAO", "Stablecoin", "Decentralized stablecoin and lending protocol"),
)

_ADDRESSES = prop("array", "List of wallet addresses", items={"type": "string"})
_CHAINS = prop("array", "List of chain IDs to filter by", items={"type": "number"})
_PROTOCOLS = prop("array", "List of protocol IDs to filter by", items={"type": "string"})

PORTFOLIO_DOCUMENTATION = """# 1inch Portfolio API v5 Documentation

## Overview
Portfolio value, positions and performance of wallets across chains and DeFi protocols.

## General
- GET /portfolio/portfolio/v5.0/general/status: service availability
- GET /portfolio/portfolio/v5.0/general/address_check: compliance check of addresses
- GET /portfolio/portfolio/v5.0/general/supported_chains
- GET /portfolio/portfolio/v5.0/general/supported_protocols
- GET /portfolio/portfolio/v5.0/general/current_value: value breakdown by chain and protocol
- GET /portfolio/portfolio/v5.0/general/chart: value over time (timerange 1day, 1week, 1month)
- GET /portfolio/portfolio/v5.0/general/report: overview report

## Protocols
- GET /portfolio/portfolio/v5.0/protocols/snapshot: current protocol positions
- GET /portfolio/portfolio/v5.0/protocols/metrics: APR and rewards per protocol

## Tokens
- GET /portfolio/portfolio/v5.0/tokens/snapshot: current ERC20 holdings
- GET /portfolio/portfolio/v5.0/tokens/metrics: profit and loss per token

## Common Parameters
- addresses: wallet addresses (repeated)
- chain_id: chain filter (repeated)
- protocol_group_id / contract_address: protocol or token filters
"""


def _signed_usd(value: float) -> str:
    return f"{'+' if value > 0 else ''}${value:,}"


class PortfolioService(BaseService):
    """1inch Portfolio API v5."""

    TOOLS = (
        tool("check_service_status", "Check if the portfolio service is available and operational", {}),
        tool("check_compliance", "Check if addresses are compliant for portfolio operations", {
            "addresses": prop("array", "List of wallet addresses to check for compliance", items={"type": "string"}),
        }, ("addresses",)),
        tool("get_supported_chains", "Get list of blockchain chains supported by the portfolio API", {}),
        tool("get_supported_protocols", "Get list of DeFi protocols supported by the portfolio API", {}),
        tool("get_current_portfolio_value",
             "Get current portfolio value breakdown for addresses, chains, and protocols", {
                 "addresses": _ADDRESSES, "chains": _CHAINS, "protocols": _PROTOCOLS,
             }),
        tool("get_value_chart", "Get time series data for portfolio value over time", {
            "from": prop("number", "Start timestamp for the chart data"),
            "to": prop("number", "End timestamp for the chart data"),
            "addresses": _ADDRESSES,
            "chains": _CHAINS,
            "protocols": _PROTOCOLS,
            "interval": prop("string", "Time interval for data points", enum=list(TIMERANGES), default="day"),
        }, ("from", "to")),
        tool("get_overview_report", "Get comprehensive overview report of portfolio performance and analytics", {
            "addresses": _ADDRESSES,
            "chains": _CHAINS,
            "protocols": _PROTOCOLS,
            "from": prop("number", "Start timestamp for historical comparison"),
            "to": prop("number", "End timestamp for historical comparison"),
        }),
        tool("get_protocols_snapshot", "Get snapshot of all protocol positions in the portfolio", {
            "addresses": _ADDRESSES, "chains": _CHAINS, "protocols": _PROTOCOLS,
        }),
        tool("get_protocols_metrics", "Get detailed performance metrics for protocols in the portfolio", {
            "addresses": _ADDRESSES,
            "chains": _CHAINS,
            "protocols": _PROTOCOLS,
            "from": prop("number", "Start timestamp for metrics calculation"),
            "to": prop("number", "End timestamp for metrics calculation"),
        }),
        tool("get_tokens_snapshot", "Get snapshot of current ERC20 tokens in all tracked wallets", {
            "addresses": _ADDRESSES,
            "chains": _CHAINS,
            "tokens": prop("array", "List of token addresses to filter by", items={"type": "string"}),
        }),
        tool("get_tokens_metrics", "Get performance metrics and analytics for tracked tokens", {
            "addresses": _ADDRESSES,
            "chains": _CHAINS,
            "tokens": prop("array", "List of token addresses to filter by", items={"type": "string"}),
            "from": prop("number", "Start timestamp for metrics calculation"),
            "to": prop("number", "End timestamp for metrics calculation"),
        }),
    )

    RESOURCES = (
        resource("oneinch://portfolio/documentation", "Portfolio API Documentation",
                 "Complete documentation for 1inch Portfolio API v5", "text/markdown"),
        resource("oneinch://portfolio/supported-chains", "Supported Chains",
                 "List of supported blockchain chains for portfolio operations"),
        resource("oneinch://portfolio/supported-protocols", "Supported Protocols",
                 "List of supported DeFi protocols for portfolio operations"),
    )

    PROMPTS = (
        prompt("analyze_portfolio_performance",
               "Analyze portfolio performance with comprehensive metrics and breakdowns",
               ("addresses", "List of wallet addresses", True),
               ("chains", "List of chain IDs to filter by", False),
               ("protocols", "List of protocol IDs to filter by", False),
               ("timeframe", "Timeframe for analysis (24h, 7d, 30d)", False)),
        prompt("generate_portfolio_report",
               "Generate comprehensive portfolio report with value, performance, and breakdowns",
               ("addresses", "List of wallet addresses", True),
               ("include_historical", "Include historical data comparison", False)),
    )

    TOOL_HANDLERS = {
        "check_service_status": "check_service_status",
        "check_compliance": "check_compliance",
        "get_supported_chains": "get_supported_chains",
        "get_supported_protocols": "get_supported_protocols",
        "get_current_portfolio_value": "get_current_portfolio_value",
        "get_value_chart": "get_value_chart",
        "get_overview_report": "get_overview_report",
        "get_protocols_snapshot": "get_protocols_snapshot",
        "get_protocols_metrics": "get_protocols_metrics",
        "get_tokens_snapshot": "get_tokens_snapshot",
        "get_tokens_metrics": "get_tokens_metrics",
    }
    RESOURCE_HANDLERS = {
        "oneinch://portfolio/documentation": "documentation",
        "oneinch://portfolio/supported-chains": "supported_chains",
        "oneinch://portfolio/supported-protocols": "supported_protocols",
    }
    PROMPT_HANDLERS = {
        "analyze_portfolio_performance": "analyze_portfolio_performance",
        "generate_portfolio_report": "generate_portfolio_report",
    }

    async def _get(self, endpoint: str, query: Optional[Dict[str, Any]] = None) -> Any:
        return await self.make_request(f"{BASE_PATH}/{endpoint}", query)

    @staticmethod
    def _filters(params: Dict[str, Any], chain_key: str = "chain_id") -> Dict[str, Any]:
        return {"addresses": params.get("addresses"), chain_key: params.get("chains")}

    # --- General ---

    async def check_service_status(self, params: Dict[str, Any]) -> Any:
        return await self._get("general/status")

    async def check_compliance(self, params: Dict[str, Any]) -> Any:
        return await self._get("general/address_check", {"addresses": params["addresses"]})

    async def get_supported_chains(self, params: Dict[str, Any]) -> Dict[str, Any]:
        response = await self._get("general/supported_chains")
        return {
            "chains": [
                {"id": chain["chain_id"], "name": chain["chain_name"], "is_testnet": False}
                for chain in (response or {}).get("result", [])
            ]
        }

    async def get_supported_protocols(self, params: Dict[str, Any]) -> Dict[str, Any]:
        response = await self._get("general/supported_protocols")
        return {
            "protocols": [
                {
                    "id": protocol["protocol_group_id"],
                    "name": protocol["protocol_group_name"],
                    "description": protocol["protocol_group_name"],
                    "category": "DeFi",
                }
                for protocol in (response or {}).get("result", [])
            ]
        }

    async def get_current_portfolio_value(self, params: Dict[str, Any]) -> Dict[str, Any]:
        response = await self._get("general/current_value", {
            **self._filters(params, "chains"),
            "protocols": params.get("protocols"),
        })
        result = (response or {}).get("result") or {}
        total = result.get("total", 0)
        return {
            "total_value": total,
            "breakdown": {
                "by_chain": result.get("by_chain", {}),
                "by_protocol": result.get("by_protocol_group", {}),
                "by_token": {},
            },
            "currencies": {"USD": total},
        }

    async def get_value_chart(self, params: Dict[str, Any]) -> Dict[str, Any]:
        query = {**self._filters(params), "from": params.get("from"), "to": params.get("to")}
        if params.get("interval"):
            query["timerange"] = TIMERANGES.get(params["interval"], "1day")
        response = await self._get("general/chart", query)
        return {
            "data": [
                {"timestamp": point.get("timestamp"), "value": point.get("value_usd")}
                for point in (response or {}).get("result", [])
            ]
        }

    async def get_overview_report(self, params: Dict[str, Any]) -> Any:
        return await self._get("general/report", self._filters(params))

    # --- Protocols ---

    async def get_protocols_snapshot(self, params: Dict[str, Any]) -> Dict[str, Any]:
        response = await self._get("protocols/snapshot", self._filters(params))
        items = (response or {}).get("result", [])
        protocols = []
        for item in items:
            positions = [
                {
                    "token_address": token.get("address"),
                    "token_symbol": token.get("symbol") or "Unknown",
                    "token_name": token.get("name") or "Unknown Token",
                    "balance": str(token.get("amount", 0)),
                    "balance_usd": (token.get("price_usd") or 0) * (token.get("amount") or 0),
                }
                for token in item.get("underlying_tokens") or []
            ]
            protocols.append({
                "protocol_id": item.get("protocol_group_id"),
                "protocol_name": item.get("protocol_group_name"),
                "chain_id": item.get("chain_id"),
                "chain_name": item.get("chain_name") or f"Chain {item.get('chain_id')}",
                "address": item.get("address"),
                "positions": positions,
                "total_value": item.get("value_usd", 0),
            })
        return {
            "protocols": protocols,
            "summary": {
                "total_value": sum(item.get("value_usd", 0) for item in items),
                "total_positions": len(items),
                "active_protocols": len(items),
            },
        }

    async def get_protocols_metrics(self, params: Dict[str, Any]) -> Dict[str, Any]:
        response = await self._get("protocols/metrics", {
            **self._filters(params),
            "protocol_group_id": params.get("protocols"),
        })
        return {
            "protocols": [
                {
                    "protocol_id": item.get("protocol_group_id"),
                    "protocol_name": item.get("protocol_group_name"),
                    "chain_id": item.get("chain_id"),
                    "chain_name": item.get("chain_name") or f"Chain {item.get('chain_id')}",
                    "address": item.get("address"),
                    "metrics": {
                        "current_apr": item.get("weighted_apr") or 0,
                        "fees_earned_total": item.get("rewards_usd") or 0,
                    },
                }
                for item in (response or {}).get("result", [])
            ]
        }

    # --- Tokens ---

    async def get_tokens_snapshot(self, params: Dict[str, Any]) -> Dict[str, Any]:
        response = await self._get("tokens/snapshot", self._filters(params))
        items = (response or {}).get("result", [])
        tokens = []
        for item in items:
            price = item.get("price_usd") or 0
            amount = item.get("amount") or 0
            tokens.append({
                "token_address": item.get("address"),
                "token_symbol": item.get("symbol") or "Unknown",
                "token_name": item.get("name") or "Unknown Token",
                "token_decimals": item.get("decimals"),
                "chain_id": item.get("chain"),
                "chain_name": f"Chain {item.get('chain')}",
                "balance": str(amount),
                "balance_usd": price * amount,
                "price_usd": price,
            })
        return {
            "tokens": tokens,
            "summary": {
                "total_value": sum(token["balance_usd"] for token in tokens),
                "total_tokens": len(tokens),
                "unique_tokens": len({token["token_address"] for token in tokens}),
            },
        }

    async def get_tokens_metrics(self, params: Dict[str, Any]) -> Dict[str, Any]:
        response = await self._get("tokens/metrics", {
            **self._filters(params),
            "contract_address": params.get("tokens"),
            "from": params.get("from"),
            "to": params.get("to"),
        })
        tokens = []
        for item in (response or {}).get("result", []):
            chain_id = item.get("chain_id") or item.get("chain")
            tokens.append({
                "token_address": item.get("contract_address") or item.get("address"),
                "token_symbol": item.get("contract_symbol") or item.get("symbol") or "Unknown",
                "token_name": item.get("contract_name") or item.get("name") or "Unknown Token",
                "chain_id": chain_id,
                "chain_name": f"Chain {chain_id or 'Unknown'}",
                "address": item.get("address"),
                "metrics": {
                    "current_value": item.get("value_usd") or 0,
                    "profit_loss_total": item.get("profit_abs_usd") or 0,
                },
            })
        return {"tokens": tokens}

    # --- Resources ---

    async def documentation(self) -> str:
        return PORTFOLIO_DOCUMENTATION

    async def supported_chains(self) -> Dict[str, Any]:
        return supported_chains("Supported blockchain chains for portfolio operations", with_testnet_flag=True)

    async def supported_protocols(self) -> Dict[str, Any]:
        return {
            "protocols": [
                {"id": pid, "name": name, "category": category, "description": description}
                for pid, name, category, description in SUPPORTED_PROTOCOLS
            ],
            "description": "Supported DeFi protocols for portfolio operations",
        }

    # --- Prompts ---

    @staticmethod
    def _breakdown_lines(overview: Dict[str, Any], chain_title: str, protocol_title: str) -> List[str]:
        breakdown = overview.get("breakdown") or {}
        lines: List[str] = []
        if breakdown.get("by_chain"):
            lines += ["", chain_title]
            lines += [
                f"- {c.get('chain_name')}: ${c.get('value', 0):,} ({c.get('percentage', 0):.1f}%)"
                for c in breakdown["by_chain"]
            ]
        if breakdown.get("by_protocol"):
            lines += ["", protocol_title]
            lines += [
                f"- {p.get('protocol_name')}: ${p.get('value', 0):,} ({p.get('percentage', 0):.1f}%)"
                for p in breakdown["by_protocol"]
            ]
        return lines

    @staticmethod
    def _metrics_lines(overview: Dict[str, Any], title: str) -> List[str]:
        metrics = overview.get("metrics")
        if not metrics:
            return []
        lines = [
            "",
            title,
            f"- Total Positions: {metrics.get('total_positions')}",
            f"- Active Protocols: {metrics.get('active_protocols')}",
            f"- Total Tokens: {metrics.get('total_tokens')}",
        ]
        if metrics.get("average_apr"):
            lines.append(f"- Average APR: {metrics['average_apr']:.2f}%")
        if metrics.get("total_fees_earned"):
            lines.append(f"- Total Fees Earned: ${metrics['total_fees_earned']:,}")
        return lines

    async def analyze_portfolio_performance(self, params: Dict[str, Any]) -> str:
        filters = {
            "addresses": as_list(params["addresses"]),
            "chains": as_list(params.get("chains")),
            "protocols": as_list(params.get("protocols")),
        }
        current = await self.get_current_portfolio_value(filters)
        overview = await self.get_overview_report(filters) or {}

        lines = [
            f"Portfolio Performance Analysis for {', '.join(filters['addresses'])}:",
            "",
            f"Total Portfolio Value: ${current['total_value']:,}",
            "",
            "Performance Summary:",
        ]
        summary = overview.get("summary")
        if summary:
            for label, key in (
                ("24h Change", "total_value_change_24h"),
                ("7d Change", "total_value_change_7d"),
                ("30d Change", "total_value_change_30d"),
                ("24h P&L", "profit_loss_24h"),
                ("7d P&L", "profit_loss_7d"),
                ("30d P&L", "profit_loss_30d"),
            ):
                lines.append(f"- {label}: {_signed_usd(summary.get(key, 0))}")

        if overview.get("breakdown"):
            lines += ["", "Portfolio Breakdown:"]
            lines += self._breakdown_lines(overview, "By Chain:", "By Protocol:")
        lines += self._metrics_lines(overview, "Portfolio Metrics:")
        return "\n".join(lines)

    async def generate_portfolio_report(self, params: Dict[str, Any]) -> str:
        filters = {"addresses": as_list(params["addresses"])}
        current = await self.get_current_portfolio_value(filters)
        overview = await self.get_overview_report(filters) or {}
        protocols = await self.get_protocols_snapshot(filters)
        tokens = await self.get_tokens_snapshot(filters)

        lines = [
            "# Portfolio Report",
            f"Generated for: {', '.join(filters['addresses'])}",
            f"Date: {datetime.now(timezone.utc).isoformat()}",
            "",
            "## Executive Summary",
            f"Total Portfolio Value: ${current['total_value']:,}",
            "",
            "## Performance Overview",
        ]
        summary = overview.get("summary")
        if summary:
            lines += [
                f"- 24h Change: {_signed_usd(summary.get('total_value_change_24h', 0))}",
                f"- 7d Change: {_signed_usd(summary.get('total_value_change_7d', 0))}",
                f"- 30d Change: {_signed_usd(summary.get('total_value_change_30d', 0))}",
            ]

        if overview.get("breakdown"):
            lines += ["", "## Portfolio Breakdown"]
            lines += self._breakdown_lines(overview, "### By Blockchain", "### By Protocol")

        if protocols["protocols"]:
            lines += ["", "## Protocol Positions"]
            for protocol in protocols["protocols"]:
                lines += [
                    "",
                    f"### {protocol['protocol_name']} ({protocol['chain_name']})",
                    f"Total Value: ${protocol['total_value']:,}",
                ]
                if protocol["positions"]:
                    lines += ["", "Positions:"]
                    lines += [
                        f"- {p['token_symbol']}: {p['balance']} (${p['balance_usd']:,})"
                        for p in protocol["positions"]
                    ]

        if tokens["tokens"]:
            lines += ["", "## Token Holdings"]
            for token in tokens["tokens"]:
                lines += [
                    f"- {token['token_symbol']} ({token['chain_name']}): {token['balance']} (${token['balance_usd']:,})",
                    f"  Price: ${token['price_usd']:.6f}",
                ]

        lines += self._metrics_lines(overview, "## Portfolio Metrics")
        return "\n".join(lines)
