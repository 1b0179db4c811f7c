from datetime import datetime, timezone
from typing import Any, Dict, List

from mcp_oneinch.models import prop, prompt, resource, tool
from mcp_oneinch.services.base import BaseService
from mcp_oneinch.services.chains import CHART_NETWORKS

BASE_PATH = "/charts/v1.0/chart"

PERIODS = (
    ("24H", "24 Hours", "Last 24 hours of data"),
    ("1W", "1 Week", "Last week of data"),
    ("1M", "1 Month", "Last month of data"),
    ("1Y", "1 Year", "Last year of data"),
    ("AllTime", "All Time", "All available historical data"),
)
PERIOD_VALUES = tuple(value for value, _, _ in PERIODS)
CANDLE_SECONDS = (300, 900, 3600, 14400, 86400, 604800)

# Candle analysis has no period argument; one hour buckets are used
ANALYSIS_CANDLE_SECONDS = 3600

_TOKEN0 = prop("string", "Base token address")
_TOKEN1 = prop("string", "Quote token address")
_CHAIN = prop("number", "Chain ID of the network")

CHARTS_DOCUMENTATION = """# 1inch Charts API Documentation

## Overview
Historical price data for token pairs, as line charts or candlestick (OHLC) data.

## Endpoints

### GET /charts/v1.0/chart/line/{token0}/{token1}/{period}/{chainId}
- period: 24H, 1W, 1M, 1Y or AllTime

Response: {"data": [{"time": 1234567890, "value": 1234.56}]}

### GET /charts/v1.0/chart/aggregated/candle/{token0}/{token1}/{seconds}/{chainId}
- seconds: 300, 900, 3600, 14400, 86400 or 604800

Response: {"data": [{"time", "open", "high", "low", "close", "volume"}]}

## Data Fields
- time: Unix timestamp of the data point
- value: price at that time (line charts)
- open/high/low/close: prices for the period (candles)
- volume: trading volume for the period (candles)

## Notes
Token pairs may not have data for every period. Validate addresses and use
the coarsest period that answers the question.
"""


def _signed(value: float, digits: int) -> str:
    return f"{'+' if value > 0 else ''}{value:.{digits}f}"


def _iso(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()


class ChartsService(BaseService):
    """Line and candle chart data for token pairs."""

    TOOLS = (
        tool("get_line_chart_data", "Get historical line chart data for a specific token pair and period", {
            "token0": _TOKEN0,
            "token1": _TOKEN1,
            "period": prop("string", "Time period for the chart data", enum=list(PERIOD_VALUES)),
            "chainId": _CHAIN,
        }, ("token0", "token1", "period", "chainId")),
        tool("get_candle_chart_data",
             "Get historical candle (OHLC) chart data for a specific token pair and time interval", {
                 "token0": _TOKEN0,
                 "token1": _TOKEN1,
                 "seconds": prop("number", "Time interval in seconds for the candle data",
                                 enum=list(CANDLE_SECONDS)),
                 "chainId": _CHAIN,
             }, ("token0", "token1", "seconds", "chainId")),
    )

    RESOURCES = (
        resource("oneinch://charts/documentation", "Charts API Documentation",
                 "Complete documentation for 1inch Charts API", "text/markdown"),
        resource("oneinch://charts/supported-chains", "Supported Chains",
                 "List of supported blockchain chains for chart data"),
        resource("oneinch://charts/supported-periods", "Supported Periods",
                 "List of supported time periods for chart data"),
    )

    PROMPTS = (
        prompt("analyze_token_pair_chart", "Analyze chart data for a token pair",
               ("token0", "Base token address", True),
               ("token1", "Quote token address", True),
               ("period", "Time period for analysis", True),
               ("chainId", "Chain ID", True),
               ("chartType", "Type of chart (line or candle)", False)),
    )

    TOOL_HANDLERS = {
        "get_line_chart_data": "get_line_chart_data",
        "get_candle_chart_data": "get_candle_chart_data",
    }
    RESOURCE_HANDLERS = {
        "oneinch://charts/documentation": "documentation",
        "oneinch://charts/supported-chains": "supported_chains",
        "oneinch://charts/supported-periods": "supported_periods",
    }
    PROMPT_HANDLERS = {"analyze_token_pair_chart": "analyze_token_pair_chart"}

    async def get_line_chart_data(self, params: Dict[str, Any]) -> Any:
        period = params["period"]
        if period not in PERIOD_VALUES:
            raise ValueError(f"Unsupported period: {period}. Expected one of {', '.join(PERIOD_VALUES)}")
        return await self.make_request(
            f"{BASE_PATH}/line/{params['token0']}/{params['token1']}/{period}/{params['chainId']}"
        )

    async def get_candle_chart_data(self, params: Dict[str, Any]) -> Any:
        seconds = int(params["seconds"])
        if seconds not in CANDLE_SECONDS:
            raise ValueError(
                f"Unsupported candle interval: {seconds}. Expected one of {', '.join(map(str, CANDLE_SECONDS))}"
            )
        return await self.make_request(
            f"{BASE_PATH}/aggregated/candle/{params['token0']}/{params['token1']}/{seconds}/{params['chainId']}"
        )

    async def documentation(self) -> str:
        return CHARTS_DOCUMENTATION

    async def supported_chains(self) -> Dict[str, Any]:
        return {
            "chains": [{"id": chain_id, "name": name} for chain_id, name in CHART_NETWORKS],
            "description": "Supported blockchain chains for chart data queries",
        }

    async def supported_periods(self) -> Dict[str, Any]:
        return {
            "periods": [
                {"value": value, "name": name, "description": description}
                for value, name, description in PERIODS
            ],
            "description": "Supported time periods for chart data queries",
        }

    async def analyze_token_pair_chart(self, params: Dict[str, Any]) -> str:
        token0, token1 = params["token0"], params["token1"]
        period, chain_id = params["period"], params["chainId"]
        chart_type = params.get("chartType") or "line"

        lines = [
            "Token Pair Chart Analysis:",
            "",
            f"Token Pair: {token0} / {token1}",
            f"Chain ID: {chain_id}",
            f"Period: {period}",
            f"Chart Type: {chart_type}",
            "",
        ]
        try:
            if chart_type == "candle":
                chart = await self.get_candle_chart_data({
                    "token0": token0, "token1": token1,
                    "seconds": ANALYSIS_CANDLE_SECONDS, "chainId": chain_id,
                })
            else:
                chart = await self.get_line_chart_data(
                    {"token0": token0, "token1": token1, "period": period, "chainId": chain_id}
                )
        except Exception as e:
            lines.append(f"Error retrieving chart data: {e}")
            return "\n".join(lines)

        points: List[Dict[str, Any]] = (chart or {}).get("data") or []
        if not points:
            lines.append("No data available for this token pair and period.")
            return "\n".join(lines)

        lines += [f"Data Points: {len(points)}", ""]
        field, label = ("close", "Price") if chart_type == "candle" else ("value", "Value")
        values = [p.get(field) for p in points if (p.get(field) or 0) > 0]
        if values:
            first, current = values[0], values[-1]
            change = current - first
            lines += [
                f"{label} Analysis:",
                f"- Current {label}: {current}",
                f"- {label} Range: {min(values)} - {max(values)}",
                f"- {label} Change: {_signed(change, 6)} ({_signed(change / first * 100, 2)}%)",
                f"- Data Points: {len(points)}",
            ]

        if len(points) > 1:
            start, end = points[0]["time"], points[-1]["time"]
            span = end - start
            lines += [
                "",
                "Time Range:",
                f"- Start: {_iso(start)}",
                f"- End: {_iso(end)}",
                f"- Duration: {span / 86400:.1f} days",
                f"- Average Interval: {span / (len(points) - 1) / 60:.1f} minutes between data points",
            ]
        return "\n".join(lines)
