from typing import Any, Dict, Tuple

from mcp_oneinch.models import chain_prop, prop, prompt, resource, tool
from mcp_oneinch.services.base import BaseService

PRIORITIES = ("low", "medium", "high", "instant")
DEFAULT_PRIORITY = "medium"

PRIORITY_DESCRIPTIONS = {
    "low": "Cost optimization - slowest confirmation",
    "medium": "Balanced speed and cost",
    "high": "Faster confirmation - higher cost",
    "instant": "Fastest confirmation - highest cost",
}

OPTION_NOTES = {
    "low": "slowest, cheapest",
    "medium": "balanced",
    "high": "faster, costlier",
    "instant": "fastest, most expensive",
}

# (upper bound on the base fee, network load, confirmation time); the last row has no bound
NETWORK_LOAD_LEVELS: Tuple[Tuple[float, str, str], ...] = (
    (20, "Low", "1-2 minutes"),
    (50, "Medium", "2-5 minutes"),
    (100, "High", "5-10 minutes"),
    (float("inf"), "Very High", "10+ minutes"),
)

# (chain id, name, EIP-1559 support)
GAS_NETWORKS: Tuple[Tuple[int, str, bool], ...] = (
    (1, "Ethereum", True),
    (10, "Optimism", True),
    (56, "BNB Smart Chain", False),
    (137, "Polygon", True),
    (42161, "Arbitrum One", True),
    (43114, "Avalanche C-Chain", True),
    (8453, "Base", True),
    (100, "Gnosis", True),
    (324, "zkSync Era", True),
    (7565164, "Solana", False),
    (250, "Fantom Opera", False),
    (1101, "Polygon zkEVM", True),
    (59144, "Linea", True),
    (7777777, "Zora", True),
    (534352, "Scroll", True),
    (81457, "Blast", True),
    (424, "PulseChain", False),
    (11155420, "Optimism Sepolia", True),
    (80001, "Mumbai", True),
    (421614, "Arbitrum Sepolia", True),
    (43113, "Fuji", True),
    (84532, "Base Sepolia", True),
    (4002, "Fantom Testnet", False),
    (1442, "Polygon zkEVM Testnet", True),
    (280, "zkSync Era Testnet", True),
    (59140, "Linea Testnet", True),
    (999999999, "Zora Testnet", True),
    (534351, "Scroll Sepolia", True),
    (168587773, "Blast Sepolia", True),
)

GAS_DOCUMENTATION = """# 1inch Gas Price API Documentation

## Overview
Real-time gas prices in the EIP-1559 format, at four priority levels.

## Endpoints

### GET /gas-price/v1.6/{chain}
Current gas prices for a chain.

```json
{
  "baseFee": "string",
  "low": {"maxPriorityFeePerGas": "string", "maxFeePerGas": "string"},
  "medium": {"maxPriorityFeePerGas": "string", "maxFeePerGas": "string"},
  "high": {"maxPriorityFeePerGas": "string", "maxFeePerGas": "string"},
  "instant": {"maxPriorityFeePerGas": "string", "maxFeePerGas": "string"}
}
```

## Priority Levels
- low: non-urgent transactions, lowest fees
- medium: standard transactions, moderate fees
- high: time-sensitive transactions, higher fees
- instant: critical transactions, highest fees

## EIP-1559 Fields
- maxPriorityFeePerGas: tip paid to validators
- maxFeePerGas: the most the sender pays per gas (base fee plus tip)
"""


def network_load(base_fee: float) -> Tuple[str, str]:
    """Network load and expected confirmation time for a base fee."""
    for bound, load, eta in NETWORK_LOAD_LEVELS:
        if base_fee < bound:
            return load, eta
    return NETWORK_LOAD_LEVELS[-1][1:]


class GasService(BaseService):
    """EIP-1559 gas prices and priority recommendations."""

    TOOLS = (
        tool("get_gas_price", "Get current gas price data for a specific blockchain chain", {
            "chain": chain_prop("Chain ID of the network"),
        }, ("chain",)),
        tool("analyze_gas_price", "Analyze gas prices and get recommendations for transaction priority", {
            "chain": chain_prop("Chain ID of the network"),
            "priority": prop("string", "Preferred priority level for gas price recommendation", enum=list(PRIORITIES)),
        }, ("chain",)),
    )

    RESOURCES = (
        resource("oneinch://gas/documentation", "Gas Price API Documentation",
                 "Complete documentation for 1inch Gas Price API", "text/markdown"),
        resource("oneinch://gas/supported-chains", "Supported Chains for Gas Price",
                 "List of supported blockchain chains for gas price queries"),
    )

    PROMPTS = (
        prompt("get_gas_recommendation", "Get gas price recommendation for optimal transaction speed and cost",
               ("chain", "Chain ID", True),
               ("priority", "Transaction priority (low/medium/high/instant)", False)),
    )

    TOOL_HANDLERS = {
        "get_gas_price": "get_gas_price",
        "analyze_gas_price": "analyze_gas_price",
    }
    RESOURCE_HANDLERS = {
        "oneinch://gas/documentation": "documentation",
        "oneinch://gas/supported-chains": "supported_chains",
    }
    PROMPT_HANDLERS = {"get_gas_recommendation": "get_gas_recommendation"}

    async def get_gas_price(self, params: Dict[str, Any]) -> Any:
        return await self.make_request(f"/gas-price/v1.6/{params['chain']}")

    async def analyze_gas_price(self, params: Dict[str, Any]) -> Dict[str, Any]:
        priority = params.get("priority") or DEFAULT_PRIORITY
        if priority not in PRIORITIES:
            raise ValueError(f"Unsupported priority: {priority}. Expected one of {', '.join(PRIORITIES)}")

        prices = await self.get_gas_price({"chain": params["chain"]})
        load, eta = network_load(float(prices["baseFee"]))
        return {
            "chain": params["chain"],
            "baseFee": prices["baseFee"],
            "recommended": prices[priority],
            "allOptions": {level: prices[level] for level in PRIORITIES},
            "analysis": {
                "currentNetworkLoad": load,
                "recommendedFor": PRIORITY_DESCRIPTIONS[priority],
                "estimatedConfirmationTime": eta,
            },
        }

    async def documentation(self) -> str:
        return GAS_DOCUMENTATION

    async def supported_chains(self) -> Dict[str, Any]:
        return {
            "chains": [
                {"id": chain_id, "name": name, "supportsEip1559": eip1559}
                for chain_id, name, eip1559 in GAS_NETWORKS
            ],
            "description": "Supported blockchain chains for gas price queries with EIP-1559 support status",
        }

    async def get_gas_recommendation(self, params: Dict[str, Any]) -> str:
        chain = params["chain"]
        priority = params.get("priority") or DEFAULT_PRIORITY
        analysis = await self.analyze_gas_price({"chain": chain, "priority": priority})
        recommended = analysis["recommended"]

        lines = [
            f"Gas Price Recommendation for Chain {chain}:",
            "",
            f"Network Load: {analysis['analysis']['currentNetworkLoad']}",
            f"Base Fee: {analysis['baseFee']} wei",
            "",
            f"Recommended Gas Price ({priority.upper()} priority):",
            f"- Max Priority Fee: {recommended['maxPriorityFeePerGas']} wei",
            f"- Max Fee Per Gas: {recommended['maxFeePerGas']} wei",
            f"- Estimated Confirmation Time: {analysis['analysis']['estimatedConfirmationTime']}",
            f"- Best for: {analysis['analysis']['recommendedFor']}",
            "",
            "All Available Options:",
        ]
        lines += [
            f"- {level.upper()}: {option['maxFeePerGas']} wei ({OPTION_NOTES[level]})"
            for level, option in analysis["allOptions"].items()
        ]
        return "\n".join(lines)
