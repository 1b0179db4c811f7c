from typing import Any, Dict, List

import httpx

from mcp_oneinch.models import prop, prompt, resource, tool
from mcp_oneinch.services.base import BaseService, as_list, pick

BASE_PATH = "/nft/v2"
DEFAULT_ANALYSIS_LIMIT = 50
PROVIDERS = ("OPENSEA", "RARIBLE", "POAP")

NOT_IN_PLAN = "NFT API endpoints are not available in the current API subscription. Please check your 1inch API plan."

NFT_NETWORKS = (
    (1, "Ethereum"),
    (137, "Polygon"),
    (42161, "Arbitrum"),
    (43114, "Avalanche"),
    (100, "Gnosis"),
    (10, "Optimism"),
    (8217, "Klaytn"),
    (8453, "Base"),
)

NFT_DOCUMENTATION = """# 1inch NFT API Documentation

## Overview
NFTs owned by wallets and NFT metadata across several networks.

## Endpoints

### GET /nft/v2/supportedchains
Array of supported chain IDs, e.g. [1, 137, 8453, 42161, 8217, 43114, 10].

### GET /nft/v2/byaddress
Query: chainIds (comma separated, required), address (required), limit (default 20),
offset (default 0), openseaNextToken.
Returns {"assets": [...], "openseaNextToken": "..."}; every asset carries id, token_id,
provider, name, chainId, priority and asset_contract.

### GET /nft/v2/contract
Query: chainId, contract, id, provider (OPENSEA, RARIBLE or POAP), all required.
Returns one NFT with metadata, collection, traits and marketplace links.

## Subscription
Basic plans only expose supportedchains; byaddress and contract answer 404 there.
"""


class NftService(BaseService):
    """NFT ownership and metadata."""

    TOOLS = (
        tool("get_nft_supported_chains", "Get list of supported chains for NFT API", {}),
        tool("get_nfts_by_address", "Get NFTs owned by a specific address across multiple chains", {
            "chainIds": prop("array", "Array of chain IDs to search on", items={"type": "number"}),
            "address": prop("string", "Owner wallet address"),
            "limit": prop("number", "Number of NFTs to return", default=20),
            "offset": prop("number", "Pagination offset", default=0),
            "openseaNextToken": prop("string", "OpenSea pagination token"),
        }, ("chainIds", "address")),
        tool("get_nft_by_id", "Get detailed info about a specific NFT by contract address and token ID", {
            "chainId": prop("number", "Chain ID of the network"),
            "contract": prop("string", "NFT contract address"),
            "id": prop("string", "NFT token ID"),
            "provider": prop("string", "NFT provider (OPENSEA, RARIBLE, POAP)", enum=list(PROVIDERS)),
        }, ("chainId", "contract", "id", "provider")),
    )

    RESOURCES = (
        resource("oneinch://nft/documentation", "NFT API Documentation",
                 "Complete documentation for 1inch NFT API", "text/markdown"),
        resource("oneinch://nft/supported-chains", "Supported Chains",
                 "List of supported blockchain chains for NFT queries"),
    )

    PROMPTS = (
        prompt("analyze_wallet_nfts", "Analyze NFT portfolio for a wallet address across multiple chains",
               ("chainIds", "Array of chain IDs", True),
               ("address", "Wallet address", True),
               ("limit", "Number of NFTs to analyze", False)),
    )

    TOOL_HANDLERS = {
        "get_nft_supported_chains": "get_supported_chains",
        "get_nfts_by_address": "get_nfts_by_address",
        "get_nft_by_id": "get_nft_by_id",
    }
    RESOURCE_HANDLERS = {
        "oneinch://nft/documentation": "documentation",
        "oneinch://nft/supported-chains": "supported_chains_resource",
    }
    PROMPT_HANDLERS = {"analyze_wallet_nfts": "analyze_wallet_nfts"}

    async def _get_in_plan(self, endpoint: str, query: Dict[str, Any]) -> Any:
        try:
            return await self.make_request(endpoint, query)
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                raise RuntimeError(NOT_IN_PLAN) from e
            raise

    async def get_supported_chains(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {"chains": await self.make_request(f"{BASE_PATH}/supportedchains")}

    async def get_nfts_by_address(self, params: Dict[str, Any]) -> Any:
        query = {
            "chainIds": ",".join(str(chain_id) for chain_id in as_list(params["chainIds"])),
            "address": params["address"],
            **pick(params, "limit", "offset", "openseaNextToken"),
        }
        return await self._get_in_plan(f"{BASE_PATH}/byaddress", query)

    async def get_nft_by_id(self, params: Dict[str, Any]) -> Any:
        return await self._get_in_plan(f"{BASE_PATH}/contract", pick(params, "chainId", "contract", "id", "provider"))

    async def documentation(self) -> str:
        return NFT_DOCUMENTATION

    async def supported_chains_resource(self) -> Dict[str, Any]:
        return {
            "chains": [{"id": chain_id, "name": name} for chain_id, name in NFT_NETWORKS],
            "description": "Supported blockchain chains for NFT queries",
        }

    async def analyze_wallet_nfts(self, params: Dict[str, Any]) -> str:
        chain_ids, address = as_list(params["chainIds"]), params["address"]
        response = await self.get_nfts_by_address(
            {"chainIds": chain_ids, "address": address, "limit": params.get("limit") or DEFAULT_ANALYSIS_LIMIT}
        )
        assets = response.get("assets") or []

        lines = [
            f"NFT Portfolio Analysis for {address} across chains {', '.join(str(c) for c in chain_ids)}:",
            "",
            f"Total NFTs Found: {len(assets)}",
            f"OpenSea Next Token: {response.get('openseaNextToken') or 'None'}",
            "",
            "NFT Collections by Chain:",
        ]

        # chain id -> contract address -> assets, in first-seen order
        by_chain: Dict[Any, Dict[str, List[Dict[str, Any]]]] = {}
        for asset in assets:
            contract = (asset.get("asset_contract") or {}).get("address")
            by_chain.setdefault(asset.get("chainId"), {}).setdefault(contract, []).append(asset)

        for chain_id, collections in by_chain.items():
            lines += ["", f"Chain {chain_id}:"]
            for contract, items in collections.items():
                lines += ["", f"Collection: {contract}", f"NFTs in collection: {len(items)}"]
                lines += [
                    f"- {item.get('name')} (ID: {item.get('token_id')}, Provider: {item.get('provider')})"
                    for item in items
                ]
        return "\n".join(lines)
