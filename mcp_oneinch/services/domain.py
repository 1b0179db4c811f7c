from collections import Counter
from typing import Any, Dict, List, Optional

from mcp_oneinch.models import prop, prompt, resource, tool
from mcp_oneinch.services.base import BaseService, as_list

BASE_PATH = "/domains/v2.0"

SUPPORTED_PROVIDERS = {
    "providers": [
        {
            "name": "ENS",
            "fullName": "Ethereum Name Service",
            "description": "Decentralized naming system for Ethereum addresses",
            "domains": [".eth"],
            "features": ["Reverse resolution", "Subdomains", "Multi-chain support"],
            "website": "https://ens.domains",
        },
        {
            "name": "Unstoppable",
            "fullName": "Unstoppable Domains",
            "description": "User-friendly blockchain domains",
            "domains": [".crypto", ".nft", ".wallet", ".blockchain", ".dao", ".888", ".zil"],
            "features": ["Multi-chain", "User-friendly", "NFT integration"],
            "website": "https://unstoppabledomains.com",
        },
        {
            "name": "Freename",
            "fullName": "Freename",
            "description": "Decentralized naming service",
            "domains": [".freename"],
            "features": ["Decentralized", "Community-driven"],
            "website": "https://freename.io",
        },
        {
            "name": "Bonfida",
            "fullName": "Bonfida",
            "description": "Solana blockchain naming service",
            "domains": [".sol"],
            "features": ["Solana integration", "Fast resolution"],
            "website": "https://bonfida.com",
        },
        {
            "name": "Space ID",
            "fullName": "Space ID",
            "description": "Universal Web3 identity network",
            "domains": [".bnb", ".arb"],
            "features": ["Multi-chain", "Universal identity"],
            "website": "https://space.id",
        },
    ],
    "description": "Supported domain providers and their features",
    "note": "Provider availability may vary by region and network conditions",
}

DOMAIN_DOCUMENTATION = """# 1inch Domain API Documentation

## Overview
Reverse resolution of blockchain addresses to domains (ENS, Unstoppable Domains,
Freename, Bonfida, Space ID).

## Endpoints

### GET /domains/v2.0/reverse-lookup?address={address}
Domain registered for an address.

### POST /domains/v2.0/reverse-lookup-batch
Body: JSON array of addresses. Response maps every address to its list of domains.

### GET /domains/v2.0/get-providers-data-with-avatar?addressOrDomain={value}
Provider metadata and avatar for an address or domain.

## Tool Responses
- get_domains_by_address: [{"domain", "provider", "address"}], empty when none
- get_primary_domain: {"domain", "provider", "address"}, error when none
- batch_resolve_domains: [{"address", "domain", "provider"}] in input order,
  domain and provider are null for unresolved addresses

## Errors
- 400: invalid address format
- 404: address has no domain
- 429: rate limit exceeded
"""


class DomainService(BaseService):
    """Blockchain domain reverse resolution."""

    TOOLS = (
        tool("get_domains_by_address", "Get all blockchain domains for a given address", {
            "address": prop("string", "Blockchain address to resolve domains for"),
        }, ("address",)),
        tool("get_primary_domain", "Get the primary domain for a given address", {
            "address": prop("string", "Blockchain address to get primary domain for"),
        }, ("address",)),
        tool("batch_resolve_domains", "Batch resolve domains for multiple addresses", {
            "addresses": prop("array", "List of blockchain addresses to resolve domains for",
                              items={"type": "string"}),
        }, ("addresses",)),
        tool("get_domain_providers", "Get list of all supported domain providers with metadata", {}),
    )

    RESOURCES = (
        resource("oneinch://domain/documentation", "Domain API Documentation",
                 "Complete documentation for 1inch Domain API", "text/markdown"),
        resource("oneinch://domain/supported-providers", "Supported Domain Providers",
                 "List of supported domain providers and their features"),
    )

    PROMPTS = (
        prompt("analyze_address_domains", "Analyze all domains associated with an address",
               ("address", "Blockchain address to analyze", True)),
        prompt("batch_analyze_domains", "Analyze domains for multiple addresses",
               ("addresses", "List of addresses to analyze", True)),
    )

    TOOL_HANDLERS = {
        "get_domains_by_address": "get_domains_by_address",
        "get_primary_domain": "get_primary_domain",
        "batch_resolve_domains": "batch_resolve_domains",
        "get_domain_providers": "get_domain_providers",
    }
    RESOURCE_HANDLERS = {
        "oneinch://domain/documentation": "documentation",
        "oneinch://domain/supported-providers": "supported_providers",
    }
    PROMPT_HANDLERS = {
        "analyze_address_domains": "analyze_address_domains",
        "batch_analyze_domains": "batch_analyze_domains",
    }

    async def _reverse_lookup(self, address: str) -> Optional[Dict[str, Any]]:
        response = await self.make_request(f"{BASE_PATH}/reverse-lookup", {"address": address})
        result = (response or {}).get("result")
        if not result:
            return None
        return {"domain": result.get("domain"), "provider": result.get("protocol"), "address": address}

    async def get_domains_by_address(self, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        found = await self._reverse_lookup(params["address"])
        return [found] if found else []

    async def get_primary_domain(self, params: Dict[str, Any]) -> Dict[str, Any]:
        found = await self._reverse_lookup(params["address"])
        if found is None:
            raise ValueError(f"No primary domain found for address {params['address']}")
        return found

    async def batch_resolve_domains(self, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        addresses = params["addresses"]
        response = await self.make_post_request(f"{BASE_PATH}/reverse-lookup-batch", addresses) or {}
        results = []
        for address in addresses:
            entries = response.get(address) or []
            first = entries[0] if entries else {}
            results.append({
                "address": address,
                "domain": first.get("domain"),
                "provider": first.get("protocol"),
            })
        return results

    async def get_domain_providers(self, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        response = await self.make_request(
            f"{BASE_PATH}/get-providers-data-with-avatar", {"addressOrDomain": "example.eth"}
        )
        result = (response or {}).get("result")
        if not result:
            return []
        return [{
            "provider": result.get("protocol"),
            "avatar": result.get("avatar"),
            "description": f"Provider for {result.get('protocol')}",
        }]

    async def documentation(self) -> str:
        return DOMAIN_DOCUMENTATION

    async def supported_providers(self) -> Dict[str, Any]:
        return SUPPORTED_PROVIDERS

    async def analyze_address_domains(self, params: Dict[str, Any]) -> str:
        address = params["address"]
        domains = await self.get_domains_by_address({"address": address})
        primary = domains[0] if domains else None  # Reverse lookup yields the primary name

        lines = [f"Domain Analysis for Address: {address}", "", f"Total Domains Found: {len(domains)}", "", "All Domains:"]
        lines += [f"{i}. {d['domain']} ({d['provider']})" for i, d in enumerate(domains, start=1)]
        lines.append("")
        if primary:
            lines.append(f"Primary Domain: {primary['domain']} ({primary['provider']})")
        else:
            lines.append("Primary Domain: None found")

        by_provider: Dict[str, List[str]] = {}
        for entry in domains:
            if entry["provider"]:
                by_provider.setdefault(entry["provider"], []).append(entry["domain"])
        lines += ["", "Domains by Provider:"]
        lines += [f"- {provider}: {', '.join(names)}" for provider, names in by_provider.items()]
        return "\n".join(lines)

    async def batch_analyze_domains(self, params: Dict[str, Any]) -> str:
        addresses = as_list(params["addresses"])
        results = await self.batch_resolve_domains({"addresses": addresses})
        resolved = [r for r in results if r["domain"]]

        lines = [
            "Batch Domain Analysis",
            "",
            f"Addresses Analyzed: {len(addresses)}",
            f"Addresses with Domains: {len(resolved)}",
            f"Addresses without Domains: {len(results) - len(resolved)}",
            "",
            "Results:",
        ]
        for index, result in enumerate(results, start=1):
            if result["domain"]:
                lines.append(f"{index}. {result['address']}: {result['domain']} ({result['provider']})")
            else:
                lines.append(f"{index}. {result['address']}: No domains found")

        distribution = Counter(r["provider"] for r in resolved if r["provider"])
        if distribution:
            lines += ["", "Provider Distribution:"]
            lines += [f"- {provider}: {count} domains" for provider, count in distribution.items()]
        return "\n".join(lines)
