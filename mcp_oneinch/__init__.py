"""
MCP 1inch Package

This package exposes the 1inch DeFi APIs (classic swap, token metadata, token
details, balances, limit-order orderbook, portfolio, domains, charts and web3
RPC passthrough) as MCP (Model Context Protocol) tools, resources and prompts.

Every API family is wrapped by a service with constant tool/resource/prompt
manifests and a name-keyed dispatch table. The ServiceOrchestrator registers
all services once at startup and routes each incoming call to the service
that owns the requested name.

Main components:
- orchestrator.py: Service registry, manifest aggregation and routing
- services/: One module per 1inch API family, plus the OpenRouter chat service
- server.py: MCP server over stdio
- http_server.py: JSON-RPC /mcp endpoint and REST convenience endpoints
- chat_server.py: Chat endpoint backed by the OpenRouter service
"""

__version__ = "1.0.0"
