"""
Test Package for the 1inch MCP Server

Integration tests exercise the orchestrator, the domain services and the
three transports (stdio, HTTP JSON-RPC and the chat endpoint). Outbound
HTTP is served by httpx.MockTransport, so no test reaches the network.

Test Structure:
- integration/: service, routing and transport tests
- integration/conftest.py: shared fixtures
"""
