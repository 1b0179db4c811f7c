"""
Integration Tests for the 1inch MCP Server

Test files:
- conftest.py: configs, recording HTTP transport, fake services
- test_orchestrator.py: registration, routing, collisions and health
- test_base_service.py: dispatch, validation and request building
- test_services.py: endpoint and query building per service
- test_prompts.py: prompt reports built from mocked API responses
- test_openrouter.py: tool selection, argument extraction and chat
- test_stdio_server.py: MCP handlers behind the stdio transport
- test_http_server.py: JSON-RPC and REST endpoints
- test_chat_server.py: chat endpoint
- test_config.py: environment driven settings
"""
