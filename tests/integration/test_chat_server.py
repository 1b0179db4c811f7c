from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from mcp_oneinch.chat_server import create_app


@pytest.fixture
def chat_service() -> MagicMock:
    service = MagicMock()
    service.chat = AsyncMock(return_value={
        "content": "Your balance is 1 ETH",
        "functionCalls": [{"success": True, "toolName": "get_balance", "result": {}, "executionTime": 3}],
        "mermaidCode": None,
    })
    return service


@pytest.fixture
def client(chat_service) -> TestClient:
    orchestrator = MagicMock()
    orchestrator.get_service.side_effect = lambda key: chat_service if key == "openrouter" else None
    return TestClient(create_app(orchestrator))


def test_missing_message_is_400(client, chat_service):
    response = client.post("/chat", json={"conversationId": "c1"})
    assert response.status_code == 400
    assert response.json() == {"error": "Missing required parameter: message"}
    chat_service.chat.assert_not_awaited()


def test_chat_success_payload(client, chat_service):
    response = client.post("/chat", json={"message": "balance?", "conversationId": "c1"})

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "data": {
            "content": "Your balance is 1 ETH",
            "conversationId": "c1",
            "functionCalls": chat_service.chat.return_value["functionCalls"],
            "mermaidCode": None,
        },
    }
    chat_service.chat.assert_awaited_once_with("balance?", "c1")


def test_chat_generates_conversation_id(client, chat_service):
    data = client.post("/chat", json={"message": "hi"}).json()["data"]

    assert data["conversationId"].startswith("conv_")
    assert data["conversationId"][len("conv_"):].isdigit()
    chat_service.chat.assert_awaited_once_with("hi", data["conversationId"])


def test_chat_failure_is_500(client, chat_service):
    chat_service.chat.side_effect = ValueError("OpenRouter API key is not configured. Please set OPENROUTER_API_KEY.")

    response = client.post("/chat", json={"message": "hi"})

    assert response.status_code == 500
    assert response.json() == {
        "success": False,
        "error": "OpenRouter API key is not configured. Please set OPENROUTER_API_KEY.",
    }


def test_health(client):
    body = client.get("/health").json()
    assert body["status"] == "healthy"
    assert body["service"] == "chat-server"
    assert "T" in body["timestamp"]


def test_requires_openrouter_service():
    orchestrator = MagicMock()
    orchestrator.get_service.return_value = None
    with pytest.raises(RuntimeError, match="OpenRouter service not found"):
        create_app(orchestrator)
