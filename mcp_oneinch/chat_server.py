"""HTTP chat endpoint in front of the OpenRouter service."""

import time
from datetime import datetime, timezone
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from mcp.server.fastmcp.utilities.logging import configure_logging, get_logger

from mcp_oneinch.config import CHAT_PORT, HOST, LOG_LEVEL
from mcp_oneinch.orchestrator import ServiceOrchestrator

logger = get_logger(__name__)


class ChatRequest(BaseModel):
    message: Optional[str] = None
    conversationId: Optional[str] = None


def create_app(orchestrator: Optional[ServiceOrchestrator] = None) -> FastAPI:
    orchestrator = orchestrator or ServiceOrchestrator()
    chat_service = orchestrator.get_service("openrouter")
    if chat_service is None:
        raise RuntimeError("OpenRouter service not found in orchestrator")

    app = FastAPI(title="1inch chat server")
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

    @app.post("/chat")
    async def chat(request: ChatRequest):
        if not request.message:
            return JSONResponse(status_code=400, content={"error": "Missing required parameter: message"})

        conversation_id = request.conversationId or f"conv_{int(time.time() * 1000)}"
        logger.info(f"Processing chat request: {request.message[:100]}...")
        try:
            result = await chat_service.chat(request.message, conversation_id)
        except Exception as e:
            logger.exception("Chat request failed")
            return JSONResponse(status_code=500, content={"success": False, "error": str(e) or "Internal server error"})

        return {
            "success": True,
            "data": {
                "content": result["content"],
                "conversationId": conversation_id,
                "functionCalls": result["functionCalls"],
                "mermaidCode": result["mermaidCode"],
            },
        }

    @app.get("/health")
    async def health():
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "service": "chat-server",
        }

    return app


def main() -> None:
    configure_logging(LOG_LEVEL)
    logger.info(f"Chat server running on http://{HOST}:{CHAT_PORT}")
    uvicorn.run(create_app(), host=HOST, port=CHAT_PORT, log_level=LOG_LEVEL.lower())


if __name__ == "__main__":
    main()
