"""
LLM-backed chat over the 1inch tools.

A chat turn picks up to three relevant tools with a keyword heuristic,
fills their arguments from the message with a few regexes, runs them
through the orchestrator and hands the results to an OpenRouter
``chat/completions`` call as extra context.
"""

import re
import time
from typing import Any, Dict, List, Optional

import httpx

from mcp.server.fastmcp.utilities.logging import get_logger

from mcp_oneinch.config import OpenRouterConfig, ServiceConfig, get_openrouter_config
from mcp_oneinch.models import ToolDefinition, prop, prompt, resource, tool
from mcp_oneinch.services.base import BaseService

logger = get_logger(__name__)

OWN_TOOL_PREFIX = "intelligent_chat"
MAX_SELECTED_TOOLS = 3
NAME_MATCH_SCORE = 0.8
KEYWORD_MATCH_SCORE = 0.3
SELECTION_THRESHOLD = 0.3

STOP_WORDS = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by",
    "is", "are", "was", "were", "be", "been", "have", "has", "had", "do", "does", "did",
    "will", "would", "could", "should", "may", "might", "can",
    "get", "check", "find", "show", "display", "list", "give", "provide", "return", "fetch", "retrieve",
})

ADDRESS_RE = re.compile(r"0x[a-fA-F0-9]{40}")
CHAIN_RE = re.compile(r"chain\s*(?:id\s*)?(\d+)", re.IGNORECASE)
AMOUNT_RE = re.compile(r"(\d+(?:\.\d+)?)\s*(?:tokens?|coins?|amount|eth|usd)", re.IGNORECASE)
LIMIT_RE = re.compile(r"limit\s*(\d+)", re.IGNORECASE)
MERMAID_RE = re.compile(r"```mermaid\s*\n(.*?)```", re.DOTALL)

# Tools whose name contains one of these take the address as a wallet
WALLET_TOOL_HINTS = ("balance", "wallet", "portfolio", "nft")
TOKEN_TOOL_HINTS = ("token", "price", "swap")

DEFAULT_CHAIN_ID = 1

SYSTEM_PROMPT = """You are an intelligent AI assistant with access to blockchain and DeFi tools. You can help users with:

1. Wallet Analysis: Check balances, allowances, and portfolio overviews
2. Token Information: Get token details, prices, and market data
3. Trading: Get swap quotes, orderbook data, and trading history
4. Market Data: Access price charts and market trends
5. Domain Services: Resolve domains and get domain information

Always provide helpful, accurate responses with context for the data you retrieve.
When a diagram helps, include it as a fenced mermaid code block."""

TOOL_RESULTS_NOTE = (
    "I have executed some tools to gather data for you. "
    "Use this information to provide a comprehensive response."
)

ASSISTANT_PROMPT = "You are a helpful AI assistant. Provide clear, concise, and accurate responses."

NO_RESPONSE = "I apologize, but I was unable to generate a response."

DOCS_URI = "https://openrouter.ai/docs"


def extract_keywords(text: str) -> List[str]:
    words = (re.sub(r"[^\w]", "", word.lower()) for word in text.split())
    return [word for word in words if len(word) > 2 and word not in STOP_WORDS]


def extract_arguments(tool_name: str, message: str) -> Dict[str, Any]:
    """Best-effort arguments for a tool, pulled out of a free-form message."""
    name = tool_name.lower()
    args: Dict[str, Any] = {}

    address = ADDRESS_RE.search(message)
    if address and any(hint in name for hint in WALLET_TOOL_HINTS):
        if name == "get_balance":
            args.update(address=address.group(0), chainId=DEFAULT_CHAIN_ID)
        else:
            args.update(walletAddress=address.group(0), chain=DEFAULT_CHAIN_ID)
    if address and any(hint in name for hint in TOKEN_TOOL_HINTS):
        args.update(tokenAddress=address.group(0), chain=DEFAULT_CHAIN_ID)

    chain = CHAIN_RE.search(message)
    if chain:
        args["chainId" if name == "get_balance" else "chain"] = int(chain.group(1))

    amount = AMOUNT_RE.search(message)
    if amount:
        args["amount"] = amount.group(1)

    limit = LIMIT_RE.search(message)
    if limit:
        args["limit"] = int(limit.group(1))
    return args


def score_tool(tool_def: ToolDefinition, message: str) -> Optional[Dict[str, Any]]:
    lowered = message.lower()
    confidence = 0.0
    if tool_def.name.lower() in lowered:
        confidence += NAME_MATCH_SCORE
    for keyword in extract_keywords(tool_def.description.lower()):
        if keyword in lowered:
            confidence += KEYWORD_MATCH_SCORE

    if confidence < SELECTION_THRESHOLD:
        return None
    return {
        "name": tool_def.name,
        "arguments": extract_arguments(tool_def.name, message),
        "confidence": min(confidence, 1.0),
        "description": f"Extracted from: {message}",
    }


def extract_mermaid(content: str) -> Optional[str]:
    match = MERMAID_RE.search(content or "")
    return match.group(1).strip() if match else None


def summarize_result(tool_name: str, result: Any) -> str:
    """One-line description of a tool result for the LLM context."""
    if not isinstance(result, (dict, list)):
        return "Data retrieved"
    data = result.get("data", result) if isinstance(result, dict) else result
    name = tool_name.lower()

    if isinstance(data, dict):
        if "balance" in name and isinstance(data.get("balances"), dict):
            return f"Retrieved {len(data['balances'])} token balances"
        if "price" in name and data.get("price"):
            return f"Current price: ${data['price']}"
        if ("swap" in name or "quote" in name) and data.get("dstAmount"):
            return f"Estimated output: {data['dstAmount']}"
        if "token" in name and data.get("symbol"):
            return f"Token: {data['symbol']} ({data.get('name')})"
        if "portfolio" in name and data.get("total_value") is not None:
            return f"Portfolio value: ${data['total_value']}"
        keys = list(data)
        if keys:
            suffix = "..." if len(keys) > 3 else ""
            return f"Data retrieved with fields: {', '.join(keys[:3])}{suffix}"
        return "Data retrieved"

    if "balance" in name:
        return f"Found {len(data)} token balances"
    if "token" in name:
        return f"Found {len(data)} tokens"
    return f"Retrieved {len(data)} items"


class OpenRouterService(BaseService):
    """Chat with automatic tool calling, answered by an OpenRouter model."""

    TOOLS = (
        tool("intelligent_chat", "Intelligent chat with automatic tool calling and context management", {
            "conversationId": prop("string", "Unique conversation ID for context management"),
            "message": prop("string", "User message to process"),
            "model": prop("string", "The model to use for completion"),
            "temperature": prop("number", "Controls randomness (0-2, default: 0.7)"),
        }, ("conversationId", "message")),
    )

    RESOURCES = (
        resource(DOCS_URI, "OpenRouter Documentation", "Official OpenRouter API documentation", "text/html"),
    )

    PROMPTS = (
        prompt("ai_assistant", "Get AI assistance for various tasks",
               ("task", "The task you need help with", True),
               ("context", "Additional context for the task", False)),
    )

    TOOL_HANDLERS = {"intelligent_chat": "intelligent_chat"}
    RESOURCE_HANDLERS = {DOCS_URI: "documentation"}
    PROMPT_HANDLERS = {"ai_assistant": "ai_assistant"}

    def __init__(
        self,
        config: ServiceConfig,
        openrouter_config: Optional[OpenRouterConfig] = None,
        orchestrator: Any = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(config, transport)
        self.openrouter_config = openrouter_config or get_openrouter_config()
        self.orchestrator = orchestrator
        self.conversations: Dict[str, List[Dict[str, str]]] = {}

    # --- Tool selection ---

    def available_tools(self) -> List[ToolDefinition]:
        if self.orchestrator is None:
            return []
        return [t for t in self.orchestrator.get_all_tools() if not t.name.startswith(OWN_TOOL_PREFIX)]

    def select_tools(self, message: str) -> List[Dict[str, Any]]:
        candidates = [call for call in (score_tool(t, message) for t in self.available_tools()) if call]
        candidates.sort(key=lambda call: call["confidence"], reverse=True)
        return candidates[:MAX_SELECTED_TOOLS]

    async def execute_tool_calls(self, tool_calls: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        results = []
        for call in tool_calls:
            name = call["name"]
            if self.orchestrator is None:
                results.append({"success": False, "toolName": name, "error": "Orchestrator not available", "executionTime": 0})
                continue
            if self.orchestrator.get_tool_info(name) is None:
                results.append({"success": False, "toolName": name, "error": f"Tool '{name}' not found", "executionTime": 0})
                continue

            started = time.monotonic()
            try:
                result = await self.orchestrator.handle_tool_call(name, call["arguments"])
            except Exception as e:
                logger.warning(f"Tool call '{name}' failed during chat: {e}")
                results.append({"success": False, "toolName": name, "error": str(e), "executionTime": 0})
                continue
            results.append({
                "success": True,
                "toolName": name,
                "result": result,
                "executionTime": int((time.monotonic() - started) * 1000),
            })
        return results

    # --- Prompt assembly ---

    @staticmethod
    def system_message(tool_results: List[Dict[str, Any]]) -> Dict[str, str]:
        content = SYSTEM_PROMPT
        if any(r["success"] for r in tool_results):
            content += f"\n\n{TOOL_RESULTS_NOTE}"
        return {"role": "system", "content": content}

    @staticmethod
    def tool_results_message(tool_results: List[Dict[str, Any]]) -> Dict[str, str]:
        lines = ["Tool Execution Results:", ""]
        succeeded = [r for r in tool_results if r["success"]]
        failed = [r for r in tool_results if not r["success"]]
        if succeeded:
            lines.append("Successful Tool Calls:")
            lines += [
                f"- {r['toolName']} ({r['executionTime']}ms): {summarize_result(r['toolName'], r['result'])}"
                for r in succeeded
            ]
        if failed:
            lines += ["", "Failed Tool Calls:"]
            lines += [f"- {r['toolName']}: {r['error']}" for r in failed]
        return {"role": "assistant", "content": "\n".join(lines)}

    # --- OpenRouter ---

    def resolve_model(self, model: Optional[str] = None) -> str:
        resolved = model or self.openrouter_config.small_model or self.openrouter_config.large_model
        if not resolved:
            raise ValueError(
                "No model configured. Please set OPENROUTER_SMALL_MODEL or OPENROUTER_LARGE_MODEL environment variable."
            )
        return resolved

    async def complete(
        self,
        messages: List[Dict[str, str]],
        model: Optional[str] = None,
        temperature: Optional[float] = None,
    ) -> Dict[str, Any]:
        """Single chat/completions call; returns the assistant text, model and usage."""
        settings = self.openrouter_config
        if not settings.api_key:
            raise ValueError("OpenRouter API key is not configured. Please set OPENROUTER_API_KEY.")
        body = {
            "model": self.resolve_model(model),
            "messages": messages,
            "temperature": settings.temperature if temperature is None else temperature,
            "max_tokens": settings.max_tokens,
        }
        async with httpx.AsyncClient(
            base_url=settings.base_url,
            headers={"Authorization": f"Bearer {settings.api_key}", "Content-Type": "application/json"},
            timeout=settings.timeout,
            transport=self._transport,
        ) as client:
            logger.debug(f"POST chat/completions model={body['model']} messages={len(messages)}")
            response = await client.post("chat/completions", json=body)
            response.raise_for_status()
            payload = response.json()

        choices = payload.get("choices") or []
        content = choices[0].get("message", {}).get("content") if choices else None
        return {"content": content, "model": payload.get("model", body["model"]), "usage": payload.get("usage")}

    async def health_probe(self) -> Any:
        async with httpx.AsyncClient(
            base_url=self.openrouter_config.base_url,
            timeout=self.openrouter_config.timeout,
            transport=self._transport,
        ) as client:
            response = await client.get("models")
            response.raise_for_status()
            return response.json()

    # --- Conversation ---

    async def converse(
        self,
        conversation_id: str,
        message: str,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
    ) -> Dict[str, Any]:
        history = self.conversations.setdefault(conversation_id, [])
        user_turn = {"role": "user", "content": message}

        tool_calls = self.select_tools(message)
        tool_results = await self.execute_tool_calls(tool_calls) if tool_calls else []
        logger.info(f"Conversation {conversation_id}: selected tools {[c['name'] for c in tool_calls]}")

        messages = [self.system_message(tool_results), *history, user_turn]
        if tool_results:
            messages.append(self.tool_results_message(tool_results))

        completion = await self.complete(messages, model, temperature)
        content = completion["content"] or NO_RESPONSE
        # Only completed turns are kept
        history.extend([user_turn, {"role": "assistant", "content": content}])
        return {
            "content": content,
            "toolCalls": tool_calls,
            "toolResults": tool_results,
            "model": completion["model"],
            "usage": completion["usage"],
        }

    async def chat(self, message: str, conversation_id: Optional[str] = None) -> Dict[str, Any]:
        """Entry point of the chat server."""
        conversation_id = conversation_id or f"conv_{int(time.time() * 1000)}"
        turn = await self.converse(conversation_id, message)
        return {
            "content": turn["content"],
            "functionCalls": turn["toolResults"],
            "mermaidCode": extract_mermaid(turn["content"]),
        }

    # --- Handlers ---

    async def intelligent_chat(self, params: Dict[str, Any]) -> Dict[str, Any]:
        conversation_id = params["conversationId"]
        turn = await self.converse(conversation_id, params["message"], params.get("model"), params.get("temperature"))
        return {
            "response": turn["content"],
            "conversationId": conversation_id,
            "toolCalls": turn["toolCalls"] or None,
            "toolResults": turn["toolResults"] or None,
            "model": turn["model"],
            "usage": turn["usage"],
        }

    async def documentation(self) -> Dict[str, Any]:
        return {
            "title": "OpenRouter Documentation",
            "description": "Official documentation for OpenRouter API",
            "url": DOCS_URI,
        }

    async def ai_assistant(self, params: Dict[str, Any]) -> str:
        task = f"Task: {params['task']}"
        if params.get("context"):
            task += f"\nContext: {params['context']}"
        completion = await self.complete([
            {"role": "system", "content": ASSISTANT_PROMPT},
            {"role": "user", "content": task},
        ])
        return completion["content"] or NO_RESPONSE
