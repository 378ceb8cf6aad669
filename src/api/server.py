"""JSON HTTP API for chat, memories and finances.

Uses aiohttp's AppRunner/TCPSite for non-blocking start/stop. Every
``/api`` route needs ``Authorization: Bearer <token>``.
"""

from __future__ import annotations

import logging
from typing import Any

from aiohttp import web
from pydantic import ValidationError

from src.api.auth import StaticTokenVerifier, TokenVerifier, bearer_token
from src.chat.pipeline import ChatPipeline
from src.config import settings
from src.llm.client import GenerationError
from src.memory.manager import MemoryManager
from src.memory.relevance import filter_by_topic
from src.store import FINANCES, DocumentStore

logger = logging.getLogger(__name__)

STORE_KEY = web.AppKey("store", DocumentStore)
VERIFIER_KEY = web.AppKey("verifier", TokenVerifier)
PIPELINE_KEY = web.AppKey("pipeline", ChatPipeline)

DEFAULT_MEMORY_LIMIT = 20


async def _authenticate(request: web.Request) -> str | None:
    token = bearer_token(request.headers.get("Authorization"))
    if token is None:
        return None
    return await request.app[VERIFIER_KEY].verify(token)


def _unauthorized() -> web.Response:
    return web.json_response({"error": "Unauthorized"}, status=401)


async def _json_body(request: web.Request) -> dict[str, Any] | None:
    try:
        body = await request.json()
    except ValueError:
        logger.warning("Ignoring request body that is not valid JSON")
        return None
    return body if isinstance(body, dict) else None


def _int_param(request: web.Request, name: str, default: int) -> int:
    try:
        return int(request.query.get(name, default))
    except ValueError:
        return default


def _invalid_memory(exc: ValidationError) -> web.Response:
    fields = sorted({".".join(str(part) for part in err["loc"]) for err in exc.errors()})
    logger.warning("Rejected memory payload with invalid fields: %s", fields)
    return web.json_response({"error": "Invalid memory fields", "fields": fields}, status=400)


# -- Handlers ------------------------------------------------------------------


async def _health(request: web.Request) -> web.Response:
    """GET /health: basic liveness check."""
    return web.json_response({"status": "ok"})


async def _chat(request: web.Request) -> web.Response:
    """POST /api/chat: run one conversation turn."""
    user_id = await _authenticate(request)
    if not user_id:
        return _unauthorized()

    body = await _json_body(request) or {}
    messages = body.get("messages") or []
    if not isinstance(messages, list) or not messages:
        return web.json_response({"error": "messages are required"}, status=400)

    try:
        result = await request.app[PIPELINE_KEY].handle(user_id, messages)
    except GenerationError:
        logger.exception("Chat failed for user %s", user_id)
        return web.json_response({"error": "Failed to generate a reply"}, status=502)

    return web.json_response(
        {
            "reply": result.reply,
            "financeEntries": result.finance_entries,
            "memoryIds": result.memory_ids,
            "memoryUpdates": [u.model_dump(by_alias=True) for u in result.memory_updates],
            "investmentUpdates": [
                u.model_dump(by_alias=True) for u in result.investment_updates
            ],
            "metadata": result.metadata,
        }
    )


async def _list_memories(request: web.Request) -> web.Response:
    """GET /api/memories?limit=&category=&topic="""
    user_id = await _authenticate(request)
    if not user_id:
        return _unauthorized()

    limit = _int_param(request, "limit", DEFAULT_MEMORY_LIMIT)
    category = request.query.get("category")
    topic = request.query.get("topic")

    memories = await MemoryManager(request.app[STORE_KEY]).get_user_memories(user_id)
    if category:
        memories = [m for m in memories if category in m.categories]
    if topic:
        memories = filter_by_topic(memories, topic, threshold=settings.memory_relevance_threshold)

    return web.json_response({"memories": [m.model_dump(mode="json") for m in memories[:limit]]})


async def _create_memory(request: web.Request) -> web.Response:
    """POST /api/memories"""
    user_id = await _authenticate(request)
    if not user_id:
        return _unauthorized()

    body = await _json_body(request) or {}
    content = body.get("content")
    if not content or not isinstance(content, str):
        return web.json_response({"error": "Content is required"}, status=400)

    manager = MemoryManager(request.app[STORE_KEY])
    try:
        memory_id = await manager.create_memory(
            user_id,
            content,
            category=body.get("category"),
            importance=body.get("importance") or 5,
            source_type=body.get("source_type") or "conversation",
            source_message=body.get("source_message"),
        )
    except ValidationError as exc:
        return _invalid_memory(exc)
    memory = await manager.get_memory(user_id, memory_id)
    return web.json_response(
        {
            "message": "Memory created successfully",
            "memory": memory.model_dump(mode="json") if memory else {"id": memory_id},
        },
        status=201,
    )


async def _update_memory(request: web.Request) -> web.Response:
    """PUT /api/memories"""
    user_id = await _authenticate(request)
    if not user_id:
        return _unauthorized()

    body = await _json_body(request) or {}
    memory_id = body.get("memoryId")
    if not memory_id:
        return web.json_response({"error": "Memory ID is required"}, status=400)

    category = body.get("category")
    try:
        updated = await MemoryManager(request.app[STORE_KEY]).update_memory(
            user_id,
            memory_id,
            content=body.get("content"),
            categories=[category] if category else None,
            importance_score=body.get("importance"),
        )
    except ValidationError as exc:
        return _invalid_memory(exc)
    if not updated:
        return web.json_response({"error": "Memory not found"}, status=404)
    return web.json_response({"message": "Memory updated successfully"})


async def _delete_memory(request: web.Request) -> web.Response:
    """DELETE /api/memories/{memory_id}"""
    user_id = await _authenticate(request)
    if not user_id:
        return _unauthorized()

    deleted = await MemoryManager(request.app[STORE_KEY]).delete_memory(
        user_id, request.match_info["memory_id"]
    )
    if not deleted:
        return web.json_response({"error": "Memory not found"}, status=404)
    return web.json_response({"message": "Memory deleted successfully"})


async def _memory_context(request: web.Request) -> web.Response:
    """GET /api/memories/context?topic=: what the model would be told."""
    user_id = await _authenticate(request)
    if not user_id:
        return _unauthorized()

    context = await MemoryManager(request.app[STORE_KEY]).build_memory_context(
        user_id, request.query.get("topic", "")
    )
    return web.json_response(context.model_dump(mode="json"))


async def _list_finances(request: web.Request) -> web.Response:
    """GET /api/finances, newest first."""
    user_id = await _authenticate(request)
    if not user_id:
        return _unauthorized()

    finances = await request.app[STORE_KEY].list_for_user(FINANCES, user_id)
    finances.sort(key=lambda f: str(f.get("date", "")), reverse=True)
    return web.json_response({"finances": finances})


def create_app(
    store: DocumentStore,
    verifier: TokenVerifier | None = None,
    pipeline: ChatPipeline | None = None,
) -> web.Application:
    """Build the aiohttp Application with routes and injected collaborators."""
    app = web.Application()
    app[STORE_KEY] = store
    app[VERIFIER_KEY] = verifier or StaticTokenVerifier()
    app[PIPELINE_KEY] = pipeline or ChatPipeline(store)

    app.router.add_get("/health", _health)
    app.router.add_post("/api/chat", _chat)
    app.router.add_get("/api/memories", _list_memories)
    app.router.add_post("/api/memories", _create_memory)
    app.router.add_put("/api/memories", _update_memory)
    app.router.add_get("/api/memories/context", _memory_context)
    app.router.add_delete("/api/memories/{memory_id}", _delete_memory)
    app.router.add_get("/api/finances", _list_finances)
    return app


class ApiServer:
    """Manages the aiohttp server lifecycle."""

    def __init__(self, store: DocumentStore, port: int | None = None) -> None:
        self.port = port or settings.api_port
        self._store = store
        self._runner: web.AppRunner | None = None

    async def start(self) -> None:
        app = create_app(self._store)
        self._runner = web.AppRunner(app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, "0.0.0.0", self.port)
        await site.start()
        logger.info("API server listening on port %d", self.port)

    async def stop(self) -> None:
        """Shut down the server gracefully."""
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
            logger.info("API server stopped")
