from functools import lru_cache

from fastapi import HTTPException, Request

from ..core.config import settings
from ..services.assistant_gateway import AssistantGateway
from ..services.conversation_service import ConversationService
from ..services.pdf_service import PdfService
from ..services.rate_limiter import is_rate_limited
from ..services.session_store import (
    InMemorySessionStore,
    RedisSessionStore,
    SessionStore,
)


@lru_cache
def get_session_store() -> SessionStore:
    if settings.session_backend == "redis":
        from ..core.redis import redis_client
        return RedisSessionStore(redis_client, ttl_seconds=settings.session_ttl_seconds)
    return InMemorySessionStore()


@lru_cache
def get_conversation_service() -> ConversationService:
    return ConversationService(
        store=get_session_store(),
        gateway=AssistantGateway(),
    )


@lru_cache
def get_pdf_service() -> PdfService:
    return PdfService(store=get_session_store())


def enforce_rate_limit(request: Request) -> None:
    if not settings.rate_limit_enabled:
        return

    client_ip = request.client.host if request.client else "unknown"

    if is_rate_limited(client_ip):
        raise HTTPException(
            status_code=429,
            detail="Too many requests. Please try again later."
        )
