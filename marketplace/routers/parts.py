"""
Parts Router

Read-only view of the catalog state plus the retry affordance shown
after a terminal fetch failure.
"""
from fastapi import APIRouter, Depends

from marketplace.contexts import PartsContext
from marketplace.contexts.parts import PUBLIC_PARTS
from .deps import get_parts_context
from .models import PartsQuery

router = APIRouter(tags=["parts"])


def _listing(parts: PartsContext) -> dict:
    retry = parts.retry_state(PUBLIC_PARTS)
    return {
        "parts": [part.model_dump(mode="json", by_alias=True) for part in parts.parts],
        "loading": parts.loading,
        "error": parts.error,
        "error_kind": parts.error_kind,
        "placeholder": parts.showing_placeholder,
        "state": retry.state.value,
        "can_retry": retry.is_terminal,
    }


@router.get("/parts")
async def get_parts(parts: PartsContext = Depends(get_parts_context)):
    return _listing(parts)


@router.post("/parts/search")
async def search_parts(query: PartsQuery, parts: PartsContext = Depends(get_parts_context)):
    """Reload the public listing with filters."""
    await parts.fetch_public_parts(query.model_dump(exclude_none=True))
    return _listing(parts)


@router.post("/parts/retry")
async def retry_parts(parts: PartsContext = Depends(get_parts_context)):
    """Reset the retry counters and reload the public listing."""
    await parts.retry_fetch()
    return _listing(parts)
