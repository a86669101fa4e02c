"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


def _get_search_client():
    """Lazy import to avoid startup failures."""
    from ...services.routing.search_client import SearchClient
    return SearchClient()


@router.get("/health/search", status_code=status.HTTP_200_OK)
def health_search() -> dict:
    """Check that the search binaries are present and executable."""
    try:
        client = _get_search_client()
        return {"service": "search", "healthy": client.check_health()}
    except Exception as e:
        return {"service": "search", "healthy": False, "error": str(e)}
