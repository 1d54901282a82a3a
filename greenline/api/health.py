"""Health-check endpoint.

Load balancers and CI smoke checks hit this endpoint to verify the
application is running and responsive.
"""

from __future__ import annotations

from fastapi import APIRouter

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Return ``{"status": "healthy"}`` while the API is responding."""
    return {"status": "healthy"}
