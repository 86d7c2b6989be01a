"""
Proxy Match: Main API Router

Aggregates all sub-routers under a single prefix so that ``proxymatch.main``
can mount the entire API surface with one ``include_router`` call.
"""

from fastapi import APIRouter

from proxymatch.api import connections, discovery, history, positions, profiles

router = APIRouter()

router.include_router(profiles.router, prefix="/profiles", tags=["Profiles"])
router.include_router(positions.router, prefix="/positions", tags=["Positions"])
router.include_router(discovery.router, prefix="/discovery", tags=["Discovery"])
router.include_router(connections.router, prefix="/connections", tags=["Connections"])
router.include_router(history.router, prefix="/history", tags=["History"])
