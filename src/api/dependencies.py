"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting the surface
registry, document storage and the host controller of one surface.
"""

from fastapi import Depends, HTTPException, Request, status

from src.api.surfaces import SurfaceNotFound, SurfaceRegistry
from src.domain.host import AuthHostController
from src.domain.ports import DocumentStorage


def get_registry(request: Request) -> SurfaceRegistry:
    """
    Get surface registry from app state.

    The registry is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.registry


def get_storage(registry: SurfaceRegistry = Depends(get_registry)) -> DocumentStorage:
    """Get the document storage the registry was wired with."""
    return registry.storage


def get_surface(
    surface_id: str,
    registry: SurfaceRegistry = Depends(get_registry),
) -> AuthHostController:
    """
    Resolve the host controller for the surface in the path.

    Returns 404 for unknown or closed surfaces.
    """
    try:
        return registry.get(surface_id)
    except SurfaceNotFound:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Surface not found",
        ) from None
