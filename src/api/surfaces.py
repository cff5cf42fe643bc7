"""
Surface registry - One AuthHostController per open authentication surface.

Each surface owns its own controller tree. Closing a surface removes it from
the registry and drops its stored documents.
"""

import logging
from uuid import uuid4

from src.domain.host import AuthHostController
from src.domain.ports import AuthMode, DocumentStorage, IdentityService

logger = logging.getLogger(__name__)


class SurfaceNotFound(KeyError):
    """No open surface with the given id."""

    pass


class SurfaceRegistry:
    """Process-local map of surface id to host controller."""

    def __init__(
        self,
        identity: IdentityService,
        storage: DocumentStorage,
        submission_timeout: float | None = None,
    ) -> None:
        self.identity = identity
        self.storage = storage
        self.submission_timeout = submission_timeout
        self._surfaces: dict[str, AuthHostController] = {}

    def open(self, mode: AuthMode) -> tuple[str, AuthHostController]:
        """Create a surface in the given mode and return its id and host."""
        surface_id = uuid4().hex
        host = AuthHostController(
            self.identity,
            mode=mode,
            on_login_success=lambda: logger.info("[SURFACE] %s login succeeded", surface_id),
            on_register_success=lambda: logger.info("[SURFACE] %s registration completed", surface_id),
            on_close=lambda: self._forget(surface_id),
            on_forgot_password=lambda: logger.info("[SURFACE] %s requested password reset", surface_id),
            submission_timeout=self.submission_timeout,
        )
        self._surfaces[surface_id] = host
        logger.info("[SURFACE] Opened %s in %s mode", surface_id, mode.value)
        return surface_id, host

    def get(self, surface_id: str) -> AuthHostController:
        """
        Look up an open surface.

        Raises:
            SurfaceNotFound: If the id is unknown or the surface was closed
        """
        try:
            return self._surfaces[surface_id]
        except KeyError:
            raise SurfaceNotFound(surface_id) from None

    def __len__(self) -> int:
        return len(self._surfaces)

    def _forget(self, surface_id: str) -> None:
        self._surfaces.pop(surface_id, None)
        self.storage.discard(surface_id)
        logger.info("[SURFACE] Closed %s", surface_id)
