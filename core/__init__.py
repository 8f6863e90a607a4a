# =============================================================================
# core/__init__.py
# =============================================================================
# This package contains the Meshes API client and everything it needs:
# credentials, token minting, input validation and error types.
#
# ARCHITECTURAL RULE:
#   Nothing in this package imports FastMCP, Google ADK, or any orchestration
#   framework.  The client can be used from a bare script or a notebook.
# =============================================================================

from core.api_client import MeshesApiClient
from core.config import load_config
from core.errors import MeshesApiError, MeshesConfigError, MeshesError, MeshesTransportError
from core.models import MeshesConfig

__all__ = [
    "MeshesApiClient",
    "MeshesApiError",
    "MeshesConfig",
    "MeshesConfigError",
    "MeshesError",
    "MeshesTransportError",
    "load_config",
]
