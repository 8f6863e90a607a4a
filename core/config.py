# =============================================================================
# core/config.py  —  Configuration from the Environment
# =============================================================================
#
# The client needs four strings.  They come from environment variables
# (optionally loaded from a .env file by the entry points):
#
#   MESHES_ACCESS_KEY  →  machine key access key           (required)
#   MESHES_SECRET_KEY  →  machine key secret               (required)
#   MESHES_ORG_ID      →  organization UUID                (required)
#   MESHES_BASE_URL    →  API root, default https://api.meshes.io
#
# load_config() reads them ONCE and returns an immutable MeshesConfig.
# Nothing else in core/ touches os.environ.
# =============================================================================

import os
from typing import Mapping, Optional

from core.errors import MeshesConfigError
from core.models import DEFAULT_BASE_URL, MeshesConfig

REQUIRED_VARIABLES = {
    "MESHES_ACCESS_KEY": "your machine key access key",
    "MESHES_SECRET_KEY": "your machine key secret",
    "MESHES_ORG_ID": "your organization UUID",
}

SETUP_HINT = (
    "Find these in the Meshes dashboard under Settings > Machine Keys.\n"
    "See: https://meshes.io/docs/api/authentication"
)


def load_config(environ: Optional[Mapping[str, str]] = None) -> MeshesConfig:
    """Build MeshesConfig from environment variables.

    Raises:
        MeshesConfigError: listing every required variable that is unset.
    """
    env = os.environ if environ is None else environ

    missing = [name for name in REQUIRED_VARIABLES if not env.get(name)]
    if missing:
        lines = "\n".join(f"  {name}: {REQUIRED_VARIABLES[name]}" for name in missing)
        raise MeshesConfigError(
            f"Missing required environment variables:\n{lines}\n\n{SETUP_HINT}"
        )

    base_url = env.get("MESHES_BASE_URL") or DEFAULT_BASE_URL
    return MeshesConfig(
        access_key=env["MESHES_ACCESS_KEY"],
        secret_key=env["MESHES_SECRET_KEY"],
        org_id=env["MESHES_ORG_ID"],
        base_url=base_url.rstrip("/"),
    )
