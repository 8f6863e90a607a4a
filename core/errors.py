# =============================================================================
# core/errors.py  —  Failure Types
# =============================================================================
#
# A call against Meshes either succeeds or fails with one of two errors:
#
#   MeshesTransportError  →  we never got an answer (token could not be
#                            signed, DNS/connect failure, transport exception)
#   MeshesApiError        →  the server answered with a non-2xx status
#
# Both are fatal to the call that raised them.  Nothing here retries.
# The tool layer catches MeshesError and hands the message to the agent.
# =============================================================================


class MeshesError(Exception):
    """Base class for every failure raised by the Meshes client."""


class MeshesConfigError(MeshesError):
    """Required configuration is missing."""


class MeshesTransportError(MeshesError):
    """Token minting or the HTTP round trip itself could not complete."""


class MeshesApiError(MeshesError):
    """The Meshes API rejected the request.

    The status code and raw response body are kept verbatim; the body is
    not decoded (a 409 on delete, for example, carries an opaque
    description of the dependents that blocked it).
    """

    def __init__(self, status: int, body: str):
        self.status = status
        self.body = body
        super().__init__(f"Meshes API {status}: {body}")
