# =============================================================================
# tools/__init__.py
# =============================================================================
# This package contains the FastMCP tool server.
#
# ARCHITECTURAL ROLE:
#   tools/ is the "translation layer" between the agent runtime and the
#   Meshes client in core/.  Each tool:
#     1. Declares typed, described parameters (the LLM reads them)
#     2. Calls exactly one MeshesApiClient method
#     3. Renders the JSON result as text, or reports the failure message
#
# WHAT TOOLS DO NOT DO:
#   - They do NOT talk HTTP or sign tokens (that's core/api_client.py)
#   - They do NOT decide anything (that's the agent's job)
#   - They do NOT retry failed calls
# =============================================================================
