# =============================================================================
# agent/__init__.py
# =============================================================================
# This package contains the Google ADK agent configuration.
#
# ARCHITECTURAL ROLE:
#   The agent/ layer is the coordinator.  It:
#     1. Receives the operator's request ("why did the signup event for
#        jane@example.com not reach HubSpot?")
#     2. Decides which meshes_* tools to call, and in what order
#     3. Interprets the results and reports back
#
# WHAT THE AGENT IS NOT:
#   - It is NOT the API client (that's in core/)
#   - It is NOT the tool implementations (that's in tools/)
# =============================================================================
