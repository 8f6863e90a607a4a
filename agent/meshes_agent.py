# =============================================================================
# agent/meshes_agent.py  —  Google ADK Agent Configuration
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Creates the Google ADK agent that operates Meshes through our MCP tools.
#
# HOW IT WORKS (simplified):
#
#   ┌────────────────────────────────────────────────────────────────┐
#   │                      Google ADK Agent                          │
#   │                                                                │
#   │  System prompt ──▶ LLM (via LiteLlm) ──▶ MCPToolset (stdio)   │
#   └────────────────────────────────────────────────────────────────┘
#                                                   │
#                                                   ▼
#                                   tools/mcp_server.py (subprocess)
#                                                   │
#                                                   ▼
#                                   core/api_client.py ──▶ Meshes API
#
# CONFIGURATION:
#   MESHES_AGENT_MODEL  →  LiteLLM model string
#                          (default "openrouter/openai/gpt-4o"; LiteLLM
#                          reads the provider key, e.g. OPENROUTER_API_KEY)
#   MESHES_*            →  forwarded to the tool server subprocess
# =============================================================================

import os
import sys

from google.adk.agents import Agent
from google.adk.models.lite_llm import LiteLlm
from google.adk.tools.mcp_tool import MCPToolset
from mcp import StdioServerParameters

from agent.prompt import get_operator_prompt

DEFAULT_MODEL = "openrouter/openai/gpt-4o"


def tool_server_env() -> dict[str, str]:
    """Environment for the tool server subprocess.

    The MCP stdio client only passes a minimal environment by default, so
    the Meshes credentials have to be forwarded explicitly.
    """
    env = {key: value for key, value in os.environ.items() if key.startswith("MESHES_")}
    for key in ("PATH", "HOME", "PYTHONPATH"):
        if key in os.environ:
            env[key] = os.environ[key]
    return env


def create_agent() -> Agent:
    """Create the Meshes operator agent.

    Returns:
        A configured Google ADK Agent with the Meshes MCP tools attached.
    """
    # Run the tool server with the same interpreter, from the project root,
    # so core/ and tools/ are importable in the subprocess.
    project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

    mcp_tools = MCPToolset(
        connection_params=StdioServerParameters(
            command=sys.executable,
            args=["-m", "tools.mcp_server"],
            cwd=project_root,
            env=tool_server_env(),
        ),
    )

    agent = Agent(
        name="meshes_operator",
        model=LiteLlm(model=os.environ.get("MESHES_AGENT_MODEL", DEFAULT_MODEL)),
        instruction=get_operator_prompt(),
        tools=[mcp_tools],
    )

    return agent
