# =============================================================================
# main.py  —  Entry Point for the Meshes Operator Agent
# =============================================================================
#
# HOW TO RUN:
#   python main.py          (or the meshes-agent script)
#
# WHAT HAPPENS:
#   1. Loads .env (MESHES_* credentials, the LLM provider key)
#   2. Creates the Google ADK agent (agent/meshes_agent.py), which spawns
#      the Meshes MCP tool server as a subprocess
#   3. Runs an interactive loop: each line you type goes to the agent, which
#      calls meshes_* tools as needed and answers
#
# GOOGLE ADK CONCEPTS USED:
#   - Runner: Manages the agent's execution lifecycle
#   - SessionService: Tracks conversation state across turns
#   - Content/Part: ADK's message format
# =============================================================================

import asyncio
import sys

from dotenv import load_dotenv

# Must run before the agent is created: LiteLlm reads the provider key and
# the tool server subprocess inherits MESHES_* from this environment.
load_dotenv()

from google.adk.runners import Runner
from google.adk.sessions import InMemorySessionService
from google.genai import types

from agent.meshes_agent import create_agent
from core.config import load_config
from core.errors import MeshesConfigError

APP_NAME = "meshes_operator"
USER_ID = "operator"


async def run_agent():
    """Run the Meshes operator agent interactively."""
    print("=" * 70)
    print("  MESHES OPERATOR AGENT")
    print("  Powered by Google ADK + LiteLlm + FastMCP")
    print("=" * 70)
    print("\n🔧 Initializing agent...")
    agent = create_agent()

    session_service = InMemorySessionService()
    runner = Runner(
        agent=agent,
        app_name=APP_NAME,
        session_service=session_service,
    )
    session = await session_service.create_session(app_name=APP_NAME, user_id=USER_ID)

    print("✅ Agent initialized and ready!\n")
    print("💬 Ask about your workspaces, connections, rules or events.")
    print("   (Type 'quit' to exit)\n")
    print("-" * 70)

    while True:
        try:
            user_input = input("\n🧑 You: ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\n\n👋 Goodbye!")
            break

        if user_input.lower() in ("quit", "exit", "q"):
            print("\n👋 Goodbye!")
            break

        if not user_input:
            continue

        user_message = types.Content(
            role="user",
            parts=[types.Part(text=user_input)],
        )

        print("\n🤖 Agent is thinking...\n")
        print("-" * 70)

        final_response = ""
        async for event in runner.run_async(
            user_id=USER_ID,
            session_id=session.id,
            new_message=user_message,
        ):
            if event.content and event.content.parts:
                for part in event.content.parts:
                    if getattr(part, "text", None):
                        final_response = part.text

                    if getattr(part, "function_call", None):
                        print(f"  🔧 Calling tool: {part.function_call.name}")

        print("-" * 70)
        if final_response:
            print(f"\n🤖 Agent:\n\n{final_response}")
        else:
            print("\n⚠️  No response generated. The agent may have encountered an error.")

        print("\n" + "=" * 70)


def main() -> None:
    # Fail fast with the setup hint instead of inside the tool subprocess.
    try:
        load_config()
    except MeshesConfigError as exc:
        print(exc, file=sys.stderr)
        sys.exit(1)
    asyncio.run(run_agent())


if __name__ == "__main__":
    main()
