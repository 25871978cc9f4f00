# =============================================================================
# main.py  —  Interactive Console for the Compliance Auditor Agent
# =============================================================================
#
# HOW TO RUN:
#   uv run python main.py
#
# WHAT HAPPENS:
#   1. Creates the Google ADK agent (agent/auditor_agent.py)
#   2. ADK launches the MCP tool server (tools/mcp_server.py) over stdio
#   3. You describe what to audit; the agent gathers evidence with the
#      Azure tools, analyzes documents, and writes the report
#   4. Tool calls are printed as they happen
#
# To run ONLY the tool server (for another MCP client):
#   uv run python -m tools.mcp_server
# =============================================================================

import asyncio

from dotenv import load_dotenv

# Load .env BEFORE creating the agent: LiteLlm reads the model API key from
# the environment, and the spawned tool server inherits it too.
load_dotenv()

from google.adk.runners import Runner
from google.adk.sessions import InMemorySessionService
from google.genai import types

from agent.auditor_agent import create_agent

APP_NAME = "compliance_auditor"
USER_ID = "auditor"


async def run_agent():
    """Run the compliance auditor agent interactively."""

    print("=" * 70)
    print("  COMPLIANCE AUDITOR AGENT")
    print("  Google ADK + LiteLLM + FastMCP (Anthropic, Azure)")
    print("=" * 70)
    print("\nInitializing agent...")
    agent = create_agent()

    session_service = InMemorySessionService()
    runner = Runner(
        agent=agent,
        app_name=APP_NAME,
        session_service=session_service,
    )
    session = await session_service.create_session(
        app_name=APP_NAME,
        user_id=USER_ID,
    )

    print("Agent ready.\n")
    print("Describe what to audit, e.g. 'Check encryption on account X and")
    print("review policies/security.md in container docs against ISO 27001'.")
    print("   (Type 'quit' to exit)\n")
    print("-" * 70)

    try:
        while True:
            try:
                user_input = input("\nYou: ").strip()
            except (EOFError, KeyboardInterrupt):
                print("\n\nGoodbye!")
                break

            if user_input.lower() in ("quit", "exit", "q"):
                print("\nGoodbye!")
                break

            if not user_input:
                continue

            user_message = types.Content(
                role="user",
                parts=[types.Part(text=user_input)],
            )

            print("\nAgent is working...\n")
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
                            print(f"  -> Calling tool: {part.function_call.name}")

            print("-" * 70)
            if final_response:
                print(f"\nAgent:\n\n{final_response}")
            else:
                print("\nNo response generated. The agent may have encountered an error.")

            print("\n" + "=" * 70)
    finally:
        # Stops the MCP server subprocess.
        await runner.close()


if __name__ == "__main__":
    asyncio.run(run_agent())
