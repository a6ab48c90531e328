"""Interactive terminal chat with the DevOps agent."""

import asyncio
from typing import Optional

from .config import AgentSettings, load_settings
from .llm_core import Agent, AgentError, ConversationStore, ExecutionContext, ToolRegistry, get_logger, setup_logging
from .llm_core.messages import new_id
from .llm_core.usage import CostTracker
from .llm_impl import create_adapter
from .toolbox import default_tools, format_cost_report

logger = get_logger(__name__)

HELP = "Commands: /clear (new conversation), /costs (API usage), /exit (quit)"


def build_agent(settings: AgentSettings, cost_tracker: Optional[CostTracker] = None) -> Agent:
    """Wire adapter, tools and conversation store according to ``settings``."""
    adapter = create_adapter(settings, usage_recorder=cost_tracker)
    return Agent(
        adapter,
        registry=ToolRegistry(default_tools(cost_tracker)),
        store=ConversationStore(ttl_seconds=settings.session_ttl_seconds),
        max_iterations=settings.max_iterations,
    )


def _print_status(status: str) -> None:
    print(f"  {status}")


async def main() -> None:
    """
    Main function to run the CLI chat.
    """
    settings = load_settings()
    setup_logging(settings.log_level)

    tracker = CostTracker(settings.cost_log_path)
    try:
        agent = build_agent(settings, tracker)
    except AgentError as e:
        print(f"Error: {e}")
        return

    context = ExecutionContext(workspace_root=str(settings.workspace_root))
    session_id = new_id("cli-")

    print(f"Welcome to the DevOps Agent CLI ({settings.provider}/{settings.model})!")
    print(f"Workspace: {context.root}")
    print(HELP)

    while True:
        try:
            user_input = (await asyncio.to_thread(input, "\nYou: ")).strip()
        except (EOFError, KeyboardInterrupt):
            print("\nGoodbye!")
            break

        if not user_input:
            continue

        command = user_input.lower()
        if command in ("/exit", "exit", "quit"):
            print("Goodbye!")
            break
        if command == "/clear":
            agent.clear_conversation(session_id)
            session_id = new_id("cli-")
            print("Conversation cleared.")
            continue
        if command == "/costs":
            print(format_cost_report(tracker))
            continue
        if command == "/help":
            print(HELP)
            continue

        try:
            response = await agent.process_message(user_input, context, session_id=session_id, on_status=_print_status)
            print(f"Assistant: {response.content}")
        except Exception as e:
            logger.error("Request failed", exc_info=True)
            print(f"An error occurred: {e}")

    await agent.adapter.flush_usage()


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
