"""agentGrid - interactive command-line entrypoint.

Usage:
    python -m agentGrid.main [agent_type] [--autonomous]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add project root to path to support direct execution
if __name__ == "__main__":
    sys.path.insert(0, str(Path(__file__).parent.parent))

from agentGrid.config import get_settings
from agentGrid.flow import FlowOptions, ProgressEvent, ProgressType, StreamState
from agentGrid.runtime import build_application
from agentGrid.utils import get_logger, handle_model_error, log_user_message

EXIT_COMMANDS = {"/exit", "/quit"}


async def print_progress(event: ProgressEvent) -> None:
    if event.type == ProgressType.THINKING:
        print(f"  ... {event.content}")
    elif event.type == ProgressType.TOOL_EXECUTION and "function_name" in event.metadata:
        print(f"  >> {event.content}")
    elif event.type == ProgressType.LLM_RESPONSE:
        print(f"\n{event.content}\n")
    elif event.type == ProgressType.TOOL_RESPONSE and event.metadata.get("is_rephrased"):
        print(f"\n{event.content}\n")
    elif event.type == ProgressType.ERROR:
        print(f"  !! {event.content}")


async def async_main(agent_type: str, autonomous: bool) -> None:
    logger = get_logger()
    logger.info(f"agentGrid CLI starting (agent: {agent_type}, autonomous: {autonomous})")

    app = await build_application()
    if not app.system.registry.has(agent_type):
        print(f"Unknown agent type '{agent_type}'. Available: {', '.join(app.system.registry.get_all_types())}")
        await app.shutdown()
        return

    print(f"agentGrid - talking to '{agent_type}'. Type /exit to quit.\n")
    conversation_id = 1
    try:
        while True:
            try:
                text = await asyncio.to_thread(input, "You> ")
            except EOFError:
                break
            text = text.strip()
            if not text:
                continue
            if text in EXIT_COMMANDS:
                break

            log_user_message(logger, text)
            stream_state = StreamState()
            try:
                conclusion = await app.handle_user_message(
                    agent_type,
                    conversation_id,
                    text,
                    send=print_progress,
                    options=FlowOptions(autonomous_mode=autonomous, stream_state=stream_state),
                )
            except KeyboardInterrupt:
                stream_state.cancel()
                continue
            except Exception as e:
                logger.error(f"Flow failed: {e}", exc_info=True)
                print(f"Error: {handle_model_error(e)}")
                continue

            if conclusion:
                print(f"[conclusion] {conclusion}\n")
    finally:
        logger.info("Shutting down...")
        await app.shutdown()


def main() -> None:
    parser = argparse.ArgumentParser(description="Chat with an agentGrid agent")
    parser.add_argument("agent_type", nargs="?", default="general")
    parser.add_argument("--autonomous", action="store_true", default=get_settings().orchestration.autonomous_mode)
    args = parser.parse_args()

    try:
        asyncio.run(async_main(args.agent_type, args.autonomous))
    except KeyboardInterrupt:
        logging.getLogger(__name__).info("Interrupted")


if __name__ == "__main__":
    main()
