"""Logging utilities for agentGrid."""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

LOGGER_NAME = "agentGrid"


def setup_logging(level: int = logging.INFO, log_dir: Optional[Path] = None) -> logging.Logger:
    """Setup logging configuration for agentGrid.

    File handler captures everything at DEBUG, console only shows warnings.

    Args:
        level: Logging level for the package logger (default: INFO)
        log_dir: Directory for log files (default: ObservabilitySettings.log_dir)

    Returns:
        Configured logger instance
    """
    if log_dir is None:
        from agentGrid.config.settings import get_settings
        log_dir = Path(get_settings().observability.log_dir)

    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"agentgrid_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    logger.handlers = []

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    ))

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    logger.info("=" * 80)
    logger.info("agentGrid session started")
    logger.info(f"Log file: {log_file}")
    logger.info("=" * 80)

    return logger


def _preview(text: Any, limit: int = 100) -> str:
    text = str(text)
    return f"{text[:limit]}{'...' if len(text) > limit else ''}"


def log_tool_call(logger: logging.Logger, tool_name: str, args: Dict[str, Any], agent_type: str = "") -> None:
    """Log tool invocation.

    Args:
        logger: Logger instance
        tool_name: Name of the tool being called
        args: Tool arguments
        agent_type: Agent issuing the call
    """
    suffix = f" (agent: {agent_type})" if agent_type else ""
    logger.info(f"Tool call: {tool_name}{suffix}")
    logger.debug(f"  Arguments: {json.dumps(args, ensure_ascii=False, indent=2, default=str)}")


def log_tool_result(logger: logging.Logger, tool_name: str, result: Any, success: bool = True) -> None:
    """Log tool execution result (preview truncated to 500 chars)."""
    status = "Success" if success else "Failed"
    logger.info(f"Tool result: {tool_name} - {status}")

    result_str = str(result)
    if len(result_str) > 500:
        result_str = result_str[:500] + "... (truncated)"
    logger.debug(f"  Result: {result_str}")


def log_error(logger: logging.Logger, error: Exception, context: str = "") -> None:
    """Log error with context.

    Args:
        logger: Logger instance
        error: Exception instance
        context: Additional context about where the error occurred
    """
    logger.error(f"Error occurred: {type(error).__name__}: {str(error)}")
    if context:
        logger.error(f"  Context: {context}")
    logger.debug("Full traceback:", exc_info=error)


def log_user_message(logger: logging.Logger, content: str) -> None:
    logger.info(f"User input: {_preview(content)}")


def log_agent_response(logger: logging.Logger, agent_type: str, content: str) -> None:
    logger.info(f"Agent response ({agent_type}): {_preview(content)}")


def log_iteration(logger: logging.Logger, agent_type: str, iteration: int, max_requests: int, autonomous: bool) -> None:
    """Log the start of one autonomous flow iteration."""
    logger.info("=" * 80)
    logger.info(f"Flow iteration {iteration}/{max_requests} for {agent_type}")
    logger.info(f"  Autonomous mode: {autonomous}")
    logger.info("=" * 80)


def log_routing_decision(logger: logging.Logger, from_node: str, decision: str, reason: str = "") -> None:
    """Log where the flow graph goes after ``from_node``."""
    message = f"Routing {from_node} -> {decision}"
    if reason:
        message += f" ({reason})"
    logger.info(message)


_global_logger = None


def get_logger() -> logging.Logger:
    """Get or create the global logger instance.

    Returns:
        Global logger instance
    """
    global _global_logger
    if _global_logger is None:
        from agentGrid.config.settings import get_settings
        level = logging.getLevelName(get_settings().observability.log_level.upper())
        _global_logger = setup_logging(level if isinstance(level, int) else logging.INFO)
    return _global_logger
