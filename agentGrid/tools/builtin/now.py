"""Clock tool for time-aware agent replies."""

from datetime import datetime, timezone
from typing import Literal

from langchain_core.tools import tool


@tool
def now(timespec: Literal["minutes", "seconds", "milliseconds"] = "seconds") -> str:
    """Current UTC date and time as an ISO 8601 string.

    Call this before answering anything that depends on today's date, such as
    deadlines, relative dates ("next Friday") or timestamps in a draft.

    Args:
        timespec: Precision of the time part
    """
    return datetime.now(timezone.utc).isoformat(timespec=timespec)


__all__ = ["now"]
