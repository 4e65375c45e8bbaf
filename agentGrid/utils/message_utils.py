"""Message formatting utilities."""

from __future__ import annotations

import json
from typing import Any, Iterable, List

from langchain_core.messages import BaseMessage, HumanMessage


def stringify_content(content: Any) -> str:
    """Convert message content to string.

    Handles:
    - List content (multimodal messages / content blocks)
    - Dict content with "text" field
    - Simple string content
    - Anything else is JSON-encoded where possible

    Args:
        content: Message or tool result content (any format)

    Returns:
        String representation
    """
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        pieces: list[str] = []
        for item in content:
            if isinstance(item, dict) and "text" in item:
                pieces.append(str(item["text"]))
            elif isinstance(item, str):
                pieces.append(item)
            else:
                pieces.append(json.dumps(item, ensure_ascii=False, default=str))
        return "\n".join(pieces)
    if isinstance(content, dict):
        if isinstance(content.get("text"), str):
            return content["text"]
        return json.dumps(content, ensure_ascii=False, default=str)
    return str(content)


def build_attachment_message(image_urls: Iterable[str], text: str = "Uploaded attachments:") -> HumanMessage:
    """Build a multimodal user turn carrying image attachments as image_url parts."""
    parts: List[dict] = [{"type": "text", "text": text}]
    for url in image_urls:
        parts.append({"type": "image_url", "image_url": {"url": url}})
    return HumanMessage(content=parts)


def last_user_text(messages: Iterable[BaseMessage]) -> str:
    """Return the text of the most recent human message, or an empty string."""
    for message in reversed(list(messages)):
        if isinstance(message, HumanMessage):
            return stringify_content(message.content)
    return ""


__all__ = ["stringify_content", "build_attachment_message", "last_user_text"]
