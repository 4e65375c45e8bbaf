"""HTTP fetching tool."""

import json

import httpx
from langchain_core.tools import tool

HTTP_FETCH_TIMEOUT = 20.0
MAX_BODY_CHARS = 20_000


@tool
async def http_fetch(url: str) -> str:
    """Fetch a web page or API endpoint with an HTTP GET request.

    Use this to read public URLs or JSON APIs. Large bodies are truncated.

    Args:
        url: Absolute http(s) URL to fetch

    Returns:
        JSON with ok, url, status_code, content_type and body (or error)
    """
    try:
        async with httpx.AsyncClient(timeout=HTTP_FETCH_TIMEOUT, follow_redirects=True) as client:
            response = await client.get(url)
    except httpx.HTTPError as e:
        return json.dumps({"ok": False, "url": url, "error": f"{type(e).__name__}: {e}"}, ensure_ascii=False)

    body = response.text
    truncated = len(body) > MAX_BODY_CHARS
    return json.dumps({
        "ok": response.is_success,
        "url": str(response.url),
        "status_code": response.status_code,
        "content_type": response.headers.get("content-type", ""),
        "body": body[:MAX_BODY_CHARS],
        "truncated": truncated,
    }, ensure_ascii=False)


__all__ = ["http_fetch"]
