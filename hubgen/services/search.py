"""Search service — web search used to widen context after a rejected review."""

import logging
import os
import re

import httpx

from hubgen.utils.parsing import call_with_retry

logger = logging.getLogger(__name__)

TAVILY_URL = "https://api.tavily.com/search"
_ENDPOINT_RE = re.compile(r"\b(GET|POST|PUT|DELETE|PATCH)\s+(/[\w/\-{}.:]+)")


def extract_endpoints(text: str) -> list[str]:
    """Return unique `METHOD /path` patterns found in free text, in order of appearance."""
    seen: list[str] = []
    for method, path in _ENDPOINT_RE.findall(text):
        endpoint = f"{method} {path}"
        if endpoint not in seen:
            seen.append(endpoint)
    return seen


class TavilySearch:
    def __init__(
        self,
        api_key: str | None = None,
        max_results: int = 5,
        max_retries: int = 3,
        client: httpx.Client | None = None,
    ):
        self.api_key = api_key if api_key is not None else os.getenv("TAVILY_API_KEY", "")
        self.max_results = max_results
        self.max_retries = max_retries
        self._client = client or httpx.Client(timeout=30)

    def search(self, query: str) -> str:
        """Return a plain-text digest of the search results for `query`.

        A failed search yields a text describing the failure; the caller
        stores it as context either way.
        """
        logger.info("Search called with query: %s", query)
        payload = {
            "api_key": self.api_key,
            "query": query,
            "search_depth": "basic",
            "include_answer": True,
            "max_results": self.max_results,
        }

        def _post() -> httpx.Response:
            response = self._client.post(TAVILY_URL, json=payload)
            response.raise_for_status()
            return response

        try:
            data = call_with_retry(_post, max_retries=self.max_retries).json()
        except httpx.HTTPError as exc:
            logger.warning("Search failed for %r: %r", query, exc)
            return f"Error occurred during search: {exc}"

        return _format_results(query, data)


def _format_results(query: str, data: dict) -> str:
    lines = [f"Search results for query: {query}", ""]
    if data.get("answer"):
        lines += [f"Summary: {data['answer']}", ""]
    for result in data.get("results", []):
        lines.append(f"{result.get('title', '')} ({result.get('url', '')})")
        content = result.get("content", "")
        if content:
            lines.append(content)
        endpoints = extract_endpoints(content)
        if endpoints:
            lines.append("Endpoints found:")
            lines += [f"  {endpoint}" for endpoint in endpoints]
        lines.append("")
    return "\n".join(lines)
