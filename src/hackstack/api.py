"""Hacker News API client with optional caching."""

import hashlib
import json
import logging
from pathlib import Path
from typing import Any

import requests

from hackstack.config import (
    ALGOLIA_API_BASE,
    API_CACHE_PREFIX,
    HN_API_BASE,
    REQUEST_TIMEOUT,
    SEARCH_MAX_HITS,
    SEARCH_MIN_COMMENTS,
)
from hackstack.errors import DecodeFailure, NetworkFailure
from hackstack.models.item import SearchHit


class HackerNewsApi:
    """Encapsulated Hacker News API (Firebase items + Algolia search) with caching."""

    def __init__(self, *, from_cache: bool = False, timeout: float = REQUEST_TIMEOUT) -> None:
        self.from_cache = from_cache
        self.timeout = timeout
        self.sess = requests.Session()
        self.logger = logging.getLogger("api")

        self.api_cache_prefix: str | None = API_CACHE_PREFIX

        if not self.from_cache:
            # We could imagine "write-only" cache mode, but for now, we do not bother.
            self.api_cache_prefix = None

        self.logger.debug(
            f"API ready: from_cache {self.from_cache!r}, "
            f"api_cache_prefix {self.api_cache_prefix!r}"
        )

        if self.api_cache_prefix:
            Path(self.api_cache_prefix).parent.mkdir(parents=True, exist_ok=True)

    def get_json(self, url: str, params: dict[str, Any] | None = None) -> Any:
        """GET a URL and return decoded JSON.

        Raises:
            NetworkFailure: connection error, timeout or non-2xx status.
            DecodeFailure: body is not valid JSON.
        """
        name_last = url.split("://", 1)[-1]
        if params:
            params_str = json.dumps(params, sort_keys=True, separators=(",", ":"))
            if len(params_str) > 64:
                params_str = hashlib.sha1(params_str.encode("utf-8")).hexdigest()
            name_last += "--" + params_str

        log_name: str | None = None
        if self.api_cache_prefix:
            log_name = self.api_cache_prefix + name_last.replace("/", "--")

            if self.from_cache and Path(log_name).exists():
                self.logger.debug(f"Filled from cache: {log_name!r}")
                with open(log_name, encoding="utf-8") as f:
                    return json.load(f)

        self.logger.debug(f"Making request: {url!r} {repr(params)[:32]}")

        try:
            r = self.sess.get(url, params=params, timeout=self.timeout)
            r.raise_for_status()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            msg = f"Request failed: {url!r} -> HTTP {status}"
            raise NetworkFailure(msg, status_code=status) from e
        except requests.RequestException as e:
            msg = f"Request failed: {url!r} -> {e}"
            raise NetworkFailure(msg) from e

        try:
            rv = r.json()
        except ValueError as e:
            msg = f"Malformed JSON from {url!r}"
            raise DecodeFailure(msg) from e

        if self.api_cache_prefix and log_name:
            with open(log_name, "w", encoding="utf-8") as f:
                f.write(r.text)

        return rv

    def get_item(self, item_id: int) -> dict[str, Any] | None:
        """Fetch one story or comment. Returns None for nonexistent items."""
        rv = self.get_json(f"{HN_API_BASE}/item/{item_id}.json")
        if rv is None:
            return None
        if not isinstance(rv, dict) or "id" not in rv:
            msg = f"bad item payload for {item_id}: {str(rv)[:64]!r}"
            raise DecodeFailure(msg)
        return rv

    def get_id_list(self, endpoint: str) -> list[int]:
        """Fetch a ranked list of ids, e.g. endpoint 'topstories'."""
        rv = self.get_json(f"{HN_API_BASE}/{endpoint}.json")
        if not isinstance(rv, list):
            msg = f"bad id list for {endpoint!r}: {type(rv).__name__}"
            raise DecodeFailure(msg)
        try:
            return [int(x) for x in rv]
        except (TypeError, ValueError) as e:
            msg = f"bad id in list for {endpoint!r}"
            raise DecodeFailure(msg) from e

    def search(
        self,
        query: str,
        *,
        min_comments: int = SEARCH_MIN_COMMENTS,
        max_hits: int = SEARCH_MAX_HITS,
    ) -> list[SearchHit]:
        """Search stories. Multi-word queries are matched as an exact phrase."""
        formatted = f'"{query}"' if " " in query else query
        rv = self.get_json(
            f"{ALGOLIA_API_BASE}/search",
            {
                "query": formatted,
                "tags": "story",
                "numericFilters": f"num_comments>{min_comments}",
                "hitsPerPage": str(max_hits),
            },
        )
        if not isinstance(rv, dict) or not isinstance(rv.get("hits"), list):
            msg = "bad search response: missing hits"
            raise DecodeFailure(msg)

        hits: list[SearchHit] = []
        for raw in rv["hits"]:
            hit = _parse_search_hit(raw)
            if hit is None:
                self.logger.debug(f"Skipping malformed search hit: {str(raw)[:64]!r}")
                continue
            hits.append(hit)
        return hits


def _parse_search_hit(raw: Any) -> SearchHit | None:
    try:
        children = raw.get("children")
        return SearchHit(
            id=int(raw["objectID"]),
            title=raw.get("title"),
            url=raw.get("url"),
            author=raw.get("author") or "[unknown]",
            points=raw.get("points"),
            comment_count=raw.get("num_comments"),
            created_at=float(raw["created_at_i"]),
            child_ids=tuple(int(c) for c in children) if children is not None else None,
            body_text=raw.get("story_text"),
        )
    except (AttributeError, KeyError, TypeError, ValueError):
        return None
