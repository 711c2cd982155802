"""Async GraphQL client for the organization host"""

from typing import Any, Callable, Dict, List, Optional

import httpx

from registry_auth.core.config import DEFAULT_GITHUB_API_URL, DEFAULT_PAGE_SIZE
from registry_auth.core.errors import UpstreamError
from registry_auth.infrastructure.github.queries import operation_name
from registry_auth.infrastructure.github.schema import PageInfo
from registry_auth.infrastructure.logging import get_logger
from registry_auth.infrastructure.metrics import (
    Timer,
    upstream_queries_total,
    upstream_query_duration_seconds,
)

logger = get_logger(__name__)

Result = Dict[str, Any]
PageInfoExtractor = Callable[[Result], Optional[PageInfo]]


class GraphQLClient:
    """HTTP client for the GraphQL API, authenticated with a single token."""

    def __init__(
        self,
        token: str,
        api_url: str = DEFAULT_GITHUB_API_URL,
        timeout: float = 30.0,
        page_size: int = DEFAULT_PAGE_SIZE,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            token: Token sent as ``Authorization: token <token>``
            api_url: GraphQL endpoint
            timeout: Per-request timeout in seconds
            page_size: Default ``first`` for paginated queries
            transport: Optional httpx transport (used by tests)
        """
        self.api_url = api_url
        self.page_size = page_size

        self.headers = {
            "Authorization": f"token {token}",
            "Accept": "application/json",
            "Content-Type": "application/json",
        }

        self.client = httpx.AsyncClient(
            headers=self.headers,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self) -> None:
        """Close HTTP client."""
        await self.client.aclose()

    async def get(self, query: str, params: Optional[Dict[str, Any]] = None) -> Result:
        """
        Execute a single GraphQL request.

        Returns:
            The ``data`` member of the response

        Raises:
            UpstreamError: on transport failure, HTTP error status or GraphQL errors
        """
        name = operation_name(query)
        logger.debug("graphql_query_started", query=name, variables=params)

        with Timer(upstream_query_duration_seconds, query=name):
            try:
                response = await self.client.post(
                    self.api_url, json={"query": query, "variables": params or {}}
                )
            except httpx.HTTPError as e:
                upstream_queries_total.labels(query=name, status="transport_error").inc()
                raise UpstreamError(
                    f"Request to {self.api_url} failed: {e}", details={"query": name}
                ) from e

        upstream_queries_total.labels(query=name, status=str(response.status_code)).inc()
        return self._handle_response(name, response)

    async def get_all(
        self,
        query: str,
        params: Dict[str, Any],
        page_info: PageInfoExtractor,
    ) -> List[Result]:
        """
        Retrieve every page of a Relay-style paginated query.

        Pages are requested one after the other, each continuing from the
        previous page's ``endCursor``, and returned in request order.
        """
        params = {"first": self.page_size, **params}
        pages: List[Result] = []

        page = await self.get(query, params)
        while True:
            pages.append(page)

            info = page_info(page)
            if info is None or not info.has_next_page:
                break
            if info.end_cursor is None:
                logger.warning("graphql_missing_cursor", query=operation_name(query), pages=len(pages))
                break

            page = await self.get(query, {**params, "after": info.end_cursor})

        logger.debug("graphql_pages_fetched", query=operation_name(query), pages=len(pages))
        return pages

    def _handle_response(self, name: str, response: httpx.Response) -> Result:
        try:
            body = response.json() if response.content else None
        except ValueError:
            body = None

        if response.is_error:
            message = "GraphQL request failed"
            if isinstance(body, dict):
                message = body.get("message", message)
            raise UpstreamError(
                message,
                status_code=response.status_code,
                details={"query": name},
            )

        if not isinstance(body, dict):
            raise UpstreamError(
                "GraphQL response is not a JSON object",
                status_code=response.status_code,
                details={"query": name},
            )

        errors = body.get("errors")
        if errors:
            messages = [
                err.get("message", "unknown error") if isinstance(err, dict) else str(err)
                for err in errors
            ]
            raise UpstreamError(
                "; ".join(messages),
                status_code=response.status_code,
                details={"query": name, "errors": errors},
            )

        data = body.get("data")
        if not isinstance(data, dict):
            raise UpstreamError(
                "GraphQL response has no data",
                status_code=response.status_code,
                details={"query": name},
            )

        logger.debug("graphql_query_completed", query=name, status_code=response.status_code)
        return data
