"""
Base Reward Source - Abstract interface for GraphQL reward datasets.

All sources MUST:
- Issue a single request per run (no retries, no backoff)
- Never raise from fetch() - a failed source contributes an empty ledger
- Fold edges through their aggregation policy, never ad hoc
"""

import json
import logging
import time
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Union

import aiohttp

from reward_sources.aggregation import AggregationStrategy, strategy_for
from reward_sources.exceptions import (
    FetchError,
    InvalidIdentityError,
    MalformedSourceDataError,
    NotANumberError,
    RewardSourceError,
)
from reward_sources.models import (
    AggregationPolicy,
    SourceFetchResult,
    SourceIncident,
    SourceLayer,
    SourceLedger,
)
from reward_sources.normalizers import parse_amount, parse_identity


logger = logging.getLogger(__name__)


class BaseRewardSource(ABC):
    """
    Abstract base class for reward sources.

    Each source must:
    1. Declare its layer, collection name and aggregation policy
    2. Implement build_query() - GraphQL document for the collection
    3. Implement edge_amount() - pull the raw amount out of one edge node

    The result structure consumed by extract() is
    ``{"data": {<collection>: {"totalCount": int, "edges": [{"node": {...}}]}}}``.
    """

    DEFAULT_TIMEOUT = 30.0
    DEFAULT_QUERY_LIMIT = 200
    IDENTITY_FIELD = "player"

    def __init__(
        self,
        endpoint: str,
        query_limit: int = DEFAULT_QUERY_LIMIT,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self._endpoint = endpoint
        self._query_limit = query_limit
        self._timeout = timeout
        self._session = session
        self._owns_session = session is None
        self._strategy: AggregationStrategy = strategy_for(self.policy)

        self._incidents: list[SourceIncident] = []

    @property
    @abstractmethod
    def layer(self) -> SourceLayer:
        """Ledger this source reads."""
        pass

    @property
    @abstractmethod
    def collection_name(self) -> str:
        """Top-level GraphQL collection holding the edges."""
        pass

    @property
    @abstractmethod
    def policy(self) -> AggregationPolicy:
        """Aggregation policy for repeated identities."""
        pass

    @abstractmethod
    def build_query(self) -> str:
        """GraphQL document requesting the collection."""
        pass

    @abstractmethod
    def edge_amount(self, node: dict[str, Any]) -> Any:
        """
        Return the raw amount carried by one edge node.

        Returns None when the amount is absent.
        """
        pass

    @property
    def name(self) -> str:
        return self.layer.value

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @property
    def query_limit(self) -> int:
        return self._query_limit

    # ─────────────────────────────────────────────────────────────
    # Retrieval
    # ─────────────────────────────────────────────────────────────

    async def fetch(self) -> SourceFetchResult:
        """
        Fetch and extract this source's ledger (main entry point).

        NEVER raises - a failed fetch yields an empty ledger and an incident.
        """
        start_time = time.time()
        try:
            raw_data = await self.fetch_raw()
            ledger = self.extract(raw_data)
        except RewardSourceError as e:
            return self._failed(e)
        except Exception as e:
            error = RewardSourceError(
                message=f"Unexpected error: {e}",
                source_name=self.name,
                original_error=e,
            )
            return self._failed(error)

        latency_ms = (time.time() - start_time) * 1000
        logger.info(
            f"[{self.name}] Fetched {len(ledger)} participants "
            f"from {ledger.edges_seen} edges in {latency_ms:.0f}ms"
        )
        return SourceFetchResult(ledger=ledger, latency_ms=latency_ms)

    async def fetch_raw(self) -> dict[str, Any]:
        """
        POST the query to the endpoint, single attempt.

        Raises:
            FetchError: on transport failure or HTTP status >= 400
            MalformedSourceDataError: if the body carries GraphQL errors
        """
        session = await self._get_session()
        payload = {"query": self.build_query()}

        try:
            async with session.post(
                self._endpoint,
                json=payload,
                headers={"Content-Type": "application/json"},
            ) as response:
                if response.status >= 400:
                    body = await response.text()
                    raise FetchError(
                        message=f"HTTP {response.status}",
                        source_name=self.name,
                        status_code=response.status,
                        response_body=body[:500],
                        request_url=self._endpoint,
                    )
                data = await response.json(content_type=None)

        except aiohttp.ClientError as e:
            raise FetchError(
                message=f"Connection error: {e}",
                source_name=self.name,
                request_url=self._endpoint,
                original_error=e,
            )

        self._raise_for_errors(data, "response")
        return data

    def load(self, path: Union[str, Path]) -> SourceFetchResult:
        """
        Extract a ledger from a captured JSON snapshot instead of the network.

        Never raises, like fetch().
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                raw_data = json.load(f)
        except (OSError, ValueError) as e:
            return self._failed(FetchError(
                message=f"Could not read snapshot {path}: {e}",
                source_name=self.name,
                original_error=e,
            ))

        try:
            self._raise_for_errors(raw_data, "snapshot")
            ledger = self.extract(raw_data)
        except RewardSourceError as e:
            return self._failed(e)

        logger.info(f"[{self.name}] Loaded {len(ledger)} participants from {path}")
        return SourceFetchResult(ledger=ledger)

    # ─────────────────────────────────────────────────────────────
    # Extraction
    # ─────────────────────────────────────────────────────────────

    def extract(self, raw_data: Any) -> SourceLedger:
        """
        Fold every edge of a query result into a SourceLedger.

        Raises:
            MalformedSourceDataError: if the required nesting is missing
        """
        collection = self._collection(raw_data)
        edges = collection["edges"]

        ledger = SourceLedger.empty(self.name, self.policy)
        total_count = collection.get("totalCount")
        if isinstance(total_count, int) and not isinstance(total_count, bool):
            ledger.reported_total = total_count

        for index, edge in enumerate(edges):
            ledger.edges_seen += 1

            node = edge.get("node") if isinstance(edge, dict) else None
            if not isinstance(node, dict):
                ledger.edges_skipped += 1
                logger.warning(f"[{self.name}] Edge {index} has no node, skipped")
                continue

            try:
                identity = parse_identity(node.get(self.IDENTITY_FIELD))
            except InvalidIdentityError as e:
                ledger.edges_skipped += 1
                logger.warning(f"[{self.name}] Edge {index} skipped: {e}")
                continue

            try:
                amount = parse_amount(self.edge_amount(node))
            except NotANumberError as e:
                e.source_name = self.name
                logger.warning(f"[{self.name}] Rejecting amount for {identity:#x}: {e.message}")
                amount = e

            self._strategy.apply(ledger, identity, amount)

        if ledger.is_truncated():
            logger.warning(
                f"[{self.name}] Endpoint reported {ledger.reported_total} rows "
                f"but returned {ledger.edges_seen}; raise the query limit"
            )

        return ledger

    def _raise_for_errors(self, raw_data: Any, origin: str) -> None:
        """Any non-null top-level ``errors`` field fails the source, even an empty list."""
        if not isinstance(raw_data, dict) or raw_data.get("errors") is None:
            return
        errors = raw_data["errors"]
        raise MalformedSourceDataError(
            message=f"GraphQL errors in {origin}",
            source_name=self.name,
            graphql_errors=errors if isinstance(errors, list) else [errors],
        )

    def _collection(self, raw_data: Any) -> dict[str, Any]:
        """Walk data.<collection> and check it carries an edge list."""
        path = "data"
        node = raw_data.get("data") if isinstance(raw_data, dict) else None
        if isinstance(node, dict):
            path = f"data.{self.collection_name}"
            node = node.get(self.collection_name)
            if isinstance(node, dict):
                path = f"data.{self.collection_name}.edges"
                if isinstance(node.get("edges"), list):
                    return node

        raise MalformedSourceDataError(
            message=f"Invalid {self.name} data structure: missing {path}",
            source_name=self.name,
            missing_path=path,
        )

    # ─────────────────────────────────────────────────────────────
    # HTTP Helpers
    # ─────────────────────────────────────────────────────────────

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout),
                headers={"Accept": "application/json"},
            )
            self._owns_session = True
        return self._session

    # ─────────────────────────────────────────────────────────────
    # Incident Tracking
    # ─────────────────────────────────────────────────────────────

    def _failed(self, error: RewardSourceError) -> SourceFetchResult:
        """Downgrade a source failure to an empty ledger plus incident."""
        incident = SourceIncident(
            source_name=self.name,
            incident_type=error.__class__.__name__,
            timestamp=datetime.utcnow(),
            error_message=str(error),
            endpoint=self._endpoint,
        )
        self._incidents.append(incident)
        logger.warning(f"[{self.name}] Incident: {error}")

        return SourceFetchResult(
            ledger=SourceLedger.empty(self.name, self.policy),
            incident=incident,
        )

    def get_incidents(self, limit: int = 10) -> list[SourceIncident]:
        """Get recent incidents."""
        return self._incidents[-limit:]

    # ─────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────

    async def close(self) -> None:
        """Close resources."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "BaseRewardSource":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(name={self.name}, endpoint={self._endpoint})>"
