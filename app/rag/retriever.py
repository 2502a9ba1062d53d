"""
Retriever Module

Fetches electrical code context from a Cloudflare AutoRAG instance.

Two modes are supported:
- search:    plain ranked search, returns the matching chunks
- ai_search: model-mediated retrieval, AutoRAG answers from its own index
             and the generated text is used as context

Both take the same tuning parameters: maximum number of results and a
relevance score threshold. They are fixed configuration, not per request.
"""

from typing import List, Dict, Any, Optional

import httpx

from app.core.config import settings, Settings
from app.core.logging import get_logger
from app.models.response import ContextChunk, RetrievalResult

logger = get_logger(__name__)


class Retriever:
    """
    Retrieves relevant context for a query from AutoRAG.
    """

    MODES = ("search", "ai_search")

    def __init__(
        self,
        config: Settings = settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        top_k: Optional[int] = None,
        similarity_threshold: Optional[float] = None,
        mode: Optional[str] = None,
    ):
        """
        Initialize retriever.

        Args:
            config: Settings holding account, token and AutoRAG name
            transport: Optional httpx transport (tests use httpx.MockTransport)
            top_k: Maximum number of results
            similarity_threshold: Minimum relevance score (0.0-1.0)
            mode: 'search' or 'ai_search'
        """
        self.base_url = config.CLOUDFLARE_API_BASE_URL.rstrip("/")
        self.account_id = config.CLOUDFLARE_ACCOUNT_ID
        self.api_token = config.CLOUDFLARE_API_TOKEN
        self.rag_name = config.AUTORAG_NAME
        self.rewrite_query = config.RETRIEVAL_REWRITE_QUERY
        self.timeout = config.HTTP_TIMEOUT
        self.top_k = top_k if top_k is not None else config.RETRIEVAL_TOP_K
        self.similarity_threshold = (
            similarity_threshold if similarity_threshold is not None else config.SIMILARITY_THRESHOLD
        )
        self.mode = mode or config.RETRIEVAL_MODE
        self._transport = transport

        if self.mode not in self.MODES:
            raise ValueError(f"Unsupported retrieval mode: {self.mode}. Supported: {list(self.MODES)}")

        logger.info(
            f"Initialized Retriever: rag={self.rag_name}, mode={self.mode}, "
            f"top_k={self.top_k}, threshold={self.similarity_threshold}"
        )

    @property
    def endpoint(self) -> str:
        action = "ai-search" if self.mode == "ai_search" else "search"
        return f"{self.base_url}/accounts/{self.account_id}/autorag/rags/{self.rag_name}/{action}"

    def _build_payload(self, query: str) -> Dict[str, Any]:
        return {
            "query": query,
            "rewrite_query": self.rewrite_query,
            "max_num_results": self.top_k,
            "ranking_options": {
                "score_threshold": self.similarity_threshold,
            },
        }

    @staticmethod
    def _parse_chunks(data: List[Dict[str, Any]]) -> List[ContextChunk]:
        """Convert AutoRAG result items into ContextChunk objects"""
        chunks = []
        for item in data:
            parts = item.get("content") or []
            text = "\n".join(
                p.get("text", "") for p in parts if p.get("type", "text") == "text"
            ).strip()
            if not text:
                continue
            chunks.append(ContextChunk(
                text=text,
                source=item.get("filename"),
                similarity_score=item.get("score"),
                metadata=item.get("attributes"),
            ))
        return chunks

    async def retrieve(self, query: str) -> RetrievalResult:
        """
        Retrieve context for a query.

        Args:
            query: User query string

        Returns:
            RetrievalResult (possibly empty)

        Raises:
            httpx.HTTPError: On transport errors or an error status
            ValueError: If the response body is not what AutoRAG returns
        """
        if not query or not query.strip():
            logger.warning("Empty query provided")
            return RetrievalResult(query=query or "")

        logger.debug(f"Retrieving context for query: {query[:100]}...")

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(
                self.endpoint,
                json=self._build_payload(query),
                headers={"Authorization": f"Bearer {self.api_token}"},
            )
        response.raise_for_status()

        body = response.json()
        if not isinstance(body, dict) or not isinstance(body.get("result"), dict):
            raise ValueError("Malformed AutoRAG response: missing 'result'")
        if body.get("success") is False:
            raise ValueError(f"AutoRAG reported failure: {body.get('errors')}")

        result = body["result"]
        chunks = self._parse_chunks(result.get("data") or [])
        text = (result.get("response") or "").strip() if self.mode == "ai_search" else ""

        logger.info(f"Retrieved {len(chunks)} chunks (score >= {self.similarity_threshold})")

        return RetrievalResult(
            query=result.get("search_query") or query,
            text=text,
            chunks=chunks,
        )
