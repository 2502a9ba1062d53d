import httpx
from typing import Optional, Dict, Any, List
from abc import ABC, abstractmethod

from app.core.config import settings, Settings
from app.core.logging import get_logger
from app.models.request import ChatMessage

logger = get_logger(__name__)

EVENT_STREAM_CONTENT_TYPE = "text/event-stream"


class LLMClient(ABC):
    """Abstract base class for LLM clients"""

    model: str

    @abstractmethod
    async def generate(self, messages: List[ChatMessage], **kwargs) -> str:
        """Generate a complete response in one call"""
        pass

    @abstractmethod
    async def open_stream(self, messages: List[ChatMessage], **kwargs) -> Optional[httpx.Response]:
        """Open a streaming response; the caller owns and must close it"""
        pass

    async def aclose(self):
        """Release network resources"""
        pass


class WorkersAIClient(LLMClient):
    """Cloudflare Workers AI client (REST API)"""

    def __init__(
        self,
        config: Settings = settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize Workers AI client

        Args:
            config: Settings holding account, token, model and limits
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.base_url = config.CLOUDFLARE_API_BASE_URL.rstrip("/")
        self.account_id = config.CLOUDFLARE_ACCOUNT_ID
        self.api_token = config.CLOUDFLARE_API_TOKEN
        self.model = config.LLM_MODEL_NAME
        self.max_tokens = config.LLM_MAX_TOKENS
        self.timeout = config.HTTP_TIMEOUT
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

        if not self.account_id or not self.api_token:
            logger.warning("CLOUDFLARE_ACCOUNT_ID / CLOUDFLARE_API_TOKEN not set; inference calls will fail")

        logger.info(f"Initialized Workers AI client with model: {self.model}")

    @property
    def run_url(self) -> str:
        return f"{self.base_url}/accounts/{self.account_id}/ai/run/{self.model}"

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
                headers={"Authorization": f"Bearer {self.api_token}"},
            )
        return self._client

    def _build_payload(
        self,
        messages: List[ChatMessage],
        stream: bool = False,
        **kwargs
    ) -> Dict[str, Any]:
        """Build request payload for Workers AI"""
        max_tokens = kwargs.get("max_tokens") or self.max_tokens
        return {
            "messages": [m.to_payload() for m in messages],
            "max_tokens": max_tokens,
            "stream": stream,
        }

    async def generate(self, messages: List[ChatMessage], **kwargs) -> str:
        """
        Generate a structured (non-streaming) completion

        Args:
            messages: Final message list, instruction message first
            **kwargs: Additional parameters (max_tokens)

        Returns:
            Generated text response

        Raises:
            httpx.HTTPError: On transport errors or an error status
            ValueError: If the body carries no result.response
        """
        payload = self._build_payload(messages, stream=False, **kwargs)

        logger.debug(f"Generating response with model: {self.model}")
        try:
            response = await self._http().post(self.run_url, json=payload)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Error generating response: {e}")
            raise

        try:
            text = response.json()["result"]["response"]
        except (ValueError, KeyError, TypeError) as e:
            logger.error(f"Error parsing Workers AI response: {e}")
            raise ValueError("Malformed Workers AI response: missing result.response") from e
        if not isinstance(text, str):
            raise ValueError("Malformed Workers AI response: result.response is not text")

        logger.debug(f"Generated response ({len(text)} chars)")
        return text.strip()

    async def open_stream(self, messages: List[ChatMessage], **kwargs) -> Optional[httpx.Response]:
        """
        Open a streaming completion

        Args:
            messages: Final message list, instruction message first
            **kwargs: Additional parameters (max_tokens)

        Returns:
            The open SSE response, or None when the upstream did not
            answer with an event stream

        Raises:
            httpx.HTTPError: On transport errors or an error status
        """
        payload = self._build_payload(messages, stream=True, **kwargs)
        client = self._http()
        request = client.build_request("POST", self.run_url, json=payload)

        logger.debug(f"Streaming response with model: {self.model} ({len(messages)} messages)")
        try:
            response = await client.send(request, stream=True)
        except httpx.HTTPError as e:
            logger.error(f"Error opening stream: {e}")
            raise

        if response.is_error:
            await response.aread()
            await response.aclose()
            logger.error(f"Workers AI returned {response.status_code}: {response.text[:200]}")
            response.raise_for_status()

        content_type = response.headers.get("content-type", "")
        if not content_type.startswith(EVENT_STREAM_CONTENT_TYPE):
            logger.warning(f"Expected an event stream, got content-type '{content_type}'")
            await response.aclose()
            return None

        return response

    async def aclose(self):
        if self._client is not None:
            await self._client.aclose()
            self._client = None


class LLMClientFactory:
    """Factory for creating LLM clients"""

    _clients = {
        "workers_ai": WorkersAIClient,
    }

    @classmethod
    def create_client(
        cls,
        client_type: str = "workers_ai",
        **kwargs
    ) -> LLMClient:
        """
        Create LLM client instance

        Args:
            client_type: Type of client ('workers_ai')
            **kwargs: Additional arguments for client initialization

        Returns:
            LLMClient instance

        Raises:
            ValueError: If client type is not supported
        """
        if client_type not in cls._clients:
            raise ValueError(
                f"Unsupported LLM client type: {client_type}. "
                f"Supported types: {list(cls._clients.keys())}"
            )

        client_class = cls._clients[client_type]
        logger.info(f"Creating {client_type} LLM client")
        return client_class(**kwargs)
