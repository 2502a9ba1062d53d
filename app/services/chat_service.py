"""
Chat Service Module

Business logic layer for chat operations.
Handles:
- Selecting the question to answer
- Context retrieval (best effort)
- Prompt completion
- Opening the model stream
"""

from typing import List, Optional

import httpx

from app.core.config import settings, Settings
from app.core.logging import get_logger
from app.llm.client import LLMClient, LLMClientFactory
from app.models.request import ChatMessage, ChatRequest
from app.rag.augmenter import ContextAugmenter
from app.rag.prompt import PromptBuilder
from app.rag.retriever import Retriever

logger = get_logger(__name__)


class NoUserMessageError(ValueError):
    """The conversation has no user-authored message to answer"""


class ChatService:
    """
    Service for preparing conversations and opening model streams.
    """

    def __init__(
        self,
        config: Settings = settings,
        llm_client: Optional[LLMClient] = None,
        augmenter: Optional[ContextAugmenter] = None,
        prompt_builder: Optional[PromptBuilder] = None,
    ):
        """
        Initialize chat service.

        Collaborators are built from config when not given; pass fakes
        to test without network access.
        """
        self.config = config
        self._llm_client = llm_client
        self.prompt_builder = prompt_builder or PromptBuilder(system_prompt=config.SYSTEM_PROMPT)
        self.augmenter = augmenter or ContextAugmenter(
            retriever=Retriever(config=config),
            prompt_builder=self.prompt_builder,
            enabled=config.RETRIEVAL_ENABLED,
        )

        logger.info("Initialized ChatService")

    @property
    def llm_client(self) -> LLMClient:
        if self._llm_client is None:
            self._llm_client = LLMClientFactory.create_client(config=self.config)
        return self._llm_client

    @property
    def translate_stream(self) -> bool:
        return self.config.STREAM_MODE == "translate"

    async def prepare_messages(self, chat_request: ChatRequest) -> List[ChatMessage]:
        """
        Build the final message list for the model.

        Args:
            chat_request: Parsed request

        Returns:
            Conversation with optional context appended and an instruction
            message guaranteed

        Raises:
            NoUserMessageError: If there is no user message to answer
        """
        user_message = chat_request.latest_user_message()
        if user_message is None:
            raise NoUserMessageError("No user message found")

        logger.debug(f"Preparing {len(chat_request.messages)} messages, query: {user_message.content[:100]}...")

        messages = await self.augmenter.augment(chat_request.messages, user_message)
        return self.prompt_builder.ensure_system_prompt(messages)

    async def open_stream(self, chat_request: ChatRequest) -> Optional[httpx.Response]:
        """
        Prepare the conversation and open the model stream.

        Returns:
            The open upstream response (caller must close it), or None when
            no stream body could be obtained
        """
        messages = await self.prepare_messages(chat_request)
        return await self.llm_client.open_stream(messages, max_tokens=self.config.LLM_MAX_TOKENS)

    async def aclose(self):
        if self._llm_client is not None:
            await self._llm_client.aclose()


# Global service instance
_chat_service = None


def get_chat_service() -> ChatService:
    """Get or create chat service instance"""
    global _chat_service
    if _chat_service is None:
        _chat_service = ChatService()
    return _chat_service
