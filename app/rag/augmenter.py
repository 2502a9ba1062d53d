"""
Context augmentation

Best-effort enrichment of a conversation with retrieved code excerpts.
Failures never fail the request: the conversation goes on unchanged.
"""

from typing import List, Optional

from app.core.config import settings
from app.core.logging import get_logger
from app.models.request import ChatMessage
from app.rag.prompt import PromptBuilder, get_prompt_builder
from app.rag.retriever import Retriever

logger = get_logger(__name__)


class ContextAugmenter:
    """Appends one context message built from the latest user question."""

    def __init__(
        self,
        retriever: Retriever,
        prompt_builder: Optional[PromptBuilder] = None,
        enabled: bool = settings.RETRIEVAL_ENABLED,
    ):
        self.retriever = retriever
        self.prompt_builder = prompt_builder or get_prompt_builder()
        self.enabled = enabled

    async def augment(
        self,
        messages: List[ChatMessage],
        user_message: Optional[ChatMessage],
    ) -> List[ChatMessage]:
        """
        Enrich a conversation with retrieved context.

        Args:
            messages: Full conversation, oldest first (not modified)
            user_message: Message whose content is used as the query

        Returns:
            A new list with at most one appended context message, or the
            original list when there is nothing to add
        """
        if user_message is None or not self.enabled:
            return messages

        try:
            result = await self.retriever.retrieve(user_message.content)
        except Exception as e:
            logger.warning(f"Context retrieval failed, continuing without context: {e}")
            return messages

        if result.is_empty:
            logger.warning("Context retrieval returned no results, continuing without context")
            return messages

        context_message = self.prompt_builder.build_context_message(result)
        logger.debug(f"Appended context message ({len(context_message.content)} chars)")
        return list(messages) + [context_message]
