"""
Prompt Template Module

Builds the message list sent to the model.

- Default instruction: the system message placed first when the caller
  did not supply one
- Context message: retrieved code excerpts, injected with the reserved
  'context' role so it never counts as the instruction message

Variables in templates:
{context} - Retrieved document context
{index}, {text} - Single chunk fields
"""

from typing import List, Optional

from app.core.config import settings
from app.core.logging import get_logger
from app.models.request import ChatMessage, ChatMessageRole
from app.models.response import ContextChunk, RetrievalResult

logger = get_logger(__name__)


class PromptTemplate:
    """Base prompt template"""

    def __init__(self, template: str):
        """
        Initialize prompt template.

        Args:
            template: Template string with {variable} placeholders
        """
        self.template = template

    def format(self, **kwargs) -> str:
        """Format template with provided variables"""
        try:
            return self.template.format(**kwargs)
        except KeyError as e:
            logger.warning(f"Missing variable in template: {e}")
            raise


class PromptTemplates:
    """Collection of prompt templates"""

    CONTEXT_PROMPT = PromptTemplate(
        template="""Relevant excerpts from the National Electrical Code (NEC) 2017:

{context}

Use these excerpts when they apply to the user's question and cite the sections they come from."""
    )

    CHUNK_TEMPLATE = PromptTemplate(
        template="[{index}] {text}"
    )


class PromptBuilder:
    """Builds and completes message lists for the model"""

    def __init__(self, system_prompt: Optional[str] = None):
        """
        Initialize prompt builder.

        Args:
            system_prompt: Default instruction text (settings.SYSTEM_PROMPT if None)
        """
        self.system_prompt = system_prompt or settings.SYSTEM_PROMPT

    def format_context(self, chunks: List[ContextChunk]) -> str:
        """Format ranked chunks into a single numbered block"""
        parts = []
        for i, chunk in enumerate(chunks, 1):
            text = PromptTemplates.CHUNK_TEMPLATE.format(index=i, text=chunk.text)
            if chunk.source:
                text += f"\n(Source: {chunk.source}"
                if chunk.similarity_score:
                    text += f", Relevance: {chunk.similarity_score:.1%}"
                text += ")"
            parts.append(text)
        return "\n\n".join(parts)

    def build_context_message(self, result: RetrievalResult) -> ChatMessage:
        """
        Wrap a retrieval result into a context message.

        Model-written context (ai_search) wins over raw chunks when present.
        """
        context = result.text.strip() or self.format_context(result.chunks)
        return ChatMessage(
            role=ChatMessageRole.CONTEXT,
            content=PromptTemplates.CONTEXT_PROMPT.format(context=context),
        )

    def ensure_system_prompt(self, messages: List[ChatMessage]) -> List[ChatMessage]:
        """
        Make sure the list carries an instruction message.

        If any message already has the system role the list is returned
        unchanged; otherwise the default instruction is inserted first.

        Args:
            messages: Message list, oldest first

        Returns:
            Message list with at least one system message
        """
        if any(m.role == ChatMessageRole.SYSTEM for m in messages):
            return list(messages)

        logger.debug("No system message supplied, inserting default instruction")
        return [ChatMessage(role=ChatMessageRole.SYSTEM, content=self.system_prompt)] + list(messages)


# Global prompt builder
_prompt_builder = None


def get_prompt_builder() -> PromptBuilder:
    """Get or create prompt builder instance"""
    global _prompt_builder
    if _prompt_builder is None:
        _prompt_builder = PromptBuilder()
    return _prompt_builder