from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any


class ErrorResponse(BaseModel):
    """Error response model"""
    error: str = Field(..., description="Error message")

    class Config:
        json_schema_extra = {
            "example": {
                "error": "No user message found"
            }
        }


class ContextChunk(BaseModel):
    """Single retrieved chunk returned by the search collaborator"""
    text: str = Field(..., description="Chunk text content")
    source: Optional[str] = Field(None, description="Source document")
    similarity_score: Optional[float] = Field(None, description="Relevance score")
    metadata: Optional[Dict[str, Any]] = Field(None, description="Additional metadata")


class RetrievalResult(BaseModel):
    """Retrieved context for a single query"""
    query: str = Field(..., description="Query as sent (or rewritten upstream)")
    text: str = Field(default="", description="Model-written context (ai_search mode)")
    chunks: List[ContextChunk] = Field(default_factory=list, description="Ranked chunks")

    @property
    def is_empty(self) -> bool:
        return not self.text.strip() and not any(c.text.strip() for c in self.chunks)
