"""
Error taxonomy for the agent memory subsystem.

Every failure raised by the memory core derives from AgentMemoryError so callers
can catch the whole family, while the concrete types tell them which stage failed.
"""

from typing import Any, Dict, Optional


class AgentMemoryError(Exception):
    """Base class for all agent memory errors"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} ({self.details})"
        return self.message


class ChunkingError(AgentMemoryError):
    """Chunker received input it cannot split"""


class InvalidMetadataError(AgentMemoryError):
    """Caller metadata contains a value that is not a scalar"""


class EmbeddingProviderError(AgentMemoryError):
    """Embedding provider failed or returned the wrong number of vectors"""

    def __init__(
        self,
        message: str,
        start_index: int,
        end_index: int,
        details: Optional[Dict[str, Any]] = None
    ):
        details = dict(details or {})
        details.update({"start_index": start_index, "end_index": end_index})
        super().__init__(message, details)
        self.start_index = start_index
        self.end_index = end_index


class StoreWriteError(AgentMemoryError):
    """Vector store rejected an upsert or delete"""


class StoreQueryError(AgentMemoryError):
    """Vector store similarity query failed"""


class LLMError(AgentMemoryError):
    """Language model call failed"""


class ActionError(AgentMemoryError):
    """File action failed or the agent has no action helper configured"""
