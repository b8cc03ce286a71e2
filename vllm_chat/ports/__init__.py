from .llm import ConnectionResult, LLMClient, ModelInfo
from .tokens import TokenCounter
from .truncation import TruncationStrategy

__all__ = [
    "LLMClient",
    "ModelInfo",
    "ConnectionResult",
    "TokenCounter",
    "TruncationStrategy",
]
