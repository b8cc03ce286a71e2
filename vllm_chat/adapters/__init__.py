from .llm_mock import EchoMockLLM
from .tokens_approx import ApproxTokenCounter
from .trunc_middle import MiddleOutTruncation

__all__ = [
    "EchoMockLLM",
    "ApproxTokenCounter",
    "MiddleOutTruncation",
]
