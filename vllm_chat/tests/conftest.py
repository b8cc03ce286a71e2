import pytest

from vllm_chat.tests.helpers import StubCounter


@pytest.fixture
def counter() -> StubCounter:
    return StubCounter()
