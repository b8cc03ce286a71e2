from vllm_chat.domain.models import Message
from vllm_chat.use_cases.system_prompt import inject_system_prompt


def test_inject_into_empty_history():
    out = inject_system_prompt([], "You are helpful")
    assert out == [Message(role="system", content="You are helpful")]


def test_inject_into_missing_history():
    out = inject_system_prompt(None, "You are helpful")
    assert out == [Message(role="system", content="You are helpful")]


def test_inject_replaces_existing_system_message():
    msgs = [
        Message(role="system", content="old"),
        Message(role="user", content="hi"),
    ]
    out = inject_system_prompt(msgs, "new")

    assert out == [
        Message(role="system", content="new"),
        Message(role="user", content="hi"),
    ]
    # input list is left alone
    assert msgs[0].content == "old"


def test_inject_prepends_when_first_is_not_system():
    msgs = [Message(role="user", content="hi"), Message(role="assistant", content="hello")]
    out = inject_system_prompt(msgs, "SYS")

    assert [m.role for m in out] == ["system", "user", "assistant"]
    assert out[0].content == "SYS"
    assert out[1:] == msgs


def test_inject_is_idempotent():
    for msgs in ([], [Message(role="user", content="a")], [Message(role="system", content="x")]):
        once = inject_system_prompt(msgs, "P")
        assert inject_system_prompt(once, "P") == once


def test_empty_prompt_is_a_no_op():
    msgs = [Message(role="system", content="keep me"), Message(role="user", content="hi")]
    assert inject_system_prompt(msgs, "") is msgs
    assert inject_system_prompt(msgs, None) is msgs
    assert inject_system_prompt([], None) == []
    assert inject_system_prompt(None, "") is None
