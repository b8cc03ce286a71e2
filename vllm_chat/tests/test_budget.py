from vllm_chat.use_cases.budget import Budget

def test_budget_token_limit_remaining():
    b = Budget(token_limit=4096)
    assert b.reserved_response_tokens == 512
    assert b.token_limit_remaining == 3584

def test_budget_below_reserve_goes_negative():
    assert Budget(token_limit=100).token_limit_remaining == -412
