from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from typing import List

from vllm_chat.app.settings import AppSettings
from vllm_chat.app.wiring import build_bundle
from vllm_chat.domain.errors import ChatProxyError
from vllm_chat.domain.models import Message
from vllm_chat.domain.options import ChatOptions
from vllm_chat.use_cases.model_catalog import select_model


def main() -> None:
    parser = argparse.ArgumentParser(prog="vllm-chat")
    parser.add_argument("--url", default=None, help="Override VLLM_URL")
    parser.add_argument("--api-key", default=None, help="Override VLLM_API_KEY")
    parser.add_argument("--model", default="", help="Model id (default: first served model)")
    parser.add_argument("--system", default="", help="System prompt")
    parser.add_argument("--max-tokens", type=int, default=None)
    parser.add_argument("--temperature", type=float, default=ChatOptions.temperature)
    parser.add_argument("--top-p", type=float, default=ChatOptions.top_p)
    parser.add_argument("--tokenizer", choices=["approx", "tiktoken"], default=None)
    parser.add_argument("--debug", action="store_true")

    parser.add_argument("--list-models", action="store_true", help="Print served models and exit")
    parser.add_argument("--serve", action="store_true", help="Run the HTTP API with uvicorn")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.debug else logging.INFO, format="%(message)s")

    settings = AppSettings.from_env()

    b = settings.backend
    if args.url is not None:
        b = replace(b, api_url=args.url)
    if args.api_key is not None:
        b = replace(b, api_key=args.api_key)
    if args.max_tokens is not None:
        b = replace(b, token_limit=args.max_tokens)
    tok = settings.tokenizer
    if args.tokenizer is not None:
        tok = replace(tok, tokenizer_backend=args.tokenizer)
    settings = replace(settings, backend=b, tokenizer=tok)

    if args.serve:
        import uvicorn

        uvicorn.run("vllm_chat.app.api:app", host=args.host, port=args.port)
        return

    bundle = build_bundle(settings)

    try:
        models = bundle.catalog.list_models(missing_url_message="VLLM_URL is not set (use --url)")
    except ChatProxyError as e:
        print(f"error> {e.message} [{e.code}]", file=sys.stderr)
        sys.exit(1)

    if args.list_models:
        for m in models:
            print(m.id)
        return

    model = select_model(models, args.model)
    if not model:
        print("error> no models available", file=sys.stderr)
        sys.exit(1)

    options = ChatOptions(
        selected_model=model,
        system_prompt=args.system,
        temperature=args.temperature,
        top_p=args.top_p,
        max_tokens=0,
    )

    print(f"Model: {model}")
    print("Type /exit to quit, /reset to clear history.\n")

    history: List[Message] = []
    while True:
        try:
            user_text = input("you> ").strip()
        except EOFError:
            break
        if not user_text:
            continue
        if user_text == "/exit":
            break
        if user_text == "/reset":
            history = []
            print("bot> history cleared\n")
            continue

        history.append(Message(role="user", content=user_text))
        try:
            chunks, meta = bundle.relay.stream(history, options)
            print("bot> ", end="", flush=True)
            parts: List[str] = []
            for chunk in chunks:
                parts.append(chunk)
                print(chunk, end="", flush=True)
            print("\n")
        except ChatProxyError as e:
            history.pop()
            print(f"error> {e.message} [{e.code}]\n", file=sys.stderr)
            continue

        history.append(Message(role="assistant", content="".join(parts)))

        if args.debug:
            print("debug> " + json.dumps(meta, ensure_ascii=False, indent=2) + "\n")


if __name__ == "__main__":
    main()
