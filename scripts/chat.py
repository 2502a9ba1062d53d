#!/usr/bin/env python3
"""
CLI for chatting with a running router.

Usage examples:
  python scripts/chat.py "What does NEC 210.8 require for kitchens?"
  python scripts/chat.py --history convo.json "And for garages?"

--history points at a JSON list of {"role": ..., "content": ...} messages
that precede the question. The answer is printed as it streams in; the
script exits non-zero on error.
"""
import argparse
import json
import sys
from pathlib import Path
from typing import Iterator, List, Dict, Optional

import requests

# Add parent directory to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_URL = f"http://localhost:{settings.PORT}{settings.CHAT_ENDPOINT}"


def build_messages(question: str, history_path: Optional[str] = None) -> List[Dict[str, str]]:
    """Load prior turns (if any) and append the question as a user message"""
    messages = []
    if history_path:
        messages = json.loads(Path(history_path).read_text(encoding="utf-8"))
        if not isinstance(messages, list):
            raise ValueError("History file must contain a JSON list of messages")
    messages.append({"role": "user", "content": question})
    return messages


def stream_chat(url: str, messages: List[Dict[str, str]], timeout: float = settings.HTTP_TIMEOUT) -> Iterator[str]:
    """
    Post a conversation and yield text fragments as they arrive.

    Raises:
        requests.exceptions.RequestException: On connection or HTTP errors
    """
    response = requests.post(url, json={"messages": messages}, stream=True, timeout=timeout)
    with response:
        response.raise_for_status()
        for line in response.iter_lines(decode_unicode=True):
            if not line:
                continue
            try:
                data = json.loads(line)
            except json.JSONDecodeError:
                logger.warning(f"Skipping non-JSON line: {line[:80]}")
                continue
            chunk = data.get(settings.STREAM_PAYLOAD_FIELD) if isinstance(data, dict) else None
            if chunk:
                yield chunk


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Ask the NEC chat router a question")
    parser.add_argument("question", help="Question to ask")
    parser.add_argument("--url", default=DEFAULT_URL, help=f"Chat endpoint (default: {DEFAULT_URL})")
    parser.add_argument("--history", "-H", default=None, help="JSON file with earlier messages")

    args = parser.parse_args(argv)

    try:
        messages = build_messages(args.question, args.history)
        for chunk in stream_chat(args.url, messages):
            sys.stdout.write(chunk)
            sys.stdout.flush()
        sys.stdout.write("\n")
        return 0

    except requests.exceptions.RequestException as e:
        logger.error("Chat request failed: %s", e)
        return 1
    except Exception as e:
        logger.exception("Unhandled error during chat: %s", e)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
