"""Terminal chat loop for a single intake conversation."""
from __future__ import annotations

import argparse
import sys
from typing import Optional, Sequence, TextIO

from services.persistence import HttpSessionGateway, LocalSessionGateway, PersistWorker

from .runner import Conversation
from .state import Step


def run(
    conversation: Conversation,
    *,
    stdin: Optional[TextIO] = None,
    stdout: Optional[TextIO] = None,
) -> None:
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout
    print(f"Assistant: {conversation.messages[0].content}", file=stdout)
    while conversation.step is not Step.CLOSING:
        print("You: ", end="", file=stdout, flush=True)
        line = stdin.readline()
        if not line:
            break
        text = line.rstrip("\n")
        if not text.strip():
            continue
        reply = conversation.submit(text)
        print(f"Assistant: {reply.content}", file=stdout)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Chat with the intake assistant")
    parser.add_argument("--api", help="Persist through the session API at this base URL")
    args = parser.parse_args(argv)

    gateway = HttpSessionGateway(args.api) if args.api else LocalSessionGateway()
    worker = PersistWorker(gateway).start()
    try:
        run(Conversation(worker))
    finally:
        worker.drain()
        worker.stop()
        if isinstance(gateway, HttpSessionGateway):
            gateway.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
