"""
RAGBot — Interactive Chat
==========================
Reads a line at a time and streams the model's reply to stdout.
Type /bye (or press Ctrl-D) to leave.

Usage:
    ragbot-chat
    ragbot-chat --model llama3.1:latest --host http://localhost:11434
"""

from __future__ import annotations

import argparse
import sys
from enum import Enum
from typing import Callable, Iterable, Optional, TextIO

from loguru import logger

from ragbot.config import get_settings
from ragbot.exceptions import OllamaError
from ragbot.llm_engine import stream_chat
from ragbot.llm_engine.prompts import user_message

BYE_COMMAND = "/bye"
INPUT_PROMPT = ">>> "


class SessionState(str, Enum):
    awaiting_input = "awaiting_input"
    terminated = "terminated"


class InteractiveSession:
    """
    Two-state loop: AWAITING_INPUT until the user sends /bye or closes
    stdin, then TERMINATED. Each accepted line makes exactly one streaming
    generation call, consumed to completion before the next read.
    """

    def __init__(
        self,
        generate: Callable[[list[dict]], Iterable[str]],
        read_line: Optional[Callable[[str], str]] = None,
        out: Optional[TextIO] = None,
    ):
        self.generate = generate
        self.read_line = read_line or input
        self.out = out or sys.stdout
        self.state = SessionState.awaiting_input
        self.calls = 0

    def step(self) -> SessionState:
        try:
            line = self.read_line(INPUT_PROMPT)
        except EOFError:
            self.state = SessionState.terminated
            return self.state

        text = line.strip()
        if text == BYE_COMMAND:
            self.state = SessionState.terminated
            return self.state
        if not text:
            return self.state

        self.calls += 1
        try:
            for chunk in self.generate([user_message(text)]):
                self.out.write(chunk)
                self.out.flush()
        except OllamaError as e:
            self.out.write(f"\n[error] {e.message}")
        self.out.write("\n")
        return self.state

    def run(self) -> int:
        """Loop until terminated; returns the number of generation calls made."""
        while self.state is SessionState.awaiting_input:
            self.step()
        logger.info(f"[CLI] Session ended after {self.calls} message(s)")
        return self.calls


def main(argv: Optional[list[str]] = None) -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Chat with an Ollama model from the terminal")
    parser.add_argument("--model", type=str, default=settings.ollama_model, help="Ollama chat model")
    parser.add_argument("--host",  type=str, default=None, help="Ollama base URL (overrides OLLAMA_URL)")
    args = parser.parse_args(argv)

    base_url = (args.host or settings.ollama_url).rstrip("/")

    logger.info(f"[CLI] Model={args.model} | Ollama={base_url} | {BYE_COMMAND} to quit")
    session = InteractiveSession(
        generate=lambda messages: stream_chat(messages, model=args.model, base_url=base_url),
    )
    session.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
