"""Command line entry point: runs the arithmetic tool examples against Claude."""

from __future__ import annotations

import asyncio
import logging
import sys

from tool_lib import environment
from tool_lib.errors import ModelCommunicationError
from tool_lib.examples.arithmetic import run_examples
from tool_lib.llm_integrations.anthropic.claude_client import CLAUDE_MODELS, ClaudeClient

logger = logging.getLogger(__name__)


def main() -> int:
    environment.configure_logging()
    model = environment.default_model if environment.default_model in CLAUDE_MODELS else "haiku"
    print(f"tool_lib running! (model: {model})")

    try:
        asyncio.run(run_examples(ClaudeClient(model=model)))  # type: ignore[arg-type]
    except ModelCommunicationError as e:
        logger.error("Error running examples: %s", e)
        print("\nMake sure to:")
        print("1. Install dependencies: pip install -e .")
        print("2. Set your Anthropic API key: export ANTHROPIC_API_KEY=your-key-here")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
