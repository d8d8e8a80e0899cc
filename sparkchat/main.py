"""
Interactive command-line entry point: reads questions from stdin and
streams each answer to stdout.
"""

from __future__ import annotations

import asyncio
import logging
import sys

from sparkchat.chat_client import SparkChat
from sparkchat.config import Configuration
from sparkchat.llm.exceptions import SparkError
from sparkchat.logging_utils import configure_logging


async def main() -> None:
    """Main entry point - one question per line until EOF."""
    try:
        config = Configuration()
        configure_logging(config.get_logging_config().get("level", "INFO"))
        chat = SparkChat.from_config(config, output=sys.stdout)
    except ValueError as e:
        logging.error("init chat error: %s", e)
        raise SystemExit(1) from e

    async with chat:
        while True:
            try:
                line = await asyncio.to_thread(input, "Ask: ")
            except EOFError:
                break
            try:
                await chat.ask(line)
            except SparkError as e:
                logging.error("error: %s", e)
            print()


def run() -> None:
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
