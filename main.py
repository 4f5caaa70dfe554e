"""Root entry point for PromptBot."""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv


def main() -> None:
    load_dotenv()
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    from prompt_bot.runner import run_prompt_bot

    run_prompt_bot()


if __name__ == "__main__":
    main()
