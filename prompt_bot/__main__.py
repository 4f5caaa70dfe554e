"""Entry point for ``python -m prompt_bot``."""

from prompt_bot.runner import run_prompt_bot


if __name__ == "__main__":
    run_prompt_bot()
