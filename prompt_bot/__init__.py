"""PromptBot: anonymous bilingual conversation prompts for Discord."""

__version__ = "0.1.0"
