"""Agent backend dispatch for evaluation prompts."""

__version__ = "0.1.0"
