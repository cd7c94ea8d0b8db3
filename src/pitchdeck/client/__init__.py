"""LLM chat client for the tool servers."""

from pitchdeck.client.agent import ToolClient, ToolClientError

__all__ = ["ToolClient", "ToolClientError"]
