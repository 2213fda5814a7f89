"""Conversation core for a talking robot: chat history, intent routing, tool calls and topic planning."""

__version__ = "0.1.0"