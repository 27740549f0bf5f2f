"""Boardpilot: name-based Trello and Google Calendar orchestration for agents."""

__version__ = "0.1.0"
