"""Narration helpers for action results."""
