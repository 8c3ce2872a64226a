"""Stateless chat relay between the browser client and Gemini."""
