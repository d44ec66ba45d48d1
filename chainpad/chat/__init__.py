# FILE: chainpad/chat/__init__.py
"""Chat assistant: literal command dispatch plus LLM-backed chat and generation."""
