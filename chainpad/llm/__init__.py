# FILE: chainpad/llm/__init__.py
"""
LLM module exports.
"""

from chainpad.llm.clients import chat_completion, is_llm_configured, LlmReply, LlmUsage

__all__ = [
    "chat_completion",
    "is_llm_configured",
    "LlmReply",
    "LlmUsage",
]
