# FILE: chainpad/chat/triggers.py
"""
Literal command detection for the chat assistant.

These are plain string matches, not intent classification: "compile" and
"deploy" must match a phrase exactly (trimmed, case-insensitive), so
"please compile this for me" falls through to ordinary chat.
"""

import logging
from enum import Enum

logger = logging.getLogger(__name__)

# =============================================================================
# TRIGGER SETS
# =============================================================================

_COMPILE_TRIGGER_SET = {
    "compile",
    "compile contract",
    "compile the contract",
    "compile this contract",
    "compile it",
    "/compile",
}

_DEPLOY_TRIGGER_SET = {
    "deploy",
    "deploy contract",
    "deploy the contract",
    "deploy this contract",
    "deploy it",
    "/deploy",
}

# Substring triggers for contract generation
_GENERATE_TRIGGERS = (
    "create a contract",
    "create contract",
    "generate a contract",
    "generate contract",
    "write a contract",
    "make a contract",
    "build a contract",
    "create a token",
    "create an nft",
    "generate a token",
    "generate an nft",
    "create a smart contract",
    "generate a smart contract",
    "write a smart contract",
    "new contract",
)

# Generic "<verb> a/an ... contract" phrasing
_GENERATE_VERBS = ("create", "generate", "write", "make", "build")


class ChatCommand(str, Enum):
    COMPILE = "compile"
    DEPLOY = "deploy"
    GENERATE = "generate"
    CHAT = "chat"


# =============================================================================
# TRIGGER DETECTION FUNCTIONS
# =============================================================================

def _normalize(msg: str) -> str:
    return " ".join((msg or "").strip().lower().split())


def is_compile_trigger(msg: str) -> bool:
    """Check if message is a compile command."""
    return _normalize(msg) in _COMPILE_TRIGGER_SET


def is_deploy_trigger(msg: str) -> bool:
    """Check if message is a deploy command."""
    return _normalize(msg) in _DEPLOY_TRIGGER_SET


def is_generate_trigger(msg: str) -> bool:
    """Check if message asks for a new contract to be generated."""
    text = _normalize(msg)
    if any(trigger in text for trigger in _GENERATE_TRIGGERS):
        return True
    words = text.split()
    if words and words[0] in _GENERATE_VERBS and "contract" in words[1:]:
        return True
    return False


def detect_command(msg: str) -> ChatCommand:
    """Dispatch order: compile, deploy, generate, then plain chat."""
    if is_compile_trigger(msg):
        return ChatCommand.COMPILE
    if is_deploy_trigger(msg):
        return ChatCommand.DEPLOY
    if is_generate_trigger(msg):
        return ChatCommand.GENERATE
    return ChatCommand.CHAT
