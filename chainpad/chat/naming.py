# FILE: chainpad/chat/naming.py
"""
Contract name extraction for generation requests.

Tries a fixed, ordered list of patterns against the message, then falls
back to the first non-stopword token of at least three letters. The result
is a capitalized Solidity identifier.
"""

import re
from typing import Optional

DEFAULT_CONTRACT_NAME = "GeneratedContract"
MIN_TOKEN_LENGTH = 3

STOPWORDS = {
    "a", "an", "the", "and", "or", "for", "with", "that", "this", "which", "where",
    "create", "generate", "write", "make", "build", "new", "please", "can", "could",
    "you", "me", "my", "our", "some", "simple", "basic", "smart", "contract",
    "contracts", "solidity", "called", "named", "using", "implement", "code",
    "want", "need", "would", "like", "let", "lets", "help", "from", "into", "allows",
}

# Ordered: earlier patterns win
_NAME_PATTERNS = (
    re.compile(r"\b(?:called|named)\s+[\"'`]?([A-Za-z][A-Za-z0-9_]*)", re.IGNORECASE),
    re.compile(r"\bcontract\s+[\"'`]([A-Za-z][A-Za-z0-9_]*)[\"'`]", re.IGNORECASE),
    re.compile(r"\b(?:an?|the|new)\s+([A-Za-z][A-Za-z0-9_]*)\s+(?:smart\s+)?contract\b", re.IGNORECASE),
    re.compile(r"\b([A-Za-z][A-Za-z0-9_]*)\s+(?:smart\s+)?contract\b", re.IGNORECASE),
    re.compile(r"\bcontract\s+(?:for|to)\s+(?:an?\s+|the\s+)?([A-Za-z][A-Za-z0-9_]*)", re.IGNORECASE),
)

_TOKEN_RE = re.compile(r"[A-Za-z][A-Za-z0-9_]*")


def to_identifier(candidate: str) -> str:
    cleaned = re.sub(r"[^A-Za-z0-9_]", "", candidate or "")
    if not cleaned or not cleaned[0].isalpha():
        return DEFAULT_CONTRACT_NAME
    return cleaned[0].upper() + cleaned[1:]


def _usable(candidate: Optional[str]) -> bool:
    return bool(candidate) and candidate.lower() not in STOPWORDS


def extract_contract_name(message: str) -> str:
    for pattern in _NAME_PATTERNS:
        for match in pattern.finditer(message or ""):
            candidate = match.group(1)
            if _usable(candidate):
                return to_identifier(candidate)

    for token in _TOKEN_RE.findall(message or ""):
        if len(token) >= MIN_TOKEN_LENGTH and _usable(token):
            return to_identifier(token)

    return DEFAULT_CONTRACT_NAME
