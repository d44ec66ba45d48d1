# FILE: chainpad/chat/prompts.py
"""Prompt text for the chat assistant."""

import re

SYSTEM_MESSAGE = """You are a helpful blockchain development assistant specializing in Solidity smart contracts. Your main tasks are:

1. Help users write and understand smart contracts
2. Provide guidance on best practices and security considerations
3. Explain contract deployment processes
4. Debug common issues
5. Answer questions about Ethereum and blockchain development

Keep responses concise and focused on the user's specific needs. When providing code examples, ensure they follow security best practices and include relevant comments."""

GENERATION_SYSTEM_MESSAGE = """You are an expert Solidity developer. You write complete, compilable smart contracts.

Rules:
- Output ONLY Solidity source code, no explanations before or after.
- Start with an SPDX license identifier and `pragma solidity ^0.8.0;`.
- Do not import external packages; the contract must compile on its own.
- Declare exactly one deployable contract with the requested name.
- Follow security best practices and add brief comments."""

_FENCE_RE = re.compile(r"```(?:solidity|sol)?[ \t]*\n(.*?)```", re.DOTALL | re.IGNORECASE)


def build_generation_prompt(contract_name: str, request: str) -> str:
    return (
        f"Write a Solidity smart contract named `{contract_name}`.\n\n"
        f"User request:\n{request.strip()}\n"
    )


def strip_code_fences(text: str) -> str:
    """Return the first fenced code block if the model wrapped its answer in one."""
    match = _FENCE_RE.search(text or "")
    if match:
        return match.group(1).strip() + "\n"
    return (text or "").strip() + "\n"
