# FILE: chainpad/chat/service.py
"""
Chat assistant dispatcher.

One message in, one reply out, routed by triggers.detect_command():
- compile  -> compile the referenced contract and store abi/bytecode
- deploy   -> package the referenced (compiled) contract for the wallet
- generate -> ask the LLM for a new contract and store it under "Contracts"
- chat     -> plain LLM turn, reply relayed verbatim
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from chainpad.auth.wallet import CallerContext
from chainpad.chat import prompts
from chainpad.chat.naming import extract_contract_name
from chainpad.chat.triggers import ChatCommand, detect_command
from chainpad.contracts import schemas as contract_schemas
from chainpad.contracts import service as contract_service
from chainpad.errors import ExternalServiceError, ValidationFailed
from chainpad.llm.clients import chat_completion
from chainpad.services import compiler, deployer

logger = logging.getLogger(__name__)

GENERATION_MAX_TOKENS = 2000


@dataclass
class ChatReply:
    message: str
    action: Optional[str] = None
    result: Optional[Dict[str, Any]] = None
    contract_code: Optional[str] = None
    contract_name: Optional[str] = None
    contract_id: Optional[int] = None


def _require_contract_id(contract_id: Optional[int], verb: str) -> int:
    if contract_id is None:
        raise ValidationFailed(f"Please open a contract in the editor first before {verb}.")
    return contract_id


# ============== COMPILE ==============

async def handle_compile(db: Session, caller: CallerContext, contract_id: Optional[int]) -> ChatReply:
    contract = await run_in_threadpool(
        contract_service.get_owned_file, db, caller, _require_contract_id(contract_id, "compiling")
    )

    try:
        output = await run_in_threadpool(compiler.compile_source, contract.source_code or "")
    except compiler.CompilationFailed as e:
        return ChatReply(
            message="Compilation failed. Please check the compilation output for errors.",
            action=ChatCommand.COMPILE.value,
            result={"success": False, "errors": e.details},
        )
    except compiler.CompilationStructureError as e:
        return ChatReply(
            message=f"Compilation failed: {e.message}",
            action=ChatCommand.COMPILE.value,
            result={"success": False, "errors": [{"severity": "error", "message": e.message, "formattedMessage": e.message}]},
        )

    await run_in_threadpool(
        contract_service.save_compilation, db, caller, contract.id, output.abi, output.bytecode
    )
    return ChatReply(
        message="Contract compiled successfully! You can now deploy it if you wish.",
        action=ChatCommand.COMPILE.value,
        result={
            "success": True,
            "contractName": output.contract_name,
            "abi": output.abi,
            "bytecode": output.bytecode,
            "warnings": [w.to_dict() for w in output.warnings],
        },
    )


# ============== DEPLOY ==============

async def handle_deploy(db: Session, caller: CallerContext, contract_id: Optional[int]) -> ChatReply:
    contract = await run_in_threadpool(
        contract_service.get_owned_file, db, caller, _require_contract_id(contract_id, "deploying")
    )
    package = deployer.prepare_deployment(contract)
    payload = contract_schemas.DeploymentPackageOut(**package.to_dict()).model_dump(by_alias=True)
    return ChatReply(
        message="Starting deployment process... Please confirm the transaction in your wallet.",
        action=ChatCommand.DEPLOY.value,
        result=payload,
    )


# ============== GENERATE ==============

async def handle_generate(db: Session, caller: CallerContext, message: str) -> ChatReply:
    requested_name = extract_contract_name(message)
    reply = await chat_completion(
        [{"role": "user", "content": prompts.build_generation_prompt(requested_name, message)}],
        system_prompt=prompts.GENERATION_SYSTEM_MESSAGE,
        max_tokens=GENERATION_MAX_TOKENS,
    )

    code = prompts.strip_code_fences(reply.content)
    declared_name = compiler.find_contract_name(code)
    if not declared_name:
        raise ExternalServiceError(
            "Failed to generate contract",
            details="The model response did not contain a contract declaration",
        )

    root = await run_in_threadpool(contract_service.get_or_create_root_folder, db)
    record = await run_in_threadpool(
        contract_service.create_contract,
        db,
        caller,
        contract_schemas.ContractCreate(
            type="file",
            name=f"{declared_name}.sol",
            parent_id=root.id,
            source_code=code,
        ),
    )
    logger.info("[chat] Generated %s (requested %s) as contract %s", declared_name, requested_name, record.id)

    return ChatReply(
        message=f"I've created a new {declared_name} contract for you.",
        contract_code=code,
        contract_name=declared_name,
        contract_id=record.id,
    )


# ============== CHAT ==============

async def handle_chat(message: str) -> ChatReply:
    reply = await chat_completion(
        [{"role": "user", "content": message}],
        system_prompt=prompts.SYSTEM_MESSAGE,
    )
    return ChatReply(message=reply.content)


async def handle_message(
    db: Session,
    caller: CallerContext,
    message: str,
    contract_id: Optional[int] = None,
) -> ChatReply:
    if not message or not message.strip():
        raise ValidationFailed("Message is required")

    command = detect_command(message)
    logger.info("[chat] %s command from %s", command.value, caller.wallet_address)

    if command == ChatCommand.COMPILE:
        return await handle_compile(db, caller, contract_id)
    if command == ChatCommand.DEPLOY:
        return await handle_deploy(db, caller, contract_id)
    if command == ChatCommand.GENERATE:
        return await handle_generate(db, caller, message)
    return await handle_chat(message)
