# FILE: chainpad/chat/router.py
from dataclasses import asdict
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import Field
from sqlalchemy.orm import Session

from chainpad.auth import CallerContext, require_wallet
from chainpad.chat import service
from chainpad.contracts.schemas import CamelModel
from chainpad.db import get_db

router = APIRouter(prefix="/api", tags=["chat"])


class ChatRequest(CamelModel):
    message: str = Field(..., min_length=1)
    contract_id: Optional[int] = None


class ChatResponse(CamelModel):
    message: str
    action: Optional[str] = None
    result: Optional[Dict[str, Any]] = None
    contract_code: Optional[str] = None
    contract_name: Optional[str] = None
    contract_id: Optional[int] = None


@router.post("/chat", response_model=ChatResponse, response_model_exclude_none=True)
async def chat(
    req: ChatRequest,
    caller: CallerContext = Depends(require_wallet),
    db: Session = Depends(get_db),
):
    """Chat with the assistant; compile/deploy/generate commands act on contracts."""
    reply = await service.handle_message(db, caller, req.message, contract_id=req.contract_id)
    return ChatResponse(**asdict(reply))
