# FILE: chainpad/contracts/schemas.py
"""
Contract repository Pydantic schemas.

Wire format is camelCase (parentId, sourceCode, ownerAddress, ...) to match
the browser client; Python code uses snake_case field names.
"""
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============== CONTRACT ==============

class ContractCreate(CamelModel):
    type: Literal["file", "folder"] = "file"
    name: str = Field(..., min_length=1, max_length=255)
    path: Optional[str] = None
    parent_id: Optional[int] = None
    source_code: Optional[str] = None


class ContractUpdate(CamelModel):
    """Partial update; only fields present in the request body are applied."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    path: Optional[str] = None
    parent_id: Optional[int] = None
    source_code: Optional[str] = None
    abi: Optional[List[Dict[str, Any]]] = None
    bytecode: Optional[str] = None
    address: Optional[str] = None
    network: Optional[str] = None


class ContractOut(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: int
    type: str
    name: str
    path: Optional[str]
    parent_id: Optional[int]
    source_code: Optional[str]
    abi: Optional[List[Dict[str, Any]]]
    bytecode: Optional[str]
    address: Optional[str]
    network: Optional[str]
    transaction_hash: Optional[str]
    deployed_at: Optional[datetime]
    owner_address: Optional[str]
    created_at: datetime
    updated_at: datetime


class ContractDetail(ContractOut):
    """Single-record fetch: sourceCode is also exposed as `source`."""
    source: Optional[str]


class ContractTreeNode(ContractOut):
    children: List["ContractTreeNode"] = []


class DeleteResult(CamelModel):
    deleted: int
    ids: List[int]


# ============== COMPILE ==============

class CompileRequest(CamelModel):
    source_code: str = Field(..., min_length=1)
    contract_id: Optional[int] = None


class CompilerMessage(CamelModel):
    severity: str
    message: str
    formatted_message: str
    type: Optional[str] = None


class CompileResponse(CamelModel):
    contract_name: str
    abi: List[Dict[str, Any]]
    bytecode: str
    warnings: List[CompilerMessage] = []


# ============== DEPLOY ==============

class DeploymentPackageOut(CamelModel):
    contract_id: int
    contract_name: str
    abi: List[Dict[str, Any]]
    bytecode: str
    constructor_inputs: List[Dict[str, Any]]
    gas_buffer_percent: int
    confirmations: int
    timeout_seconds: int
    gas_limit: Optional[int] = None
    supported_networks: Dict[str, str]


class DeploymentRecordIn(CamelModel):
    """Either network or the wallet chainId (or both) identifies where it landed."""
    address: str = Field(..., min_length=1)
    network: Optional[str] = None
    chain_id: Optional[Union[int, str]] = None
    transaction_hash: Optional[str] = None


class DeploymentErrorIn(CamelModel):
    """A failure reported by the wallet or provider (e.g. code 4001, INSUFFICIENT_FUNDS)."""
    code: Optional[Union[int, str]] = None
    message: str = ""


class DeploymentErrorOut(CamelModel):
    kind: str
    message: str


ContractTreeNode.model_rebuild()
