# file: chainpad/contracts/router.py
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from chainpad.auth import CallerContext, optional_wallet, require_wallet
from chainpad.contracts import schemas, service
from chainpad.db import get_db
from chainpad.services import compiler, deployer

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api",
    tags=["contracts"],
)


# ============== CONTRACTS ==============

@router.post("/contracts", response_model=schemas.ContractOut, status_code=201)
def create_contract(
    data: schemas.ContractCreate,
    caller: CallerContext = Depends(require_wallet),
    db: Session = Depends(get_db),
):
    return service.create_contract(db, caller, data)


@router.get("/contracts", response_model=List[schemas.ContractOut])
def list_contracts(
    type_: Optional[str] = Query(default=None, alias="type"),
    name: Optional[str] = None,
    caller: CallerContext = Depends(optional_wallet),
    db: Session = Depends(get_db),
):
    """All folders plus the caller's own files. Anonymous callers see folders only."""
    return service.list_contracts(db, caller, type_filter=type_, name=name)


@router.get("/contracts/tree", response_model=List[schemas.ContractTreeNode])
def contract_tree(
    caller: CallerContext = Depends(optional_wallet),
    db: Session = Depends(get_db),
):
    """Visible records nested by parentId, for the file explorer."""
    return service.build_tree(service.list_contracts(db, caller))


@router.get("/contracts/{contract_id}", response_model=schemas.ContractDetail)
def get_contract(
    contract_id: int,
    caller: CallerContext = Depends(optional_wallet),
    db: Session = Depends(get_db),
):
    return service.get_visible_contract(db, caller, contract_id)


@router.patch("/contracts/{contract_id}", response_model=schemas.ContractOut)
def update_contract(
    contract_id: int,
    data: schemas.ContractUpdate,
    caller: CallerContext = Depends(require_wallet),
    db: Session = Depends(get_db),
):
    return service.update_contract(db, caller, contract_id, data)


@router.delete("/contracts/{contract_id}", response_model=schemas.DeleteResult)
def delete_contract(
    contract_id: int,
    caller: CallerContext = Depends(require_wallet),
    db: Session = Depends(get_db),
):
    deleted = service.delete_contract(db, caller, contract_id)
    return schemas.DeleteResult(deleted=len(deleted), ids=deleted)


# ============== DEPLOYMENT ==============

@router.post("/contracts/{contract_id}/deploy", response_model=schemas.DeploymentPackageOut)
def prepare_deployment(
    contract_id: int,
    gas_estimate: Optional[int] = Query(default=None, alias="gasEstimate", ge=0),
    caller: CallerContext = Depends(require_wallet),
    db: Session = Depends(get_db),
):
    """ABI + bytecode for the browser wallet to sign and broadcast."""
    contract = service.get_owned_file(db, caller, contract_id)
    return deployer.prepare_deployment(contract, gas_estimate=gas_estimate).to_dict()


@router.post("/contracts/{contract_id}/deployment", response_model=schemas.ContractOut)
def record_deployment(
    contract_id: int,
    data: schemas.DeploymentRecordIn,
    caller: CallerContext = Depends(require_wallet),
    db: Session = Depends(get_db),
):
    """Write back the address/network the wallet deployed to."""
    return service.record_deployment(
        db,
        caller,
        contract_id,
        data.address,
        network=data.network,
        transaction_hash=data.transaction_hash,
        chain_id=data.chain_id,
    )


@router.post("/contracts/{contract_id}/deployment-error", response_model=schemas.DeploymentErrorOut)
def report_deployment_error(
    contract_id: int,
    data: schemas.DeploymentErrorIn,
    caller: CallerContext = Depends(require_wallet),
    db: Session = Depends(get_db),
):
    """Turn a wallet/provider failure into the message shown to the user."""
    contract = service.get_owned_file(db, caller, contract_id)
    kind, message = deployer.describe_deployment_error(data.code, data.message)
    logger.info("[contracts] Deployment of %s failed: %s (%s)", contract.id, kind.value, data.code)
    return schemas.DeploymentErrorOut(kind=kind.value, message=message)


# ============== COMPILE ==============

@router.post("/compile", response_model=schemas.CompileResponse)
def compile_contract(
    data: schemas.CompileRequest,
    caller: CallerContext = Depends(require_wallet),
    db: Session = Depends(get_db),
):
    """
    Compile Solidity source. With contractId, the result is stored on that file.
    """
    if data.contract_id is not None:
        service.get_owned_file(db, caller, data.contract_id)

    output = compiler.compile_source(data.source_code)

    if data.contract_id is not None:
        service.save_compilation(db, caller, data.contract_id, output.abi, output.bytecode)

    return schemas.CompileResponse(
        contract_name=output.contract_name,
        abi=output.abi,
        bytecode=output.bytecode,
        warnings=[schemas.CompilerMessage(**w.to_dict()) for w in output.warnings],
    )
