# FILE: chainpad/contracts/service.py
"""
Contract repository: the folder/file tree and its ownership rules.

- Folders are a shared namespace: visible to every caller, owner_address NULL.
- Files belong to the wallet that created them and are invisible to others.
- A missing parent at creation is repaired by placing the record under the
  shared "Contracts" root folder.
- Deletes cascade through the subtree one record at a time, deepest first.
"""
import logging
from datetime import datetime
from typing import Dict, List, Optional, Union

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from chainpad.auth.wallet import CallerContext
from chainpad.contracts import models, schemas
from chainpad.contracts.models import Contract, ROOT_FOLDER_NAME, TYPE_FILE, TYPE_FOLDER
from chainpad.errors import AuthenticationError, AuthorizationError, NotFoundError, ValidationFailed
from chainpad.services import deployer

logger = logging.getLogger(__name__)

# Fields a folder never carries
FILE_ONLY_FIELDS = ("source_code", "abi", "bytecode", "address", "network")


# ============== LOOKUP ==============

def get_contract(db: Session, contract_id: int) -> Optional[Contract]:
    return db.query(Contract).filter(Contract.id == contract_id).first()


def get_or_create_root_folder(db: Session) -> Contract:
    """Return the shared root folder "Contracts", creating it if needed."""
    root = (
        db.query(Contract)
        .filter(
            Contract.type == TYPE_FOLDER,
            Contract.parent_id.is_(None),
            Contract.name == ROOT_FOLDER_NAME,
        )
        .order_by(Contract.id.asc())
        .first()
    )
    if root:
        return root

    root = Contract(
        type=TYPE_FOLDER,
        name=ROOT_FOLDER_NAME,
        path=f"/{ROOT_FOLDER_NAME}",
        parent_id=None,
        owner_address=None,
    )
    db.add(root)
    db.commit()
    db.refresh(root)
    logger.info("[contracts] Created root folder %s (id=%s)", ROOT_FOLDER_NAME, root.id)
    return root


def _path_of(contract: Contract) -> str:
    return contract.path or f"/{contract.name}"


def _join_path(parent: Optional[Contract], name: str) -> str:
    if parent is None:
        return f"/{name}"
    return f"{_path_of(parent).rstrip('/')}/{name}"


def _resolve_parent_for_create(db: Session, parent_id: Optional[int]) -> Optional[Contract]:
    if parent_id is None:
        return None

    parent = get_contract(db, parent_id)
    if parent is None:
        root = get_or_create_root_folder(db)
        logger.warning(
            "[contracts] Parent %s not found; placing new record under root folder %s",
            parent_id, root.id,
        )
        return root

    if not parent.is_folder:
        raise ValidationFailed("Parent must be a folder", details={"parentId": parent_id})
    return parent


# ============== CREATE ==============

def create_contract(db: Session, caller: CallerContext, data: schemas.ContractCreate) -> Contract:
    """
    Create a folder or file.

    Files are stamped with the caller's wallet; folders stay unowned.
    """
    if data.type == TYPE_FILE and caller.is_anonymous:
        raise AuthenticationError("Wallet address required")
    if data.type == TYPE_FOLDER and data.source_code is not None:
        raise ValidationFailed("Folders cannot hold source code")

    parent = _resolve_parent_for_create(db, data.parent_id)

    contract = Contract(
        type=data.type,
        name=data.name,
        path=data.path or _join_path(parent, data.name),
        parent_id=parent.id if parent else None,
        source_code=(data.source_code or "") if data.type == TYPE_FILE else None,
        owner_address=caller.wallet_address if data.type == TYPE_FILE else None,
    )
    db.add(contract)
    db.commit()
    db.refresh(contract)
    logger.info(
        "[contracts] Created %s %s (id=%s, parent=%s, owner=%s)",
        contract.type, contract.name, contract.id, contract.parent_id, contract.owner_address,
    )
    return contract


# ============== READ ==============

def _visible_filter(caller: CallerContext):
    if caller.is_anonymous:
        return Contract.type == TYPE_FOLDER
    return or_(
        Contract.type == TYPE_FOLDER,
        and_(Contract.type == TYPE_FILE, Contract.owner_address == caller.wallet_address),
    )


def list_contracts(
    db: Session,
    caller: CallerContext,
    type_filter: Optional[str] = None,
    name: Optional[str] = None,
) -> List[Contract]:
    """All folders plus the caller's own files."""
    query = db.query(Contract).filter(_visible_filter(caller))
    if type_filter:
        if type_filter not in models.CONTRACT_TYPES:
            raise ValidationFailed(f"Unknown type: {type_filter}")
        query = query.filter(Contract.type == type_filter)
    if name:
        query = query.filter(Contract.name == name)
    return query.order_by(Contract.created_at.asc(), Contract.id.asc()).all()


def get_visible_contract(db: Session, caller: CallerContext, contract_id: int) -> Contract:
    """
    Fetch one record as the caller sees it.

    A missing record and another wallet's file both raise the same
    NotFoundError so callers cannot tell a foreign file from a missing one.
    """
    contract = get_contract(db, contract_id)
    if contract is None:
        raise NotFoundError("Contract not found")
    if contract.is_file and not caller.owns(contract.owner_address):
        raise NotFoundError("Contract not found")
    return contract


def get_owned_file(db: Session, caller: CallerContext, contract_id: int) -> Contract:
    """Fetch a file the caller owns for mutation (404 if absent, 403 if foreign)."""
    contract = get_contract(db, contract_id)
    if contract is None:
        raise NotFoundError("Contract not found")
    if not contract.is_file:
        raise ValidationFailed("Operation requires a file, not a folder")
    if not caller.owns(contract.owner_address):
        raise AuthorizationError("Not authorized to modify this contract")
    return contract


def build_tree(records: List[Contract]) -> List[schemas.ContractTreeNode]:
    """Nest visible records under their parents; orphans surface at the top level."""
    nodes: Dict[int, schemas.ContractTreeNode] = {
        r.id: schemas.ContractTreeNode.model_validate(r) for r in records
    }
    roots: List[schemas.ContractTreeNode] = []
    for record in records:
        node = nodes[record.id]
        parent = nodes.get(record.parent_id) if record.parent_id is not None else None
        if parent is None:
            roots.append(node)
        else:
            parent.children.append(node)
    return roots


# ============== UPDATE ==============

def _ancestor_ids(db: Session, contract: Contract) -> List[int]:
    ids = []
    seen = set()
    current = contract
    while current is not None and current.parent_id is not None and current.parent_id not in seen:
        seen.add(current.parent_id)
        ids.append(current.parent_id)
        current = get_contract(db, current.parent_id)
    return ids


def _check_new_parent(db: Session, contract: Contract, parent_id: Optional[int]) -> Optional[Contract]:
    if parent_id is None:
        return None
    if parent_id == contract.id:
        raise ValidationFailed("A record cannot be its own parent")
    parent = get_contract(db, parent_id)
    if parent is None:
        raise ValidationFailed("Parent folder not found", details={"parentId": parent_id})
    if not parent.is_folder:
        raise ValidationFailed("Parent must be a folder", details={"parentId": parent_id})
    if contract.id in _ancestor_ids(db, parent):
        raise ValidationFailed("Cannot move a folder into its own subtree")
    return parent


def update_contract(
    db: Session,
    caller: CallerContext,
    contract_id: int,
    data: schemas.ContractUpdate,
) -> Contract:
    """
    Merge the supplied fields into a record and stamp updated_at.

    Files require ownership. Folders are shared: any caller may rename or
    move them, but file-only fields are rejected.
    """
    contract = get_contract(db, contract_id)
    if contract is None:
        raise NotFoundError("Contract not found")

    changes = data.model_dump(exclude_unset=True)

    if contract.is_file:
        if not caller.owns(contract.owner_address):
            raise AuthorizationError("Not authorized to modify this contract")
    else:
        rejected = [f for f in FILE_ONLY_FIELDS if f in changes]
        if rejected:
            raise ValidationFailed("Folders cannot hold file fields", details={"fields": rejected})

    if "name" in changes and not changes["name"]:
        raise ValidationFailed("Name cannot be empty")
    if "parent_id" in changes:
        _check_new_parent(db, contract, changes["parent_id"])

    for field, value in changes.items():
        setattr(contract, field, value)
    contract.updated_at = datetime.utcnow()

    db.commit()
    db.refresh(contract)
    logger.info("[contracts] Updated %s fields=%s", contract.id, sorted(changes))
    return contract


def save_compilation(db: Session, caller: CallerContext, contract_id: int, abi: list, bytecode: str) -> Contract:
    return update_contract(
        db, caller, contract_id, schemas.ContractUpdate(abi=abi, bytecode=bytecode)
    )


def record_deployment(
    db: Session,
    caller: CallerContext,
    contract_id: int,
    address: str,
    network: Optional[str] = None,
    transaction_hash: Optional[str] = None,
    chain_id: Optional[Union[str, int]] = None,
) -> Contract:
    """
    Write back where the wallet deployed the caller's file.

    Ownership is checked before the network is resolved and the deployed
    code is verified (see deployer.check_deployment).
    """
    contract = get_owned_file(db, caller, contract_id)
    address, network = deployer.check_deployment(address, network, chain_id=chain_id)

    contract.address = address
    contract.network = network
    contract.transaction_hash = transaction_hash
    contract.deployed_at = datetime.utcnow()
    contract.updated_at = contract.deployed_at
    db.commit()
    db.refresh(contract)
    logger.info("[contracts] Recorded deployment of %s at %s on %s", contract.id, address, network)
    return contract


# ============== DELETE ==============

def collect_descendants(db: Session, contract: Contract) -> List[Contract]:
    """All records below `contract`, ordered so every child precedes its parent."""
    levels: List[List[Contract]] = []
    frontier = [contract.id]
    seen = {contract.id}
    while frontier:
        children = db.query(Contract).filter(Contract.parent_id.in_(frontier)).all()
        children = [c for c in children if c.id not in seen]
        if not children:
            break
        seen.update(c.id for c in children)
        levels.append(children)
        frontier = [c.id for c in children]

    ordered: List[Contract] = []
    for level in reversed(levels):
        ordered.extend(level)
    return ordered


def delete_contract(db: Session, caller: CallerContext, contract_id: int) -> List[int]:
    """
    Delete a record and everything below it.

    Files: owner only. Folders: allowed when every file in the subtree
    belongs to the caller. Returns the deleted ids, target last.
    """
    contract = get_contract(db, contract_id)
    if contract is None:
        raise NotFoundError("Contract not found")
    if caller.is_anonymous:
        raise AuthenticationError("Wallet address required")
    if contract.is_file and not caller.owns(contract.owner_address):
        raise AuthorizationError("Not authorized to delete this contract")

    descendants = collect_descendants(db, contract)
    foreign = [d.id for d in descendants if d.is_file and not caller.owns(d.owner_address)]
    if foreign:
        raise AuthorizationError("Folder contains contracts owned by another wallet")

    deleted: List[int] = []
    try:
        for record in descendants + [contract]:
            db.delete(record)
            db.flush()
            deleted.append(record.id)
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("[contracts] Failed to delete %s", contract_id)
        raise

    logger.info("[contracts] Deleted %s (%d records)", contract_id, len(deleted))
    return deleted
