# chainpad/contracts/models.py
"""
SQLAlchemy model for the contract file tree.

Folders and files live in one self-referencing table, told apart by `type`.
Folders are shared (owner_address is NULL); files belong to exactly one
lowercase wallet address. The tree shape is defined by parent_id only;
`path` is a display convenience.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime, JSON

from chainpad.db import Base

TYPE_FILE = "file"
TYPE_FOLDER = "folder"
CONTRACT_TYPES = (TYPE_FILE, TYPE_FOLDER)

ROOT_FOLDER_NAME = "Contracts"


class Contract(Base):
    __tablename__ = "contracts"

    id = Column(Integer, primary_key=True, index=True)
    type = Column(String(10), nullable=False, default=TYPE_FILE)
    name = Column(String(255), nullable=False)
    path = Column(String(1000), nullable=True)
    # No ON DELETE CASCADE: the repository deletes descendants itself
    parent_id = Column(Integer, ForeignKey("contracts.id"), nullable=True, index=True)

    source_code = Column(Text, nullable=True)  # files only

    # Compilation write-back
    abi = Column(JSON, nullable=True)
    bytecode = Column(Text, nullable=True)

    # Deployment write-back
    address = Column(String(64), nullable=True)
    network = Column(String(50), nullable=True)
    transaction_hash = Column(String(80), nullable=True)
    deployed_at = Column(DateTime, nullable=True)

    owner_address = Column(String(64), nullable=True, index=True)  # NULL for folders

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    @property
    def is_folder(self) -> bool:
        return self.type == TYPE_FOLDER

    @property
    def is_file(self) -> bool:
        return self.type == TYPE_FILE

    @property
    def source(self):
        """Alias of source_code exposed by single-record fetches."""
        return self.source_code

    @property
    def is_compiled(self) -> bool:
        return self.abi is not None and bool(self.bytecode)

    def __repr__(self) -> str:
        return f"<Contract id={self.id} type={self.type} name={self.name!r}>"
