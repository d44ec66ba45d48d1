# FILE: tests/test_db.py
"""
Tests for chainpad/db.py
Database core functionality - table registration, session management.
"""

import sys
from pathlib import Path

_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

import pytest
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker


class TestDatabaseTables:
    """Test that all expected tables are registered."""

    def test_init_db_creates_tables(self, engine):
        """Test that init_db registers users and contracts."""
        tables = inspect(engine).get_table_names()
        assert "users" in tables
        assert "contracts" in tables

    def test_init_db_is_idempotent(self, engine):
        """Test calling init_db twice does not fail."""
        from chainpad.db import init_db

        init_db(bind=engine)
        assert "contracts" in inspect(engine).get_table_names()

    def test_contract_columns(self, engine):
        """Test write-back columns exist on contracts."""
        columns = {c["name"] for c in inspect(engine).get_columns("contracts")}
        for name in ("parent_id", "source_code", "abi", "bytecode", "address", "network",
                     "transaction_hash", "owner_address", "created_at", "updated_at"):
            assert name in columns


class TestSessionContext:
    """Test session context management."""

    def test_get_db_yields_and_closes(self):
        """Test the FastAPI dependency yields a usable session."""
        from chainpad.db import get_db

        gen = get_db()
        session = next(gen)
        assert session.execute(text("SELECT 1")).scalar() == 1
        with pytest.raises(StopIteration):
            next(gen)

    def test_session_rollback_on_error(self, db_session):
        """Test that a unique-constraint failure can be rolled back."""
        from chainpad.auth.models import User

        address = "0x" + "1" * 40
        db_session.add(User(wallet_address=address, email="a@placeholder.com"))
        db_session.commit()

        db_session.add(User(wallet_address=address, email="b@placeholder.com"))
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()

        assert db_session.query(User).count() == 1

    def test_abi_round_trips_as_json(self, db_session):
        """Test the JSON column keeps list structure."""
        from chainpad.contracts.models import Contract

        abi = [{"type": "function", "name": "get", "inputs": [], "outputs": []}]
        db_session.add(Contract(type="file", name="A.sol", abi=abi, owner_address="0x" + "a" * 40))
        db_session.commit()

        stored = db_session.query(Contract).one()
        assert stored.abi == abi
        assert stored.is_compiled is False

    def test_separate_engines_are_isolated(self):
        """Test two in-memory databases do not share rows."""
        from chainpad.db import init_db
        from chainpad.contracts.models import Contract

        sessions = []
        for _ in range(2):
            engine = create_engine("sqlite:///:memory:")
            init_db(bind=engine)
            sessions.append(sessionmaker(bind=engine)())

        sessions[0].add(Contract(type="folder", name="only-here"))
        sessions[0].commit()
        assert sessions[1].query(Contract).count() == 0
        for s in sessions:
            s.close()
