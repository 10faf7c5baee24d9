"""
Shared test fixtures.
"""

import sys
from pathlib import Path

# Add project root to Python path
project_dir = Path(__file__).parent.parent
sys.path.insert(0, str(project_dir))

import pytest
from unittest.mock import patch
from typing import Generator

from models.stock import FieldMapping
from services.session_service import ReconciliationSession
from services.state_store_service import StateStore


# ===================
# SAMPLE DATA
# ===================

SAMPLE_STOCK_CSV = """Category,Description,SKU,Qty,Unit Price
Hardware,Laptop 14in,LT-100,3,£850.00
Hardware,Docking Station,DK-200,2,£120.50
Consumable,Toner Cartridge,TN-300,10,£35.00
"""

SAMPLE_STOCK_TSV = (
    "Asset ID\tDescription\tExpected Quantity\tUnit Price\n"
    "A\tWidget\t5\t2.00\n"
    "B\tGadget\t1\t10.00\n"
)


@pytest.fixture
def sample_stock_csv() -> str:
    """Comma-delimited stock list priced in pounds."""
    return SAMPLE_STOCK_CSV


@pytest.fixture
def sample_mapping() -> FieldMapping:
    """Mapping for sample_stock_csv."""
    return FieldMapping(
        unique_id_header="SKU",
        quantity_header="Qty",
        price_header="Unit Price",
    )


@pytest.fixture
def sample_stock_tsv() -> str:
    """Tab-delimited two-item list with no currency symbol."""
    return SAMPLE_STOCK_TSV


@pytest.fixture
def tsv_mapping() -> FieldMapping:
    return FieldMapping(
        unique_id_header="Asset ID",
        quantity_header="Expected Quantity",
        price_header="Unit Price",
    )


# ===================
# SESSIONS
# ===================

@pytest.fixture
def session() -> ReconciliationSession:
    """In-memory session with nothing loaded and no persistence."""
    return ReconciliationSession()


@pytest.fixture
def loaded_session(session, sample_stock_csv, sample_mapping) -> ReconciliationSession:
    """In-memory session with sample_stock_csv loaded."""
    session.load_stock_list(sample_stock_csv, sample_mapping)
    return session


@pytest.fixture
def state_store(tmp_path) -> StateStore:
    """State store writing to a temp directory."""
    return StateStore(tmp_path / "state" / "stock_check_state.json")


@pytest.fixture
def stored_session(state_store) -> ReconciliationSession:
    """Autosaving session backed by state_store, starting from demo data."""
    session = ReconciliationSession(store=state_store, autosave=True)
    session.load_demo()
    return session


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client(stored_session) -> Generator:
    """
    Create FastAPI test client bound to stored_session.

    Usage:
        def test_endpoint(test_client):
            response = test_client.get("/api/stock-check/state")
            assert response.status_code == 200
    """
    from fastapi.testclient import TestClient
    from main import app

    with patch("routes.stock_check.get_session", return_value=stored_session):
        with patch("main.get_session", return_value=stored_session):
            yield TestClient(app)
