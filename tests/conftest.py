"""Pytest configuration and shared fixtures"""

import pytest
import os
import sys
from typing import AsyncGenerator
from datetime import date
from decimal import Decimal
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

# Keep the application engine off the working directory
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from billing.models.database import Base
from billing.models import db_models  # noqa: F401
from billing.ledger.item_ledger import ItemLedger
from billing.models.invoice import InvoiceRecord, Party, TaxConfiguration, TaxType
from billing.services.invoice_service import build_invoice_record, build_ledger


# Test database setup (SQLite in-memory)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

test_engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
    echo=False
)

TestingSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False
)


@pytest.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Create a fresh database session for each test

    Yields:
        Async database session
    """
    # Create tables
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    # Create session
    async with TestingSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()

    # Drop tables after test
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


def make_ledger(lines, custom_columns=()) -> ItemLedger:
    """
    Build a ledger by replaying edits through its public operations.

    Args:
        lines: dicts of column id -> value, one per row
        custom_columns: display names added before any row is filled
    """
    return build_ledger(custom_columns, lines)


@pytest.fixture
def ledger_factory():
    """`make_ledger` for tests that build their own rows"""
    return make_ledger


@pytest.fixture
def sample_ledger() -> ItemLedger:
    """Three rows with amounts 1100, 575 and 900, plus a "Unit" column"""
    return make_ledger(
        [
            {"description": "laptop stand", "hsn_sac_code": "8473", "quantity": "2 pcs", "rate": "550", "unit": "pcs"},
            {"description": "network cable", "hsn_sac_code": "8544", "quantity": "5 m", "rate": "115", "unit": "m"},
            {"description": "installation", "hsn_sac_code": "998733", "quantity": "1", "rate": "900", "unit": ""},
        ],
        custom_columns=["Unit"],
    )


@pytest.fixture
def cgst_sgst_config() -> TaxConfiguration:
    return TaxConfiguration(
        tax_type=TaxType.CGST_SGST,
        cgst_rate=Decimal("9"),
        sgst_rate=Decimal("9"),
    )


@pytest.fixture
def igst_config() -> TaxConfiguration:
    return TaxConfiguration(tax_type=TaxType.IGST, igst_rate=Decimal("18"))


@pytest.fixture
def bill_to() -> Party:
    return Party(
        name="Sharma Traders",
        address="12 Station Road\nRaipur 492001",
        gst="22ABCDE1234F1Z5",
    )


@pytest.fixture
def sample_record(sample_ledger, cgst_sgst_config, bill_to) -> InvoiceRecord:
    """Unsaved invoice over `sample_ledger` with 9% + 9% GST"""
    return build_invoice_record(
        sample_ledger,
        cgst_sgst_config,
        invoice_number="GDC/2024/001",
        invoice_date=date(2024, 3, 15),
        company_name="Global Digital Connect",
        bill_to=bill_to,
        po_reference="PO-7788",
        po_date=date(2024, 3, 1),
        terms_and_conditions="Payment within 30 days.",
    )
