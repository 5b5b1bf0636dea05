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

from docpricing.models.database import create_tables
from docpricing.models.document import DocumentHeader
from docpricing.models.enums import DocumentType
from docpricing.pricing.engine import LineItem
from docpricing.pricing.tax_policy import TaxPolicy, TaxPolicyRegistry, DEFAULT_DUTY_STATUS_RATES, DEFAULT_FALLBACK_RATE


# Test database setup (SQLite in-memory)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Create a fresh database for each test
    
    Yields:
        Async database session
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )
    await create_tables(engine)
    
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.close()
    
    await engine.dispose()


@pytest.fixture
def tax_policy() -> TaxPolicy:
    """Duty status table; unknown or missing status is untaxed"""
    return TaxPolicy(DEFAULT_DUTY_STATUS_RATES, DEFAULT_FALLBACK_RATE)


@pytest.fixture
def tax_registry() -> TaxPolicyRegistry:
    return TaxPolicyRegistry.default()


@pytest.fixture
def sample_items():
    """Two lines: 2 x 100.00 and 1 x 50.00 (subtotal 250.00)"""
    return [
        LineItem(product_ref="ITEM-A", quantity=2, unit_price=Decimal("100.00")),
        LineItem(product_ref="ITEM-B", quantity=1, unit_price=Decimal("50.00")),
    ]


@pytest.fixture
def quotation_header() -> DocumentHeader:
    return DocumentHeader(
        counterparty_ref="CUST-001",
        status="draft",
        issue_date=date(2024, 3, 1),
        validity_period="30 days",
        payment_terms=30,
        duty_status="DDP Aden",
        notes="Deliver to main warehouse",
    )


@pytest.fixture
def sample_quotation_payload():
    """API payload for a quotation with a 10% discount"""
    return {
        "document_type": DocumentType.QUOTATION.value,
        "header": {
            "counterparty_ref": "CUST-001",
            "status": "draft",
            "issue_date": "2024-03-01",
            "duty_status": "DDP Aden",
            "discount_kind": "percentage",
            "discount_value": "10",
        },
        "line_items": [
            {"product_ref": "ITEM-A", "quantity": 2, "unit_price": "100.00"},
            {"product_ref": "ITEM-B", "quantity": 1, "unit_price": "50.00"},
        ],
    }
