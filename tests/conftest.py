import pytest
import os
from datetime import date
from decimal import Decimal
from sqlmodel import Session, SQLModel, create_engine
from sqlalchemy.pool import StaticPool

# Import all models to ensure they're registered with SQLModel
from src.api.contracts.models.contract_draft import ContractDraft
from src.api.pricing.constants import BillingCycle, TaxInclusion
from src.api.pricing.schemas.block import CatalogBlock, ConfigurableBlock, CoverageType


@pytest.fixture(scope="session", autouse=True)
def setup_test_env():
    """Setup test environment variables"""
    os.environ["ENV"] = "test"
    yield
    # Cleanup
    if "ENV" in os.environ:
        del os.environ["ENV"]


@pytest.fixture
def test_engine():
    """Create an in-memory SQLite database for testing"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    return engine


@pytest.fixture
def test_session(test_engine):
    """Create a test database session"""
    with Session(test_engine) as session:
        yield session


@pytest.fixture
def sample_catalog_data():
    """Sample catalog block with a GST pricing record"""
    return {
        "id": "blk-ac-service",
        "name": "AC Servicing",
        "category_id": "service",
        "description": "Quarterly AC servicing",
        "price": "90.00",
        "pricing_records": [
            {
                "currency": "INR",
                "amount": "100.00",
                "tax_inclusion": "exclusive",
                "taxes": [
                    {"id": "cgst", "name": "CGST", "rate": "9"},
                    {"id": "sgst", "name": "SGST", "rate": "9"},
                ],
            }
        ],
    }


@pytest.fixture
def sample_catalog_block(sample_catalog_data):
    return CatalogBlock(**sample_catalog_data)


@pytest.fixture
def sample_coverage_types():
    """Two coverage groups: split ACs and chillers"""
    return [
        CoverageType(id="A", sub_category="hvac", resource_id="res-split", resource_name="Split AC"),
        CoverageType(id="B", sub_category="hvac", resource_id="res-chiller", resource_name="Chiller"),
    ]


@pytest.fixture
def sample_draft_data():
    """Sample contract draft data for testing"""
    return {
        "name": "Annual HVAC maintenance",
        "currency": "INR",
        "start_date": date(2026, 1, 1),
        "duration_value": 12,
        "duration_unit": "months",
        "payment_mode": "prepaid",
    }


# Test data factories
class TestDataFactory:
    @staticmethod
    def create_block(**kwargs) -> ConfigurableBlock:
        """Create a contract line"""
        data = {
            "id": "line-1",
            "name": "Service line",
            "category_id": "service",
            "price": Decimal("100"),
            "quantity": 1,
            "currency": "INR",
            "tax_rate": Decimal("0"),
            "tax_inclusion": TaxInclusion.EXCLUSIVE,
            "cycle": BillingCycle.PREPAID,
        }
        data.update(kwargs)
        return ConfigurableBlock(**data)

    @staticmethod
    def create_catalog_block(**kwargs) -> CatalogBlock:
        """Create a catalog block without pricing records"""
        data = {
            "id": "X",
            "name": "Filter replacement",
            "category_id": "spare",
            "price": "50",
        }
        data.update(kwargs)
        return CatalogBlock(**data)

    @staticmethod
    def create_draft(session: Session, **kwargs) -> ContractDraft:
        """Create a stored contract draft"""
        data = {
            "name": "Test draft",
            "currency": "INR",
            "start_date": date(2026, 1, 1),
            "duration_value": 12,
            "blocks": [],
            "coverage_types": [],
        }
        data.update(kwargs)

        draft = ContractDraft(**data)
        session.add(draft)
        session.commit()
        session.refresh(draft)
        return draft


@pytest.fixture
def test_data_factory():
    """Provide test data factory"""
    return TestDataFactory
