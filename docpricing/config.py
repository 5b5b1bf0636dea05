"""Application configuration"""

import os
from decimal import Decimal
from typing import Dict, Optional

from pydantic import Field
from pydantic_settings import BaseSettings

from docpricing.pricing.tax_policy import DEFAULT_DUTY_STATUS_RATES, DEFAULT_FALLBACK_RATE


def _optional_decimal(name: str) -> Optional[Decimal]:
    value = os.getenv(name)
    return Decimal(value) if value not in (None, "") else None


class Settings(BaseSettings):
    """Application settings"""
    
    # Application
    APP_NAME: str = "DocPricing"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = os.getenv("DEBUG", "False").lower() == "true"
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    
    # API
    API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
    API_PORT: int = int(os.getenv("API_PORT", "8000"))
    
    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./docpricing.db")
    
    # Tax policy
    # DUTY_STATUS_TAX_RATES may be set as JSON, e.g. '{"DDP Aden": "0.17"}'
    DUTY_STATUS_TAX_RATES: Dict[str, Decimal] = Field(
        default_factory=lambda: dict(DEFAULT_DUTY_STATUS_RATES)
    )
    DEFAULT_TAX_RATE: Decimal = Decimal(os.getenv("DEFAULT_TAX_RATE", str(DEFAULT_FALLBACK_RATE)))
    QUOTATION_FALLBACK_TAX_RATE: Optional[Decimal] = _optional_decimal("QUOTATION_FALLBACK_TAX_RATE")
    PURCHASE_ORDER_FALLBACK_TAX_RATE: Optional[Decimal] = _optional_decimal("PURCHASE_ORDER_FALLBACK_TAX_RATE")
    SALES_INVOICE_FALLBACK_TAX_RATE: Optional[Decimal] = _optional_decimal("SALES_INVOICE_FALLBACK_TAX_RATE")
    
    # Document numbering
    QUOTATION_NUMBER_PREFIX: str = os.getenv("QUOTATION_NUMBER_PREFIX", "QT")
    PURCHASE_ORDER_NUMBER_PREFIX: str = os.getenv("PURCHASE_ORDER_NUMBER_PREFIX", "PO")
    SALES_INVOICE_NUMBER_PREFIX: str = os.getenv("SALES_INVOICE_NUMBER_PREFIX", "INV")
    DOCUMENT_NUMBER_DIGITS: int = int(os.getenv("DOCUMENT_NUMBER_DIGITS", "5"))
    
    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE: Optional[str] = os.getenv("LOG_FILE")
    
    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


# Global settings instance
settings = Settings()
