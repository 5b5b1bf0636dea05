"""FastAPI dependencies"""

from functools import lru_cache

from docpricing.config import settings
from docpricing.pricing.tax_policy import TaxPolicyRegistry


@lru_cache()
def get_tax_policy_registry() -> TaxPolicyRegistry:
    """Tax policies built once from settings and reused"""
    return TaxPolicyRegistry.from_settings(settings)
