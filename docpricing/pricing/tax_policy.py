"""Tax policy tables keyed by customs/duty status"""

from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional
import logging

from docpricing.models.enums import DocumentType
from .engine import resolve_tax_rate, validate_tax_rate, HUNDRED
from .errors import ValidationError

logger = logging.getLogger(__name__)


class DutyStatus:
    """Shipping/customs terms offered on document forms"""
    CIF_ADEN_FREEZONE = "CIF Aden Freezone"
    DDP_ADEN = "DDP Aden"
    DDP_SANAA = "DDP Sana'a"


DEFAULT_DUTY_STATUS_RATES: Dict[str, Decimal] = {
    DutyStatus.CIF_ADEN_FREEZONE: Decimal("0.00"),
    DutyStatus.DDP_ADEN: Decimal("0.17"),
    DutyStatus.DDP_SANAA: Decimal("0.21"),
}

# Unknown or missing duty status is untaxed
DEFAULT_FALLBACK_RATE = Decimal("0")

TAX_LABEL = "Tax"
CUSTOMS_DUTY_LABEL = "Customs Duty & Sales Tax"

# Purchase orders show duty-paid rates as customs duty plus sales tax
DUTY_LABELS = {DocumentType.PURCHASE_ORDER: CUSTOMS_DUTY_LABEL}


class TaxPolicy:
    """Maps a duty status to a tax rate, with an explicit fallback"""

    def __init__(
        self,
        rates: Mapping[str, Any],
        fallback_rate: Any = DEFAULT_FALLBACK_RATE,
        duty_label: str = TAX_LABEL,
    ):
        """
        Args:
            rates: duty status -> rate as a fraction in [0, 1]
            fallback_rate: rate for unknown or missing duty status
            duty_label: label for a taxed duty status from the table

        Raises:
            ValidationError: a rate is outside [0, 1]
        """
        self.rates: Dict[str, Decimal] = {
            status: validate_tax_rate(rate, field=f"tax_policy[{status}]")
            for status, rate in rates.items()
        }
        self.fallback_rate = validate_tax_rate(fallback_rate, field="fallback_rate")
        self.duty_label = duty_label

    def rate_for(self, duty_status: Optional[str]) -> Decimal:
        return resolve_tax_rate(duty_status, self.rates, self.fallback_rate)

    def label_for(self, duty_status: Optional[str]) -> str:
        """Display label such as ``Tax (17%)`` or ``Customs Duty & Sales Tax (21%)``"""
        rate = self.rate_for(duty_status)
        name = self.duty_label if self.is_known(duty_status) and rate > 0 else TAX_LABEL
        percent = (rate * HUNDRED).normalize()
        return f"{name} ({format(percent, 'f')}%)"

    def is_known(self, duty_status: Optional[str]) -> bool:
        return bool(duty_status) and duty_status in self.rates

    def options(self) -> List[Dict[str, Any]]:
        """Selectable duty statuses with their rates, for form dropdowns"""
        return [
            {"duty_status": status, "tax_rate": rate, "label": self.label_for(status)}
            for status, rate in self.rates.items()
        ]

    def __repr__(self) -> str:
        return (
            f"TaxPolicy(rates={self.rates!r}, fallback_rate={self.fallback_rate!r}, "
            f"duty_label={self.duty_label!r})"
        )


class TaxPolicyRegistry:
    """One TaxPolicy per document type.

    The policy used for a document is chosen here, by document type, so that
    quotations, purchase orders and sales invoices are taxed by one central
    configuration rather than by each form.
    """

    def __init__(self, policies: Mapping[DocumentType, TaxPolicy]):
        missing = [t.value for t in DocumentType if t not in policies]
        if missing:
            raise ValidationError("tax_policy", f"no policy configured for: {', '.join(missing)}")
        self._policies = dict(policies)

    @classmethod
    def uniform(cls, policy: TaxPolicy) -> "TaxPolicyRegistry":
        return cls({document_type: policy for document_type in DocumentType})

    @classmethod
    def build(
        cls,
        rates: Mapping[str, Any],
        fallbacks: Mapping[DocumentType, Any],
    ) -> "TaxPolicyRegistry":
        """One shared duty status table, a fallback rate and label per document type"""
        return cls({
            document_type: TaxPolicy(rates, fallbacks[document_type], DUTY_LABELS.get(document_type, TAX_LABEL))
            for document_type in DocumentType
        })

    @classmethod
    def default(cls) -> "TaxPolicyRegistry":
        return cls.build(DEFAULT_DUTY_STATUS_RATES, {t: DEFAULT_FALLBACK_RATE for t in DocumentType})

    @classmethod
    def from_settings(cls, settings) -> "TaxPolicyRegistry":
        """
        Build the registry from application settings.

        Every document type shares ``DUTY_STATUS_TAX_RATES``; the fallback is
        ``DEFAULT_TAX_RATE`` unless a per-type override is set.
        """
        overrides = {
            DocumentType.QUOTATION: settings.QUOTATION_FALLBACK_TAX_RATE,
            DocumentType.PURCHASE_ORDER: settings.PURCHASE_ORDER_FALLBACK_TAX_RATE,
            DocumentType.SALES_INVOICE: settings.SALES_INVOICE_FALLBACK_TAX_RATE,
        }
        registry = cls.build(settings.DUTY_STATUS_TAX_RATES, {
            document_type: settings.DEFAULT_TAX_RATE if override is None else override
            for document_type, override in overrides.items()
        })
        logger.info(
            f"Tax policies loaded: {len(settings.DUTY_STATUS_TAX_RATES)} duty status rate(s), "
            f"fallbacks {', '.join(f'{t.value}={p.fallback_rate}' for t, p in registry._policies.items())}"
        )
        return registry

    def policy_for(self, document_type: DocumentType) -> TaxPolicy:
        return self._policies[DocumentType(document_type)]

    def rate_for(self, document_type: DocumentType, duty_status: Optional[str]) -> Decimal:
        return self.policy_for(document_type).rate_for(duty_status)
