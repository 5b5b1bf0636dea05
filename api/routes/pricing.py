"""API routes for line and document totals"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from typing import Optional, List, Union, Dict, Any
import logging

from api.dependencies import get_tax_policy_registry
from docpricing.models.enums import DocumentType
from docpricing.models.money import money_to_wire, rate_to_wire
from docpricing.pricing.engine import (
    DocumentTotals,
    LineItem,
    build_discount,
    compute_document_totals,
    compute_line_total,
)
from docpricing.pricing.errors import ValidationError
from docpricing.pricing.line_items import normalize_quantity, normalize_unit_price
from docpricing.pricing.tax_policy import TaxPolicyRegistry

logger = logging.getLogger(__name__)

router = APIRouter()

RawNumber = Union[int, float, str]


class LineItemIn(BaseModel):
    """A document line as sent by a form"""
    product_ref: str = ""
    quantity: RawNumber
    unit_price: RawNumber


class DiscountIn(BaseModel):
    kind: Optional[str] = None
    value: Optional[RawNumber] = None


class LineTotalRequest(BaseModel):
    quantity: RawNumber
    unit_price: RawNumber


class TotalsRequest(BaseModel):
    """Request model for document totals"""
    document_type: DocumentType
    line_items: List[LineItemIn] = Field(default_factory=list)
    discount: Optional[DiscountIn] = None
    duty_status: Optional[str] = None


def parse_line_items(lines: List[LineItemIn]) -> List[LineItem]:
    """Normalize request lines, reporting failures with their line index"""
    items = []
    for index, line in enumerate(lines):
        try:
            items.append(LineItem(
                product_ref=line.product_ref,
                quantity=normalize_quantity(line.quantity),
                unit_price=normalize_unit_price(line.unit_price),
            ))
        except ValidationError as e:
            raise e.at_line(index) from None
    return items


def totals_to_wire(totals: DocumentTotals) -> Dict[str, Any]:
    return {
        "subtotal": money_to_wire(totals.subtotal),
        "discount_amount": money_to_wire(totals.discount_amount),
        "net_amount": money_to_wire(totals.net_amount),
        "tax_rate": rate_to_wire(totals.tax_rate),
        "tax_amount": money_to_wire(totals.tax_amount),
        "grand_total": money_to_wire(totals.grand_total),
    }


@router.post("/pricing/line-total")
async def line_total(request: LineTotalRequest):
    """Quantity times unit price, rounded to cents"""
    return {"line_total": money_to_wire(compute_line_total(request.quantity, request.unit_price))}


@router.post("/pricing/totals")
async def document_totals(
    request: TotalsRequest,
    registry: TaxPolicyRegistry = Depends(get_tax_policy_registry),
):
    """
    Compute document totals

    The tax rate is resolved from the duty status with the policy configured
    for the document type.

    Returns:
        Line totals, document totals and the tax label, money as strings
    """
    items = parse_line_items(request.line_items)
    discount = build_discount(request.discount.kind, request.discount.value) if request.discount else None
    policy = registry.policy_for(request.document_type)
    totals = compute_document_totals(items, discount, policy.rate_for(request.duty_status))

    return {
        "document_type": request.document_type.value,
        "duty_status": request.duty_status,
        "tax_label": policy.label_for(request.duty_status),
        "line_totals": [money_to_wire(item.line_total) for item in items],
        "totals": totals_to_wire(totals),
    }


@router.get("/pricing/tax-policies/{document_type}")
async def tax_policy(
    document_type: DocumentType,
    registry: TaxPolicyRegistry = Depends(get_tax_policy_registry),
):
    """Duty status options and fallback rate for a document type"""
    policy = registry.policy_for(document_type)
    return {
        "document_type": document_type.value,
        "fallback_rate": rate_to_wire(policy.fallback_rate),
        "fallback_label": policy.label_for(None),
        "options": [
            {
                "duty_status": option["duty_status"],
                "tax_rate": rate_to_wire(option["tax_rate"]),
                "label": option["label"],
            }
            for option in policy.options()
        ],
    }
