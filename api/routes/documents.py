"""API routes for creating, editing and reading priced documents"""

from fastapi import APIRouter, HTTPException, Depends, Query
from pydantic import BaseModel, Field
from typing import Optional, List
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_tax_policy_registry
from api.routes.pricing import LineItemIn, parse_line_items
from docpricing.models.database import get_db
from docpricing.models.document import DocumentHeader, DocumentSnapshot
from docpricing.models.enums import CONVERSIONS, DocumentType
from docpricing.pricing.errors import ValidationError
from docpricing.pricing.tax_policy import TaxPolicyRegistry
from docpricing.services.db_service import DatabaseService
from docpricing.services.draft_service import DocumentDraft

logger = logging.getLogger(__name__)

router = APIRouter()


class DocumentRequest(BaseModel):
    """Request model for creating or replacing a document"""
    document_type: DocumentType
    header: DocumentHeader
    line_items: List[LineItemIn] = Field(default_factory=list)


class DocumentUpdateRequest(BaseModel):
    header: DocumentHeader
    line_items: List[LineItemIn] = Field(default_factory=list)


class StatusUpdateRequest(BaseModel):
    status: str


class ConvertRequest(BaseModel):
    """Create a purchase order or sales invoice from a stored document"""
    document_type: DocumentType
    counterparty_ref: Optional[str] = None  # required when the role changes, e.g. the supplier of a purchase order


def _draft(
    document_type: DocumentType,
    header: DocumentHeader,
    lines: List[LineItemIn],
    registry: TaxPolicyRegistry,
) -> DocumentDraft:
    return DocumentDraft(
        document_type,
        registry.policy_for(document_type),
        header=header,
        items=tuple(parse_line_items(lines)),
    )


async def _get_or_404(document_id: str, db: AsyncSession) -> DocumentSnapshot:
    snapshot = await DatabaseService.get_document(document_id, db=db)
    if not snapshot:
        raise HTTPException(status_code=404, detail=f"Document {document_id} not found")
    return snapshot


@router.post("/documents", status_code=201)
async def create_document(
    request: DocumentRequest,
    db: AsyncSession = Depends(get_db),
    registry: TaxPolicyRegistry = Depends(get_tax_policy_registry),
):
    """
    Price and store a new document

    Returns:
        Stored snapshot with number and computed totals
    """
    try:
        header = request.header.model_copy(update={"document_number": None})
        snapshot = _draft(request.document_type, header, request.line_items, registry).submit()
        saved = await DatabaseService.save_snapshot(snapshot, db=db)
        return saved.model_dump(mode="json")

    except (HTTPException, ValidationError):
        raise
    except Exception as e:
        logger.error(f"Error creating document: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")


@router.put("/documents/{document_id}")
async def update_document(
    document_id: str,
    request: DocumentUpdateRequest,
    db: AsyncSession = Depends(get_db),
    registry: TaxPolicyRegistry = Depends(get_tax_policy_registry),
):
    """
    Re-price and replace a stored document (edit flow)

    The document keeps its type and number; totals are recomputed from the
    submitted lines with the current tax policy.
    """
    try:
        existing = await _get_or_404(document_id, db)
        header = request.header.model_copy(update={"document_number": existing.header.document_number})
        snapshot = _draft(existing.document_type, header, request.line_items, registry).submit()
        snapshot = snapshot.model_copy(update={"id": document_id})
        saved = await DatabaseService.save_snapshot(snapshot, db=db)
        return saved.model_dump(mode="json")

    except (HTTPException, ValidationError):
        raise
    except Exception as e:
        logger.error(f"Error updating document {document_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")


@router.get("/documents/{document_id}")
async def get_document(
    document_id: str,
    db: AsyncSession = Depends(get_db),
):
    """Stored snapshot, totals as saved"""
    snapshot = await _get_or_404(document_id, db)
    return snapshot.model_dump(mode="json")


@router.get("/documents")
async def list_documents(
    document_type: Optional[DocumentType] = None,
    status: Optional[str] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    """List stored documents, newest first"""
    snapshots = await DatabaseService.list_documents(
        document_type=document_type, status=status, skip=skip, limit=limit, db=db
    )
    return {
        "count": len(snapshots),
        "documents": [s.model_dump(mode="json") for s in snapshots],
    }


@router.patch("/documents/{document_id}/status")
async def update_document_status(
    document_id: str,
    request: StatusUpdateRequest,
    db: AsyncSession = Depends(get_db),
):
    """Move a document through its lifecycle. Totals are not touched."""
    try:
        updated = await DatabaseService.update_status(document_id, request.status, db=db)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    if not updated:
        raise HTTPException(status_code=404, detail=f"Document {document_id} not found")
    return {"id": document_id, "status": request.status}


@router.post("/documents/{document_id}/convert", status_code=201)
async def convert_document(
    document_id: str,
    request: ConvertRequest,
    db: AsyncSession = Depends(get_db),
    registry: TaxPolicyRegistry = Depends(get_tax_policy_registry),
):
    """
    Create a purchase order or sales invoice from a stored quotation, or a
    sales invoice from a stored purchase order

    Lines and duty status carry over; totals are computed with the target
    type's tax policy.
    """
    try:
        source = await _get_or_404(document_id, db)
        if request.document_type not in CONVERSIONS.get(source.document_type, ()):
            raise HTTPException(
                status_code=400,
                detail=f"A {source.document_type.value} cannot be converted into a {request.document_type.value}",
            )

        draft = DocumentDraft.from_snapshot(
            source,
            registry.policy_for(request.document_type),
            document_type=request.document_type,
            counterparty_ref=request.counterparty_ref,
        )
        saved = await DatabaseService.save_snapshot(draft.submit(), db=db)
        return saved.model_dump(mode="json")

    except (HTTPException, ValidationError):
        raise
    except Exception as e:
        logger.error(f"Error converting document {document_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")
