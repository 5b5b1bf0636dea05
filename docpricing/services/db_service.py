"""Async database service for document snapshot persistence"""

from typing import Optional, List
from datetime import datetime
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
import logging

from docpricing.config import settings
from docpricing.models.database import AsyncSessionLocal
from docpricing.models.document import DocumentSnapshot
from docpricing.models.db_models import Document as DocumentDB
from docpricing.models.db_utils import (
    apply_snapshot_fields,
    db_to_snapshot,
    line_items_to_db,
    snapshot_to_db,
)
from docpricing.models.enums import DocumentType, STATUS_ENUMS

logger = logging.getLogger(__name__)


def _number_prefix(document_type: DocumentType) -> str:
    return {
        DocumentType.QUOTATION: settings.QUOTATION_NUMBER_PREFIX,
        DocumentType.PURCHASE_ORDER: settings.PURCHASE_ORDER_NUMBER_PREFIX,
        DocumentType.SALES_INVOICE: settings.SALES_INVOICE_NUMBER_PREFIX,
    }[DocumentType(document_type)]


class DatabaseService:
    """Async service for document persistence.

    Concurrent edits of the same document are last-write-wins.
    """

    @staticmethod
    async def next_document_number(
        document_type: DocumentType,
        session: AsyncSession
    ) -> str:
        """
        Next sequential number for a document type, e.g. ``QT-00042``

        Args:
            document_type: Document type
            session: Async database session

        Returns:
            Document number one past the highest existing one
        """
        prefix = f"{_number_prefix(document_type)}-"
        result = await session.execute(
            select(DocumentDB.document_number).where(
                DocumentDB.document_type == DocumentType(document_type).value
            )
        )
        highest = 0
        for number in result.scalars().all():
            if number and number.startswith(prefix) and number[len(prefix):].isdigit():
                highest = max(highest, int(number[len(prefix):]))
        return f"{prefix}{highest + 1:0{settings.DOCUMENT_NUMBER_DIGITS}d}"

    @staticmethod
    async def save_snapshot(
        snapshot: DocumentSnapshot,
        db: Optional[AsyncSession] = None
    ) -> DocumentSnapshot:
        """
        Save a document snapshot

        New documents get a number assigned when they have none. Saving a
        snapshot whose id already exists replaces the stored header, totals
        and lines.

        Args:
            snapshot: Document snapshot with computed totals
            db: Async database session (optional, creates new if not provided)

        Returns:
            The stored snapshot, with id, number and timestamps
        """
        if db:
            session = db
            should_close = False
        else:
            session = AsyncSessionLocal()
            should_close = True

        try:
            existing = None
            if snapshot.id:
                result = await session.execute(
                    select(DocumentDB).where(DocumentDB.id == snapshot.id)
                )
                existing = result.scalar_one_or_none()

            if not snapshot.header.document_number:
                number = await DatabaseService.next_document_number(snapshot.document_type, session)
                snapshot = snapshot.model_copy(update={
                    "header": snapshot.header.model_copy(update={"document_number": number})
                })

            if existing:
                logger.info(f"Updating existing {snapshot.document_type.value}: {snapshot.id}")
                apply_snapshot_fields(existing, snapshot)
                existing.line_items = line_items_to_db(snapshot.line_items)
                existing.updated_at = datetime.utcnow()
                document_db = existing
            else:
                logger.info(f"Creating new {snapshot.document_type.value}: {snapshot.header.document_number}")
                document_db = snapshot_to_db(snapshot)
                session.add(document_db)

            await session.commit()
            document_id = document_db.id

            logger.info(
                f"Document saved: {document_id} ({snapshot.header.document_number}), "
                f"grand total {snapshot.totals.grand_total}"
            )
            return await DatabaseService.get_document(document_id, db=session)

        except Exception as e:
            await session.rollback()
            logger.error(f"Error saving document {snapshot.id}: {e}", exc_info=True)
            raise
        finally:
            if should_close:
                await session.close()

    @staticmethod
    async def get_document(
        document_id: str,
        db: Optional[AsyncSession] = None
    ) -> Optional[DocumentSnapshot]:
        """
        Get a document snapshot

        Args:
            document_id: Document ID
            db: Async database session (optional)

        Returns:
            DocumentSnapshot or None if not found
        """
        if db:
            session = db
            should_close = False
        else:
            session = AsyncSessionLocal()
            should_close = True

        try:
            result = await session.execute(
                select(DocumentDB)
                .where(DocumentDB.id == document_id)
                .execution_options(populate_existing=True)
            )
            document_db = result.scalar_one_or_none()

            if document_db:
                return db_to_snapshot(document_db)
            return None

        except Exception as e:
            logger.error(f"Error getting document {document_id}: {e}", exc_info=True)
            raise
        finally:
            if should_close:
                await session.close()

    @staticmethod
    async def list_documents(
        document_type: Optional[DocumentType] = None,
        status: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
        db: Optional[AsyncSession] = None
    ) -> List[DocumentSnapshot]:
        """
        List documents, newest first

        Args:
            document_type: Optional document type filter
            status: Optional status filter
            skip: Number of records to skip
            limit: Maximum number of records to return
            db: Async database session (optional)

        Returns:
            List of document snapshots
        """
        if db:
            session = db
            should_close = False
        else:
            session = AsyncSessionLocal()
            should_close = True

        try:
            query = select(DocumentDB)

            if document_type:
                query = query.where(DocumentDB.document_type == DocumentType(document_type).value)
            if status:
                query = query.where(DocumentDB.status == status)

            query = query.order_by(DocumentDB.created_at.desc())
            query = query.offset(skip).limit(limit)

            result = await session.execute(query)
            return [db_to_snapshot(doc) for doc in result.scalars().all()]

        except Exception as e:
            logger.error(f"Error listing documents: {e}", exc_info=True)
            raise
        finally:
            if should_close:
                await session.close()

    @staticmethod
    async def update_status(
        document_id: str,
        status: str,
        db: Optional[AsyncSession] = None
    ) -> bool:
        """
        Update document status. Totals are left untouched.

        Args:
            document_id: Document ID
            status: New status, valid for the document's type
            db: Async database session (optional)

        Returns:
            True if updated, False if not found

        Raises:
            ValueError: status is not valid for the document type
        """
        if db:
            session = db
            should_close = False
        else:
            session = AsyncSessionLocal()
            should_close = True

        try:
            result = await session.execute(
                select(DocumentDB).where(DocumentDB.id == document_id)
            )
            document_db = result.scalar_one_or_none()

            if not document_db:
                return False

            status_enum = STATUS_ENUMS[DocumentType(document_db.document_type)]
            document_db.status = status_enum(status).value
            document_db.updated_at = datetime.utcnow()

            await session.commit()
            return True

        except Exception as e:
            await session.rollback()
            logger.error(f"Error updating document status {document_id}: {e}", exc_info=True)
            raise
        finally:
            if should_close:
                await session.close()
