"""Async database service for taxable invoice persistence"""

from typing import AsyncIterator, Optional, List, Tuple
from calendar import monthrange
from contextlib import asynccontextmanager
from datetime import date, datetime
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, extract
from sqlalchemy.orm import selectinload
import logging

from billing.models.database import AsyncSessionLocal
from billing.models.invoice import Customer, InvoiceRecord, InvoiceStatus
from billing.models.db_models import Customer as CustomerDB, TaxableInvoice as TaxableInvoiceDB
from billing.models.db_utils import (
    apply_record_to_db,
    column_to_db,
    db_to_pydantic_customer,
    db_to_pydantic_invoice,
    item_to_db,
    pydantic_to_db_invoice,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _session_scope(db: Optional[AsyncSession]) -> AsyncIterator[AsyncSession]:
    """Use the caller's session, or open (and close) a new one"""
    if db is not None:
        yield db
        return
    session = AsyncSessionLocal()
    try:
        yield session
    finally:
        await session.close()


async def _load_invoice(session: AsyncSession, invoice_id: str) -> Optional[TaxableInvoiceDB]:
    result = await session.execute(
        select(TaxableInvoiceDB)
        .where(TaxableInvoiceDB.id == invoice_id)
        .options(
            selectinload(TaxableInvoiceDB.items),
            selectinload(TaxableInvoiceDB.custom_columns),
        )
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


class DatabaseService:
    """Async service for invoice, item, custom column and customer storage"""

    @staticmethod
    async def save_invoice(
        record: InvoiceRecord,
        db: Optional[AsyncSession] = None
    ) -> InvoiceRecord:
        """
        Insert a new invoice with its items and custom column definitions.

        Args:
            record: InvoiceRecord with computed totals, items and columns
            db: Async database session (optional, creates new if not provided)

        Returns:
            The stored invoice as reloaded from the database
        """
        async with _session_scope(db) as session:
            try:
                invoice_db = pydantic_to_db_invoice(record)
                session.add(invoice_db)
                await session.commit()

                stored = await _load_invoice(session, invoice_db.id)
                logger.info(
                    f"Invoice saved: {stored.id} ({stored.invoice_number}, "
                    f"{len(stored.items)} items, {len(stored.custom_columns)} custom columns)"
                )
                return db_to_pydantic_invoice(stored)
            except Exception as e:
                await session.rollback()
                logger.error(f"Error saving invoice {record.invoice_number}: {e}", exc_info=True)
                raise

    @staticmethod
    async def update_invoice(
        invoice_id: str,
        record: InvoiceRecord,
        db: Optional[AsyncSession] = None
    ) -> Optional[InvoiceRecord]:
        """
        Replace an invoice's header, totals, items and custom columns.

        Items and column definitions are replaced wholesale.

        Returns:
            Updated invoice, or None if the invoice does not exist
        """
        async with _session_scope(db) as session:
            try:
                invoice_db = await _load_invoice(session, invoice_id)
                if invoice_db is None:
                    logger.warning(f"Cannot update missing invoice: {invoice_id}")
                    return None

                apply_record_to_db(record, invoice_db)
                invoice_db.items = [item_to_db(item) for item in record.items]
                invoice_db.custom_columns = [column_to_db(column) for column in record.custom_columns]
                invoice_db.updated_at = datetime.utcnow()
                await session.commit()

                logger.info(f"Invoice updated: {invoice_id}")
                return db_to_pydantic_invoice(await _load_invoice(session, invoice_id))
            except Exception as e:
                await session.rollback()
                logger.error(f"Error updating invoice {invoice_id}: {e}", exc_info=True)
                raise

    @staticmethod
    async def get_invoice(
        invoice_id: str,
        db: Optional[AsyncSession] = None
    ) -> Optional[InvoiceRecord]:
        """
        Get invoice with items (by serial_no) and custom columns (by column_order)

        Returns:
            InvoiceRecord or None if not found
        """
        async with _session_scope(db) as session:
            try:
                invoice_db = await _load_invoice(session, invoice_id)
                if invoice_db:
                    return db_to_pydantic_invoice(invoice_db)
                return None
            except Exception as e:
                logger.error(f"Error getting invoice {invoice_id}: {e}", exc_info=True)
                raise

    @staticmethod
    async def list_invoices(
        skip: int = 0,
        limit: Optional[int] = 100,
        status: Optional[str] = None,
        year: Optional[int] = None,
        month: Optional[int] = None,
        db: Optional[AsyncSession] = None
    ) -> List[InvoiceRecord]:
        """
        List invoices, newest invoice date first

        Args:
            skip: Number of records to skip
            limit: Maximum number of records to return (None for all)
            status: Optional status filter
            year: Optional invoice year filter
            month: Optional month (1-12) within `year`
            db: Async database session (optional)
        """
        async with _session_scope(db) as session:
            try:
                query = select(TaxableInvoiceDB).options(
                    selectinload(TaxableInvoiceDB.items),
                    selectinload(TaxableInvoiceDB.custom_columns),
                )

                if year is not None:
                    start, end = _period_bounds(year, month)
                    query = query.where(
                        TaxableInvoiceDB.invoice_date >= start,
                        TaxableInvoiceDB.invoice_date <= end,
                    )
                if status:
                    query = query.where(TaxableInvoiceDB.status == InvoiceStatus(status).value)

                query = query.order_by(
                    TaxableInvoiceDB.invoice_date.desc(), TaxableInvoiceDB.created_at.desc()
                ).offset(skip)
                if limit is not None:
                    query = query.limit(limit)
                result = await session.execute(query)
                return [db_to_pydantic_invoice(inv) for inv in result.scalars().all()]
            except Exception as e:
                logger.error(f"Error listing invoices: {e}", exc_info=True)
                raise

    @staticmethod
    async def update_status(
        invoice_id: str,
        status: InvoiceStatus,
        db: Optional[AsyncSession] = None
    ) -> bool:
        """Set invoice status; returns False if the invoice does not exist"""
        async with _session_scope(db) as session:
            try:
                invoice_db = await session.get(TaxableInvoiceDB, invoice_id)
                if invoice_db is None:
                    return False
                invoice_db.status = InvoiceStatus(status).value
                invoice_db.updated_at = datetime.utcnow()
                await session.commit()
                logger.info(f"Invoice {invoice_id} status -> {invoice_db.status}")
                return True
            except Exception as e:
                await session.rollback()
                logger.error(f"Error updating status of invoice {invoice_id}: {e}", exc_info=True)
                raise

    @staticmethod
    async def delete_invoice(
        invoice_id: str,
        db: Optional[AsyncSession] = None
    ) -> bool:
        """Delete an invoice together with its items and custom columns"""
        async with _session_scope(db) as session:
            try:
                invoice_db = await _load_invoice(session, invoice_id)
                if invoice_db is None:
                    return False
                await session.delete(invoice_db)
                await session.commit()
                logger.info(f"Invoice deleted: {invoice_id}")
                return True
            except Exception as e:
                await session.rollback()
                logger.error(f"Error deleting invoice {invoice_id}: {e}", exc_info=True)
                raise

    @staticmethod
    async def available_years(db: Optional[AsyncSession] = None) -> List[int]:
        """Distinct invoice years, newest first"""
        async with _session_scope(db) as session:
            result = await session.execute(
                select(extract("year", TaxableInvoiceDB.invoice_date)).distinct()
            )
            return sorted({int(year) for year in result.scalars().all() if year is not None}, reverse=True)

    @staticmethod
    async def upsert_customer(
        customer: Customer,
        db: Optional[AsyncSession] = None
    ) -> Customer:
        """
        Create a customer, or update the one with the same name and address
        """
        async with _session_scope(db) as session:
            try:
                result = await session.execute(
                    select(CustomerDB).where(
                        CustomerDB.name == customer.name,
                        CustomerDB.address == customer.address,
                    )
                )
                customer_db = result.scalars().first()

                if customer_db:
                    customer_db.gst_number = customer.gst_number
                    customer_db.email = customer.email
                    customer_db.phone = customer.phone
                    customer_db.updated_at = datetime.utcnow()
                else:
                    customer_db = CustomerDB(
                        name=customer.name,
                        address=customer.address,
                        gst_number=customer.gst_number,
                        email=customer.email,
                        phone=customer.phone,
                    )
                    session.add(customer_db)

                await session.commit()
                await session.refresh(customer_db)
                return db_to_pydantic_customer(customer_db)
            except Exception as e:
                await session.rollback()
                logger.error(f"Error saving customer {customer.name}: {e}", exc_info=True)
                raise

    @staticmethod
    async def list_customers(db: Optional[AsyncSession] = None) -> List[Customer]:
        async with _session_scope(db) as session:
            result = await session.execute(select(CustomerDB).order_by(CustomerDB.name))
            return [db_to_pydantic_customer(c) for c in result.scalars().all()]


def _period_bounds(year: int, month: Optional[int] = None) -> Tuple[date, date]:
    """First and last day of a year, or of one month in it"""
    if month is None:
        return date(year, 1, 1), date(year, 12, 31)
    return date(year, month, 1), date(year, month, monthrange(year, month)[1])
