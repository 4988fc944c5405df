"""
SQLAlchemy-backed stores for the scoring engine.

Each call opens its own session from the injected factory, commits or rolls
back, and closes it. Errors are logged and re-raised so the orchestrator can
turn them into a failed summary.
"""
import logging
from typing import Any, Dict, List

from leadops.database import get_session
from leadops.models.conversion_rate import ConversionRate
from leadops.models.lead import Lead
from leadops.scoring.base import (
    ConversionRateRecord,
    ConversionRateStore,
    LeadSnapshot,
    LeadStore,
    LeadUpdateOp,
    UpsertResult,
    UpsertStats,
)

logger = logging.getLogger('services.stores')

# Max ids per IN (...) clause when loading rows for a bulk write
BULK_CHUNK_SIZE = 1000


def _chunks(items, size=BULK_CHUNK_SIZE):
    for i in range(0, len(items), size):
        yield items[i:i + size]


def lead_to_snapshot(lead: Lead) -> LeadSnapshot:
    return LeadSnapshot(
        id=lead.id,
        client_id=lead.client_id,
        service=lead.service or '',
        ad_set_name=lead.ad_set_name or '',
        ad_name=lead.ad_name or '',
        zip=lead.zip or '',
        lead_date=lead.lead_date,
        status=lead.status,
        lead_score=lead.lead_score,
        conversion_rates=dict(lead.conversion_rates) if lead.conversion_rates is not None else None,
    )


def row_to_record(row: ConversionRate) -> ConversionRateRecord:
    return ConversionRateRecord(
        client_id=row.client_id,
        key_field=row.key_field,
        key_name=row.key_name,
        conversion_rate=row.conversion_rate,
        past_total_count=row.past_total_count,
        past_total_est=row.past_total_est,
    )


class SqlLeadStore(LeadStore):

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or get_session

    def get_leads_by_client_id(self, client_id: str) -> List[LeadSnapshot]:
        session = self._session_factory()
        try:
            rows = (
                session.query(Lead)
                .filter(Lead.client_id == client_id, Lead.is_deleted.is_(False))
                .order_by(Lead.id)
                .all()
            )
            return [lead_to_snapshot(row) for row in rows]
        finally:
            session.close()

    def get_distinct_client_ids(self) -> List[str]:
        session = self._session_factory()
        try:
            rows = (
                session.query(Lead.client_id)
                .filter(Lead.is_deleted.is_(False))
                .distinct()
                .order_by(Lead.client_id)
                .all()
            )
            return [client_id for (client_id,) in rows if client_id]
        finally:
            session.close()

    def bulk_update(self, ops: List[LeadUpdateOp]) -> int:
        """
        Apply every op in one transaction.

        Blind set of lead_score + conversion_rates, last writer wins. The
        returned count only includes rows whose stored values differed.
        """
        if not ops:
            return 0

        session = self._session_factory()
        try:
            ops_by_id = {op.lead_id: op for op in ops}
            modified = 0
            for ids in _chunks(list(ops_by_id)):
                for row in session.query(Lead).filter(Lead.id.in_(ids)).all():
                    op = ops_by_id[row.id]
                    if row.lead_score != op.lead_score or (row.conversion_rates or {}) != op.conversion_rates:
                        modified += 1
                    row.lead_score = op.lead_score
                    row.conversion_rates = dict(op.conversion_rates)
            session.commit()
            return modified
        except Exception:
            session.rollback()
            logger.error("Bulk lead update failed (%d ops)", len(ops), exc_info=True)
            raise
        finally:
            session.close()

    def update_many(self, client_id: str, values: Dict[str, Any]) -> int:
        """
        Set `values` on every live lead of the client.

        Rows that already hold these values are left alone, so the returned
        count only includes leads that actually changed.
        """
        session = self._session_factory()
        try:
            columns = [getattr(Lead, name) for name in values]
            rows = (
                session.query(Lead.id, *columns)
                .filter(Lead.client_id == client_id, Lead.is_deleted.is_(False))
                .all()
            )
            changed = [
                row[0] for row in rows
                if any(current != values[name] for name, current in zip(values, row[1:]))
            ]

            count = 0
            for ids in _chunks(changed):
                count += (
                    session.query(Lead)
                    .filter(Lead.id.in_(ids))
                    .update(dict(values), synchronize_session=False)
                ) or 0
            session.commit()
            return count
        except Exception:
            session.rollback()
            logger.error("Mass lead update failed for client %s", client_id, exc_info=True)
            raise
        finally:
            session.close()


class SqlConversionRateStore(ConversionRateStore):

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or get_session

    def get_conversion_rates(self, client_id: str) -> List[ConversionRateRecord]:
        session = self._session_factory()
        try:
            rows = (
                session.query(ConversionRate)
                .filter(ConversionRate.client_id == client_id)
                .order_by(ConversionRate.key_field, ConversionRate.key_name)
                .all()
            )
            return [row_to_record(row) for row in rows]
        finally:
            session.close()

    def batch_upsert(self, records: List[ConversionRateRecord]) -> UpsertResult:
        """
        Upsert by (client_id, key_field, key_name) and report true deltas.

        Existing rows are read before the write and compared value by value,
        so a row that would be rewritten with identical numbers counts as
        neither inserted nor updated (and is not touched).
        """
        if not records:
            return UpsertResult()

        incoming = {record.key: record for record in records}
        client_ids = sorted({record.client_id for record in incoming.values()})

        session = self._session_factory()
        try:
            existing = {}
            for row in session.query(ConversionRate).filter(ConversionRate.client_id.in_(client_ids)).all():
                key = (row.client_id, row.key_field, row.key_name)
                if key in incoming:
                    existing[key] = row

            stats = UpsertStats()
            for key, record in incoming.items():
                row = existing.get(key)
                if row is None:
                    session.add(ConversionRate(
                        client_id=record.client_id,
                        key_field=record.key_field,
                        key_name=record.key_name,
                        conversion_rate=record.conversion_rate,
                        past_total_count=record.past_total_count,
                        past_total_est=record.past_total_est,
                    ))
                    stats.new_inserts += 1
                elif not row_to_record(row).same_values(record):
                    row.conversion_rate = record.conversion_rate
                    row.past_total_count = record.past_total_count
                    row.past_total_est = record.past_total_est
                    stats.updated += 1
            stats.total = stats.new_inserts + stats.updated
            session.commit()

            stored = [
                row_to_record(row)
                for row in session.query(ConversionRate).filter(ConversionRate.client_id.in_(client_ids)).all()
                if (row.client_id, row.key_field, row.key_name) in incoming
            ]
            logger.debug("Upserted %d conversion rates (new=%d, updated=%d)",
                         len(incoming), stats.new_inserts, stats.updated)
            return UpsertResult(stored=stored, stats=stats)
        except Exception:
            session.rollback()
            logger.error("Conversion rate upsert failed (%d records)", len(records), exc_info=True)
            raise
        finally:
            session.close()
