"""
Multi-client recompute runner + scoring run log persistence.

Loops over every client with live leads, holds that client's lock for the
duration of its recompute, and aggregates the per-client summaries. A failure
for one client is recorded and the loop moves on. Deciding when to run is left
to the caller (HTTP trigger, CLI, external scheduler).
"""
import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from leadops.config import CLIENT_LOCK_TTL, MODE_FULL, MODE_SCORES_ONLY, RECOMPUTE_MODES, SCORING_CONFIG_PATH
from leadops.database import get_session
from leadops.models.scoring_run import ScoringRunLog
from leadops.scoring.base import ScoringSummary
from leadops.scoring.orchestrator import ScoringOrchestrator
from leadops.scoring.weights import load_scoring_config
from leadops.services.client_lock import ClientLock, ClientLockedError
from leadops.services.stores import SqlConversionRateStore, SqlLeadStore

logger = logging.getLogger('services.batch')

JOB_CLIENT = 'client_recompute'
JOB_ALL = 'all_clients_recompute'


@dataclass
class BatchResult:
    processed_clients: int = 0
    total_updated_conversion_rates: int = 0
    total_updated_leads: int = 0
    total_cr_new_inserts: int = 0
    total_cr_updated: int = 0
    errors: List[str] = field(default_factory=list)
    client_results: List[Dict[str, Any]] = field(default_factory=list)
    execution_id: str = ''

    def add(self, client_id, summary: ScoringSummary, duration_ms: int):
        self.total_updated_conversion_rates += summary.updated_conversion_rates
        self.total_updated_leads += summary.updated_leads
        stats = summary.conversion_rate_stats or {}
        self.total_cr_new_inserts += stats.get('new_inserts', 0)
        self.total_cr_updated += stats.get('updated', 0)
        self.errors.extend(summary.errors)
        self.client_results.append({
            'client_id': client_id,
            'success': not summary.errors,
            'duration_ms': duration_ms,
            **summary.to_dict(),
        })

    def to_dict(self):
        return {
            'execution_id': self.execution_id,
            'processed_clients': self.processed_clients,
            'total_updated_conversion_rates': self.total_updated_conversion_rates,
            'total_updated_leads': self.total_updated_leads,
            'total_cr_new_inserts': self.total_cr_new_inserts,
            'total_cr_updated': self.total_cr_updated,
            'errors': list(self.errors),
            'client_results': list(self.client_results),
        }


# ── Run log persistence ──────────────────────────────────────────────────────

def start_run_log(session_factory, execution_id, job_name, trigger, mode, details=None):
    """INSERT a 'started' run log row. Returns its id, or None if the write failed."""
    session = session_factory()
    try:
        log = ScoringRunLog(
            execution_id=execution_id,
            job_name=job_name,
            trigger=trigger,
            mode=mode,
            status='started',
            details=details or {},
            started_at=datetime.now(timezone.utc),
        )
        session.add(log)
        session.commit()
        return log.id
    except Exception:
        session.rollback()
        logger.error("Failed to record start of %s (%s)", job_name, execution_id, exc_info=True)
        return None
    finally:
        session.close()


def finish_run_log(session_factory, log_id, details, processed_count, error=None):
    """Mark a run log row success/failure. Logging never blocks a recompute."""
    if log_id is None:
        return
    session = session_factory()
    try:
        log = session.get(ScoringRunLog, log_id)
        if log is None:
            return
        log.status = 'failure' if error else 'success'
        log.details = details
        log.processed_count = processed_count
        log.error = error
        log.finished_at = datetime.now(timezone.utc)
        session.commit()
    except Exception:
        session.rollback()
        logger.error("Failed to finish run log %s", log_id, exc_info=True)
    finally:
        session.close()


def list_run_logs(session_factory=None, limit=50):
    session = (session_factory or get_session)()
    try:
        rows = (
            session.query(ScoringRunLog)
            .order_by(ScoringRunLog.started_at.desc(), ScoringRunLog.id.desc())
            .limit(limit)
            .all()
        )
        return [row.to_dict() for row in rows]
    finally:
        session.close()


# ── Runner ───────────────────────────────────────────────────────────────────

class BatchScoringRunner:

    def __init__(self, orchestrator: ScoringOrchestrator, lead_store: SqlLeadStore,
                 lock: Optional[ClientLock] = None, session_factory=None):
        self.orchestrator = orchestrator
        self.lead_store = lead_store
        self.lock = lock
        self.session_factory = session_factory or get_session

    def _recompute(self, client_id, mode) -> ScoringSummary:
        if mode == MODE_SCORES_ONLY:
            return self.orchestrator.run_score_only_recompute(client_id)
        return self.orchestrator.run_full_recompute(client_id)

    def _run_locked(self, client_id, mode) -> ScoringSummary:
        if self.lock is None:
            return self._recompute(client_id, mode)
        try:
            with self.lock.hold(client_id):
                return self._recompute(client_id, mode)
        except ClientLockedError as e:
            logger.warning("%s, skipping", e)
            return ScoringSummary.failed(str(e))

    def run_client(self, client_id, mode=MODE_FULL, trigger='manual') -> ScoringSummary:
        """Recompute one client under its lock and record the run."""
        if mode not in RECOMPUTE_MODES:
            raise ValueError(f"Unknown recompute mode: {mode}")

        execution_id = uuid.uuid4().hex
        log_id = start_run_log(self.session_factory, execution_id, JOB_CLIENT, trigger, mode,
                               {'client_id': client_id})
        summary = self._run_locked(client_id, mode)
        finish_run_log(
            self.session_factory, log_id,
            details={'client_id': client_id, **summary.to_dict()},
            processed_count=summary.total_processed_leads,
            error='; '.join(summary.errors) or None,
        )
        return summary

    def run_all(self, mode=MODE_FULL, trigger='batch') -> BatchResult:
        """Recompute every client with live leads, one at a time."""
        if mode not in RECOMPUTE_MODES:
            raise ValueError(f"Unknown recompute mode: {mode}")

        result = BatchResult(execution_id=uuid.uuid4().hex)
        log_id = start_run_log(self.session_factory, result.execution_id, JOB_ALL, trigger, mode)
        started = time.monotonic()

        try:
            client_ids = self.lead_store.get_distinct_client_ids()
        except Exception as e:
            message = f"Error loading client ids for recompute: {e}"
            logger.error(message, exc_info=True)
            result.errors.append(message)
            finish_run_log(self.session_factory, log_id, result.to_dict(), 0, error=message)
            return result

        logger.info("Recomputing %d clients (mode=%s)", len(client_ids), mode,
                    extra={'execution_id': result.execution_id, 'mode': mode})

        for client_id in client_ids:
            client_started = time.monotonic()
            summary = self._run_locked(client_id, mode)
            duration_ms = int((time.monotonic() - client_started) * 1000)
            result.add(client_id, summary, duration_ms)
            logger.info("Client %s done: %d rates, %d leads updated, %d errors (%dms)",
                        client_id, summary.updated_conversion_rates, summary.updated_leads,
                        len(summary.errors), duration_ms, extra={'client_id': client_id})

        result.processed_clients = len(client_ids)
        details = result.to_dict()
        details['duration_ms'] = int((time.monotonic() - started) * 1000)
        finish_run_log(
            self.session_factory, log_id, details,
            processed_count=len(client_ids),
            error='; '.join(result.errors) or None,
        )
        if result.errors:
            logger.error("Recompute finished with %d errors", len(result.errors))
        return result


def build_runner(session_factory=None, redis_client=None, config_path=None) -> BatchScoringRunner:
    """Wire the SQL stores, scoring config and Redis lock into a runner."""
    if redis_client is None:
        from leadops.extensions import redis_client

    lead_store = SqlLeadStore(session_factory)
    orchestrator = ScoringOrchestrator(
        lead_store,
        SqlConversionRateStore(session_factory),
        load_scoring_config(config_path or SCORING_CONFIG_PATH),
    )
    return BatchScoringRunner(
        orchestrator,
        lead_store,
        lock=ClientLock(redis_client, ttl=CLIENT_LOCK_TTL),
        session_factory=session_factory,
    )
