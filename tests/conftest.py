"""Shared test fixtures."""
import copy
import logging
import pytest
from unittest.mock import patch
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from leadops.database import Base
from leadops.scoring.base import (
    ConversionRateStore,
    LeadSnapshot,
    LeadStore,
    UpsertResult,
    UpsertStats,
)


@pytest.fixture
def db_engine():
    """In-memory SQLite engine with schema created."""
    engine = create_engine('sqlite:///:memory:')
    import leadops.models.lead
    import leadops.models.conversion_rate
    import leadops.models.scoring_run
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    """Session factory bound to the in-memory engine. Each call is a new session."""
    return sessionmaker(bind=db_engine, expire_on_commit=False)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.rollback()
    session.close()


@pytest.fixture(autouse=True)
def patch_get_session(session_factory):
    """
    Route every get_session() binding to the in-memory engine.

    Modules do `from leadops.database import get_session`, so the local
    bindings have to be patched as well as the original.
    """
    with patch('leadops.database.get_session', side_effect=lambda: session_factory()), \
         patch('leadops.services.stores.get_session', side_effect=lambda: session_factory()), \
         patch('leadops.services.batch.get_session', side_effect=lambda: session_factory()):
        yield


@pytest.fixture
def runner(session_factory, fake_redis):
    """BatchScoringRunner wired to the in-memory database and fake Redis."""
    from leadops.services.batch import build_runner
    return build_runner(session_factory=session_factory, redis_client=fake_redis)


@pytest.fixture
def app(runner):
    """Flask test app."""
    from leadops import create_app
    root = logging.getLogger()
    handlers = root.handlers[:]
    app = create_app(runner=runner)
    app.config['TESTING'] = True
    yield app
    root.handlers = handlers


@pytest.fixture
def client(app):
    """Flask test client."""
    with app.test_client() as c:
        yield c


@pytest.fixture
def make_lead_row(db_session):
    """Factory fixture — inserts a Lead row and returns it."""
    from leadops.models.lead import Lead

    def _make(**overrides):
        defaults = dict(
            client_id='client-a',
            name='Test Lead',
            service='Roofing',
            ad_set_name='Spring Promo',
            ad_name='Ad 1',
            zip='75001',
            lead_date='2024-03-15',
            status='new',
        )
        defaults.update(overrides)
        lead = Lead(**defaults)
        db_session.add(lead)
        db_session.commit()
        return lead
    return _make


# ── Fake Redis ───────────────────────────────────────────────────────────────

class FakeRedis:
    """Minimal in-memory Redis fake covering the lock commands."""

    def __init__(self):
        self.store = {}

    def get(self, key):
        return self.store.get(key)

    def set(self, key, value, nx=False, ex=None):
        if nx and key in self.store:
            return None
        self.store[key] = value
        return True

    def delete(self, *keys):
        removed = 0
        for k in keys:
            if self.store.pop(k, None) is not None:
                removed += 1
        return removed


@pytest.fixture
def fake_redis():
    return FakeRedis()


# ── In-memory stores ─────────────────────────────────────────────────────────

class FakeLeadStore(LeadStore):
    """Dict-backed LeadStore that records every write it receives."""

    def __init__(self, leads=()):
        self.leads = {lead.id: lead for lead in leads}
        self.bulk_calls = []
        self.update_many_calls = []

    def get_leads_by_client_id(self, client_id):
        return [copy.deepcopy(lead) for lead in self.leads.values() if lead.client_id == client_id]

    def bulk_update(self, ops):
        self.bulk_calls.append(list(ops))
        modified = 0
        for op in ops:
            lead = self.leads.get(op.lead_id)
            if lead is None:
                continue
            if lead.lead_score != op.lead_score or lead.conversion_rates != op.conversion_rates:
                modified += 1
            lead.lead_score = op.lead_score
            lead.conversion_rates = dict(op.conversion_rates)
        return modified

    def update_many(self, client_id, values):
        self.update_many_calls.append((client_id, copy.deepcopy(values)))
        count = 0
        for lead in self.leads.values():
            if lead.client_id != client_id:
                continue
            if lead.lead_score != values['lead_score'] or lead.conversion_rates != values['conversion_rates']:
                count += 1
            lead.lead_score = values['lead_score']
            lead.conversion_rates = dict(values['conversion_rates'])
        return count


class FakeConversionRateStore(ConversionRateStore):
    """Dict-backed ConversionRateStore with the same delta semantics as the SQL one."""

    def __init__(self, records=()):
        self.records = {record.key: copy.copy(record) for record in records}
        self.upsert_calls = []
        self.read_calls = []

    def get_conversion_rates(self, client_id):
        self.read_calls.append(client_id)
        return [copy.copy(r) for r in self.records.values() if r.client_id == client_id]

    def batch_upsert(self, records):
        self.upsert_calls.append(list(records))
        stats = UpsertStats()
        for record in records:
            existing = self.records.get(record.key)
            if existing is None:
                stats.new_inserts += 1
            elif not existing.same_values(record):
                stats.updated += 1
            self.records[record.key] = copy.copy(record)
        stats.total = stats.new_inserts + stats.updated
        stored = [copy.copy(self.records[r.key]) for r in records]
        return UpsertResult(stored=stored, stats=stats)


@pytest.fixture
def make_lead():
    """Factory fixture — builds a LeadSnapshot with sensible defaults."""
    counter = {'n': 0}

    def _make(**overrides):
        counter['n'] += 1
        defaults = dict(
            id=f"lead-{counter['n']}",
            client_id='client-a',
            service='',
            ad_set_name='',
            ad_name='',
            zip='',
            lead_date=None,
            status='new',
        )
        defaults.update(overrides)
        return LeadSnapshot(**defaults)
    return _make


@pytest.fixture
def lead_store_factory():
    return FakeLeadStore


@pytest.fixture
def rate_store_factory():
    return FakeConversionRateStore
