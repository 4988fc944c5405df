"""
Scoring engine contracts.

Value types that flow through the engine plus the two store interfaces it
consumes. The engine only ever sees these types; SQLAlchemy-backed stores live
in leadops.services.stores and tests substitute in-memory fakes.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional


@dataclass
class LeadSnapshot:
    """Detached, read-only view of one lead as the engine needs it."""
    id: Any
    client_id: str
    service: str = ''
    ad_set_name: str = ''
    ad_name: str = ''
    zip: str = ''
    lead_date: Any = None              # ISO string, date or datetime
    status: str = 'new'
    lead_score: Optional[int] = None
    conversion_rates: Optional[Dict[str, float]] = None


@dataclass
class ConversionRateRecord:
    """One statistic for one (client, dimension, value) triple."""
    client_id: str
    key_field: str
    key_name: str
    conversion_rate: float = 0.0
    past_total_count: int = 0
    past_total_est: int = 0

    @property
    def key(self):
        return (self.client_id, self.key_field, self.key_name)

    def same_values(self, other: 'ConversionRateRecord') -> bool:
        return (
            self.conversion_rate == other.conversion_rate
            and self.past_total_count == other.past_total_count
            and self.past_total_est == other.past_total_est
        )

    def to_dict(self):
        return asdict(self)


@dataclass
class UpsertStats:
    total: int = 0
    new_inserts: int = 0
    updated: int = 0


@dataclass
class UpsertResult:
    stored: List[ConversionRateRecord] = field(default_factory=list)
    stats: UpsertStats = field(default_factory=UpsertStats)


@dataclass
class LeadUpdateOp:
    """Sets exactly lead_score + conversion_rates on one lead."""
    lead_id: Any
    lead_score: int
    conversion_rates: Dict[str, float]

    @property
    def set(self) -> Dict[str, Any]:
        return {'lead_score': self.lead_score, 'conversion_rates': dict(self.conversion_rates)}


@dataclass
class ScoringSummary:
    """Uniform result of a per-client recompute. Never raised, always returned."""
    updated_conversion_rates: int = 0
    updated_leads: int = 0
    total_processed_leads: int = 0
    errors: List[str] = field(default_factory=list)
    conversion_rate_stats: Optional[Dict[str, int]] = None

    @classmethod
    def failed(cls, message: str) -> 'ScoringSummary':
        return cls(errors=[message])

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'updated_conversion_rates': self.updated_conversion_rates,
            'updated_leads': self.updated_leads,
            'total_processed_leads': self.total_processed_leads,
            'errors': list(self.errors),
        }
        if self.conversion_rate_stats is not None:
            data['conversion_rate_stats'] = dict(self.conversion_rate_stats)
        return data


class LeadStore(ABC):
    """Durable lead storage consumed by the orchestrator."""

    @abstractmethod
    def get_leads_by_client_id(self, client_id: str) -> List[LeadSnapshot]:
        ...

    @abstractmethod
    def bulk_update(self, ops: List[LeadUpdateOp]) -> int:
        """Apply every op as one write. Returns the store's modified count."""
        ...

    @abstractmethod
    def update_many(self, client_id: str, values: Dict[str, Any]) -> int:
        """Set `values` on every lead of the client. Returns how many leads actually changed."""
        ...


class ConversionRateStore(ABC):
    """Durable upsert-by-key storage for conversion-rate records."""

    @abstractmethod
    def get_conversion_rates(self, client_id: str) -> List[ConversionRateRecord]:
        ...

    @abstractmethod
    def batch_upsert(self, records: List[ConversionRateRecord]) -> UpsertResult:
        """
        Upsert by (client_id, key_field, key_name).

        Stats must be semantic deltas: an existing record whose three values
        are unchanged counts as neither a new insert nor an update.
        """
        ...
