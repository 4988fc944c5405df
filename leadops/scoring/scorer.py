"""
Lead scorer — pure function of (lead, rate map).

Each dimension value is looked up in the rate map (missing or empty -> 0) and
the composite is Σ rate × weight, clamped to [0, 100] and rounded half-up.
"""
import math
from dataclasses import dataclass
from typing import Dict, Optional

from leadops.scoring.base import LeadSnapshot
from leadops.scoring.dimensions import DIMENSIONS, MonthNameCache, bucket_value
from leadops.scoring.rate_map import lookup_rate
from leadops.scoring.weights import SCORE_MAX, SCORE_MIN, ScoringConfig, default_scoring_config


@dataclass(frozen=True)
class LeadScore:
    conversion_rates: Dict[str, float]
    lead_score: int


def clamp_score(weighted: float) -> int:
    bounded = max(SCORE_MIN, min(SCORE_MAX, weighted))
    return int(math.floor(bounded + 0.5))


class LeadScorer:
    def __init__(self, config: Optional[ScoringConfig] = None, months: Optional[MonthNameCache] = None):
        self.config = config or default_scoring_config()
        self.months = months or MonthNameCache(self.config.month_cache_size)

    def score(self, lead: LeadSnapshot, rates: Dict[str, float]) -> LeadScore:
        conversion_rates = {}
        weighted = 0.0
        for dimension in DIMENSIONS:
            key_name = bucket_value(lead, dimension, self.months)
            rate = float(lookup_rate(rates, dimension.value, key_name))
            conversion_rates[dimension.value] = rate
            weighted += rate * self.config.weight(dimension)

        return LeadScore(conversion_rates=conversion_rates, lead_score=clamp_score(weighted))


def zero_conversion_rates() -> Dict[str, float]:
    """All-dimension zero snapshot used when a client has no rates at all."""
    return {dimension.value: 0.0 for dimension in DIMENSIONS}
