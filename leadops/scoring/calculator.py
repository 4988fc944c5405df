"""
Conversion-rate calculator.

Turns a client's lead snapshot into one ConversionRateRecord per observed
(dimension, value) pair:

    conversion_rate = estimates / (estimates + unqualifieds), 2 decimals, half-up

Only leads in a positive or negative status are counted; new / in_progress
leads never move a rate. Free-text values match case-insensitively after
trimming; lead dates match on calendar month.
"""
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional

from leadops.scoring.base import ConversionRateRecord, LeadSnapshot
from leadops.scoring.dimensions import (
    Dimension,
    DIMENSIONS,
    MonthNameCache,
    bucket_value,
    month_index,
    normalize,
)
from leadops.scoring.weights import ScoringConfig, default_scoring_config

logger = logging.getLogger('scoring.calculator')

_TWO_PLACES = Decimal('0.01')


def round_rate(estimates: int, total: int) -> float:
    """estimates / total rounded half-up to 2 decimals; 0.0 when total is 0."""
    if total == 0:
        return 0.0
    ratio = Decimal(estimates) / Decimal(total)
    return float(ratio.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP))


class ConversionRateCalculator:
    """Computes per-dimension conversion rates for one client."""

    def __init__(self, config: Optional[ScoringConfig] = None, months: Optional[MonthNameCache] = None):
        self.config = config or default_scoring_config()
        self.months = months or MonthNameCache(self.config.month_cache_size)

    def compute(self, leads: List[LeadSnapshot], client_id: str) -> List[ConversionRateRecord]:
        client_leads = [lead for lead in leads if lead.client_id == client_id]
        if not client_leads:
            return []

        records = []
        for dimension in DIMENSIONS:
            records.extend(self._compute_dimension(client_leads, client_id, dimension))

        logger.debug("Computed %d conversion rates for client %s from %d leads",
                     len(records), client_id, len(client_leads))
        return records

    def _compute_dimension(self, leads, client_id, dimension) -> List[ConversionRateRecord]:
        # Distinct key names in first-seen order, each with its match key
        key_names: Dict[str, object] = {}
        # match key -> [estimates, unqualifieds]
        tally: Dict[object, List[int]] = {}

        for lead in leads:
            key_name = bucket_value(lead, dimension, self.months)
            if not key_name:
                continue

            if key_name not in key_names:
                key_names[key_name] = self._match_key(dimension, key_name)
            match = key_names[key_name]

            counts = tally.setdefault(match, [0, 0])
            if lead.status in self.config.positive_statuses:
                counts[0] += 1
            elif lead.status in self.config.negative_statuses:
                counts[1] += 1

        records = []
        for key_name, match in key_names.items():
            estimates, unqualifieds = tally[match]
            resolved = estimates + unqualifieds
            records.append(ConversionRateRecord(
                client_id=client_id,
                key_field=dimension.value,
                key_name=key_name,
                conversion_rate=round_rate(estimates, resolved),
                past_total_count=resolved,
                past_total_est=estimates,
            ))
        return records

    @staticmethod
    def _match_key(dimension: Dimension, key_name: str):
        if dimension is Dimension.LEAD_DATE:
            return month_index(key_name)
        return normalize(key_name)
