"""
Reconciliation — diff freshly scored leads against their stored state.

Only leads whose lead_score or conversion_rates snapshot actually changed get
an update op, so a recompute over unchanged data writes nothing.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from leadops.scoring.base import LeadSnapshot, LeadUpdateOp
from leadops.scoring.scorer import LeadScorer


@dataclass
class ReconcileResult:
    update_ops: List[LeadUpdateOp] = field(default_factory=list)
    changed_count: int = 0


class ReconciliationEngine:
    def __init__(self, scorer: Optional[LeadScorer] = None):
        self.scorer = scorer or LeadScorer()

    def reconcile(self, leads: List[LeadSnapshot], rates: Dict[str, float]) -> ReconcileResult:
        result = ReconcileResult()
        for lead in leads:
            scored = self.scorer.score(lead, rates)

            score_changed = lead.lead_score != scored.lead_score
            rates_changed = (lead.conversion_rates or {}) != scored.conversion_rates
            if not (score_changed or rates_changed):
                continue

            result.update_ops.append(LeadUpdateOp(
                lead_id=lead.id,
                lead_score=scored.lead_score,
                conversion_rates=scored.conversion_rates,
            ))
            result.changed_count += 1
        return result
