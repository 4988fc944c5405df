"""
Scoring orchestrator — composes the engine against the two stores.

Two per-client entry points:

  run_full_recompute        read leads → compute rates → upsert → read rates
                            back → reconcile → bulk write changed leads
  run_score_only_recompute  read leads → read existing rates → reconcile →
                            bulk write (or one mass zeroing update when the
                            client has no rates at all)

Store calls happen strictly in sequence. Any exception aborts the client's
run and comes back as a zero-valued ScoringSummary with the message in
`errors`; nothing propagates past this boundary.
"""
import logging
from typing import Optional

from leadops.scoring.base import ConversionRateStore, LeadStore, ScoringSummary
from leadops.scoring.calculator import ConversionRateCalculator
from leadops.scoring.dimensions import MonthNameCache
from leadops.scoring.rate_map import build_rate_map
from leadops.scoring.reconcile import ReconciliationEngine
from leadops.scoring.scorer import LeadScorer, zero_conversion_rates
from leadops.scoring.weights import ScoringConfig, default_scoring_config

logger = logging.getLogger('scoring.orchestrator')


class ScoringOrchestrator:

    def __init__(
        self,
        lead_store: LeadStore,
        rate_store: ConversionRateStore,
        config: Optional[ScoringConfig] = None,
    ):
        self.lead_store = lead_store
        self.rate_store = rate_store
        self.config = config or default_scoring_config()

        months = MonthNameCache(self.config.month_cache_size)
        self.calculator = ConversionRateCalculator(self.config, months)
        self.scorer = LeadScorer(self.config, months)
        self.reconciler = ReconciliationEngine(self.scorer)

    def run_full_recompute(self, client_id: str) -> ScoringSummary:
        """Recompute conversion rates for the client, then rescore its leads."""
        try:
            leads = self.lead_store.get_leads_by_client_id(client_id)
            if not leads:
                logger.info("No leads for client %s, nothing to recompute", client_id)
                return ScoringSummary()

            computed = self.calculator.compute(leads, client_id)
            upsert = self.rate_store.batch_upsert(computed)

            # Score from the persisted rates, not the local computation
            stored_rates = self.rate_store.get_conversion_rates(client_id)
            rates = build_rate_map(stored_rates)

            reconciled = self.reconciler.reconcile(leads, rates)
            if reconciled.update_ops:
                modified = self.lead_store.bulk_update(reconciled.update_ops)
                logger.info("Updated %d leads with new scores and conversion rates for client %s",
                            modified, client_id)

            logger.info(
                "Full recompute for client %s: %d leads, %d changed, rates new=%d updated=%d",
                client_id, len(leads), reconciled.changed_count,
                upsert.stats.new_inserts, upsert.stats.updated,
            )
            return ScoringSummary(
                updated_conversion_rates=upsert.stats.total,
                updated_leads=reconciled.changed_count,
                total_processed_leads=len(leads),
                errors=[],
                conversion_rate_stats={
                    'new_inserts': upsert.stats.new_inserts,
                    'updated': upsert.stats.updated,
                },
            )
        except Exception as e:
            message = f"Error updating conversion rates and lead scores for client {client_id}: {e}"
            logger.error(message, exc_info=True)
            return ScoringSummary.failed(message)

    def run_score_only_recompute(self, client_id: str) -> ScoringSummary:
        """Rescore the client's leads from whatever rates are already stored."""
        try:
            leads = self.lead_store.get_leads_by_client_id(client_id)
            if not leads:
                logger.info("No leads for client %s, nothing to rescore", client_id)
                return ScoringSummary()

            stored_rates = self.rate_store.get_conversion_rates(client_id)
            if not stored_rates:
                modified = self.lead_store.update_many(client_id, {
                    'lead_score': 0,
                    'conversion_rates': zero_conversion_rates(),
                })
                logger.info("Client %s has no conversion rates, zeroed %d leads", client_id, modified)
                return ScoringSummary(
                    updated_leads=modified,
                    total_processed_leads=len(leads),
                )

            reconciled = self.reconciler.reconcile(leads, build_rate_map(stored_rates))
            if reconciled.update_ops:
                modified = self.lead_store.bulk_update(reconciled.update_ops)
                logger.info("Recalculated scores and conversion rates for %d leads for client %s",
                            modified, client_id)

            return ScoringSummary(
                updated_leads=reconciled.changed_count,
                total_processed_leads=len(leads),
            )
        except Exception as e:
            message = f"Error recalculating lead scores for client {client_id}: {e}"
            logger.error(message, exc_info=True)
            return ScoringSummary.failed(message)
