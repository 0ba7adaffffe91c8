"""Saved eligibility results.

Results persist independently of the wizard session that produced them.
Each result is stored under its own key; an index key keeps the ids
newest first.
"""

from __future__ import annotations

import structlog

from milpay.eligibility.models import EligibilityResult, EligibilityStatus
from milpay.integrations.storage import KeyValueStore

logger = structlog.get_logger()

RESULT_KEY = "eligibility_result:{result_id}"
RESULT_INDEX_KEY = "eligibility_result:index"


class ResultHistory:
    """Stores and queries past eligibility results."""

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    def _index(self) -> list[str]:
        return list(self.store.load(RESULT_INDEX_KEY) or [])

    def save_result(self, result: EligibilityResult) -> None:
        """Persist a result and put it at the front of the index."""
        self.store.save(RESULT_KEY.format(result_id=result.id), result.model_dump(mode="json"))
        index = [rid for rid in self._index() if rid != result.id]
        index.insert(0, result.id)
        self.store.save(RESULT_INDEX_KEY, index)
        logger.info("eligibility_result_saved", result_id=result.id)

    def get_result(self, result_id: str) -> EligibilityResult | None:
        data = self.store.load(RESULT_KEY.format(result_id=result_id))
        return EligibilityResult.model_validate(data) if data is not None else None

    def delete_result(self, result_id: str) -> None:
        self.store.delete(RESULT_KEY.format(result_id=result_id))
        self.store.save(RESULT_INDEX_KEY, [rid for rid in self._index() if rid != result_id])
        logger.info("eligibility_result_deleted", result_id=result_id)

    def list_results(self) -> list[EligibilityResult]:
        """All saved results, newest first. Ids with no stored result are skipped."""
        results = []
        for result_id in self._index():
            result = self.get_result(result_id)
            if result is not None:
                results.append(result)
        return results

    def latest_result(self) -> EligibilityResult | None:
        for result_id in self._index():
            result = self.get_result(result_id)
            if result is not None:
                return result
        return None

    def eligible_pay_types(self) -> list[str]:
        """Pay types marked eligible in the latest result."""
        return self._pay_types_with(EligibilityStatus.ELIGIBLE)

    def potential_pay_types(self) -> list[str]:
        """Pay types marked potentially eligible in the latest result."""
        return self._pay_types_with(EligibilityStatus.POTENTIALLY_ELIGIBLE)

    def _pay_types_with(self, status: EligibilityStatus) -> list[str]:
        latest = self.latest_result()
        if latest is None:
            return []
        return [r.pay_type for r in latest.results if r.status == status]

    def clear(self) -> None:
        """Delete every saved result."""
        for result_id in self._index():
            self.store.delete(RESULT_KEY.format(result_id=result_id))
        self.store.delete(RESULT_INDEX_KEY)
        logger.info("eligibility_results_cleared")
