"""Tests for saved eligibility results."""

import pytest

from milpay.eligibility.history import RESULT_INDEX_KEY, ResultHistory


@pytest.fixture
def history(memory_store) -> ResultHistory:
    return ResultHistory(memory_store)


@pytest.fixture
def assess(engine, answers_factory):
    def run(**answers):
        return engine.run_assessment(["parachute_pay", "hazardous_duty_pay", "dive_pay"], answers_factory(**answers))

    return run


class TestResultHistory:
    """Tests for ResultHistory."""

    def test_save_and_get(self, history, assess) -> None:
        result = assess(jump_qualified=True, jump_assigned=True, jump_currency=True)
        history.save_result(result)

        loaded = history.get_result(result.id)
        assert loaded.model_dump() == result.model_dump()
        assert history.get_result("missing") is None

    def test_list_newest_first(self, history, assess) -> None:
        first = assess()
        second = assess(hazard_frequency="weekly")
        history.save_result(first)
        history.save_result(second)

        assert [r.id for r in history.list_results()] == [second.id, first.id]
        assert history.latest_result().id == second.id

    def test_resaving_moves_to_front(self, history, assess) -> None:
        first = assess()
        second = assess()
        history.save_result(first)
        history.save_result(second)
        history.save_result(first)
        assert history.store.load(RESULT_INDEX_KEY) == [first.id, second.id]

    def test_pay_type_queries_use_latest(self, history, assess) -> None:
        history.save_result(assess(dive_qualified=True, dive_assigned=True, dive_physical_current=True))
        history.save_result(
            assess(
                jump_qualified=True,
                jump_assigned=True,
                jump_currency=True,
                hazard_frequency="daily",
            )
        )
        assert history.eligible_pay_types() == ["parachute_pay"]
        assert history.potential_pay_types() == ["hazardous_duty_pay"]

    def test_delete_and_clear(self, history, assess) -> None:
        first = assess()
        second = assess()
        history.save_result(first)
        history.save_result(second)

        history.delete_result(second.id)
        assert [r.id for r in history.list_results()] == [first.id]

        history.clear()
        assert history.list_results() == []
        assert history.latest_result() is None
        assert history.eligible_pay_types() == []
