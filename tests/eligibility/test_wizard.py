"""Tests for wizard sessions and their lifecycle."""

import pytest

from milpay.core.logging import _add_context_vars, session_id_ctx
from milpay.eligibility.models import EligibilityStatus, SessionStatus, WizardSession
from milpay.eligibility.wizard import (
    ACTIVE_SESSION_KEY,
    InvalidStep,
    SessionAlreadyComplete,
    SessionNotFound,
    UnknownQuestion,
    UnknownWizardConfig,
    WizardLifecycle,
    WizardService,
)

WIZARD_ID = "comprehensive_eligibility"


@pytest.fixture
def session(wizard_service: WizardService) -> WizardSession:
    return wizard_service.start_wizard(WIZARD_ID)


class TestSessionManagement:
    """Tests for starting, resuming and abandoning sessions."""

    def test_start_creates_active_session(self, wizard_service, session) -> None:
        assert session.status == SessionStatus.IN_PROGRESS
        assert session.current_step_index == 0
        assert session.current_question_index == 0
        assert session.answers == []
        assert wizard_service.active_session().id == session.id
        assert session_id_ctx.get() is None

    def test_unknown_config_rejected(self, wizard_service) -> None:
        with pytest.raises(UnknownWizardConfig):
            wizard_service.start_wizard("no_such_wizard")

    def test_resume_restores_answers(self, wizard_service, session) -> None:
        wizard_service.set_answer(session.id, "branch", "navy")
        other = wizard_service.start_wizard(WIZARD_ID)
        assert wizard_service.active_session().id == other.id

        resumed = wizard_service.resume_session(session.id)
        assert resumed.answers[0].value == "navy"
        assert wizard_service.active_session().id == session.id

    def test_resume_missing_session(self, wizard_service) -> None:
        with pytest.raises(SessionNotFound):
            wizard_service.resume_session("missing")

    def test_abandon_discards_session(self, wizard_service, session) -> None:
        wizard_service.abandon_session(session.id)
        assert wizard_service.active_session() is None
        assert wizard_service.store.load(ACTIVE_SESSION_KEY) is None
        with pytest.raises(SessionNotFound):
            wizard_service.resume_session(session.id)


class TestSessionLogContext:
    """Tests for session_id tagging on log events."""

    def test_abandoned_session_not_left_in_context(self, wizard_service, session) -> None:
        wizard_service.abandon_session(session.id)

        event = _add_context_vars(None, "info", {"event": "eligibility_assessed"})
        assert "session_id" not in event
        assert session_id_ctx.get() is None

    def test_completion_tagged_with_target_session(self, wizard_service, monkeypatch) -> None:
        """Events during completion carry the completed session, not the last started one."""
        target = wizard_service.start_wizard(WIZARD_ID)
        wizard_service.start_wizard(WIZARD_ID)

        events = []
        run_assessment = wizard_service.engine.run_assessment

        def recording_assessment(*args, **kwargs):
            events.append(_add_context_vars(None, "info", {"event": "eligibility_assessed"}))
            return run_assessment(*args, **kwargs)

        monkeypatch.setattr(wizard_service.engine, "run_assessment", recording_assessment)
        wizard_service.complete_wizard(target.id)

        assert [event["session_id"] for event in events] == [target.id]
        assert session_id_ctx.get() is None

    def test_context_restored_after_error(self, wizard_service) -> None:
        with pytest.raises(SessionNotFound):
            wizard_service.resume_session("missing")
        assert session_id_ctx.get() is None


class TestAnswers:
    """Tests for setting, clearing and validating answers."""

    def test_set_answer_overwrites(self, wizard_service, session) -> None:
        wizard_service.set_answer(session.id, "branch", "army")
        updated = wizard_service.set_answer(session.id, "branch", "navy")
        assert [(a.question_id, a.value) for a in updated.answers] == [("branch", "navy")]

    def test_clear_answer(self, wizard_service, session) -> None:
        wizard_service.set_answer(session.id, "branch", "army")
        updated = wizard_service.clear_answer(session.id, "branch")
        assert updated.answers == []

    def test_unknown_question_rejected(self, wizard_service, session) -> None:
        with pytest.raises(UnknownQuestion):
            wizard_service.set_answer(session.id, "favorite_color", "blue")

    def test_validate_does_not_store(self, wizard_service, session) -> None:
        result = wizard_service.validate_answer(session.id, "years_service", 60)
        assert not result.is_valid
        assert result.error == "Years of service must be between 0 and 50"
        assert wizard_service.resume_session(session.id).answers == []


class TestNavigation:
    """Tests for moving through questions and steps."""

    def test_next_follows_skip_map(self, wizard_service, session) -> None:
        wizard_service.go_to_step(session.id, 1)
        assert wizard_service.current_question(session.id).id == "flight_has_rating"

        wizard_service.set_answer(session.id, "flight_has_rating", False)
        upcoming = wizard_service.next_question(session.id)

        assert upcoming.id == "dive_qualified"
        stored = wizard_service.resume_session(session.id)
        assert stored.current_step_index == 2
        assert stored.current_question_index == 0

    def test_current_skips_hidden_question(self, wizard_service, session) -> None:
        """A position on a hidden question resolves to the next visible one."""
        wizard_service.go_to_step(session.id, 2)
        wizard_service.set_answer(session.id, "dive_qualified", True)
        assert wizard_service.next_question(session.id).id == "dive_type"

        wizard_service.clear_answer(session.id, "dive_qualified")
        assert wizard_service.current_question(session.id).id == "jump_qualified"

    def test_previous_question(self, wizard_service, session) -> None:
        wizard_service.set_answer(session.id, "service_status", "active_duty")
        wizard_service.next_question(session.id)
        assert wizard_service.previous_question(session.id).id == "service_status"
        assert wizard_service.previous_question(session.id) is None

    def test_go_to_step_out_of_range(self, wizard_service, session) -> None:
        with pytest.raises(InvalidStep):
            wizard_service.go_to_step(session.id, 7)
        with pytest.raises(InvalidStep):
            wizard_service.go_to_step(session.id, -1)


class TestCompletion:
    """Tests for progress and completing the wizard."""

    def test_progress_and_readiness(self, wizard_service, session) -> None:
        assert wizard_service.progress(session.id) == 0
        assert not wizard_service.is_ready(session.id)

        answers = {
            "service_status": "active_duty",
            "branch": "army",
            "pay_grade": "E5",
            "years_service": 6,
            "flight_has_rating": False,
            "dive_qualified": False,
            "jump_qualified": False,
            "hazard_duty_type": ["explosives"],
            "hazard_frequency": "occasional",
            "hfp_deployed": False,
            "flpp_language": False,
        }
        for question_id, value in answers.items():
            wizard_service.set_answer(session.id, question_id, value)

        assert wizard_service.progress(session.id) == 100
        assert wizard_service.is_ready(session.id)

        result = wizard_service.complete_wizard(session.id)
        summary = result.summary
        assert summary.total_pay_types_checked == len(result.results)
        assert (
            summary.eligible_count
            + summary.potentially_eligible_count
            + summary.not_eligible_count
            + summary.incomplete_count
        ) == summary.total_pay_types_checked
        assert summary.estimated_annual_total == summary.estimated_monthly_total * 12
        assert wizard_service.resume_session(session.id).is_complete

    def test_complete_attaches_result(self, wizard_service, session) -> None:
        for question_id, value in {
            "jump_qualified": True,
            "jump_type": "master",
            "jump_assigned": True,
            "jump_currency": True,
        }.items():
            wizard_service.set_answer(session.id, question_id, value)

        result = wizard_service.complete_wizard(session.id)

        assert result.result_for("parachute_pay").status == EligibilityStatus.ELIGIBLE
        assert result.summary.total_pay_types_checked == 6
        stored = wizard_service.resume_session(session.id)
        assert stored.is_complete
        assert stored.completed_at is not None
        assert stored.result.id == result.id
        assert wizard_service.history.latest_result().id == result.id

    def test_completed_session_is_frozen(self, wizard_service, session) -> None:
        wizard_service.complete_wizard(session.id)
        with pytest.raises(SessionAlreadyComplete):
            wizard_service.set_answer(session.id, "branch", "navy")
        with pytest.raises(SessionAlreadyComplete):
            wizard_service.clear_answer(session.id, "branch")
        with pytest.raises(SessionAlreadyComplete):
            wizard_service.complete_wizard(session.id)

    def test_navigation_allowed_after_completion(self, wizard_service, session) -> None:
        wizard_service.complete_wizard(session.id)
        assert wizard_service.current_question(session.id).id == "service_status"

    def test_lifecycle_starts_from_session_status(self) -> None:
        session = WizardSession(config_id=WIZARD_ID, status=SessionStatus.COMPLETED)
        lifecycle = WizardLifecycle(session)
        assert lifecycle.current_state.id == "completed"
