"""Eligibility wizard sessions.

A session walks one user through a wizard's questions, collecting answers,
and is completed by running a full assessment over the wizard's pay types.

Lifecycle (``WizardLifecycle``):
- in_progress: session created, answers may change (initial)
- completed: assessment attached, answers frozen (final)

Leaving ``completed`` is not a transition: ``abandon_session`` discards
the session entirely. Sessions are persisted through an injected
key-value store after every mutation.
"""

from __future__ import annotations

import functools
from collections.abc import Callable

import structlog
from statemachine import State, StateMachine
from statemachine.exceptions import TransitionNotAllowed

from milpay.core.logging import session_context
from milpay.eligibility.engine import AnswerValidation, RuleEngine, validate_answer
from milpay.eligibility.history import ResultHistory
from milpay.eligibility.loader import Ruleset
from milpay.eligibility.models import (
    Answer,
    AnswerValue,
    EligibilityResult,
    Question,
    SessionStatus,
    WizardConfig,
    WizardSession,
    utcnow,
)
from milpay.integrations.storage import KeyValueStore

logger = structlog.get_logger()

SESSION_KEY = "wizard_session:{session_id}"
ACTIVE_SESSION_KEY = "wizard_session:active"


# =============================================================================
# Errors
# =============================================================================


class WizardError(Exception):
    """Base class for wizard session misuse."""


class SessionNotFound(WizardError):
    """No stored session has the requested id."""


class SessionAlreadyComplete(WizardError):
    """The session was completed and its answers can no longer change."""


class UnknownWizardConfig(WizardError):
    """No wizard configuration has the requested id."""


class UnknownQuestion(WizardError):
    """The question is not part of the session's wizard."""


class InvalidStep(WizardError):
    """Step index outside the wizard's steps."""


# =============================================================================
# State Machine
# =============================================================================


class WizardLifecycle(StateMachine):
    """State machine for a wizard session.

    Transitions:
    - complete: in_progress -> completed (attaches the assessment result)
    """

    in_progress = State(initial=True, value=SessionStatus.IN_PROGRESS)
    completed = State(final=True, value=SessionStatus.COMPLETED)

    complete = in_progress.to(completed)

    def __init__(self, session: WizardSession) -> None:
        """Initialize from the session's current status.

        Args:
            session: Session model instance to manage
        """
        self.session = session
        super().__init__(start_value=session.status)

    def on_complete(self, result: EligibilityResult) -> None:
        """Called when the assessment finishes.

        Args:
            result: Assessment produced from the session's answers
        """
        now = utcnow()
        self.session.result = result
        self.session.status = SessionStatus.COMPLETED
        self.session.completed_at = now
        self.session.last_activity_at = now
        logger.info(
            "wizard_completed",
            session_id=self.session.id,
            result_id=result.id,
            eligible=result.summary.eligible_count,
        )


# =============================================================================
# Session Service
# =============================================================================


def _in_session_context(method: Callable) -> Callable:
    """Tag log events emitted by a session method with its ``session_id``."""

    @functools.wraps(method)
    def wrapper(self: WizardService, session_id: str, *args, **kwargs):
        with session_context(session_id):
            return method(self, session_id, *args, **kwargs)

    return wrapper


class WizardService:
    """Drives wizard sessions against a ruleset and a store."""

    def __init__(
        self,
        ruleset: Ruleset,
        store: KeyValueStore,
        engine: RuleEngine | None = None,
        history: ResultHistory | None = None,
    ) -> None:
        self.ruleset = ruleset
        self.store = store
        self.engine = engine or RuleEngine(ruleset)
        self.history = history or ResultHistory(store)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _save(self, session: WizardSession) -> None:
        self.store.save(SESSION_KEY.format(session_id=session.id), session.model_dump(mode="json"))

    def _load(self, session_id: str) -> WizardSession:
        data = self.store.load(SESSION_KEY.format(session_id=session_id))
        if data is None:
            raise SessionNotFound(f"Wizard session not found: {session_id}")
        return WizardSession.model_validate(data)

    def _config(self, session: WizardSession) -> WizardConfig:
        config = self.ruleset.wizard(session.config_id)
        if config is None:
            raise UnknownWizardConfig(f"Unknown wizard configuration: {session.config_id}")
        return config

    def _questions(self, session: WizardSession) -> list[Question]:
        return self.ruleset.wizard_questions(self._config(session))

    def _mutate(self, session_id: str, change: Callable[[WizardSession], None]) -> WizardSession:
        """Apply an answer change to an in-progress session and persist it."""
        session = self._load(session_id)
        if session.is_complete:
            raise SessionAlreadyComplete(f"Wizard session {session_id} is already complete")
        change(session)
        session.last_activity_at = utcnow()
        self._save(session)
        return session

    # ------------------------------------------------------------------
    # Session management
    # ------------------------------------------------------------------

    def start_wizard(self, config_id: str) -> WizardSession:
        """Create an in-progress session at step 0, question 0."""
        if self.ruleset.wizard(config_id) is None:
            raise UnknownWizardConfig(f"Unknown wizard configuration: {config_id}")
        session = WizardSession(config_id=config_id)
        self._save(session)
        self.store.save(ACTIVE_SESSION_KEY, session.id)
        with session_context(session.id):
            logger.info("wizard_started", config_id=config_id)
        return session

    @_in_session_context
    def resume_session(self, session_id: str) -> WizardSession:
        """Load a stored session and make it the active one."""
        session = self._load(session_id)
        self.store.save(ACTIVE_SESSION_KEY, session.id)
        logger.info("wizard_resumed")
        return session

    def active_session(self) -> WizardSession | None:
        session_id = self.store.load(ACTIVE_SESSION_KEY)
        if session_id is None:
            return None
        try:
            return self._load(session_id)
        except SessionNotFound:
            logger.warning("active_session_missing", session_id=session_id)
            return None

    @_in_session_context
    def abandon_session(self, session_id: str) -> None:
        """Discard a session entirely, whatever its state."""
        self.store.delete(SESSION_KEY.format(session_id=session_id))
        if self.store.load(ACTIVE_SESSION_KEY) == session_id:
            self.store.delete(ACTIVE_SESSION_KEY)
        logger.info("wizard_abandoned", session_id=session_id)

    # ------------------------------------------------------------------
    # Answers
    # ------------------------------------------------------------------

    def _require_question(self, session: WizardSession, question_id: str) -> Question:
        question = next((q for q in self._questions(session) if q.id == question_id), None)
        if question is None:
            raise UnknownQuestion(
                f"Question '{question_id}' is not part of wizard '{session.config_id}'"
            )
        return question

    @_in_session_context
    def set_answer(self, session_id: str, question_id: str, value: AnswerValue) -> WizardSession:
        """Insert or overwrite the answer to a question."""

        def change(session: WizardSession) -> None:
            self._require_question(session, question_id)
            answer = Answer(question_id=question_id, value=value)
            session.answers = [a for a in session.answers if a.question_id != question_id]
            session.answers.append(answer)

        session = self._mutate(session_id, change)
        logger.debug("wizard_answer_set", session_id=session_id, question_id=question_id)
        return session

    @_in_session_context
    def clear_answer(self, session_id: str, question_id: str) -> WizardSession:
        """Remove the answer to a question, if any."""

        def change(session: WizardSession) -> None:
            self._require_question(session, question_id)
            session.answers = [a for a in session.answers if a.question_id != question_id]

        return self._mutate(session_id, change)

    @_in_session_context
    def validate_answer(self, session_id: str, question_id: str, value: AnswerValue) -> AnswerValidation:
        """Validate a candidate value without storing it."""
        session = self._load(session_id)
        return validate_answer(self._require_question(session, question_id), value)

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def _position(self, config: WizardConfig, step_index: int, question_index: int) -> int:
        return sum(len(step.question_ids) for step in config.steps[:step_index]) + question_index

    def _move_to(self, session: WizardSession, config: WizardConfig, question_id: str) -> None:
        for step_index, step in enumerate(config.steps):
            if question_id in step.question_ids:
                session.current_step_index = step_index
                session.current_question_index = step.question_ids.index(question_id)
                return

    @_in_session_context
    def current_question(self, session_id: str) -> Question | None:
        """Question at the session's position, or the next visible one."""
        session = self._load(session_id)
        config = self._config(session)
        questions = self.ruleset.wizard_questions(config)
        position = self._position(config, session.current_step_index, session.current_question_index)
        for question in questions[position:]:
            if self.engine.should_show_question(question, session.answers):
                return question
        return None

    @_in_session_context
    def next_question(self, session_id: str) -> Question | None:
        """Advance to the next visible question; None at the end of the wizard."""
        current = self.current_question(session_id)
        session = self._load(session_id)
        if current is None:
            return None
        config = self._config(session)
        upcoming = self.engine.get_next_question(
            current, self.ruleset.wizard_questions(config), session.answers
        )
        if upcoming is not None:
            self._move_to(session, config, upcoming.id)
            session.last_activity_at = utcnow()
            self._save(session)
        return upcoming

    @_in_session_context
    def previous_question(self, session_id: str) -> Question | None:
        """Step back to the previous visible question; None at the start."""
        current = self.current_question(session_id)
        session = self._load(session_id)
        config = self._config(session)
        questions = self.ruleset.wizard_questions(config)
        if current is None:
            visible = self.engine.visible_questions(questions, session.answers)
            previous = visible[-1] if visible else None
        else:
            previous = self.engine.get_previous_question(current, questions, session.answers)
        if previous is not None:
            self._move_to(session, config, previous.id)
            session.last_activity_at = utcnow()
            self._save(session)
        return previous

    @_in_session_context
    def go_to_step(self, session_id: str, step_index: int) -> WizardSession:
        """Jump to the first question of a step."""
        session = self._load(session_id)
        config = self._config(session)
        if not 0 <= step_index < len(config.steps):
            raise InvalidStep(
                f"Step {step_index} out of range for wizard '{config.id}' ({len(config.steps)} steps)"
            )
        session.current_step_index = step_index
        session.current_question_index = 0
        session.last_activity_at = utcnow()
        self._save(session)
        return session

    # ------------------------------------------------------------------
    # Progress and completion
    # ------------------------------------------------------------------

    @_in_session_context
    def progress(self, session_id: str) -> int:
        """Percent of visible required questions answered."""
        session = self._load(session_id)
        return self.engine.question_progress(self._questions(session), session.answers)

    @_in_session_context
    def is_ready(self, session_id: str) -> bool:
        """True when every visible required question is answered."""
        session = self._load(session_id)
        return self.engine.required_questions_answered(self._questions(session), session.answers)

    @_in_session_context
    def complete_wizard(self, session_id: str) -> EligibilityResult:
        """Assess the wizard's pay types, attach the result and freeze the session.

        Unanswered required questions do not block completion; affected
        pay types come back incomplete.

        Raises:
            SessionAlreadyComplete: If the session was already completed
        """
        session = self._load(session_id)
        config = self._config(session)

        if not self.engine.required_questions_answered(self._questions(session), session.answers):
            logger.warning("wizard_completed_with_unanswered_questions", session_id=session_id)

        result = self.engine.run_assessment(config.pay_types, session.answers)
        lifecycle = WizardLifecycle(session)
        try:
            lifecycle.complete(result=result)
        except TransitionNotAllowed as exc:
            raise SessionAlreadyComplete(f"Wizard session {session_id} is already complete") from exc

        self._save(session)
        self.history.save_result(result)
        return result
