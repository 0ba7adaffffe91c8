"""Rule engine for special pay eligibility.

Provides:
- Per-pay-type evaluation (first matching rule by descending priority wins)
- Full assessments aggregating per-pay-type results into a summary
- Question visibility, branching and progress over a question list
- Answer validation against declared question constraints

Everything here is a pure function of the ruleset and the answers.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

import structlog

from milpay.core.logging import pay_type_context
from milpay.eligibility.conditions import (
    AnswerMap,
    create_answer_map,
    evaluate,
    evaluate_condition,
    flatten_conditions,
)
from milpay.eligibility.loader import Ruleset
from milpay.eligibility.models import (
    Answer,
    AnswerValue,
    Condition,
    ConditionOperator,
    EligibilityResult,
    EligibilityStatus,
    EligibilitySummary,
    PayTypeEligibilityResult,
    Question,
    QuestionType,
    RequirementResult,
    Rule,
)

logger = structlog.get_logger()

INCOMPLETE_NOTE = "Not enough information to determine eligibility. Please complete all questions."

NEXT_STEPS: dict[EligibilityStatus, list[str]] = {
    EligibilityStatus.ELIGIBLE: [
        "Verify this pay is reflected on your LES",
        "If not receiving, contact your finance office",
    ],
    EligibilityStatus.POTENTIALLY_ELIGIBLE: [
        "Schedule a meeting with your personnel office",
        "Gather required documentation",
        "Request official eligibility determination",
    ],
    EligibilityStatus.NOT_ELIGIBLE: [
        "Review requirements to see if future qualification is possible",
        "Consider pursuing required certifications or assignments",
    ],
    EligibilityStatus.INCOMPLETE: [
        "Complete remaining eligibility questions",
    ],
}


@dataclass(frozen=True)
class AnswerValidation:
    """Outcome of validating one answer. ``error`` is user-facing text."""

    is_valid: bool
    error: str | None = None


# =============================================================================
# Helpers
# =============================================================================


def _as_answer_map(answers: Iterable[Answer] | Mapping[str, Answer]) -> AnswerMap:
    if isinstance(answers, Mapping):
        return dict(answers)
    return create_answer_map(answers)


def format_value(value: Any) -> str:
    """Render an answer or condition value the way users and skip maps see it.

    Booleans become ``true``/``false``, whole floats drop the fraction and
    lists are comma-joined.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return ",".join(format_value(item) for item in value)
    if value is None:
        return "null"
    return str(value)


def is_answered(value: AnswerValue) -> bool:
    """True for any value other than None, an empty string or an empty list."""
    return value is not None and value != "" and value != []


def _percent(part: int, whole: int) -> int:
    return int((Decimal(part) * 100 / Decimal(whole)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def calculate_eligibility_status(requirements: list[RequirementResult]) -> EligibilityStatus:
    """Status implied by requirement outcomes.

    No requirements is incomplete; all met is eligible; none met is not
    eligible; anything in between is potentially eligible.
    """
    if not requirements:
        return EligibilityStatus.INCOMPLETE
    met = sum(1 for requirement in requirements if requirement.is_met)
    if met == len(requirements):
        return EligibilityStatus.ELIGIBLE
    if met == 0:
        return EligibilityStatus.NOT_ELIGIBLE
    return EligibilityStatus.POTENTIALLY_ELIGIBLE


def describe_requirement(name: str, condition: Condition) -> str:
    """Readable requirement description for a leaf condition."""
    value = condition.value
    if condition.operator == ConditionOperator.EQUALS:
        if value is True:
            return f"Must have {name.lower()}"
        return f"{name} must be {format_value(value)}"
    if condition.operator == ConditionOperator.GREATER_THAN:
        return f"{name} must be greater than {format_value(value)}"
    if condition.operator == ConditionOperator.IN and isinstance(value, list):
        return f"{name} must be one of: {', '.join(format_value(v) for v in value)}"
    return f"{name} condition"


# =============================================================================
# Answer Validation
# =============================================================================


def validate_answer(question: Question, value: AnswerValue) -> AnswerValidation:
    """Check a value against a question's declared constraints.

    Never raises. Error messages are returned verbatim for display.
    """
    if question.required and (value is None or value == ""):
        return AnswerValidation(False, "This field is required")

    rules = question.validation
    if rules is not None:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            if rules.min is not None and value < rules.min:
                return AnswerValidation(
                    False, rules.error_message or f"Value must be at least {format_value(rules.min)}"
                )
            if rules.max is not None and value > rules.max:
                return AnswerValidation(
                    False, rules.error_message or f"Value must be at most {format_value(rules.max)}"
                )
        if isinstance(value, str) and rules.pattern and not re.search(rules.pattern, value):
            return AnswerValidation(False, rules.error_message or "Invalid format")

    if question.options and value is not None:
        valid_values = {option.value for option in question.options}
        if question.type == QuestionType.SELECT and isinstance(value, str):
            if value not in valid_values:
                return AnswerValidation(False, "Invalid selection")
        if question.type == QuestionType.MULTISELECT and isinstance(value, list):
            if any(item not in valid_values for item in value):
                return AnswerValidation(False, "Invalid selection")

    return AnswerValidation(True)


# =============================================================================
# Rule Engine
# =============================================================================


class RuleEngine:
    """Evaluates a ruleset against answers."""

    def __init__(self, ruleset: Ruleset) -> None:
        self.ruleset = ruleset

    def rules_for_pay_type(self, pay_type: str) -> list[Rule]:
        """Rules for a pay type in evaluation order."""
        return self.ruleset.rules_for_pay_type(pay_type)

    # ------------------------------------------------------------------
    # Question flow
    # ------------------------------------------------------------------

    def should_show_question(
        self, question: Question, answers: Iterable[Answer] | Mapping[str, Answer]
    ) -> bool:
        """Questions without ``show_if`` are always shown."""
        if question.show_if is None:
            return True
        return evaluate(question.show_if, _as_answer_map(answers))

    def visible_questions(
        self, questions: list[Question], answers: Iterable[Answer] | Mapping[str, Answer]
    ) -> list[Question]:
        """Questions currently shown, in list order."""
        answer_map = _as_answer_map(answers)
        return [q for q in questions if self.should_show_question(q, answer_map)]

    def get_next_question(
        self,
        current: Question,
        questions: list[Question],
        answers: Iterable[Answer] | Mapping[str, Answer],
    ) -> Question | None:
        """The next question to present after ``current``.

        Resolution order: skip-map entry for the current answer, then
        ``next_question_id``, then the following question in the list.
        Hidden questions are passed over in list order.
        """
        answer_map = _as_answer_map(answers)
        index_by_id = {q.id: i for i, q in enumerate(questions)}

        target: int | None = None
        answer = answer_map.get(current.id)
        if current.skip_to_question and answer is not None and answer.value is not None:
            skip_to = current.skip_to_question.get(format_value(answer.value))
            if skip_to is not None:
                target = index_by_id.get(skip_to)
        if target is None and current.next_question_id:
            target = index_by_id.get(current.next_question_id)
        if target is None:
            position = index_by_id.get(current.id)
            if position is None:
                return None
            target = position + 1

        for candidate in questions[target:]:
            if self.should_show_question(candidate, answer_map):
                return candidate
        return None

    def get_previous_question(
        self,
        current: Question,
        questions: list[Question],
        answers: Iterable[Answer] | Mapping[str, Answer],
    ) -> Question | None:
        """Nearest visible question before ``current`` in list order."""
        answer_map = _as_answer_map(answers)
        position = next((i for i, q in enumerate(questions) if q.id == current.id), None)
        if position is None:
            return None
        for candidate in reversed(questions[:position]):
            if self.should_show_question(candidate, answer_map):
                return candidate
        return None

    def required_questions_answered(
        self, questions: list[Question], answers: Iterable[Answer] | Mapping[str, Answer]
    ) -> bool:
        """True when every visible required question has an answer."""
        answer_map = _as_answer_map(answers)
        for question in self.visible_questions(questions, answer_map):
            answer = answer_map.get(question.id)
            if question.required and (answer is None or not is_answered(answer.value)):
                return False
        return True

    def question_progress(
        self, questions: list[Question], answers: Iterable[Answer] | Mapping[str, Answer]
    ) -> int:
        """Percent of visible required questions answered, rounded half up.

        Returns 100 when no visible question is required.
        """
        answer_map = _as_answer_map(answers)
        required = [q for q in self.visible_questions(questions, answer_map) if q.required]
        if not required:
            return 100
        answered = sum(
            1
            for q in required
            if q.id in answer_map and is_answered(answer_map[q.id].value)
        )
        return _percent(answered, len(required))

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def _requirements(self, rule: Rule, answer_map: AnswerMap) -> list[RequirementResult]:
        requirements = []
        for leaf in flatten_conditions(rule.conditions):
            name = self.ruleset.requirement_name(leaf.question_id)
            is_met = evaluate_condition(leaf, answer_map)
            requirements.append(
                RequirementResult(
                    id=leaf.question_id,
                    name=name,
                    description=describe_requirement(name, leaf),
                    is_met=is_met,
                    reason="Requirement met" if is_met else "Requirement not met",
                )
            )
        return requirements

    def evaluate_for_pay_type(
        self, pay_type: str, answers: Iterable[Answer] | Mapping[str, Answer]
    ) -> PayTypeEligibilityResult:
        """Verdict of the first matching rule, or incomplete when none match."""
        with pay_type_context(pay_type):
            return self._evaluate(pay_type, _as_answer_map(answers))

    def _evaluate(self, pay_type: str, answer_map: AnswerMap) -> PayTypeEligibilityResult:
        info = self.ruleset.pay_type_info(pay_type)
        amount_range = info.pay_range if info else None

        for rule in self.rules_for_pay_type(pay_type):
            if not evaluate(rule.conditions, answer_map):
                continue

            requirements = self._requirements(rule, answer_map)
            status = rule.result.status
            next_steps = list(NEXT_STEPS[status])
            if status == EligibilityStatus.ELIGIBLE and info is not None:
                next_steps.extend(info.how_to_apply)

            logger.debug("rule_matched", rule_id=rule.id, status=status.value)
            monthly = rule.result.amount
            return PayTypeEligibilityResult(
                pay_type=pay_type,
                status=status,
                requirements=requirements,
                total_requirements=len(requirements),
                met_requirements=sum(1 for r in requirements if r.is_met),
                monthly_amount=monthly,
                annual_amount=monthly * 12 if monthly is not None else None,
                amount_range=amount_range,
                amount_formula=rule.result.amount_formula,
                next_steps=next_steps,
                documents_needed=list(info.required_documents) if info else [],
                notes=[rule.result.reason],
            )

        return PayTypeEligibilityResult(
            pay_type=pay_type,
            status=EligibilityStatus.INCOMPLETE,
            amount_range=amount_range,
            next_steps=list(NEXT_STEPS[EligibilityStatus.INCOMPLETE]),
            documents_needed=list(info.required_documents) if info else [],
            notes=[INCOMPLETE_NOTE],
        )

    def run_assessment(
        self, pay_types: list[str], answers: Iterable[Answer] | Mapping[str, Answer]
    ) -> EligibilityResult:
        """Evaluate each pay type and summarize.

        Only definite ``eligible`` results count toward the monthly total.
        """
        answer_map = _as_answer_map(answers)
        results = [self.evaluate_for_pay_type(pay_type, answer_map) for pay_type in pay_types]

        def count(status: EligibilityStatus) -> int:
            return sum(1 for r in results if r.status == status)

        monthly_total = sum(
            (
                r.monthly_amount
                for r in results
                if r.status == EligibilityStatus.ELIGIBLE and r.monthly_amount is not None
            ),
            Decimal("0"),
        )
        summary = EligibilitySummary(
            total_pay_types_checked=len(results),
            eligible_count=count(EligibilityStatus.ELIGIBLE),
            potentially_eligible_count=count(EligibilityStatus.POTENTIALLY_ELIGIBLE),
            not_eligible_count=count(EligibilityStatus.NOT_ELIGIBLE),
            incomplete_count=count(EligibilityStatus.INCOMPLETE),
            estimated_monthly_total=monthly_total,
            estimated_annual_total=monthly_total * 12,
        )

        logger.info(
            "eligibility_assessed",
            pay_types=len(results),
            eligible=summary.eligible_count,
            monthly_total=monthly_total,
        )
        return EligibilityResult(
            answers=list(answer_map.values()),
            results=results,
            summary=summary,
        )
