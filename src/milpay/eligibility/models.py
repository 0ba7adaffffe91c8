"""Pydantic models for the eligibility questionnaire and rule engine.

Questions, conditions, rules, pay type reference data and wizard
configurations are immutable reference data loaded from YAML. Answers,
results and wizard sessions are produced at runtime.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

AnswerValue = Union[bool, int, float, str, list[str], None]

GENERAL_PAY_TYPE = "general"


def utcnow() -> datetime:
    """Timezone-aware current time."""
    return datetime.now(timezone.utc)


# =============================================================================
# Enums
# =============================================================================


class EligibilityStatus(str, Enum):
    """Outcome of evaluating one pay type."""

    ELIGIBLE = "eligible"
    POTENTIALLY_ELIGIBLE = "potentially_eligible"
    NOT_ELIGIBLE = "not_eligible"
    INCOMPLETE = "incomplete"


class QuestionType(str, Enum):
    """Input kind of a wizard question."""

    BOOLEAN = "boolean"
    SELECT = "select"
    MULTISELECT = "multiselect"
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"


class ConditionOperator(str, Enum):
    """Comparison applied by a leaf condition."""

    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    IN = "in"
    NOT_IN = "not_in"


class SessionStatus(str, Enum):
    """Lifecycle of a wizard session."""

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


# =============================================================================
# Conditions and Rules
# =============================================================================


class Condition(BaseModel):
    """Leaf condition comparing one answer against a value."""

    model_config = ConfigDict(frozen=True)

    question_id: str
    operator: ConditionOperator
    value: Any = None


class CompoundCondition(BaseModel):
    """AND/OR over nested conditions."""

    model_config = ConfigDict(frozen=True)

    type: Literal["and", "or"]
    conditions: list[ConditionNode] = Field(default_factory=list)


ConditionNode = Union[Condition, CompoundCondition]

CompoundCondition.model_rebuild()


class RuleResult(BaseModel):
    """Verdict declared by a rule when its conditions match."""

    model_config = ConfigDict(frozen=True)

    status: EligibilityStatus
    reason: str
    amount: Decimal | None = None
    amount_formula: str | None = None


class Rule(BaseModel):
    """Eligibility rule for one pay type. Higher priority is tried first."""

    model_config = ConfigDict(frozen=True)

    id: str
    pay_type: str
    conditions: CompoundCondition
    result: RuleResult
    priority: int = 0


# =============================================================================
# Questions
# =============================================================================


class QuestionOption(BaseModel):
    """Selectable option of a select or multiselect question."""

    model_config = ConfigDict(frozen=True)

    value: str
    label: str
    description: str | None = None


class QuestionValidation(BaseModel):
    """Declared constraints checked by ``validate_answer``."""

    model_config = ConfigDict(frozen=True)

    min: float | None = None
    max: float | None = None
    pattern: str | None = None
    error_message: str | None = None


class Question(BaseModel):
    """A single wizard prompt."""

    model_config = ConfigDict(frozen=True)

    id: str
    pay_type: str = GENERAL_PAY_TYPE
    text: str
    help_text: str | None = None
    type: QuestionType
    options: list[QuestionOption] = Field(default_factory=list)
    required: bool = True
    show_if: ConditionNode | None = None
    validation: QuestionValidation | None = None
    next_question_id: str | None = None
    skip_to_question: dict[str, str] | None = None


class Answer(BaseModel):
    """Answer to one question. Unique per question within a session."""

    model_config = ConfigDict(frozen=True)

    question_id: str
    value: AnswerValue = None
    timestamp: datetime = Field(default_factory=utcnow)


# =============================================================================
# Pay Type Reference Data
# =============================================================================


class PayRange(BaseModel):
    """Monthly amount range for a pay type."""

    model_config = ConfigDict(frozen=True)

    min: Decimal
    max: Decimal


class PayTypeInfo(BaseModel):
    """Reference information about a special or incentive pay."""

    model_config = ConfigDict(frozen=True)

    id: str
    category: str
    name: str
    short_name: str
    description: str
    general_requirements: list[str] = Field(default_factory=list)
    disqualifying_factors: list[str] = Field(default_factory=list)
    pay_range: PayRange
    is_taxable: bool = True
    frequency: str = "monthly"
    how_to_apply: list[str] = Field(default_factory=list)
    required_documents: list[str] = Field(default_factory=list)
    approval_authority: str | None = None
    processing_time: str | None = None
    regulation: str | None = None


# =============================================================================
# Results
# =============================================================================


class RequirementResult(BaseModel):
    """Whether one leaf condition of the matched rule is satisfied."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str
    is_met: bool
    reason: str


class PayTypeEligibilityResult(BaseModel):
    """Eligibility verdict for one pay type."""

    model_config = ConfigDict(frozen=True)

    pay_type: str
    status: EligibilityStatus
    requirements: list[RequirementResult] = Field(default_factory=list)
    total_requirements: int = 0
    met_requirements: int = 0
    monthly_amount: Decimal | None = None
    annual_amount: Decimal | None = None
    amount_range: PayRange | None = None
    amount_formula: str | None = None
    next_steps: list[str] = Field(default_factory=list)
    documents_needed: list[str] = Field(default_factory=list)
    notes: list[str] = Field(default_factory=list)


class EligibilitySummary(BaseModel):
    """Status counts and totals over an assessment."""

    model_config = ConfigDict(frozen=True)

    total_pay_types_checked: int
    eligible_count: int
    potentially_eligible_count: int
    not_eligible_count: int
    incomplete_count: int
    estimated_monthly_total: Decimal
    estimated_annual_total: Decimal


class EligibilityResult(BaseModel):
    """Terminal snapshot of one assessment."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    assessed_at: datetime = Field(default_factory=utcnow)
    answers: list[Answer] = Field(default_factory=list)
    results: list[PayTypeEligibilityResult] = Field(default_factory=list)
    summary: EligibilitySummary

    def result_for(self, pay_type: str) -> PayTypeEligibilityResult | None:
        """Result for a pay type, if it was evaluated."""
        return next((r for r in self.results if r.pay_type == pay_type), None)


# =============================================================================
# Wizard
# =============================================================================


class WizardStep(BaseModel):
    """Group of questions presented together."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str | None = None
    question_ids: list[str] = Field(default_factory=list)
    pay_types: list[str] = Field(default_factory=list)
    is_optional: bool = False
    estimated_minutes: int | None = None


class WizardConfig(BaseModel):
    """A questionnaire: its steps and the pay types it assesses."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str | None = None
    pay_types: list[str] = Field(default_factory=list)
    steps: list[WizardStep] = Field(default_factory=list)
    version: str
    effective_date: date


class WizardSession(BaseModel):
    """Mutable state of one user walking through a wizard."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    config_id: str
    status: SessionStatus = SessionStatus.IN_PROGRESS
    current_step_index: int = 0
    current_question_index: int = 0
    answers: list[Answer] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=utcnow)
    last_activity_at: datetime = Field(default_factory=utcnow)
    completed_at: datetime | None = None
    result: EligibilityResult | None = None

    @property
    def is_complete(self) -> bool:
        """True once the wizard has been completed."""
        return self.status == SessionStatus.COMPLETED
