"""Special-pay eligibility module.

This module provides the declarative eligibility ruleset, the condition
evaluator and rule engine that classify pay types from answers, and the
wizard sessions that collect those answers.
"""

from milpay.eligibility.conditions import (
    create_answer_map,
    evaluate,
    evaluate_compound_condition,
    evaluate_condition,
)
from milpay.eligibility.display import (
    calculate_pay_range_summary,
    format_eligibility_status,
    get_status_color,
    get_status_icon,
)
from milpay.eligibility.engine import (
    AnswerValidation,
    RuleEngine,
    calculate_eligibility_status,
    validate_answer,
)
from milpay.eligibility.history import ResultHistory
from milpay.eligibility.loader import (
    Ruleset,
    RulesetLoadError,
    load_default_ruleset,
    load_ruleset,
    load_ruleset_from_dict,
)
from milpay.eligibility.models import (
    Answer,
    CompoundCondition,
    Condition,
    ConditionOperator,
    EligibilityResult,
    EligibilityStatus,
    PayTypeEligibilityResult,
    Question,
    Rule,
    WizardConfig,
    WizardSession,
)
from milpay.eligibility.wizard import (
    InvalidStep,
    SessionAlreadyComplete,
    SessionNotFound,
    UnknownQuestion,
    UnknownWizardConfig,
    WizardError,
    WizardService,
)

__all__ = [
    # Models
    "Answer",
    "Condition",
    "CompoundCondition",
    "ConditionOperator",
    "EligibilityStatus",
    "EligibilityResult",
    "PayTypeEligibilityResult",
    "Question",
    "Rule",
    "WizardConfig",
    "WizardSession",
    # Loader
    "Ruleset",
    "RulesetLoadError",
    "load_ruleset",
    "load_ruleset_from_dict",
    "load_default_ruleset",
    # Evaluation
    "create_answer_map",
    "evaluate",
    "evaluate_condition",
    "evaluate_compound_condition",
    "AnswerValidation",
    "RuleEngine",
    "calculate_eligibility_status",
    "validate_answer",
    # Sessions
    "WizardService",
    "WizardError",
    "SessionNotFound",
    "SessionAlreadyComplete",
    "UnknownWizardConfig",
    "UnknownQuestion",
    "InvalidStep",
    "ResultHistory",
    # Display
    "format_eligibility_status",
    "get_status_color",
    "get_status_icon",
    "calculate_pay_range_summary",
]
