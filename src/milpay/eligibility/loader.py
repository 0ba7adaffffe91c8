"""Eligibility ruleset loader with YAML parsing and validation.

This module loads pay type reference data, questions, wizard layouts and
rules from a YAML document into Pydantic models, then checks that every
cross-reference (condition question ids, wizard steps, skip targets, rule
pay types) resolves.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from ruamel.yaml import YAML

from milpay.core.config import settings
from milpay.eligibility.conditions import flatten_conditions
from milpay.eligibility.models import (
    PayTypeInfo,
    Question,
    Rule,
    WizardConfig,
)

logger = structlog.get_logger()


class RulesetLoadError(Exception):
    """Exception raised when a ruleset cannot be loaded or validated."""

    def __init__(self, message: str, path: Path | None = None, errors: list[str] | None = None):
        """Initialize RulesetLoadError.

        Args:
            message: Human-readable error message
            path: Path to the ruleset file that failed to load
            errors: List of specific validation errors
        """
        self.path = path
        self.errors = errors or []
        super().__init__(message)


class Ruleset(BaseModel):
    """All eligibility configuration in one immutable bundle."""

    model_config = ConfigDict(frozen=True)

    version: str
    requirement_names: dict[str, str] = Field(default_factory=dict)
    pay_types: list[PayTypeInfo] = Field(default_factory=list)
    questions: list[Question] = Field(default_factory=list)
    wizards: list[WizardConfig] = Field(default_factory=list)
    rules: list[Rule] = Field(default_factory=list)

    def pay_type_info(self, pay_type: str) -> PayTypeInfo | None:
        """Reference data for a pay type."""
        return next((info for info in self.pay_types if info.id == pay_type), None)

    def available_pay_types(self) -> list[str]:
        """All pay type ids in declaration order."""
        return [info.id for info in self.pay_types]

    def question(self, question_id: str) -> Question | None:
        """Look up a question by id."""
        return next((q for q in self.questions if q.id == question_id), None)

    def questions_for_pay_type(self, pay_type: str) -> list[Question]:
        """Questions tagged with the pay type, plus the general ones."""
        return [q for q in self.questions if q.pay_type in (pay_type, "general")]

    def wizard(self, wizard_id: str) -> WizardConfig | None:
        """Look up a wizard configuration by id."""
        return next((w for w in self.wizards if w.id == wizard_id), None)

    def wizard_questions(self, wizard: WizardConfig) -> list[Question]:
        """Flat, ordered question list of a wizard across all its steps."""
        ordered: list[Question] = []
        for step in wizard.steps:
            for question_id in step.question_ids:
                question = self.question(question_id)
                if question is not None:
                    ordered.append(question)
        return ordered

    def rules_for_pay_type(self, pay_type: str) -> list[Rule]:
        """Rules for a pay type, highest priority first (stable for ties)."""
        return sorted(
            (rule for rule in self.rules if rule.pay_type == pay_type),
            key=lambda rule: rule.priority,
            reverse=True,
        )

    def requirement_name(self, question_id: str) -> str:
        """Human label for a question used as a requirement."""
        return self.requirement_names.get(question_id, question_id.replace("_", " "))


def _parse_yaml(path: Path) -> dict[str, Any]:
    """Parse a YAML file and return its contents as a dictionary.

    Raises:
        RulesetLoadError: If the file cannot be read or parsed
    """
    yaml = YAML(typ="safe", pure=True)

    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.load(f)
    except FileNotFoundError:
        raise RulesetLoadError(f"Ruleset file not found: {path}", path=path)
    except Exception as e:
        raise RulesetLoadError(f"Failed to parse YAML: {e}", path=path)

    if data is None:
        raise RulesetLoadError("Empty ruleset file", path=path)

    if not isinstance(data, dict):
        raise RulesetLoadError(
            f"Ruleset file must be a YAML mapping, got {type(data).__name__}",
            path=path,
        )

    return dict(data)


def check_references(ruleset: Ruleset) -> list[str]:
    """Return every dangling reference in the ruleset (empty if consistent)."""
    errors: list[str] = []
    question_ids = {q.id for q in ruleset.questions}
    pay_type_ids = set(ruleset.available_pay_types())

    seen: set[str] = set()
    for question in ruleset.questions:
        if question.id in seen:
            errors.append(f"Duplicate question id '{question.id}'")
        seen.add(question.id)
        if question.show_if is not None:
            for leaf in flatten_conditions(question.show_if):
                if leaf.question_id not in question_ids:
                    errors.append(
                        f"Question '{question.id}' show_if references unknown question '{leaf.question_id}'"
                    )
        targets = list((question.skip_to_question or {}).values())
        if question.next_question_id:
            targets.append(question.next_question_id)
        for target in targets:
            if target not in question_ids:
                errors.append(f"Question '{question.id}' branches to unknown question '{target}'")

    for rule in ruleset.rules:
        if rule.pay_type not in pay_type_ids:
            errors.append(f"Rule '{rule.id}' targets unknown pay type '{rule.pay_type}'")
        for leaf in flatten_conditions(rule.conditions):
            if leaf.question_id not in question_ids:
                errors.append(f"Rule '{rule.id}' references unknown question '{leaf.question_id}'")

    for wizard in ruleset.wizards:
        for pay_type in wizard.pay_types:
            if pay_type not in pay_type_ids:
                errors.append(f"Wizard '{wizard.id}' lists unknown pay type '{pay_type}'")
        for step in wizard.steps:
            for question_id in step.question_ids:
                if question_id not in question_ids:
                    errors.append(
                        f"Wizard '{wizard.id}' step '{step.id}' lists unknown question '{question_id}'"
                    )

    return errors


def load_ruleset_from_dict(data: dict[str, Any], path: Path | None = None) -> Ruleset:
    """Build and validate a Ruleset from a dictionary.

    Raises:
        RulesetLoadError: If validation fails or references do not resolve
    """
    try:
        ruleset = Ruleset.model_validate(data)
    except ValidationError as e:
        errors = [
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in e.errors()
        ]
        raise RulesetLoadError(
            f"Ruleset validation failed: {errors[0]}",
            path=path,
            errors=errors,
        )

    errors = check_references(ruleset)
    if errors:
        raise RulesetLoadError(
            f"Ruleset has {len(errors)} unresolved reference(s): {errors[0]}",
            path=path,
            errors=errors,
        )

    logger.debug(
        "ruleset_loaded",
        version=ruleset.version,
        rules=len(ruleset.rules),
        questions=len(ruleset.questions),
        path=str(path) if path else None,
    )
    return ruleset


def load_ruleset(path: str | Path) -> Ruleset:
    """Load a ruleset from a YAML file path.

    Raises:
        RulesetLoadError: If the file cannot be loaded or validation fails
    """
    path = Path(path)
    data = _parse_yaml(path)
    return load_ruleset_from_dict(data, path=path)


@lru_cache(maxsize=1)
def load_default_ruleset() -> Ruleset:
    """Load the ruleset configured by ``MILPAY_RULESET_PATH`` (cached)."""
    return load_ruleset(settings.ruleset_path)
