"""Condition evaluation against a map of answers.

Evaluation is a pure function of the condition tree and the answers. A
condition that references an unanswered question is false, never an
error. Equality is strict: booleans never equal numbers and strings never
equal numbers.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from milpay.eligibility.models import (
    Answer,
    CompoundCondition,
    Condition,
    ConditionNode,
    ConditionOperator,
)

AnswerMap = dict[str, Answer]


def create_answer_map(answers: Iterable[Answer]) -> AnswerMap:
    """Index answers by question id. Later answers overwrite earlier ones."""
    return {answer.question_id: answer for answer in answers}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def strict_equals(left: Any, right: Any) -> bool:
    """Type-aware equality.

    Numbers compare by value (``2 == 2.0``), lists element by element,
    and values of different kinds are never equal.
    """
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left is right
    if _is_number(left) and _is_number(right):
        return left == right
    if isinstance(left, str) and isinstance(right, str):
        return left == right
    if isinstance(left, list) and isinstance(right, list):
        return len(left) == len(right) and all(strict_equals(a, b) for a, b in zip(left, right))
    return left is None and right is None


def _member(value: Any, candidates: list[Any]) -> bool:
    return any(strict_equals(value, candidate) for candidate in candidates)


def evaluate_condition(condition: Condition, answer_map: AnswerMap) -> bool:
    """Evaluate one leaf condition.

    Example:
        >>> from milpay.eligibility.models import Answer, Condition
        >>> answers = create_answer_map([Answer(question_id="dive_qualified", value=True)])
        >>> evaluate_condition(
        ...     Condition(question_id="dive_qualified", operator="equals", value=True), answers
        ... )
        True
    """
    answer = answer_map.get(condition.question_id)
    if answer is None:
        return False

    actual = answer.value
    expected = condition.value
    operator = condition.operator

    if operator == ConditionOperator.EQUALS:
        return strict_equals(actual, expected)
    if operator == ConditionOperator.NOT_EQUALS:
        return not strict_equals(actual, expected)
    if operator == ConditionOperator.CONTAINS:
        return isinstance(actual, list) and not isinstance(expected, list) and _member(expected, actual)
    if operator == ConditionOperator.GREATER_THAN:
        return _is_number(actual) and _is_number(expected) and actual > expected
    if operator == ConditionOperator.LESS_THAN:
        return _is_number(actual) and _is_number(expected) and actual < expected
    if operator == ConditionOperator.IN:
        return isinstance(expected, list) and _member(actual, expected)
    if operator == ConditionOperator.NOT_IN:
        return isinstance(expected, list) and not _member(actual, expected)
    return False


def evaluate_compound_condition(compound: CompoundCondition, answer_map: AnswerMap) -> bool:
    """AND requires every child true; OR requires at least one.

    An empty AND is vacuously true and an empty OR is false.
    """
    results = (evaluate(child, answer_map) for child in compound.conditions)
    if compound.type == "and":
        return all(results)
    return any(results)


def evaluate(node: ConditionNode, answer_map: AnswerMap) -> bool:
    """Evaluate a leaf or compound condition."""
    if isinstance(node, CompoundCondition):
        return evaluate_compound_condition(node, answer_map)
    return evaluate_condition(node, answer_map)


def flatten_conditions(node: ConditionNode) -> list[Condition]:
    """Leaf conditions of a tree, depth-first in declaration order."""
    if isinstance(node, Condition):
        return [node]
    leaves: list[Condition] = []
    for child in node.conditions:
        leaves.extend(flatten_conditions(child))
    return leaves
