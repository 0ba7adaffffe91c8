"""Tests for loading the eligibility ruleset from YAML."""

from pathlib import Path

import pytest

from milpay.eligibility.loader import (
    RulesetLoadError,
    check_references,
    load_default_ruleset,
    load_ruleset,
    load_ruleset_from_dict,
)

MINIMAL_RULESET = """\
version: "test"
pay_types:
  - id: dive_pay
    category: skill
    name: Diving Duty Pay
    short_name: Dive Pay
    description: Pay for divers.
    pay_range: {min: 150, max: 340}
questions:
  - id: dive_qualified
    pay_type: dive_pay
    type: boolean
    text: Are you dive qualified?
rules:
  - id: dive_eligible
    pay_type: dive_pay
    priority: 10
    conditions:
      type: and
      conditions:
        - {question_id: dive_qualified, operator: equals, value: true}
    result:
      status: eligible
      reason: Qualified.
      amount: 150
"""


def write(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "ruleset.yaml"
    path.write_text(content, encoding="utf-8")
    return path


class TestLoadRuleset:
    """Tests for load_ruleset."""

    def test_loads_valid_file(self, tmp_path) -> None:
        ruleset = load_ruleset(write(tmp_path, MINIMAL_RULESET))
        assert ruleset.version == "test"
        assert ruleset.rules[0].result.amount == 150
        assert ruleset.question("dive_qualified").type.value == "boolean"

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(RulesetLoadError) as exc_info:
            load_ruleset(tmp_path / "nope.yaml")
        assert "not found" in str(exc_info.value)
        assert exc_info.value.path == tmp_path / "nope.yaml"

    def test_empty_file(self, tmp_path) -> None:
        with pytest.raises(RulesetLoadError, match="Empty ruleset file"):
            load_ruleset(write(tmp_path, ""))

    def test_non_mapping(self, tmp_path) -> None:
        with pytest.raises(RulesetLoadError, match="must be a YAML mapping"):
            load_ruleset(write(tmp_path, "- just\n- a list\n"))

    def test_invalid_yaml(self, tmp_path) -> None:
        with pytest.raises(RulesetLoadError, match="Failed to parse YAML"):
            load_ruleset(write(tmp_path, "version: [unclosed\n"))

    def test_schema_errors_are_collected(self, tmp_path) -> None:
        content = MINIMAL_RULESET.replace("operator: equals", "operator: roughly")
        with pytest.raises(RulesetLoadError) as exc_info:
            load_ruleset(write(tmp_path, content))
        assert exc_info.value.errors
        assert str(exc_info.value).startswith("Ruleset validation failed")

    def test_dangling_reference(self, tmp_path) -> None:
        content = MINIMAL_RULESET.replace(
            "{question_id: dive_qualified, operator", "{question_id: dive_assigned, operator"
        )
        with pytest.raises(RulesetLoadError) as exc_info:
            load_ruleset(write(tmp_path, content))
        assert exc_info.value.errors == [
            "Rule 'dive_eligible' references unknown question 'dive_assigned'"
        ]


class TestCheckReferences:
    """Tests for cross-reference validation."""

    def test_bundled_ruleset_is_consistent(self, ruleset) -> None:
        assert check_references(ruleset) == []

    def test_unknown_pay_type_and_skip_target(self, ruleset) -> None:
        data = ruleset.model_dump(mode="json")
        data["rules"][0]["pay_type"] = "moon_pay"
        data["questions"][0]["next_question_id"] = "nowhere"

        with pytest.raises(RulesetLoadError) as exc_info:
            load_ruleset_from_dict(data)

        errors = exc_info.value.errors
        assert "Question 'service_status' branches to unknown question 'nowhere'" in errors
        assert f"Rule '{data['rules'][0]['id']}' targets unknown pay type 'moon_pay'" in errors

    def test_duplicate_question_id(self, ruleset) -> None:
        data = ruleset.model_dump(mode="json")
        data["questions"].append(dict(data["questions"][0]))
        with pytest.raises(RulesetLoadError, match="Duplicate question id 'service_status'"):
            load_ruleset_from_dict(data)


class TestBundledRuleset:
    """Tests for the bundled eligibility data."""

    def test_default_is_cached(self) -> None:
        assert load_default_ruleset() is load_default_ruleset()

    def test_wizard_layout(self, ruleset) -> None:
        wizard = ruleset.wizard("comprehensive_eligibility")
        assert [step.id for step in wizard.steps] == [
            "general",
            "flight",
            "dive",
            "jump",
            "hazard",
            "combat",
            "language",
        ]
        assert len(wizard.pay_types) == 6
        assert ruleset.wizard_questions(wizard)[0].id == "service_status"

    def test_rules_sorted_by_priority(self, ruleset) -> None:
        rules = ruleset.rules_for_pay_type("parachute_pay")
        assert [rule.id for rule in rules] == ["jump_halo_eligible", "jump_eligible"]

    def test_questions_for_pay_type_include_general(self, ruleset) -> None:
        ids = [q.id for q in ruleset.questions_for_pay_type("dive_pay")]
        assert ids[:4] == ["service_status", "branch", "pay_grade", "years_service"]
        assert "dive_physical_current" in ids
        assert "jump_qualified" not in ids

    def test_requirement_name_fallback(self, ruleset) -> None:
        assert ruleset.requirement_name("dive_qualified") == "Diving Qualification"
        assert ruleset.requirement_name("hfp_location") == "hfp location"
