"""Pytest configuration and shared fixtures for tests."""

import uuid
from unittest.mock import MagicMock

import pytest

from milpay.eligibility.engine import RuleEngine
from milpay.eligibility.loader import Ruleset, load_default_ruleset
from milpay.eligibility.models import Answer
from milpay.eligibility.wizard import WizardService
from milpay.integrations.storage import FsspecStore


@pytest.fixture(scope="session")
def ruleset() -> Ruleset:
    """Load the bundled eligibility ruleset once per session.

    Returns:
        Validated Ruleset.
    """
    return load_default_ruleset()


@pytest.fixture
def engine(ruleset: Ruleset) -> RuleEngine:
    """Create a rule engine over the bundled ruleset.

    Returns:
        RuleEngine instance.
    """
    return RuleEngine(ruleset)


@pytest.fixture
def memory_store() -> FsspecStore:
    """Create an isolated in-memory store.

    Returns:
        FsspecStore rooted at a unique memory:// path.
    """
    return FsspecStore(f"memory://milpay-test-{uuid.uuid4().hex}")


@pytest.fixture
def wizard_service(ruleset: Ruleset, memory_store: FsspecStore) -> WizardService:
    """Create a wizard service backed by the in-memory store.

    Returns:
        WizardService instance.
    """
    return WizardService(ruleset, memory_store)


@pytest.fixture
def mock_redis_client() -> MagicMock:
    """Create a mock Redis client backed by a dict.

    Returns:
        MagicMock implementing get/set/delete.
    """
    data: dict[str, str] = {}
    client = MagicMock()
    client.get.side_effect = data.get
    client.set.side_effect = lambda key, value: data.__setitem__(key, value)
    client.delete.side_effect = lambda key: data.pop(key, None)
    client.data = data
    return client


def make_answers(**values) -> list[Answer]:
    """Build answers from keyword arguments (question_id=value)."""
    return [Answer(question_id=question_id, value=value) for question_id, value in values.items()]


@pytest.fixture
def answers_factory():
    """Expose make_answers to tests.

    Returns:
        Callable building a list of Answer models.
    """
    return make_answers

