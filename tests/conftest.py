import pytest

from smb_statements.engine import recompute
from smb_statements.state import FinancialState
from smb_statements.statements import FullStatements, RawStatements, seed_statements


@pytest.fixture
def seed() -> RawStatements:
    """Fresh copy of the canonical initial statements."""
    return seed_statements()


@pytest.fixture
def seed_full() -> FullStatements:
    return recompute(seed_statements())


@pytest.fixture
def state() -> FinancialState:
    """Session state with default configuration."""
    return FinancialState()
