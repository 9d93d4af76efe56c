"""
Pytest Configuration and Shared Fixtures

- Every test gets its own in-memory SQLite database (singleton reset).
- Sessions are rolled back and closed at the end of each test.
"""

import logging
from collections.abc import Generator

import pytest
from sqlalchemy.orm import Session

from genericdao.dao import DAODispatcher, GeneralDAO, GenericDAO
from genericdao.database import DatabaseEngine
from genericdao.models import Base
from tests.models import Person, Pet

# Configure logging for tests
logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


# ===== Pytest Configuration =====


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: mark test as integration test (executes SQL against SQLite)")
    config.addinivalue_line("markers", "unit: mark test as unit test (no database round-trips)")


# ===== Database Engine Fixture =====


@pytest.fixture(scope="function")
def db_engine() -> Generator[DatabaseEngine, None, None]:
    """Create a FUNCTION-SCOPED in-memory database with singleton reset."""
    DatabaseEngine._instance = None

    engine = DatabaseEngine()
    engine.initialize({"url": "sqlite:///:memory:"}, echo=False)
    Base.metadata.create_all(engine.engine)

    yield engine

    engine.dispose()
    DatabaseEngine._instance = None


# ===== Database Session Fixture =====


@pytest.fixture
def session(db_engine: DatabaseEngine) -> Generator[Session, None, None]:
    """Function-scoped session; whatever the test leaves uncommitted is rolled back."""
    session = db_engine.session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


# ===== DAO Fixtures =====


@pytest.fixture
def general_dao(session: Session) -> GeneralDAO:
    return GeneralDAO(session)


@pytest.fixture
def person_dao(general_dao: GeneralDAO) -> GenericDAO[Person]:
    return GenericDAO(Person, general_dao.session, general_dao=general_dao)


@pytest.fixture
def dispatcher(general_dao: GeneralDAO) -> DAODispatcher:
    return DAODispatcher(general_dao)


# ===== Test Data Fixtures =====


@pytest.fixture
def family(general_dao: GeneralDAO) -> dict[str, Person]:
    """
    Three generations of Joneses plus one unrelated Smith.

    Grace (82) -> Bob (58) -> Fred (35), Jane (31) along `father`.
    Fred owns a dog and a cat, Jane owns a bird; Al Smith (40) has no relatives.
    """
    grace = Person(first_name="Grace", last_name="Jones", age=82)
    bob = Person(first_name="Bob", last_name="Jones", age=58, father=grace)
    fred = Person(first_name="Fred", last_name="Jones", age=35, father=bob)
    jane = Person(first_name="Jane", last_name="Jones", age=31, father=bob)
    loner = Person(first_name="Al", last_name="Smith", age=40)

    general_dao.save_all([grace, bob, fred, jane, loner])
    general_dao.save_all(
        [
            Pet(name="Rex", species="dog", legs=4, owner=fred),
            Pet(name="Tom", species="cat", legs=4, owner=fred),
            Pet(name="Tweety", species="bird", legs=2, owner=jane),
        ]
    )
    return {"grace": grace, "bob": bob, "fred": fred, "jane": jane, "loner": loner}
