"""
Test Suite for genericdao

Test Structure:
    tests/
    ├── conftest.py           - Shared fixtures (in-memory SQLite engine, session, DAOs)
    ├── models.py             - Person / Pet entities used across the suite
    ├── integration/          - Tests executing statements against SQLite
    │   ├── test_db_connection.py
    │   ├── test_general_dao.py
    │   ├── test_dispatcher.py
    │   ├── test_references.py
    │   └── test_search_execution.py
    └── unit/                 - Pure logic tests (no database round-trips)
        ├── test_config.py
        ├── test_models.py
        ├── test_search.py
        ├── test_example.py
        ├── test_metadata.py
        └── test_translator.py

Usage:
    # Run all tests
    pytest tests/ -v

    # Run only unit tests
    pytest tests/unit/ -v

Requirements:
    - pytest>=7.4.0
    - pytest-mock>=3.12.0
"""
