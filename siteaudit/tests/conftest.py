# siteaudit/tests/conftest.py
import os

# Must be set before siteaudit.db is imported anywhere
os.environ["DATABASE_URL"] = "sqlite://"

import pytest

from siteaudit.db import Base, engine
from siteaudit.engine.catalog import QuestionCatalog
from siteaudit.main import app


@pytest.fixture(autouse=True)
def clean_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def small_catalog() -> QuestionCatalog:
    return QuestionCatalog.build(
        [
            {"id": "q1", "category": "ppe", "question": "Helmets worn", "weight": 2},
            {"id": "q2", "category": "ppe", "question": "Gloves worn", "weight": 3},
            {"id": "q3", "category": "fire", "question": "Extinguishers charged", "weight": 5},
        ],
        {"ppe": "Personal Protective Equipment", "fire": "Fire Prevention"},
        version="test-v1",
    )
