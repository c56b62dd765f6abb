from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from exprguard.api.deps import get_evaluator
from exprguard.engines.expression import SafeEvaluator
from exprguard.main import app


@pytest.fixture
def evaluator() -> SafeEvaluator:
    return SafeEvaluator()


@pytest.fixture
def client(evaluator: SafeEvaluator) -> Generator[TestClient, None, None]:
    app.dependency_overrides[get_evaluator] = lambda: evaluator
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
