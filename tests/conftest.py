from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from backend.main import app


@pytest.fixture()
def client() -> Generator[TestClient, None, None]:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def vitamin_d_rows() -> list[dict]:
    return [
        {
            "t": "2024-01-01T00:00:00Z",
            "y": 30,
            "parameter_name": "Vitamin D",
            "unit": "ng/mL",
            "reference_lower": 30,
            "reference_upper": 100,
        },
        {
            "t": "2024-01-22T00:00:00Z",
            "y": 45,
            "parameter_name": "Vitamin D",
            "unit": "ng/mL",
            "reference_lower": 30,
            "reference_upper": 100,
        },
    ]
