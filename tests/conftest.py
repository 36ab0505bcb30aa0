from collections.abc import Callable
from datetime import datetime

import pytest

from tests.fakes import FIXED_NOW, FakeStore


@pytest.fixture()
def clock() -> Callable[[], datetime]:
    return lambda: FIXED_NOW


@pytest.fixture()
def store() -> FakeStore:
    fake = FakeStore()
    fake.ensure_schema()
    fake.schema_calls = 0
    return fake
