from __future__ import annotations

import pytest
from unittest.mock import AsyncMock

from app.models.schemas import Coordinate

# Dam square, Amsterdam
AMSTERDAM = Coordinate(latitude=52.373, longitude=4.8924)


class FakeFetcher:
    """Stands in for RetryableFetcher: answers from a callable, records every call."""

    def __init__(self, responder):
        self.calls: list[tuple[str, dict]] = []
        self._responder = responder
        self.fetch_json = AsyncMock(side_effect=self._respond)

    async def _respond(self, url, params=None):
        params = dict(params or {})
        self.calls.append((url, params))
        result = self._responder(url, params)
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def amsterdam():
    return AMSTERDAM


@pytest.fixture
def fake_fetcher():
    return FakeFetcher
