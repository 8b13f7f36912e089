"""Pytest configuration and fixtures."""

from typing import Callable, List

import httpx
import pytest

from indextank.config import CacheSettings, IndexTankSettings, Settings
from indextank.services.client import IndexTankClient


PRIVATE_URL = "http://:secret@test.api.indextank.com"


@pytest.fixture
def settings() -> Settings:
    """Create test settings."""
    return Settings(
        indextank=IndexTankSettings(INDEXTANK_PRIVATE_URL=PRIVATE_URL),
        cache=CacheSettings(CACHE_ENABLED=True, CACHE_TTL_METADATA_SECONDS=60),
    )


@pytest.fixture
def sent_requests() -> List[httpx.Request]:
    """Requests seen by the mock transport, in order."""
    return []


@pytest.fixture
def make_client(settings: Settings, sent_requests: List[httpx.Request]) -> Callable:
    """Build a client whose HTTP traffic is answered by ``handler``."""

    def factory(handler: Callable) -> IndexTankClient:
        def recording_handler(request: httpx.Request):
            sent_requests.append(request)
            return handler(request)

        http_client = httpx.AsyncClient(transport=httpx.MockTransport(recording_handler))
        return IndexTankClient(PRIVATE_URL, settings, http_client)

    return factory
