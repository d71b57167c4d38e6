"""Fixtures for integration tests."""

from collections.abc import AsyncGenerator

import pytest
from aioresponses import aioresponses as aioresponses_cls

from pos_checks.client import PosApiClient
from pos_checks.config import HarnessConfig
from pos_checks.engine import TimedAssertionEngine
from pos_checks.testing.factories import HarnessConfigFactory
from pos_checks.testing.fake_api import API_PATTERN, API_URL, FakePosApi

UNREACHABLE_URL = "http://127.0.0.1:9/"


@pytest.fixture
def config() -> HarnessConfig:
    """Create test configuration."""
    return HarnessConfigFactory.build(
        api_url=API_URL, unreachable_url=UNREACHABLE_URL
    )


@pytest.fixture
def fake_api(aioresponses: aioresponses_cls) -> FakePosApi:
    """Serve the fake API for every call to the test URL."""
    api = FakePosApi()
    aioresponses.get(API_PATTERN, callback=api, repeat=True)
    return api


@pytest.fixture
async def client(
    config: HarnessConfig, aioresponses: aioresponses_cls
) -> AsyncGenerator[PosApiClient, None]:
    """Create client with managed session."""
    async with PosApiClient.from_config(config) as impl:
        yield impl


@pytest.fixture
def engine(config: HarnessConfig) -> TimedAssertionEngine:
    """Engine configured from the harness config."""
    return TimedAssertionEngine(config=config.engine_config())
