"""Fixtures for gateway tests."""

import pytest_asyncio

from ariasync.gateway import Aria2Gateway

RPC_URL = "http://localhost:6800/jsonrpc"


@pytest_asyncio.fixture
async def gateway(mock_logger):
    """Provide an opened Aria2Gateway without a secret."""
    async with Aria2Gateway(RPC_URL, logger=mock_logger) as gw:
        yield gw


@pytest_asyncio.fixture
async def secret_gateway(mock_logger):
    """Provide an opened Aria2Gateway configured with a secret token."""
    async with Aria2Gateway(RPC_URL, secret="s3cret", logger=mock_logger) as gw:
        yield gw
