import itertools
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from unittest.mock import AsyncMock, patch
import os

from eth_utils import to_checksum_address


# Set test environment variables before imports
os.environ['REDIS_HOST'] = 'localhost'
os.environ['REDIS_PORT'] = '6379'
os.environ['REDIS_DB'] = '0'
os.environ['REDIS_PASSWORD'] = ''  # No password for mock
os.environ['ANKR_API_KEY'] = 'test'

from holdings.codec import TRANSFER_TOPIC, address_to_topic  # noqa: E402
from holdings.entities import TransferLogEntry  # noqa: E402


ACCOUNT = to_checksum_address("0x8ba1f109551bd432803012645ac136ddd64dba72")
OTHER = to_checksum_address("0x" + "11" * 20)
ERC20_A = to_checksum_address("0x" + "aa" * 20)
ERC20_C = to_checksum_address("0x" + "cc" * 20)
ERC721_B = to_checksum_address("0x" + "bb" * 20)
ERC721_D = to_checksum_address("0x" + "dd" * 20)


@pytest.fixture
def account() -> str:
    """Checksummed account address used across tests."""
    return ACCOUNT


@pytest.fixture
def addresses() -> dict[str, str]:
    """Named checksummed addresses for counterparties and token contracts."""
    return {
        "other": OTHER,
        "erc20_a": ERC20_A,
        "erc20_c": ERC20_C,
        "erc721_b": ERC721_B,
        "erc721_d": ERC721_D,
    }


@pytest.fixture
def make_log():
    """
    Factory for Transfer log entries.

    Returns
    -------
    Callable[..., TransferLogEntry]
        ``make_log(contract, sender, recipient, value=..., token_id=..., block_number=...)``;
        pass ``topics``/``data`` to build malformed entries
    """
    counter = itertools.count(1)

    def factory(
        contract: str,
        sender: str,
        recipient: str,
        *,
        value: int | None = None,
        token_id: int | None = None,
        block_number: int = 1,
        transaction_hash: str | None = None,
        log_index: int | None = None,
        topics: list[bytes] | None = None,
        data: bytes | None = None
    ) -> TransferLogEntry:
        n = next(counter)
        if topics is None:
            topics = [TRANSFER_TOPIC, address_to_topic(sender), address_to_topic(recipient)]
            if token_id is not None:
                topics.append(token_id.to_bytes(32, "big"))
        if data is None:
            data = value.to_bytes(32, "big") if value is not None else b""
        return TransferLogEntry(
            contract_address=contract,
            topics=topics,
            data=data,
            block_number=block_number,
            block_hash=f"0x{block_number:064x}",
            transaction_hash=transaction_hash or f"0x{n:064x}",
            log_index=n if log_index is None else log_index
        )

    return factory


@pytest_asyncio.fixture
async def mock_redis():
    """Mock Redis client for testing."""
    mock = AsyncMock()
    mock.ping = AsyncMock(return_value=True)
    mock.get = AsyncMock(return_value=None)
    mock.setex = AsyncMock(return_value=True)
    mock.aclose = AsyncMock()
    return mock


@pytest_asyncio.fixture
async def client(mock_redis):
    """
    Fixture for async test client with mocked Redis.

    Parameters
    ----------
    mock_redis : AsyncMock
        Mocked Redis client

    Yields
    ------
    AsyncClient
        Async HTTP client for testing
    """
    # Patch Redis before importing main app
    with patch('redis.asyncio.Redis', return_value=mock_redis):
        # Import after patching to ensure mock is used
        from main import app

        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac
