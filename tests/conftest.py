import pytest
import pytest_asyncio
from unittest.mock import MagicMock, patch

from nutbridge.nut.adapter import NUTAdapter
from nutbridge.store.memory import MemoryStateStore
from tests.fakes import SAMPLE_COMMANDS, SAMPLE_VARS, FakeNUTServer, make_settings


@pytest.fixture
def nut_server():
    return FakeNUTServer()


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def store():
    return MemoryStateStore()


@pytest_asyncio.fixture
async def adapter(settings, store, nut_server):
    adapter = NUTAdapter(settings, store, client_factory=nut_server.client)
    yield adapter
    await adapter.unload()


@pytest.fixture
def pynut():
    """Patch the library client behind the real NUTClient."""
    with patch('nutbridge.nut.client.PyNUTClient') as mock_client_class:
        mock_client_instance = MagicMock()
        mock_client_instance.list_vars.return_value = dict(SAMPLE_VARS)
        mock_client_instance.list_commands.return_value = {name: "" for name in SAMPLE_COMMANDS}
        mock_client_class.return_value = mock_client_instance
        yield mock_client_class
