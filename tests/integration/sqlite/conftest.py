import pytest
import pytest_asyncio

from notenest.integrations.sqlite import SqliteConfiguration


@pytest.fixture
def sqlite_config(tmp_path) -> SqliteConfiguration:
    return SqliteConfiguration(
        events_path=str(tmp_path / "events.db"),
        projections_path=str(tmp_path / "projections.db"),
    )


@pytest_asyncio.fixture
async def initialized_config(sqlite_config) -> SqliteConfiguration:
    await sqlite_config.on_startup()
    return sqlite_config
