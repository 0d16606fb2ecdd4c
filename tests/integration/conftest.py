import os

import pytest
from dotenv import find_dotenv, load_dotenv

# Load .env before collection so the skip below sees EVENTSOURCE_URL.
load_dotenv(find_dotenv(usecwd=True))


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    url = os.getenv("EVENTSOURCE_URL")
    for item in items:
        if "integration" in item.keywords and not url:
            item.add_marker(pytest.mark.skip(reason="Missing EVENTSOURCE_URL in environment/.env"))


@pytest.fixture(scope="session")
def stream_url() -> str:
    url = os.getenv("EVENTSOURCE_URL")
    if not url:
        pytest.skip("Missing EVENTSOURCE_URL (load it from .env)")
    return url
