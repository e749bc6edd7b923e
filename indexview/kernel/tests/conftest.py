"""
Kernel test configuration.

Shared fixtures: a host App with its workspace bus, view settings, an
in-memory index wired to the bus, and a shown container.
Async tests use pytest-asyncio with function-scoped loops.
"""

import pytest

from indexview.kernel.host import App, ViewContainer
from indexview.kernel.types import ViewSettings
from indexview.kernel.values import MemoryIndex


@pytest.fixture
def app():
    return App()


@pytest.fixture
def settings():
    return ViewSettings()


@pytest.fixture
def index(app):
    return MemoryIndex(app.workspace)


@pytest.fixture
def container():
    return ViewContainer()
