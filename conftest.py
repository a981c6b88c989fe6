import pytest

from test_config import setup_test_environment

# Settings are read at import time, so the environment goes first
setup_test_environment()


@pytest.fixture
def calls():
    return []
