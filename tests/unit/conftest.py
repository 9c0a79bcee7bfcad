"""Shared fixtures for bbgold unit tests."""

import pytest

from factories import make_coin, make_stats, make_wallet


@pytest.fixture
def visible_coin():
    return make_coin()


@pytest.fixture
def funded_wallet():
    return make_wallet()


@pytest.fixture
def default_stats():
    return make_stats()
