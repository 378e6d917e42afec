"""Shared fixtures for the badge_stats tests."""

from __future__ import annotations

import pytest

from fakes import FakeApi, github_api


@pytest.fixture
def fake_github() -> FakeApi:
    return github_api()
