"""Pytest configuration shared by the unit and backend suites.

Puts the project root on sys.path so `rentals_lib` and `tests.helpers`
import without an installed package, and keeps the data-clear environment
override from leaking in from the developer's shell.
"""
import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]


def pytest_configure(config):
    sys.path.insert(0, str(REPO_ROOT))


@pytest.fixture(autouse=True)
def _no_data_clear_env(monkeypatch):
    monkeypatch.delenv('RENTALS_ALLOW_DATA_CLEAR', raising=False)
