"""Shared test configuration and fixtures."""

import pytest


@pytest.fixture
def xml_path(tmp_path):
    """Path to a not-yet-existing XML file in a temporary directory."""
    return tmp_path / "data.xml"
