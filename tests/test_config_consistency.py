import pytest
from ol_dump_parser.utils.config_validator import validate_configurations

def test_all_configurations_are_consistent():
    """
    This test ensures that the type registry, normalizers, skip taxonomy and summary
    counters stay in sync. It acts as a CI guard against configuration drift.
    """
    try:
        validate_configurations()
    except AssertionError as e:
        pytest.fail(f"Configuration consistency check failed: {e}")
