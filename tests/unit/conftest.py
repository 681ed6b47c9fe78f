"""Everything collected under tests/unit is a fast, isolated unit test."""

import pytest


def pytest_collection_modifyitems(config, items):
    unit_dir = config.rootpath / "tests" / "unit"
    for item in items:
        if unit_dir in item.path.parents:
            item.add_marker(pytest.mark.unit)
