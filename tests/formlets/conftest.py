"""
Pytest configuration and shared fixtures for formlet tests.
"""

import pytest
import yaml
from pathlib import Path
from typing import Dict, Any

from formlets import DictSession
from tests.formlets.utils import ClosureFormlet


@pytest.fixture
def session():
    """Session carrying a known anti-forgery token and no flashed input."""
    return DictSession({"_token": "abc"})


@pytest.fixture
def make_formlet(session):
    """
    Factory for root formlets driven by a closure.

    Usage:
        def test_example(make_formlet):
            form = make_formlet(lambda f: f.add_field(Input("foo")))
    """

    def _make(closure=None, **kwargs) -> ClosureFormlet:
        return ClosureFormlet(closure, **kwargs).session(session)

    return _make


@pytest.fixture
def temp_config_file(tmp_path):
    """
    Fixture that writes settings files into a temporary directory.

    Usage:
        def test_example(temp_config_file):
            config_path = temp_config_file({"method": "put"})
    """

    def _create_config(config_data: Dict[str, Any], suffix: str = ".yaml") -> Path:
        config_path = tmp_path / f"settings{suffix}"
        with open(config_path, "w", encoding="utf-8") as f:
            if suffix in (".yaml", ".yml"):
                yaml.dump(config_data, f, default_flow_style=False)
            else:
                import json

                json.dump(config_data, f)
        return config_path

    return _create_config
