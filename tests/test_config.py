"""
Testbench Configuration Tests
"""

import pytest

from spn_verif.config import TestbenchConfig


def test_defaults():
    config = TestbenchConfig()
    assert config.timeout_ticks == 20
    assert config.reset_cycles == 5
    assert config.reset_settle_cycles == 2
    assert config.post_response_hold == 2
    assert config.undefined_hold == 2
    assert config.idle_wait == 2
    assert config.random_count == 30
    assert config.seed is None
    assert config.validate() is config


@pytest.mark.parametrize("field,value", [
    ("timeout_ticks", 0),
    ("reset_cycles", 0),
    ("settle_deltas", 0),
    ("idle_wait", -1),
    ("drain_cycles", -1),
])
def test_validate_rejects(field, value):
    with pytest.raises(ValueError):
        TestbenchConfig(**{field: value}).validate()


def test_from_env(monkeypatch):
    monkeypatch.setenv("SPN_VERIF_SEED", "0x2A")
    monkeypatch.setenv("SPN_VERIF_TIMEOUT", "12")
    monkeypatch.setenv("SPN_VERIF_RANDOM_COUNT", "100")
    monkeypatch.setenv("SPN_VERIF_VERBOSE", "true")

    config = TestbenchConfig.from_env()
    assert config.seed == 42
    assert config.timeout_ticks == 12
    assert config.random_count == 100
    assert config.verbose


def test_from_env_overrides_win(monkeypatch):
    monkeypatch.setenv("SPN_VERIF_TIMEOUT", "12")
    assert TestbenchConfig.from_env(timeout_ticks=30).timeout_ticks == 30


def test_from_env_errors(monkeypatch):
    monkeypatch.delenv("SPN_VERIF_TIMEOUT", raising=False)
    with pytest.raises(ValueError):
        TestbenchConfig.from_env(no_such_field=1)

    monkeypatch.setenv("SPN_VERIF_TIMEOUT", "0")
    with pytest.raises(ValueError):
        TestbenchConfig.from_env()
