from __future__ import annotations

import pytest

from svctrack.config import Config


def test_defaults() -> None:
    cfg = Config()
    assert cfg.hostname == "0.0.0.0"
    assert cfg.port == 8000
    assert cfg.timeout == 0
    assert cfg.retry_bind == 0


def test_env_overrides(monkeypatch) -> None:
    monkeypatch.setenv("TIMEOUT", "2500")
    monkeypatch.setenv("RETRY_BIND", "100")
    monkeypatch.setenv("PORT", "not-a-number")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    cfg = Config()
    assert cfg.timeout == 2500
    assert cfg.retry_bind_s == 0.1
    assert cfg.port == 8000  # valor inválido → default
    assert cfg.log_level == "DEBUG"


@pytest.mark.parametrize("field", ["port", "timeout", "retry_bind", "max_body"])
def test_negative_values_rejected(field) -> None:
    with pytest.raises(ValueError):
        Config(**{field: -1})


def test_repr() -> None:
    assert repr(Config(port=9000, timeout=100)) == "<Config host='0.0.0.0:9000', timeout=100ms>"
