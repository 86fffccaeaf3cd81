from pathlib import Path

import pytest

from novasignal.infrastructure.utils.config import NovaSignalConfig, load_config


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for key in ("LOG_LEVEL", "SESSION__INSTRUMENT", "SESSION__TIMEFRAME"):
        monkeypatch.delenv(key, raising=False)


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults_without_file():
    cfg = NovaSignalConfig.from_yaml(None)
    assert cfg.session.instrument == "BTCUSDT"
    assert cfg.session.timeframe == "15s"
    assert cfg.scan.min_duration_sec == 2.0
    assert cfg.scan.max_timeout_sec == 5.0
    assert cfg.feed.websocket_url.startswith("wss://")


def test_yaml_values_are_loaded(tmp_path):
    path = _write(
        tmp_path,
        """
log_level: debug
session:
  instrument: eurusd
  timeframe: 2m
  bootstrap_candles: 0
scan:
  min_duration_sec: 1
  max_timeout_sec: 3
""",
    )
    cfg = load_config(path)

    assert cfg.log_level == "DEBUG"
    assert cfg.session.instrument == "EURUSD"
    assert cfg.session.timeframe == "2m"
    assert cfg.session.bootstrap_candles == 0
    assert cfg.scan.max_timeout_sec == 3


def test_env_overrides_yaml(tmp_path, monkeypatch):
    path = _write(tmp_path, "session:\n  timeframe: 5s\n")
    monkeypatch.setenv("SESSION__TIMEFRAME", "1m")
    monkeypatch.setenv("LOG_LEVEL", "warning")

    cfg = load_config(path)

    assert cfg.session.timeframe == "1m"
    assert cfg.log_level == "WARNING"


@pytest.mark.parametrize(
    "text",
    [
        "session:\n  timeframe: 3m\n",
        "session:\n  instrument: DOGEUSDT\n",
        "scan:\n  min_duration_sec: 4\n  max_timeout_sec: 2\n",
        "feed:\n  websocket_url: http://example.com\n",
        "log_level: LOUD\n",
        "session: [1, 2\n",
        "- just\n- a list\n",
    ],
)
def test_invalid_config_raises_value_error(tmp_path, text):
    with pytest.raises(ValueError):
        load_config(_write(tmp_path, text))


def test_missing_explicit_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")
