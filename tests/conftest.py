"""
Shared fixtures: isolated data dir, clean effective-zone stack and config cache per test.
"""
import pytest

from asynczone import reset_effective_zones
from asynczone.config import AsyncZoneConfig, _clear_test_config, set_config
from asynczone.storage import list_traces

_ENV_KEYS = [
    "ASYNCZONE_STRICT_DETACH",
    "ASYNCZONE_STACK_WARN_DEPTH",
    "ASYNCZONE_DATA_DIR",
]


@pytest.fixture(autouse=True)
def _isolated_engine(monkeypatch):
    """Every test starts with no attached zones, no ASYNCZONE_* env, and no cached config."""
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    reset_effective_zones()
    _clear_test_config()
    yield
    reset_effective_zones()
    _clear_test_config()


@pytest.fixture
def temp_data_dir(tmp_path, monkeypatch):
    """Point ASYNCZONE_DATA_DIR at a temp dir (env restored by monkeypatch)."""
    data_dir = tmp_path / "asynczone-data"
    data_dir.mkdir()
    monkeypatch.setenv("ASYNCZONE_DATA_DIR", str(data_dir))
    return data_dir


@pytest.fixture
def strict_detach(tmp_path):
    """Activate a config with strict_detach on for the duration of the test."""
    config = AsyncZoneConfig(strict_detach=True, stack_warn_depth=256, data_dir=tmp_path)
    set_config(config)
    return config


def get_latest_trace_id(config) -> str:
    """Return the trace_id of the most recently started trace."""
    traces = list_traces(limit=1, config=config)
    assert traces, "expected at least one trace"
    return traces[0]["trace_id"]
