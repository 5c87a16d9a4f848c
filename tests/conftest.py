import pytest


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Isolate tests from the developer's SPATCH_* settings and .env file."""
    for name in ("SPATCH_OUTPUT_DIR", "SPATCH_ENCODING", "SPATCH_HTTP_TIMEOUT", "SPATCH_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("spatch.config._dotenv_loaded", True)
