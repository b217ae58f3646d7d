import os
import pytest

from kavita_audit.kavita_audit.config import manager


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch):
    """Every test starts from default configuration, unaffected by the host environment."""
    for var in list(os.environ):
        if var.upper().startswith(("KAVITA_", "REPORT_", "LOG_")):
            monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr(manager, "_config_instance", None)
