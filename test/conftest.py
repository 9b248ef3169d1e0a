import pytest


@pytest.fixture(autouse=True)
def mock_console(monkeypatch):
    from schematic_placer.cli.console import Console

    for attr in dir(Console):
        if not attr.startswith("_") and callable(getattr(Console, attr)):
            monkeypatch.setattr(Console, attr, lambda *a, **k: None)

    monkeypatch.setattr(Console, "status", lambda text, fn: fn())
