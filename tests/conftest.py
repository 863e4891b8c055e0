import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from kmd.config import KmdConfig
from kmd.handlers import Commands
from kmd.log import configure_logging
from kmd.ui import UI
from tests.fakes import FakeRunner


def _isolate_environment(monkeypatch, root: Path) -> None:
    home = root / "home"
    home.mkdir(parents=True, exist_ok=True)
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(root / "config"))
    for name in list(os.environ):
        if name.startswith("KMD_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    _isolate_environment(monkeypatch, tmp_path)
    configure_logging()
    return tmp_path


@pytest.fixture
def history_file(tmp_path) -> Path:
    return tmp_path / "bash_history"


@pytest.fixture
def config(history_file) -> KmdConfig:
    return KmdConfig(history_file=history_file)


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def commands(config, runner) -> Commands:
    return Commands(config, runner=runner, ui=UI())
