from __future__ import annotations

import pytest

from toolkit_cli.logger import Logger, SeverityName


class Captured:
    def __init__(self) -> None:
        self.lines: dict[SeverityName, list[str]] = {s: [] for s in SeverityName}

    def transports(self) -> dict[SeverityName, object]:
        return {s: self.lines[s].append for s in SeverityName if s != SeverityName.SILENT}

    def all(self) -> list[str]:
        return [line for s in SeverityName for line in self.lines[s]]


@pytest.fixture
def captured() -> Captured:
    return Captured()


@pytest.fixture
def logger(captured: Captured) -> Logger:
    return Logger(
        application="test",
        severity=SeverityName.DEBUG,
        colors=False,
        transports=captured.transports(),
    )


@pytest.fixture
def toolkit_env(monkeypatch, tmp_path):
    monkeypatch.setattr("toolkit_cli.apps.run_cli.load_dotenv", lambda *a, **k: True)
    for name in (
        "GITHUB_OUTPUT",
        "TOOLKIT_LOGGER_LEVEL",
        "TOOLKIT_PROJECT_ID",
        "TOOLKIT_IMPORT_MAP_PATH",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("DENO_DEPLOY_TOKEN", "token-123")
    monkeypatch.setenv("TOOLKIT_DEPLOY_EXCLUSIONS", "dist,node_modules")
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    monkeypatch.setenv("TOOLKIT_BIN_DIR", str(bin_dir))
    return bin_dir
