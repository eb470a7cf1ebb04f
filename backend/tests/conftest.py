"""
golive Test Configuration.

Pytest fixtures and configuration.
Requires Python 3.11+.
"""

import os
import sys
from collections.abc import Callable, Generator
from pathlib import Path

import pytest
import structlog

from golive.models import WatchConfig
from golive.utils.config import get_settings

FAKE_ARTIFACT = '''#!{python}
import os, sys, time
with open(os.environ["FAKE_GO_LOG"], "a") as f:
    f.write(" ".join([str(os.getpid()), "artifact", *sys.argv[1:]]) + "\\n")
time.sleep(600)
'''

# Stands in for the go binary: "build" writes FAKE_ARTIFACT to the -o path,
# "run" records itself and sleeps. FAKE_GO_BUILD selects a build failure.
FAKE_TOOLCHAIN = '''#!{python}
import os, sys, time
from pathlib import Path

with open(os.environ["FAKE_GO_LOG"], "a") as f:
    f.write(" ".join([str(os.getpid()), *sys.argv[1:]]) + "\\n")

if sys.argv[1] == "build":
    mode = os.environ.get("FAKE_GO_BUILD", "ok")
    if mode == "missing":
        print('go : unknown command "build"')
        sys.exit(2)
    if mode == "fail":
        print("./main.go:3:1: syntax error: unexpected }}", file=sys.stderr)
        sys.exit(1)
    out = Path(sys.argv[sys.argv.index("-o") + 1])
    out.write_text({artifact!r})
    out.chmod(0o755)
    print("build ok")
    sys.exit(0)

time.sleep(600)
'''


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    """Undo any logging configuration a test installed."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def go_project(tmp_path: Path) -> Path:
    """A small Go source tree."""
    root = tmp_path / "proj"
    root.mkdir()
    (root / "main.go").write_text("package main\n\nfunc main() {}\n")
    (root / "go.mod").write_text("module example.com/proj\n")

    for sub in ("vendor/lib", ".git/objects", "internal/api", "internal/gen"):
        (root / sub).mkdir(parents=True)
    (root / "vendor" / "x.go").write_text("package vendor\n")
    (root / "internal" / "api" / "api.go").write_text("package api\n")
    return root


@pytest.fixture
def fake_toolchain(tmp_path: Path) -> Path:
    """Executable fake go binary."""
    python = sys.executable
    artifact = FAKE_ARTIFACT.format(python=python)
    script = tmp_path / "fakego"
    script.write_text(FAKE_TOOLCHAIN.format(python=python, artifact=artifact))
    script.chmod(0o755)
    return script


@pytest.fixture
def toolchain_log(tmp_path: Path) -> Path:
    """File the fake toolchain and artifact append their invocations to."""
    return tmp_path / "toolchain.log"


@pytest.fixture
def make_config(
    go_project: Path, fake_toolchain: Path, toolchain_log: Path, tmp_path: Path
) -> Callable[..., WatchConfig]:
    """Factory for WatchConfig pointing at the fake toolchain."""

    def factory(build_mode: str = "ok", **overrides) -> WatchConfig:
        values = dict(
            path=go_project,
            extensions=(".go",),
            output=str(tmp_path / "appb"),
            ignore=frozenset({"vendor"}),
            debounce_ms=100,
            envs=(f"FAKE_GO_LOG={toolchain_log}", f"FAKE_GO_BUILD={build_mode}"),
            cli_args=("--port", "8080"),
            toolchain=str(fake_toolchain),
        )
        values.update(overrides)
        return WatchConfig(**values)

    return factory


@pytest.fixture
def fresh_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[Path, None, None]:
    """Run in an empty directory with no GOLIVE_* variables and no cached settings."""
    workdir = tmp_path / "work"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    for key in list(os.environ):
        if key.startswith(("GOLIVE_", "LOG_")):
            monkeypatch.delenv(key)
    get_settings.cache_clear()
    yield workdir
    get_settings.cache_clear()
