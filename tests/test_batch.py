"""Tests for codebundle.batch."""

from __future__ import annotations

import os
import shutil
from pathlib import Path
from typing import Callable

import pytest

from codebundle.aggregator import Aggregator
from codebundle.batch import BatchDriver, WatchLoop
from codebundle.filters import FileFilter
from tests._fixtures.workspace_builder import WorkspaceBuilder


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def _driver(output_dir: Path) -> BatchDriver:
    return BatchDriver(Aggregator(FileFilter.build([".ts"])), output_dir=output_dir)


def _touch(path: Path, offset_seconds: int) -> None:
    stamp = path.stat().st_mtime_ns + offset_seconds * 1_000_000_000
    os.utime(path, ns=(stamp, stamp))


def test_batch_writes_matches_and_removes_header_only_artifacts(
    workspace: WorkspaceBuilder, tmp_path: Path
) -> None:
    workspace.write(
        {
            "pages/a.vue": "<template />\n",
            "pages/b.vue": "<template />\n",
            "src/b.ts": "export const b = 1;\n",
        }
    )
    output_dir = tmp_path / "out"
    output_dir.mkdir()
    stale = output_dir / "a-code.ts"
    stale.write_text("// codebundle: a\n", encoding="utf-8")

    batch = _driver(output_dir).run_all(workspace.path("pages"), [workspace.path("src")])

    written = output_dir / "b-code.ts"
    assert written.exists()
    assert not stale.exists()
    assert batch.written == [written]
    assert batch.skipped == ["a"]
    assert batch.artifact_for("b") == written

    content = written.read_text(encoding="utf-8")
    assert content.startswith("// codebundle: b\n")
    assert "export const b = 1;" in content
    assert content.endswith("// Summary: 1 files processed\n")


def test_base_names_are_unique_and_skip_directories(
    workspace: WorkspaceBuilder, tmp_path: Path
) -> None:
    workspace.write(
        {
            "pages/user.vue": "",
            "pages/user.spec.ts": "",
            "pages/nested/order.vue": "",
        }
    )

    names = _driver(tmp_path / "out").base_names(workspace.path("pages"))

    assert names == ["user"]


def test_base_names_rejects_missing_scan_dir(tmp_path: Path) -> None:
    with pytest.raises(NotADirectoryError):
        _driver(tmp_path / "out").base_names(tmp_path / "missing")


def test_artifact_extension_is_configurable(tmp_path: Path) -> None:
    driver = BatchDriver(
        Aggregator(), output_dir=tmp_path, artifact_extension=".tsx"
    )

    assert driver.artifact_path("user") == tmp_path / "user-code.tsx"


def _watch_setup(
    workspace: WorkspaceBuilder,
    tmp_path: Path,
    clock: FakeClock,
    sleep: Callable[[float], None] = lambda _: None,
) -> WatchLoop:
    workspace.write(
        {
            "pages/UserService.vue": "",
            "pages/order.vue": "",
            "src/user.ts": "export const user = 1;\n",
            "src/order.ts": "export const order = 1;\n",
        }
    )
    return WatchLoop(
        _driver(tmp_path / "out"),
        workspace.path("pages"),
        [workspace.path("src")],
        [workspace.path("src")],
        interval=0.5,
        debounce=2.0,
        clock=clock,
        sleep=sleep,
    )


def test_watch_tick_rebundles_only_implicated_names(
    workspace: WorkspaceBuilder, tmp_path: Path
) -> None:
    clock = FakeClock()
    loop = _watch_setup(workspace, tmp_path, clock)

    assert loop.tick() == []

    _touch(workspace.path("src/user.ts"), 5)
    assert loop.tick() == ["UserService"]

    artifact = tmp_path / "out" / "UserService-code.ts"
    assert artifact.exists()
    assert not (tmp_path / "out" / "order-code.ts").exists()
    assert loop.tick() == []


def test_watch_tick_debounces_between_batches(
    workspace: WorkspaceBuilder, tmp_path: Path
) -> None:
    clock = FakeClock()
    loop = _watch_setup(workspace, tmp_path, clock)
    loop.tick()

    _touch(workspace.path("src/user.ts"), 5)
    assert loop.tick() == ["UserService"]

    clock.now += 0.5
    _touch(workspace.path("src/order.ts"), 5)
    assert loop.tick() == []

    clock.now += 2.0
    assert loop.tick() == ["order"]
    assert (tmp_path / "out" / "order-code.ts").exists()


def test_watch_detects_new_and_removed_files(
    workspace: WorkspaceBuilder, tmp_path: Path
) -> None:
    clock = FakeClock()
    loop = _watch_setup(workspace, tmp_path, clock)
    loop.tick()

    workspace.write({"src/types/order.types.ts": "export type Order = {};\n"})
    assert loop.tick() == ["order"]

    clock.now += 5.0
    workspace.path("src/user.ts").unlink()
    assert loop.tick() == ["UserService"]


def test_watch_keeps_polling_when_scan_dir_disappears(
    workspace: WorkspaceBuilder, tmp_path: Path
) -> None:
    clock = FakeClock()
    loop = _watch_setup(workspace, tmp_path, clock)
    loop.tick()

    shutil.rmtree(workspace.path("pages"))
    _touch(workspace.path("src/user.ts"), 5)
    assert loop.tick() == []

    workspace.write({"pages/UserService.vue": ""})
    _touch(workspace.path("src/user.ts"), 10)
    assert loop.tick() == ["UserService"]
    assert (tmp_path / "out" / "UserService-code.ts").exists()


def test_watch_run_survives_scan_dir_removal(
    workspace: WorkspaceBuilder, tmp_path: Path
) -> None:
    def remove_scan_dir(_: float) -> None:
        if workspace.path("pages").exists():
            shutil.rmtree(workspace.path("pages"))
            _touch(workspace.path("src/user.ts"), 5)

    loop = _watch_setup(workspace, tmp_path, FakeClock(), sleep=remove_scan_dir)

    loop.run(initial_pass=False, max_ticks=2)

    assert not (tmp_path / "out").exists()


def test_watch_run_performs_initial_pass_and_sleeps_between_ticks(
    workspace: WorkspaceBuilder, tmp_path: Path
) -> None:
    sleeps: list[float] = []
    workspace.write(
        {
            "pages/user.vue": "",
            "src/user.ts": "export const user = 1;\n",
        }
    )
    loop = WatchLoop(
        _driver(tmp_path / "out"),
        workspace.path("pages"),
        [workspace.path("src")],
        [workspace.path("src")],
        interval=0.25,
        clock=FakeClock(),
        sleep=sleeps.append,
    )

    loop.run(max_ticks=3)

    assert sleeps == [0.25, 0.25, 0.25]
    assert (tmp_path / "out" / "user-code.ts").exists()
