"""Tests for the check command: output streams and exit codes."""

from pathlib import Path

import pytest

from ensure_prefix.commands.check import collect_violations, run_check

from conftest import write


def _run(workspace_root: Path, prefix: Path, **kwargs) -> int:
    return run_check(workspace_root / "Cargo.toml", prefix, **kwargs)


def test_workspace_all_match(workspace_root: Path, prefixes: dict[str, Path], capsys):
    assert _run(workspace_root, prefixes["short"], all_members=True) == 0
    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err == ""


def test_workspace_some_match(workspace_root, prefixes, workspace_sources, capsys):
    assert _run(workspace_root, prefixes["long"], all_members=True) == 1
    captured = capsys.readouterr()
    assert captured.out == f"{workspace_sources['wbin']}\n"
    assert captured.err == ""


def test_workspace_none_match(workspace_root, prefixes, workspace_sources, capsys):
    assert _run(workspace_root, prefixes["other"], all_members=True) == 1
    captured = capsys.readouterr()
    expected = sorted(workspace_sources.values(), key=str)
    assert captured.out == "".join(f"{p}\n" for p in expected)
    assert captured.err == ""


def test_workspace_all_wildcard_match(workspace_root, prefixes, capsys):
    assert _run(workspace_root, prefixes["wildcard"], all_members=True) == 0
    assert capsys.readouterr().out == ""


def test_empty_prefix_matches(workspace_root, prefixes, capsys):
    assert _run(workspace_root, prefixes["empty"], all_members=True) == 0
    assert capsys.readouterr().out == ""


def test_default_members_only(workspace_root, prefixes, capsys):
    # wbin is not a default member, so its mismatch goes unnoticed
    assert _run(workspace_root, prefixes["long"]) == 0
    assert capsys.readouterr().out == ""


def test_file_too_short(workspace_root, prefixes, workspace_sources, capsys):
    assert _run(workspace_root, prefixes["really_long"], packages=["wbin"]) == 1
    captured = capsys.readouterr()
    assert captured.out == f"{workspace_sources['wbin']}\n"
    assert captured.err == ""


def test_exclude_drops_violating_package(workspace_root, prefixes, capsys):
    assert _run(workspace_root, prefixes["long"], all_members=True, exclude=["wbin"]) == 0
    assert capsys.readouterr().out == ""


def test_package_not_found(workspace_root, prefixes, capsys):
    assert _run(workspace_root, prefixes["short"], packages=["doesnotexist"]) == 2
    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err == "Didn't find matching package(s)\n"


def test_exclude_everything(workspace_root, prefixes, capsys):
    assert _run(workspace_root, prefixes["short"], exclude=["workspace_root", "wlib"]) == 2
    assert capsys.readouterr().err == "Didn't find matching package(s)\n"


def test_manifest_file_not_found(workspace_root, prefixes, capsys, monkeypatch):
    monkeypatch.chdir(workspace_root.parent)
    path = "workspace_root/src/Cargo.toml"
    assert run_check(path, prefixes["short"]) == 2
    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err == f"Could not find {path}\n"


def test_bad_manifest(workspace_root, prefixes, capsys, monkeypatch):
    monkeypatch.chdir(workspace_root.parent)
    path = "workspace_root/src/lib.rs"
    assert run_check(path, prefixes["short"]) == 2
    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err == f"Error parsing {Path.cwd() / path}\n"


def test_prefix_file_not_found(workspace_root, capsys, monkeypatch):
    monkeypatch.chdir(workspace_root.parent)
    path = "prefixes/doesnotexist.txt"
    assert run_check("workspace_root/Cargo.toml", path) == 2
    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err == f"Error reading prefix-path file {path}\n"


def test_all_and_package(workspace_root, prefixes, capsys, monkeypatch):
    def fail_resolve(*args, **kwargs):
        raise AssertionError("workspace must not be resolved for conflicting flags")

    monkeypatch.setattr("ensure_prefix.workspace.resolve", fail_resolve)

    assert _run(workspace_root, prefixes["short"], all_members=True, packages=["wlib"]) == 2
    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err == "Cannot specify --all and --package\n"


def test_exclude_and_package(workspace_root, prefixes, capsys):
    assert _run(workspace_root, prefixes["short"], packages=["wlib"], exclude=["wbin"]) == 2
    assert capsys.readouterr().err == "Cannot specify --exclude and --package\n"


def test_unopenable_source_is_fatal(workspace_root, prefixes, capsys):
    write(
        workspace_root / "wbin" / "Cargo.toml",
        '[package]\nname = "wbin"\n\n[[bin]]\nname = "ghost"\npath = "src/ghost.rs"\n',
    )

    assert _run(workspace_root, prefixes["short"], packages=["wbin"]) == 2
    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err.startswith(f"Error reading source file {workspace_root / 'wbin' / 'src' / 'ghost.rs'}: ")


def test_read_error_reported_and_counted(workspace_root, prefixes, workspace_sources, capsys, monkeypatch):
    import ensure_prefix.verify as verify

    real_open = open
    flaky = workspace_sources["wlib"]

    class _FailingReader:
        def read(self, size=-1):
            raise OSError(5, "Input/output error")

        def __enter__(self):
            return self

        def __exit__(self, *exc):
            return False

    def fake_open(path, *args, **kwargs):
        if Path(path) == flaky:
            return _FailingReader()
        return real_open(path, *args, **kwargs)

    monkeypatch.setattr(verify, "open", fake_open, raising=False)

    assert _run(workspace_root, prefixes["short"], all_members=True) == 1
    captured = capsys.readouterr()
    assert captured.out == f"{flaky}\n"
    assert captured.err == f"Error reading {flaky}: [Errno 5] Input/output error\n"


@pytest.mark.parametrize("jobs", [1, 3])
def test_collect_violations_jobs(workspace_root, prefixes, workspace_sources, jobs):
    violations = collect_violations(
        workspace_root / "Cargo.toml",
        prefixes["other"],
        all_members=True,
        jobs=jobs,
    )
    assert violations == sorted(workspace_sources.values(), key=str)


def test_missing_listed_member(workspace_root, prefixes, capsys):
    write(
        workspace_root / "Cargo.toml",
        '[package]\nname = "workspace_root"\n\n[workspace]\nmembers = ["wbin", "wlib", "gone"]\n',
    )

    assert _run(workspace_root, prefixes["short"], all_members=True) == 2
    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err == f"Error parsing {workspace_root / 'Cargo.toml'}\n"


def test_stray_package_under_workspace(workspace_root, prefixes, capsys):
    stray = write(workspace_root / "stray" / "Cargo.toml", '[package]\nname = "stray"\n')
    write(workspace_root / "stray" / "src" / "main.rs", "fn main() {}\n")

    assert run_check(stray, prefixes["other"]) == 2
    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err == f"Error parsing {stray}\n"
