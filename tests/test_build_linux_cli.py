import io
import os
import tarfile

import pytest

from build_linux import main
from build_presets import BUILD_PRESETS, get_preset


@pytest.fixture
def workspace(tmp_path, make_script, monkeypatch):
    archive = tmp_path / "linux.tar"
    with tarfile.open(archive, "w") as tar:
        data = b"obj-y += main.o\n"
        info = tarfile.TarInfo("linux-6.1/Makefile")
        info.size = len(data)
        tar.addfile(info, io.BytesIO(data))

    calls = tmp_path / "make.log"
    make = make_script("make", f'echo "$@" >> "{calls}"\n'
                               'case "$1" in -j*|"") exit ${COMPILE_EXIT:-0};; esac\n'
                               'exit 0\n')
    monkeypatch.setenv("MAKE", str(make))

    dest = tmp_path / "work"
    return {"archive": archive, "dest": dest, "calls": calls}


def _run(workspace, *args):
    return main(list(args) + ["--archive", str(workspace["archive"]),
                              "--dest", str(workspace["dest"])])


def test_weighted_build_reports_jobs_and_elapsed(workspace, monkeypatch, capsys):
    monkeypatch.setenv("NR_CPUS", "16")

    assert _run(workspace, "allmodconfig", "2", "3") == 0

    out = capsys.readouterr().out
    assert "Building allmodconfig kernel with 12 jobs..." in out
    assert "Compilation took " in out
    assert workspace["calls"].read_text().splitlines() == ["allmodconfig", "-j12"]
    assert (workspace["dest"] / "linux-6.1" / "Makefile").is_file()


def test_no_weight_runs_uncapped_make(workspace, capsys):
    assert _run(workspace, "defconfig") == 0

    assert "with unlimited jobs" in capsys.readouterr().out
    assert workspace["calls"].read_text().splitlines() == ["defconfig", "-j"]


def test_unlimited_preset_passes_bare_job_flag(workspace):
    assert _run(workspace, "--preset", "build-linux-unlimited") == 0

    assert workspace["calls"].read_text().splitlines() == ["allmodconfig", "-j"]


def test_corrupt_archive_never_reaches_make(workspace, monkeypatch):
    monkeypatch.setenv("NR_CPUS", "4")
    workspace["archive"].write_bytes(b"\x00garbage" * 64)

    assert _run(workspace, "allmodconfig", "1") != 0
    assert not workspace["calls"].exists()


def test_missing_archive(workspace):
    workspace["archive"].unlink()

    assert _run(workspace, "defconfig") == 1
    assert not workspace["calls"].exists()


@pytest.mark.parametrize("args", [
    ["allmodconfig", "1", "0"],
    ["allmodconfig", "0"],
    ["allmodconfig", "-1"],
    ["allmodconfig", "x"],
])
def test_invalid_input_rejected_before_extraction(workspace, monkeypatch, args):
    monkeypatch.setenv("NR_CPUS", "8")

    with pytest.raises(SystemExit) as excinfo:
        _run(workspace, *args)

    assert excinfo.value.code == 2
    assert not workspace["dest"].exists()


def test_weight_without_capacity(workspace):
    assert _run(workspace, "allmodconfig", "1") == 1
    assert not workspace["dest"].exists()


def test_compile_exit_code_propagates(workspace, monkeypatch):
    monkeypatch.setenv("NR_CPUS", "2")
    monkeypatch.setenv("COMPILE_EXIT", "2")

    assert _run(workspace, "allmodconfig", "1") == 2


def test_preset(workspace, monkeypatch, capsys):
    monkeypatch.setenv("NR_CPUS", "8")

    assert _run(workspace, "--preset", "build-linux-half") == 0

    # (8 * 1) // 2 = 4 -> 5 jobs
    assert "Building allmodconfig kernel with 5 jobs..." in capsys.readouterr().out


def test_preset_conflicts_with_positionals(workspace):
    with pytest.raises(SystemExit) as excinfo:
        _run(workspace, "defconfig", "--preset", "build-linux-1x")
    assert excinfo.value.code == 2


def test_list_presets(capsys):
    assert main(["--list-presets"]) == 0
    out = capsys.readouterr().out
    assert "build-linux-half" in out
    assert "allmodconfig 1 2" in out


def test_presets_match_sideload_table():
    assert len(BUILD_PRESETS) == 10
    assert get_preset("build-linux-unlimited").weight is None
    assert get_preset("build-linux-defconfig-1x").target == "defconfig"
    with pytest.raises(KeyError, match="Available presets"):
        get_preset("mem-hog-1x")


def test_truncated_compressed_archive_exits_cleanly(workspace, caplog):
    archive = workspace["archive"].with_suffix(".tar.gz")
    with tarfile.open(archive, "w:gz") as tar:
        for i in range(200):
            data = os.urandom(2048)
            info = tarfile.TarInfo(f"linux-6.1/fs/f{i}.c")
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
    blob = archive.read_bytes()
    archive.write_bytes(blob[: len(blob) // 2])

    rc = main(["defconfig", "--archive", str(archive), "--dest", str(workspace["dest"])])

    assert rc == 1
    assert not workspace["calls"].exists()
    assert "Error" in caplog.text
