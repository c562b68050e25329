import stat
import sys

import pytest

from opossum_web.errors import JobLaunchError
from opossum_web.jobs import create_job_dir, job_dir_for, launch_detached


def test_create_job_dir_is_empty_and_world_readable(tmp_path):
    job_dir = create_job_dir(tmp_path / "results")

    assert job_dir.parent == tmp_path / "results"
    assert list(job_dir.iterdir()) == []
    assert stat.S_IMODE(job_dir.stat().st_mode) == 0o755


def test_job_dirs_are_unique(tmp_path):
    assert create_job_dir(tmp_path) != create_job_dir(tmp_path)


def test_job_dir_for(tmp_path):
    job_dir = create_job_dir(tmp_path)

    assert job_dir_for(tmp_path, job_dir.name) == job_dir
    assert job_dir_for(tmp_path, "missing") is None
    assert job_dir_for(tmp_path, "../" + job_dir.name) is None
    assert job_dir_for(tmp_path, "") is None


def test_launch_detached_returns_pid(tmp_path):
    pid = launch_detached([sys.executable, "-c", "pass"], cwd=tmp_path)

    assert isinstance(pid, int) and pid > 0


def test_launch_detached_ignores_missing_cwd(tmp_path):
    pid = launch_detached([sys.executable, "-c", "pass"], cwd=tmp_path / "absent")

    assert pid > 0


def test_launch_detached_missing_script(tmp_path):
    with pytest.raises(JobLaunchError, match="Analysis script not found"):
        launch_detached([str(tmp_path / "no_such_script.pl")])


def test_job_dir_for_rejects_dot_names(tmp_path):
    results = tmp_path / "results"
    results.mkdir()

    assert job_dir_for(results, "..") is None
    assert job_dir_for(results, ".") is None


def test_job_dir_for_rejects_links_out_of_results(tmp_path):
    results = tmp_path / "results"
    results.mkdir()
    outside = tmp_path / "elsewhere"
    outside.mkdir()
    (results / "linked").symlink_to(outside, target_is_directory=True)

    assert job_dir_for(results, "linked") is None
