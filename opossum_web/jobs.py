from __future__ import annotations

import logging
import os
import subprocess
import tempfile
from pathlib import Path
from typing import List, Optional

from .errors import JobLaunchError

logger = logging.getLogger(__name__)


def create_job_dir(results_dir: Path) -> Path:
    """Create a fresh, empty job directory; its name is the job id."""
    results_dir = Path(results_dir)
    results_dir.mkdir(parents=True, exist_ok=True)
    path = Path(tempfile.mkdtemp(dir=str(results_dir)))
    # mkdtemp creates 0700; the result pages are served by the web server.
    os.chmod(path, 0o755)
    return path


def job_dir_for(results_dir: Path, job_id: str) -> Optional[Path]:
    name = Path(str(job_id)).name
    if not name or name != job_id or name in (".", ".."):
        return None
    path = Path(results_dir) / name
    if not path.is_dir() or path.resolve().parent != Path(results_dir).resolve():
        return None
    return path


def launch_detached(cmd: List[str], cwd: Optional[Path] = None) -> int:
    """Start ``cmd`` in its own session with all output discarded.

    Returns the pid as soon as the process exists; nothing waits on it.
    """
    if cwd is not None and not Path(cwd).is_dir():
        cwd = None
    try:
        process = subprocess.Popen(
            cmd,
            cwd=str(cwd) if cwd is not None else None,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
            close_fds=True,
        )
    except FileNotFoundError as exc:
        raise JobLaunchError(f"Analysis script not found: {cmd[0]}") from exc
    except OSError as exc:
        raise JobLaunchError(f"Failed to start analysis script: {exc}") from exc

    logger.info("Launched analysis process pid=%s", process.pid)
    return int(process.pid)
