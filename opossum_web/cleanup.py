from __future__ import annotations

import argparse
import logging
import shutil
import time
from pathlib import Path
from typing import List, Optional

from .settings import WebSettings

logger = logging.getLogger(__name__)

_SECONDS_PER_DAY = 86400.0


def _age_days(path: Path, now: float) -> float:
    return (now - path.stat().st_mtime) / _SECONDS_PER_DAY


def clean_tempfiles(tmp_dir: Path, older_than_days: float, now: Optional[float] = None) -> List[Path]:
    """Remove plain files (session state) older than the retention period."""
    now = time.time() if now is None else now
    tmp_dir = Path(tmp_dir)
    if not tmp_dir.is_dir():
        return []

    removed: List[Path] = []
    for path in tmp_dir.iterdir():
        try:
            if path.is_file() and _age_days(path, now) > older_than_days:
                path.unlink()
                removed.append(path)
        except OSError as exc:
            logger.debug("Could not remove temp file %s: %s", path, exc)
    return removed


def clean_resultfiles(results_dir: Path, older_than_days: float, now: Optional[float] = None) -> List[Path]:
    """Remove job directories and stray files older than the retention period."""
    now = time.time() if now is None else now
    results_dir = Path(results_dir)
    if not results_dir.is_dir():
        return []

    removed: List[Path] = []
    for path in results_dir.iterdir():
        try:
            if _age_days(path, now) <= older_than_days:
                continue
            if path.is_dir() and not path.is_symlink():
                shutil.rmtree(path, ignore_errors=True)
            else:
                path.unlink()
            removed.append(path)
        except OSError as exc:
            logger.debug("Could not remove result path %s: %s", path, exc)
    return removed


def sweep(settings: WebSettings, now: Optional[float] = None) -> List[Path]:
    removed = clean_tempfiles(settings.tmp_dir, settings.tempfile_days, now=now)
    removed += clean_resultfiles(settings.results_dir, settings.resultfile_days, now=now)
    if removed:
        logger.info("Removed %d stale temp/result paths", len(removed))
    return removed


def main() -> None:
    settings = WebSettings.from_env()
    parser = argparse.ArgumentParser(description="Remove stale oPOSSUM session files and job results.")
    parser.add_argument("--tmp-dir", type=Path, default=settings.tmp_dir)
    parser.add_argument("--results-dir", type=Path, default=settings.results_dir)
    parser.add_argument("--tempfile-days", type=float, default=settings.tempfile_days)
    parser.add_argument("--resultfile-days", type=float, default=settings.resultfile_days)
    parser.add_argument("--dry-run", action="store_true", help="List what would be removed.")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")

    if args.dry_run:
        now = time.time()
        for base, days in ((args.tmp_dir, args.tempfile_days), (args.results_dir, args.resultfile_days)):
            if not base.is_dir():
                continue
            for path in sorted(base.iterdir()):
                if _age_days(path, now) > days:
                    print(path)
        return

    settings.tmp_dir = args.tmp_dir
    settings.results_dir = args.results_dir
    settings.tempfile_days = args.tempfile_days
    settings.resultfile_days = args.resultfile_days
    for path in sweep(settings):
        print(f"removed {path}")


if __name__ == "__main__":
    main()
