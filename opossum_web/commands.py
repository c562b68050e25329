from __future__ import annotations

import shlex
from pathlib import Path
from typing import List, Optional

from .settings import AnalysisVariant, WebSettings
from .validation import RESULT_TYPE_SIGNIFICANT, RESULT_TYPE_TOP, JobRequest, format_number


def build_command(
    job: JobRequest,
    variant: AnalysisVariant,
    job_dir: Path,
    seq_file: Path,
    bg_seq_file: Path,
    settings: WebSettings,
    tf_family_file: Optional[Path] = None,
) -> List[str]:
    """Build the analysis script argv; optional flags only appear when set."""
    job_dir = Path(job_dir)
    cmd: List[str] = [
        str(settings.scripts_dir / variant.script),
        "-j", job_dir.name,
        "-d", str(job_dir),
        "-s", str(seq_file),
        "-b", str(bg_seq_file),
    ]

    if variant.anchored:
        if job.inter_binding_dist is not None:
            cmd += ["-dist", str(job.inter_binding_dist)]
        if job.anchor_tf_id:
            cmd += ["-aid", job.anchor_tf_id]

    if settings.jaspar_db_name:
        cmd += ["-tdb", settings.jaspar_db_name]
    if settings.cluster_db_name:
        cmd += ["-cdb", settings.cluster_db_name]

    if job.collections:
        cmd += ["-co", ",".join(job.collections)]
    if job.tax_groups:
        cmd += ["-tax", ",".join(job.tax_groups)]
    if job.min_ic:
        cmd += ["-ic", format_number(job.min_ic)]
    if job.cluster_families:
        cmd += ["-fam", ",".join(job.cluster_families)]
    elif tf_family_file is not None:
        cmd += ["-famf", str(tf_family_file)]

    cmd += ["-th", f"{format_number(job.threshold)}%"]

    if job.result_type == RESULT_TYPE_TOP and job.num_display_results:
        cmd += ["-n", job.num_display_results]
    elif job.result_type == RESULT_TYPE_SIGNIFICANT:
        if job.zscore_cutoff:
            cmd += ["-zcutoff", job.zscore_cutoff]
        if job.fisher_cutoff:
            cmd += ["-fcutoff", job.fisher_cutoff]

    if job.result_sort_by:
        cmd += ["-sr", job.result_sort_by]
    if job.email:
        cmd += ["-m", job.email]

    if job.user_tf_family_file:
        cmd += ["-ufamf", job.user_tf_family_file]
    if job.user_seq_file:
        cmd += ["-usf", job.user_seq_file]
    if job.user_bg_seq_file:
        cmd += ["-ubsf", job.user_bg_seq_file]
    if job.bg_seq_set_name:
        cmd += ["-bss", job.bg_seq_set_name]

    return cmd


def command_text(cmd: List[str]) -> str:
    return " ".join(shlex.quote(token) for token in cmd)
