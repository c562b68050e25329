from __future__ import annotations

import logging
import shutil
import time
from pathlib import Path
from typing import Any, Callable, List, Mapping, Optional

from .catalog import TFCatalog
from .cleanup import sweep
from .commands import build_command, command_text
from .errors import JobLaunchError, SequenceInputError
from .jobs import create_job_dir, launch_detached
from .rendering import MASTER_TEMPLATE, page_vars, render_page
from .sequences import (
    count_fasta_records,
    write_background_sequences,
    write_target_sequences,
    write_tf_family_file,
)
from .settings import (
    BG_SEQ_SET_KEYS,
    DFLT_CORE_MIN_IC,
    DFLT_FISHER_CUTOFF,
    DFLT_NUM_RESULTS,
    DFLT_THRESHOLD,
    DFLT_ZSCORE_CUTOFF,
    FISHER_CUTOFFS,
    MIN_THRESHOLD,
    NUM_RESULTS,
    ZSCORE_CUTOFFS,
    AnalysisVariant,
    WebSettings,
)
from .state import SessionState, SessionStore
from .validation import JobRequest, validate_job_request

logger = logging.getLogger(__name__)

RUN_MODES = ("input", "process")
START_MODE = "input"

Launcher = Callable[..., int]


class AnalysisController:
    """One request against one analysis variant.

    Uses the run-mode life cycle of a CGI application:
    ``setup`` loads or creates the session, ``run`` dispatches on ``rm`` and
    ``teardown`` commits the session and sweeps stale files.
    """

    def __init__(
        self,
        variant: AnalysisVariant,
        settings: WebSettings,
        store: Optional[SessionStore] = None,
        catalog: Optional[TFCatalog] = None,
        launcher: Optional[Launcher] = None,
    ):
        self.variant = variant
        self.settings = settings
        self.store = store or SessionStore(settings.tmp_dir)
        self.catalog = catalog or TFCatalog.load(settings.tf_catalog)
        self.launcher = launcher or launch_detached
        self.state: Optional[SessionState] = None

    def setup(self, sid: Optional[str] = None) -> SessionState:
        self.state = self.store.load_or_create(sid, self.variant)
        return self.state

    def teardown(self) -> None:
        if self.state is not None:
            try:
                self.store.commit(self.state)
            except OSError as exc:
                logger.error("Could not save session state %s: %s", self.state.sid, exc)
        sweep(self.settings)

    def run(
        self,
        run_mode: Optional[str],
        form: Mapping[str, Any],
        files: Optional[Mapping[str, Any]] = None,
    ) -> str:
        if self.state is None:
            self.setup(None)
        mode = (run_mode or START_MODE).strip() or START_MODE
        if mode == "process":
            return self.process(form, files or {})
        if mode != "input":
            return self.error(f"Unknown run mode {mode}")
        return self.input_page()

    def input_page(self) -> str:
        state = self._state()
        tax_groups = list(self.settings.dflt_tax_groups)
        min_ic = DFLT_CORE_MIN_IC

        variables = page_vars(
            self.settings,
            state,
            "Select Analysis Parameters",
            nresults=NUM_RESULTS,
            dflt_nresults=DFLT_NUM_RESULTS,
            zcutoffs=ZSCORE_CUTOFFS,
            fcutoffs=FISHER_CUTOFFS,
            dflt_zcutoff=DFLT_ZSCORE_CUTOFF,
            dflt_fcutoff=DFLT_FISHER_CUTOFF,
            dflt_threshold=DFLT_THRESHOLD,
            min_threshold=MIN_THRESHOLD,
            dflt_inter_binding_dist=self.settings.dflt_inter_binding_dist,
            max_inter_binding_dist=self.settings.max_inter_binding_dist,
            collections=self.settings.collections,
            bg_seq_set_keys=[k for k in BG_SEQ_SET_KEYS if k in self.settings.bg_seq_set_names],
            bg_seq_set_names=self.settings.bg_seq_set_names,
            tax_groups=tax_groups,
            min_ic=min_ic,
            tf_cluster_families=self.catalog.cluster_families(),
            tf_cluster_set=self.catalog.clusters,
            tf_set=self.catalog.tf_set("CORE", tax_groups, min_ic) if self.variant.anchored else [],
            var_template=self.variant.input_template,
        )
        return render_page(MASTER_TEMPLATE, variables)

    def process(self, form: Mapping[str, Any], files: Mapping[str, Any]) -> str:
        state = self._state()

        job, errors = validate_job_request(form, self.variant, self.settings, files=files)
        if job is None:
            for message in errors:
                self._error(message)
            return self.error()

        if job.anchor_tf_id:
            state.anchor_tf_id = job.anchor_tf_id

        try:
            job_dir = create_job_dir(self.settings.results_dir)
        except OSError as exc:
            logger.error("Could not create job directory under %s: %s", self.settings.results_dir, exc)
            return self.error("Could not create a working directory for the analysis")

        try:
            seq_file = write_target_sequences(
                job.seq_input_method,
                job_dir,
                text=form.get("seq_list"),
                upload=files.get("seq_file"),
            )
        except SequenceInputError as exc:
            shutil.rmtree(job_dir, ignore_errors=True)
            return self.error(str(exc))

        try:
            bg_seq_file = write_background_sequences(
                job.bg_seq_input_method,
                job_dir,
                text=form.get("bg_seq_list"),
                upload=files.get("bg_seq_file"),
                set_key=job.bg_seq_set_key,
                settings=self.settings,
            )
        except SequenceInputError as exc:
            shutil.rmtree(job_dir, ignore_errors=True)
            self._error(str(exc))
            return self.error("No background sequence file")

        tf_family_file: Optional[Path] = None
        if job.cluster_select_method == "upload":
            try:
                tf_family_file = write_tf_family_file(job_dir, files.get("tf_family_upload_file"))
            except SequenceInputError as exc:
                shutil.rmtree(job_dir, ignore_errors=True)
                return self.error(str(exc))

        self._check_fasta(seq_file, "target")
        if job.bg_seq_input_method != "default":
            self._check_fasta(bg_seq_file, "background")

        cmd = build_command(
            job, self.variant, job_dir, seq_file, bg_seq_file, self.settings, tf_family_file=tf_family_file
        )
        logger.info(
            "Starting %s analysis at %s:\n%s",
            self.variant.key,
            time.ctime(),
            command_text(cmd),
        )

        try:
            self.launcher(cmd, cwd=self.settings.scripts_dir)
        except JobLaunchError as exc:
            logger.error("Analysis launch failed for job %s: %s", job_dir.name, exc)
            return self.error("The analysis could not be started. Please try again later.")

        return self._summary_page(job, job_dir.name)

    def error(self, message: Optional[str] = None) -> str:
        """Render every accumulated error through the generic error page."""
        state = self._state()
        if message:
            self._error(message)

        variables = page_vars(
            self.settings,
            state,
            "Error",
            errors=_split_lines(state.errors),
            var_template="error.html",
        )
        output = render_page(MASTER_TEMPLATE, variables)
        state.errors = []
        return output

    def _summary_page(self, job: JobRequest, job_id: str) -> str:
        state = self._state()
        variables = page_vars(
            self.settings,
            state,
            "Analysis Submitted",
            result_retain_days=self.settings.resultfile_days,
            job_id=job_id,
            job=job,
            tf_db=self.settings.jaspar_db_name,
            cl_db=self.settings.cluster_db_name,
            anchor_tf_id=job.anchor_tf_id,
            inter_binding_dist=job.inter_binding_dist,
            collections=job.collections,
            tax_groups=job.tax_groups,
            min_ic=job.min_ic,
            tf_cluster_families=job.cluster_families,
            user_tf_family_file=job.user_tf_family_file,
            threshold=job.threshold,
            result_type=job.result_type,
            num_display_results=job.num_display_results,
            zscore_cutoff=job.zscore_cutoff,
            fisher_cutoff=job.fisher_cutoff,
            result_sort_by=job.result_sort_by,
            user_seq_file=job.user_seq_file,
            user_bg_seq_file=job.user_bg_seq_file,
            bg_seq_set_name=job.bg_seq_set_name,
            email=job.email,
            warnings=_split_lines(state.warnings),
            var_template=self.variant.summary_template,
        )
        output = render_page(MASTER_TEMPLATE, variables)
        state.warnings = []
        return output

    def _check_fasta(self, path: Path, label: str) -> None:
        if count_fasta_records(path) == 0:
            self._warning(
                f"The {label} sequences do not appear to contain any FASTA formatted "
                "records; the analysis may fail."
            )

    def _error(self, message: str) -> None:
        logger.error("ERROR: %s", message)
        self._state().errors.append(message)

    def _warning(self, message: str) -> None:
        logger.warning("Warning: %s", message)
        self._state().warnings.append(message)

    def _state(self) -> SessionState:
        if self.state is None:
            raise RuntimeError("Session state not initialised; call setup() first")
        return self.state


def _split_lines(messages: List[str]) -> List[str]:
    lines: List[str] = []
    for message in messages:
        lines.extend(line for line in str(message).strip().splitlines() if line.strip())
    return lines
