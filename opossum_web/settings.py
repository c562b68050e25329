from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple

VERSION = "3.0"
ADMIN_EMAIL = "opossum@cmmt.ubc.ca"
RESULTS_TEXT_FILENAME = "results.txt"
RESULTS_HTDOCS_FILENAME = "results.html"

# Form selection values and defaults.
NUM_RESULTS: Tuple[object, ...] = (5, 10, 20, "All")
DFLT_NUM_RESULTS = "All"
ZSCORE_CUTOFFS = (5, 10, 15)
DFLT_ZSCORE_CUTOFF = 10
FISHER_CUTOFFS = (5, 7, 9)
DFLT_FISHER_CUTOFF = 7
DFLT_THRESHOLD = 85
MIN_THRESHOLD = 75
DFLT_CORE_MIN_IC = 8

JASPAR_COLLECTIONS_USED = ("CORE", "PBM", "PENDING")
DFLT_TAX_GROUPS = ("vertebrates", "insects", "nematodes")

BG_SEQ_SET_KEYS = (
    "mmFibro2500",
    "mmFibro5000",
    "mmLiver2500",
    "mmLiver5000",
    "mmMarrow2500",
    "mmMarrow5000",
    "mmMixed2500",
    "mmMixed5000",
)

BG_SEQ_SET_NAMES: Dict[str, str] = {
    "mmFibro2500": "Mouse fibroblast 2500 seqs (GC=44%)",
    "mmFibro5000": "Mouse fibroblast 5225 seqs (GC=44%)",
    "mmLiver2500": "Mouse liver 2500 seqs (GC=51%)",
    "mmLiver5000": "Mouse liver 5000 seqs (GC=51%)",
    "mmMarrow2500": "Mouse bone marrow 2500 seqs (GC=46%)",
    "mmMarrow5000": "Mouse bone marrow 5000 seqs (GC=46%)",
    "mmMixed2500": "Mouse mixed cell lines 2500 seqs (GC=45%)",
    "mmMixed5000": "Mouse mixed cell lines 5000 seqs (GC=45%)",
}

BG_SEQ_SET_FILES: Dict[str, str] = {
    "mmFibro2500": "mouse_fibroblast_2500seq_44percentGC.fa",
    "mmFibro5000": "mouse_fibroblast_5225seq_44percentGC.fa",
    "mmLiver2500": "mouse_liver_2500seq_51percentGC.fa",
    "mmLiver5000": "mouse_liver_5000seq_51percentGC.fa",
    "mmMarrow2500": "mouse_bonemarrow_2500seq_46percentGC.fa",
    "mmMarrow5000": "mouse_bonemarrow_5000seq_46percentGC.fa",
    "mmMixed2500": "mouse_mixture_EScell-Liver-Bonemarrow-eFibroblast_2500seq_45percentGC.fa",
    "mmMixed5000": "mouse_mixture_EScell-Liver-Bonemarrow-eFibroblast_5000seq_45percentGC.fa",
}

# Accounts the web server runs as; anything else is a developer shell.
_SERVER_USERS = {"nobody", "apache", "www-data"}


@dataclass(frozen=True)
class AnalysisVariant:
    key: str
    heading: str
    bg_color_class: str
    script: str
    input_template: str
    summary_template: str
    anchored: bool = False

    @property
    def title(self) -> str:
        return f"oPOSSUM {self.heading}"


VARIANTS: Dict[str, AnalysisVariant] = {
    "seq_tca": AnalysisVariant(
        key="seq_tca",
        heading="Sequence-based TFBS Cluster Analysis",
        bg_color_class="bgc_seq_tca",
        script="opossum_seq_tca.pl",
        input_template="input_seq_tca.html",
        summary_template="analysis_summary_seq_tca.html",
    ),
    "seq_actca": AnalysisVariant(
        key="seq_actca",
        heading="Sequence-based Anchored Combination TFBS Cluster Analysis",
        bg_color_class="bgc_seq_actca",
        script="opossum_seq_actca.pl",
        input_template="input_seq_actca.html",
        summary_template="analysis_summary_seq_actca.html",
        anchored=True,
    ),
}


def _env_bool(environ: Mapping[str, str], name: str, default: str) -> bool:
    return (environ.get(name, default) or "").strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class WebSettings:
    home: Path = Path("/apps/oPOSSUM3")
    htdocs_dir: Path = Path("/var/www/htdocs/oPOSSUM3")
    tmp_dir: Path = Path("/var/www/htdocs/oPOSSUM3/tmp")
    results_dir: Path = Path("/var/www/htdocs/oPOSSUM3/results")
    data_dir: Path = Path("/var/www/htdocs/oPOSSUM3/data")
    log_dir: Path = Path("/apps/oPOSSUM3/logs")
    scripts_dir: Path = Path("/apps/oPOSSUM3/cgi-bin")
    rel_htdocs_path: str = "/oPOSSUM3"
    rel_results_path: str = "/results"
    devel: bool = False
    debug_error: bool = False
    tf_catalog: Optional[Path] = None
    jaspar_db_name: str = "JASPAR_2010"
    cluster_db_name: str = "TFBS_cluster"
    dflt_inter_binding_dist: int = 100
    max_inter_binding_dist: int = 250
    tempfile_days: float = 3
    resultfile_days: float = 7
    dflt_tax_groups: List[str] = field(default_factory=lambda: list(DFLT_TAX_GROUPS))
    collections: List[str] = field(default_factory=lambda: list(JASPAR_COLLECTIONS_USED))
    bg_seq_set_names: Dict[str, str] = field(default_factory=lambda: dict(BG_SEQ_SET_NAMES))
    bg_seq_set_files: Dict[str, str] = field(default_factory=lambda: dict(BG_SEQ_SET_FILES))

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "WebSettings":
        env = os.environ if environ is None else environ
        home = Path(env.get("OPOSSUM_HOME", "/apps/oPOSSUM3"))
        htdocs = Path(env.get("OPOSSUM_HTDOCS_PATH", "/var/www/htdocs/oPOSSUM3"))
        catalog = (env.get("OPOSSUM_TF_CATALOG", "") or "").strip()
        return cls(
            home=home,
            htdocs_dir=htdocs,
            tmp_dir=Path(env.get("OPOSSUM_TMP_PATH", str(htdocs / "tmp"))),
            results_dir=Path(env.get("OPOSSUM_RESULTS_PATH", str(htdocs / "results"))),
            data_dir=Path(env.get("OPOSSUM_DATA_PATH", str(htdocs / "data"))),
            log_dir=Path(env.get("OPOSSUM_LOG_PATH", str(home / "logs"))),
            scripts_dir=Path(env.get("OPOSSUM_SCRIPTS_PATH", str(home / "cgi-bin"))),
            rel_htdocs_path=env.get("OPOSSUM_REL_HTDOCS_PATH", "/oPOSSUM3"),
            devel=_env_bool(env, "OPOSSUM_DEVEL", "0"),
            debug_error=_env_bool(env, "OPOSSUM_DEBUG_ERROR", "0"),
            tf_catalog=Path(catalog) if catalog else None,
            jaspar_db_name=env.get("JASPAR_DB_NAME", "JASPAR_2010"),
            cluster_db_name=env.get("TFBS_CLUSTER_DB_NAME", "TFBS_cluster"),
            dflt_inter_binding_dist=int(env.get("OPOSSUM_DFLT_INTER_BINDING_DIST", "100")),
            max_inter_binding_dist=int(env.get("OPOSSUM_MAX_INTER_BINDING_DIST", "250")),
            tempfile_days=float(env.get("OPOSSUM_TEMPFILE_DAYS", "3")),
            resultfile_days=float(env.get("OPOSSUM_RESULTFILE_DAYS", "7")),
        )

    def ensure_dirs(self) -> None:
        for path in (self.tmp_dir, self.results_dir):
            path.mkdir(parents=True, exist_ok=True)

    def log_file(self, key: str, user: Optional[str] = None) -> Path:
        """Log file for ``key``; the web process uses one shared ``seq`` file for both analyses.

        Kept in /tmp for devel builds and developer accounts.
        """
        user = (user or "").strip()
        if self.devel or (user and user not in _SERVER_USERS):
            log_dir = Path("/tmp")
        else:
            log_dir = self.log_dir

        name = f"oPOSSUM_{key}"
        if self.devel:
            name += "_devel"
        if user:
            name += f"_{user}"
        return log_dir / f"{name}.log"
