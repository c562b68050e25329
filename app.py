from __future__ import annotations

import logging
import os
import sys
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from flask import Flask, abort, jsonify, request, send_from_directory
from werkzeug.exceptions import HTTPException

from features import register_analysis_routes, register_common_routes
from opossum_web.catalog import TFCatalog
from opossum_web.controller import AnalysisController
from opossum_web.errors import TemplateRenderError
from opossum_web.jobs import job_dir_for
from opossum_web.rendering import MASTER_TEMPLATE, page_vars, render_page
from opossum_web.settings import RESULTS_HTDOCS_FILENAME, VARIANTS, WebSettings

app = Flask(__name__)
app.config["MAX_CONTENT_LENGTH"] = int(os.environ.get("OPOSSUM_MAX_UPLOAD_MB", "50")) * 1024 * 1024
app.config["OPOSSUM_SETTINGS"] = WebSettings.from_env()
app.config["OPOSSUM_LAUNCHER"] = None
app.logger.setLevel(logging.INFO)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _configure_logging(settings: WebSettings) -> Optional[Path]:
    log_path = settings.log_file("seq", os.environ.get("USER"))
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_path, encoding="utf-8")
    except OSError as exc:
        app.logger.warning("Could not open log file %s: %s", log_path, exc)
        return None

    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.setLevel(logging.INFO)
    package_logger = logging.getLogger("opossum_web")
    package_logger.setLevel(logging.INFO)
    package_logger.addHandler(handler)
    app.logger.addHandler(handler)
    return log_path


LOG_FILE = _configure_logging(app.config["OPOSSUM_SETTINGS"])


def _settings() -> WebSettings:
    return app.config["OPOSSUM_SETTINGS"]


@lru_cache(maxsize=4)
def _load_catalog(path: Optional[Path]) -> TFCatalog:
    return TFCatalog.load(path)


def _error_payload(message: str, status: int = 500, detail: Optional[str] = None) -> Tuple[Dict[str, Any], int]:
    payload: Dict[str, Any] = {"ok": False, "error": message}
    if _settings().debug_error and detail:
        payload["detail"] = detail
    return payload, status


def index():
    settings = _settings()
    variables = page_vars(
        settings,
        None,
        "Sequence-based Analyses",
        variants=list(VARIANTS.values()),
        var_template="index.html",
    )
    return render_page(MASTER_TEMPLATE, variables)


def health():
    settings = _settings()
    return jsonify(
        {
            "ok": True,
            "status": "ready",
            "results_dir_writable": os.access(settings.results_dir, os.W_OK),
            "tmp_dir_writable": os.access(settings.tmp_dir, os.W_OK),
        }
    )


def run_analysis(variant_key: str):
    variant = VARIANTS.get(variant_key)
    if variant is None:
        abort(404)

    settings = _settings()
    settings.ensure_dirs()

    values = request.values
    controller = AnalysisController(
        variant,
        settings,
        catalog=_load_catalog(settings.tf_catalog),
        launcher=app.config.get("OPOSSUM_LAUNCHER"),
    )
    controller.setup(values.get("sid"))
    try:
        return controller.run(values.get("rm"), values, request.files)
    finally:
        controller.teardown()


def job_results(job_id: str, filename: Optional[str] = None):
    settings = _settings()
    job_dir = job_dir_for(settings.results_dir, job_id)
    if job_dir is None:
        abort(404)

    if filename:
        return send_from_directory(job_dir, filename)

    if (job_dir / RESULTS_HTDOCS_FILENAME).is_file():
        return send_from_directory(job_dir, RESULTS_HTDOCS_FILENAME)

    variables = page_vars(
        settings,
        None,
        "Analysis Pending",
        job_id=job_id,
        result_retain_days=settings.resultfile_days,
        var_template="job_status.html",
    )
    return render_page(MASTER_TEMPLATE, variables)


register_common_routes(app, index=index, health=health, job_results=job_results)
register_analysis_routes(app, VARIANTS.keys(), run_analysis)


@app.errorhandler(Exception)
def _handle_runtime_error(error):
    if isinstance(error, HTTPException):
        return error

    app.logger.exception("Unhandled exception in %s: %s", request.path, error)
    if isinstance(error, TemplateRenderError):
        payload, status = _error_payload("Page rendering failed", detail=str(error))
    else:
        payload, status = _error_payload("Internal server error", detail=repr(error))

    if request.path == "/health":
        return jsonify(payload), status
    text = payload["error"]
    if "detail" in payload:
        text = f"{text}: {payload['detail']}"
    return text, status, {"Content-Type": "text/plain; charset=utf-8"}


if __name__ == "__main__":
    try:
        _settings().ensure_dirs()
    except OSError as exc:
        print(f"Startup directory check failed: {exc}", file=sys.stderr, flush=True)
        raise

    host = os.environ.get("HOST", "127.0.0.1")
    port = int(os.environ.get("PORT", "8000"))

    app.run(
        host=host,
        port=port,
        debug=False,
        use_reloader=False,
    )
