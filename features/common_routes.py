from __future__ import annotations

from typing import Callable
from flask import Flask


def register_common_routes(
    app: Flask,
    index: Callable,
    health: Callable,
    job_results: Callable,
) -> None:
    app.add_url_rule("/", endpoint="index", view_func=index, methods=["GET"])
    app.add_url_rule("/health", endpoint="health", view_func=health, methods=["GET"])
    app.add_url_rule(
        "/results/<job_id>/",
        endpoint="job_results",
        view_func=job_results,
        defaults={"filename": None},
        methods=["GET"],
    )
    app.add_url_rule(
        "/results/<job_id>/<path:filename>",
        endpoint="job_results_file",
        view_func=job_results,
        methods=["GET"],
    )
