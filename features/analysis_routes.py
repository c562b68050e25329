from __future__ import annotations

from typing import Callable, Iterable
from flask import Flask


def register_analysis_routes(
    app: Flask,
    variant_keys: Iterable[str],
    run_analysis: Callable,
) -> None:
    # One endpoint per variant, e.g. /seq_tca?rm=input and POST /seq_tca with rm=process.
    for key in variant_keys:
        app.add_url_rule(
            f"/{key}",
            endpoint=key,
            view_func=run_analysis,
            defaults={"variant_key": key},
            methods=["GET", "POST"],
        )
