"""Pytest configuration: make the repository root importable and provide
isolated settings plus a Flask test client whose job launcher only records
the commands it is given.
"""

import os
import sys
import tempfile

import pytest

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

# app.py opens its log file at import time; keep it out of the real log dir.
os.environ.setdefault("OPOSSUM_LOG_PATH", tempfile.mkdtemp(prefix="opossum_logs_"))

from werkzeug.datastructures import MultiDict  # noqa: E402

from opossum_web.settings import WebSettings  # noqa: E402


@pytest.fixture
def settings(tmp_path):
    s = WebSettings(
        home=tmp_path,
        htdocs_dir=tmp_path / "htdocs",
        tmp_dir=tmp_path / "tmp",
        results_dir=tmp_path / "results",
        data_dir=tmp_path / "data",
        log_dir=tmp_path / "logs",
        scripts_dir=tmp_path / "scripts",
    )
    s.ensure_dirs()
    s.data_dir.mkdir(parents=True, exist_ok=True)
    return s


def make_form(**overrides):
    """A complete anchored-analysis submission; pass ``field=None`` to drop a field."""
    data = {
        "email": "someone@example.org",
        "threshold": "85",
        "tf_collections": ["CORE", "PBM"],
        "tf_tax_groups": ["vertebrates"],
        "tf_min_ic": "8",
        "tf_cluster_select_method": "all",
        "anchor_tf_id": "MA0079.2",
        "inter_binding_dist": "50",
        "seq_input_method": "paste",
        "seq_list": ">seq1\nACGTACGTAC\n>seq2\nTTGACCAGTA\n",
        "bg_seq_input_method": "default",
        "bg_seq_set_key": "mmLiver2500",
        "result_type": "top_x_results",
        "num_display_results": "20",
        "result_sort_by": "zscore",
    }
    for key, value in overrides.items():
        if value is None:
            data.pop(key, None)
        else:
            data[key] = value
    return MultiDict(data)


@pytest.fixture
def form_factory():
    return make_form


@pytest.fixture
def launches():
    return []


@pytest.fixture
def client(settings, launches):
    from app import app

    def fake_launcher(cmd, cwd=None):
        launches.append((list(cmd), cwd))
        return 4242

    saved = {key: app.config.get(key) for key in ("OPOSSUM_SETTINGS", "OPOSSUM_LAUNCHER", "TESTING")}
    app.config.update(TESTING=True, OPOSSUM_SETTINGS=settings, OPOSSUM_LAUNCHER=fake_launcher)
    with app.test_client() as test_client:
        yield test_client
    app.config.update(saved)
