import io
import re

import pytest

from opossum_web.settings import RESULTS_HTDOCS_FILENAME


def _multipart(form):
    return {key: values if len(values) > 1 else values[0] for key, values in form.lists()}


def _sid(html):
    match = re.search(r'name="sid" value="([^"]+)"', html)
    assert match, "input form carries no session id"
    return match.group(1)


def test_index_lists_both_analyses(client):
    response = client.get("/")

    assert response.status_code == 200
    html = response.get_data(as_text=True)
    assert 'href="/seq_tca"' in html
    assert 'href="/seq_actca"' in html


def test_health_reports_writable_dirs(client):
    response = client.get("/health")

    assert response.status_code == 200
    data = response.get_json()
    assert data["ok"] is True
    assert data["status"] == "ready"
    assert data["results_dir_writable"] is True
    assert data["tmp_dir_writable"] is True


def test_input_page_creates_session(client, settings):
    response = client.get("/seq_actca")

    assert response.status_code == 200
    html = response.get_data(as_text=True)
    assert 'name="anchor_tf_id"' in html
    sid = _sid(html)
    assert (settings.tmp_dir / sid).is_file()


def test_input_page_reuses_session_id(client):
    first = _sid(client.get("/seq_tca").get_data(as_text=True))
    second = _sid(client.get(f"/seq_tca?rm=input&sid={first}").get_data(as_text=True))

    assert second == first


def test_unknown_run_mode_is_reported(client):
    response = client.get("/seq_tca?rm=explode")

    assert response.status_code == 200
    assert "Unknown run mode explode" in response.get_data(as_text=True)


def test_process_launches_analysis_once(client, settings, launches, form_factory):
    form = form_factory(rm="process")

    response = client.post("/seq_actca", data=form)

    assert response.status_code == 200
    html = response.get_data(as_text=True)
    assert "someone@example.org" in html
    assert len(launches) == 1

    cmd, cwd = launches[0]
    assert cwd == settings.scripts_dir
    assert cmd[0] == str(settings.scripts_dir / "opossum_seq_actca.pl")
    job_id = cmd[cmd.index("-j") + 1]
    job_dir = settings.results_dir / job_id
    assert cmd[cmd.index("-d") + 1] == str(job_dir)
    assert (job_dir / "seqs.fa").read_text() == form["seq_list"]
    assert cmd[cmd.index("-b") + 1] == str(settings.data_dir / "mouse_liver_2500seq_51percentGC.fa")
    assert cmd[cmd.index("-aid") + 1] == "MA0079.2"
    assert f"/results/{job_id}/" in html


def test_process_keeps_pasted_bytes(client, settings, launches, form_factory):
    pasted = ">a\r\nACGT\r\n>b\r\nGGCC"
    form = form_factory(rm="process", seq_list=pasted, bg_seq_input_method="paste", bg_seq_list=pasted)

    client.post("/seq_tca", data=form)

    cmd, _ = launches[0]
    job_dir = settings.results_dir / cmd[cmd.index("-j") + 1]
    assert (job_dir / "seqs.fa").read_bytes() == pasted.encode()
    assert (job_dir / "back_seqs.fa").read_bytes() == pasted.encode()
    assert "-aid" not in cmd


def test_missing_email_shows_error_and_launches_nothing(client, settings, launches, form_factory):
    response = client.post("/seq_actca", data=form_factory(rm="process", email=None))

    assert response.status_code == 200
    assert "Please provide an e-mail address" in response.get_data(as_text=True)
    assert launches == []
    assert list(settings.results_dir.iterdir()) == []


def test_distance_over_maximum_is_rejected(client, settings, launches, form_factory):
    response = client.post("/seq_actca", data=form_factory(rm="process", inter_binding_dist="251"))

    assert "exceeds maximum of 250 allowed" in response.get_data(as_text=True)
    assert launches == []
    assert list(settings.results_dir.iterdir()) == []


def test_empty_paste_removes_job_dir(client, settings, launches, form_factory):
    response = client.post("/seq_tca", data=form_factory(rm="process", seq_list=""))

    assert "Sequence input not specified" in response.get_data(as_text=True)
    assert launches == []
    assert list(settings.results_dir.iterdir()) == []


def test_uploaded_sequences(client, settings, launches, form_factory):
    raw = b">up1\nACGTTGCA\n"
    form = form_factory(rm="process", seq_input_method="upload", seq_list=None)
    data = _multipart(form)
    data["seq_file"] = (io.BytesIO(raw), "/home/me/targets.fa")

    response = client.post("/seq_tca", data=data, content_type="multipart/form-data")

    assert response.status_code == 200
    cmd, _ = launches[0]
    job_dir = settings.results_dir / cmd[cmd.index("-j") + 1]
    assert (job_dir / "seqs.fa").read_bytes() == raw
    assert cmd[cmd.index("-usf") + 1] == "targets.fa"


def test_launch_failure_shows_error(client, form_factory):
    from app import app
    from opossum_web.errors import JobLaunchError

    def failing_launcher(cmd, cwd=None):
        raise JobLaunchError("Analysis script not found: x")

    app.config["OPOSSUM_LAUNCHER"] = failing_launcher
    response = client.post("/seq_tca", data=form_factory(rm="process"))

    assert "could not be started" in response.get_data(as_text=True)


def test_results_pending_then_served(client, settings):
    job_dir = settings.results_dir / "tmpabc123"
    job_dir.mkdir()

    pending = client.get("/results/tmpabc123/")
    assert pending.status_code == 200
    assert "has not produced its results yet" in pending.get_data(as_text=True)

    (job_dir / RESULTS_HTDOCS_FILENAME).write_text("<html>done</html>")
    (job_dir / "results.txt").write_text("TF\tZ-score\n")

    done = client.get("/results/tmpabc123/")
    assert done.get_data(as_text=True) == "<html>done</html>"
    done.close()
    text = client.get("/results/tmpabc123/results.txt")
    assert text.get_data(as_text=True) == "TF\tZ-score\n"
    text.close()


def test_unknown_job_is_404(client):
    assert client.get("/results/nothing-here/").status_code == 404


def test_results_cannot_leave_results_dir(client, settings):
    (settings.results_dir.parent / "secret.txt").write_text("outside results dir")

    assert client.get("/results/%2E%2E/secret.txt").status_code == 404
    assert client.get("/results/%2E%2E/").status_code == 404


def test_dot_sid_is_replaced(client, settings):
    html = client.get("/seq_tca?rm=input&sid=..").get_data(as_text=True)

    sid = _sid(html)
    assert sid not in (".", "..")
    assert (settings.tmp_dir / sid).is_file()


def test_uploaded_family_list(client, settings, launches, form_factory):
    raw = b"bHLH\nHomeo\n"
    data = _multipart(form_factory(rm="process", tf_cluster_select_method="upload"))
    data["tf_family_upload_file"] = (io.BytesIO(raw), "families.txt")

    response = client.post("/seq_tca", data=data, content_type="multipart/form-data")

    assert response.status_code == 200
    assert "From file families.txt" in response.get_data(as_text=True)
    cmd, _ = launches[0]
    job_dir = settings.results_dir / cmd[cmd.index("-j") + 1]
    assert (job_dir / "tf_family.txt").read_bytes() == raw
    assert cmd[cmd.index("-famf") + 1] == str(job_dir / "tf_family.txt")
    assert cmd[cmd.index("-ufamf") + 1] == "families.txt"


def test_empty_family_list_is_rejected(client, settings, launches, form_factory):
    data = _multipart(form_factory(rm="process", tf_cluster_select_method="upload"))
    data["tf_family_upload_file"] = (io.BytesIO(b""), "families.txt")

    response = client.post("/seq_tca", data=data, content_type="multipart/form-data")

    assert "File families.txt is empty" in response.get_data(as_text=True)
    assert launches == []
    assert list(settings.results_dir.iterdir()) == []


def test_non_fasta_targets_warn_on_summary(client, launches, form_factory):
    response = client.post("/seq_tca", data=form_factory(rm="process", seq_list="just some words\n"))

    html = response.get_data(as_text=True)
    assert response.status_code == 200
    assert "target sequences do not appear to contain any FASTA formatted records" in html
    assert len(launches) == 1


def test_render_page_wraps_template_errors(client):
    from app import app
    from opossum_web.errors import TemplateRenderError
    from opossum_web.rendering import render_page

    with app.test_request_context("/"):
        with pytest.raises(TemplateRenderError, match="no_such_page.html"):
            render_page("no_such_page.html", {})


def test_template_failure_is_a_plain_500(client, monkeypatch):
    import opossum_web.controller as controller

    monkeypatch.setattr(controller, "MASTER_TEMPLATE", "no_such_page.html")

    response = client.get("/seq_tca")

    assert response.status_code == 500
    assert response.mimetype == "text/plain"
    assert response.get_data(as_text=True) == "Page rendering failed"
