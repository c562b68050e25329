from pathlib import Path

from opossum_web.settings import VARIANTS, WebSettings


def test_from_env_defaults():
    settings = WebSettings.from_env({})

    assert settings.results_dir == Path("/var/www/htdocs/oPOSSUM3/results")
    assert settings.jaspar_db_name == "JASPAR_2010"
    assert settings.cluster_db_name == "TFBS_cluster"
    assert settings.tempfile_days == 3
    assert settings.resultfile_days == 7
    assert settings.tf_catalog is None
    assert settings.devel is False


def test_from_env_overrides():
    settings = WebSettings.from_env(
        {
            "OPOSSUM_HTDOCS_PATH": "/srv/htdocs",
            "OPOSSUM_SCRIPTS_PATH": "/srv/bin",
            "OPOSSUM_DEVEL": "yes",
            "OPOSSUM_TF_CATALOG": "/srv/catalog.json",
            "OPOSSUM_MAX_INTER_BINDING_DIST": "500",
        }
    )

    assert settings.tmp_dir == Path("/srv/htdocs/tmp")
    assert settings.results_dir == Path("/srv/htdocs/results")
    assert settings.scripts_dir == Path("/srv/bin")
    assert settings.devel is True
    assert settings.tf_catalog == Path("/srv/catalog.json")
    assert settings.max_inter_binding_dist == 500


def test_log_file_for_server_account():
    settings = WebSettings(log_dir=Path("/apps/logs"))

    assert settings.log_file("seq", "apache") == Path("/apps/logs/oPOSSUM_seq_apache.log")
    assert settings.log_file("seq") == Path("/apps/logs/oPOSSUM_seq.log")


def test_log_file_for_developer_and_devel_build():
    settings = WebSettings(log_dir=Path("/apps/logs"))
    assert settings.log_file("seq", "dave") == Path("/tmp/oPOSSUM_seq_dave.log")

    settings.devel = True
    assert settings.log_file("seq", "apache") == Path("/tmp/oPOSSUM_seq_devel_apache.log")


def test_variants():
    assert set(VARIANTS) == {"seq_tca", "seq_actca"}
    assert VARIANTS["seq_actca"].anchored is True
    assert VARIANTS["seq_tca"].anchored is False
    assert VARIANTS["seq_tca"].script == "opossum_seq_tca.pl"
