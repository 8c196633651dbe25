"""Tests for the certfetch CLI entry point and subcommands.

``main()`` and the subcommands use deferred imports, so patches target
the *source* modules (e.g. ``certfetch.cli.commands.serve.run_serve``).
"""

from __future__ import annotations

from argparse import Namespace
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from certfetch.ca.base import AcmeProtocolFailure
from certfetch.cli.main import _build_parser, main


@pytest.fixture()
def parser():
    return _build_parser()


class TestParser:
    def test_config_required(self, parser):
        with pytest.raises(SystemExit):
            parser.parse_args([])

    def test_defaults(self, parser):
        args = parser.parse_args(["-c", "cfg.yaml"])
        assert args.command is None
        assert args.debug is False
        assert args.validate_only is False

    def test_subcommands(self, parser):
        assert parser.parse_args(["-c", "x", "serve", "--dev"]).dev is True
        assert parser.parse_args(["-c", "x", "fetch", "a.example.com"]).domain == "a.example.com"
        assert parser.parse_args(["-c", "x", "issue", "a.example.com"]).command == "issue"
        assert parser.parse_args(["-c", "x", "db", "status"]).db_command == "status"

    def test_version(self, parser, capsys):
        with pytest.raises(SystemExit) as exc_info:
            parser.parse_args(["--version"])
        assert exc_info.value.code == 0
        assert "certfetch" in capsys.readouterr().out


class TestMain:
    def test_missing_config_file(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["-c", str(tmp_path / "absent.yaml")])
        assert exc_info.value.code == 1
        assert "configuration file not found" in capsys.readouterr().err

    def test_invalid_config(self, tmp_path, capsys):
        cfg = tmp_path / "bad.yaml"
        cfg.write_text("fetcher:\n  apex_domain: localhost\n", encoding="utf-8")
        with pytest.raises(SystemExit) as exc_info:
            main(["-c", str(cfg)])
        assert exc_info.value.code == 1
        assert "apex_domain" in capsys.readouterr().err

    def test_validate_only(self, tmp_config_file, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["-c", str(tmp_config_file), "--validate-only"])
        assert exc_info.value.code == 0
        out = capsys.readouterr().out
        assert "apex domain : example.com" in out
        assert "connect API : disabled" in out

    @patch("certfetch.cli.commands.serve.run_serve")
    def test_default_is_serve(self, mock_serve, tmp_config_file):
        main(["-c", str(tmp_config_file)])
        mock_serve.assert_called_once()

    @patch("certfetch.cli.commands.certs.run_fetch")
    def test_dispatch_fetch(self, mock_fetch, tmp_config_file):
        main(["-c", str(tmp_config_file), "fetch", "app.example.com"])
        assert mock_fetch.call_args.args[1].domain == "app.example.com"

    @patch("certfetch.cli.commands.certs.run_issue")
    def test_dispatch_issue(self, mock_issue, tmp_config_file):
        main(["-c", str(tmp_config_file), "issue", "app.example.com"])
        mock_issue.assert_called_once()

    @patch("certfetch.cli.commands.db.run_db")
    def test_dispatch_db(self, mock_db, tmp_config_file):
        main(["-c", str(tmp_config_file), "db", "status"])
        mock_db.assert_called_once()


# ---------------------------------------------------------------------------
# Subcommands
# ---------------------------------------------------------------------------


def _config(settings):
    return SimpleNamespace(settings=settings)


class TestFetchCommand:
    @patch("certfetch.cli.commands.certs.build_container")
    def test_prints_summary(self, mock_build, settings, make_record, cert_keypair, capsys):
        from certfetch.cli.commands.certs import run_fetch
        from certfetch.models import CertAndKeypair

        container = mock_build.return_value
        container.fetcher.get_or_create_cert_and_keypair.return_value = CertAndKeypair(
            cert=make_record("*.example.com"),
            keypair=cert_keypair("*.example.com"),
        )

        run_fetch(_config(settings), Namespace(domain="app.example.com", debug=False))

        assert '"domain": "*.example.com"' in capsys.readouterr().out
        container.shutdown.assert_called_once()

    @patch("certfetch.cli.commands.certs.build_container")
    def test_no_certificate(self, mock_build, settings, capsys):
        from certfetch.cli.commands.certs import run_fetch

        mock_build.return_value.fetcher.get_or_create_cert_and_keypair.return_value = None

        with pytest.raises(SystemExit) as exc_info:
            run_fetch(_config(settings), Namespace(domain="stranger.org", debug=False))
        assert exc_info.value.code == 1
        assert "no certificate available" in capsys.readouterr().err


class TestIssueCommand:
    @patch("certfetch.cli.commands.certs.build_container")
    def test_not_admitted(self, mock_build, settings, capsys):
        from certfetch.cli.commands.certs import run_issue

        mock_build.return_value.admission.resolve.return_value = None

        with pytest.raises(SystemExit):
            run_issue(_config(settings), Namespace(domain="stranger.org", debug=False))
        assert "not an admitted domain" in capsys.readouterr().err
        mock_build.return_value.shutdown.assert_called_once()

    @patch("certfetch.cli.commands.certs.build_container")
    def test_failure_surfaces(self, mock_build, settings, capsys):
        from certfetch.cli.commands.certs import run_issue

        mock_build.return_value.orchestrator.issue.side_effect = AcmeProtocolFailure(
            "rateLimited",
            retryable=True,
        )

        with pytest.raises(SystemExit) as exc_info:
            run_issue(_config(settings), Namespace(domain="app.example.com", debug=False))
        assert exc_info.value.code == 1
        assert "retryable=True" in capsys.readouterr().err

    @patch("certfetch.cli.commands.certs.build_container")
    def test_failure_reraised_in_debug(self, mock_build, settings):
        from certfetch.cli.commands.certs import run_issue

        mock_build.return_value.orchestrator.issue.side_effect = AcmeProtocolFailure("boom")

        with pytest.raises(AcmeProtocolFailure):
            run_issue(_config(settings), Namespace(domain="app.example.com", debug=True))

    @patch("certfetch.cli.commands.certs.build_container")
    def test_success(self, mock_build, settings, make_record, capsys):
        from certfetch.cli.commands.certs import run_issue

        mock_build.return_value.orchestrator.issue.return_value = make_record("*.example.com")

        run_issue(_config(settings), Namespace(domain="app.example.com", debug=False))
        assert '"expires_at"' in capsys.readouterr().out


class TestBuildContainer:
    @patch("certfetch.app.context.Container")
    def test_memory_backend_skips_database(self, mock_container, settings):
        from certfetch.cli.commands._common import build_container

        build_container(_config(settings))
        mock_container.assert_called_once_with(settings, None)

    @patch("certfetch.app.context.Container")
    @patch("certfetch.db.init_database")
    def test_postgres_backend_initialises_database(self, mock_init, mock_container, minimal_config_data):
        from certfetch.cli.commands._common import build_container
        from certfetch.config.settings import build_settings

        data = dict(minimal_config_data)
        data["store"] = {"backend": "postgres"}
        data["database"] = {"database": "certfetch", "user": "svc"}
        settings = build_settings(data)

        build_container(_config(settings))

        mock_init.assert_called_once_with(settings.database)
        mock_container.assert_called_once_with(settings, mock_init.return_value)


class TestServeCommand:
    @patch("certfetch.server.gunicorn_app.run_gunicorn")
    @patch("certfetch.app.create_app")
    @patch("certfetch.cli.commands._common.build_container")
    def test_gunicorn(self, mock_build, mock_create, mock_run, settings):
        from certfetch.cli.commands.serve import run_serve

        run_serve(_config(settings), Namespace(dev=False, debug=False))

        mock_run.assert_called_once_with(mock_create.return_value, settings.server)

    @patch("certfetch.app.create_app")
    @patch("certfetch.cli.commands._common.build_container")
    def test_dev_server(self, mock_build, mock_create, settings):
        from certfetch.cli.commands.serve import run_serve

        run_serve(_config(settings), Namespace(dev=True, debug=False))

        mock_create.return_value.run.assert_called_once_with(
            host="0.0.0.0",  # noqa: S104
            port=8080,
            debug=True,
            use_reloader=False,
        )

    @patch("certfetch.cli.commands._common.build_container")
    def test_startup_failure(self, mock_build, settings, capsys):
        from certfetch.cli.commands.serve import run_serve

        mock_build.side_effect = RuntimeError("no database")
        with pytest.raises(SystemExit):
            run_serve(_config(settings), Namespace(dev=False, debug=False))
        assert "startup failed: no database" in capsys.readouterr().err


class TestDbCommand:
    def test_no_database_section(self, settings, capsys):
        from certfetch.cli.commands.db import run_db

        with pytest.raises(SystemExit) as exc_info:
            run_db(_config(settings), Namespace(db_command="status"))
        assert exc_info.value.code == 1
        assert "no database section" in capsys.readouterr().err

    def test_no_subcommand(self, settings):
        from certfetch.cli.commands.db import run_db

        with pytest.raises(SystemExit):
            run_db(_config(settings), Namespace(db_command=None))

    @pytest.mark.parametrize(("present", "code"), [(5, None), (3, 2)])
    @patch("certfetch.db.init.init_database")
    def test_status(self, mock_init, minimal_config_data, capsys, present, code):
        from certfetch.cli.commands.db import run_db
        from certfetch.config.settings import build_settings

        data = dict(minimal_config_data)
        data["database"] = {"database": "certfetch", "user": "svc"}
        db = MagicMock()
        db.fetch_value.return_value = 1
        db.fetch_all.return_value = [
            {"table_name": t} for t in ("certs", "keypairs", "http_challenges", "dns_challenges", "projects")[:present]
        ]
        mock_init.return_value = db

        if code is None:
            run_db(_config(build_settings(data)), Namespace(db_command="status"))
        else:
            with pytest.raises(SystemExit) as exc_info:
                run_db(_config(build_settings(data)), Namespace(db_command="status"))
            assert exc_info.value.code == code
        assert f"{present}/5 tables present" in capsys.readouterr().out

    @patch("certfetch.db.init.init_database")
    def test_unreachable(self, mock_init, minimal_config_data, capsys):
        from certfetch.cli.commands.db import run_db
        from certfetch.config.settings import build_settings

        data = dict(minimal_config_data)
        data["database"] = {"database": "certfetch", "user": "svc"}
        mock_init.side_effect = ConnectionError("refused")

        with pytest.raises(SystemExit) as exc_info:
            run_db(_config(build_settings(data)), Namespace(db_command="status"))
        assert exc_info.value.code == 1
        assert "database unreachable: refused" in capsys.readouterr().err
