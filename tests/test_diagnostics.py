"""Tests for diagnostics, probes and the activity trace."""

import json
from unittest.mock import MagicMock, patch

import pytest
import requests

from field_report_sync.activity import ActivityLog
from field_report_sync.diagnostics import SAMPLE_PHOTO_URLS, run_diagnostics
from field_report_sync.probes import log_probe_results, probe_graph_reachable, probe_sharepoint_host
from field_report_sync.session import ReportSession

from conftest import FakeResponse

REACHABLE = ({'ok': True, 'status': 200, 'meta_url': 'm'}, {'ok': True})


@pytest.fixture
def session(config, token_provider, site_graph):
    site_graph.resources["/me"] = {'id': 'user-1', 'displayName': 'Field User'}
    session = ReportSession(config, token_provider=token_provider, client=site_graph)
    yield session
    session.close()


class TestRunDiagnostics:
    """Tests for run_diagnostics."""

    @patch('field_report_sync.diagnostics.run_probes', return_value=REACHABLE)
    def test_full_report(self, mock_probes, session, site_graph):
        report = run_diagnostics(session, log=session.new_log(echo=False))

        assert 'error' not in report
        assert report['config_ok'] is True
        assert report['token_received'] is True
        assert (report['site_id'], report['list_id'], report['drive_id']) == ('site-1', 'list-1', 'drive-1')
        assert report['resolved_fields']['photo'] == 'PhotoUrl'
        assert report['resolved_fields']['location_choices'] == ['Oak Ridge', 'Pine Hill']
        assert report['me'] == {'id': 'user-1', 'display_name': 'Field User'}
        assert report['path_tests'] == {
            'root_children_path': "/drives/drive-1/root/children",
            'nested_children_path': "/drives/drive-1/root:/a/b:/children",
        }
        assert json.loads(report['sample_fields']['PhotoUrl']) == SAMPLE_PHOTO_URLS

    @patch('field_report_sync.diagnostics.run_probes', return_value=REACHABLE)
    def test_writes_nothing(self, mock_probes, session, site_graph):
        run_diagnostics(session, log=session.new_log(echo=False))

        assert site_graph.calls_of('POST') == []
        assert site_graph.calls_of('PUT') == []

    @patch('field_report_sync.diagnostics.run_probes', return_value=REACHABLE)
    def test_failure_is_recorded(self, mock_probes, session, site_graph):
        site_graph.resources["/sites/site-1/lists"] = {'value': []}

        report = run_diagnostics(session, log=session.new_log(echo=False))

        assert "Field Reports" in report['error']
        assert 'sample_fields' not in report

    @patch('field_report_sync.diagnostics.run_probes', return_value=REACHABLE)
    def test_client_credentials_skip_me(self, mock_probes, session, site_graph):
        session.config.client_secret = "secret"

        report = run_diagnostics(session, log=session.new_log(echo=False))

        assert 'me' not in report
        assert report['auth_flow'] == "client credentials"


class TestProbes:
    """Tests for the reachability probes."""

    def test_graph_any_status_is_reachable(self, config):
        http = MagicMock()
        http.get.return_value = FakeResponse(401)

        result = probe_graph_reachable(config, http)

        assert result == {'ok': True, 'status': 401, 'meta_url': "https://graph.microsoft.com/v1.0/$metadata"}

    def test_graph_transport_failure(self, config):
        http = MagicMock()
        http.get.side_effect = requests.exceptions.ConnectionError("dns")

        result = probe_graph_reachable(config, http)

        assert result['ok'] is False
        assert "dns" in result['error']

    def test_sharepoint_empty_host(self):
        assert probe_sharepoint_host("", MagicMock())['ok'] is False

    def test_failures_logged(self):
        log = ActivityLog(echo=False)

        log_probe_results({'ok': False, 'error': 'dns', 'meta_url': 'm'}, {'ok': False, 'error': 'refused'}, log)

        assert log.messages() == [
            "[Probe] Graph unreachable: dns (meta: m)",
            "[Probe] SharePoint host unreachable: refused",
        ]


class TestActivityLog:
    """Tests for the activity trace."""

    def test_lines_are_stamped(self):
        log = ActivityLog(echo=False)

        line = log.add("Uploading 2 file(s)...")

        assert line.endswith(": Uploading 2 file(s)...")
        assert len(line.split(": ", 1)[0]) == len("HH:MM:SS")
        assert len(log) == 1

    def test_warn_and_clear(self):
        log = ActivityLog(echo=False)
        log.warn("careful")
        assert log.messages() == ["Warning: careful"]

        log.clear()
        assert log.messages() == []
