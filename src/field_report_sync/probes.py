# -*- coding: utf-8 -*-
"""
Network reachability probes.

Probes are advisory: they never raise, and their results are only logged.
"""

from concurrent.futures import ThreadPoolExecutor

import requests

from .utils import to_str

PROBE_TIMEOUT = 10


def probe_graph_reachable(config, http=None):
    """
    Check that the Graph endpoint answers at all.

    Any HTTP status counts as reachable; only transport failures do not.

    Returns:
        dict: {'ok': bool, 'status' or 'error', 'meta_url': str}
    """
    http = http or requests
    meta_url = f"{config.graph_api_url}/$metadata"
    try:
        response = http.get(meta_url, timeout=PROBE_TIMEOUT)
        return {'ok': True, 'status': response.status_code, 'meta_url': meta_url}
    except requests.exceptions.RequestException as e:
        return {'ok': False, 'error': str(e), 'meta_url': meta_url}


def probe_sharepoint_host(hostname, http=None):
    """
    Check that the SharePoint host answers at all (unauthenticated).

    Returns:
        dict: {'ok': bool, 'error': str (when not ok)}
    """
    http = http or requests
    host = to_str(hostname)
    if not host:
        return {'ok': False, 'error': "site hostname is empty"}
    try:
        http.get(f"https://{host}/_api/v2.1/drive/root", timeout=PROBE_TIMEOUT)
        return {'ok': True}
    except requests.exceptions.RequestException as e:
        return {'ok': False, 'error': str(e)}


def run_probes(config, http=None):
    """
    Run both probes in parallel.

    Returns:
        tuple: (graph probe result, SharePoint probe result)
    """
    with ThreadPoolExecutor(max_workers=2) as executor:
        graph_future = executor.submit(probe_graph_reachable, config, http)
        sharepoint_future = executor.submit(probe_sharepoint_host, config.site_hostname, http)
        return graph_future.result(), sharepoint_future.result()


def log_probe_results(graph_probe, sharepoint_probe, log):
    """Write probe failures to the activity trace."""
    if not graph_probe.get('ok'):
        log.add(f"[Probe] Graph unreachable: {graph_probe.get('error') or graph_probe.get('status')} "
                f"(meta: {graph_probe.get('meta_url')})")
    if not sharepoint_probe.get('ok'):
        log.add(f"[Probe] SharePoint host unreachable: {sharepoint_probe.get('error')}")
