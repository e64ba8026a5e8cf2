# -*- coding: utf-8 -*-
"""
Resource resolution for field report sync.

Turns the human-readable site/list/library names from the configuration into
the stable Graph identifiers every other call needs.
"""

from urllib.parse import unquote

from .exceptions import ReportSyncError, ResolutionError
from .utils import is_guid, to_str


def site_search_term(hostname, path):
    """
    Pick the keyword for the fallback site search.

    Preference: last non-empty path segment, then the whole path, then the hostname.
    """
    segments = [segment for segment in to_str(path).split('/') if segment]
    if segments:
        return segments[-1]
    return to_str(path) or to_str(hostname)


def choose_site_candidate(candidates, hostname, path):
    """
    Choose the best site from search results.

    Preference:
      1. webUrl contains the configured path AND siteCollection.hostname
         contains the configured hostname
      2. webUrl contains the configured path
      3. the first candidate

    Args:
        candidates (list): Site resources returned by /sites?search=
        hostname (str): Configured site hostname
        path (str): Configured site path

    Returns:
        dict: The chosen site resource, or None when there are no candidates
    """
    if not candidates:
        return None

    path_lower = to_str(path).lower()
    host_lower = to_str(hostname).lower()

    def url_matches(site):
        return path_lower in to_str(site.get('webUrl')).lower()

    def host_matches(site):
        collection = site.get('siteCollection') or {}
        return host_lower in to_str(collection.get('hostname')).lower()

    for site in candidates:
        if url_matches(site) and host_matches(site):
            return site
    for site in candidates:
        if url_matches(site):
            return site
    return candidates[0]


def resolve_site(client, hostname, path, log=None):
    """
    Resolve a (hostname, path) pair to a site ID.

    Tries the direct path-addressed lookup first; on any failure falls back to a
    keyword search over sites.

    Args:
        client (GraphClient): Graph client
        hostname (str): Site hostname, e.g. 'contoso.sharepoint.com'
        path (str): Site path, e.g. '/sites/fieldwork'
        log (ActivityLog): Optional activity trace

    Returns:
        str: Site ID

    Raises:
        ResolutionError: If the direct lookup fails and the search finds nothing
    """
    note = log.add if log is not None else print
    host = to_str(hostname)
    site_path = to_str(path)

    try:
        if not host or not site_path:
            raise ResolutionError("Missing site hostname or site path", strategy="direct")
        site = client.get(f"/sites/{host}:{site_path}")
        if site.get('id'):
            return site['id']
        raise ResolutionError("Direct lookup returned a site without an id", strategy="direct")
    except ReportSyncError as e:
        note(f"[Site Resolve] Direct lookup failed: {e}")

    search_term = site_search_term(host, site_path)
    note(f"[Site Resolve] Trying discovery via /sites?search={search_term or '(empty)'} ...")
    result = client.get("/sites", params={"search": search_term})
    candidates = result.get('value') or []

    chosen = choose_site_candidate(candidates, host, site_path)
    if chosen is None:
        raise ResolutionError(
            f"Could not discover site. Verify site hostname ('{host}') and site path ('{site_path}').",
            strategy=f"direct lookup, then search '{search_term}'"
        )

    note(f"[Site Resolve] Using discovered site: {chosen.get('webUrl') or chosen.get('id')}")
    return chosen['id']


def resolve_list(client, site_id, name_or_id):
    """
    Resolve a list display name to its ID.

    GUID-shaped input is returned unchanged without any network call.

    Raises:
        ResolutionError: If no list has exactly that display name
    """
    if is_guid(name_or_id):
        return name_or_id

    # OData string literals escape a single quote by doubling it
    name = to_str(name_or_id).replace("'", "''")
    result = client.get(f"/sites/{site_id}/lists", params={"$filter": f"displayName eq '{name}'"})
    found = (result.get('value') or [None])[0]
    if not found:
        raise ResolutionError(
            f"List '{name_or_id}' not found in site.",
            strategy="displayName filter"
        )
    return found['id']


def resolve_drive(client, site_id, name_or_id):
    """
    Resolve a document library name to its drive ID.

    Matching order: GUID pass-through, exact case-insensitive name, first drive
    of type 'documentLibrary'.

    Raises:
        ResolutionError: If nothing matches; lists the available drive names
    """
    if is_guid(name_or_id):
        return name_or_id

    drives = client.get(f"/sites/{site_id}/drives").get('value') or []
    target_name = unquote(to_str(name_or_id)).lower()

    found = next((d for d in drives if to_str(d.get('name')).lower() == target_name), None)
    if found is None:
        found = next((d for d in drives if to_str(d.get('driveType')).lower() == 'documentlibrary'), None)

    if found is None:
        names = [to_str(d.get('name')) for d in drives]
        raise ResolutionError(
            f"Drive '{name_or_id}' not found. Available: {', '.join(names)}",
            strategy="name match, then first documentLibrary",
            alternatives=names
        )
    return found['id']
