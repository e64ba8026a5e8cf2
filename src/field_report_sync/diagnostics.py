# -*- coding: utf-8 -*-
"""
Diagnostics run for field report sync.

Walks the same path a submission takes (configuration, probes, token,
resolution, schema) without uploading or writing anything, and collects what
it found into a report an operator can read when a submission fails.
"""

from .columns import format_photo_value
from .exceptions import ReportSyncError
from .probes import run_probes
from .uploader import children_endpoint
from .utils import format_datetime_for_sharepoint, format_datetime_local, now_in_zone

SAMPLE_PHOTO_URLS = [
    "https://contoso/img-a.jpg",
    "https://contoso/img-b.jpg",
    "https://contoso/img-c.jpg",
]


def build_sample_fields(field_names, schema, time_zone):
    """Payload preview using the same formatting as a real submission."""
    sample = {field_names['title']: "TEST – Sample Multi Photo"}
    if field_names['location']:
        sample[field_names['location']] = "SampleVillage"
    if field_names['notes']:
        sample[field_names['notes']] = "Example note"
    if field_names['captured_on']:
        local_now = format_datetime_local(now_in_zone(time_zone), time_zone)
        sample[field_names['captured_on']] = format_datetime_for_sharepoint(local_now, time_zone)
    if field_names['photo']:
        sample[field_names['photo']] = format_photo_value(schema.kind_of(field_names['photo']), SAMPLE_PHOTO_URLS)
    return sample


def run_diagnostics(session, log=None):
    """
    Check configuration, reachability, authentication and schema resolution.

    Never raises; the first failure is recorded under 'error'.

    Args:
        session (ReportSession): Session to diagnose
        log (ActivityLog): Activity trace (a new one is created if omitted)

    Returns:
        dict: Diagnostics report
    """
    config = session.config
    log = log if log is not None else session.new_log()
    report = {}

    try:
        log.add("[Diagnostics] Checking configuration...")
        missing = config.missing_settings()
        report['config_ok'] = not missing
        report['config_issues'] = [f"Missing/empty setting: {name}" for name in missing]
        report['config_warnings'] = config.shape_warnings()
        report['auth_flow'] = "client credentials" if config.uses_client_credentials else "interactive (silent first)"

        log.add("[Diagnostics] Probing network reachability (Graph & SharePoint)...")
        graph_probe, sharepoint_probe = run_probes(config, session.http)
        report['graph_api_url'] = config.graph_api_url
        report['graph_reachable'] = graph_probe
        report['sharepoint_reachable'] = sharepoint_probe

        log.add("[Diagnostics] Acquiring token...")
        report['token_received'] = bool(session.token_provider.get_access_token())

        log.add("[Diagnostics] Resolve site/list/drive & columns...")
        site_id, list_id, drive_id = session.resolve_resources(log)
        schema = session.load_schema(site_id, list_id)
        field_names = schema.resolve_report_fields()
        report.update({'site_id': site_id, 'list_id': list_id, 'drive_id': drive_id})
        report['resolved_fields'] = dict(
            field_names,
            photo_kind=schema.kind_of(field_names['photo']) if field_names['photo'] else "<missing>",
            title_choices=schema.choices_for(field_names['category']) if field_names['category'] else [],
            location_choices=schema.choices_for(field_names['location']) if field_names['location'] else []
        )

        if not config.uses_client_credentials:
            log.add("[Diagnostics] Graph client smoke test: /me?$select=id,displayName ...")
            me = session.client.get("/me", params={"$select": "id,displayName"})
            report['me'] = {'id': me.get('id'), 'display_name': me.get('displayName')}

        report['path_tests'] = {
            'root_children_path': children_endpoint(drive_id, ""),
            'nested_children_path': children_endpoint(drive_id, "a/b"),
        }
        report['sample_fields'] = build_sample_fields(field_names, schema, config.time_zone)

        log.add("[Diagnostics] Completed successfully ✅")
    except ReportSyncError as e:
        log.add(f"[Diagnostics] Failed: {e}")
        report['error'] = str(e)

    return report
