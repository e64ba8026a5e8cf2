# -*- coding: utf-8 -*-
"""
Report submission for field report sync.

A submission runs strictly in order, in a single thread:

    1. probe Graph and SharePoint reachability (advisory, in parallel)
    2. resolve site, list and drive (session cache first)
    3. read the list schema
    4. pick internal names for the report fields
    5. upload every photo, one after another
    6. format the photo column value for its kind
    7. convert the captured-on time in the operational time zone
    8. assemble the payload from confirmed internal names only
    9. create exactly one list item

The first failure aborts the rest and is raised unchanged. Photos uploaded
before the failure are left in place; their names are timestamped, so a
resubmission never collides with them.
"""

from .columns import ColumnKind, format_photo_value
from .exceptions import ConfigurationError, ReportSyncError
from .file_handler import dedupe_files
from .monitoring import submission_stats
from .probes import log_probe_results, run_probes
from .uploader import upload_one
from .utils import format_datetime_for_sharepoint, now_in_zone, to_str

DEFAULT_TITLE = "Photo Report"


class ReportSubmission:
    """What the field user entered"""

    def __init__(self, title="", location="", notes="", captured_on="", files=None):
        """
        Args:
            title (str): Report title, normally one of the category options
            location (str): Location tag (e.g. village name)
            notes (str): Free-text notes
            captured_on (str): Local date/time 'YYYY-MM-DDTHH:MM' in the operational zone
            files (list): ReportFile objects in selection order
        """
        self.title = to_str(title).strip()
        self.location = to_str(location).strip()
        self.notes = to_str(notes)
        self.captured_on = to_str(captured_on).strip()
        self.files = list(files or [])


class SubmissionResult:
    """Outcome of a successful submission"""

    def __init__(self, item_id, fields, field_names, uploaded, log):
        self.item_id = item_id
        self.fields = fields
        self.field_names = field_names
        self.uploaded = uploaded
        self.log = log

    @property
    def photo_urls(self):
        return [uploaded.web_url for uploaded in self.uploaded if uploaded.web_url]


def describe_field_names(field_names, schema, location_choices):
    """One-line summary of the resolved columns for the activity trace."""
    location_mode = "choice" if location_choices else "text/other"
    photo_name = field_names['photo']
    return (
        f"Columns resolved → title: {field_names['title']}; "
        f"village: {field_names['location'] or '<none>'} ({location_mode}); "
        f"notes: {field_names['notes'] or '<none>'}; "
        f"capturedOn: {field_names['captured_on'] or '<none>'}; "
        f"photo: {photo_name} ({schema.kind_of(photo_name)})"
    )


def check_choice_values(report, location_choices, title_choices, log):
    """Warn when entered values are not among the list's configured choices."""
    if location_choices and report.location and report.location not in location_choices:
        log.warn(f"village '{report.location}' is not one of the configured choices; SharePoint may reject it.")
    if title_choices and report.title and report.title not in title_choices:
        log.warn(f"title '{report.title}' is not one of the configured category options.")


def build_fields(field_names, schema, report, photo_urls, captured_on_value, log):
    """
    Assemble the list item payload.

    Only internal names confirmed against the schema are used; logical fields
    without a column are skipped.

    Args:
        field_names (dict): logical field -> internal name (or None)
        schema (ListSchema): Schema the names came from
        report (ReportSubmission): User input
        photo_urls (list): Durable URLs in upload order
        captured_on_value (str): ISO 8601 captured-on instant
        log (ActivityLog): Activity trace

    Returns:
        dict: Payload keyed by internal name
    """
    fields = {}
    first_file_name = report.files[0].name if report.files else ""
    fields[field_names['title']] = report.title or first_file_name or DEFAULT_TITLE

    if field_names['location']:
        fields[field_names['location']] = report.location

    if field_names['notes']:
        fields[field_names['notes']] = report.notes
    elif len(photo_urls) > 1:
        log.warn("Notes field not found; additional URLs were not stored in list notes.")

    if field_names['captured_on']:
        fields[field_names['captured_on']] = captured_on_value

    photo_name = field_names['photo']
    fields[photo_name] = format_photo_value(schema.kind_of(photo_name), photo_urls)
    return fields


def submit_report(session, report, log=None):
    """
    Submit a field report: upload its photos and create its list item.

    Args:
        session (ReportSession): Signed-in session
        report (ReportSubmission): User input
        log (ActivityLog): Activity trace (a new one is created if omitted)

    Returns:
        SubmissionResult: Created item ID, payload and uploaded files

    Raises:
        ConfigurationError: No photos, no photo column, or bad captured-on value
        ResolutionError: Site, list or drive could not be resolved
        NetworkError: Transport failure
        RemoteWriteError: Graph rejected a write
    """
    config = session.config
    log = log if log is not None else session.new_log()
    files = dedupe_files(report.files)
    report.files = files

    try:
        if not files:
            raise ConfigurationError("Select at least one photo.")

        log.add("Probing network reachability...")
        graph_probe, sharepoint_probe = run_probes(config, session.http)
        log_probe_results(graph_probe, sharepoint_probe, log)

        log.add("Resolving site, list, library & columns...")
        generation = session.cache.generation
        site_id, list_id, drive_id = session.resolve_resources(log, generation)
        schema = session.load_schema(site_id, list_id, generation)

        field_names = schema.resolve_report_fields()
        location_choices = schema.choices_for(field_names['location']) if field_names['location'] else []
        title_choices = schema.choices_for(field_names['category']) if field_names['category'] else []
        session.cache.update(
            generation,
            location_choices=location_choices or None,
            title_choices=title_choices or None
        )

        if not field_names['photo']:
            raise ConfigurationError(
                "Could not find a 'PhotoUrl'/'PhotoUrL' column on the list. "
                "Check the internal name in List Settings → Columns."
            )

        log.add(describe_field_names(field_names, schema, location_choices))
        check_choice_values(report, location_choices, title_choices, log)

        # A malformed captured-on value must fail before any photo is uploaded
        captured_on_value = format_datetime_for_sharepoint(report.captured_on, config.time_zone)

        log.add(f"Uploading {len(files)} file(s)...")
        uploaded = []
        taken_names = set()
        for report_file in files:
            log.add(f"Uploading: {report_file.name} ({round(report_file.size / 1024)} KB)")
            result = upload_one(
                session.client, drive_id, config.library_folder_path, report_file, report.location,
                stamp=now_in_zone(config.time_zone), taken_names=taken_names
            )
            uploaded.append(result)
            log.add(f"Uploaded ✔ → {result.web_url or '(no url)'}")

        photo_urls = [item.web_url for item in uploaded if item.web_url]
        if schema.kind_of(field_names['photo']) == ColumnKind.HYPERLINK_OR_PICTURE and len(photo_urls) > 1:
            log.add(f"Photo column holds a single link; storing the first of {len(photo_urls)} URLs.")

        fields = build_fields(field_names, schema, report, photo_urls, captured_on_value, log)

        log.add("Creating list item with resolved field names...")
        created = session.client.post(f"/sites/{site_id}/lists/{list_id}/items", {"fields": fields})
        item_id = created.get('id') or (created.get('listItem') or {}).get('id') or "(unknown)"
        submission_stats.stats['records_created'] += 1
        log.add(f"List item created ✔ (id: {item_id})")
        log.add("All done. ✨")

        return SubmissionResult(item_id, fields, field_names, uploaded, log)

    except ReportSyncError as e:
        submission_stats.stats['failed_submissions'] += 1
        log.add(f"Error: {e}")
        raise
