# -*- coding: utf-8 -*-
"""
Upload operations for field report sync.

This module handles folder provisioning for the YYYY/MM photo partitions and
the transfer of each photo: a single content PUT for small files, a resumable
upload session for large ones.
"""

import math
from urllib.parse import quote

from .exceptions import GraphApiError
from .file_handler import build_target_file_name
from .monitoring import submission_stats
from .utils import is_debug_enabled, now_in_zone, trim_slashes, to_str

# Files below this size go up in one PUT; anything at or above uses a session
SMALL_FILE_LIMIT = 4_000_000

# 5 MiB, a multiple of the 320 KiB chunk alignment Graph requires
CHUNK_SIZE = 5 * 1024 * 1024


def encode_drive_path(path):
    """Percent-encode a drive path, keeping the '/' separators."""
    return quote(path, safe="/")


def children_endpoint(drive_id, parent_path):
    """
    Children collection of a folder, addressed by path.

    The drive root has its own endpoint: '/root:/:/children' style paths
    conflate folder listing with item-content addressing and must not be built.

    Examples:
        children_endpoint('d1', '')    -> '/drives/d1/root/children'
        children_endpoint('d1', 'a/b') -> '/drives/d1/root:/a/b:/children'
    """
    clean = trim_slashes(parent_path)
    if clean:
        return f"/drives/{drive_id}/root:/{encode_drive_path(clean)}:/children"
    return f"/drives/{drive_id}/root/children"


def item_endpoint(drive_id, path):
    """Drive item addressed by path."""
    return f"/drives/{drive_id}/root:/{encode_drive_path(trim_slashes(path))}"


def normalize_folder_path(path):
    """
    Canonical form of a drive folder path.

    Segments are trimmed and empty ones dropped, so redundant or surrounding
    slashes and stray spaces never reach Graph.

    Examples:
        normalize_folder_path("/Photos//Field/")   -> "Photos/Field"
        normalize_folder_path(" Photos / Field ") -> "Photos/Field"
    """
    segments = (segment.strip() for segment in to_str(path).split('/'))
    return "/".join(segment for segment in segments if segment)


def date_partition(stamp):
    """'YYYY/MM' for a timestamp in the operational calendar."""
    return f"{stamp.year:04d}/{stamp.month:02d}"


def ensure_folder(client, drive_id, base_path, stamp):
    """
    Make sure <base_path>/YYYY/MM exists in the drive.

    Walks the path from the root. Each segment is read first; if the read is
    answered with an error status the folder is created in the parent's
    children collection with conflictBehavior 'replace'. Safe to call
    repeatedly for the same month.

    Args:
        client (GraphClient): Graph client
        drive_id (str): Drive ID
        base_path (str): Configured base folder, may be empty
        stamp (datetime): Timestamp in the operational time zone

    Returns:
        str: The 'YYYY/MM' suffix for composing the final file path

    Raises:
        RemoteWriteError: If a folder cannot be created
        NetworkError: On transport failure
    """
    partition = date_partition(stamp)
    combined = normalize_folder_path(f"{to_str(base_path)}/{partition}")

    parent_path = ""
    for segment in combined.split('/'):
        current_path = f"{parent_path}/{segment}" if parent_path else segment

        try:
            client.get(item_endpoint(drive_id, current_path))
            if is_debug_enabled():
                print(f"[✓] Folder already exists: {current_path}")
        except GraphApiError:
            if is_debug_enabled():
                print(f"[+] Creating folder: {current_path}")
            client.post(children_endpoint(drive_id, parent_path), {
                "name": segment,
                "folder": {},
                "@microsoft.graph.conflictBehavior": "replace"
            })
            submission_stats.stats['folders_created'] += 1

        parent_path = current_path

    return partition


class UploadedFile:
    """A photo after transfer: where it went and its durable URL"""

    def __init__(self, source, remote_path, web_url, item=None, chunks=0):
        self.source = source
        self.remote_path = remote_path
        self.web_url = web_url
        self.item = item or {}
        self.chunks = chunks

    def __repr__(self):
        return f"UploadedFile({self.remote_path!r}, web_url={self.web_url!r})"


def iter_chunk_ranges(total_size, chunk_size=CHUNK_SIZE):
    """
    Yield (start, end) byte ranges, end exclusive, covering [0, total_size).

    A file of size S yields ceil(S / chunk_size) contiguous ranges.
    """
    start = 0
    while start < total_size:
        end = min(start + chunk_size, total_size)
        yield start, end
        start = end


def resumable_upload(client, drive_id, target_path, content, chunk_size=CHUNK_SIZE):
    """
    Upload a large file through an upload session.

    The cursor only advances after a chunk is accepted; any rejected chunk
    raises RemoteWriteError with the response body attached. The session's
    completion response is not used for the URL: the item is read back by path.

    Args:
        client (GraphClient): Graph client
        drive_id (str): Drive ID
        target_path (str): Full remote path of the file
        content (bytes): File content
        chunk_size (int): Bytes per chunk

    Returns:
        tuple: (drive item dict, number of chunks sent)
    """
    total_size = len(content)
    session = client.create_upload_session(
        f"{item_endpoint(drive_id, target_path)}:/createUploadSession",
        {"item": {"@microsoft.graph.conflictBehavior": "rename"}}
    )
    upload_url = session.get('uploadUrl')
    if not upload_url:
        raise GraphApiError("Upload session response did not include an uploadUrl",
                            body=str(session), endpoint=target_path)

    if is_debug_enabled():
        print(f"[DEBUG] Upload session created. Chunk size: {chunk_size:,} bytes, "
              f"{math.ceil(total_size / chunk_size)} chunk(s)")

    chunks = 0
    for start, end in iter_chunk_ranges(total_size, chunk_size):
        client.put_chunk(upload_url, content[start:end], start, end, total_size)
        chunks += 1
        if is_debug_enabled():
            print(f"Uploaded {end} bytes from {total_size} bytes ... {end/total_size*100:.2f}%")

    final_item = client.get(item_endpoint(drive_id, target_path))
    return final_item, chunks


def upload_one(client, drive_id, base_path, report_file, tag_value, stamp=None, time_zone=None,
               taken_names=None):
    """
    Upload one photo into its date-partitioned folder.

    Args:
        client (GraphClient): Graph client
        drive_id (str): Drive ID
        base_path (str): Configured base folder
        report_file (ReportFile): File to upload
        tag_value (str): Location tag, used in the remote file name
        stamp (datetime): Upload time; defaults to now in the operational zone
        time_zone (str): Operational time zone used when stamp is omitted
        taken_names (set): Remote names already issued in this submission

    Returns:
        UploadedFile: Remote path and durable URL

    Raises:
        RemoteWriteError: If Graph rejects a write
        NetworkError: On transport failure
    """
    if stamp is None:
        stamp = now_in_zone(time_zone or client.config.time_zone)

    partition = ensure_folder(client, drive_id, base_path, stamp)
    file_name = build_target_file_name(report_file.name, tag_value, stamp, taken_names)
    target_path = "/".join(part for part in (normalize_folder_path(base_path), partition, file_name) if part)

    if report_file.size < SMALL_FILE_LIMIT:
        item = client.put_content(f"{item_endpoint(drive_id, target_path)}:/content", report_file.content)
        chunks = 0
    else:
        item, chunks = resumable_upload(client, drive_id, target_path, report_file.content)

    submission_stats.record_upload(report_file.size, chunks)
    return UploadedFile(report_file, target_path, item.get('webUrl'), item=item, chunks=chunks)
