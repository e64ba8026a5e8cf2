# -*- coding: utf-8 -*-
"""
File handling operations for field report sync.

This module provides the in-memory file wrapper handed to the upload engine and
the naming rules that make remote file names sortable, collision resistant and
safe for SharePoint.
"""

import os
import re

from .utils import is_debug_enabled, to_str

# Per-segment cap for the tag and base-name parts of a remote file name
MAX_SEGMENT_LENGTH = 60


class ReportFile:
    """A photo selected for a report, held in memory"""

    def __init__(self, name, content, last_modified=None):
        """
        Args:
            name (str): Original file name (as picked by the user)
            content (bytes): File content
            last_modified (float): Modification timestamp, used to spot double picks
        """
        self.name = to_str(name, "photo") or "photo"
        self.content = content
        self.last_modified = last_modified

    @classmethod
    def from_path(cls, path):
        """Read a local file into memory."""
        with open(path, 'rb') as f:
            content = f.read()
        return cls(os.path.basename(path), content, last_modified=os.path.getmtime(path))

    @property
    def size(self):
        return len(self.content)

    @property
    def key(self):
        """Identity used to ignore the same file being selected twice."""
        return f"{self.name}::{self.size}::{self.last_modified}"

    def __repr__(self):
        return f"ReportFile({self.name!r}, {self.size} bytes)"


def dedupe_files(files):
    """
    Drop files selected more than once, keeping the first pick.

    Args:
        files (list): ReportFile objects in selection order

    Returns:
        list: ReportFile objects with unique keys, order preserved
    """
    seen = set()
    unique = []
    for report_file in files:
        if report_file.key in seen:
            if is_debug_enabled():
                print(f"[!] Skipping duplicate selection: {report_file.name}")
            continue
        seen.add(report_file.key)
        unique.append(report_file)
    return unique


def sanitize_segment(segment):
    """
    Make one file-name segment safe for SharePoint.

    Trims, collapses every run of non-alphanumeric characters to a single
    hyphen, strips leading/trailing hyphens and caps the length.

    Examples:
        '  Oak Ridge / North ' -> 'Oak-Ridge-North'
        'IMG_0042 (1)'         -> 'IMG-0042-1'
    """
    sanitized = re.sub(r"[^a-zA-Z0-9]+", "-", to_str(segment).strip())
    sanitized = sanitized.strip('-')
    return sanitized[:MAX_SEGMENT_LENGTH]


def split_extension(file_name):
    """Split 'photo.JPG' into ('photo', 'JPG'); the extension may be empty."""
    dot = file_name.rfind('.')
    if dot > -1:
        return file_name[:dot], file_name[dot + 1:]
    return file_name, ""


def build_target_file_name(original_name, tag_value, stamp, taken_names=None):
    """
    Build the remote file name for an uploaded photo.

    Format: <YYYYMMDDHHMMSS>_<tag>_<base>.<ext>, with the tag and base name
    sanitized, empty segments dropped ('upload' if both are empty) and the
    extension lower-cased. When the name is already in taken_names (names
    issued earlier in the same submission), "-2", "-3", ... is appended to the
    base until it is unique; the issued name is added to the set.

    Args:
        original_name (str): Name of the file as selected
        tag_value (str): Location tag of the report (e.g. the village)
        stamp (datetime): Upload time in the operational time zone
        taken_names (set): Names already used in this submission, updated in place

    Returns:
        str: Remote file name
    """
    base, ext = split_extension(to_str(original_name, "photo"))
    timestamp = stamp.strftime("%Y%m%d%H%M%S")

    parts = [part for part in (sanitize_segment(tag_value), sanitize_segment(base)) if part]
    safe_base = "_".join(parts) if parts else "upload"
    safe_ext = f".{ext.lower()}" if ext else ""
    file_name = f"{timestamp}_{safe_base}{safe_ext}"
    if taken_names is None:
        return file_name

    counter = 1
    while file_name.lower() in taken_names:
        counter += 1
        file_name = f"{timestamp}_{safe_base}-{counter}{safe_ext}"
    taken_names.add(file_name.lower())
    return file_name
