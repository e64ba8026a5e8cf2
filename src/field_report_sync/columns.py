# -*- coding: utf-8 -*-
"""
List schema introspection for field report sync.

SharePoint columns have both display names (what users see and can rename) and
internal names (what the API accepts). This module reads the list's column
metadata once, indexes every reasonable spelling of each column, and picks the
internal name to write for each logical report field.
"""

import json
import re

from .utils import is_debug_enabled, to_str


class ColumnKind:
    """Column kinds, named after the Graph columnDefinition type facets"""

    HYPERLINK_OR_PICTURE = 'hyperlinkOrPicture'
    TEXT = 'text'
    NUMBER = 'number'
    DATE_TIME = 'dateTime'
    BOOLEAN = 'boolean'
    CHOICE = 'choice'
    MULTI_CHOICE = 'multiChoice'
    LOOKUP = 'lookup'
    UNKNOWN = 'unknown'

    # Facet probe order; the first facet present decides the kind
    DETECTION_ORDER = [
        HYPERLINK_OR_PICTURE, TEXT, NUMBER, DATE_TIME, BOOLEAN, CHOICE, MULTI_CHOICE, LOOKUP,
    ]

    CHOICE_KINDS = (CHOICE, MULTI_CHOICE)


# Human names tried, in priority order, for each logical report field
FIELD_CANDIDATES = {
    'title': ["Title"],
    'location': ["Village"],
    'notes': ["Notes", "Note", "Description"],
    'captured_on': ["CapturedOn", "Captured On", "Captured_On"],
    'photo': ["PhotoUrl", "PhotoUrL", "Photo URL", "Photo_Url"],
    'category': ["CategoryOptions", "Category Options", "Category"],
}


def normalize_key(value):
    """Trim and lower-case a lookup key."""
    return to_str(value).strip().lower()


def strip_non_alphanumeric(value):
    return re.sub(r"[^a-z0-9]", "", to_str(value), flags=re.IGNORECASE)


def clean_choices(raw_choices):
    """Trim choice strings, drop empties, de-duplicate keeping first occurrence."""
    cleaned = [to_str(choice).strip() for choice in (raw_choices or [])]
    return list(dict.fromkeys(choice for choice in cleaned if choice))


def detect_kind(column):
    """
    Classify a Graph column definition by which type facet it carries.

    Facets are detected by presence: Graph sends empty objects such as
    "text": {} for columns without extra settings.
    """
    for kind in ColumnKind.DETECTION_ORDER:
        if column.get(kind) is not None:
            return kind
    return ColumnKind.UNKNOWN


class ColumnDescriptor:
    """One list column as discovered from the columns endpoint"""

    def __init__(self, internal_name, display_name="", kind=ColumnKind.UNKNOWN,
                 read_only=False, hidden=False, choices=None):
        self.internal_name = internal_name
        self.display_name = display_name
        self.kind = kind
        self.read_only = read_only
        self.hidden = hidden
        self.choices = list(choices or [])

    @classmethod
    def from_graph(cls, column):
        """Build a descriptor from a Graph columnDefinition resource."""
        kind = detect_kind(column)
        choices = []
        if kind in ColumnKind.CHOICE_KINDS:
            choices = clean_choices((column.get(kind) or {}).get('choices'))
        return cls(
            internal_name=to_str(column.get('name')),
            display_name=to_str(column.get('displayName')),
            kind=kind,
            read_only=bool(column.get('readOnly')),
            hidden=bool(column.get('hidden')),
            choices=choices
        )

    @property
    def writable(self):
        return not self.read_only and not self.hidden

    def __repr__(self):
        return f"ColumnDescriptor({self.internal_name!r}, kind={self.kind!r})"


class FieldAliasIndex:
    """
    Ordered map from normalized column spellings to internal names.

    Collision policy: the first registration of a key wins. Columns are
    registered in the order the list reports them, so a decorative duplicate
    later in the listing can never shadow an earlier column.
    """

    def __init__(self):
        self._aliases = {}

    def register(self, key, internal_name):
        """
        Register one spelling.

        Returns:
            bool: True if the key was new, False if an earlier column holds it
        """
        normalized = normalize_key(key)
        if not normalized or normalized in self._aliases:
            return False
        self._aliases[normalized] = internal_name
        return True

    def register_column(self, internal_name, display_name=""):
        """Register all variants of a column's internal and display names."""
        self.register(internal_name, internal_name)
        self.register(internal_name.replace('_', ' '), internal_name)
        self.register(strip_non_alphanumeric(internal_name), internal_name)
        if display_name:
            self.register(display_name, internal_name)
            self.register(display_name.replace('_', ' '), internal_name)
            self.register(re.sub(r"\s+", "", display_name), internal_name)
            self.register(strip_non_alphanumeric(display_name), internal_name)

    def resolve(self, name):
        """
        Look up a human name.

        The exact normalized spelling is tried first, then its alphanumeric-only
        form, so 'Photo URL', 'photo_url' and 'PhotoURL' all land on the same column.

        Returns:
            str: Internal name, or None
        """
        key = normalize_key(name)
        if key in self._aliases:
            return self._aliases[key]
        compact = strip_non_alphanumeric(key)
        return self._aliases.get(compact) if compact else None

    def __contains__(self, name):
        return self.resolve(name) is not None

    def __len__(self):
        return len(self._aliases)

    def keys(self):
        return list(self._aliases)


def select_field(alias_index, columns_by_name, candidates, require_writable=False):
    """
    Return the internal name of the first usable column among the candidates.

    Args:
        alias_index (FieldAliasIndex): Index built by introspect()
        columns_by_name (dict): internal name -> ColumnDescriptor
        candidates (list): Human names in priority order
        require_writable (bool): Also skip read-only columns

    Returns:
        str: Internal name, or None when no candidate is usable
    """
    for candidate in candidates:
        hit = alias_index.resolve(candidate)
        if not hit:
            continue
        column = columns_by_name.get(hit)
        if column is not None:
            if column.hidden:
                continue
            if require_writable and column.read_only:
                continue
        return hit
    return None


class ListSchema:
    """Alias index plus column descriptors for one list"""

    def __init__(self, columns=None):
        self.alias_index = FieldAliasIndex()
        self.columns_by_name = {}
        for column in columns or []:
            self.add(column)

    def add(self, column):
        if not column.internal_name or column.internal_name in self.columns_by_name:
            return
        self.columns_by_name[column.internal_name] = column
        self.alias_index.register_column(column.internal_name, column.display_name)

    def select_field(self, candidates, require_writable=False):
        return select_field(self.alias_index, self.columns_by_name, candidates, require_writable)

    def kind_of(self, internal_name):
        column = self.columns_by_name.get(internal_name)
        return column.kind if column else ColumnKind.UNKNOWN

    def choices_for(self, internal_name):
        column = self.columns_by_name.get(internal_name)
        return list(column.choices) if column else []

    def resolve_report_fields(self):
        """
        Pick the internal name for every logical report field.

        Returns:
            dict: logical field -> internal name (or None); 'title' falls back
            to 'Title', the name every SharePoint list carries
        """
        return {
            'title': self.select_field(FIELD_CANDIDATES['title'], require_writable=True) or "Title",
            'location': self.select_field(FIELD_CANDIDATES['location'], require_writable=True),
            'notes': self.select_field(FIELD_CANDIDATES['notes'], require_writable=True),
            'captured_on': self.select_field(FIELD_CANDIDATES['captured_on'], require_writable=True),
            'photo': self.select_field(FIELD_CANDIDATES['photo'], require_writable=True),
            'category': self.select_field(FIELD_CANDIDATES['category']),
        }


def introspect(client, site_id, list_id):
    """
    Fetch the list's columns in one call and build its schema.

    Args:
        client (GraphClient): Graph client
        site_id (str): Site ID
        list_id (str): List ID

    Returns:
        ListSchema: Alias index and descriptors, in column listing order
    """
    result = client.get(f"/sites/{site_id}/lists/{list_id}/columns")
    schema = ListSchema()
    for raw in result.get('value') or []:
        column = ColumnDescriptor.from_graph(raw)
        schema.add(column)
        if is_debug_enabled():
            print(f"[=] Column mapping: '{column.display_name}' -> '{column.internal_name}' ({column.kind})")

    if is_debug_enabled():
        print(f"[OK] Indexed {len(schema.columns_by_name)} columns under {len(schema.alias_index)} aliases")
    return schema


def format_photo_value(kind, urls):
    """
    Format photo URLs for the photo column.

    A hyperlink/picture column holds a single link, so only the first URL is
    stored; any other kind (text, multi-line text, ...) gets the full ordered
    list as a JSON array string.
    """
    if kind == ColumnKind.HYPERLINK_OR_PICTURE:
        return urls[0] if urls else ""
    return json.dumps(list(urls))
