"""Tests for list schema introspection and field selection."""

import itertools
import json

from field_report_sync.columns import (
    ColumnDescriptor,
    ColumnKind,
    FieldAliasIndex,
    ListSchema,
    clean_choices,
    detect_kind,
    format_photo_value,
    introspect,
)

from conftest import column_payload


def schema_from(columns):
    return ListSchema([ColumnDescriptor.from_graph(column) for column in columns])


class TestDetectKind:
    """Tests for facet-based kind detection."""

    def test_empty_facet_counts_as_present(self):
        assert detect_kind({'name': 'Notes', 'text': {}}) == ColumnKind.TEXT

    def test_hyperlink_column(self):
        assert detect_kind({'name': 'PhotoUrl', 'hyperlinkOrPicture': {'isPicture': False}}) == \
            ColumnKind.HYPERLINK_OR_PICTURE

    def test_lookup_column(self):
        assert detect_kind({'name': 'Author', 'lookup': {'listId': 'abc'}}) == ColumnKind.LOOKUP

    def test_calculated_column_is_unknown(self):
        assert detect_kind({'name': 'Total', 'calculated': {'formula': '=1'}}) == ColumnKind.UNKNOWN

    def test_null_facet_is_ignored(self):
        assert detect_kind({'name': 'Flag', 'text': None, 'boolean': {}}) == ColumnKind.BOOLEAN


class TestChoices:
    """Tests for choice cleanup."""

    def test_trims_drops_empty_and_dedupes(self):
        assert clean_choices([' Oak Ridge ', 'Pine Hill', 'Oak Ridge', '', '  ']) == ['Oak Ridge', 'Pine Hill']

    def test_missing_choices(self):
        assert clean_choices(None) == []

    def test_descriptor_reads_choices_of_its_kind(self):
        column = ColumnDescriptor.from_graph(
            {'name': 'Tags', 'multiChoice': {'choices': ['a', 'b', 'a']}}
        )
        assert column.kind == ColumnKind.MULTI_CHOICE
        assert column.choices == ['a', 'b']


class TestFieldAliasIndex:
    """Tests for the normalized alias index."""

    def test_spelling_variants_resolve_to_internal_name(self):
        index = FieldAliasIndex()
        index.register_column('PhotoUrl', 'Photo URL')

        for spelling in ["photo url", "PHOTO URL", " Photo URL ", "photo_url", "Photo-URL", "PhotoUrl", "PhotoURL"]:
            assert index.resolve(spelling) == 'PhotoUrl', spelling

    def test_encoded_internal_name_reached_through_display_name(self):
        index = FieldAliasIndex()
        index.register_column('Captured_x0020_On', 'Captured On')

        assert index.resolve('CapturedOn') == 'Captured_x0020_On'
        assert index.resolve('Captured On') == 'Captured_x0020_On'
        assert index.resolve('Captured_On') == 'Captured_x0020_On'

    def test_unknown_name(self):
        index = FieldAliasIndex()
        index.register_column('Title', 'Title')
        assert index.resolve('Village') is None
        assert index.resolve('') is None
        assert 'Village' not in index

    def test_first_registration_wins(self):
        index = FieldAliasIndex()
        assert index.register('Village', 'Village') is True
        assert index.register(' village ', 'Village0') is False
        assert index.resolve('VILLAGE') == 'Village'


class TestSelectField:
    """Tests for candidate selection against the schema."""

    def test_resolves_report_fields(self):
        schema = schema_from(column_payload()['value'])

        fields = schema.resolve_report_fields()

        assert fields == {
            'title': 'Title',
            'location': 'Village',
            'notes': 'Notes',
            'captured_on': 'Captured_x0020_On',
            'photo': 'PhotoUrl',
            'category': 'CategoryOptions',
        }

    def test_candidates_tried_in_priority_order(self):
        schema = schema_from([
            {'name': 'Description', 'displayName': 'Description', 'text': {}},
            {'name': 'Note', 'displayName': 'Note', 'text': {}},
        ])
        assert schema.select_field(["Notes", "Note", "Description"]) == 'Note'

    def test_hidden_column_never_selected(self):
        schema = schema_from([{'name': '_Hidden', 'displayName': 'Hidden', 'text': {}, 'hidden': True}])
        assert schema.select_field(['_Hidden']) is None

    def test_read_only_skipped_when_writable_required(self):
        schema = schema_from(column_payload()['value'])
        assert schema.select_field(['Modified']) == 'Modified'
        assert schema.select_field(['Modified'], require_writable=True) is None

    def test_writable_selection_never_returns_read_only_or_hidden(self):
        schema = schema_from(column_payload()['value'])
        names = ['Title', 'Modified', 'CategoryOptions', '_HiddenNotes', 'Notes', 'PhotoUrl']

        for candidates in itertools.permutations(names, 3):
            hit = schema.select_field(list(candidates), require_writable=True)
            if hit is not None:
                assert schema.columns_by_name[hit].writable, candidates

    def test_missing_photo_column(self):
        schema = schema_from([{'name': 'Title', 'displayName': 'Title', 'text': {}}])
        assert schema.resolve_report_fields()['photo'] is None

    def test_title_defaults_to_builtin_name(self):
        schema = schema_from([])
        assert schema.resolve_report_fields()['title'] == 'Title'

    def test_duplicate_display_name_keeps_first_listed_column(self):
        # Open question: a read-only column listed first shadows a writable
        # column with the same display name, so nothing is selected.
        schema = schema_from([
            {'name': 'LegacyVillage', 'displayName': 'Village', 'text': {}, 'readOnly': True},
            {'name': 'VillageNew', 'displayName': 'Village', 'text': {}},
        ])
        assert schema.alias_index.resolve('Village') == 'LegacyVillage'
        assert schema.select_field(['Village'], require_writable=True) is None


class TestIntrospect:
    """Tests for reading the schema from Graph."""

    def test_single_columns_call(self, site_graph):
        schema = introspect(site_graph, 'site-1', 'list-1')

        assert [call[1] for call in site_graph.calls] == ["/sites/site-1/lists/list-1/columns"]
        assert schema.kind_of('PhotoUrl') == ColumnKind.TEXT
        assert schema.kind_of('Captured_x0020_On') == ColumnKind.DATE_TIME
        assert schema.choices_for('Village') == ['Oak Ridge', 'Pine Hill']
        assert schema.choices_for('CategoryOptions') == ['Roof damage', 'Fence']

    def test_empty_listing(self, fake_graph):
        fake_graph.resources["/sites/s/lists/l/columns"] = {}
        schema = introspect(fake_graph, 's', 'l')
        assert len(schema.alias_index) == 0
        assert schema.kind_of('Anything') == ColumnKind.UNKNOWN


class TestFormatPhotoValue:
    """Tests for photo column formatting."""

    URLS = ["https://contoso/a.jpg", "https://contoso/b.jpg", "https://contoso/c.jpg"]

    def test_hyperlink_stores_first_url(self):
        assert format_photo_value(ColumnKind.HYPERLINK_OR_PICTURE, self.URLS) == self.URLS[0]

    def test_hyperlink_without_urls(self):
        assert format_photo_value(ColumnKind.HYPERLINK_OR_PICTURE, []) == ""

    def test_text_stores_json_array_in_order(self):
        value = format_photo_value(ColumnKind.TEXT, self.URLS)
        assert json.loads(value) == self.URLS

    def test_unknown_kind_treated_as_text(self):
        assert format_photo_value(ColumnKind.UNKNOWN, ["u"]) == '["u"]'
