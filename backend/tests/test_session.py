# backend/tests/test_session.py
"""
Tests for FieldSession and DocumentSessionStore.

These tests verify:
1. Page navigation is clamped to [1, max page]
2. Manual edits change type/annotations but never page numbers
3. The export projection drops pageNumber and keeps everything else
"""

import json

import pytest
from pydantic import ValidationError

from metadata_extractor.services.field_pipeline import (
    BoundingPoint,
    DocumentSessionStore,
    FieldSession,
    FieldType,
    FieldUpdate,
    MetadataField,
)


def make_fields():
    return [
        MetadataField(page_number=1, text="Patient Name", bounding_box=[BoundingPoint(x=1, y=2)]),
        MetadataField(page_number=2, text="Date of Birth", field_type=FieldType.DATE),
        MetadataField(page_number=3, text="Do you smoke?", field_type=FieldType.CHECKBOX),
        MetadataField(page_number=2, text="Address"),
    ]


@pytest.fixture
def session() -> FieldSession:
    return FieldSession(make_fields(), document_id='doc-1')


# =============================================================================
# Tests: Pagination
# =============================================================================


class TestPagination:
    """Page bounds and navigation."""
    
    def test_max_page_number(self, session):
        assert session.max_page_number == 3
    
    def test_max_page_number_empty(self):
        assert FieldSession([]).max_page_number == 1
    
    def test_max_page_number_without_page_numbers(self):
        assert FieldSession([MetadataField(text="x")]).max_page_number == 1
    
    def test_starts_on_first_page(self, session):
        assert session.current_page == 1
    
    def test_next_from_last_page_stays(self, session):
        session.go_to_page(3)
        assert session.next_page() == 3
        assert session.current_page == 3
    
    def test_previous_from_first_page_stays(self, session):
        assert session.previous_page() == 1
        assert session.current_page == 1
    
    def test_next_and_previous(self, session):
        assert session.next_page() == 2
        assert session.next_page() == 3
        assert session.previous_page() == 2
    
    @pytest.mark.parametrize("page, expected", [(-4, 1), (0, 1), (2, 2), (99, 3)])
    def test_go_to_page_clamps(self, session, page, expected):
        assert session.go_to_page(page) == expected
    
    def test_fields_on_page_keep_sequence_indices(self, session):
        entries = session.fields_on_page(2)
        assert [index for index, _ in entries] == [1, 3]
        assert [field.text for _, field in entries] == ["Date of Birth", "Address"]
    
    def test_fields_on_current_page(self, session):
        assert [index for index, _ in session.fields_on_page()] == [0]


# =============================================================================
# Tests: Manual Edits
# =============================================================================


class TestUpdateField:
    """Overrides and annotations."""
    
    def test_override_type(self, session):
        field = session.update_field(0, FieldUpdate(field_type=FieldType.DROPDOWN))
        assert field.field_type == FieldType.DROPDOWN
        assert session.fields[0].field_type == FieldType.DROPDOWN
    
    def test_override_is_not_reclassified(self, session):
        session.update_field(1, FieldUpdate(field_type='text'))
        assert session.fields[1].field_type == FieldType.TEXT
        assert session.fields[1].text == "Date of Birth"
    
    def test_length_and_values(self, session):
        session.update_field(0, FieldUpdate(length='40', values='Jane, John'))
        field = session.fields[0]
        assert (field.length, field.values) == ('40', 'Jane, John')
        assert field.field_type == FieldType.TEXT
    
    def test_annotations_merge(self, session):
        session.update_field(0, FieldUpdate(annotations={'required': 'yes'}))
        session.update_field(0, FieldUpdate(annotations={'hint': 'as on ID'}))
        assert session.fields[0].annotations == {'required': 'yes', 'hint': 'as on ID'}
    
    def test_update_from_camel_case_payload(self, session):
        update = FieldUpdate.model_validate({'fieldType': 'checkbox'})
        assert session.update_field(3, update).field_type == FieldType.CHECKBOX
    
    def test_invalid_type_rejected(self):
        with pytest.raises(ValidationError):
            FieldUpdate(field_type='signature')
    
    @pytest.mark.parametrize("index", [-1, 4, 100])
    def test_out_of_range(self, session, index):
        with pytest.raises(IndexError):
            session.update_field(index, FieldUpdate(length='1'))
    
    def test_page_number_is_immutable(self, session):
        with pytest.raises(ValidationError):
            session.fields[0].page_number = 5
        assert session.fields[0].page_number == 1


# =============================================================================
# Tests: Export Projection
# =============================================================================


class TestExport:
    """metadata.json projection."""
    
    def test_drops_page_number_and_keeps_the_rest(self, session):
        session.update_field(2, FieldUpdate(length='1', values='Yes/No', annotations={'group': 'health'}))
        
        projection = session.export_projection()
        
        assert all('pageNumber' not in record for record in projection)
        assert projection[0] == {
            'text': 'Patient Name',
            'boundingBox': [{'x': 1, 'y': 2}],
            'fieldType': 'text',
        }
        assert projection[2] == {
            'text': 'Do you smoke?',
            'boundingBox': [],
            'fieldType': 'checkbox',
            'length': '1',
            'values': 'Yes/No',
            'annotations': {'group': 'health'},
        }
    
    def test_json_round_trip_keeps_count(self, session):
        exported = json.loads(session.export_json())
        assert isinstance(exported, list)
        assert len(exported) == len(session.fields)
    
    def test_export_does_not_mutate_session(self, session):
        before = [field.model_dump() for field in session.fields]
        
        session.export_projection()
        session.export_json()
        
        assert [field.model_dump() for field in session.fields] == before
        assert [field.page_number for field in session.fields] == [1, 2, 3, 2]
    
    def test_empty_export(self):
        assert FieldSession([]).export_json() == '[]'


# =============================================================================
# Tests: Session Store
# =============================================================================


class TestDocumentSessionStore:
    """In-memory session registry."""
    
    def test_create_and_get(self):
        store = DocumentSessionStore(max_sessions=3)
        session = store.create(make_fields(), file_url='/uploads/a.pdf')
        
        assert store.get(session.document_id) is session
        assert session.file_url == '/uploads/a.pdf'
        assert len(store) == 1
    
    def test_unknown_id(self):
        assert DocumentSessionStore().get('missing') is None
    
    def test_oldest_session_evicted(self):
        store = DocumentSessionStore(max_sessions=2)
        first = store.create([])
        second = store.create([])
        third = store.create([])
        
        assert store.get(first.document_id) is None
        assert store.get(second.document_id) is second
        assert store.get(third.document_id) is third
        assert len(store) == 2
    
    def test_clear(self):
        store = DocumentSessionStore()
        store.create([])
        store.clear()
        assert len(store) == 0
