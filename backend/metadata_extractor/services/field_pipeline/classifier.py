"""
Field type classification.
Assigns each field a semantic type from its text using ordered pattern rules.
"""
import logging
import re
from typing import Dict, List

from .fields import FieldType, MetadataField

logger = logging.getLogger(__name__)


class FieldClassifier:
    """Rule-based classifier for field text."""
    
    # Rules are checked in this order and the first match wins, so a label
    # containing both "date" and "yes" is a checkbox.
    # Checkbox words match whole words only ("DOB" is a date, not "do").
    # Date and dropdown keywords match anywhere ("Birthdate", "Preselected").
    FIELD_PATTERNS: Dict[FieldType, List[str]] = {
        FieldType.CHECKBOX: [
            r'\byes\b',
            r'\bno\b',
            r'\bdo\b',
            r'\bdoes\b',
            r'\bdo\s+not\b',
            r'\bdoes\s+not\b',
        ],
        FieldType.DATE: [
            r'date',
            r'dob',
            r'birth',
        ],
        FieldType.DROPDOWN: [
            r'select',
            r'dropdown',
        ],
    }
    
    DEFAULT_TYPE = FieldType.TEXT
    
    def __init__(self):
        """Initialize field classifier."""
        self.compiled_patterns: Dict[FieldType, List[re.Pattern]] = {
            field_type: [re.compile(pattern, re.IGNORECASE) for pattern in patterns]
            for field_type, patterns in self.FIELD_PATTERNS.items()
        }
    
    def classify_field(self, text: str) -> FieldType:
        """
        Classify field text.
        
        Args:
            text: Reconstructed field text
        
        Returns:
            The first matching field type, or ``text`` when nothing matches
        """
        if not text:
            return self.DEFAULT_TYPE
        
        for field_type, patterns in self.compiled_patterns.items():
            for pattern in patterns:
                if pattern.search(text):
                    logger.debug(f"Matched '{text}' to '{field_type.value}' with pattern '{pattern.pattern}'")
                    return field_type
        
        return self.DEFAULT_TYPE
    
    def classify_fields(self, fields: List[MetadataField]) -> List[MetadataField]:
        """
        Return copies of the fields with ``field_type`` assigned.
        
        The input records are left untouched; later manual overrides are
        never re-classified.
        """
        classified = [
            field.model_copy(update={'field_type': self.classify_field(field.text)}, deep=True)
            for field in fields
        ]
        counts: Dict[str, int] = {}
        for field in classified:
            counts[field.field_type.value] = counts.get(field.field_type.value, 0) + 1
        logger.info(f"Classified {len(classified)} fields: {counts}")
        return classified
