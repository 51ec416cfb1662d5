"""Doc-to-code mapping: reference extraction, heuristics and confidence scoring."""

from notion_doc_sync.mapping.cache import MappingCache
from notion_doc_sync.mapping.confidence import (
    EVIDENCE,
    Evidence,
    calculate_mapping_confidence,
    triggered_evidence,
)
from notion_doc_sync.mapping.heuristics import (
    match_directory_structure,
    match_filename_patterns,
)
from notion_doc_sync.mapping.mapper import (
    DocMapper,
    build_mapping_table,
    enhance_documentation_files,
)
from notion_doc_sync.mapping.references import (
    extract_file_path_references,
    extract_function_name_references,
    is_valid_file_path,
)

__all__ = [
    "EVIDENCE",
    "DocMapper",
    "Evidence",
    "MappingCache",
    "build_mapping_table",
    "calculate_mapping_confidence",
    "enhance_documentation_files",
    "extract_file_path_references",
    "extract_function_name_references",
    "is_valid_file_path",
    "match_directory_structure",
    "match_filename_patterns",
    "triggered_evidence",
]
