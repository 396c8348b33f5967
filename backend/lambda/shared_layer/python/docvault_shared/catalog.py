"""docvault_shared.catalog — Static document catalog.

Maps each document type to its object key in the private bucket and to a
sensitivity class. The sensitivity drives the access policy; it is declared
here and never derived from the storage path.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Iterator, Optional


class Sensitivity(str, Enum):
    PUBLIC = "public"
    RESTRICTED = "restricted"


@dataclass(frozen=True)
class DocumentEntry:
    doc_type: str
    storage_path: str
    sensitivity: Sensitivity
    # Signed link carries an attachment disposition (browser download).
    force_download: bool = False

    @property
    def is_public(self) -> bool:
        return self.sensitivity is Sensitivity.PUBLIC


DEFAULT_ENTRIES: tuple[DocumentEntry, ...] = (
    DocumentEntry("cv", "cv.pdf", Sensitivity.PUBLIC, force_download=True),
    DocumentEntry("diplomas", "diplomes.pdf", Sensitivity.RESTRICTED),
    DocumentEntry("certifications", "certifications.pdf", Sensitivity.RESTRICTED),
    DocumentEntry("motivation", "lettre_motivation.pdf", Sensitivity.RESTRICTED),
    DocumentEntry("portfolio", "presentation_portfolio.pdf", Sensitivity.RESTRICTED),
)


class DocumentCatalog:
    """Total, immutable mapping of document type -> entry."""

    def __init__(self, entries: Iterable[DocumentEntry]) -> None:
        table: Dict[str, DocumentEntry] = {}
        paths: set[str] = set()
        for entry in entries:
            if entry.doc_type in table:
                raise ValueError(f"Duplicate document type: {entry.doc_type}")
            if entry.storage_path in paths:
                raise ValueError(f"Duplicate storage path: {entry.storage_path}")
            table[entry.doc_type] = entry
            paths.add(entry.storage_path)
        self._entries = table

    def lookup(self, doc_type: object) -> Optional[DocumentEntry]:
        """Return the entry for `doc_type`, or None when it is not catalogued."""
        if not isinstance(doc_type, str):
            return None
        return self._entries.get(doc_type)

    def is_known(self, doc_type: object) -> bool:
        return self.lookup(doc_type) is not None

    def doc_types(self) -> tuple[str, ...]:
        return tuple(self._entries)

    def __iter__(self) -> Iterator[DocumentEntry]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)


DEFAULT_CATALOG = DocumentCatalog(DEFAULT_ENTRIES)
