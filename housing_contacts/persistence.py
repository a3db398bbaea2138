"""
Persistence collaborator for institutions and their stored contacts.

InstitutionStore is the interface the service layer talks to. Two stores
ship with the package: an in-memory store for tests and library use, and a
JSON file store used by the CLI.

Institution lookup tries every name variant for an exact match on the
database-normalized name before falling back to a fuzzy partial match.
"""

import json
import uuid
from abc import ABC, abstractmethod
from dataclasses import asdict
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from fuzzywuzzy import fuzz
from loguru import logger

from config.settings import FUZZY_MATCH_THRESHOLD, STORE_PATH
from housing_contacts.exceptions import PersistenceError
from housing_contacts.models import Institution, StoredContact
from housing_contacts.name_normalizer import normalize_for_database


class InstitutionStore(ABC):
    """Storage interface for institutions and contacts."""

    fuzzy_threshold = FUZZY_MATCH_THRESHOLD

    @abstractmethod
    def all_institutions(self) -> List[Institution]:
        ...

    @abstractmethod
    def create_institution(self, name: str, domain: Optional[str], housing_pages: Iterable[str]) -> Institution:
        ...

    @abstractmethod
    def list_existing_contacts(self, institution_id: str) -> List[StoredContact]:
        ...

    @abstractmethod
    def insert_contacts(self, institution_id: str, contacts: Iterable[StoredContact]) -> int:
        ...

    def find_institution(self, name_variants: Iterable[str]) -> Optional[Institution]:
        """
        Look up an institution by any of its name variants.

        Args:
            name_variants: Raw or normalized names; each is database-normalized

        Returns:
            The matching institution, or None
        """
        normalized = []
        for variant in name_variants:
            value = normalize_for_database(variant)
            if value and value not in normalized:
                normalized.append(value)

        institutions = self.all_institutions()
        if not normalized or not institutions:
            return None

        for variant in normalized:
            for institution in institutions:
                if normalize_for_database(institution.name) == variant:
                    logger.info(f"Found existing institution (exact match): {institution.name}")
                    return institution

        best, best_score = None, 0
        for variant in normalized:
            if len(variant) <= 3:
                continue
            for institution in institutions:
                score = fuzz.partial_ratio(variant, normalize_for_database(institution.name))
                if score >= self.fuzzy_threshold and score > best_score:
                    best, best_score = institution, score

        if best:
            logger.info(f"Found existing institution (partial match {best_score}%): {best.name}")
        return best


class InMemoryInstitutionStore(InstitutionStore):
    """Store backed by plain dictionaries; lost when the process exits."""

    def __init__(self):
        self.institutions: Dict[str, Institution] = {}
        self.contacts: List[StoredContact] = []

    def all_institutions(self) -> List[Institution]:
        return list(self.institutions.values())

    def create_institution(self, name: str, domain: Optional[str], housing_pages: Iterable[str]) -> Institution:
        institution = Institution(
            id=uuid.uuid4().hex,
            name=normalize_for_database(name),
            website=f"https://{domain}" if domain else None,
            housing_pages=list(housing_pages),
        )
        self.institutions[institution.id] = institution
        logger.info(f"Created institution: {institution.name}")
        return institution

    def list_existing_contacts(self, institution_id: str) -> List[StoredContact]:
        return [contact for contact in self.contacts if contact.institution_id == institution_id]

    def insert_contacts(self, institution_id: str, contacts: Iterable[StoredContact]) -> int:
        if institution_id not in self.institutions:
            raise PersistenceError(f"Unknown institution: {institution_id}")

        inserted = 0
        for contact in contacts:
            contact.institution_id = institution_id
            contact.id = contact.id or uuid.uuid4().hex
            self.contacts.append(contact)
            inserted += 1

        logger.info(f"Inserted {inserted} contacts for institution {institution_id}")
        return inserted


class JsonFileInstitutionStore(InMemoryInstitutionStore):
    """
    In-memory store persisted to a single JSON document after every write.

    Layout: {"institutions": [...], "contacts": [...]}
    """

    def __init__(self, path: Union[str, Path] = STORE_PATH):
        super().__init__()
        self.path = Path(path)
        self._load()

    def _load(self):
        if not self.path.exists():
            return
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            for item in data.get('institutions', []):
                institution = Institution(**item)
                self.institutions[institution.id] = institution
            self.contacts = [StoredContact(**item) for item in data.get('contacts', [])]
        except (OSError, ValueError, TypeError) as e:
            raise PersistenceError(f"Could not read store {self.path}: {e}") from e

        logger.debug(f"Loaded {len(self.institutions)} institutions from {self.path}")

    def _save(self):
        data = {
            'institutions': [asdict(item) for item in self.institutions.values()],
            'contacts': [asdict(item) for item in self.contacts],
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2)
        except OSError as e:
            raise PersistenceError(f"Could not write store {self.path}: {e}") from e

    def create_institution(self, name: str, domain: Optional[str], housing_pages: Iterable[str]) -> Institution:
        institution = super().create_institution(name, domain, housing_pages)
        try:
            self._save()
        except PersistenceError:
            del self.institutions[institution.id]
            raise
        return institution

    def insert_contacts(self, institution_id: str, contacts: Iterable[StoredContact]) -> int:
        """Insert and save; memory is rolled back if the file cannot be written."""
        kept = len(self.contacts)
        inserted = super().insert_contacts(institution_id, contacts)
        try:
            self._save()
        except PersistenceError:
            del self.contacts[kept:]
            raise
        return inserted


__all__ = ['InstitutionStore', 'InMemoryInstitutionStore', 'JsonFileInstitutionStore']
