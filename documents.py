"""
documents.py - Project document uploads.

Documents are filed under a two-level category tree (owner /
construction / contractor, each with a fixed list of sub categories).
File bytes go to DocumentStorage; the ProjectDocument record goes to the
project store.
"""

from __future__ import annotations

import re
import secrets
from datetime import datetime, timezone
from pathlib import Path

from errors import ValidationError
from logging_config import get_logger
from models import DocumentMainCategory, ProjectDocument
from normalize import format_file_size
from project_store import ProjectStore

logger = get_logger(__name__)

DOCUMENT_CATEGORIES: dict[DocumentMainCategory, list[str]] = {
    DocumentMainCategory.OWNER: [
        "Contract",
        "Change Order",
        "Owner Documents",
        "Payment Records",
    ],
    DocumentMainCategory.CONSTRUCTION: [
        "Blueprint",
        "Engineering",
        "Structural Observation",
        "Deputy Inspection",
        "Deputy Report",
        "City Permit",
        "Inspection Reports",
        "Survey",
    ],
    DocumentMainCategory.CONTRACTOR: [
        "Subcontractor Contracts",
        "Material Orders",
        "Labor Agreements",
        "Equipment Rentals",
        "Insurance Documents",
    ],
}

_UNSAFE_NAME_CHARS = re.compile(r"[^\w.\- ]", flags=re.UNICODE)


def validate_category(main_category: str, sub_category: str) -> DocumentMainCategory:
    """Return the main category enum, or raise if the pair is not in the tree."""
    try:
        main = DocumentMainCategory(str(main_category).strip().lower())
    except ValueError as exc:
        raise ValidationError(f"Unknown document category: {main_category!r}") from exc

    if sub_category not in DOCUMENT_CATEGORIES[main]:
        raise ValidationError(
            f"Sub category {sub_category!r} is not valid for {main.value!r}. "
            f"Expected one of: {DOCUMENT_CATEGORIES[main]}"
        )
    return main


def safe_file_name(file_name: str) -> str:
    name = Path(str(file_name or "")).name
    name = _UNSAFE_NAME_CHARS.sub("_", name).strip(" .")
    if not name:
        raise ValidationError("Document file name is required.")
    return name


class DocumentStorage:
    """Local-directory file storage laid out as projects/<id>/documents/<name>."""

    def __init__(self, root: str) -> None:
        self.root = Path(root).resolve()

    def path_for(self, project_id: str, file_name: str) -> Path:
        return self.root / "projects" / safe_file_name(project_id) / "documents" / safe_file_name(file_name)

    def save(self, project_id: str, file_name: str, content: bytes) -> str:
        """Write content and return its URL. Re-uploading a name overwrites it."""
        target = self.path_for(project_id, file_name)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
        return target.as_uri()


def upload_document(
    store: ProjectStore,
    storage: DocumentStorage,
    project_id: str,
    file_name: str,
    content: bytes,
    main_category: str,
    sub_category: str,
    uploaded_by: str,
    description: str = "",
) -> ProjectDocument:
    """Store an uploaded file and record it against the project."""
    main = validate_category(main_category, sub_category)
    store.get_project(project_id)
    name = safe_file_name(file_name)

    url = storage.save(project_id, name, content)
    document = ProjectDocument(
        id=f"doc_{secrets.token_hex(6)}",
        project_id=project_id,
        name=name,
        main_category=main,
        sub_category=sub_category,
        description=description,
        size=format_file_size(len(content)),
        uploaded_by=uploaded_by or "Unknown",
        uploaded_date=datetime.now(timezone.utc).isoformat(),
        url=url,
    )
    store.add_document(document)
    logger.info(
        "document_uploaded | project_id=%s | name=%s | category=%s/%s | size=%s",
        project_id,
        name,
        main.value,
        sub_category,
        document.size,
    )
    return document
