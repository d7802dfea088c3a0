"""
File-backed store for named saved schemas.

Each saved schema is one JSON file holding ``{"name": ..., "schema": [...]}``
where ``schema`` is the field tree payload. Loading a saved schema replaces
the whole live tree; the store never merges.
"""

import json
import logging
import os
import re
from pathlib import Path
from typing import List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from schema_builder.exceptions import SchemaStoreError
from schema_builder.field_model import SchemaField

logger = logging.getLogger(__name__)

EMPTY_NAME_ERROR = "Please enter a schema name"
NAME_CONFLICT_ERROR = "A saved schema with a similar name already exists: {name}"


class SavedSchema(BaseModel):
    """Persisted record of a named field tree."""
    model_config = ConfigDict(populate_by_name=True)

    name: str
    fields: List[SchemaField] = Field(default_factory=list, alias='schema')
    # Stem of the file the record was read from; not persisted
    key: str = Field(default='', exclude=True)

    def to_record(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


def generate_filename(name: str) -> str:
    """Generate a valid filename from a schema name."""
    # Convert to lowercase and replace spaces/special chars with underscores
    filename = re.sub(r'[^a-zA-Z0-9_\-]', '_', name.lower())
    filename = re.sub(r'_+', '_', filename)
    filename = filename.strip('_')
    if not filename:
        filename = "schema"
    return f"{filename}.json"


class SchemaStore:
    """Saved schemas kept as JSON files in one directory."""

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def _path_for(self, name: str) -> Path:
        return self.directory / generate_filename(name)

    def _resolve(self, key: str) -> Path:
        """Map a listed key (file stem) or a display name onto a file path."""
        if key and Path(key).name == key:
            path = self.directory / f"{key}.json"
            if path.exists():
                return path
        return self._path_for(key)

    def _read_record(self, path: Path) -> SavedSchema:
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            saved = SavedSchema.model_validate(data)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            raise SchemaStoreError(str(path), e) from e

        saved.key = path.stem
        return saved

    def list_schemas(self) -> List[SavedSchema]:
        """
        Return every readable saved schema, sorted by name.

        Files that cannot be parsed are skipped and logged.
        """
        if not self.directory.is_dir():
            return []

        schemas = []
        for path in self.directory.glob("*.json"):
            try:
                schemas.append(self._read_record(path))
            except SchemaStoreError as e:
                logger.warning(f"Skipping unreadable saved schema: {e}")

        schemas.sort(key=lambda saved: saved.name.lower())
        return schemas

    def load_schema(self, key: str) -> Optional[SavedSchema]:
        """
        Load a saved schema by its listed key or by display name.

        Returns:
            The saved schema, or None if it does not exist

        Raises:
            SchemaStoreError: If the file exists but cannot be read
        """
        path = self._resolve(key)
        if not path.exists():
            logger.error(f"Saved schema not found: {path}")
            return None

        try:
            saved = self._read_record(path)
        except SchemaStoreError as e:
            logger.error(f"Failed to load saved schema '{key}': {e}")
            raise

        logger.info(f"Loaded saved schema '{saved.name}' from {path}")
        return saved

    def save_schema(self, name: str, fields: List[SchemaField]) -> Tuple[bool, Optional[str]]:
        """
        Save a field tree under a name, replacing a schema saved under the same name.

        Names that differ but map to the same file are rejected rather than
        overwriting each other.

        Args:
            name: Display name of the schema
            fields: Field tree to persist

        Returns:
            Tuple of (success: bool, error_message: Optional[str])
        """
        if not name or not name.strip():
            return False, EMPTY_NAME_ERROR

        name = name.strip()
        path = self._path_for(name)
        conflict = self._conflicting_name(path, name)
        if conflict is not None:
            return False, NAME_CONFLICT_ERROR.format(name=conflict)

        temp_path = path.with_suffix(f"{path.suffix}.tmp")
        record = SavedSchema(name=name, fields=fields).to_record()

        try:
            self.directory.mkdir(parents=True, exist_ok=True)

            # Write to temporary file first for atomic operation
            with open(temp_path, 'w', encoding='utf-8') as f:
                json.dump(record, f, indent=2, ensure_ascii=False)
            os.replace(temp_path, path)

        except OSError as e:
            error_msg = f"Failed to save schema: {str(e)}"
            logger.error(f"Save failed for {path}: {error_msg}")
            return False, error_msg
        finally:
            if temp_path.exists():
                try:
                    temp_path.unlink()
                except OSError as e:
                    logger.warning(f"Could not remove temp file {temp_path}: {e}")

        logger.info(f"Successfully saved schema '{name}' to {path}")
        return True, None

    def _conflicting_name(self, path: Path, name: str) -> Optional[str]:
        """Return the name stored at ``path`` when it belongs to another schema."""
        if not path.exists():
            return None
        try:
            existing = self._read_record(path)
        except SchemaStoreError as e:
            logger.warning(f"Overwriting unreadable saved schema: {e}")
            return None
        if existing.name != name:
            return existing.name
        return None

    def delete_schema(self, key: str) -> Tuple[bool, Optional[str]]:
        """
        Delete a saved schema by its listed key or by display name.

        Returns:
            Tuple of (success: bool, error_message: Optional[str])
        """
        path = self._resolve(key)
        if not path.exists():
            return False, f"Saved schema not found: {key}"

        try:
            path.unlink()
        except OSError as e:
            error_msg = f"Failed to delete schema: {str(e)}"
            logger.error(f"Delete failed for {path}: {error_msg}")
            return False, error_msg

        logger.info(f"Deleted saved schema '{key}'")
        return True, None
