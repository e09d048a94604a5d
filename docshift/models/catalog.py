"""Catalog models for source tables and target collections."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


def _first_present(data: Dict[str, Any], keys: Tuple[str, ...], default: Any = None) -> Any:
    """Return the value of the first key present in a catalog record."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _as_count(value: Any, entity: Any) -> int:
    """Parse a catalog count. SQL drivers often report counts as strings."""
    if value is None or isinstance(value, bool):
        raise ValueError(f"Invalid count for {entity}: {value!r}")
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(f"Invalid count for {entity}: {value!r}")

    try:
        count = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid count for {entity}: {value!r}") from None

    if count < 0:
        raise ValueError(f"Negative count for {entity}: {count}")
    return count


def _count_field(data: Dict[str, Any], keys: Tuple[str, ...], entity: Any) -> int:
    """A missing count means an empty entity; a present but unreadable one is an error."""
    for key in keys:
        if key in data:
            return _as_count(data[key], entity)
    return 0


@dataclass(frozen=True)
class ForeignKeyRef:
    """A raw foreign key reference reported by the source catalog."""
    referenced_entity: str
    column: Optional[str] = None
    referenced_column: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "column": self.column,
            "referenced_entity": self.referenced_entity,
            "referenced_column": self.referenced_column,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ForeignKeyRef":
        """Create from a catalog record."""
        referenced = _first_present(
            data,
            ("referenced_entity", "referenced_table", "referencedTable", "references", "table"),
        )
        if not referenced:
            raise ValueError(f"Foreign key without a referenced table: {data}")

        return cls(
            referenced_entity=str(referenced),
            column=_first_present(data, ("column", "column_name", "columnName")),
            referenced_column=_first_present(
                data, ("referenced_column", "referencedColumn", "referenced_column_name")
            ),
        )


@dataclass(frozen=True)
class SourceEntity:
    """A table in the relational source."""
    name: str
    record_count: int = 0
    foreign_keys: Tuple[ForeignKeyRef, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if self.record_count < 0:
            raise ValueError(f"Negative record count for {self.name}: {self.record_count}")
        # Accept lists from callers while keeping the record hashable
        object.__setattr__(self, "foreign_keys", tuple(self.foreign_keys))

    @property
    def depends_on(self) -> Tuple[str, ...]:
        """Referenced entity names in declaration order, without duplicates."""
        seen: List[str] = []
        for fk in self.foreign_keys:
            if fk.referenced_entity not in seen:
                seen.append(fk.referenced_entity)
        return tuple(seen)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "name": self.name,
            "record_count": self.record_count,
            "foreign_keys": [fk.to_dict() for fk in self.foreign_keys],
            "depends_on": list(self.depends_on),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SourceEntity":
        """
        Create from a catalog record.

        Catalog collaborators report tables in several shapes; the common
        spellings are accepted here so nothing downstream sees raw dicts.
        """
        name = _first_present(data, ("name", "table_name", "tableName", "table"))
        if not name:
            raise ValueError(f"Source catalog record without a name: {data}")

        raw_fks = _first_present(data, ("foreign_keys", "foreignKeys", "references"), [])
        foreign_keys = []
        for raw in raw_fks:
            if isinstance(raw, str):
                foreign_keys.append(ForeignKeyRef(referenced_entity=raw))
            else:
                foreign_keys.append(ForeignKeyRef.from_dict(raw))

        return cls(
            name=str(name),
            record_count=_count_field(data, ("record_count", "recordCount", "row_count", "count"), name),
            foreign_keys=tuple(foreign_keys),
        )


@dataclass(frozen=True)
class TargetEntity:
    """A collection in the document store."""
    name: str
    document_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "name": self.name,
            "document_count": self.document_count,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TargetEntity":
        """Create from a catalog record."""
        name = _first_present(data, ("name", "collection_name", "collectionName", "collection"))
        if not name:
            raise ValueError(f"Target catalog record without a name: {data}")

        return cls(
            name=str(name),
            document_count=_count_field(data, ("document_count", "documentCount", "count"), name),
        )
