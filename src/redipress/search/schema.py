"""
Schema definition for the RediSearch index.

Defines field types and the schema structure for indexed posts. Supports:
- TextField: Full-text fields with an optional relevance weight
- NumericField: Numeric fields for sorting and range filters
- TagField: Exact-match tag fields with an optional separator

Every field can additionally be:
- sortable: Result sets may be ordered by the field
- no_index: The value is stored with the document but not searchable

Each field serializes itself into the engine's declaration syntax:
``<name> <TYPE> [WEIGHT <w>] [SEPARATOR <c>] [SORTABLE] [NOINDEX]``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from redipress.errors import SchemaCreationError


SCHEMA_KEYWORD = "SCHEMA"


class FieldType(str, Enum):
    """Types of fields supported by the engine schema."""

    TEXT = "TEXT"
    NUMERIC = "NUMERIC"
    TAG = "TAG"


@dataclass(frozen=True)
class SchemaField(ABC):
    """Base class for all schema fields."""

    name: str
    sortable: bool = False
    no_index: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValueError("Schema field name must be a non-empty string")

    @property
    @abstractmethod
    def field_type(self) -> FieldType:
        """Return the field type."""

    def to_schema_tokens(self) -> list[str]:
        """Serialize the field into its engine declaration tokens."""
        tokens = [self.name, self.field_type.value, *self._modifier_tokens()]
        if self.sortable:
            tokens.append("SORTABLE")
        if self.no_index:
            tokens.append("NOINDEX")
        return tokens

    def _modifier_tokens(self) -> list[str]:
        return []

    @classmethod
    def from_options(cls, field_type: FieldType | str, options: Mapping[str, Any]) -> SchemaField:
        """Build a field from a type and a mapping of named options.

        Unknown option keys are rejected so that a typo can never silently
        produce a different field.
        """
        field_type = FieldType(field_type.upper() if isinstance(field_type, str) else field_type)
        field_cls = _FIELD_CLASSES[field_type]
        allowed = set(field_cls.__dataclass_fields__)
        unknown = set(options) - allowed
        if unknown:
            msg = f"Unknown option(s) for {field_type.value} field: {', '.join(sorted(unknown))}"
            raise ValueError(msg)
        if "name" not in options:
            raise ValueError("Schema field options must include 'name'")
        return field_cls(**options)


@dataclass(frozen=True)
class TextField(SchemaField):
    """
    Full-text field.

    Text fields are tokenized and stemmed by the engine. Use for:
    - Post titles, bodies and excerpts
    - Author names and other free text

    Args:
        name: Field name (e.g., "post_title")
        weight: Relevance multiplier (default: 1.0, the engine default)
        sortable: Allow ordering results by this field
        no_index: Store the value without making it searchable
    """

    weight: float = 1.0

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.weight <= 0:
            raise ValueError(f"Weight of field '{self.name}' must be positive")

    @property
    def field_type(self) -> FieldType:
        return FieldType.TEXT

    def _modifier_tokens(self) -> list[str]:
        if self.weight == 1.0:
            return []
        return ["WEIGHT", str(float(self.weight))]


@dataclass(frozen=True)
class NumericField(SchemaField):
    """
    Numeric field for sorting and range queries.

    Use for ids, ordering integers and Unix timestamps.
    """

    @property
    def field_type(self) -> FieldType:
        return FieldType.NUMERIC


@dataclass(frozen=True)
class TagField(SchemaField):
    """
    Exact-match tag field.

    Tag values are split on ``separator`` and matched verbatim. Use for
    taxonomy terms, post types and other enumerations.
    """

    separator: str | None = None

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.separator is not None and len(self.separator) != 1:
            raise ValueError(f"Separator of field '{self.name}' must be a single character")

    @property
    def field_type(self) -> FieldType:
        return FieldType.TAG

    def _modifier_tokens(self) -> list[str]:
        if self.separator is None:
            return []
        return ["SEPARATOR", self.separator]


_FIELD_CLASSES: dict[FieldType, type[SchemaField]] = {
    FieldType.TEXT: TextField,
    FieldType.NUMERIC: NumericField,
    FieldType.TAG: TagField,
}


@dataclass
class Schema:
    """
    Ordered field declarations for one index.

    Field order only affects the shape of the create command, never ranking.

    Example:
        schema = Schema(
            fields=[
                TextField("post_title", weight=5.0, sortable=True),
                NumericField("post_date", sortable=True),
                TagField("category", separator=";"),
            ]
        )
        schema.to_command_args("posts")
    """

    fields: list[SchemaField]

    def __post_init__(self) -> None:
        """Validate field names after initialization."""
        self._field_map: dict[str, SchemaField] = {}
        for field in self.fields:
            if not isinstance(field, SchemaField):
                raise SchemaCreationError(f"Not a schema field: {field!r}")
            if field.name in self._field_map:
                raise SchemaCreationError(f"Duplicate schema field name: '{field.name}'")
            self._field_map[field.name] = field

    def __getitem__(self, name: str) -> SchemaField:
        """Get field by name."""
        return self._field_map[name]

    def __contains__(self, name: object) -> bool:
        """Check if field exists."""
        return name in self._field_map

    def __iter__(self) -> Iterator[SchemaField]:
        """Iterate over fields."""
        return iter(self.fields)

    def __len__(self) -> int:
        """Return number of fields."""
        return len(self.fields)

    def to_tokens(self) -> list[str]:
        """Concatenate every field's tokens in declaration order."""
        tokens: list[str] = []
        for field in self.fields:
            tokens.extend(field.to_schema_tokens())
        return tokens

    def to_command_args(self, index_name: str) -> list[str]:
        """Return the full argument list for the schema create command."""
        return [index_name, SCHEMA_KEYWORD, *self.to_tokens()]


def create_default_fields() -> list[SchemaField]:
    """
    Create the built-in fields every post index carries.

    Fields:
    - post_title: Title (text, weight=5.0, sortable)
    - post_content: Body with markup stripped (text)
    - post_excerpt: Excerpt (text, weight=2.0)
    - post_author: Resolved author name (text)
    - post_author_id: Author id (numeric)
    - post_id: Post id (numeric, sortable)
    - menu_order: Ordering integer (numeric, sortable)
    - permalink: Canonical public URL (text)
    - post_date: Publish time as a Unix timestamp (numeric, sortable)
    - search_index: Free text aggregated by extensions (text)
    """
    return [
        TextField("post_title", weight=5.0, sortable=True),
        TextField("post_content"),
        TextField("post_excerpt", weight=2.0),
        TextField("post_author"),
        NumericField("post_author_id"),
        NumericField("post_id", sortable=True),
        NumericField("menu_order", sortable=True),
        TextField("permalink"),
        NumericField("post_date", sortable=True),
        TextField("search_index"),
    ]
