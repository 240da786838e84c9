"""Centralized mapping from DWARF tags to the semantic roles the parser knows.

Every stage after entry decoding works with roles rather than raw tag codes,
so supporting another tag means adding it here and, if it needs its own
treatment, a handler in the builder and the type resolver.
"""

from enum import Enum

from .constants import Tag, tag_name


class EntryRole(Enum):
    """Semantic role of a debug entry."""

    COMPILE_UNIT = "compile_unit"
    BASE_TYPE = "base_type"
    TYPEDEF = "typedef"
    CONST = "const"
    VOLATILE = "volatile"
    STRUCT = "struct"
    MEMBER = "member"
    ARRAY = "array"
    SUBRANGE = "subrange"
    ENUMERATION = "enumeration"
    ENUMERATOR = "enumerator"
    VARIABLE = "variable"
    OTHER = "other"


class DwarfTagRegistry:
    """Registry of tag-to-role mappings."""

    TAG_TO_ROLE: dict[int, EntryRole] = {
        Tag.COMPILE_UNIT: EntryRole.COMPILE_UNIT,
        Tag.BASE_TYPE: EntryRole.BASE_TYPE,
        Tag.TYPEDEF: EntryRole.TYPEDEF,
        Tag.CONST_TYPE: EntryRole.CONST,
        Tag.VOLATILE_TYPE: EntryRole.VOLATILE,
        # Unions and classes lay their members out the same way structs do
        Tag.STRUCTURE_TYPE: EntryRole.STRUCT,
        Tag.UNION_TYPE: EntryRole.STRUCT,
        Tag.CLASS_TYPE: EntryRole.STRUCT,
        Tag.MEMBER: EntryRole.MEMBER,
        Tag.ARRAY_TYPE: EntryRole.ARRAY,
        Tag.SUBRANGE_TYPE: EntryRole.SUBRANGE,
        Tag.ENUMERATION_TYPE: EntryRole.ENUMERATION,
        Tag.ENUMERATOR: EntryRole.ENUMERATOR,
        Tag.VARIABLE: EntryRole.VARIABLE,
    }

    # Roles that other entries may reference through DW_AT_type
    TYPE_INDEXED_ROLES: frozenset[EntryRole] = frozenset(
        {
            EntryRole.BASE_TYPE,
            EntryRole.TYPEDEF,
            EntryRole.CONST,
            EntryRole.VOLATILE,
            EntryRole.STRUCT,
            EntryRole.ARRAY,
            EntryRole.ENUMERATION,
        }
    )

    # Roles resolved into a wrapper node transparent to the value it wraps
    QUALIFIER_ROLES: frozenset[EntryRole] = frozenset(
        {EntryRole.TYPEDEF, EntryRole.CONST, EntryRole.VOLATILE}
    )

    @classmethod
    def get_role(cls, tag: int) -> EntryRole:
        """Get the role for a tag code.

        Args:
            tag: DWARF tag code

        Returns:
            EntryRole, OTHER for tags without special treatment
        """
        return cls.TAG_TO_ROLE.get(tag, EntryRole.OTHER)

    @classmethod
    def is_type_indexed(cls, role: EntryRole) -> bool:
        return role in cls.TYPE_INDEXED_ROLES

    @classmethod
    def describe(cls, tag: int) -> str:
        """Render a tag as ``DW_TAG_name (role)`` for log records."""
        return f"{tag_name(tag)} ({cls.get_role(tag).value})"
