"""Test the DWARF tag registry and base type name tables."""

import pytest

from dwarf_calibrator.domain.models.dwarf import (
    QUALIFIER_MARKERS,
    DwarfTagRegistry,
    EntryRole,
    Tag,
    VarType,
    attr_name,
    form_name,
    primitive_kind,
    primitive_width,
    tag_name,
)


@pytest.mark.unit
class TestDwarfTagRegistry:
    """Test tag to role mapping."""

    @pytest.mark.parametrize(
        ("tag", "role"),
        [
            (Tag.COMPILE_UNIT, EntryRole.COMPILE_UNIT),
            (Tag.BASE_TYPE, EntryRole.BASE_TYPE),
            (Tag.TYPEDEF, EntryRole.TYPEDEF),
            (Tag.CONST_TYPE, EntryRole.CONST),
            (Tag.VOLATILE_TYPE, EntryRole.VOLATILE),
            (Tag.MEMBER, EntryRole.MEMBER),
            (Tag.ARRAY_TYPE, EntryRole.ARRAY),
            (Tag.SUBRANGE_TYPE, EntryRole.SUBRANGE),
            (Tag.ENUMERATION_TYPE, EntryRole.ENUMERATION),
            (Tag.ENUMERATOR, EntryRole.ENUMERATOR),
            (Tag.VARIABLE, EntryRole.VARIABLE),
        ],
    )
    def test_known_tags(self, tag: int, role: EntryRole) -> None:
        assert DwarfTagRegistry.get_role(tag) is role

    @pytest.mark.parametrize("tag", [Tag.STRUCTURE_TYPE, Tag.UNION_TYPE, Tag.CLASS_TYPE])
    def test_unions_and_classes_behave_like_structs(self, tag: int) -> None:
        """Test that every aggregate with laid-out members maps to STRUCT."""
        assert DwarfTagRegistry.get_role(tag) is EntryRole.STRUCT

    def test_unhandled_tags_are_other(self) -> None:
        assert DwarfTagRegistry.get_role(Tag.POINTER_TYPE) is EntryRole.OTHER
        assert DwarfTagRegistry.get_role(Tag.SUBPROGRAM) is EntryRole.OTHER
        assert DwarfTagRegistry.get_role(0x4242) is EntryRole.OTHER

    def test_type_indexed_roles(self) -> None:
        """Test which roles can be the target of a type reference."""
        assert DwarfTagRegistry.is_type_indexed(EntryRole.BASE_TYPE)
        assert DwarfTagRegistry.is_type_indexed(EntryRole.ARRAY)
        assert DwarfTagRegistry.is_type_indexed(EntryRole.ENUMERATION)
        assert not DwarfTagRegistry.is_type_indexed(EntryRole.MEMBER)
        assert not DwarfTagRegistry.is_type_indexed(EntryRole.VARIABLE)
        assert not DwarfTagRegistry.is_type_indexed(EntryRole.OTHER)

    def test_qualifier_roles(self) -> None:
        assert DwarfTagRegistry.QUALIFIER_ROLES == {
            EntryRole.TYPEDEF,
            EntryRole.CONST,
            EntryRole.VOLATILE,
        }
        assert DwarfTagRegistry.QUALIFIER_ROLES <= DwarfTagRegistry.TYPE_INDEXED_ROLES

    def test_every_wrapper_role_has_a_marker(self) -> None:
        for role in DwarfTagRegistry.QUALIFIER_ROLES:
            assert role in QUALIFIER_MARKERS, f"No marker name for {role}"

    def test_describe(self) -> None:
        assert DwarfTagRegistry.describe(Tag.VARIABLE) == "DW_TAG_variable (variable)"
        assert DwarfTagRegistry.describe(Tag.UNION_TYPE) == "DW_TAG_union_type (struct)"


@pytest.mark.unit
class TestNameTables:
    """Test code-to-name rendering and base type recognition."""

    def test_standard_names(self) -> None:
        assert tag_name(Tag.BASE_TYPE) == "DW_TAG_base_type"
        assert attr_name(0x03) == "DW_AT_name"
        assert form_name(0x18) == "DW_FORM_exprloc"

    def test_unknown_codes(self) -> None:
        assert tag_name(0x7777) == "DW_TAG_unknown_0x7777"
        assert attr_name(0x7777) == "DW_AT_unknown_0x7777"
        assert form_name(0x77) == "DW_FORM_unknown_0x77"

    @pytest.mark.parametrize(
        ("name", "kind"),
        [
            (b"_Bool", VarType.BOOLEAN),
            (b"unsigned char", VarType.UINT8),
            (b"signed char", VarType.SINT8),
            (b"short unsigned int", VarType.UINT16),
            (b"long int", VarType.SINT32),
            (b"long long unsigned int", VarType.UINT64),
            (b"double", VarType.FLOAT64),
        ],
    )
    def test_primitive_names(self, name: bytes, kind: VarType) -> None:
        assert primitive_kind(name) is kind

    def test_primitive_names_are_case_sensitive(self) -> None:
        assert primitive_kind(b"Float") is VarType.UNKNOWN
        assert primitive_kind(b"__int128") is VarType.UNKNOWN

    @pytest.mark.parametrize(
        ("kind", "width"),
        [
            (VarType.BOOLEAN, 1),
            (VarType.SINT16, 2),
            (VarType.UINT32, 4),
            (VarType.FLOAT64, 8),
            (VarType.STRUCT, 0),
            (VarType.UNKNOWN, 0),
        ],
    )
    def test_primitive_width(self, kind: VarType, width: int) -> None:
        assert primitive_width(kind) == width
