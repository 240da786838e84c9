"""Builders for synthetic DWARF debug information used across the test suite.

Entries are described as nested ``Die`` objects; the builder derives the
abbreviation tables, lays out the units and resolves ``DW_FORM_ref4``
references given as labels.
"""

import struct
from dataclasses import dataclass, field
from typing import Any

from dwarf_calibrator.domain.models.dwarf import Attr, EntryNode, EntryTree, Form, Tag, UnitType
from dwarf_calibrator.domain.models.dwarf.constants import DW_OP_ADDR, DW_OP_PLUS_UCONST
from dwarf_calibrator.domain.services.parsing import (
    AbbreviationCache,
    AttributeValueReader,
    CompileUnitScanner,
    EntryTreeBuilder,
    encode_sleb128,
    encode_uleb128,
)
from dwarf_calibrator.infrastructure.object_container import (
    LoadSegment,
    RawObjectContainer,
    SectionLayout,
    SectionSpan,
)

# Bytes placed in front of the debug sections so section offsets are never 0
DEFAULT_PREFIX = b"\xee" * 16


@dataclass
class Die:
    """One debug entry to encode.

    Attributes are ``(attribute, form, value)`` triples. ``REF4`` values are
    labels of other entries in the same unit. ``raw`` bytes replace the
    whole encoded entry.
    """

    tag: int
    attributes: list[tuple[int, int, Any]] = field(default_factory=list)
    children: list["Die"] = field(default_factory=list)
    label: str | None = None
    has_children: bool | None = None
    raw: bytes | None = None

    @property
    def nests(self) -> bool:
        return bool(self.children) if self.has_children is None else self.has_children


@dataclass
class DwarfSections:
    abbrev: bytes
    info: bytes
    string: bytes


@dataclass
class _Unit:
    root: Die
    version: int
    address_size: int
    unit_type: int


def addr_expr(address: int, address_size: int = 4) -> bytes:
    """``DW_OP_addr <address>`` location expression."""
    return bytes([DW_OP_ADDR]) + address.to_bytes(address_size, "little")


def plus_uconst(offset: int) -> bytes:
    """``DW_OP_plus_uconst <offset>`` member location expression."""
    return bytes([DW_OP_PLUS_UCONST]) + encode_uleb128(offset)


class DwarfBuilder:
    """Encodes units of ``Die`` trees into .debug_abbrev/.debug_info/.debug_str bytes."""

    def __init__(self, share_abbrevs: bool = True, prefix: bytes = DEFAULT_PREFIX):
        self.share_abbrevs = share_abbrevs
        self.prefix = prefix
        self.units: list[_Unit] = []
        self._strings = bytearray()
        self._string_offsets: dict[bytes, int] = {}

    def add_unit(
        self,
        root: Die,
        version: int = 4,
        address_size: int = 4,
        unit_type: int = UnitType.COMPILE,
    ) -> "DwarfBuilder":
        self.units.append(_Unit(root, version, address_size, unit_type))
        return self

    def _string(self, value: bytes) -> int:
        offset = self._string_offsets.get(value)
        if offset is None:
            offset = len(self._strings)
            self._strings += value + b"\0"
            self._string_offsets[value] = offset
        return offset

    def _encode_value(self, form: int, value: Any, address_size: int) -> bytes:
        if form == Form.ADDR:
            return value.to_bytes(address_size, "little")
        if form in (Form.DATA1, Form.REF1, Form.FLAG):
            return value.to_bytes(1, "little")
        if form == Form.DATA2:
            return value.to_bytes(2, "little")
        if form in (Form.DATA4, Form.SEC_OFFSET):
            return value.to_bytes(4, "little")
        if form == Form.DATA8:
            return value.to_bytes(8, "little")
        if form == Form.STRING:
            return value + b"\0"
        if form == Form.STRP:
            return self._string(value).to_bytes(4, "little")
        if form == Form.UDATA:
            return encode_uleb128(value)
        if form == Form.SDATA:
            return encode_sleb128(value)
        if form == Form.BLOCK1:
            return bytes([len(value)]) + value
        if form == Form.EXPRLOC:
            return encode_uleb128(len(value)) + value
        if form in (Form.FLAG_PRESENT, Form.IMPLICIT_CONST):
            return b""
        raise ValueError(f"Test builder cannot encode form 0x{form:x}")

    @staticmethod
    def _abbrev_key(die: Die) -> tuple:
        attributes = tuple(
            (attr, form, value if form == Form.IMPLICIT_CONST else None)
            for attr, form, value in die.attributes
        )
        return (die.tag, die.nests, attributes)

    def _encode_unit(self, unit: _Unit, table: dict[tuple, int], abbrev_offset: int) -> bytes:
        if unit.version <= 4:
            header_size = 11
        else:
            header_size = 12
        body = bytearray()
        labels: dict[str, int] = {}
        fixups: list[tuple[int, str]] = []

        def emit(die: Die) -> None:
            if die.label is not None:
                labels[die.label] = header_size + len(body)
            if die.raw is not None:
                body.extend(die.raw)
                return

            key = self._abbrev_key(die)
            code = table.setdefault(key, len(table) + 1)
            body.extend(encode_uleb128(code))
            for _attr, form, value in die.attributes:
                if form == Form.REF4:
                    fixups.append((len(body), value))
                    body.extend(bytes(4))
                else:
                    body.extend(self._encode_value(form, value, unit.address_size))
            if die.nests:
                for child in die.children:
                    emit(child)
                body.append(0)

        emit(unit.root)
        for position, label in fixups:
            body[position : position + 4] = labels[label].to_bytes(4, "little")

        unit_length = header_size - 4 + len(body)
        if unit.version <= 4:
            header = struct.pack(
                "<IHIB", unit_length, unit.version, abbrev_offset, unit.address_size
            )
        else:
            header = struct.pack(
                "<IHBBI",
                unit_length,
                unit.version,
                unit.unit_type,
                unit.address_size,
                abbrev_offset,
            )
        return header + bytes(body)

    @staticmethod
    def _encode_table(table: dict[tuple, int]) -> bytes:
        out = bytearray()
        for (tag, nests, attributes), code in table.items():
            out += encode_uleb128(code) + encode_uleb128(tag) + bytes([1 if nests else 0])
            for attr, form, implicit_const in attributes:
                out += encode_uleb128(attr) + encode_uleb128(form)
                if form == Form.IMPLICIT_CONST:
                    out += encode_sleb128(implicit_const)
            out += b"\0\0"
        out.append(0)
        return bytes(out)

    def build_sections(self) -> DwarfSections:
        abbrev = bytearray()
        info = bytearray()

        if self.share_abbrevs:
            table: dict[tuple, int] = {}
            for unit in self.units:
                info += self._encode_unit(unit, table, 0)
            abbrev += self._encode_table(table)
        else:
            for unit in self.units:
                table = {}
                encoded = self._encode_unit(unit, table, len(abbrev))
                info += encoded
                abbrev += self._encode_table(table)

        return DwarfSections(bytes(abbrev), bytes(info), bytes(self._strings))

    def build(
        self, segments: list[LoadSegment] | None = None, name: str = "<test>"
    ) -> RawObjectContainer:
        """Lay the sections out behind ``prefix`` and wrap them in a container."""
        sections = self.build_sections()
        data = bytearray(self.prefix)

        abbrev = SectionSpan(len(data), len(sections.abbrev))
        data += sections.abbrev
        info = SectionSpan(len(data), len(sections.info))
        data += sections.info
        string = SectionSpan(len(data), len(sections.string)) if sections.string else None
        data += sections.string

        return RawObjectContainer(
            data=bytes(data),
            section_layout=SectionLayout(abbrev=abbrev, info=info, string=string),
            segments=list(segments or []),
            name=name,
        )


# Entry shorthands


def compile_unit(name: bytes, children: list[Die], name_form: int = Form.STRING) -> Die:
    return Die(Tag.COMPILE_UNIT, [(Attr.NAME, name_form, name)], children, label="cu")


def base_type(label: str, name: bytes, size: int) -> Die:
    return Die(
        Tag.BASE_TYPE,
        [(Attr.NAME, Form.STRING, name), (Attr.BYTE_SIZE, Form.DATA1, size)],
        label=label,
    )


def wrapper(tag: int, label: str, type_label: str, name: bytes | None = None) -> Die:
    attributes: list[tuple[int, int, Any]] = []
    if name is not None:
        attributes.append((Attr.NAME, Form.STRING, name))
    attributes.append((Attr.TYPE, Form.REF4, type_label))
    return Die(tag, attributes, label=label)


def member(name: bytes, type_label: str, offset: int, form: int = Form.DATA1) -> Die:
    location = plus_uconst(offset) if form in (Form.BLOCK1, Form.EXPRLOC) else offset
    return Die(
        Tag.MEMBER,
        [
            (Attr.NAME, Form.STRING, name),
            (Attr.TYPE, Form.REF4, type_label),
            (Attr.DATA_MEMBER_LOCATION, form, location),
        ],
    )


def structure(label: str, name: bytes, size: int, members: list[Die]) -> Die:
    return Die(
        Tag.STRUCTURE_TYPE,
        [(Attr.NAME, Form.STRING, name), (Attr.BYTE_SIZE, Form.DATA1, size)],
        members,
        label=label,
    )


def subrange(count: int | None = None, upper_bound: int | None = None) -> Die:
    attributes: list[tuple[int, int, Any]] = []
    if count is not None:
        attributes.append((Attr.COUNT, Form.DATA1, count))
    if upper_bound is not None:
        attributes.append((Attr.UPPER_BOUND, Form.DATA1, upper_bound))
    return Die(Tag.SUBRANGE_TYPE, attributes)


def array(label: str, element_label: str, dimensions: list[Die]) -> Die:
    return Die(Tag.ARRAY_TYPE, [(Attr.TYPE, Form.REF4, element_label)], dimensions, label=label)


def enumeration(label: str, name: bytes, size: int, values: dict[bytes, int]) -> Die:
    enumerators = [
        Die(
            Tag.ENUMERATOR,
            [(Attr.NAME, Form.STRING, key), (Attr.CONST_VALUE, Form.SDATA, value)],
        )
        for key, value in values.items()
    ]
    return Die(
        Tag.ENUMERATION_TYPE,
        [(Attr.NAME, Form.STRING, name), (Attr.BYTE_SIZE, Form.DATA1, size)],
        enumerators,
        label=label,
    )


def variable(name: bytes, type_label: str, address: int, address_size: int = 4) -> Die:
    return Die(
        Tag.VARIABLE,
        [
            (Attr.NAME, Form.STRING, name),
            (Attr.TYPE, Form.REF4, type_label),
            (Attr.LOCATION, Form.EXPRLOC, addr_expr(address, address_size)),
        ],
    )


# A small calibration program: types, variables and their initial values

CAL_BASE = 0x20000000

CAL_SYMBOLS: dict[str, int] = {
    "counter": CAL_BASE + 0x00,
    "gains.kp": CAL_BASE + 0x04,
    "gains.ki": CAL_BASE + 0x08,
    "lut": CAL_BASE + 0x0C,
    "mode": CAL_BASE + 0x24,
    "enabled": CAL_BASE + 0x25,
    "points[0].kp": CAL_BASE + 0x28,
    "points[0].ki": CAL_BASE + 0x2C,
    "points[1].kp": CAL_BASE + 0x30,
    "points[1].ki": CAL_BASE + 0x34,
    "limit": CAL_BASE + 0x38,
}

CAL_DATA = (
    struct.pack("<i", 1000)
    + struct.pack("<if", 10, 0.5)
    + struct.pack("<12H", *range(12))
    + b"\x01\x01\x00\x00"
    + struct.pack("<ifif", 1, 1.5, 2, 2.5)
    + struct.pack("<i", -5)
)


def calibration_unit(name: bytes = b"cal.c") -> Die:
    """Compile unit declaring every kind of calibratable variable."""
    return compile_unit(
        name,
        [
            base_type("int", b"int", 4),
            base_type("ushort", b"unsigned short", 2),
            base_type("float", b"float", 4),
            base_type("bool", b"_Bool", 1),
            wrapper(Tag.VOLATILE_TYPE, "volatile_int", "int"),
            wrapper(Tag.TYPEDEF, "vint", "volatile_int", name=b"vint"),
            structure(
                "gains_t",
                b"Gains",
                8,
                [
                    member(b"kp", "int", 0),
                    member(b"ki", "float", 4, form=Form.BLOCK1),
                ],
            ),
            array("lut_t", "ushort", [subrange(count=3), subrange(upper_bound=3)]),
            enumeration("mode_t", b"Mode", 1, {b"OFF": 0, b"ON": 1}),
            array("points_t", "gains_t", [subrange(count=2)]),
            variable(b"counter", "vint", CAL_SYMBOLS["counter"]),
            variable(b"gains", "gains_t", CAL_SYMBOLS["gains.kp"]),
            variable(b"lut", "lut_t", CAL_SYMBOLS["lut"]),
            variable(b"mode", "mode_t", CAL_SYMBOLS["mode"]),
            variable(b"enabled", "bool", CAL_SYMBOLS["enabled"]),
            variable(b"points", "points_t", CAL_SYMBOLS["points[0].kp"]),
            Die(
                Tag.VARIABLE,
                [
                    (Attr.NAME, Form.STRING, b"limit"),
                    (Attr.TYPE, Form.REF4, "int"),
                    (Attr.DECLARATION, Form.FLAG_PRESENT, None),
                ],
                label="limit_decl",
            ),
            Die(
                Tag.VARIABLE,
                [
                    (Attr.SPECIFICATION, Form.REF4, "limit_decl"),
                    (Attr.LOCATION, Form.EXPRLOC, addr_expr(CAL_SYMBOLS["limit"])),
                ],
            ),
        ],
        name_form=Form.STRP,
    )


def calibration_sections() -> DwarfSections:
    return DwarfBuilder().add_unit(calibration_unit()).build_sections()


def calibration_container() -> RawObjectContainer:
    """In-memory container for the calibration program, initial values included."""
    return (
        DwarfBuilder()
        .add_unit(calibration_unit())
        .build(segments=[LoadSegment(CAL_BASE, CAL_DATA)], name="cal.elf")
    )


def build_entry_trees(container: RawObjectContainer, max_depth: int = 128) -> list[EntryTree]:
    """Run unit scanning and entry decoding without the symbol walker."""
    data = container.file_bytes
    layout = container.layout
    units = CompileUnitScanner(data, layout.info.offset, layout.info.length).scan()
    cache = AbbreviationCache(data, layout.abbrev.end)
    reader = AttributeValueReader(
        data,
        layout.string.offset if layout.string else None,
        layout.string.length if layout.string else 0,
    )
    builder = EntryTreeBuilder(data, layout.info.offset, reader, max_depth)

    trees = []
    for unit in units:
        unit.abbrev_table = cache.resolve(layout.abbrev.offset + unit.abbrev_offset)
        trees.append(builder.build(unit))
    return trees


def find_entry(tree: EntryTree, name: bytes) -> EntryNode:
    """First entry of a tree carrying ``name``."""
    for node in tree.nodes:
        if node.name == name:
            return node
    raise KeyError(name)
