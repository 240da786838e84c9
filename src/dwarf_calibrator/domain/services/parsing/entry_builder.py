#!/usr/bin/env python3

"""Builds the debug entry tree of one compile unit.

Entries are decoded in a single forward pass. Nesting is tracked with an
explicit stack instead of recursion, and bounded by ``max_depth``.

Each role declares which attributes it cares about; everything else is
decoded (to keep the cursor aligned) and dropped.
"""

from collections.abc import Callable
from dataclasses import dataclass

from ....infrastructure.logging import ProgressTracker, get_logger
from ...exceptions import TreeDepthExceededError, UnknownAbbrevCodeError
from ...models.dwarf import (
    Attr,
    CompileUnit,
    DwarfTagRegistry,
    EntryNode,
    EntryRole,
    EntryTree,
    Form,
)
from ...models.dwarf.constants import SIGNED_FORMS
from .attribute_reader import AttributeValueReader, decode_signed, decode_unsigned
from .byte_cursor import ByteCursor
from .location_parser import parse_member_offset, parse_variable_address
from .varint import read_uleb128

logger = get_logger(__name__)

DEFAULT_MAX_DEPTH = 128

_WIDE_DATA_FORMS = frozenset({Form.DATA4, Form.DATA8})

_CAPTURED_ATTRIBUTES: dict[EntryRole, frozenset[int]] = {
    EntryRole.COMPILE_UNIT: frozenset({Attr.NAME}),
    EntryRole.BASE_TYPE: frozenset({Attr.NAME, Attr.BYTE_SIZE}),
    EntryRole.TYPEDEF: frozenset({Attr.NAME, Attr.TYPE}),
    EntryRole.CONST: frozenset({Attr.TYPE}),
    EntryRole.VOLATILE: frozenset({Attr.TYPE}),
    EntryRole.STRUCT: frozenset({Attr.NAME, Attr.BYTE_SIZE, Attr.TYPE}),
    EntryRole.ARRAY: frozenset({Attr.TYPE}),
    EntryRole.ENUMERATION: frozenset({Attr.NAME, Attr.BYTE_SIZE}),
    EntryRole.SUBRANGE: frozenset({Attr.TYPE, Attr.COUNT, Attr.UPPER_BOUND}),
    EntryRole.MEMBER: frozenset(
        {Attr.NAME, Attr.TYPE, Attr.DATA_MEMBER_LOCATION, Attr.DECLARATION}
    ),
    EntryRole.VARIABLE: frozenset(
        {Attr.NAME, Attr.TYPE, Attr.LOCATION, Attr.DECLARATION, Attr.SPECIFICATION}
    ),
    EntryRole.ENUMERATOR: frozenset({Attr.NAME, Attr.CONST_VALUE}),
}


@dataclass
class _Frame:
    """Sibling list being filled: its parent and its last entry so far."""

    parent: int | None
    previous: int | None = None


@dataclass
class _EntryState:
    """Per-entry scratch: attributes that only take effect once the whole entry is read."""

    unit: CompileUnit
    count: int | None = None
    upper_bound: int | None = None
    specification: int | None = None


def _integer(value: bytes, form: int) -> int:
    return decode_signed(value) if form in SIGNED_FORMS else decode_unsigned(value)


class EntryTreeBuilder:
    """Decodes the entries of compile units into EntryTree arenas."""

    def __init__(
        self,
        data: bytes | bytearray | memoryview,
        info_offset: int,
        reader: AttributeValueReader,
        max_depth: int = DEFAULT_MAX_DEPTH,
        tracker: ProgressTracker | None = None,
    ):
        """
        Args:
            data: Whole-file bytes
            info_offset: File offset of .debug_info
            reader: Attribute value decoder bound to the same file
            max_depth: Deepest entry nesting accepted inside one unit
            tracker: Optional progress tracker counting decoded entries
        """
        self.data = data
        self.info_offset = info_offset
        self.reader = reader
        self.max_depth = max_depth
        self.tracker = tracker

        self._handlers: dict[int, Callable[..., None]] = {
            Attr.NAME: self._on_name,
            Attr.BYTE_SIZE: self._on_byte_size,
            Attr.TYPE: self._on_type,
            Attr.COUNT: self._on_count,
            Attr.UPPER_BOUND: self._on_upper_bound,
            Attr.DATA_MEMBER_LOCATION: self._on_member_location,
            Attr.LOCATION: self._on_location,
            Attr.DECLARATION: self._on_declaration,
            Attr.SPECIFICATION: self._on_specification,
            Attr.CONST_VALUE: self._on_const_value,
        }

    def build(self, unit: CompileUnit) -> EntryTree:
        """Decode every entry of ``unit``.

        Unknown abbreviation codes and excessive nesting end the unit early;
        the entries decoded so far are kept and the problem is recorded in
        ``unit.errors``.

        Args:
            unit: Compile unit whose abbreviation table is already resolved

        Returns:
            The unit's entry tree

        Raises:
            IntegerOverflowError: If a variable-length value overflows
            TruncatedDataError: If an entry runs past the end of the unit
        """
        table = unit.abbrev_table
        if table is None:
            raise ValueError(f"Unit #{unit.index} has no abbreviation table")

        tree = EntryTree(unit=unit)
        unit_start = self.info_offset + unit.byte_offset
        cursor = ByteCursor(
            self.data, unit_start + unit.header_size, self.info_offset + unit.end_offset
        )

        stack: list[_Frame] = []
        frame = _Frame(parent=None)

        while not cursor.at_end():
            entry_pos = cursor.pos
            code = read_uleb128(cursor)
            if code == 0:
                if not stack:
                    break
                frame = stack.pop()
                continue

            abbrev = table.get(code)
            if abbrev is None:
                self._report(
                    unit,
                    UnknownAbbrevCodeError(
                        f"Unit #{unit.index}: unknown abbreviation code {code} "
                        f"at 0x{entry_pos - self.info_offset:x}"
                    ),
                )
                break

            role = DwarfTagRegistry.get_role(abbrev.tag)
            node = tree.add(role, abbrev.tag, entry_pos - unit_start)
            if DwarfTagRegistry.is_type_indexed(node.role):
                unit.register_type(node.offset, node.index)

            captured = _CAPTURED_ATTRIBUTES.get(node.role, frozenset())
            state = _EntryState(unit)
            for attr in abbrev.attributes:
                value = self.reader.read(
                    cursor, attr.form, unit.address_size, unit.version, attr.implicit_const
                )
                if attr.attribute in captured:
                    self._handlers[attr.attribute](node, value, attr.form, state)
            self._finish(tree, node, state)

            if frame.previous is not None:
                tree[frame.previous].next = node.index
            elif frame.parent is not None:
                tree[frame.parent].child = node.index
            else:
                tree.root = node.index
            frame.previous = node.index

            if self.tracker is not None:
                self.tracker.count_entry()

            if abbrev.has_children:
                if len(stack) >= self.max_depth:
                    self._report(
                        unit,
                        TreeDepthExceededError(
                            f"Unit #{unit.index}: entries nest deeper than {self.max_depth} "
                            f"levels at 0x{entry_pos - self.info_offset:x}, tree truncated"
                        ),
                    )
                    break
                stack.append(frame)
                frame = _Frame(parent=node.index)

        return tree

    def _report(self, unit: CompileUnit, error: Exception) -> None:
        unit.errors.append(str(error))
        logger.error(str(error))

    def _finish(self, tree: EntryTree, node: EntryNode, state: _EntryState) -> None:
        if node.role is EntryRole.SUBRANGE:
            if state.count is not None:
                node.sizes.append(state.count)
            elif state.upper_bound is not None:
                node.sizes.append(max(state.upper_bound + 1, 0))

        if node.is_declaration:
            tree.unit.register_declaration(node.offset, node.index)

        if state.specification is not None:
            self._merge_declaration(tree, node, state.specification)

    def _merge_declaration(self, tree: EntryTree, node: EntryNode, declaration_ref: int) -> None:
        declaration_index = tree.unit.declaration_index.get(declaration_ref)
        if declaration_index is None:
            logger.debug(
                f"Declaration 0x{declaration_ref:x} for entry 0x{node.offset:x} not found"
            )
            return

        declaration = tree[declaration_index]
        if not node.name:
            node.name = declaration.name
        if not node.type_ref:
            node.type_ref = declaration.type_ref
        if not node.address:
            node.address = declaration.address

    def _reference(self, value: bytes, form: int, unit: CompileUnit) -> int:
        ref = decode_unsigned(value)
        if form == Form.REF_ADDR:
            # Section-relative; only references into the same unit can be followed
            ref -= unit.byte_offset
        return ref

    def _on_name(self, node: EntryNode, value: bytes, form: int, state: _EntryState) -> None:
        node.name = value

    def _on_byte_size(self, node: EntryNode, value: bytes, form: int, state: _EntryState) -> None:
        node.sizes.append(decode_unsigned(value))

    def _on_type(self, node: EntryNode, value: bytes, form: int, state: _EntryState) -> None:
        node.type_ref = self._reference(value, form, state.unit)

    def _on_count(self, node: EntryNode, value: bytes, form: int, state: _EntryState) -> None:
        state.count = _integer(value, form)

    def _on_upper_bound(self, node: EntryNode, value: bytes, form: int, state: _EntryState) -> None:
        bound = _integer(value, form)
        # Zero-length arrays carry -1 stored unsigned in a fixed-width form
        if form in _WIDE_DATA_FORMS and bound == (1 << (8 * len(value))) - 1:
            bound = -1
        state.upper_bound = bound

    def _on_member_location(self, node: EntryNode, value: bytes, form: int, state: _EntryState) -> None:
        offset = parse_member_offset(value, form)
        if offset is not None:
            node.member_offset = offset

    def _on_location(self, node: EntryNode, value: bytes, form: int, state: _EntryState) -> None:
        address = parse_variable_address(value, form, state.unit.address_size)
        if address is not None:
            node.address = address

    def _on_declaration(self, node: EntryNode, value: bytes, form: int, state: _EntryState) -> None:
        node.is_declaration = decode_unsigned(value) != 0

    def _on_specification(self, node: EntryNode, value: bytes, form: int, state: _EntryState) -> None:
        state.specification = self._reference(value, form, state.unit)

    def _on_const_value(self, node: EntryNode, value: bytes, form: int, state: _EntryState) -> None:
        node.const_value = _integer(value, form)
