#!/usr/bin/env python3

"""Turns debug entry type chains into typed variable nodes.

Starting from a variable node, the resolver follows DW_AT_type references
through qualifiers and typedefs down to a base type, struct, enum or array,
appending one node per step. Type, size chain and address flow back up so
the variable itself ends up carrying its concrete layout.
"""

from collections.abc import Callable

from ....infrastructure.logging import get_logger
from ...models.dwarf import (
    DwarfTagRegistry,
    EntryNode,
    EntryRole,
    EntryTree,
    QUALIFIER_MARKERS,
    VariableInfoNode,
    VariableInfoTree,
    VarType,
    primitive_kind,
    primitive_width,
)

logger = get_logger(__name__)

DEFAULT_MAX_TYPE_DEPTH = 64


class TypeResolver:
    """Resolves type chains of one compile unit into its variable tree."""

    def __init__(
        self,
        entries: EntryTree,
        output: VariableInfoTree,
        max_depth: int = DEFAULT_MAX_TYPE_DEPTH,
    ):
        """
        Args:
            entries: Entry tree of the unit, with its type index
            output: Variable tree receiving the new nodes
            max_depth: Longest type chain followed before giving up
        """
        self.entries = entries
        self.output = output
        self.max_depth = max_depth
        self._in_progress: set[int] = set()

        self._handlers: dict[EntryRole, Callable[[EntryNode, VariableInfoNode], int]] = {
            EntryRole.BASE_TYPE: self._resolve_base_type,
            EntryRole.STRUCT: self._resolve_struct,
            EntryRole.ENUMERATION: self._resolve_enumeration,
            EntryRole.ARRAY: self._resolve_array,
        }
        for role in DwarfTagRegistry.QUALIFIER_ROLES:
            self._handlers[role] = self._resolve_qualifier

    def resolve_reference(self, type_ref: int, parent: int) -> int:
        """Resolve the entry ``type_ref`` points at under variable node ``parent``.

        Args:
            type_ref: Unit-relative offset from DW_AT_type
            parent: Index of the variable node receiving the type

        Returns:
            Resolved size in bytes, 0 when the reference cannot be followed
        """
        target = self.entries.type_entry(type_ref)
        if target is None:
            if type_ref:
                logger.debug(
                    f"Unit #{self.entries.unit.index}: unresolved type reference 0x{type_ref:x}"
                )
            return 0
        return self.resolve(target.index, parent)

    def resolve(self, entry_index: int, parent: int) -> int:
        """Append the node for entry ``entry_index`` under ``parent`` and resolve below it.

        Args:
            entry_index: Index of a type entry in the entry tree
            parent: Index of the variable node receiving the type

        Returns:
            Resolved size in bytes
        """
        entry = self.entries[entry_index]
        handler = self._handlers.get(entry.role)
        if handler is None:
            logger.debug(
                f"No value layout for {DwarfTagRegistry.describe(entry.tag)} at 0x{entry.offset:x}"
            )
            return 0

        if entry_index in self._in_progress:
            logger.warning(f"Type cycle through entry 0x{entry.offset:x}, not followed")
            return 0
        if len(self._in_progress) >= self.max_depth:
            logger.warning(
                f"Type chain deeper than {self.max_depth} at entry 0x{entry.offset:x}, not followed"
            )
            return 0

        self._in_progress.add(entry_index)
        try:
            return handler(entry, self.output[parent])
        finally:
            self._in_progress.discard(entry_index)

    def _append_wrapper(self, entry: EntryNode, parent: VariableInfoNode) -> VariableInfoNode:
        return self.output.append_child(
            parent.index,
            VariableInfoNode(
                index=-1,
                name=QUALIFIER_MARKERS[entry.role],
                address=parent.address,
                type_ref=entry.type_ref,
                is_qualifier=True,
                kind=entry.role,
            ),
        )

    def _resolve_base_type(self, entry: EntryNode, parent: VariableInfoNode) -> int:
        var_type = primitive_kind(entry.name)
        if var_type is VarType.UNKNOWN:
            logger.warning(f"Unknown base type '{entry.display_name}' at 0x{entry.offset:x}")

        node = self.output.append_child(
            parent.index,
            VariableInfoNode(
                index=-1,
                name=entry.name,
                address=parent.address,
                var_type=var_type,
                is_qualifier=True,
                kind=EntryRole.BASE_TYPE,
            ),
        )
        parent.var_type = var_type

        if not entry.sizes:
            logger.warning(f"Base type '{entry.display_name}' has no byte size")
            return 0

        size = entry.sizes[0]
        width = primitive_width(var_type)
        if width and size != width:
            logger.warning(
                f"Base type '{entry.display_name}' at 0x{entry.offset:x} declares {size} bytes, "
                f"values are read as {var_type.value} ({width} bytes)"
            )
        node.sizes = [size]
        parent.sizes = [size]
        return size

    def _resolve_qualifier(self, entry: EntryNode, parent: VariableInfoNode) -> int:
        node = self._append_wrapper(entry, parent)
        size = self.resolve_reference(entry.type_ref, node.index)
        parent.var_type = node.var_type
        parent.sizes = list(node.sizes)
        return size

    def _resolve_struct(self, entry: EntryNode, parent: VariableInfoNode) -> int:
        node = self._append_wrapper(entry, parent)
        node.var_type = VarType.STRUCT

        for member in self.entries.children(entry.index):
            if member.role is not EntryRole.MEMBER or member.is_declaration:
                continue
            member_node = self.output.append_child(
                node.index,
                VariableInfoNode(
                    index=-1,
                    name=member.name,
                    address=parent.address + member.member_offset,
                    type_ref=member.type_ref,
                    kind=EntryRole.MEMBER,
                ),
            )
            self.resolve_reference(member.type_ref, member_node.index)

        parent.var_type = VarType.STRUCT
        if not entry.sizes:
            logger.debug(f"Struct at 0x{entry.offset:x} has no byte size")
            return 0

        size = entry.sizes[0]
        node.sizes = [size]
        parent.sizes = [size]
        return size

    def _resolve_enumeration(self, entry: EntryNode, parent: VariableInfoNode) -> int:
        node = self._append_wrapper(entry, parent)
        node.var_type = VarType.ENUM

        for enumerator in self.entries.children(entry.index):
            if enumerator.role is not EntryRole.ENUMERATOR:
                continue
            self.output.append_child(
                node.index,
                VariableInfoNode(
                    index=-1,
                    name=enumerator.name,
                    is_qualifier=True,
                    kind=EntryRole.ENUMERATOR,
                    const_value=enumerator.const_value,
                ),
            )

        parent.var_type = VarType.ENUM
        if not entry.sizes:
            logger.debug(f"Enumeration at 0x{entry.offset:x} has no byte size")
            return 0

        size = entry.sizes[0]
        node.sizes = [size]
        parent.sizes = [size]
        return size

    def _resolve_array(self, entry: EntryNode, parent: VariableInfoNode) -> int:
        node = self._append_wrapper(entry, parent)

        dimensions = [
            child.sizes[0]
            for child in self.entries.children(entry.index)
            if child.role is EntryRole.SUBRANGE and child.sizes
        ]
        element_size = self.resolve_reference(entry.type_ref, node.index)

        # The element resolution left the element's own chain on the array node
        node.sizes = dimensions + node.sizes
        parent.var_type = node.var_type
        parent.sizes = list(node.sizes)

        total = element_size
        for dimension in dimensions:
            total *= dimension
        return total
