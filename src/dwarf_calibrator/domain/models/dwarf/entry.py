#!/usr/bin/env python3

"""Debug entry tree stored as an arena of nodes."""

from collections.abc import Iterator
from dataclasses import dataclass, field

from .compile_unit import CompileUnit
from .tag_registry import EntryRole


@dataclass
class EntryNode:
    """One decoded debug entry.

    ``offset`` is the entry's position relative to its unit start, the value
    other entries use to reference it. ``child`` and ``next`` are indices in
    the owning EntryTree.
    """

    index: int
    role: EntryRole
    tag: int
    offset: int
    unit_index: int
    name: bytes = b""
    type_ref: int = 0
    sizes: list[int] = field(default_factory=list)
    member_offset: int = 0
    address: int = 0
    is_declaration: bool = False
    const_value: int | None = None
    child: int | None = None
    next: int | None = None

    @property
    def display_name(self) -> str:
        return self.name.decode("utf-8", errors="replace")


@dataclass
class EntryTree:
    """All entries of one compile unit, linked first-child/next-sibling."""

    unit: CompileUnit
    nodes: list[EntryNode] = field(default_factory=list)
    root: int | None = None

    def add(self, role: EntryRole, tag: int, offset: int) -> EntryNode:
        node = EntryNode(
            index=len(self.nodes),
            role=role,
            tag=tag,
            offset=offset,
            unit_index=self.unit.index,
        )
        self.nodes.append(node)
        return node

    def __getitem__(self, index: int) -> EntryNode:
        return self.nodes[index]

    def __len__(self) -> int:
        return len(self.nodes)

    def siblings(self, index: int | None) -> Iterator[EntryNode]:
        """Iterate a sibling chain starting at ``index``."""
        while index is not None:
            node = self.nodes[index]
            yield node
            index = node.next

    def children(self, index: int) -> Iterator[EntryNode]:
        return self.siblings(self.nodes[index].child)

    def top_level(self) -> Iterator[EntryNode]:
        return self.siblings(self.root)

    def type_entry(self, type_ref: int) -> EntryNode | None:
        """Look up the entry a DW_AT_type reference points at."""
        if not type_ref:
            return None
        index = self.unit.type_index.get(type_ref)
        return None if index is None else self.nodes[index]

    @property
    def compile_unit_entry(self) -> EntryNode | None:
        for node in self.top_level():
            if node.role is EntryRole.COMPILE_UNIT:
                return node
        return None
