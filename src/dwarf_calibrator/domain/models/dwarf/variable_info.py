#!/usr/bin/env python3

"""Typed variable tree produced by type resolution."""

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum

from .tag_registry import EntryRole


class VarType(Enum):
    """Concrete value type of a variable node."""

    UNKNOWN = "unknown"
    BOOLEAN = "bool"
    UINT8 = "uint8"
    SINT8 = "sint8"
    UINT16 = "uint16"
    SINT16 = "sint16"
    UINT32 = "uint32"
    SINT32 = "sint32"
    UINT64 = "uint64"
    SINT64 = "sint64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    ENUM = "enum"
    STRUCT = "struct"

    def __str__(self) -> str:
        return self.value


# struct module formats for types with a fixed memory layout
VALUE_FORMATS: dict[VarType, str] = {
    VarType.BOOLEAN: "<?",
    VarType.UINT8: "<B",
    VarType.SINT8: "<b",
    VarType.UINT16: "<H",
    VarType.SINT16: "<h",
    VarType.UINT32: "<I",
    VarType.SINT32: "<i",
    VarType.UINT64: "<Q",
    VarType.SINT64: "<q",
    VarType.FLOAT32: "<f",
    VarType.FLOAT64: "<d",
}


@dataclass
class VariableInfoNode:
    """A variable, member or type wrapper with its resolved layout.

    Qualifier nodes (typedef, const, volatile, array, struct and enum
    wrappers, enumerators) carry no value of their own; ``kind`` names the
    entry role that produced the node.
    """

    index: int
    name: bytes
    address: int = 0
    type_ref: int = 0
    var_type: VarType = VarType.UNKNOWN
    sizes: list[int] = field(default_factory=list)
    is_qualifier: bool = False
    kind: EntryRole = EntryRole.OTHER
    const_value: int | None = None
    child: int | None = None
    next: int | None = None

    @property
    def display_name(self) -> str:
        return self.name.decode("utf-8", errors="replace")

    @property
    def byte_size(self) -> int:
        """Size of one element: the last entry of the size chain."""
        return self.sizes[-1] if self.sizes else 0


@dataclass
class VariableInfoTree:
    """Variable nodes of one compile unit; node 0 is the unit's symbol."""

    unit_index: int
    nodes: list[VariableInfoNode] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    _tails: dict[int, int] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def for_unit(cls, unit_index: int, unit_name: bytes) -> "VariableInfoTree":
        tree = cls(unit_index=unit_index)
        tree.nodes.append(
            VariableInfoNode(index=0, name=unit_name, kind=EntryRole.COMPILE_UNIT)
        )
        return tree

    @property
    def root(self) -> VariableInfoNode:
        return self.nodes[0]

    def __getitem__(self, index: int) -> VariableInfoNode:
        return self.nodes[index]

    def __len__(self) -> int:
        return len(self.nodes)

    def append_child(self, parent: int, node: VariableInfoNode) -> VariableInfoNode:
        """Store ``node`` and link it as the last child of ``parent``."""
        node.index = len(self.nodes)
        self.nodes.append(node)

        tail = self._tails.get(parent)
        if tail is None:
            self.nodes[parent].child = node.index
        else:
            self.nodes[tail].next = node.index
        self._tails[parent] = node.index
        return node

    def children(self, index: int) -> Iterator[VariableInfoNode]:
        child = self.nodes[index].child
        while child is not None:
            node = self.nodes[child]
            yield node
            child = node.next

    def walk(self, index: int = 0, depth: int = 0) -> Iterator[tuple[int, VariableInfoNode]]:
        """Depth-first pre-order traversal yielding (depth, node)."""
        stack = [(index, depth)]
        while stack:
            current, level = stack.pop()
            node = self.nodes[current]
            yield level, node
            stack.extend(
                (child.index, level + 1) for child in reversed(list(self.children(current)))
            )
