#!/usr/bin/env python3

"""Typed access to calibration values through resolved variable nodes.

Bridges the two halves of the tool: the variable tree says where a value
lives and how it is encoded, the memory image (or the ELF image for
defaults) holds the bytes.
"""

import itertools
import struct
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from math import prod
from typing import TYPE_CHECKING, Any

from ....infrastructure.logging import get_logger
from ...models.dwarf import (
    VALUE_FORMATS,
    DwarfTagRegistry,
    EntryRole,
    VariableInfoNode,
    VariableInfoTree,
    VarType,
)
from .memory_image import MemoryImage

if TYPE_CHECKING:
    from ....infrastructure.object_container import ObjectContainer

logger = get_logger(__name__)

Value = int | float | bool

_ENUM_STORAGE: dict[int, VarType] = {
    1: VarType.UINT8,
    2: VarType.UINT16,
    4: VarType.UINT32,
    8: VarType.UINT64,
}

_READERS: dict[VarType, Callable[[MemoryImage, int], Value]] = {
    VarType.BOOLEAN: MemoryImage.read_boolean,
    VarType.UINT8: MemoryImage.read_uint8,
    VarType.SINT8: MemoryImage.read_sint8,
    VarType.UINT16: MemoryImage.read_uint16,
    VarType.SINT16: MemoryImage.read_sint16,
    VarType.UINT32: MemoryImage.read_uint32,
    VarType.SINT32: MemoryImage.read_sint32,
    VarType.UINT64: MemoryImage.read_uint64,
    VarType.SINT64: MemoryImage.read_sint64,
    VarType.FLOAT32: MemoryImage.read_float32,
    VarType.FLOAT64: MemoryImage.read_float64,
}

_WRITERS: dict[VarType, Callable[[MemoryImage, int, Any], None]] = {
    VarType.BOOLEAN: MemoryImage.write_boolean,
    VarType.UINT8: MemoryImage.write_uint8,
    VarType.SINT8: MemoryImage.write_sint8,
    VarType.UINT16: MemoryImage.write_uint16,
    VarType.SINT16: MemoryImage.write_sint16,
    VarType.UINT32: MemoryImage.write_uint32,
    VarType.SINT32: MemoryImage.write_sint32,
    VarType.UINT64: MemoryImage.write_uint64,
    VarType.SINT64: MemoryImage.write_sint64,
    VarType.FLOAT32: MemoryImage.write_float32,
    VarType.FLOAT64: MemoryImage.write_float64,
}

# Wrappers a struct member list is looked up through
_TRANSPARENT_KINDS = DwarfTagRegistry.QUALIFIER_ROLES | {EntryRole.ARRAY}


def storage_type(var_type: VarType, byte_size: int) -> VarType:
    """Map a value type to the type its bytes are read as.

    Enums are stored as unsigned integers of their declared size.

    Raises:
        ValueError: For types without a scalar encoding
    """
    if var_type is VarType.ENUM:
        storage = _ENUM_STORAGE.get(byte_size)
        if storage is None:
            raise ValueError(f"Enum of {byte_size} bytes has no integer encoding")
        return storage
    if var_type not in _READERS:
        raise ValueError(f"Type {var_type} has no scalar encoding")
    return var_type


def read_typed(image: MemoryImage, var_type: VarType, address: int, byte_size: int = 0) -> Value:
    return _READERS[storage_type(var_type, byte_size)](image, address)


def write_typed(
    image: MemoryImage, var_type: VarType, address: int, value: Value, byte_size: int = 0
) -> None:
    _WRITERS[storage_type(var_type, byte_size)](image, address, value)


def read_value(image: MemoryImage, node: VariableInfoNode, index: int = 0) -> Value:
    """Read element ``index`` of a variable from the image."""
    return read_typed(image, node.var_type, node.address + index * node.byte_size, node.byte_size)


def write_value(image: MemoryImage, node: VariableInfoNode, value: Value, index: int = 0) -> None:
    """Write element ``index`` of a variable into the image."""
    write_typed(image, node.var_type, node.address + index * node.byte_size, value, node.byte_size)


def parse_value(var_type: VarType, text: str) -> Value:
    """Convert user input to a value of ``var_type``.

    Raises:
        ValueError: If the text does not parse
    """
    if var_type is VarType.BOOLEAN:
        lowered = text.strip().lower()
        if lowered in ("1", "true", "yes", "on"):
            return True
        if lowered in ("0", "false", "no", "off"):
            return False
        raise ValueError(f"Not a boolean: {text!r}")
    if var_type in (VarType.FLOAT32, VarType.FLOAT64):
        return float(text)
    return int(text, 0)


def read_default_value(
    container: "ObjectContainer", node: VariableInfoNode, index: int = 0
) -> Value:
    """Read a variable's initial value from the object file itself.

    Raises:
        AddressOutOfRangeError: If no loadable section holds the address
        ValueError: For types without a scalar encoding
    """
    return _read_from_container(
        container, node.var_type, node.address + index * node.byte_size, node.byte_size
    )


def _read_from_container(
    container: "ObjectContainer", var_type: VarType, address: int, byte_size: int
) -> Value:
    layout = struct.Struct(VALUE_FORMATS[storage_type(var_type, byte_size)])
    return layout.unpack(container.read_bytes(address, layout.size))[0]


@dataclass(frozen=True)
class CalibratableSymbol:
    """A scalar (or array of scalars) reachable from a top-level variable."""

    path: str
    node: VariableInfoNode
    address: int

    @property
    def var_type(self) -> VarType:
        return self.node.var_type

    @property
    def byte_size(self) -> int:
        return self.node.byte_size

    @property
    def dimensions(self) -> list[int]:
        return self.node.sizes[:-1]

    @property
    def element_count(self) -> int:
        return prod(self.dimensions) if self.dimensions else 1

    def element_address(self, index: int) -> int:
        return self.address + index * self.byte_size

    def read(self, image: MemoryImage, index: int = 0) -> Value:
        return read_typed(image, self.var_type, self.element_address(index), self.byte_size)

    def write(self, image: MemoryImage, value: Value, index: int = 0) -> None:
        write_typed(image, self.var_type, self.element_address(index), value, self.byte_size)

    def read_default(self, container: "ObjectContainer", index: int = 0) -> Value:
        """Read the initial value of element ``index`` from the object file."""
        return _read_from_container(
            container, self.var_type, self.element_address(index), self.byte_size
        )


def _struct_members(tree: VariableInfoTree, node: VariableInfoNode) -> list[VariableInfoNode]:
    current = node
    while True:
        wrappers = [child for child in tree.children(current.index) if child.is_qualifier]
        if not wrappers:
            return []
        wrapper = wrappers[0]
        if wrapper.kind is EntryRole.STRUCT:
            return list(tree.children(wrapper.index))
        if wrapper.kind not in _TRANSPARENT_KINDS:
            return []
        current = wrapper


def _collect(
    tree: VariableInfoTree, node: VariableInfoNode, path: str, shift: int
) -> Iterator[CalibratableSymbol]:
    if node.var_type is VarType.STRUCT:
        members = _struct_members(tree, node)
        dimensions = node.sizes[:-1]
        stride = node.byte_size
        # Arrays of structs are expanded element by element
        for position, indices in enumerate(itertools.product(*(range(d) for d in dimensions))):
            prefix = path + "".join(f"[{i}]" for i in indices)
            for member in members:
                yield from _collect(
                    tree, member, f"{prefix}.{member.display_name}", shift + position * stride
                )
        return

    if node.var_type is VarType.UNKNOWN:
        logger.debug(f"Skipping '{path}': type unknown")
        return

    if 0 in node.sizes[:-1]:
        logger.debug(f"Skipping '{path}': zero-length array")
        return

    yield CalibratableSymbol(path=path, node=node, address=node.address + shift)


def iter_calibratables(tree: VariableInfoTree) -> Iterator[CalibratableSymbol]:
    """Flatten a unit's variables into addressable scalar symbols.

    Struct members are reported with dotted paths, arrays of structs with
    indexed paths (``table[1].gain``); arrays of scalars stay one symbol.
    """
    for variable in tree.children(0):
        yield from _collect(tree, variable, variable.display_name, 0)
