#!/usr/bin/env python3

"""DWARF parsing domain models."""

from .abbreviation import AbbrevAttribute, AbbrevTable, Abbreviation
from .compile_unit import CompileUnit
from .constants import Attr, Form, Tag, UnitType, attr_name, form_name, tag_name
from .entry import EntryNode, EntryTree
from .tag_constants import PRIMITIVE_TYPE_KINDS, QUALIFIER_MARKERS, primitive_kind, primitive_width
from .tag_registry import DwarfTagRegistry, EntryRole
from .variable_info import VALUE_FORMATS, VariableInfoNode, VariableInfoTree, VarType

__all__ = [
    "AbbrevAttribute",
    "AbbrevTable",
    "Abbreviation",
    "Attr",
    "CompileUnit",
    "DwarfTagRegistry",
    "EntryNode",
    "EntryRole",
    "EntryTree",
    "Form",
    "PRIMITIVE_TYPE_KINDS",
    "QUALIFIER_MARKERS",
    "Tag",
    "UnitType",
    "VALUE_FORMATS",
    "VarType",
    "VariableInfoNode",
    "VariableInfoTree",
    "attr_name",
    "form_name",
    "primitive_kind",
    "primitive_width",
    "tag_name",
]
