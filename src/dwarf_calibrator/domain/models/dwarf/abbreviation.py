#!/usr/bin/env python3

"""Abbreviation declaration models."""

from collections.abc import Mapping
from dataclasses import dataclass


@dataclass(frozen=True)
class AbbrevAttribute:
    """One (attribute, form) pair of a declaration."""

    attribute: int
    form: int
    implicit_const: int | None = None


@dataclass(frozen=True)
class Abbreviation:
    """How entries sharing an abbreviation code are encoded."""

    code: int
    tag: int
    has_children: bool
    attributes: tuple[AbbrevAttribute, ...]


@dataclass(frozen=True)
class AbbrevTable:
    """All declarations starting at one file offset."""

    offset: int
    entries: Mapping[int, Abbreviation]

    def get(self, code: int) -> Abbreviation | None:
        return self.entries.get(code)

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, code: object) -> bool:
        return code in self.entries
