#!/usr/bin/env python3

"""Parallel per-unit symbol resolution."""

import os
import queue
import threading

from ...infrastructure.logging import get_logger
from ..models.dwarf import EntryRole, EntryTree, VariableInfoNode, VariableInfoTree
from .parsing.type_resolver import DEFAULT_MAX_TYPE_DEPTH, TypeResolver

logger = get_logger(__name__)


class ParallelSymbolWalker:
    """Resolves the top-level variables of every compile unit on a thread pool.

    Workers pull unit indices from a shared FIFO queue. Each unit is
    resolved by exactly one worker into its own result slot, so workers share
    nothing but the queue. Results come back in unit order regardless of
    which worker finished first.
    """

    def __init__(self, max_workers: int | None = None, max_type_depth: int = DEFAULT_MAX_TYPE_DEPTH):
        """
        Args:
            max_workers: Upper bound on worker threads (default: CPU count)
            max_type_depth: Longest type chain followed per variable
        """
        self.max_workers = max_workers or os.cpu_count() or 1
        self.max_type_depth = max_type_depth

    def walk(self, trees: list[EntryTree]) -> list[VariableInfoTree]:
        """Resolve every unit's variables.

        Args:
            trees: Entry trees in unit order

        Returns:
            One variable tree per unit, in the same order
        """
        if not trees:
            return []

        work: queue.Queue[int] = queue.Queue()
        for index in range(len(trees)):
            work.put(index)

        results: list[VariableInfoTree | None] = [None] * len(trees)
        worker_count = max(1, min(len(trees), self.max_workers))
        logger.debug(f"Resolving {len(trees)} units with {worker_count} workers")

        workers = [
            threading.Thread(
                target=self._drain,
                args=(work, trees, results),
                name=f"symbol-walker-{n}",
                daemon=True,
            )
            for n in range(worker_count)
        ]
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join()

        return [result for result in results if result is not None]

    def _drain(
        self,
        work: "queue.Queue[int]",
        trees: list[EntryTree],
        results: list[VariableInfoTree | None],
    ) -> None:
        while True:
            try:
                index = work.get_nowait()
            except queue.Empty:
                return
            results[index] = self.resolve_unit(trees[index])

    def resolve_unit(self, entries: EntryTree) -> VariableInfoTree:
        """Resolve the top-level variables of one unit.

        Failures stay inside the unit: the tree keeps what was resolved and
        records the error.

        Args:
            entries: The unit's entry tree

        Returns:
            The unit's variable tree
        """
        unit_entry = entries.compile_unit_entry
        tree = VariableInfoTree.for_unit(
            entries.unit.index, unit_entry.name if unit_entry is not None else b""
        )
        if unit_entry is None:
            return tree

        resolver = TypeResolver(entries, tree, self.max_type_depth)
        try:
            for entry in entries.children(unit_entry.index):
                if entry.role is not EntryRole.VARIABLE or entry.is_declaration:
                    continue
                node = tree.append_child(
                    0,
                    VariableInfoNode(
                        index=-1,
                        name=entry.name,
                        address=entry.address,
                        type_ref=entry.type_ref,
                        kind=EntryRole.VARIABLE,
                    ),
                )
                if entries.type_entry(entry.type_ref) is None:
                    logger.debug(f"Unable to resolve type of '{entry.display_name}'")
                    continue
                resolver.resolve_reference(entry.type_ref, node.index)
        except Exception as e:
            message = f"Unit #{entries.unit.index} resolution failed: {e}"
            logger.error(message)
            tree.errors.append(message)

        return tree
