from __future__ import annotations
from typing import Dict, Iterator, List, Optional
import logging

from fos.parsing.ir import TypeRecord

logger = logging.getLogger(__name__)


class TypeRegistry:
    """
    Interface / type alias / enum definitions by name.

    Every definition is kept, keyed by (name, file). `get` returns the one seen
    last, so single-result lookups behave as last-write-wins while `definitions`
    still exposes same-named types declared in different files.
    """

    def __init__(self) -> None:
        self._defs: Dict[str, List[TypeRecord]] = {}

    def add(self, record: TypeRecord) -> None:
        existing = self._defs.setdefault(record.name, [])
        existing[:] = [d for d in existing if d.file_path != record.file_path]
        existing.append(record)
        if len(existing) > 1:
            logger.debug(
                "Type %s defined in %d files: %s",
                record.name, len(existing), ", ".join(d.file_path for d in existing),
            )

    def __len__(self) -> int:
        return sum(len(v) for v in self._defs.values())

    def __iter__(self) -> Iterator[TypeRecord]:
        for defs in self._defs.values():
            yield from defs

    def get(self, name: str) -> Optional[TypeRecord]:
        defs = self._defs.get(name)
        return defs[-1] if defs else None

    def definitions(self, name: str) -> List[TypeRecord]:
        return list(self._defs.get(name, []))

    def duplicates(self) -> Dict[str, List[TypeRecord]]:
        return {name: list(defs) for name, defs in self._defs.items() if len(defs) > 1}
