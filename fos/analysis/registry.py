"""
Project-wide function registry.

Records are keyed by their qualified id (discovery order preserved) and indexed
by plain name. Relationship queries (callers, project-internal calls) are
answered from `callee_names`; the reverse index is built on first use.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional
import logging
import posixpath
import re

from fos.parsing.ir import FunctionRecord

logger = logging.getLogger(__name__)

_TS_SUFFIX_RE = re.compile(r"\.(ts|tsx)$")


@dataclass
class Resolution:
    """Outcome of resolving a user-supplied function name to one record."""

    query: str
    candidates: List[FunctionRecord] = field(default_factory=list)

    @property
    def record(self) -> Optional[FunctionRecord]:
        return self.candidates[0] if self.candidates else None

    @property
    def found(self) -> bool:
        return bool(self.candidates)

    @property
    def ambiguous(self) -> bool:
        return len(self.candidates) > 1


@dataclass
class PatternMatch:
    pattern: str
    records: List[FunctionRecord] = field(default_factory=list)
    regex_error: Optional[str] = None

    @property
    def used_substring_fallback(self) -> bool:
        return self.regex_error is not None


@dataclass
class ModuleSelection:
    module: str
    records: List[FunctionRecord] = field(default_factory=list)
    matched_paths: List[str] = field(default_factory=list)

    @property
    def is_single_file(self) -> bool:
        return len(self.matched_paths) == 1 and self.matched_paths[0].endswith((".ts", ".tsx"))


def module_of(file_path: str) -> str:
    return posixpath.dirname(file_path) or "."


class FunctionRegistry:
    def __init__(self) -> None:
        self._records: Dict[str, FunctionRecord] = {}
        self._by_name: Dict[str, List[FunctionRecord]] = {}
        self._by_qualified: Dict[str, List[FunctionRecord]] = {}
        self._modules: Dict[str, List[str]] = {}
        self._callers: Optional[Dict[str, List[FunctionRecord]]] = None

    def add(self, record: FunctionRecord) -> None:
        if record.id in self._records:
            raise ValueError(f"Duplicate function id: {record.id}")
        self._records[record.id] = record
        self._by_name.setdefault(record.name, []).append(record)
        if record.enclosing_scope:
            self._by_qualified.setdefault(record.qualified_name, []).append(record)
        self._modules.setdefault(module_of(record.file_path), []).append(record.id)
        self._callers = None

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[FunctionRecord]:
        return iter(self._records.values())

    def __contains__(self, function_id: object) -> bool:
        return function_id in self._records

    def get(self, function_id: str) -> Optional[FunctionRecord]:
        return self._records.get(function_id)

    def all_functions(self) -> List[FunctionRecord]:
        return list(self._records.values())

    # ---------- name lookups ----------

    def find_by_name(self, name: str) -> List[FunctionRecord]:
        """Exact name matches plus records whose id ends with `:<name>`, in discovery order."""
        suffix = f":{name}"
        return [r for r in self._records.values() if r.name == name or r.id.endswith(suffix)]

    def resolve(self, name: str) -> Resolution:
        return Resolution(query=name, candidates=self.find_by_name(name))

    def find_by_pattern(self, pattern: str) -> PatternMatch:
        """Case-insensitive regex search on names; invalid regexes fall back to substring matching."""
        try:
            regex = re.compile(pattern, re.IGNORECASE)
        except re.error as e:
            logger.debug("Invalid regex %r (%s), using substring match", pattern, e)
            needle = pattern.lower()
            return PatternMatch(
                pattern=pattern,
                records=[r for r in self._records.values() if needle in r.name.lower()],
                regex_error=str(e),
            )
        return PatternMatch(
            pattern=pattern,
            records=[r for r in self._records.values() if regex.search(r.name)],
        )

    # ---------- relationships ----------

    def _callers_index(self) -> Dict[str, List[FunctionRecord]]:
        if self._callers is None:
            index: Dict[str, List[FunctionRecord]] = {}
            for record in self._records.values():
                for callee in record.callee_names:
                    index.setdefault(callee, []).append(record)
            self._callers = index
        return self._callers

    def callers_of(self, name: str) -> List[FunctionRecord]:
        return list(self._callers_index().get(name, []))

    def callers_of_record(self, record: FunctionRecord) -> List[FunctionRecord]:
        """Callers by plain name, plus `scope.name` callers for nested/member functions."""
        callers = self.callers_of(record.name)
        if record.enclosing_scope:
            seen = {c.id for c in callers}
            callers.extend(c for c in self.callers_of(record.qualified_name) if c.id not in seen)
        return callers

    def resolve_call(self, callee: str) -> List[FunctionRecord]:
        """Registered functions a callee name refers to: plain name first, then `scope.name`."""
        return list(self._by_name.get(callee) or self._by_qualified.get(callee) or [])

    def is_project_call(self, callee: str) -> bool:
        return callee in self._by_name or callee in self._by_qualified

    def project_calls_of(self, record: FunctionRecord) -> List[str]:
        return [c for c in record.callee_names if self.is_project_call(c)]

    # ---------- modules ----------

    def modules_grouping(self) -> Dict[str, List[str]]:
        return {module: list(ids) for module, ids in self._modules.items()}

    def select_module(self, module: str) -> ModuleSelection:
        """
        Records under a module path. The path may name a file with or without
        its extension, a directory prefix, or (when it has no slash or dot) a
        bare file stem or a folder name anywhere in the tree.
        """
        wanted = re.sub(r"^\.?/", "", module)
        selection = ModuleSelection(module=wanted)
        matched: Dict[str, None] = {}
        bare = "/" not in wanted and "." not in wanted
        for r in self._records.values():
            fp = r.file_path
            without_ext = _TS_SUFFIX_RE.sub("", fp)
            hit = (
                fp in (wanted, wanted + ".ts", wanted + ".tsx")
                or without_ext == wanted
                or fp.startswith(wanted + "/")
                or (bare and (without_ext.split("/")[-1] == wanted or f"/{wanted}/" in fp))
            )
            if hit:
                selection.records.append(r)
                matched.setdefault(fp, None)
        selection.matched_paths = sorted(matched)
        return selection
