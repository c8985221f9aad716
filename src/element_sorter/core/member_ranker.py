"""
Comparator that ranks two class members.

Keys, each applied only when the previous ones tie:

1. kind: fields, then methods (nested types last)
2. list-typed fields after the others (only with ``demote_list_fields``)
3. static before non-static
4. visibility: public, package-private, protected, private
5. name, case-insensitive

Sorting is stable, so members that compare equal keep their input order.
"""

import logging
from functools import cmp_to_key

from element_sorter.core.config import SortingConfig
from element_sorter.core.source_model import NodeKind, SourceNode, Visibility

logger = logging.getLogger(__name__)

KIND_PRIORITY: dict[NodeKind, int] = {
    NodeKind.FIELD: 0,
    NodeKind.METHOD: 1,
    NodeKind.TYPE: 2,
}

# Protected ranks after package-private on purpose
VISIBILITY_PRIORITY: dict[Visibility, int] = {
    Visibility.PUBLIC: 0,
    Visibility.PACKAGE_PRIVATE: 1,
    Visibility.PROTECTED: 2,
    Visibility.PRIVATE: 3,
}


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


class MemberRanker:
    """Total order over member descriptors, configured by a ``SortingConfig``."""

    def __init__(self, policy: SortingConfig | None = None):
        self.policy = policy or SortingConfig()
        self._list_names = set(self.policy.list_type_names)
        self._list_simple_names = {
            name.rsplit(".", 1)[-1] for name in self.policy.list_type_names
        }

    def compare(self, first: SourceNode, second: SourceNode) -> int:
        """Return -1, 0 or 1"""
        for key in (
            self._compare_kind,
            self._compare_list_type,
            self._compare_static,
            self._compare_visibility,
            self._compare_name,
        ):
            result = key(first, second)
            if result != 0:
                return result
        return 0

    def sort(self, members: list[SourceNode]) -> list[SourceNode]:
        """Stable sort of members by this ranking"""
        return sorted(members, key=cmp_to_key(self.compare))

    # ============================================================
    # KEYS
    # ============================================================

    def _compare_kind(self, first: SourceNode, second: SourceNode) -> int:
        return _sign(
            KIND_PRIORITY.get(first.kind, len(KIND_PRIORITY))
            - KIND_PRIORITY.get(second.kind, len(KIND_PRIORITY))
        )

    def _compare_list_type(self, first: SourceNode, second: SourceNode) -> int:
        if not self.policy.demote_list_fields:
            return 0
        return _sign(int(self.is_list_field(first)) - int(self.is_list_field(second)))

    def _compare_static(self, first: SourceNode, second: SourceNode) -> int:
        if first.is_static and not second.is_static:
            return -1
        if second.is_static and not first.is_static:
            return 1
        return 0

    def _compare_visibility(self, first: SourceNode, second: SourceNode) -> int:
        return _sign(
            self.visibility_priority(first) - self.visibility_priority(second)
        )

    def _compare_name(self, first: SourceNode, second: SourceNode) -> int:
        first_name = (first.name or "").lower()
        second_name = (second.name or "").lower()
        return (first_name > second_name) - (first_name < second_name)

    # ============================================================
    # HELPERS
    # ============================================================

    @staticmethod
    def visibility_priority(member: SourceNode) -> int:
        """Rank of the member's visibility; no modifier info is package-private"""
        if member.visibility is None:
            return VISIBILITY_PRIORITY[Visibility.PACKAGE_PRIVATE]
        return VISIBILITY_PRIORITY[member.visibility]

    def is_list_field(self, member: SourceNode) -> bool:
        """Check whether a field is declared with a list-like container type"""
        if not member.is_field or not member.declared_type:
            return False

        declared = member.declared_type.strip()
        raw_type = declared.split("<", 1)[0].strip()

        for name in self._list_names:
            if raw_type.startswith(name):
                return True
        if raw_type.rsplit(".", 1)[-1] in self._list_simple_names:
            return True
        return "List<" in declared
