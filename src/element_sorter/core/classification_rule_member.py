#!/usr/bin/env python3
"""
Member classification rules for the Reorganizer.
Provides a rule-based system that assigns each class member to one ordering group.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum, IntEnum

from element_sorter.core.config import SortingConfig
from element_sorter.core.source_model import NodeKind, SourceNode


class Group(Enum):
    """Ordering groups, declared in emission order"""

    STATIC_FIELDS = "static_fields"
    PLAIN_INSTANCE_FIELDS = "plain_instance_fields"
    ANNOTATED_INSTANCE_FIELDS = "annotated_instance_fields"
    METHODS = "methods"
    NESTED_CLASSES = "nested_classes"


GROUP_ORDER: list[Group] = list(Group)


class MemberPriority(IntEnum):
    """Priority levels for member classification rules."""

    HIGHEST = 0
    HIGH = 10
    MEDIUM = 20
    NORMAL = 30
    LOW = 40
    LOWEST = 50


@dataclass
class ClassificationRuleMember:
    """A single member classification rule."""

    group: Group
    priority: int = MemberPriority.NORMAL

    kinds: set[NodeKind] = field(default_factory=set)

    # None means "don't care"
    require_static: bool | None = None
    require_annotation: bool | None = None
    require_doc: bool | None = None

    # Receives the member, must return True for the rule to match
    custom_check: Callable[[SourceNode], bool] | None = None

    def matches(self, member: SourceNode) -> bool:
        """Check if this rule matches the given member.

        Args:
            member: Member descriptor (field, method or nested type)

        Returns:
            bool: True if every configured condition holds
        """
        if self.kinds and member.kind not in self.kinds:
            return False

        if self.require_static is not None and member.is_static != self.require_static:
            return False

        if (
            self.require_annotation is not None
            and member.has_annotation != self.require_annotation
        ):
            return False

        if self.require_doc is not None and member.has_doc != self.require_doc:
            return False

        if self.custom_check:
            return self.custom_check(member)

        return True


def get_default_member_rules(
    policy: SortingConfig | None = None,
) -> list[ClassificationRuleMember]:
    """Get the default set of member classification rules.

    Static fields only form their own group when ``static_precedes_annotated``
    is set; otherwise they fall through to the annotation-based field rules.

    Returns:
        list[ClassificationRuleMember]: Rules sorted by priority
    """
    policy = policy or SortingConfig()

    rules = [
        ClassificationRuleMember(
            group=Group.NESTED_CLASSES,
            priority=MemberPriority.HIGHEST,
            kinds={NodeKind.TYPE},
        ),
        ClassificationRuleMember(
            group=Group.ANNOTATED_INSTANCE_FIELDS,
            priority=MemberPriority.MEDIUM,
            kinds={NodeKind.FIELD},
            require_annotation=True,
        ),
        ClassificationRuleMember(
            group=Group.PLAIN_INSTANCE_FIELDS,
            priority=MemberPriority.NORMAL,
            kinds={NodeKind.FIELD},
        ),
        ClassificationRuleMember(
            group=Group.METHODS,
            priority=MemberPriority.LOWEST,
            kinds={NodeKind.METHOD},
        ),
    ]

    if policy.static_precedes_annotated:
        rules.append(
            ClassificationRuleMember(
                group=Group.STATIC_FIELDS,
                priority=MemberPriority.HIGH,
                kinds={NodeKind.FIELD},
                require_static=True,
            )
        )

    if policy.group_documented_fields:
        rules.append(
            ClassificationRuleMember(
                group=Group.ANNOTATED_INSTANCE_FIELDS,
                priority=MemberPriority.MEDIUM,
                kinds={NodeKind.FIELD},
                require_doc=True,
            )
        )

    return sorted(rules, key=lambda r: r.priority)


class MemberClassifier:
    """Assign members to ordering groups using priority-ordered rules."""

    def __init__(self, policy: SortingConfig | None = None):
        self.policy = policy or SortingConfig()
        self._rules = get_default_member_rules(self.policy)

    def add_rule(self, rule: ClassificationRuleMember):
        """
        Add a custom classification rule.
        Allows users to extend classification without modifying code.

        Args:
            rule: ClassificationRuleMember to add
        """
        self._rules.append(rule)
        self._rules.sort(key=lambda r: r.priority)

    def classify(self, member: SourceNode) -> Group:
        """
        Classify a member using the rule-based system.

        Args:
            member: Field, method or nested type

        Returns:
            Group the member belongs to

        Raises:
            ValueError: if the node is not a sortable member
        """
        for rule in self._rules:
            if rule.matches(member):
                return rule.group

        raise ValueError(f"No ordering group for {member!r}")

    def group(self, members: list[SourceNode]) -> dict[Group, list[SourceNode]]:
        """Partition members into groups, keeping input order inside each group.

        Every group key is present, in emission order, even when empty.
        """
        groups: dict[Group, list[SourceNode]] = {group: [] for group in GROUP_ORDER}
        for member in members:
            groups[self.classify(member)].append(member)
        return groups
