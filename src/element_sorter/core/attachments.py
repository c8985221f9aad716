"""
Leading comments and whitespace that travel with a member.
"""

from dataclasses import dataclass, field

from element_sorter.core.source_model import ClassBody, SourceNode


@dataclass
class AttachmentRun:
    """Contiguous comment/whitespace nodes ending at a member's start"""

    nodes: list[SourceNode] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.nodes)

    def __iter__(self):
        return iter(self.nodes)

    def __len__(self) -> int:
        return len(self.nodes)

    @property
    def leading_whitespace(self) -> SourceNode | None:
        """Whitespace node the run starts with, if any"""
        if self.nodes and self.nodes[0].is_whitespace:
            return self.nodes[0]
        return None

    @property
    def comments(self) -> list[SourceNode]:
        return [node for node in self.nodes if node.is_comment]


def resolve_attachments(body: ClassBody, member: SourceNode) -> AttachmentRun:
    """Collect the comment/whitespace run immediately preceding ``member``.

    Walks backward from the member's predecessor and stops at the first node
    that is neither a comment nor whitespace. Nodes are returned in document
    order.
    """
    index = body.position(member)
    run = []
    for node in reversed(body.children[:index]):
        if not body.is_resident(node):
            break
        if not (node.is_comment or node.is_whitespace):
            break
        run.append(node)
    run.reverse()
    return AttachmentRun(nodes=run)
