"""
Plan tree construction from indentation.
Builds the flat, parent-linked node list in a single pass over the plan lines.
"""
import logging
from typing import Dict, Iterator, List, Optional, Tuple

from .errors import PlanLimitExceeded
from .matcher import fold_detail, match_line
from .models import AnalysisLimits, PlanNode, ROOT

logger = logging.getLogger(__name__)


class PlanTreeBuilder:
    def __init__(self, limits: Optional[AnalysisLimits] = None):
        self.limits = limits or AnalysisLimits()

    def build(self, lines: List[str]) -> List[PlanNode]:
        """
        Build plan nodes from ordered plan lines.

        A node's parent is the closest preceding node with a smaller
        indentation. Lines that are not operators are folded into the
        preceding node and never create nodes.
        """
        if len(lines) > self.limits.max_lines:
            raise PlanLimitExceeded('max_lines', len(lines), self.limits.max_lines)

        nodes: List[PlanNode] = []
        stack: List[Tuple[int, int]] = []  # (indentation, node id)

        for line in lines:
            matched = match_line(line)
            if matched is None:
                if nodes:
                    fold_detail(nodes[-1], line)
                continue

            # Remove all entries with equal or greater indentation
            while stack and stack[-1][0] >= matched.indentation:
                stack.pop()
            parent_id = stack[-1][1] if stack else ROOT

            node_id = len(nodes)
            nodes.append(PlanNode(
                id=node_id,
                parent_id=parent_id,
                operation=matched.operation,
                kind=matched.kind,
                indentation=matched.indentation,
                never_executed=matched.never_executed,
                **matched.metrics
            ))
            stack.append((matched.indentation, node_id))

            if len(stack) > self.limits.max_depth:
                raise PlanLimitExceeded('max_depth', len(stack), self.limits.max_depth)

        logger.debug("Built %d plan nodes from %d lines", len(nodes), len(lines))
        return nodes


def roots(nodes: List[PlanNode]) -> List[PlanNode]:
    return [node for node in nodes if node.parent_id == ROOT]


def children_of(nodes: List[PlanNode], node_id: int) -> List[PlanNode]:
    return [node for node in nodes if node.parent_id == node_id]


def build_children_index(nodes: List[PlanNode]) -> Dict[int, List[int]]:
    """Map each node id (and ROOT) to its child ids, in parse order."""
    index: Dict[int, List[int]] = {ROOT: []}
    for node in nodes:
        index.setdefault(node.id, [])
        index.setdefault(node.parent_id, []).append(node.id)
    return index


def node_depth(nodes: List[PlanNode], node_id: int) -> int:
    """Depth of a node, 1 for top-level nodes."""
    depth = 0
    current = node_id
    while current != ROOT:
        depth += 1
        current = nodes[current].parent_id
    return depth


def walk(nodes: List[PlanNode]) -> Iterator[Tuple[PlanNode, int]]:
    """Yield (node, depth) in depth-first order without recursion."""
    index = build_children_index(nodes)
    pending = [(node_id, 1) for node_id in reversed(index[ROOT])]
    while pending:
        node_id, depth = pending.pop()
        yield nodes[node_id], depth
        pending.extend((child, depth + 1) for child in reversed(index[node_id]))
