"""Read-only integrity checks over the tree view."""

import logging
from collections.abc import Iterable
from enum import Enum

from pydantic import BaseModel, Field
from ulid import ULID

from ..application.projections.tree_store import TreeNode, TreeStore

LOGGER = logging.getLogger(__name__)


class TreeIssueType(str, Enum):
    SELF_REFERENCE = "self_reference"
    ORPHAN = "orphan"
    CYCLE = "cycle"


class TreeIssue(BaseModel):
    node_id: ULID
    node_name: str
    node_type: str
    display_path: str
    issue_type: TreeIssueType
    description: str
    cycle_path: list[ULID] = Field(default_factory=list)


class TreeIntegrityReport(BaseModel):
    """Result of one diagnostic pass.

    Attributes:
        total_nodes: Number of rows in the tree view.
        root_nodes: Number of rows with a null parent_id.
        self_referencing: Rows whose parent_id is their own id.
        orphaned: Rows whose parent_id names no existing row.
        cycles: Parent chains of two or more nodes that loop back on
            themselves, each listed from the first node reached.
    """

    total_nodes: int
    root_nodes: int
    self_referencing: list[TreeNode] = Field(default_factory=list)
    orphaned: list[TreeNode] = Field(default_factory=list)
    cycles: list[list[ULID]] = Field(default_factory=list)

    @property
    def is_healthy(self) -> bool:
        return not (self.self_referencing or self.orphaned or self.cycles)

    @property
    def issues(self) -> list[TreeIssue]:
        issues = [
            _issue(node, TreeIssueType.SELF_REFERENCE, "Node is its own parent")
            for node in self.self_referencing
        ]
        issues.extend(
            _issue(node, TreeIssueType.ORPHAN, f"Parent {node.parent_id} does not exist")
            for node in self.orphaned
        )
        for cycle in self.cycles:
            issues.append(
                TreeIssue(
                    node_id=cycle[0],
                    node_name="",
                    node_type="",
                    display_path="",
                    issue_type=TreeIssueType.CYCLE,
                    description=f"Parent chain of {len(cycle)} nodes loops back on itself",
                    cycle_path=cycle,
                )
            )
        return issues

    def summary(self) -> str:
        if self.is_healthy:
            return f"Tree is healthy: {self.total_nodes} nodes, {self.root_nodes} roots"
        return (
            f"Tree has {len(self.issues)} issue(s): "
            f"{len(self.self_referencing)} self-referencing, "
            f"{len(self.orphaned)} orphaned, {len(self.cycles)} cycle(s) "
            f"among {self.total_nodes} nodes"
        )


def _issue(node: TreeNode, issue_type: TreeIssueType, description: str) -> TreeIssue:
    return TreeIssue(
        node_id=node.id,
        node_name=node.name,
        node_type=node.node_type,
        display_path=node.display_path,
        issue_type=issue_type,
        description=description,
    )


def find_cycles(nodes: Iterable[TreeNode]) -> list[list[ULID]]:
    """Find parent chains that loop, ignoring single-node self references.

    Each node is walked at most once, so the pass is linear in the number
    of rows however corrupted the table is.
    """
    parents = {node.id: node.parent_id for node in nodes}
    finished: set[ULID] = set()
    cycles: list[list[ULID]] = []

    for start in parents:
        path: list[ULID] = []
        index: dict[ULID, int] = {}
        current: ULID | None = start
        while current is not None and current in parents and current not in finished:
            if current in index:
                cycle = path[index[current] :]
                if len(cycle) > 1:
                    cycles.append(cycle)
                break
            index[current] = len(path)
            path.append(current)
            current = parents[current]
        finished.update(path)

    return cycles


class TreeIntegrityChecker:
    """Runs the self-reference, orphan and cycle checks over a tree store.

    Never modifies the table. Repairs are a separate, explicit step
    (see TreeRepairTool).
    """

    def __init__(self, store: TreeStore):
        self.store = store

    async def check(self) -> TreeIntegrityReport:
        report = TreeIntegrityReport(
            total_nodes=await self.store.count_nodes(),
            root_nodes=await self.store.count_roots(),
            self_referencing=await self.store.find_self_referencing(),
            orphaned=await self.store.find_orphans(),
            cycles=find_cycles(await self.store.all_nodes()),
        )
        if report.is_healthy:
            LOGGER.info(report.summary())
        else:
            LOGGER.error(
                report.summary(),
                extra={"issues": [issue.model_dump(mode="json") for issue in report.issues]},
            )
        return report
