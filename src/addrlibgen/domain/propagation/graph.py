"""Version graph assembled from ingested versions and diff edges.

Nodes and edges are kept in flat lists and adjacency is stored as edge
indices per node index, so cycles among diff reports never turn into
reference cycles between objects. Traversal state lives with the caller
(see ``engine``), keyed by version.

Both lists are sorted on construction, which makes every iteration order
downstream a function of the inputs' content rather than of the order in
which files were discovered.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from addrlibgen.domain.errors import DanglingEdgeError, DuplicateVersionError
from addrlibgen.domain.model import VersionNode, merge_entity_tables

if TYPE_CHECKING:
    from collections.abc import Iterable

    from addrlibgen.domain.model import DiffEdge, Version


log = getLogger(__name__)


@dataclass(slots=True)
class VersionGraph:
    """Container for one propagation run."""

    _nodes: list[VersionNode] = field(default_factory=list["VersionNode"], repr=False)
    _edges: list[DiffEdge] = field(default_factory=list["DiffEdge"], repr=False)
    _index_by_version: dict[Version, int] = field(
        default_factory=dict["Version", "int"], repr=False
    )
    _edge_ids_by_node: list[list[int]] = field(default_factory=list["list[int]"], repr=False)

    @property
    def nodes(self) -> tuple[VersionNode, ...]:
        return tuple(self._nodes)

    @property
    def edges(self) -> tuple[DiffEdge, ...]:
        return tuple(self._edges)

    @property
    def versions(self) -> tuple[Version, ...]:
        return tuple(node.version for node in self._nodes)

    @property
    def anchors(self) -> tuple[VersionNode, ...]:
        return tuple(node for node in self._nodes if node.is_anchor)

    def __contains__(self, version: object) -> bool:
        return version in self._index_by_version

    def __len__(self) -> int:
        return len(self._nodes)

    def node_for(self, version: Version) -> VersionNode | None:
        index = self._index_by_version.get(version)
        return None if index is None else self._nodes[index]

    def edges_for(self, version: Version) -> tuple[DiffEdge, ...]:
        index = self._index_by_version.get(version)
        if index is None:
            return ()
        return tuple(self._edges[edge_id] for edge_id in self._edge_ids_by_node[index])

    def neighbours(self, version: Version) -> tuple[Version, ...]:
        return tuple(sorted({edge.other(version) for edge in self.edges_for(version)}))

    def with_edges(self, edges: Iterable[DiffEdge]) -> VersionGraph:
        """Return a graph over the same nodes with ``edges`` added."""

        return build_version_graph(self._nodes, (*self._edges, *edges))

    def _add_edge(self, edge: DiffEdge) -> None:
        missing = tuple(
            version for version in (edge.left, edge.right) if version not in self._index_by_version
        )
        if missing:
            raise DanglingEdgeError(left=edge.left, right=edge.right, missing=missing)
        edge_id = len(self._edges)
        self._edges.append(edge)
        self._edge_ids_by_node[self._index_by_version[edge.left]].append(edge_id)
        self._edge_ids_by_node[self._index_by_version[edge.right]].append(edge_id)


def build_version_graph(
    nodes: Iterable[VersionNode],
    edges: Iterable[DiffEdge] = (),
) -> VersionGraph:
    """Assemble ``nodes`` and ``edges`` into one graph.

    Inputs naming the same version are merged when they agree on the base
    address; an export directory and an existing bin for one release become a
    single anchor node that way.
    """

    merged: dict[Version, VersionNode] = {}
    for node in nodes:
        existing = merged.get(node.version)
        merged[node.version] = node if existing is None else _merge_nodes(existing, node)

    graph = VersionGraph()
    for version in sorted(merged):
        graph._index_by_version[version] = len(graph._nodes)
        graph._nodes.append(merged[version])
        graph._edge_ids_by_node.append([])

    for edge in sorted(edges, key=lambda item: item.sort_key):
        graph._add_edge(edge)

    log.debug(
        "Built version graph: versions=%s, anchors=%s, edges=%s",
        len(graph._nodes),
        len(graph.anchors),
        len(graph._edges),
    )
    return graph


def _merge_nodes(first: VersionNode, second: VersionNode) -> VersionNode:
    if first.base_address != second.base_address:
        raise DuplicateVersionError(
            first.version,
            reason=(
                f"base address 0x{first.base_address:X} "
                f"({', '.join(first.sources) or 'unknown source'}) conflicts with "
                f"0x{second.base_address:X} ({', '.join(second.sources) or 'unknown source'})"
            ),
        )

    id_table = first.id_table
    if second.id_table is not None:
        if id_table is not None and id_table != second.id_table:
            raise DuplicateVersionError(first.version, reason="two different ID tables")
        id_table = second.id_table

    # Bin-derived tables carry no sizes or name hints; the union keeps the export's.
    entities = merge_entity_tables(first.entities.items(), second.entities.items())
    return VersionNode(
        version=min(first.version, second.version, key=lambda version: version.text),
        base_address=first.base_address,
        entities=entities,
        id_table=id_table,
        sources=tuple(sorted({*first.sources, *second.sources})),
    )
