import logging
from typing import Iterable, List, Optional

import networkx as nx

from .bundles import BundleLoader

log = logging.getLogger(__name__)


def build_bundle_graph(loader: BundleLoader, names: Iterable[str]) -> nx.DiGraph:
    """
    Builds the bundle -> dependency graph reachable from ``names``.

    Bundles are only loaded, never published, so this is safe to run outside
    a render pass (e.g. as a configuration check).
    """
    graph = nx.DiGraph()
    pending = list(names)
    while pending:
        name = pending.pop()
        if name in graph and graph.nodes[name].get("loaded"):
            continue

        bundle = loader.load(name)
        graph.add_node(name, loaded=True, dummy=bundle.is_dummy)
        for dep in bundle.depends:
            graph.add_edge(name, dep)
            pending.append(dep)
    return graph


def detect_circular_dependencies(graph: nx.DiGraph) -> List[List[str]]:
    """
    Reports dependency cycles as a fixing roadmap rather than an exhaustive list.

    For each strongly connected component the shortest cycle is reported and
    then virtually broken by removing its closing edge, until the component is
    acyclic. A self-dependency is reported as a one-element cycle.
    """
    cycles = []

    for scc in nx.strongly_connected_components(graph):
        if len(scc) < 2:
            node = next(iter(scc))
            if graph.has_edge(node, node):
                cycles.append([node])
            continue

        subgraph = graph.subgraph(scc).copy()

        # Every iteration removes an edge, so this only guards pathological inputs.
        max_iterations = 100
        while max_iterations > 0:
            cycle = _find_shortest_cycle(subgraph)
            if not cycle:
                break
            cycles.append(cycle)

            # cycle [n1, ..., nk] stands for n1 -> ... -> nk -> n1
            u, v = cycle[-1], cycle[0]
            if subgraph.has_edge(u, v):
                subgraph.remove_edge(u, v)
            max_iterations -= 1

    if cycles:
        log.debug(f"Found {len(cycles)} circular bundle dependencies.")
    return cycles


def _find_shortest_cycle(graph: nx.DiGraph) -> List[str]:
    best_cycle: Optional[List[str]] = None

    for u, v in graph.edges():
        # Two nodes is the shortest possible cycle inside a non-trivial SCC.
        if best_cycle and len(best_cycle) == 2:
            return best_cycle
        try:
            path = nx.shortest_path(graph, source=v, target=u)
        except nx.NetworkXNoPath:
            continue
        if best_cycle is None or len(path) < len(best_cycle):
            best_cycle = path

    return best_cycle or []


def load_order(graph: nx.DiGraph) -> List[str]:
    """Returns bundle names with every dependency before its dependents."""
    return list(reversed(list(nx.topological_sort(graph))))
