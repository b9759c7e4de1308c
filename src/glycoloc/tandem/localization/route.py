"""Read placements of glycans on candidate sites out of a localized
:class:`~.LocalizationGraph`.

A path is the column chosen at each row of the graph, from the first candidate
site to the last. Consecutive child boxes along a path differ by at most one
glycan, which is the glycan placed on that row's site. Paths are enumerated
depth-first with an explicit stack, following either only the best sources of
each cell or every feasible source.
"""
from collections import Counter
from typing import Iterator, List, NamedTuple, Optional, Sequence, Tuple

from glycoloc.structure.composition import Composition

from .graph import LocalizationGraph, LocalizationNode


class SitePlacement(NamedTuple):
    site: int
    glycan_id: int
    local_peak_exists: bool


class Route(object):
    """One concrete assignment of glycans to candidate sites.

    Attributes
    ----------
    placements : list of SitePlacement
        The glycans placed, in ascending site order
    score : float
        The summed evidence along the path this route was read from
    reverse_p : float
        The binomial reverse-probability weight of :attr:`score`
    log_reverse_p : float
        The natural logarithm of :attr:`reverse_p`
    box_index : int
        The index of the glycan box of the graph this route came from
    """

    def __init__(self, placements=None, score=0.0, reverse_p=1.0, log_reverse_p=0.0, box_index=-1):
        self.placements: List[SitePlacement] = list(placements or [])
        self.score = score
        self.reverse_p = reverse_p
        self.log_reverse_p = log_reverse_p
        self.box_index = box_index

    def add(self, site: int, glycan_id: int, local_peak_exists: bool):
        self.placements.append(SitePlacement(site, glycan_id, local_peak_exists))

    def __iter__(self):
        return iter(self.placements)

    def __len__(self):
        return len(self.placements)

    def __getitem__(self, i):
        return self.placements[i]

    def site_glycan_pairs(self) -> List[Tuple[int, int]]:
        return [(p.site, p.glycan_id) for p in self.placements]

    @property
    def all_local_peaks_exist(self) -> bool:
        return all(p.local_peak_exists for p in self.placements)

    def __eq__(self, other):
        try:
            return self.site_glycan_pairs() == other.site_glycan_pairs()
        except AttributeError:
            return NotImplemented

    def __hash__(self):
        return hash(tuple(self.site_glycan_pairs()))

    def __repr__(self):
        pairs = ', '.join("%d:%d%s" % (p.site, p.glycan_id, '' if p.local_peak_exists else '?')
                          for p in self.placements)
        return "{self.__class__.__name__}([{pairs}], score={self.score})".format(self=self, pairs=pairs)


def multiset_difference(larger: Sequence[int], smaller: Sequence[int]) -> List[int]:
    """The elements of `larger` left after removing `smaller`, respecting
    multiplicity, grouped in order of first appearance in `larger`.

    >>> multiset_difference([0, 0, 0, 1, 1, 2], [0, 0, 1])
    [0, 1, 2]
    """
    remaining = Counter(larger)
    remaining.subtract(smaller)
    result = []
    for key, count in remaining.items():
        if count > 0:
            result.extend([key] * count)
    return result


def first_path(graph: LocalizationGraph) -> List[int]:
    """Follow the first best source of each cell back from the final cell.

    Returns
    -------
    list of int
        The column chosen for each row, or an empty list when the graph
        has no complete path
    """
    node = graph.terminal_node
    if node is None:
        return []
    n = graph.n_rows
    path = [0] * n
    path[n - 1] = node.column
    for i in range(n - 1, 0, -1):
        column = node.best_sources[0]
        path[i - 1] = column
        node = graph.node(i - 1, column)
    return path


def _iterate_paths(graph: LocalizationGraph, use_best: bool) -> Iterator[List[int]]:
    terminal = graph.terminal_node
    if terminal is None:
        return
    stack: List[Tuple[LocalizationNode, Tuple[int, ...]]] = [(terminal, ())]
    while stack:
        node, suffix = stack.pop()
        suffix = (node.column, ) + suffix
        if node.row == 0:
            yield list(suffix)
            continue
        sources = node.best_sources if use_best else node.all_sources
        for column in reversed(sources):
            stack.append((graph.node(node.row - 1, column), suffix))


def all_highest_score_paths(graph: LocalizationGraph) -> List[List[int]]:
    """Every path whose cumulative score equals the best score of the graph,
    visited depth-first in ascending source order, so the first path is
    :func:`first_path`.
    """
    return list(_iterate_paths(graph, True))


def all_feasible_paths(graph: LocalizationGraph) -> Iterator[List[int]]:
    """Lazily enumerate every path through the graph from the first row to
    the final cell, regardless of score.
    """
    return _iterate_paths(graph, False)


def path_score(graph: LocalizationGraph, path: Sequence[int]) -> float:
    """The sum of the local costs along `path` plus the graph's unlocalized cost."""
    total = 0.0
    for i, column in enumerate(path):
        total += graph.node(i, column).current_cost
    return total + graph.unlocalized_cost


def path_to_route(graph: LocalizationGraph, path: Sequence[int], score: Optional[float] = None) -> Route:
    """Translate a column-per-row path into the glycans placed at each site.

    A glycan is placed at a site whenever the child box changes between the
    previous row and the site's row. The placement is marked as supported by
    local evidence when the segments on both sides of the site had evidence,
    the segment after the last site always counting as supported.

    Parameters
    ----------
    graph : LocalizationGraph
    path : Sequence[int]
        The column chosen for each row
    score : float, optional
        The score to record on the route, defaulting to :func:`path_score`

    Returns
    -------
    Route
    """
    if score is None:
        score = path_score(graph, path)
    route = Route(score=score, box_index=graph.box_index)
    sites = graph.sites
    child_boxes = graph.child_boxes
    n = graph.n_rows
    if n == 1:
        route.add(sites[0], child_boxes[path[0]].ids[0], graph.total_score > 0)
        return route

    first = child_boxes[path[0]]
    if first.number_of_mods > 0:
        route.add(sites[0], first.ids[0], graph.node(0, path[0]).current_cost > 0)

    for i in range(1, n):
        if path[i] == path[i - 1]:
            continue
        added = multiset_difference(child_boxes[path[i]].ids, child_boxes[path[i - 1]].ids)
        previous_cost = graph.node(i - 1, path[i - 1]).current_cost
        current_cost = graph.node(i, path[i]).current_cost
        local_peak_exists = previous_cost > 0 and (current_cost > 0 or i == n - 1)
        for glycan_id in added:
            route.add(sites[i], glycan_id, local_peak_exists)
    return route


def cumulative_compositions(graph: LocalizationGraph, path: Sequence[int]) -> List[Composition]:
    """The composition of the glycans placed through each row of `path`."""
    return [graph.child_boxes[column].composition for column in path]


def first_route(graph: LocalizationGraph) -> Optional[Route]:
    path = first_path(graph)
    if not path:
        return None
    return path_to_route(graph, path, graph.total_score)


def highest_score_routes(graph: LocalizationGraph) -> List[Route]:
    return [path_to_route(graph, path, graph.total_score) for path in all_highest_score_paths(graph)]


def feasible_routes(graph: LocalizationGraph) -> Iterator[Route]:
    for path in all_feasible_paths(graph):
        yield path_to_route(graph, path)
