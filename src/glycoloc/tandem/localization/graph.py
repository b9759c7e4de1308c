"""A dynamic program over (candidate site, partial glycan box) cells that finds
the distribution of a glycan box across a peptide's candidate sites which is
best supported by fragment ion evidence.

Row ``i`` of the graph corresponds to the ``i``-th candidate site and column
``j`` to the ``j``-th child box of the glycan being localized. A cell ``(i, j)``
states that the glycans placed on sites ``0..i`` together make up child box
``j``. Cells that cannot lie on a path to the full box at the last site are
never created.
"""
import logging

from collections import Counter
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

from glycoloc.structure.glycan_box import GlycanBox


logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


LocalCostFunction = Callable[[int, GlycanBox], float]
UnlocalizedCost = Union[float, Callable[[], float]]


class LocalizationNode(object):
    """A single reachable cell of a :class:`LocalizationGraph`.

    Attributes
    ----------
    row : int
        The index of the candidate site
    column : int
        The index of the child box
    site : int
        The position of the candidate site
    child_box : GlycanBox
        The glycans placed on sites up to and including this one
    current_cost : float
        The fragment evidence for the segment following this site given `child_box`
    max_cost : float
        The best cumulative score of any path ending at this cell
    best_sources : list
        The columns of the previous row achieving :attr:`max_cost`, ascending
    all_sources : list
        The columns of the previous row this cell may be reached from, ascending
    """

    __slots__ = ("row", "column", "site", "child_box", "current_cost",
                 "max_cost", "best_sources", "all_sources")

    row: int
    column: int
    site: int
    child_box: GlycanBox
    current_cost: float
    max_cost: float
    best_sources: List[int]
    all_sources: List[int]

    def __init__(self, row, column, site, child_box, current_cost=0.0, max_cost=0.0):
        self.row = row
        self.column = column
        self.site = site
        self.child_box = child_box
        self.current_cost = current_cost
        self.max_cost = max_cost
        self.best_sources = []
        self.all_sources = []

    def __repr__(self):
        template = ("{self.__class__.__name__}({self.row}, {self.column}, site={self.site}, "
                    "ids=[{ids}], current_cost={self.current_cost}, max_cost={self.max_cost})")
        return template.format(self=self, ids=self.child_box.id_string)


def contains_multiset(larger: Sequence[int], smaller: Sequence[int]) -> bool:
    """Whether every element of `smaller` appears in `larger` at least as many times."""
    have = Counter(larger)
    for key, count in Counter(smaller).items():
        if have[key] < count:
            return False
    return True


def box_satisfies_box(child_boxes: Sequence[GlycanBox]) -> List[List[bool]]:
    """Pre-compute which child box may follow which.

    ``table[j][k]`` for ``k <= j`` is true when child box ``j`` can be reached from
    child box ``k`` by placing at most one more glycan, i.e. ``k`` is empty or contained
    in ``j``, and ``j`` holds at most one glycan more than ``k``.

    Returns
    -------
    list of list of bool
    """
    m = len(child_boxes)
    table = [[False] * m for _ in range(m)]
    for j in range(m):
        current = child_boxes[j]
        for k in range(j + 1):
            previous = child_boxes[k]
            if current.number_of_mods > previous.number_of_mods + 1:
                continue
            if previous.number_of_mods == 0 or contains_multiset(current.ids, previous.ids):
                table[j][k] = True
    return table


class LocalizationGraph(object):
    """Place the glycans of :attr:`glycan_box` on :attr:`sites` such that the
    fragment evidence collected between consecutive sites is maximized.

    Attributes
    ----------
    sites : tuple
        The candidate site positions, ascending
    glycan_box : GlycanBox
        The glycans to place
    child_boxes : list
        The partial boxes of :attr:`glycan_box`, ordered by increasing size and
        ending with the full box
    box_index : int
        An optional identifier for :attr:`glycan_box` in its collection
    unlocalized_cost : float
        The evidence from fragments that do not discriminate between placements
    total_score : float
        The best cumulative score at the final cell plus :attr:`unlocalized_cost`
    """

    sites: Tuple[int, ...]
    glycan_box: GlycanBox
    child_boxes: List[GlycanBox]
    box_index: int
    unlocalized_cost: float
    total_score: float

    def __init__(self, sites: Sequence[int], glycan_box: GlycanBox, child_boxes: Sequence[GlycanBox],
                 box_index: int = -1):
        sites = tuple(sites)
        if not sites:
            raise ValueError("At least one candidate site is required")
        if any(a >= b for a, b in zip(sites, sites[1:])):
            raise ValueError("Candidate sites must be strictly ascending: %r" % (sites, ))
        if len(sites) < glycan_box.number_of_mods:
            raise ValueError("Cannot place %d glycans on %d sites" % (
                glycan_box.number_of_mods, len(sites)))
        child_boxes = list(child_boxes)
        if not child_boxes or child_boxes[-1].ids != glycan_box.ids:
            raise ValueError("The last child box must be the full glycan box")
        self.sites = sites
        self.glycan_box = glycan_box
        self.child_boxes = child_boxes
        self.box_index = box_index
        self.unlocalized_cost = 0.0
        self.total_score = 0.0
        self._nodes: Dict[Tuple[int, int], LocalizationNode] = {}
        self._localized = False

    @property
    def n_rows(self) -> int:
        return len(self.sites)

    @property
    def n_columns(self) -> int:
        return len(self.child_boxes)

    @property
    def is_localized(self) -> bool:
        return self._localized

    def node(self, row: int, column: int) -> Optional[LocalizationNode]:
        return self._nodes.get((row, column))

    def has_node(self, row: int, column: int) -> bool:
        return (row, column) in self._nodes

    def nodes(self):
        return iter(self._nodes.values())

    @property
    def terminal_node(self) -> Optional[LocalizationNode]:
        return self.node(self.n_rows - 1, self.n_columns - 1)

    def feasible_columns(self, row: int) -> List[int]:
        """The columns whose child box can occupy `row` and still lead to the
        full glycan box at the last row.
        """
        n = self.n_rows
        k = self.glycan_box.number_of_mods
        max_length = row + 1
        min_length = k - (n - 1 - row)
        return [j for j, child in enumerate(self.child_boxes)
                if min_length <= child.number_of_mods <= max_length]

    def localize(self, local_cost: LocalCostFunction, unlocalized_cost: UnlocalizedCost = 0.0,
                 tie_tolerance: float = 0.0) -> float:
        """Fill the graph using `local_cost` to score each cell.

        Parameters
        ----------
        local_cost : Callable[[int, GlycanBox], float]
            Scores the evidence between candidate site ``i`` and ``i + 1``
            when the glycans placed through site ``i`` make up the given child box.
            It is not called for the last row, whose local cost is zero.
        unlocalized_cost : float or Callable[[], float]
            The evidence outside of the localized region, evaluated once
        tie_tolerance : float
            Predecessors whose cumulative score is within this distance of the best
            are all kept as best sources. Zero requires exact equality.

        Returns
        -------
        float
            The graph's :attr:`total_score`
        """
        self._nodes.clear()
        satisfies = box_satisfies_box(self.child_boxes)
        n = self.n_rows
        last_row = n - 1
        for i in range(n):
            site = self.sites[i]
            for j in self.feasible_columns(i):
                child = self.child_boxes[j]
                cost = 0.0 if i == last_row else float(local_cost(i, child))
                node = LocalizationNode(i, j, site, child, cost, cost)
                if i > 0:
                    scores = []
                    for k in range(j + 1):
                        if not satisfies[j][k]:
                            continue
                        previous = self._nodes.get((i - 1, k))
                        if previous is None:
                            continue
                        node.all_sources.append(k)
                        scores.append((k, cost + previous.max_cost))
                    if not scores:
                        continue
                    best = max(score for _, score in scores)
                    node.max_cost = best
                    node.best_sources = [k for k, score in scores if best - score <= tie_tolerance]
                self._nodes[(i, j)] = node

        if callable(unlocalized_cost):
            unlocalized_cost = unlocalized_cost()
        self.unlocalized_cost = float(unlocalized_cost)
        terminal = self.terminal_node
        if terminal is None:
            logger.debug("No feasible path reaches the terminal cell of %r", self.glycan_box)
            self.total_score = self.unlocalized_cost
        else:
            self.total_score = terminal.max_cost + self.unlocalized_cost
        self._localized = True
        return self.total_score

    def __repr__(self):
        template = ("{self.__class__.__name__}(sites={self.sites}, box={self.glycan_box!r}, "
                    "total_score={self.total_score})")
        return template.format(self=self)
