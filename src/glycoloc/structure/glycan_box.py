"""Glycan boxes: multisets of glycan database entries that together make up the
total glycan load proposed for a peptide, and the enumeration of every box up
to a size limit along with the partial sub-boxes used during localization.
"""
import logging
import itertools

from typing import Dict, Iterator, List, NamedTuple, Optional, Sequence, Tuple

import numpy as np

from .composition import (
    Composition, composition_mass, composition_to_string, empty_composition,
    scaled_to_mass)
from .glycan import GlycanDatabase


logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


# Scaled mass perturbations applied to decoy boxes. None of these correspond to
# a combination of the monosaccharides in the composition model.
_SUGAR_SHIFT_MAGNITUDES = (
    7103710, 10300920, 11502690, 12904260, 14706840, 5702150, 13705890,
    12809500, 11308410, 13104050, 11404290, 9705280, 12805860, 15610110,
    8703200, 10104770, 9906840, 18607930, 16306330,
)

SUGAR_SHIFT = _SUGAR_SHIFT_MAGNITUDES + tuple(-x for x in _SUGAR_SHIFT_MAGNITUDES)


class GlycanBox(NamedTuple):
    ids: Tuple[int, ...]
    composition: Composition
    scaled_mass: int
    is_decoy: bool = False
    decoy_shift: int = 0

    @property
    def number_of_mods(self) -> int:
        return len(self.ids)

    @property
    def mass(self) -> float:
        return scaled_to_mass(self.scaled_mass)

    @property
    def id_string(self) -> str:
        return ','.join(map(str, self.ids))

    @property
    def kind_string(self) -> str:
        return composition_to_string(self.composition)

    def __repr__(self):
        return "GlycanBox([%s], %s, %0.5f%s)" % (
            self.id_string, self.kind_string, self.mass, ", decoy" if self.is_decoy else '')


def make_glycan_box(database: GlycanDatabase, ids: Sequence[int], decoy: bool = False,
                    random_state: Optional[np.random.Generator] = None,
                    decoy_shift: Optional[int] = None) -> GlycanBox:
    """Construct a :class:`GlycanBox` holding the glycans at `ids` in `database`.

    Parameters
    ----------
    database : GlycanDatabase
        The glycans the identifiers refer to
    ids : Sequence[int]
        The database identifiers, repeats allowed. They are stored sorted.
    decoy : bool
        Whether to perturb the box's mass with a random entry of :data:`SUGAR_SHIFT`
    random_state : numpy.random.Generator, optional
        The source of randomness for choosing the decoy shift
    decoy_shift : int, optional
        Use this scaled shift instead of drawing one

    Returns
    -------
    GlycanBox
    """
    ids = tuple(sorted(ids))
    composition = database.composition_of(ids)
    scaled_mass = composition_mass(composition)
    shift = 0
    if decoy:
        if decoy_shift is None:
            if random_state is None:
                random_state = np.random.default_rng()
            decoy_shift = SUGAR_SHIFT[int(random_state.integers(len(SUGAR_SHIFT)))]
        shift = int(decoy_shift)
        scaled_mass += shift
    return GlycanBox(ids, composition, scaled_mass, bool(decoy), shift)


def empty_glycan_box() -> GlycanBox:
    return GlycanBox((), empty_composition(), 0)


def build_glycan_boxes(database: GlycanDatabase, max_count: int, build_decoy: bool = False,
                       random_state: Optional[np.random.Generator] = None) -> Iterator[GlycanBox]:
    """Enumerate every multiset of between one and `max_count` glycans drawn from
    `database`, ordered by size and then lexicographically by identifier.

    When `build_decoy` is set, each box is immediately followed by its decoy twin.
    """
    if build_decoy and random_state is None:
        random_state = np.random.default_rng()
    for count in range(1, max_count + 1):
        for ids in itertools.combinations_with_replacement(range(len(database)), count):
            yield make_glycan_box(database, ids)
            if build_decoy:
                yield make_glycan_box(database, ids, decoy=True, random_state=random_state)


def build_child_boxes(total_count: int, ids: Sequence[int], database: GlycanDatabase,
                      parent: Optional[GlycanBox] = None) -> List[GlycanBox]:
    """Build every distinct sub-multiset of `ids`, starting with the empty box and
    ending with the full box, in order of increasing size.

    Sub-multisets picked by different index combinations that contain the same
    identifiers are only produced once. When `parent` is a decoy, every
    non-empty child carries the parent's mass shift.

    Parameters
    ----------
    total_count : int
        The number of glycans in the full box
    ids : Sequence[int]
        The identifiers of the full box
    database : GlycanDatabase
        The glycans the identifiers refer to
    parent : GlycanBox, optional
        The box the children are derived from

    Returns
    -------
    list
    """
    ids = tuple(sorted(ids))
    if len(ids) != total_count:
        raise ValueError("Expected %d identifiers, got %d" % (total_count, len(ids)))
    decoy = parent is not None and parent.is_decoy
    shift = parent.decoy_shift if decoy else None
    children = [empty_glycan_box()]
    seen = {''}
    for length in range(1, total_count + 1):
        for positions in itertools.combinations(range(total_count), length):
            child_ids = tuple(ids[p] for p in positions)
            key = ','.join(map(str, child_ids))
            if key in seen:
                continue
            seen.add(key)
            children.append(make_glycan_box(database, child_ids, decoy=decoy, decoy_shift=shift))
    return children


class GlycanBoxCollection(Sequence[GlycanBox]):
    """A mass-sorted collection of :class:`GlycanBox` instances supporting
    binary search by mass. The child boxes of each member are built once
    up front, so the collection is read-only while searching.

    Attributes
    ----------
    boxes : list
        The boxes, sorted by mass
    database : GlycanDatabase
        The glycans the boxes refer to
    """

    def __init__(self, boxes, database: GlycanDatabase):
        self.database = database
        self.boxes = sorted(boxes, key=lambda x: (x.scaled_mass, x.is_decoy, x.ids))
        self._masses = np.array([box.mass for box in self.boxes], dtype=float)
        self._child_boxes: Dict[Tuple[Tuple[int, ...], int], List[GlycanBox]] = {}
        for box in self.boxes:
            key = (box.ids, box.decoy_shift)
            if key not in self._child_boxes:
                self._child_boxes[key] = build_child_boxes(box.number_of_mods, box.ids, database, parent=box)

    @classmethod
    def build(cls, database: GlycanDatabase, max_count: int, build_decoy: bool = False,
              random_state: Optional[np.random.Generator] = None) -> 'GlycanBoxCollection':
        boxes = list(build_glycan_boxes(database, max_count, build_decoy, random_state))
        logger.debug("Built %d glycan boxes from %d glycans", len(boxes), len(database))
        return cls(boxes, database)

    def __getitem__(self, i):
        return self.boxes[i]

    def __len__(self):
        return len(self.boxes)

    def __iter__(self):
        return iter(self.boxes)

    def __repr__(self):
        return "{self.__class__.__name__}({size})".format(self=self, size=len(self))

    @property
    def lowest_mass(self) -> float:
        return self.boxes[0].mass

    @property
    def highest_mass(self) -> float:
        return self.boxes[-1].mass

    def search_mass(self, mass: float, error_tolerance: float = 0.1) -> List[GlycanBox]:
        """Search for all boxes whose mass lies within `error_tolerance` Da
        of `mass`.

        Parameters
        ----------
        mass : float
            The neutral mass to search for
        error_tolerance : float, optional
            The absolute error tolerance to allow

        Returns
        -------
        list
        """
        lo = np.searchsorted(self._masses, mass - error_tolerance, side='left')
        hi = np.searchsorted(self._masses, mass + error_tolerance, side='right')
        return self.boxes[lo:hi]

    def search_mass_ppm(self, mass: float, error_tolerance: float) -> List[GlycanBox]:
        tol = mass * error_tolerance
        return self.search_mass(mass, tol)

    def index_of(self, box: GlycanBox) -> int:
        lo = int(np.searchsorted(self._masses, box.mass, side='left'))
        for i in range(lo, len(self.boxes)):
            if self.boxes[i] == box:
                return i
            if self.boxes[i].scaled_mass > box.scaled_mass:
                break
        raise ValueError("%r is not in the collection" % (box, ))

    def child_boxes_for(self, box: GlycanBox) -> List[GlycanBox]:
        try:
            return self._child_boxes[(box.ids, box.decoy_shift)]
        except KeyError:
            return build_child_boxes(box.number_of_mods, box.ids, self.database, parent=box)
