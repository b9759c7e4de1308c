import logging

from typing import Iterable, List, NamedTuple, Optional, Sequence

from .composition import (
    Composition, composition_mass, composition_to_string, composition_total, is_empty_composition,
    make_composition, parse_composition, parse_kind_string, parse_named_composition,
    parse_structure, scaled_to_mass)


logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


class Glycan(NamedTuple):
    id: int
    composition: Composition
    scaled_mass: int
    structure: Optional[str] = None

    @property
    def mass(self) -> float:
        return scaled_to_mass(self.scaled_mass)

    @property
    def name(self) -> str:
        return composition_to_string(self.composition)

    def __repr__(self):
        return "Glycan(%d, %s, %0.5f)" % (self.id, self.name, self.mass)


def guess_notation(text: str) -> str:
    text = text.strip()
    if text.startswith("{"):
        return "glypy"
    if text.startswith("("):
        return "structure"
    if "(" in text:
        return "named"
    return "kind"


_parsers = {
    "glypy": parse_composition,
    "structure": parse_structure,
    "named": parse_named_composition,
    "kind": parse_kind_string,
}


class GlycanDatabase(Sequence[Glycan]):
    """An immutable, indexable collection of :class:`Glycan` entries whose
    :attr:`Glycan.id` is their position in the collection.

    Instances are built once per search and shared read-only between
    every localization performed with them.
    """

    def __init__(self, glycans: Iterable[Glycan]):
        glycans = tuple(glycans)
        for i, glycan in enumerate(glycans):
            if glycan.id != i:
                raise ValueError("Glycan %r is stored at index %d" % (glycan, i))
        self._glycans = glycans

    def __getitem__(self, i):
        return self._glycans[i]

    def __len__(self):
        return len(self._glycans)

    def __iter__(self):
        return iter(self._glycans)

    def __repr__(self):
        return "{self.__class__.__name__}({size})".format(self=self, size=len(self))

    @staticmethod
    def _make_glycan(i: int, composition: Composition, structure: Optional[str] = None) -> Glycan:
        composition = make_composition(composition)
        if is_empty_composition(composition):
            raise ValueError("Glycan %d has an empty composition" % (i, ))
        return Glycan(i, composition, composition_mass(composition), structure)

    @classmethod
    def from_compositions(cls, compositions: Iterable[Composition]) -> 'GlycanDatabase':
        return cls(cls._make_glycan(i, c) for i, c in enumerate(compositions))

    @classmethod
    def from_kind_strings(cls, kinds: Iterable[str]) -> 'GlycanDatabase':
        return cls.from_compositions(parse_kind_string(k) for k in kinds)

    @classmethod
    def from_structures(cls, structures: Iterable[str]) -> 'GlycanDatabase':
        return cls(
            cls._make_glycan(i, parse_structure(s), structure=s)
            for i, s in enumerate(structures))

    @classmethod
    def from_lines(cls, lines: Iterable[str]) -> 'GlycanDatabase':
        """Build a database from one glycan per line, in any of the supported
        notations. Blank lines and lines starting with ``#`` are skipped, and
        a tab-separated second column is taken as the glycan's name and ignored.
        """
        glycans: List[Glycan] = []
        for line in lines:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            text = line.split("\t")[0]
            notation = guess_notation(text)
            composition = _parsers[notation](text)
            structure = text if notation == "structure" else None
            glycans.append(cls._make_glycan(len(glycans), composition, structure=structure))
        logger.debug("Loaded %d glycans", len(glycans))
        return cls(glycans)

    @classmethod
    def from_file(cls, path: str) -> 'GlycanDatabase':
        with open(path) as fh:
            return cls.from_lines(fh)

    def composition_of(self, ids: Iterable[int]) -> Composition:
        return composition_total(self._glycans[i].composition for i in ids)
