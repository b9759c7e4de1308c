"""Fixed-slot monosaccharide composition vectors.

A composition is a tuple of non-negative integer counts, one per building
block, in the order given by :data:`MONOSACCHARIDE_SLOTS`. Masses are kept as
integers scaled by :data:`MASS_SCALE` so that summing many compositions never
accumulates floating point error; :func:`scaled_to_mass` converts to Daltons.
"""
import re

from typing import Dict, Iterable, Sequence, Tuple

import numpy as np

from glypy.structure.glycan_composition import HashableGlycanComposition


Composition = Tuple[int, ...]

MASS_SCALE = 1e5

MONOSACCHARIDE_SLOTS = ('H', 'N', 'A', 'G', 'F', 'P', 'S', 'Y', 'C', 'X', 'K')

SLOT_NAMES = ("Hex", "HexNAc", "NeuAc", "NeuGc", "Fuc", "Phospho",
              "Sulfo", "Na", "Ac", "Xylose", "Kdn")

# Monoisotopic residue masses scaled by 1e5
SCALED_MASS_TABLE = np.array([
    16205282,  # Hex
    20307937,  # HexNAc
    29109542,  # NeuAc
    30709033,  # NeuGc
    14605791,  # Fuc
    7996633,   # Phosphate
    7995681,   # Sulfate
    2298977,   # Sodium
    4201056,   # Acetyl
    15005282,  # Xylose
    25006897,  # Kdn
], dtype=np.int64)

N_SLOTS = len(MONOSACCHARIDE_SLOTS)

SLOT_INDEX: Dict[str, int] = {letter: i for i, letter in enumerate(MONOSACCHARIDE_SLOTS)}

NAME_TO_SLOT: Dict[str, int] = {name: i for i, name in enumerate(SLOT_NAMES)}

# glypy monosaccharide and substituent names mapped onto slots
GLYPY_NAME_TO_SLOT: Dict[str, int] = {
    "Hex": 0,
    "HexNAc": 1,
    "Neu5Ac": 2,
    "NeuAc": 2,
    "Neu5Gc": 3,
    "NeuGc": 3,
    "Fuc": 4,
    "dHex": 4,
    "@phosphate": 5,
    "@sulfate": 6,
    "@acetyl": 8,
    "Xyl": 9,
    "Pen": 9,
    "Kdn": 10,
}


def empty_composition() -> Composition:
    return (0,) * N_SLOTS


def make_composition(counts: Sequence[int]) -> Composition:
    if len(counts) != N_SLOTS:
        raise ValueError("A composition must have exactly %d slots, got %d" % (N_SLOTS, len(counts)))
    composition = tuple(int(c) for c in counts)
    if any(c < 0 for c in composition):
        raise ValueError("Composition counts must be non-negative: %r" % (composition, ))
    return composition


def composition_sum(a: Composition, b: Composition) -> Composition:
    return tuple(x + y for x, y in zip(a, b))


def composition_subtract(a: Composition, b: Composition) -> Composition:
    result = tuple(x - y for x, y in zip(a, b))
    assert all(c >= 0 for c in result), "Composition subtraction went negative: %r - %r" % (a, b)
    return result


def composition_total(compositions: Iterable[Composition]) -> Composition:
    total = empty_composition()
    for composition in compositions:
        total = composition_sum(total, composition)
    return total


def composition_mass(composition: Composition) -> int:
    """Compute the scaled integer mass of `composition`.

    Returns
    -------
    int
        The mass multiplied by :data:`MASS_SCALE`
    """
    return int(np.dot(SCALED_MASS_TABLE, np.asarray(composition, dtype=np.int64)))


def scaled_to_mass(scaled_mass: int) -> float:
    return scaled_mass / MASS_SCALE


def is_empty_composition(composition: Composition) -> bool:
    return not any(composition)


def composition_to_string(composition: Composition) -> str:
    return ''.join(
        "%s%d" % (letter, count)
        for letter, count in zip(MONOSACCHARIDE_SLOTS, composition) if count)


_kind_pattern = re.compile(r"([A-Z])(\d+)")


def parse_kind_string(text: str) -> Composition:
    """Parse the compact letter-count notation produced by
    :func:`composition_to_string`, e.g. ``"H5N4A1"``.
    """
    text = text.strip()
    counts = [0] * N_SLOTS
    position = 0
    for match in _kind_pattern.finditer(text):
        if match.start() != position:
            raise ValueError("Could not parse composition %r at position %d" % (text, position))
        letter, count = match.groups()
        try:
            counts[SLOT_INDEX[letter]] += int(count)
        except KeyError:
            raise ValueError("Unknown monosaccharide %r in %r" % (letter, text))
        position = match.end()
    if position != len(text):
        raise ValueError("Could not parse composition %r at position %d" % (text, position))
    return tuple(counts)


_named_pattern = re.compile(r"([A-Za-z]+)\((\d+)\)")


def parse_named_composition(text: str) -> Composition:
    """Parse the long-name notation, e.g. ``"HexNAc(2)Hex(5)NeuAc(1)"``."""
    text = text.strip()
    counts = [0] * N_SLOTS
    position = 0
    for match in _named_pattern.finditer(text):
        if match.start() != position:
            raise ValueError("Could not parse composition %r at position %d" % (text, position))
        name, count = match.groups()
        try:
            counts[NAME_TO_SLOT[name]] += int(count)
        except KeyError:
            raise ValueError("Unknown monosaccharide %r in %r" % (name, text))
        position = match.end()
    if position != len(text):
        raise ValueError("Could not parse composition %r at position %d" % (text, position))
    return tuple(counts)


def parse_structure(text: str) -> Composition:
    """Count the monosaccharides in a bracketed structure string such as
    ``"(N(H(A))(N(H(A))(F)))"``.
    """
    counts = [0] * N_SLOTS
    for c in text:
        if c in "() \t":
            continue
        try:
            counts[SLOT_INDEX[c]] += 1
        except KeyError:
            raise ValueError("Unknown monosaccharide %r in structure %r" % (c, text))
    return tuple(counts)


def parse_composition(text: str) -> Composition:
    """Parse a glypy glycan composition string, e.g. ``"{Hex:5; HexNAc:4; Neu5Ac:2}"``.

    Parameters
    ----------
    text : str
        The composition in :class:`~glypy.structure.glycan_composition.HashableGlycanComposition`
        notation

    Returns
    -------
    tuple
    """
    glycan_composition = HashableGlycanComposition.parse(text)
    return from_glycan_composition(glycan_composition)


def from_glycan_composition(glycan_composition) -> Composition:
    counts = [0] * N_SLOTS
    for key, count in glycan_composition.items():
        name = str(key)
        try:
            counts[GLYPY_NAME_TO_SLOT[name]] += int(count)
        except KeyError:
            raise ValueError("Monosaccharide %r cannot be represented" % (name, ))
    return tuple(counts)
