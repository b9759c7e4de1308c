"""Use glycan oxonium ions to rule out glycan boxes before localization.

A spectrum without either sialic acid oxonium ion cannot come from a glycopeptide
carrying sialic acid, and a spectrum with the HexNAc-Hex oxonium ion must come from
one carrying at least a Hex or a HexNAc.
"""
from typing import NamedTuple, Optional

from glypy.structure.glycan_composition import FrozenMonosaccharideResidue, Composition

from ms_deisotope.peak_set import DeconvolutedPeakSet

from glycoloc.structure.composition import SLOT_INDEX
from glycoloc.structure.glycan_box import GlycanBox


_hexnac = FrozenMonosaccharideResidue.from_iupac_lite("HexNAc")
_hexose = FrozenMonosaccharideResidue.from_iupac_lite("Hex")
_neuac = FrozenMonosaccharideResidue.from_iupac_lite("NeuAc")
_water = Composition("H2O").mass

SIALIC_ACID_OXONIUM_IONS = (_neuac.mass(), _neuac.mass() - _water)
HEXNAC_HEXOSE_OXONIUM_ION = _hexnac.mass() + _hexose.mass()

DEFAULT_OXONIUM_ERROR_TOLERANCE = 2e-5


class OxoniumSignals(NamedTuple):
    sialic_acid: bool
    hexnac_hexose: bool


class OxoniumIonFilter(object):
    """Check glycan boxes against the oxonium ions observed in a deconvoluted
    peak list.

    Attributes
    ----------
    error_tolerance : float
        The PPM error tolerance for matching an oxonium ion
    """

    def __init__(self, error_tolerance: float = DEFAULT_OXONIUM_ERROR_TOLERANCE):
        self.error_tolerance = error_tolerance

    def _has_peak(self, peak_set: DeconvolutedPeakSet, mass: float) -> bool:
        peak = peak_set.has_peak(mass, self.error_tolerance)
        return peak is not None and peak.intensity > 0

    def scan(self, peak_set: DeconvolutedPeakSet) -> OxoniumSignals:
        sialic_acid = any(self._has_peak(peak_set, mass) for mass in SIALIC_ACID_OXONIUM_IONS)
        hexnac_hexose = self._has_peak(peak_set, HEXNAC_HEXOSE_OXONIUM_ION)
        return OxoniumSignals(sialic_acid, hexnac_hexose)

    def accepts(self, signals: OxoniumSignals, glycan_box: GlycanBox) -> bool:
        composition = glycan_box.composition
        if not signals.sialic_acid:
            if composition[SLOT_INDEX['A']] or composition[SLOT_INDEX['G']]:
                return False
        if signals.hexnac_hexose:
            if composition[SLOT_INDEX['H']] < 1 and composition[SLOT_INDEX['N']] < 1:
                return False
        return True

    def __call__(self, peak_set: DeconvolutedPeakSet, glycan_box: GlycanBox,
                 signals: Optional[OxoniumSignals] = None) -> bool:
        if signals is None:
            signals = self.scan(peak_set)
        return self.accepts(signals, glycan_box)

    def __repr__(self):
        return "{self.__class__.__name__}({self.error_tolerance})".format(self=self)
