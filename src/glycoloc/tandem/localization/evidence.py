"""Score candidate glycan placements against an observed spectrum.

Fragments are described by their ion series, ``"c"`` or ``"z"``, and an amino
acid position: the number of N-terminal residues for ``c`` ions and the one-based
index of the first residue for ``z`` ions. Candidate sites use the
same numbering shifted by one, so that the residue at one-based position ``r``
is site ``r + 1``.
"""

from typing import Callable, Dict, Iterable, Iterator, List, NamedTuple, Optional, Sequence, Tuple, Union

from glycopeptidepy import PeptideSequence
from glycopeptidepy.structure.fragment import IonSeries
from glycopeptidepy.structure.fragmentation_strategy import EXDFragmentationStrategy

from ms_deisotope.peak_set import DeconvolutedPeakSet, DeconvolutedPeak

from glycoloc.structure.composition import scaled_to_mass
from glycoloc.structure.glycan_box import GlycanBox

from .probability import random_match_probability


class TheoreticalFragment(NamedTuple):
    series: str
    position: int
    mass: float

    def __repr__(self):
        return "%s(%d, %0.4f)" % (self.series, self.position, self.mass)


def fragments_from_peptide(peptide: Union[str, PeptideSequence]) -> List[TheoreticalFragment]:
    """Compute the neutral masses of the ``c`` and ``z``-dot ions of `peptide`
    using :class:`~glycopeptidepy.structure.fragmentation_strategy.EXDFragmentationStrategy`.

    No cleavage is produced N-terminal to proline.

    Parameters
    ----------
    peptide : str or :class:`~glycopeptidepy.PeptideSequence`

    Returns
    -------
    list of TheoreticalFragment
        ``c`` ions ordered by position followed by ``z`` ions ordered by position
    """
    if not isinstance(peptide, PeptideSequence):
        peptide = PeptideSequence(str(peptide))
    length = len(peptide)
    symbols = [position[0].symbol for position in peptide]
    c_ions = []
    for frags in peptide.get_fragments(IonSeries.c, strategy=EXDFragmentationStrategy,
                                       include_neutral_losses=False):
        frag = frags[0]
        if not 0 < frag.position < length:
            continue
        # the residue C-terminal to the cleavage
        if symbols[frag.position] == 'P':
            continue
        c_ions.append(TheoreticalFragment('c', frag.position, frag.mass))
    z_ions = []
    for frags in peptide.get_fragments(IonSeries.z, strategy=EXDFragmentationStrategy,
                                       include_neutral_losses=False):
        frag = frags[0]
        if not 0 < frag.position < length:
            continue
        first = length - frag.position
        if symbols[first] == 'P':
            continue
        z_ions.append(TheoreticalFragment('z', first + 1, frag.mass))
    c_ions.sort(key=lambda f: f.position)
    z_ions.sort(key=lambda f: f.position)
    return c_ions + z_ions


def count_trials(fragments: Iterable[TheoreticalFragment]) -> int:
    return sum(1 for f in fragments if f.series in ('c', 'z'))


def local_fragment_masses(fragments: Iterable[TheoreticalFragment], sites: Sequence[int], i: int,
                          glycan_box: GlycanBox, child_box: GlycanBox) -> Iterator[float]:
    """The fragment masses that fall between candidate site ``i`` and ``i + 1``,
    shifted by the glycans placed before and after them when the glycans on
    sites ``0..i`` make up `child_box`.
    """
    start = sites[i]
    end = sites[i + 1]
    n_terminal_shift = child_box.mass
    c_terminal_shift = scaled_to_mass(glycan_box.scaled_mass - child_box.scaled_mass)
    for fragment in fragments:
        if fragment.series == 'c':
            if start - 1 <= fragment.position < end - 1:
                yield fragment.mass + n_terminal_shift
        elif fragment.series == 'z':
            if start <= fragment.position < end:
                yield fragment.mass + c_terminal_shift


def unlocalized_fragment_masses(fragments: Iterable[TheoreticalFragment], sites: Sequence[int],
                                glycan_box: GlycanBox) -> Iterator[float]:
    """The fragment masses that either contain no candidate site or every
    candidate site, and so do not depend on how the glycans are placed.
    """
    first = sites[0]
    last = sites[-1]
    box_mass = glycan_box.mass
    for fragment in fragments:
        if fragment.series == 'c':
            if fragment.position < first - 1:
                yield fragment.mass
            elif fragment.position >= last - 1:
                yield fragment.mass + box_mass
        elif fragment.series == 'z':
            if fragment.position > last - 1:
                yield fragment.mass
            elif fragment.position < first - 1:
                yield fragment.mass + box_mass


class PeakSetEvidence(object):
    """Match theoretical fragment masses against a deconvoluted peak list.

    Each matched mass contributes ``1 + intensity / total_ion_current`` using the
    closest peak within :attr:`error_tolerance` whose charge does not exceed
    :attr:`precursor_charge`.

    Attributes
    ----------
    peak_set : :class:`~ms_deisotope.peak_set.DeconvolutedPeakSet`
    error_tolerance : float
        The PPM error tolerance for matching a fragment
    precursor_charge : int, optional
        The charge of the precursor ion
    total_ion_current : float
    """

    def __init__(self, peak_set: DeconvolutedPeakSet, error_tolerance: float = 2e-5,
                 precursor_charge: Optional[int] = None):
        self.peak_set = peak_set
        self.error_tolerance = error_tolerance
        self.precursor_charge = precursor_charge
        self.total_ion_current = sum(peak.intensity for peak in peak_set)

    def match(self, mass: float) -> Optional[DeconvolutedPeak]:
        best = None
        best_error = float('inf')
        for peak in self.peak_set.all_peaks_for(mass, self.error_tolerance):
            if self.precursor_charge is not None and abs(peak.charge) > abs(self.precursor_charge):
                continue
            error = abs(peak.neutral_mass - mass)
            if error < best_error:
                best_error = error
                best = peak
        return best

    def score(self, masses: Iterable[float]) -> float:
        total = 0.0
        tic = self.total_ion_current
        for mass in masses:
            peak = self.match(mass)
            if peak is not None:
                total += 1 + (peak.intensity / tic if tic > 0 else 0.0)
        return total

    def local_cost_for(self, fragments: Sequence[TheoreticalFragment], sites: Sequence[int],
                       glycan_box: GlycanBox) -> Callable[[int, GlycanBox], float]:
        """Build the local cost function for a :class:`~.LocalizationGraph` of
        `glycan_box` over `sites`.
        """
        cache: Dict[Tuple[int, Tuple[int, ...]], float] = {}

        def local_cost(i: int, child_box: GlycanBox) -> float:
            key = (i, child_box.ids)
            try:
                return cache[key]
            except KeyError:
                value = self.score(local_fragment_masses(fragments, sites, i, glycan_box, child_box))
                cache[key] = value
                return value

        return local_cost

    def unlocalized_cost_for(self, fragments: Sequence[TheoreticalFragment], sites: Sequence[int],
                             glycan_box: GlycanBox) -> Callable[[], float]:
        def unlocalized_cost() -> float:
            return self.score(unlocalized_fragment_masses(fragments, sites, glycan_box))
        return unlocalized_cost

    def __repr__(self):
        return "{self.__class__.__name__}({size}, {self.error_tolerance}, {self.precursor_charge})".format(
            self=self, size=len(self.peak_set))


def random_match_probability_for(peak_set: DeconvolutedPeakSet, error_tolerance: float,
                                 mass_range: Optional[Tuple[float, float]] = None) -> float:
    """Estimate the chance of a fragment matching a peak at random from the
    density of `peak_set`, using the width of the `error_tolerance` window at
    1000 Da.
    """
    n_peaks = len(peak_set)
    if n_peaks == 0:
        return 0.0
    if mass_range is None:
        masses = [peak.neutral_mass for peak in peak_set]
        mass_range = (min(masses), max(masses))
    tolerance_width = 2 * 1000.0 * error_tolerance
    return random_match_probability(n_peaks, tolerance_width, mass_range[1] - mass_range[0])
