from ms_deisotope.peak_set import DeconvolutedPeak, DeconvolutedPeakSet

from glycoloc.structure import GlycanDatabase, build_child_boxes, make_glycan_box
from glycoloc.tandem.localization import LocalizationGraph


GLYCAN_KINDS = [
    "N1",
    "H1N1",
    "H1N1A1",
    "H1N1A2",
    "N1A1",
    "H2N2",
    "H2N2A1",
    "N1F1",
    "H1",
    "H1N1F1",
]


def make_database(kinds=None):
    if kinds is None:
        kinds = GLYCAN_KINDS
    return GlycanDatabase.from_kind_strings(kinds)


def make_graph(sites, ids, database=None):
    if database is None:
        database = make_database()
    box = make_glycan_box(database, ids)
    children = build_child_boxes(box.number_of_mods, box.ids, database, box)
    return LocalizationGraph(sites, box, children)


def make_peak_set(peaks, charge=1):
    """Build a :class:`DeconvolutedPeakSet` from ``(neutral_mass, intensity)`` pairs
    or ``(neutral_mass, intensity, charge)`` triples.
    """
    built = []
    for peak in peaks:
        if len(peak) == 3:
            mass, intensity, z = peak
        else:
            mass, intensity = peak
            z = charge
        built.append(DeconvolutedPeak(mass, intensity, z, intensity, -1, 0.01))
    peak_set = DeconvolutedPeakSet(built)
    peak_set.reindex()
    return peak_set
