"""Find candidate glycosylation sites on a peptide from residue motifs.
"""
from typing import List, Sequence, Union

from glycopeptidepy import PeptideSequence

from glycoloc.structure.glycan_box import GlycanBox


O_GLYCAN_MOTIFS = ("S", "T")
N_GLYCAN_MOTIFS = ("Nxs", "Nxt")

# Candidate site numbering is offset from the zero-based residue index
SITE_OFFSET = 2


def _residue_matches(pattern: str, symbol: str) -> bool:
    if pattern == 'x':
        return symbol != 'P'
    return pattern.upper() == symbol


def candidate_sites(peptide: Union[str, PeptideSequence], motifs: Sequence[str] = O_GLYCAN_MOTIFS) -> List[int]:
    """Find the positions in `peptide` that match any of `motifs`.

    A motif is a residue pattern anchored at the modified residue, where ``x``
    matches any residue but proline, so ``"Nxt"`` is the N-glycosylation sequon.
    Residues already carrying a modification are skipped.

    Parameters
    ----------
    peptide : str or :class:`~glycopeptidepy.PeptideSequence`
    motifs : Sequence[str]

    Returns
    -------
    list of int
        Ascending site positions, ``residue index + 2``
    """
    if not isinstance(peptide, PeptideSequence):
        peptide = PeptideSequence(str(peptide))
    symbols = []
    modified = []
    for position in peptide:
        symbols.append(position[0].symbol)
        modified.append(bool(position[1]))
    sites = []
    n = len(symbols)
    for i in range(n):
        if modified[i]:
            continue
        for motif in motifs:
            if i + len(motif) > n:
                continue
            if all(_residue_matches(motif[k], symbols[i + k]) for k in range(len(motif))):
                sites.append(i + SITE_OFFSET)
                break
    return sites


def graph_check(sites: Sequence[int], glycan_box: GlycanBox) -> bool:
    """Whether `glycan_box` can be distributed over `sites` at all."""
    return len(sites) >= glycan_box.number_of_mods
