"""Convert route scores into site-specific localization probabilities using a
binomial random-match model, and classify how confidently a glycan box was
localized.

The weight of a route scoring ``k`` out of ``n`` theoretical fragments, when each
fragment matches a random peak with probability ``p``, is ``1 / P(X >= k)`` for
``X ~ Binomial(n, p)``. Routes whose score is less likely under the random-match
model receive exponentially more weight.
"""
import math

from collections import OrderedDict
from enum import IntEnum
from typing import Dict, Iterable, List, NamedTuple, Optional, Sequence, Tuple

import numpy as np
from scipy.stats import binom
from scipy.special import logsumexp

from .graph import LocalizationGraph
from .route import Route, all_feasible_paths, path_to_route


DEFAULT_SITE_PROBABILITY_THRESHOLD = 0.75

# -log of the smallest positive double, where the survival function underflows
MAX_LOG_WEIGHT = 745.0

SiteProbabilityMap = Dict[int, List[Tuple[int, float]]]


def log_reverse_p_weight(score: float, p: float, n_trials: int) -> float:
    """The natural logarithm of :func:`reverse_p_weight`."""
    if p <= 0 or n_trials <= 0:
        return 0.0
    p = min(p, 1.0)
    k = min(int(math.floor(score)), n_trials)
    if k <= 0:
        return 0.0
    # P(X >= k) == P(X > k - 1)
    log_sf = float(binom.logsf(k - 1, n_trials, p))
    if not math.isfinite(log_sf):
        return MAX_LOG_WEIGHT
    return min(-log_sf, MAX_LOG_WEIGHT)


def reverse_p_weight(score: float, p: float, n_trials: int) -> float:
    """Compute ``1 / (1 - CDF(k) + PMF(k))`` for ``k = floor(score)``.

    Parameters
    ----------
    score : float
        The route score
    p : float
        The probability of a theoretical fragment matching a random peak
    n_trials : int
        The number of theoretical fragments

    Returns
    -------
    float
        The weight, ``1.0`` when `p` or `n_trials` make the model undefined
    """
    return math.exp(min(log_reverse_p_weight(score, p, n_trials), 709.0))


def random_match_probability(n_peaks: int, tolerance_width: float, mass_range_width: float) -> float:
    """The chance that a theoretical fragment matches one of `n_peaks` peaks by
    chance when each peak accepts a window of `tolerance_width` Da over a
    spectrum spanning `mass_range_width` Da.
    """
    if mass_range_width <= 0 or n_peaks <= 0:
        return 0.0
    p = n_peaks * tolerance_width / mass_range_width
    return min(max(p, 0.0), 1.0)


def score_route(route: Route, p: float, n_trials: int) -> Route:
    route.log_reverse_p = log_reverse_p_weight(route.score, p, n_trials)
    route.reverse_p = math.exp(min(route.log_reverse_p, 709.0))
    return route


def score_all_routes(graph: LocalizationGraph, p: float, n_trials: int) -> List[Route]:
    """Read every feasible route out of `graph` and weight it by its reverse-p value."""
    routes = []
    for path in all_feasible_paths(graph):
        routes.append(score_route(path_to_route(graph, path), p, n_trials))
    return routes


def site_specific_probabilities(routes: Sequence[Route], sites: Iterable[int]) -> SiteProbabilityMap:
    """Aggregate route weights into the probability of each glycan at each site.

    Parameters
    ----------
    routes : Sequence[Route]
        Weighted routes, as produced by :func:`score_all_routes`
    sites : Iterable[int]
        The candidate site positions to report

    Returns
    -------
    dict
        Maps each site to a list of ``(glycan_id, probability)`` pairs in the order
        the glycans were first seen at that site
    """
    probabilities: SiteProbabilityMap = OrderedDict()
    sites = list(sites)
    if not routes:
        for site in sites:
            probabilities[site] = []
        return probabilities
    log_weights = np.array([route.log_reverse_p for route in routes], dtype=float)
    log_total = logsumexp(log_weights)
    for site in sites:
        by_glycan: Dict[int, List[float]] = OrderedDict()
        for route, log_weight in zip(routes, log_weights):
            for placement in route.placements:
                if placement.site == site:
                    by_glycan.setdefault(placement.glycan_id, []).append(log_weight)
        probabilities[site] = [
            (glycan_id, float(np.exp(logsumexp(weights) - log_total)))
            for glycan_id, weights in by_glycan.items()
        ]
    return probabilities


def probability_of(probabilities: SiteProbabilityMap, site: int, glycan_id: int) -> float:
    for key, value in probabilities.get(site, ()):
        if key == glycan_id:
            return value
    return 0.0


class LocalizationLevel(IntEnum):
    """The confidence with which a glycan box was localized, from best to worst."""

    Level1 = 1
    Level1b = 2
    Level2 = 3
    Level3 = 4

    def __str__(self):
        return self.name


class LocalizedGlycan(NamedTuple):
    site: int
    glycan_id: int
    confident: bool
    probability: Optional[float] = None

    def with_probability(self, probability: float) -> 'LocalizedGlycan':
        return self._replace(probability=probability)


def localized_glycans(routes: Sequence[Route]) -> List[LocalizedGlycan]:
    """Every site-glycan pair seen in `routes`, flagged as confident when the
    pair is found in all of them.
    """
    counts: Dict[Tuple[int, int], int] = OrderedDict()
    for route in routes:
        for pair in route.site_glycan_pairs():
            counts[pair] = counts.get(pair, 0) + 1
    n = len(routes)
    return [LocalizedGlycan(site, glycan_id, count == n)
            for (site, glycan_id), count in counts.items()]


def classify_localization_level(routes: Sequence[Route]) -> LocalizationLevel:
    """Classify how well the co-optimal `routes` agree.

    A single route is :attr:`LocalizationLevel.Level1`. Several routes sharing at
    least one site-glycan pair are :attr:`LocalizationLevel.Level2`, otherwise
    they are :attr:`LocalizationLevel.Level3`.
    """
    if len(routes) == 1:
        return LocalizationLevel.Level1
    if not routes:
        return LocalizationLevel.Level3
    if any(glycan.confident for glycan in localized_glycans(routes)):
        return LocalizationLevel.Level2
    return LocalizationLevel.Level3


def correct_localization_level(level: LocalizationLevel, routes: Sequence[Route], graph: LocalizationGraph,
                               probabilities: Optional[SiteProbabilityMap],
                               threshold: float = DEFAULT_SITE_PROBABILITY_THRESHOLD) -> LocalizationLevel:
    """Downgrade a :attr:`LocalizationLevel.Level1` localization to
    :attr:`LocalizationLevel.Level1b` when it is not backed by discriminating
    evidence.

    This happens when the only candidate site carries no evidence, when any
    placement's site probability falls below `threshold`, or when any placement
    is not bracketed by local fragment evidence.
    """
    if level != LocalizationLevel.Level1 or probabilities is None:
        return level
    if graph.n_rows == 1 and graph.total_score == 0:
        return LocalizationLevel.Level1b
    for route in routes:
        for placement in route.placements:
            if probability_of(probabilities, placement.site, placement.glycan_id) < threshold:
                return LocalizationLevel.Level1b
            if not placement.local_peak_exists:
                return LocalizationLevel.Level1b
    return level
