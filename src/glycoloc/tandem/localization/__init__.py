from .graph import (
    LocalizationNode, LocalizationGraph, box_satisfies_box, contains_multiset)

from .route import (
    SitePlacement, Route, multiset_difference, first_path, all_highest_score_paths,
    all_feasible_paths, path_score, path_to_route, cumulative_compositions,
    first_route, highest_score_routes, feasible_routes)

from .probability import (
    reverse_p_weight, log_reverse_p_weight, random_match_probability, score_route,
    score_all_routes, site_specific_probabilities, probability_of, LocalizationLevel,
    LocalizedGlycan, localized_glycans, classify_localization_level,
    correct_localization_level)

from .evidence import (
    TheoreticalFragment, fragments_from_peptide, count_trials, local_fragment_masses,
    unlocalized_fragment_masses, PeakSetEvidence, random_match_probability_for)

from .sites import candidate_sites, graph_check, O_GLYCAN_MOTIFS, N_GLYCAN_MOTIFS

from .oxonium import OxoniumIonFilter, OxoniumSignals

from .searcher import (
    GLYCAN_SEARCH_TYPES, LocalizationParameters, LocalizationTask, LocalizationResult, GlycanLocalizer,
    LocalizationDispatcher)


__all__ = [
    "LocalizationNode", "LocalizationGraph", "box_satisfies_box", "contains_multiset",
    "SitePlacement", "Route", "multiset_difference", "first_path", "all_highest_score_paths",
    "all_feasible_paths", "path_score", "path_to_route", "cumulative_compositions",
    "first_route", "highest_score_routes", "feasible_routes",
    "reverse_p_weight", "log_reverse_p_weight", "random_match_probability", "score_route",
    "score_all_routes", "site_specific_probabilities", "probability_of", "LocalizationLevel",
    "LocalizedGlycan", "localized_glycans", "classify_localization_level",
    "correct_localization_level",
    "TheoreticalFragment", "fragments_from_peptide", "count_trials", "local_fragment_masses",
    "unlocalized_fragment_masses", "PeakSetEvidence", "random_match_probability_for",
    "candidate_sites", "graph_check", "O_GLYCAN_MOTIFS", "N_GLYCAN_MOTIFS",
    "OxoniumIonFilter", "OxoniumSignals",
    "GLYCAN_SEARCH_TYPES", "LocalizationParameters", "LocalizationTask", "LocalizationResult", "GlycanLocalizer",
    "LocalizationDispatcher",
]
