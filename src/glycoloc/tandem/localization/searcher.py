import threading

from typing import Any, Dict, List, NamedTuple, Optional, Sequence, Tuple, Union

import numpy as np

from glycopeptidepy import PeptideSequence

from ms_deisotope.peak_set import DeconvolutedPeakSet

from glycoloc.config.config_file import DEFAULT_CONFIG, current_configuration
from glycoloc.structure.glycan import GlycanDatabase
from glycoloc.structure.glycan_box import GlycanBox, GlycanBoxCollection
from glycoloc.task import TaskBase, CallInterval

from .graph import LocalizationGraph
from .route import Route, first_route, highest_score_routes
from .probability import (
    LocalizationLevel, LocalizedGlycan, SiteProbabilityMap, classify_localization_level,
    correct_localization_level, localized_glycans, probability_of, score_all_routes,
    site_specific_probabilities)
from .evidence import (
    PeakSetEvidence, TheoreticalFragment, count_trials, fragments_from_peptide,
    random_match_probability_for)
from .sites import O_GLYCAN_MOTIFS, candidate_sites, graph_check
from .oxonium import OxoniumIonFilter


GLYCAN_SEARCH_TYPES = ("o_glycan", "n_glycan", "n_o_glycan")


class LocalizationParameters(NamedTuple):
    max_glycans_per_peptide: int = 3
    fragment_error_tolerance: float = 2e-5
    precursor_error_tolerance: float = 1e-5
    build_decoys: bool = False
    o_glycan_motifs: Tuple[str, ...] = ("S", "T")
    n_glycan_motifs: Tuple[str, ...] = ("Nxs", "Nxt")
    glycan_search_type: str = "o_glycan"
    oxonium_ion_filter: bool = False
    site_probability_threshold: float = 0.75
    score_tie_tolerance: float = 0.0
    graph_tie_tolerance: float = 1e-8
    n_workers: int = 4

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]] = None) -> 'LocalizationParameters':
        """Read the ``localization`` section of a configuration mapping, falling back
        to the active configuration when `config` is not given.
        """
        if config is None:
            config = current_configuration()
        section = dict(DEFAULT_CONFIG["localization"])
        section.update(config.get("localization", {}))
        kwargs = {}
        for name in cls._fields:
            if name not in section:
                continue
            value = section[name]
            if name.endswith("motifs"):
                value = tuple(value)
            kwargs[name] = value
        if kwargs["glycan_search_type"] not in GLYCAN_SEARCH_TYPES:
            raise ValueError("Unknown glycan search type %r" % (kwargs["glycan_search_type"], ))
        return cls(**kwargs)

    @property
    def motifs(self) -> Tuple[str, ...]:
        """The site motifs searched for the configured :attr:`glycan_search_type`."""
        if self.glycan_search_type == "o_glycan":
            return self.o_glycan_motifs
        elif self.glycan_search_type == "n_glycan":
            return self.n_glycan_motifs
        return self.o_glycan_motifs + self.n_glycan_motifs


class LocalizationTask(NamedTuple):
    """A peptide and the spectrum to localize its glycans against."""

    peptide_mass: float
    sites: Tuple[int, ...]
    fragments: Tuple[TheoreticalFragment, ...]
    peak_set: DeconvolutedPeakSet
    precursor_mass: float
    precursor_charge: Optional[int] = None
    scan_id: Optional[str] = None

    @classmethod
    def from_peptide(cls, peptide: Union[str, PeptideSequence], peak_set: DeconvolutedPeakSet,
                     precursor_mass: float, precursor_charge: Optional[int] = None,
                     motifs: Sequence[str] = O_GLYCAN_MOTIFS, scan_id: Optional[str] = None) -> 'LocalizationTask':
        if not isinstance(peptide, PeptideSequence):
            peptide = PeptideSequence(str(peptide))
        return cls(
            peptide.mass, tuple(candidate_sites(peptide, motifs)),
            tuple(fragments_from_peptide(peptide)), peak_set,
            precursor_mass, precursor_charge, scan_id)


class LocalizationResult(object):
    """The outcome of localizing the glycans of one :class:`LocalizationTask`.

    Attributes
    ----------
    graphs : list of LocalizationGraph
        The graphs tied for the best total score, in glycan box mass order
    best_route : Route
        The first optimal route of the first graph
    optimal_routes : list of Route
        Every co-optimal route of every graph in :attr:`graphs`
    routes : list of Route
        Every feasible route with its reverse-p weight, when probabilities were computed
    site_probabilities : dict
        Maps each candidate site to ``(glycan_id, probability)`` pairs
    localized_glycans : list of LocalizedGlycan
    level : LocalizationLevel
    """

    def __init__(self, task=None, graphs=None, best_route=None, optimal_routes=None, routes=None,
                 site_probabilities=None, localized_glycans=None, level=LocalizationLevel.Level3):
        self.task: Optional[LocalizationTask] = task
        self.graphs: List[LocalizationGraph] = graphs or []
        self.best_route: Optional[Route] = best_route
        self.optimal_routes: List[Route] = optimal_routes or []
        self.routes: List[Route] = routes or []
        self.site_probabilities: Optional[SiteProbabilityMap] = site_probabilities
        self.localized_glycans: List[LocalizedGlycan] = localized_glycans or []
        self.level = level

    @classmethod
    def empty(cls, task: Optional[LocalizationTask] = None) -> 'LocalizationResult':
        return cls(task)

    @property
    def is_empty(self) -> bool:
        return not self.graphs

    @property
    def best_graph(self) -> Optional[LocalizationGraph]:
        if not self.graphs:
            return None
        return self.graphs[0]

    @property
    def glycan_box(self) -> Optional[GlycanBox]:
        graph = self.best_graph
        if graph is None:
            return None
        return graph.glycan_box

    @property
    def total_score(self) -> float:
        graph = self.best_graph
        if graph is None:
            return 0.0
        return graph.total_score

    @property
    def is_decoy(self) -> bool:
        box = self.glycan_box
        return box is not None and box.is_decoy

    def __repr__(self):
        template = ("{self.__class__.__name__}(score={self.total_score}, box={self.glycan_box!r}, "
                    "route={self.best_route!r}, level={self.level!s})")
        return template.format(self=self)


class GlycanLocalizer(TaskBase):
    """Localize glycans for peptide-spectrum matches by building a
    :class:`~.LocalizationGraph` for each glycan box matching the precursor
    mass and keeping the best scoring ones.

    Attributes
    ----------
    glycan_boxes : GlycanBoxCollection
        The glycan boxes to search, shared between all threads
    parameters : LocalizationParameters
    supports_localization : bool
        Whether the dissociation method retains glycans on peptide backbone
        fragments. When it does not, no placement can be better than
        :attr:`LocalizationLevel.Level1b`.
    oxonium_filter : OxoniumIonFilter, optional
        Rules out glycan boxes that disagree with the observed oxonium ions,
        present when :attr:`LocalizationParameters.oxonium_ion_filter` is set
    """

    def __init__(self, glycan_boxes: GlycanBoxCollection, parameters: Optional[LocalizationParameters] = None,
                 supports_localization: bool = True):
        if parameters is None:
            parameters = LocalizationParameters()
        self.glycan_boxes = glycan_boxes
        self.parameters = parameters
        self.supports_localization = supports_localization
        self.oxonium_filter = OxoniumIonFilter() if parameters.oxonium_ion_filter else None

    @classmethod
    def from_database(cls, database: GlycanDatabase, parameters: Optional[LocalizationParameters] = None,
                      supports_localization: bool = True,
                      random_state: Optional[np.random.Generator] = None) -> 'GlycanLocalizer':
        """Build the glycan boxes of `database` as configured by `parameters`
        and create a localizer searching them.
        """
        if parameters is None:
            parameters = LocalizationParameters.from_config()
        glycan_boxes = GlycanBoxCollection.build(
            database, parameters.max_glycans_per_peptide, parameters.build_decoys, random_state)
        return cls(glycan_boxes, parameters, supports_localization)

    def make_task(self, peptide: Union[str, PeptideSequence], peak_set: DeconvolutedPeakSet,
                  precursor_mass: float, precursor_charge: Optional[int] = None,
                  scan_id: Optional[str] = None) -> LocalizationTask:
        return LocalizationTask.from_peptide(
            peptide, peak_set, precursor_mass, precursor_charge,
            motifs=self.parameters.motifs, scan_id=scan_id)

    def candidate_boxes(self, task: LocalizationTask) -> List[GlycanBox]:
        delta = task.precursor_mass - task.peptide_mass
        error_tolerance = task.precursor_mass * self.parameters.precursor_error_tolerance
        boxes = self.glycan_boxes.search_mass(delta, error_tolerance)
        if self.oxonium_filter is not None:
            signals = self.oxonium_filter.scan(task.peak_set)
            boxes = [box for box in boxes if self.oxonium_filter.accepts(signals, box)]
        return boxes

    def build_graph(self, task: LocalizationTask, glycan_box: GlycanBox,
                    evidence: PeakSetEvidence) -> LocalizationGraph:
        child_boxes = self.glycan_boxes.child_boxes_for(glycan_box)
        graph = LocalizationGraph(
            task.sites, glycan_box, child_boxes, self.glycan_boxes.index_of(glycan_box))
        graph.localize(
            evidence.local_cost_for(task.fragments, task.sites, glycan_box),
            evidence.unlocalized_cost_for(task.fragments, task.sites, glycan_box),
            self.parameters.score_tie_tolerance)
        return graph

    def best_graphs(self, task: LocalizationTask, evidence: PeakSetEvidence) -> List[LocalizationGraph]:
        """Score a graph for every candidate glycan box and keep those tied for
        the best total score.

        When the dissociation supports localization a graph must score above
        zero to be kept, otherwise every graph tied for the best score is kept,
        including a best score of zero.
        """
        graphs: List[LocalizationGraph] = []
        best_score = 0.0 if self.supports_localization else None
        tie_tolerance = self.parameters.graph_tie_tolerance
        for glycan_box in self.candidate_boxes(task):
            if not graph_check(task.sites, glycan_box):
                continue
            graph = self.build_graph(task, glycan_box, evidence)
            score = graph.total_score
            if best_score is None or score > best_score:
                best_score = score
                graphs = [graph]
            elif graphs and abs(score - best_score) < tie_tolerance:
                graphs.append(graph)
        return graphs

    def localize(self, task: LocalizationTask) -> LocalizationResult:
        """Localize the glycans of `task`.

        Returns
        -------
        LocalizationResult
            An empty result when no glycan box fits the precursor mass or
            can be placed on the candidate sites
        """
        if not task.sites:
            return LocalizationResult.empty(task)
        evidence = PeakSetEvidence(
            task.peak_set, self.parameters.fragment_error_tolerance, task.precursor_charge)
        graphs = self.best_graphs(task, evidence)
        if not graphs:
            self.debug("No glycan box could be localized for %s" % (task.scan_id, ))
            return LocalizationResult.empty(task)

        best_graph = graphs[0]
        best_route = first_route(best_graph)
        optimal_routes: List[Route] = []
        for graph in graphs:
            optimal_routes.extend(highest_score_routes(graph))

        if not self.supports_localization:
            if len(graphs) == 1 and best_graph.n_rows == 1:
                level = LocalizationLevel.Level1b
            else:
                level = LocalizationLevel.Level3
            return LocalizationResult(
                task, graphs, best_route, optimal_routes,
                localized_glycans=localized_glycans(optimal_routes), level=level)

        level = classify_localization_level(optimal_routes)
        routes: List[Route] = []
        probabilities = None
        glycans = localized_glycans(optimal_routes)
        if level in (LocalizationLevel.Level1, LocalizationLevel.Level2):
            p = random_match_probability_for(task.peak_set, self.parameters.fragment_error_tolerance)
            n_trials = count_trials(task.fragments)
            for graph in graphs:
                routes.extend(score_all_routes(graph, p, n_trials))
            probabilities = site_specific_probabilities(routes, best_graph.sites)
            glycans = [
                glycan.with_probability(probability_of(probabilities, glycan.site, glycan.glycan_id))
                for glycan in glycans
            ]
            level = correct_localization_level(
                level, optimal_routes, best_graph, probabilities,
                self.parameters.site_probability_threshold)
        return LocalizationResult(
            task, graphs, best_route, optimal_routes, routes, probabilities, glycans, level)


class LocalizationDispatcher(TaskBase):
    """Localize many :class:`LocalizationTask` instances with a fixed pool of
    threads.

    Launch it with :meth:`start`, which logs the version and timing around
    :meth:`run`.

    Worker ``k`` of ``n`` handles tasks ``k, k + n, k + 2n, ...`` and writes each
    result into its own slot of :attr:`results`. Setting the cancellation event
    stops every worker before its next task.

    Attributes
    ----------
    localizer : GlycanLocalizer
    tasks : list of LocalizationTask
    n_workers : int
    results : list
        The result for each task, ``None`` for tasks not processed
    completed : int
        The number of tasks finished so far
    """

    display_fields = False

    def __init__(self, localizer: GlycanLocalizer, tasks: Sequence[LocalizationTask],
                 n_workers: Optional[int] = None, progress_interval: float = 30.0):
        if n_workers is None:
            n_workers = localizer.parameters.n_workers
        self.localizer = localizer
        self.tasks = list(tasks)
        self.n_workers = max(1, min(n_workers, len(self.tasks)))
        self.progress_interval = progress_interval
        self.results: List[Optional[LocalizationResult]] = [None] * len(self.tasks)
        self.completed = 0
        self._counter_lock = threading.Lock()
        self._cancel_event = threading.Event()
        self._error_event = threading.Event()

    def on_begin(self):
        self.display_header()

    def cancel(self):
        self._cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def error_occurred(self) -> bool:
        return self._error_event.is_set()

    def _mark_completed(self):
        with self._counter_lock:
            self.completed += 1

    def _report_progress(self):
        self.log("... Localized %d/%d spectra" % (self.completed, len(self.tasks)))

    def _worker(self, offset: int):
        for index in range(offset, len(self.tasks), self.n_workers):
            if self._cancel_event.is_set():
                return
            try:
                result = self.localizer.localize(self.tasks[index])
            except Exception as err:
                self.error("An error occurred while localizing task %d" % (index, ), exception=err)
                self._error_event.set()
                self._cancel_event.set()
                return
            self.results[index] = result
            self._mark_completed()

    def run(self) -> List[Optional[LocalizationResult]]:
        if not self.tasks:
            return self.results
        threads = [
            threading.Thread(target=self._worker, args=(k, ), name="localization-worker-%d" % k, daemon=True)
            for k in range(self.n_workers)
        ]
        reporter = CallInterval(self.progress_interval, self._report_progress)
        reporter.start()
        try:
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join()
        finally:
            reporter.stop()
        if self._error_event.is_set():
            self.error("Localization stopped after an error with %d/%d spectra done" % (
                self.completed, len(self.tasks)))
        elif self._cancel_event.is_set():
            self.log("Localization cancelled with %d/%d spectra done" % (self.completed, len(self.tasks)))
        else:
            self._report_progress()
        return self.results
