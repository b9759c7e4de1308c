import unittest

import numpy as np

from glycopeptidepy import PeptideSequence

from glycoloc.structure import GlycanBoxCollection, GlycanDatabase, make_glycan_box
from glycoloc.tandem.localization import (
    GlycanLocalizer, LocalizationDispatcher, LocalizationLevel, LocalizationParameters,
    LocalizationResult, LocalizationTask, fragments_from_peptide)
from glycoloc.tandem.localization.oxonium import SIALIC_ACID_OXONIUM_IONS
from glycoloc.task import LoggingMixin

from . import fixtures


PEPTIDE = "AGSAGTAK"


def synthetic_spectrum(peptide, placements, database):
    """Build a peak list holding every c and z fragment of `peptide` carrying
    the glycans of `placements`, a mapping from site to glycan id.
    """
    peaks = []
    for fragment in fragments_from_peptide(peptide):
        shift = 0.0
        for site, glycan_id in placements.items():
            residue = site - 1
            if fragment.series == 'c' and residue <= fragment.position:
                shift += database[glycan_id].mass
            elif fragment.series == 'z' and residue >= fragment.position:
                shift += database[glycan_id].mass
        peaks.append((fragment.mass + shift, 100.0))
    return fixtures.make_peak_set(peaks)


class LocalizerTestBase(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        LoggingMixin.log_to_stdout()

    def setUp(self):
        self.database = GlycanDatabase.from_kind_strings(["N1", "H1N1"])
        self.boxes = GlycanBoxCollection.build(self.database, 2)
        self.peptide = PeptideSequence(PEPTIDE)
        self.box = make_glycan_box(self.database, [0, 1])

    def make_task(self, placements=None, scan_id="scan=1"):
        if placements is None:
            placements = {4: 0, 7: 1}
        peak_set = synthetic_spectrum(PEPTIDE, placements, self.database)
        return LocalizationTask.from_peptide(
            self.peptide, peak_set, self.peptide.mass + self.box.mass, 2, scan_id=scan_id)


class TestGlycanLocalizer(LocalizerTestBase):

    def test_task_from_peptide(self):
        task = self.make_task()
        self.assertEqual(task.sites, (4, 7))
        self.assertEqual(len(task.fragments), 14)
        self.assertAlmostEqual(task.peptide_mass, self.peptide.mass)

    def test_candidate_boxes(self):
        localizer = GlycanLocalizer(self.boxes)
        boxes = localizer.candidate_boxes(self.make_task())
        self.assertEqual([b.ids for b in boxes], [(0, 1)])

    def test_localize(self):
        localizer = GlycanLocalizer(self.boxes)
        result = localizer.localize(self.make_task())
        self.assertFalse(result.is_empty)
        self.assertEqual(result.glycan_box, self.box)
        self.assertEqual(result.best_route.site_glycan_pairs(), [(4, 0), (7, 1)])
        self.assertEqual(len(result.optimal_routes), 1)
        self.assertEqual(result.level, LocalizationLevel.Level1)
        self.assertEqual(len(result.routes), 2)
        probabilities = result.site_probabilities
        self.assertGreater(dict(probabilities[4])[0], 0.75)
        self.assertGreater(dict(probabilities[7])[1], 0.75)
        for glycan in result.localized_glycans:
            self.assertTrue(glycan.confident)
            self.assertGreater(glycan.probability, 0.75)

    def test_localize_swapped(self):
        localizer = GlycanLocalizer(self.boxes)
        result = localizer.localize(self.make_task({4: 1, 7: 0}))
        self.assertEqual(result.best_route.site_glycan_pairs(), [(4, 1), (7, 0)])

    def test_no_matching_box(self):
        localizer = GlycanLocalizer(self.boxes)
        task = self.make_task()._replace(precursor_mass=self.peptide.mass + 1000.0)
        result = localizer.localize(task)
        self.assertTrue(result.is_empty)
        self.assertIsNone(result.best_route)
        self.assertEqual(result.level, LocalizationLevel.Level3)

    def test_too_few_sites(self):
        localizer = GlycanLocalizer(self.boxes)
        task = self.make_task()._replace(sites=(4, ))
        self.assertTrue(localizer.localize(task).is_empty)
        task = self.make_task()._replace(sites=())
        self.assertTrue(localizer.localize(task).is_empty)

    def test_without_localizing_dissociation(self):
        localizer = GlycanLocalizer(self.boxes, supports_localization=False)
        result = localizer.localize(self.make_task())
        self.assertEqual(result.level, LocalizationLevel.Level3)
        self.assertIsNone(result.site_probabilities)


class TestLocalizationDispatcher(LocalizerTestBase):

    def make_tasks(self):
        return [
            self.make_task(scan_id="scan=1"),
            self.make_task({4: 1, 7: 0}, scan_id="scan=2"),
            self.make_task(scan_id="scan=3")._replace(sites=()),
            self.make_task(scan_id="scan=4"),
            self.make_task({4: 1, 7: 0}, scan_id="scan=5"),
        ]

    def test_results_are_aligned(self):
        tasks = self.make_tasks()
        dispatcher = LocalizationDispatcher(GlycanLocalizer(self.boxes), tasks, n_workers=2)
        results = dispatcher.start()
        self.assertEqual(dispatcher.status, "completed")
        self.assertEqual(len(results), len(tasks))
        self.assertEqual(dispatcher.completed, len(tasks))
        self.assertFalse(dispatcher.error_occurred())
        for task, result in zip(tasks, results):
            self.assertIs(result.task, task)
        self.assertEqual(results[0].best_route.site_glycan_pairs(), [(4, 0), (7, 1)])
        self.assertEqual(results[1].best_route.site_glycan_pairs(), [(4, 1), (7, 0)])
        self.assertTrue(results[2].is_empty)
        self.assertEqual(results[4].best_route.site_glycan_pairs(), [(4, 1), (7, 0)])

    def test_cancellation(self):
        dispatcher = LocalizationDispatcher(GlycanLocalizer(self.boxes), self.make_tasks(), n_workers=2)
        dispatcher.cancel()
        results = dispatcher.run()
        self.assertTrue(dispatcher.cancelled)
        self.assertEqual(results, [None] * 5)
        self.assertEqual(dispatcher.completed, 0)

    def test_worker_error(self):

        class FailingLocalizer(GlycanLocalizer):
            def localize(self, task):
                if task.scan_id == "scan=2":
                    raise ValueError("bad spectrum")
                return super(FailingLocalizer, self).localize(task)

        dispatcher = LocalizationDispatcher(FailingLocalizer(self.boxes), self.make_tasks(), n_workers=1)
        results = dispatcher.run()
        self.assertTrue(dispatcher.error_occurred())
        self.assertIsInstance(results[0], LocalizationResult)
        self.assertEqual(results[1:], [None] * 4)

    def test_empty(self):
        dispatcher = LocalizationDispatcher(GlycanLocalizer(self.boxes), [])
        self.assertEqual(dispatcher.run(), [])


class TestZeroScoreGraphs(unittest.TestCase):

    def setUp(self):
        self.database = GlycanDatabase.from_kind_strings(["N1", "H1"])
        self.boxes = GlycanBoxCollection.build(self.database, 1)
        self.parameters = LocalizationParameters(precursor_error_tolerance=0.05)
        self.peptide = PeptideSequence("AGSAGAK")
        midpoint = (self.database[0].mass + self.database[1].mass) / 2
        self.task = LocalizationTask.from_peptide(
            self.peptide, fixtures.make_peak_set([(100.0, 50.0)]),
            self.peptide.mass + midpoint, 2)

    def test_both_boxes_are_candidates(self):
        localizer = GlycanLocalizer(self.boxes, self.parameters)
        self.assertEqual(self.task.sites, (4, ))
        self.assertEqual([b.ids for b in localizer.candidate_boxes(self.task)], [(1, ), (0, )])

    def test_ties_at_zero_kept_without_localizing_dissociation(self):
        localizer = GlycanLocalizer(self.boxes, self.parameters, supports_localization=False)
        result = localizer.localize(self.task)
        self.assertEqual([g.glycan_box.ids for g in result.graphs], [(1, ), (0, )])
        self.assertEqual([g.total_score for g in result.graphs], [0.0, 0.0])
        self.assertEqual(result.level, LocalizationLevel.Level3)

    def test_no_evidence_is_not_localized(self):
        localizer = GlycanLocalizer(self.boxes, self.parameters)
        result = localizer.localize(self.task)
        self.assertTrue(result.is_empty)
        self.assertIsNone(result.best_route)
        self.assertEqual(result.level, LocalizationLevel.Level3)


class TestOxoniumIonFiltering(unittest.TestCase):

    def setUp(self):
        self.database = GlycanDatabase.from_kind_strings(["N1", "N1A1"])
        self.boxes = GlycanBoxCollection.build(self.database, 1)
        self.peptide = PeptideSequence("AGSAGAK")

    def candidate_ids(self, peaks, oxonium_ion_filter):
        parameters = LocalizationParameters(precursor_error_tolerance=1.0, oxonium_ion_filter=oxonium_ion_filter)
        localizer = GlycanLocalizer(self.boxes, parameters)
        task = localizer.make_task(self.peptide, fixtures.make_peak_set(peaks), self.peptide.mass + 300.0)
        return [b.ids for b in localizer.candidate_boxes(task)]

    def test_filter_disabled(self):
        self.assertIsNone(GlycanLocalizer(self.boxes).oxonium_filter)
        self.assertEqual(self.candidate_ids([(100.0, 10.0)], False), [(0, ), (1, )])

    def test_sialylated_boxes_need_sialic_acid_ions(self):
        self.assertEqual(self.candidate_ids([(100.0, 10.0)], True), [(0, )])
        peaks = [(100.0, 10.0), (SIALIC_ACID_OXONIUM_IONS[1], 25.0)]
        self.assertEqual(self.candidate_ids(peaks, True), [(0, ), (1, )])


class TestSearchConfiguration(unittest.TestCase):

    def test_from_database(self):
        database = GlycanDatabase.from_kind_strings(["N1", "H1N1", "H1N1A1"])
        parameters = LocalizationParameters(max_glycans_per_peptide=2, build_decoys=True)
        localizer = GlycanLocalizer.from_database(database, parameters, random_state=np.random.default_rng(7))
        boxes = list(localizer.glycan_boxes)
        self.assertEqual(max(box.number_of_mods for box in boxes), 2)
        self.assertEqual(len([box for box in boxes if not box.is_decoy]), 9)
        self.assertEqual(len([box for box in boxes if box.is_decoy]), 9)

        localizer = GlycanLocalizer.from_database(database, LocalizationParameters(max_glycans_per_peptide=1))
        self.assertEqual(sorted(box.ids for box in localizer.glycan_boxes), [(0, ), (1, ), (2, )])

    def test_motifs_follow_search_type(self):
        database = GlycanDatabase.from_kind_strings(["N1"])
        boxes = GlycanBoxCollection.build(database, 1)
        peak_set = fixtures.make_peak_set([(100.0, 10.0)])
        expected = {"o_glycan": (5, 7), "n_glycan": (3, ), "n_o_glycan": (3, 5, 7)}
        for search_type, sites in expected.items():
            localizer = GlycanLocalizer(boxes, LocalizationParameters(glycan_search_type=search_type))
            task = localizer.make_task("ANGTKSK", peak_set, 1000.0, scan_id="scan=1")
            self.assertEqual(task.sites, sites)
            self.assertEqual(task.scan_id, "scan=1")

    def test_custom_motifs(self):
        database = GlycanDatabase.from_kind_strings(["N1"])
        parameters = LocalizationParameters.from_config({"localization": {"o_glycan_motifs": ["T"]}})
        localizer = GlycanLocalizer(GlycanBoxCollection.build(database, 1), parameters)
        task = localizer.make_task("ANGTKSK", fixtures.make_peak_set([]), 1000.0)
        self.assertEqual(task.sites, (5, ))

    def test_unknown_search_type(self):
        with self.assertRaises(ValueError):
            LocalizationParameters.from_config({"localization": {"glycan_search_type": "c_glycan"}})


class TestLocalizationParameters(unittest.TestCase):

    def test_from_config(self):
        config = {"localization": {"max_glycans_per_peptide": 2, "o_glycan_motifs": ["S"]}}
        parameters = LocalizationParameters.from_config(config)
        self.assertEqual(parameters.max_glycans_per_peptide, 2)
        self.assertEqual(parameters.o_glycan_motifs, ("S", ))
        self.assertEqual(parameters.site_probability_threshold, 0.75)
        self.assertEqual(parameters.n_glycan_motifs, ("Nxs", "Nxt"))


if __name__ == '__main__':
    unittest.main()
