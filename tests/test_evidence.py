import unittest

from glycopeptidepy.structure.composition import Composition

from glycoloc.structure import make_glycan_box
from glycoloc.tandem.localization.evidence import (
    PeakSetEvidence, TheoreticalFragment, count_trials,
    fragments_from_peptide, local_fragment_masses, random_match_probability_for,
    unlocalized_fragment_masses)
from glycoloc.tandem.localization.sites import N_GLYCAN_MOTIFS, candidate_sites, graph_check

from . import fixtures


GLYCINE = 57.02146
PHOSPHO = 79.96633


class TestTheoreticalFragments(unittest.TestCase):

    def test_fragment_positions(self):
        fragments = fragments_from_peptide("GSTAG")
        c_ions = [f for f in fragments if f.series == 'c']
        z_ions = [f for f in fragments if f.series == 'z']
        self.assertEqual([f.position for f in c_ions], [1, 2, 3, 4])
        self.assertEqual([f.position for f in z_ions], [2, 3, 4, 5])
        self.assertAlmostEqual(c_ions[0].mass, GLYCINE + Composition("NH3").mass, 3)
        self.assertLess(z_ions[-1].mass, z_ions[0].mass)
        self.assertEqual(count_trials(fragments), 8)

    def test_complementary_masses(self):
        fragments = fragments_from_peptide("GSTAG")
        c_ions = [f for f in fragments if f.series == 'c']
        z_ions = [f for f in fragments if f.series == 'z']
        totals = [c.mass + z.mass for c, z in zip(c_ions, z_ions)]
        for total in totals[1:]:
            self.assertAlmostEqual(total, totals[0], 6)

    def test_unmodified_and_modified_residues(self):
        plain = fragments_from_peptide("GSTAG")
        modified = fragments_from_peptide("GS(Phospho)TAG")
        self.assertEqual([(f.series, f.position) for f in plain], [(f.series, f.position) for f in modified])
        for a, b in zip(plain, modified):
            carries_site = (a.series == 'c' and a.position >= 2) or (a.series == 'z' and a.position <= 2)
            self.assertAlmostEqual(b.mass - a.mass, PHOSPHO if carries_site else 0.0, 3)

    def test_no_cleavage_before_proline(self):
        fragments = fragments_from_peptide("GPGA")
        self.assertEqual([f.position for f in fragments if f.series == 'c'], [2, 3])
        self.assertEqual([f.position for f in fragments if f.series == 'z'], [3, 4])


class TestFragmentWindows(unittest.TestCase):

    def setUp(self):
        self.database = fixtures.make_database()
        self.box = make_glycan_box(self.database, [0, 1])
        self.child = make_glycan_box(self.database, [0])
        self.fragments = (
            [TheoreticalFragment('c', i, 100.0 * i) for i in range(1, 9)] +
            [TheoreticalFragment('z', i, 1000.0 + i) for i in range(2, 10)])

    def test_local_window(self):
        masses = list(local_fragment_masses(self.fragments, [3, 6], 0, self.box, self.child))
        c_shift = self.child.mass
        z_shift = self.box.mass - self.child.mass
        expected = [100.0 * i + c_shift for i in (2, 3, 4)] + [1000.0 + i + z_shift for i in (3, 4, 5)]
        self.assertEqual(len(masses), len(expected))
        for a, b in zip(masses, expected):
            self.assertAlmostEqual(a, b, 6)

    def test_unlocalized_window(self):
        masses = list(unlocalized_fragment_masses(self.fragments, [3, 6], self.box))
        shift = self.box.mass
        expected = (
            [100.0] + [100.0 * i + shift for i in (5, 6, 7, 8)] +
            [1000.0 + i for i in (6, 7, 8, 9)])
        self.assertEqual(len(masses), len(expected))
        for a, b in zip(masses, expected):
            self.assertAlmostEqual(a, b, 6)


class TestPeakSetEvidence(unittest.TestCase):

    def test_score(self):
        peak_set = fixtures.make_peak_set([(500.0, 100.0), (800.0, 300.0)])
        evidence = PeakSetEvidence(peak_set, 2e-5, 2)
        self.assertEqual(evidence.total_ion_current, 400.0)
        self.assertAlmostEqual(evidence.score([500.001]), 1.25)
        self.assertAlmostEqual(evidence.score([500.001, 800.0, 650.0]), 1.25 + 1.75)
        self.assertEqual(evidence.score([]), 0.0)

    def test_charge_limit(self):
        peak_set = fixtures.make_peak_set([(500.0, 100.0, 3), (800.0, 300.0, 1)])
        evidence = PeakSetEvidence(peak_set, 2e-5, 2)
        self.assertIsNone(evidence.match(500.0))
        self.assertEqual(evidence.score([500.0]), 0.0)
        evidence = PeakSetEvidence(peak_set, 2e-5, 3)
        self.assertIsNotNone(evidence.match(500.0))

    def test_closest_peak(self):
        peak_set = fixtures.make_peak_set([(500.0, 100.0), (500.006, 300.0)])
        evidence = PeakSetEvidence(peak_set, 2e-5)
        self.assertAlmostEqual(evidence.match(500.005).neutral_mass, 500.006)

    def test_cost_functions(self):
        database = fixtures.make_database()
        box = make_glycan_box(database, [0, 1])
        child = make_glycan_box(database, [0])
        fragments = [TheoreticalFragment('c', 3, 400.0), TheoreticalFragment('c', 1, 150.0)]
        peak_set = fixtures.make_peak_set([(400.0 + child.mass, 100.0), (150.0, 100.0)])
        evidence = PeakSetEvidence(peak_set, 2e-5)
        local_cost = evidence.local_cost_for(fragments, [3, 6], box)
        self.assertAlmostEqual(local_cost(0, child), 1.5)
        self.assertEqual(local_cost(0, make_glycan_box(database, [1])), 0.0)
        self.assertAlmostEqual(evidence.unlocalized_cost_for(fragments, [3, 6], box)(), 1.5)

    def test_random_match_probability(self):
        peak_set = fixtures.make_peak_set([(100.0, 10.0), (1100.0, 10.0)])
        self.assertAlmostEqual(random_match_probability_for(peak_set, 1e-5), 4e-5)
        self.assertAlmostEqual(random_match_probability_for(peak_set, 1e-5, (0.0, 2000.0)), 2e-5)
        self.assertEqual(random_match_probability_for(fixtures.make_peak_set([]), 1e-5), 0.0)


class TestCandidateSites(unittest.TestCase):

    def test_o_glycan_sites(self):
        self.assertEqual(candidate_sites("AGSAGTAK"), [4, 7])
        self.assertEqual(candidate_sites("GGGK"), [])
        self.assertEqual(candidate_sites("AGS(Phospho)AGTAK"), [7])

    def test_n_glycan_sites(self):
        self.assertEqual(candidate_sites("ANGTKNPSK", N_GLYCAN_MOTIFS), [3])
        self.assertEqual(candidate_sites("ANGS", N_GLYCAN_MOTIFS), [3])
        self.assertEqual(candidate_sites("AAN", N_GLYCAN_MOTIFS), [])

    def test_graph_check(self):
        database = fixtures.make_database()
        self.assertTrue(graph_check([4, 7], make_glycan_box(database, [0, 1])))
        self.assertFalse(graph_check([4], make_glycan_box(database, [0, 1])))


if __name__ == '__main__':
    unittest.main()
