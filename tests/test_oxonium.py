import unittest

from glycoloc.structure import GlycanDatabase, make_glycan_box
from glycoloc.tandem.localization.oxonium import (
    HEXNAC_HEXOSE_OXONIUM_ION, SIALIC_ACID_OXONIUM_IONS, OxoniumIonFilter, OxoniumSignals)

from . import fixtures


class TestOxoniumIonFilter(unittest.TestCase):

    def setUp(self):
        self.database = GlycanDatabase.from_kind_strings(["N1", "N1A1", "A1", "G1"])
        self.filter = OxoniumIonFilter()

    def box(self, *ids):
        return make_glycan_box(self.database, ids)

    def test_ion_masses(self):
        self.assertAlmostEqual(SIALIC_ACID_OXONIUM_IONS[0], 291.0954, 3)
        self.assertAlmostEqual(SIALIC_ACID_OXONIUM_IONS[1], 273.0849, 3)
        self.assertAlmostEqual(HEXNAC_HEXOSE_OXONIUM_ION, 365.1322, 3)

    def test_scan(self):
        peak_set = fixtures.make_peak_set([(SIALIC_ACID_OXONIUM_IONS[0], 10.0), (500.0, 10.0)])
        self.assertEqual(self.filter.scan(peak_set), OxoniumSignals(True, False))
        peak_set = fixtures.make_peak_set([(HEXNAC_HEXOSE_OXONIUM_ION, 10.0)])
        self.assertEqual(self.filter.scan(peak_set), OxoniumSignals(False, True))

    def test_missing_sialic_acid_ions(self):
        signals = OxoniumSignals(False, False)
        self.assertTrue(self.filter.accepts(signals, self.box(0)))
        self.assertFalse(self.filter.accepts(signals, self.box(1)))
        self.assertFalse(self.filter.accepts(signals, self.box(0, 3)))

    def test_hexnac_hexose_ion(self):
        signals = OxoniumSignals(True, True)
        self.assertTrue(self.filter.accepts(signals, self.box(1)))
        self.assertFalse(self.filter.accepts(signals, self.box(2)))
        self.assertTrue(self.filter.accepts(OxoniumSignals(True, False), self.box(2)))

    def test_call(self):
        peak_set = fixtures.make_peak_set([(500.0, 10.0)])
        self.assertTrue(self.filter(peak_set, self.box(0)))
        self.assertFalse(self.filter(peak_set, self.box(2)))


if __name__ == '__main__':
    unittest.main()
