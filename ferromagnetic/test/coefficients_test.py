# Copyright European Space Agency, 2013

import os
import shutil
import tempfile
import unittest
from unittest import mock

import numpy as np
from numpy.testing import assert_array_equal, assert_allclose, assert_equal

from ferromagnetic.coefficients import parseCoefficients, loadCoefficients,\
    CoefficientSet, CoefficientTable, CoefficientTableError, truncationDegree,\
    gaussOrder, termCount, COEFFS_ENV_VAR
from ferromagnetic.test.tables import tableText, recentTableText, smoothValue, smoothRate

def getResourcePath(name):
    return os.path.join(os.path.dirname(os.path.abspath(__file__)), "resources/" + name)

class Test(unittest.TestCase):

    def testGaussOrder(self):
        order = gaussOrder(2)
        assert_equal(order, [('g',1,0), ('g',1,1), ('h',1,1),
                             ('g',2,0), ('g',2,1), ('h',2,1), ('g',2,2), ('h',2,2)])
        self.assertEqual(len(gaussOrder(13)), termCount(13))
        self.assertEqual(termCount(13), 195)
        self.assertEqual(termCount(10), 120)
        self.assertEqual(termCount(8), 80)

    def testTruncationDegree(self):
        self.assertEqual(truncationDegree(1900), 10)
        self.assertEqual(truncationDegree(1995), 10)
        self.assertEqual(truncationDegree(2000), 13)
        self.assertEqual(truncationDegree(2025), 13)
        self.assertEqual(truncationDegree(2030, secularVariation=True), 8)

    def testParse(self):
        table = parseCoefficients(recentTableText())
        self.assertEqual(table.years, (1990, 1995, 2000, 2005, 2010, 2015, 2020, 2025, 2030))
        self.assertEqual(table.firstYear, 1990)
        self.assertEqual(table.lastYear, 2030)
        self.assertEqual(table[1995].nmax, 10)
        self.assertEqual(table[2000].nmax, 13)
        self.assertEqual(table[2030].nmax, 8)
        self.assertEqual(table.maxDegree, 13)
        for year in table:
            self.assertEqual(len(table[year]), 195)

        self.assertEqual(table[1990].coeffs[0], smoothValue(1990, 'g', 1, 0))
        self.assertEqual(table[2010].coeffs[2], smoothValue(2010, 'h', 1, 1))
        # terms beyond degree 10 are zero before 2000
        assert_array_equal(table[1995].coeffs[120:], 0)

    def testTerminalEpochSynthesis(self):
        table = parseCoefficients(recentTableText())
        order = gaussOrder(13)
        rates = np.array([smoothRate(*t) if t[1] <= 8 else 0.0 for t in order])
        assert_allclose(table[2030].coeffs, table[2025].coeffs + 5*rates)
        # degree 9-13 terms are carried over from 2025
        assert_array_equal(table[2030].coeffs[80:], table[2025].coeffs[80:])

    def testSecularVariationLabel(self):
        table = parseCoefficients(tableText([2010, 2015], svLabel='2015-20'))
        self.assertEqual(table.years, (2010, 2015, 2020))
        self.assertEqual(table[2020].nmax, 8)

    def testNoSecularVariation(self):
        table = parseCoefficients(tableText([1900, 1905, 1910]))
        self.assertEqual(table.years, (1900, 1905, 1910))
        self.assertEqual(table[1910].nmax, 10)

    def testReadOnly(self):
        table = parseCoefficients(recentTableText())
        with self.assertRaises(ValueError):
            table[2000].coeffs[0] = 1.0
        with self.assertRaises(TypeError):
            table._sets[2000] = None

    def testColumnMismatch(self):
        lines = recentTableText().splitlines()
        lines[10] += ' 1.0'
        with self.assertRaises(CoefficientTableError):
            parseCoefficients('\n'.join(lines))

    def testHeaderMismatch(self):
        lines = recentTableText().splitlines()
        lines[2] = ' '.join(lines[2].split()[:5])
        with self.assertRaises(CoefficientTableError):
            parseCoefficients('\n'.join(lines))

    def testShortKindRow(self):
        # kind row without labels for the n and m columns
        lines = recentTableText().splitlines()
        kinds = lines[2].split()
        lines[2] = ' '.join([kinds[0]] + kinds[3:])
        table = parseCoefficients('\n'.join(lines))
        self.assertEqual(table.lastYear, 2030)
        self.assertEqual(table[2030].nmax, 8)

    def testNonNumeric(self):
        lines = recentTableText().splitlines()
        cells = lines[20].split()
        cells[5] = 'abc'
        lines[20] = ' '.join(cells)
        with self.assertRaises(CoefficientTableError):
            parseCoefficients('\n'.join(lines))

    def testWrongOrder(self):
        lines = recentTableText().splitlines()
        lines[5], lines[6] = lines[6], lines[5]
        with self.assertRaises(CoefficientTableError):
            parseCoefficients('\n'.join(lines))

    def testMissingRows(self):
        lines = recentTableText().splitlines()
        with self.assertRaises(CoefficientTableError):
            parseCoefficients('\n'.join(lines[:-10]))

    def testSingleEpoch(self):
        with self.assertRaises(CoefficientTableError):
            parseCoefficients(tableText([2000]))

    def testEpochGap(self):
        with self.assertRaises(CoefficientTableError):
            parseCoefficients(tableText([2000, 2010]))

    def testSecularVariationWithoutBase(self):
        with self.assertRaises(CoefficientTableError):
            parseCoefficients(tableText([2005, 2010], svLabel='2020-25'))

    def testCoefficientSetTooShort(self):
        with self.assertRaises(CoefficientTableError):
            CoefficientSet(13, np.zeros(120))

    def testTableNeedsEqualLengths(self):
        with self.assertRaises(CoefficientTableError):
            CoefficientTable({2000: CoefficientSet(8, np.zeros(80)),
                              2005: CoefficientSet(8, np.zeros(120))})

    def testLoad(self):
        tmpdir = tempfile.mkdtemp()
        try:
            path = os.path.join(tmpdir, 'igrf.txt')
            with open(path, 'w') as fp:
                fp.write(recentTableText())
            table = loadCoefficients(path)
            self.assertEqual(table.lastYear, 2030)

            with mock.patch.dict(os.environ, {COEFFS_ENV_VAR: path}):
                table = loadCoefficients()
            self.assertEqual(table.firstYear, 1990)
        finally:
            shutil.rmtree(tmpdir)

    def testLoadMissing(self):
        with self.assertRaises(CoefficientTableError):
            loadCoefficients('/nonexistent/igrf14coeffs.txt')

    @unittest.skipUnless(os.environ.get(COEFFS_ENV_VAR), COEFFS_ENV_VAR + ' not set')
    def testPublishedTable(self):
        table = loadCoefficients()
        self.assertEqual(table.firstYear, 1900)
        self.assertEqual(table.lastYear, 2030)
        self.assertEqual(len(table[1900]), 195)
        self.assertEqual(table[1900].coeffs[0], -31543)
        self.assertEqual(table[2025].nmax, 13)
        self.assertEqual(table[2030].nmax, 8)

    def testIGRF12Table(self):
        # IGRF-12 up to degree 10, header "c/s IGRF ... DGRF ... SV" and "... 2015.0 2015-20"
        table = loadCoefficients(getResourcePath('igrf12_degree10.txt'))
        self.assertEqual(table.years, tuple(range(1900, 2021, 5)))
        self.assertEqual(table[1900].nmax, 10)
        self.assertEqual(table[1995].nmax, 10)
        self.assertEqual(table[2000].nmax, 13)
        self.assertEqual(table[2015].nmax, 13)
        self.assertEqual(table[2020].nmax, 8)
        for year in table:
            self.assertEqual(len(table[year]), 195)

        self.assertEqual(table[1900].coeffs[0], -31543)
        self.assertEqual(table[2005].coeffs[0], -29554.63)
        self.assertEqual(table[2015].coeffs[2], 4797.1)

        # 2020 = 2015 + 5 * secular variation (g10 +10.3 nT/yr, h11 -26.6 nT/yr)
        assert_allclose(table[2020].coeffs[0], -29442.0 + 5*10.3)
        assert_allclose(table[2020].coeffs[2], 4797.1 - 5*26.6)
        assert_array_equal(table[2020].coeffs[80:], table[2015].coeffs[80:])
