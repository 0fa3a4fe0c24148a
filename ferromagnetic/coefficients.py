# Copyright European Space Agency, 2013

"""
This module reads the IGRF Gauss coefficient table and provides it as an
immutable :class:`CoefficientTable` keyed by epoch year.

The table is expected in the layout published by IAGA/NOAA
(`igrf14coeffs.txt`, see https://www.ncei.noaa.gov/products/international-geomagnetic-reference-field).
The last column of that file holds the predicted secular variation of the
most recent epoch, not field coefficients. :func:`parseCoefficients` turns it
into a pseudo main-field epoch five years ahead (see :func:`_synthesizeTerminalEpoch`)
so that the per-date logic never has to special-case the end of the table.
"""

import logging
import os
from collections import namedtuple
from types import MappingProxyType

import numpy as np

__all__ = ['CoefficientSet', 'CoefficientTable', 'CoefficientTableError',
           'parseCoefficients', 'loadCoefficients', 'truncationDegree',
           'gaussOrder', 'termCount', 'EPOCH_INTERVAL', 'COEFFS_ENV_VAR']

EPOCH_INTERVAL = 5

COEFFS_ENV_VAR = 'FERROMAGNETIC_IGRF_COEFFS'

DEFAULT_COEFFS_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)),
                                   'data', 'igrf14coeffs.txt')

DOWNLOAD_URL = 'https://www.ncei.noaa.gov/products/international-geomagnetic-reference-field'

# number of leading columns in a data row: g/h n m
_HEADER_COLUMNS = 3

class CoefficientTableError(ValueError):
    """
    Raised when the raw coefficient table is malformed or cannot be found.
    No partial table is usable after this error.
    """

def termCount(nmax):
    """
    Number of Gauss coefficients of a model truncated at degree `nmax`.
    """
    return nmax*(nmax+2)

def gaussOrder(nmax):
    """
    Return the (type, n, m) triples of the Gauss coefficients in table order:
    g(1,0), g(1,1), h(1,1), g(2,0), g(2,1), h(2,1), ...

    :rtype: list of tuples ('g' or 'h', n, m)
    """
    order = []
    for n in range(1, nmax+1):
        order.append(('g', n, 0))
        for m in range(1, n+1):
            order.append(('g', n, m))
            order.append(('h', n, m))
    return order

def truncationDegree(year, secularVariation=False):
    """
    Return the maximum spherical harmonic degree used for the given epoch.

    :param int year: epoch year
    :param bool secularVariation: True if the epoch is the predicted
                                  secular variation column
    """
    if secularVariation:
        return 8
    if year < 2000:
        return 10
    return 13

class CoefficientSet(object):
    """
    The Gauss coefficients of a single epoch.

    `coeffs` holds one value per table row in Gauss order. Only the first
    ``nmax*(nmax+2)`` values are significant, the remaining ones are zero
    in the published table.
    """
    def __init__(self, nmax, coeffs):
        coeffs = np.array(coeffs, dtype=np.float64)
        if nmax < 1:
            raise CoefficientTableError('Truncation degree must be at least 1, got ' + str(nmax))
        if coeffs.ndim != 1 or len(coeffs) < termCount(nmax):
            raise CoefficientTableError('Degree {} requires {} coefficients, got {}'.format(
                                        nmax, termCount(nmax), coeffs.size))
        coeffs.setflags(write=False)
        self._nmax = nmax
        self._coeffs = coeffs

    @property
    def nmax(self):
        return self._nmax

    @property
    def coeffs(self):
        """ read-only float64 vector """
        return self._coeffs

    def __len__(self):
        return len(self._coeffs)

    def __repr__(self):
        return 'CoefficientSet(nmax={}, terms={})'.format(self._nmax, len(self._coeffs))

class CoefficientTable(object):
    """
    Immutable mapping from epoch year to :class:`CoefficientSet`.

    Years must be strictly increasing in steps of :data:`EPOCH_INTERVAL`
    and at least two epochs are needed to interpolate.
    """
    def __init__(self, sets):
        sets = dict(sets)
        if len(sets) < 2:
            raise CoefficientTableError('At least two epochs are required, got ' + str(len(sets)))
        years = sorted(sets)
        for y1, y2 in zip(years[:-1], years[1:]):
            if y2 - y1 != EPOCH_INTERVAL:
                raise CoefficientTableError('Epochs must be {} years apart, found {} and {}'.format(
                                            EPOCH_INTERVAL, y1, y2))
        lengths = set(len(s) for s in sets.values())
        if len(lengths) != 1:
            raise CoefficientTableError('All epochs must have the same number of coefficients')
        self._sets = MappingProxyType(sets)
        self._years = tuple(years)

    @property
    def years(self):
        """ sorted tuple of epoch years """
        return self._years

    @property
    def firstYear(self):
        return self._years[0]

    @property
    def lastYear(self):
        return self._years[-1]

    @property
    def maxDegree(self):
        return max(s.nmax for s in self._sets.values())

    def __getitem__(self, year):
        return self._sets[year]

    def __contains__(self, year):
        return year in self._sets

    def __iter__(self):
        return iter(self._years)

    def __len__(self):
        return len(self._years)

    def __repr__(self):
        return 'CoefficientTable({}-{}, {} epochs)'.format(self.firstYear, self.lastYear, len(self))

_Column = namedtuple('_Column', ['year', 'secularVariation'])

def _parseColumnHeader(kind, label):
    """
    Parse the epoch of a column from its kind ("main", "SV", ...) and
    label ("1900.0", "2025-30", ...).

    :rtype: _Column
    """
    if '-' in label:
        first, last = label.split('-', 1)
        try:
            firstYear = int(float(first))
            suffix = int(last)
        except ValueError:
            raise CoefficientTableError('Invalid epoch label: ' + label)
        # "2025-30" -> 2030
        century = 10**len(last)
        year = firstYear - firstYear % century + suffix
        if year <= firstYear:
            year += century
        return _Column(year, True)
    try:
        year = float(label)
    except ValueError:
        raise CoefficientTableError('Invalid epoch label: ' + label)
    if year != int(year):
        raise CoefficientTableError('Epochs must be whole years, got ' + label)
    return _Column(int(year), kind.upper() == 'SV')

def _synthesizeTerminalEpoch(columns, values):
    """
    Replace the secular variation column by the main field it predicts
    one epoch interval after the preceding main field epoch.

    :param columns: list of _Column
    :param values: dict year -> coefficient vector
    :return: dict year -> CoefficientSet
    """
    svColumns = [c for c in columns if c.secularVariation]
    if len(svColumns) > 1:
        raise CoefficientTableError('Only one secular variation column is supported')

    sets = {}
    for column in columns:
        if column.secularVariation:
            continue
        sets[column.year] = CoefficientSet(truncationDegree(column.year), values[column.year])

    if svColumns:
        sv = svColumns[0]
        baseYear = sv.year - EPOCH_INTERVAL
        if baseYear not in sets:
            raise CoefficientTableError('Secular variation column {} has no main field epoch {}'.format(
                                        sv.year, baseYear))
        base = sets[baseYear].coeffs
        advanced = base + values[sv.year]*EPOCH_INTERVAL
        sets[sv.year] = CoefficientSet(truncationDegree(sv.year, secularVariation=True), advanced)
        logging.debug('synthesized epoch {} from {} main field and secular variation'.format(
                      sv.year, baseYear))
    return sets

def _tokenize(text):
    rows = []
    for lineNo, line in enumerate(text.splitlines(), 1):
        stripped = line.strip()
        if not stripped or stripped.startswith('#'):
            continue
        rows.append((lineNo, stripped.split()))
    return rows

def parseCoefficients(text):
    """
    Parse the raw IGRF coefficient table.

    The first two non-comment rows are headers, e.g.::

        c/s main main ... main SV
        g/h n m 1900.0 1905.0 ... 2025.0 2025-30

    followed by one row per coefficient (``g 1 0 -31543 -31464 ...``)
    in Gauss order.

    :param str text: contents of the coefficient file
    :rtype: CoefficientTable
    :raises CoefficientTableError: if the table is malformed
    """
    rows = _tokenize(text)
    if len(rows) < 3:
        raise CoefficientTableError('Coefficient table needs two header rows and at least one data row')

    (_, kinds), (_, labels) = rows[0], rows[1]
    labels = labels[_HEADER_COLUMNS:]
    if not labels:
        raise CoefficientTableError('No epoch columns in header')
    # the kind row may omit the n and m columns, its labels end with the epoch columns
    if len(kinds) <= len(labels):
        raise CoefficientTableError('Header rows do not match: {} kinds for {} epochs'.format(
                                    len(kinds) - 1, len(labels)))
    kinds = kinds[-len(labels):]
    columns = [_parseColumnHeader(kind, label) for kind, label in zip(kinds, labels)]
    if len(set(c.year for c in columns)) != len(columns):
        raise CoefficientTableError('Duplicate epochs in header')

    dataRows = rows[2:]
    ncols = _HEADER_COLUMNS + len(columns)
    maxDegree = max(truncationDegree(c.year, c.secularVariation) for c in columns)
    expectedOrder = gaussOrder(maxDegree)
    if len(dataRows) < len(expectedOrder):
        raise CoefficientTableError('Degree {} requires {} coefficient rows, got {}'.format(
                                    maxDegree, len(expectedOrder), len(dataRows)))

    data = np.empty((len(dataRows), len(columns)), dtype=np.float64)
    for i, (lineNo, cells) in enumerate(dataRows):
        if len(cells) != ncols:
            raise CoefficientTableError('Line {}: expected {} columns, got {}'.format(
                                        lineNo, ncols, len(cells)))
        if i < len(expectedOrder):
            try:
                key = (cells[0].lower(), int(cells[1]), int(cells[2]))
            except ValueError:
                raise CoefficientTableError('Line {}: invalid degree/order'.format(lineNo))
            if key != expectedOrder[i]:
                raise CoefficientTableError('Line {}: expected coefficient {}{},{} but got {}{},{}'.format(
                                            lineNo, *(expectedOrder[i] + key)))
        try:
            data[i] = [float(v) for v in cells[_HEADER_COLUMNS:]]
        except ValueError:
            raise CoefficientTableError('Line {}: non-numeric coefficient'.format(lineNo))

    values = dict((column.year, data[:,i]) for i, column in enumerate(columns))
    return CoefficientTable(_synthesizeTerminalEpoch(columns, values))

def loadCoefficients(path=None):
    """
    Load the coefficient table from a file.

    If `path` is not given, the file named by the environment variable
    ``FERROMAGNETIC_IGRF_COEFFS`` is used, falling back to
    ``ferromagnetic/data/igrf14coeffs.txt``.

    :rtype: CoefficientTable
    :raises CoefficientTableError: if the file is missing or malformed
    """
    if path is None:
        path = os.environ.get(COEFFS_ENV_VAR, DEFAULT_COEFFS_PATH)
    if not os.path.exists(path):
        raise CoefficientTableError('IGRF coefficient file not found: {}. '
                                    'Download igrf14coeffs.txt from {} and set {} '
                                    'or copy it to {}'.format(path, DOWNLOAD_URL, COEFFS_ENV_VAR,
                                                              DEFAULT_COEFFS_PATH))
    with open(path, 'r') as fp:
        text = fp.read()
    table = parseCoefficients(text)
    logging.info('Loaded IGRF coefficients from {} ({}-{}, {} epochs)'.format(
                 path, table.firstYear, table.lastYear, len(table)))
    return table
