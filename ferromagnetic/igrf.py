# Copyright European Space Agency, 2013

"""
This module computes the IGRF main field and its secular variation
at a geodetic position and date.

The secular variation is the difference between the field one year after
the given date and the field at the date. Both fields are synthesized with
the same geometric factors so that only the coefficients differ.
"""

import datetime
import logging
import warnings
from collections import namedtuple
from math import degrees

from astropy.time import Time
from erfa import ErfaWarning

from ferromagnetic.coefficients import loadCoefficients
from ferromagnetic.components import fieldQuantities
from ferromagnetic.epochs import findEpochs
from ferromagnetic.interpolation import interpolate, extrapolate
from ferromagnetic.synthesis import shval3

__all__ = ['IGRF', 'IGRFResult', 'MagneticComponents', 'DateOutOfRangeError',
           'UnsupportedDateError', 'declinationSV', 'decimalYear']

class DateOutOfRangeError(ValueError):
    """
    Raised for dates outside of the epochs covered by the coefficient table.
    """

class UnsupportedDateError(DateOutOfRangeError):
    """
    Raised for dates after the last epoch of the coefficient table.
    The field is not extrapolated beyond it.
    """

MagneticComponents = namedtuple('MagneticComponents',
                                ['declination', 'inclination', 'horizontalIntensity',
                                 'north', 'east', 'down', 'totalIntensity'])
"""
Declination and inclination in degrees, intensities and
the orthogonal components in nT. For secular variations, declination
and inclination are in arc-minutes/year and the rest in nT/year.
"""

IGRFResult = namedtuple('IGRFResult', ['main', 'sv'])
""" main field and secular variation, both as :class:`MagneticComponents` """

def decimalYear(date):
    """
    Convert a date to a decimal year.

    :param date: decimal year, :class:`datetime.datetime` (UTC), or :class:`datetime.date`
    :rtype: float
    """
    if isinstance(date, datetime.date):
        if not isinstance(date, datetime.datetime):
            date = datetime.datetime(date.year, date.month, date.day)
        with warnings.catch_warnings():
            # UTC is not defined before 1960, erfa warns for every such date
            warnings.simplefilter('ignore', ErfaWarning)
            return float(Time(date, scale='utc').decimalyear)
    return float(date)

def declinationSV(declination, declinationNextYear):
    """
    Annual change of declination in arc-minutes.

    The difference is wrapped into (-180, 180] degrees so that a
    declination crossing +-180 degrees does not produce a jump of 360 degrees.

    :param declination: declination in radians
    :param declinationNextYear: declination one year later in radians
    :rtype: float
    """
    ddot = degrees(declinationNextYear - declination)
    if ddot > 180.0:
        ddot -= 360.0
    if ddot <= -180.0:
        ddot += 360.0
    return ddot*60.0

class IGRF(object):
    """
    The International Geomagnetic Reference Field.

    The coefficient table is read once on construction and only read
    afterwards, so a single instance can be shared between threads.

    :param table: the coefficients, by default loaded with
                  :func:`~ferromagnetic.coefficients.loadCoefficients`
    :type table: ferromagnetic.coefficients.CoefficientTable
    :param path: coefficient file to load if `table` is not given
    """
    def __init__(self, table=None, path=None):
        if table is None:
            table = loadCoefficients(path)
        self._table = table

    @property
    def table(self):
        return self._table

    def _checkDate(self, date):
        first, last = self._table.firstYear, self._table.lastYear
        if date > last:
            raise UnsupportedDateError('Date {} is after {}, the last epoch supported by '
                                       'the coefficient table'.format(date, last))
        if not first <= date <= last:
            raise DateOutOfRangeError('Date out of range: {} is not within {}-{}'.format(
                                      date, first, last))

    def coeffs(self, date):
        """
        Return the coefficients at the date and one year later.

        If the later date still lies at least a year before the last epoch
        both vectors are interpolated between the epochs bracketing `date`,
        otherwise the second one is extrapolated from the same epochs.

        :param float date: decimal year
        :rtype: tuple (coeffs, coeffsNextYear, nmax)
        :raises DateOutOfRangeError: if the date is not covered by the table
        """
        self._checkDate(date)
        table = self._table
        start, end = findEpochs(table.years, date)

        coeffs, nmax = interpolate(table, start, end, date)
        if date + 1 < table.lastYear:
            coeffsNextYear, _ = interpolate(table, start, end, date + 1)
        else:
            logging.debug('extrapolating coefficients from epochs {} and {} to {}'.format(
                          start, end, date + 1))
            coeffsNextYear = extrapolate(table, start, end, date + 1)
        return coeffs, coeffsNextYear, nmax

    def calc(self, lat, lon, alt, date):
        """
        Compute the main field and its secular variation.

        :param lat: geodetic latitude in degrees
        :param lon: longitude in degrees
        :param alt: altitude above the WGS84 ellipsoid in km
        :param date: decimal year or :class:`datetime.datetime`
        :rtype: IGRFResult
        :raises DateOutOfRangeError: if the date is not covered by the table
        """
        if not -90 <= lat <= 90:
            raise ValueError('Latitude must be within [-90, 90], got ' + str(lat))
        date = decimalYear(date)
        gha, ghb, nmax = self.coeffs(date)
        a, b = shval3(lat, lon, alt, nmax, gha, ghb)
        qa = fieldQuantities(a)
        qb = fieldQuantities(b)

        main = MagneticComponents(degrees(qa.declination),
                                  degrees(qa.inclination),
                                  qa.horizontalIntensity,
                                  a.north, a.east, a.down,
                                  qa.totalIntensity)
        sv = MagneticComponents(declinationSV(qa.declination, qb.declination),
                                degrees(qb.inclination - qa.inclination)*60.0,
                                qb.horizontalIntensity - qa.horizontalIntensity,
                                b.north - a.north, b.east - a.east, b.down - a.down,
                                qb.totalIntensity - qa.totalIntensity)
        return IGRFResult(main, sv)
