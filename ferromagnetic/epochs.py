# Copyright European Space Agency, 2013

"""
This module locates the coefficient epochs bracketing a decimal date and
computes how far the date has progressed between them.

The progress is measured in elapsed seconds, taking leap years into account,
rather than by subtracting decimal years.
"""

import logging
from bisect import bisect_left, bisect_right
from math import floor

__all__ = ['isLeapYear', 'secondsInYear', 'findDateFactor', 'findEpochs']

SECONDS_PER_DAY = 24*3600

def isLeapYear(year):
    """
    Gregorian leap year rule.
    """
    return year % 400 == 0 or (year % 4 == 0 and year % 100 != 0)

def secondsInYear(year):
    if isLeapYear(year):
        return 366*SECONDS_PER_DAY
    else:
        return 365*SECONDS_PER_DAY

def findDateFactor(startEpoch, endEpoch, date):
    """
    Return the fraction of the interval between the two epochs that has
    passed at the given date.

    For a degenerate bracket (``endEpoch <= startEpoch``) the factor is 0.
    For dates at or past `endEpoch` the factor is extrapolated linearly,
    i.e. it becomes >= 1.

    :param int startEpoch: year of the earlier epoch
    :param int endEpoch: year of the later epoch
    :param float date: decimal year
    :rtype: float
    """
    if endEpoch <= startEpoch:
        return 0.0
    if date >= endEpoch:
        return (date - startEpoch) / (endEpoch - startEpoch)

    year = int(floor(date))
    totalSecs = 0.0
    fractionSecs = 0.0
    for y in range(startEpoch, endEpoch):
        secs = float(secondsInYear(y))
        if y == year:
            fractionSecs = totalSecs + (date - floor(date))*secs
        totalSecs += secs
    return fractionSecs / totalSecs

def findEpochs(years, date):
    """
    Return the epochs (start, end) bracketing the given date.

    `start` is the largest epoch <= date and `end` the smallest epoch >= date.
    If the date coincides with an epoch, the bracket is widened to the
    following epoch (or the preceding one at the last epoch) so that
    the bracket always spans one interval.

    :param years: sorted sequence of epoch years
    :param float date: decimal year within [years[0], years[-1]]
    :rtype: tuple (startEpoch, endEpoch)
    """
    if len(years) < 2:
        raise ValueError('At least two epochs are required, got ' + str(len(years)))
    if date < years[0] or date > years[-1]:
        raise ValueError('Date {} is outside of the epochs {}-{}'.format(date, years[0], years[-1]))

    i = bisect_right(years, date) - 1
    j = bisect_left(years, date)
    start, end = years[i], years[j]
    if start == end:
        if j + 1 < len(years):
            end = years[j+1]
        else:
            start = years[i-1]
    logging.debug('date {} bracketed by epochs {} and {}'.format(date, start, end))
    return start, end
