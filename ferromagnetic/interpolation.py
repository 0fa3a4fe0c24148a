# Copyright European Space Agency, 2013

"""
This module derives the Gauss coefficients valid at a given date from the
two epochs bracketing it.

Neighbouring epochs can be truncated at different degrees (10 before 2000,
13 afterwards, 8 for the predicted secular variation). How the terms present
in only one of the two epochs are treated depends on the direction of the
degree change, see :class:`DegreeChange`.
"""

from collections import namedtuple

import numpy as np

from ferromagnetic.coefficients import EPOCH_INTERVAL, termCount
from ferromagnetic.epochs import findDateFactor

__all__ = ['DegreeChange', 'degreeChange', 'interpolate', 'extrapolate']

class DegreeChange(object):
    """
    Relation between the truncation degrees of two neighbouring epochs.
    """
    equal = 'equal'
    """ same degree on both sides (epochs before 2000) """
    rising = 'rising'
    """ start degree < end degree (1995 to 2000) """
    falling = 'falling'
    """ start degree > end degree (into the secular variation epoch) """

DegreeTransition = namedtuple('DegreeTransition', ['change', 'nmax', 'k', 'l'])
"""
`nmax` is the degree of the result, terms with index in [k,l) are the ones
that exist on one side only.
"""

def degreeChange(startNmax, endNmax):
    """
    Classify the degree change between two epochs.

    :rtype: DegreeTransition
    """
    kStart = termCount(startNmax)
    kEnd = termCount(endNmax)
    if startNmax == endNmax:
        return DegreeTransition(DegreeChange.equal, startNmax, kStart, kStart)
    elif startNmax < endNmax:
        return DegreeTransition(DegreeChange.rising, endNmax, kStart, kEnd)
    else:
        return DegreeTransition(DegreeChange.falling, startNmax, kEnd, kStart)

def interpolate(table, startEpoch, endEpoch, date):
    """
    Interpolate the coefficients between two epochs.

    All terms are blended linearly by the date factor, except:

    - rising degree: terms beyond the start degree are the end coefficient
      scaled by the date factor
    - falling degree: terms beyond the end degree are taken unchanged from
      the start epoch

    :type table: ferromagnetic.coefficients.CoefficientTable
    :param int startEpoch:
    :param int endEpoch:
    :param float date: decimal year
    :rtype: tuple (coeffs, nmax)
    """
    factor = findDateFactor(startEpoch, endEpoch, date)
    start = table[startEpoch]
    end = table[endEpoch]
    transition = degreeChange(start.nmax, end.nmax)
    k, l = transition.k, transition.l

    coeffs = start.coeffs + factor*(end.coeffs - start.coeffs)
    if transition.change == DegreeChange.rising:
        coeffs[k:l] = factor*end.coeffs[k:l]
    elif transition.change == DegreeChange.falling:
        coeffs[k:l] = start.coeffs[k:l]
    return coeffs, transition.nmax

def extrapolate(table, startEpoch, endEpoch, date):
    """
    Project the coefficients of `startEpoch` linearly to the given date,
    using the rate of change between the two epochs.

    Only valid if the start epoch has the higher degree, as is the case
    for the last main field epoch and the secular variation epoch.
    Terms beyond the end degree are carried over unchanged.

    :rtype: ndarray of coefficients with the degree of `startEpoch`
    :raises ValueError: if the start degree is not larger than the end degree
    """
    start = table[startEpoch]
    end = table[endEpoch]
    if start.nmax <= end.nmax:
        raise ValueError('Extrapolation needs a start degree larger than the end degree, '
                         'got {} ({}) and {} ({})'.format(start.nmax, startEpoch, end.nmax, endEpoch))
    k = termCount(end.nmax)
    l = termCount(start.nmax)

    sv = (end.coeffs - start.coeffs) / EPOCH_INTERVAL
    factor = date - startEpoch
    coeffs = start.coeffs + factor*sv
    coeffs[k:l] = start.coeffs[k:l]
    return coeffs
