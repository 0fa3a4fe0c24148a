# Copyright European Space Agency, 2013

"""
This module evaluates a spherical harmonic field model at a geodetic position.

The algorithm follows `shval3` of the geomag reference programs: the geodetic
position is converted to geocentric coordinates, Schmidt semi-normalized
associated Legendre functions are built by recursion over degree and order,
and the north/east/down field contributions of all terms are summed up and
finally rotated back into the geodetic frame.

The geometry only depends on the position, so several coefficient vectors
(typically for a date and one year later) can be evaluated with identical
geometric factors::

    geometry = geocentricGeometry(lat, lon, alt)
    terms = legendre(geometry, nmax)
    field1 = synthesize(geometry, terms, nmax, coeffs1)
    field2 = synthesize(geometry, terms, nmax, coeffs2)
"""

from collections import namedtuple
from functools import lru_cache
from math import sin, cos, sqrt

import numpy as np

from ferromagnetic.coefficients import termCount

__all__ = ['OrthogonalField', 'Geometry', 'LegendreTerms', 'geocentricGeometry',
           'legendre', 'synthesize', 'shval3']

EARTH_RADIUS = 6371.2 # km, geomagnetic reference radius

# constants of the geomag reference programs, kept as published
# so that results agree with them to the last digits
DTR = 0.01745329
WGS84_A2 = 40680631.59 # km^2, squared semi-major axis
WGS84_B2 = 40408299.98 # km^2, squared semi-minor axis

POLE_DISTANCE = 0.001 # degrees

OrthogonalField = namedtuple('OrthogonalField', ['north', 'east', 'down']) # in nT

Geometry = namedtuple('Geometry', ['slat', 'clat', 'cd', 'sd', 'r', 'ratio', 'sinLon', 'cosLon'])
"""
Geocentric sine/cosine of latitude, cosine/sine of the angle between
geodetic and geocentric latitude, geocentric radius in km, ratio of
reference radius to geocentric radius, and sine/cosine of longitude.
"""

LegendreTerms = namedtuple('LegendreTerms', ['p', 'q', 'sl', 'cl', 'rr'])

_Term = namedtuple('_Term', ['k', 'n', 'm', 'l', 'aa', 'bb', 'cc'])

def geocentricGeometry(lat, lon, alt):
    """
    Convert a geodetic position into the geocentric quantities needed
    by :func:`legendre` and :func:`synthesize`.

    Latitudes closer than 0.001 degrees to a pole are moved away from it
    so that the cosine of latitude stays non-zero.

    :param lat: geodetic latitude in degrees
    :param lon: longitude in degrees
    :param alt: altitude above the WGS84 ellipsoid in km
    :rtype: Geometry
    """
    slat = sin(lat*DTR)
    if 90.0 - lat < POLE_DISTANCE:
        aa = 89.999
    elif 90.0 + lat < POLE_DISTANCE:
        aa = -89.999
    else:
        aa = lat
    clat = cos(aa*DTR)

    aa = WGS84_A2*clat*clat
    bb = WGS84_B2*slat*slat
    cc = aa + bb
    dd = sqrt(cc)
    r = sqrt(alt*(alt + 2.0*dd) + (WGS84_A2*aa + WGS84_B2*bb)/cc)
    cd = (alt + dd)/r
    sd = (WGS84_A2 - WGS84_B2)/dd*slat*clat/r
    slat, clat = slat*cd - clat*sd, clat*cd + slat*sd

    return Geometry(slat, clat, cd, sd, r, EARTH_RADIUS/r, sin(lon*DTR), cos(lon*DTR))

@lru_cache(maxsize=None)
def _recursion(nmax):
    """
    Return the position-independent part of the Legendre recursion:
    the linear index k of each (n,m) pair, the index l of its first
    coefficient, and the normalization factors used for k >= 5.

    :rtype: tuple of _Term
    """
    terms = []
    l = 0
    n = 0
    m = 1
    npq = (nmax*(nmax + 3))//2
    for k in range(1, npq + 1):
        if n < m:
            m = 0
            n += 1
        fnn = float(n)
        fm = float(m)
        aa = bb = cc = None
        if k >= 5:
            if m == n:
                aa = sqrt(1.0 - 0.5/fm)
            else:
                aa = sqrt(fnn*fnn - fm*fm)
                bb = sqrt((fnn - 1.0)*(fnn - 1.0) - fm*fm)/aa
                cc = (2.0*fnn - 1.0)/aa
        terms.append(_Term(k, n, m, l, aa, bb, cc))
        l += 1 if m == 0 else 2
        m += 1
    return tuple(terms)

def legendre(geometry, nmax):
    """
    Compute the Schmidt semi-normalized associated Legendre functions `p`
    and their derivatives `q` for all (n,m) up to degree `nmax`,
    indexed linearly by k = 1, 2, ... in (n,m) order.
    Sine and cosine of the multiples of longitude (`sl`, `cl`) are built
    incrementally by angle addition, `rr` holds the radial factor
    (a/r)^(n+2) for each degree n.

    :type geometry: Geometry
    :rtype: LegendreTerms
    """
    slat, clat = geometry.slat, geometry.clat
    terms = _recursion(nmax)
    size = max(len(terms) + 1, 5)

    p = [0.0]*size
    p[1] = 2.0*slat
    p[2] = 2.0*clat
    p[3] = 4.5*slat*slat - 1.5
    p[4] = 3.0*sqrt(3.0)*clat*slat

    q = [0.0]*size
    q[1] = -clat
    q[2] = slat
    q[3] = -3.0*clat*slat
    q[4] = sqrt(3.0)*(slat*slat - clat*clat)

    sl = [0.0]*(nmax + 1)
    cl = [0.0]*(nmax + 1)
    sl[1] = geometry.sinLon
    cl[1] = geometry.cosLon

    for term in terms:
        k, n, m = term.k, term.n, term.m
        if k < 5:
            continue
        fnn = float(n)
        fm = float(m)
        if m == n:
            aa = term.aa
            j = k - n - 1
            p[k] = (1.0 + 1.0/fm)*aa*clat*p[j]
            q[k] = aa*(clat*q[j] + slat/fm*p[j])
            sl[m] = sl[m-1]*cl[1] + cl[m-1]*sl[1]
            cl[m] = cl[m-1]*cl[1] - sl[m-1]*sl[1]
        else:
            bb, cc = term.bb, term.cc
            ii = k - n
            j = k - 2*n + 1
            p[k] = (fnn + 1.0)*(cc*slat/fnn*p[ii] - bb/(fnn - 1.0)*p[j])
            q[k] = cc*(slat*q[ii] - clat/fnn*p[ii]) - bb*q[j]

    rr = [geometry.ratio**(n + 2) for n in range(nmax + 1)]
    return LegendreTerms(p, q, sl, cl, rr)

def synthesize(geometry, legendreTerms, nmax, gh):
    """
    Sum up the field contributions of all terms up to degree `nmax`
    for one coefficient vector.

    :type geometry: Geometry
    :type legendreTerms: LegendreTerms
    :param gh: Gauss coefficients in table order, at least nmax*(nmax+2) values
    :rtype: OrthogonalField in the geodetic frame
    """
    assert len(gh) >= termCount(nmax), \
        'degree {} needs {} coefficients, got {}'.format(nmax, termCount(nmax), len(gh))
    gh = np.asarray(gh, dtype=np.float64).tolist()
    slat, clat = geometry.slat, geometry.clat
    p, q, sl, cl, rrs = legendreTerms

    north = east = down = 0.0
    for term in _recursion(nmax):
        k, n, m, l = term.k, term.n, term.m, term.l
        rr = rrs[n]
        if m == 0:
            north += (rr*gh[l])*q[k]
            down -= (rr*gh[l])*p[k]
        else:
            fnn = float(n)
            fm = float(m)
            b = rr*gh[l+1]
            c = (rr*gh[l])*cl[m] + b*sl[m]
            north += c*q[k]
            down -= c*p[k]
            if clat > 0.0:
                east += ((rr*gh[l])*sl[m] - b*cl[m])*fm*p[k]/((fnn + 1.0)*clat)
            else:
                east += ((rr*gh[l])*sl[m] - b*cl[m])*q[k]*slat

    # rotate back into the geodetic frame
    cd, sd = geometry.cd, geometry.sd
    return OrthogonalField(north*cd + down*sd, east, down*cd - north*sd)

def shval3(lat, lon, alt, nmax, gha, ghb):
    """
    Compute the field of two coefficient vectors at the same position.

    :param lat: geodetic latitude in degrees
    :param lon: longitude in degrees
    :param alt: altitude in km
    :param int nmax: maximum degree
    :param gha: first coefficient vector
    :param ghb: second coefficient vector
    :rtype: tuple (OrthogonalField, OrthogonalField)
    """
    geometry = geocentricGeometry(lat, lon, alt)
    terms = legendre(geometry, nmax)
    return (synthesize(geometry, terms, nmax, gha),
            synthesize(geometry, terms, nmax, ghb))
