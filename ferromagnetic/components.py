# Copyright European Space Agency, 2013

"""
Derived magnetic elements (declination, inclination, horizontal and total
intensity) of an orthogonal field vector.
"""

from collections import namedtuple
from math import sqrt, atan2, pi

__all__ = ['FieldQuantities', 'fieldQuantities']

# below this intensity (nT) the field direction is considered undefined
MIN_INTENSITY = 0.0001

FieldQuantities = namedtuple('FieldQuantities', ['declination', 'inclination',
                                                 'horizontalIntensity', 'totalIntensity'])
""" angles in radians, intensities in nT """

def fieldQuantities(field):
    """
    Compute declination, inclination, horizontal and total intensity.

    The declination is computed with the half-angle formula
    ``2*atan2(Y, H+X)`` which avoids cancellation for northward vectors.
    For fields weaker than :data:`MIN_INTENSITY` the direction is undefined
    and NaN is returned for the angles. A horizontal component pointing
    due south gives a declination of pi.

    :type field: ferromagnetic.synthesis.OrthogonalField
    :rtype: FieldQuantities
    """
    north, east, down = field
    h = sqrt(north*north + east*east)
    f = sqrt(north*north + east*east + down*down)

    if f < MIN_INTENSITY:
        inclination = float('nan')
    else:
        inclination = atan2(down, h)

    if f < MIN_INTENSITY or h < MIN_INTENSITY:
        declination = float('nan')
    elif h + north < MIN_INTENSITY:
        declination = pi
    else:
        declination = 2.0*atan2(east, h + north)

    return FieldQuantities(declination, inclination, h, f)
