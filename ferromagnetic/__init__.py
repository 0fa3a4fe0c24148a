"""
The ferromagnetic package computes the Earth's main geomagnetic field and its
secular variation from the International Geomagnetic Reference Field (IGRF).

The :mod:`ferromagnetic.coefficients` module reads the IGRF coefficient table
and turns it into an immutable :class:`~ferromagnetic.coefficients.CoefficientTable`.

The :mod:`ferromagnetic.epochs` and :mod:`ferromagnetic.interpolation` modules
select the epochs bracketing a date and derive the Gauss coefficients valid
at that date.

The :mod:`ferromagnetic.synthesis` module evaluates the spherical harmonic
expansion at a geodetic position, and :mod:`ferromagnetic.components` derives
declination, inclination, and the field intensities from the result.

The :class:`ferromagnetic.igrf.IGRF` class ties everything together and is
the main entry point::

    from ferromagnetic.igrf import IGRF
    igrf = IGRF()
    res = igrf.calc(59.9, -109.9, 1.1, 2021.5)
    print(res.main.declination, res.sv.declination)
"""

from ._version import __version__, __version_info__
