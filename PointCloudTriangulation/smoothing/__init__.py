"""
Surface Smoothing
=================

Moving least squares denoising of raw point samples.
"""

from .mls import MovingLeastSquares, LocalFit, polynomial_exponents

__all__ = [
    'MovingLeastSquares',
    'LocalFit',
    'polynomial_exponents'
]
