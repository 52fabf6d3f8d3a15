# -- SPH Smoothing Kernels -- #

'''
Smoothing kernel functions for the 2D SPH tank.

Two radially symmetric kernels with compact support h:

- Spiky kernel, used for density and (through its derivative) for the
  pressure gradient. Its derivative does not vanish at r = 0, so close
  particles keep repelling each other.
- Poly6 kernel, used as the smooth weighting of the viscosity term.

Key properties relied on by the neighbor search:
- Compact support: W = 0 and dW/dr = 0 for r >= h
- Positivity: W >= 0 within support

The normalizations are the "scene unit" constants of the interactive
tank (pi * h^4 / 6 for spiky, pi * h^8 / 4 for poly6); they are
configurable so other unit systems can rescale them.

References:
-----------
Mueller et al. (2003) -- Particle-based fluid simulation for interactive
    applications
Desbrun & Gascuel (1996) -- Smoothed particles: a new paradigm for
    animating highly deformable bodies
'''

from __future__ import annotations

from typing import Protocol

import numpy as np

from sphSandbox import constants as const


######################################################################
# -- Kernel Protocol -- #
######################################################################

class SphKernel(Protocol):
    '''Protocol for SPH smoothing kernel functions.'''

    def evaluate(self, r: float, h: float) -> float:
        '''
        Evaluate kernel W(r, h).

        Parameters:
        -----------
        r : float
            Distance between particles
        h : float
            Support radius

        Returns:
        --------
        float : Kernel value
        '''
        ...

    def gradientMagnitude(self, r: float, h: float) -> float:
        '''
        Evaluate the radial derivative dW/dr.

        Parameters:
        -----------
        r : float
            Distance between particles
        h : float
            Support radius

        Returns:
        --------
        float : dW/dr (non-positive inside support)
        '''
        ...

    def evaluateBatch(self, distances: np.ndarray, h: float) -> np.ndarray:
        '''Vectorized W(r, h) for an array of distances.'''
        ...

    def gradientMagnitudeBatch(self, distances: np.ndarray, h: float) -> np.ndarray:
        '''Vectorized dW/dr for an array of distances.'''
        ...


######################################################################
# -- Spiky Kernel -- #
######################################################################

class SpikyKernel:
    '''
    2D spiky kernel.

    W(r, h) = (h - r)^2 / V(h)        for 0 <= r < h
            = 0                       for r >= h

    V(h) = volumeScale * h^4, with volumeScale = pi / 6 by default.

    dW/dr = 2 * (r - h) / V(h)        for 0 <= r < h
          = 0                         for r >= h

    With the default scale dW/dr = (12 / (pi * h^4)) * (r - h).

    Parameters:
    -----------
    volumeScale : float
        Normalization prefactor of h^4
    '''

    def __init__(self, volumeScale: float = const.spikyVolumeScale) -> None:
        self._volumeScale = volumeScale

    def _volume(self, h: float) -> float:
        '''Normalization volume V(h).'''
        return self._volumeScale * h ** 4

    def evaluate(self, r: float, h: float) -> float:
        '''
        Evaluate the spiky kernel W(r, h).

        Parameters:
        -----------
        r : float
            Distance between particles
        h : float
            Support radius

        Returns:
        --------
        float : Kernel value
        '''
        if r >= h:
            return 0.0
        hMinusR = h - r
        return hMinusR * hMinusR / self._volume(h)

    def gradientMagnitude(self, r: float, h: float) -> float:
        '''
        Radial derivative of the spiky kernel.

        Parameters:
        -----------
        r : float
            Distance between particles
        h : float
            Support radius

        Returns:
        --------
        float : dW/dr
        '''
        if r >= h:
            return 0.0
        return 2.0 * (r - h) / self._volume(h)

    def evaluateBatch(self, distances: np.ndarray, h: float) -> np.ndarray:
        '''
        Evaluate W(r, h) for an array of distances.

        Parameters:
        -----------
        distances : np.ndarray
            Distances, shape (N,)
        h : float
            Support radius

        Returns:
        --------
        np.ndarray : Kernel values, shape (N,)
        '''
        hMinusR = np.maximum(h - distances, 0.0)
        return hMinusR * hMinusR / self._volume(h)

    def gradientMagnitudeBatch(self, distances: np.ndarray, h: float) -> np.ndarray:
        '''
        Compute dW/dr for an array of distances.

        Parameters:
        -----------
        distances : np.ndarray
            Distances, shape (N,)
        h : float
            Support radius

        Returns:
        --------
        np.ndarray : dW/dr values, shape (N,)
        '''
        return -2.0 * np.maximum(h - distances, 0.0) / self._volume(h)


######################################################################
# -- Poly6 Kernel -- #
######################################################################

class Poly6Kernel:
    '''
    2D poly6 kernel, used for viscosity.

    W(r, h) = (h^2 - r^2)^3 / V(h)    for 0 <= r < h
            = 0                       for r >= h

    V(h) = volumeScale * h^8, with volumeScale = pi / 4 by default.
    Smooth, non-negative, and maximal at r = 0.

    Parameters:
    -----------
    volumeScale : float
        Normalization prefactor of h^8
    '''

    def __init__(self, volumeScale: float = const.poly6VolumeScale) -> None:
        self._volumeScale = volumeScale

    def _volume(self, h: float) -> float:
        '''Normalization volume V(h).'''
        return self._volumeScale * h ** 8

    def evaluate(self, r: float, h: float) -> float:
        '''Evaluate the poly6 kernel W(r, h).'''
        value = max(0.0, h * h - r * r)
        return value * value * value / self._volume(h)

    def gradientMagnitude(self, r: float, h: float) -> float:
        '''
        Radial derivative of the poly6 kernel.

        dW/dr = -6 * r * (h^2 - r^2)^2 / V(h)
        '''
        value = max(0.0, h * h - r * r)
        return -6.0 * r * value * value / self._volume(h)

    def evaluateBatch(self, distances: np.ndarray, h: float) -> np.ndarray:
        '''Evaluate W(r, h) for an array of distances.'''
        value = np.maximum(h * h - distances * distances, 0.0)
        return value * value * value / self._volume(h)

    def gradientMagnitudeBatch(self, distances: np.ndarray, h: float) -> np.ndarray:
        '''Compute dW/dr for an array of distances.'''
        value = np.maximum(h * h - distances * distances, 0.0)
        return -6.0 * distances * value * value / self._volume(h)


######################################################################
# -- Kernel Factory -- #
######################################################################

def createKernel(kernelType: str, volumeScale: float | None = None) -> SphKernel:
    '''
    Create a kernel instance by type name.

    Parameters:
    -----------
    kernelType : str
        Kernel type: 'spiky' or 'poly6'
    volumeScale : float | None
        Normalization prefactor (kernel default if None)

    Returns:
    --------
    SphKernel : Kernel instance

    Raises:
    -------
    ValueError : If kernel type is unknown
    '''
    if kernelType == 'spiky':
        scale = const.spikyVolumeScale if volumeScale is None else volumeScale
        return SpikyKernel(scale)
    elif kernelType == 'poly6':
        scale = const.poly6VolumeScale if volumeScale is None else volumeScale
        return Poly6Kernel(scale)
    else:
        raise ValueError(f'Unknown kernel type: {kernelType}')
