# -- SPH Density Field -- #

'''
Density summation over distance-filtered neighbor pairs.

    rho_i = sum_j m * W(|x_i - x_j|, h)

The sum includes the self pair (j = i), whose contribution m * W(0, h)
is strictly positive, so every density is positive even when
particles coincide or have no other neighbors.

The pass runs over all particles before any force is evaluated, since
a pair force needs both particles' densities.
'''

from __future__ import annotations

import numpy as np

from sphSandbox.sph.kernels import SphKernel, SpikyKernel
from sphSandbox.sph.neighborSearch import NeighborPairs


class DensityField:
    '''
    Computes particle densities from neighbor pairs.

    Parameters:
    -----------
    kernel : SphKernel | None
        Density kernel (defaults to SpikyKernel)
    '''

    def __init__(self, kernel: SphKernel | None = None) -> None:
        self._kernel = kernel or SpikyKernel()

    @property
    def kernel(self) -> SphKernel:
        '''Density kernel.'''
        return self._kernel

    def selfDensity(self, particleMass: float, smoothingRadius: float) -> float:
        '''
        Contribution of a particle to its own density, m * W(0, h).

        Parameters:
        -----------
        particleMass : float
            Particle mass
        smoothingRadius : float
            Support radius h

        Returns:
        --------
        float : Self-contribution (> 0)
        '''
        return particleMass * self._kernel.evaluate(0.0, smoothingRadius)

    def compute(
        self,
        pairs: NeighborPairs,
        nParticles: int,
        particleMass: float,
        smoothingRadius: float,
        out: np.ndarray | None = None,
    ) -> np.ndarray:
        '''
        Sum kernel-weighted masses over all pairs.

        Parameters:
        -----------
        pairs : NeighborPairs
            Distance-filtered pairs including self pairs
        nParticles : int
            Number of particles N
        particleMass : float
            Particle mass
        smoothingRadius : float
            Support radius h
        out : np.ndarray | None
            Optional density array to overwrite in place, shape (N,)

        Returns:
        --------
        np.ndarray : Densities, shape (N,)
        '''
        weights = particleMass * self._kernel.evaluateBatch(pairs.distances, smoothingRadius)
        densities = np.bincount(pairs.iIndices, weights=weights, minlength=nParticles)

        if out is None:
            return densities
        out[:] = densities
        return out
