# -- SPH Force Model -- #

'''
Pressure, viscosity, and pointer-interaction forces.

Equation of state (linear):
    P(rho) = k * (rho - rho_0)

Pressure force on i (symmetrized shared pressure):
    F_i = sum_{j != i} e_ij * (P_i + P_j) / 2 * dW/dr(r_ij) * m / rho_j

where e_ij is the unit vector from i toward j. dW/dr is negative inside
the support, so compressed pairs (positive shared pressure) push apart
and rarefied pairs pull together. Coincident particles get a seeded
random direction instead of a 0/0 unit vector.

Viscosity force on i:
    F_i = mu * sum_{j != i} (v_j - v_i) * W_visc(r_ij)

Pointer interaction (within radius R_int of the input point P):
    F_i = (e_iP * strength - v_i) * (1 - d / R_int)

Every force sum is converted to an acceleration by dividing once by
rho_i. All terms are vectorized over the neighbor pair arrays and
scatter-added with np.add.at.

References:
-----------
Mueller et al. (2003) -- Particle-based fluid simulation for interactive
    applications
Monaghan (1992) -- Smoothed Particle Hydrodynamics
'''

from __future__ import annotations

import numpy as np

from sphSandbox.sph.kernels import SphKernel, SpikyKernel, Poly6Kernel
from sphSandbox.sph.neighborSearch import NeighborPairs
from sphSandbox.sph.protocols import SimulationParameters


def randomUnitVectors(rng: np.random.Generator, count: int) -> np.ndarray:
    '''
    Uniformly distributed unit vectors.

    Parameters:
    -----------
    rng : np.random.Generator
        Seeded generator
    count : int
        Number of vectors

    Returns:
    --------
    np.ndarray : Unit vectors, shape (count, 2)
    '''
    angles = rng.uniform(0.0, 2.0 * np.pi, size=count)
    return np.column_stack([np.cos(angles), np.sin(angles)])


class ForceModel:
    '''
    Evaluates the SPH accelerations acting on every particle.

    Parameters:
    -----------
    pressureKernel : SphKernel | None
        Kernel whose derivative drives the pressure force (spiky)
    viscosityKernel : SphKernel | None
        Smooth kernel weighting the viscosity term (poly6)
    '''

    def __init__(
        self,
        pressureKernel: SphKernel | None = None,
        viscosityKernel: SphKernel | None = None,
    ) -> None:
        self._pressureKernel = pressureKernel or SpikyKernel()
        self._viscosityKernel = viscosityKernel or Poly6Kernel()

    ######################################################################
    # -- Equation of State -- #
    ######################################################################

    @staticmethod
    def pressure(densities: np.ndarray, params: SimulationParameters) -> np.ndarray:
        '''
        Linear equation of state, not clamped (may be negative).

        Parameters:
        -----------
        densities : np.ndarray
            Particle densities
        params : SimulationParameters
            Parameter snapshot

        Returns:
        --------
        np.ndarray : Pressures
        '''
        return params.pressureMultiplier * (densities - params.targetDensity)

    ######################################################################
    # -- Force Terms (sums before division by rho_i) -- #
    ######################################################################

    def pressureForces(
        self,
        pairs: NeighborPairs,
        densities: np.ndarray,
        params: SimulationParameters,
        rng: np.random.Generator,
    ) -> np.ndarray:
        '''
        Pressure force sum on every particle.

        Parameters:
        -----------
        pairs : NeighborPairs
            Distance-filtered pairs
        densities : np.ndarray
            Densities from the density pass, shape (N,)
        params : SimulationParameters
            Parameter snapshot
        rng : np.random.Generator
            Generator for coincident-particle directions

        Returns:
        --------
        np.ndarray : Force sums, shape (N, 2)
        '''
        forces = np.zeros((len(densities), 2))

        distinct = pairs.distinctMask
        if not np.any(distinct):
            return forces

        iIdx = pairs.iIndices[distinct]
        jIdx = pairs.jIndices[distinct]
        offsets = pairs.offsets[distinct]
        dist = pairs.distances[distinct]

        # Unit vector i -> j; random direction where particles coincide
        directions = np.empty_like(offsets)
        coincident = dist <= 0.0
        separated = ~coincident
        directions[separated] = offsets[separated] / dist[separated, np.newaxis]
        nCoincident = int(np.count_nonzero(coincident))
        if nCoincident > 0:
            directions[coincident] = randomUnitVectors(rng, nCoincident)

        pressures = self.pressure(densities, params)
        sharedPressure = 0.5 * (pressures[iIdx] + pressures[jIdx])
        slope = self._pressureKernel.gradientMagnitudeBatch(dist, params.smoothingRadius)

        magnitude = sharedPressure * slope * params.particleMass / densities[jIdx]
        np.add.at(forces, iIdx, directions * magnitude[:, np.newaxis])

        return forces

    def viscosityForces(
        self,
        pairs: NeighborPairs,
        velocities: np.ndarray,
        params: SimulationParameters,
    ) -> np.ndarray:
        '''
        Viscosity force sum on every particle.

        Parameters:
        -----------
        pairs : NeighborPairs
            Distance-filtered pairs
        velocities : np.ndarray
            Particle velocities, shape (N, 2)
        params : SimulationParameters
            Parameter snapshot

        Returns:
        --------
        np.ndarray : Force sums, shape (N, 2)
        '''
        forces = np.zeros_like(velocities)

        distinct = pairs.distinctMask
        if not np.any(distinct) or params.viscosityStrength == 0.0:
            return forces

        iIdx = pairs.iIndices[distinct]
        jIdx = pairs.jIndices[distinct]
        influence = self._viscosityKernel.evaluateBatch(
            pairs.distances[distinct], params.smoothingRadius
        )

        dv = velocities[jIdx] - velocities[iIdx]
        np.add.at(forces, iIdx, dv * influence[:, np.newaxis])

        return forces * params.viscosityStrength

    @staticmethod
    def interactionForces(
        positions: np.ndarray,
        velocities: np.ndarray,
        point: np.ndarray,
        params: SimulationParameters,
    ) -> np.ndarray:
        '''
        Pointer interaction force on every particle.

        Particles within interactionRadius of the point are pulled
        toward it, with their own velocity damped, both weighted by
        the linear falloff 1 - d / interactionRadius.

        Parameters:
        -----------
        positions : np.ndarray
            Particle (predicted) positions, shape (N, 2)
        velocities : np.ndarray
            Particle velocities, shape (N, 2)
        point : np.ndarray
            Interaction point, shape (2,)
        params : SimulationParameters
            Parameter snapshot

        Returns:
        --------
        np.ndarray : Forces, shape (N, 2)
        '''
        forces = np.zeros_like(velocities)
        radius = params.interactionRadius
        if radius <= 0.0:
            return forces

        toPoint = np.asarray(point, dtype=float) - positions
        dist = np.linalg.norm(toPoint, axis=1)
        inside = dist < radius
        if not np.any(inside):
            return forces

        dInside = dist[inside]
        directions = np.zeros((len(dInside), 2))
        nonZero = dInside > 0.0
        directions[nonZero] = toPoint[inside][nonZero] / dInside[nonZero, np.newaxis]

        falloff = 1.0 - dInside / radius
        pull = directions * params.interactionStrength - velocities[inside]
        forces[inside] = pull * falloff[:, np.newaxis]

        return forces

    ######################################################################
    # -- Total Acceleration -- #
    ######################################################################

    def accelerations(
        self,
        pairs: NeighborPairs,
        positions: np.ndarray,
        velocities: np.ndarray,
        densities: np.ndarray,
        params: SimulationParameters,
        rng: np.random.Generator,
        interactionPoint: np.ndarray | None = None,
    ) -> np.ndarray:
        '''
        Sum of pressure, viscosity, and interaction accelerations.

        Parameters:
        -----------
        pairs : NeighborPairs
            Distance-filtered pairs of the predicted positions
        positions : np.ndarray
            Predicted positions, shape (N, 2)
        velocities : np.ndarray
            Particle velocities, shape (N, 2)
        densities : np.ndarray
            Densities from the density pass, shape (N,)
        params : SimulationParameters
            Parameter snapshot
        rng : np.random.Generator
            Generator for coincident-particle directions
        interactionPoint : np.ndarray | None
            Active pointer position, or None

        Returns:
        --------
        np.ndarray : Accelerations, shape (N, 2)
        '''
        forces = self.pressureForces(pairs, densities, params, rng)
        forces += self.viscosityForces(pairs, velocities, params)
        if interactionPoint is not None:
            forces += self.interactionForces(positions, velocities, interactionPoint, params)

        return forces / densities[:, np.newaxis]
