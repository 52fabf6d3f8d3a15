# -- SPH Particle State -- #

'''
Dataclasses holding the mutable simulation state.

ParticleState stores positions, velocities, predicted positions, and
densities as contiguous NumPy arrays (structure of arrays) that are
overwritten in place every step. RigidDisc is the single optional
rigid body that couples with the fluid.
'''

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from sphSandbox import constants as const


@dataclass
class ParticleState:
    '''
    Fluid particle arrays.

    Vector quantities have shape (N, 2), scalars shape (N,).
    N is fixed for the lifetime of the state.

    Parameters:
    -----------
    positions : np.ndarray
        Particle positions, shape (N, 2)
    velocities : np.ndarray
        Particle velocities, shape (N, 2)
    predictedPositions : np.ndarray
        One-lookahead position estimates used for neighbor search, shape (N, 2)
    densities : np.ndarray
        Particle densities, shape (N,)
    '''

    positions: np.ndarray
    velocities: np.ndarray
    predictedPositions: np.ndarray
    densities: np.ndarray

    @property
    def nParticles(self) -> int:
        '''Number of particles.'''
        return self.positions.shape[0]

    def kineticEnergy(self, particleMass: float) -> float:
        '''
        Total kinetic energy.

        KE = (1/2) * m * sum_i |v_i|^2

        Parameters:
        -----------
        particleMass : float
            Mass of each particle

        Returns:
        --------
        float : Kinetic energy
        '''
        speedsSq = np.sum(self.velocities * self.velocities, axis=1)
        return float(0.5 * particleMass * np.sum(speedsSq))

    def potentialEnergy(
        self, particleMass: float, gravity: float, floorHeight: float = 0.0
    ) -> float:
        '''
        Gravitational potential energy relative to floorHeight.

        PE = m * g * sum_i (y_i - floorHeight)

        Parameters:
        -----------
        particleMass : float
            Mass of each particle
        gravity : float
            Gravitational acceleration magnitude
        floorHeight : float
            Reference height (typically the tank floor)

        Returns:
        --------
        float : Potential energy
        '''
        heights = self.positions[:, 1] - floorHeight
        return float(particleMass * gravity * np.sum(heights))

    def speeds(self) -> np.ndarray:
        '''Velocity magnitude per particle, shape (N,).'''
        return np.linalg.norm(self.velocities, axis=1)

    def maxSpeed(self) -> float:
        '''Largest particle speed.'''
        if self.nParticles == 0:
            return 0.0
        return float(np.max(self.speeds()))

    def maxDensityError(self, targetDensity: float) -> float:
        '''
        Largest relative density error max |rho_i - rho_0| / rho_0.

        Parameters:
        -----------
        targetDensity : float
            Rest density rho_0

        Returns:
        --------
        float : Relative density error (dimensionless)
        '''
        if self.nParticles == 0:
            return 0.0
        errors = np.abs(self.densities - targetDensity) / targetDensity
        return float(np.max(errors))

    def isFinite(self) -> bool:
        '''True if every position and velocity component is finite.'''
        return bool(
            np.all(np.isfinite(self.positions))
            and np.all(np.isfinite(self.velocities))
        )

    def copy(self) -> ParticleState:
        '''Deep copy of all arrays.'''
        return ParticleState(
            positions=self.positions.copy(),
            velocities=self.velocities.copy(),
            predictedPositions=self.predictedPositions.copy(),
            densities=self.densities.copy(),
        )

    @classmethod
    def fromPositions(cls, positions: np.ndarray) -> ParticleState:
        '''
        Create resting particles at the given positions.

        Parameters:
        -----------
        positions : np.ndarray
            Initial positions, shape (N, 2)

        Returns:
        --------
        ParticleState : State with zero velocity
        '''
        positions = np.array(positions, dtype=float).reshape(-1, 2)
        nParticles = positions.shape[0]
        return cls(
            positions=positions,
            velocities=np.zeros((nParticles, 2)),
            predictedPositions=positions.copy(),
            densities=np.zeros(nParticles),
        )

    @classmethod
    def createPacked(
        cls,
        nParticles: int = const.nParticles,
        spacing: float = const.particleRadius * const.initialSpacingFactor,
        columns: int = const.initialColumns,
    ) -> ParticleState:
        '''
        Create particles packed on a square lattice around the origin.

        Lattice indices run i in [-ceil(columns/2), ceil(columns/2)] and
        j in [-ceil(N/columns/2), ceil(N/columns/2)], filled column by
        column until N particles are placed.

        Parameters:
        -----------
        nParticles : int
            Number of particles N
        spacing : float
            Lattice spacing
        columns : int
            Nominal number of lattice columns

        Returns:
        --------
        ParticleState : Resting particles on the lattice
        '''
        halfX = math.ceil(columns / 2)
        halfY = max(math.ceil(nParticles / columns / 2), 1)

        # Widen the lattice if the nominal one cannot hold N particles
        while (2 * halfX + 1) * (2 * halfY + 1) < nParticles:
            halfY += 1

        ii, jj = np.meshgrid(
            np.arange(-halfX, halfX + 1),
            np.arange(-halfY, halfY + 1),
            indexing='ij',
        )
        lattice = np.column_stack([ii.ravel(), jj.ravel()])[:nParticles]

        return cls.fromPositions(lattice * spacing)


@dataclass
class RigidDisc:
    '''
    Rigid disc coupled with the fluid.

    Parameters:
    -----------
    position : np.ndarray
        Disc center, shape (2,)
    velocity : np.ndarray
        Disc velocity, shape (2,)
    mass : float
        Disc mass
    radius : float
        Disc radius R (fixed)
    '''

    position: np.ndarray
    velocity: np.ndarray
    mass: float
    radius: float = const.discRadius

    def kineticEnergy(self) -> float:
        '''KE = (1/2) * M * |v|^2.'''
        return float(0.5 * self.mass * np.dot(self.velocity, self.velocity))

    @classmethod
    def createDefault(
        cls,
        mass: float,
        radius: float = const.discRadius,
        position: tuple[float, float] = const.discInitialPosition,
    ) -> RigidDisc:
        '''
        Create a resting disc at its default pose.

        Parameters:
        -----------
        mass : float
            Disc mass
        radius : float
            Disc radius
        position : tuple[float, float]
            Initial center

        Returns:
        --------
        RigidDisc : Disc at rest
        '''
        return cls(
            position=np.array(position, dtype=float),
            velocity=np.zeros(2),
            mass=mass,
            radius=radius,
        )
