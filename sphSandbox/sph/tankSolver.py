# -- Interactive Tank SPH Solver -- #

'''
Fixed-step SPH solver for the interactive 2D tank.

Owns the particle arrays, the optional rigid disc, and the reusable
neighbor-search buffers, and advances them by one host-supplied dt
per call. The parameter snapshot is read once at the start of a step.

Algorithm per time step:
    1. Gravity kick; predicted positions x + v * lookahead; with ball
       physics, particle-vs-disc on the predicted positions corrects
       velocities only (and the prediction is refreshed)
    2. Rebuild the spatial hash grid from predicted positions
    3. Density pass over all particles
    4. Force pass (pressure + viscosity + interaction); velocity kick
    5. Drift; with ball physics, particle-vs-disc on real positions
       (capturing the reaction); ramp and box collisions
    6. With ball physics: disc integration (gravity + reaction) and
       disc-vs-box/ramp collision

The predictive sub-step evaluates density and pressure on a
configuration that already includes gravity and a first disc
contact, which is much more stable than using last-step positions.

References:
-----------
Mueller et al. (2003) -- Particle-based fluid simulation for interactive
    applications
Clavet et al. (2005) -- Particle-based viscoelastic fluid simulation
'''

from __future__ import annotations

import math

import numpy as np

from sphSandbox import constants as const
from sphSandbox.sph.protocols import (
    InteractionInput,
    SimulationDivergedError,
    SimulationParameters,
    SimulationState,
)
from sphSandbox.sph.particles import ParticleState, RigidDisc
from sphSandbox.sph.kernels import SphKernel
from sphSandbox.sph.neighborSearch import (
    AllPairsSearch,
    NeighborPairs,
    NeighborSearch,
    SpatialHashGrid,
    findNeighborPairs,
)
from sphSandbox.sph.densityField import DensityField
from sphSandbox.sph.forceModel import ForceModel
from sphSandbox.sph.boundaryHandling import BoundaryHandler
from sphSandbox.sph.timeIntegration import SymplecticEuler, TimeIntegrator


class TankSolver:
    '''
    SPH solver for the interactive tank.

    Parameters:
    -----------
    params : SimulationParameters
        Initial parameter snapshot
    particles : ParticleState | None
        Initial particle layout (defaults to the packed lattice);
        a copy is kept for reset()
    nParticles : int
        Number of particles of the default layout
    discPosition : tuple[float, float]
        Default disc center used on creation and reset
    densityKernel : SphKernel | None
        Kernel for density and pressure (defaults to SpikyKernel)
    viscosityKernel : SphKernel | None
        Kernel for viscosity (defaults to Poly6Kernel)
    '''

    def __init__(
        self,
        params: SimulationParameters,
        particles: ParticleState | None = None,
        nParticles: int = const.nParticles,
        discPosition: tuple[float, float] = const.discInitialPosition,
        densityKernel: SphKernel | None = None,
        viscosityKernel: SphKernel | None = None,
    ) -> None:
        if particles is None:
            particles = ParticleState.createPacked(nParticles=nParticles)

        self._params = params
        self._initialParticles = particles.copy()
        self._discPosition = discPosition

        self._densityField = DensityField(densityKernel)
        self._forceModel = ForceModel(
            pressureKernel=self._densityField.kernel,
            viscosityKernel=viscosityKernel,
        )
        self._integrator: TimeIntegrator = SymplecticEuler()
        self._allPairs = AllPairsSearch()
        self._grid: SpatialHashGrid | None = None
        self._lastPairs: NeighborPairs | None = None

        self._particles = particles.copy()
        self._disc: RigidDisc | None = None
        self._rng = np.random.default_rng(params.randomSeed)
        self._time: float = 0.0
        self._step: int = 0
        self._dt: float = 0.0

        self._syncDisc()

    ######################################################################
    # -- Host Commands -- #
    ######################################################################

    def reset(self) -> None:
        '''Re-seed particles, disc, clock, and tie-break generator.'''
        self._particles = self._initialParticles.copy()
        self._disc = None
        self._syncDisc()
        self._rng = np.random.default_rng(self._params.randomSeed)
        self._lastPairs = None
        self._time = 0.0
        self._step = 0
        self._dt = 0.0

    def setParameters(self, params: SimulationParameters) -> None:
        '''
        Replace the parameter snapshot used from the next step on.

        Enabling ball physics creates the disc at its default pose;
        disabling it removes the disc.

        Parameters:
        -----------
        params : SimulationParameters
            New parameter snapshot
        '''
        self._params = params
        self._syncDisc()

    def _syncDisc(self) -> None:
        '''Create or drop the disc to match applyBallPhysics.'''
        if not self._params.applyBallPhysics:
            self._disc = None
        elif self._disc is None:
            self._disc = RigidDisc.createDefault(
                mass=self._params.ballMass,
                radius=self._params.discRadius,
                position=self._discPosition,
            )

    ######################################################################
    # -- Main Time Step -- #
    ######################################################################

    def step(
        self, dt: float, interaction: InteractionInput | None = None
    ) -> SimulationState:
        '''
        Advance one time step.

        Parameters:
        -----------
        dt : float
            Host-supplied time step [s]
        interaction : InteractionInput | None
            Pointer input for this step

        Returns:
        --------
        SimulationState : Diagnostics after the step

        Raises:
        -------
        ValueError : If dt is negative or not finite
        SimulationDivergedError : If a position or velocity became non-finite
        '''
        if not (math.isfinite(dt) and dt >= 0.0):
            raise ValueError(f'dt must be finite and non-negative, got {dt}')

        params = self._params
        p = self._particles
        integrator = self._integrator
        boundary = BoundaryHandler.fromParameters(params)
        radius = params.particleRadius
        h = params.smoothingRadius

        disc = self._disc
        if disc is not None:
            disc.mass = params.ballMass
            disc.radius = params.discRadius

        # 1. Gravity and prediction
        integrator.applyGravity(p.velocities, params.gravity, dt)
        integrator.predict(
            p.positions, p.velocities, params.predictionLookahead, out=p.predictedPositions
        )
        beforeContact: np.ndarray | None = None
        reflected: np.ndarray | None = None
        if disc is not None:
            beforeContact = p.velocities.copy()
            boundary.collideWithDisc(
                p.predictedPositions, p.velocities, disc, radius, movePositions=False
            )
            reflected = np.any(p.velocities != beforeContact, axis=1)
            integrator.predict(
                p.positions, p.velocities, params.predictionLookahead, out=p.predictedPositions
            )

        # 2. Neighbor search on predicted positions
        search = self._neighborSearch(params)
        search.build(p.predictedPositions)
        pairs = findNeighborPairs(search, p.predictedPositions, h)
        self._lastPairs = pairs

        # 3. Density pass
        self._densityField.compute(
            pairs, p.nParticles, params.particleMass, h, out=p.densities
        )

        # 4. Force pass
        interactionPoint = None
        if interaction is not None and interaction.isActive:
            interactionPoint = np.array(interaction.point, dtype=float)

        accelerations = self._forceModel.accelerations(
            pairs,
            p.predictedPositions,
            p.velocities,
            p.densities,
            params,
            self._rng,
            interactionPoint=interactionPoint,
        )
        integrator.kick(p.velocities, accelerations, dt)

        # 5. Drift and collisions
        integrator.drift(p.positions, p.velocities, dt)
        reaction = np.zeros(2)
        if disc is not None:
            # Particles already bounced by the predictive contact hit the
            # disc with their velocity from before that bounce
            arrival = p.velocities.copy()
            arrival[reflected] = beforeContact[reflected]
            reaction = boundary.collideWithDisc(
                p.positions, p.velocities, disc, radius, preVelocities=arrival
            )
        boundary.enforceBoundary(p.positions, p.velocities, radius)

        # 6. Disc update
        if disc is not None:
            if interaction is not None and interaction.isDraggingDisc:
                disc.position[:] = interaction.discTarget
                disc.velocity[:] = 0.0
            else:
                integrator.integrateDisc(disc, params.gravity, reaction, dt)
            boundary.enforceDiscBoundary(disc)

        self._checkFinite()

        self._time += dt
        self._step += 1
        self._dt = dt

        return self.currentState

    def _neighborSearch(self, params: SimulationParameters) -> NeighborSearch:
        '''Hash grid sized for the snapshot (rebuilt if h or the tank changed).'''
        if not params.useSpatialGrid:
            return self._allPairs

        bucketCount = params.bucketCount
        if (
            self._grid is None
            or self._grid.cellSize != params.smoothingRadius
            or self._grid.bucketCount != bucketCount
        ):
            self._grid = SpatialHashGrid(params.smoothingRadius, bucketCount)
        return self._grid

    def _checkFinite(self) -> None:
        '''Raise if any state component is NaN or infinite.'''
        if not self._particles.isFinite():
            raise SimulationDivergedError(
                f'Non-finite particle state after step {self._step + 1}; '
                f'check smoothingRadius and dt'
            )
        disc = self._disc
        if disc is not None and not (
            np.all(np.isfinite(disc.position)) and np.all(np.isfinite(disc.velocity))
        ):
            raise SimulationDivergedError(
                f'Non-finite disc state after step {self._step + 1}'
            )

    ######################################################################
    # -- Properties -- #
    ######################################################################

    @property
    def currentState(self) -> SimulationState:
        '''Current simulation state snapshot.'''
        p = self._particles
        params = self._params
        floorHeight = -params.boundsHeight / 2.0

        return SimulationState(
            time=self._time,
            step=self._step,
            dt=self._dt,
            kineticEnergy=p.kineticEnergy(params.particleMass),
            potentialEnergy=p.potentialEnergy(params.particleMass, params.gravity, floorHeight),
            maxVelocity=p.maxSpeed(),
            maxDensityError=p.maxDensityError(params.targetDensity),
            minDensity=float(np.min(p.densities)) if p.nParticles > 0 else 0.0,
            discPosition=None if self._disc is None else self._disc.position.copy(),
        )

    @property
    def parameters(self) -> SimulationParameters:
        '''Parameter snapshot used by the next step.'''
        return self._params

    @property
    def particles(self) -> ParticleState:
        '''Access the particle arrays.'''
        return self._particles

    @property
    def disc(self) -> RigidDisc | None:
        '''The rigid disc, or None without ball physics.'''
        return self._disc

    @property
    def positions(self) -> np.ndarray:
        '''Particle positions, shape (N, 2).'''
        return self._particles.positions

    @property
    def velocities(self) -> np.ndarray:
        '''Particle velocities, shape (N, 2).'''
        return self._particles.velocities

    @property
    def discPosition(self) -> np.ndarray | None:
        '''Disc center, or None without ball physics.'''
        return None if self._disc is None else self._disc.position

    @property
    def lastPairs(self) -> NeighborPairs | None:
        '''Neighbor pairs of the most recent step.'''
        return self._lastPairs

    @property
    def time(self) -> float:
        '''Accumulated simulation time [s].'''
        return self._time

    @property
    def stepCount(self) -> int:
        '''Number of completed steps.'''
        return self._step
