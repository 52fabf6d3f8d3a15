# -- SPH Simulation Protocols -- #

'''
Configuration, host input, and result dataclasses for the SPH tank.

Defines the per-step parameter snapshot (SimulationParameters), the
optional pointer input (InteractionInput), the diagnostics snapshot
returned after each step (SimulationState), and the solver protocol
the host controller drives.
'''

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field, fields, replace
from typing import Protocol, TYPE_CHECKING

import numpy as np

from sphSandbox import constants as const

if TYPE_CHECKING:
    from sphSandbox.sph.particles import ParticleState, RigidDisc


######################################################################
# -- Errors -- #
######################################################################

class SimulationDivergedError(RuntimeError):
    '''Raised when a step leaves a non-finite position or velocity.'''


######################################################################
# -- Simulation Parameters -- #
######################################################################

# Control-panel ranges of the interactive host (min, max)
PARAMETER_RANGES: dict[str, tuple[float, float]] = {
    'gravity': (0.0, 20.0),
    'collisionDamping': (0.0, 1.0),
    'smoothingRadius': (0.1, 1.0),
    'particleMass': (0.1, 10.0),
    'targetDensity': (0.1, 100.0),
    'pressureMultiplier': (0.1, 100.0),
    'viscosityStrength': (0.0, 10.0),
    'interactionStrength': (100.0, 1000.0),
    'interactionRadius': (0.0, 10.0),
    'boundsHeight': (2.0, const.maxBoundsHeight),
    'boundsWidth': (2.0, const.maxBoundsWidth),
    'ballMass': (1.0, 600.0),
}


@dataclass(frozen=True)
class SimulationParameters:
    '''
    Immutable parameter snapshot read at the start of every step.

    The host replaces the whole object between steps (see clamped()
    and dataclasses.replace) rather than mutating it.

    Parameters:
    -----------
    gravity : float
        Downward gravitational acceleration magnitude
    collisionDamping : float
        Fraction of normal velocity kept after a wall/disc bounce [0, 1]
    smoothingRadius : float
        Kernel support radius h (also the hash grid cell size)
    particleMass : float
        Mass of every fluid particle
    targetDensity : float
        Rest density of the equation of state
    pressureMultiplier : float
        Stiffness k in P = k * (rho - rho_0)
    viscosityStrength : float
        Scale of the velocity-smoothing viscosity term
    interactionStrength : float
        Pull strength of the pointer interaction
    interactionRadius : float
        Radius of influence of the pointer interaction
    boundsWidth : float
        Tank width W (centered on the origin)
    boundsHeight : float
        Tank height H (centered on the origin)
    rampSize : float
        Leg length of the bottom-left ramp triangle (0 disables it)
    ballMass : float
        Mass of the rigid disc
    applyBallPhysics : bool
        Whether the rigid disc exists and couples with the fluid
    particleRadius : float
        Particle collision radius r
    discRadius : float
        Rigid disc radius R
    predictionLookahead : float
        Time used to extrapolate predicted positions [s]
    useSpatialGrid : bool
        Use the hash grid for neighbor candidates (False = all pairs)
    randomSeed : int
        Seed for zero-distance tie-break directions
    '''

    gravity: float = 5.0
    collisionDamping: float = 0.85
    smoothingRadius: float = 0.35
    particleMass: float = 1.0
    targetDensity: float = 36.0
    pressureMultiplier: float = 26.0
    viscosityStrength: float = 2.0
    interactionStrength: float = 330.0
    interactionRadius: float = 6.3
    boundsWidth: float = const.maxBoundsWidth
    boundsHeight: float = const.maxBoundsHeight
    rampSize: float = 0.0
    ballMass: float = 80.0
    applyBallPhysics: bool = False
    particleRadius: float = const.particleRadius
    discRadius: float = const.discRadius
    predictionLookahead: float = const.predictionLookahead
    useSpatialGrid: bool = True
    randomSeed: int = const.defaultRandomSeed

    def __post_init__(self) -> None:
        positive = (
            'smoothingRadius', 'particleMass', 'boundsWidth', 'boundsHeight',
            'ballMass', 'particleRadius', 'discRadius', 'predictionLookahead',
        )
        for name in positive:
            value = getattr(self, name)
            if not (value > 0.0 and math.isfinite(value)):
                raise ValueError(f'{name} must be positive and finite, got {value}')
        if self.rampSize < 0.0:
            raise ValueError(f'rampSize must be non-negative, got {self.rampSize}')

    #--------------------------------------------------------------------#
    # -- Derived Quantities -- #
    #--------------------------------------------------------------------#

    @property
    def halfExtents(self) -> np.ndarray:
        '''Half width and half height of the tank.'''
        return np.array([self.boundsWidth / 2.0, self.boundsHeight / 2.0])

    @property
    def gridShape(self) -> tuple[int, int]:
        '''(rows, columns) of smoothingRadius-sized cells covering the tank.'''
        rows = math.ceil(self.boundsHeight / self.smoothingRadius)
        cols = math.ceil(self.boundsWidth / self.smoothingRadius)
        return (rows, cols)

    @property
    def bucketCount(self) -> int:
        '''Number of spatial hash buckets.'''
        rows, cols = self.gridShape
        return rows * cols

    #--------------------------------------------------------------------#
    # -- Host Helpers -- #
    #--------------------------------------------------------------------#

    def clamped(self) -> SimulationParameters:
        '''
        Copy with every tunable field clamped to the control-panel range.

        The ramp is limited to the tank width.

        Returns:
        --------
        SimulationParameters : Clamped copy
        '''
        changes = {}
        for name, (low, high) in PARAMETER_RANGES.items():
            changes[name] = min(max(getattr(self, name), low), high)
        changes['rampSize'] = min(max(self.rampSize, 0.0), changes['boundsWidth'])
        return replace(self, **changes)

    def withRampPercent(self, percent: float) -> SimulationParameters:
        '''
        Copy with the ramp given as a percentage of the tank width.

        Parameters:
        -----------
        percent : float
            Ramp size in percent of boundsWidth (0 - 100)

        Returns:
        --------
        SimulationParameters : Copy with the new rampSize
        '''
        percent = min(max(percent, 0.0), 100.0)
        return replace(self, rampSize=percent * self.boundsWidth / 100.0)

    def toDict(self) -> dict:
        '''Plain dict of all fields (JSON-serializable).'''
        return {f.name: getattr(self, f.name) for f in fields(self)}

    #--------------------------------------------------------------------#
    # -- Presets -- #
    #--------------------------------------------------------------------#

    @classmethod
    def default(cls) -> SimulationParameters:
        '''Settling tank with a heavy disc available.'''
        return cls()

    @classmethod
    def tank(cls) -> SimulationParameters:
        '''Water tank preset: larger particles and a light disc.'''
        return cls(particleRadius=0.1, ballMass=1.0)

    @classmethod
    def plate(cls) -> SimulationParameters:
        '''Zero-gravity "plate" preset: a soft, loosely packed blob.'''
        return cls(
            gravity=0.0,
            targetDensity=6.6,
            pressureMultiplier=18.0,
            viscosityStrength=0.5,
            interactionStrength=250.0,
            interactionRadius=2.8,
            ballMass=1.0,
        )

    @classmethod
    def fromPreset(cls, name: str) -> SimulationParameters:
        '''
        Build parameters from a preset name.

        Parameters:
        -----------
        name : str
            'default', 'tank', or 'plate'

        Returns:
        --------
        SimulationParameters : Preset parameters

        Raises:
        -------
        ValueError : If the preset name is unknown
        '''
        presets = {
            'default': cls.default,
            'tank': cls.tank,
            'plate': cls.plate,
        }
        if name not in presets:
            raise ValueError(f'Unknown preset: {name}')
        return presets[name]()

    @classmethod
    def fromJson(cls, configPath: str) -> SimulationParameters:
        '''
        Load parameters from a JSON file.

        Reads the 'simulation', 'fluid', 'sph', 'tank', 'interaction',
        and 'ball' sections. Missing keys fall back to the preset named
        by simulation.preset (default preset if absent).

        Parameters:
        -----------
        configPath : str
            Path to the JSON configuration file

        Returns:
        --------
        SimulationParameters : Loaded parameters
        '''
        with open(configPath, 'r') as f:
            data = json.load(f)

        simSection = data.get('simulation', {})
        fluidSection = data.get('fluid', {})
        sphSection = data.get('sph', {})
        tankSection = data.get('tank', {})
        interactionSection = data.get('interaction', {})
        ballSection = data.get('ball', {})

        base = cls.fromPreset(simSection.get('preset', 'default'))

        params = replace(
            base,
            gravity=fluidSection.get('gravity', base.gravity),
            particleMass=fluidSection.get('particleMass', base.particleMass),
            targetDensity=fluidSection.get('targetDensity', base.targetDensity),
            pressureMultiplier=fluidSection.get('pressureMultiplier', base.pressureMultiplier),
            viscosityStrength=fluidSection.get('viscosityStrength', base.viscosityStrength),
            smoothingRadius=sphSection.get('smoothingRadius', base.smoothingRadius),
            particleRadius=sphSection.get('particleRadius', base.particleRadius),
            predictionLookahead=sphSection.get('predictionLookahead', base.predictionLookahead),
            useSpatialGrid=sphSection.get('useSpatialGrid', base.useSpatialGrid),
            randomSeed=sphSection.get('randomSeed', base.randomSeed),
            boundsWidth=tankSection.get('width', base.boundsWidth),
            boundsHeight=tankSection.get('height', base.boundsHeight),
            collisionDamping=tankSection.get('collisionDamping', base.collisionDamping),
            rampSize=tankSection.get('rampSize', base.rampSize),
            interactionStrength=interactionSection.get('strength', base.interactionStrength),
            interactionRadius=interactionSection.get('radius', base.interactionRadius),
            applyBallPhysics=ballSection.get('enabled', base.applyBallPhysics),
            ballMass=ballSection.get('mass', base.ballMass),
            discRadius=ballSection.get('radius', base.discRadius),
        )

        # Ramp given as percent of width overrides the absolute size
        if 'rampPercent' in tankSection:
            params = params.withRampPercent(tankSection['rampPercent'])

        return params


######################################################################
# -- Host Input -- #
######################################################################

@dataclass(frozen=True)
class InteractionInput:
    '''
    Pointer input for a single step.

    At most one of the two targets is normally set: the host either
    pushes/pulls the fluid at `point` or drags the disc to `discTarget`.

    Parameters:
    -----------
    point : tuple[float, float] | None
        World point of the fluid interaction
    discTarget : tuple[float, float] | None
        World point the disc is dragged to
    '''

    point: tuple[float, float] | None = None
    discTarget: tuple[float, float] | None = None

    @property
    def isActive(self) -> bool:
        '''True when the fluid interaction force applies this step.'''
        return self.point is not None

    @property
    def isDraggingDisc(self) -> bool:
        '''True when the disc is pinned to the pointer this step.'''
        return self.discTarget is not None

    @classmethod
    def at(cls, x: float, y: float) -> InteractionInput:
        '''Fluid interaction at (x, y).'''
        return cls(point=(float(x), float(y)))

    @classmethod
    def dragDisc(cls, x: float, y: float) -> InteractionInput:
        '''Disc drag to (x, y).'''
        return cls(discTarget=(float(x), float(y)))


######################################################################
# -- Simulation State -- #
######################################################################

@dataclass
class SimulationState:
    '''
    Snapshot of scalar diagnostics after a step.

    Parameters:
    -----------
    time : float
        Accumulated simulation time [s]
    step : int
        Number of completed steps
    dt : float
        Size of the last step [s]
    kineticEnergy : float
        Total kinetic energy of the particles
    potentialEnergy : float
        Gravitational potential energy relative to the tank floor
    maxVelocity : float
        Largest particle speed
    maxDensityError : float
        Largest relative density error |rho - rho_0| / rho_0
    minDensity : float
        Smallest particle density (always > 0)
    discPosition : np.ndarray | None
        Disc center, or None without ball physics
    '''

    time: float
    step: int
    dt: float
    kineticEnergy: float
    potentialEnergy: float
    maxVelocity: float
    maxDensityError: float
    minDensity: float
    discPosition: np.ndarray | None = field(default=None)

    @property
    def totalEnergy(self) -> float:
        '''Total mechanical energy (KE + PE).'''
        return self.kineticEnergy + self.potentialEnergy


######################################################################
# -- Solver Protocol -- #
######################################################################

class SphSolver(Protocol):
    '''Protocol for steppable SPH solvers driven by the host controller.'''

    def reset(self) -> None:
        '''Re-seed particles and disc to their initial layout.'''
        ...

    def step(
        self, dt: float, interaction: InteractionInput | None = None
    ) -> SimulationState:
        '''Advance one time step and return diagnostics.'''
        ...

    def setParameters(self, params: SimulationParameters) -> None:
        '''Replace the parameter snapshot used from the next step on.'''
        ...

    @property
    def currentState(self) -> SimulationState:
        '''Diagnostics of the current particle state.'''
        ...

    @property
    def parameters(self) -> SimulationParameters:
        '''Parameter snapshot used by the next step.'''
        ...

    @property
    def particles(self) -> ParticleState:
        '''Access the particle arrays.'''
        ...

    @property
    def disc(self) -> RigidDisc | None:
        '''Access the rigid disc, if ball physics is enabled.'''
        ...
