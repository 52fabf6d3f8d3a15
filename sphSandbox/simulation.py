# -- Interactive Simulation Controller -- #

'''
Host-facing controller with play/pause/reset semantics.

Wraps a TankSolver in the Idle <-> Running state machine the
interactive front end drives: every animation tick calls tick(dt)
with the wall-clock delta, which only advances the solver while
Running. Parameters and pointer input are replaced between ticks.

Usage:
    sim = FluidSimulation(SimulationParameters.tank())
    sim.play()
    state = sim.tick(1 / 60, InteractionInput.at(0.0, 1.0))
    positions = sim.positions
'''

from __future__ import annotations

import math

import numpy as np

from sphSandbox import constants as const
from sphSandbox.sph.protocols import (
    InteractionInput,
    SimulationParameters,
    SimulationState,
    SphSolver,
)
from sphSandbox.sph.particles import ParticleState, RigidDisc
from sphSandbox.sph.tankSolver import TankSolver

# Run states
IDLE = 'idle'
RUNNING = 'running'


class FluidSimulation:
    '''
    Play/pause/reset controller around a TankSolver.

    Starts Idle, like the interactive page which loads paused.

    Parameters:
    -----------
    params : SimulationParameters | None
        Initial parameters (default preset if None)
    nParticles : int
        Number of particles
    solver : SphSolver | None
        Solver to drive (a TankSolver built from params if None)
    '''

    def __init__(
        self,
        params: SimulationParameters | None = None,
        nParticles: int = const.nParticles,
        solver: SphSolver | None = None,
    ) -> None:
        if solver is None:
            solver = TankSolver(params or SimulationParameters.default(), nParticles=nParticles)
        self._solver: SphSolver = solver
        self._runState = IDLE
        self._lastState: SimulationState = self._solver.currentState

    ######################################################################
    # -- Commands -- #
    ######################################################################

    def togglePlay(self) -> str:
        '''
        Switch between Idle and Running.

        Returns:
        --------
        str : The new run state
        '''
        self._runState = IDLE if self._runState == RUNNING else RUNNING
        return self._runState

    def play(self) -> None:
        '''Enter the Running state.'''
        self._runState = RUNNING

    def pause(self) -> None:
        '''Enter the Idle state.'''
        self._runState = IDLE

    def reset(self) -> None:
        '''Re-seed particles and disc and pause.'''
        self._solver.reset()
        self._runState = IDLE
        self._lastState = self._solver.currentState

    def setParameters(self, params: SimulationParameters, clamp: bool = True) -> None:
        '''
        Replace the parameters used from the next tick on.

        Parameters:
        -----------
        params : SimulationParameters
            New parameters
        clamp : bool
            Clamp to the control-panel ranges first
        '''
        self._solver.setParameters(params.clamped() if clamp else params)

    def applyPreset(self, name: str) -> None:
        '''
        Load a named preset, then reset.

        Parameters:
        -----------
        name : str
            'default', 'tank', or 'plate'
        '''
        self._solver.setParameters(SimulationParameters.fromPreset(name))
        self.reset()

    ######################################################################
    # -- Animation Tick -- #
    ######################################################################

    def tick(
        self, dt: float, interaction: InteractionInput | None = None
    ) -> SimulationState:
        '''
        Advance one step if Running.

        Non-finite or negative deltas (first frame of an animation
        loop) are skipped.

        Parameters:
        -----------
        dt : float
            Wall-clock delta [s]
        interaction : InteractionInput | None
            Pointer input for this tick

        Returns:
        --------
        SimulationState : Latest diagnostics
        '''
        if self._runState != RUNNING:
            return self._lastState
        if not math.isfinite(dt) or dt < 0.0:
            return self._lastState

        self._lastState = self._solver.step(dt, interaction)
        return self._lastState

    ######################################################################
    # -- Properties -- #
    ######################################################################

    @property
    def runState(self) -> str:
        '''IDLE or RUNNING.'''
        return self._runState

    @property
    def isRunning(self) -> bool:
        '''True while Running.'''
        return self._runState == RUNNING

    @property
    def solver(self) -> SphSolver:
        '''Underlying solver.'''
        return self._solver

    @property
    def parameters(self) -> SimulationParameters:
        '''Current parameters.'''
        return self._solver.parameters

    @property
    def state(self) -> SimulationState:
        '''Latest diagnostics.'''
        return self._lastState

    @property
    def particles(self) -> ParticleState:
        '''Particle arrays.'''
        return self._solver.particles

    @property
    def positions(self) -> np.ndarray:
        '''Particle positions, shape (N, 2).'''
        return self._solver.particles.positions

    @property
    def velocities(self) -> np.ndarray:
        '''Particle velocities, shape (N, 2).'''
        return self._solver.particles.velocities

    @property
    def disc(self) -> RigidDisc | None:
        '''Rigid disc, or None without ball physics.'''
        return self._solver.disc

    @property
    def discPosition(self) -> np.ndarray | None:
        '''Disc center, or None without ball physics.'''
        disc = self._solver.disc
        return None if disc is None else disc.position
