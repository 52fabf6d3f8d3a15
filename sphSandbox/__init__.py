# -- sphSandbox Package -- #

'''
Interactive 2D Smoothed Particle Hydrodynamics (SPH) tank.

A few thousand particles in a rectangular tank with an optional corner
ramp, a pointer-driven push/pull force, and an optional rigid disc
that is two-way coupled with the fluid.
'''

__version__ = '0.1.0'

from sphSandbox.sph.protocols import (
    InteractionInput,
    SimulationDivergedError,
    SimulationParameters,
    SimulationState,
)
from sphSandbox.sph.tankSolver import TankSolver
from sphSandbox.simulation import FluidSimulation
