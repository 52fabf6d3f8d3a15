# -- SPH Engine Package -- #

'''
Core Smoothed Particle Hydrodynamics (SPH) engine for the tank.

Provides kernel functions, particle state, the spatial hash grid,
density and force passes, boundary handling, time integration, and
the step orchestrator.
'''

from sphSandbox.sph.protocols import (
    InteractionInput,
    SimulationDivergedError,
    SimulationParameters,
    SimulationState,
)
from sphSandbox.sph.kernels import SpikyKernel, Poly6Kernel, createKernel
from sphSandbox.sph.neighborSearch import SpatialHashGrid, AllPairsSearch, findNeighborPairs
from sphSandbox.sph.tankSolver import TankSolver
