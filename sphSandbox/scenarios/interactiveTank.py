# -- Interactive Tank Scenario -- #

'''
Headless setup of the interactive tank.

Bundles a parameter preset with run settings (particle count, step
size, number of steps, output interval) so the runner and tests can
reproduce what the interactive page does without a host.

The scenario creates:
1. A SimulationParameters snapshot from a preset, with optional ball
   physics and ramp
2. Particles packed on a square lattice around the tank center
3. A TankSolver ready to step
'''

from __future__ import annotations

from dataclasses import dataclass, replace

from sphSandbox import constants as const
from sphSandbox.sph.protocols import SimulationParameters
from sphSandbox.sph.particles import ParticleState
from sphSandbox.sph.tankSolver import TankSolver


######################################################################
# -- Tank Scenario Configuration -- #
######################################################################

@dataclass
class TankScenarioConfig:
    '''
    Configuration for a headless tank run.

    Parameters:
    -----------
    preset : str
        Parameter preset: 'default', 'tank', or 'plate'
    nParticles : int
        Number of fluid particles
    applyBallPhysics : bool
        Enable the rigid disc
    rampPercent : float
        Ramp size in percent of the tank width (0 disables it)
    dt : float
        Fixed host step [s]
    nSteps : int
        Number of steps to run
    outputInterval : int
        Steps between exported frames
    '''

    preset: str = 'default'
    nParticles: int = const.nParticles
    applyBallPhysics: bool = False
    rampPercent: float = 0.0
    dt: float = 1.0 / 60.0
    nSteps: int = 300
    outputInterval: int = 5

    @classmethod
    def quick(cls) -> TankScenarioConfig:
        '''
        Small tank for quick checks.

        400 particles, two seconds of simulated time.
        '''
        return cls(nParticles=400, nSteps=120)

    @classmethod
    def standard(cls) -> TankScenarioConfig:
        '''Full 1600-particle tank, five seconds of simulated time.'''
        return cls(nSteps=300)

    @classmethod
    def ballAndRamp(cls) -> TankScenarioConfig:
        '''Water tank with a light disc and a 25% ramp.'''
        return cls(preset='tank', applyBallPhysics=True, rampPercent=25.0, nSteps=300)


######################################################################
# -- Scenario Creation -- #
######################################################################

def createTankScenario(
    config: TankScenarioConfig,
    params: SimulationParameters | None = None,
) -> tuple[SimulationParameters, ParticleState, TankSolver]:
    '''
    Create a ready-to-run tank from configuration.

    Parameters:
    -----------
    config : TankScenarioConfig
        Scenario configuration
    params : SimulationParameters | None
        Base parameters (the configured preset if None)

    Returns:
    --------
    tuple[SimulationParameters, ParticleState, TankSolver] :
        Parameter snapshot, the solver's particle state, and the solver
    '''
    if params is None:
        params = SimulationParameters.fromPreset(config.preset)

    params = replace(params, applyBallPhysics=params.applyBallPhysics or config.applyBallPhysics)
    if config.rampPercent > 0.0:
        params = params.withRampPercent(config.rampPercent)

    particles = ParticleState.createPacked(nParticles=config.nParticles)

    solver = TankSolver(params, particles=particles)

    return (params, solver.particles, solver)
