# -- Tank Solver Tests -- #

'''
End-to-end behaviour of the step orchestrator.
'''

from dataclasses import replace

import numpy as np
import pytest

from sphSandbox import constants as const
from sphSandbox.sph.boundaryHandling import BoundaryHandler, pointsInTriangle
from sphSandbox.sph.densityField import DensityField
from sphSandbox.sph.kernels import createKernel
from sphSandbox.sph.particles import ParticleState
from sphSandbox.sph.protocols import (
    InteractionInput,
    SimulationDivergedError,
    SimulationParameters,
)
from sphSandbox.sph.tankSolver import TankSolver

dt = 1.0 / 60.0


def _runSteps(solver: TankSolver, nSteps: int, interaction=None) -> list:
    return [solver.step(dt, interaction) for _ in range(nSteps)]


def testSingleParticleFallAndRebound():
    '''A lone particle free-falls, bounces off the floor, and keeps its self density.'''
    params = SimulationParameters(gravity=9.8)
    solver = TankSolver(params, particles=ParticleState.fromPositions([[0.0, 0.0]]))
    selfDensity = DensityField().selfDensity(params.particleMass, params.smoothingRadius)
    step = 1.0 / 30.0

    for k in range(1, 29):
        solver.step(step)
        expectedY = -9.8 * step * step * k * (k + 1) / 2.0
        assert solver.positions[0, 1] == pytest.approx(expectedY)
        assert solver.particles.densities[0] == pytest.approx(selfDensity)

    # Step 29 crosses the floor at -H/2 + r
    solver.step(step)
    assert solver.positions[0, 1] == pytest.approx(-4.45)
    assert solver.velocities[0, 1] == pytest.approx(0.85 * 9.8 * 29 * step)

    solver.step(step)
    assert solver.velocities[0, 1] > 0.0
    assert solver.positions[0, 1] > -4.45
    assert solver.positions[0, 0] == 0.0
    assert solver.stepCount == 30
    assert solver.time == pytest.approx(1.0)


def testTwoParticlesSeparate():
    '''Two compressed particles push apart symmetrically.'''
    params = SimulationParameters(gravity=0.0, targetDensity=1.0, viscosityStrength=0.0)
    solver = TankSolver(params, particles=ParticleState.fromPositions([[0.0, 0.0], [0.1, 0.0]]))

    solver.step(dt)

    distance = np.linalg.norm(solver.positions[1] - solver.positions[0])
    assert distance > 0.1
    np.testing.assert_allclose(solver.velocities[0], -solver.velocities[1], atol=1e-12)
    assert solver.velocities[0, 0] < 0.0


def testHalfRadiusPairSeparatesToSupport():
    '''A compressed pair at h/2 moves apart until it leaves the kernel support.'''
    params = SimulationParameters(gravity=0.0, targetDensity=1.0)
    h = params.smoothingRadius
    solver = TankSolver(params, particles=ParticleState.fromPositions([[0.0, 0.0], [h / 2.0, 0.0]]))

    distances = []
    for _ in range(30):
        solver.step(dt)
        distances.append(np.linalg.norm(solver.positions[1] - solver.positions[0]))

    assert distances[0] > h / 2.0
    assert np.all(np.diff(distances) > 0.0)
    assert distances[-1] >= h


def testCoincidentParticlesStayFinite():
    '''Particles starting on top of each other separate without NaN.'''
    params = SimulationParameters(gravity=0.0, targetDensity=1.0)
    solver = TankSolver(params, particles=ParticleState.fromPositions([[0.0, 0.0], [0.0, 0.0]]))

    state = solver.step(dt)

    assert solver.particles.isFinite()
    assert state.minDensity > 0.0
    assert not np.allclose(solver.positions[0], solver.positions[1])


def testBoxContainmentAndPositiveDensity():
    '''After every step particles stay in the box and densities stay positive.'''
    params = SimulationParameters()
    solver = TankSolver(params, nParticles=400)
    limits = params.halfExtents - params.particleRadius

    for state in _runSteps(solver, 40):
        assert state.minDensity > 0.0
        assert np.all(np.abs(solver.positions) <= limits + 1e-12)


def testRampContainment():
    '''Particles dropped into the ramp corner end up above the ramp.'''
    params = SimulationParameters(rampSize=4.0)
    positions = [[-7.5, -4.2], [-7.0, -3.0], [-6.0, -4.3], [-5.0, -3.8]]
    solver = TankSolver(params, particles=ParticleState.fromPositions(positions))
    handler = BoundaryHandler.fromParameters(params)
    upper, lower = handler.rampEndpoints

    for _ in range(10):
        solver.step(dt)
        inside = pointsInTriangle(solver.positions, handler.rampCorner, upper, lower)
        assert not np.any(inside)


def testDeterminism():
    '''Identical inputs give bit-identical states.'''
    params = SimulationParameters()
    first = TankSolver(params, nParticles=300)
    second = TankSolver(params, nParticles=300)
    pointer = InteractionInput.at(1.0, 0.5)

    _runSteps(first, 15, pointer)
    _runSteps(second, 15, pointer)

    np.testing.assert_array_equal(first.positions, second.positions)
    np.testing.assert_array_equal(first.velocities, second.velocities)
    np.testing.assert_array_equal(first.particles.densities, second.particles.densities)


def testGridMatchesAllPairsSolver():
    '''The hash grid and the brute-force search give the same dynamics.'''
    params = SimulationParameters()
    gridSolver = TankSolver(params, nParticles=300)
    bruteSolver = TankSolver(replace(params, useSpatialGrid=False), nParticles=300)

    _runSteps(gridSolver, 5)
    _runSteps(bruteSolver, 5)

    np.testing.assert_allclose(gridSolver.positions, bruteSolver.positions, rtol=1e-9, atol=1e-9)
    np.testing.assert_allclose(gridSolver.particles.densities, bruteSolver.particles.densities, rtol=1e-9)


def testZeroStepKeepsPositions():
    '''dt = 0 leaves resting in-box particles where they are.'''
    solver = TankSolver(SimulationParameters(), nParticles=100)
    before = solver.positions.copy()

    state = solver.step(0.0)

    np.testing.assert_array_equal(solver.positions, before)
    assert state.step == 1
    assert state.time == 0.0


@pytest.mark.parametrize('badDt', [float('nan'), float('inf'), -0.01])
def testInvalidDt(badDt):
    '''Non-finite or negative dt raises ValueError.'''
    solver = TankSolver(SimulationParameters(), nParticles=10)
    with pytest.raises(ValueError):
        solver.step(badDt)


def testDivergenceRaises():
    '''A non-finite particle state is reported after the step.'''
    solver = TankSolver(SimulationParameters(), nParticles=10)
    solver.particles.velocities[0] = np.nan

    with np.errstate(all='ignore'):
        with pytest.raises(SimulationDivergedError):
            solver.step(dt)


def testInteractionPullsFluid():
    '''Holding the pointer above the fluid lifts it.'''
    params = SimulationParameters(gravity=0.0)
    solver = TankSolver(params, nParticles=200)
    startY = solver.positions[:, 1].mean()

    _runSteps(solver, 5, InteractionInput.at(0.0, 3.0))

    assert solver.positions[:, 1].mean() > startY


def testDiscFallsUnderGravity():
    '''Without contacts the disc is a free-falling body.'''
    params = SimulationParameters(applyBallPhysics=True)
    solver = TankSolver(params, particles=ParticleState.fromPositions([[5.0, -4.0]]))

    solver.step(dt)

    np.testing.assert_allclose(solver.disc.velocity, [0.0, -5.0 * dt])
    np.testing.assert_allclose(solver.discPosition, [-5.0, 2.0 - 5.0 * dt * dt])


def testDiscDrag():
    '''Dragging pins the disc to the pointer with zero velocity.'''
    params = SimulationParameters(applyBallPhysics=True)
    solver = TankSolver(params, nParticles=50)

    state = solver.step(dt, InteractionInput.dragDisc(3.0, 2.5))

    np.testing.assert_allclose(solver.discPosition, [3.0, 2.5])
    np.testing.assert_array_equal(solver.disc.velocity, 0.0)
    np.testing.assert_allclose(state.discPosition, [3.0, 2.5])


def testDiscDragClampedToBox():
    '''A drag target outside the tank is clamped by the disc boundary.'''
    params = SimulationParameters(applyBallPhysics=True)
    solver = TankSolver(params, nParticles=50)

    solver.step(dt, InteractionInput.dragDisc(20.0, 0.0))

    assert solver.discPosition[0] == pytest.approx(8.0 - params.discRadius)


def testDiscDisplacesFluid():
    '''No particle ends a step inside a pinned disc.'''
    params = SimulationParameters(applyBallPhysics=True)
    solver = TankSolver(params, nParticles=400, discPosition=(0.0, 0.0))

    _runSteps(solver, 3, InteractionInput.dragDisc(0.0, 0.0))

    dist = np.linalg.norm(solver.positions - solver.discPosition, axis=1)
    assert np.all(dist >= params.discRadius + params.particleRadius - 1e-9)


def _strikeFreeDisc(particleMass: float = 1.0) -> TankSolver:
    '''One particle moving at -3 along x into a free disc centered 0.7 to its left.'''
    params = SimulationParameters(
        gravity=0.0, applyBallPhysics=True, ballMass=10.0, particleMass=particleMass
    )
    solver = TankSolver(
        params,
        particles=ParticleState.fromPositions([[0.0, 0.0]]),
        discPosition=(-0.7, 0.0),
    )
    solver.particles.velocities[0] = (-3.0, 0.0)
    solver.step(dt)
    return solver


def testDiscPushedAwayByStrikingParticle():
    '''A particle hitting a free disc pushes it away by sum(proj) / ballMass.'''
    solver = _strikeFreeDisc()

    # Arrival projection (-3, 0) over ballMass 10
    np.testing.assert_allclose(solver.disc.velocity, [-0.3, 0.0])
    assert solver.discPosition[0] < -0.7
    # The particle bounced back off the disc
    assert solver.velocities[0, 0] == pytest.approx(0.85 * 3.0)
    dist = np.linalg.norm(solver.positions[0] - solver.discPosition)
    assert dist >= 0.75 - 1e-9


def testDiscReactionIndependentOfParticleMass():
    '''The disc reaction does not scale with particleMass.'''
    light = _strikeFreeDisc(particleMass=1.0)
    heavy = _strikeFreeDisc(particleMass=2.0)

    np.testing.assert_allclose(heavy.disc.velocity, light.disc.velocity)


def testCustomKernelNormalization():
    '''Kernels passed to the solver set the density normalization.'''
    params = SimulationParameters(gravity=0.0)
    kernel = createKernel('spiky', volumeScale=2.0 * const.spikyVolumeScale)
    solver = TankSolver(
        params,
        particles=ParticleState.fromPositions([[0.0, 0.0]]),
        densityKernel=kernel,
        viscosityKernel=createKernel('poly6'),
    )

    solver.step(dt)

    defaultDensity = DensityField().selfDensity(params.particleMass, params.smoothingRadius)
    assert solver.particles.densities[0] == pytest.approx(defaultDensity / 2.0)


def testBallPhysicsToggle():
    '''Enabling ball physics creates the disc, disabling it removes it.'''
    solver = TankSolver(SimulationParameters(), nParticles=10)
    assert solver.disc is None

    solver.setParameters(SimulationParameters(applyBallPhysics=True))
    np.testing.assert_allclose(solver.discPosition, [-5.0, 2.0])

    solver.setParameters(SimulationParameters())
    assert solver.disc is None
    assert solver.currentState.discPosition is None


def testReset():
    '''reset() restores the initial layout and clock.'''
    solver = TankSolver(SimulationParameters(), nParticles=100)
    initial = solver.positions.copy()

    _runSteps(solver, 5)
    solver.reset()

    np.testing.assert_array_equal(solver.positions, initial)
    np.testing.assert_array_equal(solver.velocities, 0.0)
    assert solver.time == 0.0
    assert solver.stepCount == 0


def testParametersReadPerStep():
    '''New parameters take effect on the next step.'''
    solver = TankSolver(SimulationParameters(gravity=0.0), particles=ParticleState.fromPositions([[0.0, 0.0]]))
    solver.step(dt)
    np.testing.assert_array_equal(solver.velocities, 0.0)

    solver.setParameters(SimulationParameters(gravity=6.0))
    solver.step(dt)
    assert solver.velocities[0, 1] == pytest.approx(-6.0 * dt)


def testStateDiagnostics():
    '''Step diagnostics match the particle arrays.'''
    params = SimulationParameters()
    solver = TankSolver(params, nParticles=200)
    state = solver.step(dt)

    p = solver.particles
    assert state.step == 1
    assert state.dt == dt
    assert state.kineticEnergy == pytest.approx(0.5 * np.sum(p.velocities ** 2))
    assert state.maxVelocity == pytest.approx(np.max(np.linalg.norm(p.velocities, axis=1)))
    assert state.minDensity == pytest.approx(np.min(p.densities))
    assert state.totalEnergy == pytest.approx(state.kineticEnergy + state.potentialEnergy)
    assert solver.lastPairs is not None
