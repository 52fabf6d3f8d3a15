# -- Runner and Scenario Tests -- #

'''
Headless scenarios and the command-line runner.
'''

import os

import numpy as np
import pytest

from sphSandbox.runner import TankRunner, buildParser, main
from sphSandbox.scenarios.interactiveTank import TankScenarioConfig, createTankScenario
from sphSandbox.sph.protocols import SimulationParameters


def testQuickScenario():
    params, particles, solver = createTankScenario(TankScenarioConfig.quick())
    assert particles.nParticles == 400
    assert solver.parameters is params
    assert solver.disc is None


def testBallAndRampScenario():
    params, _, solver = createTankScenario(TankScenarioConfig.ballAndRamp())
    assert params.applyBallPhysics
    assert params.ballMass == 1.0
    assert params.rampSize == pytest.approx(4.0)
    assert solver.disc is not None
    # The lattice keeps its default spacing and fits inside the tank
    assert params.particleRadius == 0.1
    assert np.all(np.abs(solver.positions) <= params.halfExtents)


def testScenarioKeepsGivenParameters():
    base = SimulationParameters(gravity=2.0)
    params, _, _ = createTankScenario(TankScenarioConfig(nParticles=10), base)
    assert params.gravity == 2.0


def testParser():
    args = buildParser().parse_args(['--preset', 'plate', '--steps', '7', '--interact', '1', '-2', '--ball'])
    assert args.preset == 'plate'
    assert args.steps == 7
    assert args.interact == [1.0, -2.0]
    assert args.ball
    assert not args.no_export


def testRunnerSummary(capsys):
    '''A short run reports progress and returns the final state.'''
    config = TankScenarioConfig(nParticles=60, nSteps=4, outputInterval=2)
    results = TankRunner().run(config, doExport=False)

    output = capsys.readouterr().out
    assert 'SIMULATION SUMMARY' in output
    assert results['finalState'].step == 4
    assert results['nFrames'] == 3
    assert results['exportPath'] is None


def testMainWritesOutputs(tmp_path, capsys):
    '''The CLI exports frames and figures to the output directory.'''
    main([
        '--scenario', 'quick', '--particles', '40', '--steps', '3',
        '--ball', '--ramp', '20', '--interact', '0', '1',
        '--plot', '--output-dir', str(tmp_path),
    ])

    written = sorted(os.listdir(tmp_path))
    assert any(name.endswith('.json') for name in written)
    assert sum(name.endswith('.html') for name in written) == 2
    assert 'EXPORTING FRAME DATA' in capsys.readouterr().out
