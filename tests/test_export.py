# -- Export and Visualization Tests -- #

'''
JSON frame export, speed colouring, and Plotly figures.
'''

import json

import numpy as np
import plotly.graph_objects as go
import pytest

from sphSandbox.export.frameExporter import FrameExporter
from sphSandbox.sph.particles import ParticleState, RigidDisc
from sphSandbox.sph.protocols import SimulationParameters
from sphSandbox.sph.tankSolver import TankSolver
from sphSandbox.visualization.framePlots import hexToRgb, plotEnergyHistory, plotFrame, speedColors


def testExportRoundTrip(tmp_path):
    '''Exported JSON carries metadata, parameters, frames, and energy.'''
    params = SimulationParameters(applyBallPhysics=True)
    solver = TankSolver(params, nParticles=50)
    exporter = FrameExporter()

    exporter.addFrame(solver.currentState, solver.particles, solver.disc)
    state = solver.step(1.0 / 60.0)
    exporter.addFrame(state, solver.particles, solver.disc)

    path = exporter.export(params, outputDir=str(tmp_path), scenarioName='unit')
    with open(path, 'r') as f:
        data = json.load(f)

    assert data['meta']['nFrames'] == 2
    assert data['meta']['nParticles'] == 50
    assert data['parameters']['gravity'] == 5.0
    assert len(data['frames'][1]['positions']) == 50
    assert data['frames'][1]['step'] == 1
    assert len(data['frames'][1]['disc']) == 2
    assert len(data['energy']['total']) == 2


def testExportWithoutDisc(tmp_path):
    params = SimulationParameters()
    solver = TankSolver(params, nParticles=10)
    exporter = FrameExporter()
    exporter.addFrame(solver.step(1.0 / 60.0), solver.particles)

    assert exporter.nFrames == 1
    assert exporter.frames[0]['disc'] is None


def testSpeedColorsEndpoints():
    '''Rest maps to the slow colour and fast particles saturate.'''
    velocities = np.array([[0.0, 0.0], [4.5, 0.0], [30.0, 40.0]])
    colors = speedColors(velocities)
    assert colors[0] == 'rgb(34, 221, 255)'
    assert colors[1] == 'rgb(170, 0, 255)'
    assert colors[2] == 'rgb(170, 0, 255)'


def testSpeedColorsMidpoint():
    colors = speedColors(np.array([[0.0, 1.0]]), '#000000', '#FFFFFF', maxSpeed=2.0)
    assert colors[0] == 'rgb(128, 128, 128)'


def testHexToRgb():
    np.testing.assert_array_equal(hexToRgb('#22DDFF'), [34.0, 221.0, 255.0])
    with pytest.raises(ValueError):
        hexToRgb('#FFF')


def testPlotFrame():
    '''Tank, ramp, fluid, disc, and pointer traces are drawn.'''
    params = SimulationParameters(rampSize=3.0)
    particles = ParticleState.createPacked(nParticles=20)
    disc = RigidDisc.createDefault(mass=1.0)

    fig = plotFrame(particles, params, disc, interactionPoint=(0.0, 1.0))

    assert isinstance(fig, go.Figure)
    names = [trace.name for trace in fig.data]
    assert names == ['Tank', 'Ramp', 'Fluid', 'Disc', 'Pointer']
    assert len(fig.data[2].x) == 20


def testPlotEnergyHistory():
    energy = {'times': [0.0, 0.1], 'kinetic': [0.0, 1.0], 'potential': [5.0, 4.0], 'total': [5.0, 5.0]}
    fig = plotEnergyHistory(energy)
    assert len(fig.data) == 3
