# -- Parameter and Input Tests -- #

'''
Parameter snapshot validation, presets, and JSON configuration.
'''

import json

import pytest

from sphSandbox.sph.protocols import InteractionInput, SimulationParameters


def testDefaults():
    params = SimulationParameters.default()
    assert params.gravity == 5.0
    assert params.smoothingRadius == 0.35
    assert params.targetDensity == 36.0
    assert params.pressureMultiplier == 26.0
    assert params.boundsWidth == 16.0
    assert params.boundsHeight == 9.0
    assert params.ballMass == 80.0
    assert not params.applyBallPhysics


def testPresets():
    tank = SimulationParameters.fromPreset('tank')
    assert tank.ballMass == 1.0
    assert tank.particleRadius == 0.1
    plate = SimulationParameters.fromPreset('plate')
    assert plate.gravity == 0.0
    assert plate.interactionRadius == 2.8

    with pytest.raises(ValueError):
        SimulationParameters.fromPreset('lake')


@pytest.mark.parametrize('field, value', [
    ('smoothingRadius', 0.0),
    ('smoothingRadius', float('nan')),
    ('particleMass', -1.0),
    ('boundsWidth', 0.0),
    ('ballMass', 0.0),
    ('rampSize', -0.5),
])
def testInvalidParameters(field, value):
    '''Structural values must be positive and finite.'''
    with pytest.raises(ValueError):
        SimulationParameters(**{field: value})


def testGridShape():
    params = SimulationParameters()
    assert params.gridShape == (26, 46)
    assert params.bucketCount == 1196


def testClamped():
    '''Out-of-range tunables are clamped and the ramp limited to the width.'''
    params = SimulationParameters(
        gravity=-3.0, interactionStrength=5000.0, boundsWidth=30.0, rampSize=40.0,
    ).clamped()
    assert params.gravity == 0.0
    assert params.interactionStrength == 1000.0
    assert params.boundsWidth == 16.0
    assert params.rampSize == 16.0


def testWithRampPercent():
    params = SimulationParameters().withRampPercent(25.0)
    assert params.rampSize == pytest.approx(4.0)
    assert SimulationParameters().withRampPercent(150.0).rampSize == pytest.approx(16.0)


def testParametersFrozen():
    params = SimulationParameters()
    with pytest.raises(AttributeError):
        params.gravity = 1.0


def testToDict():
    data = SimulationParameters().toDict()
    assert data['gravity'] == 5.0
    assert 'useSpatialGrid' in data
    json.dumps(data)


def testFromJson(tmp_path):
    '''Sections override the preset; rampPercent sets the ramp size.'''
    config = {
        'simulation': {'preset': 'plate'},
        'fluid': {'viscosityStrength': 1.5},
        'sph': {'smoothingRadius': 0.4, 'useSpatialGrid': False},
        'tank': {'width': 12.0, 'rampPercent': 50.0},
        'interaction': {'strength': 400.0},
        'ball': {'enabled': True, 'mass': 20.0},
    }
    path = tmp_path / 'tank.json'
    path.write_text(json.dumps(config))

    params = SimulationParameters.fromJson(str(path))

    assert params.gravity == 0.0
    assert params.viscosityStrength == 1.5
    assert params.smoothingRadius == 0.4
    assert not params.useSpatialGrid
    assert params.boundsWidth == 12.0
    assert params.rampSize == pytest.approx(6.0)
    assert params.interactionStrength == 400.0
    assert params.applyBallPhysics
    assert params.ballMass == 20.0


def testInteractionInput():
    assert not InteractionInput().isActive
    assert not InteractionInput().isDraggingDisc

    pointer = InteractionInput.at(1, 2)
    assert pointer.isActive
    assert pointer.point == (1.0, 2.0)
    assert not pointer.isDraggingDisc

    drag = InteractionInput.dragDisc(-3.0, 0.5)
    assert drag.isDraggingDisc
    assert not drag.isActive
