# -- Simulation Frame Exporter -- #

'''
Exports tank simulation frames as JSON for visualization.

Collects particle snapshots during a run and writes them to a JSON
file that a browser viewer (or a notebook) can replay.

The output format stores particle positions, speeds, densities, and
the disc pose for each frame, plus the energy history and the
parameter snapshot of the run.
'''

from __future__ import annotations

import json
import os
from datetime import datetime

import numpy as np

from sphSandbox.sph.protocols import SimulationParameters, SimulationState
from sphSandbox.sph.particles import ParticleState, RigidDisc


class FrameExporter:
    '''
    Collects and exports simulation frame data as JSON.

    Usage:
        exporter = FrameExporter()
        # During simulation loop:
        exporter.addFrame(state, particles, disc)
        # After simulation:
        exporter.export(params, outputDir='output')

    Output JSON format:
    {
        "meta": { "type": "sphSandbox", "nFrames": 61, "created": "...", ... },
        "parameters": { "gravity": 5.0, ... },
        "frames": [
            {
                "time": 0.0,
                "step": 0,
                "positions": [[x0, y0], [x1, y1], ...],
                "speeds": [v0, v1, ...],
                "densities": [rho0, rho1, ...],
                "disc": [x, y] or null
            },
            ...
        ],
        "energy": {
            "times": [...],
            "kinetic": [...],
            "potential": [...],
            "total": [...]
        }
    }
    '''

    def __init__(self) -> None:
        self._frames: list[dict] = []
        self._energyHistory: dict[str, list[float]] = {
            'times': [],
            'kinetic': [],
            'potential': [],
            'total': [],
        }

    @property
    def nFrames(self) -> int:
        '''Number of collected frames.'''
        return len(self._frames)

    @property
    def frames(self) -> list[dict]:
        '''Collected frames.'''
        return self._frames

    @property
    def energyHistory(self) -> dict[str, list[float]]:
        '''Energy series recorded with each frame.'''
        return self._energyHistory

    def addFrame(
        self,
        state: SimulationState,
        particles: ParticleState,
        disc: RigidDisc | None = None,
    ) -> None:
        '''
        Record a simulation frame.

        Parameters:
        -----------
        state : SimulationState
            Current simulation diagnostics
        particles : ParticleState
            Current particle arrays
        disc : RigidDisc | None
            Rigid disc, if present
        '''
        frame = {
            'time': round(state.time, 6),
            'step': state.step,
            'positions': np.round(particles.positions, 5).tolist(),
            'speeds': np.round(particles.speeds(), 5).tolist(),
            'densities': np.round(particles.densities, 3).tolist(),
            'disc': None if disc is None else np.round(disc.position, 5).tolist(),
        }
        self._frames.append(frame)

        # Track energy history
        self._energyHistory['times'].append(round(state.time, 6))
        self._energyHistory['kinetic'].append(round(state.kineticEnergy, 6))
        self._energyHistory['potential'].append(round(state.potentialEnergy, 6))
        self._energyHistory['total'].append(round(state.totalEnergy, 6))

    def export(
        self,
        params: SimulationParameters,
        outputDir: str = 'sphSandbox/output',
        scenarioName: str = 'tank',
    ) -> str:
        '''
        Write all collected frames to a JSON file.

        Parameters:
        -----------
        params : SimulationParameters
            Parameter snapshot for metadata
        outputDir : str
            Output directory path
        scenarioName : str
            Scenario name for the filename

        Returns:
        --------
        str : Path to the exported JSON file
        '''
        os.makedirs(outputDir, exist_ok=True)

        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        filename = f'sphSandbox_{scenarioName}_{timestamp}.json'
        filepath = os.path.join(outputDir, filename)

        output = {
            'meta': {
                'type': 'sphSandbox',
                'nFrames': len(self._frames),
                'nParticles': len(self._frames[0]['positions']) if self._frames else 0,
                'boundsWidth': params.boundsWidth,
                'boundsHeight': params.boundsHeight,
                'rampSize': params.rampSize,
                'particleRadius': params.particleRadius,
                'discRadius': params.discRadius if params.applyBallPhysics else None,
                'created': datetime.now().isoformat(),
            },
            'parameters': params.toDict(),
            'frames': self._frames,
            'energy': self._energyHistory,
        }

        with open(filepath, 'w') as f:
            json.dump(output, f, indent=None, separators=(',', ':'))

        return filepath
