# -- SPH Tank Runner -- #

'''
Command-line entry point for headless tank runs.

Builds a scenario from a preset or JSON configuration, steps the
solver with a fixed dt, displays progress, and optionally exports
frame data and Plotly figures.

Usage:
    python -m sphSandbox                                  # Standard 1600-particle tank
    python -m sphSandbox --scenario quick                 # Small quick check
    python -m sphSandbox --preset plate --steps 600       # Zero-gravity blob
    python -m sphSandbox --ball --ramp 25                 # Disc and 25% ramp
    python -m sphSandbox --interact 0 1 --plot            # Pull toward (0, 1), save figures
    python -m sphSandbox --config configs/tank.json
'''

from __future__ import annotations

import argparse
import os
import time as timeModule
from dataclasses import replace

from sphSandbox.sph.protocols import InteractionInput, SimulationParameters
from sphSandbox.scenarios.interactiveTank import TankScenarioConfig, createTankScenario
from sphSandbox.export.frameExporter import FrameExporter
from sphSandbox.visualization.framePlots import plotEnergyHistory, plotFrame


#--------------------------------------------------------------------#
# -- CLI Argument Parser -- #
#--------------------------------------------------------------------#

def buildParser() -> argparse.ArgumentParser:
    '''Build the CLI argument parser.'''
    parser = argparse.ArgumentParser(
        description='sphSandbox -- interactive 2D SPH tank, headless',
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        '--config', type=str, default=None,
        help='Path to JSON configuration file',
    )
    parser.add_argument(
        '--scenario', type=str, default='standard',
        choices=['quick', 'standard', 'ballAndRamp'],
        help='Run settings (default: standard)',
    )
    parser.add_argument(
        '--preset', type=str, default=None,
        choices=['default', 'tank', 'plate'],
        help='Parameter preset (default: the scenario preset)',
    )
    parser.add_argument(
        '--steps', type=int, default=None,
        help='Number of steps (default: the scenario value)',
    )
    parser.add_argument(
        '--dt', type=float, default=None,
        help='Fixed step size in seconds (default: 1/60)',
    )
    parser.add_argument(
        '--particles', type=int, default=None,
        help='Number of particles (default: the scenario value)',
    )
    parser.add_argument(
        '--ball', action='store_true',
        help='Enable the rigid disc',
    )
    parser.add_argument(
        '--ramp', type=float, default=None,
        help='Ramp size in percent of the tank width',
    )
    parser.add_argument(
        '--interact', type=float, nargs=2, default=None, metavar=('X', 'Y'),
        help='Hold the pointer interaction at (X, Y) for the whole run',
    )
    parser.add_argument(
        '--no-export', action='store_true',
        help='Skip frame data export',
    )
    parser.add_argument(
        '--output-dir', type=str, default='sphSandbox/output',
        help='Output directory for exported frames (default: sphSandbox/output)',
    )
    parser.add_argument(
        '--plot', action='store_true',
        help='Write the final frame and energy history as HTML figures',
    )

    return parser


#--------------------------------------------------------------------#
# -- Runner Class -- #
#--------------------------------------------------------------------#

class TankRunner:
    '''
    Runs a headless tank simulation and stores results.

    Handles the full pipeline: scenario setup, simulation loop
    with progress reporting, and optional frame and figure export.
    '''

    def __init__(self) -> None:
        self._exporter: FrameExporter = FrameExporter()

    @property
    def exporter(self) -> FrameExporter:
        '''Frames collected by the last run.'''
        return self._exporter

    def run(
        self,
        tankConfig: TankScenarioConfig,
        params: SimulationParameters | None = None,
        interaction: InteractionInput | None = None,
        doExport: bool = True,
        doPlot: bool = False,
        exportDir: str = 'sphSandbox/output',
    ) -> dict:
        '''
        Run a tank simulation.

        Parameters:
        -----------
        tankConfig : TankScenarioConfig
            Scenario configuration
        params : SimulationParameters | None
            Parameters overriding the scenario preset
        interaction : InteractionInput | None
            Pointer input held for every step
        doExport : bool
            Whether to export frame data
        doPlot : bool
            Whether to write HTML figures
        exportDir : str
            Output directory for exports

        Returns:
        --------
        dict : Simulation results summary
        '''
        print()
        print('=' * 62)
        print('  SPHSANDBOX -- INTERACTIVE TANK (HEADLESS)')
        print('=' * 62)
        print()

        #--------------------------------------------------------------------#
        # Scenario Setup
        #--------------------------------------------------------------------#
        print('-' * 62)
        print('  SCENARIO SETUP')
        print('-' * 62)

        params, particles, solver = createTankScenario(tankConfig, params)

        print(f'  Preset:            {tankConfig.preset:>8s}')
        print(f'  Tank Width:        {params.boundsWidth:8.3f}')
        print(f'  Tank Height:       {params.boundsHeight:8.3f}')
        print(f'  Ramp Size:         {params.rampSize:8.3f}')
        print(f'  Smoothing Radius:  {params.smoothingRadius:8.3f}')
        print(f'  Target Density:    {params.targetDensity:8.3f}')
        print(f'  Pressure Mult.:    {params.pressureMultiplier:8.3f}')
        print(f'  Viscosity:         {params.viscosityStrength:8.3f}')
        print(f'  Gravity:           {params.gravity:8.3f}')
        print(f'  Hash Buckets:      {params.bucketCount:8d}')
        print(f'  Particles:         {particles.nParticles:8d}')
        print(f'  Ball Physics:      {"on" if params.applyBallPhysics else "off":>8s}')
        if params.applyBallPhysics:
            print(f'  Ball Mass:         {params.ballMass:8.2f}')
        if interaction is not None and interaction.isActive:
            print(f'  Pointer:           ({interaction.point[0]:.2f}, {interaction.point[1]:.2f})')
        print(f'  Step Size:         {tankConfig.dt:8.4f} s')
        print(f'  Steps:             {tankConfig.nSteps:8d}')
        print()

        # Record initial frame
        self._exporter.addFrame(solver.currentState, solver.particles, solver.disc)

        #--------------------------------------------------------------------#
        # Simulation Loop
        #--------------------------------------------------------------------#
        print('-' * 62)
        print('  RUNNING SIMULATION')
        print('-' * 62)
        print()
        print(f'  {"Time":>8}  {"Step":>8}  {"MaxVel":>8}  {"DensErr":>8}  {"Energy":>10}  {"DiscY":>8}')
        print(f'  {"(s)":>8}  {"":>8}  {"":>8}  {"(%)":>8}  {"":>10}  {"":>8}')
        print('  ' + '-' * 58)

        wallClockStart = timeModule.time()
        printInterval = max(1, tankConfig.nSteps // 20)

        state = solver.currentState
        for stepIndex in range(1, tankConfig.nSteps + 1):
            state = solver.step(tankConfig.dt, interaction)

            # Export frame at output intervals
            if stepIndex % tankConfig.outputInterval == 0:
                self._exporter.addFrame(state, solver.particles, solver.disc)

            # Print progress at regular intervals
            if stepIndex % printInterval == 0:
                discY = '--' if state.discPosition is None else f'{state.discPosition[1]:8.3f}'
                print(
                    f'  {state.time:8.4f}  {state.step:8d}  '
                    f'{state.maxVelocity:8.4f}  {state.maxDensityError * 100:8.2f}  '
                    f'{state.totalEnergy:10.2f}  {discY:>8}'
                )

        wallClockEnd = timeModule.time()
        wallClockSeconds = wallClockEnd - wallClockStart

        finalState = solver.currentState

        print()
        print(f'  Simulation complete.')
        print(f'  Total steps:       {finalState.step:8d}')
        print(f'  Wall-clock time:   {wallClockSeconds:8.1f} s')
        print(f'  Frames collected:  {self._exporter.nFrames:8d}')
        print()

        #--------------------------------------------------------------------#
        # Export
        #--------------------------------------------------------------------#
        exportPath = None
        if doExport:
            print('-' * 62)
            print('  EXPORTING FRAME DATA')
            print('-' * 62)

            exportPath = self._exporter.export(
                params=params,
                outputDir=exportDir,
                scenarioName=tankConfig.preset,
            )
            print(f'  Exported to: {exportPath}')
            print()

        figurePaths = []
        if doPlot:
            print('-' * 62)
            print('  WRITING FIGURES')
            print('-' * 62)

            os.makedirs(exportDir, exist_ok=True)
            point = interaction.point if interaction is not None else None
            figures = {
                'finalFrame': plotFrame(solver.particles, params, solver.disc, point),
                'energyHistory': plotEnergyHistory(self._exporter.energyHistory),
            }
            for name, fig in figures.items():
                path = os.path.join(exportDir, f'sphSandbox_{tankConfig.preset}_{name}.html')
                fig.write_html(path)
                figurePaths.append(path)
                print(f'  Wrote: {path}')
            print()

        #--------------------------------------------------------------------#
        # Summary
        #--------------------------------------------------------------------#
        print('=' * 62)
        print('  SIMULATION SUMMARY')
        print('=' * 62)
        print(f'  Final KE:          {finalState.kineticEnergy:10.4f}')
        print(f'  Final PE:          {finalState.potentialEnergy:10.4f}')
        print(f'  Final Total E:     {finalState.totalEnergy:10.4f}')
        print(f'  Max Density Error: {finalState.maxDensityError * 100:8.2f} %')
        print(f'  Min Density:       {finalState.minDensity:8.4f}')
        print(f'  Max Velocity:      {finalState.maxVelocity:8.4f}')
        if finalState.discPosition is not None:
            print(
                f'  Disc Position:     ({finalState.discPosition[0]:.3f}, '
                f'{finalState.discPosition[1]:.3f})'
            )
        print('=' * 62)
        print()

        return {
            'finalState': finalState,
            'wallClockSeconds': wallClockSeconds,
            'nFrames': self._exporter.nFrames,
            'exportPath': exportPath,
            'figurePaths': figurePaths,
        }


#--------------------------------------------------------------------#
# -- CLI Entry Point -- #
#--------------------------------------------------------------------#

def main(argv: list[str] | None = None) -> None:
    '''CLI entry point.'''
    parser = buildParser()
    args = parser.parse_args(argv)

    scenarioPresets = {
        'quick': TankScenarioConfig.quick,
        'standard': TankScenarioConfig.standard,
        'ballAndRamp': TankScenarioConfig.ballAndRamp,
    }
    tankConfig = scenarioPresets[args.scenario]()

    overrides = {}
    if args.preset is not None:
        overrides['preset'] = args.preset
    if args.steps is not None:
        overrides['nSteps'] = args.steps
    if args.dt is not None:
        overrides['dt'] = args.dt
    if args.particles is not None:
        overrides['nParticles'] = args.particles
    if args.ball:
        overrides['applyBallPhysics'] = True
    if args.ramp is not None:
        overrides['rampPercent'] = args.ramp
    tankConfig = replace(tankConfig, **overrides)

    params = None
    if args.config:
        params = SimulationParameters.fromJson(args.config)

    interaction = None
    if args.interact is not None:
        interaction = InteractionInput.at(*args.interact)

    runner = TankRunner()
    runner.run(
        tankConfig,
        params=params,
        interaction=interaction,
        doExport=not args.no_export,
        doPlot=args.plot,
        exportDir=args.output_dir,
    )


if __name__ == '__main__':
    main()
