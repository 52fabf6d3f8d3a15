# -- Tank Scenarios -- #

'''
Headless scenario presets for the interactive tank.
'''

from sphSandbox.scenarios.interactiveTank import TankScenarioConfig, createTankScenario
