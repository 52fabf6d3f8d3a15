# -- Visualization Theme -- #

'''
Centralized dark-mode theme for the tank figures.

Change colors or template here to restyle every plot at once.
'''

from sphSandbox import constants as const

# Plotly template
TEMPLATE = 'plotly_dark'

# Particle speed gradient (slow -> fast)
SLOW_COLOR = const.gradientSlowColor
FAST_COLOR = const.gradientFastColor

# Tank geometry
WALL_COLOR = '#E0E0E0'
RAMP_COLOR = '#A1887F'
DISC_COLOR = '#FFA726'
POINTER_COLOR = '#EF5350'

# Energy history series
KINETIC_COLOR = '#42A5F5'
POTENTIAL_COLOR = '#66BB6A'
TOTAL_COLOR = '#E0E0E0'
