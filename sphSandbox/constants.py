# -- Constants for the Interactive SPH Tank -- #

'''
Default physical and numerical constants for the interactive tank.

Units are "scene units": lengths are measured on the default
16 x 9 tank, so values are not SI. Everything here is a default
that SimulationParameters can override.

References:
-----------
Mueller et al. (2003) -- Particle-based fluid simulation for interactive
    applications
Clavet et al. (2005) -- Particle-based viscoelastic fluid simulation
'''

import math

#--------------------------------------------------------------------#
# -- Particle Layout -- #
#--------------------------------------------------------------------#

# Number of fluid particles
nParticles: int = 1600

# Particle collision radius
particleRadius: float = 0.05

# Initial packing: particles per row and spacing multiplier on the default
# radius (the lattice does not follow per-preset radii)
initialColumns: int = 40
initialSpacingFactor: float = 2.5

#--------------------------------------------------------------------#
# -- Tank Geometry -- #
#--------------------------------------------------------------------#

# Largest tank the host can display [scene units]
maxBoundsWidth: float = 16.0
maxBoundsHeight: float = 9.0

#--------------------------------------------------------------------#
# -- Rigid Disc -- #
#--------------------------------------------------------------------#

discRadius: float = 0.7
discInitialPosition: tuple[float, float] = (-5.0, 2.0)

#--------------------------------------------------------------------#
# -- SPH Numerical Parameters -- #
#--------------------------------------------------------------------#

# Lookahead used to build predicted positions [s]
# Independent of the host dt
predictionLookahead: float = 1.0 / 30.0

# Kernel volume scales: V(h) = scale * h^n
# Spiky:  (h - d)^2 / (pi * h^4 / 6)
# Poly6:  (h^2 - d^2)^3 / (pi * h^8 / 4)
spikyVolumeScale: float = math.pi / 6.0
poly6VolumeScale: float = math.pi / 4.0

# Spatial hash primes for combining cell coordinates
hashPrimeX: int = 4591
hashPrimeY: int = 3643

# Seed for the zero-distance tie-break directions
defaultRandomSeed: int = 0

#--------------------------------------------------------------------#
# -- Visualization -- #
#--------------------------------------------------------------------#

# Speed mapped to the "fast" end of the colour gradient
colorMaxSpeed: float = 4.5
gradientSlowColor: str = '#22DDFF'
gradientFastColor: str = '#AA00FF'
