# -- SPH Time Integration Schemes -- #

'''
Time integration for the particle arrays and the rigid disc.

Implements the Symplectic Euler (semi-implicit Euler) scheme split
into its two halves, because the solver interleaves them with the
density/force passes and collision handling:

    v(t+dt) = v(t) + a(t) * dt      (kick)
    x(t+dt) = x(t) + v(t+dt) * dt   (drift)

The drift uses the *updated* velocity, which is what makes the scheme
symplectic. Also provides the gravity-only lookahead used to build
predicted positions.

References:
-----------
Hairer et al. (2003) -- Geometric Numerical Integration
'''

from __future__ import annotations

from typing import Protocol

import numpy as np

from sphSandbox.sph.particles import RigidDisc


######################################################################
# -- Time Integrator Protocol -- #
######################################################################

class TimeIntegrator(Protocol):
    '''Protocol for split kick/drift integration schemes used by the tank solver.'''

    def kick(self, velocities: np.ndarray, accelerations: np.ndarray, dt: float) -> None:
        '''Update velocities in place from accelerations.'''
        ...

    def drift(self, positions: np.ndarray, velocities: np.ndarray, dt: float) -> None:
        '''Update positions in place from velocities.'''
        ...

    def applyGravity(self, velocities: np.ndarray, gravity: float, dt: float) -> None:
        '''Apply the vertical gravity kick in place.'''
        ...

    def predict(
        self,
        positions: np.ndarray,
        velocities: np.ndarray,
        lookahead: float,
        out: np.ndarray,
    ) -> np.ndarray:
        '''Write look-ahead positions into out.'''
        ...

    def integrateDisc(
        self, disc: RigidDisc, gravity: float, reaction: np.ndarray, dt: float
    ) -> None:
        '''Advance the rigid disc in place.'''
        ...


######################################################################
# -- Symplectic Euler Integrator -- #
######################################################################

class SymplecticEuler:
    '''
    Symplectic (semi-implicit) Euler integrator.

    kick() and drift() are called separately by the solver; calling
    kick then drift is one full symplectic Euler step.
    '''

    def kick(self, velocities: np.ndarray, accelerations: np.ndarray, dt: float) -> None:
        '''
        Kick: v += a * dt.

        Parameters:
        -----------
        velocities : np.ndarray
            Velocities, shape (N, 2), modified in place
        accelerations : np.ndarray
            Accelerations, shape (N, 2) or (2,)
        dt : float
            Time step size [s]
        '''
        velocities += accelerations * dt

    def drift(self, positions: np.ndarray, velocities: np.ndarray, dt: float) -> None:
        '''
        Drift: x += v * dt.

        Parameters:
        -----------
        positions : np.ndarray
            Positions, shape (N, 2), modified in place
        velocities : np.ndarray
            Velocities, shape (N, 2)
        dt : float
            Time step size [s]
        '''
        positions += velocities * dt

    def applyGravity(self, velocities: np.ndarray, gravity: float, dt: float) -> None:
        '''
        Vertical gravity kick: v_y -= g * dt.

        Parameters:
        -----------
        velocities : np.ndarray
            Velocities, shape (N, 2) or (2,), modified in place
        gravity : float
            Downward acceleration magnitude
        dt : float
            Time step size [s]
        '''
        velocities[..., 1] -= gravity * dt

    @staticmethod
    def predict(
        positions: np.ndarray,
        velocities: np.ndarray,
        lookahead: float,
        out: np.ndarray,
    ) -> np.ndarray:
        '''
        Predicted positions x + v * lookahead.

        Parameters:
        -----------
        positions : np.ndarray
            Positions, shape (N, 2)
        velocities : np.ndarray
            Velocities, shape (N, 2)
        lookahead : float
            Extrapolation time [s]
        out : np.ndarray
            Destination array, shape (N, 2)

        Returns:
        --------
        np.ndarray : out
        '''
        np.multiply(velocities, lookahead, out=out)
        out += positions
        return out

    def integrateDisc(
        self, disc: RigidDisc, gravity: float, reaction: np.ndarray, dt: float
    ) -> None:
        '''
        Advance the disc under gravity and the fluid reaction.

        v += g * dt + reaction / M, then x += v * dt.

        Parameters:
        -----------
        disc : RigidDisc
            The rigid disc, modified in place
        gravity : float
            Downward acceleration magnitude
        reaction : np.ndarray
            Summed normal velocity projections of the particles that
            struck the disc this step, shape (2,)
        dt : float
            Time step size [s]
        '''
        self.applyGravity(disc.velocity, gravity, dt)
        disc.velocity += reaction / disc.mass
        self.drift(disc.position, disc.velocity, dt)
