# -- SPH Boundary Conditions -- #

'''
Collision resolution against the tank, the ramp, and the rigid disc.

The tank is an axis-aligned box centered on the origin. Positions are
clamped per axis to keep a particle of radius r fully inside; the
velocity component of a clamped axis is turned back into the tank and
scaled by the collision damping.

The optional ramp cuts the bottom-left corner along the segment from
(-W/2, -H/2 + s) to (-W/2 + s, -H/2). Particles inside the cut-off
triangle are projected onto the segment, moved out by r along the
ramp normal (1, 1) / sqrt(2), and bounced off it.

The rigid disc pushes overlapping particles radially out to the
contact distance R + r and bounces them. The pre-collision velocities
of the displaced particles, projected on the center-to-particle line,
are summed into the reaction the disc receives. The disc itself obeys
the same box and ramp model.

All corrections are unconditional geometric operations on the arrays,
applied in place.
'''

from __future__ import annotations

import math

import numpy as np

from sphSandbox.sph.particles import RigidDisc
from sphSandbox.sph.protocols import SimulationParameters

# Outward normal of the ramp
RAMP_NORMAL: np.ndarray = np.array([1.0, 1.0]) / math.sqrt(2.0)


######################################################################
# -- Geometry Helpers -- #
######################################################################

def pointsInTriangle(
    points: np.ndarray, a: np.ndarray, b: np.ndarray, c: np.ndarray
) -> np.ndarray:
    '''
    Strict barycentric point-in-triangle test.

    Points on an edge are outside.

    Parameters:
    -----------
    points : np.ndarray
        Points, shape (N, 2)
    a, b, c : np.ndarray
        Triangle vertices, shape (2,)

    Returns:
    --------
    np.ndarray : Boolean mask, shape (N,)
    '''
    denominator = (b[1] - c[1]) * (a[0] - c[0]) + (c[0] - b[0]) * (a[1] - c[1])
    if denominator == 0.0:
        return np.zeros(len(points), dtype=bool)

    px = points[:, 0] - c[0]
    py = points[:, 1] - c[1]
    alpha = ((b[1] - c[1]) * px + (c[0] - b[0]) * py) / denominator
    beta = ((c[1] - a[1]) * px + (a[0] - c[0]) * py) / denominator
    gamma = 1.0 - alpha - beta
    return (alpha > 0.0) & (beta > 0.0) & (gamma > 0.0)


def closestPointsOnSegment(
    points: np.ndarray, start: np.ndarray, end: np.ndarray
) -> np.ndarray:
    '''
    Closest point on the segment [start, end] for each point.

    Parameters:
    -----------
    points : np.ndarray
        Points, shape (N, 2)
    start, end : np.ndarray
        Segment endpoints, shape (2,)

    Returns:
    --------
    np.ndarray : Closest points, shape (N, 2)
    '''
    segment = end - start
    lengthSq = float(np.dot(segment, segment))
    if lengthSq == 0.0:
        return np.broadcast_to(start, points.shape).copy()

    t = np.clip((points - start) @ segment / lengthSq, 0.0, 1.0)
    return start + t[:, np.newaxis] * segment


def reflectDamped(
    velocities: np.ndarray, normals: np.ndarray, damping: float
) -> np.ndarray:
    '''
    Bounce velocities off surfaces with the given outward normals.

    Velocities moving into the surface (v . n < 0) are mirrored about
    the surface and scaled by damping; the others are returned as is.

    Parameters:
    -----------
    velocities : np.ndarray
        Velocities, shape (N, 2)
    normals : np.ndarray
        Unit outward normals, shape (N, 2) or (2,)
    damping : float
        Collision damping in [0, 1]

    Returns:
    --------
    np.ndarray : New velocities, shape (N, 2)
    '''
    normals = np.broadcast_to(normals, velocities.shape)
    normalSpeed = np.sum(velocities * normals, axis=1)
    incoming = normalSpeed < 0.0

    result = velocities.copy()
    reflected = velocities[incoming] - 2.0 * normalSpeed[incoming, np.newaxis] * normals[incoming]
    result[incoming] = reflected * damping
    return result


######################################################################
# -- Boundary Handler -- #
######################################################################

class BoundaryHandler:
    '''
    Static tank boundary (box + optional ramp) and rigid-disc contact.

    Parameters:
    -----------
    boundsWidth : float
        Tank width W
    boundsHeight : float
        Tank height H
    rampSize : float
        Ramp leg length s (0 disables the ramp)
    collisionDamping : float
        Fraction of normal velocity kept on a bounce
    '''

    def __init__(
        self,
        boundsWidth: float,
        boundsHeight: float,
        rampSize: float = 0.0,
        collisionDamping: float = 0.85,
    ) -> None:
        self._halfExtents = np.array([boundsWidth / 2.0, boundsHeight / 2.0])
        self._rampSize = rampSize
        self._damping = collisionDamping

    @classmethod
    def fromParameters(cls, params: SimulationParameters) -> BoundaryHandler:
        '''Handler for the tank described by a parameter snapshot.'''
        return cls(
            boundsWidth=params.boundsWidth,
            boundsHeight=params.boundsHeight,
            rampSize=params.rampSize,
            collisionDamping=params.collisionDamping,
        )

    #--------------------------------------------------------------------#
    # -- Geometry -- #
    #--------------------------------------------------------------------#

    @property
    def halfExtents(self) -> np.ndarray:
        '''Half width and half height of the tank.'''
        return self._halfExtents

    @property
    def hasRamp(self) -> bool:
        '''True when the ramp cuts the corner.'''
        return self._rampSize > 0.0

    @property
    def rampCorner(self) -> np.ndarray:
        '''Bottom-left tank corner.'''
        return -self._halfExtents

    @property
    def rampEndpoints(self) -> tuple[np.ndarray, np.ndarray]:
        '''(upper, lower) endpoints of the ramp segment.'''
        corner = self.rampCorner
        upper = corner + np.array([0.0, self._rampSize])
        lower = corner + np.array([self._rampSize, 0.0])
        return (upper, lower)

    #--------------------------------------------------------------------#
    # -- Static Boundary -- #
    #--------------------------------------------------------------------#

    def enforceBox(
        self, positions: np.ndarray, velocities: np.ndarray, radius: float
    ) -> np.ndarray:
        '''
        Clamp positions into the box and bounce clamped velocity components.

        Parameters:
        -----------
        positions : np.ndarray
            Positions, shape (N, 2), modified in place
        velocities : np.ndarray
            Velocities, shape (N, 2), modified in place
        radius : float
            Radius of the colliding bodies

        Returns:
        --------
        np.ndarray : Boolean mask of bodies that hit a wall, shape (N,)
        '''
        hit = np.zeros(len(positions), dtype=bool)
        limits = np.maximum(self._halfExtents - radius, 0.0)

        for d in range(2):
            belowMin = positions[:, d] < -limits[d]
            positions[belowMin, d] = -limits[d]
            velocities[belowMin, d] = np.abs(velocities[belowMin, d]) * self._damping

            aboveMax = positions[:, d] > limits[d]
            positions[aboveMax, d] = limits[d]
            velocities[aboveMax, d] = -np.abs(velocities[aboveMax, d]) * self._damping

            hit |= belowMin | aboveMax

        return hit

    def enforceRamp(
        self, positions: np.ndarray, velocities: np.ndarray, radius: float
    ) -> np.ndarray:
        '''
        Push particles out of the cut-off corner triangle.

        Parameters:
        -----------
        positions : np.ndarray
            Positions, shape (N, 2), modified in place
        velocities : np.ndarray
            Velocities, shape (N, 2), modified in place
        radius : float
            Particle radius

        Returns:
        --------
        np.ndarray : Boolean mask of particles that hit the ramp, shape (N,)
        '''
        if not self.hasRamp:
            return np.zeros(len(positions), dtype=bool)

        upper, lower = self.rampEndpoints
        inside = pointsInTriangle(positions, self.rampCorner, upper, lower)
        if not np.any(inside):
            return inside

        onRamp = closestPointsOnSegment(positions[inside], upper, lower)
        positions[inside] = onRamp + RAMP_NORMAL * radius
        velocities[inside] = reflectDamped(velocities[inside], RAMP_NORMAL, self._damping)

        return inside

    def enforceBoundary(
        self, positions: np.ndarray, velocities: np.ndarray, radius: float
    ) -> None:
        '''
        Resolve ramp then box collisions for all particles.

        The box runs last so every particle ends inside
        [-W/2 + r, W/2 - r] x [-H/2 + r, H/2 - r].

        Parameters:
        -----------
        positions : np.ndarray
            Positions, shape (N, 2), modified in place
        velocities : np.ndarray
            Velocities, shape (N, 2), modified in place
        radius : float
            Particle radius
        '''
        self.enforceRamp(positions, velocities, radius)
        self.enforceBox(positions, velocities, radius)

    #--------------------------------------------------------------------#
    # -- Rigid Disc -- #
    #--------------------------------------------------------------------#

    def collideWithDisc(
        self,
        positions: np.ndarray,
        velocities: np.ndarray,
        disc: RigidDisc,
        radius: float,
        movePositions: bool = True,
        preVelocities: np.ndarray | None = None,
    ) -> np.ndarray:
        '''
        Resolve particle-vs-disc overlap.

        Overlapping particles (closer than R + r to the center) bounce
        off the disc surface; with movePositions they are also placed
        on the contact circle.

        Parameters:
        -----------
        positions : np.ndarray
            Positions, shape (N, 2), modified in place if movePositions
        velocities : np.ndarray
            Velocities, shape (N, 2), modified in place
        disc : RigidDisc
            The rigid disc
        radius : float
            Particle radius
        movePositions : bool
            Write corrected positions (False = velocity-only correction)
        preVelocities : np.ndarray | None
            Arrival velocities, shape (N, 2), used for the reaction in
            place of the current velocities

        Returns:
        --------
        np.ndarray : Reaction sum on the disc, shape (2,)
            sum over contacts of (v_pre . n) * n, with n the unit vector
            from the disc center to the particle
        '''
        contactDistance = disc.radius + radius
        fromCenter = positions - disc.position
        dist = np.linalg.norm(fromCenter, axis=1)
        overlapping = dist < contactDistance
        if not np.any(overlapping):
            return np.zeros(2)

        dOverlap = dist[overlapping]
        normals = np.empty((len(dOverlap), 2))
        normals[:] = (0.0, 1.0)
        away = dOverlap > 0.0
        normals[away] = fromCenter[overlapping][away] / dOverlap[away, np.newaxis]

        incoming = velocities[overlapping]
        arrival = incoming if preVelocities is None else preVelocities[overlapping]
        normalSpeed = np.sum(arrival * normals, axis=1)
        reaction = np.sum(normalSpeed[:, np.newaxis] * normals, axis=0)

        if movePositions:
            positions[overlapping] = disc.position + normals * contactDistance
        velocities[overlapping] = reflectDamped(incoming, normals, self._damping)

        return reaction

    def enforceDiscBoundary(self, disc: RigidDisc) -> None:
        '''
        Keep the disc inside the box and above the ramp.

        Parameters:
        -----------
        disc : RigidDisc
            The rigid disc, modified in place
        '''
        if self.hasRamp:
            upper, lower = self.rampEndpoints
            segment = lower - upper
            t = float(np.dot(disc.position - upper, segment) / np.dot(segment, segment))
            signedDistance = float(np.dot(disc.position - upper, RAMP_NORMAL))

            if 0.0 <= t <= 1.0 and signedDistance < disc.radius:
                disc.position += (disc.radius - signedDistance) * RAMP_NORMAL
                disc.velocity[:] = reflectDamped(
                    disc.velocity[np.newaxis, :], RAMP_NORMAL, self._damping
                )[0]

        self.enforceBox(disc.position[np.newaxis, :], disc.velocity[np.newaxis, :], disc.radius)
