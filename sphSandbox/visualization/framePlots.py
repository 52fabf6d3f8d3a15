# -- Tank Frame Visualizations -- #

'''
Plotly figures of the tank state and particle speed colouring.

Particles are coloured by speed on a two-colour gradient that
saturates at colorMaxSpeed, matching what the interactive host draws.
'''

from __future__ import annotations

import numpy as np
import plotly.graph_objects as go

from sphSandbox import constants as const
from sphSandbox.sph.protocols import SimulationParameters
from sphSandbox.sph.particles import ParticleState, RigidDisc
from sphSandbox.visualization import theme


#--------------------------------------------------------------------#
# -- Speed Colouring -- #
#--------------------------------------------------------------------#

def hexToRgb(color: str) -> np.ndarray:
    '''
    Parse '#RRGGBB' into an RGB triple in [0, 255].

    Raises:
    -------
    ValueError : If the string is not a 6-digit hex colour
    '''
    digits = color.lstrip('#')
    if len(digits) != 6:
        raise ValueError(f'Expected a #RRGGBB colour, got {color!r}')
    return np.array([int(digits[k:k + 2], 16) for k in (0, 2, 4)], dtype=float)


def speedColors(
    velocities: np.ndarray,
    slowColor: str = theme.SLOW_COLOR,
    fastColor: str = theme.FAST_COLOR,
    maxSpeed: float = const.colorMaxSpeed,
) -> list[str]:
    '''
    Per-particle colour linearly interpolated by speed.

    Parameters:
    -----------
    velocities : np.ndarray
        Particle velocities, shape (N, 2)
    slowColor : str
        Colour at rest
    fastColor : str
        Colour at maxSpeed and above
    maxSpeed : float
        Speed at which the gradient saturates

    Returns:
    --------
    list[str] : 'rgb(r, g, b)' strings, one per particle
    '''
    speeds = np.linalg.norm(np.asarray(velocities, dtype=float).reshape(-1, 2), axis=1)
    t = np.clip(speeds / maxSpeed, 0.0, 1.0)[:, np.newaxis]

    slow = hexToRgb(slowColor)
    fast = hexToRgb(fastColor)
    rgb = np.rint(slow + (fast - slow) * t).astype(int)

    return [f'rgb({r}, {g}, {b})' for r, g, b in rgb]


#--------------------------------------------------------------------#
# -- Figures -- #
#--------------------------------------------------------------------#

def plotFrame(
    particles: ParticleState,
    params: SimulationParameters,
    disc: RigidDisc | None = None,
    interactionPoint: tuple[float, float] | None = None,
    title: str = 'SPH Tank',
) -> go.Figure:
    '''
    Scatter of the particles inside the tank outline.

    Parameters:
    -----------
    particles : ParticleState
        Particle arrays
    params : SimulationParameters
        Parameter snapshot (tank size, ramp, radii)
    disc : RigidDisc | None
        Rigid disc to draw, if any
    interactionPoint : tuple[float, float] | None
        Pointer position to mark, if any
    title : str
        Figure title

    Returns:
    --------
    go.Figure : Plotly figure
    '''
    halfW = params.boundsWidth / 2.0
    halfH = params.boundsHeight / 2.0

    fig = go.Figure()

    # Tank walls
    fig.add_trace(go.Scatter(
        x=[-halfW, halfW, halfW, -halfW, -halfW],
        y=[-halfH, -halfH, halfH, halfH, -halfH],
        mode='lines', name='Tank',
        line=dict(color=theme.WALL_COLOR, width=2),
    ))

    # Ramp triangle
    if params.rampSize > 0.0:
        s = params.rampSize
        fig.add_trace(go.Scatter(
            x=[-halfW, -halfW, -halfW + s, -halfW],
            y=[-halfH, -halfH + s, -halfH, -halfH],
            mode='lines', name='Ramp',
            fill='toself', line=dict(color=theme.RAMP_COLOR),
        ))

    fig.add_trace(go.Scatter(
        x=particles.positions[:, 0], y=particles.positions[:, 1],
        mode='markers', name='Fluid',
        marker=dict(color=speedColors(particles.velocities), size=4),
    ))

    if disc is not None:
        angles = np.linspace(0.0, 2.0 * np.pi, 65)
        fig.add_trace(go.Scatter(
            x=disc.position[0] + disc.radius * np.cos(angles),
            y=disc.position[1] + disc.radius * np.sin(angles),
            mode='lines', name='Disc',
            fill='toself', line=dict(color=theme.DISC_COLOR),
        ))

    if interactionPoint is not None:
        fig.add_trace(go.Scatter(
            x=[interactionPoint[0]], y=[interactionPoint[1]],
            mode='markers', name='Pointer',
            marker=dict(color=theme.POINTER_COLOR, size=10, symbol='x'),
        ))

    fig.update_layout(
        title=title,
        xaxis=dict(range=[-halfW * 1.05, halfW * 1.05], title='x'),
        yaxis=dict(range=[-halfH * 1.05, halfH * 1.05], title='y', scaleanchor='x'),
        template=theme.TEMPLATE,
        height=500,
        showlegend=False,
    )

    return fig


def plotEnergyHistory(energy: dict[str, list[float]]) -> go.Figure:
    '''
    Kinetic, potential, and total energy over time.

    Parameters:
    -----------
    energy : dict[str, list[float]]
        'times', 'kinetic', 'potential', 'total' series, as written
        by FrameExporter

    Returns:
    --------
    go.Figure : Plotly figure
    '''
    fig = go.Figure()

    fig.add_trace(go.Scatter(
        x=energy['times'], y=energy['kinetic'],
        mode='lines', name='Kinetic',
        line=dict(color=theme.KINETIC_COLOR),
    ))
    fig.add_trace(go.Scatter(
        x=energy['times'], y=energy['potential'],
        mode='lines', name='Potential',
        line=dict(color=theme.POTENTIAL_COLOR),
    ))
    fig.add_trace(go.Scatter(
        x=energy['times'], y=energy['total'],
        mode='lines', name='Total',
        line=dict(color=theme.TOTAL_COLOR, width=2),
    ))

    fig.update_layout(
        title='Energy History',
        xaxis_title='Time (s)',
        yaxis_title='Energy',
        template=theme.TEMPLATE,
        height=400,
    )

    return fig
