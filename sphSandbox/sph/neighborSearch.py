# -- Spatial Hash Grid for Neighbor Search -- #

'''
Sorted-key spatial hashing for neighbor search in SPH.

Cells have the size of the kernel support radius. Each particle's
integer cell coordinate is hashed into one of a fixed number of
buckets; the (particleIndex, bucket) pairs are stable-sorted by bucket
and a start-offset table records where each bucket's run begins.

A query visits the 3x3 block of cells around a point. Distinct cells
may share a bucket (hash collision), so candidates are a superset of
the true neighbors: every consumer must re-filter candidates by
Euclidean distance.

The bulk query (candidatePairs) expands all stencil runs for many
query points at once with NumPy, which is how the density and force
passes enumerate neighbors.

References:
-----------
Green (2010) -- Particle Simulation using CUDA
Teschner et al. (2003) -- Optimized spatial hashing for collision
    detection of deformable objects
'''

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

import numpy as np

from sphSandbox import constants as const

# Start offset of an empty bucket
EMPTY_BUCKET: int = -1

# 3x3 stencil of cell offsets
STENCIL_OFFSETS: np.ndarray = np.array(
    [(dx, dy) for dx in (-1, 0, 1) for dy in (-1, 0, 1)],
    dtype=np.int64,
)


#--------------------------------------------------------------------#
# -- Neighbor Search Protocol -- #
#--------------------------------------------------------------------#

class NeighborSearch(Protocol):
    '''Protocol for neighbor search structures.'''

    def build(self, positions: np.ndarray) -> None:
        '''Build the search structure from particle positions.'''
        ...

    def candidatePairs(self, queryPoints: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        '''
        Candidate neighbors for many query points.

        Returns:
        --------
        tuple[np.ndarray, np.ndarray] :
            (queryIndices, particleIndices), a superset of the true
            neighbor pairs that callers filter by distance.
        '''
        ...


#--------------------------------------------------------------------#
# -- Spatial Hash Grid -- #
#--------------------------------------------------------------------#

class SpatialHashGrid:
    '''
    Bucketed spatial hash over a uniform grid.

    The bucket count is ceil(H / cellSize) * ceil(W / cellSize) for a
    W x H tank. Cell coordinates outside the tank still hash into a
    valid bucket, so particles anywhere in the plane are indexed.

    Parameters:
    -----------
    cellSize : float
        Grid cell size, equal to the smoothing radius
    bucketCount : int
        Number of hash buckets
    '''

    def __init__(self, cellSize: float, bucketCount: int) -> None:
        if cellSize <= 0.0:
            raise ValueError(f'cellSize must be positive, got {cellSize}')
        if bucketCount < 1:
            raise ValueError(f'bucketCount must be at least 1, got {bucketCount}')

        self._cellSize = cellSize
        self._bucketCount = bucketCount
        self._positions: np.ndarray | None = None

        # Sorted lookup table: particle index and bucket per sorted slot
        self._sortedIndices = np.empty(0, dtype=np.int64)
        self._sortedKeys = np.empty(0, dtype=np.int64)

        # Per-bucket start slot (EMPTY_BUCKET if none) and run length
        self._startOffsets = np.full(bucketCount, EMPTY_BUCKET, dtype=np.int64)
        self._bucketSizes = np.zeros(bucketCount, dtype=np.int64)

    @classmethod
    def forTank(
        cls, cellSize: float, boundsWidth: float, boundsHeight: float
    ) -> SpatialHashGrid:
        '''
        Grid sized for a W x H tank.

        Parameters:
        -----------
        cellSize : float
            Grid cell size (smoothing radius)
        boundsWidth : float
            Tank width W
        boundsHeight : float
            Tank height H

        Returns:
        --------
        SpatialHashGrid : Empty grid
        '''
        rows = int(np.ceil(boundsHeight / cellSize))
        cols = int(np.ceil(boundsWidth / cellSize))
        return cls(cellSize, rows * cols)

    #--------------------------------------------------------------------#
    # -- Properties -- #
    #--------------------------------------------------------------------#

    @property
    def cellSize(self) -> float:
        '''Grid cell size.'''
        return self._cellSize

    @property
    def bucketCount(self) -> int:
        '''Number of hash buckets.'''
        return self._bucketCount

    @property
    def sortedIndices(self) -> np.ndarray:
        '''Particle indices in bucket order.'''
        return self._sortedIndices

    @property
    def sortedKeys(self) -> np.ndarray:
        '''Bucket of each sorted slot (non-decreasing).'''
        return self._sortedKeys

    @property
    def startOffsets(self) -> np.ndarray:
        '''First sorted slot per bucket, EMPTY_BUCKET when unused.'''
        return self._startOffsets

    #--------------------------------------------------------------------#
    # -- Hashing -- #
    #--------------------------------------------------------------------#

    def cellCoords(self, points: np.ndarray) -> np.ndarray:
        '''
        Integer cell coordinates floor(p / cellSize).

        Parameters:
        -----------
        points : np.ndarray
            Points, shape (..., 2)

        Returns:
        --------
        np.ndarray : Cell coordinates, shape (..., 2), int64
        '''
        return np.floor(np.asarray(points) / self._cellSize).astype(np.int64)

    def hashCells(self, cellCoords: np.ndarray) -> np.ndarray:
        '''
        Bucket of each cell coordinate.

        (cx * primeX + cy * primeY) mod bucketCount, always in
        [0, bucketCount) since NumPy's remainder follows the divisor sign.

        Parameters:
        -----------
        cellCoords : np.ndarray
            Cell coordinates, shape (..., 2)

        Returns:
        --------
        np.ndarray : Buckets, shape (...)
        '''
        combined = cellCoords[..., 0] * const.hashPrimeX + cellCoords[..., 1] * const.hashPrimeY
        return np.remainder(combined, self._bucketCount)

    #--------------------------------------------------------------------#
    # -- Build -- #
    #--------------------------------------------------------------------#

    def build(self, positions: np.ndarray) -> None:
        '''
        Rebuild the lookup table from particle positions.

        Parameters:
        -----------
        positions : np.ndarray
            Particle (predicted) positions, shape (N, 2)
        '''
        self._positions = positions
        keys = self.hashCells(self.cellCoords(positions))

        # Stable sort keeps particle order within a bucket
        order = np.argsort(keys, kind='stable')
        self._sortedIndices = order.astype(np.int64, copy=False)
        self._sortedKeys = keys[order]

        self._startOffsets.fill(EMPTY_BUCKET)
        nParticles = len(keys)
        if nParticles == 0:
            self._bucketSizes.fill(0)
            return

        # A run starts wherever the sorted key changes
        runStart = np.ones(nParticles, dtype=bool)
        runStart[1:] = self._sortedKeys[1:] != self._sortedKeys[:-1]
        startSlots = np.nonzero(runStart)[0]
        self._startOffsets[self._sortedKeys[startSlots]] = startSlots

        self._bucketSizes = np.bincount(keys, minlength=self._bucketCount).astype(np.int64)

    #--------------------------------------------------------------------#
    # -- Queries -- #
    #--------------------------------------------------------------------#

    def stencilBuckets(self, queryPoints: np.ndarray) -> np.ndarray:
        '''
        Distinct buckets of the 3x3 cells around each query point.

        Buckets reached twice from one stencil (hash collision) are
        replaced by EMPTY_BUCKET so each run is scanned once.

        Parameters:
        -----------
        queryPoints : np.ndarray
            Query points, shape (M, 2)

        Returns:
        --------
        np.ndarray : Buckets, shape (M, 9), sorted per row
        '''
        centerCells = self.cellCoords(queryPoints)
        stencilCells = centerCells[:, np.newaxis, :] + STENCIL_OFFSETS[np.newaxis, :, :]
        buckets = np.sort(self.hashCells(stencilCells), axis=1)

        repeated = np.zeros(buckets.shape, dtype=bool)
        repeated[:, 1:] = buckets[:, 1:] == buckets[:, :-1]
        buckets[repeated] = EMPTY_BUCKET
        return buckets

    def candidatePairs(self, queryPoints: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        '''
        Candidate particles for every query point.

        For each query point, the runs of its distinct stencil buckets
        are expanded from the sorted table. Each (query, particle)
        combination appears at most once.

        Parameters:
        -----------
        queryPoints : np.ndarray
            Query points, shape (M, 2)

        Returns:
        --------
        tuple[np.ndarray, np.ndarray] :
            (queryIndices, particleIndices), both int64
        '''
        queryPoints = np.asarray(queryPoints, dtype=float).reshape(-1, 2)
        nQueries = queryPoints.shape[0]
        if nQueries == 0 or len(self._sortedIndices) == 0:
            return (np.empty(0, dtype=np.int64), np.empty(0, dtype=np.int64))

        buckets = self.stencilBuckets(queryPoints)
        valid = buckets != EMPTY_BUCKET

        runLengths = np.where(valid, self._bucketSizes[np.where(valid, buckets, 0)], 0).ravel()
        runStarts = np.where(valid, self._startOffsets[np.where(valid, buckets, 0)], 0).ravel()

        total = int(runLengths.sum())
        if total == 0:
            return (np.empty(0, dtype=np.int64), np.empty(0, dtype=np.int64))

        # Expand each run into consecutive sorted slots
        runOwners = np.repeat(np.arange(nQueries, dtype=np.int64), STENCIL_OFFSETS.shape[0])
        queryIndices = np.repeat(runOwners, runLengths)
        runBegin = np.cumsum(runLengths) - runLengths
        slotInRun = np.arange(total, dtype=np.int64) - np.repeat(runBegin, runLengths)
        slots = np.repeat(runStarts, runLengths) + slotInRun

        return (queryIndices, self._sortedIndices[slots])

    def queryCandidates(self, point: np.ndarray) -> np.ndarray:
        '''
        Candidate particle indices around a single point.

        Parameters:
        -----------
        point : np.ndarray
            Query point, shape (2,)

        Returns:
        --------
        np.ndarray : Candidate indices (possibly empty)
        '''
        _, candidates = self.candidatePairs(np.asarray(point, dtype=float).reshape(1, 2))
        return candidates

    def queryNeighbors(self, point: np.ndarray, radius: float) -> np.ndarray:
        '''
        Indices of indexed particles within radius of a point.

        Parameters:
        -----------
        point : np.ndarray
            Query point, shape (2,)
        radius : float
            Search radius (at most the cell size for a complete result)

        Returns:
        --------
        np.ndarray : Neighbor indices
        '''
        candidates = self.queryCandidates(point)
        if len(candidates) == 0 or self._positions is None:
            return candidates
        offsets = self._positions[candidates] - np.asarray(point, dtype=float)
        distances = np.linalg.norm(offsets, axis=1)
        return candidates[distances <= radius]


#--------------------------------------------------------------------#
# -- Brute-Force Reference -- #
#--------------------------------------------------------------------#

class AllPairsSearch:
    '''
    Every particle is a candidate of every query point.

    O(N * M) reference used when the spatial grid is disabled.
    '''

    def __init__(self) -> None:
        self._nParticles = 0

    def build(self, positions: np.ndarray) -> None:
        '''Record the particle count.'''
        self._nParticles = len(positions)

    def candidatePairs(self, queryPoints: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        '''All (query, particle) combinations.'''
        nQueries = np.asarray(queryPoints).reshape(-1, 2).shape[0]
        queryIndices = np.repeat(np.arange(nQueries, dtype=np.int64), self._nParticles)
        particleIndices = np.tile(np.arange(self._nParticles, dtype=np.int64), nQueries)
        return (queryIndices, particleIndices)


#--------------------------------------------------------------------#
# -- Distance-Filtered Pairs -- #
#--------------------------------------------------------------------#

@dataclass
class NeighborPairs:
    '''
    Particle pairs (i, j) within the smoothing radius.

    Includes the self pairs (i, i). Each ordered pair appears once,
    so the pair (j, i) is listed separately from (i, j).

    Parameters:
    -----------
    iIndices : np.ndarray
        Receiving particle of each pair, shape (P,)
    jIndices : np.ndarray
        Contributing particle of each pair, shape (P,)
    offsets : np.ndarray
        x_j - x_i for each pair, shape (P, 2)
    distances : np.ndarray
        |x_j - x_i| for each pair, shape (P,)
    '''

    iIndices: np.ndarray
    jIndices: np.ndarray
    offsets: np.ndarray
    distances: np.ndarray

    @property
    def nPairs(self) -> int:
        '''Number of pairs.'''
        return len(self.iIndices)

    @property
    def distinctMask(self) -> np.ndarray:
        '''True for pairs with i != j.'''
        return self.iIndices != self.jIndices


def findNeighborPairs(
    search: NeighborSearch, positions: np.ndarray, radius: float
) -> NeighborPairs:
    '''
    Query every particle and keep candidates within radius.

    The search must already be built from the same positions.

    Parameters:
    -----------
    search : NeighborSearch
        Built neighbor search structure
    positions : np.ndarray
        Particle positions, shape (N, 2)
    radius : float
        Smoothing radius

    Returns:
    --------
    NeighborPairs : Distance-filtered ordered pairs
    '''
    iIdx, jIdx = search.candidatePairs(positions)
    offsets = positions[jIdx] - positions[iIdx]
    distances = np.sqrt(np.sum(offsets * offsets, axis=1))

    # Hash collisions bring in far-away candidates
    within = distances <= radius
    return NeighborPairs(
        iIndices=iIdx[within],
        jIndices=jIdx[within],
        offsets=offsets[within],
        distances=distances[within],
    )
