# -- SPH Kernel Tests -- #

'''
Values, support, and derivatives of the spiky and poly6 kernels.
'''

import math

import numpy as np
import pytest

from sphSandbox.sph.kernels import Poly6Kernel, SpikyKernel, createKernel

h = 0.35


def testSpikyPeakValue():
    '''W(0, h) = 6 / (pi * h^2).'''
    kernel = SpikyKernel()
    assert kernel.evaluate(0.0, h) == pytest.approx(6.0 / (math.pi * h * h))


def testSpikyGradientFormula():
    '''dW/dr = 12 / (pi * h^4) * (r - h) inside the support.'''
    kernel = SpikyKernel()
    for r in (0.0, 0.1, 0.3):
        expected = 12.0 / (math.pi * h ** 4) * (r - h)
        assert kernel.gradientMagnitude(r, h) == pytest.approx(expected)


def testPoly6PeakValue():
    '''W(0, h) = 4 / (pi * h^2).'''
    kernel = Poly6Kernel()
    assert kernel.evaluate(0.0, h) == pytest.approx(4.0 / (math.pi * h * h))


@pytest.mark.parametrize('kernel', [SpikyKernel(), Poly6Kernel()])
def testKernelSupport(kernel):
    '''Value and slope vanish at and beyond the support radius.'''
    for r in (h, 1.0001 * h, 2.0 * h, 10.0):
        assert kernel.evaluate(r, h) == 0.0
        assert kernel.gradientMagnitude(r, h) == 0.0

    distances = np.array([h, 1.5 * h, 3.0])
    np.testing.assert_array_equal(kernel.evaluateBatch(distances, h), 0.0)
    np.testing.assert_array_equal(kernel.gradientMagnitudeBatch(distances, h), 0.0)


@pytest.mark.parametrize('kernel', [SpikyKernel(), Poly6Kernel()])
def testBatchMatchesScalar(kernel):
    '''Batch evaluation agrees with the scalar methods.'''
    distances = np.linspace(0.0, 0.5, 11)
    values = kernel.evaluateBatch(distances, h)
    slopes = kernel.gradientMagnitudeBatch(distances, h)

    for k, r in enumerate(distances):
        assert values[k] == pytest.approx(kernel.evaluate(r, h))
        assert slopes[k] == pytest.approx(kernel.gradientMagnitude(r, h))


@pytest.mark.parametrize('kernel', [SpikyKernel(), Poly6Kernel()])
def testKernelNonNegativeAndDecreasing(kernel):
    '''Kernels are non-negative and non-increasing in r.'''
    values = kernel.evaluateBatch(np.linspace(0.0, h, 50), h)
    assert np.all(values >= 0.0)
    assert np.all(np.diff(values) <= 0.0)


def testCreateKernel():
    '''Factory returns the named kernel with an optional scale.'''
    assert isinstance(createKernel('spiky'), SpikyKernel)
    assert isinstance(createKernel('poly6'), Poly6Kernel)

    scaled = createKernel('spiky', volumeScale=1.0)
    assert scaled.evaluate(0.0, 1.0) == pytest.approx(1.0)


def testCreateKernelUnknown():
    '''Unknown kernel names raise ValueError.'''
    with pytest.raises(ValueError):
        createKernel('cubicSpline')
