"""Tests for the FIR kernel builders."""

import numpy as np
import pytest

from axion_spectrum.kernels import gaussian_kernel, normalize, sinc_kernel, unsharp_kernel


class TestGaussianKernel:
    """Gaussian kernel construction."""

    def test_radius_zero_is_identity(self) -> None:
        assert gaussian_kernel(0).tolist() == [1.0]

    @pytest.mark.parametrize("radius", [1, 3, 10])
    def test_shape_and_norm(self, radius) -> None:
        kernel = gaussian_kernel(radius)
        assert kernel.size == 2 * radius + 1
        assert np.linalg.norm(kernel) == pytest.approx(1.0)
        assert np.allclose(kernel, kernel[::-1])
        assert kernel.argmax() == radius

    def test_default_sigma_is_half_radius(self) -> None:
        assert np.allclose(gaussian_kernel(6), gaussian_kernel(6, 3.0))

    def test_wider_sigma_flattens(self) -> None:
        narrow = gaussian_kernel(5, 0.5)
        wide = gaussian_kernel(5, 5.0)
        assert narrow[5] > wide[5]

    def test_invalid_arguments(self) -> None:
        with pytest.raises(ValueError):
            gaussian_kernel(-1)
        with pytest.raises(ValueError):
            gaussian_kernel(3, 0.0)


class TestOtherKernels:
    """Unsharp and sinc kernels."""

    def test_unsharp_kernel_shape(self) -> None:
        kernel = unsharp_kernel(20, 2.0)
        assert kernel.size == 41
        assert np.linalg.norm(kernel) == pytest.approx(1.0)
        assert kernel[20] > 0
        assert np.all(kernel[:20] < 0)

    def test_sinc_kernel(self) -> None:
        kernel = sinc_kernel(8, 1.0, 10.0)
        assert kernel.size == 17
        assert np.linalg.norm(kernel) == pytest.approx(1.0)
        assert kernel.argmax() == 8
        assert np.allclose(kernel, kernel[::-1])

    def test_sinc_kernel_invalid_sample_frequency(self) -> None:
        with pytest.raises(ValueError):
            sinc_kernel(3, 1.0, 0.0)

    def test_normalize_zero(self) -> None:
        with pytest.raises(ValueError):
            normalize([0.0, 0.0, 0.0])
