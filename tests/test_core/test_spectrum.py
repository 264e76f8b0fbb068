"""Tests for per-frame magnitude spectra."""

from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from audiophash.core.spectrum import magnitude_spectra, magnitude_spectrum


class TestMagnitudeSpectrum:
    def test_dc_frame(self):
        mags = magnitude_spectrum(np.ones(8))

        assert mags.shape == (4,)
        assert mags[0] == pytest.approx(8.0)
        np.testing.assert_allclose(mags[1:], 0.0, atol=1e-12)

    def test_cosine_lands_in_its_bin(self):
        n = 32
        frame = np.cos(2 * np.pi * 4 * np.arange(n) / n)
        mags = magnitude_spectrum(frame)

        assert mags.shape == (16,)
        assert mags[4] == pytest.approx(n / 2)
        np.testing.assert_allclose(np.delete(mags, 4), 0.0, atol=1e-9)

    def test_excludes_nyquist_bin(self):
        frame = np.array([1.0, -1.0, 1.0, -1.0])
        mags = magnitude_spectrum(frame)

        # All energy is at Nyquist, which is not returned
        np.testing.assert_allclose(mags, [0.0, 0.0], atol=1e-12)

    def test_non_power_of_two_length(self):
        frame = np.sin(2 * np.pi * 2 * np.arange(12) / 12)
        mags = magnitude_spectrum(frame)

        assert mags.shape == (6,)
        assert mags[2] == pytest.approx(6.0)

    def test_odd_length(self):
        assert magnitude_spectrum(np.ones(7)).shape == (3,)

    def test_empty_frame(self):
        assert magnitude_spectrum(np.array([])).size == 0

    def test_magnitudes_are_non_negative(self):
        rng = np.random.default_rng(3)
        assert np.all(magnitude_spectrum(rng.standard_normal(256)) >= 0)


class TestMagnitudeSpectra:
    def test_matches_per_frame_transform(self):
        rng = np.random.default_rng(11)
        frames = rng.standard_normal((5, 64))
        spectra = magnitude_spectra(frames)

        assert spectra.shape == (5, 32)
        for row, frame in zip(spectra, frames):
            np.testing.assert_allclose(row, magnitude_spectrum(frame), rtol=1e-12, atol=1e-12)

    def test_threaded_matches_sequential(self):
        rng = np.random.default_rng(5)
        frames = rng.standard_normal((100, 256))

        sequential = magnitude_spectra(frames)
        threaded = magnitude_spectra(frames, max_workers=4)

        np.testing.assert_array_equal(threaded, sequential)

    def test_reuses_given_executor(self):
        rng = np.random.default_rng(6)
        frames = rng.standard_normal((64, 128))

        with ThreadPoolExecutor(max_workers=2) as pool:
            threaded = magnitude_spectra(frames, max_workers=2, executor=pool)

        np.testing.assert_array_equal(threaded, magnitude_spectra(frames))

    @pytest.mark.parametrize("n_frames", [15, 17, 40])
    def test_partial_last_block(self, n_frames):
        rng = np.random.default_rng(n_frames)
        frames = rng.standard_normal((n_frames, 64))

        threaded = magnitude_spectra(frames, max_workers=8)

        assert threaded.shape == (n_frames, 32)
        np.testing.assert_array_equal(threaded, magnitude_spectra(frames))

    def test_no_frames(self):
        spectra = magnitude_spectra(np.empty((0, 2048)))
        assert spectra.shape == (0, 1024)

    def test_rejects_1d_input(self):
        with pytest.raises(ValueError):
            magnitude_spectra(np.ones(16))
