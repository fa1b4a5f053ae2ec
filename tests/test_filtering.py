"""Tests for the filter pipeline."""

import numpy as np
import pytest

from eegcond.errors import FilterError
from eegcond.filtering import FilterSettings, NotchArgs, apply_filters, highpass, lowpass, notch


@pytest.fixture
def sines() -> tuple[np.ndarray, float]:
    """Two channels mixing 5 Hz and 200 Hz sines, 2 s at 1 kHz."""
    sfreq = 1000.0
    t = np.arange(2000) / sfreq
    slow = np.sin(2 * np.pi * 5 * t)
    fast = np.sin(2 * np.pi * 200 * t)
    return np.vstack([slow + fast, 2 * slow + fast]), sfreq


class TestCutoffValidation:
    """Tests for cutoff bounds shared by all stages."""

    @pytest.mark.parametrize("stage", [highpass, lowpass, notch])
    @pytest.mark.parametrize("cutoff", [0.0, -1.0, 50.0, 75.0])
    def test_invalid_cutoff(self, stage, cutoff: float):
        """Test that cutoffs <= 0 or >= Nyquist raise FilterError."""
        data = np.zeros((2, 500))

        with pytest.raises(FilterError):
            stage(cutoff, 100.0, data)

    @pytest.mark.parametrize("cutoff", [0.1, 1.0, 20.0, 49.9])
    def test_valid_highpass_keeps_shape(self, cutoff: float, matrix: np.ndarray):
        """Test that any cutoff inside (0, Nyquist) succeeds and preserves the shape."""
        filtered = highpass(cutoff, 100.0, matrix)

        assert filtered.shape == matrix.shape

    def test_filter_error_is_value_error(self):
        """Test that FilterError can be caught as ValueError."""
        with pytest.raises(ValueError):
            lowpass(500.0, 1000.0, np.zeros((1, 100)))

    @pytest.mark.parametrize("stage", [highpass, lowpass, notch])
    @pytest.mark.parametrize("n_samples", [2, 12, 15])
    def test_short_signal_keeps_shape(self, stage, n_samples: int):
        """Test that signals shorter than the default edge padding are filtered, not rejected."""
        data = np.random.default_rng(0).standard_normal((2, n_samples))

        filtered = stage(10.0, 100.0, data)

        assert filtered.shape == data.shape
        assert np.all(np.isfinite(filtered))

    def test_short_integer_signal(self):
        data = np.arange(24, dtype=np.int16).reshape(2, 12)

        filtered = apply_filters(data, 100.0, FilterSettings())

        assert filtered.shape == (2, 12)
        assert filtered.dtype == np.int16


class TestStages:
    """Tests for the frequency response of each stage."""

    def test_lowpass_removes_fast_component(self, sines):
        """Test that a 45 Hz low-pass keeps 5 Hz and removes 200 Hz."""
        data, sfreq = sines
        t = np.arange(data.shape[1]) / sfreq
        slow = np.sin(2 * np.pi * 5 * t)

        filtered = lowpass(45.0, sfreq, data)

        middle = slice(200, -200)
        np.testing.assert_allclose(filtered[0, middle], slow[middle], atol=0.02)
        np.testing.assert_allclose(filtered[1, middle], 2 * slow[middle], atol=0.02)

    def test_highpass_removes_offset(self):
        """Test that a 1 Hz high-pass removes a DC offset and keeps a 10 Hz sine."""
        sfreq = 250.0
        t = np.arange(1000) / sfreq
        data = np.vstack([5.0 + np.sin(2 * np.pi * 10 * t)])

        filtered = highpass(1.0, sfreq, data)

        middle = slice(250, -250)
        assert abs(filtered[0, middle].mean()) < 0.05
        assert np.ptp(filtered[0, middle]) == pytest.approx(2.0, abs=0.1)

    def test_notch_removes_mains(self):
        """Test that a 50 Hz notch removes 50 Hz and passes 10 Hz."""
        sfreq = 250.0
        t = np.arange(2500) / sfreq
        mains = np.sin(2 * np.pi * 50 * t)
        alpha = np.sin(2 * np.pi * 10 * t)
        data = np.vstack([mains + alpha])

        filtered = notch(50.0, sfreq, data)

        middle = slice(500, -500)
        residual = filtered[0, middle] - alpha[middle]
        assert np.sqrt(np.mean(residual**2)) < 0.05

    def test_deterministic(self, matrix: np.ndarray):
        """Test that identical input and parameters give identical output."""
        first = highpass(0.5, 250.0, matrix)
        second = highpass(0.5, 250.0, matrix)

        np.testing.assert_array_equal(first, second)

    def test_input_not_mutated(self, matrix: np.ndarray):
        """Test that stages return a new matrix."""
        original = matrix.copy()
        lowpass(30.0, 250.0, matrix)

        np.testing.assert_array_equal(matrix, original)


class TestIntegerFamily:
    """Tests for filtering int16 matrices."""

    def test_dtype_preserved(self):
        """Test that int16 input gives int16 output of the same shape."""
        rng = np.random.default_rng(3)
        data = rng.integers(-1000, 1000, size=(3, 1000)).astype(np.int16)

        for stage, cutoff in ((highpass, 1.0), (lowpass, 40.0), (notch, 50.0)):
            filtered = stage(cutoff, 500.0, data)
            assert filtered.dtype == np.int16
            assert filtered.shape == data.shape

    def test_matches_float_within_rounding(self):
        """Test that the integer family equals the float family rounded."""
        rng = np.random.default_rng(4)
        data = rng.integers(-1000, 1000, size=(2, 1000)).astype(np.int16)

        as_int = lowpass(40.0, 500.0, data)
        as_float = lowpass(40.0, 500.0, data.astype(np.float64))

        assert np.all(np.abs(as_int - as_float) <= 0.5 + 1e-9)

    def test_same_failure_conditions(self):
        """Test that the integer family rejects the same cutoffs."""
        with pytest.raises(FilterError):
            highpass(250.0, 500.0, np.zeros((2, 1000), dtype=np.int16))


class TestPipeline:
    """Tests for the ordered pipeline."""

    def test_order_without_notch(self, matrix: np.ndarray):
        """Test that the pipeline runs high-pass then low-pass."""
        settings = FilterSettings(l_freq=1.0, h_freq=40.0)

        result = apply_filters(matrix, 250.0, settings)

        np.testing.assert_array_equal(result, lowpass(40.0, 250.0, highpass(1.0, 250.0, matrix)))

    def test_order_with_notch(self, matrix: np.ndarray):
        """Test that the notch runs last when enabled."""
        settings = FilterSettings(l_freq=1.0, h_freq=100.0, notch=NotchArgs(enabled=True, freq=50.0))

        result = apply_filters(matrix, 250.0, settings)

        expected = notch(50.0, 250.0, lowpass(100.0, 250.0, highpass(1.0, 250.0, matrix)))
        np.testing.assert_array_equal(result, expected)

    def test_pipeline_fails_on_invalid_stage(self, matrix: np.ndarray):
        """Test that an invalid low-pass cutoff fails the whole pipeline."""
        with pytest.raises(FilterError):
            apply_filters(matrix, 100.0, FilterSettings(l_freq=1.0, h_freq=60.0))

    def test_defaults(self):
        """Test the default pipeline settings."""
        settings = FilterSettings()

        assert settings.l_freq == 1.0
        assert settings.h_freq == 45.0
        assert settings.notch.enabled is False
        assert settings.notch.freq == 50.0
