"""Tests for data models and pipeline configuration."""

import numpy as np
import pytest

from audiophash.core.models import (
    AudioFormat,
    AudioFormatDescriptor,
    DecodedAudio,
    Fingerprint,
    HammingResult,
    PipelineConfig,
    is_power_of_two,
)
from audiophash.utils.errors import ConfigurationError, InvalidParameterError


class TestPipelineConfig:
    def test_defaults(self):
        config = PipelineConfig().validated()

        assert config.target_sample_rate == 44100
        assert config.frame_size == 2048
        assert config.hop == 1024
        assert config.num_bins == 64
        assert config.aggregation == "median"
        assert config.log_compress is True
        assert config.max_workers == 1

    def test_zero_values_are_filled(self):
        config = PipelineConfig(
            target_sample_rate=0, frame_size=0, hop=0, num_bins=0, max_workers=0
        ).validated()

        assert config == PipelineConfig().validated()

    def test_hop_defaults_to_half_frame(self):
        config = PipelineConfig(frame_size=512, hop=0, num_bins=32).validated()
        assert config.hop == 256

    @pytest.mark.parametrize("frame_size, hop", [(256, 128), (512, 256), (4096, 2048)])
    def test_hop_follows_frame_size_when_unset(self, frame_size, hop):
        assert PipelineConfig(frame_size=frame_size).validated().hop == hop

    def test_validated_returns_new_instance(self):
        original = PipelineConfig(hop=0)
        validated = original.validated()

        assert original.hop == 0
        assert validated is not original

    def test_hop_equal_to_frame_size_is_allowed(self):
        assert PipelineConfig(hop=2048).validated().hop == 2048

    def test_num_bins_upper_bound(self):
        assert PipelineConfig(num_bins=1024).validated().num_bins == 1024

    @pytest.mark.parametrize(
        "kwargs, key",
        [
            ({"target_sample_rate": -8000}, "target_sample_rate"),
            ({"frame_size": 1000}, "frame_size"),
            ({"frame_size": -2048}, "frame_size"),
            ({"hop": 4096}, "hop"),
            ({"hop": -1}, "hop"),
            ({"num_bins": 1025}, "num_bins"),
            ({"num_bins": -4}, "num_bins"),
            ({"aggregation": "max"}, "aggregation"),
            ({"max_workers": -2}, "max_workers"),
        ],
    )
    def test_invalid_values(self, kwargs, key):
        with pytest.raises(ConfigurationError) as exc_info:
            PipelineConfig(**kwargs).validated()
        assert exc_info.value.config_key == key

    @pytest.mark.parametrize(
        "kwargs, key",
        [
            ({"frame_size": 2048.0}, "frame_size"),
            ({"hop": "512"}, "hop"),
            ({"num_bins": 64.5}, "num_bins"),
            ({"target_sample_rate": None}, "target_sample_rate"),
            ({"max_workers": True}, "max_workers"),
        ],
    )
    def test_non_integer_values(self, kwargs, key):
        with pytest.raises(ConfigurationError) as exc_info:
            PipelineConfig(**kwargs).validated()
        assert exc_info.value.config_key == key

    def test_from_dict_coerces_strings(self):
        config = PipelineConfig.from_dict(
            {"frame_size": "1024", "hop": "256", "log_compress": "false", "aggregation": "mean"}
        )

        assert config.frame_size == 1024
        assert config.hop == 256
        assert config.log_compress is False
        assert config.aggregation == "mean"

    def test_from_dict_empty(self):
        assert PipelineConfig.from_dict(None) == PipelineConfig()
        assert PipelineConfig.from_dict({}) == PipelineConfig()

    def test_from_dict_unknown_key(self):
        with pytest.raises(ConfigurationError) as exc_info:
            PipelineConfig.from_dict({"window": "hamming"})
        assert exc_info.value.config_key == "window"

    @pytest.mark.parametrize(
        "config", [{"frame_size": "big"}, {"hop": True}, {"log_compress": "maybe"}]
    )
    def test_from_dict_bad_values(self, config):
        with pytest.raises(ConfigurationError):
            PipelineConfig.from_dict(config)

    def test_to_dict_round_trip(self):
        config = PipelineConfig(frame_size=1024, hop=512, num_bins=32)
        assert PipelineConfig.from_dict(config.to_dict()) == config


class TestPowerOfTwo:
    @pytest.mark.parametrize("value", [1, 2, 256, 2048, 1 << 20])
    def test_powers(self, value):
        assert is_power_of_two(value)

    @pytest.mark.parametrize("value", [0, -2, 3, 1000, 2047])
    def test_non_powers(self, value):
        assert not is_power_of_two(value)


class TestFingerprintModel:
    def test_value_range(self):
        Fingerprint(0)
        Fingerprint((1 << 64) - 1)
        with pytest.raises(InvalidParameterError):
            Fingerprint(1 << 64)
        with pytest.raises(InvalidParameterError):
            Fingerprint(-1)

    def test_rejects_non_int(self):
        with pytest.raises(InvalidParameterError):
            Fingerprint("00000000000000ff")
        with pytest.raises(InvalidParameterError):
            Fingerprint(True)

    def test_hex_and_str(self):
        fingerprint = Fingerprint(0xABC)
        assert fingerprint.hex == "0000000000000abc"
        assert str(fingerprint) == fingerprint.hex

    def test_immutable(self):
        fingerprint = Fingerprint(1)
        with pytest.raises(AttributeError):
            fingerprint.value = 2

    def test_hamming_result_from_distance(self):
        result = HammingResult.from_distance(16)
        assert result.distance == 16
        assert result.percent == 25.0


class TestDecodedAudio:
    def test_duration(self):
        audio = DecodedAudio(
            samples=np.zeros(22050),
            sample_rate=44100,
            descriptor=AudioFormatDescriptor(tag=AudioFormat.WAVE_PCM),
        )
        assert audio.duration == pytest.approx(0.5)

    def test_duration_unknown_without_rate(self):
        audio = DecodedAudio(
            samples=np.zeros(10),
            sample_rate=0,
            descriptor=AudioFormatDescriptor(tag=AudioFormat.RAW_PCM16_LE),
        )
        assert audio.duration is None

    def test_descriptor_to_dict(self):
        descriptor = AudioFormatDescriptor(
            tag=AudioFormat.WAVE_PCM, channels=2, bits_per_sample=24, sample_rate=48000
        )
        assert descriptor.to_dict() == {
            "tag": "wave-pcm",
            "channels": 2,
            "bits_per_sample": 24,
            "sample_rate": 48000,
        }
