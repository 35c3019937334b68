"""Resampler providers."""

from voicebridge.audio.resampler.base import ResamplerProvider
from voicebridge.audio.resampler.linear import LinearResamplerProvider
from voicebridge.audio.resampler.mock import MockResamplerProvider

__all__ = [
    "LinearResamplerProvider",
    "MockResamplerProvider",
    "ResamplerProvider",
]
