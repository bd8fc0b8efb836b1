"""
Voice Parameter Mapper.

Turns an emotion analysis into synthesizer voice settings, blending the
primary preset with the strongest secondary emotion.
"""

from ..config import EmotionKind
from ..models import EmotionAnalysis, VoiceParameters, clamp
from ..tables import EMOTION_CONFIGS

HIGH_CONFIDENCE_THRESHOLD = 0.8
HIGH_CONFIDENCE_RATIO = 0.8
DEFAULT_BLEND_RATIO = 0.6


def parse_rate(rate: str) -> float:
    return float(rate)


def parse_pitch(pitch: str) -> float:
    """Percent change; "medium" is no change."""
    if pitch == "medium" or "%" not in pitch:
        return 0.0
    return float(pitch.replace("%", ""))


def parse_volume(volume: str) -> float:
    """Decibel change; "medium" is no change."""
    if volume == "medium" or "dB" not in volume:
        return 0.0
    return float(volume.replace("dB", ""))


def _signed(value: float, unit: str) -> str:
    return f"+{value:.1f}{unit}" if value >= 0 else f"{value:.1f}{unit}"


def blend_emotions(
    primary: EmotionKind,
    secondary: EmotionKind,
    ratio: float = 0.7,
) -> VoiceParameters:
    """
    Blend two presets, weighting the primary by ``ratio``.

    ratio=1.0 gives the primary preset and ratio=0.0 the secondary preset,
    field for field.
    """
    ratio = clamp(ratio)
    primary_params = EMOTION_CONFIGS[primary].voice_params
    secondary_params = EMOTION_CONFIGS[secondary].voice_params

    if ratio >= 1.0:
        return primary_params.copy()
    if ratio <= 0.0:
        return secondary_params.copy()

    def mix(a: float, b: float) -> float:
        return a * ratio + b * (1 - ratio)

    rate = mix(parse_rate(primary_params.rate), parse_rate(secondary_params.rate))
    pitch = mix(parse_pitch(primary_params.pitch), parse_pitch(secondary_params.pitch))
    volume = mix(parse_volume(primary_params.volume), parse_volume(secondary_params.volume))

    return VoiceParameters(
        rate=f"{rate:.2f}",
        pitch=_signed(pitch, "%"),
        volume=_signed(volume, "dB"),
        stability=clamp(mix(primary_params.stability, secondary_params.stability)),
        similarity_boost=clamp(
            mix(primary_params.similarity_boost, secondary_params.similarity_boost)
        ),
        # Not blended
        emphasis=primary_params.emphasis,
        pause_before=primary_params.pause_before,
        pause_after=primary_params.pause_after,
    )


def map_to_voice_parameters(analysis: EmotionAnalysis) -> VoiceParameters:
    """Voice settings for an analysis."""
    if not analysis.secondary:
        return EMOTION_CONFIGS[analysis.primary].voice_params.copy()

    ratio = (
        HIGH_CONFIDENCE_RATIO
        if analysis.confidence > HIGH_CONFIDENCE_THRESHOLD
        else DEFAULT_BLEND_RATIO
    )
    return blend_emotions(analysis.primary, analysis.secondary[0], ratio)


__all__ = [
    "blend_emotions",
    "map_to_voice_parameters",
    "parse_rate",
    "parse_pitch",
    "parse_volume",
]
