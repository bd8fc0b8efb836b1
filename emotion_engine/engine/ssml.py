"""
SSML Generator.

Builds speech markup with emotional prosody, pauses, emphasis and emotion
tags. Generation never raises: invalid output is repaired, and anything
that cannot be repaired is replaced by a minimal prosody-only document.
"""

import html
import math
import re
from typing import Any, Callable, List, Optional
from xml.sax.saxutils import escape

import structlog

from ..config import EmotionKind, Intensity, PerformanceMode, SSMLConfig
from ..models import EmotionAnalysis, MarkupError, SSMLOptions, SSMLValidationResult
from ..tables import (
    BREAK_TIMES,
    CHARGED_WORD_BREAK,
    CHARGED_WORDS,
    EMOTION_CONFIGS,
    EMPHASIS_KEYWORDS,
    INTENSITY_TAG_LABELS,
    SSML_TEMPLATES,
    VOICE_ADJUSTMENTS,
)
from .classifier import coerce_text

logger = structlog.get_logger()


_TAG_SPLIT_RE = re.compile(r"(<[^>]+>)")
_TAG_RE = re.compile(r"<(/?)([A-Za-z][\w:-]*)([^>]*?)(/?)>")
_ANY_TAG_RE = re.compile(r"<[^>]*>")
# The semicolon closing an escaped entity is not punctuation
_PUNCTUATION_RE = re.compile(r"(?<!&lt)(?<!&gt)(?<!&amp)([.!?,;:])(?=\s)")
_RATE_ATTR_RE = re.compile(r'rate="([^"]*)"')
_VALID_RATE_RE = re.compile(r"\d+(?:\.\d+)?%?")
_PERCENT_RATE_RE = re.compile(r'rate="([\d.]+)%"')
_BREAK_TIME_RE = re.compile(r'time="(\d+)ms"')
_BREAK_TAG_RE = re.compile(r"<break[^>]*/>")
_EMPHASIS_RE = re.compile(r"<emphasis[^>]*>(.*?)</emphasis>", re.DOTALL)
_SPEAK_OPEN_RE = re.compile(r"<speak(?:\s[^>]*)?>")
_DOUBLE_SPEAK_OPEN_RE = re.compile(r"(?:<speak>\s*){2,}")
_DOUBLE_SPEAK_CLOSE_RE = re.compile(r"(?:</speak>\s*){2,}")
_DANGLING_PROSODY_RE = re.compile(r"<prosody([^>]*)>([^<]*)</speak>")

HIGH_COMPLEXITY_TAGS = 20
MEDIUM_COMPLEXITY_TAGS = 10


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def map_text_nodes(markup: str, transform: Callable[[str], str]) -> str:
    """Apply ``transform`` to the text between tags, leaving tags untouched."""
    parts = _TAG_SPLIT_RE.split(markup)
    return "".join(
        part if part.startswith("<") else transform(part)
        for part in parts
    )


def strip_markup(ssml: str) -> str:
    """Plain spoken text of an SSML document."""
    return html.unescape(_ANY_TAG_RE.sub("", ssml)).strip()


def render_template(name: str, text: Any) -> str:
    """Fill one of the canned SSML templates with escaped text."""
    template = SSML_TEMPLATES.get(name)
    if template is None:
        raise ValueError(f"Unknown SSML template: {name}")
    return template.replace("{content}", escape(coerce_text(text)))


class SSMLGenerator:
    """
    Emotional SSML generator.

    Usage:
        generator = SSMLGenerator()
        ssml = generator.generate("Let me show you how.", analysis)
    """

    def __init__(self, config: Optional[SSMLConfig] = None):
        self.config = config or SSMLConfig()
        self.logger = logger.bind(component="ssml")

    def generate(
        self,
        text: Any,
        analysis: EmotionAnalysis,
        options: Optional[SSMLOptions] = None,
    ) -> str:
        """Generate SSML for text spoken with the analyzed emotion."""
        text = coerce_text(text)
        options = options or SSMLOptions()

        try:
            ssml = self._assemble(text, analysis, options)

            validation = self.validate(ssml)
            if not validation.is_valid:
                self.logger.warning(
                    "ssml_validation_failed",
                    errors=validation.errors,
                    warnings=validation.warnings,
                )
                ssml = self.repair(ssml)
        except Exception as e:
            self.logger.warning("ssml_generation_fallback", error=str(e))
            return self.fallback(text, getattr(analysis, "primary", EmotionKind.HELPFUL))

        self.logger.debug(
            "ssml_generated",
            text_length=len(text),
            ssml_length=len(ssml),
            primary=analysis.primary.value,
        )
        return ssml

    def _assemble(self, text: str, analysis: EmotionAnalysis, options: SSMLOptions) -> str:
        emotion = analysis.primary
        preset = EMOTION_CONFIGS[emotion]

        body = escape(text)

        if options.include_breaks:
            body = self.add_breaks(body, emotion, analysis.intensity)

        if options.include_emphasis:
            body = self.add_emphasis(body, emotion)

        if options.include_emotions:
            label = INTENSITY_TAG_LABELS.get(analysis.intensity.value, "medium")
            body = f'<emotion name="{emotion.value}" intensity="{label}">{body}</emotion>'

        if options.include_prosody:
            prosody = preset.prosody
            body = (
                f'<prosody rate="{prosody.rate}" pitch="{prosody.pitch}" '
                f'volume="{prosody.volume}">{body}</prosody>'
            )

        ssml = f"<speak>{body}</speak>"

        if options.optimize_for_voice:
            ssml = self.optimize_for_voice(ssml, options.optimize_for_voice)

        if options.performance == PerformanceMode.SPEED:
            ssml = self.optimize_for_speed(ssml)

        return ssml

    def add_breaks(self, markup: str, emotion: EmotionKind, intensity: Intensity) -> str:
        """Pause after punctuation, and before charged words when intensity is high."""
        times = BREAK_TIMES[emotion]

        def punctuate(node: str) -> str:
            return _PUNCTUATION_RE.sub(
                lambda m: f'{m.group(1)}<break time="{times[m.group(1)]}"/>',
                node,
            )

        result = map_text_nodes(markup, punctuate)

        if intensity == Intensity.HIGH:
            for word in CHARGED_WORDS:
                pattern = re.compile(rf"\b({re.escape(word)})\b", re.IGNORECASE)
                result = map_text_nodes(
                    result,
                    lambda node: pattern.sub(
                        rf'<break time="{CHARGED_WORD_BREAK}"/>\1', node
                    ),
                )

        return result

    def add_emphasis(self, markup: str, emotion: EmotionKind) -> str:
        """Wrap the emotion's emphasis keywords at the preset level."""
        level = EMOTION_CONFIGS[emotion].emphasis_level.value
        result = markup

        for keyword in EMPHASIS_KEYWORDS[emotion]:
            pattern = re.compile(rf"\b({re.escape(keyword)})\b", re.IGNORECASE)
            result = map_text_nodes(
                result,
                lambda node: pattern.sub(rf'<emphasis level="{level}">\1</emphasis>', node),
            )

        return result

    def optimize_for_voice(self, ssml: str, voice_id: str) -> str:
        """Rescale prosody rates and break times for a known voice."""
        adjustment = VOICE_ADJUSTMENTS.get(voice_id)
        if adjustment is None:
            return ssml

        optimized = _PERCENT_RATE_RE.sub(
            lambda m: f'rate="{round_half_up(float(m.group(1)) * adjustment.rate_factor)}%"',
            ssml,
        )
        optimized = _BREAK_TIME_RE.sub(
            lambda m: f'time="{round_half_up(int(m.group(1)) * adjustment.break_factor)}ms"',
            optimized,
        )
        return optimized

    def optimize_for_speed(self, ssml: str) -> str:
        """Drop breaks and emphasis, keeping prosody."""
        without_breaks = _BREAK_TAG_RE.sub("", ssml)
        return _EMPHASIS_RE.sub(r"\1", without_breaks)

    def validate(self, ssml: str) -> SSMLValidationResult:
        """Check root structure, tag balance and attribute formats."""
        errors: List[str] = []
        warnings: List[str] = []
        suggestions: List[str] = []

        opens = len(_SPEAK_OPEN_RE.findall(ssml))
        closes = ssml.count("</speak>")
        stripped = ssml.strip()
        if opens != 1 or closes != 1:
            errors.append("SSML must be wrapped in exactly one <speak> element")
        elif not (stripped.startswith("<speak") and stripped.endswith("</speak>")):
            errors.append("<speak> must be the outermost element")

        stack: List[str] = []
        for match in _TAG_RE.finditer(ssml):
            closing, name, _, self_closing = match.groups()
            if self_closing:
                continue
            if not closing:
                stack.append(name)
            elif stack and stack[-1] == name:
                stack.pop()
            elif name in stack:
                while stack[-1] != name:
                    errors.append(f"Unclosed tag: {stack.pop()}")
                stack.pop()
            else:
                errors.append(f"Unexpected closing tag: {name}")
        for name in stack:
            errors.append(f"Unclosed tag: {name}")

        for value in _RATE_ATTR_RE.findall(ssml):
            if not _VALID_RATE_RE.fullmatch(value):
                warnings.append(f"Invalid rate attribute format: {value}")

        tag_count = len(re.findall(r"<\w+", ssml))
        if tag_count > HIGH_COMPLEXITY_TAGS:
            complexity = "high"
            suggestions.append("Consider reducing emphasis or break markup")
        elif tag_count > MEDIUM_COMPLEXITY_TAGS:
            complexity = "medium"
        else:
            complexity = "low"

        plain_text = html.unescape(_ANY_TAG_RE.sub("", ssml))

        return SSMLValidationResult(
            is_valid=not errors,
            errors=errors,
            warnings=warnings,
            suggestions=suggestions,
            tag_count=tag_count,
            complexity=complexity,
            estimated_duration_s=len(plain_text) / self.config.chars_per_second,
        )

    def repair(self, ssml: str) -> str:
        """
        Fix common structural problems.

        Raises:
            MarkupError: Still invalid after the allowed repair passes.
        """
        fixed = ssml
        for _ in range(self.config.max_repair_passes):
            fixed = self._fix_common_issues(fixed)
            if self.validate(fixed).is_valid:
                return fixed

        raise MarkupError("SSML could not be repaired")

    def _fix_common_issues(self, ssml: str) -> str:
        fixed = ssml

        if not _SPEAK_OPEN_RE.search(fixed):
            fixed = f"<speak>{fixed}</speak>"

        fixed = _DOUBLE_SPEAK_OPEN_RE.sub("<speak>", fixed)
        fixed = _DOUBLE_SPEAK_CLOSE_RE.sub("</speak>", fixed)

        fixed = _DANGLING_PROSODY_RE.sub(r"<prosody\1>\2</prosody></speak>", fixed)

        return fixed

    def fallback(self, text: Any, emotion: EmotionKind) -> str:
        """Minimal prosody-only document."""
        prosody = EMOTION_CONFIGS.get(emotion, EMOTION_CONFIGS[EmotionKind.HELPFUL]).prosody
        return (
            f'<speak><prosody rate="{prosody.rate}" pitch="{prosody.pitch}">'
            f"{escape(coerce_text(text))}</prosody></speak>"
        )


__all__ = [
    "SSMLGenerator",
    "map_text_nodes",
    "strip_markup",
    "render_template",
    "round_half_up",
]
