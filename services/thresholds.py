"""Day and night noise limits used for color coding."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class LevelStatus(str, Enum):
    ok = "ok"
    elevated = "elevated"
    exceeded = "exceeded"


@dataclass(frozen=True)
class ThresholdBand:
    elevated_at: float
    exceeded_at: float

    def classify(self, level: float) -> LevelStatus:
        if level >= self.exceeded_at:
            return LevelStatus.exceeded
        if level >= self.elevated_at:
            return LevelStatus.elevated
        return LevelStatus.ok


@dataclass(frozen=True)
class Thresholds:
    day: ThresholdBand = ThresholdBand(elevated_at=55.0, exceeded_at=60.0)
    night: ThresholdBand = ThresholdBand(elevated_at=43.0, exceeded_at=45.0)
    day_start_hour: int = 6
    night_start_hour: int = 22

    def band_for(self, time_label: str) -> ThresholdBand:
        try:
            hour = int(time_label.split(":")[0])
        except ValueError:
            return self.night
        if self.day_start_hour <= hour < self.night_start_hour:
            return self.day
        return self.night

    def classify(self, time_label: str, level: float) -> LevelStatus:
        return self.band_for(time_label).classify(level)


DEFAULT_THRESHOLDS = Thresholds()

STATUS_CSS_CLASSES = {
    LevelStatus.ok: "level-ok",
    LevelStatus.elevated: "level-elevated",
    LevelStatus.exceeded: "level-exceeded",
}

STATUS_EMOJI = {
    LevelStatus.ok: "\U0001F60A",
    LevelStatus.elevated: "\U0001F610",
    LevelStatus.exceeded: "\U0001F621",
}


def classify_level(time_label: str, level: float) -> LevelStatus:
    return DEFAULT_THRESHOLDS.classify(time_label, level)
