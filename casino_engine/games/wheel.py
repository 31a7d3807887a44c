"""Lucky Wheel: 8 fixed segments, winner read off the accumulated rotation."""
from __future__ import annotations

import logging
from dataclasses import dataclass

from config.settings import TimingConfig
from casino_engine.games.base import BaseGameEngine

logger = logging.getLogger("moodcasino.games.wheel")


@dataclass(frozen=True)
class WheelSegment:
    multiplier: float
    color: str

    @property
    def title(self) -> str:
        return f"x{self.multiplier:.1f}"


# Wheel order, clockwise from the pointer at rest
WHEEL_SEGMENTS = [
    WheelSegment(0.5, "gray"),
    WheelSegment(1.0, "blue"),
    WheelSegment(2.0, "green"),
    WheelSegment(0.8, "orange"),
    WheelSegment(5.0, "yellow"),
    WheelSegment(1.5, "purple"),
    WheelSegment(10.0, "red"),
    WheelSegment(3.0, "pink"),
]

MIN_SPIN_DEGREES = 1440.0   # 4 full turns
MAX_SPIN_DEGREES = 2880.0   # 8 full turns


def draw_spin_degrees(rng) -> float:
    """Uniform over [MIN_SPIN_DEGREES, MAX_SPIN_DEGREES); the upper bound is never drawn."""
    return MIN_SPIN_DEGREES + rng.random() * (MAX_SPIN_DEGREES - MIN_SPIN_DEGREES)


def segment_index_for_rotation(rotation: float, segment_count: int = len(WHEEL_SEGMENTS)) -> int:
    """Segment under the fixed pointer after the wheel turned `rotation` degrees.

    The wheel turns clockwise past a fixed pointer, so the angle is inverted
    before bucketing.
    """
    normalized = (-rotation) % 360.0
    return int(normalized / (360.0 / segment_count)) % segment_count


def spin_duration(spin_degrees: float) -> float:
    return TimingConfig.WHEEL_BASE_SPIN + (spin_degrees % 360.0) / TimingConfig.WHEEL_DEGREES_PER_EXTRA_SECOND


@dataclass
class WheelOutcome:
    segment_index: int
    segment: WheelSegment
    rotation: float
    spin_degrees: float


class WheelEngine(BaseGameEngine):
    game_type = "wheel"
    display_name = "Lucky Wheel"

    def __init__(self, *args, segments: list = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.segments = list(segments or WHEEL_SEGMENTS)
        self.rotation_angle = 0.0

    @property
    def is_spinning(self) -> bool:
        return self.is_busy

    @property
    def can_spin(self) -> bool:
        return self.can_play

    def spin(self) -> bool:
        return self.play()

    def _begin_round(self):
        spin_degrees = draw_spin_degrees(self.rng)
        self.rotation_angle += spin_degrees
        duration = spin_duration(spin_degrees)
        self.round.progress.update(spin_degrees=spin_degrees, rotation=self.rotation_angle,
                                   duration=duration)
        logger.debug(f"Spinning {spin_degrees:.1f}° over {duration:.2f}s")
        self.scheduler.call_later(duration, lambda: self._check_win(spin_degrees))

    def _check_win(self, spin_degrees: float):
        idx = segment_index_for_rotation(self.rotation_angle, len(self.segments))
        segment = self.segments[idx]
        outcome = WheelOutcome(idx, segment, self.rotation_angle, spin_degrees)
        self._settle(outcome, self.round.bet * segment.multiplier)

    def simulate_round(self, rng) -> float:
        rotation = draw_spin_degrees(rng)
        return self.segments[segment_index_for_rotation(rotation, len(self.segments))].multiplier
