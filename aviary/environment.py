"""Time-of-day, season and weather inputs consumed by the decision core.

The core only reads these through the `TimeSource` and `WeatherProvider`
protocols. `TimeState` and `WeatherState` are the default in-memory
implementations; a host application with its own day/night cycle or weather
simulation can pass anything satisfying the protocols instead.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from aviary import config
from aviary.types import DeltaTime, HourOfDay, SimTime


class Season(Enum):
    SPRING = "Spring"
    SUMMER = "Summer"
    FALL = "Fall"
    WINTER = "Winter"


class TimeSource(Protocol):
    @property
    def seconds(self) -> SimTime: ...

    @property
    def hour(self) -> HourOfDay: ...

    @property
    def season(self) -> Season: ...

    @property
    def is_breeding_season(self) -> bool: ...

    @property
    def is_migration_period(self) -> bool: ...

    def daylight_factor(self) -> float: ...


class WeatherProvider(Protocol):
    """Weather scalars, each in [0, 1]."""

    weather_fear: float
    shelter_urgency: float
    wind_strength: float
    thermal_strength: float
    # Normalized comfort temperature: 0.0 is freezing, 1.0 is hot.
    temperature: float


class TimeState:
    """Simulated clock: absolute seconds, hour of day and day of year."""

    def __init__(
        self,
        hour: HourOfDay = config.START_HOUR,
        day_of_year: int = config.START_DAY_OF_YEAR,
        seconds_per_hour: float = config.SECONDS_PER_GAME_HOUR,
    ) -> None:
        self._seconds = SimTime(0.0)
        self._hour = hour % 24.0
        self.day_of_year = day_of_year
        self.seconds_per_hour = seconds_per_hour

    @property
    def seconds(self) -> SimTime:
        return self._seconds

    @property
    def hour(self) -> HourOfDay:
        return self._hour

    @hour.setter
    def hour(self, value: HourOfDay) -> None:
        self._hour = value % 24.0

    def advance(self, delta_time: DeltaTime) -> None:
        """Move the clock forward, rolling hours into days and days into years."""
        self._seconds = SimTime(self._seconds + delta_time)
        hour = self._hour + delta_time / self.seconds_per_hour
        while hour >= 24.0:
            hour -= 24.0
            self.day_of_year = self.day_of_year % 365 + 1
        self._hour = hour

    @property
    def season(self) -> Season:
        if 80 <= self.day_of_year <= 171:
            return Season.SPRING
        if 172 <= self.day_of_year <= 264:
            return Season.SUMMER
        if 265 <= self.day_of_year <= 355:
            return Season.FALL
        return Season.WINTER

    @property
    def is_breeding_season(self) -> bool:
        return self.season in (Season.SPRING, Season.SUMMER)

    @property
    def is_migration_period(self) -> bool:
        return self.season in (Season.SPRING, Season.FALL)

    def is_prime_feeding_time(self) -> bool:
        # Birds are most active in early morning and late afternoon
        return 6.0 <= self._hour <= 10.0 or 16.0 <= self._hour <= 19.0

    def daylight_factor(self) -> float:
        if self._hour < 6.0 or self._hour > 20.0:
            return 0.1  # Night
        if self._hour < 8.0 or self._hour > 18.0:
            return 0.6  # Dawn/dusk
        return 1.0


class Weather(Enum):
    """Coarse weather conditions and the scalars they imply at full intensity.

    Values are (weather_fear, shelter_urgency, wind_strength, thermal_strength).
    """

    CLEAR = (0.0, 0.0, 0.1, 0.5)
    CLOUDY = (0.05, 0.1, 0.2, 0.2)
    RAINY = (0.3, 0.65, 0.3, 0.0)
    SNOWY = (0.35, 0.7, 0.3, 0.0)
    WINDY = (0.25, 0.4, 0.8, 0.1)
    STORMY = (0.9, 1.0, 0.9, 0.0)


@dataclass
class WeatherState:
    weather_fear: float = 0.0
    shelter_urgency: float = 0.0
    wind_strength: float = 0.1
    thermal_strength: float = 0.5
    temperature: float = 0.6

    @classmethod
    def from_weather(
        cls, weather: Weather, intensity: float = 1.0, temperature: float = 0.6
    ) -> WeatherState:
        state = cls(temperature=temperature)
        state.set_weather(weather, intensity)
        return state

    def set_weather(self, weather: Weather, intensity: float = 1.0) -> None:
        """Overwrite the weather scalars from a preset scaled by ``intensity``."""
        intensity = max(0.0, min(1.0, intensity))
        fear, shelter, wind, thermals = weather.value
        self.weather_fear = fear * intensity
        self.shelter_urgency = shelter * intensity
        self.wind_strength = wind * intensity
        # Thermals weaken as any weather system strengthens.
        self.thermal_strength = thermals * (1.0 - 0.5 * intensity)
