"""Weighted scoring of candidate places against interests and weather."""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Tuple

from placefinder.schemas import IndoorOutdoorType, Interest, Place, WeatherSignal

INTEREST_MATCH_POINTS = 10.0
WEATHER_BONUS_POINTS = 5.0


class PlaceRanker:
    """Orders places by how well they suit the traveller and the forecast.

    Ranking is a pure function of its inputs: the same places, interests and
    weather always produce the same order, and the input list is untouched.
    """

    def score(
        self,
        place: Place,
        interests: Iterable[Interest],
        weather: Optional[WeatherSignal],
    ) -> float:
        matches = len(set(interests) & place.categories)
        score = INTEREST_MATCH_POINTS * matches

        if weather is not None:
            if weather.precipitation_likely and place.indoor_outdoor_type is IndoorOutdoorType.INDOOR:
                score += WEATHER_BONUS_POINTS
            if not weather.precipitation_likely and place.indoor_outdoor_type is IndoorOutdoorType.OUTDOOR:
                score += WEATHER_BONUS_POINTS

        return score - place.distance_km

    def rank_scored(
        self,
        places: Sequence[Place],
        interests: Iterable[Interest],
        weather: Optional[WeatherSignal],
    ) -> List[Tuple[Place, float]]:
        """Return ``(place, score)`` pairs, best first."""

        selected = frozenset(interests)
        scored = [(place, self.score(place, selected, weather)) for place in places]
        # sorted() is stable, so equal scores and distances keep input order.
        return sorted(scored, key=lambda item: (-item[1], item[0].distance_km))

    def rank(
        self,
        places: Sequence[Place],
        interests: Iterable[Interest],
        weather: Optional[WeatherSignal],
    ) -> List[Place]:
        return [place for place, _ in self.rank_scored(places, interests, weather)]


__all__ = ["INTEREST_MATCH_POINTS", "PlaceRanker", "WEATHER_BONUS_POINTS"]
