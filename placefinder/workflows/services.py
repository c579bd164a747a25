"""Wiring of concrete gateways and stores into a service bundle."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from psycopg2.extensions import connection as PGConnection

from placefinder.core import db
from placefinder.core.config import Settings
from placefinder.core.geoapify import (
    GeoapifyClient,
    GeoapifyGeocoder,
    GeoapifyPlacesSearch,
    GeoapifyRouter,
)
from placefinder.core.offline_router import StraightLineRouter
from placefinder.core.plan_store import InMemoryPlanStore, PostgresPlanStore
from placefinder.core.ports import (
    Geocoder,
    PlacesSearch,
    PlanStore,
    PreferenceStore,
    RouteOracle,
    WeatherProvider,
)
from placefinder.core.preference_store import InMemoryPreferenceStore, PostgresPreferenceStore
from placefinder.core.weather import OpenMeteoWeather

_LOGGER = logging.getLogger(__name__)


@dataclass
class PlanningServices:
    """Collaborators a workflow needs to serve one request."""

    preferences: PreferenceStore
    plans: PlanStore
    geocoder: Geocoder
    places: PlacesSearch
    weather: WeatherProvider
    router: RouteOracle
    default_radius_km: float = 2.0
    dwell_minutes: int = 45
    available_minutes: int = 480


def build_services(
    settings: Settings, *, connection: Optional[PGConnection] = None
) -> PlanningServices:
    """Return services backed by Geoapify, Open-Meteo and the given connection.

    Without a connection the in-memory stores are used. Without a Geoapify key
    geocoding and place search fail with a gateway error on use, while routing
    falls back to :class:`StraightLineRouter`.
    """

    if connection is not None:
        db.ensure_schema(connection)
        preferences: PreferenceStore = PostgresPreferenceStore(connection)
        plans: PlanStore = PostgresPlanStore(connection)
    else:
        _LOGGER.info("No database connection supplied; using in-memory stores")
        preferences = InMemoryPreferenceStore()
        plans = InMemoryPlanStore()

    client = GeoapifyClient(settings.geoapify_api_key, timeout=settings.http_timeout)
    if client.configured:
        router: RouteOracle = GeoapifyRouter(client, mode=settings.travel_mode)
    else:
        _LOGGER.warning("GEOAPIFY_API_KEY not set; using straight-line travel estimates")
        router = StraightLineRouter(mode=settings.travel_mode, speed_kmh=settings.offline_speed_kmh)

    return PlanningServices(
        preferences=preferences,
        plans=plans,
        geocoder=GeoapifyGeocoder(client),
        places=GeoapifyPlacesSearch(client),
        weather=OpenMeteoWeather(
            rain_probability_threshold=settings.rain_probability_threshold,
            timeout=settings.http_timeout,
        ),
        router=router,
        default_radius_km=settings.default_radius_km,
        dwell_minutes=settings.dwell_minutes,
        available_minutes=settings.available_minutes,
    )


__all__ = ["PlanningServices", "build_services"]
