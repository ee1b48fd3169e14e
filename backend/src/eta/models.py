"""Pydantic models for the route, ETA and position webhook endpoints."""
from datetime import datetime

from pydantic import BaseModel, Field

from src.data.geo import GeoCoordinate
from src.eta.calculator import EtaResult
from src.routes.models import Route, TruckPosition


class RouteStopResponse(BaseModel):
    stop_id: int
    name: str
    latitude: float
    longitude: float
    sequence: int
    planned_arrival: datetime | None


class RouteResponse(BaseModel):
    route_id: int
    stops: list[RouteStopResponse]

    @classmethod
    def from_route(cls, route: Route) -> "RouteResponse":
        return cls(
            route_id=route.route_id,
            stops=[
                RouteStopResponse(
                    stop_id=s.stop_id,
                    name=s.name,
                    latitude=s.position.latitude,
                    longitude=s.position.longitude,
                    sequence=s.sequence,
                    planned_arrival=s.planned_arrival,
                )
                for s in route.stops
            ],
        )


class StopEtaResponse(BaseModel):
    stop_id: int
    name: str
    latitude: float
    longitude: float
    estimated_arrival: datetime
    minutes_from_now: int
    travel_minutes: int


class EtaResponse(BaseModel):
    route_id: int
    calculated_at: datetime
    current_stop_address: str
    remaining_stops_count: int
    average_dwell_minutes: int
    stops: list[StopEtaResponse]

    @classmethod
    def from_result(cls, result: EtaResult) -> "EtaResponse":
        return cls(
            route_id=result.route_id,
            calculated_at=result.calculated_at,
            current_stop_address=result.current_stop_address,
            remaining_stops_count=result.remaining_stops_count,
            average_dwell_minutes=result.average_dwell_minutes,
            stops=[StopEtaResponse(**s._asdict()) for s in result.stops],
        )


class PositionWebhookRequest(BaseModel):
    truck_id: str = Field(min_length=1, max_length=64)
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    speed: float = 0.0
    heading: float = 0.0
    freezer_temp: float = 0.0
    timestamp: datetime

    def to_position(self) -> TruckPosition:
        return TruckPosition(
            truck_id=self.truck_id,
            position=GeoCoordinate(self.latitude, self.longitude),
            speed=self.speed,
            heading=self.heading,
            freezer_temp=self.freezer_temp,
            timestamp=self.timestamp,
        )


class PositionWebhookResponse(BaseModel):
    received: bool
    truck_id: str
