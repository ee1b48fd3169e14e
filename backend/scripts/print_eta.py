#!/usr/bin/env python3
"""
Print ETAs for the next stops of a route from the command line, without starting the API.

Uses the same route source and routing provider as the server (configured via .env / environment).
Example:
  python scripts/print_eta.py --stop-id 12345 --lat 59.33 --lon 18.06
  python scripts/print_eta.py --stop-id 12345 --lat 59.33 --lon 18.06 --from-stop-id 12346 --routing straight_line
"""
import argparse
import asyncio
import sys
from pathlib import Path

# Add backend root to path
backend = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(backend))

from settings import get_settings
from src.data.geo import GeoCoordinate
from src.eta.calculator import EtaCalculator
from src.routes.iceman import IcemanRouteSource, RouteSourceError
from src.routing import ROUTING_PROVIDERS, build_travel_time_service


async def run(args: argparse.Namespace) -> int:
    settings = get_settings()
    if args.routing:
        settings.routing_provider = args.routing
    source = IcemanRouteSource(
        base_url=settings.route_source_base_url,
        timeout=settings.upstream_timeout_seconds,
        route_timezone=settings.route_timezone,
    )
    try:
        route = await source.fetch_route_by_stop(args.stop_id)
    except RouteSourceError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    if route is None:
        print(f"Error: no route found for stop {args.stop_id}", file=sys.stderr)
        return 1

    calculator = EtaCalculator(build_travel_time_service(settings))
    result = await calculator.calculate(route, GeoCoordinate(args.lat, args.lon), args.from_stop_id)

    print(f"Route {result.route_id} at {result.current_stop_address}")
    print(f"{result.remaining_stops_count} stops remaining, average dwell {result.average_dwell_minutes} min")
    for s in result.stops:
        arrival = s.estimated_arrival.astimezone().strftime("%H:%M")
        print(f"  {arrival}  +{s.minutes_from_now:>3} min  (drive {s.travel_minutes:>2})  {s.name}")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Print truck ETAs for the route containing a stop")
    parser.add_argument("--stop-id", type=int, required=True, help="Stop id the route is looked up by")
    parser.add_argument("--lat", type=float, required=True, help="Truck latitude")
    parser.add_argument("--lon", type=float, required=True, help="Truck longitude")
    parser.add_argument("--from-stop-id", type=int, default=None, help="Only estimate stops after this one")
    parser.add_argument("--routing", choices=ROUTING_PROVIDERS, default=None, help="Override ROUTING_PROVIDER")
    args = parser.parse_args()
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
