"""CLI entry point for the Product Review terminal client."""

import argparse
import json
import sys
from typing import Optional


def run_tui(deep_link: Optional[str] = None, store_path: Optional[str] = None) -> None:
    """Run the Textual client."""
    from src.services.user_preferences import UserPreferences
    from src.tui.app import ProductReviewApp

    preferences = UserPreferences.from_settings(store_path)
    ProductReviewApp(preferences, deep_link=deep_link).run()


def print_route(path: str) -> None:
    """Decode a deep link and print its typed payload; unknown paths print the root."""
    from src.domain.errors import RouteDecodeError
    from src.domain.route_codec import decode_path, route_to_payload
    from src.domain.routes import ROOT_ROUTE

    try:
        route = decode_path(path)
    except RouteDecodeError as exc:
        print(f"Unrecognized route: {exc.reason}", file=sys.stderr)
        route = ROOT_ROUTE
    print(json.dumps(route_to_payload(route)))


def main():
    parser = argparse.ArgumentParser(description="Product Review terminal client")
    parser.add_argument("--deep-link", help="Open the client at this route path")
    parser.add_argument("--store", help="Preference store file (default from settings)")
    parser.add_argument(
        "--print-route",
        metavar="PATH",
        help="Decode a route path, print it as JSON and exit",
    )
    args = parser.parse_args()

    if args.print_route is not None:
        print_route(args.print_route)
        return
    run_tui(deep_link=args.deep_link, store_path=args.store)


if __name__ == "__main__":
    main()
