#!/usr/bin/env python3
"""
citycoder CLI

Command-line interface for forward and reverse geocoding against the
offline city corpus.
"""

import sys
import json
import logging
import argparse
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from citycoder.config_manager import ConfigManager, GeocoderConfig
from citycoder.engine import CityGeocoder
from citycoder.exceptions import CitycoderError
from citycoder.models import City


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="citycoder",
        description="citycoder - offline city geocoding from Geonames and MaxMind feeds",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Forward geocode a location string
  %(prog)s geocode "Austin, TX"

  # Reverse geocode a coordinate pair
  %(prog)s reverse 30.26715 -97.74306

  # Rebuild snapshots from the raw feeds
  %(prog)s rebuild --data-dir ./geodata

  # Show corpus statistics
  %(prog)s stats

  # Write an example configuration file
  %(prog)s init-config citycoder.yaml
        """
    )

    # Configuration options
    parser.add_argument(
        '-c', '--config',
        type=Path,
        help='Geocoder configuration YAML file (default: use built-in config)'
    )
    parser.add_argument(
        '--data-dir',
        type=Path,
        help='Directory holding feeds and snapshots (overrides config)'
    )
    parser.add_argument(
        '--no-download',
        action='store_true',
        help='Never fetch missing feeds'
    )

    # Output options
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Verbose output'
    )
    parser.add_argument(
        '-q', '--quiet',
        action='store_true',
        help='Minimal output (errors only)'
    )

    subparsers = parser.add_subparsers(dest='command', required=True)

    geocode = subparsers.add_parser('geocode', help='Location string to city')
    geocode.add_argument('query', help='Location string, e.g. "Paris, France"')
    geocode.add_argument('--json', action='store_true', help='Print the match as JSON')

    reverse = subparsers.add_parser('reverse', help='Coordinates to nearest city')
    reverse.add_argument('latitude', type=float)
    reverse.add_argument('longitude', type=float)
    reverse.add_argument('--json', action='store_true', help='Print the city as JSON')

    subparsers.add_parser('rebuild', help='Rebuild snapshots from the raw feeds')

    stats = subparsers.add_parser('stats', help='Show corpus statistics')
    stats.add_argument(
        '--top',
        type=int,
        default=10,
        help='Number of countries to list (default: 10)'
    )

    init_config = subparsers.add_parser('init-config', help='Write an example config file')
    init_config.add_argument(
        'output',
        nargs='?',
        type=Path,
        default=Path('citycoder.yaml'),
        help='Destination path (default: citycoder.yaml)'
    )

    return parser


def setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    level = logging.INFO
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def load_config(args: argparse.Namespace) -> GeocoderConfig:
    """Build the geocoder config from the config file and CLI overrides."""
    if args.config:
        config = ConfigManager(args.config).load()
        if args.data_dir:
            config = move_data_dir(config, args.data_dir)
    else:
        config = GeocoderConfig(data_dir=args.data_dir or Path("citycoder-data"))

    if args.no_download:
        config.download_enabled = False
    return config


def move_data_dir(config: GeocoderConfig, data_dir: Path) -> GeocoderConfig:
    """Point a loaded config at another data directory.

    Paths under the old data directory move with it; paths configured
    elsewhere, dataset URLs and all other settings are kept.
    """
    def rebase(path: Path) -> Path:
        try:
            return data_dir / path.relative_to(config.data_dir)
        except ValueError:
            return path

    return replace(
        config,
        data_dir=data_dir,
        snapshot_dir=rebase(config.snapshot_dir),
        datasets=[replace(source, path=rebase(source.path)) for source in config.datasets],
    )


def format_city(city: City) -> str:
    place = ", ".join(part for part in (city.name, city.region, city.country) if part)
    return (
        f"{place} ({city.latitude:.5f}, {city.longitude:.5f}) "
        f"population {city.population:,}"
    )


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose, args.quiet)

    if args.command == 'init-config':
        ConfigManager().save_example_config(args.output)
        if not args.quiet:
            print(f"✅ Example configuration written to {args.output}")
        return 0

    try:
        config = load_config(args)
        geocoder = CityGeocoder(config, force_rebuild=args.command == 'rebuild')
    except (CitycoderError, FileNotFoundError, ValueError) as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        return 1

    if args.command == 'geocode':
        match = geocoder.geocode_match(args.query)
        if args.json:
            print(json.dumps(match.to_dict(), ensure_ascii=False, indent=2))
        elif match.city:
            print(format_city(match.city))
        if not match.city:
            if not args.json:
                print(f"❌ No match for {args.query!r}", file=sys.stderr)
            return 1
        return 0

    if args.command == 'reverse':
        city = geocoder.reverse_geocode(args.latitude, args.longitude)
        if args.json:
            print(json.dumps(city.to_dict(), ensure_ascii=False, indent=2))
        elif city:
            print(format_city(city))
        if not city:
            if not args.json:
                print(f"❌ No city near ({args.latitude}, {args.longitude})", file=sys.stderr)
            return 1
        return 0

    if args.command == 'rebuild':
        if not args.quiet:
            print(f"✅ Rebuilt {len(geocoder.store)} cities into {config.snapshot_dir}")
        return 0

    if args.command == 'stats':
        show_statistics(geocoder, args.top)
        return 0

    parser.error(f"Unknown command: {args.command}")
    return 2


def show_statistics(geocoder: CityGeocoder, top: int = 10):
    """Show corpus statistics."""
    stats = geocoder.get_statistics()

    print("\n" + "="*60)
    print("📊 Corpus Statistics")
    print("="*60)
    print(f"Cities:            {stats['total_cities']}")
    print(f"Countries:         {stats['total_countries']}")
    print(f"Index Keys:        {stats['index_keys']}")
    print(f"With Geohash:      {stats['cities_with_geohash']}")
    print(f"From Snapshot:     {stats['restored_from_snapshot']}")
    print(f"Load Time:         {stats['load_time_ms']}ms")
    print()
    print(f"Top {top} Countries:")
    total = stats['total_cities']
    for country, count in list(stats['cities_by_country'].items())[:top]:
        percentage = count / total * 100 if total > 0 else 0
        print(f"  {country or '??':20s}: {count:6d} ({percentage:5.1f}%)")
    print("="*60)


if __name__ == "__main__":
    sys.exit(main())
