import argparse
import asyncio
import sys
from pathlib import Path

import uvicorn

from atlas.client.admin.session import country_template, render_module
from atlas.client.admin.validation import CODE_PATTERN, validate_draft
from atlas.client.dataset import StaticCountryDataset
from atlas.client.network_client import NetworkClient
from atlas.client.reconciler import DatasetReconciler
from atlas.server.app import create_app
from atlas.server.io.exporter import CoordinateTableWriter, CountryFileWriter
from atlas.server.session import create_session
from atlas.shared.config import AtlasConfig
from atlas.shared.errors import CountryFileError
from atlas.shared.names import resolve

PROJECT_ROOT = Path(__file__).resolve().parent


def serve(config: AtlasConfig, host: str, port: int):
    app = create_app(create_session(config.project_root))
    uvicorn.run(app, host=host, port=port)


async def sync(config: AtlasConfig, base_url: str) -> bool:
    """Pushes every authored module to a running server."""
    dataset = StaticCountryDataset(config)
    async with NetworkClient(base_url) as client:
        result = await DatasetReconciler(dataset, client).sync()
    print(result.message)
    return result.success


def add_country(config: AtlasConfig, args) -> bool:
    """
    Scaffolds a new authored module from the zero-valued template.
    Chart data stays at the template's placeholders until edited.
    """
    if args.code in StaticCountryDataset(config).all_codes():
        print(f"[Add] Country '{args.code}' already exists")
        return False

    draft = country_template(args.code)
    draft.name = args.name
    draft.capital = args.capital
    draft.population = args.population
    draft.region = args.region
    if args.coords:
        draft.flag_coordinates = (args.coords[0], args.coords[1])

    errors = validate_draft(draft)
    if errors:
        for error in errors:
            print(f"[Add] {error.field}: {error.message}")
        return False

    try:
        target = CountryFileWriter(config.countries_write_dir).write(f"{draft.code}.toml", render_module(draft))
    except CountryFileError as e:
        print(f"[Add] {e}")
        return False
    print(f"[Add] Created {target.name}. Run 'sync' to push it to the server.")
    return True


def add_coordinates(config: AtlasConfig, code: str, longitude: float, latitude: float) -> bool:
    try:
        CoordinateTableWriter(config.get_write_data_dir() / "map" / "coordinates.toml").set(code, longitude, latitude)
    except CountryFileError as e:
        print(f"[AddCoordinates] {e}")
        return False
    return True


def _country_code(value: str) -> str:
    if not CODE_PATTERN.match(value):
        raise argparse.ArgumentTypeError("ISO code must be exactly 3 lowercase letters")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="atlas", description="Political atlas backend and tools")
    commands = parser.add_subparsers(dest="command", required=True)

    serve_cmd = commands.add_parser("serve", help="Run the API server")
    serve_cmd.add_argument("--host", default=None)
    serve_cmd.add_argument("--port", type=int, default=None)

    sync_cmd = commands.add_parser("sync", help="Push the authored country modules to a running server")
    sync_cmd.add_argument("--url", default=None, help="API base URL (defaults to the configured one)")

    resolve_cmd = commands.add_parser("resolve", help="Resolve display names to country codes")
    resolve_cmd.add_argument("names", nargs="+")

    add_cmd = commands.add_parser("add", help="Create a new authored country module")
    add_cmd.add_argument("code", type=_country_code)
    add_cmd.add_argument("--name", required=True)
    add_cmd.add_argument("--capital", required=True)
    add_cmd.add_argument("--population", type=int, required=True)
    add_cmd.add_argument("--region", required=True)
    add_cmd.add_argument("--coords", type=float, nargs=2, metavar=("LON", "LAT"), default=None)

    coords_cmd = commands.add_parser("add-coordinates", help="Add or update a flag marker position")
    coords_cmd.add_argument("code", type=_country_code)
    coords_cmd.add_argument("longitude", type=float)
    coords_cmd.add_argument("latitude", type=float)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    config = AtlasConfig(PROJECT_ROOT)

    if args.command == "serve":
        print("Atlas starting...")
        serve(config, args.host or config.host, args.port or config.port)
    elif args.command == "sync":
        return 0 if asyncio.run(sync(config, args.url or config.api_base_url)) else 1
    elif args.command == "resolve":
        for name in args.names:
            resolution = resolve(name)
            suffix = " (synthetic)" if resolution.synthetic else ""
            print(f"{name} -> {resolution.code}{suffix}")
    elif args.command == "add":
        return 0 if add_country(config, args) else 1
    elif args.command == "add-coordinates":
        return 0 if add_coordinates(config, args.code, args.longitude, args.latitude) else 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
