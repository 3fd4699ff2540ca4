#!/usr/bin/env python3
"""CLI tool for seeding members and stations in local development.

Usage:
    # Create a member (prints the UUID to use as a JWT-less reference)
    python -m subway.cli create-member

    # Create a station
    python -m subway.cli create-station "Gangnam"

    # List all stations
    python -m subway.cli list-stations
"""

import argparse
import asyncio
import sys
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from subway.core.database import get_session_factory
from subway.schemas.stations import StationRequest
from subway.services.member_service import MemberService
from subway.services.station_service import DuplicateStationError, StationService


async def cmd_create_member(args: argparse.Namespace, session: AsyncSession) -> int:
    """
    Create a new member.

    Args:
        args: Parsed command-line arguments
        session: Database session

    Returns:
        Exit code (0 for success, 1 for error)
    """
    external_id = args.external_id or f"cli|{uuid.uuid4().hex[:12]}"
    service = MemberService(session)

    if existing := await service.get_member_by_external_id(external_id, args.provider):
        print(
            f"❌ Error: Member with external_id '{external_id}' and auth_provider "
            f"'{args.provider}' already exists (id: {existing.id})",
            file=sys.stderr,
        )
        return 1

    member = await service.create_member(external_id, args.provider)

    print("✅ Created member successfully!")
    print(f"   Member ID:   {member.id}")
    print(f"   External ID: {member.external_id}")
    print(f"   Provider:    {member.auth_provider}")
    return 0


async def cmd_create_station(args: argparse.Namespace, session: AsyncSession) -> int:
    """
    Create a new station.

    Args:
        args: Parsed command-line arguments
        session: Database session

    Returns:
        Exit code (0 for success, 1 for error)
    """
    try:
        request = StationRequest(name=args.name)
    except ValueError as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        return 1

    try:
        station = await StationService(session).create_station(request)
    except DuplicateStationError as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        return 1

    print("✅ Created station successfully!")
    print(f"   Station ID: {station.id}")
    print(f"   Name:       {station.name}")
    return 0


async def cmd_list_stations(args: argparse.Namespace, session: AsyncSession) -> int:  # noqa: ARG001
    """List all stations ordered by id."""
    stations = await StationService(session).list_stations()

    if not stations:
        print("No stations found")
        return 0

    print(f"{'Station ID':<12} Name")
    print("-" * 50)
    for station in stations:
        print(f"{station.id:<12} {station.name}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for the CLI tool.

    Args:
        argv: Command-line arguments (defaults to sys.argv)

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = argparse.ArgumentParser(
        description="Member and station management CLI tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m subway.cli create-member
  python -m subway.cli create-member --external-id "auth0|abc123" --provider auth0
  python -m subway.cli create-station "Gangnam"
  python -m subway.cli list-stations
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    create_member_parser = subparsers.add_parser(
        "create-member",
        help="Create a new member",
        description="Create a member record. Authenticated requests create members automatically; "
        "this is for seeding local databases.",
    )
    create_member_parser.add_argument(
        "--external-id",
        type=str,
        help="Custom external ID (e.g., 'auth0|abc123'). If not provided, generates 'cli|<random>'",
    )
    create_member_parser.add_argument(
        "--provider",
        type=str,
        default="cli",
        help="Auth provider (default: cli)",
    )

    create_station_parser = subparsers.add_parser(
        "create-station",
        help="Create a new station",
        description="Create a station with a unique name.",
    )
    create_station_parser.add_argument("name", type=str, help="Station name")

    subparsers.add_parser(
        "list-stations",
        help="List all stations",
        description="Display all stations ordered by id.",
    )

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    command_handlers = {
        "create-member": cmd_create_member,
        "create-station": cmd_create_station,
        "list-stations": cmd_list_stations,
    }

    if handler := command_handlers.get(args.command):

        async def run_with_session() -> int:
            async with get_session_factory()() as session:
                try:
                    return await handler(args, session)
                except Exception as e:
                    print(f"❌ Unexpected error: {e}", file=sys.stderr)
                    return 1

        return asyncio.run(run_with_session())

    print(f"❌ Unknown command: {args.command}", file=sys.stderr)
    return 1


if __name__ == "__main__":
    sys.exit(main())
