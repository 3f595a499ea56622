"""
Command line entry point.

    python -m attendance_nft serve [--host HOST] [--port PORT]
    python -m attendance_nft mint RECIPIENT METADATA
    python -m attendance_nft metadata TOKEN_ID
    python -m attendance_nft owned ADDRESS
"""
import argparse
import json
import logging
import sys
from typing import List, Optional

from .config import Settings
from .exceptions import AttendanceNFTError
from .server import build_client, create_app

logger = logging.getLogger("attendance_nft")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="attendance-nft",
        description="Mint and inspect attendance NFTs.")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)")

    commands = parser.add_subparsers(dest="command", required=True)

    serve = commands.add_parser("serve", help="Run the HTTP relay")
    serve.add_argument("--host", default="0.0.0.0", help="Interface to listen on")
    serve.add_argument("--port", type=int, default=None, help="Port (default: $PORT or 3001)")

    mint = commands.add_parser("mint", help="Mint a token and print the result")
    mint.add_argument("recipient", help="Address that will own the token")
    mint.add_argument("metadata", help="Attendance description stored with the token")

    metadata = commands.add_parser("metadata", help="Print a token's display descriptor")
    metadata.add_argument("token_id", help="Token identifier")

    owned = commands.add_parser("owned", help="List tokens owned by an address")
    owned.add_argument("address", help="Owner address")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    settings = Settings.from_env()
    try:
        if args.command == "serve":
            app = create_app(settings)
            port = args.port or settings.port
            logger.info(f"Server running on port {port}")
            app.run(host=args.host, port=port)
            return 0

        client = build_client(settings)
        if args.command == "mint":
            result = client.mint_attendance(args.recipient, args.metadata)
            output = result.model_dump(by_alias=True)
        elif args.command == "metadata":
            output = client.describe_token(args.token_id).model_dump()
        else:
            output = client.owned_tokens(args.address)
    except AttendanceNFTError as e:
        logger.error(f"{e.kind.value}: {e}")
        return 1
    except ValueError as e:
        logger.error(str(e))
        return 2

    print(json.dumps(output, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
