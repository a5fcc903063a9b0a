"""
main.py — command-line entry point.

  bargain-lens search --image photo.jpg --price 129.99
  bargain-lens search --text "acme drone x200" --json
  bargain-lens search --url https://example.com/product.jpg
  bargain-lens chat "Is $40 a fair price for this?"

Exit status 1 when nothing was found or a key is missing.
"""
import argparse
import asyncio
import base64
import json
import logging
import os
import sys
from pathlib import Path

import config
from errors import ConfigurationError, NotFound

_handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
if os.getenv("LOG_FILE"):
    _handlers.append(logging.FileHandler(os.environ["LOG_FILE"], encoding="utf-8"))

logging.basicConfig(
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    handlers=_handlers,
)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("aiohttp.access").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bargain-lens",
        description="Find cheaper offers for a product from a photo, text or link.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    search = sub.add_parser("search", help="Identify a product and list cheaper offers")
    search.add_argument("--image", type=Path, help="path to a product photo")
    search.add_argument("--text", default="", help="free-text product description")
    search.add_argument("--url", default="", help="link to a reference product image")
    search.add_argument("--price", default="", help="price you would pay today")
    search.add_argument("--json", action="store_true", help="print the raw result as JSON")

    chat = sub.add_parser("chat", help=f"Ask the {config.ASSISTANT_NAME} assistant")
    chat.add_argument("message")

    return parser


def _print_result(result) -> None:
    print(f"{result.product_name}  [{result.identified_model}]")
    print(f"Average market price: {result.market_analysis.average_market_price}")
    if result.original_estimated_price:
        print(f"Your price:           ${result.original_estimated_price:.2f}")
    print()
    for i, option in enumerate(result.options, 1):
        print(f"{i:>2}. {option.currency} {option.price:>9.2f}  {option.vendor}")
        print(f"    {option.description}")
        print(f"    {option.url}")


async def run(args: argparse.Namespace) -> int:
    if args.command == "chat":
        from assistant import chat
        print(await chat([], args.message))
        return 0

    from sourcing import run_search

    image_b64 = None
    if args.image:
        try:
            image_b64 = base64.b64encode(args.image.read_bytes()).decode()
        except OSError as exc:
            print(f"Cannot read image {args.image}: {exc.strerror or exc}", file=sys.stderr)
            return 2

    if not (image_b64 or args.text or args.url):
        print("Give at least one of --image, --text or --url.", file=sys.stderr)
        return 2

    result = await run_search(
        image=image_b64,
        text=args.text,
        reference_url=args.url,
        target_price=args.price,
    )

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        _print_result(result)
    return 0


def main() -> None:
    args = _build_parser().parse_args()
    try:
        code = asyncio.run(run(args))
    except (NotFound, ConfigurationError) as exc:
        logger.error("%s", exc)
        print(str(exc), file=sys.stderr)
        code = 1
    except KeyboardInterrupt:
        code = 130
    sys.exit(code)


if __name__ == "__main__":
    main()
