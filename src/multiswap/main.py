"""Command line entry point.

Usage:
    multiswap quote --chain xrpl --from XRP --to RLUSD \\
        --to-issuer rMxCKbEDwqr76QuheSUMdEGf4B9xJ8m5De --amount 10 [--slippage 1]
    multiswap tokens --chain solana BONK
    multiswap settings
"""

import argparse
import asyncio
import json
import logging
import sys
from decimal import Decimal
from typing import Optional

from multiswap.chains import ChainKind
from multiswap.client import SwapClient
from multiswap.config import Settings, get_settings
from multiswap.errors import SwapError

logger = logging.getLogger(__name__)


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Configure root logging from settings."""
    settings = settings or get_settings()
    log_level = logging.DEBUG if settings.debug else getattr(
        logging, settings.log_level.upper(), logging.INFO
    )
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="multiswap", description="Swap quotes on XRPL, EVM and Solana"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    quote = sub.add_parser("quote", help="Get a swap quote")
    quote.add_argument("--chain", choices=[c.value for c in ChainKind], required=True)
    quote.add_argument("--from", dest="from_symbol", required=True)
    quote.add_argument("--from-issuer", default="", help="Issuer, contract or mint (empty = native)")
    quote.add_argument("--to", dest="to_symbol", required=True)
    quote.add_argument("--to-issuer", default="", help="Issuer, contract or mint (empty = native)")
    quote.add_argument("--amount", type=Decimal, required=True)
    quote.add_argument(
        "--slippage", type=Decimal, default=None, help="Percent (chain default if omitted)"
    )

    tokens = sub.add_parser("tokens", help="Search tokens")
    tokens.add_argument("--chain", choices=[c.value for c in ChainKind], required=True)
    tokens.add_argument("query")

    sub.add_parser("settings", help="Show effective settings (secrets redacted)")
    return parser


async def run_quote(args: argparse.Namespace, settings: Settings) -> int:
    async with SwapClient(ChainKind(args.chain), settings=settings) as client:
        client.quotes.debounce_seconds = 0
        from_token = await client.catalog.resolve(args.from_symbol, args.from_issuer)
        to_token = await client.catalog.resolve(args.to_symbol, args.to_issuer)
        quote = await client.get_quote(from_token, to_token, args.amount, args.slippage)

    if quote is None:
        return 1
    print(json.dumps(
        {
            "from": str(quote.from_token),
            "to": str(quote.to_token),
            "amount": str(quote.input_amount),
            "expectedOutput": str(quote.expected_output),
            "minimumOutput": str(quote.minimum_output),
            "rate": str(quote.rate),
            "slippagePercent": str(quote.slippage_percent_used),
            "priceImpact": str(quote.price_impact) if quote.price_impact is not None else None,
            "platformFee": str(quote.platform_fee) if quote.platform_fee else None,
        },
        indent=2,
    ))
    return 0


async def run_tokens(args: argparse.Namespace, settings: Settings) -> int:
    async with SwapClient(ChainKind(args.chain), settings=settings) as client:
        tokens = await client.catalog.search(args.query)
    for token in tokens:
        print(f"{token.symbol:<10} {token.issuer_or_address or '(native)'}  decimals={token.decimals}")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(settings)

    if args.command == "settings":
        print(json.dumps(settings.get_safe_dict(), indent=2))
        return 0

    handler = run_quote if args.command == "quote" else run_tokens
    try:
        return asyncio.run(handler(args, settings))
    except SwapError as e:
        logger.error(f"{e.kind}: {e.message}")
        return 1
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")
        return 130


if __name__ == "__main__":
    sys.exit(main())
