"""
Manual comparison — quotes one corridor against every eligible platform
from the command line.

Usage:
    python scripts/run_comparison.py US NG 1000 [--history]

Useful for checking platform integrations without running the API.
"""

import argparse
import asyncio
import json
from decimal import Decimal

from app.core.logging import setup_logging
from app.integrations.base import RateQuoteRequest
from app.services.exchange_rate_service import ExchangeRateService


async def main(args: argparse.Namespace):
    """Run a single comparison and print the result."""
    request = RateQuoteRequest(
        sender_country=args.sender,
        recipient_country=args.recipient,
        amount=Decimal(args.amount),
        fetch_historical_data=args.history,
    )
    print(f"Comparing {request.corridor} for {request.amount} {request.sender_currency}...")
    result = await ExchangeRateService().compare_rates(request)

    print("\n=== Comparison Report ===")
    print(json.dumps(result, indent=2, default=str))

    winner = result["winner"]
    if winner:
        print(f"\nWinner: {winner['platform']} ({winner['receive_amount']:.2f} {result['recipient_currency_code']})")
    else:
        print("\nNo platform returned a quote")
    print(f"Spread: {result['metrics']['spread_percentage']:.2f}%")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("sender", help="Sender country code, e.g. US")
    parser.add_argument("recipient", help="Recipient country code, e.g. NG")
    parser.add_argument("amount", help="Amount in the sender's currency")
    parser.add_argument("--history", action="store_true", help="Include historical analytics")
    setup_logging()
    asyncio.run(main(parser.parse_args()))
