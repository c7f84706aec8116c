import argparse
import asyncio
import sys
from typing import TextIO

from .classifier import CLASSIFICATION_NOTE, classify
from .errors import ResolutionError, user_message
from .observability import configure_logging
from .resolver import WalletDataResolver, build_default_resolver
from .validation import is_valid_identifier

LISTED_TOKENS = 5


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='wallet-intel-verify',
        description='Resolve Solana addresses and report whether each looks like a wallet or a program.',
        epilog=CLASSIFICATION_NOTE,
    )
    parser.add_argument('addresses', nargs='*', help='Solana addresses to verify')
    parser.add_argument('--log-level', default=None, help='Override LOG_LEVEL for this run')
    return parser


async def verify_address(
    address: str,
    resolver: WalletDataResolver,
    out: TextIO | None = None,
    err: TextIO | None = None,
) -> bool:
    out = out or sys.stdout
    err = err or sys.stderr
    if not is_valid_identifier(address):
        print(f'Failed to verify address {address}: not a valid Solana address', file=err)
        return False
    try:
        account = await resolver.resolve(address)
    except ResolutionError as exc:
        print(f'Failed to verify address {address}: {user_message(exc)}', file=err)
        return False

    print(f'Address: {address}', file=out)
    print(f'  Source: {account.source_label}', file=out)
    print(f'  Executable: {account.is_executable}', file=out)
    print(f'  Classification: {classify(account)}', file=out)
    print(f'  Transaction count: {account.transaction_count}', file=out)
    if account.holdings:
        print('  Tokens:', file=out)
        for holding in account.holdings[:LISTED_TOKENS]:
            print(f'    - {holding.symbol} ({holding.name}): {holding.display_amount}', file=out)
        if len(account.holdings) > LISTED_TOKENS:
            print(f'    ...and {len(account.holdings) - LISTED_TOKENS} more', file=out)
    print('', file=out)
    return True


async def verify_addresses(addresses: list[str], resolver: WalletDataResolver) -> int:
    failures = 0
    for address in addresses:
        if not await verify_address(address, resolver):
            failures += 1
    return failures


def main(argv: list[str] | None = None, resolver: WalletDataResolver | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if not args.addresses:
        parser.print_usage()
        return 0

    configure_logging(args.log_level)
    failures = asyncio.run(verify_addresses(args.addresses, resolver or build_default_resolver()))
    return 1 if failures else 0


if __name__ == '__main__':
    sys.exit(main())
