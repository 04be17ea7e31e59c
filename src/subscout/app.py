"""Command-line entrypoint.

Wires configuration, wordlist selection and reporting around the
resolution engine:

1. Load .env / environment, apply CLI overrides
2. Pick the wordlist (bundled light list, SecLists top-N, or a file)
3. Run the bounded worker pool over the candidates
4. Optionally filter wildcard DNS hits
5. Print the sorted host list and a summary, optionally write a report

Exit codes: 0 success, 2 configuration error, 130 interrupted.
"""

import argparse
import dataclasses
import logging
import sys
from pathlib import Path
from typing import List, Optional

from tqdm import tqdm

from . import __version__
from .engine import (
    EngineError,
    ResultSet,
    WildcardDetector,
    WordlistType,
    build_resolver,
    filter_wildcard,
    load_wordlist,
    run,
    validate_concurrency,
    validate_domain,
)
from .engine.wordlist import DEFAULT_WORDLIST
from .util.config import load_config
from .util.io import read_text_lines, write_csv, write_json, write_text_lines
from .util.log import get_logger, setup_logging
from .util.time import format_elapsed, now_utc
from .util.types import ScanConfig

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_CONFIG_ERROR = 2
EXIT_INTERRUPTED = 130

OUTPUT_FORMATS = ["txt", "json", "csv"]

BANNER = r"""
            _
  ___ _   _| |__  ___  ___ ___  _   _| |_
 / __| | | | '_ \/ __|/ __/ _ \| | | | __|
 \__ \ |_| | |_) \__ \ (_| (_) | |_| | |_
 |___/\__,_|_.__/|___/\___\___/ \__,_|\__|
"""


def print_banner():
    print(BANNER)
    print(f"  Subdomain reconnaissance by wordlist  (v{__version__})")
    print("=" * 60)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='subscout',
        description='Enumerate live subdomains by resolving wordlist candidates',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  subscout example.com
  subscout example.com -W top5000 --seclists-path ~/SecLists/Discovery/DNS
  subscout example.com -w words.txt -t 50 --timeout 2 -o found.json --format json
  subscout example.com --nameserver 1.1.1.1 --nameserver 8.8.8.8 --wildcard-check
        """
    )
    parser.add_argument('domain', help='Target domain, e.g. example.com')
    parser.add_argument('-w', '--wordlist', dest='wordlist_path',
                        help='Wordlist file, one label per line (implies --wordlist-type custom)')
    parser.add_argument('-c', '--custom-wordlist', dest='custom_wordlist',
                        help='Wordlist file used with --wordlist-type custom')
    parser.add_argument('-W', '--wordlist-type', choices=WordlistType.choices(),
                        help='Built-in wordlist to use (default: light)')
    parser.add_argument('--seclists-path',
                        help='SecLists Discovery/DNS directory (env: SECLISTS_PATH)')
    parser.add_argument('-t', '--threads', type=int,
                        help='Concurrent resolver workers (default: 10, env: THREADS)')
    parser.add_argument('--timeout', type=float, dest='dns_timeout',
                        help='Per-lookup timeout in seconds (default: 4.0, env: DNS_TIMEOUT)')
    parser.add_argument('--retries', type=int,
                        help='Extra attempts for lookups that error or time out (default: 0)')
    parser.add_argument('--resolver', choices=['dnspython', 'system'],
                        help='DNS backend (default: dnspython)')
    parser.add_argument('--nameserver', action='append', dest='nameservers',
                        help='Nameserver IP to query (repeatable)')
    parser.add_argument('--nameservers-file',
                        help='File with one nameserver IP per line')
    parser.add_argument('--ipv6', action='store_true', default=None,
                        help='Also query AAAA records')
    parser.add_argument('--wildcard-check', action='store_true', default=None,
                        help='Detect wildcard DNS and drop hosts that only hit the wildcard')
    parser.add_argument('-o', '--output', dest='output_path',
                        help='Write results to this file')
    parser.add_argument('--format', dest='output_format', choices=OUTPUT_FORMATS,
                        help='Output file format (default: from extension, else txt)')
    parser.add_argument('--show-addresses', action='store_true', default=None,
                        help='Print resolved addresses next to each host')
    parser.add_argument('--no-progress', action='store_true',
                        help='Disable the progress bar')
    parser.add_argument('--no-banner', action='store_true',
                        help='Do not print the banner')
    parser.add_argument('--log-file', help='Also write log output to this file')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Debug logging')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    return parser


def config_from_args(args: argparse.Namespace) -> ScanConfig:
    nameservers = list(args.nameservers or [])
    if args.nameservers_file:
        from_file = read_text_lines(Path(args.nameservers_file))
        if not from_file:
            raise ValueError(f"No nameservers read from {args.nameservers_file}")
        nameservers.extend(from_file)

    wordlist_path = args.wordlist_path or args.custom_wordlist
    wordlist_type = args.wordlist_type
    if args.wordlist_path and wordlist_type is None:
        wordlist_type = WordlistType.CUSTOM.value

    return load_config(
        args.domain,
        wordlist_type=wordlist_type,
        wordlist_path=wordlist_path,
        seclists_path=args.seclists_path,
        threads=args.threads,
        dns_timeout=args.dns_timeout,
        retries=args.retries,
        resolver=args.resolver,
        nameservers=nameservers or None,
        ipv6=args.ipv6,
        wildcard_check=args.wildcard_check,
        output_path=args.output_path,
        output_format=args.output_format,
        show_addresses=args.show_addresses,
        progress=False if args.no_progress else None,
        log_file=args.log_file,
    )


def resolve_output_format(config: ScanConfig) -> str:
    """Explicit --format wins, then the file extension, then txt."""
    if config.output_format:
        return config.output_format
    if config.output_path:
        suffix = Path(config.output_path).suffix.lower().lstrip('.')
        if suffix in OUTPUT_FORMATS:
            return suffix
    return "txt"


def write_report(result: ResultSet, config: ScanConfig, path: Path, fmt: str) -> None:
    """Write the result set in txt, json or csv form."""
    if fmt == "json":
        report = {
            'generated_at': now_utc().isoformat(),
            'config': config.to_dict(),
        }
        report.update(result.to_dict())
        write_json(path, report)
    elif fmt == "csv":
        rows = [{'hostname': host, 'addresses': ' '.join(result.resolved[host])}
                for host in result.hostnames()]
        write_csv(path, rows, fieldnames=['hostname', 'addresses'])
    else:
        write_text_lines(path, result.hostnames())

    logger.info(f"Results saved to {path}")


def print_results(result: ResultSet, show_addresses: bool = False) -> None:
    print("\nFound subdomains:")
    for host in result.hostnames():
        if show_addresses:
            print(f"{host}\t{', '.join(result.resolved[host])}")
        else:
            print(host)

    errors = ", ".join(f"{cause.value}: {n}" for cause, n in sorted(
        result.error_counts.items(), key=lambda item: item[0].value))
    print("")
    print(f"Resolved: {len(result.resolved)}  Not found: {result.not_found}  "
          f"Errored: {len(result.errored)}" + (f" ({errors})" if errors else ""))
    if result.wildcard_filtered:
        print(f"Wildcard matches dropped: {len(result.wildcard_filtered)}")
    print(f"Elapsed: {format_elapsed(result.elapsed_seconds)}")
    if result.interrupted:
        print("Scan interrupted - results may be partial or unfiltered")


def scan(config: ScanConfig) -> ResultSet:
    """Run one enumeration described by `config`.

    Ctrl-C during the wildcard check keeps the finished run: it is
    returned unfiltered with `interrupted` set.

    Raises:
        EngineError: invalid thread count, domain or wordlist
        ValueError: invalid resolver settings
    """
    threads = validate_concurrency(config.threads)
    domain = validate_domain(config.domain)
    wordlist = load_wordlist(config.wordlist_type, config.wordlist_path, config.seclists_path)

    total = len(DEFAULT_WORDLIST) if config.wordlist_type == WordlistType.LIGHT.value else None
    with build_resolver(config.resolver, timeout=config.dns_timeout,
                        nameservers=config.nameservers, ipv6=config.ipv6,
                        retries=config.retries, concurrency=threads) as resolver:
        with tqdm(total=total, desc=f"Scanning {domain}", unit="host",
                  disable=not config.progress, leave=False) as progress:
            result = run(domain, wordlist, threads, resolver=resolver,
                         on_outcome=lambda outcome: progress.update(1))

        if config.wildcard_check and not result.interrupted:
            try:
                result = filter_wildcard(result, WildcardDetector(domain, resolver))
            except KeyboardInterrupt:
                logger.warning("Wildcard check interrupted - reporting unfiltered results")
                result = dataclasses.replace(result, interrupted=True)

    return result


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = config_from_args(args)
    except ValueError as e:
        parser.error(str(e))

    setup_logging(Path(config.log_file) if config.log_file else None,
                  level=logging.DEBUG if args.verbose else logging.INFO)

    if not args.no_banner:
        print_banner()

    try:
        result = scan(config)
    except EngineError as e:
        logger.error(str(e))
        return EXIT_CONFIG_ERROR
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return EXIT_CONFIG_ERROR
    except KeyboardInterrupt:
        logger.warning("Interrupted before any result was collected")
        return EXIT_INTERRUPTED

    print_results(result, show_addresses=config.show_addresses)

    if config.output_path:
        path = Path(config.output_path)
        write_report(result, config, path, resolve_output_format(config))

    return EXIT_INTERRUPTED if result.interrupted else EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
