"""
scamshield/cli.py
Command-line interface for scamshield.

USAGE:
  scamshield analyze "URGENT: verify your account now"
  scamshield analyze --file message.txt --json
  echo "Send a gift card" | scamshield analyze
  scamshield history --limit 20
  scamshield stats
  scamshield clear
  scamshield keywords --add "crypto giveaway" --severity high --weight 8
  scamshield keywords --remove "crypto giveaway"
  scamshield config --endpoint https://scoring.example/api --api-key KEY
  scamshield config --mock
  scamshield serve --port 8766
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from scamshield.api import DEFAULT_PORT, ScamShieldAPI
from scamshield.config import load_config, masked
from scamshield.models.record import Severity

logger = logging.getLogger(__name__)

# ANSI colors
GREEN  = '\033[92m'
YELLOW = '\033[93m'
RED    = '\033[91m'
CYAN   = '\033[96m'
RESET  = '\033[0m'
BOLD   = '\033[1m'

SEVERITY_COLORS = {
    'low':      GREEN,
    'medium':   YELLOW,
    'high':     RED,
    'critical': BOLD + RED,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog        = 'scamshield',
        description = 'scamshield — scam / social-engineering message detector',
        formatter_class = argparse.RawDescriptionHelpFormatter,
        epilog = """
NOTE:
  Verdicts are heuristic. When in doubt, contact the organization
  directly using official contact information.
        """
    )
    parser.add_argument(
        '--config-dir', '-c',
        type    = Path,
        default = Path.cwd(),
        help    = 'Directory holding scamshield_config.json (default: cwd)',
    )
    parser.add_argument(
        '--verbose', '-v',
        action  = 'store_true',
        help    = 'Enable debug logging',
    )

    sub = parser.add_subparsers(dest='command', required=True)

    p = sub.add_parser('analyze', help='Analyze one message')
    p.add_argument('text', nargs='?', help='Message text (default: read stdin)')
    p.add_argument('--file', '-f', type=Path, help='Read message text from file')
    p.add_argument('--source', choices=['selection', 'input'], default='input')
    p.add_argument('--json', action='store_true', help='Print the full analysis as JSON')

    p = sub.add_parser('history', help='Show stored analyses, newest first')
    p.add_argument('--limit', type=int, default=20)
    p.add_argument('--json', action='store_true')

    sub.add_parser('stats', help='Show scan counters')
    sub.add_parser('clear', help='Clear history and counters')

    p = sub.add_parser('keywords', help='List / add / remove keywords')
    group = p.add_mutually_exclusive_group()
    group.add_argument('--add', metavar='PHRASE')
    group.add_argument('--remove', metavar='PHRASE')
    p.add_argument('--severity', choices=[s.value for s in Severity], default='medium')
    p.add_argument('--weight', type=int, default=5)

    p = sub.add_parser('config', help='Show or change classifier config')
    p.add_argument('--endpoint', help='Delegated classification endpoint URL')
    p.add_argument('--api-key', default='', help='Bearer credential for the endpoint')
    mode = p.add_mutually_exclusive_group()
    mode.add_argument('--mock', action='store_true', help='Use the heuristic classifier')
    mode.add_argument('--no-mock', action='store_true', help='Use the configured endpoint')

    p = sub.add_parser('serve', help='Start the local HTTP API')
    p.add_argument('--host', default='127.0.0.1')
    p.add_argument('--port', type=int, default=DEFAULT_PORT)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    # ── LOGGING SETUP ────────────────────────────────────────
    logging.basicConfig(
        level   = logging.DEBUG if args.verbose else logging.WARNING,
        format  = '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt = '%H:%M:%S',
    )

    if args.command == 'serve':
        from scamshield.api import serve
        serve(config_dir=args.config_dir, host=args.host, port=args.port)
        return 0

    api = ScamShieldAPI(config_dir=args.config_dir)

    try:
        if args.command == 'analyze':
            return _cmd_analyze(api, args)
        if args.command == 'history':
            return _cmd_history(api, args)
        if args.command == 'stats':
            stats = api.get_stats()
            _print(f"Total scans    : {stats['totalScans']}")
            _print(f"Scams detected : {stats['scamsDetected']}")
            return 0
        if args.command == 'clear':
            api.clear_history()
            _ok("History cleared")
            return 0
        if args.command == 'keywords':
            return _cmd_keywords(api, args)
        if args.command == 'config':
            return _cmd_config(api, args)
    except ValueError as e:
        _print(f"{RED}Error: {e}{RESET}")
        return 2
    except Exception as e:
        logger.error(f"{args.command} failed: {e}", exc_info=True)
        _print(f"{RED}Error: {e}{RESET}")
        return 1
    return 0


# ── COMMANDS ─────────────────────────────────────────────────

def _cmd_analyze(api: ScamShieldAPI, args) -> int:
    if args.file:
        text = args.file.read_text(encoding='utf-8')
    elif args.text:
        text = args.text
    else:
        text = sys.stdin.read()

    analysis = asyncio.run(api.analyze(text, args.source))

    if args.json:
        _print(json.dumps(analysis, indent=2))
        return 0

    sev   = analysis['overallSeverity']
    color = SEVERITY_COLORS.get(sev, '')
    kw    = analysis['keywordDetection']
    ai    = analysis['aiDetection']

    _print(f"\n{color}{sev.upper()}{RESET}  risk {analysis['riskPercent']}/100"
           f"  {'SUSPICIOUS' if analysis['isSuspicious'] else 'looks safe'}")
    _print(f"\n{analysis['recommendation']}\n")
    if kw['matches']:
        shown = ', '.join(kw['matches'][:10])
        more  = f" (+{len(kw['matches']) - 10} more)" if len(kw['matches']) > 10 else ''
        _print(f"  Keywords   : {shown}{more}")
    _print(f"  Classifier : {'YES' if ai['isSuspicious'] else 'NO'} "
           f"({round(ai['confidence'] * 100)}%, {ai['source']}) — {ai['reason']}")
    return 1 if analysis['isSuspicious'] else 0


def _cmd_history(api: ScamShieldAPI, args) -> int:
    history = api.get_history(limit=args.limit)
    if args.json:
        _print(json.dumps(history, indent=2))
        return 0
    if not history:
        _print("No scans yet")
        return 0
    for item in history:
        sev     = item['overallSeverity']
        preview = item['messageText'][:60].replace('\n', ' ')
        _print(f"  {SEVERITY_COLORS.get(sev, '')}{sev:<8}{RESET} "
               f"{item['riskPercent']:>3}  {item['id']}  {preview}")
    return 0


def _cmd_keywords(api: ScamShieldAPI, args) -> int:
    if args.add:
        added = api.add_keyword(args.add, args.severity, args.weight)
        _ok(f"Added '{args.add}' ({args.severity})" if added else f"'{args.add}' already present")
        return 0
    if args.remove:
        if api.remove_keyword(args.remove):
            _ok(f"Removed '{args.remove}'")
            return 0
        _print(f"{YELLOW}Keyword not found: {args.remove}{RESET}")
        return 1
    for severity, phrases in api.list_keywords()['bySeverity'].items():
        _print(f"\n{BOLD}{severity}{RESET} ({len(phrases)})")
        _print("  " + ', '.join(phrases))
    return 0


def _cmd_config(api: ScamShieldAPI, args) -> int:
    if args.endpoint:
        api.configure(args.endpoint, args.api_key)
        _ok(f"Delegated classification → {args.endpoint}")
    if args.mock:
        api.set_mock_mode(True)
        _ok("Mock mode enabled")
    if args.no_mock:
        api.set_mock_mode(False)
        _ok("Mock mode disabled")
    _print(json.dumps(masked(load_config(api.config_dir)), indent=2))
    return 0


# ── PRINT HELPERS ────────────────────────────────────────────

def _ok(msg):    _print(f"  {GREEN}✓{RESET} {msg}")
def _print(msg): print(msg)


if __name__ == '__main__':
    sys.exit(main())
