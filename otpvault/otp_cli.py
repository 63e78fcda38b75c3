#!/usr/bin/env python3
"""
otp_cli.py — command line front end for otpvault.

Subcommands:
- list   : show current passcodes (optionally filtered)
- add    : add a token from fields (a secret is generated when none is given)
- import : add a token from an otpauth:// URI (argument or stdin)
- edit   : change a token's issuer / account
- delete : delete a token and its secret
- move   : reorder tokens
- next   : next passcode of a counter (HOTP) token, saved for later runs
- uri    : print a token's otpauth:// URI
- watch  : live passcode display, refreshed on period boundaries
- serve  : run the HTTP API (Flask development server)

Tokens are addressed by their position in ``list`` (starting at 1).
"""

import argparse
import sys
import time

import pyotp

from . import config
from .backend.app import build_session, create_app
from .backend.scanner import TextScanner
from .core.logger import configure_logging
from .core.token import Algorithm


def _open_session():
    cfg = config.Config()
    configure_logging(cfg.LOG_LEVEL)
    session = build_session(cfg)
    session.setup()
    return session


def _token_id(session, position: int):
    ids = session.collection.ids
    if not 1 <= position <= len(ids):
        print(f"[!] No token at position {position} (have {len(ids)})", file=sys.stderr)
        sys.exit(2)
    return ids[position - 1][0]


def _report(result) -> int:
    if result.is_valid:
        return 0
    for error in result.errors:
        print(f"[!] {error}", file=sys.stderr)
    return 1


def _print_passcodes(session, passcodes) -> None:
    positions = {token_id: n for n, (token_id, _) in enumerate(session.collection.ids, start=1)}
    if not passcodes:
        print("No passcodes")
    for p in passcodes:
        kind = "HOTP" if p.is_counter else "TOTP"
        print(f"{positions[p.id]:3d}. {p.text}  {kind}  {p.issuer} ({p.account})")


# --- CLI command handlers ---
def cmd_list(args):
    session = _open_session()
    _print_passcodes(session, session.update_filter_text(args.filter or ""))
    return 0


def cmd_add(args):
    secret = args.secret
    if not secret:
        secret = pyotp.random_base32()
        print(f"[*] Generated secret: {secret}")
    session = _open_session()
    result = session.add_token(
        issuer=args.issuer,
        account=args.account,
        key=secret,
        type=args.type,
        algorithm=Algorithm.parse(args.algorithm),
        digits=args.digits,
    )
    if result.is_valid:
        uri = session.provisioning_uri(result.value.id)
        print(f"[+] Added {args.issuer} ({args.account})")
        print("    URI:", uri.value)
    return _report(result)


def cmd_import(args):
    session = _open_session()
    if args.uri:
        result = session.add_from_uri(args.uri)
    else:
        result = session.scan(TextScanner(sys.stdin))
        if result.is_valid and result.value is None:
            print("[-] Nothing to import")
            return 1
    if result.is_valid:
        token = result.value.token
        print(f"[+] Imported {token.issuer} ({token.account})")
    return _report(result)


def cmd_edit(args):
    session = _open_session()
    token_id = _token_id(session, args.position)
    current = session.collection.lookup(token_id).token
    result = session.edit_token(
        token_id,
        issuer=args.issuer if args.issuer is not None else current.issuer,
        account=args.account if args.account is not None else current.account,
    )
    if result.is_valid:
        print(f"[+] Updated token {args.position}")
    return _report(result)


def cmd_delete(args):
    session = _open_session()
    token_id = _token_id(session, args.position)
    if not args.yes:
        answer = input("This action cannot be undone. Delete? [y/N] ")
        if answer.strip().lower() not in ("y", "yes"):
            print("Cancelled.")
            return 1
    result = session.delete([token_id])
    if result.is_valid:
        print(f"[+] Deleted token {args.position}")
    return _report(result)


def cmd_move(args):
    session = _open_session()
    result = session.move([p - 1 for p in args.source], args.to - 1)
    if result.is_valid:
        _print_passcodes(session, result.value)
    return _report(result)


def cmd_next(args):
    session = _open_session()
    result = session.increment_counter(_token_id(session, args.position))
    if result.is_valid:
        _print_passcodes(session, [result.value])
    return _report(result)


def cmd_uri(args):
    session = _open_session()
    result = session.provisioning_uri(_token_id(session, args.position))
    if result.is_valid:
        print(result.value)
    return _report(result)


def seconds_to_next_refresh(periods, now: float) -> float:
    """Time until the earliest period boundary among ``periods``."""
    return min(p - (now % p) for p in (periods or [config.DEFAULT_PERIOD]))


def cmd_watch(args):
    session = _open_session()
    session.update_filter_text(args.filter or "")
    print("Press Ctrl+C to quit.\n")
    try:
        while True:
            now = time.time()
            _print_passcodes(session, session.update_time(now))
            periods = {
                session.collection.lookup(token_id).token.type.period
                for token_id, kind in session.collection.ids if kind == "totp"
            }
            remaining = seconds_to_next_refresh(periods, now)
            print(f".. next refresh in {remaining:4.1f}s\n")
            time.sleep(remaining)
    except KeyboardInterrupt:
        print("\nBye.")
    return 0


def cmd_serve(args):
    create_app().run(debug=args.debug, host=args.host, port=args.port)
    return 0


def cmd_help(args):
    print("'otpvault -h' for help.")
    return 0


# --- Argparse builder ---
def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="otpvault", description="HOTP/TOTP passcode manager")
    sub = p.add_subparsers(dest="cmd")
    p.set_defaults(func=cmd_help)

    # list
    pl = sub.add_parser("list", help="Show current passcodes")
    pl.add_argument("--filter", help="Only tokens whose issuer/account contains this text")
    pl.set_defaults(func=cmd_list)

    # add
    pa = sub.add_parser("add", help="Add a token from fields")
    pa.add_argument("--issuer", required=True, help="Issuer label, e.g. GitHub")
    pa.add_argument("--account", required=True, help="Account label, e.g. alice@example.com")
    pa.add_argument("--secret", help="Base32 secret (generated when omitted)")
    pa.add_argument("--type", choices=["totp", "hotp"], default="totp")
    pa.add_argument("--algorithm", choices=[a.value for a in Algorithm], default=config.DEFAULT_ALGORITHM)
    pa.add_argument("--digits", type=int, default=config.DEFAULT_DIGITS, help="Number of passcode digits")
    pa.set_defaults(func=cmd_add)

    # import
    pi = sub.add_parser("import", help="Add a token from an otpauth:// URI")
    pi.add_argument("--uri", help="URI text; read from stdin when omitted (e.g. piped from a QR decoder)")
    pi.set_defaults(func=cmd_import)

    # edit
    pe = sub.add_parser("edit", help="Change a token's issuer and/or account")
    pe.add_argument("position", type=int, help="Position shown by 'list'")
    pe.add_argument("--issuer")
    pe.add_argument("--account")
    pe.set_defaults(func=cmd_edit)

    # delete
    pd = sub.add_parser("delete", help="Delete a token and its secret")
    pd.add_argument("position", type=int, help="Position shown by 'list'")
    pd.add_argument("--yes", action="store_true", help="Do not ask for confirmation")
    pd.set_defaults(func=cmd_delete)

    # move
    pm = sub.add_parser("move", help="Reorder tokens")
    pm.add_argument("source", type=int, nargs="+", help="Positions to move")
    pm.add_argument("--to", type=int, required=True, help="Insert before this position (last+1 for the end)")
    pm.set_defaults(func=cmd_move)

    # next
    pn = sub.add_parser("next", help="Advance a counter (HOTP) token to its next passcode")
    pn.add_argument("position", type=int, help="Position shown by 'list'")
    pn.set_defaults(func=cmd_next)

    # uri
    pu = sub.add_parser("uri", help="Print a token's otpauth:// URI")
    pu.add_argument("position", type=int, help="Position shown by 'list'")
    pu.set_defaults(func=cmd_uri)

    # watch
    pw = sub.add_parser("watch", help="Live passcode display")
    pw.add_argument("--filter")
    pw.set_defaults(func=cmd_watch)

    # serve
    ps = sub.add_parser("serve", help="Run the HTTP API")
    ps.add_argument("--host", default="127.0.0.1")
    ps.add_argument("--port", type=int, default=5000)
    ps.add_argument("--debug", action="store_true")
    ps.set_defaults(func=cmd_serve)

    return p


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
