"""
holoservice CLI: manage installed chains under a service root.

Usage:
    python -m holoservice init "Name <email>"     # Initialize the service root
    python -m holoservice list                    # List installed chains
    python -m holoservice gen dev NAME            # Generate a dev chain
    python -m holoservice gen chain NAME          # Generate (start) a chain
    python -m holoservice gen from TEMPLATE NAME  # Instantiate a scaffold file
    python -m holoservice clone SRC DST [--join]  # Fork or join a chain
    python -m holoservice status NAME             # Show a chain's identity

The service root is --path, else $HOLOPATH, else ~/.holochain.
HOLOCHAINCONFIG_* environment variables override runtime config.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from .config import get_service_path
from .errors import HoloServiceError
from .lineage import Join, fork_for
from .resolver import env_overrides
from .service import DBPolicy, init, load_service


def _service(args):
    return load_service(args.path, env_overrides(os.environ))


def _db_policy(args) -> DBPolicy:
    return DBPolicy.SKIP if args.no_db else DBPolicy.INITIALIZE


def cmd_init(args) -> int:
    svc = init(args.path, args.identity, env_overrides(os.environ))
    print(f"Service initialized at {svc.path}")
    print(f"  Agent: {svc.default_agent.identity}")
    print(f"  Public key: {svc.default_agent.pub_key.hex()[:32]}...")
    return 0


def cmd_list(args) -> int:
    svc = _service(args)
    print(svc.list_chains().rstrip("\n"))
    for name, exc in sorted(svc.last_scan_errors.items()):
        print(f"  (skipped {name}: {exc})", file=sys.stderr)
    return 0


def cmd_gen_dev(args) -> int:
    svc = _service(args)
    inst = svc.gen_dev(svc.path / args.name, args.format, _db_policy(args))
    print(f"Generated dev chain {inst.name} at {inst.root_path}")
    return 0


def cmd_gen_chain(args) -> int:
    svc = _service(args)
    inst = svc.gen_chain(args.name)
    print(f"Chain {inst.name} generated")
    print(f"  DNA hash: {inst.dna_hash}")
    print(f"  Node ID:  {inst.node_id_str}")
    return 0


def cmd_gen_from(args) -> int:
    svc = _service(args)
    template_path = Path(args.template)
    app_name = args.app_name or args.name
    with template_path.open("rb") as f:
        scaffold = svc.save_scaffold(f, svc.path / args.name, app_name, args.format, args.force)
    print(f"Scaffold {scaffold.dna.name} written to {svc.path / args.name}")
    return 0


def cmd_clone(args) -> int:
    svc = _service(args)
    agent = svc.default_agent
    policy = Join() if args.join else fork_for(agent)
    inst = svc.clone(svc.path / args.src, svc.path / args.dst, agent, policy, _db_policy(args))
    mode = "joined" if args.join else "forked"
    print(f"{args.src} {mode} as {inst.name}")
    print(f"  UUID: {inst.dna.uuid}")
    return 0


def cmd_status(args) -> int:
    svc = _service(args)
    inst = svc.load(args.name)
    print(f"Chain:      {inst.name}")
    print(f"Format:     {inst.encoding_format}")
    print(f"UUID:       {inst.dna.uuid}")
    print(f"Progenitor: {inst.dna.progenitor.identity}")
    print(f"Agent:      {inst.agent.identity}")
    print(f"Node ID:    {inst.node_id_str}")
    print(f"DNA hash:   {inst.dna_hash or '<not-started>'}")
    print(f"Port:       {inst.config.port}")
    print(f"Bootstrap:  {inst.config.bootstrap_server or '(disabled)'}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="holoservice",
        description="Manage installed chains",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--path", type=Path, default=None, help="Service root directory")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command")

    p = sub.add_parser("init", help="Initialize the service root")
    p.add_argument("identity", help='Agent identity, e.g. "Name <email>"')
    p.set_defaults(func=cmd_init)

    p = sub.add_parser("list", help="List installed chains")
    p.set_defaults(func=cmd_list)

    gen = sub.add_parser("gen", help="Generate chains")
    gen_sub = gen.add_subparsers(dest="gen_command")

    p = gen_sub.add_parser("dev", help="Generate a development chain")
    p.add_argument("name")
    p.add_argument("--format", default="json", choices=["json", "toml", "yaml"])
    p.add_argument("--no-db", action="store_true", help="Do not initialize the store")
    p.set_defaults(func=cmd_gen_dev)

    p = gen_sub.add_parser("chain", help="Generate (start) an installed chain")
    p.add_argument("name")
    p.set_defaults(func=cmd_gen_chain)

    p = gen_sub.add_parser("from", help="Instantiate a scaffold file")
    p.add_argument("template", help="Scaffold JSON file")
    p.add_argument("name")
    p.add_argument("--app-name", default="", help="DNA name (defaults to NAME)")
    p.add_argument("--format", default="json", choices=["json", "toml", "yaml"])
    p.add_argument("--force", action="store_true", help="Replace an existing directory")
    p.set_defaults(func=cmd_gen_from)

    p = sub.add_parser("clone", help="Clone a chain")
    p.add_argument("src")
    p.add_argument("dst")
    p.add_argument("--join", action="store_true", help="Keep the source UUID and progenitor")
    p.add_argument("--no-db", action="store_true", help="Do not initialize the store")
    p.set_defaults(func=cmd_clone)

    p = sub.add_parser("status", help="Show a chain's identity and config")
    p.add_argument("name")
    p.set_defaults(func=cmd_status)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if args.path is None:
        args.path = get_service_path()
    func = getattr(args, "func", None)
    if func is None:
        parser.print_help()
        return 0
    try:
        return func(args)
    except HoloServiceError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
