from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from typing import Protocol, cast

from radius_exec.config.constants import DEFAULT_CONFIG_PATH, ENV_CONFIG
from radius_exec.config.loader import load_config, log_level, module_configs
from radius_exec.exceptions import ConfigurationError
from radius_exec.exec.module import STAGES, build_modules
from radius_exec.exec.program import parse_output_pairs
from radius_exec.radius.dictionary import packet_type_code
from radius_exec.radius.packet import AttributeList, RADIUSPacket
from radius_exec.radius.request import Request
from radius_exec.utils.logger import configure


def read_attribute_file(path: str) -> AttributeList:
    """Read ``Name = value`` lines; blank lines and ``#`` comments are skipped.

    Raises:
        ValueError: the file holds something other than attribute lines
    """
    lines = [
        line
        for line in Path(path).read_text(encoding="utf-8").splitlines()
        if line.strip() and not line.lstrip().startswith("#")
    ]
    if not lines:
        return AttributeList()
    pairs = parse_output_pairs("\n".join(lines))
    if pairs is None:
        raise ValueError(f"{path}: not a list of 'Name = value' attributes")
    return pairs


def _load_modules(args: argparse.Namespace):
    config = load_config(args.config)
    configure(level=log_level(config))
    return build_modules(module_configs(config))


def cmd_check_config(args: argparse.Namespace) -> int:
    try:
        modules = _load_modules(args)
    except ConfigurationError as e:
        print("Configuration validation failed:")
        print(f"  - {e}")
        return 1
    if not modules:
        print("No exec sections found")
        return 1
    for name, module in modules.items():
        cfg = module.config
        program = cfg.program or "(from Exec-Program attributes)"
        print(f"{name}: wait={'yes' if cfg.wait else 'no'} program={program}")
    print("Configuration is valid")
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    try:
        modules = _load_modules(args)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1
    module = modules.get(args.module)
    if module is None:
        print(f"No exec instance named {args.module!r}", file=sys.stderr)
        return 1

    packet_code = packet_type_code(args.packet_type)
    reply_code = packet_type_code(args.reply_type)
    if packet_code is None or reply_code is None:
        print("Unknown packet type", file=sys.stderr)
        return 1
    try:
        attrs = read_attribute_file(args.attrs) if args.attrs else AttributeList()
        reply_attrs = read_attribute_file(args.reply) if args.reply else AttributeList()
    except (OSError, ValueError) as e:
        print(f"Cannot read attributes: {e}", file=sys.stderr)
        return 1

    request = Request(
        packet=RADIUSPacket(packet_code, attributes=attrs),
        reply=RADIUSPacket(reply_code, attributes=reply_attrs),
    )
    result = module.stage(args.stage)(request)
    print(f"result: {result.name.lower()}")
    assert request.reply is not None
    for attr in request.reply.attributes:
        print(f"  {attr}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        "-c",
        default=os.environ.get(ENV_CONFIG, DEFAULT_CONFIG_PATH),
        help="Path to config file",
    )

    p = argparse.ArgumentParser(
        prog="radius-exec", description="Run exec module instances from the command line"
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    sub_check = sub.add_parser(
        "check-config",
        parents=[common],
        help="Validate every exec section and report issues",
    )
    sub_check.set_defaults(func=cmd_check_config)

    sub_run = sub.add_parser(
        "run", parents=[common], help="Run one instance against a request"
    )
    sub_run.add_argument(
        "--module", default="exec", help="Instance name ('exec' for the bare one)"
    )
    sub_run.add_argument("--stage", choices=STAGES, default="authorize")
    sub_run.add_argument("--attrs", help="File of request attributes")
    sub_run.add_argument("--reply", help="File of reply attributes")
    sub_run.add_argument("--packet-type", default="Access-Request")
    sub_run.add_argument("--reply-type", default="Access-Accept")
    sub_run.set_defaults(func=cmd_run)

    return p


class _Cmd(Protocol):
    def __call__(self, args: argparse.Namespace) -> int: ...


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    func = cast(_Cmd, getattr(args, "func"))
    return func(args)


if __name__ == "__main__":
    raise SystemExit(main())
