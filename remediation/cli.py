"""CLI argument parsing and command routing.

Sub-commands
------------
encode CONTEXT [VALUE ...]
    Encode each VALUE (or each stdin line) for CONTEXT, one result per line.
contexts
    List the output contexts ``encode`` accepts.
is-outside FILE BASE_DIR
    Print ``true`` if FILE resolves outside BASE_DIR.  Exit status 0 when
    inside, 1 when outside, 2 when a path cannot be resolved.
normalize PATH
    Print PATH with ``.`` and ``..`` collapsed.  Exit status 1 when the
    path climbs above its root.

A --config file that cannot be read or parsed exits with status 2.
"""

from __future__ import annotations

import argparse
import json
import os
import sys

import yaml
from dotenv import load_dotenv

from remediation.config import VALID_LOG_LEVELS, RemediationConfig
from remediation.encode import ENCODERS, log_content_encoder
from remediation.file_utils import is_outside, normalize
from remediation.logging_config import setup_logging
from remediation.os_codec import os_parameter_encoder

logger = setup_logging(__name__)

# Loggers whose threshold follows --log-level.
LOGGER_NAMES = (__name__, "remediation.config")

OS_PARAMETER_CONTEXT = "os-parameter"
CONTEXTS = sorted([*ENCODERS, OS_PARAMETER_CONTEXT])

EXIT_OK = 0
EXIT_NEGATIVE = 1
EXIT_IO_ERROR = 2
EXIT_UNSUPPORTED = 3


def _read_values(args: argparse.Namespace) -> list[str]:
    if args.values:
        return list(args.values)
    return [line.rstrip("\r\n") for line in sys.stdin]


def cmd_encode(args: argparse.Namespace, config: RemediationConfig) -> int:
    values = _read_values(args)
    family = config.os_family or None
    try:
        if args.context == OS_PARAMETER_CONTEXT:
            results = [os_parameter_encoder(v, os_family=family) for v in values]
        else:
            encoder = ENCODERS[args.context]
            results = [encoder(v) for v in values]
    except NotImplementedError as exc:
        logger.error(
            "encoding failed: %s",
            exc,
            extra={
                "context": args.context,
                "os_family": family,
                "exit_code": EXIT_UNSUPPORTED,
            },
        )
        return EXIT_UNSUPPORTED

    logger.debug("encoded %d value(s)", len(results), extra={"context": args.context})
    if args.json or config.json_output:
        print(json.dumps(results))
    else:
        for result in results:
            print(result)
    return EXIT_OK


def cmd_contexts(args: argparse.Namespace, config: RemediationConfig) -> int:
    for context in CONTEXTS:
        print(context)
    return EXIT_OK


def cmd_is_outside(args: argparse.Namespace, config: RemediationConfig) -> int:
    try:
        outside = is_outside(args.file, args.base_dir)
    except OSError as exc:
        logger.error(
            "cannot canonicalize path: %s",
            log_content_encoder(exc),
            extra={
                "path": args.file,
                "base_dir": args.base_dir,
                "exit_code": EXIT_IO_ERROR,
            },
        )
        return EXIT_IO_ERROR

    if outside:
        logger.warning(
            "path resolves outside base directory",
            extra={"path": args.file, "base_dir": args.base_dir},
        )
    print("true" if outside else "false")
    return EXIT_NEGATIVE if outside else EXIT_OK


def cmd_normalize(args: argparse.Namespace, config: RemediationConfig) -> int:
    result = normalize(args.path)
    if result is None:
        logger.warning(
            "path climbs above its root", extra={"path": args.path}
        )
        return EXIT_NEGATIVE
    print(result)
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="remediation",
        description="Context-aware output encoding and path containment checks.",
    )
    parser.add_argument("--config", default="", help="YAML config file")
    parser.add_argument(
        "--log-level",
        default=None,
        choices=sorted(VALID_LOG_LEVELS),
        help="Override the configured log level",
    )
    sub = parser.add_subparsers(dest="command")

    p_encode = sub.add_parser("encode", help="Encode values for an output context")
    p_encode.add_argument("context", choices=CONTEXTS)
    p_encode.add_argument("values", nargs="*", help="Values to encode (default: stdin lines)")
    p_encode.add_argument("--json", action="store_true", help="Print a JSON array")

    sub.add_parser("contexts", help="List supported output contexts")

    p_outside = sub.add_parser("is-outside", help="Check that FILE stays inside BASE_DIR")
    p_outside.add_argument("file")
    p_outside.add_argument("base_dir")

    p_normalize = sub.add_parser("normalize", help="Collapse . and .. path segments")
    p_normalize.add_argument("path")

    return parser


def _set_log_level(level: str) -> None:
    for name in LOGGER_NAMES:
        setup_logging(name, level)


COMMANDS = {
    "encode": cmd_encode,
    "contexts": cmd_contexts,
    "is-outside": cmd_is_outside,
    "normalize": cmd_normalize,
}


def main(argv: list[str] | None = None) -> int:
    env_path = os.path.join(os.getcwd(), ".env")
    if os.path.isfile(env_path):
        load_dotenv(env_path)

    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return EXIT_IO_ERROR

    config = RemediationConfig.from_env()
    _set_log_level(args.log_level or config.log_level)

    if args.config:
        try:
            config = RemediationConfig.from_file(args.config)
        except (OSError, yaml.YAMLError) as exc:
            logger.error(
                "cannot load config: %s",
                log_content_encoder(exc),
                extra={"path": args.config, "exit_code": EXIT_IO_ERROR},
            )
            return EXIT_IO_ERROR
        _set_log_level(args.log_level or config.log_level)

    return COMMANDS[args.command](args, config)
