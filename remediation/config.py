"""Configuration for the remediation command-line tools.

Settings come from environment variables, optionally layered under a YAML
file passed with ``--config``.  The encoders and path helpers themselves
take no configuration; these settings only steer the CLI.

Environment variables
---------------------
REMEDIATION_LOG_LEVEL : str
    ``DEBUG``, ``INFO``, ``WARNING``, ``ERROR`` or ``CRITICAL``
    (default ``INFO``).
REMEDIATION_OS_FAMILY : str
    Force the ``os-parameter`` ruleset: ``windows`` or ``posix``.  Empty
    means detect from the running interpreter.
REMEDIATION_JSON : bool
    ``true`` to print ``encode`` results as a JSON array.

Supported config keys
---------------------
log_level : str
os_family : str
json_output : bool
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace

import yaml

from remediation.logging_config import setup_logging
from remediation.os_codec import OS_FAMILIES

logger = setup_logging(__name__)

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(frozen=True)
class RemediationConfig:
    """Immutable snapshot of CLI settings."""

    log_level: str = "INFO"
    os_family: str = ""
    json_output: bool = False

    @classmethod
    def from_env(cls) -> RemediationConfig:
        """Build a config from the current environment variables."""
        return cls(
            log_level=os.environ.get("REMEDIATION_LOG_LEVEL", "INFO").upper(),
            os_family=os.environ.get("REMEDIATION_OS_FAMILY", "").lower(),
            json_output=os.environ.get("REMEDIATION_JSON", "false").lower() == "true",
        )

    @classmethod
    def from_file(cls, path: str) -> RemediationConfig:
        """Environment settings overridden by the valid keys found in *path*."""
        overrides = load_config(path)
        return replace(cls.from_env(), **overrides)


def load_config(path: str) -> dict:
    """Read and validate a YAML config file.

    Invalid values are logged and dropped rather than failing the run;
    unknown keys are ignored.

    Raises
    ------
    OSError
        If *path* cannot be read.
    yaml.YAMLError
        If the file is not valid YAML.
    """
    with open(path) as f:
        raw = yaml.safe_load(f)

    if raw is None:
        return {}
    if not isinstance(raw, dict):
        logger.warning("config did not parse as a mapping; ignoring", extra={"path": path})
        return {}

    config: dict = {}

    log_level = raw.get("log_level")
    if log_level is not None:
        if isinstance(log_level, str) and log_level.upper() in VALID_LOG_LEVELS:
            config["log_level"] = log_level.upper()
        else:
            logger.warning(
                "invalid log_level '%s'; ignoring", log_level, extra={"path": path}
            )

    os_family = raw.get("os_family")
    if os_family is not None:
        if isinstance(os_family, str) and os_family.lower() in OS_FAMILIES:
            config["os_family"] = os_family.lower()
        else:
            logger.warning(
                "invalid os_family '%s'; ignoring", os_family, extra={"path": path}
            )

    json_output = raw.get("json_output")
    if json_output is not None:
        if isinstance(json_output, bool):
            config["json_output"] = json_output
        else:
            logger.warning("json_output must be a boolean; ignoring", extra={"path": path})

    return config
