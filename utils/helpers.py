# Author: Bradley R. Kinnard
# utility helpers for confidential transfer notes

import logging
from pathlib import Path
from typing import Any

import yaml
import jsonschema

from config.schemas import parameters_schema
from utils.errors import ParameterError


logger = logging.getLogger(__name__)

DEFAULT_PARAMETERS_PATH = Path(__file__).resolve().parent.parent / "config" / "parameters.yaml"


def load_parameters_config(path: Path | str | None = None) -> dict[str, Any]:
    """
    load and validate system parameters against schema.

    a missing file raises FileNotFoundError; anything that parses but does
    not fit the schema raises ParameterError.
    """
    path = Path(path) if path is not None else DEFAULT_PARAMETERS_PATH
    if not path.exists():
        raise FileNotFoundError(f"parameters config not found: {path}")

    with open(path, "r") as f:
        try:
            config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ParameterError(f"parameters config is not valid yaml: {e}") from e

    try:
        jsonschema.validate(instance=config, schema=parameters_schema)
    except jsonschema.ValidationError as e:
        raise ParameterError(f"invalid parameters config: {e.message}") from e
    logger.info(f"loaded parameters config from {path}")
    return config


def get_logger(name: str, level: int = logging.INFO) -> logging.Logger:
    """get a configured logger. avoids duplicate handlers."""
    log = logging.getLogger(name)
    log.setLevel(level)

    if not log.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(level)
        formatter = logging.Formatter(
            "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
        )
        handler.setFormatter(formatter)
        log.addHandler(handler)

    return log
