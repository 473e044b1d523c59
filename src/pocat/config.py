"""Reader and writer settings."""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping, Union

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "pocat.toml"


@dataclass
class PoConfig:
    """Settings shared by the parser and the writer."""

    encoding: str = "utf-8"
    newline: str = "\n"
    # 0 disables wrapping; strings are then only split at embedded newlines.
    wrap_width: int = 0
    sort_header: bool = True

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> PoConfig:
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})


def load_config(base_dir: Union[str, Path]) -> PoConfig:
    """Load pocat.toml from base_dir if present."""

    path = Path(base_dir) / CONFIG_FILENAME
    if not path.exists():
        return PoConfig()

    try:
        with path.open("rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        logger.warning("ignoring unreadable %s: %s", path, exc)
        return PoConfig()

    return PoConfig.from_mapping(data.get("pocat", data))
