from dataclasses import dataclass, field
from typing import List, Optional

import yaml

from utils.errors import ConfigError


# yaml key -> attribute
YAML_KEYS = {
    "type": "type",
    "endpoint": "endpoint",
    "fields": "fields",
    "wordlists": "wordlists",
    "staticValues": "static_values",
    "cookies": "cookies",
    "validateType": "validate_type",
    "sizeDefault": "size_default",
    "codeDefault": "code_default",
    "rateLimit": "rate_limit",
    "timeout": "timeout",
    "shardIndex": "shard_index",
    "numShards": "num_shards",
}


@dataclass
class FuzzConfig:
    """Run settings as read from the YAML config file"""
    type: str = ""
    endpoint: str = ""
    fields: List[str] = field(default_factory=list)
    wordlists: List[str] = field(default_factory=list)
    static_values: List[str] = field(default_factory=list)
    cookies: List[str] = field(default_factory=list)
    validate_type: str = ""
    size_default: int = 0
    code_default: int = 0
    rate_limit: Optional[float] = None
    timeout: float = 0
    shard_index: int = 0
    num_shards: int = 0

    @classmethod
    def from_dict(cls, raw: dict) -> "FuzzConfig":
        if not isinstance(raw, dict):
            raise ConfigError("config file must contain a mapping at the top level")

        kwargs = {}
        for key, value in raw.items():
            if key not in YAML_KEYS:
                # unknown keys are ignored, same as the yaml decoder always did
                continue
            if value is None:
                continue
            kwargs[YAML_KEYS[key]] = value

        for name in ("fields", "wordlists", "static_values", "cookies"):
            if name in kwargs:
                if not isinstance(kwargs[name], list):
                    raise ConfigError(f"{name} must be a list")
                kwargs[name] = [str(v) for v in kwargs[name]]

        try:
            for name in ("size_default", "code_default", "shard_index", "num_shards"):
                if name in kwargs:
                    kwargs[name] = int(kwargs[name])
            for name in ("rate_limit", "timeout"):
                if name in kwargs:
                    kwargs[name] = float(kwargs[name])
        except (TypeError, ValueError) as e:
            raise ConfigError(f"invalid numeric value in config: {e}") from e

        return cls(**kwargs)

    def validate(self):
        if not self.endpoint:
            raise ConfigError("endpoint is required")
        if len(self.fields) != len(self.wordlists) + len(self.static_values):
            raise ConfigError("number of fields must equal number of wordlists + staticValues")

    def set_defaults(self):
        if not self.type:
            self.type = "payload"
        if self.code_default == 0:
            self.code_default = 404
        if not self.rate_limit:
            self.rate_limit = None  # unlimited
        if not self.timeout:
            self.timeout = 5
        if self.num_shards == 0:
            self.num_shards = 1


def load_config(path: str) -> FuzzConfig:
    """
    Read, validate and default a YAML config file.
    Every failure comes back as ConfigError.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"error reading config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"error parsing config file {path}: {e}") from e

    config = FuzzConfig.from_dict(raw if raw is not None else {})
    config.validate()
    config.set_defaults()
    return config


def load_wordlists(paths: List[str]) -> List[List[str]]:
    """
    One list per file, one entry per line.
    Only line endings are removed; blank lines and spaces are kept as entries.
    """
    wordlists = []
    for path in paths:
        try:
            with open(path, "r", encoding="utf-8", errors="ignore", newline="") as f:
                words = [line.rstrip("\r\n") for line in f]
        except OSError as e:
            raise ConfigError(f"error opening wordlist file {path}: {e}") from e
        wordlists.append(words)
    return wordlists
