"""Load channel configuration and resolve ``env:NAME`` references.

These helpers belong to the embedding application's startup path; the
dispatcher itself only ever sees resolved values.
"""

import json
import os
from pathlib import Path
from typing import Any, Mapping, Union

from pydantic import ValidationError

from statuscast.errors import ChannelConfigError
from statuscast.schemas.channel import ChannelConfig

ENV_PREFIX = "env:"


def resolve_env_references(value: Any, environ: Mapping[str, str] = os.environ) -> Any:
    """Recursively replace ``"env:NAME"`` strings with ``environ["NAME"]``."""
    if isinstance(value, str):
        if not value.startswith(ENV_PREFIX):
            return value
        name = value[len(ENV_PREFIX):]
        resolved = environ.get(name)
        if not resolved:
            raise ChannelConfigError(f"Environment variable {name} is not defined (referenced as {value})")
        return resolved
    if isinstance(value, dict):
        return {key: resolve_env_references(item, environ) for key, item in value.items()}
    if isinstance(value, list):
        return [resolve_env_references(item, environ) for item in value]
    return value


def format_validation_error(error: ValidationError) -> str:
    lines = []
    for err in error.errors():
        path = ".".join(str(part) for part in err["loc"])
        lines.append(f"{path}: {err['msg']}" if path else err["msg"])
    return "\n".join(lines)


def load_channel_configs(
    data: Union[list, Mapping[str, Any]],
    environ: Mapping[str, str] = os.environ,
) -> list[ChannelConfig]:
    """
    Build ``ChannelConfig`` objects from raw data.

    ``data`` is either a list of channel dicts or a mapping of
    ``id -> channel dict`` (the id is filled in from the key).
    """
    if isinstance(data, Mapping):
        entries = [{"id": channel_id, **(entry or {})} for channel_id, entry in data.items()]
    elif isinstance(data, list):
        entries = list(data)
    else:
        raise ChannelConfigError("Channel configuration must be a list or a mapping")

    configs = []
    for index, entry in enumerate(entries):
        if not isinstance(entry, Mapping):
            raise ChannelConfigError(f"Channel entry {index} must be an object")
        label = entry.get("id") or entry.get("type") or f"#{index}"
        if entry.get("enabled", True) is False:
            # disabled channels may reference variables that are not set
            resolved = dict(entry)
        else:
            try:
                resolved = resolve_env_references(dict(entry), environ)
            except ChannelConfigError as e:
                raise ChannelConfigError(f"Channel {label}: {e}", channel_id=str(label)) from e
        try:
            configs.append(ChannelConfig.model_validate(resolved))
        except ValidationError as e:
            raise ChannelConfigError(
                f"Invalid configuration for channel {label}:\n{format_validation_error(e)}",
                channel_id=str(label),
            ) from e
    return configs


def load_channel_configs_file(
    path: Union[str, Path],
    environ: Mapping[str, str] = os.environ,
) -> list[ChannelConfig]:
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise ChannelConfigError(f"Channel configuration file not found: {path}")
    except json.JSONDecodeError as e:
        raise ChannelConfigError(f"Channel configuration file {path} is not valid JSON: {e}") from e
    if isinstance(data, dict) and "channels" in data:
        data = data["channels"]
    return load_channel_configs(data, environ)
