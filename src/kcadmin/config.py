"""Loading and saving :class:`~kcadmin.models.SSOConfig` files.

Configuration files may be JSON or YAML. The format is picked from the
file suffix (``.json``, ``.yaml``, ``.yml``); for any other suffix JSON is
tried first and YAML second, since valid JSON is also valid YAML.

Writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`) so a crash never leaves a truncated file behind.

Example YAML::

    client_id: admin-cli
    client_secret: s3cr3t
    realm: master
    base_url: https://sso.example.com
    headers:
      X-Tenant: acme
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import ValidationError

from kcadmin.exceptions import ConfigError
from kcadmin.models import SSOConfig

PathLike = Union[str, Path]


def _format_hint(path: Path) -> str:
    suffix = path.suffix.lower()
    if suffix == ".json":
        return "json"
    if suffix in (".yaml", ".yml"):
        return "yaml"
    return ""


def _parse_content(content: str, hint: str = "") -> dict[str, Any]:
    """Parse *content* as JSON or YAML into a mapping.

    Raises:
        ConfigError: If the content is neither, or is not a mapping.
    """
    json_error: Optional[Exception] = None

    if hint != "yaml":
        try:
            result = json.loads(content)
        except json.JSONDecodeError as exc:
            if hint == "json":
                raise ConfigError(f"Invalid JSON: {exc}") from exc
            json_error = exc
        else:
            if not isinstance(result, dict):
                raise ConfigError(
                    f"Config must be a JSON/YAML object (got {type(result).__name__})"
                )
            return result

    try:
        result = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        msg = "Failed to parse config as JSON or YAML" if json_error else "Invalid YAML"
        if json_error:
            msg += f"\n  JSON error: {json_error}"
        msg += f"\n  YAML error: {exc}"
        raise ConfigError(msg) from exc

    if not isinstance(result, dict):
        kind = type(result).__name__ if result is not None else "empty document"
        raise ConfigError(f"Config must be a JSON/YAML object (got {kind})")
    return result


def load_config(path: PathLike) -> SSOConfig:
    """Load and validate an SSO configuration file.

    Args:
        path: Path to a JSON or YAML file.

    Returns:
        The validated :class:`~kcadmin.models.SSOConfig`.

    Raises:
        ConfigError: If the file is missing, unreadable, unparsable, or
            fails validation.
    """
    file_path = Path(path)
    if not file_path.is_file():
        raise ConfigError(f"Config file not found: {file_path}")

    try:
        content = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read config file {file_path}: {exc}") from exc

    if not content.strip():
        raise ConfigError(f"Config file is empty: {file_path}")

    data = _parse_content(content, hint=_format_hint(file_path))
    try:
        return SSOConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config in {file_path}:\n{exc}") from exc


def save_config(config: SSOConfig, path: PathLike) -> Path:
    """Write *config* to *path* as JSON or YAML, chosen by suffix (YAML by default).

    Returns:
        The path written to.
    """
    file_path = Path(path)
    data = config.model_dump(mode="json")
    if _format_hint(file_path) == "json":
        text = json.dumps(data, indent=2) + "\n"
    else:
        text = yaml.safe_dump(data, sort_keys=False)
    _atomic_write(file_path, text)
    return file_path


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created next to *path* so ``os.replace`` is an
    atomic rename on POSIX. The temp file is removed on any failure.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        # Contains the client secret.
        os.chmod(tmp_path, 0o600)
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise
