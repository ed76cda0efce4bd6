"""Typed loading of a project's release.toml.

The file describes the module being released and the host commands relmod
drives. Every section is optional except [module].
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .result import Err, Ok, Result
from .structured import (
    StrDict,
    as_str_dict,
    get_bool,
    get_float,
    get_str,
    get_str_list,
    get_table,
)

__all__ = [
    "CONFIG_FILE_NAME",
    "CommandsConfig",
    "CompatConfig",
    "ConfigError",
    "CrossConfig",
    "GitHubConfig",
    "ModuleConfig",
    "ProjectConfig",
    "RegistryConfig",
    "SigningConfig",
    "load_config",
]

CONFIG_FILE_NAME = "release.toml"

DEFAULT_REGISTRY_URL = "https://index.scala-lang.org"
DEFAULT_REGISTRY_TIMEOUT_SECONDS = 30.0
DEFAULT_COMMAND_TIMEOUT_SECONDS = 60 * 60.0

# Key used to sign platform artifacts unless the project overrides it.
DEFAULT_PGP_KEY_ID = "11BCFDCC60929524"
DEFAULT_PUBLIC_RING = "platform.pubring.asc"
DEFAULT_PRIVATE_RING = "platform.secring.asc"


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when release.toml cannot be loaded or is incomplete."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class ModuleConfig:
    """Identity and publish metadata of the released module."""

    organization: str
    name: str
    version: str
    binary_version: str | None = None
    scm_url: str | None = None
    licenses: tuple[str, ...] = ()
    # "organization:name:revision"
    dependencies: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class CrossConfig:
    enabled: bool = False
    targets: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class RegistryConfig:
    url: str = DEFAULT_REGISTRY_URL
    timeout: float = DEFAULT_REGISTRY_TIMEOUT_SECONDS


@dataclass(frozen=True, slots=True)
class CommandsConfig:
    """Host commands, as argv templates.

    Placeholders: {version}, {target}, {previous_version}.
    """

    test: tuple[str, ...] | None = None
    compat: tuple[str, ...] | None = None
    publish: tuple[str, ...] | None = None
    promote: tuple[str, ...] | None = None
    before_publish: tuple[str, ...] | None = None
    after_publish: tuple[str, ...] | None = None
    timeout: float = DEFAULT_COMMAND_TIMEOUT_SECONDS


@dataclass(frozen=True, slots=True)
class CompatConfig:
    # Compared against instead of the latest published version.
    previous_version: str | None = None


@dataclass(frozen=True, slots=True)
class SigningConfig:
    enabled: bool = True
    key_id: str = DEFAULT_PGP_KEY_ID
    custom_rings: Path | None = None
    public_ring: str = DEFAULT_PUBLIC_RING
    private_ring: str = DEFAULT_PRIVATE_RING


@dataclass(frozen=True, slots=True)
class GitHubConfig:
    remote: str = "origin"
    notes_dir: str = "notes"


@dataclass(frozen=True, slots=True)
class ProjectConfig:
    """Main configuration container."""

    module: ModuleConfig
    cross: CrossConfig = field(default_factory=CrossConfig)
    registry: RegistryConfig = field(default_factory=RegistryConfig)
    commands: CommandsConfig = field(default_factory=CommandsConfig)
    compat: CompatConfig = field(default_factory=CompatConfig)
    signing: SigningConfig = field(default_factory=SigningConfig)
    github: GitHubConfig = field(default_factory=GitHubConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Result[ProjectConfig, str]:
        """Create ProjectConfig from a mapping (parsed TOML)."""
        module = get_table(data, "module")
        if module is None:
            return Err("missing [module] table")

        organization = get_str(module, "organization")
        name = get_str(module, "name")
        if organization is None or name is None:
            return Err("[module] requires 'organization' and 'name'")

        # An empty version is reported later by the release steps.
        version_obj = module.get("version", "")
        if not isinstance(version_obj, str):
            return Err("[module] 'version' must be a string")

        cross: StrDict = get_table(data, "cross") or {}
        registry: StrDict = get_table(data, "registry") or {}
        commands: StrDict = get_table(data, "commands") or {}
        compat: StrDict = get_table(data, "compat") or {}
        signing: StrDict = get_table(data, "signing") or {}
        github: StrDict = get_table(data, "github") or {}

        custom_rings = get_str(signing, "custom_rings")

        return Ok(
            cls(
                module=ModuleConfig(
                    organization=organization,
                    name=name,
                    version=version_obj.strip(),
                    binary_version=get_str(module, "binary_version"),
                    scm_url=get_str(module, "scm_url"),
                    licenses=get_str_list(module, "licenses") or (),
                    dependencies=get_str_list(module, "dependencies") or (),
                ),
                cross=CrossConfig(
                    enabled=get_bool(cross, "enabled") or False,
                    targets=get_str_list(cross, "targets") or (),
                ),
                registry=RegistryConfig(
                    url=(get_str(registry, "url") or DEFAULT_REGISTRY_URL).rstrip("/"),
                    timeout=get_float(registry, "timeout") or DEFAULT_REGISTRY_TIMEOUT_SECONDS,
                ),
                commands=CommandsConfig(
                    test=get_str_list(commands, "test") or None,
                    compat=get_str_list(commands, "compat") or None,
                    publish=get_str_list(commands, "publish") or None,
                    promote=get_str_list(commands, "promote") or None,
                    before_publish=get_str_list(commands, "before_publish") or None,
                    after_publish=get_str_list(commands, "after_publish") or None,
                    timeout=get_float(commands, "timeout") or DEFAULT_COMMAND_TIMEOUT_SECONDS,
                ),
                compat=CompatConfig(previous_version=get_str(compat, "previous_version")),
                signing=SigningConfig(
                    enabled=get_bool(signing, "enabled") is not False,
                    key_id=get_str(signing, "key_id") or DEFAULT_PGP_KEY_ID,
                    custom_rings=Path(custom_rings).expanduser() if custom_rings else None,
                    public_ring=get_str(signing, "public_ring") or DEFAULT_PUBLIC_RING,
                    private_ring=get_str(signing, "private_ring") or DEFAULT_PRIVATE_RING,
                ),
                github=GitHubConfig(
                    remote=get_str(github, "remote") or "origin",
                    notes_dir=get_str(github, "notes_dir") or "notes",
                ),
            )
        )


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, handling read and parse errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[ProjectConfig, ConfigError]:
    """Load and parse release.toml.

    Args:
        path: Path to the release.toml file

    Returns:
        Ok(ProjectConfig) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    config = ProjectConfig.from_dict(result.value)
    if isinstance(config, Err):
        return Err(ConfigError(f"Invalid config structure: {config.error}", path=path))
    return config
