"""Configuration loader for the resource inliner."""

import copy
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml
from dotenv import load_dotenv

CONFIG_FILENAMES = ("inliner.yaml", "inliner.yml")
_ENV_VAR_RE = re.compile(r"\$\{([^}]+)\}")

DEFAULT_CONFIG: Dict[str, Any] = {
    "inline": {
        "include": ["**/*.ts"],
        "exclude": [],
        "encoding": "utf-8",
        "max_concurrency": 16,
    },
    "styles": {
        "import_prefix": "~",
        "package_roots": [],
        "less_extensions": [".less"],
    },
    "logging": {
        "level": "INFO",
        "file": None,
    },
}


@dataclass
class StyleOptions:
    import_prefix: str = "~"
    package_roots: Tuple[Path, ...] = ()
    less_extensions: Tuple[str, ...] = (".less",)


@dataclass
class InlineOptions:
    include: List[str] = field(default_factory=lambda: ["**/*.ts"])
    exclude: List[str] = field(default_factory=list)
    encoding: str = "utf-8"
    max_concurrency: int = 16
    styles: StyleOptions = field(default_factory=StyleOptions)


def load_config(config_path: Optional[str] = None, project_path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from YAML file, falling back to built-in defaults.
    
    Args:
        config_path: Path to config file. If None, looks for inliner.yaml in
            the project root and then in the current directory.
        project_path: Project root used for the config file lookup.
        
    Returns:
        Dictionary with configuration values.
    """
    # Load environment variables first
    load_dotenv()

    if config_path is not None and not Path(config_path).exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    if config_path is None:
        config_path = _find_config_file(project_path)

    config = copy.deepcopy(DEFAULT_CONFIG)
    if config_path is None:
        return config

    with open(config_path, "r", encoding="utf-8") as f:
        loaded = yaml.safe_load(f) or {}

    if not isinstance(loaded, dict):
        raise ValueError(f"Configuration file must contain a mapping: {config_path}")

    # Substitute environment variables
    loaded = _substitute_env_vars(loaded)

    return _deep_merge(config, loaded)


def _find_config_file(project_path: Optional[str]) -> Optional[str]:
    locations = []
    if project_path:
        locations.extend(Path(project_path) / name for name in CONFIG_FILENAMES)
    locations.extend(Path(name) for name in CONFIG_FILENAMES)
    for loc in locations:
        if loc.is_file():
            return str(loc)
    return None


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            base[key] = _deep_merge(base[key], value)
        else:
            base[key] = value
    return base


def _expand_env(match) -> str:
    name, has_default, default = match.group(1).partition(":")
    if has_default:
        return os.environ.get(name, default)
    return os.environ.get(name, match.group(0))


def _substitute_env_vars(obj: Any) -> Any:
    """Expand ${VAR} and ${VAR:default} in every string of a loaded config.

    Unset variables without a default are left as written.
    """
    if isinstance(obj, str):
        return _ENV_VAR_RE.sub(_expand_env, obj)
    if isinstance(obj, list):
        return list(map(_substitute_env_vars, obj))
    if isinstance(obj, dict):
        return {key: _substitute_env_vars(value) for key, value in obj.items()}
    return obj


def _as_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return [str(v) for v in value if str(v).strip()]


def get_styles_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """Get stylesheet configuration."""
    return config.get("styles", {}) or {}


def get_logging_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """Get logging configuration."""
    return config.get("logging", {}) or {}


def get_inline_options(config: Dict[str, Any]) -> InlineOptions:
    """Build typed inlining options from a configuration dictionary."""
    inline_cfg = config.get("inline", {}) or {}
    styles_cfg = get_styles_config(config)

    extensions = tuple(
        ext if ext.startswith(".") else f".{ext}"
        for ext in _as_list(styles_cfg.get("less_extensions", [".less"]))
    )
    styles = StyleOptions(
        import_prefix=str(styles_cfg.get("import_prefix") or "~"),
        package_roots=tuple(Path(p) for p in _as_list(styles_cfg.get("package_roots"))),
        less_extensions=extensions or (".less",),
    )

    max_concurrency = int(inline_cfg.get("max_concurrency", 16) or 0)
    if max_concurrency < 0:
        raise ValueError("inline.max_concurrency must be zero or a positive integer")

    return InlineOptions(
        include=_as_list(inline_cfg.get("include")) or ["**/*.ts"],
        exclude=_as_list(inline_cfg.get("exclude")),
        encoding=str(inline_cfg.get("encoding") or "utf-8"),
        max_concurrency=max_concurrency,
        styles=styles,
    )
