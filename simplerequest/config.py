import yaml
from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union
from pydantic import BaseModel, Field, ValidationError, model_validator

DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; Python Request library)"


class TimeoutConfig(BaseModel):
    connect: int = Field(10, ge=0)
    total: int = Field(15, ge=0)


class TlsConfig(BaseModel):
    verify: bool = False


class CookieConfig(BaseModel):
    enabled: bool = False
    path: Optional[str] = None

    @model_validator(mode="after")
    def _require_path_when_enabled(self):
        if self.enabled and not self.path:
            raise ValueError("cookies.path is required when cookies.enabled is true.")
        return self


class RequestConfig(BaseModel):
    user_agent: str = DEFAULT_USER_AGENT
    method: Optional[str] = None
    post_fields: Optional[Union[str, Mapping[str, str]]] = None
    timeout: TimeoutConfig = TimeoutConfig()
    tls: TlsConfig = TlsConfig()
    cookies: CookieConfig = CookieConfig()


def _load_yaml_mapping(path: Path) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as handle:
        try:
            data = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Error parsing YAML config: {exc}")

    if not isinstance(data, dict):
        raise ValueError(f"Configuration file at {path} must contain a mapping at the top level.")
    return data


def _deep_merge_dicts(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    result = deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = _deep_merge_dicts(result[key], value)
        else:
            result[key] = value
    return result


def load_config(config_path: str) -> RequestConfig:
    """
    Load a YAML request config, merge it over the packaged defaults and
    validate it.
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found at: {config_path}")

    default_config = _load_yaml_mapping(get_default_config_path())
    user_config = _load_yaml_mapping(path)
    merged_config = _deep_merge_dicts(default_config, user_config)

    try:
        return RequestConfig(**merged_config)
    except ValidationError as e:
        raise ValueError(f"Configuration validation failed: {e}")


def get_default_config_path() -> Path:
    """Returns the absolute path to the packaged defaults file."""
    return Path(__file__).parent / "defaults.yaml"
