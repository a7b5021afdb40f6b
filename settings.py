"""
Runtime settings for the roadmap report.

Values are layered: defaults, then an optional YAML file, then environment variables, then explicit overrides
(typically CLI flags). The resulting Settings object is passed to the components that need it.

Environment variables:
- GITHUB_TOKEN: access token for the GraphQL API (required to fetch)
- GITHUB_PROJECT_ID: node id of the ProjectV2 board (required to fetch)
- GITHUB_CACHE_DURATION: cache TTL, seconds ("900") or HH:MM:SS ("01:00:00")
- GITHUB_GRAPHQL_URL: GraphQL endpoint
- ROADMAP_CONFIG: path of a YAML settings file
- ROADMAP_CACHE_PATH: snapshot file path
- ROADMAP_REQUEST_TIMEOUT: per-request timeout in seconds
- ROADMAP_PRODUCT_PREFIX: label prefix that marks the product
- ROADMAP_REQUIRED_LABEL: only keep issues carrying this exact label
"""

import os
import re
from dataclasses import dataclass, replace, fields
from typing import Any, Dict, Mapping, Optional

import yaml

from errors import ConfigurationError

DEFAULT_ENDPOINT = 'https://api.github.com/graphql'
DEFAULT_TTL_SECONDS = 3600.0
DEFAULT_REQUEST_TIMEOUT = 30.0
DEFAULT_USER_AGENT = 'github.com_digdir_roadmap-report'
CACHE_FILENAME = 'GitHubIssuesCache.json'

ENV_KEYS = {
    'token': 'GITHUB_TOKEN',
    'project_id': 'GITHUB_PROJECT_ID',
    'ttl_seconds': 'GITHUB_CACHE_DURATION',
    'endpoint': 'GITHUB_GRAPHQL_URL',
    'cache_path': 'ROADMAP_CACHE_PATH',
    'request_timeout': 'ROADMAP_REQUEST_TIMEOUT',
    'product_prefix': 'ROADMAP_PRODUCT_PREFIX',
    'required_label': 'ROADMAP_REQUIRED_LABEL',
}

_CLOCK_DURATION = re.compile(r'^(?:(\d+)\.)?(\d{1,2}):(\d{2})(?::(\d{2})(?:\.(\d+))?)?$')


def default_cache_path(env: Optional[Mapping[str, str]] = None) -> str:
    env = os.environ if env is None else env
    home = env.get('HOME') or os.path.expanduser('~')
    return os.path.join(home, 'cache', CACHE_FILENAME)


def parse_duration(raw: Any) -> float:
    """Parse a duration into seconds.

    Accepts numbers, numeric strings ("900") and clock strings ("01:00:00", "1.02:00:00" for 1 day 2 hours).
    """
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        seconds = float(raw)
    else:
        text = str(raw or '').strip()
        match = _CLOCK_DURATION.match(text)
        if match:
            days, hours, minutes, secs, frac = match.groups()
            seconds = int(days or 0) * 86400 + int(hours) * 3600 + int(minutes) * 60 + int(secs or 0)
            if frac:
                seconds += float('0.' + frac)
        else:
            try:
                seconds = float(text)
            except ValueError:
                raise ConfigurationError(f"Invalid duration: {raw!r}", value=raw)
    if seconds < 0:
        raise ConfigurationError(f"Duration must not be negative: {raw!r}", value=raw)
    return float(seconds)


def _parse_timeout(raw: Any) -> float:
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Invalid request timeout: {raw!r}", value=raw)
    if value <= 0:
        raise ConfigurationError(f"Request timeout must be positive: {raw!r}", value=raw)
    return value


@dataclass(frozen=True)
class Settings:
    token: Optional[str] = None
    project_id: Optional[str] = None
    ttl_seconds: float = DEFAULT_TTL_SECONDS
    cache_path: str = ''
    endpoint: str = DEFAULT_ENDPOINT
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    product_prefix: str = 'product/'
    required_label: Optional[str] = None
    user_agent: str = DEFAULT_USER_AGENT

    def require_credentials(self) -> None:
        """Raise ConfigurationError unless both the token and the project id are set."""
        missing = []
        if not self.token:
            missing.append('token (env GITHUB_TOKEN)')
        if not self.project_id:
            missing.append('project_id (env GITHUB_PROJECT_ID)')
        if missing:
            raise ConfigurationError('Missing required settings: ' + ', '.join(missing), missing=missing)


def _coerce(key: str, value: Any) -> Any:
    if key == 'ttl_seconds':
        return parse_duration(value)
    if key == 'request_timeout':
        return _parse_timeout(value)
    if value is None:
        return None
    return str(value)


def _load_yaml(path: str) -> Dict[str, Any]:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            doc = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as ex:
        raise ConfigurationError(f"Failed to load settings from {path}: {ex}", path=path)
    if not isinstance(doc, dict):
        raise ConfigurationError(f"Settings file {path} must contain a mapping", path=path)
    return doc


def load_settings(path: Optional[str] = None, env: Optional[Mapping[str, str]] = None, **overrides: Any) -> Settings:
    """Build Settings from defaults, an optional YAML file, the environment and explicit overrides.

    Overrides whose value is None are ignored so CLI flags that were not given do not mask other sources.
    """
    env = os.environ if env is None else env
    known = {f.name for f in fields(Settings)}
    values: Dict[str, Any] = {'cache_path': default_cache_path(env)}

    path = path or env.get('ROADMAP_CONFIG')
    if path:
        for key, value in _load_yaml(path).items():
            if key not in known:
                raise ConfigurationError(f"Unknown setting '{key}' in {path}", path=path, key=key)
            values[key] = value

    for key, env_key in ENV_KEYS.items():
        if env.get(env_key):
            values[key] = env[env_key]

    for key, value in overrides.items():
        if key not in known:
            raise ConfigurationError(f"Unknown setting '{key}'", key=key)
        if value is not None:
            values[key] = value

    return replace(Settings(), **{k: _coerce(k, v) for k, v in values.items()})
