import copy
import os
from pathlib import Path
from typing import Optional

import yaml

from vouch_core.errors import ConfigurationError

DEFAULT_CONFIG: dict = {
    "repo": None,  # owner/name; falls back to GITHUB_REPOSITORY
    "vouched_file": None,  # None = probe TRUST_FILE_LOCATIONS
    "default_platform": "github",
    "vouch_keywords": ["vouch"],
    "denounce_keywords": ["denounce"],
    "unvouch_keywords": ["unvouch"],
    "allow_vouch": True,
    "allow_denounce": True,
    "allow_unvouch": True,
    "roles": None,  # None = built-in role defaults (see vouch_core.authz)
    "legacy_permissions": None,
    "managers": None,  # {"path": ..., "repo": ..., "ref": ...} or a bare path
    "require_vouch": True,
    "auto_close": True,
    "pull_request": False,  # commit to a new branch and open a PR instead of pushing
    "push_attempts": 3,
    "codeowners_file": None,
    "github_api_url": None,  # falls back to GITHUB_API_URL, then api.github.com
}

TRUST_FILE_LOCATIONS = (".github/VOUCHED.td", "VOUCHED.td")


def load_config(config_path: str = ".vouch.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .vouch.yml in the current directory
      3. CLI argument overrides
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        if not isinstance(file_config, dict):
            raise ConfigurationError(f"{config_path} must contain a mapping, got {type(file_config).__name__}")
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    # Resolve environment-provided values
    config["github_token"] = os.environ.get("GITHUB_TOKEN")
    if not config.get("repo"):
        config["repo"] = os.environ.get("GITHUB_REPOSITORY")
    if not config.get("github_api_url"):
        config["github_api_url"] = os.environ.get("GITHUB_API_URL")

    return config


def require_repo(config: dict) -> str:
    repo = config.get("repo")
    if not repo or "/" not in repo:
        raise ConfigurationError("No target repository. Pass --repo owner/name or set GITHUB_REPOSITORY.")
    return repo


def resolve_trust_file(config: dict, root: str = ".") -> str:
    """
    Return the trust file path relative to ``root``.

    An explicitly configured ``vouched_file`` is returned as-is even if it does
    not exist yet. Otherwise the first existing default location wins, falling
    back to the first default so mutation paths know where to create it.
    """
    configured = config.get("vouched_file")
    if configured:
        return configured
    for candidate in TRUST_FILE_LOCATIONS:
        if (Path(root) / candidate).is_file():
            return candidate
    return TRUST_FILE_LOCATIONS[0]
