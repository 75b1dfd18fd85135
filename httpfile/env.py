"""Workspace environments for request files.

Environments come from ``http-client.env.json`` (JetBrains format), an
optional ``http-client.private.env.json`` holding secrets, or a plain
``.env`` file as a fallback. Private values are kept apart from public ones
so they can be edited and saved back to the right file.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field

from httpfile.errors import EnvFileError, EnvironmentNotFoundError
from httpfile.lexer import split_lines

logger = logging.getLogger(__name__)

ENV_FILE = "http-client.env.json"
PRIVATE_ENV_FILE = "http-client.private.env.json"
DOTENV_FILE = ".env"
SHARED_KEY = "$shared"


@dataclass
class Environment:
    name: str
    variables: dict[str, str] = field(default_factory=dict)
    private_variables: dict[str, str] = field(default_factory=dict)
    source_file: str = ""


@dataclass
class EnvironmentConfig:
    environments: list[Environment] = field(default_factory=list)
    shared: dict[str, str] = field(default_factory=dict)
    private_shared: dict[str, str] = field(default_factory=dict)

    @property
    def names(self) -> list[str]:
        return [env.name for env in self.environments]

    def get(self, name: str) -> Environment | None:
        for env in self.environments:
            if env.name == name:
                return env
        return None

    def variables_for(self, name: str | None) -> dict[str, str]:
        """Return the variables visible in environment ``name``.

        Later sources win: shared, private shared, the environment's own
        variables, then its private variables. ``None`` yields the shared
        variables only.

        Raises:
            EnvironmentNotFoundError: If no environment is called ``name``.
        """
        merged = {**self.shared, **self.private_shared}
        if name is None:
            return merged
        env = self.get(name)
        if env is None:
            raise EnvironmentNotFoundError(name)
        merged.update(env.variables)
        merged.update(env.private_variables)
        return merged


def _stringify(value) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value)


def _read_json_object(path: str) -> dict:
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
    except OSError as exc:
        raise EnvFileError(f"Failed to read env file {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise EnvFileError(f"Failed to parse env file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise EnvFileError(f"Env file {path} must contain a JSON object")
    return data


def parse_http_client_env(path: str) -> EnvironmentConfig:
    """Load a JetBrains ``http-client.env.json`` style file.

    The top-level object maps environment names to variable objects; the
    ``$shared`` entry holds variables common to all environments. Non-string
    values are converted to strings.

    Args:
        path: Path to the JSON file.

    Returns:
        An EnvironmentConfig with environments sorted by name.

    Raises:
        EnvFileError: If the file cannot be read or is not a JSON object of
            objects.
    """
    data = _read_json_object(path)

    config = EnvironmentConfig()
    for name, variables in data.items():
        if not isinstance(variables, dict):
            raise EnvFileError(
                f"Environment {name!r} in {path} must be a JSON object"
            )
        values = {key: _stringify(value) for key, value in variables.items()}
        if name == SHARED_KEY:
            config.shared = values
        else:
            config.environments.append(
                Environment(name=name, variables=values, source_file=path)
            )

    config.environments.sort(key=lambda env: env.name)
    return config


def parse_dotenv(content: str) -> dict[str, str]:
    """Parse ``KEY=value`` lines, skipping blanks and ``#`` comments."""
    variables: dict[str, str] = {}
    for line in split_lines(content):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        variables[key.strip()] = value.strip().strip('"').strip("'")
    return variables


def load_environment_config(workspace: str) -> EnvironmentConfig:
    """Discover and load the environments of a workspace directory.

    Lookup order: ``http-client.env.json`` (merged with the private file
    when present), the private file on its own, then ``.env`` as a single
    ``default`` environment. A workspace with none of these yields an empty
    config.

    Args:
        workspace: Directory holding the request files.

    Returns:
        The loaded EnvironmentConfig.

    Raises:
        EnvFileError: If an env file exists but cannot be loaded.
    """
    env_path = os.path.join(workspace, ENV_FILE)
    private_path = os.path.join(workspace, PRIVATE_ENV_FILE)
    dotenv_path = os.path.join(workspace, DOTENV_FILE)

    if os.path.isfile(env_path):
        config = parse_http_client_env(env_path)
        if os.path.isfile(private_path):
            _merge_private(config, parse_http_client_env(private_path))
        logger.debug("Loaded %d environments from %s", len(config.environments), env_path)
        return config

    if os.path.isfile(private_path):
        private = parse_http_client_env(private_path)
        return EnvironmentConfig(
            environments=[
                Environment(
                    name=env.name,
                    private_variables=env.variables,
                    source_file=env.source_file,
                )
                for env in private.environments
            ],
            private_shared=private.shared,
        )

    if os.path.isfile(dotenv_path):
        try:
            with open(dotenv_path, "r", encoding="utf-8") as fh:
                content = fh.read()
        except OSError as exc:
            raise EnvFileError(f"Failed to read {dotenv_path}: {exc}") from exc
        return EnvironmentConfig(
            environments=[
                Environment(
                    name="default",
                    variables=parse_dotenv(content),
                    source_file=dotenv_path,
                )
            ]
        )

    return EnvironmentConfig()


def _merge_private(config: EnvironmentConfig, private: EnvironmentConfig) -> None:
    for private_env in private.environments:
        env = config.get(private_env.name)
        if env is not None:
            env.private_variables = private_env.variables
        else:
            config.environments.append(
                Environment(
                    name=private_env.name,
                    private_variables=private_env.variables,
                    source_file=private_env.source_file,
                )
            )
    config.private_shared = private.shared
    config.environments.sort(key=lambda env: env.name)


def save_environment(
    workspace: str,
    name: str,
    variables: dict[str, str],
    private: bool = False,
) -> str:
    """Insert or replace one environment in the workspace env file.

    Args:
        workspace: Directory holding the env files.
        name: Environment name.
        variables: The environment's complete variable set.
        private: Write to the private env file instead of the public one.

    Returns:
        The path of the file written.

    Raises:
        EnvFileError: If the existing file cannot be read or written.
    """
    path = os.path.join(workspace, PRIVATE_ENV_FILE if private else ENV_FILE)
    data = _read_json_object(path) if os.path.isfile(path) else {}
    data[name] = dict(variables)

    try:
        with open(path, "w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=2)
            fh.write("\n")
    except OSError as exc:
        raise EnvFileError(f"Failed to write env file {path}: {exc}") from exc
    return path
