# src/mydbd/config.py
"""Connection configuration

Connection information and behavioral options of a :class:`Connection`, plus
a loader resolving them from a config file or the environment.
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from mysql.connector.constants import ClientFlag

# Try to import tomllib (Python 3.11+) or tomli for older versions
try:
    import tomllib
except ImportError:
    try:
        import tomli as tomllib
    except ImportError:
        tomllib = None

logger = logging.getLogger(__name__)

CONFIG_PATH_ENV = "MYDBD_CONFIG_PATH"
DEFAULT_CONFIG_FILES = ("mydbd.toml", "mydbd.yaml", "mydbd.yml")

# Keys accepted for compatibility with the driver's own naming
_ALIASES = {
    'host': 'hostname',
    'user': 'username',
    'unix_socket': 'socket',
}


@dataclass
class ConnectionConfig:
    """Connection information and options for a MySQL connection.

    Connection information:

    - hostname: Host name or IP address. None means the driver's default (local host).
    - username, password: Credentials.
    - database: Default database used when performing queries.
    - port: Port number of the MySQL server.
    - socket: Unix socket or named pipe to connect through.

    Options:

    - compression: Use the compression protocol.
    - ssl: Use SSL (encryption), optionally with ssl_ca / ssl_cert / ssl_key.
    - found_rows: Report matched rows instead of affected rows.
    - ignore_space: Allow spaces after function names.
    - readonly: Reject write queries (INSERT, DELETE...) with ReadOnlyError.
    - query_log: Record every command in the query logger.
    - query_prepare_cache: Make query() use prepare_cached() instead of prepare().
    - connect_timeout: Connection timeout in seconds, 0 for the driver default.
    - wait_timeout: Seconds of inactivity before the server closes the
      connection, 0 to keep the server setting.
    - client_interactive: Use interactive_timeout instead of wait_timeout.
    """

    hostname: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    database: Optional[str] = None
    port: Optional[int] = None
    socket: Optional[str] = None
    charset: str = 'utf8mb4'

    compression: bool = False
    ssl: bool = False
    ssl_ca: Optional[str] = None
    ssl_cert: Optional[str] = None
    ssl_key: Optional[str] = None
    found_rows: bool = False
    ignore_space: bool = False
    readonly: bool = False
    query_log: bool = False
    query_prepare_cache: bool = False
    connect_timeout: int = 0
    wait_timeout: int = 0
    client_interactive: bool = False

    autocommit: bool = True
    use_pure: bool = True
    log_level: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ConnectionConfig':
        """Build a config from a flat mapping.

        Raises:
            ValueError: On keys that are neither a config field nor a known alias.
        """
        known = {f.name for f in fields(cls)}
        params = {}
        for key, value in data.items():
            name = _ALIASES.get(key, key)
            if name not in known:
                raise ValueError(f"Unknown connection option: {key}")
            params[name] = value
        return cls(**params)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def client_flags(self) -> List[int]:
        flags = []
        if self.found_rows:
            flags.append(ClientFlag.FOUND_ROWS)
        if self.ignore_space:
            flags.append(ClientFlag.IGNORE_SPACE)
        if self.client_interactive:
            flags.append(ClientFlag.INTERACTIVE)
        return flags

    def to_connect_args(self) -> Dict[str, Any]:
        """Merge connection information and options into ``mysql.connector.connect()`` arguments."""
        connection_args: Dict[str, Any] = {
            'host': self.hostname,
            'user': self.username,
            'password': self.password,
            'database': self.database,
            'port': self.port,
            'unix_socket': self.socket,
            'charset': self.charset,
        }
        # Only include non-None values
        connection_args = {key: value for key, value in connection_args.items() if value is not None}

        connection_args['autocommit'] = self.autocommit
        connection_args['use_pure'] = self.use_pure

        if self.compression:
            connection_args['compress'] = True

        flags = self.client_flags()
        if flags:
            connection_args['client_flags'] = flags

        if self.ssl:
            connection_args['ssl_disabled'] = False
            for key in ('ssl_ca', 'ssl_cert', 'ssl_key'):
                value = getattr(self, key)
                if value:
                    connection_args[key] = value
        else:
            connection_args['ssl_disabled'] = True

        if self.connect_timeout:
            connection_args['connection_timeout'] = self.connect_timeout

        return connection_args


def load_yaml_config(file_path: Path) -> Dict[str, Any]:
    with open(file_path, 'r', encoding='utf-8') as f:
        return yaml.safe_load(f) or {}


def load_toml_config(file_path: Path) -> Dict[str, Any]:
    if tomllib is None:
        raise ImportError("tomllib or tomli is required to load TOML configuration files")
    with open(file_path, 'rb') as f:
        return tomllib.load(f) or {}


def load_config_from_file(config_path: Path) -> Dict[str, Any]:
    """Load a configuration mapping from a YAML, TOML or JSON file.

    The file holds either a flat mapping of config fields, or ``connection``
    and ``options`` sections which are merged together.
    """
    suffix = config_path.suffix.lower().strip()
    if suffix in ('.yaml', '.yml'):
        data = load_yaml_config(config_path)
    elif suffix == '.toml':
        data = load_toml_config(config_path)
    elif suffix == '.json':
        with open(config_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    else:
        raise ValueError(f"Unsupported configuration file format: {config_path.suffix}")

    logger.info(f"Loaded configuration from {config_path}")

    if 'connection' in data or 'options' in data:
        merged = dict(data.get('connection') or {})
        merged.update(data.get('options') or {})
        return merged
    return data


def _config_from_env() -> Dict[str, Any]:
    env_map = {
        'MYSQL_HOST': 'hostname',
        'MYSQL_PORT': 'port',
        'MYSQL_USER': 'username',
        'MYSQL_PASSWORD': 'password',
        'MYSQL_DATABASE': 'database',
        'MYSQL_SOCKET': 'socket',
    }
    data: Dict[str, Any] = {}
    for env_name, key in env_map.items():
        value = os.getenv(env_name)
        if value is not None:
            data[key] = int(value) if key == 'port' else value
    return data


def load_config(path: Union[str, Path, None] = None) -> ConnectionConfig:
    """Load a connection configuration using a multi-level priority mechanism:

    1. The ``path`` argument
    2. The file named by the MYDBD_CONFIG_PATH environment variable
    3. mydbd.toml, then mydbd.yaml / mydbd.yml in the working directory
    4. MYSQL_HOST, MYSQL_PORT, MYSQL_USER, MYSQL_PASSWORD, MYSQL_DATABASE and
       MYSQL_SOCKET environment variables
    5. Hard-coded default values

    Raises:
        FileNotFoundError: If an explicitly named file doesn't exist.
    """
    explicit = path or os.getenv(CONFIG_PATH_ENV)
    if explicit:
        config_path = Path(explicit)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file {config_path} does not exist")
        return ConnectionConfig.from_dict(load_config_from_file(config_path))

    for name in DEFAULT_CONFIG_FILES:
        config_path = Path.cwd() / name
        if config_path.exists():
            return ConnectionConfig.from_dict(load_config_from_file(config_path))

    env_config = _config_from_env()
    if env_config:
        logger.info("Using MySQL connection parameters from environment variables")
        return ConnectionConfig.from_dict(env_config)

    logger.info("Using default configuration")
    return ConnectionConfig()
