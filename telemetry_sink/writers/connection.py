"""Backend selection and connection opening for the SQL writers."""

import logging
import re
import sqlite3
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Tuple, Union
from urllib.parse import parse_qs, unquote, urlsplit

from ..errors import BackendConnectionError

logger = logging.getLogger(__name__)

# network part of a go-sql-driver DSN: tcp(host:port), unix(/path/to.sock)
MYSQL_ADDRESS_PATTERN = re.compile(r"^(?P<net>\w+)(?:\((?P<addr>[^)]*)\))?$")


class Backend(str, Enum):
    """Supported database engines."""

    SQLITE = "sqlite"
    MYSQL = "mysql"
    POSTGRES = "postgres"
    MSSQL = "mssql"

    @classmethod
    def parse(cls, name: Union["Backend", str]) -> "Backend":
        if isinstance(name, cls):
            return name
        try:
            return cls(name)
        except ValueError:
            raise BackendConnectionError(f"unknown database backend: {name!r}") from None


@dataclass(frozen=True)
class BackendDriver:
    """How to talk to one backend: connect, bind parameters, bound transactions."""

    backend: Backend
    connect: Callable[[str], Any]
    placeholder: str
    begin_sql: str
    commit_sql: str = "COMMIT"
    rollback_sql: str = "ROLLBACK"


def normalize_conn_string(backend: Union[Backend, str], conn_string: str) -> str:
    """
    Strip the redundant "<backend>:" prefix sqlite and mysql DSNs may carry.

    Args:
        backend: Target backend
        conn_string: Connection string as configured

    Returns:
        Connection string in the driver's native format
    """
    backend = Backend.parse(backend)
    prefix = f"{backend.value}:"
    if backend in (Backend.SQLITE, Backend.MYSQL) and conn_string.startswith(prefix):
        return conn_string[len(prefix):]
    return conn_string


def _split_host_port(hostport: str) -> Tuple[str, str]:
    if hostport.startswith("["):
        host, _, rest = hostport[1:].partition("]")
        return host, rest[1:] if rest.startswith(":") else ""
    host, _, port = hostport.partition(":")
    return host, port


def _parse_mysql_port(port: str, dsn: str) -> int:
    if not port:
        return 3306
    if not port.isdigit():
        raise BackendConnectionError(f"invalid port {port!r} in mysql connection string: {dsn!r}")
    return int(port)


def _parse_go_mysql_dsn(dsn: str) -> Tuple[Dict[str, Any], str]:
    # same split points as go-sql-driver: last "/" ends the address,
    # last "@" before it ends the user info
    slash = dsn.rfind("/")
    if slash < 0:
        raise BackendConnectionError(f"malformed mysql connection string: {dsn!r}")
    head, tail = dsn[:slash], dsn[slash + 1:]
    database, _, params = tail.partition("?")

    userinfo, at, address = head.rpartition("@")
    if not at:
        userinfo, address = "", head
    user, _, password = userinfo.partition(":")

    kwargs: Dict[str, Any] = {
        "user": user,
        "password": password,
        "database": database or None,
    }
    if not address:
        kwargs.update(host="localhost", port=3306)
        return kwargs, params

    match = MYSQL_ADDRESS_PATTERN.match(address)
    if not match:
        raise BackendConnectionError(f"malformed mysql connection string: {dsn!r}")
    net, addr = match.group("net"), match.group("addr") or ""
    if net == "tcp":
        host, port = _split_host_port(addr)
        kwargs.update(host=host or "localhost", port=_parse_mysql_port(port, dsn))
    elif net == "unix":
        if not addr:
            raise BackendConnectionError(f"mysql unix network needs a socket path: {dsn!r}")
        kwargs["unix_socket"] = addr
    else:
        raise BackendConnectionError(f"unsupported mysql network {net!r}")
    return kwargs, params


def parse_mysql_dsn(dsn: str) -> Dict[str, Any]:
    """Turn a normalized mysql DSN into pymysql connect arguments."""
    if dsn.startswith("//"):
        parts = urlsplit(f"mysql:{dsn}")
        _, port = _split_host_port(parts.netloc.rpartition("@")[2])
        kwargs: Dict[str, Any] = {
            "host": parts.hostname or "localhost",
            "port": _parse_mysql_port(port, dsn),
            "user": unquote(parts.username or ""),
            "password": unquote(parts.password or ""),
            "database": parts.path.lstrip("/") or None,
        }
        params = parts.query
    else:
        kwargs, params = _parse_go_mysql_dsn(dsn)

    charset = parse_qs(params).get("charset")
    if charset:
        kwargs["charset"] = charset[0]
    return kwargs


def parse_mssql_dsn(dsn: str) -> Dict[str, Any]:
    """Turn a sqlserver:// URL or an ADO style string into pymssql arguments."""
    if "://" in dsn:
        parts = urlsplit(dsn)
        if not parts.hostname:
            raise BackendConnectionError(f"malformed mssql connection string: {dsn!r}")
        query = {k.lower(): v[0] for k, v in parse_qs(parts.query).items()}
        kwargs: Dict[str, Any] = {
            "server": parts.hostname,
            "user": unquote(parts.username or ""),
            "password": unquote(parts.password or ""),
            "database": query.get("database", ""),
        }
        if parts.port:
            kwargs["port"] = str(parts.port)
        return kwargs

    fields = {}
    for item in dsn.split(";"):
        if not item.strip():
            continue
        key, sep, value = item.partition("=")
        if not sep:
            raise BackendConnectionError(f"malformed mssql connection string: {dsn!r}")
        fields[key.strip().lower()] = value.strip()

    server = fields.get("server") or fields.get("data source")
    if not server:
        raise BackendConnectionError("mssql connection string has no server")
    kwargs = {
        "server": server,
        "user": fields.get("user id") or fields.get("uid") or "",
        "password": fields.get("password") or fields.get("pwd") or "",
        "database": fields.get("database") or fields.get("initial catalog") or "",
    }
    if fields.get("port"):
        kwargs["port"] = fields["port"]
    return kwargs


def _connect_sqlite(dsn: str):
    # autocommit mode; transactions are bounded by explicit BEGIN/COMMIT
    return sqlite3.connect(dsn, isolation_level=None)


def _connect_mysql(dsn: str):
    import pymysql

    return pymysql.connect(autocommit=True, **parse_mysql_dsn(dsn))


def _connect_postgres(dsn: str):
    import psycopg

    return psycopg.connect(dsn, autocommit=True)


def _connect_mssql(dsn: str):
    import pymssql

    return pymssql.connect(autocommit=True, **parse_mssql_dsn(dsn))


DRIVERS: Dict[Backend, BackendDriver] = {
    Backend.SQLITE: BackendDriver(Backend.SQLITE, _connect_sqlite, "?", "BEGIN"),
    Backend.MYSQL: BackendDriver(Backend.MYSQL, _connect_mysql, "%s", "START TRANSACTION"),
    Backend.POSTGRES: BackendDriver(Backend.POSTGRES, _connect_postgres, "%s", "BEGIN"),
    Backend.MSSQL: BackendDriver(
        Backend.MSSQL,
        _connect_mssql,
        "%s",
        "BEGIN TRANSACTION",
        commit_sql="COMMIT TRANSACTION",
        rollback_sql="ROLLBACK TRANSACTION",
    ),
}


def get_driver(backend: Union[Backend, str]) -> BackendDriver:
    """Get the driver spec bound to a backend name."""
    return DRIVERS[Backend.parse(backend)]


def open_connection(backend: Union[Backend, str], conn_string: str):
    """
    Open a new connection to the given backend.

    Args:
        backend: Backend name or Backend member
        conn_string: Connection string, possibly carrying a "<backend>:" prefix

    Returns:
        An open DB-API connection in autocommit mode, owned by the caller

    Raises:
        BackendConnectionError: If the backend is unknown, the DSN is
            malformed or the driver cannot connect
    """
    driver = get_driver(backend)
    logger.debug(f"opening {driver.backend.value} connection")
    dsn = normalize_conn_string(driver.backend, conn_string)
    try:
        return driver.connect(dsn)
    except BackendConnectionError:
        raise
    except Exception as e:
        logger.error(f"Failed to open {driver.backend.value} connection: {e}")
        raise BackendConnectionError(f"failed to open {driver.backend.value} connection: {e}") from e
