"""Global settings: redirector choice, logging target and socket tuning."""

from __future__ import annotations

import enum
import ipaddress
import socket
import struct
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

__all__ = [
    "ConfigError",
    "Redirector",
    "BaseConfig",
    "apply_tcp_keepalive",
    "apply_reuseport",
    "get_destination",
]

# Netfilter option that returns the pre-NAT destination of a connection.
_SO_ORIGINAL_DST = 80
_IP6T_SO_ORIGINAL_DST = 80
_SOL_IP = getattr(socket, "SOL_IP", 0)
_SOL_IPV6 = getattr(socket, "SOL_IPV6", 41)
_SOCKADDR_IN_LEN = 16
_SOCKADDR_IN6_LEN = 28

_TRUE_WORDS = frozenset({"on", "true", "yes", "1"})
_FALSE_WORDS = frozenset({"off", "false", "no", "0"})


class ConfigError(ValueError):
    """The ``base`` section of the configuration is invalid."""


class Redirector(enum.Enum):
    """How the original destination of a redirected connection is found."""

    IPTABLES = "iptables"
    GENERIC = "generic"


def _parse_str(key: str, value: Any) -> str:
    if not isinstance(value, str):
        raise ConfigError(f"`{key}` must be a string")
    return value


def _parse_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        word = value.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
    raise ConfigError(f"`{key}` must be a boolean")


def _parse_uint16(key: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"`{key}` must be an integer")
    if isinstance(value, str):
        text = value.strip()
        if not text.isdigit():
            raise ConfigError(f"`{key}` must be an integer")
        value = int(text)
    if not isinstance(value, int):
        raise ConfigError(f"`{key}` must be an integer")
    if not 0 <= value <= 0xFFFF:
        raise ConfigError(f"`{key}` must be between 0 and 65535")
    return value


_PARSERS = {
    "chroot": _parse_str,
    "user": _parse_str,
    "group": _parse_str,
    "redirector": _parse_str,
    "log": _parse_str,
    "log_debug": _parse_bool,
    "log_info": _parse_bool,
    "daemon": _parse_bool,
    "reuseport": _parse_bool,
    "tcp_keepalive_time": _parse_uint16,
    "tcp_keepalive_probes": _parse_uint16,
    "tcp_keepalive_intvl": _parse_uint16,
}


@dataclass(frozen=True)
class BaseConfig:
    """Settings of the ``base`` configuration section."""

    redirector: Redirector
    chroot: str | None = None
    user: str | None = None
    group: str | None = None
    log: str | None = None
    log_debug: bool = False
    log_info: bool = False
    daemon: bool = False
    reuseport: bool = False
    tcp_keepalive_time: int = 0
    tcp_keepalive_probes: int = 0
    tcp_keepalive_intvl: int = 0

    @classmethod
    def from_section(cls, section: Mapping[str, Any]) -> "BaseConfig":
        """Build the settings from the key/value pairs of a ``base`` section."""
        values: dict[str, Any] = {}
        for key, value in section.items():
            parser = _PARSERS.get(key)
            if parser is None:
                raise ConfigError(f"unknown key `{key}` in section base")
            values[key] = parser(key, value)

        name = values.pop("redirector", None)
        if name is None:
            raise ConfigError("no `redirector` set")
        try:
            redirector = Redirector(name)
        except ValueError:
            raise ConfigError("invalid `redirector` set") from None
        return cls(redirector=redirector, **values)

    @property
    def log_target(self) -> str:
        """Where logs go: the configured target, syslog when daemonized, or stderr."""
        if self.log:
            return self.log
        return "syslog:daemon" if self.daemon else "stderr"


def apply_tcp_keepalive(sock: socket.socket, config: BaseConfig) -> None:
    """Enable TCP keep-alive on ``sock`` with the configured timings.

    Timings left at zero keep the system defaults. Failures raise ``OSError``.
    """
    options = [(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)]
    tuning = (
        ("TCP_KEEPIDLE", config.tcp_keepalive_time),
        ("TCP_KEEPCNT", config.tcp_keepalive_probes),
        ("TCP_KEEPINTVL", config.tcp_keepalive_intvl),
    )
    if all(hasattr(socket, name) for name, _value in tuning):
        options.extend(
            (socket.IPPROTO_TCP, getattr(socket, name), value) for name, value in tuning
        )
    for level, option, value in options:
        if value:
            sock.setsockopt(level, option, value)


def apply_reuseport(sock: socket.socket, config: BaseConfig) -> None:
    """Set ``SO_REUSEPORT`` on ``sock`` when the configuration asks for it."""
    option = getattr(socket, "SO_REUSEPORT", None)
    if option is None:
        raise OSError("SO_REUSEPORT is not supported on this system")
    if config.reuseport:
        sock.setsockopt(socket.SOL_SOCKET, option, 1)


def _parse_sockaddr(raw: bytes) -> tuple[str, int]:
    if len(raw) < 4:
        raise OSError("address returned by the kernel is too short")
    (family,) = struct.unpack_from("=H", raw, 0)
    (port,) = struct.unpack_from("!H", raw, 2)
    if family == socket.AF_INET and len(raw) >= 8:
        return str(ipaddress.IPv4Address(raw[4:8])), port
    if family == socket.AF_INET6 and len(raw) >= 24:
        return str(ipaddress.IPv6Address(raw[8:24])), port
    raise OSError(f"unsupported address family {family}")


def _original_destination(sock: Any) -> tuple[str, int]:
    if sock.family == socket.AF_INET6:
        try:
            raw = sock.getsockopt(_SOL_IPV6, _IP6T_SO_ORIGINAL_DST, _SOCKADDR_IN6_LEN)
            return _parse_sockaddr(raw)
        except OSError:
            pass
    raw = sock.getsockopt(_SOL_IP, _SO_ORIGINAL_DST, _SOCKADDR_IN6_LEN)
    return _parse_sockaddr(raw)


def get_destination(sock: Any, config: BaseConfig) -> tuple[str, int]:
    """Return the ``(host, port)`` the client of ``sock`` originally connected to."""
    if config.redirector is Redirector.IPTABLES:
        return _original_destination(sock)
    host, port = sock.getsockname()[:2]
    return host, port