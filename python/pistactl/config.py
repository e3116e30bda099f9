"""pistactl configuration.

Layers, lowest to highest: built-in defaults, ``~/.pistactl.yaml`` (or the file
given with ``--config``), then CLI flags. Example::

    sock_name: pistactl
    session: pistactl
    slots_fifos_dir: ~/.pistactl/slots
    notifications:
      log_lines_limit: 5
    pista:
      interval: 1
      separator: " | "
      slots:
        - name: cpu
          cmd: "while true; do uptime; sleep 5; done"
          ttl: 10
        - cmd: "date"
          len: 28
          ttl: -1
"""

from __future__ import annotations

import enum
import shlex
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Optional

import yaml

from . import NAME
from .errors import ConfigError
from .logging_config import setup_logger

logger = setup_logger("pistactl.config")

DEFAULT_CONFIG_PATH = Path.home() / f".{NAME}.yaml"
DEFAULT_INTERPRETER = Path("/bin/sh")
DEFAULT_RENDERER = "pista"


class PistaLogLevel(enum.IntEnum):
    NOTHING = 0
    ERROR = 1
    WARN = 2
    INFO = 3
    DEBUG = 4

    @classmethod
    def parse(cls, value: Any) -> "PistaLogLevel":
        if isinstance(value, bool):
            raise ConfigError(f"pista.log_level: invalid value {value!r}")
        if isinstance(value, int):
            try:
                return cls(value)
            except ValueError:
                raise ConfigError(f"pista.log_level: invalid value {value!r}") from None
        if isinstance(value, str) and value.strip().upper() in cls.__members__:
            return cls[value.strip().upper()]
        raise ConfigError(f"pista.log_level: invalid value {value!r}")


@dataclass(frozen=True)
class Notifications:
    log_lines_limit: int = 5
    indent: str = "    "
    width_limit: int = 80


@dataclass(frozen=True)
class Slot:
    cmd: str
    ttl: int
    name: Optional[str] = None
    interpreter: Path = DEFAULT_INTERPRETER
    len: Optional[int] = None


@dataclass(frozen=True)
class Pista:
    renderer: str = DEFAULT_RENDERER
    interval: Optional[float] = None
    pad_left: Optional[str] = None
    pad_right: Optional[str] = None
    separator: Optional[str] = None
    x11: Optional[bool] = None
    expiry_character: Optional[str] = None
    log_level: Optional[PistaLogLevel] = None
    slots: tuple[Slot, ...] = ()

    def to_arg_str(self) -> str:
        """Global pista flags, in pista's own option order."""
        args: list[str] = []
        if self.interval is not None:
            args.append(f"-i {self.interval:g}")
        if self.pad_left is not None:
            args.append(f"-f {shlex.quote(self.pad_left)}")
        if self.separator is not None:
            args.append(f"-s {shlex.quote(self.separator)}")
        if self.pad_right is not None:
            args.append(f"-r {shlex.quote(self.pad_right)}")
        if self.x11:
            args.append("-x")
        if self.expiry_character is not None:
            args.append(f"-e {shlex.quote(self.expiry_character)}")
        if self.log_level is not None:
            args.append(f"-l {int(self.log_level)}")
        return " ".join(args)


@dataclass(frozen=True)
class Config:
    debug: bool = False
    sock: str = NAME
    session: str = NAME
    slots_fifos_dir: Path = field(
        default_factory=lambda: Path(f"~/.{NAME}/slots").expanduser()
    )
    slot_length_timeout: float = 10.0
    notifications: Notifications = field(default_factory=Notifications)
    pista: Pista = field(default_factory=Pista)

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "Config":
        """Load from ``path``, or from the default location if it exists."""
        if path is None:
            path = DEFAULT_CONFIG_PATH
            if not path.exists():
                logger.info("No config file at %s; using defaults", path)
                return cls()
        path = path.expanduser()
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Failed to read from: {path}: {e}") from e
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to parse YAML from: {path}: {e}") from e
        logger.debug("Loaded config file: %s", path)
        return cls.from_dict(data or {})

    @classmethod
    def from_dict(cls, data: Any) -> "Config":
        data = _mapping(data, "config")
        _warn_unknown(
            data,
            {
                "debug",
                "sock_name",
                "session",
                "slots_fifos_dir",
                "slot_length_timeout",
                "notifications",
                "pista",
            },
            "config",
        )
        default = cls()
        slots_dir = data.get("slots_fifos_dir")
        return cls(
            debug=_typed(data, "debug", bool, default.debug),
            sock=_typed(data, "sock_name", str, default.sock),
            session=_typed(data, "session", str, default.session),
            slots_fifos_dir=(
                Path(_typed(data, "slots_fifos_dir", str, "")).expanduser()
                if slots_dir is not None
                else default.slots_fifos_dir
            ),
            slot_length_timeout=float(
                _typed(data, "slot_length_timeout", (int, float), default.slot_length_timeout)
            ),
            notifications=_notifications(data.get("notifications")),
            pista=_pista(data.get("pista")),
        )

    def with_overrides(
        self,
        *,
        sock: Optional[str] = None,
        session: Optional[str] = None,
        slots_dir: Optional[Path] = None,
        debug: Optional[bool] = None,
    ) -> "Config":
        """Apply CLI flags on top of the file configuration."""
        cfg = self
        if sock is not None:
            cfg = replace(cfg, sock=sock)
        if session is not None:
            cfg = replace(cfg, session=session)
        if slots_dir is not None:
            cfg = replace(cfg, slots_fifos_dir=slots_dir.expanduser())
        if debug:
            cfg = replace(cfg, debug=True)
        return cfg


def _mapping(value: Any, where: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ConfigError(f"{where}: expected a mapping, got {type(value).__name__}")
    return value


def _warn_unknown(data: dict[str, Any], known: set[str], where: str) -> None:
    for key in sorted(set(data) - known):
        logger.warning("Ignoring unknown key %r in %s", key, where)


def _typed(data: dict[str, Any], key: str, types: Any, default: Any, where: str = "") -> Any:
    value = data.get(key)
    if value is None:
        return default
    allowed = types if isinstance(types, tuple) else (types,)
    # bool is an int subclass; don't accept `true` where a number is expected.
    if isinstance(value, bool) and bool not in allowed:
        raise ConfigError(f"{where}{key}: expected a number, got {value!r}")
    if not isinstance(value, types):
        raise ConfigError(f"{where}{key}: invalid value {value!r}")
    return value


def _notifications(value: Any) -> Notifications:
    if value is None:
        return Notifications()
    data = _mapping(value, "notifications")
    _warn_unknown(data, {"log_lines_limit", "indent", "width_limit"}, "notifications")
    default = Notifications()
    where = "notifications."
    return Notifications(
        log_lines_limit=_typed(data, "log_lines_limit", int, default.log_lines_limit, where),
        indent=_typed(data, "indent", str, default.indent, where),
        width_limit=_typed(data, "width_limit", int, default.width_limit, where),
    )


def _slot(value: Any, position: int) -> Slot:
    where = f"pista.slots[{position}]."
    data = _mapping(value, where.rstrip("."))
    _warn_unknown(data, {"name", "cmd", "interpreter", "len", "ttl"}, where.rstrip("."))
    cmd = _typed(data, "cmd", str, None, where)
    if not cmd:
        raise ConfigError(f"{where}cmd: missing")
    name = data.get("name")
    if name is not None:
        name = str(name)
        # Window names are one field of the whitespace-separated pane listing.
        if not name or any(c.isspace() for c in name):
            raise ConfigError(f"{where}name: must be non-empty without whitespace, got {name!r}")
    return Slot(
        cmd=cmd,
        ttl=_typed(data, "ttl", int, -1, where),
        name=name,
        interpreter=Path(_typed(data, "interpreter", str, str(DEFAULT_INTERPRETER), where)),
        len=_typed(data, "len", int, None, where),
    )


def _pista(value: Any) -> Pista:
    if value is None:
        return Pista()
    data = _mapping(value, "pista")
    _warn_unknown(
        data,
        {
            "renderer",
            "interval",
            "pad_left",
            "pad_right",
            "separator",
            "x11",
            "expiry_character",
            "log_level",
            "slots",
        },
        "pista",
    )
    where = "pista."
    slots = data.get("slots") or []
    if not isinstance(slots, list):
        raise ConfigError("pista.slots: expected a list")
    interval = _typed(data, "interval", (int, float), None, where)
    expiry = _typed(data, "expiry_character", str, None, where)
    if expiry is not None and len(expiry) != 1:
        raise ConfigError(f"pista.expiry_character: expected one character, got {expiry!r}")
    log_level = data.get("log_level")
    return Pista(
        renderer=_typed(data, "renderer", str, DEFAULT_RENDERER, where),
        interval=None if interval is None else float(interval),
        pad_left=_typed(data, "pad_left", str, None, where),
        pad_right=_typed(data, "pad_right", str, None, where),
        separator=_typed(data, "separator", str, None, where),
        x11=_typed(data, "x11", bool, None, where),
        expiry_character=expiry,
        log_level=None if log_level is None else PistaLogLevel.parse(log_level),
        slots=tuple(_slot(s, i) for i, s in enumerate(slots, 1)),
    )
