"""
Configuration loading for the Cursor relay.

All settings come from environment variables and are resolved once, at
startup, into ``RelaySettings``.  The agent launcher receives its own
``AgentCliConfig`` slice explicitly; nothing reads the environment later.
"""

import logging
import os
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_CLI_PATH = "cursor"
DEFAULT_TITLE_TIMEOUT_MS = 3000
DEFAULT_DATA_DIR = Path.home() / ".cursor-relay"


@dataclass
class AgentCliConfig:
    """How to invoke the external agent binary.

    Args:
        cli_path: Binary, or a command line (``"python mock_agent.py"``).
        model: Optional ``--model`` value.
        api_key: ``CURSOR_API_KEY`` — only consulted by the status check.
        agent_subcommand: Prepend ``agent`` to the arguments.  Defaults to
            ``True`` unless the binary itself is named ``*agent``.
    """

    cli_path: str = DEFAULT_CLI_PATH
    model: Optional[str] = None
    api_key: Optional[str] = None
    agent_subcommand: Optional[bool] = None

    def __post_init__(self) -> None:
        if self.agent_subcommand is None:
            last = os.path.basename(self.command[-1]) if self.command else ""
            self.agent_subcommand = not last.endswith("agent")

    @property
    def command(self) -> list[str]:
        """The binary split into argv form."""
        return shlex.split(self.cli_path)


@dataclass
class RelaySettings:
    """Resolved runtime settings for the relay server."""

    cli: AgentCliConfig = field(default_factory=AgentCliConfig)
    database_url: str = f"sqlite+aiosqlite:///{DEFAULT_DATA_DIR / 'relay.db'}"
    attachments_path: str = str(DEFAULT_DATA_DIR / "attachments")
    title_timeout_ms: int = DEFAULT_TITLE_TIMEOUT_MS
    host: str = "127.0.0.1"
    port: int = 3001
    log_level: str = "info"

    @property
    def title_timeout(self) -> float:
        """Title race timeout in seconds."""
        return self.title_timeout_ms / 1000.0

    @classmethod
    def from_env(cls) -> "RelaySettings":
        """Build settings from ``os.environ`` (unset variables keep defaults)."""
        defaults = cls()

        cli = AgentCliConfig(
            cli_path=os.getenv("CURSOR_CLI_PATH", "").strip() or DEFAULT_CLI_PATH,
            model=os.getenv("CURSOR_MODEL", "").strip() or None,
            api_key=os.getenv("CURSOR_API_KEY", "").strip() or None,
        )

        timeout_raw = os.getenv("TITLE_TIMEOUT_MS", "").strip()
        try:
            title_timeout_ms = int(timeout_raw) if timeout_raw else DEFAULT_TITLE_TIMEOUT_MS
        except ValueError:
            logger.warning(
                f"Invalid TITLE_TIMEOUT_MS={timeout_raw!r}, using {DEFAULT_TITLE_TIMEOUT_MS}"
            )
            title_timeout_ms = DEFAULT_TITLE_TIMEOUT_MS

        port_raw = os.getenv("RELAY_PORT", "").strip()
        try:
            port = int(port_raw) if port_raw else defaults.port
        except ValueError:
            logger.warning(f"Invalid RELAY_PORT={port_raw!r}, using {defaults.port}")
            port = defaults.port

        return cls(
            cli=cli,
            database_url=os.getenv("RELAY_DATABASE_URL", "").strip() or defaults.database_url,
            attachments_path=os.getenv("ATTACHMENTS_BASE_PATH", "").strip()
            or defaults.attachments_path,
            title_timeout_ms=title_timeout_ms,
            host=os.getenv("RELAY_HOST", "").strip() or defaults.host,
            port=port,
            log_level=os.getenv("RELAY_LOG_LEVEL", "").strip().lower() or defaults.log_level,
        )


def ensure_sqlite_parent(database_url: str) -> None:
    """Create the parent directory of a file-backed SQLite URL."""
    prefix = "sqlite+aiosqlite:///"
    if not database_url.startswith(prefix):
        return
    db_path = database_url[len(prefix):]
    if not db_path or db_path == ":memory:":
        return
    Path(db_path).expanduser().parent.mkdir(parents=True, exist_ok=True)
