"""
Process launcher for the Cursor agent CLI.

Builds the argument list from an explicit ``AgentCliConfig`` and spawns one
``stream-json`` process per invocation, writing the prompt to stdin once.
"""

import asyncio
import logging
import os
from contextlib import suppress
from typing import Optional

from cursor_relay.platform.config import AgentCliConfig
from cursor_relay.platform.utils import redact_secrets

logger = logging.getLogger(__name__)

CLI_NOT_FOUND_MESSAGE = (
    'Cursor CLI not found. Set CURSOR_CLI_PATH to the binary (e.g. "agent" or '
    "/path/to/agent) or ensure it is in PATH."
)

STATUS_TIMEOUT_SECONDS = 15.0


class LaunchError(RuntimeError):
    """The agent process could not be started."""


class AgentCliNotFoundError(LaunchError):
    def __init__(self, message: str = CLI_NOT_FOUND_MESSAGE):
        super().__init__(message)


class WorkspaceNotFoundError(LaunchError):
    def __init__(self, workspace: str):
        super().__init__(f"Workspace directory does not exist: {workspace}")
        self.workspace = workspace


class AgentLauncher:
    """Spawns agent CLI processes for a fixed configuration."""

    def __init__(self, config: AgentCliConfig):
        self.config = config

    def _base_command(self) -> list[str]:
        command = list(self.config.command)
        if self.config.agent_subcommand:
            command.append("agent")
        return command

    def build_args(self, workspace: str, resume_session_id: Optional[str] = None) -> list[str]:
        """Full argv for a streaming invocation."""
        args = self._base_command()
        args.extend(
            [
                "--print",
                "--output-format",
                "stream-json",
                "--workspace",
                workspace,
                "--trust",
            ]
        )
        if resume_session_id:
            args.extend(["--resume", resume_session_id])
        if self.config.model:
            args.extend(["--model", self.config.model])
        return args

    async def spawn(
        self,
        prompt: str,
        workspace: str,
        resume_session_id: Optional[str] = None,
    ) -> asyncio.subprocess.Process:
        """Start the agent and hand it *prompt* on stdin.

        Raises:
            WorkspaceNotFoundError: *workspace* is not a directory.
            AgentCliNotFoundError: The binary could not be executed.
        """
        if not os.path.isdir(workspace):
            raise WorkspaceNotFoundError(workspace)

        args = self.build_args(workspace, resume_session_id)
        logger.debug(f"Spawning agent: {redact_secrets(' '.join(args))}")

        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=workspace,
            )
        except (FileNotFoundError, PermissionError) as exc:
            logger.warning(f"Agent CLI could not be started: {exc}")
            raise AgentCliNotFoundError() from exc

        logger.info(
            f"Agent started (pid={process.pid}, resume={resume_session_id or '-'})"
        )

        try:
            process.stdin.write(prompt.encode("utf-8"))
            await process.stdin.drain()
        except (BrokenPipeError, ConnectionResetError) as exc:
            logger.warning(f"Agent closed stdin early (pid={process.pid}): {exc}")
        finally:
            process.stdin.close()

        return process

    async def check_status(self) -> dict:
        """Run ``agent status``.

        Ok without spawning anything when an API key is configured, or when
        the command exits 0; otherwise the CLI's own output is the error.
        """
        if self.config.api_key:
            return {"ok": True}

        args = self._base_command() + ["status"]
        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except (FileNotFoundError, PermissionError):
            return {"ok": False, "error": CLI_NOT_FOUND_MESSAGE}

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=STATUS_TIMEOUT_SECONDS
            )
        except asyncio.TimeoutError:
            with suppress(ProcessLookupError):
                process.kill()
            await process.wait()
            return {"ok": False, "error": "Cursor CLI status check timed out"}

        if process.returncode == 0:
            return {"ok": True}

        output = (stderr or stdout).decode("utf-8", errors="replace").strip()
        return {
            "ok": False,
            "error": output or f"Cursor CLI status exited with code {process.returncode}",
        }


def kill_process(process: Optional[asyncio.subprocess.Process]) -> bool:
    """Kill *process* if it is still running.  Returns True if signalled."""
    if process is None or process.returncode is not None:
        return False
    with suppress(ProcessLookupError):
        process.kill()
        return True
    return False
