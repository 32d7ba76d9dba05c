"""Asynchronous shell command execution with timeout and JSON parsing."""

from __future__ import annotations

import asyncio
import json
import os
import time
from typing import Any, Optional

from latest.core.errors import (
    CommandFailedError,
    ProviderParseError,
    ProviderTimeoutError,
    ProviderUnavailableError,
)
from latest.core.logging import get_logger

log = get_logger(__name__)

ENV_OVERRIDES = {
    "LANG": "C",
    "LC_ALL": "C",
    "HOMEBREW_NO_COLOR": "1",
    "HOMEBREW_NO_AUTO_UPDATE": "1",
    "NO_COLOR": "1",
}


async def run_capture(
    *cmd: str, timeout: Optional[float] = 30
) -> tuple[str, str, int]:
    """Run a command asynchronously with optional timeout.

    Args:
        *cmd: Command and its arguments to run.
        timeout: Timeout in seconds.

    Returns:
        A tuple of (stdout, stderr, returncode).

    Raises:
        ProviderUnavailableError: If the executable cannot be started.
        ProviderTimeoutError: If the command times out.
    """
    start = time.perf_counter()
    command = " ".join(cmd)
    log.debug("command_start", command=command, timeout=timeout)

    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env={**os.environ, **ENV_OVERRIDES},
        )
    except OSError as e:
        log.debug("command_unavailable", command=command, error=str(e))
        raise ProviderUnavailableError(
            f"Cannot run {cmd[0]}",
            context={"command": command, "error": str(e)}
        ) from e

    try:
        out, err = await asyncio.wait_for(process.communicate(), timeout)
        duration_ms = int((time.perf_counter() - start) * 1000)
        log.info(
            "command_complete",
            command=command,
            returncode=process.returncode,
            duration_ms=duration_ms
        )

    except asyncio.TimeoutError as e:
        duration_ms = int((time.perf_counter() - start) * 1000)
        log.warning(
            "command_timeout",
            command=command,
            timeout=timeout,
            duration_ms=duration_ms
        )
        _kill(process)
        raise ProviderTimeoutError(
            timeout=timeout,
            context={"command": command, "duration_ms": duration_ms}
        ) from e

    except asyncio.CancelledError:
        _kill(process)
        raise

    return (
        out.decode(errors="replace").strip(),
        err.decode(errors="replace").strip(),
        process.returncode,
    )


def _kill(process: asyncio.subprocess.Process) -> None:
    try:
        process.kill()
    except ProcessLookupError:
        pass


async def run_json(*cmd: str, timeout: Optional[float] = 30) -> Any:
    """Run a command and parse its JSON output.

    Args:
        *cmd: Command and its arguments to run.
        timeout: Timeout in seconds.

    Returns:
        Parsed JSON output.

    Raises:
        CommandFailedError: If the command exits non-zero.
        ProviderParseError: If the output is not valid JSON.
        ProviderTimeoutError: If the command times out.
    """
    start = time.perf_counter()
    out, err, code = await run_capture(*cmd, timeout=timeout)
    duration_ms = int((time.perf_counter() - start) * 1000)

    if code != 0:
        log.debug(
            "command_failed",
            command=" ".join(cmd),
            error=err or out,
            returncode=code
        )
        raise CommandFailedError(
            command=" ".join(cmd),
            returncode=code,
            error=(err or out)[:200],
            context={"duration_ms": duration_ms}
        )

    try:
        result = json.loads(out)
        log.debug(
            "json_parsed",
            command=" ".join(cmd),
            duration_ms=duration_ms
        )

        return result

    except json.JSONDecodeError as e:
        log.warning(
            "json_parse_failed",
            command=" ".join(cmd),
            error=str(e)
        )
        raise ProviderParseError(
            "Failed to parse JSON output",
            context={
                "command": " ".join(cmd),
                "error": str(e),
                "output_preview": out[:200] if out else ""
            }
        ) from e
