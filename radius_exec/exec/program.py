"""
External program execution.

Runs one program on behalf of a request with a bounded wait, feeding it the
input attributes through its environment and capturing what it prints.
Process-level problems (argument errors, exec failures, timeouts, death by
signal) are contained here and surface only as a negative status.

Status convention::

    0   program exited 0 (or was handed off, when not waiting)
    >0  program exited with that code
    <0  program could not be started, was killed on timeout, or died by signal
"""

from __future__ import annotations

import os
import re
import shlex
import signal
import subprocess  # nosec B404
import threading
import time
from dataclasses import dataclass
from typing import IO, Protocol

from radius_exec.exceptions import ExecutionError, ProtocolError
from radius_exec.utils.logger import get_logger
from radius_exec.utils.metrics import exec_program_seconds

from ..constants import EXEC_OUTPUT_BUFFER
from ..radius.packet import AttributeList, RADIUSAttribute
from ..radius.request import Request
from .xlat import expand

logger = get_logger("radius_exec.exec.program", component="exec")

STATUS_FAILED = -1

_READ_CHUNK = 65536
# Seconds to let pipes close after the process group is killed
_DRAIN_GRACE = 1.0

_PAIR_RE = re.compile(r"^([A-Za-z0-9][A-Za-z0-9._-]*)\s*(:=|\+=|=)\s*(.*)$", re.S)
_ESCAPES = {"n": "\n", "r": "\r", "t": "\t", '"': '"', "\\": "\\"}


@dataclass
class ExecutionOutcome:
    """Result of one program run"""

    status: int
    output: str = ""
    pairs: AttributeList | None = None

    @property
    def failed(self) -> bool:
        return self.status < 0


class ProgramRunner(Protocol):
    def __call__(
        self,
        program: str,
        request: Request,
        *,
        wait: bool,
        input_pairs: AttributeList | None,
        timeout: int,
        shell_escape: bool,
        want_pairs: bool = False,
        output_limit: int = EXEC_OUTPUT_BUFFER,
    ) -> ExecutionOutcome: ...


def prepare_argv(program: str, request: Request) -> list[str]:
    """Split a program line into arguments and expand each one.

    Raises:
        ExecutionError: empty command or a non-absolute program path
        ValueError: unbalanced quotes or an unterminated expansion
    """
    words = shlex.split(program)
    if not words:
        raise ExecutionError("Empty program line")
    argv = [expand(word, request) for word in words]
    if not os.path.isabs(argv[0]):
        raise ExecutionError(f"Program must have an absolute path: {argv[0]!r}")
    return argv


def environment_name(attr: RADIUSAttribute, shell_escape: bool) -> str:
    name = attr.name
    if shell_escape:
        name = name.replace("-", "_").upper()
    return name


def build_environment(
    pairs: AttributeList | None, shell_escape: bool
) -> dict[str, str]:
    """Child environment holding one variable per input attribute.

    With shell escaping, ``User-Name = bob`` becomes ``USER_NAME="bob"``;
    without it the name and unquoted value are used verbatim. The first
    attribute of a given name wins.
    """
    env: dict[str, str] = {}
    if pairs is None:
        return env
    for attr in pairs:
        name = environment_name(attr, shell_escape)
        value = attr.format_value(quote=shell_escape).replace("\x00", "")
        env.setdefault(name, value)
    return env


def _read_quoted(text: str) -> tuple[str, str] | None:
    """Parse a double-quoted value, returning (value, remainder)"""
    out: list[str] = []
    i = 1
    while i < len(text):
        ch = text[i]
        if ch == "\\" and i + 1 < len(text):
            out.append(_ESCAPES.get(text[i + 1], text[i + 1]))
            i += 2
            continue
        if ch == '"':
            return "".join(out), text[i + 1 :]
        out.append(ch)
        i += 1
    return None


def _split_items(text: str) -> list[str] | None:
    items: list[str] = []
    current: list[str] = []
    in_quotes = False
    escaped = False
    for ch in text:
        if escaped:
            current.append(ch)
            escaped = False
            continue
        if ch == "\\" and in_quotes:
            current.append(ch)
            escaped = True
            continue
        if ch == '"':
            in_quotes = not in_quotes
        if not in_quotes and ch in ",\n":
            items.append("".join(current))
            current = []
            continue
        current.append(ch)
    if in_quotes:
        return None
    items.append("".join(current))
    return items


def parse_output_pairs(text: str) -> AttributeList | None:
    """Parse ``Name = value`` lines printed by a program.

    Items are separated by commas or newlines. Returns None when the text is
    not an attribute list, which makes it plain text output.
    """
    items = _split_items(text)
    if items is None:
        return None
    pairs = AttributeList()
    for raw in items:
        item = raw.strip()
        if not item:
            continue
        match = _PAIR_RE.match(item)
        if match is None:
            return None
        name, _op, value_text = match.groups()
        value_text = value_text.strip()
        if value_text.startswith('"'):
            parsed = _read_quoted(value_text)
            if parsed is None or parsed[1].strip():
                return None
            value = parsed[0]
        elif not value_text or any(c.isspace() for c in value_text):
            return None
        else:
            value = value_text
        try:
            pairs.add(RADIUSAttribute.from_text(name, value))
        except ProtocolError:
            return None
    return pairs if len(pairs) else None


class BoundedPipeReader(threading.Thread):
    """Drain a child pipe to EOF, keeping only the first ``limit`` bytes.

    Bytes past the limit are read and dropped, so the child never blocks on
    a full pipe.
    """

    def __init__(self, stream: IO[bytes], limit: int, name: str = "exec-pipe") -> None:
        super().__init__(name=name, daemon=True)
        self._stream = stream
        self._limit = max(limit, 0)
        self._buffer = bytearray()
        self.bytes_read = 0

    @property
    def data(self) -> bytes:
        return bytes(self._buffer)

    def run(self) -> None:
        fd = self._stream.fileno()
        try:
            while True:
                chunk = os.read(fd, _READ_CHUNK)
                if not chunk:
                    break
                self.bytes_read += len(chunk)
                room = self._limit - len(self._buffer)
                if room > 0:
                    self._buffer += chunk[:room]
        finally:
            self._stream.close()


def _kill_group(proc: subprocess.Popen) -> None:
    """SIGKILL the child's process group, descendants included."""
    try:
        if hasattr(os, "killpg"):
            os.killpg(proc.pid, signal.SIGKILL)
        else:
            proc.kill()
    except (ProcessLookupError, PermissionError):
        # Group already gone
        return


def _wait_for_exit(
    proc: subprocess.Popen, readers: tuple[BoundedPipeReader, ...], deadline: float
) -> bool:
    """Wait for exit and EOF on every pipe; False once the deadline passes."""
    try:
        proc.wait(timeout=max(deadline - time.monotonic(), 0))
    except subprocess.TimeoutExpired:
        return False
    for reader in readers:
        reader.join(max(deadline - time.monotonic(), 0))
        if reader.is_alive():
            return False
    return True


def _decode_output(data: bytes | None, output_limit: int) -> str:
    if not data or output_limit <= 1:
        return ""
    # One byte of the buffer is reserved for the terminator.
    return data[: output_limit - 1].decode("utf-8", errors="replace")


def exec_program(
    program: str,
    request: Request,
    *,
    wait: bool,
    input_pairs: AttributeList | None,
    timeout: int,
    shell_escape: bool,
    want_pairs: bool = False,
    output_limit: int = EXEC_OUTPUT_BUFFER,
) -> ExecutionOutcome:
    """Run ``program`` for ``request``.

    Args:
        program: program line, expanded per argument against the request
        request: request used for ``%{...}`` expansion
        wait: block until exit (or timeout) and capture output
        input_pairs: attributes exported to the child environment
        timeout: seconds before a waited child is killed
        shell_escape: quote values and normalise names in the environment
        want_pairs: parse waited output into output attributes
        output_limit: capture bound in bytes, terminator included

    Returns:
        ExecutionOutcome; output and pairs are only populated when waiting
    """
    try:
        argv = prepare_argv(program, request)
    except (ValueError, ExecutionError) as exc:
        logger.error(
            "Cannot prepare external program",
            event="exec.program.prepare_failed",
            error=str(exc),
        )
        return ExecutionOutcome(STATUS_FAILED)

    env = build_environment(input_pairs, shell_escape)
    pipe = subprocess.PIPE if wait else subprocess.DEVNULL
    started = time.monotonic()
    try:
        proc = subprocess.Popen(  # nosec B603
            argv,
            stdin=subprocess.DEVNULL,
            stdout=pipe,
            stderr=pipe,
            env=env,
            close_fds=True,
            start_new_session=True,
        )
    except (OSError, ValueError) as exc:
        logger.error(
            "Failed to start external program",
            event="exec.program.spawn_failed",
            program=argv[0],
            error=str(exc),
        )
        return ExecutionOutcome(STATUS_FAILED)

    if not wait:
        # Reap in the background so the child never lingers as a zombie.
        threading.Thread(
            target=proc.wait, name=f"exec-reaper-{proc.pid}", daemon=True
        ).start()
        logger.debug(
            "External program started without waiting",
            event="exec.program.detached",
            program=argv[0],
            pid=proc.pid,
        )
        return ExecutionOutcome(0)

    assert proc.stdout is not None and proc.stderr is not None
    stdout = BoundedPipeReader(proc.stdout, output_limit, f"exec-stdout-{proc.pid}")
    stderr = BoundedPipeReader(
        proc.stderr, EXEC_OUTPUT_BUFFER, f"exec-stderr-{proc.pid}"
    )
    stdout.start()
    stderr.start()

    # A descendant holding a pipe open counts against the same deadline.
    finished = _wait_for_exit(proc, (stdout, stderr), started + timeout)
    if not finished:
        _kill_group(proc)
        proc.wait()
        stdout.join(_DRAIN_GRACE)
        stderr.join(_DRAIN_GRACE)
    exec_program_seconds.labels(wait="yes").observe(time.monotonic() - started)

    if not finished:
        logger.error(
            "External program timed out and was killed",
            event="exec.program.timeout",
            program=argv[0],
            timeout=timeout,
            output_held_open=proc.returncode is not None and proc.returncode >= 0,
        )
        return ExecutionOutcome(STATUS_FAILED)

    if stderr.bytes_read:
        logger.debug(
            "External program wrote to stderr",
            event="exec.program.stderr",
            program=argv[0],
            stderr=_decode_output(stderr.data, EXEC_OUTPUT_BUFFER),
        )

    if proc.returncode < 0:
        logger.error(
            "External program terminated by signal",
            event="exec.program.signalled",
            program=argv[0],
            signal=-proc.returncode,
        )
        return ExecutionOutcome(STATUS_FAILED)

    output = _decode_output(stdout.data, output_limit)
    pairs = parse_output_pairs(output) if want_pairs and output else None
    logger.debug(
        "External program finished",
        event="exec.program.exited",
        program=argv[0],
        status=proc.returncode,
        output_pairs=len(pairs) if pairs is not None else 0,
        output_bytes=stdout.bytes_read,
    )
    return ExecutionOutcome(proc.returncode, output, pairs)


__all__ = [
    "BoundedPipeReader",
    "ExecutionOutcome",
    "ProgramRunner",
    "STATUS_FAILED",
    "build_environment",
    "exec_program",
    "parse_output_pairs",
    "prepare_argv",
]
