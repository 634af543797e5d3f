"""
Code-block evaluator bridge for termdeck.

The bridge hands the source of one code block to an external interactive
session and wraps whatever comes back into an EvaluationResult. Sessions
are reached through the small EvaluatorChannel protocol:

- ReplChannel  - persistent interpreter subprocess speaking JSON lines
- HttpChannel  - remote evaluator behind an HTTP endpoint (requests)

The bridge never caches and never raises: broken channels, crashes and
timeouts all come back as failed results.

Author: termdeck contributors | 2026-10-19
"""

from __future__ import annotations

import json
import logging
import os
import queue
import subprocess
import sys
import threading
import time
from dataclasses import dataclass
from typing import List, Optional, Protocol, runtime_checkable

import requests

from termdeck.models import CodeBlock, EvaluationResult

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0
# Extra wait granted to a channel that enforces the same timeout itself.
TIMEOUT_GRACE = 0.25


class EvaluatorChannelError(Exception):
    """The evaluator session could not be reached or died."""


@dataclass
class ChannelResponse:
    """One complete response unit from an evaluator session."""
    output: Optional[str] = None
    error: Optional[str] = None
    timed_out: bool = False

    @property
    def success(self) -> bool:
        return self.error is None and not self.timed_out


@runtime_checkable
class EvaluatorChannel(Protocol):
    """Request/response interface to an interactive session."""

    def submit(self, code: str, timeout: float) -> ChannelResponse:
        """
        Submit *code* as one unit and wait for its response.

        Args:
            code: Source text, internal newlines preserved
            timeout: Seconds to wait for the response

        Returns:
            ChannelResponse
        """
        ...

    def close(self) -> None:
        ...


# ---------------------------------------------------------------------------
# Bridge
# ---------------------------------------------------------------------------

class EvaluatorBridge:
    """
    Submit code blocks to an evaluator channel with a bounded wait.

    The channel call runs on a daemon worker thread so that a channel that
    ignores its own timeout still cannot hold the presentation.

    Example:
        bridge = EvaluatorBridge(ReplChannel(), timeout=5)
        result = bridge.evaluate(block)
    """

    def __init__(
        self,
        channel: Optional[EvaluatorChannel],
        timeout: float = DEFAULT_TIMEOUT,
        eval_log=None,
    ):
        self.channel = channel
        self.timeout = timeout
        self.eval_log = eval_log
        self._worker: Optional[threading.Thread] = None

    def evaluate(self, block: CodeBlock) -> EvaluationResult:
        """Evaluate *block* and return a fresh result."""
        code = block.source
        start = time.monotonic()
        result = self._submit(code)
        result = EvaluationResult(
            success=result.success,
            output=result.output,
            error=result.error,
            timed_out=result.timed_out,
            duration=time.monotonic() - start,
        )
        if result.success:
            logger.info(f"Evaluated {block.language or 'code'} block at line {block.line}")
        else:
            logger.warning(f"Evaluation failed for block at line {block.line}: {result.error}")
        if self.eval_log is not None:
            self.eval_log.log_evaluation(block, result)
        return result

    def close(self) -> None:
        if self.channel is not None:
            self.channel.close()

    def _submit(self, code: str) -> EvaluationResult:
        if self.channel is None:
            return EvaluationResult.failed("no evaluator configured")
        if self._worker is not None and self._worker.is_alive():
            return EvaluationResult.failed("evaluator still busy with a previous block")

        replies: "queue.Queue" = queue.Queue(maxsize=1)

        def _worker():
            try:
                replies.put(self.channel.submit(code, self.timeout))
            except Exception as e:
                replies.put(e)

        worker = threading.Thread(target=_worker, name="termdeck-eval", daemon=True)
        worker.start()
        try:
            reply = replies.get(timeout=self.timeout + TIMEOUT_GRACE)
        except queue.Empty:
            # Only an abandoned worker blocks later submissions
            self._worker = worker
            return EvaluationResult.failed(
                f"no response after {self.timeout:g}s", timed_out=True,
            )
        worker.join()
        self._worker = None

        if isinstance(reply, Exception):
            return EvaluationResult.failed(f"evaluator error: {reply}")
        if reply.timed_out:
            return EvaluationResult.failed(
                reply.error or f"no response after {self.timeout:g}s", timed_out=True,
            )
        if reply.error is not None:
            return EvaluationResult.failed(reply.error)
        return EvaluationResult.ok(reply.output or "")


# ---------------------------------------------------------------------------
# Persistent interpreter channel
# ---------------------------------------------------------------------------

# Runs inside the child interpreter. One JSON request per line in, one JSON
# response per line out; a single namespace persists across requests.
_PYTHON_DRIVER = r'''
import ast, contextlib, io, json, sys, traceback
ns = {"__name__": "__termdeck__"}
out = sys.stdout
for raw in sys.stdin:
    req = json.loads(raw)
    buf = io.StringIO()
    error = None
    try:
        tree = ast.parse(req["code"], "<slide>", "exec")
        last = None
        if tree.body and isinstance(tree.body[-1], ast.Expr):
            last = ast.Expression(tree.body.pop().value)
        with contextlib.redirect_stdout(buf), contextlib.redirect_stderr(buf):
            exec(compile(tree, "<slide>", "exec"), ns)
            if last is not None:
                value = eval(compile(last, "<slide>", "eval"), ns)
                if value is not None:
                    print(repr(value))
    except BaseException:
        error = traceback.format_exc()
    out.write(json.dumps({"output": buf.getvalue(), "error": error}) + "\n")
    out.flush()
'''


def default_repl_command() -> List[str]:
    return [sys.executable, "-u", "-c", _PYTHON_DRIVER]


class ReplChannel:
    """
    ReplChannel
    -----------

    A persistent interpreter process reached over stdin/stdout:

    - Spawned lazily on the first submission
    - One JSON line per request (``{"code": ...}``) and per response
      (``{"output": ..., "error": ...}``)
    - Killed on timeout or protocol failure; the next submission respawns it
    """

    def __init__(self, command: Optional[List[str]] = None, cwd: Optional[str] = None):
        self.command = command or default_repl_command()
        self.cwd = cwd
        self._proc: Optional[subprocess.Popen] = None
        self._lines: "queue.Queue[Optional[str]]" = queue.Queue()

    # ------------------------ Process management ------------------------

    def _ensure_process(self) -> subprocess.Popen:
        if self._proc is not None and self._proc.poll() is None:
            return self._proc
        logger.info(f"Starting evaluator: {self.command[0]}")
        try:
            self._proc = subprocess.Popen(
                self.command,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                cwd=self.cwd,
                text=True,
                bufsize=1,
                env={**os.environ, "PYTHONIOENCODING": "utf-8"},
            )
        except OSError as e:
            raise EvaluatorChannelError(f"cannot start evaluator: {e}") from e

        self._lines = queue.Queue()
        reader = threading.Thread(
            target=self._pump, args=(self._proc, self._lines),
            name="termdeck-repl-reader", daemon=True,
        )
        reader.start()
        return self._proc

    @staticmethod
    def _pump(proc: subprocess.Popen, lines: "queue.Queue[Optional[str]]") -> None:
        for line in proc.stdout:
            lines.put(line)
        lines.put(None)     # EOF

    def close(self) -> None:
        if self._proc is None:
            return
        if self._proc.poll() is None:
            self._proc.kill()
            self._proc.wait()
        self._proc = None

    # ------------------------ Request / response ------------------------

    def submit(self, code: str, timeout: float) -> ChannelResponse:
        proc = self._ensure_process()
        try:
            proc.stdin.write(json.dumps({"code": code}) + "\n")
            proc.stdin.flush()
        except (BrokenPipeError, OSError) as e:
            self.close()
            raise EvaluatorChannelError(f"evaluator channel broken: {e}") from e

        try:
            line = self._lines.get(timeout=timeout)
        except queue.Empty:
            logger.warning(f"Evaluator timed out after {timeout:g}s, restarting it")
            self.close()
            return ChannelResponse(error=f"no response after {timeout:g}s", timed_out=True)

        if line is None:
            status = proc.poll()
            self.close()
            return ChannelResponse(error=f"evaluator exited (code {status})")

        try:
            payload = json.loads(line)
        except json.JSONDecodeError:
            self.close()
            return ChannelResponse(error=f"malformed evaluator response: {line.strip()[:80]}")
        return ChannelResponse(output=payload.get("output", ""), error=payload.get("error"))


# ---------------------------------------------------------------------------
# HTTP channel
# ---------------------------------------------------------------------------

class HttpChannel:
    """
    Evaluator session behind an HTTP endpoint.

    POSTs ``{"code": ...}`` and expects ``{"output": ...}`` or
    ``{"error": ...}`` back.
    """

    def __init__(self, url: str, session: Optional[requests.Session] = None):
        self.url = url
        self._session = session or requests.Session()

    def submit(self, code: str, timeout: float) -> ChannelResponse:
        try:
            r = self._session.post(self.url, json={"code": code}, timeout=timeout)
        except requests.exceptions.Timeout:
            return ChannelResponse(error=f"no response after {timeout:g}s", timed_out=True)
        except requests.exceptions.RequestException as e:
            return ChannelResponse(error=f"evaluator unreachable: {e}")

        if r.status_code != 200:
            return ChannelResponse(error=f"evaluator returned HTTP {r.status_code}")
        try:
            data = r.json()
        except ValueError:
            return ChannelResponse(error="evaluator returned a non-JSON response")
        if not isinstance(data, dict):
            return ChannelResponse(error="evaluator returned an unexpected response")
        if data.get("error"):
            return ChannelResponse(error=str(data["error"]))
        return ChannelResponse(output=str(data.get("output", "")))

    def close(self) -> None:
        self._session.close()


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------

def build_channel(config) -> Optional[EvaluatorChannel]:
    """
    Create the channel named by an ``EvaluatorConfig``.

    Returns None for the ``none`` backend.
    """
    backend = config.backend
    if backend == "repl":
        return ReplChannel(command=config.command or None)
    if backend == "http":
        if not config.url:
            raise ValueError("evaluator.url is required for the http backend")
        return HttpChannel(config.url)
    if backend == "none":
        return None
    raise ValueError(f"Unknown evaluator backend: {backend!r}")


def create_bridge(config, eval_log=None) -> EvaluatorBridge:
    """Bridge wired to the channel described by *config*."""
    return EvaluatorBridge(build_channel(config), timeout=config.timeout, eval_log=eval_log)
