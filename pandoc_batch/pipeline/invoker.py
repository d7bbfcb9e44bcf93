"""
Runs the pandoc engine for one job and waits for it to exit.

The engine is started as a child process without a shell. Free-form options
are split into tokens and appended after the flags the pipeline manages.
"""

import subprocess
from typing import Callable, List, Optional, Sequence

from ..config import EngineConfig, RESERVED_ENGINE_FLAGS
from ..utils.error_handling import ConversionError, ErrorCode, ValidationError
from ..utils.logging_config import get_logger

logger = get_logger()

Runner = Callable[..., subprocess.CompletedProcess]


def _reserved_flag(token: str) -> Optional[str]:
    """Return the managed flag ``token`` would set, if any."""
    flag = token.split("=", 1)[0]
    if flag.startswith("--"):
        # the engine accepts any unambiguous prefix of a long option
        if len(flag) > 2:
            for reserved in RESERVED_ENGINE_FLAGS:
                if reserved.startswith("--") and reserved.startswith(flag):
                    return reserved
        return None
    # short options take their value attached as well: -o/tmp/out.html
    if flag.startswith("-o"):
        return "-o"
    return None


def parse_option_tokens(options: Optional[str]) -> List[str]:
    """
    Split a free-form option string into engine tokens.

    Tokens are separated by whitespace; empty tokens are dropped.

    Raises:
        ValidationError: If options is not a string, or a token contains
            control characters or redirects the output file or media
            directory the pipeline manages
    """
    if options is None or options == "":
        return []
    if not isinstance(options, str):
        raise ValidationError(f"options must be a string, got {type(options).__name__}")

    tokens = options.split()
    for token in tokens:
        if any(ord(ch) < 32 or ord(ch) == 127 for ch in token):
            raise ValidationError(f"Option token contains control characters: {token!r}")
        flag = _reserved_flag(token)
        if flag is not None:
            raise ValidationError(f"Option {flag} is managed by the pipeline and cannot be overridden")
    return tokens


class PandocInvoker:
    """Builds pandoc command lines and runs them to completion."""

    def __init__(
        self,
        engine_path: Optional[str] = None,
        timeout: Optional[float] = None,
        runner: Optional[Runner] = None
    ):
        """
        Args:
            engine_path: pandoc executable; defaults to ``PANDOC_PATH`` or ``pandoc``
            timeout: Seconds before the engine is killed; None waits forever
            runner: Replacement for ``subprocess.run``, mainly for tests
        """
        self.engine_path = engine_path or EngineConfig.get_engine_path()
        self.timeout = timeout if timeout is not None else EngineConfig.get_timeout()
        self._run = runner or subprocess.run

    def build_arguments(
        self,
        input_path: str,
        output_path: str,
        media_dir: str,
        source_format: str,
        target_format: str,
        option_tokens: Sequence[str] = ()
    ) -> List[str]:
        return [
            self.engine_path,
            input_path,
            "-f", source_format,
            "-t", target_format,
            "-o", output_path,
            "--extract-media", media_dir,
            *option_tokens,
        ]

    def invoke(
        self,
        input_path: str,
        output_path: str,
        media_dir: str,
        source_format: str,
        target_format: str,
        option_tokens: Sequence[str] = ()
    ) -> subprocess.CompletedProcess:
        """
        Run pandoc and block until it exits.

        Raises:
            ConversionError: If pandoc is missing, times out or exits non-zero.
                The error carries the captured stdout, stderr and exit code.
        """
        cmd = self.build_arguments(
            input_path, output_path, media_dir, source_format, target_format, option_tokens
        )
        logger.debug(f"Running engine: {' '.join(cmd)}")

        try:
            result = self._run(cmd, capture_output=True, text=True, timeout=self.timeout)
        except FileNotFoundError as e:
            raise ConversionError(
                f"Conversion engine not found: {self.engine_path}",
                stderr=str(e),
                error_code=ErrorCode.ENGINE_UNAVAILABLE
            )
        except subprocess.TimeoutExpired as e:
            raise ConversionError(
                f"Conversion engine timed out after {self.timeout}s",
                stdout=_as_text(e.stdout),
                stderr=_as_text(e.stderr),
                error_code=ErrorCode.ENGINE_TIMEOUT
            )
        except OSError as e:
            raise ConversionError(f"Conversion engine could not be started: {e}", stderr=str(e))

        if result.returncode != 0:
            error_msg = f"Pandoc failed with return code {result.returncode}"
            if result.stderr:
                error_msg += f": {result.stderr.strip()}"
            raise ConversionError(
                error_msg,
                stdout=result.stdout,
                stderr=result.stderr,
                exit_code=result.returncode
            )

        if result.stderr:
            # Warnings such as missing fonts or unresolved citations
            logger.debug(f"Pandoc stderr: {result.stderr.strip()}")
        return result

    def engine_version(self) -> Optional[str]:
        """First line of ``pandoc --version``, or None if pandoc cannot be run."""
        try:
            result = self._run([self.engine_path, "--version"], capture_output=True, text=True, timeout=10)
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.warning(f"Could not query engine version: {e}")
            return None
        if result.returncode != 0 or not result.stdout:
            return None
        return result.stdout.splitlines()[0].strip()


def _as_text(value) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value
