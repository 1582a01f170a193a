"""Svelte component compilation through an external process.

The configured command reads component source on stdin and writes the
compiled client-side JavaScript module to stdout. A non-zero exit status is a
compile error whose message is the process's stderr.
"""

import asyncio
from collections.abc import Sequence

from src.core.logging import get_logger


logger = get_logger(__name__)


class CompileError(Exception):
    """Component failed to compile."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class SvelteCompiler:
    """Runs the compiler command once per component."""

    def __init__(self, command: Sequence[str], timeout: float = 30.0) -> None:
        self.command = list(command)
        self.timeout = timeout

    async def compile(self, source: str, filename: str) -> str:
        """Compile ``source`` and return the JavaScript module.

        Raises:
            CompileError: If the compiler fails, times out or cannot be started.
        """
        try:
            process = await asyncio.create_subprocess_exec(
                *self.command,
                filename,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            logger.exception("svelte_compiler_unavailable", command=self.command)
            raise CompileError(f"Compiler unavailable: {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(source.encode()), timeout=self.timeout
            )
        except TimeoutError as e:
            process.kill()
            await process.wait()
            logger.warning("svelte_compile_timeout", filename=filename)
            raise CompileError("Compilation timed out") from e

        if process.returncode != 0:
            message = stderr.decode(errors="replace").strip() or "Unknown compiler error"
            logger.info("svelte_compile_failed", filename=filename, error=message)
            raise CompileError(message)

        logger.debug("svelte_compiled", filename=filename, size=len(stdout))
        return stdout.decode()
