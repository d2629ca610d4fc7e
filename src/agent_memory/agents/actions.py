import asyncio
import logging
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel

from ..errors import ActionError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class FileActions:
    """Read, write and append text files relative to a base directory"""

    def __init__(self, base_dir: PathLike = ".", encoding: str = "utf-8"):
        self.base_dir = Path(base_dir)
        self.encoding = encoding

    def resolve(self, path: PathLike) -> Path:
        path = Path(path)
        return path if path.is_absolute() else self.base_dir / path

    async def read(self, path: PathLike) -> str:
        target = self.resolve(path)
        try:
            return await asyncio.to_thread(target.read_text, encoding=self.encoding)
        except OSError as e:
            logger.error(f"Failed to read {target}: {e}")
            raise ActionError("File read failed", details={"path": str(target), "error": str(e)}) from e

    async def write(self, path: PathLike, content: str) -> Path:
        target = self.resolve(path)
        try:
            await asyncio.to_thread(self._write, target, content, "w")
        except OSError as e:
            logger.error(f"Failed to write {target}: {e}")
            raise ActionError("File write failed", details={"path": str(target), "error": str(e)}) from e
        logger.info(f"Wrote {len(content)} chars to {target}")
        return target

    async def append(self, path: PathLike, content: str) -> Path:
        target = self.resolve(path)
        try:
            await asyncio.to_thread(self._write, target, content, "a")
        except OSError as e:
            logger.error(f"Failed to append to {target}: {e}")
            raise ActionError("File append failed", details={"path": str(target), "error": str(e)}) from e
        logger.info(f"Appended {len(content)} chars to {target}")
        return target

    def _write(self, target: Path, content: str, mode: str) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, mode, encoding=self.encoding) as f:
            f.write(content)


class CommandResult(BaseModel):
    command: str
    exit_code: int
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0 and not self.timed_out


class CommandRunner:
    """Runs shell commands as asyncio subprocesses"""

    def __init__(self, cwd: Optional[PathLike] = None, timeout: float = 60.0):
        self.cwd = str(cwd) if cwd is not None else None
        self.timeout = timeout

    async def run(self, command: str) -> CommandResult:
        logger.info(f"Running command: {command}")
        process = await asyncio.create_subprocess_shell(
            command,
            cwd=self.cwd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE
        )
        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            logger.warning(f"Command timed out after {self.timeout}s: {command}")
            return CommandResult(command=command, exit_code=-1, timed_out=True)

        result = CommandResult(
            command=command,
            exit_code=process.returncode,
            stdout=stdout.decode(errors="replace"),
            stderr=stderr.decode(errors="replace")
        )
        if not result.succeeded:
            logger.warning(f"Command exited with {result.exit_code}: {command}")
        return result
