"""
Per-job temporary workspace management.

Each conversion job gets three paths derived from its id under a shared
temporary root: the input file, the output file and the media extraction
directory. This module provides:
- Deterministic path derivation per job id
- Eager creation of the media directory
- Idempotent, exactly-once release through a context manager
- Cleanup failures logged, never raised
"""

import os
import shutil
import threading
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, Union

from ..config import EngineConfig
from .error_handling import CleanupError, WorkspaceIOError
from .logging_config import get_logger

logger = get_logger()


class WorkspacePaths:
    """The set of temporary locations owned by one job."""

    def __init__(self, job_id: str, input_path: str, output_path: str, media_dir: str):
        self.job_id = job_id
        self.input_path = input_path
        self.output_path = output_path
        self.media_dir = media_dir
        self.released = False
        self._lock = threading.Lock()

    def as_list(self) -> List[str]:
        return [self.input_path, self.output_path, self.media_dir]

    def mark_released(self) -> bool:
        """Flag the workspace as released. Returns False if it already was."""
        with self._lock:
            if self.released:
                return False
            self.released = True
            return True

    def __str__(self):
        return f"WorkspacePaths(job_id={self.job_id}, root={Path(self.input_path).parent})"

    def __repr__(self):
        return self.__str__()


class WorkspaceManager:
    """
    Allocates and releases job workspaces under a shared temporary root.

    Jobs never share paths, so several managers (or several batches using
    one manager) can run concurrently without coordination.
    """

    def __init__(self, base_dir: Optional[Union[str, Path]] = None):
        """
        Initialize the workspace manager.

        Args:
            base_dir: Temporary root; defaults to ``EngineConfig.get_temp_root()``
        """
        self.base_dir = Path(base_dir) if base_dir else EngineConfig.get_temp_root()

    @staticmethod
    def new_job_id() -> str:
        return uuid.uuid4().hex

    def derive_paths(self, job_id: str) -> WorkspacePaths:
        """Derive the workspace paths for ``job_id`` without touching the disk."""
        return WorkspacePaths(
            job_id=job_id,
            input_path=str(self.base_dir / f"pandoc_input_{job_id}"),
            output_path=str(self.base_dir / f"pandoc_output_{job_id}"),
            media_dir=str(self.base_dir / f"media_{job_id}")
        )

    def allocate(self, job_id: Optional[str] = None) -> WorkspacePaths:
        """
        Allocate a workspace for a job.

        Args:
            job_id: Job identifier; a fresh random one is generated if omitted

        Returns:
            WorkspacePaths with the media directory already created

        Raises:
            WorkspaceIOError: If the temporary root or media directory cannot be created
        """
        paths = self.derive_paths(job_id or self.new_job_id())
        try:
            # Some writers expect the media directory to exist before pandoc runs
            Path(paths.media_dir).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Failed to create workspace for job {paths.job_id}: {e}")
            raise WorkspaceIOError(f"Failed to create workspace: {e}", path=paths.media_dir)

        logger.debug(f"Allocated workspace: {paths}")
        return paths

    def release(self, paths: WorkspacePaths) -> List[CleanupError]:
        """
        Delete every path of a workspace.

        Missing paths are skipped. Deletion failures are logged and returned,
        never raised. Releasing the same workspace twice is a no-op.

        Returns:
            CleanupError for every path that could not be removed
        """
        if not paths.mark_released():
            logger.debug(f"Workspace already released: {paths}")
            return []

        errors = []
        for path in paths.as_list():
            error = self._remove_path(path)
            if error is not None:
                errors.append(error)

        logger.debug(f"Released workspace: {paths}")
        return errors

    def _remove_path(self, path: str) -> Optional[CleanupError]:
        try:
            if os.path.isdir(path) and not os.path.islink(path):
                shutil.rmtree(path)
            elif os.path.lexists(path):
                os.remove(path)
            else:
                return None
            logger.debug(f"Cleaned up workspace path: {path}")
        except FileNotFoundError:
            return None
        except OSError as e:
            error = CleanupError(f"Failed to cleanup workspace path {path}: {e}", path=path)
            logger.warning(error.message)
            return error
        return None

    @contextmanager
    def workspace(self, job_id: Optional[str] = None) -> Iterator[WorkspacePaths]:
        """
        Context manager for one job's workspace.

        Usage:
            with manager.workspace() as paths:
                # write paths.input_path, run pandoc, read paths.output_path
            # workspace released here, whatever happened inside
        """
        paths = self.allocate(job_id)
        try:
            yield paths
        finally:
            self.release(paths)
