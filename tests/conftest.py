"""
Shared test configuration and fixtures for pandoc-batch tests.
"""

import base64
import subprocess
from collections import Counter
from pathlib import Path
from typing import Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from app import app, get_invoker
from pandoc_batch.models import BatchItem, BinaryPayload
from pandoc_batch.pipeline import BatchOrchestrator, PandocInvoker
from pandoc_batch.utils.workspace_manager import WorkspaceManager


# ===== FAKE ENGINE =====

class FakeEngine:
    """
    Stand-in for ``subprocess.run`` that behaves like a tiny pandoc.

    The output file is a copy of the input. Inputs listed in ``failures``
    exit non-zero, inputs listed in ``no_output`` exit zero without writing
    anything, and ``media`` maps input content to files written below the
    media directory.
    """

    VERSION = "pandoc 3.1.11"

    def __init__(self):
        self.calls: List[List[str]] = []
        self.timeouts: List[Optional[float]] = []
        self.failures: Dict[bytes, str] = {}
        self.no_output: set = set()
        self.media: Dict[bytes, Dict[str, bytes]] = {}

    def __call__(self, cmd, capture_output=True, text=True, timeout=None):
        self.calls.append(list(cmd))
        self.timeouts.append(timeout)

        if "--version" in cmd:
            return subprocess.CompletedProcess(cmd, 0, stdout=f"{self.VERSION}\nFeatures: +server +lua\n", stderr="")

        input_path = Path(cmd[1])
        output_path = Path(cmd[cmd.index("-o") + 1])
        media_dir = Path(cmd[cmd.index("--extract-media") + 1])
        content = input_path.read_bytes()

        if content in self.failures:
            return subprocess.CompletedProcess(cmd, 64, stdout="partial output", stderr=self.failures[content])

        if content not in self.no_output:
            output_path.write_bytes(content)

        for name, data in self.media.get(content, {}).items():
            target = media_dir / name
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)

        return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")


class CountingWorkspaceManager(WorkspaceManager):
    """WorkspaceManager that counts release calls per job id."""

    def __init__(self, base_dir):
        super().__init__(base_dir)
        self.release_counts: Counter = Counter()
        self.allocated: List[str] = []

    def allocate(self, job_id=None):
        paths = super().allocate(job_id)
        self.allocated.append(paths.job_id)
        return paths

    def release(self, paths):
        self.release_counts[paths.job_id] += 1
        return super().release(paths)


# ===== HELPERS =====

def make_item(content: Optional[bytes], file_name: str = "doc.md", json: Optional[dict] = None,
              property_name: str = "data") -> BatchItem:
    """Build a BatchItem whose payload is ``content``; None means no payload."""
    binary = {}
    if content is not None:
        binary[property_name] = BinaryPayload(content, mime_type="text/markdown", file_name=file_name)
    return BatchItem(json=json or {}, binary=binary)


def encode(content: bytes) -> str:
    return base64.b64encode(content).decode("ascii")


# ===== STANDARD FIXTURES =====

@pytest.fixture
def workspace_root(tmp_path):
    """Temporary root under which job workspaces are allocated."""
    root = tmp_path / "workspaces"
    root.mkdir()
    return root


@pytest.fixture
def item_factory():
    """Factory fixture for BatchItems, see ``make_item``."""
    return make_item


@pytest.fixture
def b64():
    """Base64 encoder for request payloads."""
    return encode


@pytest.fixture
def fake_engine():
    return FakeEngine()


@pytest.fixture
def invoker(fake_engine):
    return PandocInvoker(engine_path="pandoc", runner=fake_engine)


@pytest.fixture
def workspace_manager(workspace_root):
    return CountingWorkspaceManager(workspace_root)


@pytest.fixture
def orchestrator(invoker, workspace_manager):
    return BatchOrchestrator(invoker=invoker, workspace_manager=workspace_manager, binary_property_name="data")


@pytest.fixture
def client(invoker, workspace_root, monkeypatch):
    """FastAPI test client wired to the fake engine."""
    monkeypatch.setenv("PANDOC_BATCH_TEMP_DIR", str(workspace_root))
    app.dependency_overrides[get_invoker] = lambda: invoker
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
