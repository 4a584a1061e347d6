"""Each entry module must import cleanly in a fresh interpreter."""

import os
import subprocess
import sys
from pathlib import Path

import pytest

import proposal_copilot

SRC = str(Path(proposal_copilot.__file__).resolve().parent.parent)


@pytest.mark.parametrize(
    "module",
    [
        "proposal_copilot",
        "proposal_copilot.models",
        "proposal_copilot.storage",
        "proposal_copilot.storage.protocols",
        "proposal_copilot.storage.vector.memory",
        "proposal_copilot.ingest.chunker",
        "proposal_copilot.agents",
    ],
)
def test_module_imports_first(module):
    env = dict(os.environ, PYTHONPATH=os.pathsep.join([SRC, os.environ.get("PYTHONPATH", "")]))

    proc = subprocess.run(
        [sys.executable, "-c", f"import {module}"],
        env=env,
        capture_output=True,
        text=True,
    )

    assert proc.returncode == 0, proc.stderr
