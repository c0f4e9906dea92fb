"""Shared fixtures for scanner tests."""
import asyncio
from pathlib import Path

import pytest


@pytest.fixture
def make_tool(tmp_path: Path):
    """Write an executable shell script standing in for arp-scan."""
    def _make(body: str, name: str = "arp-scan") -> str:
        path = tmp_path / name
        path.write_text("#!/bin/sh\n" + body + "\n")
        path.chmod(0o755)
        return str(path)
    return _make


async def wait_for_file(path: Path, timeout: float = 5.0) -> str:
    """Poll until a script has written a non-empty file, return its content."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while loop.time() < deadline:
        if path.exists():
            content = path.read_text().strip()
            if content:
                return content
        await asyncio.sleep(0.02)
    raise AssertionError(f"{path} was never written")
