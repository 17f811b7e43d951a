from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from main import create_app


@pytest.fixture
def audio_dir(tmp_path: Path) -> Path:
    root = tmp_path / "audio"
    (root / "sub").mkdir(parents=True)
    (root / "a.mp3").write_bytes(b"ID3" + bytes(range(256)) * 40)
    (root / "sub" / "b.wav").write_bytes(b"RIFF" + b"\x00\x01" * 5000)
    return root


@pytest.fixture
def client(audio_dir: Path) -> TestClient:
    return TestClient(create_app(str(audio_dir)))
