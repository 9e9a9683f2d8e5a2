import pathlib
import signal
import struct
import sys
import time

import psutil
import pytest

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from voicechat.config import get_settings  # noqa: E402

# RIFF/WAVE header for a 16 kHz mono 16-bit clip with no samples.
SILENT_WAV_HEADER = (
    b"RIFF"
    + struct.pack("<I", 36)
    + b"WAVE"
    + b"fmt "
    + struct.pack("<IHHIIHH", 16, 1, 1, 16000, 32000, 2, 16)
    + b"data"
    + struct.pack("<I", 0)
)
assert len(SILENT_WAV_HEADER) == 44

_STUB_PIPER = """#!{python}
import json
import os
import sys

args = sys.argv[1:]
output = args[args.index("--output_file") + 1]
data = sys.stdin.buffer.read()

capture = os.environ.get("STUB_PIPER_CAPTURE")
if capture:
    with open(capture, "wb") as fh:
        fh.write(data)
    with open(capture + ".argv", "w") as fh:
        json.dump(args, fh)

mode = os.environ.get("STUB_PIPER_MODE", "ok")
if mode == "fail":
    with open(output, "wb") as fh:
        fh.write(b"RIFF-partial")
    sys.stderr.write("model load failed\\n")
    sys.exit(3)
if mode == "dir-output":
    os.mkdir(output)
    sys.exit(0)
if mode != "no-output":
    with open(output, "wb") as fh:
        fh.write(bytes.fromhex("{header}"))
"""


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def silent_wav() -> bytes:
    return SILENT_WAV_HEADER


@pytest.fixture
def stub_piper(tmp_path: pathlib.Path) -> pathlib.Path:
    """Executable stand-in for the piper binary that writes a silent WAV header."""
    script = tmp_path / "bin" / "piper"
    script.parent.mkdir(parents=True)
    script.write_text(
        _STUB_PIPER.format(python=sys.executable, header=SILENT_WAV_HEADER.hex()),
        encoding="utf-8",
    )
    script.chmod(0o755)
    return script


@pytest.fixture
def piper_env(monkeypatch, tmp_path: pathlib.Path, stub_piper: pathlib.Path):
    """Configure the gateway to run the stub synthesizer; returns the capture file."""
    capture = tmp_path / "stdin.bin"
    monkeypatch.setenv("PIPER_MODEL_PATH", str(tmp_path / "voice.onnx"))
    monkeypatch.setenv("PIPER_CONFIG_PATH", str(tmp_path / "voice.onnx.json"))
    monkeypatch.setenv("PIPER_BIN", str(stub_piper))
    monkeypatch.setenv("TTS_OUTPUT_DIR", str(tmp_path / "out"))
    monkeypatch.setenv("STUB_PIPER_CAPTURE", str(capture))
    monkeypatch.delenv("STUB_PIPER_MODE", raising=False)
    get_settings.cache_clear()
    yield capture
    get_settings.cache_clear()


@pytest.fixture(scope="session", autouse=True)
def cleanup_processes():
    """Kill any lingering child processes after all tests complete."""
    yield

    try:
        current_process = psutil.Process()
        children = current_process.children(recursive=True)

        if children:
            print(f"\n[CLEANUP] Found {len(children)} child processes, terminating...")

        for child in children:
            try:
                child.send_signal(signal.SIGTERM)
            except (psutil.NoSuchProcess, psutil.AccessDenied):
                pass

        # Give processes a moment to terminate gracefully
        time.sleep(0.5)

        for child in children:
            try:
                if child.is_running():
                    print(f"[CLEANUP] Force killing process {child.pid}")
                    child.kill()
            except (psutil.NoSuchProcess, psutil.AccessDenied):
                pass
    except Exception as e:
        print(f"[CLEANUP] Error during cleanup: {e}")
