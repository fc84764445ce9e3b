#!/usr/bin/env python3
"""Smoke tests for Dictum."""

import subprocess
import sys
import tempfile
from pathlib import Path


def run_command(cmd: list[str], description: str) -> bool:
    """Run a command and check for success."""
    print(f"\n{'='*60}")
    print(f"TEST: {description}")
    print(f"CMD:  {' '.join(cmd)}")
    print("=" * 60)

    result = subprocess.run(cmd, capture_output=True, text=True)

    if result.stdout:
        print(result.stdout)
    if result.stderr:
        print(result.stderr, file=sys.stderr)

    if result.returncode == 0:
        print(f"✓ PASSED: {description}")
        return True
    else:
        print(f"✗ FAILED: {description} (exit code: {result.returncode})")
        return False


def test_import() -> bool:
    """Test that dictum can be imported."""
    try:
        import dictum

        print(f"✓ Import successful, version: {dictum.__version__}")
        return True
    except ImportError as e:
        print(f"✗ Import failed: {e}")
        return False


def test_config_loading() -> bool:
    """Test configuration loading."""
    try:
        from dictum.config import Settings

        settings = Settings()
        assert settings.transcription.selected_language == "auto"
        assert settings.transcription.word_correction_threshold == 0.18
        print("✓ Config loading successful")
        return True
    except Exception as e:
        print(f"✗ Config loading failed: {e}")
        return False


def test_catalog_probe() -> bool:
    """Test catalog construction against an empty models directory."""
    try:
        from dictum.models import ModelCatalog

        with tempfile.TemporaryDirectory() as tmp:
            catalog = ModelCatalog(Path(tmp) / "models")
            models = catalog.list()
            local = [m for m in models if not m.is_remote]
            assert not any(m.downloaded for m in local)
            print(f"✓ Catalog lists {len(models)} model(s), {len(local)} local")
        return True
    except Exception as e:
        print(f"✗ Catalog probe failed: {e}")
        return False


def test_wav_encoding() -> bool:
    """Test float to WAV encoding used for remote uploads."""
    try:
        import numpy as np

        from dictum.audio import float_to_wav

        wav = float_to_wav(np.zeros(16000, dtype=np.float32))
        assert wav[:4] == b"RIFF"
        assert wav[8:12] == b"WAVE"
        # 44-byte header + one second of 16-bit mono
        assert len(wav) == 44 + 32000

        print("✓ WAV encoding correct")
        return True
    except Exception as e:
        print(f"✗ WAV encoding test failed: {e}")
        return False


def test_word_correction() -> bool:
    """Test custom vocabulary correction."""
    try:
        from dictum.stt.correction import correct

        assert correct("helo wrold", ["hello", "world"], 0.18) == "hello world"
        print("✓ Word correction correct")
        return True
    except Exception as e:
        print(f"✗ Word correction test failed: {e}")
        return False


def test_cli_help() -> bool:
    """Test CLI help output."""
    return run_command(
        [sys.executable, "-m", "dictum", "--help"],
        "CLI help output",
    )


def test_cli_models() -> bool:
    """Test CLI models command against a temporary models directory."""
    with tempfile.TemporaryDirectory() as tmp:
        config_path = Path(tmp) / "settings.yml"
        config_path.write_text(f"models:\n  models_dir: {Path(tmp) / 'models'}\n")
        return run_command(
            [sys.executable, "-m", "dictum", "--config", str(config_path), "models"],
            "CLI models command",
        )


SMOKE_TESTS = (
    test_import,
    test_config_loading,
    test_catalog_probe,
    test_wav_encoding,
    test_word_correction,
    test_cli_help,
    test_cli_models,
)


def main() -> int:
    """Run all smoke tests and list the ones that failed."""
    print("\n" + "=" * 60)
    print("DICTUM SMOKE TESTS")
    print("=" * 60)

    failures: list[str] = []
    for test in SMOKE_TESTS:
        try:
            ok = test()
        except Exception as e:
            print(f"✗ Test {test.__name__} crashed: {e}")
            ok = False
        if not ok:
            failures.append(test.__name__)

    print("\n" + "=" * 60)
    print(f"RESULTS: {len(SMOKE_TESTS) - len(failures)} passed, {len(failures)} failed")
    for name in failures:
        print(f"  - {name}")
    print("=" * 60)

    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
