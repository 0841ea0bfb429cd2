"""Tests for the command-line entry point."""

import json
from unittest.mock import patch

from typefont import main as entry
from typefont.errors import LoadError
from typefont.matching.font_matcher import FontScore


def test_prints_ranking(tmp_path, capsys):
    async def fake_identify(source, options):
        options.progress("Serif", {}, 0.5)
        options.progress("Sans", {}, 1.0)
        return [FontScore("Serif", 92.5, 3), FontScore("Sans", 40.0, 3)]

    with patch.object(entry, "identify_font", fake_identify):
        code = entry.main(["text.png", "--config", str(tmp_path / "config.json"), "--top", "1"])

    out = capsys.readouterr().out
    assert code == 0
    assert "Serif" in out and "92.50%" in out
    assert "Sans" not in out


def test_failure_returns_error_code(tmp_path):
    async def failing_identify(source, options):
        raise LoadError(source)

    with patch.object(entry, "identify_font", failing_identify):
        assert entry.main(["missing.png", "--config", str(tmp_path / "config.json")]) == 1


def test_mistyped_config_returns_error_code(tmp_path, caplog):
    config = tmp_path / "config.json"
    config.write_text(json.dumps({"perceptualComparisonSize": "64"}), encoding="utf-8")

    assert entry.main(["text.png", "--config", str(config)]) == 1
    assert "perceptual_comparison_size" in caplog.text


def test_releases_recognition_threads_on_failure(tmp_path):
    async def failing_identify(source, options):
        raise LoadError(source)

    with patch.object(entry, "identify_font", failing_identify), \
            patch.object(entry, "shutdown_recognition") as shutdown:
        assert entry.main(["missing.png", "--config", str(tmp_path / "config.json")]) == 1

    shutdown.assert_called_once_with()
