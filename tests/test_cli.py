# tests/test_cli.py
"""Test the command-line interface"""

import json

import pytest
from click.testing import CliRunner

from lyrics_aggregator import __version__
from lyrics_aggregator.cli import cli


@pytest.fixture
def runner(temp_dir, monkeypatch):
    """CLI runner working in an empty directory"""
    monkeypatch.chdir(temp_dir)
    return CliRunner()


@pytest.fixture
def ttml_file(temp_dir, sample_ttml):
    path = temp_dir / "song.ttml"
    path.write_text(sample_ttml, encoding="utf-8")
    return path


@pytest.fixture
def candidates_file(temp_dir):
    path = temp_dir / "results.json"
    path.write_text(json.dumps([
        {
            "id": "1",
            "attributes": {
                "name": "Shape of You",
                "artistName": "Ed Sheeran",
                "albumName": "÷ (Deluxe)",
                "durationInMillis": 233713,
            },
        },
        {"title": "Perfect", "artist": "Ed Sheeran", "duration": 263},
    ]), encoding="utf-8")
    return path


class TestCliBasics:
    """Test group options"""

    def test_version(self, runner):
        """Test --version"""
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert f"lyrics-aggregator {__version__}" in result.output

    def test_help_without_command(self, runner):
        """Test that the group prints help"""
        result = runner.invoke(cli, [])
        assert result.exit_code == 0
        assert "convert" in result.output

    def test_config_error(self, runner, ttml_file, temp_dir):
        """Test that a missing explicit config exits with 1"""
        result = runner.invoke(cli, ["--config", str(temp_dir / "missing.yaml"), "convert", str(ttml_file)])
        assert result.exit_code == 1
        assert "Configuration error" in result.output


class TestConvertCommand:
    """Test the convert command"""

    def test_ttml_to_json_stdout(self, runner, ttml_file):
        """Test a single input written to stdout"""
        result = runner.invoke(cli, ["convert", str(ttml_file), "--to", "json"])

        assert result.exit_code == 0, result.output
        document = json.loads(result.output)
        assert document["type"] == "Word"
        assert len(document["lyrics"]) == 2
        assert document["lyrics"][1]["syllabus"][2]["isBackground"] is True

    def test_ttml_to_v1_output_dir(self, runner, ttml_file, temp_dir):
        """Test writing the flat format into an output directory"""
        out = temp_dir / "out"
        result = runner.invoke(cli, ["convert", str(ttml_file), "--to", "v1", "-o", str(out)])

        assert result.exit_code == 0, result.output
        document = json.loads((out / "song.v1.json").read_text(encoding="utf-8"))
        assert document["type"] == "syllable"
        assert [s["isLineEnding"] for s in document["lyrics"]] == [0, 1, 0, 0, 1]

    def test_lrclib_to_ttml(self, runner, temp_dir, lrclib_payload):
        """Test auto-detected provider payload converted to TTML"""
        path = temp_dir / "lrclib.json"
        path.write_text(json.dumps(lrclib_payload), encoding="utf-8")

        result = runner.invoke(cli, ["convert", str(path), "--to", "ttml"])

        assert result.exit_code == 0, result.output
        assert 'itunes:timing="Line"' in result.output
        assert ">First</p>" in result.output

    def test_musixmatch_word_sync(self, runner, temp_dir, musixmatch_payload):
        """Test --from and --word-sync"""
        path = temp_dir / "mxm.json"
        path.write_text(json.dumps(musixmatch_payload), encoding="utf-8")

        result = runner.invoke(cli, ["convert", str(path), "--from", "musixmatch", "--word-sync"])

        assert result.exit_code == 0, result.output
        document = json.loads(result.output)
        assert document["type"] == "Word"
        assert document["providerTag"] == "musixmatch-word"

    def test_multiple_inputs(self, runner, ttml_file, temp_dir, spotify_payload):
        """Test several inputs written next to themselves"""
        spotify = temp_dir / "spotify.json"
        spotify.write_text(json.dumps(spotify_payload), encoding="utf-8")

        result = runner.invoke(cli, ["convert", str(ttml_file), str(spotify)])

        assert result.exit_code == 0, result.output
        assert (temp_dir / "song.lyrics.json").exists()
        assert (temp_dir / "spotify.lyrics.json").exists()

    def test_conversion_failure(self, runner, temp_dir):
        """Test that a broken input exits with 2"""
        path = temp_dir / "broken.ttml"
        path.write_text("<tt><body>", encoding="utf-8")

        result = runner.invoke(cli, ["convert", str(path)])

        assert result.exit_code == 2
        assert "Failed to convert" in result.output

    def test_invalid_json(self, runner, temp_dir):
        """Test a file that is not JSON"""
        path = temp_dir / "notes.json"
        path.write_text("not json", encoding="utf-8")

        result = runner.invoke(cli, ["convert", str(path)])

        assert result.exit_code == 2
        assert "Invalid JSON" in result.output


class TestMatchCommand:
    """Test the match and cache-key commands"""

    def test_match(self, runner, candidates_file):
        """Test picking the best candidate"""
        result = runner.invoke(cli, [
            "match", str(candidates_file),
            "--title", "Shape of You", "--artist", "Ed Sheeran", "--duration", "233",
        ])

        assert result.exit_code == 0, result.output
        assert "Best match: Ed Sheeran - Shape of You" in result.output
        assert "Score:" in result.output

    def test_no_match(self, runner, candidates_file):
        """Test that no confident match exits with 3"""
        result = runner.invoke(cli, [
            "match", str(candidates_file), "--title", "Hello", "--artist", "Adele",
        ])

        assert result.exit_code == 3
        assert "No confident match for: Adele - Hello" in result.output

    def test_invalid_candidates_file(self, runner, temp_dir):
        """Test a candidates file that is not a list"""
        path = temp_dir / "results.json"
        path.write_text('{"results": []}', encoding="utf-8")

        result = runner.invoke(cli, ["match", str(path), "--title", "Song", "--artist", "Artist"])

        assert result.exit_code == 4
        assert "Candidates file must contain" in result.output

    def test_cache_key(self, runner):
        """Test printing a cache key"""
        result = runner.invoke(cli, [
            "cache-key", "--title", "Shape of You", "--artist", "Ed Sheeran",
            "--album", "÷", "--duration", "233",
        ])

        assert result.exit_code == 0, result.output
        assert result.output.strip() == "Ed Sheeran - Shape of You [÷] (3:53)"
