"""Tests for the command line interface."""

import json

from conftest import uniform_segments
from lytt.cli import main


def write_transcript(tmp_path, name: str = "talk.json", count: int = 10, text: str = "binary"):
    path = tmp_path / name
    path.write_text(json.dumps([s.to_dict() for s in uniform_segments(count, text=text)]))
    return path


class TestCli:
    def test_index_then_skip(self, services, tmp_path, capsys) -> None:
        path = write_transcript(tmp_path)

        assert main(["index", str(path), "--media-id", "vid1", "--title", "Binary Basics"], services) == 0
        assert main(["index", str(path), "--media-id", "vid1"], services) == 0

        out = capsys.readouterr().out
        assert "Indexed vid1: 3 chunks (temporal)" in out
        assert "Skipped vid1" in out

    def test_index_derives_local_id(self, services, tmp_path, capsys) -> None:
        path = write_transcript(tmp_path)

        main(["index", str(path)], services)

        media = services.list_media()
        assert len(media) == 1
        assert media[0].media_id.startswith("local_")
        assert media[0].title == "talk"

    def test_missing_file(self, services, tmp_path, capsys) -> None:
        assert main(["index", str(tmp_path / "nope.vtt")], services) == 1
        assert "File not found" in capsys.readouterr().out

    def test_search_json(self, services, tmp_path, capsys) -> None:
        main(["index", str(write_transcript(tmp_path)), "--media-id", "vid1"], services)
        capsys.readouterr()

        assert main(["search", "binary", "--limit", "2", "--json"], services) == 0

        results = json.loads(capsys.readouterr().out)
        assert len(results) == 2
        assert results[0]["video_id"] == "vid1"

    def test_ask_prints_sources(self, services, tmp_path, capsys) -> None:
        main(["index", str(write_transcript(tmp_path)), "--media-id", "vid1", "--title", "Binary Basics"], services)
        capsys.readouterr()

        assert main(["ask", "binary", "--max-chunks", "1"], services) == 0

        out = capsys.readouterr().out
        assert "Binary numbers use base two." in out
        assert '"Binary Basics" @ 00:00 - https://youtube.com/watch?v=vid1&t=0s' in out

    def test_errors_print_kind(self, services, capsys) -> None:
        assert main(["ask", "binary"], services) == 1
        assert "Error [no_results]" in capsys.readouterr().out

    def test_rechunk_single_missing(self, services, capsys) -> None:
        assert main(["rechunk", "missing"], services) == 1
        assert "Error [no_stored_transcript]" in capsys.readouterr().out

    def test_rechunk_all(self, services, tmp_path, capsys) -> None:
        main(["index", str(write_transcript(tmp_path)), "--media-id", "vid1"], services)

        assert main(["rechunk"], services) == 0
        assert "1/1 media items rechunked" in capsys.readouterr().out

    def test_export_to_file(self, services, tmp_path, capsys) -> None:
        main(["index", str(write_transcript(tmp_path)), "--media-id", "vid1"], services)
        output = tmp_path / "talk.srt"

        assert main(["export", "vid1", "--format", "srt", "--output", str(output)], services) == 0
        assert output.read_text().startswith("1\n00:00:00,000 --> 00:02:00,000\n")

    def test_delete(self, services, tmp_path, capsys) -> None:
        main(["index", str(write_transcript(tmp_path)), "--media-id", "vid1"], services)

        assert main(["delete", "vid1"], services) == 0
        assert main(["show", "vid1"], services) == 1
        assert "Error [not_found]" in capsys.readouterr().out
