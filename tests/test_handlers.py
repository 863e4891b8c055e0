"""Tests for the command handlers, using a recording runner."""

from __future__ import annotations

import os
import threading
from pathlib import Path

import pytest

from kmd.errors import IOFailure, NonZeroExitError, UnknownFileTypeError
from kmd.handlers import Commands, archive_path_from
from kmd.process import ExecutionRequest, ExecutionResult
from tests.fakes import FakeRunner


class TestLaunchers:
    def test_exec_starts_detached(self, commands: Commands, runner: FakeRunner):
        commands.exec_("xclock", ["-digital"])
        assert runner.detached == [ExecutionRequest.of("xclock", "-digital")]
        assert runner.blocking == []

    def test_term_uses_configured_terminal(self, commands: Commands, runner: FakeRunner):
        commands.config.terminal = "urxvt"
        commands.term()
        assert runner.detached == [ExecutionRequest.of("urxvt")]

    def test_shell_joins_and_prints(self, commands: Commands, runner: FakeRunner, capsys):
        runner.results["bash"] = ExecutionResult(0, ("line one", "[not markup]"))
        output = commands.shell("cat", ["~/.profile"])
        assert runner.blocking == [ExecutionRequest.of("bash", "-c", "cat ~/.profile")]
        assert output == ("line one", "[not markup]")
        assert capsys.readouterr().out.splitlines() == ["line one", "[not markup]"]

    def test_shell_output_is_printed_verbatim(self, commands: Commands, runner: FakeRunner, capsys):
        lines = ("a\tb", "x\rz", "page\fbreak", "\x1b[31mred\x1b[0m")
        runner.results["bash"] = ExecutionResult(0, lines)
        commands.shell("cat", ["Makefile"])
        assert capsys.readouterr().out == "a\tb\nx\rz\npage\fbreak\n\x1b[31mred\x1b[0m\n"

    def test_shell_failure_propagates(self, commands: Commands, runner: FakeRunner):
        runner.results["bash"] = ExecutionResult(2, ("oops",))
        with pytest.raises(NonZeroExitError) as excinfo:
            commands.shell("false")
        assert excinfo.value.exit_code == 2

    def test_ide_passes_open_flag(self, commands: Commands, runner: FakeRunner):
        commands.ide("Main.kt")
        assert runner.blocking == [ExecutionRequest.of("idea", "-e", "Main.kt")]

    def test_openf_uses_opener(self, commands: Commands, runner: FakeRunner):
        commands.openf("https://example.org")
        assert runner.blocking == [ExecutionRequest.of("xdg-open", "https://example.org")]


class TestEdit:
    def test_new_instance_when_server_not_listening(self, commands: Commands, runner: FakeRunner):
        commands.edit("foo.txt")
        assert runner.blocking == [ExecutionRequest.of("vim", "--serverlist")]
        assert runner.detached == [ExecutionRequest.of("gvim", "--servername", "EDITOR", "foo.txt")]

    def test_remote_when_server_listening(self, commands: Commands, runner: FakeRunner):
        runner.serve("DIFF", "EDITOR")
        commands.edit("foo.txt")
        assert runner.detached[0].arguments == ("--servername", "EDITOR", "--remote", "foo.txt")

    def test_server_name_must_match_exactly(self, commands: Commands, runner: FakeRunner):
        runner.serve("EDITOR2")
        commands.edit("foo.txt")
        assert "--remote" not in runner.detached[0].arguments

    def test_server_query_failure_propagates(self, commands: Commands, runner: FakeRunner):
        runner.results["vim"] = ExecutionResult(1, ())
        with pytest.raises(NonZeroExitError):
            commands.edit("foo.txt")
        assert runner.detached == []

    def test_diff_with_two_files(self, commands: Commands, runner: FakeRunner):
        commands.diff("a.txt", "b.txt")
        assert runner.detached == [ExecutionRequest.of("gvimdiff", "--servername", "DIFF", "a.txt", "b.txt")]

    def test_diff_with_three_files_reuses_server(self, commands: Commands, runner: FakeRunner):
        runner.serve("DIFF")
        commands.diff("a.txt", "b.txt", "c.txt")
        assert runner.detached[0].argv == [
            "gvimdiff", "--servername", "DIFF", "--remote", "a.txt", "b.txt", "c.txt",
        ]

    def test_fmgr_uses_filemanager_server(self, commands: Commands, runner: FakeRunner):
        commands.fmgr("/srv")
        assert runner.detached == [ExecutionRequest.of("gvim", "--servername", "FILEMANAGER", "/srv")]


class TestLopenf:
    def test_opens_each_line_in_order(self, commands: Commands, runner: FakeRunner, tmp_path: Path):
        link = tmp_path / "links"
        link.write_text("first.pdf\nhttps://example.org\n", encoding="utf-8")
        assert commands.lopenf(str(link), 2) == 2
        assert [r.arguments for r in runner.blocking] == [("first.pdf",), ("https://example.org",)]

    def test_default_reads_one_line(self, commands: Commands, runner: FakeRunner, tmp_path: Path):
        link = tmp_path / "links"
        link.write_text("first.pdf\nsecond.pdf\n", encoding="utf-8")
        commands.lopenf(str(link))
        assert [r.arguments for r in runner.blocking] == [("first.pdf",)]

    def test_stops_at_end_of_file(self, commands: Commands, runner: FakeRunner, tmp_path: Path):
        link = tmp_path / "links"
        link.write_text("only.pdf", encoding="utf-8")
        assert commands.lopenf(str(link), 2) == 1
        assert [r.arguments for r in runner.blocking] == [("only.pdf",)]

    def test_strips_crlf(self, commands: Commands, runner: FakeRunner, tmp_path: Path):
        link = tmp_path / "links"
        link.write_bytes(b"dos.pdf\r\n")
        commands.lopenf(str(link))
        assert runner.blocking[0].arguments == ("dos.pdf",)

    def test_undecodable_bytes_reach_opener_intact(self, commands: Commands, runner: FakeRunner, tmp_path: Path):
        link = tmp_path / "links"
        link.write_bytes(b"caf\xe9.pdf\n")
        assert commands.lopenf(str(link)) == 1
        target = runner.blocking[0].arguments[0]
        assert os.fsencode(target) == b"caf\xe9.pdf"

    def test_unreadable_link_raises_io_failure(self, commands: Commands, tmp_path: Path):
        with pytest.raises(IOFailure) as excinfo:
            commands.lopenf(str(tmp_path / "missing"))
        assert excinfo.value.path.endswith("missing")

    def test_open_failure_stops_iteration(self, commands: Commands, runner: FakeRunner, tmp_path: Path):
        link = tmp_path / "links"
        link.write_text("a\nb\n", encoding="utf-8")
        runner.results["xdg-open"] = ExecutionResult(4, ())
        with pytest.raises(NonZeroExitError):
            commands.lopenf(str(link), 2)
        assert len(runner.blocking) == 1


class TestPlay:
    @pytest.mark.parametrize("filename", ["a.mp3", "a.ogg", "a.wav", "a.flac"])
    def test_audio_goes_to_audio_player(self, commands: Commands, runner: FakeRunner, filename: str):
        commands.play(filename)
        assert runner.detached == [ExecutionRequest.of("audacious", filename)]

    @pytest.mark.parametrize("filename", ["a.mpg", "a.mp4", "a.mkv", "a.avi"])
    def test_video_goes_to_video_player(self, commands: Commands, runner: FakeRunner, filename: str):
        commands.play(filename)
        assert runner.detached == [ExecutionRequest.of("smplayer", filename)]

    def test_directory_goes_to_audio_player(self, commands: Commands, runner: FakeRunner, tmp_path: Path):
        commands.play(str(tmp_path))
        assert runner.detached[0].program == "audacious"

    @pytest.mark.parametrize("filename", ["a.txt", "a.zip"])
    def test_non_media_fails_without_launch(self, commands: Commands, runner: FakeRunner, filename: str):
        with pytest.raises(UnknownFileTypeError, match="Unknown media file format"):
            commands.play(filename)
        assert runner.detached == []


class TestHist:
    def test_appends_newline_joined_commands(self, commands: Commands, history_file: Path):
        history_file.write_text("echo old\n", encoding="utf-8")
        commands.hist(["ls -la", "pwd"])
        assert history_file.read_text(encoding="utf-8") == "echo old\nls -la\npwd\n"

    def test_creates_missing_file(self, commands: Commands, history_file: Path):
        commands.hist(["pwd"])
        assert history_file.read_text(encoding="utf-8") == "pwd\n"

    def test_no_commands_appends_empty_line(self, commands: Commands, history_file: Path):
        history_file.write_text("pwd\n", encoding="utf-8")
        commands.hist([])
        assert history_file.read_text(encoding="utf-8") == "pwd\n\n"

    def test_unwritable_path_raises_io_failure(self, commands: Commands, tmp_path: Path):
        commands.config.history_file = tmp_path / "missing-dir" / "history"
        with pytest.raises(IOFailure):
            commands.hist(["pwd"])

    def test_concurrent_appends_keep_lines_whole(self, config, history_file: Path):
        def append(tag: str) -> None:
            handler = Commands(config, runner=FakeRunner())
            for i in range(50):
                handler.hist([f"{tag}-{i}-command", f"{tag}-{i}-again"])

        threads = [threading.Thread(target=append, args=(tag,)) for tag in ("a", "b", "c")]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        lines = history_file.read_text(encoding="utf-8").splitlines()
        assert len(lines) == 300
        assert all(line.split("-")[0] in {"a", "b", "c"} and line.count("-") == 2 for line in lines)


class TestDecomp:
    @pytest.fixture(autouse=True)
    def _cwd(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)

    @pytest.mark.parametrize(
        "filename,argv",
        [
            ("a.tar", ["tar", "-xvf"]),
            ("a.tar.gz", ["tar", "-xzvf"]),
            ("a.tgz", ["tar", "-xzvf"]),
            ("a.tar.bz2", ["tar", "-xjvf"]),
            ("a.tb2", ["tar", "-xjvf"]),
            ("a.zip", ["unzip"]),
            ("a.rar", ["unrar", "x"]),
        ],
    )
    def test_extractor_per_kind(self, commands: Commands, runner: FakeRunner, filename: str, argv: list[str]):
        commands.decomp(filename)
        request = runner.blocking[0]
        assert request.argv == [*argv, f"../{filename}"]
        assert request.cwd == f"{filename}.dir"

    def test_creates_default_directory(self, commands: Commands, runner: FakeRunner, tmp_path: Path):
        commands.decomp("archive.tar.gz")
        assert (tmp_path / "archive.tar.gz.dir").is_dir()
        assert runner.blocking == [
            ExecutionRequest.of("tar", "-xzvf", "../archive.tar.gz", cwd="archive.tar.gz.dir"),
        ]

    def test_explicit_target_directory(self, commands: Commands, runner: FakeRunner, tmp_path: Path):
        (tmp_path / "out").mkdir()
        commands.decomp("pics.zip", "out/pics")
        assert (tmp_path / "out" / "pics").is_dir()
        assert runner.blocking[0].cwd == "out/pics"
        assert runner.blocking[0].arguments == ("../../pics.zip",)

    def test_unknown_archive_leaves_no_directory(self, commands: Commands, runner: FakeRunner, tmp_path: Path):
        with pytest.raises(UnknownFileTypeError, match="Unknown archive type: notes.txt"):
            commands.decomp("notes.txt")
        assert not (tmp_path / "notes.txt.dir").exists()
        assert runner.blocking == []

    def test_existing_target_raises_io_failure(self, commands: Commands, runner: FakeRunner, tmp_path: Path):
        (tmp_path / "a.zip.dir").mkdir()
        with pytest.raises(IOFailure):
            commands.decomp("a.zip")
        assert runner.blocking == []

    def test_extraction_failure_propagates(self, commands: Commands, runner: FakeRunner):
        runner.results["unzip"] = ExecutionResult(9, ("bad zipfile",))
        with pytest.raises(NonZeroExitError) as excinfo:
            commands.decomp("a.zip")
        assert excinfo.value.output == ("bad zipfile",)

    def test_prints_extractor_output(self, commands: Commands, runner: FakeRunner, capsys):
        runner.results["tar"] = ExecutionResult(0, ("x a.txt", "x b.txt"))
        commands.decomp("a.tar")
        assert capsys.readouterr().out.splitlines() == ["x a.txt", "x b.txt"]


def test_archive_path_from_absolute_file(tmp_path: Path):
    archive = str(tmp_path / "a.zip")
    assert archive_path_from(tmp_path / "elsewhere", archive) == archive


def test_archive_path_from_nested_relative_file():
    assert archive_path_from(Path("sub/a.zip.dir"), "sub/a.zip") == os.path.join("..", "a.zip")
