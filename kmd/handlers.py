"""Command handlers: one method per kmd subcommand.

Each handler decides which external program to run and with which
arguments, then hands the request to a ProcessRunner. Nothing here catches
runner or classification errors; they propagate to ``kmd.cli.main``.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, Optional, Sequence, Tuple

from .config import KmdConfig
from .errors import IOFailure, UnknownFileTypeError
from .filetypes import FileCategory, classify, detect
from .log import get_logger
from .process import ExecutionRequest, ProcessRunner, shell_request
from .ui import UI

logger = get_logger(__name__)

EXTRACTORS: Dict[FileCategory, Tuple[str, ...]] = {
    FileCategory.TAR: ("tar", "-xvf"),
    FileCategory.TARGZ: ("tar", "-xzvf"),
    FileCategory.TARBZ2: ("tar", "-xjvf"),
    FileCategory.ZIP: ("unzip",),
    FileCategory.RAR: ("unrar", "x"),
}


def default_decomp_dir(filename: str) -> str:
    return f"{filename}.dir"


def archive_path_from(target_dir: Path, filename: str) -> str:
    """Path of the archive as seen from inside the extraction directory."""
    if os.path.isabs(filename):
        return filename
    return os.path.relpath(filename, target_dir)


class Commands:
    def __init__(self, config: KmdConfig, runner: Optional[ProcessRunner] = None, ui: Optional[UI] = None) -> None:
        self.config = config
        self.runner = runner or ProcessRunner(timeout=config.timeout)
        self.ui = ui or UI()

    # Launching ------------------------------------------------------------
    def exec_(self, program: str, args: Sequence[str] = ()) -> None:
        """Start program in a new process and return immediately."""
        self.runner.start_detached(ExecutionRequest.of(program, *args))

    def shell(self, program: str, args: Sequence[str] = ()) -> Tuple[str, ...]:
        """Run the command line in the configured shell, wait, then print its output."""
        output = self.runner.run_checked(shell_request(self.config.shell, [program, *args]))
        self.ui.lines(output)
        return output

    def term(self) -> None:
        self.runner.start_detached(ExecutionRequest.of(self.config.terminal))

    def ide(self, filename: str) -> Tuple[str, ...]:
        output = self.runner.run_checked(ExecutionRequest.of(self.config.ide, "-e", filename))
        self.ui.lines(output)
        return output

    # Editor ---------------------------------------------------------------
    def is_editor_running(self, server: str) -> bool:
        servers = self.runner.run_checked(ExecutionRequest.of(self.config.server_query, "--serverlist"))
        running = server in servers
        logger.debug("editor.server", server=server, running=running)
        return running

    def edit(
        self,
        filename: str,
        editor: Optional[str] = None,
        server: Optional[str] = None,
        extra_files: Sequence[str] = (),
    ) -> ExecutionRequest:
        """Open filename in the editor, reusing a running server of the same name."""
        editor = editor or self.config.editor
        server = server or self.config.editor_server
        args = ["--servername", server]
        if self.is_editor_running(server):
            args.append("--remote")
        args.append(filename)
        args.extend(extra_files)
        request = ExecutionRequest.of(editor, *args)
        self.runner.start_detached(request)
        return request

    def diff(self, file1: str, file2: str, file3: Optional[str] = None) -> ExecutionRequest:
        extra = [file2] if file3 is None else [file2, file3]
        return self.edit(file1, self.config.diff_editor, self.config.diff_server, extra)

    def fmgr(self, directory: str) -> ExecutionRequest:
        return self.edit(directory, server=self.config.filemanager_server)

    # Opening --------------------------------------------------------------
    def openf(self, filename: str) -> Tuple[str, ...]:
        output = self.runner.run_checked(ExecutionRequest.of(self.config.opener, filename))
        self.ui.lines(output)
        return output

    def lopenf(self, link: str, lines: int = 1) -> int:
        """Open the targets listed on the first ``lines`` lines of link.

        Stops early at end of file. Returns how many targets were opened.
        """
        opened = 0
        try:
            # Undecodable bytes round-trip to the opener argv unchanged
            with open(link, encoding="utf-8", errors="surrogateescape") as handle:
                for _ in range(lines):
                    line = handle.readline()
                    if not line:
                        break
                    self.openf(line.rstrip("\r\n"))
                    opened += 1
        except OSError as exc:
            raise IOFailure(link, exc) from exc
        return opened

    def play(self, filename: str) -> ExecutionRequest:
        category = classify(filename)
        if category is FileCategory.AUDIO:
            request = ExecutionRequest.of(self.config.audio_player, filename)
        elif category is FileCategory.VIDEO:
            request = ExecutionRequest.of(self.config.video_player, filename)
        else:
            raise UnknownFileTypeError(filename, "media")
        self.runner.start_detached(request)
        return request

    # Files ----------------------------------------------------------------
    def hist(self, commands: Sequence[str]) -> None:
        """Append commands to the shell history file, one per line.

        With no commands a single empty line is appended.
        """
        path = self.config.history_file
        payload = "\n".join(commands) + "\n"
        try:
            # One write on an O_APPEND handle keeps concurrent appends whole
            with open(path, "a", encoding="utf-8", errors="surrogateescape") as handle:
                handle.write(payload)
        except OSError as exc:
            raise IOFailure(path, exc) from exc
        logger.debug("history.appended", path=str(path), count=len(commands))

    def decomp(self, filename: str, target: Optional[str] = None) -> Tuple[str, ...]:
        """Extract the archive into target (``<file>.dir`` by default)."""
        category = detect(filename)
        if not category.is_archive:
            raise UnknownFileTypeError(filename, "archive")
        target_dir = Path(target or default_decomp_dir(filename))
        try:
            target_dir.mkdir()
        except OSError as exc:
            raise IOFailure(target_dir, exc) from exc
        logger.debug("decomp.target", path=str(target_dir), kind=category.value)
        program, *flags = EXTRACTORS[category]
        request = ExecutionRequest.of(
            program,
            *flags,
            archive_path_from(target_dir, filename),
            cwd=str(target_dir),
        )
        output = self.runner.run_checked(request)
        self.ui.lines(output)
        return output


__all__ = ["Commands", "EXTRACTORS", "archive_path_from", "default_decomp_dir"]
