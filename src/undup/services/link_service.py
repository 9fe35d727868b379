"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

services/link_service.py
Applies a match list: replaces each duplicate with a symlink to its source.
Supports a dry run that only renders the plan, and an optional trash mode
where the duplicate goes to the system trash instead of being unlinked.
"""
import errno
import logging
import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from send2trash import send2trash

from undup.core.models import MatchingFile

logger = logging.getLogger(__name__)

TEMP_NAME_ATTEMPTS = 100


@dataclass
class ApplyReport:
    """Outcome of applying a batch of matches."""
    linked: List[MatchingFile] = field(default_factory=list)
    unchanged: List[MatchingFile] = field(default_factory=list)
    failed: List[Tuple[MatchingFile, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


class LinkService:
    """
    Filesystem mutation for matches. The engine never touches files;
    everything destructive lives here.
    """

    @staticmethod
    def dry_run(matches: List[MatchingFile]) -> List[str]:
        """Renders the plan, one `dest -> src` line per match."""
        return [f"{m.dest_path} -> {m.src_path}" for m in matches]

    @staticmethod
    def is_already_linked(match: MatchingFile) -> bool:
        dest = Path(match.dest_path)
        if not dest.is_symlink():
            return False
        return os.readlink(dest) == os.path.abspath(match.src_path)

    @staticmethod
    def move_to_trash(file_path: Path):
        """Moves a file to the system trash."""
        path = Path(file_path)

        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")

        try:
            send2trash(str(path))
        except Exception as e:
            raise RuntimeError(f"Failed to move to trash: {e}") from e

    @staticmethod
    def _make_temp_link(src: str, directory: Path) -> Path:
        """Creates a symlink to `src` under a short unused name in `directory`."""
        for n in range(TEMP_NAME_ATTEMPTS):
            tmp = directory / f".undup-{os.getpid()}-{n}"
            try:
                os.symlink(src, tmp)
            except FileExistsError:
                continue
            return tmp
        raise FileExistsError(errno.EEXIST, "No free temporary link name", str(directory))

    @classmethod
    def replace_with_symlink(cls, match: MatchingFile, use_trash: bool = False) -> bool:
        """
        Replaces `dest_path` with a symlink to the absolute `src_path`.
        The link is created under a temporary name first and renamed over
        dest, so dest is never missing unless it was moved to the trash.

        Returns:
            False when dest already links to src (nothing to do), True otherwise.

        Raises:
            FileNotFoundError: If the source vanished; dest is left untouched.
            shutil.SameFileError: If src and dest are one file; dest is left untouched.
            RuntimeError: If trashing the duplicate failed, or the link could
                not be put in place of a trashed duplicate.
        """
        if cls.is_already_linked(match):
            return False

        src = os.path.abspath(match.src_path)
        dest = Path(match.dest_path)
        if not os.path.exists(src):
            raise FileNotFoundError(f"Source not found: {src}")
        if os.path.exists(dest) and os.path.samefile(src, dest):
            raise shutil.SameFileError(f"Refusing to link {dest} to itself ({src})")

        tmp = cls._make_temp_link(src, dest.parent)
        try:
            if use_trash:
                cls.move_to_trash(dest)
        except (OSError, RuntimeError):
            os.unlink(tmp)
            raise

        try:
            os.replace(tmp, dest)
        except OSError as e:
            os.unlink(tmp)
            if use_trash:
                raise RuntimeError(f"{dest} was moved to the trash but the link could not be created: {e}") from e
            raise
        return True

    @classmethod
    def apply(
        cls,
        matches: List[MatchingFile],
        use_trash: bool = False,
        progress_callback: Optional[Callable[[int, int, MatchingFile], None]] = None,
    ) -> ApplyReport:
        """
        Applies every match, continuing past individual failures.
        """
        report = ApplyReport()
        total = len(matches)
        for i, match in enumerate(matches, 1):
            if progress_callback:
                progress_callback(i, total, match)
            try:
                if cls.replace_with_symlink(match, use_trash=use_trash):
                    logger.info(f"Linked {match.dest_path} -> {match.src_path}")
                    report.linked.append(match)
                else:
                    report.unchanged.append(match)
            except (OSError, RuntimeError) as e:
                logger.warning(f"Failed to link {match.dest_path}: {e}")
                report.failed.append((match, str(e)))
        return report
