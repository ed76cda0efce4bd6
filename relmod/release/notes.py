from __future__ import annotations

from pathlib import Path

from relmod.core.result import Err, Ok, Result
from relmod.output.console import ConsoleProtocol
from relmod.release.errors import ReleaseError
from relmod.release.version import Version

NOTES_EXTENSIONS = (".md", ".markdown")


def notes_candidates(notes_dir: Path, version: Version) -> list[Path]:
    return [notes_dir / f"{version}{ext}" for ext in NOTES_EXTENSIONS]


def read_release_notes(
    *, notes_dir: Path, version: Version, console: ConsoleProtocol
) -> Result[str, ReleaseError]:
    """Read notes/<version>.md, falling back to notes/<version>.markdown.

    Missing notes are not an error: the release goes out with a warning.
    """
    for path in notes_candidates(notes_dir, version):
        if not path.is_file():
            continue
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            return Err(
                ReleaseError(
                    kind="io",
                    message=f"failed to read release notes: {e}",
                    hint=str(path),
                )
            )
        if text.strip():
            return Ok(text)

    console.warning(f"no release notes found for {version} in {notes_dir}")
    return Ok("")
