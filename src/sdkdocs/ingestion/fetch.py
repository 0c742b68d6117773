"""Obtain the documentation checkout with the ``git`` command line."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

LOGGER = logging.getLogger(__name__)


class SourceUnavailableError(RuntimeError):
    """The documentation repository could not be cloned or located."""


def fetch_repo(repo_url: str, repo_dir: Path) -> Path:
    """Clone ``repo_url`` into ``repo_dir`` or fast-forward an existing checkout.

    A failing pull on an existing checkout only logs a warning and the files
    already on disk are used. A failing clone raises ``SourceUnavailableError``.
    """
    repo_dir = Path(repo_dir)
    if (repo_dir / ".git").exists():
        LOGGER.info("Updating existing checkout in %s", repo_dir)
        try:
            subprocess.run(
                ["git", "-C", str(repo_dir), "pull", "--ff-only"],
                check=True,
                capture_output=True,
                text=True,
            )
        except (OSError, subprocess.CalledProcessError) as exc:
            LOGGER.warning("Pull failed, using existing files: %s", exc)
        return repo_dir

    if repo_dir.exists() and any(repo_dir.iterdir()):
        LOGGER.info("Using local documentation tree at %s", repo_dir)
        return repo_dir

    LOGGER.info("Cloning %s into %s", repo_url, repo_dir)
    repo_dir.parent.mkdir(parents=True, exist_ok=True)
    try:
        subprocess.run(
            ["git", "clone", "--depth", "1", repo_url, str(repo_dir)],
            check=True,
            capture_output=True,
            text=True,
        )
    except FileNotFoundError as exc:
        raise SourceUnavailableError("git executable not found") from exc
    except subprocess.CalledProcessError as exc:
        detail = (exc.stderr or "").strip() or str(exc)
        raise SourceUnavailableError(f"Unable to clone {repo_url}: {detail}") from exc
    return repo_dir
