"""Application configuration defaults."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

DEFAULT_REPO_URL = "https://github.com/GalaChain/sdk.git"


@dataclass(slots=True)
class AppConfig:
    db_path: Path = Path("data/sdkdocs.db")
    repo_url: str = DEFAULT_REPO_URL
    repo_dir: Path = Path("data/repos/galachain-sdk")
    default_limit: int = 5

    def resolve_db_path(self, base_dir: Path | None = None) -> Path:
        if Path(self.db_path).is_absolute() or base_dir is None:
            return Path(self.db_path)
        return base_dir / self.db_path

    def resolve_repo_dir(self, base_dir: Path | None = None) -> Path:
        if Path(self.repo_dir).is_absolute() or base_dir is None:
            return Path(self.repo_dir)
        return base_dir / self.repo_dir
