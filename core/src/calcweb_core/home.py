from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class CalcWebPaths:
    home: Path
    config_dir: Path
    logs_dir: Path

    @property
    def core_config_path(self) -> Path:
        return self.config_dir / "core.json"

    @property
    def log_file_path(self) -> Path:
        return self.logs_dir / "core.log"


def resolve_calcweb_home(environ: dict[str, str] | None = None) -> Path:
    env = os.environ if environ is None else environ

    raw = (env.get("CALCWEB_HOME") or "").strip()
    if raw:
        candidate = Path(raw).expanduser()
        # Never interpret CALCWEB_HOME relative to CWD.
        if not candidate.is_absolute():
            candidate = (Path.home() / candidate).resolve()
        else:
            candidate = candidate.resolve()
        return candidate

    def default_home() -> Path:
        if sys.platform.startswith("win"):
            base = os.environ.get("LOCALAPPDATA") or os.environ.get("APPDATA")
            if base:
                return Path(base) / "CalcWeb"
            return Path.home() / "AppData" / "Local" / "CalcWeb"

        if sys.platform == "darwin":
            return Path.home() / "Library" / "Application Support" / "CalcWeb"

        xdg = os.environ.get("XDG_DATA_HOME")
        if xdg:
            return Path(xdg) / "calcweb"
        return Path.home() / ".local" / "share" / "calcweb"

    return default_home().resolve()


def ensure_calcweb_layout(home: Path) -> CalcWebPaths:
    home.mkdir(parents=True, exist_ok=True)

    config_dir = home / "config"
    logs_dir = home / "logs"

    for path in (config_dir, logs_dir):
        path.mkdir(parents=True, exist_ok=True)

    return CalcWebPaths(
        home=home,
        config_dir=config_dir,
        logs_dir=logs_dir,
    )
