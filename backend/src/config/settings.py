"""Process-wide configuration, read once from the environment at startup."""

from __future__ import annotations

import os
from dataclasses import dataclass
from importlib import metadata
from typing import Mapping, Optional

from dotenv import load_dotenv

from ..scanner.pipeline import ToolCommands

DISTRIBUTION_NAME = "fileinfo-scanner"
DEFAULT_TIMEOUT_SECONDS = 10
WEB_SCAN_TIMEOUT_SECONDS = 60


def _installed_version() -> str:
    try:
        return metadata.version(DISTRIBUTION_NAME)
    except metadata.PackageNotFoundError:
        return "0.0.0+unknown"


def _int_env(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


@dataclass(frozen=True)
class Settings:
    version: str
    build_time: str = ""
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS
    webhook_endpoint: Optional[str] = None
    webhook_proxy: Optional[str] = None
    scan_id: Optional[str] = None
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    store_table: str = "plugin_results"
    upload_dir: str = "/malware"
    web_host: str = "0.0.0.0"
    web_port: int = 3993
    apkfile_jar: str = "apkfile.jar"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Build settings from environment variables.

        When ``env`` is omitted a local ``.env`` file is merged into
        ``os.environ`` first.
        """
        if env is None:
            load_dotenv()
            env = os.environ

        return cls(
            version=_installed_version(),
            build_time=env.get("FILEINFO_BUILD_TIME", ""),
            timeout_seconds=_int_env(env, "MALICE_TIMEOUT", DEFAULT_TIMEOUT_SECONDS),
            webhook_endpoint=env.get("MALICE_ENDPOINT") or None,
            webhook_proxy=env.get("MALICE_PROXY") or None,
            scan_id=env.get("MALICE_SCANID") or None,
            supabase_url=env.get("SUPABASE_URL") or None,
            supabase_key=env.get("SUPABASE_KEY") or None,
            store_table=env.get("FILEINFO_STORE_TABLE", "plugin_results"),
            upload_dir=env.get("FILEINFO_UPLOAD_DIR", "/malware"),
            web_host=env.get("FILEINFO_WEB_HOST", "0.0.0.0"),
            web_port=_int_env(env, "FILEINFO_WEB_PORT", 3993),
            apkfile_jar=env.get("FILEINFO_APKFILE_JAR", "apkfile.jar"),
        )

    @property
    def version_string(self) -> str:
        if self.build_time:
            return f"{self.version}, BuildTime: {self.build_time}"
        return self.version

    @property
    def tool_commands(self) -> ToolCommands:
        return ToolCommands(archive=("java", "-jar", self.apkfile_jar))
