from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Union
from urllib.parse import urlparse

import yaml
from pydantic import BaseModel, Field, field_validator

from .portal.selectors import DEFAULT_START_URL


_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Z0-9_]+)\}")


def _expand_env_vars(value: object) -> object:
    if isinstance(value, str):
        def repl(match: re.Match[str]) -> str:
            var = match.group(1)
            return os.getenv(var, "")

        return _ENV_VAR_PATTERN.sub(repl, value)
    if isinstance(value, list):
        return [_expand_env_vars(v) for v in value]
    if isinstance(value, dict):
        return {k: _expand_env_vars(v) for k, v in value.items()}
    return value


def _env_bool(name: str, default: bool = False) -> bool:
    raw = (os.getenv(name, "") or "").strip().lower()
    if not raw:
        return bool(default)
    return raw in {"1", "true", "t", "yes", "y", "on"}


def _deep_merge(base: object, override: object) -> object:
    if isinstance(base, dict) and isinstance(override, dict):
        out = dict(base)
        for k, v in override.items():
            if k in out:
                out[k] = _deep_merge(out[k], v)
            else:
                out[k] = v
        return out
    return override


def _default_config_from_env() -> dict:
    """
    Env-only config so most users only need `.env` (or nothing at all).

    YAML remains an optional override on top of this.
    """
    return {
        "portal": {
            "start_url": os.getenv("CTEC_START_URL", DEFAULT_START_URL),
            "profile_dir": os.getenv("CTEC_PROFILE_DIR", "data/pw-profile"),
            "headless": _env_bool("CTEC_HEADLESS", default=False),
            "slow_mo_ms": os.getenv("CTEC_SLOWMO_MS", "50"),
            "poll_interval_ms": os.getenv("CTEC_POLL_INTERVAL_MS", "250"),
            "report_poll_interval_ms": os.getenv("CTEC_REPORT_POLL_INTERVAL_MS", "1000"),
            "notice_interval_s": os.getenv("CTEC_NOTICE_INTERVAL_S", "10"),
            "popup_timeout_ms": os.getenv("CTEC_POPUP_TIMEOUT_MS", "10000"),
        },
        "output": {
            "out_dir": os.getenv("CTEC_OUT_DIR", "data/raw"),
            "debug_dir": os.getenv("CTEC_DEBUG_DIR", "data/debug"),
        },
        "summary": {
            "api_key": os.getenv("OPENAI_API_KEY", ""),
            "model": os.getenv("OPENAI_MODEL", "gpt-4.1-mini"),
        },
        "logging": {
            "level": os.getenv("LOG_LEVEL", "INFO"),
            "file_path": os.getenv("LOG_FILE", "data/ctec.log"),
        },
    }


class PortalConfig(BaseModel):
    start_url: str = DEFAULT_START_URL

    # Persistent Chromium profile; keeps the NetID/Duo session between runs.
    profile_dir: str = "data/pw-profile"

    # Headful by default: the login interstitial needs a person.
    headless: bool = False
    slow_mo_ms: int = Field(default=50, ge=0)

    poll_interval_ms: int = Field(default=250, gt=0)
    report_poll_interval_ms: int = Field(default=1000, gt=0)
    notice_interval_s: float = Field(default=10.0, gt=0)
    popup_timeout_ms: int = Field(default=10_000, gt=0)

    @field_validator("start_url")
    @classmethod
    def _validate_start_url(cls, v: str) -> str:
        v = (v or "").strip()
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("portal.start_url must be a full http(s) URL")
        return v


class OutputConfig(BaseModel):
    out_dir: str = "data/raw"
    debug_dir: str = "data/debug"


class SummaryConfig(BaseModel):
    # Empty key => summarization is skipped, not an error.
    api_key: str = Field(default="", repr=False)
    model: str = "gpt-4.1-mini"
    min_chunk_chars: int = Field(default=50, ge=0)

    @property
    def enabled(self) -> bool:
        return bool((self.api_key or "").strip())


class LoggingConfig(BaseModel):
    level: str = "INFO"
    file_path: str = "data/ctec.log"


class AppConfig(BaseModel):
    portal: PortalConfig = PortalConfig()
    output: OutputConfig = OutputConfig()
    summary: SummaryConfig = SummaryConfig()
    logging: LoggingConfig = LoggingConfig()


def load_config(path: Union[str, Path, None] = None) -> AppConfig:
    raw: dict = {}
    if path:
        p = Path(path)
        if p.exists():
            raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
            raw = _expand_env_vars(raw)  # supports ${ENV_VAR} in YAML

    merged = _deep_merge(_default_config_from_env(), raw)
    return AppConfig.model_validate(merged)
