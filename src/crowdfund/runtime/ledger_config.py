# src/crowdfund/runtime/ledger_config.py
from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from crowdfund.ledger.constants import DEFAULT_LEDGER_ADDRESS, is_null_identity

Json = Dict[str, Any]


def _as_int(v: Any, default: int) -> int:
    try:
        return int(v)
    except Exception:
        return int(default)


def _as_str(v: Any, default: str) -> str:
    if v is None:
        return str(default)
    s = str(v)
    return s if s.strip() else str(default)


def _as_tokens(v: Any, default: Tuple[str, ...]) -> Tuple[str, ...]:
    """Accept a list of addresses or a comma-separated string."""
    if v is None:
        return tuple(default)
    if isinstance(v, str):
        return tuple(p.strip() for p in v.split(","))
    if isinstance(v, (list, tuple)):
        return tuple(str(p).strip() if p is not None else "" for p in v)
    return tuple(default)


@dataclass(frozen=True)
class LedgerConfig:
    ledger_id: str
    mode: str  # "dev" | "testnet" | "prod"

    # Identity the ledger uses as token spender and holder.
    ledger_address: str

    variant: str  # "single" | "multi"
    tokens: Tuple[str, ...] = field(default_factory=tuple)

    api_host: str = "127.0.0.1"
    api_port: int = 8080

    log_level: str = "INFO"


_ALLOWED_MODES = {"dev", "testnet", "prod"}
_ALLOWED_VARIANTS = {"single", "multi"}


def validate_ledger_config(cfg: LedgerConfig) -> None:
    """Fail-fast validation for operator config.

    Token lists are checked here with ValueError so a bad deploy never boots;
    the ledger itself re-checks them with its own typed errors.
    """

    if not isinstance(cfg.ledger_id, str) or not cfg.ledger_id.strip():
        raise ValueError("ledger_id must be a non-empty string")

    mode = str(cfg.mode or "").strip().lower()
    if mode not in _ALLOWED_MODES:
        raise ValueError(f"mode must be one of {_ALLOWED_MODES}; got: {cfg.mode!r}")

    variant = str(cfg.variant or "").strip().lower()
    if variant not in _ALLOWED_VARIANTS:
        raise ValueError(f"variant must be one of {_ALLOWED_VARIANTS}; got: {cfg.variant!r}")

    if is_null_identity(cfg.ledger_address):
        raise ValueError("ledger_address must be a non-null identity")

    if not cfg.tokens:
        raise ValueError("tokens must list at least one token address")
    for t in cfg.tokens:
        if is_null_identity(t):
            raise ValueError(f"tokens must not contain null addresses; got: {list(cfg.tokens)!r}")
    if variant == "single" and len(cfg.tokens) != 1:
        raise ValueError(f"single-token variant takes exactly one token; got: {len(cfg.tokens)}")

    if int(cfg.api_port) <= 0 or int(cfg.api_port) > 65535:
        raise ValueError(f"api_port must be 1..65535; got: {cfg.api_port}")


def default_ledger_config() -> LedgerConfig:
    return LedgerConfig(
        ledger_id="crowdfund-dev",
        # Production-safe default: dev-only routes (mint/approve) stay off
        # unless the operator opts in explicitly.
        mode="prod",
        ledger_address=DEFAULT_LEDGER_ADDRESS,
        variant="single",
        tokens=("MTK",),
        api_host="127.0.0.1",
        api_port=8080,
        log_level="INFO",
    )


def _read_raw(p: Path) -> Json:
    text = p.read_text(encoding="utf-8")
    if p.suffix.lower() in {".yaml", ".yml"}:
        import yaml  # type: ignore

        raw = yaml.safe_load(text)
    else:
        raw = json.loads(text)
    if not isinstance(raw, dict):
        raise ValueError("ledger config must be a mapping")
    return raw


def read_ledger_config_file(path: str) -> LedgerConfig:
    raw = _read_raw(Path(path))
    d = default_ledger_config()

    cfg = LedgerConfig(
        ledger_id=_as_str(raw.get("ledger_id"), d.ledger_id),
        mode=_as_str(raw.get("mode"), d.mode).strip().lower(),
        ledger_address=_as_str(raw.get("ledger_address"), d.ledger_address),
        variant=_as_str(raw.get("variant"), d.variant).strip().lower(),
        tokens=_as_tokens(raw.get("tokens"), d.tokens),
        api_host=_as_str(raw.get("api_host"), d.api_host),
        api_port=_as_int(raw.get("api_port"), d.api_port),
        log_level=_as_str(raw.get("log_level"), d.log_level),
    )

    validate_ledger_config(cfg)
    return cfg


def load_ledger_config(*, config_path: Optional[str] = None) -> LedgerConfig:
    p = config_path or os.environ.get("CROWDFUND_CONFIG_PATH")
    if p:
        return read_ledger_config_file(p)

    d = default_ledger_config()
    cfg = LedgerConfig(
        ledger_id=_as_str(os.environ.get("CROWDFUND_LEDGER_ID"), d.ledger_id),
        mode=_as_str(os.environ.get("CROWDFUND_MODE"), d.mode).strip().lower(),
        ledger_address=_as_str(os.environ.get("CROWDFUND_LEDGER_ADDRESS"), d.ledger_address),
        variant=_as_str(os.environ.get("CROWDFUND_VARIANT"), d.variant).strip().lower(),
        tokens=_as_tokens(os.environ.get("CROWDFUND_TOKENS"), d.tokens),
        api_host=_as_str(os.environ.get("CROWDFUND_API_HOST"), d.api_host),
        api_port=_as_int(os.environ.get("CROWDFUND_API_PORT"), d.api_port),
        log_level=_as_str(os.environ.get("CROWDFUND_LOG_LEVEL"), d.log_level),
    )
    validate_ledger_config(cfg)
    return cfg
