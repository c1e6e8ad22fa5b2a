#!/usr/bin/env python3
"""
Check that the completion API key from .env is valid and working.

Loads .env from the project root (parent of scripts/), then sends one tiny
chat completion to the configured endpoint with every catalog role model.
Run this before generating content to avoid "401 Unauthorized" turning every
request into fallback content.

Usage:
    python scripts/check_env.py
    # or from project root:
    python -m scripts.check_env
"""

from __future__ import annotations

import asyncio
import os
import sys
from pathlib import Path

import httpx
from dotenv import load_dotenv

# Project root = parent of scripts/
PROJECT_ROOT = Path(__file__).resolve().parent.parent
ENV_FILE = PROJECT_ROOT / ".env"

DEFAULT_API_BASE = "https://api.groq.com/openai/v1"

ENV_KEYS = (
    "GROQ_API_KEY",
    "LLM_API_BASE",
)

# One model per catalog role: fastest, most capable, light general-purpose
CHECK_MODELS = (
    "llama-3.1-8b-instant",
    "llama-3.3-70b-versatile",
    "llama3-8b-8192",
)


def load_env() -> bool:
    """Load .env into os.environ (override=True so we test keys from .env). Returns True if file exists."""
    if not ENV_FILE.exists():
        print(f"[FAIL] No .env found at {ENV_FILE}")
        return False
    in_shell = [k for k in ENV_KEYS if os.environ.get(k)]
    if in_shell:
        print("[WARN] These are set in your shell and override .env when you run the CLI:")
        for k in in_shell:
            print(f"       {k}")
        print("       To use .env instead, run: unset " + " ".join(in_shell))
        print()
    load_dotenv(ENV_FILE, override=True)
    return True


def mask(key: str) -> str:
    """Mask key for display."""
    val = os.environ.get(key, "")
    if not val or len(val) < 8:
        return "(not set)" if not val else "(too short)"
    return f"{val[:6]}...{val[-4:]}"


async def check_model(client: httpx.AsyncClient, base: str, key: str, model: str) -> tuple[bool, str]:
    """POST a minimal chat completion for one model."""
    try:
        r = await client.post(
            f"{base}/chat/completions",
            headers={"Authorization": f"Bearer {key}", "Content-Type": "application/json"},
            json={"model": model, "max_tokens": 5, "messages": [{"role": "user", "content": "Say OK"}]},
        )
    except httpx.HTTPError as e:
        return False, str(e)
    if r.status_code == 200:
        return True, "OK"
    if r.status_code == 401:
        return False, "Invalid or expired key (401)"
    if r.status_code == 404:
        # Key is valid if we got 404 not 401; the model may have been retired
        return True, "OK (key valid; model not available)"
    if r.status_code == 429:
        return False, "Rate limited (429)"
    return False, f"HTTP {r.status_code}: {r.text[:200]}"


def warn_duplicate_keys_in_env() -> None:
    """Warn if any ENV_KEYS appear more than once in .env (last occurrence wins with dotenv)."""
    if not ENV_FILE.exists():
        return
    seen: dict[str, list[int]] = {}
    with open(ENV_FILE) as f:
        for i, line in enumerate(f, 1):
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key = line.partition("=")[0].strip()
            if key in ENV_KEYS:
                seen.setdefault(key, []).append(i)
    dupes = {k: v for k, v in seen.items() if len(v) > 1}
    if dupes:
        print("[WARN] Duplicate keys in .env (the last value wins; remove duplicates to avoid using an old key):")
        for k, lines in dupes.items():
            print(f"       {k} on lines {lines}")
        print()


async def main() -> int:
    print("Loading .env from", ENV_FILE)
    warn_duplicate_keys_in_env()
    if not load_env():
        return 1

    key = os.environ.get("GROQ_API_KEY", "").strip()
    base = (os.environ.get("LLM_API_BASE", "") or DEFAULT_API_BASE).strip().rstrip("/")
    print()
    print(f"  Endpoint: {base}")
    print(f"  Key:      {mask('GROQ_API_KEY')}")
    print()
    if not key:
        print("[FAIL] GROQ_API_KEY not set")
        return 1

    failed = 0
    async with httpx.AsyncClient(timeout=15.0) as client:
        for model in CHECK_MODELS:
            ok, msg = await check_model(client, base, key, model)
            status = "[OK]  " if ok else "[FAIL]"
            if not ok:
                failed += 1
            print(f"  {status} {model}")
            if not ok:
                print(f"         → {msg}")

    print()
    if failed:
        print("Fix the failing key above, then run: python scripts/check_env.py")
        return 1
    print("The configured key is valid.")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
