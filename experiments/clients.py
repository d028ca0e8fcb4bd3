"""
Credential loading and the per-run set of external clients.

Every client is built once inside `open_run_context` and shared by all
experiments of the run; the database engine and API clients are released
when the context exits, whether the run succeeded or not.
"""

from __future__ import annotations

import base64
import binascii
import json
import os
from contextlib import AsyncExitStack, asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Awaitable, Callable, Iterable, TypeVar

from dotenv import load_dotenv
from google import genai
from google.cloud.translate_v3 import TranslationServiceAsyncClient
from google.oauth2 import service_account
from openai import AsyncOpenAI
from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

import config

load_dotenv()

T = TypeVar("T")

DATABASE_URL = "DATABASE_URL"
OPENAI_API_KEY = "OPENAI_API_KEY"
GOOGLE_TRANSLATE_CREDENTIALS = "GOOGLE_TRANSLATE_CREDENTIALS"
GEMINI_API_KEY = "GEMINI_API_KEY"

_SERVICE_ACCOUNT_FIELDS = ("client_email", "private_key", "project_id")


@dataclass(frozen=True)
class Credentials:
    database_url: str
    openai_api_key: str | None = None
    google_service_account: dict[str, Any] | None = None
    gemini_api_key: str | None = None


@dataclass
class RunContext:
    """Clients shared read-only by every experiment in a run."""

    engine: AsyncEngine
    openai: AsyncOpenAI | None = None
    translate: TranslationServiceAsyncClient | None = None
    google_project: str | None = None
    gemini: genai.Client | None = None


# ── Credentials ────────────────────────────────────────────────────────────────

def _require(name: str) -> str:
    value = os.getenv(name)
    if not value:
        raise EnvironmentError(
            f"{name} is not set. "
            "Copy .env.example to .env and fill it in."
        )
    return value


def decode_service_account(encoded: str) -> dict[str, Any]:
    """Decode the base64 service-account JSON used for Google Translate."""
    try:
        info = json.loads(base64.b64decode(encoded, validate=True).decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise EnvironmentError(
            f"{GOOGLE_TRANSLATE_CREDENTIALS} must be base64-encoded service-account JSON."
        ) from exc

    if not isinstance(info, dict):
        raise EnvironmentError(f"{GOOGLE_TRANSLATE_CREDENTIALS} does not decode to a JSON object.")

    missing = [key for key in _SERVICE_ACCOUNT_FIELDS if not info.get(key)]
    if missing:
        raise EnvironmentError(
            f"{GOOGLE_TRANSLATE_CREDENTIALS} is missing: {', '.join(missing)}"
        )
    return info


def load_credentials(required: Iterable[str]) -> Credentials:
    """
    Read the secrets needed for a run from the environment.

    Args:
        required: environment variable names the selected experiments need.
                  DATABASE_URL is always required.

    Raises:
        EnvironmentError: if a required value is missing or malformed.
    """
    required = set(required)
    openai_key = gemini_key = None
    service_account_info = None

    database_url = _require(DATABASE_URL)
    if OPENAI_API_KEY in required:
        # OPENAI_KEY is the name older .env files use.
        openai_key = os.getenv(OPENAI_API_KEY) or os.getenv("OPENAI_KEY")
        if not openai_key:
            _require(OPENAI_API_KEY)
    if GOOGLE_TRANSLATE_CREDENTIALS in required:
        service_account_info = decode_service_account(_require(GOOGLE_TRANSLATE_CREDENTIALS))
    if GEMINI_API_KEY in required:
        gemini_key = _require(GEMINI_API_KEY)

    return Credentials(
        database_url=database_url,
        openai_api_key=openai_key,
        google_service_account=service_account_info,
        gemini_api_key=gemini_key,
    )


# ── Database ───────────────────────────────────────────────────────────────────

def async_database_url(url: str) -> tuple[URL, dict[str, Any]]:
    """
    Point a libpq-style URL at the asyncpg driver.

    asyncpg rejects libpq's `sslmode` query parameter, so it is moved into
    the `ssl` connect argument.
    """
    parsed = make_url(url)
    if parsed.drivername in ("postgres", "postgresql"):
        parsed = parsed.set(drivername="postgresql+asyncpg")

    connect_args: dict[str, Any] = {}
    sslmode = parsed.query.get("sslmode")
    if sslmode:
        connect_args["ssl"] = sslmode
        parsed = parsed.difference_update_query(["sslmode"])
    return parsed, connect_args


def create_engine(database_url: str) -> AsyncEngine:
    url, connect_args = async_database_url(database_url)
    # One connection for the whole run; concurrent queries wait for it.
    return create_async_engine(
        url,
        pool_size=1,
        max_overflow=0,
        connect_args=connect_args,
    )


# ── Run context ────────────────────────────────────────────────────────────────

@asynccontextmanager
async def open_run_context(credentials: Credentials) -> AsyncIterator[RunContext]:
    """Build the clients the credentials allow for and release them on exit."""
    async with AsyncExitStack() as stack:
        engine = create_engine(credentials.database_url)
        stack.push_async_callback(engine.dispose)
        context = RunContext(engine=engine)

        if credentials.openai_api_key:
            context.openai = AsyncOpenAI(api_key=credentials.openai_api_key)
            stack.push_async_callback(context.openai.close)

        if credentials.google_service_account:
            info = credentials.google_service_account
            context.translate = TranslationServiceAsyncClient(
                credentials=service_account.Credentials.from_service_account_info(info),
            )
            context.google_project = info["project_id"]
            stack.push_async_callback(context.translate.transport.close)

        if credentials.gemini_api_key:
            context.gemini = genai.Client(api_key=credentials.gemini_api_key)
            stack.push_async_callback(context.gemini.aio.aclose)

        yield context


async def call_api(func: Callable[..., Awaitable[T]], /, *args: Any, **kwargs: Any) -> T:
    """
    Await an upstream API call, making up to config.API_ATTEMPTS attempts.

    The last error is re-raised unchanged once attempts run out.
    """
    async for attempt in AsyncRetrying(
        retry=retry_if_exception_type(Exception),
        wait=wait_exponential(multiplier=1, min=2, max=30),
        stop=stop_after_attempt(max(1, config.API_ATTEMPTS)),
        reraise=True,
    ):
        with attempt:
            result = await func(*args, **kwargs)
    return result
