"""Event Wall CLI — post to the wall and inspect it from a terminal.

Usage:
    eventwall token --user-id 42 --name Alice      # Mint a dev access token
    eventwall media                                 # Latest uploads
    eventwall messages                              # Message board
    eventwall stats                                 # Photo / video / message counts
    eventwall message "Congratulations!"            # Post a message
    eventwall comment "So happy for you" --color "#FF6B6B"
    eventwall upload ./photo.jpg                    # Upload a photo or video

Writes need a token: pass --token or set EVENTWALL_TOKEN.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import mimetypes
import os
import random
import sys
from pathlib import Path
from typing import Optional

import click
import httpx

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:5001"

COMMENT_COLORS = [
    "#FF6B6B", "#4ECDC4", "#45B7D1", "#FFA07A", "#98D8C8", "#F7DC6F",
    "#BB8FCE", "#85C1E2", "#F8B739", "#52B788", "#FF99C9", "#A8E6CF",
]


def _api_url() -> str:
    return os.environ.get("EVENTWALL_API_URL", DEFAULT_API_URL).rstrip("/")


def _client(token: Optional[str] = None) -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the Event Wall backend."""
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    return httpx.AsyncClient(base_url=_api_url(), headers=headers, timeout=120.0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from synchronous Click handler.

    Handles nested event loops (e.g. when invoked via Click CliRunner
    inside an existing async context like tests) by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _require_token(token: Optional[str]) -> str:
    tok = token or os.environ.get("EVENTWALL_TOKEN")
    if not tok:
        click.secho(
            "Error: --token required (or set EVENTWALL_TOKEN env var)",
            fg="red",
            err=True,
        )
        sys.exit(1)
    return tok


def _check(r: httpx.Response) -> dict | list:
    """Return the JSON body, or print the API's error and exit."""
    if r.is_success:
        return r.json()
    try:
        detail = r.json().get("detail", r.text)
    except (ValueError, AttributeError):
        detail = r.text
    if not isinstance(detail, str):
        detail = json.dumps(detail)
    click.secho(f"Error {r.status_code}: {detail}", fg="red", err=True)
    sys.exit(1)


def _print_table(rows: list[dict], columns: list[tuple[str, str, int]]):
    """Print a simple ASCII table.

    columns: list of (header, dict_key, width)
    """
    header = "  ".join(h.ljust(w) for h, _, w in columns)
    click.secho(header, bold=True)
    click.echo("-" * len(header))
    for row in rows:
        line = "  ".join(str(row.get(k) or "—")[:w].ljust(w) for _, k, w in columns)
        click.echo(line)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version="0.1.0", prog_name="eventwall")
def main():
    """Event Wall — live photo wall, message board, and floating comments."""


# ---------------------------------------------------------------------------
# eventwall token
# ---------------------------------------------------------------------------


@main.command()
@click.option("--user-id", "-u", required=True, help="User id to put in the token")
@click.option("--name", "-n", required=True, help="Display name shown on the wall")
@click.option("--email", "-e", help="Email (optional)")
@click.option("--minutes", "-m", type=int, help="Lifetime in minutes")
def token(user_id: str, name: str, email: Optional[str], minutes: Optional[int]):
    """Mint an access token signed with EVENTWALL_JWT_SECRET (for local testing)."""
    from eventwall.auth.jwt import create_access_token

    click.echo(create_access_token(user_id, name, email=email, expires_minutes=minutes))


# ---------------------------------------------------------------------------
# Read commands
# ---------------------------------------------------------------------------


@main.command()
@click.option("--limit", "-l", default=20, help="Max results")
def media(limit: int):
    """List the latest uploads, newest first."""
    _run(_media_impl(limit))


async def _media_impl(limit: int):
    async with _client() as c:
        items = _check(await c.get("/api/v1/media", params={"limit": limit}))

    if not items:
        click.echo("No media yet.")
        return

    click.secho(f"Media ({len(items)}):", bold=True)
    click.echo()
    _print_table(items, [
        ("ID", "id", 6),
        ("TYPE", "mediaType", 6),
        ("UPLOADER", "uploader", 16),
        ("FILE", "originalName", 30),
        ("CLOUD", "cloudUrl", 8),
        ("UPLOADED", "uploadTime", 19),
    ])


@main.command()
@click.option("--limit", "-l", default=20, help="Max results")
def messages(limit: int):
    """Show the message board, newest first."""
    _run(_messages_impl(limit))


async def _messages_impl(limit: int):
    async with _client() as c:
        items = _check(await c.get("/api/v1/messages", params={"limit": limit}))

    if not items:
        click.echo("No messages yet.")
        return

    for m in items:
        when = str(m.get("createdAt", ""))[:19].replace("T", " ")
        click.echo(f"  {click.style(m['userName'], fg='cyan', bold=True)}  {when}")
        click.echo(f"    {m['messageText']}")


@main.command()
def stats():
    """Photo, video, and message counts."""
    _run(_stats_impl())


async def _stats_impl():
    async with _client() as c:
        data = _check(await c.get("/api/v1/statistics"))
    click.echo(f"  Photos:   {data['photoCount']}")
    click.echo(f"  Videos:   {data['videoCount']}")
    click.echo(f"  Messages: {data['messageCount']}")


# ---------------------------------------------------------------------------
# Write commands
# ---------------------------------------------------------------------------


@main.command()
@click.argument("text")
@click.option("--token", "-t", "tok", help="Access token (or set EVENTWALL_TOKEN)")
def message(text: str, tok: Optional[str]):
    """Post TEXT to the message board."""
    _run(_message_impl(text, _require_token(tok)))


async def _message_impl(text: str, tok: str):
    async with _client(tok) as c:
        msg = _check(await c.post("/api/v1/messages", json={"messageText": text}))
    click.secho(f"Message #{msg['id']} posted", fg="green")


@main.command()
@click.argument("text")
@click.option("--color", "-c", help="Hex color like #FF6B6B (random if omitted)")
@click.option("--position", "-p", type=float, help="Vertical lane 0-100 (random if omitted)")
@click.option("--token", "-t", "tok", help="Access token (or set EVENTWALL_TOKEN)")
def comment(text: str, color: Optional[str], position: Optional[float], tok: Optional[str]):
    """Send TEXT floating across every screen."""
    body = {
        "commentText": text,
        "color": color or random.choice(COMMENT_COLORS),
        "position": position if position is not None else random.uniform(10, 90),
    }
    _run(_comment_impl(body, _require_token(tok)))


async def _comment_impl(body: dict, tok: str):
    async with _client(tok) as c:
        data = _check(await c.post("/api/v1/comments", json=body))
    click.secho(f"Comment #{data['id']} sent", fg="green")


@main.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--token", "-t", "tok", help="Access token (or set EVENTWALL_TOKEN)")
def upload(path: Path, tok: Optional[str]):
    """Upload a photo or video file."""
    _run(_upload_impl(path, _require_token(tok)))


async def _upload_impl(path: Path, tok: str):
    mime_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    click.echo(f"Uploading {path.name} ({mime_type})...")
    async with _client(tok) as c:
        with open(path, "rb") as f:
            r = await c.post(
                "/api/v1/media",
                files={"file": (path.name, f, mime_type)},
            )
        item = _check(r)
    click.secho(f"Uploaded as #{item['id']} → {item['fileUrl']}", fg="green")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    main()
