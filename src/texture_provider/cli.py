"""Command-line front end for the texture provider."""

import logging
import uuid
from pathlib import Path
from typing import Annotated

import aiofiles
import typer
from rich.console import Console

from texture_provider.core.config import Settings
from texture_provider.core.database import DatabaseManager
from texture_provider.core.exceptions import (
    BackendUnavailableError,
    InvalidTextureError,
    MisconfiguredError,
    NotFoundError,
)
from texture_provider.core.logging_config import setup_logging
from texture_provider.models.textures import RetrievedTextureBytes, TextureKind, UploadOptions
from texture_provider.services import texture_service
from texture_provider.state import open_app_state
from texture_provider.utils.async_typer import AsyncTyper

logger = logging.getLogger(__name__)

app = AsyncTyper(
    name="texture-provider",
    help="Store textures and look them up through the configured retrieval sources.",
    no_args_is_help=True,
    rich_markup_mode="markdown",
)


def get_settings() -> Settings:
    """Load settings from the environment and .env."""
    return Settings()


def _parse_kind(value: str) -> TextureKind:
    try:
        return TextureKind.parse(value)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e


KindArgument = Annotated[TextureKind, typer.Argument(parser=_parse_kind, help="SKIN or CAPE.", show_default=False)]
OutputOption = Annotated[Path, typer.Option("--output", "-o", help="File to write the texture to.", dir_okay=False)]


def _fail(message: str, code: int = 1) -> typer.Exit:
    typer.secho(message, fg=typer.colors.RED, err=True)
    return typer.Exit(code)


async def _write_texture(texture: RetrievedTextureBytes, output: Path) -> None:
    async with aiofiles.open(output, "wb") as f:
        await f.write(texture.data)
    typer.secho(f"Wrote {len(texture.data)} bytes ({texture.digest}) to {output}", fg=typer.colors.GREEN, err=True)


@app.callback()
def main_callback(
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level", "-l", help="Logging level, e.g. DEBUG or INFO.", envvar="TEXTURE_PROVIDER_LOG_LEVEL"
        ),
    ] = None,
):
    """Configure logging for every command."""
    setup_logging(log_level)


@app.command(name="init-db")
async def cli_init_db():
    """Create the database tables if they do not exist."""
    settings = get_settings()
    db = DatabaseManager(settings.DATABASE_URL)
    try:
        await db.create_db_and_tables()
    finally:
        await db.dispose()
    typer.secho("Database tables are ready.", fg=typer.colors.GREEN)


@app.command(name="upload")
async def cli_upload(
    kind: KindArgument,
    file: Annotated[Path, typer.Argument(exists=True, dir_okay=False, readable=True, help="PNG file to upload.")],
    user: Annotated[uuid.UUID, typer.Option("--user", "-u", help="UUID of the owning user.")],
    slim: Annotated[bool, typer.Option("--slim", help="Mark a skin as using the slim arm model.")] = False,
    username: Annotated[str | None, typer.Option("--username", help="Also cache this username for the user.")] = None,
):
    """Upload a texture for a user and make it their current texture of that kind."""
    async with aiofiles.open(file, "rb") as f:
        data = await f.read()

    try:
        async with open_app_state(get_settings()) as state:
            texture = await texture_service.upload_texture(
                state.storage, state.db, user, kind, data, UploadOptions(model_slim=slim)
            )
            if username:
                await texture_service.record_username(state.db, user, username)
    except InvalidTextureError as e:
        raise _fail(f"Error: {e}", code=2) from e
    except MisconfiguredError as e:
        raise _fail(f"Configuration error: {e}", code=2) from e
    except BackendUnavailableError as e:
        raise _fail(f"Error: {e}") from e

    Console().print_json(data=texture.to_response())


@app.command(name="get")
async def cli_get(
    user: Annotated[uuid.UUID, typer.Argument(help="UUID of the user.")],
    kind: Annotated[
        TextureKind | None,
        typer.Argument(parser=_parse_kind, help="Only this kind (SKIN or CAPE).", show_default=False),
    ] = None,
):
    """Print where a user's textures live, as JSON keyed by kind."""
    try:
        async with open_app_state(get_settings()) as state:
            if kind is None:
                textures = await texture_service.list_textures(state.retriever, user)
            else:
                textures = {kind: await texture_service.get_texture(state.retriever, user, kind)}
    except NotFoundError as e:
        raise _fail(str(e)) from e
    except MisconfiguredError as e:
        raise _fail(f"Configuration error: {e}", code=2) from e

    if not textures:
        raise _fail(f"No textures found for user {user}")
    Console().print_json(data={str(k): texture.to_response() for k, texture in textures.items()})


@app.command(name="download")
async def cli_download(
    kind: KindArgument,
    user: Annotated[uuid.UUID, typer.Argument(help="UUID of the user.")],
    output: OutputOption,
):
    """Write a user's texture of the given kind to a file."""
    try:
        async with open_app_state(get_settings()) as state:
            texture = await texture_service.get_texture_bytes(state.retriever, user, kind)
    except NotFoundError as e:
        raise _fail(str(e)) from e
    except MisconfiguredError as e:
        raise _fail(f"Configuration error: {e}", code=2) from e
    await _write_texture(texture, output)


@app.command(name="download-digest")
async def cli_download_digest(
    digest: Annotated[str, typer.Argument(help="Content digest of the texture.")],
    output: OutputOption,
):
    """Write the texture stored under a digest to a file."""
    try:
        async with open_app_state(get_settings()) as state:
            texture = await texture_service.get_texture_bytes_by_digest(state.retriever, digest.lower())
    except NotFoundError as e:
        raise _fail(str(e)) from e
    except MisconfiguredError as e:
        raise _fail(f"Configuration error: {e}", code=2) from e
    await _write_texture(texture, output)


@app.command(name="download-username")
async def cli_download_username(
    username: Annotated[str, typer.Argument(help="Display name of the player.")],
    kind: KindArgument,
    output: OutputOption,
):
    """Write the texture of a player looked up by display name to a file."""
    try:
        async with open_app_state(get_settings()) as state:
            texture = await texture_service.get_texture_bytes_by_username(state.retriever, username, kind)
    except NotFoundError as e:
        raise _fail(str(e)) from e
    except MisconfiguredError as e:
        raise _fail(f"Configuration error: {e}", code=2) from e
    await _write_texture(texture, output)


def run_cli_directly():
    """Run the CLI application."""
    app()


if __name__ == "__main__":
    run_cli_directly()
