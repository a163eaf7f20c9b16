"""Main entry point for the twoauth command line interface."""

import json
import sys
from pathlib import Path
from typing import Annotated, Any

import httpx
import typer
from rich.console import Console

from twoauth._version import __version__
from twoauth.api.client import ApiClient
from twoauth.auth.exceptions import (
    AccessTokenInvalidError,
    ConfigurationIncompleteError,
    MissingRequestTokenError,
    TwoAuthError,
)
from twoauth.auth.models import ConsumerCredentials
from twoauth.auth.oauth.flow import OAuthEndpoints, OAuthFlow
from twoauth.auth.storage.file import FileTokenStore
from twoauth.cli.helpers import bold, code, dim, get_rich_toolkit
from twoauth.config.settings import ConfigurationError, Settings
from twoauth.core.http_client import HTTPClientFactory
from twoauth.core.logging import get_logger, setup_logging


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        toolkit = get_rich_toolkit()
        toolkit.print(f"twoauth {__version__}", tag="version")
        raise typer.Exit()


app = typer.Typer(
    name="twoauth",
    help="Three-legged OAuth 1.0a client for the Twitter API.",
    rich_markup_mode="rich",
    add_completion=False,
    no_args_is_help=True,
    pretty_exceptions_enable=False,
)

console = Console()
logger = get_logger(__name__)


@app.callback()
def app_main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to a TOML configuration file",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    tokens_dir: Path | None = typer.Option(
        None,
        "--tokens-dir",
        help="Directory where request and access tokens are stored",
        file_okay=False,
        dir_okay=True,
    ),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        help="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    ),
) -> None:
    """Obtain Twitter access tokens with a PIN and make signed API calls."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config
    ctx.obj["tokens_dir"] = tokens_dir
    ctx.obj["log_level"] = log_level


def load_settings(ctx: typer.Context) -> Settings:
    """Build settings from the global options and configure logging.

    Exits with status 1 on an unreadable or invalid configuration.
    """
    obj = ctx.ensure_object(dict)
    if "settings" in obj:
        return obj["settings"]  # type: ignore[no-any-return]

    try:
        settings = Settings.from_config(
            config_path=obj.get("config_path"),
            oauth={"tokens_dir": obj.get("tokens_dir")},
            logging={"level": obj.get("log_level")},
        )
    except ConfigurationError as e:
        toolkit = get_rich_toolkit()
        toolkit.print(f"Configuration error: {e}", tag="error")
        raise typer.Exit(1) from e

    setup_logging(
        json_logs=settings.logging.use_json(sys.stderr.isatty()),
        log_level_name=settings.logging.level,
        log_file=settings.logging.file,
    )
    logger.debug(
        "settings_loaded",
        tokens_dir=str(settings.oauth.tokens_dir),
        log_level=settings.logging.level,
    )
    obj["settings"] = settings
    return settings


def get_consumer_credentials(settings: Settings) -> ConsumerCredentials:
    credentials = settings.consumer_credentials()
    if not credentials.key:
        raise ConfigurationIncompleteError(
            "Consumer key must be defined (oauth.consumer_key or TWOAUTH_OAUTH__CONSUMER_KEY)."
        )
    if not credentials.secret:
        raise ConfigurationIncompleteError(
            "Consumer secret must be defined (oauth.consumer_secret or TWOAUTH_OAUTH__CONSUMER_SECRET)."
        )
    return credentials


def get_http_client(settings: Settings) -> httpx.Client:
    return HTTPClientFactory.create_client(settings=settings)


def build_flow(settings: Settings, http_client: httpx.Client) -> OAuthFlow:
    return OAuthFlow(
        get_consumer_credentials(settings),
        FileTokenStore(settings.oauth.tokens_dir),
        http_client,
        endpoints=OAuthEndpoints.from_settings(settings),
        callback=settings.oauth.callback,
    )


def build_api_client(
    settings: Settings, app_id: str, username: str, http_client: httpx.Client
) -> ApiClient:
    return ApiClient(
        get_consumer_credentials(settings),
        FileTokenStore(settings.oauth.tokens_dir),
        app_id,
        username,
        http_client,
        base_url=settings.api.base_url,
    )


def _print_payload(payload: Any) -> None:
    if payload is None:
        return
    typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))


@app.command(name="generate-request-token")
def generate_request_token(
    ctx: typer.Context,
    app_id: Annotated[
        str, typer.Argument(help="Twitter application identifier (names the token files)")
    ],
) -> None:
    """
    Obtain a request token and print the authorization URL.

    Open the URL, authorize the application and note the PIN, then run
    [bold]generate-access-token[/bold] with it.

    Examples:
        twoauth generate-request-token myapp
    """
    settings = load_settings(ctx)
    toolkit = get_rich_toolkit()

    try:
        with get_http_client(settings) as client:
            url = build_flow(settings, client).start_authorization(app_id)
    except TwoAuthError as e:
        toolkit.print(f"Cannot obtain request token: {e}", tag="error")
        raise typer.Exit(1) from e

    toolkit.print(
        f"Request token stored in {code(str(settings.oauth.tokens_dir))}", tag="request"
    )
    toolkit.print(
        "Open this URL, authorize the application and note the PIN:", tag="authorize"
    )
    typer.echo(url)


@app.command(name="generate-access-token")
def generate_access_token(
    ctx: typer.Context,
    app_id: Annotated[
        str, typer.Argument(help="Application identifier used for the request token")
    ],
    pin: Annotated[str, typer.Argument(help="PIN shown after authorizing the application")],
    username: Annotated[
        str, typer.Argument(help="Account name the access token is stored under")
    ],
) -> None:
    """
    Exchange the PIN for an access token, store and verify it.

    Examples:
        twoauth generate-access-token myapp 1234567 alice
    """
    settings = load_settings(ctx)
    toolkit = get_rich_toolkit()

    try:
        with get_http_client(settings) as client:
            grant = build_flow(settings, client).complete_authorization(
                app_id, username, pin
            )
    except MissingRequestTokenError as e:
        toolkit.print(str(e), tag="error")
        console.print(dim(f"Run: twoauth generate-request-token {app_id}"))
        raise typer.Exit(1) from e
    except AccessTokenInvalidError as e:
        toolkit.print(
            f"Access token stored but could not be verified: {e}", tag="warning"
        )
        raise typer.Exit(1) from e
    except TwoAuthError as e:
        toolkit.print(f"Cannot obtain access token: {e}", tag="error")
        raise typer.Exit(1) from e

    screen_name = grant.screen_name or grant.username
    toolkit.print(f"Authorized as {bold('@' + screen_name)}", tag="success")
    toolkit.print(
        f"Access token stored in {code(str(settings.oauth.tokens_dir))}", tag="tokens"
    )
    typer.echo(screen_name)


@app.command()
def verify(
    ctx: typer.Context,
    app_id: Annotated[str, typer.Argument(help="Application identifier")],
    username: Annotated[str, typer.Argument(help="Account name of the stored token")],
) -> None:
    """
    Check the stored access token and print the account's screen name.

    Examples:
        twoauth verify myapp alice
    """
    settings = load_settings(ctx)
    toolkit = get_rich_toolkit()

    try:
        with get_http_client(settings) as client:
            api = build_api_client(settings, app_id, username, client)
            profile = api.verify_credentials()
    except TwoAuthError as e:
        toolkit.print(f"Verification failed: {e}", tag="error")
        raise typer.Exit(1) from e

    toolkit.print(
        f"Credentials valid for {bold('@' + str(profile.get('screen_name')))}",
        tag="success",
    )
    typer.echo(profile.get("screen_name", ""))


@app.command()
def retweet(
    ctx: typer.Context,
    app_id: Annotated[str, typer.Argument(help="Application identifier")],
    username: Annotated[str, typer.Argument(help="Account that retweets")],
    tweet_id: Annotated[str, typer.Argument(help="ID of the tweet to retweet")],
) -> None:
    """
    Retweet a tweet on behalf of a stored account.

    Examples:
        twoauth retweet myapp alice 1234567890
    """
    settings = load_settings(ctx)
    toolkit = get_rich_toolkit()

    try:
        with get_http_client(settings) as client:
            payload = build_api_client(settings, app_id, username, client).retweet(
                tweet_id
            )
    except TwoAuthError as e:
        toolkit.print(f"Retweet failed: {e}", tag="error")
        raise typer.Exit(1) from e

    toolkit.print(f"Retweeted {tweet_id}", tag="success")
    _print_payload(payload)


@app.command()
def follow(
    ctx: typer.Context,
    app_id: Annotated[str, typer.Argument(help="Application identifier")],
    username: Annotated[str, typer.Argument(help="Account that follows")],
    user_id: Annotated[str, typer.Argument(help="ID of the user to follow")],
) -> None:
    """
    Follow a user on behalf of a stored account.

    Examples:
        twoauth follow myapp alice 783214
    """
    settings = load_settings(ctx)
    toolkit = get_rich_toolkit()

    try:
        with get_http_client(settings) as client:
            payload = build_api_client(settings, app_id, username, client).follow(
                user_id
            )
    except TwoAuthError as e:
        toolkit.print(f"Follow failed: {e}", tag="error")
        raise typer.Exit(1) from e

    toolkit.print(f"Following {user_id}", tag="success")
    _print_payload(payload)


def main() -> None:
    """Entry point for the ``twoauth`` console script."""
    app()


if __name__ == "__main__":
    main()
