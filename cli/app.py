from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import NoReturn, Optional

import httpx
import typer

from cli.config import CLIConfig, load_config
from cli.render import (
    echo_key_values,
    render_devices,
    render_rotation,
    render_summary,
    render_token_state,
)
from clients.registry import DeviceRegistryClient
from errors import FloorAlertsError
from logging_config import configure_logging
from mailer.mock_ses import MockSESClient, build_default_ses_client
from services.alerts import build_alert_service
from services.bot import collect_temperatures
from services.evaluator import FLOOR_STATUS_CODE, ROOM_STATUS_CODE
from services.rotation import build_token_rotator, inspect_token_state
from settings import (
    Settings,
    get_access_token_param,
    get_alert_settings,
    get_rotation_settings,
    get_settings,
)
from storage.parameter_store import (
    MockParameterStore,
    ParameterAlreadyExists,
    ParameterNotFound,
    ParameterType,
)


@dataclass
class CLIState:
    config: CLIConfig
    store: MockParameterStore
    ses: MockSESClient
    http: httpx.Client

    @property
    def settings(self) -> Settings:
        return replace(get_settings(), http_timeout=self.config.http_timeout)


app = typer.Typer(
    help="Danfoss floor heating temperature alerts.",
    context_settings={"help_option_names": ["-h", "--help"]},
)
param_app = typer.Typer(help="Inspect and provision parameter store values.")
app.add_typer(param_app, name="param")


def build_http_client(config: CLIConfig) -> httpx.Client:
    return httpx.Client(timeout=config.http_timeout)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.find_root().obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1)
    return state


def _abort(exc: Exception) -> NoReturn:
    typer.secho(f"Error: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


@app.callback()
def main(
    ctx: typer.Context,
    store_path: Optional[str] = typer.Option(
        None,
        "--store-path",
        "-s",
        help="Parameter store JSON file (defaults to PARAMETER_STORE_PATH env or ./tmp/parameters.json).",
    ),
    outbox_path: Optional[str] = typer.Option(
        None,
        "--outbox-path",
        help="Directory receiving sent emails (defaults to EMAIL_OUTBOX_PATH env or ./tmp/outbox).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds before any network call is abandoned.",
    ),
) -> None:
    """Entry point for the CLI."""
    configure_logging()
    config = load_config(store_path=store_path, outbox_path=outbox_path, timeout=timeout)
    store = MockParameterStore(
        persistence_path=Path(config.parameter_store_path) if config.parameter_store_path else None
    )
    ses = build_default_ses_client(config.email_outbox_path)
    http = build_http_client(config)
    ctx.obj = CLIState(config=config, store=store, ses=ses, http=http)
    ctx.call_on_close(http.close)


@app.command("check")
def check_command(ctx: typer.Context) -> None:
    """Fetch devices, evaluate the threshold and send alerts."""
    state = _get_state(ctx)
    try:
        service = build_alert_service(
            state.settings, get_alert_settings(), state.store, state.http, state.ses
        )
        summary = service.run()
    except FloorAlertsError as exc:
        _abort(exc)
    render_summary(summary)


@app.command("rotate")
def rotate_command(ctx: typer.Context) -> None:
    """Exchange the client credentials for a fresh access token."""
    state = _get_state(ctx)
    try:
        rotator = build_token_rotator(state.settings, get_rotation_settings(), state.store, state.http)
        result = rotator.rotate()
    except FloorAlertsError as exc:
        _abort(exc)
    render_rotation(result)


@app.command("devices")
def devices_command(
    ctx: typer.Context,
    room: bool = typer.Option(False, "--room", help="Show room temperatures instead of floor."),
    exclude: Optional[str] = typer.Option(
        None, "--exclude", help="Skip devices whose name contains this text."
    ),
) -> None:
    """List the current temperature reported by every device."""
    state = _get_state(ctx)
    try:
        registry = DeviceRegistryClient(
            state.store,
            get_access_token_param(),
            state.http,
            base_url=state.settings.registry_base_url,
            timeout=state.config.http_timeout,
        )
        devices = registry.get_devices(exclude)
    except FloorAlertsError as exc:
        _abort(exc)
    render_devices(collect_temperatures(devices, ROOM_STATUS_CODE if room else FLOOR_STATUS_CODE))


@app.command("token-status")
def token_status_command(ctx: typer.Context) -> None:
    """Report whether the stored access token is still valid."""
    state = _get_state(ctx)
    try:
        param = get_access_token_param()
    except FloorAlertsError as exc:
        _abort(exc)
    render_token_state(inspect_token_state(state.store, param))


@param_app.command("get")
def param_get_command(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Parameter name."),
    decrypt: bool = typer.Option(True, "--decrypt/--no-decrypt", help="Decrypt SecureString values."),
) -> None:
    """Print a stored parameter."""
    state = _get_state(ctx)
    try:
        parameter = state.store.get_parameter(name, with_decryption=decrypt)
    except ParameterNotFound as exc:
        _abort(exc)
    echo_key_values(
        [
            ("name", parameter.name),
            ("type", parameter.type.value),
            ("version", parameter.version),
            ("value", parameter.value),
        ]
    )


@param_app.command("put")
def param_put_command(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Parameter name."),
    value: str = typer.Argument(..., help="Parameter value."),
    secure: bool = typer.Option(False, "--secure", help="Store as a SecureString."),
    overwrite: bool = typer.Option(False, "--overwrite", help="Replace an existing value."),
) -> None:
    """Create or replace a parameter."""
    state = _get_state(ctx)
    kind = ParameterType.secure_string if secure else ParameterType.string
    try:
        version = state.store.put_parameter(name, value, type=kind, overwrite=overwrite)
    except ParameterAlreadyExists as exc:
        _abort(exc)
    typer.secho(f"Stored {name} (version {version}).", fg=typer.colors.GREEN)
