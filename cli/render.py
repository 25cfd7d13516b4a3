from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable, Sequence, Tuple

import typer

from models.records import CheckSummary, RotationResult, TokenState


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def render_summary(summary: CheckSummary) -> None:
    echo_heading("Temperature Check")
    echo_key_values(
        [
            ("total_devices", summary.total_devices),
            ("devices_checked", summary.devices_checked),
            ("devices_above_threshold", summary.devices_above_threshold),
        ]
    )

    typer.echo()
    echo_heading("Notifications")
    if not summary.deliveries and not summary.failed_channels:
        typer.echo("No notifications sent.")
        return
    for tally in summary.deliveries:
        typer.echo(
            f"  - {tally.channel}: success={tally.success_count} failed={tally.failure_count}"
        )
    for channel in summary.failed_channels:
        typer.secho(f"  - {channel}: channel failed", fg=typer.colors.RED)


def render_devices(readings: Sequence[Tuple[str, float]]) -> None:
    echo_heading("Devices")
    if not readings:
        typer.echo("No readings available.")
        return
    for name, celsius in sorted(readings, key=lambda item: item[0]):
        typer.echo(f"  - {name}: {celsius:.1f}°C")


def render_rotation(result: RotationResult) -> None:
    expires = datetime.fromtimestamp(result.expires_at, tz=timezone.utc)
    typer.secho(
        f"Successfully rotated access token. Expires at: {result.expires_at} ({expires.isoformat()})",
        fg=typer.colors.GREEN,
    )


def render_token_state(state: TokenState) -> None:
    color = typer.colors.GREEN if state is TokenState.valid else typer.colors.YELLOW
    typer.secho(f"token_state: {state.value}", fg=color)
