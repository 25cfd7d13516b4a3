"""Jinja2 rendering of alert messages."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Sequence

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from models.records import DeviceAboveThreshold

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"


@lru_cache
def get_environment() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=select_autoescape(enabled_extensions=("html.j2",), default_for_string=False),
        undefined=StrictUndefined,
    )


def render_alert(
    template_name: str,
    devices: Sequence[DeviceAboveThreshold],
    threshold_celsius: float,
) -> str:
    template = get_environment().get_template(template_name)
    return template.render(devices=devices, threshold_celsius=threshold_celsius)
