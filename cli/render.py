from __future__ import annotations

from typing import Any, Dict, Iterable, List

import typer

_METRICS = (
    ("temperature", "Temperature"),
    ("humidity", "Humidity"),
    ("lightIntensity", "LightIntensity"),
    ("phLevel", "PhLevel"),
)


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def render_record(payload: Dict[str, Any]) -> None:
    in_range = payload.get("allInRange")
    echo_heading(f"Tray {payload.get('trayId')}")
    echo_key_values(
        [
            ("id", payload.get("id")),
            ("plant_type", payload.get("plantType")),
            ("timestamp", payload.get("timestamp")),
            ("tolerance_percentage", payload.get("tolerancePercentage")),
        ]
    )
    for key, suffix in _METRICS:
        actual = payload.get(f"actual{suffix}")
        target = payload.get(f"target{suffix}")
        deviation = payload.get(f"{key}Deviation")
        flag = "ok" if payload.get(f"is{suffix}InRange") else "OUT OF RANGE"
        typer.echo(f"  - {key}: {actual} (target {target}, deviation {deviation}%) {flag}")
    typer.secho(
        "All metrics in range." if in_range else "Some metrics are out of range.",
        fg=typer.colors.GREEN if in_range else typer.colors.YELLOW,
    )


def render_records(records: List[Dict[str, Any]]) -> None:
    if not records:
        typer.echo("No records available.")
        return
    for index, record in enumerate(records):
        if index:
            typer.echo()
        render_record(record)
