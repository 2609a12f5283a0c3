"""JSONL event sink and per-run Plotly report generator."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pandas as pd
import plotly.express as px

from stockanalysis.domain.events import RunEvent


class JsonlEventSink:
    """Append-only JSONL writer."""

    def __init__(self, path: str) -> None:
        output_path = Path(path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        self.path = output_path

    def emit(self, event: RunEvent) -> None:
        record = event.to_record()
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record, sort_keys=True))
            handle.write("\n")


def load_events(path: str | Path) -> list[dict[str, Any]]:
    """Load JSONL records from disk."""
    records: list[dict[str, Any]] = []
    input_path = Path(path)
    if not input_path.exists():
        return records
    with input_path.open("r", encoding="utf-8") as handle:
        for line in handle:
            text = line.strip()
            if not text:
                continue
            records.append(json.loads(text))
    return records


def generate_plotly_report(events_jsonl_path: str, output_html_path: str) -> None:
    """Render confidence per symbol, coloured by recommendation, plus event counts."""
    events = load_events(events_jsonl_path)
    output = Path(output_html_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    analyses = [
        event.get("payload", {}) for event in events if event.get("event_type") == "analysis"
    ]
    if not analyses:
        empty_df = pd.DataFrame({"symbol": ["none"], "confidence_score": [0.0]})
        figure = px.bar(empty_df, x="symbol", y="confidence_score", title="No analyses recorded")
        figure.write_html(str(output), include_plotlyjs="cdn")
        return

    frame = pd.DataFrame(
        [
            {
                "symbol": payload.get("symbol", ""),
                "recommendation": payload.get("recommendation", ""),
                "trend": payload.get("trend", ""),
                "confidence_score": float(payload.get("confidence_score", 0.0)),
            }
            for payload in analyses
        ]
    )
    summary = (
        pd.DataFrame([{"event_type": event.get("event_type")} for event in events])
        .groupby("event_type", dropna=False)
        .size()
        .reset_index(name="count")
    )
    confidence = px.bar(
        frame,
        x="symbol",
        y="confidence_score",
        color="recommendation",
        hover_data=["trend"],
        range_y=[0, 1],
        title="Advisory Confidence by Symbol",
    )
    counts = px.bar(summary, x="event_type", y="count", title="Run Event Counts")
    html_parts = [
        "<html><head><meta charset='utf-8'><title>stockanalysis run report</title></head><body>",
        confidence.to_html(full_html=False, include_plotlyjs="cdn"),
        counts.to_html(full_html=False, include_plotlyjs=False),
        "</body></html>",
    ]
    output.write_text("".join(html_parts), encoding="utf-8")
