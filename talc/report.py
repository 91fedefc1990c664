from __future__ import annotations

"""
TALC report generator
---------------------
Writes a DOCX report for the loaded destinations (optionally restricted to
the engine's current filter result).

Design goals:
- Keep the analyzer usable when report dependencies are missing (lazy imports).
- Charts mirror the dashboard: stage distribution, regional distribution, a
  map snapshot colored by stage, and the lifecycle curve.
- Insights (dominant stage, emerging / mature shares, coverage) are the same
  numbers the CLI `insights` command prints.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Tuple
import os
import tempfile

from .dataset import Dataset
from .filters import FilterResult, visible_destinations
from .models import STAGES, Stage
from .regions import DEFAULT_REGIONS, RegionTable
from .views import (
    CHARACTERISTIC_FIELDS, LIFECYCLE_CURVE, STAGE_CHARACTERISTICS, STAGE_COLORS,
    ChartSeries, insights, region_series, stage_color, stage_series,
)


@dataclass
class ReportConfig:
    """High-level knobs to control how the report is written."""
    title: str = "TALC Tourism Analyzer Report"
    subtitle: str = "Tourism Area Life Cycle stages of tracked destinations"
    dataset_name: str = "destinations.csv"
    # How many rows to show in the destination preview table
    max_rows_preview: int = 20
    image_width_inches: float = 6.5


def generate_docx_report(
    dataset: Dataset,
    out_path: str,
    *,
    config: Optional[ReportConfig] = None,
    result: Optional[FilterResult] = None,
    watchlist=None,
    region_table: RegionTable = DEFAULT_REGIONS,
) -> str:
    """
    Generate a DOCX report + charts.

    With `result`, charts and tables cover the visible destinations and use
    their display stage for the selected year; otherwise the full dataset.
    """
    config = config or ReportConfig()

    # Lazy imports: only required when "report" is used.
    try:
        from docx import Document
        from docx.shared import Inches, Pt
        from docx.enum.text import WD_ALIGN_PARAGRAPH
    except ImportError as e:
        raise ImportError(
            "Missing dependency: python-docx.\n"
            "Install it with: python -m pip install python-docx"
        ) from e

    try:
        import matplotlib
        matplotlib.use("Agg")
        import matplotlib.pyplot as plt
        import numpy as np
    except ImportError as e:
        raise ImportError(
            "Missing dependency: matplotlib (and numpy).\n"
            "Install with: python -m pip install matplotlib numpy"
        ) from e

    if not len(dataset):
        raise ValueError("No destinations to report on (dataset is empty).")

    if result is not None:
        dests = visible_destinations(dataset, result)
        shown = result.display_stage
        scope = f"Current view ({len(dests)} of {len(dataset)}, year: {result.criteria.year})"
    else:
        dests = list(dataset)
        shown = None
        scope = "Full dataset"

    stages_series = stage_series(dests, shown)
    regions_series = region_series(dests, region_table)
    # insights always describe the whole dataset, whatever the scope
    facts = insights(dataset)

    # -----------------------------
    # 1) Charts
    # -----------------------------
    tmpdir = tempfile.mkdtemp(prefix="talc_report_")
    chart_paths: List[Tuple[str, str]] = []

    def _save(filename: str) -> str:
        path = os.path.join(tmpdir, filename)
        plt.tight_layout()
        plt.savefig(path, dpi=150)
        plt.close()
        return path

    def _stage_pie(series: ChartSeries) -> None:
        if not series.total:
            return
        vals = np.array(series.values, dtype=float)
        keep = vals > 0
        labels = [l for l, k in zip(series.labels, keep) if k]
        colors = [c for c, k in zip(series.colors, keep) if k]
        plt.figure()
        plt.pie(vals[keep], labels=labels, colors=colors, autopct="%1.1f%%",
                wedgeprops={"width": 0.45, "edgecolor": "white"})
        plt.title(series.title)
        chart_paths.append((series.title, _save("stage_distribution.png")))

    def _region_bar(series: ChartSeries) -> None:
        if not series.values:
            return
        x = np.arange(len(series.labels))
        plt.figure()
        plt.bar(x, series.values, color=list(series.colors))
        plt.xticks(x, series.labels, rotation=45, ha="right")
        plt.ylabel("Destinations")
        plt.title(series.title)
        chart_paths.append((series.title, _save("region_distribution.png")))

    def _map_snapshot() -> None:
        plt.figure(figsize=(10, 5))
        for s in STAGES:
            pts = [d for d in dests if (shown.get(d.identity, d.stage) if shown else d.stage) is s]
            if not pts:
                continue
            plt.scatter([d.longitude for d in pts], [d.latitude for d in pts],
                        s=[80 if d.is_country else 25 for d in pts],
                        c=stage_color(s), edgecolors="white", linewidths=0.5, label=s.label)
        plt.xlim(-180, 180)
        plt.ylim(-90, 90)
        plt.xlabel("Longitude")
        plt.ylabel("Latitude")
        plt.legend(loc="lower left", fontsize=8)
        plt.title("Destinations by stage")
        chart_paths.append(("Map snapshot", _save("map_snapshot.png")))

    def _lifecycle_curve() -> None:
        main = [Stage.EXPLORATION, Stage.INVOLVEMENT, Stage.DEVELOPMENT, Stage.CONSOLIDATION, Stage.STAGNATION]
        x = np.arange(len(main))
        plt.figure()
        plt.plot(x, [LIFECYCLE_CURVE[s] for s in main], color="#2c3e50", linewidth=3)
        plt.scatter(x, [LIFECYCLE_CURVE[s] for s in main], c=[STAGE_COLORS[s] for s in main], s=80, zorder=3)
        # decline and rejuvenation branch out of stagnation
        last = x[-1]
        for s in (Stage.DECLINE, Stage.REJUVENATION):
            plt.plot([last, last + 1, last + 2],
                     [LIFECYCLE_CURVE[Stage.STAGNATION], (LIFECYCLE_CURVE[Stage.STAGNATION] + LIFECYCLE_CURVE[s]) / 2, LIFECYCLE_CURVE[s]],
                     linestyle="--", color=STAGE_COLORS[s], label=s.label)
        plt.xticks(x, [s.label for s in main], rotation=30, ha="right")
        plt.yticks([])
        plt.ylabel("Number of tourists")
        plt.legend(loc="upper left")
        plt.title("Tourism Area Life Cycle")
        chart_paths.append(("Tourism Area Life Cycle", _save("lifecycle.png")))

    _stage_pie(stages_series)
    _region_bar(regions_series)
    if dests:
        _map_snapshot()
    _lifecycle_curve()

    # -----------------------------
    # 2) Build DOCX report
    # -----------------------------
    doc = Document()
    style = doc.styles["Normal"]
    style.font.name = "Calibri"
    style.font.size = Pt(11)

    def _center_title(text: str, size: int, bold: bool = False, italic: bool = False) -> None:
        p = doc.add_paragraph()
        r = p.add_run(text)
        r.bold = bold
        r.italic = italic
        r.font.size = Pt(size)
        p.alignment = WD_ALIGN_PARAGRAPH.CENTER

    def _kv(key: str, value: str) -> None:
        p = doc.add_paragraph()
        r = p.add_run(f"{key}: ")
        r.bold = True
        p.add_run(value)

    def _table(header: List[str], rows: List[List[str]]) -> None:
        t = doc.add_table(rows=1, cols=len(header))
        for i, h in enumerate(header):
            t.rows[0].cells[i].text = h
        for row in rows:
            cells = t.add_row().cells
            for i, v in enumerate(row):
                cells[i].text = v

    _center_title(config.title, 22, bold=True)
    _center_title(config.subtitle, 12, italic=True)

    doc.add_paragraph("")
    _kv("Dataset", config.dataset_name)
    _kv("Scope", scope)
    _kv("Destinations loaded", str(len(dataset)))
    _kv("Countries covered", str(len(dataset.countries())))

    doc.add_heading("Insights" if result is None else "Insights (full dataset)", level=1)
    _table(["Insight", "Value", "Detail"], [
        ["Dominant Stage",
         facts.dominant_stage.label if facts.dominant_stage else "-",
         f"{facts.dominant_count} destinations are in this stage"],
        ["Emerging Destinations", f"{facts.emerging_percent}%", "In Exploration or Involvement stages"],
        ["Mature Markets", f"{facts.mature_percent}%", "In Consolidation or Stagnation stages"],
        ["Data Coverage", f"{facts.country_count} countries",
         f"{facts.location_count} specific locations tracked"],
    ])

    doc.add_heading("Stage counts", level=1)
    _table(["Stage", "Destinations"], [[l, str(v)] for l, v in zip(stages_series.labels, stages_series.values)])

    doc.add_heading("Visualizations", level=1)
    for title, path in chart_paths:
        doc.add_paragraph(title)
        doc.add_picture(path, width=Inches(config.image_width_inches))

    doc.add_heading("Stage characteristics", level=1)
    _table(["Stage"] + list(CHARACTERISTIC_FIELDS),
           [[s.label] + list(STAGE_CHARACTERISTICS[s]) for s in STAGES])

    doc.add_heading("Destinations", level=1)
    preview = dests[:config.max_rows_preview]
    _table(["Name", "Type", "Country", "Stage"],
           [[d.name, d.entry_type.value, d.country,
             (shown.get(d.identity, d.stage) if shown else d.stage).label] for d in preview])
    if len(dests) > len(preview):
        doc.add_paragraph(f"... ({len(dests)} total, showing {len(preview)})")

    if watchlist is not None and len(watchlist):
        doc.add_heading("Watch list", level=1)
        _table(["Name", "Country", "Stage", "Added"],
               [[e.name, e.country, e.stage, e.added_at] for e in watchlist.list()])

    # Reproducibility footer
    from . import __version__ as talc_version
    doc.add_paragraph("")
    doc.add_paragraph(f"talc version: {talc_version}")
    doc.add_paragraph(f"Report generated at: {datetime.now().isoformat(timespec='seconds')}")

    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    doc.save(out_path)
    return out_path
