"""
MultiQC custom content for ampliconplot runs.

MultiQC picks up TSV files whose names end in `_mqc.tsv` and reads their
section configuration from YAML embedded in leading `#` comment lines.

Reference: https://multiqc.info/docs/custom_content/

File format:
    # id: 'ampliconplot_summary'
    # section_name: 'Amplicon statistics'
    # plot_type: 'table'
    Sample	total_reads	mean_depth	mispriming_pct
    sample1	12000	431.5	1.2
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import polars as pl
import yaml

from .errors import OutputError

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from .samples import SampleBuffer

SUMMARY_CONFIG: dict[str, Any] = {
    "id": "ampliconplot_summary",
    "section_name": "Amplicon statistics",
    "description": "Per-sample totals from samtools ampliconstats.",
    "plot_type": "table",
    "pconfig": {
        "namespace": "ampliconplot",
    },
    "headers": {
        "total_reads": {
            "title": "Reads",
            "description": "Reads assigned to any amplicon",
            "format": "{:,.0f}",
            "scale": "Blues",
        },
        "mean_depth": {
            "title": "Mean depth",
            "description": "Mean of the per-amplicon mean depths",
            "format": "{:,.1f}",
            "scale": "Greens",
        },
        "mispriming_pct": {
            "title": "Mis-primed",
            "description": "Smoothed percentage of templates with mismatched primers",
            "format": "{:,.2f}",
            "suffix": "%",
            "scale": "OrRd",
            "min": 0,
            "max": 100,
        },
    },
}

SUMMARY_SCHEMA = {
    "Sample": pl.Utf8,
    "total_reads": pl.Float64,
    "mean_depth": pl.Float64,
    "mispriming_pct": pl.Float64,
}


def summary_table(samples: Iterable[SampleBuffer]) -> pl.DataFrame:
    """One row per sample with read total, mean depth and mis-priming."""
    return pl.DataFrame(
        [tuple(sample.summary_row().values()) for sample in samples],
        schema=SUMMARY_SCHEMA,
        orient="row",
    ).with_columns(
        pl.col("mean_depth").round(2),
        pl.col("mispriming_pct").round(3),
    )


def write_summary_tsv(samples: Iterable[SampleBuffer], output_path: Path) -> Path:
    """
    Write the per-sample summary as a MultiQC custom content TSV.

    Args:
        samples: Sample buffers in report order
        output_path: Path to write, conventionally ending in `_mqc.tsv`

    Returns:
        Path to the written file
    """
    lines = []
    yaml_str = yaml.dump(SUMMARY_CONFIG, default_flow_style=False, sort_keys=False)
    for yaml_line in yaml_str.splitlines():
        lines.append(f"# {yaml_line}")

    table = summary_table(samples).write_csv(separator="\t", null_value="")

    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text("\n".join(lines) + "\n" + table, encoding="utf8")
    except OSError as e:
        raise OutputError(output_path, e.strerror or str(e)) from e

    return output_path
