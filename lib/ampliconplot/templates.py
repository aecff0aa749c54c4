"""
gnuplot script templates.

Templates are plain text with `str.format` fields. Literal braces needed by
gnuplot (enhanced-text exponents) are doubled. Data is passed to gnuplot as
inline datablocks (`$name << EOD ... EOD`), which requires gnuplot 5.

The two graph layouts differ only in which axis carries the amplicons. Every
layout-dependent fragment lives in `LAYOUTS`, so the emitter picks a layout by
lookup and never branches on it.
"""

from __future__ import annotations

from dataclasses import dataclass

from .config import Layout

TERMINAL = 'set encoding utf8\nset terminal pngcairo size {width},{height} font ",10"\nset output "{image}"\n'

HEATMAP_HEADER = (
    TERMINAL
    + """set title "{title}" noenhanced
set xlabel "Amplicon"
set ylabel "Sample"
{amplicon_range}set yrange [{row_top}:-0.5]
set cbrange [{cbrange}]
set cblabel "{cblabel}"
{cbformat}set palette defined (0 "#fde725", 1 "#5ec962", 2 "#21918c", 3 "#3b528b", 4 "#440154")
set tics nomirror out
unset key
$heatmap << EOD
"""
)

HEATMAP_ROW = "{row}\t{amplicon}\t{value}\n"

HEATMAP_FOOTER = """EOD
set ytics noenhanced ({ytics})
plot $heatmap using 2:1:(0.5):(0.5):3 with boxxyerror fill solid 1.0 noborder lc palette
"""

DATABLOCK = "${name} << EOD\n{rows}EOD\n"

PANEL = """reset
set title "{title}" noenhanced
set {amp_axis}label "Amplicon"
set {val_axis}label "{value_label}"
{amplicon_range}set {val_axis}range [{value_range}]
{value_format}set grid {val_axis}tics
set tics nomirror out
{key}
plot {plots}
"""

GRAPH_SCRIPT = TERMINAL + "{datablocks}{panel}"

SAMPLE_SCRIPT = (
    TERMINAL
    + """{datablocks}set multiplot layout {rows},{cols} title "{title}" noenhanced
{panels}unset multiplot
"""
)

LOG_FORMAT = 'set {val_axis}tics 1 format "10^{{%.0f}}"\n'

BAR_PLOT = '${block} using {using} with vectors nohead lw 3 lc rgb "{color}" {title}'
ERRORBAR_PLOT = '${block} using {using} with {style} pt 7 ps 0.6 lc rgb "{color}" title "mean ± sd"'
LINE_PLOT = '${block} using {using} with linespoints pt 7 ps 0.5 title "{title}"'
MEAN_LINE_PLOT = '${block} using {using} with lines lc rgb "{color}" notitle'
SPAN_PLOT = '${block} using {using} with vectors nohead lw {width} lc {color} {title}'

BAR_COLOR = "#21918c"
LINE_COLOR = "#440154"
AMPLICON_COLOR = 'rgb "#bbbbbb"'
# Linetype 2 for templates matching their amplicon, 7 for everything else.
TEMPLATE_COLOR = "variable"
TEMPLATE_STATUS_COLOR = "($4 == 0 ? 2 : 7)"


@dataclass(frozen=True, slots=True)
class LayoutTemplate:
    """Layout-specific script fragments."""

    amp_axis: str
    val_axis: str
    amplicon_range: str
    bar_using: str
    line_using: str
    errorbar_using: str
    errorbar_style: str
    span_using: str
    template_using: str
    panel_grid: str

    def grid(self, panels: int) -> tuple[int, int]:
        """Rows and columns of a multiplot holding `panels` panels."""
        rows, cols = self.panel_grid.format(n=panels).split(",")
        return int(rows), int(cols)


LAYOUTS: dict[Layout, LayoutTemplate] = {
    Layout.HORIZONTAL: LayoutTemplate(
        amp_axis="x",
        val_axis="y",
        amplicon_range="set xrange [0.5:{top}]\n",
        bar_using="1:(0):(0):2",
        line_using="1:2",
        errorbar_using="1:2:3:4",
        errorbar_style="yerrorbars",
        span_using="1:2:(0):($3-$2)",
        template_using="($1+0.3):2:(0):($3-$2)",
        panel_grid="{n},1",
    ),
    Layout.VERTICAL: LayoutTemplate(
        amp_axis="y",
        val_axis="x",
        amplicon_range="set yrange [{top}:0.5]\n",
        bar_using="(0):1:2:(0)",
        line_using="2:1",
        errorbar_using="2:1:3:4",
        errorbar_style="xerrorbars",
        span_using="2:1:($3-$2):(0)",
        template_using="2:($1+0.3):($3-$2):(0)",
        panel_grid="1,{n}",
    ),
}


def quote(text: str) -> str:
    """Escape text for use inside a double-quoted gnuplot string."""
    return text.replace("\\", "\\\\").replace('"', '\\"')


def fmt(value: float) -> str:
    """Format a number the same way on every run, keeping integers exact."""
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.6g}"
