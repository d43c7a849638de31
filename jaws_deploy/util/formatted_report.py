import html

BORDERS = {
    "unicode": {"H": "─", "V": "│", "top": "┌┬┐", "mid": "├┼┤", "bottom": "└┴┘"},
    "ascii": {"H": "-", "V": "|", "top": "+++", "mid": "+++", "bottom": "+++"},
}


def _cell(val):
    """String form of a cell: '-' for None, HTML entities decoded, kept on one line."""
    s = "-" if val is None else html.unescape(str(val))
    return s.replace("\r", " ").replace("\n", " ")


def _truncate(s, width):
    if len(s) <= width:
        return s
    return s[:width - 1] + "…" if width > 1 else s[:width]


def render_table(headers, rows, title=None, style="unicode", padding=1, max_width=None):
    """
    headers: list[str]
    rows: list[list[Any]]
    title: optional caption boxed above the table
    max_width: optional truncation width applied to every column
    """
    chars = BORDERS.get(style, BORDERS["unicode"])
    cells = [[_cell(c) for c in row] for row in rows]
    widths = [max([len(h)] + [len(r[i]) for r in cells]) for i, h in enumerate(headers)]
    if max_width is not None:
        widths = [min(w, max_width) for w in widths]

    def rule(kind):
        left, mid, right = chars[kind]
        return left + mid.join(chars["H"] * (w + 2 * padding) for w in widths) + right

    def line(cols):
        body = chars["V"].join(" " * padding + _truncate(c, w).ljust(w) + " " * padding
                               for c, w in zip(cols, widths))
        return chars["V"] + body + chars["V"]

    inner = len(rule("top")) - 2
    lines = []
    if title:
        caption = _truncate(_cell(title), inner)
        lines.append(chars["top"][0] + chars["H"] * inner + chars["top"][2])
        lines.append(chars["V"] + caption.center(inner) + chars["V"])
        lines.append(chars["bottom"][0] + chars["H"] * inner + chars["bottom"][2])

    lines.append(rule("top"))
    lines.append(line(headers))
    lines.append(rule("mid"))
    if cells:
        lines.extend(line(r) for r in cells)
    else:
        lines.append(chars["V"] + _truncate("No Deployments", inner).center(inner) + chars["V"])
    lines.append(rule("bottom"))
    return "\n".join(lines)
