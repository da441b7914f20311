"""SVG infographic renderer for topic metadata.

Everything here is a pure function of its inputs: the same ``ImageMetadata``
always produces byte-identical markup, and the document never references
external resources so it can be shipped inline as a data URI.
"""

import re
from typing import NamedTuple
from xml.sax.saxutils import escape

from models.tutor import MAX_KEY_CONCEPTS, ImageMetadata

WIDTH = 700
HEIGHT = 560

SANS = "'Segoe UI',Inter,system-ui,sans-serif"
MONO = "'Cascadia Code','Fira Code',monospace"

LINE_DELIMITER = "\\n"
MAX_SNIPPET_CHARS = 300
CODE_WRAP_WIDTH = 50
MAX_CODE_LINES = 10
MAX_CONCEPT_CHARS = 18
MAX_TIP_CHARS = 80

CARD_WIDTH = 145
CARD_GAP = 8
CARD_START_X = 36
CARD_Y = 152

CODE_PANEL_Y = 234
CODE_PANEL_BASE_HEIGHT = 24
CODE_LINE_HEIGHT = 18
CODE_FIRST_LINE_Y = 274

_XML_ENTITIES = {'"': "&quot;", "'": "&apos;"}


class Theme(NamedTuple):
    gradient: tuple[str, str, str]
    accent: str
    accent_alt: str
    icon: str
    motif: str


THEMES = {
    "dsa": Theme(("#0f0c29", "#302b63", "#24243e"), "#7c5dfa", "#a78bfa", "🌳", "tree"),
    "web": Theme(("#0c1220", "#1a365d", "#1e3a5f"), "#3b82f6", "#06b6d4", "🌐", "stack"),
    "system-design": Theme(("#0c0c1d", "#1b1b4b", "#2d1b69"), "#e879f9", "#a855f7", "🏗️", "architecture"),
    "database": Theme(("#0c1a0c", "#1a3a2a", "#0d2818"), "#10b981", "#34d399", "🗄️", "table"),
    "os": Theme(("#1a0c0c", "#3a1a1a", "#2d1420"), "#f59e0b", "#fbbf24", "⚙️", "process"),
    "networking": Theme(("#0c1a20", "#1a2d3d", "#0d2d3a"), "#06b6d4", "#22d3ee", "🔗", "network"),
    "oop": Theme(("#1a0c20", "#2d1b40", "#3a1c5a"), "#c084fc", "#e879f9", "🔷", "class"),
    "general": Theme(("#0c0c1d", "#1a1040", "#1e1050"), "#7c5dfa", "#e879f9", "💡", "general"),
}


def escape_xml(text: str) -> str:
    return escape(text, _XML_ENTITIES)


def get_theme(category: str) -> Theme:
    return THEMES.get(category, THEMES["general"])


# --- Decorative motifs ---


def _motif_tree(theme: Theme) -> str:
    levels = [
        ([80], 0, 14, theme.accent),
        ([40, 120], 54, 12, theme.accent_alt),
        ([16, 64, 96, 144], 98, 10, theme.accent),
    ]
    parts = []
    for depth, (xs, y, r, color) in enumerate(levels):
        for i, x in enumerate(xs):
            parts.append(
                f'<circle cx="{x}" cy="{y}" r="{r}" stroke="{color}" stroke-width="1.5" fill="none"/>'
            )
            if depth == 0:
                continue
            parent_xs, parent_y, parent_r, _ = levels[depth - 1]
            px = parent_xs[i // 2]
            parts.append(
                f'<line x1="{px}" y1="{parent_y + parent_r}" x2="{x}" y2="{y - r}" '
                f'stroke="{color}" stroke-width="1"/>'
            )
    return '<g opacity="0.15" transform="translate(480, 130)">' + "".join(parts) + "</g>"


def _motif_stack(theme: Theme) -> str:
    layers = [
        ("React / Frontend", "#3b82f6"),
        ("Express / API", "#10b981"),
        ("Node.js / Server", "#f59e0b"),
        ("MongoDB / DB", "#e879f9"),
    ]
    parts = []
    for i, (label, color) in enumerate(layers):
        y = i * 36
        parts.append(
            f'<rect x="0" y="{y}" width="140" height="28" rx="6" stroke="{color}" stroke-width="1.5" fill="none"/>'
            f'<text x="70" y="{y + 18}" text-anchor="middle" font-size="10" fill="{color}">{escape_xml(label)}</text>'
        )
        if i:
            parts.append(
                f'<line x1="70" y1="{y - 8}" x2="70" y2="{y}" stroke="rgba(255,255,255,0.3)" '
                'stroke-width="1" stroke-dasharray="3 2"/>'
            )
    return '<g opacity="0.15" transform="translate(500, 150)">' + "".join(parts) + "</g>"


def _motif_architecture(theme: Theme) -> str:
    boxes = [
        (50, 0, 80, "Load Balancer", theme.accent),
        (10, 44, 60, "Server 1", theme.accent_alt),
        (110, 44, 60, "Server 2", theme.accent_alt),
        (55, 86, 70, "Database", "#10b981"),
    ]
    links = [((70, 24), (40, 44)), ((110, 24), (140, 44)), ((40, 66), (90, 86)), ((140, 66), (90, 86))]
    parts = []
    for (x1, y1), (x2, y2) in links:
        parts.append(
            f'<line x1="{x1}" y1="{y1}" x2="{x2}" y2="{y2}" stroke="{theme.accent}" '
            'stroke-width="1" stroke-dasharray="3 2"/>'
        )
    for x, y, w, label, color in boxes:
        parts.append(
            f'<rect x="{x}" y="{y}" width="{w}" height="22" rx="4" stroke="{color}" stroke-width="1.2" fill="none"/>'
            f'<text x="{x + w // 2}" y="{y + 15}" text-anchor="middle" font-size="8" fill="{color}">{label}</text>'
        )
    return '<g opacity="0.15" transform="translate(470, 140)">' + "".join(parts) + "</g>"


def _motif_table(theme: Theme) -> str:
    rows = ["id  |  name  |  email", "1   |  John  |  j@mail", "2   |  Jane  |  j@mail", "3   |  Alex  |  a@mail"]
    parts = [
        f'<rect x="0" y="0" width="150" height="24" rx="4" stroke="{theme.accent}" stroke-width="1.5" '
        f'fill="{theme.accent}" fill-opacity="0.2"/>',
        f'<text x="75" y="16" text-anchor="middle" font-size="9" fill="{theme.accent}" font-weight="600">users_table</text>',
        f'<rect x="0" y="24" width="150" height="80" rx="4" stroke="{theme.accent}" stroke-width="1" fill="none"/>',
        '<line x1="5" y1="48" x2="145" y2="48" stroke="rgba(255,255,255,0.1)" stroke-width="0.5"/>',
    ]
    for i, row in enumerate(rows):
        color = theme.accent_alt if i == 0 else "rgba(255,255,255,0.4)"
        parts.append(f'<text x="10" y="{42 + i * 14 + (4 if i else 0)}" font-size="8" fill="{color}">{row}</text>')
    return '<g opacity="0.15" transform="translate(490, 150)">' + "".join(parts) + "</g>"


def _motif_process(theme: Theme) -> str:
    states = [
        ("New", theme.accent, None),
        ("Ready", theme.accent_alt, "admit"),
        ("Running", "#10b981", "dispatch"),
        ("Terminated", "#f59e0b", "exit"),
    ]
    parts = []
    for i, (label, color, transition) in enumerate(states):
        y = i * 30
        if transition:
            parts.append(
                f'<line x1="70" y1="{y - 10}" x2="70" y2="{y}" stroke="{color}" stroke-width="1"/>'
                f'<text x="80" y="{y - 2}" font-size="6" fill="{color}">{transition}</text>'
            )
        parts.append(
            f'<rect x="20" y="{y}" width="100" height="20" rx="3" stroke="{color}" stroke-width="1.2" '
            f'fill="{color}" fill-opacity="0.15"/>'
            f'<text x="70" y="{y + 14}" text-anchor="middle" font-size="8" fill="{color}">{label}</text>'
        )
    return '<g opacity="0.15" transform="translate(490, 145)">' + "".join(parts) + "</g>"


def _motif_network(theme: Theme) -> str:
    hosts = [(20, 90, "PC1"), (70, 100, "PC2"), (120, 90, "PC3")]
    parts = [
        f'<circle cx="70" cy="30" r="16" stroke="{theme.accent}" stroke-width="1.5" fill="none"/>',
        f'<text x="70" y="34" text-anchor="middle" font-size="8" fill="{theme.accent}">Router</text>',
    ]
    for x, y, label in hosts:
        parts.append(
            f'<line x1="70" y1="46" x2="{x}" y2="{y - 14}" stroke="{theme.accent}" stroke-width="1"/>'
            f'<circle cx="{x}" cy="{y}" r="14" stroke="{theme.accent_alt}" stroke-width="1" fill="none"/>'
            f'<text x="{x}" y="{y + 4}" text-anchor="middle" font-size="7" fill="{theme.accent_alt}">{label}</text>'
        )
    return '<g opacity="0.15" transform="translate(490, 150)">' + "".join(parts) + "</g>"


def _motif_class(theme: Theme) -> str:
    def _box(y: int, name: str, members: list[str], color: str) -> str:
        height = 22 + 18 * len(members)
        out = [
            f'<rect x="10" y="{y}" width="130" height="{height}" rx="4" stroke="{color}" stroke-width="1.2" fill="none"/>',
            f'<rect x="10" y="{y}" width="130" height="22" rx="4" fill="{color}" fill-opacity="0.2"/>',
            f'<text x="75" y="{y + 15}" text-anchor="middle" font-size="9" fill="{color}" font-weight="600">{name}</text>',
        ]
        for i, member in enumerate(members):
            out.append(
                f'<text x="18" y="{y + 36 + i * 18}" font-size="8" fill="rgba(255,255,255,0.5)">'
                f"{escape_xml(member)}</text>"
            )
        return "".join(out)

    parts = [
        _box(0, "Animal", ["- name: string", "+ speak(): void"], theme.accent),
        f'<line x1="75" y1="58" x2="75" y2="76" stroke="{theme.accent_alt}" stroke-width="1" stroke-dasharray="3 2"/>',
        f'<text x="90" y="70" font-size="6" fill="{theme.accent_alt}">extends</text>',
        _box(76, "Dog", ['+ speak(): "Woof"'], theme.accent_alt),
    ]
    return '<g opacity="0.15" transform="translate(490, 140)">' + "".join(parts) + "</g>"


def _motif_general(theme: Theme) -> str:
    return (
        '<g opacity="0.12" transform="translate(510, 155)">'
        f'<circle cx="50" cy="30" r="20" stroke="{theme.accent}" stroke-width="1.5" fill="none"/>'
        f'<text x="50" y="35" text-anchor="middle" font-size="16">{theme.icon}</text>'
        f'<circle cx="0" cy="90" r="16" stroke="{theme.accent_alt}" stroke-width="1" fill="none"/>'
        f'<circle cx="100" cy="90" r="16" stroke="{theme.accent_alt}" stroke-width="1" fill="none"/>'
        f'<line x1="38" y1="46" x2="10" y2="76" stroke="{theme.accent}" stroke-width="1" stroke-dasharray="3 2"/>'
        f'<line x1="62" y1="46" x2="90" y2="76" stroke="{theme.accent}" stroke-width="1" stroke-dasharray="3 2"/>'
        f'<line x1="16" y1="90" x2="84" y2="90" stroke="{theme.accent_alt}" stroke-width="0.8" stroke-dasharray="3 2"/>'
        "</g>"
    )


MOTIFS = {
    "tree": _motif_tree,
    "stack": _motif_stack,
    "architecture": _motif_architecture,
    "table": _motif_table,
    "process": _motif_process,
    "network": _motif_network,
    "class": _motif_class,
    "general": _motif_general,
}


# --- Code snippet layout ---


def _wrap_on_braces(line: str) -> list[str]:
    spaced = line.replace("{", "{\n").replace("}", "\n}\n")
    spaced = re.sub(r";\s*", ";\n", spaced)
    parts = [p.strip() for p in spaced.split("\n") if p.strip()]
    if len(parts) <= 1:
        return []

    wrapped = []
    depth = 0
    for part in parts:
        if part.startswith("}"):
            depth = max(0, depth - 1)
        wrapped.append("  " * depth + part)
        if part.endswith("{"):
            depth += 1
    return wrapped


def _wrap_on_words(line: str, width: int = CODE_WRAP_WIDTH) -> list[str]:
    wrapped = []
    current = ""
    for word in line.split(" "):
        if current and len(current) + 1 + len(word) > width:
            wrapped.append(current)
            current = "  " + word
        else:
            current = f"{current} {word}" if current else word
    if current:
        wrapped.append(current)
    return wrapped


def split_code_lines(snippet: str) -> list[str]:
    """Break a snippet into at most ``MAX_CODE_LINES`` display lines.

    Lines are normally separated by the literal two-character ``\\n``
    delimiter. A snippet that arrives as one long line is re-flowed on brace
    and semicolon boundaries, or word-wrapped when it has none.
    """
    snippet = snippet[:MAX_SNIPPET_CHARS].replace("\r\n", "\n").replace("\n", LINE_DELIMITER)
    lines = [line for line in snippet.split(LINE_DELIMITER) if line.strip()]

    if len(lines) <= 1 and len(snippet) > CODE_WRAP_WIDTH:
        single = lines[0] if lines else snippet
        lines = _wrap_on_braces(single) or _wrap_on_words(single)

    return lines[:MAX_CODE_LINES]


def code_panel_height(line_count: int) -> int:
    return CODE_PANEL_BASE_HEIGHT + line_count * CODE_LINE_HEIGHT


# --- Sections ---


def _render_concept_cards(concepts: list[str], theme: Theme) -> str:
    palette = [theme.accent, theme.accent_alt, "#10b981", "#f59e0b"]
    cards = []
    for i, concept in enumerate(concepts[:MAX_KEY_CONCEPTS]):
        x = CARD_START_X + i * (CARD_WIDTH + CARD_GAP)
        color = palette[i % len(palette)]
        label = escape_xml(concept[:MAX_CONCEPT_CHARS])
        cards.append(
            f'<g filter="url(#softShadow)"><rect x="{x}" y="{CARD_Y}" width="{CARD_WIDTH}" height="48" rx="8" '
            f'fill="url(#glassCard)" stroke="{color}" stroke-width="0.8" stroke-opacity="0.4"/></g>\n'
            f'<circle cx="{x + 18}" cy="{CARD_Y + 24}" r="6" fill="{color}" opacity="0.25"/>\n'
            f'<text x="{x + 18}" y="{CARD_Y + 27}" text-anchor="middle" font-size="8" fill="{color}">✦</text>\n'
            f'<text x="{x + 32}" y="{CARD_Y + 21}" font-family="{SANS}" font-size="10" fill="white" '
            f'font-weight="600">{label}</text>\n'
            f'<text x="{x + 32}" y="{CARD_Y + 36}" font-family="{SANS}" font-size="8" '
            f'fill="rgba(255,255,255,0.4)">Concept {i + 1}</text>'
        )
    return "\n".join(cards)


def _render_code_block(lines: list[str], theme: Theme) -> str:
    height = code_panel_height(len(lines))
    out = [
        f'<text x="40" y="225" font-family="{SANS}" font-size="11" fill="rgba(255,255,255,0.45)" '
        'font-weight="600" letter-spacing="1.5">CODE SNIPPET</text>',
        f'<g filter="url(#softShadow)"><rect x="36" y="{CODE_PANEL_Y}" width="628" height="{height}" rx="8" '
        f'fill="rgba(0,0,0,0.4)" stroke="{theme.accent}" stroke-width="0.6" stroke-opacity="0.3"/></g>',
        '<circle cx="50" cy="246" r="3.5" fill="#ff5f57"/>',
        '<circle cx="62" cy="246" r="3.5" fill="#febc2e"/>',
        '<circle cx="74" cy="246" r="3.5" fill="#28c840"/>',
        f'<text x="100" y="249" font-family="{MONO}" font-size="8" fill="rgba(255,255,255,0.3)">snippet</text>',
        '<line x1="36" y1="256" x2="664" y2="256" stroke="rgba(255,255,255,0.08)" stroke-width="0.5"/>',
    ]
    for i, line in enumerate(lines):
        y = CODE_FIRST_LINE_Y + i * CODE_LINE_HEIGHT
        out.append(
            f'<text x="46" y="{y}" font-family="{MONO}" font-size="9" fill="rgba(255,255,255,0.2)">{i + 1}</text>'
        )
        out.append(
            f'<text x="64" y="{y}" font-family="{MONO}" font-size="11" fill="{theme.accent_alt}" '
            f'xml:space="preserve">{escape_xml(line)}</text>'
        )
    return "\n".join(out)


def _render_tip(tip: str) -> str:
    return (
        '<g filter="url(#softShadow)"><rect x="36" y="460" width="628" height="48" rx="10" '
        'fill="rgba(251,191,36,0.06)" stroke="rgba(251,191,36,0.2)" stroke-width="1"/></g>\n'
        f'<text x="56" y="480" font-family="{SANS}" font-size="11" fill="#fbbf24" font-weight="700">'
        "💡 INTERVIEW TIP</text>\n"
        f'<text x="56" y="498" font-family="{SANS}" font-size="11" fill="rgba(255,255,255,0.65)">'
        f"{escape_xml(tip[:MAX_TIP_CHARS])}</text>"
    )


def _render_dot_grid() -> str:
    return "".join(
        f'<circle cx="{x}" cy="{y}" r="0.8" fill="rgba(255,255,255,0.06)"/>'
        for x in range(40, WIDTH, 40)
        for y in range(40, HEIGHT, 40)
    )


def render_topic_svg(metadata: ImageMetadata) -> str:
    theme = get_theme(metadata.category)
    title = escape_xml(metadata.title or "Topic")
    subtitle = escape_xml(metadata.subtitle)
    category_label = escape_xml((metadata.category or "general").upper())
    code_lines = split_code_lines(metadata.code_snippet)

    lines = []
    lines.append(
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{WIDTH}" height="{HEIGHT}" '
        f'viewBox="0 0 {WIDTH} {HEIGHT}">'
    )

    # --- Definitions ---
    lines.append("<defs>")
    lines.append('<linearGradient id="bgMain" x1="0%" y1="0%" x2="100%" y2="100%">')
    for offset, color in zip(("0%", "50%", "100%"), theme.gradient):
        lines.append(f'<stop offset="{offset}" stop-color="{color}"/>')
    lines.append("</linearGradient>")
    lines.append('<linearGradient id="accentGrad" x1="0%" y1="0%" x2="100%" y2="100%">')
    lines.append(f'<stop offset="0%" stop-color="{theme.accent}"/>')
    lines.append(f'<stop offset="100%" stop-color="{theme.accent_alt}"/>')
    lines.append("</linearGradient>")
    lines.append('<linearGradient id="glassCard" x1="0%" y1="0%" x2="0%" y2="100%">')
    lines.append('<stop offset="0%" stop-color="rgba(255,255,255,0.12)"/>')
    lines.append('<stop offset="100%" stop-color="rgba(255,255,255,0.04)"/>')
    lines.append("</linearGradient>")
    lines.append('<filter id="softShadow">')
    lines.append('<feDropShadow dx="0" dy="4" stdDeviation="6" flood-color="rgba(0,0,0,0.3)"/>')
    lines.append("</filter>")
    lines.append(f'<clipPath id="roundClip"><rect width="{WIDTH}" height="{HEIGHT}" rx="20"/></clipPath>')
    lines.append("</defs>")

    # --- Background ---
    lines.append('<g clip-path="url(#roundClip)">')
    lines.append(f'<rect width="{WIDTH}" height="{HEIGHT}" fill="url(#bgMain)"/>')
    lines.append(f'<circle cx="100" cy="80" r="120" fill="{theme.accent}" opacity="0.06"/>')
    lines.append(f'<circle cx="600" cy="400" r="140" fill="{theme.accent_alt}" opacity="0.05"/>')
    lines.append(f'<circle cx="350" cy="240" r="200" fill="{theme.accent}" opacity="0.03"/>')
    lines.append(_render_dot_grid())
    lines.append(MOTIFS[theme.motif](theme))

    # --- Header ---
    lines.append(
        '<g filter="url(#softShadow)"><rect x="24" y="20" width="652" height="90" rx="14" '
        'fill="url(#glassCard)" stroke="rgba(255,255,255,0.1)" stroke-width="1"/></g>'
    )
    lines.append(
        f'<text x="56" y="52" font-family="{SANS}" font-size="14" fill="{theme.accent}" '
        f'font-weight="600" letter-spacing="2">{theme.icon} {category_label} • PLACEMENT PREP</text>'
    )
    lines.append(
        f'<text x="56" y="82" font-family="{SANS}" font-size="26" font-weight="700" fill="white">{title}</text>'
    )
    lines.append(
        f'<text x="56" y="100" font-family="{SANS}" font-size="13" fill="rgba(255,255,255,0.6)">{subtitle}</text>'
    )
    lines.append('<rect x="24" y="110" width="652" height="3" rx="1.5" fill="url(#accentGrad)" opacity="0.6"/>')

    # --- Key concepts ---
    lines.append(
        f'<text x="40" y="140" font-family="{SANS}" font-size="11" fill="rgba(255,255,255,0.45)" '
        'font-weight="600" letter-spacing="1.5">KEY CONCEPTS</text>'
    )
    lines.append(_render_concept_cards(metadata.key_concepts, theme))

    if code_lines:
        lines.append(_render_code_block(code_lines, theme))

    if metadata.interview_tip:
        lines.append(_render_tip(metadata.interview_tip))

    # --- Footer ---
    lines.append('<rect x="24" y="520" width="652" height="28" rx="8" fill="rgba(255,255,255,0.04)"/>')
    lines.append(
        f'<text x="350" y="539" text-anchor="middle" font-family="{SANS}" font-size="10" '
        'fill="rgba(255,255,255,0.3)" letter-spacing="1">AI PLACEMENT TUTOR • LANGGRAPH + GEMINI</text>'
    )
    lines.append("</g>")
    lines.append("</svg>")

    return "\n".join(lines)
