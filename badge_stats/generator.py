"""SVG badge rendering from collected statistics."""

from html import escape

from .models import BadgeConfig, GitHubReport, NpmReport

# (height, font size, average glyph width, horizontal padding, corner radius)
_STYLE_METRICS = {
    "flat": (20, 11, 6.5, 6, 3),
    "flat-square": (20, 11, 6.5, 6, 0),
    "plastic": (18, 11, 6.5, 6, 4),
    "for-the-badge": (28, 10, 7.5, 12, 0),
}

# Monochrome logo paths drawn in a 24x24 viewBox.
LOGOS = {
    "npm": (
        "M1.763 0C.786 0 0 .786 0 1.763v20.474C0 23.214.786 24 1.763 24h20.474"
        "c.977 0 1.763-.786 1.763-1.763V1.763C24 .786 23.214 0 22.237 0z"
        "M5.13 5.323l13.837.019-.009 13.836h-3.464l.01-10.382h-3.456L12.04 19.17H5.113z"
    ),
}
LOGO_SIZE = 14
LOGO_GAP = 3


def _text_width(text: str, glyph_width: float) -> int:
    return round(len(text) * glyph_width)


def render_badge(
    label: str,
    message: str,
    color: str,
    config: BadgeConfig,
    label_color: str | None = None,
    logo: str | None = None,
) -> str:
    """Render a two-segment badge as a self-contained SVG document.

    ``logo`` names an entry of ``LOGOS`` drawn in white before the label.
    """
    if logo is not None and logo not in LOGOS:
        raise ValueError(f"Unknown logo: {logo}")

    style = config.style
    height, font_size, glyph, padding, radius = _STYLE_METRICS[style]

    if style == "for-the-badge":
        label, message = label.upper(), message.upper()

    label_color = config.color(label_color) if label_color else config.label_color
    color = config.color(color)

    logo_offset = LOGO_SIZE + LOGO_GAP if logo else 0
    label_width = _text_width(label, glyph) + padding * 2 + logo_offset
    message_width = _text_width(message, glyph) + padding * 2
    width = label_width + message_width

    label_x = logo_offset + (label_width - logo_offset) / 2
    message_x = label_width + message_width / 2
    text_y = height / 2 + font_size / 3
    weight = ' font-weight="bold"' if style == "for-the-badge" else ""

    aria = escape(f"{label}: {message}")
    label_text = escape(label)
    message_text = escape(message)

    gradient = ""
    overlay = ""
    if style in ("flat", "plastic"):
        gradient = (
            '<linearGradient id="s" x2="0" y2="100%">'
            '<stop offset="0" stop-color="#bbb" stop-opacity=".1"/>'
            '<stop offset="1" stop-opacity=".1"/>'
            "</linearGradient>"
        )
        overlay = f'<rect width="{width}" height="{height}" fill="url(#s)"/>'

    logo_svg = ""
    if logo:
        logo_svg = (
            f'<svg x="{padding}" y="{(height - LOGO_SIZE) / 2}" width="{LOGO_SIZE}" '
            f'height="{LOGO_SIZE}" viewBox="0 0 24 24">'
            f'<path fill="#fff" d="{LOGOS[logo]}"/></svg>'
        )

    lines = [
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="{height}" '
        f'role="img" aria-label="{aria}">',
        f"<title>{aria}</title>",
        gradient,
        f'<clipPath id="r"><rect width="{width}" height="{height}" rx="{radius}" fill="#fff"/></clipPath>',
        '<g clip-path="url(#r)">',
        f'<rect width="{label_width}" height="{height}" fill="{escape(label_color)}"/>',
        f'<rect x="{label_width}" width="{message_width}" height="{height}" fill="{escape(color)}"/>',
        overlay,
        "</g>",
        logo_svg,
        f'<g fill="#fff" text-anchor="middle" '
        f'font-family="Verdana,Geneva,DejaVu Sans,sans-serif" font-size="{font_size}"{weight}>',
        f'<text x="{label_x}" y="{text_y:.1f}">{label_text}</text>',
        f'<text x="{message_x}" y="{text_y:.1f}">{message_text}</text>',
        "</g>",
        "</svg>",
    ]
    return "\n".join(line for line in lines if line)


def github_badges(report: GitHubReport, config: BadgeConfig) -> dict[str, str]:
    """Render the GitHub badge set, keyed by output filename."""
    repos = report.repositories
    return {
        "commits-12mo.svg": render_badge(
            "commits (12mo)", report.commits.format_total(), "purple", config
        ),
        "repositories.svg": render_badge(
            "repositories", f"{repos.total_repos:,}", "green", config
        ),
        "stars-total.svg": render_badge(
            "total stars", f"{repos.total_stars:,}", "yellow", config
        ),
        "followers.svg": render_badge(
            "followers", f"{report.profile.followers:,}", "blue", config
        ),
        "forks-total.svg": render_badge(
            "total forks", f"{repos.total_forks:,}", "orange", config
        ),
    }


def npm_badges(report: NpmReport, config: BadgeConfig) -> dict[str, str]:
    """Render the npm badge set, keyed by output filename."""
    return {
        "npm-package.svg": render_badge(
            "npm package", report.package_name, "npm", config, logo="npm"
        ),
        "npm-downloads.svg": render_badge(
            "npm downloads", f"{report.downloads.last_month:,}", "npm", config, logo="npm"
        ),
    }


def generate_summary_report(
    github: GitHubReport | None,
    npm: NpmReport | None,
    saved: list[str],
    dry_run: bool = False,
) -> str:
    """Generate a markdown summary for the GitHub Actions step summary."""
    lines = [
        "## Badge Generation Summary",
        "",
        f"- **Badges:** {len(saved)}{' (dry run, nothing written)' if dry_run else ''}",
    ]

    if github:
        repos = github.repositories
        lines.extend(
            [
                f"- **GitHub user:** {github.username}",
                f"- **Followers:** {github.profile.followers:,}",
                f"- **Repositories:** {repos.total_repos:,}",
                f"- **Total stars:** {repos.total_stars:,}",
                f"- **Total forks:** {repos.total_forks:,}",
                f"- **Commits (12mo):** {github.commits.format_total()} "
                f"({github.commits.method.replace('_', ' ')})",
            ]
        )
        if repos.top_languages:
            languages = ", ".join(
                f"{lang.language} ({lang.count})" for lang in repos.top_languages
            )
            lines.append(f"- **Top languages:** {languages}")

    if npm:
        version = npm.version.version if npm.version and npm.version.version else "N/A"
        lines.extend(
            [
                f"- **npm package:** {npm.package_name} ({version})",
                f"- **Downloads (month):** {npm.downloads.last_month:,}",
            ]
        )
    else:
        lines.append("- **npm package:** skipped")

    if saved:
        lines.extend(["", "### Files", ""])
        lines.extend(f"- `{name}`" for name in saved)

    return "\n".join(lines)
