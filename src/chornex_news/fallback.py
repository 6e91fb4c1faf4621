"""Fixed payloads served when nothing better is available."""

from datetime import datetime

from chornex_news.data import Category, Highlight, Language, NewsResponse, NewsStatus

MAINTENANCE_HEADLINE = "System Maintenance: Live Feed Paused"
CONFIGURATION_HEADLINE = "Configuration Required"

STATIC_HIGHLIGHTS: tuple[Highlight, ...] = (
    Highlight(
        headline=MAINTENANCE_HEADLINE,
        summary=(
            "The news engine is under high load or maintenance. An archival "
            "snapshot is shown while real-time connectivity is restored."
        ),
        category=Category.TECH,
        timestamp="System Message",
    ),
    Highlight(
        headline="Global Markets Review",
        summary=(
            "Major indices show resilience amid shifting economic policies. Tech "
            "and energy lead the volatility as investors await quarterly reports."
        ),
        category=Category.ECONOMY,
        timestamp="Archived",
    ),
    Highlight(
        headline="International Cooperation on Climate",
        summary=(
            "G20 nations are discussing new frameworks for carbon reduction, "
            "aiming for significant milestones by 2030."
        ),
        category=Category.CLIMATE,
        timestamp="Archived",
    ),
    Highlight(
        headline="Development Update: Bangladesh",
        summary=(
            "Infrastructure projects in major cities continue to progress, with "
            "new transport initiatives expected to ease congestion."
        ),
        category=Category.BANGLADESH,
        timestamp="Archived",
    ),
)

CONFIGURATION_HIGHLIGHT = Highlight(
    headline=CONFIGURATION_HEADLINE,
    summary=(
        "The news engine API key is missing. Set the primary provider's API key "
        "environment variable in the deployment settings."
    ),
    category=Category.SECURITY,
    timestamp="Setup Error",
)


def static_fallback(
    language: Language, now: datetime, *, configuration_missing: bool = False
) -> NewsResponse:
    """Build the terminal archival payload.

    Args:
        language: Language the caller asked for.
        now: Instant stamped into ``generated_at``.
        configuration_missing: Replace the archival set with the single
            "Configuration Required" highlight.
    """
    highlights = (CONFIGURATION_HIGHLIGHT,) if configuration_missing else STATIC_HIGHLIGHTS
    return NewsResponse(
        generated_at=now.isoformat(),
        language=language,
        status=NewsStatus.QUOTA_EXCEEDED,
        highlights=highlights,
    )
