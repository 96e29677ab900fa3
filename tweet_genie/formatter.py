from datetime import date

from tweet_genie.analytics.numbers import format_hour
from tweet_genie.models import AnalyticsDashboard

_INSIGHT_ICONS = {"success": "✅", "info": "ℹ️", "warning": "⚠️", "opportunity": "💡"}


def _signed(value: float) -> str:
    return f"{value:+.1f}%"


def format_dashboard_report(dashboard: AnalyticsDashboard) -> str:
    """Format a computed dashboard into a Markdown report string."""
    growth = dashboard.growth_metrics
    audience = dashboard.audience_summary
    goals = dashboard.goals

    sections = [
        f"# Tweet Analytics Report ({dashboard.timeframe_days} days)\n\n*Generated {date.today()}*\n",
        f"**Performance score:** {dashboard.performance_score}/100\n",
    ]

    if dashboard.disconnected:
        sections.append("> Twitter is disconnected. Reconnect your account to refresh analytics.\n")
    for warning in dashboard.warnings:
        sections.append(f"> Partial data: {warning}")
    if dashboard.warnings:
        sections.append("")

    sections.append("## Growth vs Previous Period\n")
    sections.append("| Tweets | Impressions | Likes | Engagement |")
    sections.append("|---|---|---|---|")
    sections.append(
        f"| {_signed(growth.tweets)} | {_signed(growth.impressions)} "
        f"| {_signed(growth.likes)} | {_signed(growth.engagement)} |"
    )
    sections.append("")

    sections.append("## Audience\n")
    sections.append(f"- **Total reach**: {audience.total_reach:,}")
    sections.append(f"- **Engaged users**: {audience.engaged_users:,}")
    sections.append(f"- **Avg impressions / tweet**: {audience.avg_impressions_per_tweet:,}")
    sections.append(f"- **Engagement rate**: {audience.engagement_rate:.1f}%")
    sections.append(f"- **High reach share**: {audience.high_reach_share:.0f}%")
    sections.append(f"- **No reach share**: {audience.no_reach_share:.0f}%")
    sections.append(f"- **Favorite format**: {audience.favorite_content_type}")
    if audience.top_time:
        sections.append(f"- **Top time**: {audience.top_time.day_name} {format_hour(audience.top_time.hour)}")
    sections.append("")

    if dashboard.content_comparison:
        sections.append("## Threads vs Single Tweets\n")
        sections.append("| Format | Tweets | Avg Impressions | Avg Engagement | Engagement Rate |")
        sections.append("|---|---|---|---|---|")
        for row in dashboard.content_comparison:
            sections.append(
                f"| {row.type} | {row.tweets:g} | {row.avg_impressions:,} "
                f"| {row.avg_engagement:,} | {row.engagement_rate:.1f}% |"
            )
        sections.append("")

    if dashboard.ai_insights:
        sections.append("## Insights\n")
        for insight in dashboard.ai_insights:
            icon = _INSIGHT_ICONS.get(insight.type.value, "")
            sections.append(
                f"- {icon} **{insight.title}** ({insight.confidence.value} confidence): {insight.message}"
            )
        sections.append("")

    sections.append("## Recommendations\n")
    for rec in dashboard.recommendations:
        sections.append(
            f"- **[{rec.priority.value.upper()}] {rec.title}**: {rec.description} "
            f"*({rec.metric_label}: {rec.metric_value})*"
        )
    sections.append("")

    if dashboard.recommended_slots:
        sections.append("## Best Posting Slots\n")
        sections.append("| Day | Time | Tweets | Avg Engagement | Score |")
        sections.append("|---|---|---|---|---|")
        for slot in dashboard.recommended_slots:
            sections.append(
                f"| {slot.day_name} | {format_hour(slot.hour)} | {slot.tweets_count:g} "
                f"| {slot.avg_engagement:.1f} | {slot.score:.1f} |"
            )
        sections.append("")

    if dashboard.calendar_entries:
        sections.append("## Content Calendar\n")
        sections.append("| Day | Time | Format | Topic | Expected Engagement |")
        sections.append("|---|---|---|---|---|")
        for entry in dashboard.calendar_entries:
            sections.append(f"| {entry.day} | {entry.time} | {entry.type} | {entry.topic} | {entry.engagement} |")
        sections.append("")

    sections.append("## Goals\n")
    sections.append(
        f"- **Tweets / day**: {goals.tweets_per_day.current:.1f} → {goals.tweets_per_day.target:.1f}"
    )
    sections.append(
        f"- **Engagement rate**: {goals.engagement_rate.current:.1f}% → {goals.engagement_rate.target:.1f}%"
    )
    sections.append(
        f"- **Avg impressions**: {goals.avg_impressions.current:,.0f} → {goals.avg_impressions.target:,.0f}"
    )
    sections.append("")

    return "\n".join(sections)
