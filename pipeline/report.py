"""Human-readable and CSV renderings of ranked leads."""
import csv
from pathlib import Path
from typing import List, Union

from schemas import QualifiedLead

CSV_COLUMNS = [
    "name", "quality_score", "was_verified", "is_active", "email", "company", "title",
    "instagram", "tiktok", "twitter", "linkedin", "followers", "verified_followers",
    "detected_niche", "detected_location", "engagement_rate_percent", "website_url",
    "last_post_date", "country", "confidence", "source", "quality_reasons",
]


def format_qualified_leads(leads: List[QualifiedLead]) -> str:
    """Markdown summary of leads, one section per lead."""
    if not leads:
        return "No qualified leads found."

    lines = ["## QUALIFIED & VERIFIED LEADS", ""]
    for lead in leads:
        lines.append(f"### {lead.name}" + (" ✅ VERIFIED" if lead.was_verified else ""))
        lines.append(f"- **Quality Score:** {lead.quality_score}/100")
        lines.append(f"- **Score Reasons:** {', '.join(lead.quality_reasons)}")

        if lead.verified_followers:
            lines.append(f"- **Followers:** {lead.verified_followers:,} (verified)")
        elif lead.followers:
            lines.append(f"- **Followers:** {lead.followers} (unverified)")

        if lead.is_active:
            last_post = lead.last_post_date.date().isoformat() if lead.last_post_date else "recent"
            lines.append(f"- **Status:** Active (last post: {last_post})")
        else:
            lines.append("- **Status:** Inactive or unknown")

        if lead.bio:
            lines.append(f"- **Bio:** {lead.bio[:200]}")
        if lead.detected_niche:
            lines.append(f"- **Detected Niche:** {lead.detected_niche}")
        if lead.detected_location:
            lines.append(f"- **Location:** {lead.detected_location}")
        if lead.website_url:
            lines.append(f"- **Website:** {lead.website_url}")
        if lead.engagement_rate_percent:
            lines.append(f"- **Engagement Rate:** {lead.engagement_rate_percent:.1f}%")

        for label, value in (
            ("TikTok", lead.tiktok),
            ("Instagram", lead.instagram),
            ("Twitter", lead.twitter),
            ("Email", lead.email),
            ("Company", lead.company),
        ):
            if value:
                lines.append(f"- **{label}:** {value}")

        if lead.recent_hashtags:
            lines.append(f"- **Recent Hashtags:** {' '.join('#' + h for h in lead.recent_hashtags)}")
        lines.append(f"- **Source:** {lead.source}")
        lines.append("")

    return "\n".join(lines)


def write_leads_csv(leads: List[QualifiedLead], path: Union[str, Path]) -> Path:
    """Write leads in ranked order; reasons are joined with '; '."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="", encoding="utf-8") as fh:
        writer = csv.DictWriter(fh, fieldnames=CSV_COLUMNS)
        writer.writeheader()
        for lead in leads:
            row = lead.model_dump(include=set(CSV_COLUMNS), mode="json")
            row["quality_reasons"] = "; ".join(lead.quality_reasons)
            writer.writerow({k: "" if row.get(k) is None else row[k] for k in CSV_COLUMNS})
    return path
