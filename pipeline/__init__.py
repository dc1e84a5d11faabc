from .orchestrator import CascadingSearch, run_cascading_search
from .qualifier import LeadQualifier, qualify_leads
from .stream import format_sse, stream_leads
from .report import format_qualified_leads, write_leads_csv
from .sources import SourceError, SourceSet, default_sources

__all__ = [
    "CascadingSearch", "run_cascading_search",
    "LeadQualifier", "qualify_leads",
    "format_sse", "stream_leads",
    "format_qualified_leads", "write_leads_csv",
    "SourceError", "SourceSet", "default_sources",
]
