"""Discovery and qualification as one stream of events.

`stream_leads` yields plain dicts ready for JSON:

    {"type": "progress", "tier", "status", "found", "target", "current_source", "logs"}
    {"type": "qualify_progress", ...same fields...}
    {"type": "complete", "contacts", "qualified", "total", "tier", "cancelled", "logs"}
    {"type": "error", "message", "logs"}

Closing the generator early cancels the run.
"""
import asyncio
import json
import logging
from typing import Any, AsyncIterator, Dict, List, Optional

from pipeline.orchestrator import CascadingSearch
from pipeline.qualifier import LeadQualifier
from pipeline.sources import SourceSet, default_sources
from pipeline_config import PipelineSettings, get_settings
from schemas import Brief, ProgressEvent, QualificationConfig

logger = logging.getLogger(__name__)

_DONE = object()


def format_sse(event: Dict[str, Any]) -> str:
    """One server-sent-events frame."""
    return f"data: {json.dumps(event, default=str)}\n\n"


async def stream_leads(
    brief: Brief,
    config: Optional[QualificationConfig] = None,
    sources: Optional[SourceSet] = None,
    settings: Optional[PipelineSettings] = None,
) -> AsyncIterator[Dict[str, Any]]:
    """Run discovery, then qualification when `config` is given, yielding events as they happen."""
    settings = settings or get_settings()
    sources = sources or default_sources(settings)
    queue: asyncio.Queue = asyncio.Queue()
    cancel_event = asyncio.Event()
    logs: List[str] = []

    def forward(kind: str):
        def push(event: ProgressEvent) -> None:
            queue.put_nowait({"type": kind, **event.model_dump()})
        return push

    async def work() -> None:
        try:
            discovery = await CascadingSearch(sources, settings).run(
                brief, forward("progress"), cancel_event
            )
            logs.extend(discovery.logs)
            qualified = []
            cancelled = discovery.cancelled
            if config is not None and not cancelled:
                qualification = await LeadQualifier(sources.profiles, settings).qualify(
                    discovery.contacts, config, forward("qualify_progress"), cancel_event
                )
                logs.extend(qualification.logs)
                qualified = [q.model_dump(mode="json") for q in qualification.qualified]
                cancelled = qualification.cancelled
            queue.put_nowait({
                "type": "complete",
                "contacts": [c.model_dump(mode="json") for c in discovery.contacts],
                "qualified": qualified,
                "total": discovery.total,
                "tier": discovery.tier,
                "cancelled": cancelled,
                "logs": list(logs),
            })
        except Exception as exc:
            logger.exception("Lead stream failed")
            queue.put_nowait({
                "type": "error",
                "message": str(exc) or type(exc).__name__,
                "logs": [*logs, f"Error: {exc}"],
            })
        finally:
            queue.put_nowait(_DONE)

    task = asyncio.create_task(work())
    try:
        while True:
            event = await queue.get()
            if event is _DONE:
                break
            yield event
    finally:
        if not task.done():
            cancel_event.set()
            try:
                await asyncio.wait({task})
            except asyncio.CancelledError:
                task.cancel()
                raise
