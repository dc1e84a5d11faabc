"""Cascading lead discovery and qualification.

Entry point for the pipeline. Discovery and qualification can run
separately (results are handed over through JSON files in output/) or
together as one streamed run.

Usage:
  # Discover contacts only
  python agent.py discover --types bloggers --markets "South Africa" \
      --genre amapiano --target 20 --depth deep

  # Qualify a previous discovery run
  python agent.py qualify --input output/discovery.json --niche amapiano \
      --location Soweto --platform tiktok

  # Both, streaming progress as it happens
  python agent.py run --types dancers --markets "South Africa" --genre amapiano \
      --platform tiktok --location Soweto --target 10 --depth full
"""
import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from db.connection import database_configured, dispose_engine
from pipeline import (
    CascadingSearch,
    LeadQualifier,
    format_qualified_leads,
    stream_leads,
    write_leads_csv,
)
from pipeline_config import get_settings
from schemas import Brief, Candidate, QualificationConfig, QualifiedLead

logger = logging.getLogger(__name__)

OUTPUT_DIR = Path(__file__).parent / "output"


def _write_json(name: str, payload: dict) -> Path:
    OUTPUT_DIR.mkdir(exist_ok=True)
    path = OUTPUT_DIR / name
    path.write_text(json.dumps(payload, indent=2, default=str))
    return path


def _print_progress(event) -> None:
    print(f"  [{event.tier}] {event.status}: {event.current_source} ({event.found}/{event.target})")


def _brief_from_args(args) -> Brief:
    return Brief(
        contact_types=args.types,
        markets=args.markets,
        genre=args.genre,
        query=args.query,
        target_count=args.target,
        search_depth=args.depth,
        preferred_platform=args.platform,
        specific_location=args.location,
    )


def _config_from_args(args, brief: Optional[Brief] = None) -> QualificationConfig:
    entity_type = args.entity_type or (" ".join(brief.contact_types) if brief else "")
    niche = args.niche or (brief.genre if brief and brief.genre else "")
    return QualificationConfig(
        entity_type=entity_type,
        niche=niche,
        target_location=args.location or "",
        platform=args.platform or "",
        max_to_qualify=args.max if args.max is not None else get_settings().max_to_qualify,
    )


def _save_qualified(leads: list, stem: str) -> None:
    json_path = _write_json(f"{stem}.json", {"qualified": [q.model_dump(mode="json") for q in leads]})
    csv_path = write_leads_csv(leads, OUTPUT_DIR / f"{stem}.csv")
    print(f"  Qualified leads written to {json_path} and {csv_path}")


async def run_discovery(brief: Brief) -> dict:
    """Discovery only: tiered search, written to output/discovery.json."""
    print(f"\n[Discovery] Searching for {brief.target_count} contacts (depth={brief.search_depth})...")
    result = await CascadingSearch().run(brief, on_progress=_print_progress)
    print(f"  Stopped at {result.tier}: {len(result.contacts)} contacts returned, {result.total} unique found")

    payload = result.model_dump(mode="json")
    path = _write_json("discovery.json", payload)
    print(f"  Result saved to {path}")
    return payload


async def run_qualification(input_path: Path, config: QualificationConfig) -> list:
    """Qualify the contacts of a saved discovery run."""
    data = json.loads(input_path.read_text())
    contacts = [Candidate.model_validate(c) for c in data.get("contacts", [])]
    print(f"\n[Qualify] Qualifying {len(contacts)} contacts from {input_path}...")

    result = await LeadQualifier().qualify(
        contacts,
        config,
        on_progress=lambda e: print(f"  [Qualify] {e.current_source} ({e.found}/{e.target})"),
    )
    print(result.logs[-1] if result.logs else "")
    print(format_qualified_leads(result.qualified))
    _save_qualified(result.qualified, "qualified")
    return result.qualified


async def run_pipeline(brief: Brief, config: QualificationConfig) -> dict:
    """Discovery then qualification as one streamed run."""
    print(f"\n[Pipeline] Searching for {brief.target_count} contacts (depth={brief.search_depth})...")
    final: dict = {}
    async for event in stream_leads(brief, config):
        if event["type"] in ("progress", "qualify_progress"):
            print(f"  [{event['tier']}] {event['status']}: {event['current_source']} "
                  f"({event['found']}/{event['target']})")
        elif event["type"] == "error":
            print(f"  Pipeline failed: {event['message']}")
            final = event
        else:
            final = event

    if final.get("type") == "complete":
        leads = [QualifiedLead.model_validate(q) for q in final["qualified"]]
        print(format_qualified_leads(leads))
        _save_qualified(leads, "leads")
    path = _write_json("run.json", final)
    print(f"  Result saved to {path}")
    return final


def _add_brief_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--types", nargs="+", default=[], help="Contact types, e.g. bloggers curators")
    parser.add_argument("--markets", nargs="+", default=["South Africa"], help="Market names")
    parser.add_argument("--genre", default=None)
    parser.add_argument("--query", default=None, help="Freeform query to prepend")
    parser.add_argument("--target", type=int, default=20, help="Target number of contacts")
    parser.add_argument("--depth", choices=["quick", "deep", "full"], default="deep")


def _add_qualify_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--entity-type", default="", help="Entity type to match (defaults to --types)")
    parser.add_argument("--niche", default="", help="Niche to match (defaults to --genre)")
    parser.add_argument("--max", type=int, default=None, help="Max contacts to verify")


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Cascading lead discovery and qualification")
    sub = parser.add_subparsers(dest="command")

    discover = sub.add_parser("discover", help="Run tiered discovery only")
    _add_brief_args(discover)
    discover.add_argument("--platform", default=None, help="Preferred social platform")
    discover.add_argument("--location", default=None, help="Specific city or township")

    qualify = sub.add_parser("qualify", help="Qualify a saved discovery result")
    qualify.add_argument("--input", type=Path, default=OUTPUT_DIR / "discovery.json")
    qualify.add_argument("--platform", default="", help="Platform to verify on first")
    qualify.add_argument("--location", default="", help="Target location")
    _add_qualify_args(qualify)

    run = sub.add_parser("run", help="Discover and qualify in one streamed run")
    _add_brief_args(run)
    run.add_argument("--platform", default=None, help="Preferred social platform")
    run.add_argument("--location", default=None, help="Specific city or township")
    _add_qualify_args(run)

    return parser


async def _dispatch(args) -> None:
    try:
        if args.command == "discover":
            await run_discovery(_brief_from_args(args))
        elif args.command == "qualify":
            await run_qualification(args.input, _config_from_args(args))
        elif args.command == "run":
            brief = _brief_from_args(args)
            await run_pipeline(brief, _config_from_args(args, brief))
    finally:
        if database_configured():
            await dispose_engine()


def main() -> None:
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "WARNING").upper(),
        format="%(levelname)s %(name)s %(message)s",
    )
    parser = _build_arg_parser()
    args = parser.parse_args()
    if args.command is None:
        parser.print_help()
        sys.exit(1)
    asyncio.run(_dispatch(args))


if __name__ == "__main__":
    main()
