"""Click CLI entry point for ProblemScout."""

from __future__ import annotations

import asyncio
import json
import sys
from typing import TYPE_CHECKING

import click

from problemscout.config import Settings
from problemscout.db import Database
from problemscout.errors import (
    CreditExhaustedError,
    PaymentGatewayError,
    PaymentVerificationError,
    ProblemScoutError,
    ProfileNotFoundError,
)
from problemscout.logging import configure_logging

if TYPE_CHECKING:
    from problemscout.models.problem import Problem
    from problemscout.models.research import ResearchStage

FAILURE_MESSAGE = "Research failed, check your configuration or try a different topic."

_SINGLE_LINE = "\u2500" * 56  # ─


def _get_db(settings: Settings) -> Database:
    settings.ensure_data_dir()
    db = Database(settings.db_path)
    db.init_schema()
    return db


def _trunc_str(text: str, max_len: int) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def _echo_problems(problems: list[Problem]) -> None:
    if not problems:
        click.echo("No problems found.")
        return
    for position, p in enumerate(problems, start=1):
        s = p.scores
        click.echo(_SINGLE_LINE)
        click.echo(f"#{position}  [{p.signal_score:.1f}]  {p.problem_statement}")
        click.echo(
            f"    frequency {s.frequency:g}  pain {s.pain_intensity:g}  "
            f"monetization {s.monetization:g}  solvability {s.solvability:g}  "
            f"gap {s.competitive_gap:g}"
        )
        click.echo(
            f"    {p.metadata.mention_count} mentions across {', '.join(p.metadata.sources) or '-'}"
        )
        for quote in p.evidence[:2]:
            click.echo(f'    "{_trunc_str(quote.text, 90)}" ({quote.source})')
        if p.existing_solutions:
            names = ", ".join(c.name for c in p.existing_solutions)
            click.echo(f"    Existing tools: {names}")
        click.echo(f"    Next step: {p.suggested_next_step}")
    click.echo(_SINGLE_LINE)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """ProblemScout: find the customer problems worth solving in a market."""
    ctx.ensure_object(dict)
    settings = Settings()
    log_level = "DEBUG" if verbose else settings.log_level
    configure_logging(log_level=log_level, log_format=settings.log_format)
    ctx.obj["settings"] = settings
    ctx.obj["verbose"] = verbose


@cli.command()
@click.argument("topic")
@click.option("--user", "user_id", type=str, default=None, help="Charge the run to this profile")
@click.option("--dry-run", is_flag=True, help="Use canned data instead of calling the LLM")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json", "csv"], case_sensitive=False),
    default="table",
    help="Output format",
)
@click.pass_context
def research(
    ctx: click.Context,
    topic: str,
    user_id: str | None,
    dry_run: bool,
    output_format: str,
) -> None:
    """Research TOPIC and print ranked problems."""
    from problemscout.credits import ResearchService
    from problemscout.export import problems_to_csv
    from problemscout.providers import build_research_provider
    from problemscout.research import STAGE_LABELS, ResearchOrchestrator

    settings = ctx.obj["settings"]
    orchestrator = ResearchOrchestrator(
        build_research_provider(settings, dry_run=dry_run or settings.dry_run)
    )

    def on_progress(stage: ResearchStage) -> None:
        if output_format == "table":
            click.echo(STAGE_LABELS[stage])

    db = _get_db(settings) if user_id else None
    try:
        if db is not None and user_id is not None:
            service = ResearchService(db, orchestrator)
            outcome = asyncio.run(service.research(user_id, topic, on_progress))
            problems = outcome.problems
        else:
            problems = asyncio.run(orchestrator.run(topic, on_progress))
    except CreditExhaustedError:
        click.echo("No research credits left. Upgrade to Pro to keep researching.", err=True)
        sys.exit(1)
    except ProfileNotFoundError:
        click.echo(f"Profile {user_id} not found.", err=True)
        sys.exit(1)
    except ProblemScoutError as exc:
        click.echo(FAILURE_MESSAGE, err=True)
        click.echo(f"  {exc}", err=True)
        sys.exit(1)
    finally:
        if db is not None:
            db.close()

    if output_format == "json":
        payload = [p.model_dump(mode="json", by_alias=True) for p in problems]
        click.echo(json.dumps(payload, indent=2))
    elif output_format == "csv":
        click.echo(problems_to_csv(problems), nl=False)
    else:
        _echo_problems(problems)
        if user_id is not None:
            status = "Pro" if outcome.is_pro else f"{outcome.credits_remaining} credits left"
            click.echo(f"Saved as search {outcome.search_id} ({status}).")


@cli.command()
@click.argument("user_id")
@click.option("--limit", default=20, type=int, help="Number of past searches to show")
@click.pass_context
def history(ctx: click.Context, user_id: str, limit: int) -> None:
    """Show a user's past research."""
    settings = ctx.obj["settings"]
    db = _get_db(settings)
    try:
        if db.get_profile(user_id) is None:
            click.echo(f"Profile {user_id} not found.", err=True)
            sys.exit(1)
        searches = db.list_searches(user_id, limit=limit)
        if not searches:
            click.echo("No past research.")
            return
        for s in searches:
            top = s.results[0].signal_score if s.results else None
            top_str = f"top {top:.1f}" if top is not None else "no results"
            click.echo(
                f"  [{s.id}] {s.created_at:%Y-%m-%d %H:%M}  {s.topic} "
                f"({len(s.results)} problems, {top_str})"
            )
    finally:
        db.close()


@cli.command()
@click.option(
    "--window",
    type=click.Choice(["24h", "7d", "30d"]),
    default="7d",
    help="How far back to look",
)
@click.pass_context
def trends(ctx: click.Context, window: str) -> None:
    """Show what topics everyone has been researching."""
    from problemscout.models.search import TrendWindow
    from problemscout.trends import trending_topics

    settings = ctx.obj["settings"]
    db = _get_db(settings)
    try:
        entries = trending_topics(db, TrendWindow(window))
        if not entries:
            click.echo("No searches in this window.")
            return
        for e in entries:
            click.echo(f"  {e.trend.value:6s} {e.search_count:4d}  {e.topic}")
    finally:
        db.close()


@cli.group()
def profile() -> None:
    """Manage user profiles."""


@profile.command("create")
@click.option("--email", required=True, type=str)
@click.option("--first-name", default="", type=str)
@click.option("--last-name", default="", type=str)
@click.pass_context
def profile_create(ctx: click.Context, email: str, first_name: str, last_name: str) -> None:
    """Create a profile with the free research credits."""
    settings = ctx.obj["settings"]
    db = _get_db(settings)
    try:
        created = db.create_profile(
            email=email,
            first_name=first_name,
            last_name=last_name,
            credits=settings.free_credits,
        )
    except ValueError as exc:
        click.echo(str(exc), err=True)
        sys.exit(1)
    finally:
        db.close()
    click.echo(f"Created profile {created.id} ({created.email}) with {created.credits} credits.")


@profile.command("show")
@click.argument("user_id")
@click.pass_context
def profile_show(ctx: click.Context, user_id: str) -> None:
    """Show a profile's plan and credit balance."""
    settings = ctx.obj["settings"]
    db = _get_db(settings)
    try:
        found = db.get_profile(user_id)
    finally:
        db.close()
    if found is None:
        click.echo(f"Profile {user_id} not found.", err=True)
        sys.exit(1)
    name = f"{found.first_name} {found.last_name}".strip() or "-"
    click.echo(f"Profile {found.id}")
    click.echo(f"  Name:    {name}")
    click.echo(f"  Email:   {found.email}")
    click.echo(f"  Plan:    {'Pro' if found.is_pro else 'Free'}")
    click.echo(f"  Credits: {found.credits}")


@cli.command("verify-payment")
@click.argument("payment_id")
@click.option("--user", "user_id", required=True, type=str, help="Profile to upgrade")
@click.pass_context
def verify_payment(ctx: click.Context, payment_id: str, user_id: str) -> None:
    """Verify a Razorpay payment and activate Pro."""
    from problemscout.clients.razorpay import RazorpayClient
    from problemscout.payments import PaymentVerifier

    settings = ctx.obj["settings"]
    gateway = RazorpayClient(
        key_id=settings.razorpay_key_id,
        key_secret=settings.razorpay_key_secret,
        base_url=settings.razorpay_base_url,
    )
    db = _get_db(settings)
    try:
        result = PaymentVerifier(db, gateway, settings).verify(payment_id, user_id)
    except PaymentVerificationError as exc:
        click.echo(f"Verification failed ({exc.status_code}): {exc}", err=True)
        sys.exit(1)
    except PaymentGatewayError as exc:
        click.echo(f"Payment gateway error: {exc}", err=True)
        sys.exit(1)
    finally:
        db.close()
    click.echo(result.message)


@cli.command("check-config")
@click.pass_context
def check_config(ctx: click.Context) -> None:
    """Verify which API keys are configured."""
    settings = ctx.obj["settings"]
    click.echo(f"  LLM provider     {settings.llm_provider} ({settings.resolved_llm_model})")
    keys = {
        "Anthropic": bool(settings.anthropic_api_key),
        "Google": bool(settings.google_api_key),
        "Groq": bool(settings.groq_api_key),
        "Razorpay": settings.razorpay_configured,
    }
    for name, configured in keys.items():
        status = "OK" if configured else "-- not set"
        click.echo(f"  {name:16s} {status}")
    if not settings.llm_api_key:
        click.echo(f"  Warning: no API key for the selected provider ({settings.llm_provider}).")
