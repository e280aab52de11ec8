import asyncio
import json
from pathlib import Path
from typing import List

import typer

import campaign_guide.db_models  # noqa: F401

from campaign_guide.database import create_tables, engine
from campaign_guide.guidelines.exceptions import GuidelineAnalysisError, SchemaViolation
from campaign_guide.guidelines.service import analyze_guideline
from campaign_guide.guidelines.services.fallback_extractor import extract_fallback_fields

cli = typer.Typer()


def _read_guideline(file: str) -> str:
    path = Path(file)
    if not path.exists():
        typer.echo(f"❌ File not found: {path}")
        raise typer.Exit(code=1)
    return path.read_text(encoding="utf-8")


@cli.command(name="analyze")
def analyze(
    file: str = typer.Option(..., "--file", "-f", help="Path to a guideline text file"),
    platforms: List[str] = typer.Option([], "--platform", "-p", help="Candidate platform name (repeatable)"),
    categories: List[str] = typer.Option([], "--category", "-c", help="Allowed category (repeatable)"),
    channels: List[str] = typer.Option([], "--channel", help="Allowed review channel (repeatable)"),
):
    """
    Runs the full guideline analysis (LLM + repair + fallback extraction) and prints the record.
    """
    guideline = _read_guideline(file)

    async def main():
        return await analyze_guideline(
            guideline,
            platforms=platforms,
            categories=categories,
            review_channels=channels,
        )

    try:
        result = asyncio.run(main())
    except SchemaViolation as e:
        typer.echo(f"❌ {e}")
        typer.echo(f"   Fallback fields: {json.dumps(e.fallback.as_dict(), ensure_ascii=False)}")
        raise typer.Exit(code=1)
    except GuidelineAnalysisError as e:
        typer.echo(f"❌ {e}")
        raise typer.Exit(code=1)

    typer.echo(f"✅ status={result.status.value} filled={list(result.filled_fields)}")
    typer.echo(result.analysis.model_dump_json(by_alias=True, indent=2))


@cli.command(name="extract")
def extract(
    file: str = typer.Option(..., "--file", "-f", help="Path to a guideline text file"),
    platforms: List[str] = typer.Option([], "--platform", "-p", help="Candidate platform name (repeatable)"),
):
    """
    Runs only the rule-based fallback extraction (no LLM call).
    """
    guideline = _read_guideline(file)
    fields = extract_fallback_fields(guideline, platforms)
    typer.echo(json.dumps(fields.as_dict(), ensure_ascii=False, indent=2))


@cli.command(name="init-db")
def init_db():
    """
    Creates the usage tables if they do not exist.
    """
    async def main():
        await create_tables()
        await engine.dispose()

    asyncio.run(main())
    typer.echo("✅ Tables created")


if __name__ == "__main__":
    cli()
