#!/usr/bin/env python3
"""
Deployment Assessor CLI - feasibility assessment for AI deployment plans.

Commands:
    evaluate  Stream a full evaluation of a plan
    capacity  Print the deterministic capacity table for a plan
    catalog   List known models and accelerators
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Dict, Optional

import typer
from pydantic.alias_generators import to_camel
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from agents.business_evaluator import create_business_evaluator
from agents.intent_guard import IntentGuard
from agents.technical_evaluator import create_technical_evaluator
from core.capacity import CapacityModel
from core.config import settings
from core.errors import CapacityValidationError, PlanValidationError
from core.pipeline import EvaluationOrchestrator, Frame
from core.record_store import JsonRecordStore
from core.reference_data import default_catalog, format_parameter_size
from core.types.enums import Stage
from core.types.models import PlanRequest, ResourceFeasibility, parse_plan
from core.utils import setup_logging

app = typer.Typer(
    name="deployment-assessor",
    help="Feasibility assessment for AI deployment plans",
    add_completion=False,
)
console = Console()


def _load_plan(
    plan_file: Optional[Path],
    overrides: Dict[str, Any],
) -> PlanRequest:
    data: Dict[str, Any] = {}
    if plan_file is not None:
        if not plan_file.exists():
            console.print(f"[red]Error: Plan file not found: {plan_file}[/red]")
            raise typer.Exit(1)
        with open(plan_file) as f:
            data = json.load(f)
    data.update({to_camel(k): v for k, v in overrides.items() if v is not None})
    try:
        return parse_plan(data)
    except PlanValidationError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(2)


def _capacity_table(resource: ResourceFeasibility) -> Table:
    table = Table(title=f"Capacity (hardware score {resource.hardware_score}/100)")
    table.add_column("Regime", style="cyan")
    table.add_column("Required GB", justify="right")
    table.add_column("Available GB", justify="right")
    table.add_column("Usage %", justify="right")
    table.add_column("Feasible")
    for name, regime in (
        ("Pretraining", resource.pretraining),
        ("Fine-tuning", resource.fine_tuning),
        ("Inference", resource.inference),
    ):
        table.add_row(
            name,
            f"{regime.memory_required_gb:g}",
            f"{regime.memory_available_gb:g}",
            str(regime.memory_usage_percent),
            "[green]yes[/green]" if regime.feasible else "[red]no[/red]",
        )
    return table


def _quantization_table(resource: ResourceFeasibility) -> Table:
    inf = resource.inference
    table = Table(title=f"Inference: {inf.supported_throughput} tokens/s, {inf.supported_request_rate} req/s")
    table.add_column("Precision", style="cyan")
    table.add_column("Usage %", justify="right")
    table.add_column("Req/s", justify="right")
    table.add_column("Meets target")
    for variant in inf.quantization_options:
        table.add_row(
            variant.type.value,
            str(variant.memory_usage_percent),
            f"{variant.supported_request_rate:g}",
            "[green]yes[/green]" if variant.requirement_met else "[red]no[/red]",
        )
    return table


def _render_frame(frame: Frame) -> None:
    if frame.stage == Stage.REJECTED:
        console.print(Panel(frame.message or "", title="Rejected", border_style="red"))
    elif frame.stage == Stage.RESOURCE:
        if frame.payload is None:
            console.print(f"[yellow]Resource feasibility: {frame.message}[/yellow]")
        else:
            console.print(_capacity_table(frame.payload))
            console.print(_quantization_table(frame.payload))
            for suggestion in frame.payload.inference.suggestions:
                console.print(f"  • {suggestion}")
    elif frame.stage in (Stage.TECHNICAL, Stage.BUSINESS):
        verdict = frame.payload
        title = "Technical soundness" if frame.stage == Stage.TECHNICAL else "Business value"
        body = f"[bold]Score: {int(verdict.score)}/100[/bold]\n\n{verdict.summary or ''}"
        if verdict.recommendations:
            body += "\n\n" + "\n".join(f"• {r}" for r in verdict.recommendations)
        console.print(Panel(body, title=title, border_style="cyan"))
    elif frame.stage == Stage.ERROR:
        console.print(f"[red]{frame.which.value if frame.which else 'pipeline'} stage failed: {frame.message}[/red]")
    elif frame.stage == Stage.COMPLETE:
        console.print(f"[green]Evaluation {frame.record_id} complete[/green]")


@app.command()
def evaluate(
    plan_file: Optional[Path] = typer.Argument(None, help="JSON file describing the plan"),
    model: Optional[str] = typer.Option(None, "-m", "--model", help="Model identifier"),
    accelerator: Optional[str] = typer.Option(None, "-a", "--accelerator", help="Accelerator identifier"),
    machines: Optional[int] = typer.Option(None, "--machines", help="Machine count"),
    per_machine: Optional[int] = typer.Option(None, "--per-machine", help="Accelerators per machine"),
    scenario: Optional[str] = typer.Option(None, "-s", "--scenario", help="Business scenario description"),
    data: Optional[str] = typer.Option(None, "-d", "--data", help="Training data description"),
    quality: Optional[str] = typer.Option(None, "-q", "--quality", help="Data quality: high or low"),
    tps: Optional[int] = typer.Option(None, "--tps", help="Target tokens per second"),
    concurrency: Optional[int] = typer.Option(None, "--concurrency", help="Target concurrency"),
    concurrent: bool = typer.Option(settings.CONCURRENT_STAGES, "--concurrent/--sequential", help="Run evaluators concurrently"),
    sse: bool = typer.Option(False, "--sse", help="Print raw server-sent-event lines"),
    no_save: bool = typer.Option(False, "--no-save", help="Do not persist the evaluation record"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose output"),
):
    """
    Evaluate a deployment plan and stream each stage's result.

    Example:
        python cli.py evaluate plan.json
        python cli.py evaluate -m "Qwen3-8B" -a "NVIDIA RTX 4090" --machines 1 --per-machine 2 -s "..." -d "..."
    """
    setup_logging(level="DEBUG" if verbose else None)
    plan = _load_plan(plan_file, {
        "model_id": model,
        "accelerator_id": accelerator,
        "machine_count": machines,
        "accelerators_per_machine": per_machine,
        "business_scenario": scenario,
        "data_description": data,
        "data_quality": quality,
        "target_tokens_per_second": tps,
        "target_concurrency": concurrency,
    })

    if not sse:
        console.print(Panel.fit(
            f"[bold cyan]Deployment Assessor[/bold cyan]\n\n"
            f"Model: {plan.model_id}\n"
            f"Hardware: {plan.accelerator_id} x {plan.accelerator_count}\n"
            f"Target: {plan.target_tokens_per_second} tokens/s, concurrency {plan.target_concurrency}",
            title="Plan"
        ))

    orchestrator = EvaluationOrchestrator(
        capacity_model=CapacityModel(),
        technical_evaluator=create_technical_evaluator(),
        business_evaluator=create_business_evaluator(),
        intent_guard=IntentGuard(),
        record_store=None if no_save else JsonRecordStore(),
        concurrent=concurrent,
    )

    async def run() -> None:
        async for frame in orchestrator.stream(plan):
            if sse:
                typer.echo(frame.to_sse(), nl=False)
            else:
                _render_frame(frame)

    asyncio.run(run())


@app.command()
def capacity(
    model: str = typer.Option(..., "-m", "--model", help="Model identifier"),
    accelerator: str = typer.Option(..., "-a", "--accelerator", help="Accelerator identifier"),
    count: int = typer.Option(1, "-n", "--count", help="Total accelerator count"),
    tps: int = typer.Option(50, "--tps", help="Target tokens per second"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of tables"),
):
    """Print memory feasibility and throughput for a model on given hardware."""
    try:
        resource = CapacityModel().assess(model, accelerator, count, tps)
    except CapacityValidationError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(2)

    if resource is None:
        console.print(f"[yellow]Insufficient reference data for {model!r} on {accelerator!r}[/yellow]")
        console.print("Run 'catalog' to list known identifiers.")
        raise typer.Exit(1)

    if as_json:
        typer.echo(resource.model_dump_json(by_alias=True, indent=2))
        return
    console.print(_capacity_table(resource))
    console.print(_quantization_table(resource))
    for regime in (resource.pretraining, resource.fine_tuning, resource.inference):
        for suggestion in regime.suggestions:
            console.print(f"  • {suggestion}")


@app.command()
def catalog():
    """List known models and accelerators."""
    ref = default_catalog()

    models = Table(title="Models")
    models.add_column("Name", style="cyan")
    models.add_column("Parameters", justify="right")
    models.add_column("Architecture")
    models.add_column("Modality")
    models.add_column("Context")
    for profile in ref.models.values():
        models.add_row(
            profile.name,
            format_parameter_size(profile.parameter_count_b),
            profile.architecture.value,
            profile.modality.value,
            profile.context_window or "-",
        )
    console.print(models)

    accelerators = Table(title="Accelerators")
    accelerators.add_column("Name", style="cyan")
    accelerators.add_column("VRAM GB", justify="right")
    accelerators.add_column("TFLOPS", justify="right")
    for profile in ref.accelerators.values():
        accelerators.add_row(profile.name, f"{profile.vram_gb:g}", f"{profile.tflops:g}" if profile.tflops else "-")
    console.print(accelerators)


if __name__ == "__main__":
    app()
