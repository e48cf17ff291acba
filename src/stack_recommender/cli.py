"""CLI for the Stack Recommendation Engine.

Provides command-line interface for recommending tool stacks from a
company assessment and inspecting the tool catalog.
"""

import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from tool_catalog.schema import ToolCategory

from .app_logging import setup_logging
from .config import find_config_file, load_config
from .engine import RecommendationEngine, validate_assessment, validate_catalog
from .schema import BuiltScenario, RecommendationResult

console = Console()


@click.group()
@click.version_option(version="1.0.0", prog_name="stack-recommender")
@click.option(
    "--log-level",
    default="WARNING",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Log level for engine diagnostics (written to stderr)"
)
def main(log_level: str):
    """Stack Recommendation Engine.

    Evaluates a company assessment against the tool catalog and returns
    three competing tool stacks with clear reasoning.
    """
    setup_logging(log_level)


@main.command("recommend")
@click.option(
    "--catalog", "-c",
    required=True,
    type=click.Path(exists=True),
    help="Path to tool-catalog.json (or .yaml)"
)
@click.option(
    "--assessment", "-a",
    required=True,
    type=click.Path(exists=True),
    help="Path to company assessment JSON or YAML file"
)
@click.option(
    "--config", "config_path",
    type=click.Path(exists=True),
    help="Path to recommender config YAML (default: auto-discovered)"
)
@click.option(
    "--out", "-o",
    type=click.Path(),
    help="Output file for JSON results (default: stdout)"
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Show detailed output"
)
@click.option(
    "--json-output", "-j",
    is_flag=True,
    help="Output raw JSON instead of formatted text"
)
def recommend_cmd(
    catalog: str,
    assessment: str,
    config_path: Optional[str],
    out: Optional[str],
    verbose: bool,
    json_output: bool,
):
    """Recommend three tool stacks for a company.

    Examples:
        stack-recommender recommend -c catalog.json -a assessment.json
        stack-recommender recommend -c catalog.json -a assessment.yaml -v
        stack-recommender recommend -c catalog.json -a assessment.json -j -o result.json
    """
    try:
        config_file = Path(config_path) if config_path else find_config_file()
        config = load_config(config_file) if config_file else None

        engine = RecommendationEngine(config)
        engine.load_catalog(catalog)

        if not json_output:
            console.print(f"\n[bold blue]Stack Recommendation Engine[/bold blue]")
            console.print(f"Catalog: {catalog} ({engine.catalog.total_tools} tools)")
            console.print(f"Assessment: {assessment}")
            if config_file:
                console.print(f"Config: {config_file}")
            console.print()

            with console.status("Building scenarios..."):
                result = engine.recommend(assessment)
        else:
            result = engine.recommend(assessment)

        if json_output:
            output_json(result, out)
        else:
            display_result(result, verbose)
            if out:
                output_json(result, out)
                console.print(f"\n[green]Results saved to {out}[/green]")

    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


@main.command("validate")
@click.option(
    "--catalog", "-c",
    type=click.Path(),
    help="Path to tool-catalog.json"
)
@click.option(
    "--assessment", "-a",
    type=click.Path(),
    help="Path to company assessment file"
)
def validate_cmd(catalog: Optional[str], assessment: Optional[str]):
    """Validate catalog and/or assessment files.

    Examples:
        stack-recommender validate -c catalog.json
        stack-recommender validate -a assessment.json
        stack-recommender validate -c catalog.json -a assessment.json
    """
    if not catalog and not assessment:
        console.print("[yellow]Please specify --catalog and/or --assessment to validate[/yellow]")
        return

    all_valid = True

    if catalog:
        is_valid, issues = validate_catalog(catalog)
        if is_valid:
            console.print(f"[green]✓ Catalog valid: {catalog}[/green]")
        else:
            console.print(f"[red]✗ Catalog invalid: {catalog}[/red]")
            for issue in issues:
                console.print(f"  - {issue}")
            all_valid = False

    if assessment:
        is_valid, issues = validate_assessment(assessment)
        if is_valid:
            console.print(f"[green]✓ Assessment valid: {assessment}[/green]")
            for issue in issues:
                console.print(f"  [yellow]![/yellow] {issue}")
        else:
            console.print(f"[red]✗ Assessment invalid: {assessment}[/red]")
            for issue in issues:
                console.print(f"  - {issue}")
            all_valid = False

    sys.exit(0 if all_valid else 1)


@main.command("inspect")
@click.option(
    "--catalog", "-c",
    required=True,
    type=click.Path(exists=True),
    help="Path to tool-catalog.json"
)
@click.option(
    "--id", "tool_id",
    help="Show details for specific tool ID"
)
@click.option(
    "--category", "-k",
    help="Filter by tool category"
)
def inspect_cmd(catalog: str, tool_id: Optional[str], category: Optional[str]):
    """Inspect the tool catalog.

    View catalog contents and filter by category.
    """
    try:
        engine = RecommendationEngine()
        engine.load_catalog(catalog)
        cat = engine.catalog

        console.print(f"\n[bold blue]Tool Catalog[/bold blue]")
        console.print(f"Version: {cat.version}")
        console.print(f"Total Tools: {cat.total_tools}")
        console.print()

        if tool_id:
            tool = next((t for t in cat.tools if t.id == tool_id), None)
            if not tool:
                console.print(f"[red]Tool not found: {tool_id}[/red]")
                return
            display_tool_detail(tool)
            return

        filtered = cat.tools
        if category:
            wanted = ToolCategory.from_string(category)
            filtered = [t for t in filtered if t.category == wanted]

        console.print(f"Showing {len(filtered)} tools:\n")

        table = Table(show_header=True, header_style="bold")
        table.add_column("ID", style="cyan", no_wrap=True)
        table.add_column("Name")
        table.add_column("Category")
        table.add_column("Complexity")
        table.add_column("$/user", justify="right")
        table.add_column("AI")

        for tool in filtered[:30]:  # Limit display
            table.add_row(
                tool.id[:30],
                tool.display_name[:30],
                tool.category.value,
                tool.complexity.value,
                format_cost(tool.estimated_cost_per_user),
                "✓" if tool.has_ai_features else "",
            )

        console.print(table)

        if len(filtered) > 30:
            console.print(f"\n[dim]... and {len(filtered) - 30} more[/dim]")

    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


def format_cost(cost: Optional[float]) -> str:
    if cost is None:
        return "?"
    return f"${cost:,.2f}"


def display_result(result: RecommendationResult, verbose: bool):
    """Display recommendation result in formatted text."""
    summary = result.summary

    console.print(Panel(
        f"[bold]{result.company or 'Your company'}[/bold]\n\n"
        f"Current tools: {', '.join(result.user_tools) or 'None recognized'}\n"
        f"Anchor: [bold cyan]{result.anchor_tool or 'None'}[/bold cyan]\n"
        f"Eligible: {result.eligible_count} | Excluded: {result.excluded_count}",
        title="Recommendation Summary",
    ))

    if result.unmatched_tools:
        console.print(f"\n[yellow]Not in catalog:[/yellow] {', '.join(result.unmatched_tools)}")

    if summary.key_drivers:
        console.print("\n[bold]Key Drivers:[/bold]")
        for driver in summary.key_drivers:
            console.print(f"  [green]•[/green] {driver}")

    table = Table(show_header=True, header_style="bold", title="Scenarios")
    table.add_column("Scenario", style="cyan")
    table.add_column("Tools", justify="right")
    table.add_column("$/user/mo", justify="right")
    table.add_column("Reduction", justify="right")
    table.add_column("Automation", justify="right")
    for scenario in result.scenarios:
        table.add_row(
            scenario.title,
            str(len(scenario.tools)),
            format_cost(scenario.estimated_monthly_cost_per_user),
            f"{scenario.complexity_reduction_score}%",
            f"{scenario.workflow.automation_percentage}%",
        )
    console.print()
    console.print(table)

    for scenario in result.scenarios:
        display_scenario(scenario, verbose)

    if verbose and result.excluded:
        console.print(f"\n[bold]Excluded Tools ({len(result.excluded)}):[/bold]")
        for excluded in result.excluded[:15]:
            reasons = "; ".join(r.description for r in excluded.reasons)
            console.print(f"  [dim]• {excluded.name}: {reasons}[/dim]")


def display_scenario(scenario: BuiltScenario, verbose: bool):
    """Display one scenario as a tree."""
    tree = Tree(f"[bold cyan]{scenario.title}[/bold cyan]")

    tools = tree.add(f"[bold]Stack[/bold] (target {scenario.target_min_tools}-{scenario.target_max_tools})")
    for tool in scenario.tools:
        marker = " [yellow](anchor)[/yellow]" if tool.id == scenario.anchor_tool_id else ""
        tools.add(f"{tool.display_name} [dim]{tool.category.value}, {format_cost(tool.estimated_cost_per_user)}[/dim]{marker}")

    if scenario.displacement_list:
        displaced = tree.add("[bold]Replaces[/bold]")
        for name in scenario.displacement_list:
            displaced.add(name)

    if scenario.matched_clusters:
        clusters = tree.add("[bold]Proven Combinations[/bold]")
        for cluster in scenario.matched_clusters:
            clusters.add(f"{cluster.name} ({cluster.match_score})")

    if scenario.rationale:
        why = tree.add("[bold]Why[/bold]")
        why.add(scenario.rationale.goal)
        for message in scenario.rationale.best_for_user:
            why.add(f"[green]{message}[/green]")

    if verbose:
        workflow = tree.add(
            f"[bold]Workflow[/bold] ({scenario.workflow.weekly_human_hours}h human, "
            f"{scenario.workflow.weekly_ai_hours}h AI per week)"
        )
        for step in scenario.workflow.steps:
            workflow.add(f"{step.phase_name}: {step.tool_name} [dim]({step.estimated_time_per_week})[/dim]")
        for note in scenario.build_notes:
            tree.add(f"[dim]{note}[/dim]")

    console.print()
    console.print(tree)


def display_tool_detail(tool):
    """Display detailed tool information."""
    tree = Tree(f"[bold cyan]{tool.display_name}[/bold cyan]")

    identity = tree.add("[bold]Identity[/bold]")
    identity.add(f"ID: {tool.id}")
    identity.add(f"Name: {tool.name}")
    if tool.aliases:
        identity.add(f"Aliases: {', '.join(tool.aliases)}")
    if tool.website:
        identity.add(f"URL: {tool.website}")

    classification = tree.add("[bold]Classification[/bold]")
    classification.add(f"Category: {tool.category.value}")
    classification.add(f"Complexity: {tool.complexity.value}")
    classification.add(f"AI features: {'yes' if tool.has_ai_features else 'no'}")

    pricing = tree.add("[bold]Pricing[/bold]")
    pricing.add(f"Tier: {tool.pricing_tier.value}")
    pricing.add(f"Per user: {format_cost(tool.estimated_cost_per_user)}")
    pricing.add(f"Free forever: {'yes' if tool.has_free_forever else 'no'}")

    compliance = [
        label for label, flag in (
            ("SOC 2", tool.soc2), ("HIPAA", tool.hipaa), ("GDPR", tool.gdpr),
            ("EU data residency", tool.eu_data_residency),
            ("Self-hosted", tool.self_hosted), ("Air-gapped", tool.air_gapped),
        ) if flag
    ]
    if compliance:
        certs = tree.add("[bold]Compliance[/bold]")
        for label in compliance:
            certs.add(label)

    fit = tree.add("[bold]Best For[/bold]")
    fit.add(f"Team size: {', '.join(s.value for s in tool.best_for_team_size) or 'any'}")
    fit.add(f"Stage: {', '.join(s.value for s in tool.best_for_stage) or 'any'}")

    tree.add(f"[bold]Popularity[/bold]: {tool.composite_popularity:.0f}")

    console.print(tree)


def output_json(result: RecommendationResult, out_path: Optional[str]):
    """Output result as JSON."""
    json_str = result.model_dump_json(indent=2)

    if out_path:
        with open(out_path, "w", encoding="utf-8") as f:
            f.write(json_str)
    else:
        print(json_str)


@main.command("init-config")
@click.option(
    "--out", "-o",
    type=click.Path(),
    default="recommender-config.yaml",
    help="Output path for the configuration file"
)
@click.option(
    "--force", "-f",
    is_flag=True,
    help="Overwrite existing config file"
)
def init_config_cmd(out: str, force: bool):
    """Generate a default recommender configuration file.

    Creates a YAML configuration file with all available settings
    for customizing weights, filters and scenario sizing.

    Example:
        stack-recommender init-config --out my-config.yaml
    """
    from .config import save_default_config

    out_path = Path(out)
    if out_path.exists() and not force:
        console.print(f"[red]Error:[/red] Config file already exists: {out}")
        console.print("Use --force to overwrite")
        sys.exit(1)

    try:
        save_default_config(out_path)
        console.print(f"[green]✓[/green] Config file created: {out}")
        console.print("\nThis file configures:")
        console.print("  • weights - Default weights and pain point, stage, cost and philosophy modifiers")
        console.print("  • filters - Budget thresholds for eligibility")
        console.print("  • scoring - Neutral scores, familiarity bonus and anchor challenge ratio")
        console.print("  • tool_ranges - Target stack sizes per team size")
        console.print("\nThe recommender will look for config in this order:")
        console.print("  1. STACK_RECOMMENDER_CONFIG environment variable")
        console.print("  2. ./recommender-config.yaml (current directory)")
        console.print("  3. ~/.config/stack-recommender/config.yaml")
    except Exception as e:
        console.print(f"[red]Error creating config:[/red] {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
