"""Rich views for engagement plans."""

from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from .plans.models import Plan, Step, StepRole, StepStatus
from .plans.stats import PlanStats, compute_plan_stats

STATUS_ICONS = {
	StepStatus.PLANNED: "[dim]○[/dim]",
	StepStatus.CONCLUDED: "[green]●[/green]",
}

ROLE_LABELS = {
	StepRole.INITIAL: "Initial Step",
	StepRole.INTERMEDIATE: "Step",
	StepRole.END: "End Step",
}


def progress_bar(pct: int, width: int = 20) -> str:
	"""Render a percentage as a fixed-width block bar."""
	filled = round(width * max(0, min(100, pct)) / 100)
	return "█" * filled + "░" * (width - filled)


def _step_line(step: Step) -> str:
	icon = STATUS_ICONS[step.status]
	date = f" [dim]{step.date}[/dim]" if step.date else ""
	return (
		f"{icon} [bold]{ROLE_LABELS[step.role]}[/bold]: {escape(step.display_title)}{date} "
		f"[dim]({step.progress}%, p={step.success_probability}%)[/dim]"
	)


def render_plan_progress(plan: Plan, console: Optional[Console] = None) -> None:
	"""Render a plan as a Rich Tree of its steps, left to right as top to bottom."""
	console = console or Console()
	stats = compute_plan_stats(plan)

	tree = Tree(
		f"[bold]{escape(plan.title)}[/bold]  "
		f"[dim]({plan.start_date} -> {plan.end_date}, {stats.current_progress}% done)[/dim]"
	)
	for step in plan.steps:
		branch = tree.add(_step_line(step))
		if step.status == StepStatus.CONCLUDED and step.review:
			branch.add(f"[italic]{escape(step.review)}[/italic]")

	console.print(tree)


def render_plan_summary(plan: Plan, console: Optional[Console] = None, stats: Optional[PlanStats] = None) -> None:
	"""Render a summary panel with derived stats and checks."""
	console = console or Console()
	stats = stats or compute_plan_stats(plan)

	pending = (
		f"{stats.remaining_planned} planned step(s)" if stats.remaining_planned else "No pending steps"
	)
	lines = [
		f"[bold]Title:[/bold] {escape(plan.title)}",
		f"[bold]Dates:[/bold] {plan.start_date} -> {plan.end_date}",
		f"[bold]Steps:[/bold] {len(plan.steps)}",
		"",
		f"[bold]Progress:[/bold] {progress_bar(stats.current_progress)} {stats.current_progress}%",
		f"[bold]Success probability:[/bold] {progress_bar(stats.displayed_probability)} "
		f"{stats.displayed_probability}% [dim]({pending})[/dim]",
	]

	if stats.flags:
		lines.append("")
		lines.append("[bold]Checks:[/bold]")
		for flag in stats.visible_flags:
			lines.append(f"  - [yellow]{escape(flag)}[/yellow]")
		hidden = len(stats.flags) - len(stats.visible_flags)
		if hidden:
			lines.append(f"  [dim]... and {hidden} more[/dim]")

	console.print(Panel("\n".join(lines), title=f"Plan: {plan.id}", border_style="cyan"))


def render_plan_table(plans: list[Plan], console: Optional[Console] = None) -> None:
	"""Render a table of plans with their headline stats."""
	console = console or Console()

	if not plans:
		console.print("[dim]No plans found.[/dim]")
		return

	table = Table(title="Engagement Plans")
	table.add_column("ID", style="dim")
	table.add_column("Title", style="bold")
	table.add_column("Dates")
	table.add_column("Steps", justify="right")
	table.add_column("Progress", justify="right")
	table.add_column("Probability", justify="right")
	table.add_column("Checks", justify="right")

	for plan in plans:
		stats = compute_plan_stats(plan)
		table.add_row(
			plan.id,
			escape(plan.title),
			f"{plan.start_date} -> {plan.end_date}",
			str(len(plan.steps)),
			f"{stats.current_progress}%",
			f"{stats.displayed_probability}%",
			f"[yellow]{len(stats.flags)}[/yellow]" if stats.flags else "0",
		)

	console.print(table)
