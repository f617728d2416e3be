from __future__ import annotations

from collections.abc import Sequence

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from reclaim.models.apps import InstalledApp, SmartCategory
from reclaim.models.cleanup import CleanupExecutionResult, CleanupPlan
from reclaim.models.enums import NodeKind
from reclaim.models.insight import DetectionReport
from reclaim.models.profile import Recommendation, UserProfile
from reclaim.models.scan import DiskNode
from reclaim.services.categories import review_cleanup_bytes, safe_cleanup_bytes
from reclaim.services.formatting import format_bytes, format_last_used
from reclaim.services.tree import top_nodes


def _catalog_table(apps: Sequence[InstalledApp], top_n: int) -> Table:
    table = Table(title="Installed Apps", header_style="bold cyan")
    table.add_column("App")
    table.add_column("Bundle ID")
    table.add_column("Last Used", justify="center")
    table.add_column("Bundle", justify="right")
    table.add_column("True Size", justify="right")
    for app in sorted(apps, key=lambda a: a.true_size_bytes, reverse=True)[:top_n]:
        table.add_row(
            app.display_name,
            app.bundle_id,
            format_last_used(app.last_used),
            format_bytes(app.bundle_size_bytes),
            format_bytes(app.true_size_bytes),
        )
    return table


def render_catalog(console: Console, apps: Sequence[InstalledApp], top_n: int = 25) -> None:
    total = sum(app.true_size_bytes for app in apps)
    console.print(
        Panel(
            f"Apps: [bold]{len(apps)}[/bold]\nTotal Footprint: [bold]{format_bytes(total)}[/bold]",
            title="App Catalog",
            border_style="blue",
        )
    )
    console.print(_catalog_table(apps, top_n))


def render_categories(console: Console, categories: Sequence[SmartCategory]) -> None:
    table = Table(title="Smart Categories", header_style="bold cyan")
    table.add_column("Category")
    table.add_column("Items", justify="right")
    table.add_column("Total", justify="right")
    table.add_column("Safe", justify="right")
    table.add_column("Review", justify="right")
    table.add_column("Risky", justify="right")
    for category in categories:
        table.add_row(
            category.kind.label,
            str(category.item_count),
            format_bytes(category.total_bytes),
            format_bytes(category.safe_bytes),
            format_bytes(category.review_bytes),
            format_bytes(category.risky_bytes),
        )
    console.print(table)
    console.print(
        f"Safe to clean: [bold]{format_bytes(safe_cleanup_bytes(categories))}[/bold], "
        f"needs review: [bold]{format_bytes(review_cleanup_bytes(categories))}[/bold]"
    )


def render_plan(console: Console, plan: CleanupPlan) -> None:
    table = Table(title="Cleanup Plan", header_style="bold yellow")
    table.add_column("Path")
    table.add_column("Group")
    table.add_column("Safety", justify="center")
    table.add_column("Size", justify="right")
    for artifact in plan.unique_artifacts():
        table.add_row(
            artifact.path,
            artifact.group_kind.label,
            artifact.safety_level.value,
            format_bytes(artifact.size_bytes),
        )
    console.print(table)
    console.print(f"Selected: [bold]{plan.file_count}[/bold] items, [bold]{format_bytes(plan.total_bytes)}[/bold]")


def render_cleanup_result(console: Console, result: CleanupExecutionResult) -> None:
    style = "green" if result.is_successful else "red"
    body = (
        f"Reclaimed: [bold]{format_bytes(result.reclaimed_bytes)}[/bold]\n"
        f"Moved to Trash: [bold]{len(result.removed_paths)}[/bold]\n"
        f"Failures: [bold]{len(result.failures)}[/bold]"
    )
    console.print(Panel(body, title="Cleanup Result", border_style=style))
    if result.failures:
        table = Table(title="Failures", header_style="bold red")
        table.add_column("Path")
        table.add_column("Reason")
        for failure in result.failures:
            table.add_row(failure.path, failure.reason)
        console.print(table)


def render_detection(console: Console, report: DetectionReport, top_n: int = 20) -> None:
    large = Table(title="Largest Items", header_style="bold yellow")
    large.add_column("Path")
    large.add_column("Type", justify="center")
    large.add_column("Size", justify="right")
    for item in report.large_items[:top_n]:
        large.add_row(item.path, "DIR" if item.is_dir else "FILE", format_bytes(item.size_bytes))
    console.print(large)

    dupes = Table(title="Duplicate Clusters", header_style="bold magenta")
    dupes.add_column("Name")
    dupes.add_column("Copies", justify="right")
    dupes.add_column("Total", justify="right")
    dupes.add_column("Reclaimable", justify="right")
    for group in report.duplicate_groups[:top_n]:
        dupes.add_row(
            group.name,
            str(len(group.duplicates)),
            format_bytes(group.total_bytes),
            format_bytes(group.potential_reclaim),
        )
    console.print(dupes)
    console.print(f"Potential duplicate reclaim: [bold]{format_bytes(report.potential_duplicate_reclaim)}[/bold]")


def render_recommendations(
    console: Console, profile: UserProfile, recommendations: Sequence[Recommendation], top_n: int = 16
) -> None:
    kinds = ", ".join(kind.value for kind in profile.kinds)
    console.print(
        Panel(
            f"Profile: [bold]{kinds}[/bold]\nConfidence: [bold]{profile.confidence:.2f}[/bold]",
            title="Recommendations",
            border_style="blue",
        )
    )
    table = Table(header_style="bold cyan")
    table.add_column("Title")
    table.add_column("Detail")
    table.add_column("Impact", justify="right")
    table.add_column("Risk", justify="right")
    for rec in recommendations[:top_n]:
        table.add_row(rec.title, rec.detail, f"{rec.impact_score:.2f}", f"{rec.risk_score:.2f}")
    console.print(table)


def render_storage_map(console: Console, root: DiskNode, top_n: int = 20) -> None:
    console.print(
        Panel(
            f"Root: [bold]{root.path}[/bold]\nTotal Size: [bold]{format_bytes(root.size_bytes)}[/bold]",
            title="Storage Map",
            border_style="blue",
        )
    )
    table = Table(title="Top Space Consumers", header_style="bold cyan")
    table.add_column("Path")
    table.add_column("Type", justify="center")
    table.add_column("Size", justify="right")
    for node in top_nodes(root, top_n):
        table.add_row(
            node.path,
            "DIR" if node.kind is NodeKind.DIRECTORY else "FILE",
            format_bytes(node.size_bytes),
        )
    console.print(table)
