"""Command-line interface for casegraph."""

import sys
import json
import argparse
from typing import Dict, List, Optional, Tuple

from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich import box

from .config import ConfigManager, CaseGraphConfig
from .errors import CaseGraphError
from .graph.export import to_dict
from .graph.model import VisibilityOptions
from .logging_config import setup_logging
from .session import InvestigationGraphSession
from .store.json_store import JsonGraphStateStore, JsonReportArchive

console = Console()


def open_session(args, config: CaseGraphConfig) -> InvestigationGraphSession:
    """Open a session over the archive and state files."""
    archive = JsonReportArchive(args.archive or config.archive_file, strict=args.strict)
    store = JsonGraphStateStore(args.state or config.state_file, strict=args.strict)
    return InvestigationGraphSession(store, archive, config)


def list_clusters(args, session: InvestigationGraphSession) -> int:
    """Show detected clusters with their default targets."""
    clusters = session.detect_clusters(args.case)

    if not clusters:
        console.print("[green]✅ No duplicate clusters detected[/green]")
        return 0

    table = Table(title=f"Detected Clusters ({len(clusters)})", box=box.ROUNDED)
    table.add_column("#", style="dim", width=4)
    table.add_column("Target", style="bold cyan")
    table.add_column("Variants", style="yellow")

    for idx, cluster in enumerate(clusters, 1):
        variants = ", ".join(m for m in cluster.members if m != cluster.target)
        table.add_row(str(idx), cluster.target, variants)

    console.print(table)
    return 0


def alias_changes(before: Dict[str, str], after: Dict[str, str]) -> Tuple[Dict[str, str], List[str]]:
    """Split an alias map update into written entries and removed keys."""
    written = {k: v for k, v in after.items() if before.get(k) != v}
    removed = sorted(k for k in before if k not in after)
    return written, removed


def merge_all(args, session: InvestigationGraphSession) -> int:
    """Merge every detected cluster into its default target."""
    clusters = session.detect_clusters(args.case)
    if not clusters:
        console.print("[green]✅ Nothing to merge[/green]")
        return 0

    before = session.merge_engine.aliases()
    written, removed = alias_changes(before, session.merge_all(clusters))

    console.print(
        f"[green]🔗 Merged {len(clusters)} cluster(s), {len(written)} alias entr"
        f"{'y' if len(written) == 1 else 'ies'} written, {len(removed)} removed[/green]"
    )
    for variant, target in sorted(written.items()):
        console.print(f"  {variant} [dim]→[/dim] {target}")
    for variant in removed:
        console.print(f"  [dim]- {variant} (was {before[variant]})[/dim]")
    return 0


def unmerge(args, session: InvestigationGraphSession) -> int:
    """Remove one alias entry."""
    if session.unmerge(args.variant):
        console.print(f"[green]Removed alias for '{args.variant}'[/green]")
        return 0
    console.print(f"[yellow]⚠️  No alias entry for '{args.variant}'[/yellow]")
    return 1


def show_graph(args, session: InvestigationGraphSession) -> int:
    """Build the graph and print its stats, or the full model as JSON."""
    options = VisibilityOptions(
        show_singletons=not args.hide_singletons,
        show_hidden_nodes=args.show_hidden,
        show_flagged_only=args.flagged_only,
    )
    model = session.build_graph(args.case, options)

    if args.json:
        print(json.dumps(to_dict(model), indent=2))
        return 0

    stats = model.stats
    summary = (
        f"Reports in scope: [bold]{stats.reports_in_scope}[/bold]\n"
        f"Entity nodes:     [bold]{stats.entity_node_count}[/bold]\n"
        f"Edges:            [bold]{stats.edge_count}[/bold]\n"
        f"Hubs:             [bold]{stats.hub_count}[/bold]"
    )
    console.print(Panel(summary, title="Investigation Graph", border_style="cyan"))

    hubs = sorted(
        (n for n in model.nodes if n.connection_count > 1),
        key=lambda n: n.connection_count,
        reverse=True,
    )
    if hubs:
        table = Table(title="Hubs", box=box.SIMPLE)
        table.add_column("Node", style="cyan")
        table.add_column("Kind")
        table.add_column("Connections", justify="right")
        for node in hubs[: args.limit]:
            table.add_row(node.label, node.kind.value, str(node.connection_count))
        console.print(table)
    return 0


def rename(args, session: InvestigationGraphSession) -> int:
    """Rename an entity across all archived reports."""
    changed = session.rename_entity(args.old_name, args.new_name)
    console.print(f"Renamed '{args.old_name}' to '{args.new_name}' in {changed} report(s)")
    return 0


def generate_config(args) -> int:
    """Write or print a configuration template."""
    if args.output:
        ConfigManager().save_template(args.output)
        console.print(f"Configuration template saved to: {args.output}")
    else:
        print(json.dumps(CaseGraphConfig().model_dump(), indent=2))
    return 0


COMMANDS = {
    "clusters": list_clusters,
    "merge-all": merge_all,
    "unmerge": unmerge,
    "graph": show_graph,
    "rename": rename,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="casegraph",
        description="Resolve duplicate entity names and build investigation graphs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # List clusters of likely-duplicate names
  casegraph --archive reports.json clusters

  # Merge every cluster into its longest name
  casegraph --archive reports.json --state state.json merge-all

  # Graph stats for one case, singletons hidden
  casegraph graph --case case-7 --hide-singletons
""",
    )
    parser.add_argument("-c", "--config", help="Path to configuration file")
    parser.add_argument("--archive", help="Report archive JSON file")
    parser.add_argument("--state", help="Graph state JSON file")
    parser.add_argument(
        "--strict", action="store_true", help="Fail on unreadable archive or state files"
    )
    parser.add_argument("--log-format", choices=["json", "text"], default="text")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    clusters_parser = subparsers.add_parser("clusters", help="List detected clusters")
    clusters_parser.add_argument("--case", help="Case id, or ALL")

    merge_parser = subparsers.add_parser("merge-all", help="Merge every detected cluster")
    merge_parser.add_argument("--case", help="Case id, or ALL")

    unmerge_parser = subparsers.add_parser("unmerge", help="Remove an alias entry")
    unmerge_parser.add_argument("variant", help="Variant name whose alias is removed")

    graph_parser = subparsers.add_parser("graph", help="Build the investigation graph")
    graph_parser.add_argument("--case", help="Case id, or ALL")
    graph_parser.add_argument("--hide-singletons", action="store_true")
    graph_parser.add_argument("--show-hidden", action="store_true")
    graph_parser.add_argument("--flagged-only", action="store_true")
    graph_parser.add_argument("--json", action="store_true", help="Print the model as JSON")
    graph_parser.add_argument("--limit", type=int, default=15, help="Hubs to list")

    rename_parser = subparsers.add_parser("rename", help="Rename an entity in all reports")
    rename_parser.add_argument("old_name")
    rename_parser.add_argument("new_name")

    config_parser = subparsers.add_parser("generate-config", help="Generate configuration template")
    config_parser.add_argument("-o", "--output", help="Save to file (default: print to stdout)")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    if args.command == "generate-config":
        return generate_config(args)

    try:
        config = ConfigManager(args.config).load()
        setup_logging(
            format=args.log_format,
            level="DEBUG" if args.verbose else config.log_level,
        )
        session = open_session(args, config)
        return COMMANDS[args.command](args, session)
    except KeyboardInterrupt:
        console.print("\n⚠️  Interrupted by user")
        return 1
    except CaseGraphError as e:
        console.print(f"\n[red]❌ Error: {e.message}[/red]")
        if args.verbose:
            console.print_exception()
        return 1


if __name__ == "__main__":
    sys.exit(main())
