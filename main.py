import argparse
import sys
# Force UTF-8 encoding for Windows consoles
if sys.platform == "win32":
    sys.stdout.reconfigure(encoding='utf-8')
    sys.stderr.reconfigure(encoding='utf-8')

# ---------------------------
# Rich UI
# ---------------------------
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.progress import Progress, SpinnerColumn, BarColumn, TextColumn, TimeElapsedColumn, MofNCompleteColumn
from rich import box
from rich.prompt import Confirm

console = Console()

# ---------------------------
# Config & Wordlists
# ---------------------------
from module.config.config import load_config, load_wordlists

# ---------------------------
# Permutations & Sharding
# ---------------------------
from module.permute.permutation import shard_lists, calculate_total_permutations

# ---------------------------
# Requests & Pipeline
# ---------------------------
from module.curl.curl_config import CurlConfig
from module.worker.pipeline import run_pipeline
from module.worker.worker_pool import DEFAULT_WORKERS

# ---------------------------
# Logging & Errors
# ---------------------------
from utils.errors import ConfigError
from utils.logger import log_message, LOG_PATH
from utils.reporter import ConsoleReporter


# ======================================================
# Helper utilities
# ======================================================

def display_banner():
    """Display faast ASCII banner"""
    banner = """
    ╔═══════════════════════════════════════════════════════╗
    ║                                                       ║
    ║               ╔═╗╔═╗╔═╗╔═╗╔╦╗                         ║
    ║               ╠╣ ╠═╣╠═╣╚═╗ ║                          ║
    ║               ╚  ╩ ╩╩ ╩╚═╝ ╩                          ║
    ║                                                       ║
    ║        Sharded Wordlist Permutation Fuzzer            ║
    ║                                                       ║
    ╚═══════════════════════════════════════════════════════╝
    """
    console.print(banner, style="bold cyan")

def append_log(text):
    """Append to log file"""
    try:
        log_message(text)
    except OSError as e:
        console.print(f"[yellow]Warning: Logging error: {e}[/]")


# ======================================================
# AUTHORIZATION
# ======================================================

def verify_authorization(target):
    """Verify user has authorization to fuzz target"""
    console.print(Panel.fit(
        "[bold red]⚠️  LEGAL WARNING[/]\n\n"
        f"You are about to fuzz: [yellow]{target}[/]\n\n"
        "• Brute-forcing an endpoint without permission may be illegal\n"
        "• You must have explicit written permission from the target owner\n"
        "• This tool is for authorized security testing only\n\n"
        "[bold]By continuing, you confirm you have proper authorization.[/]",
        title="⚖️  Authorization Required",
        border_style="red"
    ))

    if not Confirm.ask("\n[yellow]Do you have written authorization to fuzz this target?[/]", default=False):
        console.print("[red]✗ Run aborted - Authorization not confirmed[/]")
        append_log(f"Run aborted - Authorization not confirmed for {target}")
        sys.exit(1)

    append_log(f"Authorization confirmed for target: {target}")
    console.print("[green]✓ Authorization confirmed[/]\n")


# ======================================================
# Run plan & summary
# ======================================================

def display_run_plan(config, wordlists, shards, total, workers):
    """Display what will be sent"""
    table = Table(title="Run Plan", box=box.DOUBLE_EDGE)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Endpoint", config.endpoint)
    table.add_row("Fields", ", ".join(config.fields))
    for path, words in zip(config.wordlists, wordlists):
        table.add_row("Wordlist", f"{path} ({len(words)} entries)")
    if config.static_values:
        table.add_row("Static values", ", ".join(config.static_values))
    if config.validate_type == "size":
        table.add_row("Baseline", f"size == {config.size_default}")
    elif config.validate_type == "code":
        table.add_row("Baseline", f"status == {config.code_default}")
    else:
        table.add_row("Baseline", f"[yellow]none ({config.validate_type or 'unset'})[/]")
    table.add_row("Rate limit", f"{config.rate_limit:g} req/s" if config.rate_limit else "unlimited")
    table.add_row("Timeout", f"{config.timeout:g}s" if config.timeout else "none")
    table.add_row("Workers", str(workers))
    table.add_row("Sharding", f"list {config.shard_index} into {config.num_shards} shard(s) ({len(shards)} produced)")
    table.add_row("Permutations", f"~{total}")

    console.print(table)

def display_summary(summary):
    """Display end of run summary"""
    table = Table(title="Run Summary", box=box.ROUNDED)
    table.add_column("Category", style="cyan")
    table.add_column("Count", justify="right", style="yellow")
    table.add_column("Status", justify="center")

    table.add_row("Results", str(summary.total), "[green]✓[/]")
    table.add_row("Errors", str(summary.errors), "[red]![/]" if summary.errors else "[green]✓[/]")
    table.add_row("Anomalies", str(summary.anomalies), "[red]![/]" if summary.anomalies else "[green]✓[/]")

    console.print(table)


# ======================================================
# Main Function
# ======================================================

def build_parser():
    parser = argparse.ArgumentParser(
        description="faast - sharded wordlist permutation fuzzer",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run everything described in a config file
  python main.py config.yaml

  # Split the first wordlist into 4 shards, each with its own producer
  python main.py config.yaml --shard-index 0 --num-shards 4

  # Show the plan only
  python main.py config.yaml --dry-run
        """
    )

    parser.add_argument("config", help="YAML config file")
    parser.add_argument("--workers", type=int, default=DEFAULT_WORKERS, help="Number of worker threads")
    parser.add_argument("--shard-index", type=int, help="Which wordlist to split (overrides shardIndex)")
    parser.add_argument("--num-shards", type=int, help="Number of shards (overrides numShards)")
    parser.add_argument("--rate-limit", type=float, help="Requests per second (overrides rateLimit)")
    parser.add_argument("--timeout", type=float, help="Per-request timeout in seconds (overrides timeout)")
    parser.add_argument("--skip-auth", action="store_true", help="Skip authorization check (dangerous!)")
    parser.add_argument("--dry-run", action="store_true", help="Show run plan without sending requests")
    return parser

def apply_overrides(config, args):
    if args.shard_index is not None:
        config.shard_index = args.shard_index
    if args.num_shards is not None:
        config.num_shards = args.num_shards
    if args.rate_limit is not None:
        config.rate_limit = args.rate_limit if args.rate_limit > 0 else None
    if args.timeout is not None:
        # 0 or less: no timeout
        config.timeout = args.timeout if args.timeout > 0 else None
    return config

def main(argv=None):
    """Main entry point"""
    display_banner()

    args = build_parser().parse_args(argv)

    try:
        config = apply_overrides(load_config(args.config), args)
        curl_config = CurlConfig.from_config(config)
        wordlists = load_wordlists(config.wordlists)
    except ConfigError as e:
        console.print(f"[red]Error: {e}[/]")
        append_log(f"Config error: {e}")
        sys.exit(1)

    shards = shard_lists(wordlists, config.shard_index, config.num_shards)
    total = calculate_total_permutations(shards)

    console.rule("[bold cyan]RUN CONFIGURATION")
    display_run_plan(config, wordlists, shards, total, args.workers)

    if not shards:
        console.print("[yellow]⚠  Shard settings produced no shards, nothing will be sent[/]")

    if args.dry_run:
        console.print("\n[bold yellow]DRY RUN MODE[/] - No requests will be sent\n")
        console.print("[green]✓ Run plan validated successfully[/]")
        sys.exit(0)

    if not args.skip_auth:
        verify_authorization(config.endpoint)
    else:
        console.print("[yellow]⚠ Skipping authorization check - use with caution![/]\n")

    append_log("=== NEW FAAST RUN STARTED ===")
    append_log(f"Endpoint: {config.endpoint}")
    append_log(f"Shards: {len(shards)} (list {config.shard_index}), ~{total} permutations")

    reporter = ConsoleReporter(console=console)
    pools = []

    try:
        console.rule("[bold green]FUZZING")
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
            TimeElapsedColumn(),
            console=console
        ) as progress:
            task = progress.add_task("[cyan]Sending requests...", total=total)
            summary = run_pipeline(
                curl_config,
                shards,
                reporter,
                progress_callback=lambda n: progress.advance(task, n),
                num_workers=args.workers,
                pool_ready=pools.append,
            )

        display_summary(summary)
        append_log(f"Run finished: {summary.total} results, {summary.errors} errors, {summary.anomalies} anomalies")

        console.rule("[bold green]RUN COMPLETE", style="green")
        console.print(f"[dim]Log file: {LOG_PATH}[/]\n")

    except KeyboardInterrupt:
        for pool in pools:
            pool.stop()
        console.print("\n[yellow]Run interrupted by user.[/]")
        append_log("Run interrupted by user")
        sys.exit(1)


if __name__ == "__main__":
    main()
