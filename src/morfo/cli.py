"""
Command-line interface for morfo.

This module provides the `morfo` CLI tool that builds a C/C++ program from
its main file and runs it.

Examples:
    morfo main.c                     # Build and run main.c
    morfo src/main.c -d .            # Index the current directory
    morfo main.c -v                  # Echo every compiler invocation
    morfo main.c -j 4                # Compile independent units in parallel
    morfo main.c --deps              # Show the dependency tree only
    morfo main.c -- --input data.txt # Pass arguments to the program
"""

import argparse
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.tree import Tree

from morfo import __version__, output
from morfo.build import DependencyGraph, execute, scan_project
from morfo.config import Config, load_config
from morfo.errors import MorfoError

console = Console(stderr=True, highlight=False)


@dataclass
class RunArgs:
    """Arguments for a build-and-run invocation."""

    main: Path
    project_dir: Optional[Path] = None
    config: Optional[Path] = None
    verbose: bool = False
    jobs: Optional[int] = None
    deps: bool = False
    program_args: list[str] = field(default_factory=list)


def render_dependency_tree(graph: DependencyGraph, root: Path) -> Tree:
    """Render a dependency graph as a rich Tree, paths relative to root."""

    def label(path: Path, repeated: bool) -> str:
        try:
            text = escape(str(path.relative_to(root)))
        except ValueError:
            text = escape(str(path))
        return f"[dim]{text} (see above)[/dim]" if repeated else text

    nodes: list[Tree] = []
    tree: Optional[Tree] = None
    for depth, unit, repeated in graph.iter_tree():
        if tree is None:
            tree = Tree(f"[bold]{label(unit.path, False)}[/bold]")
            nodes = [tree]
            continue
        del nodes[depth:]
        node = nodes[-1].add(label(unit.path, repeated))
        nodes.append(node)
    return tree if tree is not None else Tree("(empty)")


def run_command(args: RunArgs, config: Config) -> int:
    """Build and run the program; return the CLI exit code."""
    if args.deps:
        graph = scan_project(args.main, config, args.project_dir)
        root = args.project_dir.resolve() if args.project_dir else graph.root.path.parent
        console.print(render_dependency_tree(graph, root))
        return 0

    result = execute(args.main, config, sys.stdout.buffer, args.program_args, root=args.project_dir)
    result.raise_for_error()

    if args.verbose:
        console.print(f"✓ {args.main} exited with code {result.returncode}", style="bold green", markup=False)
    return 0


def _split_program_args(argv: Sequence[str]) -> tuple[list[str], list[str]]:
    argv = list(argv)
    if "--" in argv:
        split = argv.index("--")
        return argv[:split], argv[split + 1 :]
    return argv, []


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="morfo",
        description="Build a C/C++ program from its main file and run it.",
        epilog="Arguments after `--` are passed to the program.",
    )
    parser.add_argument("main", type=Path, help="The main file to build")
    parser.add_argument(
        "-d",
        "--dir",
        dest="project_dir",
        type=Path,
        default=None,
        help="Project directory to search for sources (default: directory of the main file)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Config file to use (default: ./morfo.toml, then ~/.config/morfo/config.toml)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Display all the build steps",
    )
    parser.add_argument(
        "-j",
        "--jobs",
        type=int,
        default=None,
        help="Number of units to compile in parallel (default: from config, or 1)",
    )
    parser.add_argument(
        "--deps",
        action="store_true",
        help="Print the dependency tree and exit",
    )
    parser.add_argument("--version", action="version", version=f"morfo {__version__}")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    cli_args, program_args = _split_program_args(sys.argv[1:] if argv is None else argv)
    parsed_args = build_parser().parse_args(cli_args)

    args = RunArgs(
        main=parsed_args.main,
        project_dir=parsed_args.project_dir,
        config=parsed_args.config,
        verbose=parsed_args.verbose,
        jobs=parsed_args.jobs,
        deps=parsed_args.deps,
        program_args=program_args,
    )

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    output.init_timer(sys.stderr)
    output.set_verbose(args.verbose)

    if args.project_dir is not None and not args.project_dir.is_dir():
        console.print(f"✗ Error: Path is not a directory: {args.project_dir}", style="bold red", markup=False)
        sys.exit(2)

    try:
        config = load_config(args.config)
        overrides: dict = {"verbose": args.verbose}
        if args.jobs is not None:
            overrides["jobs"] = args.jobs
        config = config.with_overrides(**overrides)
        sys.exit(run_command(args, config))

    except MorfoError as e:
        console.print(f"✗ {e}", style="bold red", markup=False)
        sys.exit(1)

    except KeyboardInterrupt:
        console.print("[bold yellow]✗ Interrupted[/bold yellow]")
        sys.exit(130)


if __name__ == "__main__":
    main()
