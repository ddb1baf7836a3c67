"""CLI entrypoint for exposify-codegen."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .config import DEFAULT_ENDPOINT, DEFAULT_MARKER, GeneratorOptions, load_config
from .emitters import available_targets
from .errors import ConfigurationError, ExposifyError
from .logging import configure_logging
from .orchestrator import Orchestrator
from .workspace import find_workspace_root, load_workspace_projects, resolve_project_names


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="exposify-codegen",
        description="Generate typed clients from @Expose decorated services.",
    )
    parser.add_argument(
        "projects",
        nargs="*",
        help="Workspace project names or source directories to scan (e.g. api auth).",
    )
    parser.add_argument(
        "-t",
        "--target",
        help=f"Target framework ({', '.join(available_targets())}).",
    )
    parser.add_argument("-o", "--output", help="Output directory for generated code (default: .).")
    parser.add_argument(
        "-e", "--endpoint", help=f"JSON-RPC endpoint path (default: {DEFAULT_ENDPOINT})."
    )
    parser.add_argument("-r", "--root", help="Workspace root directory.")
    parser.add_argument(
        "-c", "--config", help="Path to .exposify.yml (defaults to the workspace root)."
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Show detailed output, including unresolved types.",
    )
    parser.add_argument("--log-file", help="Also write a full debug log to this file.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _resolve_options(args: argparse.Namespace, cwd: Path) -> tuple[GeneratorOptions, Optional[Path], List[str]]:
    root = Path(args.root).expanduser().resolve() if args.root else find_workspace_root(cwd)
    if args.config:
        config = load_config(Path(args.config), required=True)
    else:
        config = load_config(root or cwd)

    target = args.target or config.target
    if not target:
        raise ConfigurationError("No target specified (use --target)", choices=available_targets())

    names = list(args.projects) or list(config.projects)
    if not names:
        raise ConfigurationError("No projects or source directories given")

    inputs: List[Path] = []
    labels: List[str] = []
    pending: List[str] = []
    for name in names:
        candidate = (cwd / name).expanduser()
        if candidate.is_dir():
            inputs.append(candidate.resolve())
            labels.append(name)
        else:
            pending.append(name)

    if pending:
        if root is None:
            raise ConfigurationError(
                "Could not find workspace root (no package.json with workspaces field); "
                "run from within a workspace or specify --root"
            )
        projects = load_workspace_projects(root)
        for project in resolve_project_names(pending, projects):
            inputs.append(project.src_path)
            labels.append(project.name)

    if args.output:
        output = (cwd / args.output).resolve()
    else:
        output = config.output or cwd

    options = GeneratorOptions(
        inputs=inputs,
        output=output,
        target=target,
        endpoint=args.endpoint or config.endpoint or DEFAULT_ENDPOINT,
        verbose=bool(args.verbose),
        marker=config.marker or DEFAULT_MARKER,
        exclude_paths=list(config.exclude_paths),
    )
    return options, root, labels


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for exposify-codegen."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        verbose=bool(args.verbose),
        log_file=Path(args.log_file).expanduser() if args.log_file else None,
    )

    try:
        options, root, labels = _resolve_options(args, Path.cwd())
        print("exposify-codegen")
        print("================")
        print(f"Workspace: {root or '-'}")
        print(f"Projects:  {', '.join(labels)}")
        print(f"Output:    {options.output}")
        print(f"Endpoint:  {options.endpoint}")
        print(f"Target:    {options.target}")
        print("")
        summary = Orchestrator().run(options)
    except ExposifyError as exc:
        parser.exit(1, f"error: {exc}\n")

    print(
        f"Done: {summary.services} services, {summary.types} types, "
        f"{len(summary.files)} files written"
    )


if __name__ == "__main__":
    main(sys.argv[1:])
