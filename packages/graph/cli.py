"""flowtypes command-line interface."""

from __future__ import annotations

import argparse
import ast
import json
import sys
from pathlib import Path
from typing import Any, Mapping, Sequence

from packages.generics.errors import GenericTypeError
from packages.generics.grammar import parse_type
from packages.generics.resolver import try_resolve
from packages.generics.type_tree import format_type

from .connections import audit_edges
from .flow_format import FlowFormatError, load_flow_file
from .model import load_node_metas
from .settings import EditorConfig, load_settings


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="flowtypes", description="Generic type tools for node-graph flows"
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Optional path to an editor settings YAML file.",
    )
    parser.add_argument(
        "--set",
        dest="overrides",
        action="append",
        metavar="KEY=VALUE",
        help="Override settings using dot notation (e.g. colors.int=[0,0,200]).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_parse_parser(subparsers)
    _add_resolve_parser(subparsers)
    _add_check_parser(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        overrides = _parse_overrides(args.overrides)
        settings = load_settings(args.config, overrides=overrides)
        if args.command == "parse":
            return _cmd_parse(args)
        if args.command == "resolve":
            return _cmd_resolve(args)
        if args.command == "check":
            return _cmd_check(args, settings)
    except (GenericTypeError, FlowFormatError, FileNotFoundError, ValueError) as exc:
        print(f"[flowtypes] error: {exc}", file=sys.stderr)
        return 1

    parser.print_help()
    return 1


# ---------------------------------------------------------------------------
# Sub-command wiring


def _add_parse_parser(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("parse", help="Parse type expressions and print them")
    parser.add_argument("expressions", nargs="+", help="Type expressions such as 'list<T>'")
    parser.add_argument("--json", action="store_true", help="Emit the parsed trees as JSON")


def _add_resolve_parser(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser(
        "resolve", help="Resolve generic parameters of one type against another"
    )
    parser.add_argument("unresolved", help="Type expression mentioning generic parameters")
    parser.add_argument("concrete", help="Concrete type expression")
    parser.add_argument(
        "--param",
        dest="params",
        action="append",
        required=True,
        help="Generic parameter name (repeat for multiple)",
    )


def _add_check_parser(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("check", help="Re-validate every edge of an exported flow")
    parser.add_argument("flow", type=Path, help="Exported flow JSON file")
    parser.add_argument(
        "--metas",
        type=Path,
        help="Node metadata file (defaults to node_metas_path from the settings)",
    )


# ---------------------------------------------------------------------------
# Command implementations


def _cmd_parse(args: argparse.Namespace) -> int:
    trees = [parse_type(text) for text in args.expressions]
    if args.json:
        print(json.dumps([tree.to_mapping() for tree in trees], indent=2))
    else:
        for tree in trees:
            print(format_type(tree))
    return 0


def _cmd_resolve(args: argparse.Namespace) -> int:
    resolution = try_resolve(
        parse_type(args.unresolved), parse_type(args.concrete), frozenset(args.params)
    )
    if not resolution.ok:
        print(f"[flowtypes] unresolvable: {resolution.error}", file=sys.stderr)
        return 1
    for name in sorted(resolution.bindings):
        print(f"{name} = {format_type(resolution.bindings[name])}")
    return 0


def _cmd_check(args: argparse.Namespace, settings: EditorConfig) -> int:
    metas_path = args.metas or settings.node_metas_path
    if metas_path is None:
        raise ValueError("node metadata path required (--metas or node_metas_path)")
    metas = load_node_metas(metas_path)
    nodes, edges = load_flow_file(args.flow, metas, palette=settings.palette)
    issues = audit_edges({node.id: node for node in nodes}, edges, metas)
    for issue in issues:
        print(f"{issue.edge_id}: {issue.reason}")
    print(f"[flowtypes] checked {len(edges)} edge(s), {len(issues)} issue(s)")
    return 1 if issues else 0


# ---------------------------------------------------------------------------
# Helpers


def _parse_overrides(raw: Sequence[str] | None) -> Mapping[str, Any]:
    overrides: dict[str, Any] = {}
    if not raw:
        return overrides
    for item in raw:
        key, sep, value_text = item.partition("=")
        if not sep:
            raise ValueError(f"override '{item}' is missing '='")
        key_parts = [part for part in key.split(".") if part]
        if not key_parts:
            raise ValueError("override key must not be empty")
        cursor = overrides
        for part in key_parts[:-1]:
            cursor = cursor.setdefault(part, {})
            if not isinstance(cursor, dict):
                raise ValueError(f"override '{key}' conflicts with an existing value")
        cursor[key_parts[-1]] = _coerce_literal(value_text)
    return overrides


def _coerce_literal(value: str) -> Any:
    try:
        return ast.literal_eval(value)
    except (ValueError, SyntaxError):
        return value


if __name__ == "__main__":  # pragma: no cover - script entry point
    raise SystemExit(main())
