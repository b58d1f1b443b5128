"""Build every intake flow in every language and report its shape.

Usage:
  python scripts/validate_flows.py [--lang en] [--paths] [--json]

Runs the same build-time checks the server runs on startup (graph integrity,
content integrity, EN/ES parity) and exits non-zero on the first defect, so
it is safe to run in CI after editing the YAML bundles.
"""
from __future__ import annotations

import argparse
import json
import os
import sys
from typing import List

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
SRC_DIR = os.path.join(PROJECT_ROOT, "src")
if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)

from intake_flow.errors import IntakeFlowError  # noqa: E402
from intake_flow.flows import END, Flow, build_all_flows  # noqa: E402


def enumerate_paths(flow: Flow) -> List[List[str]]:
    """Every start-to-END route through the graph, following each branch target."""
    paths: List[List[str]] = []

    def _walk(node_id: str, trail: List[str]) -> None:
        if node_id == END:
            paths.append(trail)
            return
        for target in dict.fromkeys(flow.nodes[node_id].branch.targets()):
            _walk(target, trail + [node_id])

    _walk(flow.start, [])
    return paths


def summarize(flow: Flow, with_paths: bool) -> dict:
    paths = enumerate_paths(flow)
    out = {
        'title': flow.title,
        'nodes': len(flow.nodes),
        'completion': flow.completion.value,
        'send_confirmation': flow.send_confirmation,
        'paths': len(paths),
        'longest_path': max((len(p) for p in paths), default=0),
    }
    if with_paths:
        out['routes'] = [' -> '.join(p) for p in paths]
    return out


def main(argv: List[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    ap.add_argument('--lang', help='Only report this language (all languages are still built)')
    ap.add_argument('--paths', action='store_true', help='List every route through each flow')
    ap.add_argument('--json', action='store_true', help='Emit a JSON report')
    args = ap.parse_args(argv)

    try:
        flows_by_language = build_all_flows()
    except IntakeFlowError as e:
        print(f"[validate] FAILED: {e}", file=sys.stderr)
        return 1

    report = {}
    for lang, flows in flows_by_language.items():
        if args.lang and lang != args.lang:
            continue
        report[lang] = {ct: summarize(flow, args.paths) for ct, flow in flows.items()}

    if args.json:
        print(json.dumps(report, indent=2, ensure_ascii=False))
        return 0
    for lang, flows in report.items():
        print(f"[{lang}]")
        for ct, info in flows.items():
            print(f"  {ct}: {info['nodes']} nodes, {info['paths']} paths "
                  f"(longest {info['longest_path']}), {info['completion']}")
            for route in info.get('routes', []):
                print(f"    {route}")
    print("[validate] OK")
    return 0


if __name__ == '__main__':
    sys.exit(main())
