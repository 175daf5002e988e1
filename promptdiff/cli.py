"""
Command-line interface.

Usage:
  promptdiff analyze --config promptdiff.yaml
  promptdiff apply --config promptdiff.yaml [--report generated/reports/change-report-....json]
  promptdiff update-config --config promptdiff.yaml
  promptdiff validate --config promptdiff.yaml
  promptdiff convert --config promptdiff.yaml [--output prompt.json]
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

import yaml

from .config import PromptDiffConfig
from .errors import PromptDiffError
from .pipeline import run_analyze, run_apply, run_convert, run_update_config, run_validate

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="promptdiff", description="Detect documentation prompt changes and propagate them downstream."
    )
    sub = parser.add_subparsers(dest="cmd", required=True)

    analyze_p = sub.add_parser("analyze", help="Detect prompt changes and save a change report.")
    apply_p = sub.add_parser("apply", help="Apply the changes of a change report to downstream modules.")
    apply_p.add_argument("--report", help="Change report to apply (default: newest in the reports dir).")
    update_p = sub.add_parser("update-config", help="Merge the parsed prompt into the workflow configuration.")
    validate_p = sub.add_parser("validate", help="Check that downstream modules match the configuration.")
    convert_p = sub.add_parser("convert", help="Convert the prompt markdown to JSON.")
    convert_p.add_argument("--output", help="Output JSON path (default: project.converted_json).")

    for p in (analyze_p, apply_p, update_p, validate_p, convert_p):
        p.add_argument("--config", required=True, help="Path to YAML config file.")

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)

    try:
        cfg = PromptDiffConfig.from_yaml(args.config)
        logging.basicConfig(
            level=logging.INFO if cfg.runtime.verbose else logging.WARNING,
            format=LOG_FORMAT,
        )

        if args.cmd == "analyze":
            run_analyze(cfg)
        elif args.cmd == "apply":
            summary = run_apply(cfg, args.report)
            if not summary.success:
                sys.exit(1)
        elif args.cmd == "update-config":
            run_update_config(cfg)
        elif args.cmd == "validate":
            report = run_validate(cfg)
            if report.overall_status == "FAIL":
                sys.exit(1)
        elif args.cmd == "convert":
            run_convert(cfg, args.output)
    except (PromptDiffError, yaml.YAMLError, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
