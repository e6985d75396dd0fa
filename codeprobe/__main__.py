import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .core.config import load_config
from .core.structure import CodeProbeError, build_registry
from .core.structure.service import AnalysisService


def setup_logging(log_level: str = "WARNING") -> None:
    """Configure CLI logging (to stderr; stdout carries the JSON report)."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stderr)
        ]
    )


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="codeprobe",
        description="codeprobe - heuristic structure extraction for Java, C++, C# and Python",
    )
    parser.add_argument(
        "files",
        metavar="FILE",
        nargs="+",
        help="Source files to analyze"
    )
    parser.add_argument(
        "--language",
        type=str,
        default=None,
        help="Language of every FILE (default: detect from the extension)"
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to a codeprobe.yaml config file"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level"
    )
    parser.add_argument(
        "--no-metrics",
        action="store_true",
        help="Skip file metrics"
    )
    parser.add_argument(
        "--compact",
        action="store_true",
        help="Print compact JSON instead of indented JSON"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for codeprobe. Returns the process exit code."""
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    try:
        config = load_config(args.config)
    except CodeProbeError as e:
        logger.error(f"Failed to load config: {e}")
        return 1

    registry = build_registry()
    service = AnalysisService(registry, config.analysis, config.extraction)

    reports = []
    failures = 0
    for file_name in args.files:
        path = Path(file_name)
        try:
            language = args.language or registry.for_file(file_name).language
            code = path.read_text(encoding="utf-8", errors="replace")
            report = service.analyze(
                code,
                language,
                file_name=file_name,
                include_metrics=False if args.no_metrics else None,
            )
        except (CodeProbeError, OSError) as e:
            logger.error(f"Cannot analyze {file_name}: {e}")
            failures += 1
            continue
        if report.failed:
            failures += 1
        reports.append(report.to_dict())

    output = reports[0] if len(args.files) == 1 and reports else reports
    indent = None if args.compact else 2
    print(json.dumps(output, indent=indent))
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
