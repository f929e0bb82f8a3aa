import sys
import json
import logging
import argparse
from pathlib import Path

from backend.datasources import VariableStore
from backend.importing import DataImportError, ImportContext, RequestDispatcher
from backend.models import CsvFile, ImportInputs, ImportMode, ImportOptions, ModelConfig
from backend.services.logging import configure_logging, get_log_service, install_global_exception_hooks

logger = logging.getLogger(__name__)


EXIT_OK = 0
EXIT_NO_DATA = 1
EXIT_BAD_MODEL = 2
EXIT_WARNINGS = 3


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Import a delimited file as a data collection and print it as JSON.",
    )
    parser.add_argument("csv", type=Path, help="Header-less delimited file to import")
    parser.add_argument("--model", type=Path, help="Model definition (JSON)")
    parser.add_argument("--delimiter", help="Field delimiter; guessed when omitted")
    parser.add_argument("--decimal", choices=[".", ","], help="Decimal separator")
    parser.add_argument("--encoding", help="Text encoding; common encodings are tried when omitted")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    parser.add_argument(
        "--strict",
        action="store_true",
        help=f"Exit with {EXIT_WARNINGS} when any warning was logged, e.g. a skipped row",
    )
    return parser


def run(argv=None) -> int:
    args = build_parser().parse_args(argv)
    level = getattr(logging, str(args.log_level).upper(), logging.WARNING)
    configure_logging(level, name="app")
    install_global_exception_hooks()
    log_service = get_log_service()
    log_service.clear()

    try:
        model = ModelConfig.from_json(args.model) if args.model else ModelConfig(id="cli")
    except (OSError, ValueError) as exc:
        logger.error("Could not load model %s: %s", args.model, exc)
        return EXIT_BAD_MODEL

    # error notifications are logged by the context, so no bus is needed here
    context = ImportContext()
    options = ImportOptions(
        csv_delimiter=args.delimiter,
        csv_decimal=args.decimal,
        csv_encoding=args.encoding,
    )
    dispatcher = RequestDispatcher(context, VariableStore(), options=options)
    inputs = ImportInputs(file=CsvFile(name=args.csv.name, path=str(args.csv)))
    try:
        dispatcher.dispatch(ImportMode.FILE_UPLOAD, inputs, model)
    except DataImportError as exc:
        logger.error("Import failed: %s", exc)
        return EXIT_NO_DATA

    json.dump([c.to_dict() for c in context.collections], sys.stdout, indent=2)
    sys.stdout.write("\n")
    if not context.collections:
        return EXIT_NO_DATA
    if args.strict and log_service.events(min_level=logging.WARNING):
        return EXIT_WARNINGS
    return EXIT_OK


def main():
    sys.exit(run())


if __name__ == "__main__":
    try:
        main()
    except Exception:
        logger.exception("Fatal uncaught exception in app entrypoint")
        raise
