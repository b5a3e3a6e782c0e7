import argparse
import logging
import sys

from tidyparcel import report
from tidyparcel.conf import DEFAULT_CONF
from tidyparcel.data_loading import load_dataset, save_dataset
from tidyparcel.pipeline.cleaning_pipeline import CleaningPipeline
from tidyparcel.pipeline.stage_result import (
    DatasetError, PreconditionViolation, StageConfigError, StageTransactionFailure)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tidyparcel", description="Clean a housing-sales export")
    parser.add_argument("input", help="csv, tsv, parquet or json file")
    parser.add_argument("--output", help="Write the cleaned table here (csv, tsv or parquet)")
    parser.add_argument("--stages", help="Comma-separated stage names, default is every stage")
    parser.add_argument("--drop", nargs="+", metavar="COL", help="Columns for the pruning stage to drop")
    parser.add_argument("--keep-columns", action="store_true", help="Skip the column pruning stage")
    parser.add_argument("--log-file", help="Log to this file instead of stderr")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        filename=args.log_file,
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    log = logging.getLogger("tidyparcel.cli")

    stages = args.stages.split(",") if args.stages else None
    try:
        pipeline = CleaningPipeline(stages, DEFAULT_CONF)
    except (KeyError, PreconditionViolation, StageConfigError) as e:
        parser.error(str(e))
    if args.keep_columns:
        pipeline.stages = [st for st in pipeline.stages if st.name != "drop_unused_columns"]
    if args.drop:
        pipeline.stage_kwargs["drop_unused_columns"] = {"columns": args.drop}

    try:
        dataset = load_dataset(args.input)
    except (DatasetError, OSError, ValueError) as e:
        print(f"could not load {args.input}: {e}", file=sys.stderr)
        return 1
    log.info("Starting pipeline on %s", args.input)
    try:
        result = pipeline.run(dataset)
    except StageTransactionFailure as e:
        for stage_report in e.completed:
            print(stage_report.summary_line())
        print(f"stage '{e.stage_name}' failed: {e.original_error}", file=sys.stderr)
        return 1
    except PreconditionViolation as e:
        print(f"stage '{e.stage_name}' cannot run: {e}", file=sys.stderr)
        return 1

    for stage_report in result.stages:
        print(stage_report.summary_line())
    for key, value in report.quality_summary(dataset, DEFAULT_CONF).items():
        print(f"{key}: {value}")

    if args.output:
        save_dataset(dataset, args.output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
