import argparse
import json
import logging
import sys

from dateutil.parser import isoparse

from timeresolver import export, hydrate, render, resolve_batch
from timeresolver.errors import TemporalError

logger = logging.getLogger(__name__)


def _load_records(source):
    if source == "-":
        data = json.load(sys.stdin)
    else:
        with open(source, encoding="utf-8") as f:
            data = json.load(f)
    if isinstance(data, dict):
        return [data]
    if not isinstance(data, list):
        raise ValueError("expected a JSON object or a list of objects")
    return data


def _error(error):
    return {"type": type(error).__name__, "message": str(error)}


def entrance(argv=None):
    timeresolver_argparse = argparse.ArgumentParser(
        description="Resolve exported temporal expression records to absolute date-times."
    )
    timeresolver_argparse.add_argument(
        "records",
        nargs="?",
        default="-",
        help='A JSON file holding one record or a list of records ("-" for stdin)',
    )
    timeresolver_argparse.add_argument(
        "--reference",
        type=str,
        help="The ISO 8601 reference instant (default: now)",
    )
    timeresolver_argparse.add_argument(
        "--render",
        help="Print the rendered expression instead of its record",
        action="store_true",
    )
    timeresolver_argparse.add_argument(
        "-v",
        "--verbose",
        help="Log resolution steps",
        action="store_true",
    )

    args = timeresolver_argparse.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    reference = None
    if args.reference:
        try:
            reference = isoparse(args.reference)
        except ValueError as e:
            timeresolver_argparse.error(f"timeresolver: invalid --reference: {e}")

    try:
        records = _load_records(args.records)
    except (OSError, ValueError) as e:
        timeresolver_argparse.error(f"timeresolver: cannot read records: {e}")

    # One slot per input record, so output lines follow input order.
    slots = []
    for record in records:
        try:
            slots.append((record, hydrate(record)))
        except TemporalError as e:
            slots.append((record, e))

    expressions = [slot for _, slot in slots if not isinstance(slot, TemporalError)]
    resolutions = iter(resolve_batch(expressions, reference))

    failures = 0
    for record, slot in slots:
        if isinstance(slot, TemporalError):
            failures += 1
            print(json.dumps({"expression": record, "resolved": None, "error": _error(slot)}))
            continue

        resolution = next(resolutions)
        if args.render:
            expression = render(resolution.expression, resolution.value)
        else:
            expression = export(resolution.expression)

        if resolution.ok:
            line = {"expression": expression, "resolved": resolution.value.isoformat(), "error": None}
        else:
            failures += 1
            line = {"expression": expression, "resolved": None, "error": _error(resolution.error)}
        print(json.dumps(line))

    logger.info(f"timeresolver: resolved {len(records) - failures} of {len(records)} records")
    return 1 if failures else 0


def main():
    sys.exit(entrance())
