import argparse
import json
import logging
import os
import sys
from typing import Dict, List, Union

from pydantic import TypeAdapter, ValidationError

from taco.config import load_config
from taco.errors import FormValidationError
from taco.pipeline import export, history
from taco.pipeline.fields import Blueprint, LogEntry
from taco.pipeline.identifiers import derive_id
from taco.pipeline.template import compile_template, render_output


def _read_blueprint(path: str) -> Blueprint:
    with open(path, "r", encoding="utf-8") as f:
        return export.import_json(f.read())


_VALUES = TypeAdapter(Dict[str, Union[str, List[str]]])
_LOGS = TypeAdapter(List[LogEntry])


def _read_values(raw: str) -> Dict[str, Union[str, List[str]]]:
    # Accept either inline JSON or a path to a JSON file
    if os.path.exists(raw):
        with open(raw, "r", encoding="utf-8") as f:
            raw = f.read()
    return _VALUES.validate_python(json.loads(raw))


def _write(output_dir: str, filename: str, content: str) -> str:
    os.makedirs(output_dir, exist_ok=True)
    path = os.path.join(output_dir, filename)
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(content)
    return path


def main(argv: List[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="TACO blueprint tools")
    parser.add_argument("--config", default="taco.toml")
    parser.add_argument("--output-dir", dest="output_dir")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("derive-id", help="Print the field id derived from a label")
    p.add_argument("label")

    p = sub.add_parser("new", help="Write an empty blueprint with the configured name and subtitle")
    p.add_argument("--title")

    p = sub.add_parser("template", help="Print the output template of a blueprint")
    p.add_argument("blueprint")

    p = sub.add_parser("render", help="Render the output text for a set of values")
    p.add_argument("blueprint")
    p.add_argument("--values", default="{}", help="JSON object of field id to value, or a path to one")

    p = sub.add_parser("export-html", help="Write the standalone HTML form")
    p.add_argument("blueprint")

    p = sub.add_parser("export-json", help="Write the normalized blueprint JSON")
    p.add_argument("blueprint")

    p = sub.add_parser("csv", help="Write the log history of a blueprint as CSV")
    p.add_argument("blueprint")
    p.add_argument("logs", help="JSON array of log records")

    args = parser.parse_args(argv)
    cfg = load_config(args.config)
    logging.basicConfig(level=cfg.log_level, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    output_dir = args.output_dir or cfg.output_dir

    if args.command == "derive-id":
        print(derive_id(args.label))
        return 0

    if args.command == "new":
        bp = Blueprint(title=args.title or cfg.default_form_name, subtitle=cfg.default_subtitle)
        path = _write(output_dir, export.export_filename(bp, "json"), export.export_json(bp))
        print(f"Done. Written: {path}")
        return 0

    try:
        bp = _read_blueprint(args.blueprint)
    except OSError as e:
        print(f"Cannot read blueprint: {e}", file=sys.stderr)
        return 1
    except FormValidationError as e:
        print(str(e), file=sys.stderr)
        return 1

    if args.command == "template":
        print(compile_template(bp.fields))
        return 0

    if args.command == "render":
        try:
            values = _read_values(args.values)
        except (ValueError, ValidationError) as e:
            print(f"Invalid --values: {e}", file=sys.stderr)
            return 2
        print(render_output(bp.fields, values))
        return 0

    if args.command == "export-html":
        path = _write(output_dir, export.export_filename(bp, "html"), export.export_html(bp))
    elif args.command == "export-json":
        path = _write(output_dir, export.export_filename(bp, "json"), export.export_json(bp))
    else:
        try:
            with open(args.logs, "r", encoding="utf-8") as f:
                entries = _LOGS.validate_python(json.load(f))
        except OSError as e:
            print(f"Cannot read logs: {e}", file=sys.stderr)
            return 1
        except (ValueError, ValidationError) as e:
            print(f"Invalid logs file: {e}", file=sys.stderr)
            return 1
        if not entries:
            print("No logs for this blueprint to download.", file=sys.stderr)
            return 1
        path = _write(output_dir, history.csv_filename(), history.csv_export(bp.fields, entries))

    print(f"Done. Written: {path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
